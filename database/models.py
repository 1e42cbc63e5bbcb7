from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Text, ForeignKey, DateTime
import datetime
import uuid


class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


# Association table for recipe <-> tag
recipe_tag = db.Table('recipe_tag',
    db.Column('recipe_id', db.String(36), db.ForeignKey('recipe.id', ondelete='CASCADE'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('tag.id', ondelete='CASCADE'), primary_key=True)
)


class Recipe(db.Model):
    __tablename__ = 'recipe'
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    instructions: Mapped[str] = mapped_column(Text, nullable=False, default='') # Markdown
    servings: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    image_data: Mapped[str] = mapped_column(Text, nullable=True) # data:image/jpeg;base64,...
    source_url: Mapped[str] = mapped_column(String(2048), nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow, index=True)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
    )
    tags: Mapped[list["Tag"]] = relationship(
        secondary=recipe_tag,
        back_populates="recipes",
        order_by="Tag.name",
    )


class RecipeIngredient(db.Model):
    __tablename__ = 'recipe_ingredient'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipe_id: Mapped[str] = mapped_column(ForeignKey("recipe.id", ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Free text: "200", "2.5", "1/2", "1 1/2" (see utils.amount)
    amount: Mapped[str] = mapped_column(String(50), nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    recipe: Mapped["Recipe"] = relationship(back_populates="ingredients")


class Tag(db.Model):
    __tablename__ = 'tag'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default='gray')
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    recipes: Mapped[list["Recipe"]] = relationship(
        secondary=recipe_tag,
        back_populates="tags",
    )


class AppSetting(db.Model):
    """Key/value store: 'recipe_model', 'image_model', 'pin_hash'."""
    __tablename__ = 'app_setting'
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
