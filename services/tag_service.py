"""Tag Service — CRUD for recipe tags."""
import logging

from sqlalchemy import func

from database.models import db, Tag, recipe_tag

logger = logging.getLogger(__name__)

VALID_COLORS = [
    'gray', 'red', 'orange', 'amber', 'yellow',
    'green', 'emerald', 'cyan', 'blue', 'purple', 'pink'
]
DEFAULT_COLOR = 'gray'


def serialize_tag(tag: Tag) -> dict:
    return {
        'id': tag.id,
        'name': tag.name,
        'color': tag.color,
        'created_at': tag.created_at.isoformat() if tag.created_at else None,
        'updated_at': tag.updated_at.isoformat() if tag.updated_at else None,
    }


def list_tags() -> list[Tag]:
    return db.session.execute(db.select(Tag).order_by(Tag.name)).scalars().all()


def get_tag(tag_id: int) -> Tag | None:
    return db.session.get(Tag, tag_id)


def get_tags_by_ids(tag_ids) -> list[Tag]:
    if not tag_ids:
        return []
    return db.session.execute(
        db.select(Tag).where(Tag.id.in_(list(tag_ids))).order_by(Tag.name)
    ).scalars().all()


def find_tag_by_name(name: str) -> Tag | None:
    return db.session.execute(
        db.select(Tag).where(func.lower(Tag.name) == name.strip().lower())
    ).scalars().first()


def tag_exists_by_name(name: str, exclude_id: int | None = None) -> bool:
    """Case-insensitive name check, optionally ignoring one tag (for renames)."""
    stmt = db.select(Tag.id).where(func.lower(Tag.name) == name.strip().lower())
    if exclude_id is not None:
        stmt = stmt.where(Tag.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def validate_tag_input(payload: dict, exclude_id: int | None = None) -> tuple[dict | None, str | None]:
    """Returns (clean_input, error_message)."""
    name = payload.get('name')
    color = payload.get('color')

    if not isinstance(name, str) or not name.strip():
        return None, 'Name ist erforderlich'
    if color not in VALID_COLORS:
        return None, 'Ungültige Farbe'
    if tag_exists_by_name(name, exclude_id=exclude_id):
        return None, 'Ein Tag mit diesem Namen existiert bereits'

    return {'name': name.strip(), 'color': color}, None


def create_tag(name: str, color: str = DEFAULT_COLOR) -> Tag:
    tag = Tag(name=name.strip(), color=color)
    db.session.add(tag)
    db.session.commit()
    logger.info(f"Created tag '{tag.name}' ({tag.color})")
    return tag


def update_tag(tag_id: int, name: str, color: str) -> Tag | None:
    tag = db.session.get(Tag, tag_id)
    if not tag:
        return None
    tag.name = name.strip()
    tag.color = color
    db.session.commit()
    return tag


def delete_tag(tag_id: int) -> bool:
    tag = db.session.get(Tag, tag_id)
    if not tag:
        return False
    # Association rows go with the tag via the secondary relationship
    db.session.delete(tag)
    db.session.commit()
    logger.info(f"Deleted tag {tag_id}")
    return True


def usage_count(tag_id: int) -> int:
    return db.session.execute(
        db.select(func.count()).select_from(recipe_tag).where(recipe_tag.c.tag_id == tag_id)
    ).scalar() or 0
