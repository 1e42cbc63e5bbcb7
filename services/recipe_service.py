"""
Recipe Service — persistence and serialization for recipes.

Every recipe route goes through this module. It owns:
  • Input validation (title, instructions, named ingredients, amount grammar)
  • DB persistence (Recipe, RecipeIngredient, recipe_tag)
  • Serving-size rescaling and the plain-text ingredient list
  • JSON backup export / import
"""

import datetime
import logging

import markdown
from sqlalchemy import func

from database.models import db, Recipe, RecipeIngredient, Tag
from services.tag_service import (
    serialize_tag, get_tags_by_ids, find_tag_by_name, DEFAULT_COLOR
)
from utils.amount import is_valid_amount, scale_amount, format_number

logger = logging.getLogger(__name__)

DEFAULT_SERVINGS = 4
MAX_SERVINGS = 1000
EXPORT_VERSION = 1

INVALID_AMOUNT_HINT = (
    "Erlaubt sind Zahlen (z.B. 200), Dezimalzahlen (z.B. 2.5) "
    "oder Brüche (z.B. 1/2, 1 1/2)."
)


# ---------------------------------------------------------------------------
# Input cleaning
# ---------------------------------------------------------------------------

def _clean_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def clean_amount(value) -> str | None:
    """Numbers from JSON/AI become display strings; blank strings become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return format_number(value)
    return _clean_text(value)


def parse_servings(value) -> int | None:
    if value is None or value == '':
        return DEFAULT_SERVINGS
    if isinstance(value, bool):
        return None
    try:
        servings = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if isinstance(value, float) and servings != value:
        return None
    if not 1 <= servings <= MAX_SERVINGS:
        return None
    return servings


def validate_recipe_input(payload: dict) -> tuple[dict | None, str | None]:
    """
    Validates a create/update payload.
    Returns (clean_input, None) or (None, error_message).
    Ingredients without a name are dropped silently (empty form rows).
    """
    if not isinstance(payload, dict):
        return None, 'Ungültige Anfrage'

    title = payload.get('title')
    if not isinstance(title, str) or not title.strip():
        return None, 'Titel ist erforderlich'

    instructions = payload.get('instructions')
    if not isinstance(instructions, str) or not instructions.strip():
        return None, 'Anleitung ist erforderlich'

    raw_ingredients = payload.get('ingredients') or []
    if not isinstance(raw_ingredients, list):
        return None, 'Mindestens eine Zutat ist erforderlich'

    ingredients = []
    for raw in raw_ingredients:
        if not isinstance(raw, dict):
            continue
        name = raw.get('name')
        if not isinstance(name, str) or not name.strip():
            continue
        amount = clean_amount(raw.get('amount'))
        if amount is not None and not is_valid_amount(amount):
            return None, f'Ungültige Mengenangabe: "{amount}". {INVALID_AMOUNT_HINT}'
        ingredients.append({
            'name': name.strip(),
            'amount': amount,
            'unit': _clean_text(raw.get('unit')),
        })

    if not ingredients:
        return None, 'Mindestens eine Zutat ist erforderlich'

    servings = parse_servings(payload.get('servings'))
    if servings is None:
        return None, 'Portionen müssen eine positive ganze Zahl sein'

    raw_tag_ids = payload.get('tag_ids') or []
    try:
        tag_ids = [int(tid) for tid in raw_tag_ids]
    except (TypeError, ValueError):
        return None, 'Ungültige Tag-IDs'

    return {
        'title': title.strip(),
        'instructions': instructions.strip(),
        'servings': servings,
        'image_data': payload.get('image_data') or None,
        'source_url': _clean_text(payload.get('source_url')),
        'ingredients': ingredients,
        'tag_ids': tag_ids,
    }, None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_recipes(query: str | None = None, tag_ids=None) -> list[Recipe]:
    """Newest first. Title substring search; recipes must carry ALL given tags."""
    stmt = db.select(Recipe).order_by(Recipe.created_at.desc())

    if query and query.strip():
        stmt = stmt.where(Recipe.title.ilike(f"%{query.strip()}%"))

    for tag_id in tag_ids or []:
        stmt = stmt.where(Recipe.tags.any(Tag.id == tag_id))

    return db.session.execute(stmt).scalars().all()


def list_recipes_with_ingredients() -> list[Recipe]:
    return db.session.execute(
        db.select(Recipe).order_by(Recipe.created_at.desc())
    ).scalars().all()


def get_recipe(recipe_id: str) -> Recipe | None:
    return db.session.get(Recipe, recipe_id)


def recipe_exists_by_title(title: str) -> bool:
    return db.session.execute(
        db.select(Recipe.id).where(func.lower(Recipe.title) == title.strip().lower())
    ).first() is not None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _build_ingredients(ingredients: list[dict]) -> list[RecipeIngredient]:
    return [
        RecipeIngredient(
            name=ing['name'],
            amount=ing.get('amount'),
            unit=ing.get('unit'),
            sort_order=index,
        )
        for index, ing in enumerate(ingredients)
    ]


def create_recipe(data: dict, tags: list[Tag] | None = None) -> Recipe:
    recipe = Recipe(
        title=data['title'],
        instructions=data['instructions'],
        servings=data.get('servings') or DEFAULT_SERVINGS,
        image_data=data.get('image_data'),
        source_url=data.get('source_url'),
    )
    recipe.ingredients = _build_ingredients(data['ingredients'])
    recipe.tags = tags if tags is not None else get_tags_by_ids(data.get('tag_ids'))

    db.session.add(recipe)
    db.session.commit()
    logger.info(f"Created recipe '{recipe.title}' ({recipe.id}) with {len(recipe.ingredients)} ingredients")
    return recipe


def update_recipe(recipe_id: str, data: dict) -> Recipe | None:
    """Replaces every field, the ingredient list and the tag set."""
    recipe = db.session.get(Recipe, recipe_id)
    if not recipe:
        return None

    recipe.title = data['title']
    recipe.instructions = data['instructions']
    recipe.servings = data.get('servings') or DEFAULT_SERVINGS
    recipe.image_data = data.get('image_data')
    recipe.source_url = data.get('source_url')
    recipe.ingredients = _build_ingredients(data['ingredients'])
    recipe.tags = get_tags_by_ids(data.get('tag_ids'))

    db.session.commit()
    return recipe


def delete_recipe(recipe_id: str) -> bool:
    recipe = db.session.get(Recipe, recipe_id)
    if not recipe:
        return False
    db.session.delete(recipe)
    db.session.commit()
    logger.info(f"Deleted recipe {recipe_id}")
    return True


def rescale_recipe(recipe: Recipe, new_servings: int) -> Recipe:
    """Stores the recipe at a new serving count, scaling every amount."""
    old_servings = recipe.servings
    if new_servings == old_servings:
        return recipe

    for ing in recipe.ingredients:
        if ing.amount:
            ing.amount = scale_amount(ing.amount, new_servings, old_servings)
    recipe.servings = new_servings

    db.session.commit()
    logger.info(f"Rescaled recipe {recipe.id} from {old_servings} to {new_servings} servings")
    return recipe


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def format_ingredient_amount(amount: str | None, unit: str | None,
                             display_servings=None, base_servings=None) -> str:
    """'<amount> <unit>' with the amount scaled to display_servings when it differs."""
    if not amount:
        return unit or ''
    if display_servings and base_servings and display_servings != base_servings:
        amount = scale_amount(amount, display_servings, base_servings)
    return f"{amount} {unit}" if unit else amount


def ingredients_text(recipe: Recipe, servings=None, exclude=()) -> str:
    """Plain-text shopping list, one ingredient per line, skipping excluded indices."""
    excluded = set(exclude or ())
    lines = []
    for index, ing in enumerate(recipe.ingredients):
        if index in excluded:
            continue
        amount = format_ingredient_amount(ing.amount, ing.unit, servings, recipe.servings)
        lines.append(f"{amount} {ing.name}" if amount else ing.name)
    return "\n".join(lines)


def render_instructions(text: str | None) -> str:
    if not text:
        return ""
    return markdown.markdown(text, extensions=['tables', 'sane_lists'])


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize_recipe_list_item(recipe: Recipe) -> dict:
    return {
        'id': recipe.id,
        'title': recipe.title,
        'image_data': recipe.image_data,
        'servings': recipe.servings,
        'tags': [serialize_tag(t) for t in recipe.tags],
        'created_at': recipe.created_at.isoformat() if recipe.created_at else None,
    }


def serialize_recipe(recipe: Recipe, display_servings: int | None = None) -> dict:
    scaling = bool(display_servings) and display_servings != recipe.servings

    ingredients = []
    for ing in recipe.ingredients:
        item = {
            'id': ing.id,
            'name': ing.name,
            'amount': ing.amount,
            'unit': ing.unit,
            'sort_order': ing.sort_order,
        }
        if scaling:
            item['scaled_amount'] = (
                scale_amount(ing.amount, display_servings, recipe.servings) if ing.amount else ing.amount
            )
        ingredients.append(item)

    data = {
        'id': recipe.id,
        'title': recipe.title,
        'instructions': recipe.instructions,
        'instructions_html': render_instructions(recipe.instructions),
        'servings': recipe.servings,
        'image_data': recipe.image_data,
        'source_url': recipe.source_url,
        'ingredients': ingredients,
        'tags': [serialize_tag(t) for t in recipe.tags],
        'created_at': recipe.created_at.isoformat() if recipe.created_at else None,
        'updated_at': recipe.updated_at.isoformat() if recipe.updated_at else None,
    }
    if scaling:
        data['display_servings'] = display_servings
    return data


# ---------------------------------------------------------------------------
# Backup: export / import
# ---------------------------------------------------------------------------

def build_export() -> dict:
    recipes = list_recipes_with_ingredients()
    return {
        'version': EXPORT_VERSION,
        'exported_at': datetime.datetime.now(datetime.timezone.utc).isoformat(),
        'recipes': [
            {
                'title': r.title,
                'instructions': r.instructions,
                'servings': r.servings,
                'image_data': r.image_data,
                'source_url': r.source_url,
                'ingredients': [
                    {'name': i.name, 'amount': i.amount, 'unit': i.unit}
                    for i in r.ingredients
                ],
                'tags': [t.name for t in r.tags],
            }
            for r in recipes
        ],
    }


def export_filename(today: datetime.date | None = None) -> str:
    today = today or datetime.date.today()
    return f"rezepte-export-{today.isoformat()}.json"


def validate_import(data) -> bool:
    """Structural check of a backup file before anything is written."""
    if not isinstance(data, dict):
        return False
    if not isinstance(data.get('version'), int) or isinstance(data.get('version'), bool):
        return False
    if not isinstance(data.get('recipes'), list):
        return False

    for recipe in data['recipes']:
        if not isinstance(recipe, dict):
            return False
        title = recipe.get('title')
        if not isinstance(title, str) or not title.strip():
            return False
        if not isinstance(recipe.get('instructions'), str):
            return False
        servings = recipe.get('servings')
        if not isinstance(servings, (int, float)) or isinstance(servings, bool):
            return False
        if not isinstance(recipe.get('ingredients'), list):
            return False
        for ing in recipe['ingredients']:
            if not isinstance(ing, dict):
                return False
            name = ing.get('name')
            if not isinstance(name, str) or not name.strip():
                return False
        if not isinstance(recipe.get('tags', []), list):
            return False

    return True


def _resolve_tags_by_name(names) -> list[Tag]:
    tags = []
    for name in names or []:
        if not isinstance(name, str) or not name.strip():
            continue
        tag = find_tag_by_name(name)
        if tag is None:
            tag = Tag(name=name.strip(), color=DEFAULT_COLOR)
            db.session.add(tag)
        if tag not in tags:
            tags.append(tag)
    return tags


def import_recipes(data: dict) -> dict:
    """
    Restores recipes from a backup. Titles that already exist are skipped.
    A failing recipe is rolled back and reported; the rest continue.
    """
    result = {'imported': 0, 'skipped': 0, 'errors': []}

    for raw in data['recipes']:
        title = raw['title'].strip()
        try:
            if recipe_exists_by_title(title):
                result['skipped'] += 1
                continue

            clean = {
                'title': title,
                'instructions': raw['instructions'].strip(),
                'servings': max(1, int(raw['servings'])),
                'image_data': raw.get('image_data') or None,
                'source_url': _clean_text(raw.get('source_url')),
                'ingredients': [
                    {
                        'name': ing['name'].strip(),
                        'amount': clean_amount(ing.get('amount')),
                        'unit': _clean_text(ing.get('unit')),
                    }
                    for ing in raw['ingredients']
                ],
            }
            create_recipe(clean, tags=_resolve_tags_by_name(raw.get('tags')))
            result['imported'] += 1

        except Exception as e:
            db.session.rollback()
            logger.error(f"Error importing recipe '{title}': {e}")
            result['errors'].append(f'Fehler bei "{title}"')

    logger.info(f"Backup import: {result['imported']} imported, {result['skipped']} skipped, {len(result['errors'])} errors")
    return result
