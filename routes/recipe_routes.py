"""
Recipes Blueprint — recipe CRUD, serving-size rescaling and AI draft helpers.

Routes:
    GET    /api/recipes                       — List (q=search, tags=1,2), cached.
    POST   /api/recipes                       — Create.
    GET    /api/recipes/<id>                  — Detail (servings=N for a scaled view).
    PUT    /api/recipes/<id>                  — Replace.
    DELETE /api/recipes/<id>                  — Delete.
    POST   /api/recipes/<id>/servings         — Store the recipe at a new serving count.
    GET    /api/recipes/<id>/ingredients.txt  — Plain-text ingredient list.
    POST   /api/recipes/refine                — AI refinement of a draft + change set.
    POST   /api/recipes/changes               — Change set between two drafts.
    POST   /api/generate-image                — AI dish photo as data URL.
"""
from __future__ import annotations

import logging

from flask import Blueprint, Response, jsonify, request
from flask_login import login_required

import ai_engine
from database.models import db
from services import photographer_service
from services.recipe_service import (
    validate_recipe_input, list_recipes, get_recipe, create_recipe,
    update_recipe, delete_recipe, rescale_recipe, ingredients_text,
    serialize_recipe, serialize_recipe_list_item, parse_servings
)
from services.refinement_service import coerce_draft, compute_change_set
from services.settings_service import get_image_model, get_recipe_model
from utils.cache import RecipeListCache, get_recipe_list_cache, invalidate_recipe_list_cache
from utils.request_helpers import json_payload, invalid_request

logger = logging.getLogger(__name__)

recipes_bp = Blueprint("recipes", __name__)


def _parse_int_list(raw: str | None) -> list[int]:
    """'1, 2,x' -> [1, 2]; junk entries are ignored."""
    values = []
    for part in (raw or '').split(','):
        part = part.strip()
        if part.isdigit():
            values.append(int(part))
    return values


# ---------------------------------------------------------------------------
# API: List / Create
# ---------------------------------------------------------------------------

@recipes_bp.route("/api/recipes", methods=["GET"])
@login_required
def recipes_list():
    query = request.args.get("q", "")
    tag_ids = _parse_int_list(request.args.get("tags"))

    cache = get_recipe_list_cache()
    key = RecipeListCache.make_key(query, tag_ids)
    cached = cache.get(key)
    if cached is not None:
        return jsonify(recipes=cached)

    recipes = [serialize_recipe_list_item(r) for r in list_recipes(query, tag_ids)]
    cache.set(key, recipes)
    return jsonify(recipes=recipes)


@recipes_bp.route("/api/recipes", methods=["POST"])
@login_required
def recipes_create():
    clean, error = validate_recipe_input(request.get_json(silent=True))
    if error:
        return jsonify(error=error), 400

    try:
        recipe = create_recipe(clean)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating recipe: {e}")
        return jsonify(error="Fehler beim Speichern des Rezepts"), 500

    invalidate_recipe_list_cache()
    return jsonify(serialize_recipe(recipe)), 201


# ---------------------------------------------------------------------------
# API: Detail / Update / Delete
# ---------------------------------------------------------------------------

@recipes_bp.route("/api/recipes/<recipe_id>", methods=["GET"])
@login_required
def recipes_detail(recipe_id: str):
    recipe = get_recipe(recipe_id)
    if not recipe:
        return jsonify(error="Rezept nicht gefunden"), 404

    servings = request.args.get("servings", type=int)
    if servings is not None and servings < 1:
        servings = None
    return jsonify(serialize_recipe(recipe, display_servings=servings))


@recipes_bp.route("/api/recipes/<recipe_id>", methods=["PUT"])
@login_required
def recipes_update(recipe_id: str):
    if not get_recipe(recipe_id):
        return jsonify(error="Rezept nicht gefunden"), 404

    clean, error = validate_recipe_input(request.get_json(silent=True))
    if error:
        return jsonify(error=error), 400

    try:
        recipe = update_recipe(recipe_id, clean)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating recipe {recipe_id}: {e}")
        return jsonify(error="Fehler beim Speichern des Rezepts"), 500

    invalidate_recipe_list_cache()
    return jsonify(serialize_recipe(recipe))


@recipes_bp.route("/api/recipes/<recipe_id>", methods=["DELETE"])
@login_required
def recipes_delete(recipe_id: str):
    try:
        deleted = delete_recipe(recipe_id)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting recipe {recipe_id}: {e}")
        return jsonify(error="Fehler beim Löschen des Rezepts"), 500

    if not deleted:
        return jsonify(error="Rezept nicht gefunden"), 404

    invalidate_recipe_list_cache()
    return jsonify(success=True)


# ---------------------------------------------------------------------------
# API: Servings
# ---------------------------------------------------------------------------

@recipes_bp.route("/api/recipes/<recipe_id>/servings", methods=["POST"])
@login_required
def recipes_rescale(recipe_id: str):
    """
    Rewrites every stored amount for a new serving count.

    Accepts JSON body: {"servings": 6}. Amounts that cannot be parsed
    ("etwas", "1-2") are kept as they are.
    """
    recipe = get_recipe(recipe_id)
    if not recipe:
        return jsonify(error="Rezept nicht gefunden"), 404

    payload = json_payload()
    if payload is None:
        return invalid_request()
    raw = payload.get("servings")
    servings = parse_servings(raw) if raw not in (None, "") else None
    if servings is None:
        return jsonify(error="Portionen müssen eine positive ganze Zahl sein"), 400

    try:
        recipe = rescale_recipe(recipe, servings)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error rescaling recipe {recipe_id}: {e}")
        return jsonify(error="Fehler beim Speichern des Rezepts"), 500

    invalidate_recipe_list_cache()
    return jsonify(serialize_recipe(recipe))


@recipes_bp.route("/api/recipes/<recipe_id>/ingredients.txt", methods=["GET"])
@login_required
def recipes_ingredients_text(recipe_id: str):
    recipe = get_recipe(recipe_id)
    if not recipe:
        return jsonify(error="Rezept nicht gefunden"), 404

    servings = request.args.get("servings", type=int)
    if servings is not None and servings < 1:
        servings = None
    exclude = _parse_int_list(request.args.get("exclude"))

    text = ingredients_text(recipe, servings=servings, exclude=exclude)
    return Response(text, mimetype="text/plain")


# ---------------------------------------------------------------------------
# API: AI draft helpers
# ---------------------------------------------------------------------------

@recipes_bp.route("/api/recipes/refine", methods=["POST"])
@login_required
def recipes_refine():
    """
    Sends the current form state plus an instruction to the model.

    Accepts JSON body: {"recipe": {...draft...}, "instruction": "..."}.

    Returns:
        JSON with keys: success, data (refined draft), changes (ChangeSet).
    """
    payload = json_payload()
    if payload is None:
        return invalid_request()
    instruction = payload.get("instruction")
    if not isinstance(instruction, str) or not instruction.strip():
        return jsonify(error="Bitte gib eine Anweisung ein"), 400
    if not isinstance(payload.get("recipe"), dict):
        return jsonify(error="Kein Rezept angegeben"), 400

    original = coerce_draft(payload["recipe"])

    try:
        refined = ai_engine.refine_recipe(original, instruction.strip(), model=get_recipe_model())
    except ai_engine.RecipeExtractionError as e:
        logger.warning(f"Refinement returned no usable recipe: {e}")
        return jsonify(error="Das Rezept konnte nicht überarbeitet werden", code="EXTRACTION_FAILED"), 422
    except Exception as e:
        logger.error(f"Refinement failed: {e}")
        return jsonify(error="Fehler bei der Überarbeitung", code="SERVICE_ERROR"), 500

    refined['source_url'] = original.get('source_url')
    changes = compute_change_set(original, refined)
    return jsonify(success=True, data=refined, changes=changes.to_dict())


@recipes_bp.route("/api/recipes/changes", methods=["POST"])
@login_required
def recipes_changes():
    payload = json_payload()
    if payload is None:
        return invalid_request()
    original = coerce_draft(payload.get("original"))
    refined = coerce_draft(payload.get("refined"))
    return jsonify(changes=compute_change_set(original, refined).to_dict())


@recipes_bp.route("/api/generate-image", methods=["POST"])
@login_required
def generate_image():
    """
    Generates a dish photo for the title and ingredients in the form.

    Accepts JSON body: {"title": "...", "ingredients": ["Mehl", ...] or [{"name": ...}]}.
    """
    payload = json_payload()
    if payload is None:
        return invalid_request()
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        return jsonify(error="Bitte gib zuerst einen Titel ein"), 400

    names = []
    for ing in payload.get("ingredients") or []:
        name = ing.get("name") if isinstance(ing, dict) else ing
        if isinstance(name, str) and name.strip():
            names.append(name.strip())

    try:
        image_data = photographer_service.generate_recipe_image(title, names, model=get_image_model())
    except Exception as e:
        logger.error(f"Image generation failed for '{title}': {e}")
        return jsonify(error="Fehler bei der Bildgenerierung", code="SERVICE_ERROR"), 500

    return jsonify(image_data=image_data)
