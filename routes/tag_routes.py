"""
Tags Blueprint — colored labels for filtering recipes.

Routes:
    GET    /api/tags       — All tags by name.
    POST   /api/tags       — Create ({name, color}).
    GET    /api/tags/<id>  — Detail with usage_count.
    PUT    /api/tags/<id>  — Rename / recolor.
    DELETE /api/tags/<id>  — Delete (recipes keep existing, lose the tag).
"""
from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import login_required

from database.models import db
from services.tag_service import (
    list_tags, get_tag, validate_tag_input, create_tag, update_tag,
    delete_tag, usage_count, serialize_tag
)
from utils.cache import invalidate_recipe_list_cache
from utils.request_helpers import json_payload, invalid_request

logger = logging.getLogger(__name__)

tags_bp = Blueprint("tags", __name__, url_prefix="/api/tags")


def _parse_tag_id(raw: str) -> int | None:
    return int(raw) if raw.isdigit() else None


@tags_bp.route("", methods=["GET"])
@login_required
def tags_list():
    return jsonify(tags=[serialize_tag(t) for t in list_tags()])


@tags_bp.route("", methods=["POST"])
@login_required
def tags_create():
    payload = json_payload()
    if payload is None:
        return invalid_request()

    clean, error = validate_tag_input(payload)
    if error:
        return jsonify(error=error), 400

    try:
        tag = create_tag(clean['name'], clean['color'])
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating tag: {e}")
        return jsonify(error="Fehler beim Speichern des Tags"), 500

    invalidate_recipe_list_cache()
    return jsonify(serialize_tag(tag)), 201


@tags_bp.route("/<raw_id>", methods=["GET"])
@login_required
def tags_detail(raw_id: str):
    tag_id = _parse_tag_id(raw_id)
    if tag_id is None:
        return jsonify(error="Ungültige Tag-ID"), 400

    tag = get_tag(tag_id)
    if not tag:
        return jsonify(error="Tag nicht gefunden"), 404

    data = serialize_tag(tag)
    data['usage_count'] = usage_count(tag_id)
    return jsonify(data)


@tags_bp.route("/<raw_id>", methods=["PUT"])
@login_required
def tags_update(raw_id: str):
    tag_id = _parse_tag_id(raw_id)
    if tag_id is None:
        return jsonify(error="Ungültige Tag-ID"), 400
    if not get_tag(tag_id):
        return jsonify(error="Tag nicht gefunden"), 404

    payload = json_payload()
    if payload is None:
        return invalid_request()

    clean, error = validate_tag_input(payload, exclude_id=tag_id)
    if error:
        return jsonify(error=error), 400

    try:
        tag = update_tag(tag_id, clean['name'], clean['color'])
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating tag {tag_id}: {e}")
        return jsonify(error="Fehler beim Speichern des Tags"), 500

    invalidate_recipe_list_cache()
    return jsonify(serialize_tag(tag))


@tags_bp.route("/<raw_id>", methods=["DELETE"])
@login_required
def tags_delete(raw_id: str):
    tag_id = _parse_tag_id(raw_id)
    if tag_id is None:
        return jsonify(error="Ungültige Tag-ID"), 400

    try:
        deleted = delete_tag(tag_id)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting tag {tag_id}: {e}")
        return jsonify(error="Fehler beim Löschen des Tags"), 500

    if not deleted:
        return jsonify(error="Tag nicht gefunden"), 404

    invalidate_recipe_list_cache()
    return jsonify(success=True)
