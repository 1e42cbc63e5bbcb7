"""
Settings Blueprint — which AI models the household uses.

Routes:
    GET/POST /api/settings/model        — Model for extraction and refinement.
    GET/POST /api/settings/image-model  — Model for dish photos.
"""
from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import login_required

from services.settings_service import (
    RECIPE_MODELS, IMAGE_MODELS, RECIPE_MODEL_KEY, IMAGE_MODEL_KEY,
    get_recipe_model, get_image_model, set_setting
)
from utils.request_helpers import json_payload, invalid_request

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


def _select_model(key: str, allowed: list[str]):
    payload = json_payload()
    if payload is None:
        return invalid_request()
    model = payload.get("model")
    if model not in allowed:
        return jsonify(error="Invalid model"), 400
    set_setting(key, model)
    return jsonify(success=True, model=model)


@settings_bp.route("/model", methods=["GET"])
@login_required
def recipe_model_get():
    return jsonify(model=get_recipe_model(), available=RECIPE_MODELS)


@settings_bp.route("/model", methods=["POST"])
@login_required
def recipe_model_set():
    return _select_model(RECIPE_MODEL_KEY, RECIPE_MODELS)


@settings_bp.route("/image-model", methods=["GET"])
@login_required
def image_model_get():
    return jsonify(model=get_image_model(), available=IMAGE_MODELS)


@settings_bp.route("/image-model", methods=["POST"])
@login_required
def image_model_set():
    return _select_model(IMAGE_MODEL_KEY, IMAGE_MODELS)
