"""
Import Blueprint — getting recipes in and out.

AI extraction to an unsaved draft (the client shows it in the edit form):
    POST /api/import/image  — {image: data URL or base64, strict}
    POST /api/import/text   — {text, strict}
    POST /api/import/url    — {url, strict}

JSON backup:
    GET  /api/export        — Download every recipe with tags.
    POST /api/import        — Restore a backup; existing titles are skipped.

Extraction failures answer 422 with a machine-readable code
(EXTRACTION_FAILED, FETCH_FAILED, NO_CONTENT); anything else is a 500
SERVICE_ERROR.
"""
from __future__ import annotations

import json
import logging
from urllib.parse import urlparse

from flask import Blueprint, Response, jsonify, request
from flask_login import login_required

import ai_engine
from database.models import db
from services.recipe_service import build_export, export_filename, validate_import, import_recipes
from services.settings_service import get_recipe_model
from services.web_scraper_service import ScrapeError, WebScraper
from utils.cache import invalidate_recipe_list_cache
from utils.request_helpers import json_payload, invalid_request

logger = logging.getLogger(__name__)

import_bp = Blueprint("import", __name__)

MIN_TEXT_CHARS = 50
MIN_PAGE_CHARS = 100


def _extraction_failed(e: Exception):
    logger.warning(f"Extraction returned no usable recipe: {e}")
    return jsonify(
        error="Aus dem Inhalt konnte kein Rezept erkannt werden",
        code="EXTRACTION_FAILED"
    ), 422


def _service_error(e: Exception):
    logger.error(f"Import failed: {e}")
    return jsonify(error="Fehler beim Import", code="SERVICE_ERROR"), 500


def _is_http_url(url) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# ---------------------------------------------------------------------------
# API: AI extraction
# ---------------------------------------------------------------------------

@import_bp.route("/api/import/image", methods=["POST"])
@login_required
def import_image():
    payload = json_payload()
    if payload is None:
        return invalid_request()
    image_data = payload.get("image")
    if not isinstance(image_data, str) or not image_data.strip():
        return jsonify(error="Kein Bild angegeben"), 400

    try:
        draft = ai_engine.extract_recipe_from_image(
            image_data, model=get_recipe_model(), strict=bool(payload.get("strict"))
        )
    except ai_engine.RecipeExtractionError as e:
        return _extraction_failed(e)
    except Exception as e:
        return _service_error(e)

    return jsonify(success=True, data=draft)


@import_bp.route("/api/import/text", methods=["POST"])
@login_required
def import_text():
    payload = json_payload()
    if payload is None:
        return invalid_request()
    text = payload.get("text")
    if not isinstance(text, str) or len(text.strip()) < MIN_TEXT_CHARS:
        return jsonify(error=f"Der Text muss mindestens {MIN_TEXT_CHARS} Zeichen lang sein"), 400

    try:
        draft = ai_engine.extract_recipe_from_text(
            text.strip(), model=get_recipe_model(), strict=bool(payload.get("strict"))
        )
    except ai_engine.RecipeExtractionError as e:
        return _extraction_failed(e)
    except Exception as e:
        return _service_error(e)

    return jsonify(success=True, data=draft)


@import_bp.route("/api/import/url", methods=["POST"])
@login_required
def import_url():
    """
    Fetches a recipe page, strips the chrome and extracts the recipe.

    The draft carries source_url and the page's hero image URL (image_url),
    if one was found.
    """
    payload = json_payload()
    if payload is None:
        return invalid_request()
    url = payload.get("url")
    if not _is_http_url(url):
        return jsonify(error="Bitte gib eine gültige URL ein (http oder https)"), 400
    url = url.strip()

    try:
        page = WebScraper().scrape_url(url)
    except ScrapeError as e:
        return jsonify(error=str(e), code="FETCH_FAILED"), 422
    except Exception as e:
        return _service_error(e)

    if len(page["text"].strip()) < MIN_PAGE_CHARS:
        return jsonify(error="Die Seite enthält zu wenig Inhalt", code="NO_CONTENT"), 422

    try:
        draft = ai_engine.extract_recipe_from_text(
            page["text"], model=get_recipe_model(),
            strict=bool(payload.get("strict")), source="url"
        )
    except ai_engine.RecipeExtractionError as e:
        return _extraction_failed(e)
    except Exception as e:
        return _service_error(e)

    draft["source_url"] = url
    draft["image_url"] = page.get("image_url")
    return jsonify(success=True, data=draft)


# ---------------------------------------------------------------------------
# API: Backup
# ---------------------------------------------------------------------------

@import_bp.route("/api/export", methods=["GET"])
@login_required
def export_backup():
    body = json.dumps(build_export(), ensure_ascii=False, indent=2)
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
    )


@import_bp.route("/api/import", methods=["POST"])
@login_required
def import_backup():
    data = request.get_json(silent=True)
    if not validate_import(data):
        return jsonify(error="Ungültiges Dateiformat"), 400

    try:
        result = import_recipes(data)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Backup import failed: {e}")
        return jsonify(error="Fehler beim Import"), 500
    finally:
        invalidate_recipe_list_cache()

    return jsonify(success=True, **result)
