"""
Auth Blueprint — PIN login for the household.

Routes:
    GET  /api/auth/status      — Is a PIN set up? Is this session logged in? (public)
    POST /api/auth/setup       — Set the first PIN (only while none exists).
    POST /api/auth/login       — Log in with the PIN.
    POST /api/auth/logout      — End the session.
    POST /api/auth/change-pin  — Replace the PIN (requires the current one).
"""
from __future__ import annotations

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from services.auth_service import (
    HouseholdUser, is_pin_configured, set_pin, validate_new_pin, verify_pin
)
from utils.request_helpers import json_payload, invalid_request

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/status", methods=["GET"])
def auth_status():
    return jsonify(
        setup_required=not is_pin_configured(),
        authenticated=bool(current_user.is_authenticated),
    )


@auth_bp.route("/setup", methods=["POST"])
def auth_setup():
    """Sets the initial PIN and logs the caller in. Refused once a PIN exists."""
    if is_pin_configured():
        return jsonify(error="PIN ist bereits eingerichtet"), 400

    payload = json_payload()
    if payload is None:
        return invalid_request()
    pin = payload.get("pin")
    error = validate_new_pin(pin)
    if error:
        return jsonify(error=error), 400

    set_pin(pin)
    login_user(HouseholdUser(), remember=True)
    return jsonify(success=True), 201


@auth_bp.route("/login", methods=["POST"])
def auth_login():
    if not is_pin_configured():
        return jsonify(error="PIN ist noch nicht eingerichtet", setup_required=True), 400

    payload = json_payload()
    if payload is None:
        return invalid_request()
    if not verify_pin(payload.get("pin")):
        logger.warning("Failed PIN login attempt")
        return jsonify(error="Falscher PIN"), 401

    login_user(HouseholdUser(), remember=True)
    return jsonify(success=True)


@auth_bp.route("/logout", methods=["POST"])
def auth_logout():
    logout_user()
    return jsonify(success=True)


@auth_bp.route("/change-pin", methods=["POST"])
@login_required
def auth_change_pin():
    payload = json_payload()
    if payload is None:
        return invalid_request()

    if not verify_pin(payload.get("current_pin")):
        return jsonify(error="Aktueller PIN ist falsch"), 400

    new_pin = payload.get("new_pin")
    error = validate_new_pin(new_pin)
    if error:
        return jsonify(error=error), 400

    set_pin(new_pin)
    return jsonify(success=True)
