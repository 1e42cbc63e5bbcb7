"""Request body helpers shared by the API blueprints."""
from flask import jsonify, request

INVALID_REQUEST = 'Ungültige Anfrage'


def json_payload() -> dict | None:
    """
    The JSON body as a dict. A missing or empty body reads as {};
    a body that is valid JSON but not an object (e.g. [1]) returns None.
    """
    payload = request.get_json(silent=True)
    if not payload:
        return {}
    return payload if isinstance(payload, dict) else None


def invalid_request():
    return jsonify(error=INVALID_REQUEST), 400
