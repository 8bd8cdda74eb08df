# backend/festgo/routes/__init__.py
from flask import current_app, jsonify


def internal_error(action: str):
    """Log the active exception and return the generic 500 body."""
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "internal_error", "message": "Internal server error", "details": {}}), 500
