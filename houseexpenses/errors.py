"""Error types raised by the services and blueprints, and their JSON handlers."""
import logging
import uuid

from flask import jsonify
from werkzeug.exceptions import BadRequest, Conflict, HTTPException, NotFound

logger = logging.getLogger(__name__)


class ResourceNotFound(NotFound):
    """A referenced entity does not exist or belongs to another user."""

    code_name = "RESOURCE_NOT_FOUND"

    def __init__(self, resource, field, value):
        super().__init__(f"{resource} not found with {field}: '{value}'")


class DuplicateResource(Conflict):
    code_name = "DUPLICATE_RESOURCE"

    def __init__(self, resource, field, value):
        super().__init__(f"{resource} already exists with {field}: '{value}'")


class ValidationError(BadRequest):
    code_name = "VALIDATION_ERROR"

    def __init__(self, details):
        super().__init__("Validation failed")
        self.details = details


class InvalidPeriodError(ValueError):
    """An unknown period tag reached the window calculator."""


def _error(status, code, message, details=None):
    body = {"ok": False, "error": code, "message": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def register_error_handlers(app):
    from .extensions import db

    @app.errorhandler(ValidationError)
    def handle_validation(ex):
        logger.warning("Validation failed: %s", ex.details)
        return _error(400, ex.code_name, ex.description, ex.details)

    @app.errorhandler(HTTPException)
    def handle_http(ex):
        code_name = getattr(ex, "code_name", None) or ex.name.upper().replace(" ", "_")
        if ex.code >= 500:
            logger.error("HTTP %s: %s", ex.code, ex.description)
        else:
            logger.warning("%s: %s", ex.name, ex.description)
        return _error(ex.code, code_name, ex.description)

    @app.errorhandler(Exception)
    def handle_unexpected(ex):
        db.session.rollback()
        error_id = uuid.uuid4().hex[:8]
        logger.exception("[ErrorID: %s] Unexpected error: %s", error_id, type(ex).__name__)
        return _error(500, "INTERNAL_ERROR", f"An unexpected error occurred. Reference: {error_id}")
