# Overview: Error taxonomy and the Flask handlers that turn it into the error envelope.

"""
Every failure a route can produce is one of these classes. Services raise
them; the handlers registered by register_error_handlers() render them as

    {"success": false, "message": ..., "errors": ..., "timestamp": ...}

SECURITY:
- Unauthenticated always carries a generic message; the reason a token was
  rejected is logged, never returned.
- Unexpected exceptions are logged with a traceback and answered with a
  fixed 500 message. Exception text never reaches the client.
"""

from __future__ import annotations

from flask import jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .time_utils import utcnow, to_utc_z


class ApiError(Exception):
    """Base class for errors with a stable HTTP mapping."""
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors


class ValidationFailed(ApiError):
    """Malformed, missing or out-of-range input."""
    status_code = 400
    default_message = "Validation failed"


class InsufficientStock(ValidationFailed):
    """Requested quantity exceeds current stock."""

    def __init__(self, *, product_id: int, variant_id: int | None, requested: int, available: int):
        super().__init__(
            f"Only {available} items available in stock",
            errors={
                "productId": product_id,
                "variantId": variant_id,
                "requested": requested,
                "available": available,
            },
        )
        self.available = available


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    """Uniqueness violation, duplicate resource, or a blocked delete."""
    status_code = 409
    default_message = "Resource conflict"


def error_envelope(message: str, errors=None) -> dict:
    body = {
        "success": False,
        "message": message,
        "timestamp": to_utc_z(utcnow()),
    }
    if errors is not None:
        body["errors"] = errors
    return body


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        db.session.rollback()
        return jsonify(error_envelope(exc.message, exc.errors)), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        # A concurrent writer won the race past the pre-write uniqueness check.
        db.session.rollback()
        app.logger.warning("Integrity error on %s %s: %s", request.method, request.path, exc.orig)
        return jsonify(error_envelope("Resource conflicts with existing data")), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify(error_envelope(exc.description or exc.name)), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error_envelope(ApiError.default_message)), 500
