"""Centralised error handling and custom exceptions.

Services raise the exceptions defined here without knowing anything
about HTTP. The handlers registered by :func:`register_error_handlers`
serialise them into the JSON envelope used by every endpoint::

    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}

Marshmallow validation errors, werkzeug HTTP errors and JWT failures
from Flask-JWT-Extended are mapped onto the same shape.
"""
from __future__ import annotations

import logging

from flask import jsonify
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status_code: int, **extra):
    body = {"success": False, "error": {"code": code, "message": message, **extra}}
    return jsonify(body), status_code


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self):
        return error_response(self.code, self.message, self.status_code)


class ValidationError(ServiceError):
    """Raised when input is malformed or breaks a business rule."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, fields: dict | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def to_response(self):
        return error_response(self.code, self.message, self.status_code, fields=self.fields)


class UnauthorizedError(ServiceError):
    """Raised when no valid identity accompanies the request."""

    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(ServiceError):
    """Raised when the caller does not own the requested resource."""

    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(ServiceError):
    """Raised when a requested resource is absent or soft-deleted."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(ServiceError):
    """Raised when a uniqueness or resource conflict occurs."""

    code = "CONFLICT"
    status_code = 409


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""
    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return err.to_response()

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(err: SchemaValidationError):
        return error_response("VALIDATION_ERROR", "Invalid request body.", 400, fields=err.messages)

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        code = (err.name or "error").upper().replace(" ", "_")
        return error_response(code, err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unhandled error")
        return error_response("SERVER_ERROR", "An unexpected error occurred.", 500)


def register_jwt_handlers(jwt) -> None:
    """Return JWT failures in the standard error envelope."""
    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return error_response("UNAUTHORIZED", reason, 401)

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return error_response("UNAUTHORIZED", reason, 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("UNAUTHORIZED", "Token has expired.", 401)
