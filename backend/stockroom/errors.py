# Overview: Typed error taxonomy shared by validators, services and routes.

"""
Error taxonomy

Validators and services raise these; routes never build error responses by
hand. `register_error_handlers` maps each kind to its HTTP status so the API
boundary surfaces them as typed JSON errors.

- ValidationError: one or more fields failed a rule (all of them are listed)
- DuplicateKeyError: a unique index rejected the write
- NotFoundError: lookup by id or natural key returned nothing
- AuthenticationError: bad credentials (same message for unknown accounts)
- PermissionDeniedError: authenticated, but the role does not allow it
- BusinessRuleError: valid input that conflicts with current record state
- InfrastructureError: database unreachable or failing
"""

from __future__ import annotations

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .extensions import db


class StockroomError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.error_code}


class ValidationError(StockroomError):
    """400-level input problem, enumerating every violated field."""
    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: dict[str, str] | str, message: str = "Validation failed"):
        if isinstance(errors, str):
            errors = {"_": errors}
        super().__init__(message)
        self.errors = dict(errors)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.errors
        return data

    def __str__(self) -> str:
        details = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        return f"{self.message} ({details})"


class DuplicateKeyError(StockroomError):
    """409-level conflict on a natural key (e.g., duplicate SKU)."""
    status_code = 409
    error_code = "DUPLICATE_KEY"

    def __init__(self, fields: tuple[str, ...] | list[str], message: str | None = None, index_name: str | None = None):
        fields = tuple(fields)
        super().__init__(message or f"Duplicate value for {', '.join(fields)}")
        self.fields = fields
        self.index_name = index_name

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = {f: self.message for f in self.fields}
        return data


class NotFoundError(StockroomError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, message: str | None = None):
        super().__init__(message or f"{entity} not found")
        self.entity = entity


class AuthenticationError(StockroomError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class PermissionDeniedError(StockroomError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class BusinessRuleError(StockroomError):
    status_code = 409
    error_code = "CONFLICT"


class InfrastructureError(StockroomError):
    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"

    def __init__(self, message: str = "Database unavailable"):
        super().__init__(message)


def register_error_handlers(app) -> None:
    @app.errorhandler(StockroomError)
    def handle_stockroom_error(exc: StockroomError):
        # One transaction per request: a failed operation leaves nothing behind
        db.session.rollback()
        if isinstance(exc, InfrastructureError):
            current_app.logger.error("Infrastructure failure: %s", exc.message, exc_info=exc.__cause__)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description, "code": exc.name.upper().replace(" ", "_")}), exc.code
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
