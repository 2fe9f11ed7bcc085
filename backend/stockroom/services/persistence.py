# Overview: Flush/commit wrappers that turn driver failures into typed errors.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from ..errors import BusinessRuleError, DuplicateKeyError, InfrastructureError
from ..extensions import db
from ..indexes import match_unique_violation


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _translate(exc: Exception) -> Exception:
    if isinstance(exc, IntegrityError):
        key = match_unique_violation(str(exc.orig))
        if key is not None:
            return DuplicateKeyError(key.fields, index_name=key.name)
        return BusinessRuleError("Write rejected by a database constraint")
    return InfrastructureError()


def flush() -> None:
    """
    Flush pending writes so index violations surface inside the operation.

    On failure the whole transaction is rolled back before the typed
    error is raised.
    """
    try:
        db.session.flush()
    except (IntegrityError, OperationalError, DBAPIError) as exc:
        db.session.rollback()
        if not isinstance(exc, IntegrityError):
            current_app.logger.exception("Database flush failed")
        raise _translate(exc) from exc


def commit() -> None:
    try:
        db.session.commit()
    except (IntegrityError, OperationalError, DBAPIError) as exc:
        db.session.rollback()
        if not isinstance(exc, IntegrityError):
            current_app.logger.exception("Database commit failed")
        raise _translate(exc) from exc
