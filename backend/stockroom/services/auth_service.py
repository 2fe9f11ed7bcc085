# Overview: Service-layer operations for auth; password hashing, login and password reset.

"""
Authentication Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12), fresh salt per hash
- The stored hash is never part of a default User load (see User.with_credentials)
- Unknown email and wrong password fail with the same error and comparable timing
- Reset tokens are single-use, expire, and are stored as SHA-256 digests
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta
from functools import lru_cache

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import PasswordResetToken, User
from ..time_utils import utcnow
from . import persistence
from .activity_log_service import record_activity
from .session_service import revoke_user_sessions

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Every call draws a new salt, so hashing the same password twice gives
    two different strings that both verify.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash (constant time).

    A malformed hash verifies as False rather than raising.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Compared against when the email is unknown, to keep login timing flat
    return hash_password(secrets.token_hex(16))


def _load_with_credentials(**criteria) -> User | None:
    return (
        db.session.query(User)
        .options(User.with_credentials())
        .populate_existing()
        .filter_by(**criteria)
        .first()
    )


def authenticate(email: str, password: str) -> User:
    """
    Return the user for valid credentials.

    Raises AuthenticationError("Invalid email or password") for an unknown
    email and for a wrong password alike.
    """
    user = _load_with_credentials(email=email.strip().lower())
    if user is None:
        verify_password(password, _dummy_hash())
        raise AuthenticationError()
    if not verify_password(password, user.password_hash):
        raise AuthenticationError()
    return user


def set_password(user: User, new_password: str) -> None:
    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()


def change_password(*, user_id: int, current_password: str, new_password: str, keep_token: str | None = None) -> None:
    """
    Change a user's password after re-verifying the current one.

    A wrong current password is a field error on `current_password`.
    Other sessions of the user are revoked; `keep_token` survives.
    """
    user = _load_with_credentials(id=user_id)
    if user is None:
        raise NotFoundError("User")
    if not verify_password(current_password, user.password_hash):
        raise ValidationError({"current_password": "Current password is incorrect"})
    set_password(user, new_password)
    revoke_user_sessions(user.id, "Password changed", keep_token=keep_token)
    record_activity(
        user_id=user.id,
        action="update",
        entity_type="user",
        entity_id=user.id,
        entity_name=user.name,
        changes={"password": {"old": "[redacted]", "new": "[redacted]"}},
    )
    persistence.commit()


# =============================================================================
# Password reset
# =============================================================================

def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def request_password_reset(email: str) -> str | None:
    """
    Issue a reset token for `email`.

    Returns the plaintext token, or None when no such user exists. Callers
    must answer both cases identically. Earlier tokens of the user are
    discarded.
    """
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if user is None:
        current_app.logger.info("Password reset requested for unknown email")
        return None

    db.session.query(PasswordResetToken).filter_by(user_id=user.id).delete()

    token = secrets.token_hex(32)
    ttl = timedelta(minutes=current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 60))
    db.session.add(PasswordResetToken(
        user_id=user.id,
        token_hash=_hash_reset_token(token),
        expires_at=utcnow() + ttl,
    ))
    persistence.commit()
    return token


def _live_reset_token(token: str) -> PasswordResetToken | None:
    record = db.session.query(PasswordResetToken).filter_by(token_hash=_hash_reset_token(token)).first()
    if record is None or record.is_expired():
        return None
    return record


def verify_reset_token(token: str) -> bool:
    return _live_reset_token(token) is not None


def reset_password(*, token: str, new_password: str) -> None:
    """
    Set a new password from a reset token, consuming the token.

    Raises ValidationError on `token` when it is unknown, used or expired.
    """
    record = _live_reset_token(token)
    if record is None:
        raise ValidationError({"token": "Invalid or expired reset token"})

    user = _load_with_credentials(id=record.user_id)
    if user is None:
        raise ValidationError({"token": "Invalid or expired reset token"})

    set_password(user, new_password)
    db.session.delete(record)
    revoke_user_sessions(user.id, "Password reset")
    record_activity(
        user_id=user.id,
        action="update",
        entity_type="user",
        entity_id=user.id,
        entity_name=user.name,
        changes={"password": {"old": "[redacted]", "new": "[redacted]"}},
    )
    persistence.commit()
