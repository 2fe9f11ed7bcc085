# Overview: Service-layer operations for session tokens; create, validate and revoke.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in the database and time-limited:
- 32 random bytes, sent to the client as 64 hex characters
- only the SHA-256 digest is stored
- absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS, default 24h)
- idle timeout (SESSION_IDLE_TIMEOUT_HOURS, default 2h)
- revocable on logout
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow
from . import persistence


@dataclass
class SessionContext:
    user: User
    session: SessionToken

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def role(self) -> str:
        return self.user.role


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 2))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 for storage. Tokens are high-entropy already, so a fast hash
    is enough (unlike passwords).
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    persistence.commit()
    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its user.

    Returns None if the token is unknown, revoked, past its absolute
    timeout, or idle too long (idle sessions are revoked on the spot).
    Updates last_used_at on success.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        persistence.commit()
        return None

    user = session.user
    if user is None:
        return None

    session.last_used_at = now
    persistence.commit()

    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "Logout") -> bool:
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, reason)
    persistence.commit()
    return True


def revoke_user_sessions(user_id: int, reason: str, *, keep_token: str | None = None) -> int:
    """Revoke every live session of a user, optionally sparing one token."""
    query = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False)
    if keep_token:
        query = query.filter(SessionToken.token_hash != hash_token(keep_token))
    sessions = query.all()
    for session in sessions:
        _revoke(session, reason)
    return len(sessions)
