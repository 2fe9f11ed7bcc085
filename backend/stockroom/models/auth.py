from __future__ import annotations

from sqlalchemy.orm import deferred, undefer

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    User accounts for authentication and attribution.

    The password hash is deferred with raiseload: a default query never
    selects it, and touching it on an instance loaded that way raises.
    Only the credential paths load it, through `with_credentials()`.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("uq_users_email", "email", unique=True),
        db.Index("ix_users_role", "role"),
        db.Index("ix_users_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = deferred(db.Column(db.String(255), nullable=False), raiseload=True)

    role = db.Column(db.String(32), nullable=False, default="user")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @staticmethod
    def with_credentials():
        """Query option that loads password_hash alongside the row."""
        return undefer(User.password_hash)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"


class SessionToken(db.Model):
    """
    Opaque bearer session. Only the SHA-256 of the token is stored.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("uq_session_tokens_token_hash", "token_hash", unique=True),
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(64), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }


class PasswordResetToken(db.Model):
    """
    Single-use password reset token, stored hashed.

    A user has at most one live token: requesting a new one deletes the old.
    """
    __tablename__ = "passwordresettokens"
    __table_args__ = (
        db.Index("uq_passwordresettokens_token_hash", "token_hash", unique=True),
        db.Index("ix_passwordresettokens_user_id", "user_id"),
        db.Index("ix_passwordresettokens_expires_at", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def is_expired(self, now=None) -> bool:
        return self.expires_at <= (now or utcnow())
