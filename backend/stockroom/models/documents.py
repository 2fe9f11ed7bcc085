from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from stockroom.time_utils import to_utc_z, utcnow


class ActivityLog(db.Model):
    """
    Append-only audit trail of mutations.

    Rows are written in the same transaction as the change they describe.
    The mapper refuses UPDATE and DELETE on loaded instances (see the
    listeners below).
    """
    __tablename__ = "activitylogs"
    __table_args__ = (
        db.Index("ix_activitylogs_user_id", "user_id"),
        db.Index("ix_activitylogs_entity_type", "entity_type"),
        db.Index("ix_activitylogs_entity_id", "entity_id"),
        db.Index("ix_activitylogs_created_at", "created_at"),
        db.Index("ix_activitylogs_entity", "entity_type", "entity_id"),
        db.Index("ix_activitylogs_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    action = db.Column(db.String(16), nullable=False)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.String(64), nullable=False)
    entity_name = db.Column(db.String(200), nullable=True)

    # {"field": {"old": ..., "new": ...}} or a full snapshot for create/delete
    changes = db.Column(db.JSON, nullable=True)

    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", lazy=True)

    def to_dict(self) -> dict:
        user = self.user
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": user.name if user else None,
            "user_email": user.email if user else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "changes": self.changes,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": to_utc_z(self.created_at),
        }


class ActivityLogImmutableError(Exception):
    pass


@event.listens_for(ActivityLog, "before_update")
def _refuse_activity_log_update(mapper, connection, target):
    raise ActivityLogImmutableError("Activity logs are append-only")


@event.listens_for(ActivityLog, "before_delete")
def _refuse_activity_log_delete(mapper, connection, target):
    raise ActivityLogImmutableError("Activity logs are append-only")


class DocumentSequence(db.Model):
    """
    Per-day counters behind RENT-/BILL- numbers.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "sequence_date", name="uq_document_sequences_type_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(16), nullable=False)
    sequence_date = db.Column(db.String(8), nullable=False)  # YYYYMMDD
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
