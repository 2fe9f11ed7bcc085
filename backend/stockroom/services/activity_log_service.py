# Overview: Service-layer operations for the activity log; append and query.

"""
Activity log

Every mutating service calls `record_activity` before it commits, so the log
row and the change it describes land in one transaction. Nothing here ever
updates or deletes a row.
"""

from __future__ import annotations

from datetime import datetime

from flask import has_request_context, request

from ..errors import NotFoundError
from ..extensions import db
from ..models import ActivityLog
from ..time_utils import to_utc_z
from .pagination import paginate


def _jsonable(value):
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def diff_fields(before: dict, after: dict, fields=None) -> dict:
    """
    {"field": {"old": x, "new": y}} for every field whose value changed.

    `fields` restricts the comparison; default is the union of both keys.
    """
    keys = fields if fields is not None else sorted(set(before) | set(after))
    changes = {}
    for key in keys:
        old, new = before.get(key), after.get(key)
        if old != new:
            changes[key] = {"old": _jsonable(old), "new": _jsonable(new)}
    return changes


def record_activity(
    *,
    user_id: int,
    action: str,
    entity_type: str,
    entity_id,
    entity_name: str | None = None,
    changes: dict | None = None,
) -> ActivityLog:
    """
    Add an activity row to the current transaction (caller commits).

    Client IP and user agent are taken from the request when there is one.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
        if ip_address:
            ip_address = ip_address.split(",")[0].strip()[:64]
        user_agent = (request.headers.get("User-Agent") or "")[:255] or None

    log = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        entity_name=(entity_name or "")[:200] or None,
        changes=_jsonable(changes) if changes else None,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(log)
    return log


def list_activity_logs(filters: dict) -> dict:
    """Newest first. Filters come from ACTIVITY_LOG_LIST."""
    query = db.session.query(ActivityLog)

    if filters.get("user_id") is not None:
        query = query.filter(ActivityLog.user_id == filters["user_id"])
    if filters.get("entity_type"):
        query = query.filter(ActivityLog.entity_type == filters["entity_type"])
    if filters.get("entity_id"):
        query = query.filter(ActivityLog.entity_id == filters["entity_id"])
    if filters.get("action"):
        query = query.filter(ActivityLog.action == filters["action"])
    if filters.get("start_date") is not None:
        query = query.filter(ActivityLog.created_at >= filters["start_date"])
    if filters.get("end_date") is not None:
        query = query.filter(ActivityLog.created_at <= filters["end_date"])

    query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    return paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))


def get_activity_log(log_id: int) -> dict:
    log = db.session.get(ActivityLog, log_id)
    if log is None:
        raise NotFoundError("Activity log")
    return log.to_dict()
