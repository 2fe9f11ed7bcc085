# Overview: Flask API routes for reading the activity log (super admin only).

from flask import Blueprint

from ..decorators import require_auth, require_role
from ..schemas import ACTIVITY_LOG_LIST
from ..services import activity_log_service
from .common import validated_query

activity_logs_bp = Blueprint("activity_logs", __name__, url_prefix="/api/activity-logs")


@activity_logs_bp.get("")
@require_auth
@require_role("super_admin")
def list_activity_logs():
    """
    Query params: user_id, entity_type, entity_id, action, start_date,
    end_date, page, limit. Newest first.
    """
    return activity_log_service.list_activity_logs(validated_query(ACTIVITY_LOG_LIST))


@activity_logs_bp.get("/<int:log_id>")
@require_auth
@require_role("super_admin")
def get_activity_log(log_id: int):
    return activity_log_service.get_activity_log(log_id)
