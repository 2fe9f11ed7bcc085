# Overview: Flask API routes for user management and own-profile edits.

"""
- list, role changes: super admin
- get, create, update, count: admin or above
- profile: any authenticated user, own account only
"""

from flask import Blueprint, g

from ..decorators import require_auth, require_role
from ..schemas import PROFILE_UPDATE, USER_CREATE, USER_LIST, USER_ROLE_UPDATE, USER_UPDATE
from ..services import user_service
from .common import actor_id, validated_body, validated_query

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role("super_admin")
def list_users():
    return user_service.list_users(validated_query(USER_LIST))


@users_bp.get("/count")
@require_auth
@require_role("admin")
def count_users():
    return {"count": user_service.count_users()}


@users_bp.put("/me")
@require_auth
def update_profile():
    patch = validated_body(PROFILE_UPDATE)
    return user_service.update_profile(user_id=actor_id(), patch=patch)


@users_bp.get("/<int:user_id>")
@require_auth
@require_role("admin")
def get_user(user_id: int):
    return user_service.get_user(user_id)


@users_bp.post("")
@require_auth
@require_role("admin")
def create_user():
    data = validated_body(USER_CREATE)
    return user_service.create_user(actor_id=actor_id(), data=data), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_role("admin")
def update_user(user_id: int):
    patch = validated_body(USER_UPDATE)
    return user_service.update_user(
        actor_id=actor_id(),
        actor_role=g.current_user.role,
        user_id=user_id,
        patch=patch,
    )


@users_bp.put("/<int:user_id>/role")
@require_auth
@require_role("super_admin")
def update_role(user_id: int):
    data = validated_body(USER_ROLE_UPDATE)
    return user_service.update_role(actor_id=actor_id(), user_id=user_id, role=data["role"])
