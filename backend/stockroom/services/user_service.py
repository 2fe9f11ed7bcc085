# Overview: Service-layer operations for users; accounts, roles and profiles.

from __future__ import annotations

from sqlalchemy import or_

from ..errors import DuplicateKeyError, NotFoundError, PermissionDeniedError
from ..extensions import db
from ..models import User
from ..permissions import ROLE_SUPER_ADMIN, is_super_admin
from . import persistence
from .activity_log_service import diff_fields, record_activity
from .auth_service import hash_password
from .pagination import paginate

USER_MUTABLE_FIELDS = ("name", "email", "role")


def _require_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


def _ensure_email_free(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise DuplicateKeyError(("email",), "User with this email already exists")


def _snapshot(user: User) -> dict:
    return {k: getattr(user, k) for k in USER_MUTABLE_FIELDS}


def list_users(filters: dict) -> dict:
    query = db.session.query(User)
    if filters.get("role"):
        query = query.filter(User.role == filters["role"])
    if filters.get("search"):
        like = f"%{filters['search']}%"
        query = query.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page=filters.get("page", 1), limit=filters.get("limit", 20))


def get_user(user_id: int) -> dict:
    return _require_user(user_id).to_dict()


def count_users() -> int:
    return db.session.query(User).count()


def create_user_record(*, name: str, email: str, password: str, role: str = "user") -> User:
    """
    Insert a user without committing. Shared by the API and the CLI.

    The email pre-check gives the friendly message; the unique index still
    decides under a race (flush raises DuplicateKeyError).
    """
    email = email.strip().lower()
    _ensure_email_free(email)
    user = User(name=name.strip(), email=email, password_hash=hash_password(password), role=role)
    db.session.add(user)
    persistence.flush()
    return user


def create_user(*, actor_id: int, data: dict) -> dict:
    user = create_user_record(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        role=data.get("role") or "user",
    )
    record_activity(
        user_id=actor_id,
        action="create",
        entity_type="user",
        entity_id=user.id,
        entity_name=user.name,
        changes={"name": user.name, "email": user.email, "role": user.role},
    )
    persistence.commit()
    return user.to_dict()


def update_user(*, actor_id: int, actor_role: str, user_id: int, patch: dict) -> dict:
    """
    Admin edit of name/email/role. Only a super admin may touch a super
    admin's account.
    """
    user = _require_user(user_id)
    if is_super_admin(user.role) and not is_super_admin(actor_role):
        raise PermissionDeniedError("Only a super admin can modify a super admin account")

    before = _snapshot(user)
    if "email" in patch and patch["email"] != user.email:
        _ensure_email_free(patch["email"], exclude_id=user.id)

    for key in USER_MUTABLE_FIELDS:
        if key in patch:
            setattr(user, key, patch[key])
    persistence.flush()

    changes = diff_fields(before, _snapshot(user))
    if changes:
        record_activity(
            user_id=actor_id,
            action="update",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.name,
            changes=changes,
        )
    persistence.commit()
    return user.to_dict()


def update_role(*, actor_id: int, user_id: int, role: str) -> dict:
    """Super admin only (enforced at the route). A super admin cannot demote themselves."""
    user = _require_user(user_id)
    if user.id == actor_id and role != ROLE_SUPER_ADMIN:
        raise PermissionDeniedError("You cannot remove your own super admin role")

    old_role = user.role
    user.role = role
    if old_role != role:
        record_activity(
            user_id=actor_id,
            action="update",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.name,
            changes={"role": {"old": old_role, "new": role}},
        )
    persistence.commit()
    return user.to_dict()


def update_profile(*, user_id: int, patch: dict) -> dict:
    user = _require_user(user_id)
    before = {"name": user.name}
    if "name" in patch:
        user.name = patch["name"]
    changes = diff_fields(before, {"name": user.name})
    if changes:
        record_activity(
            user_id=user.id,
            action="update",
            entity_type="user",
            entity_id=user.id,
            entity_name=user.name,
            changes=changes,
        )
    persistence.commit()
    return user.to_dict()
