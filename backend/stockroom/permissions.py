# Overview: Role predicates and the role -> capability lookup used by route guards.

"""
Three flat roles, ordered by privilege:

- user: read inventory, rentals and sales; edit own profile
- admin: everything a user can do, plus inventory/rental/sale mutations and
  user management below super_admin
- super_admin: everything, plus role changes, the user list and activity logs

There is no inheritance graph: each role lists its capabilities explicitly.
"""

from __future__ import annotations

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"

ROLES = (ROLE_USER, ROLE_ADMIN, ROLE_SUPER_ADMIN)

_READ = {"view_inventory", "view_rentals", "view_sales", "edit_own_profile"}
_ADMIN = _READ | {"manage_inventory", "manage_rentals", "manage_sales", "manage_users"}

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_USER: frozenset(_READ),
    ROLE_ADMIN: frozenset(_ADMIN),
    ROLE_SUPER_ADMIN: frozenset(_ADMIN | {"list_users", "assign_roles", "view_activity_logs"}),
}


def is_admin_or_above(role: str | None) -> bool:
    return role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)


def is_super_admin(role: str | None) -> bool:
    return role == ROLE_SUPER_ADMIN


def has_capability(role: str | None, capability: str) -> bool:
    """Unknown roles have no capabilities."""
    return capability in ROLE_CAPABILITIES.get(role or "", frozenset())
