"""Role predicate tests."""

import pytest

from stockroom.permissions import (
    ROLE_CAPABILITIES,
    ROLES,
    has_capability,
    is_admin_or_above,
    is_super_admin,
)


@pytest.mark.parametrize("role,admin,super_admin", [
    ("user", False, False),
    ("admin", True, False),
    ("super_admin", True, True),
    (None, False, False),
    ("cashier", False, False),
])
def test_role_predicates(role, admin, super_admin):
    assert is_admin_or_above(role) is admin
    assert is_super_admin(role) is super_admin


def test_every_role_has_capabilities():
    assert set(ROLE_CAPABILITIES) == set(ROLES)


def test_capabilities_only_grow_with_privilege():
    assert ROLE_CAPABILITIES["user"] < ROLE_CAPABILITIES["admin"] < ROLE_CAPABILITIES["super_admin"]


@pytest.mark.parametrize("role,capability,expected", [
    ("user", "view_inventory", True),
    ("user", "manage_inventory", False),
    ("admin", "manage_sales", True),
    ("admin", "view_activity_logs", False),
    ("super_admin", "assign_roles", True),
    ("ghost", "view_inventory", False),
])
def test_has_capability(role, capability, expected):
    assert has_capability(role, capability) is expected
