import pytest

from simcal.models.user import (
    EMPLOYEE_PERMISSIONS, MANAGER_PERMISSIONS, User, UserRole, permissions_for,
)


def test_manager_gets_every_flag():
    perms = permissions_for(UserRole.MANAGER)
    assert perms == MANAGER_PERMISSIONS
    assert all(perms.as_dict().values())


@pytest.mark.parametrize("role", [UserRole.P1, UserRole.P2, UserRole.P3, UserRole.P4])
def test_priority_roles_get_booking_flags_only(role):
    assert permissions_for(role).as_dict() == {
        "canManageUsers":    False,
        "canManageBookings": True,
        "canViewBookings":   True,
        "canViewReports":    False,
    }


def test_permissions_for_accepts_role_value():
    assert permissions_for("manager") == MANAGER_PERMISSIONS
    assert permissions_for("P2") == EMPLOYEE_PERMISSIONS


def test_apply_role_recomputes_flags_both_ways():
    user = User(name="A", email="a@example.com", password="x", department="Ops")

    user.apply_role(UserRole.MANAGER)
    assert user.is_manager
    assert user.canManageUsers and user.canViewReports

    user.apply_role(UserRole.P3)
    assert user.role == UserRole.P3
    assert not user.canManageUsers and not user.canViewReports
    assert user.permissions == EMPLOYEE_PERMISSIONS
