import pytest

from simcal.models import User, UserRole, RoleRequestStatus
from simcal.services import employee_service as employee_module
from simcal.utils.timeutils import utcnow

URL = "/api/v1/employees"


def _employee(**overrides) -> dict:
    body = {
        "name":     "New Hire",
        "email":    "hire@example.com",
        "password": "Str0ng!Pass",
        "role":     "P3",
    }
    body.update(overrides)
    return body


def _with_role_request(db, user: User, role: UserRole = UserRole.P1) -> User:
    user.roleRequest = role
    user.roleRequestReason = "Finished the upgrade course"
    user.roleRequestDate = utcnow()
    user.roleRequestStatus = RoleRequestStatus.PENDING
    db.commit()
    return user


@pytest.fixture
def manager(make_user):
    return make_user(role=UserRole.MANAGER, department="Ops")


# ─── List / Add ───────────────────────────────────────────────────────────────
def test_list_employees_is_department_scoped(client, make_user, headers, manager):
    mine = make_user(name="Bea", department="Ops")
    make_user(name="Cal", department="Eng")
    make_user(role=UserRole.MANAGER, name="Other boss", department="Ops")

    res = client.get(URL, headers=headers(manager))

    assert res.status_code == 200
    assert [u["id"] for u in res.json()["data"]] == [mine.id]


def test_employees_are_manager_only(client, make_user, headers):
    assert client.get(URL, headers=headers(make_user())).status_code == 403


def test_add_employee(client, headers, manager, monkeypatch):
    welcomed = []
    monkeypatch.setattr(employee_module, "send_welcome_email",
                        lambda name, to_email, password: welcomed.append(to_email) or True)

    res = client.post(URL, json=_employee(), headers=headers(manager))

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["department"] == "Ops"
    assert data["role"] == "P3"
    assert data["permissions"]["canManageBookings"] is True
    assert welcomed == ["hire@example.com"]


def test_add_employee_to_other_department_is_forbidden(client, headers, manager):
    res = client.post(URL, json=_employee(department="Eng"), headers=headers(manager))
    assert res.status_code == 403


def test_add_duplicate_employee_is_409(client, make_user, headers, manager):
    make_user(email="hire@example.com")
    assert client.post(URL, json=_employee(), headers=headers(manager)).status_code == 409


@pytest.mark.parametrize("overrides", [
    {"password": "weakpass"},
    {"role": "manager"},
    {"name": "X"},
    {"email": "not-an-email"},
])
def test_add_employee_validation(client, headers, manager, overrides):
    assert client.post(URL, json=_employee(**overrides), headers=headers(manager)).status_code == 400


# ─── Role requests ────────────────────────────────────────────────────────────
def test_role_requests_are_department_scoped(client, db, make_user, headers, manager):
    mine = _with_role_request(db, make_user(department="Ops"))
    _with_role_request(db, make_user(department="Eng"))

    res = client.get(f"{URL}/role-requests", headers=headers(manager))

    items = res.json()["data"]
    assert [r["id"] for r in items] == [mine.id]
    assert items[0]["requestedRole"] == "P1"
    assert items[0]["currentRole"] == "P4"


def test_approve_role_request_recomputes_permissions(client, db, make_user, headers, manager):
    user = _with_role_request(db, make_user(department="Ops"), role=UserRole.MANAGER)

    res = client.post(f"{URL}/role-requests/{user.id}/approve", headers=headers(manager))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["role"] == "manager"
    assert all(data["permissions"].values())
    assert data["roleRequest"]["status"] == "approved"
    assert data["roleRequest"]["requestedRole"] is None

    db.expire_all()
    assert db.get(User, user.id).canManageUsers is True
    assert client.get(f"{URL}/role-requests", headers=headers(manager)).json()["data"] == []


def test_reject_role_request_keeps_role(client, db, make_user, headers, manager):
    user = _with_role_request(db, make_user(department="Ops"))

    res = client.post(f"{URL}/role-requests/{user.id}/reject", headers=headers(manager))

    assert res.status_code == 200
    assert res.json()["data"]["role"] == "P4"
    assert res.json()["data"]["roleRequest"]["status"] == "rejected"


def test_role_request_of_other_department_is_forbidden(client, db, make_user, headers, manager):
    user = _with_role_request(db, make_user(department="Eng"))
    assert client.post(f"{URL}/role-requests/{user.id}/approve", headers=headers(manager)).status_code == 403


def test_resolving_without_pending_request(client, make_user, headers, manager):
    user = make_user(department="Ops")
    assert client.post(f"{URL}/role-requests/{user.id}/approve", headers=headers(manager)).status_code == 400
    assert client.post(f"{URL}/role-requests/999/reject", headers=headers(manager)).status_code == 404
