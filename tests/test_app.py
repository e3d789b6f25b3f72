from fastapi.testclient import TestClient

from simcal.main import app, create_app
from simcal.services.booking_service import booking_service


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_routes_are_mounted_under_api_v1():
    paths = create_app().openapi()["paths"]
    assert "/api/v1/bookings/{booking_id}/end-early" in paths
    assert "/api/v1/bookings/override-requests/{request_id}/approve" in paths
    assert "/api/v1/employees/role-requests/{user_id}/approve" in paths
    assert "/api/v1/auth/login" in paths


def test_unexpected_errors_become_500_envelope(db, make_user, headers, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(booking_service, "list_active", explode)
    client = TestClient(app, raise_server_exceptions=False)

    res = client.get("/api/v1/bookings/active", headers=headers(make_user()))

    assert res.status_code == 500
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
    assert "boom" not in body["message"]
