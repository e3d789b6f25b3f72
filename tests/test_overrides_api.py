from datetime import datetime, timedelta, timezone

import pytest

from simcal.database import SessionLocal
from simcal.models import Booking, BookingStatus, OverrideRequest, OverrideStatus, UserRole
from simcal.services import override_service as override_module

URL = "/api/v1/bookings"
REASON = "Checkride for the new captain slot"

T14 = datetime(2030, 3, 1, 14, 0, tzinfo=timezone.utc)
T15 = T14 + timedelta(hours=1)


@pytest.fixture
def outbox(monkeypatch):
    mails = {"request": [], "approved": [], "rejected": []}

    def send_request(name, to_email, details):
        mails["request"].append((to_email, details))
        return True

    def send_resolution(kind):
        def send(to_email, details):
            mails[kind].append((to_email, details))
            return True
        return send

    monkeypatch.setattr(override_module, "send_override_request_email", send_request)
    monkeypatch.setattr(override_module, "send_override_approved_email", send_resolution("approved"))
    monkeypatch.setattr(override_module, "send_override_rejected_email", send_resolution("rejected"))
    return mails


@pytest.fixture
def scenario(make_user, make_booking):
    owner     = make_user(name="Owner", department="Ops")
    requester = make_user(name="Requester", department="Eng")
    manager   = make_user(role=UserRole.MANAGER, name="Boss", department="Ops")
    booking   = make_booking(owner, T14, T15, title="Sim hour")
    return owner, requester, manager, booking


def _file_request(client, headers, booking, requester, reason=REASON):
    return client.post(f"{URL}/{booking.id}/request-override", json={"reason": reason},
                       headers=headers(requester))


# ─── Request ──────────────────────────────────────────────────────────────────
def test_request_override_is_stored_in_booking_department(client, headers, scenario, outbox):
    owner, requester, _, booking = scenario

    res = _file_request(client, headers, booking, requester)

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["status"] == "pending"
    assert data["department"] == "Ops"
    assert data["booking"]["id"] == booking.id
    assert data["requester"]["id"] == requester.id
    to_email, details = outbox["request"][0]
    assert to_email == owner.email
    assert details["requesterName"] == "Requester"
    assert details["reason"] == REASON


def test_request_is_persisted_before_owner_is_notified(client, headers, scenario, monkeypatch):
    _, requester, _, booking = scenario
    seen = []

    def check_stored(name, to_email, details):
        session = SessionLocal()
        try:
            seen.append(session.query(OverrideRequest).filter(
                OverrideRequest.bookingId == booking.id).count())
        finally:
            session.close()
        return True

    monkeypatch.setattr(override_module, "send_override_request_email", check_stored)

    assert _file_request(client, headers, booking, requester).status_code == 201
    assert seen == [1]


def test_request_survives_notification_failure(client, db, headers, scenario, monkeypatch):
    _, requester, _, booking = scenario

    def broken(*args, **kwargs):
        raise ConnectionError("smtp down")

    monkeypatch.setattr("simcal.utils.email._deliver", broken)

    assert _file_request(client, headers, booking, requester).status_code == 201
    assert db.query(OverrideRequest).count() == 1


def test_short_reason_is_rejected(client, headers, scenario, outbox):
    _, requester, _, booking = scenario
    res = _file_request(client, headers, booking, requester, reason="  too short ")
    assert res.status_code == 400
    assert outbox["request"] == []


def test_cannot_override_own_booking(client, headers, scenario, outbox):
    owner, _, _, booking = scenario
    res = _file_request(client, headers, booking, owner)
    assert res.status_code == 400


def test_cannot_override_finished_booking(client, headers, make_booking, scenario, outbox):
    owner, requester, _, _ = scenario
    done = make_booking(owner, T14, T15, status=BookingStatus.COMPLETED)
    assert _file_request(client, headers, done, requester).status_code == 400


def test_override_of_missing_booking_is_404(client, headers, scenario):
    _, requester, _, _ = scenario
    res = client.post(f"{URL}/777/request-override", json={"reason": REASON}, headers=headers(requester))
    assert res.status_code == 404


# ─── List ─────────────────────────────────────────────────────────────────────
def test_pending_list_is_scoped_to_manager_department(client, headers, make_user, scenario, outbox):
    _, requester, manager, booking = scenario
    other_manager = make_user(role=UserRole.MANAGER, department="Eng")
    _file_request(client, headers, booking, requester)

    res = client.get(f"{URL}/override-requests", headers=headers(manager))
    assert res.status_code == 200
    items = res.json()["data"]
    assert len(items) == 1
    assert items[0]["booking"]["title"] == "Sim hour"
    assert items[0]["requester"]["email"] == requester.email

    res = client.get(f"{URL}/override-requests", headers=headers(other_manager))
    assert res.json()["data"] == []


def test_pending_list_is_manager_only(client, headers, scenario):
    _, requester, _, _ = scenario
    res = client.get(f"{URL}/override-requests", headers=headers(requester))
    assert res.status_code == 403
    assert res.json()["message"] == "Access denied. Managers only."


# ─── Approve / Reject ─────────────────────────────────────────────────────────
def test_approve_cancels_booking_and_notifies_requester(client, db, headers, scenario, outbox):
    _, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]

    res = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "approved"
    assert data["booking"]["status"] == "cancelled"
    assert data["resolvedBy"]["id"] == manager.id
    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.CANCELLED
    assert db.get(OverrideRequest, request_id).status == OverrideStatus.APPROVED
    assert outbox["approved"][0][0] == requester.email


def test_approve_of_running_session(client, db, headers, make_booking, scenario, outbox):
    owner, requester, manager, _ = scenario
    running = make_booking(owner, T14, T15, status=BookingStatus.IN_PROGRESS)
    request_id = _file_request(client, headers, running, requester).json()["data"]["id"]

    res = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))

    assert res.status_code == 200
    db.expire_all()
    assert db.get(Booking, running.id).status == BookingStatus.CANCELLED


def test_request_is_processed_only_once(client, headers, scenario, outbox):
    _, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]

    client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))
    again = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))
    reject = client.post(f"{URL}/override-requests/{request_id}/reject", headers=headers(manager))

    for res in (again, reject):
        assert res.status_code == 400
        assert res.json()["error"]["code"] == "REQUEST_ALREADY_PROCESSED"


def test_manager_of_another_department_cannot_resolve(client, headers, make_user, scenario, outbox):
    _, requester, _, booking = scenario
    outsider = make_user(role=UserRole.MANAGER, department="Eng")
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]

    for action in ("approve", "reject"):
        res = client.post(f"{URL}/override-requests/{request_id}/{action}", headers=headers(outsider))
        assert res.status_code == 403


def test_resolving_unknown_request_is_404(client, headers, scenario):
    _, _, manager, _ = scenario
    res = client.post(f"{URL}/override-requests/31337/approve", headers=headers(manager))
    assert res.status_code == 404


def test_reject_leaves_booking_untouched(client, db, headers, scenario, outbox):
    _, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]

    res = client.post(f"{URL}/override-requests/{request_id}/reject", headers=headers(manager))

    assert res.status_code == 200
    assert res.json()["data"]["status"] == "rejected"
    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.SCHEDULED
    assert outbox["rejected"][0][0] == requester.email


def test_approve_after_session_completed_closes_request_only(client, db, headers, scenario, outbox):
    _, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]
    stored = db.get(Booking, booking.id)
    stored.status = BookingStatus.COMPLETED
    db.commit()

    res = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))

    assert res.status_code == 200
    assert res.json()["data"]["status"] == "approved"
    assert res.json()["data"]["booking"]["status"] == "completed"
    db.expire_all()
    assert db.get(OverrideRequest, request_id).status == OverrideStatus.APPROVED
    assert db.get(Booking, booking.id).status == BookingStatus.COMPLETED
    assert client.get(f"{URL}/override-requests", headers=headers(manager)).json()["data"] == []


def test_approve_after_booking_deleted(client, db, headers, scenario, outbox):
    _, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]
    assert client.delete(f"{URL}/{booking.id}", headers=headers(manager)).status_code == 200

    res = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))

    assert res.status_code == 200
    assert res.json()["data"]["status"] == "approved"
    assert res.json()["data"]["booking"] is None


def test_already_cancelled_booking_stays_cancelled(client, db, headers, scenario, outbox):
    owner, requester, manager, booking = scenario
    request_id = _file_request(client, headers, booking, requester).json()["data"]["id"]
    client.put(f"{URL}/{booking.id}", json={"status": "cancelled"}, headers=headers(owner))

    res = client.post(f"{URL}/override-requests/{request_id}/approve", headers=headers(manager))

    assert res.status_code == 200
    db.expire_all()
    assert db.get(Booking, booking.id).status == BookingStatus.CANCELLED
