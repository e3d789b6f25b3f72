import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from simcal.models.booking import Booking, BookingStatus
from simcal.models.user import User, UserStatus
from simcal.schemas.booking import BookingCreateRequest, BookingUpdateRequest
from simcal.services.reminder_service import reminder_service
from simcal.services.transitions import ensure_transition, VIA_EARLY_END
from simcal.utils.email import (
    send_booking_confirmation_email, send_session_started_email, send_early_release_email,
)
from simcal.utils.exceptions import (
    NotFoundException, ForbiddenException, BookingConflictException, SimulatorInUseException,
)
from simcal.utils.timeutils import utcnow, as_utc, isoformat

logger = logging.getLogger(__name__)

SCHEDULING_FIELDS = ("startTime", "endTime", "simulator")


def _user_ref(u: User | None) -> dict | None:
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email}


def _serialize(b: Booking) -> dict:
    return {
        "id":           b.id,
        "title":        b.title,
        "description":  b.description,
        "startTime":    isoformat(b.startTime),
        "endTime":      isoformat(b.endTime),
        "simulator":    b.simulator.value,
        "status":       b.status.value,
        "priority":     b.priority.value,
        "department":   b.department,
        "createdBy":    _user_ref(b.creator),
        "participants": [_user_ref(p) for p in b.participants],
        "createdAt":    isoformat(b.createdAt),
        "updatedAt":    isoformat(b.updatedAt),
    }


def mail_details(b: Booking) -> dict:
    return {
        "title":     b.title,
        "simulator": b.simulator.value,
        "startTime": isoformat(b.startTime),
        "endTime":   isoformat(b.endTime),
    }


def _get_or_404(db: Session, booking_id: int) -> Booking:
    b = db.query(Booking).filter(Booking.id == booking_id).first()
    if not b:
        raise NotFoundException("Booking")
    return b


def _resolve_participants(db: Session, user_ids: list[int]) -> list[User]:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return []
    users = db.query(User).filter(User.id.in_(ids)).all()
    if len(users) != len(ids):
        raise NotFoundException("Participant")
    return users


def _check_overlap(db: Session, b: Booking) -> None:
    """Raise BookingConflictException if another live booking overlaps [start, end) on the simulator."""
    conflict = db.query(Booking).filter(
        Booking.id != b.id,
        Booking.simulator == b.simulator,
        Booking.status != BookingStatus.CANCELLED,
        Booking.startTime < b.endTime,
        Booking.endTime   > b.startTime,
    ).order_by(Booking.startTime.asc()).first()
    if conflict:
        raise BookingConflictException(_serialize(conflict))


def _ensure_simulator_free(db: Session, b: Booking) -> None:
    busy = db.query(Booking).filter(
        Booking.id != b.id,
        Booking.simulator == b.simulator,
        Booking.status == BookingStatus.IN_PROGRESS,
    ).first()
    if busy:
        raise SimulatorInUseException(b.simulator.value)


def _commit_in_progress(db: Session, simulator: str) -> None:
    # The partial unique index catches a concurrent start that slipped past the query
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent start rejected by the database for simulator {simulator}")
        raise SimulatorInUseException(simulator)


def _broadcast_early_release(
    db: Session, b: Booking, department: str, exclude_user_id: int,
    available_from: datetime, available_until: datetime,
) -> int:
    recipients = db.query(User).filter(
        User.department == department,
        User.id != exclude_user_id,
        User.status == UserStatus.ACTIVE,
    ).all()
    slot = {
        "simulator":      b.simulator.value,
        "availableFrom":  isoformat(available_from),
        "availableUntil": isoformat(available_until),
    }
    sent = sum(1 for u in recipients if send_early_release_email(u.name, u.email, slot))
    logger.info(f"Early release of booking #{b.id} announced to {sent}/{len(recipients)} users")
    return sent


class BookingService:

    def list_bookings(
        self, db: Session,
        start_date: datetime | None, end_date: datetime | None,
        simulator: str | None, department: str | None, status: str | None,
    ) -> list[dict]:
        q = db.query(Booking)

        if start_date: q = q.filter(Booking.startTime >= as_utc(start_date))
        if end_date:   q = q.filter(Booking.endTime   <= as_utc(end_date))
        if simulator:  q = q.filter(Booking.simulator == simulator)
        if department: q = q.filter(Booking.department == department)
        if status:     q = q.filter(Booking.status == status)

        items = q.order_by(Booking.startTime.asc(), Booking.id.asc()).all()
        return [_serialize(b) for b in items]

    def get_booking(self, db: Session, booking_id: int) -> dict:
        return _serialize(_get_or_404(db, booking_id))

    def create_booking(self, db: Session, data: BookingCreateRequest, current_user: User) -> dict:
        b = Booking(
            title=data.title,
            description=data.description,
            startTime=data.startTime,
            endTime=data.endTime,
            simulator=data.simulator,
            priority=data.priority,
            status=BookingStatus.SCHEDULED,
            department=data.department,
            createdById=current_user.id,
        )
        b.participants = _resolve_participants(db, data.participants)
        db.add(b)
        db.flush()
        reminder_service.schedule_for(db, b)
        db.commit()
        db.refresh(b)
        logger.info(f"{current_user.email} created booking #{b.id} on {b.simulator.value}")

        send_booking_confirmation_email(current_user.name, current_user.email, mail_details(b))
        return _serialize(b)

    def update_booking(
        self, db: Session, booking_id: int, data: BookingUpdateRequest, current_user: User,
    ) -> dict:
        b = _get_or_404(db, booking_id)
        if not (b.involves(current_user.id) or current_user.permissions.canManageBookings):
            raise ForbiddenException("Only the creator, a participant or a booking manager can update this booking")

        updates = data.model_dump(exclude_unset=True)
        target = None
        if "status" in updates:
            target = ensure_transition(b.status, updates.pop("status"))

        original_end = as_utc(b.endTime)
        if "participants" in updates:
            b.participants = _resolve_participants(db, updates.pop("participants"))
        for field, value in updates.items():
            setattr(b, field, value)
        if target is not None:
            b.status = target

        entering_progress = target == BookingStatus.IN_PROGRESS
        if any(f in updates for f in SCHEDULING_FIELDS):
            _check_overlap(db, b)
        if entering_progress or (b.status == BookingStatus.IN_PROGRESS and "simulator" in updates):
            _ensure_simulator_free(db, b)
        if "startTime" in updates:
            reminder_service.schedule_for(db, b)

        simulator = b.simulator.value
        if b.status == BookingStatus.IN_PROGRESS:
            _commit_in_progress(db, simulator)
        else:
            db.commit()
        db.refresh(b)
        if target is not None:
            logger.info(f"Booking #{b.id} moved to {target.value} by {current_user.email}")

        if entering_progress:
            details = mail_details(b)
            for p in b.participants:
                send_session_started_email(p.name, p.email, details)
        elif target == BookingStatus.COMPLETED:
            now = utcnow()
            if now < original_end:
                _broadcast_early_release(db, b, current_user.department, current_user.id, now, original_end)
        return _serialize(b)

    def delete_booking(self, db: Session, booking_id: int, current_user: User) -> None:
        b = _get_or_404(db, booking_id)
        db.delete(b)
        db.commit()
        logger.info(f"Booking #{booking_id} deleted by {current_user.email}")

    def end_early(self, db: Session, booking_id: int, current_user: User) -> dict:
        b = _get_or_404(db, booking_id)
        if b.createdById != current_user.id:
            raise ForbiddenException("Only the booking owner can end it early")

        b.status = ensure_transition(b.status, BookingStatus.COMPLETED, via=VIA_EARLY_END)
        original_end = as_utc(b.endTime)
        db.commit()
        db.refresh(b)
        logger.info(f"Booking #{b.id} ended early by {current_user.email}")

        now = utcnow()
        _broadcast_early_release(db, b, current_user.department, current_user.id,
                                 now, max(now, original_end))
        return _serialize(b)

    def list_active(self, db: Session, current_user: User) -> list[dict]:
        items = db.query(Booking).filter(
            Booking.status == BookingStatus.IN_PROGRESS,
            or_(
                Booking.createdById == current_user.id,
                Booking.participants.any(User.id == current_user.id),
            ),
        ).order_by(Booking.startTime.asc()).all()
        return [_serialize(b) for b in items]


booking_service = BookingService()
