import logging

from sqlalchemy.orm import Session

from simcal.models.booking import Booking, BookingStatus
from simcal.models.override_request import OverrideRequest, OverrideStatus
from simcal.models.user import User
from simcal.schemas.booking import OverrideCreateRequest
from simcal.services.booking_service import mail_details
from simcal.services.transitions import ensure_transition, TERMINAL_STATES, VIA_OVERRIDE
from simcal.utils.email import (
    send_override_request_email, send_override_approved_email, send_override_rejected_email,
)
from simcal.utils.exceptions import (
    NotFoundException, ForbiddenException, ValidationException, RequestAlreadyProcessedException,
)
from simcal.utils.timeutils import utcnow, isoformat

logger = logging.getLogger(__name__)


def _serialize(r: OverrideRequest) -> dict:
    b = r.booking
    return {
        "id":         r.id,
        "status":     r.status.value,
        "reason":     r.reason,
        "department": r.department,
        "booking": {
            "id":        b.id,
            "title":     b.title,
            "startTime": isoformat(b.startTime),
            "endTime":   isoformat(b.endTime),
            "simulator": b.simulator.value,
            "status":    b.status.value,
        } if b else None,
        "requester": {
            "id":    r.requester.id,
            "name":  r.requester.name,
            "email": r.requester.email,
        },
        "resolvedBy": {
            "id":   r.resolved_by.id,
            "name": r.resolved_by.name,
        } if r.resolved_by else None,
        "resolvedAt": isoformat(r.resolvedAt),
        "createdAt":  isoformat(r.createdAt),
    }


def _get_pending_in_department(db: Session, request_id: int, manager: User) -> OverrideRequest:
    r = db.query(OverrideRequest).filter(OverrideRequest.id == request_id).first()
    if not r:
        raise NotFoundException("Override request")
    if r.department != manager.department:
        raise ForbiddenException("Access denied. Override request belongs to another department")
    if r.status != OverrideStatus.PENDING:
        raise RequestAlreadyProcessedException("Override request")
    return r


class OverrideService:

    def request_override(
        self, db: Session, booking_id: int, data: OverrideCreateRequest, current_user: User,
    ) -> dict:
        b = db.query(Booking).filter(Booking.id == booking_id).first()
        if not b:
            raise NotFoundException("Booking")
        if b.createdById == current_user.id:
            raise ValidationException("You cannot request an override of your own booking")
        if b.status in TERMINAL_STATES:
            raise ValidationException(f"Booking is already {b.status.value}")
        owner = b.creator
        if not owner:
            raise NotFoundException("Booking owner")

        # Persist before notifying
        r = OverrideRequest(
            bookingId=b.id,
            requesterId=current_user.id,
            reason=data.reason,
            status=OverrideStatus.PENDING,
            department=b.department,
        )
        db.add(r)
        db.commit()
        db.refresh(r)
        logger.info(f"Override request #{r.id} for booking #{b.id} filed by {current_user.email}")

        send_override_request_email(owner.name, owner.email, {
            **mail_details(b),
            "requesterName":  current_user.name,
            "requesterEmail": current_user.email,
            "reason":         r.reason,
        })
        return _serialize(r)

    def list_pending(self, db: Session, manager: User) -> list[dict]:
        items = db.query(OverrideRequest).filter(
            OverrideRequest.department == manager.department,
            OverrideRequest.status == OverrideStatus.PENDING,
        ).order_by(OverrideRequest.createdAt.asc(), OverrideRequest.id.asc()).all()
        return [_serialize(r) for r in items]

    def approve(self, db: Session, request_id: int, manager: User) -> dict:
        r = _get_pending_in_department(db, request_id, manager)

        b = db.query(Booking).filter(Booking.id == r.bookingId).first()
        if b is None:
            logger.warning(f"Override request #{r.id} approved but booking #{r.bookingId} no longer exists")
        elif b.status in TERMINAL_STATES:
            # Nothing left to cancel; the request is closed and the booking kept
            logger.info(f"Override request #{r.id} approved after booking #{b.id} became {b.status.value}")
        else:
            b.status = ensure_transition(b.status, BookingStatus.CANCELLED, via=VIA_OVERRIDE)

        r.status       = OverrideStatus.APPROVED
        r.resolvedById = manager.id
        r.resolvedAt   = utcnow()
        # Request and booking are written in one transaction
        db.commit()
        db.refresh(r)
        logger.info(f"Override request #{r.id} approved by {manager.email}")

        send_override_approved_email(r.requester.email, mail_details(b) if b else {})
        return _serialize(r)

    def reject(self, db: Session, request_id: int, manager: User) -> dict:
        r = _get_pending_in_department(db, request_id, manager)

        r.status       = OverrideStatus.REJECTED
        r.resolvedById = manager.id
        r.resolvedAt   = utcnow()
        db.commit()
        db.refresh(r)
        logger.info(f"Override request #{r.id} rejected by {manager.email}")

        b = r.booking
        send_override_rejected_email(r.requester.email, mail_details(b) if b else {})
        return _serialize(r)


override_service = OverrideService()
