from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from simcal.database import get_db
from simcal.dependencies import get_current_user, get_manager_user, require_permission
from simcal.models.booking import BookingStatus, Simulator
from simcal.models.user import User
from simcal.schemas.booking import BookingCreateRequest, BookingUpdateRequest, OverrideCreateRequest
from simcal.schemas.common import ErrorResponse, success_response
from simcal.services.booking_service import booking_service
from simcal.services.override_service import override_service

router = APIRouter(prefix="/bookings")

CONFLICT_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid status transition"},
    409: {"model": ErrorResponse, "description": "Simulator conflict"},
}


@router.get("", summary="List bookings ordered by start time")
def list_bookings(
    startDate:    Optional[datetime]      = Query(None, description="startTime >= startDate"),
    endDate:      Optional[datetime]      = Query(None, description="endTime <= endDate"),
    simulator:    Optional[Simulator]     = Query(None),
    department:   Optional[str]           = Query(None),
    status:       Optional[BookingStatus] = Query(None),
    db:           Session                 = Depends(get_db),
    _:            User                    = Depends(require_permission("canViewBookings")),
):
    data = booking_service.list_bookings(db, startDate, endDate, simulator, department, status)
    return success_response("Bookings retrieved successfully", data)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create booking")
def create_booking(
    body: BookingCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = booking_service.create_booking(db, body, current_user)
    return success_response("Booking created successfully", data)


@router.get("/active", summary="In-progress bookings of the current user")
def list_active(
    db:           Session = Depends(get_db),
    current_user: User    = Depends(get_current_user),
):
    return success_response("Active bookings retrieved", booking_service.list_active(db, current_user))


# ─── Override requests ────────────────────────────────────────────────────────
@router.get("/override-requests", summary="Pending override requests of your department (Manager)")
def list_override_requests(
    db:      Session = Depends(get_db),
    manager: User    = Depends(get_manager_user),
):
    return success_response("Override requests retrieved", override_service.list_pending(db, manager))


@router.post("/override-requests/{request_id}/approve", summary="Approve override request (Manager)",
             responses=CONFLICT_RESPONSES)
def approve_override_request(
    request_id: int,
    db:         Session = Depends(get_db),
    manager:    User    = Depends(get_manager_user),
):
    return success_response("Override request approved successfully",
                            override_service.approve(db, request_id, manager))


@router.post("/override-requests/{request_id}/reject", summary="Reject override request (Manager)")
def reject_override_request(
    request_id: int,
    db:         Session = Depends(get_db),
    manager:    User    = Depends(get_manager_user),
):
    return success_response("Override request rejected successfully",
                            override_service.reject(db, request_id, manager))


# ─── Single booking ───────────────────────────────────────────────────────────
@router.get("/{booking_id}", summary="Get booking detail")
def get_booking(
    booking_id: int,
    db:         Session = Depends(get_db),
    _:          User    = Depends(require_permission("canViewBookings")),
):
    return success_response("Booking retrieved", booking_service.get_booking(db, booking_id))


@router.put("/{booking_id}", summary="Update booking (creator, participant or booking manager)",
            responses=CONFLICT_RESPONSES)
def update_booking(
    booking_id: int,
    body:       BookingUpdateRequest,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(get_current_user),
):
    return success_response("Booking updated successfully",
                            booking_service.update_booking(db, booking_id, body, current_user))


@router.delete("/{booking_id}", summary="Delete booking")
def delete_booking(
    booking_id: int,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(require_permission("canManageBookings")),
):
    booking_service.delete_booking(db, booking_id, current_user)
    return success_response("Booking deleted successfully", None)


@router.put("/{booking_id}/end-early", summary="End an in-progress booking early (owner only)",
            responses=CONFLICT_RESPONSES)
def end_early(
    booking_id: int,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(get_current_user),
):
    return success_response("Booking ended early successfully",
                            booking_service.end_early(db, booking_id, current_user))


@router.post("/{booking_id}/request-override", status_code=status.HTTP_201_CREATED,
             summary="Ask a manager to cancel another user's booking")
def request_override(
    booking_id: int,
    body:       OverrideCreateRequest,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(get_current_user),
):
    return success_response("Override request sent successfully",
                            override_service.request_override(db, booking_id, body, current_user))
