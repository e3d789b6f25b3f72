"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters: import parent tables before child tables.
"""

from simcal.models.user import User, UserRole, UserStatus, RoleRequestStatus, PermissionSet
from simcal.models.booking import Booking, BookingStatus, Priority, Simulator, booking_participants
from simcal.models.override_request import OverrideRequest, OverrideStatus
from simcal.models.scheduled_reminder import ScheduledReminder

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "RoleRequestStatus",
    "PermissionSet",
    "Booking",
    "BookingStatus",
    "Priority",
    "Simulator",
    "booking_participants",
    "OverrideRequest",
    "OverrideStatus",
    "ScheduledReminder",
]
