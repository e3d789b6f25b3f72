"""
Booking status state machine.

Regular updates may only follow ``ALLOWED_TRANSITIONS``. The privileged paths
(override approval, ending a session early) are edges of the same table,
tagged with the route that unlocks them, so nothing writes a status the
table does not know about.
"""
from simcal.models.booking import BookingStatus
from simcal.utils.exceptions import InvalidTransitionException

SCHEDULED   = BookingStatus.SCHEDULED
IN_PROGRESS = BookingStatus.IN_PROGRESS
COMPLETED   = BookingStatus.COMPLETED
CANCELLED   = BookingStatus.CANCELLED

VIA_UPDATE    = "update"
VIA_OVERRIDE  = "override"
VIA_EARLY_END = "early-end"

ALLOWED_TRANSITIONS: dict[str, set[tuple[BookingStatus, BookingStatus]]] = {
    VIA_UPDATE: {
        (SCHEDULED, IN_PROGRESS),
        (SCHEDULED, CANCELLED),
        (IN_PROGRESS, COMPLETED),
        (IN_PROGRESS, CANCELLED),
    },
    VIA_OVERRIDE: {
        (SCHEDULED, CANCELLED),
        (IN_PROGRESS, CANCELLED),
    },
    VIA_EARLY_END: {
        (IN_PROGRESS, COMPLETED),
    },
}

TERMINAL_STATES = frozenset({COMPLETED, CANCELLED})


def is_allowed(current: BookingStatus, target: BookingStatus, via: str = VIA_UPDATE) -> bool:
    return (BookingStatus(current), BookingStatus(target)) in ALLOWED_TRANSITIONS[via]


def ensure_transition(current: BookingStatus, target: BookingStatus, via: str = VIA_UPDATE) -> BookingStatus:
    """Return the target status, or raise InvalidTransitionException naming the pair."""
    current, target = BookingStatus(current), BookingStatus(target)
    if not is_allowed(current, target, via):
        raise InvalidTransitionException(current.value, target.value)
    return target
