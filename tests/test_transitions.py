import itertools

import pytest

from simcal.models.booking import BookingStatus
from simcal.services.transitions import (
    ALLOWED_TRANSITIONS, TERMINAL_STATES, VIA_EARLY_END, VIA_OVERRIDE, VIA_UPDATE,
    ensure_transition, is_allowed,
)
from simcal.utils.exceptions import ErrorCode, InvalidTransitionException

S, P, D, C = (BookingStatus.SCHEDULED, BookingStatus.IN_PROGRESS,
              BookingStatus.COMPLETED, BookingStatus.CANCELLED)

ALLOWED = {(S, P), (S, C), (P, D), (P, C)}
ALL_PAIRS = list(itertools.product(BookingStatus, repeat=2))


@pytest.mark.parametrize("current,target", sorted(ALLOWED))
def test_allowed_update_transitions(current, target):
    assert ensure_transition(current, target) == target


@pytest.mark.parametrize("current,target", [p for p in ALL_PAIRS if p not in ALLOWED])
def test_every_other_pair_is_rejected(current, target):
    with pytest.raises(InvalidTransitionException) as exc_info:
        ensure_transition(current, target)

    exc = exc_info.value
    assert exc.status_code == 400
    assert exc.error_code == ErrorCode.INVALID_STATUS_TRANSITION
    assert current.value in exc.message and target.value in exc.message


def test_accepts_raw_string_values():
    assert ensure_transition("scheduled", "in-progress") == BookingStatus.IN_PROGRESS


def test_override_edge_only_cancels():
    assert is_allowed(S, C, VIA_OVERRIDE)
    assert is_allowed(P, C, VIA_OVERRIDE)
    assert not is_allowed(D, C, VIA_OVERRIDE)
    assert not is_allowed(S, P, VIA_OVERRIDE)


def test_early_end_edge_only_completes_running_sessions():
    assert ensure_transition(P, D, via=VIA_EARLY_END) == D
    with pytest.raises(InvalidTransitionException):
        ensure_transition(S, D, via=VIA_EARLY_END)


def test_privileged_edges_stay_inside_the_update_table():
    for via in (VIA_OVERRIDE, VIA_EARLY_END):
        assert ALLOWED_TRANSITIONS[via] <= ALLOWED_TRANSITIONS[VIA_UPDATE]


def test_terminal_states_have_no_outgoing_edges():
    for edges in ALLOWED_TRANSITIONS.values():
        assert not any(src in TERMINAL_STATES for src, _ in edges)
