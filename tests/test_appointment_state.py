"""Tests for the appointment status lifecycle."""

from datetime import UTC, datetime

import pytest

from clinic_portal.core.exceptions import (
    AlreadyDeletedException,
    InvalidStateTransitionException,
    NotDeletedException,
)
from clinic_portal.schemas.appointments import AppointmentStatus
from clinic_portal.services.appointment_state import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    action_for_change,
    ensure_deletable,
    ensure_restorable,
    next_status,
)
from clinic_portal.services.authorization import Action

S = AppointmentStatus


@pytest.mark.parametrize(
    ("action", "current", "expected"),
    [
        (Action.CONFIRM, S.SCHEDULED, S.CONFIRMED),
        (Action.START, S.SCHEDULED, S.IN_PROGRESS),
        (Action.START, S.CONFIRMED, S.IN_PROGRESS),
        (Action.COMPLETE, S.IN_PROGRESS, S.COMPLETED),
        (Action.CANCEL, S.SCHEDULED, S.CANCELLED),
        (Action.CANCEL, S.CONFIRMED, S.CANCELLED),
        (Action.CANCEL, S.IN_PROGRESS, S.CANCELLED),
    ],
)
def test_legal_transitions(action, current, expected):
    assert next_status(action, current) == expected


def test_start_twice_is_rejected():
    status = next_status(Action.START, "scheduled")

    with pytest.raises(InvalidStateTransitionException) as exc_info:
        next_status(Action.START, status)

    assert exc_info.value.status_code == 409


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_terminal_statuses_have_no_exit(terminal):
    for action in TRANSITIONS:
        with pytest.raises(InvalidStateTransitionException):
            next_status(action, terminal)


def test_nothing_leads_back_to_scheduled():
    assert all(transition.target != S.SCHEDULED for transition in TRANSITIONS.values())


def test_non_transition_action_is_rejected():
    with pytest.raises(InvalidStateTransitionException):
        next_status(Action.READ, S.SCHEDULED)


def test_unknown_status_value_is_rejected():
    with pytest.raises(ValueError):
        next_status(Action.START, "In-Progress")


class TestActionForChange:
    def test_same_status_is_no_action(self):
        assert action_for_change("scheduled", S.SCHEDULED) is None

    def test_maps_to_the_performing_action(self):
        assert action_for_change(S.SCHEDULED, S.CONFIRMED) == Action.CONFIRM
        assert action_for_change(S.CONFIRMED, S.IN_PROGRESS) == Action.START
        assert action_for_change(S.IN_PROGRESS, S.COMPLETED) == Action.COMPLETE
        assert action_for_change(S.IN_PROGRESS, S.CANCELLED) == Action.CANCEL

    def test_illegal_jump(self):
        with pytest.raises(InvalidStateTransitionException):
            action_for_change(S.SCHEDULED, S.COMPLETED)

    def test_cannot_reopen(self):
        with pytest.raises(InvalidStateTransitionException):
            action_for_change(S.CANCELLED, S.SCHEDULED)


class TestDeleteState:
    def test_delete_requires_live_record(self):
        ensure_deletable(None)

        with pytest.raises(AlreadyDeletedException) as exc_info:
            ensure_deletable(datetime(2025, 3, 1, tzinfo=UTC))
        assert exc_info.value.status_code == 404

    def test_restore_requires_deleted_record(self):
        ensure_restorable(datetime(2025, 3, 1, tzinfo=UTC))

        with pytest.raises(NotDeletedException) as exc_info:
            ensure_restorable(None)
        assert exc_info.value.status_code == 404
