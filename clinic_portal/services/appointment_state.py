"""Appointment status lifecycle."""

from dataclasses import dataclass
from datetime import datetime

from clinic_portal.core.exceptions import (
    AlreadyDeletedException,
    InvalidStateTransitionException,
    NotDeletedException,
)
from clinic_portal.schemas.appointments import AppointmentStatus
from clinic_portal.services.authorization import Action

S = AppointmentStatus


@dataclass(frozen=True)
class Transition:
    """Legal source statuses and the resulting status for one action."""

    sources: frozenset[AppointmentStatus]
    target: AppointmentStatus


# completed and cancelled are terminal: nothing leads out of them.
TRANSITIONS: dict[Action, Transition] = {
    Action.CONFIRM: Transition(frozenset({S.SCHEDULED}), S.CONFIRMED),
    Action.START: Transition(frozenset({S.SCHEDULED, S.CONFIRMED}), S.IN_PROGRESS),
    Action.COMPLETE: Transition(frozenset({S.IN_PROGRESS}), S.COMPLETED),
    Action.CANCEL: Transition(frozenset({S.SCHEDULED, S.CONFIRMED, S.IN_PROGRESS}), S.CANCELLED),
}

TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED})


def next_status(action: Action, current: AppointmentStatus | str) -> AppointmentStatus:
    """
    Resolve the status an action leads to from the current status.

    Raises:
        InvalidStateTransitionException: Action is not legal from ``current``
    """
    transition = TRANSITIONS.get(action)
    if transition is None:
        raise InvalidStateTransitionException(f"'{action.value}' is not a status transition")

    current = AppointmentStatus(current)
    if current not in transition.sources:
        raise InvalidStateTransitionException(
            f"Cannot {action.value} an appointment that is {current.value}"
        )
    return transition.target


def action_for_change(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
) -> Action | None:
    """
    Map a requested status change onto the action that performs it.

    Returns None when the status does not change.

    Raises:
        InvalidStateTransitionException: No action moves ``current`` to ``target``
    """
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)
    if current == target:
        return None

    for action, transition in TRANSITIONS.items():
        if transition.target == target and current in transition.sources:
            return action

    raise InvalidStateTransitionException(
        f"Cannot move an appointment from {current.value} to {target.value}"
    )


def ensure_deletable(deleted_at: datetime | None) -> None:
    """Soft delete requires a live record."""
    if deleted_at is not None:
        raise AlreadyDeletedException("Appointment not found or already deleted")


def ensure_restorable(deleted_at: datetime | None) -> None:
    """Restore requires a soft-deleted record."""
    if deleted_at is None:
        raise NotDeletedException("Appointment is not deleted")
