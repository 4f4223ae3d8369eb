"""
Authorization guard.

Every read and write in the portal is gated by a declared table of
(role, action) -> ownership predicate. A resource is any mapping that carries
the owning fields (``patient_id``, ``doctor_id``) and, for actions that depend
on the doctor-patient relationship, a precomputed ``has_relationship`` flag.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Table
from sqlalchemy.sql.elements import ColumnElement

from clinic_portal.core.exceptions import ForbiddenException, NotFoundException
from clinic_portal.core.security import Role


class Action(str, Enum):
    """Operations the guard knows about."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    DELETE = "delete"
    RESTORE = "restore"
    INCLUDE_DELETED = "include_deleted"
    VIEW_PATIENT = "view_patient"
    PRESCRIBE = "prescribe"


@dataclass(frozen=True)
class Subject:
    """Authenticated caller as resolved from the session token."""

    id: UUID
    role: Role


Predicate = Callable[[Subject, Mapping[str, Any]], bool]


def _same_id(value: Any, subject_id: UUID) -> bool:
    return value is not None and str(value) == str(subject_id)


def owns_as_patient(subject: Subject, resource: Mapping[str, Any]) -> bool:
    """Resource belongs to the calling patient."""
    return _same_id(resource.get("patient_id"), subject.id)


def owns_as_doctor(subject: Subject, resource: Mapping[str, Any]) -> bool:
    """Resource belongs to the calling doctor."""
    return _same_id(resource.get("doctor_id"), subject.id)


def has_relationship(subject: Subject, resource: Mapping[str, Any]) -> bool:
    """Caller has at least one live appointment with the patient."""
    return bool(resource.get("has_relationship"))


def always(subject: Subject, resource: Mapping[str, Any]) -> bool:
    return True


RULES: dict[tuple[Role, Action], Predicate] = {
    # Patients book for themselves, read and cancel their own appointments.
    # Editing is limited further by the appointment service (no slot changes).
    (Role.PATIENT, Action.CREATE): owns_as_patient,
    (Role.PATIENT, Action.READ): owns_as_patient,
    (Role.PATIENT, Action.UPDATE): owns_as_patient,
    (Role.PATIENT, Action.CANCEL): owns_as_patient,
    # Doctors work their own schedule.
    (Role.DOCTOR, Action.READ): owns_as_doctor,
    (Role.DOCTOR, Action.UPDATE): owns_as_doctor,
    (Role.DOCTOR, Action.CONFIRM): owns_as_doctor,
    (Role.DOCTOR, Action.START): owns_as_doctor,
    (Role.DOCTOR, Action.COMPLETE): owns_as_doctor,
    (Role.DOCTOR, Action.CANCEL): owns_as_doctor,
    (Role.DOCTOR, Action.VIEW_PATIENT): has_relationship,
    (Role.DOCTOR, Action.PRESCRIBE): has_relationship,
}
RULES.update({(Role.ADMIN, action): always for action in Action})


def can_access(subject: Subject, action: Action, resource: Mapping[str, Any]) -> bool:
    """Evaluate the declared rule for the subject's role and the action."""
    predicate = RULES.get((subject.role, action))
    if predicate is None:
        return False
    return predicate(subject, resource)


def authorize(
    subject: Subject,
    action: Action,
    resource: Mapping[str, Any],
    visibility: Action = Action.READ,
) -> None:
    """
    Gate an action on an existing resource.

    Callers that cannot even see the resource get NotFound so that its
    existence is not confirmed; callers that can see it but may not perform
    the action get PermissionDenied.

    Args:
        subject: Authenticated caller
        action: Requested action
        resource: Mapping with the owning fields
        visibility: Action that decides whether the resource is visible

    Raises:
        NotFoundException: Resource is not visible to the caller
        ForbiddenException: Resource is visible but the action is not allowed
    """
    if not can_access(subject, visibility, resource):
        raise NotFoundException("Resource not found")
    if action != visibility and not can_access(subject, action, resource):
        raise ForbiddenException(f"Not allowed to {action.value} this resource")


def require(subject: Subject, action: Action, resource: Mapping[str, Any] | None = None) -> None:
    """Gate an action that has no pre-existing resource to hide."""
    if not can_access(subject, action, resource or {}):
        raise ForbiddenException(f"Not allowed to {action.value}")


def ownership_filter(subject: Subject, table: Table) -> list[ColumnElement[bool]]:
    """WHERE clauses scoping a listing to what the subject may read."""
    if subject.role == Role.PATIENT:
        return [table.c.patient_id == subject.id]
    if subject.role == Role.DOCTOR:
        return [table.c.doctor_id == subject.id]
    return []
