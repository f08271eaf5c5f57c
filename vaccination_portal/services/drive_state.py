"""
Drive state machine.

A drive starts Scheduled and moves once, to Completed or Cancelled. Only a
Scheduled drive can be edited, receive vaccinations or enroll students.
Every handler goes through these guards instead of comparing strings.
"""

from vaccination_portal import errors
from vaccination_portal.models.enums import DriveStatus

TRANSITIONS: dict[DriveStatus, frozenset[DriveStatus]] = {
    DriveStatus.SCHEDULED: frozenset({DriveStatus.COMPLETED, DriveStatus.CANCELLED}),
    DriveStatus.COMPLETED: frozenset(),
    DriveStatus.CANCELLED: frozenset(),
}

_TRANSITION_VERBS = {
    DriveStatus.COMPLETED: "complete",
    DriveStatus.CANCELLED: "cancel",
}


def can_transition(current: DriveStatus, target: DriveStatus) -> bool:
    return target in TRANSITIONS[DriveStatus(current)]


def is_open(status: DriveStatus) -> bool:
    """A drive is open (editable, vaccinating) only while Scheduled."""
    return DriveStatus(status) == DriveStatus.SCHEDULED


def ensure_open(status: DriveStatus, action: str) -> None:
    """Raises InvalidStateError naming the current status unless the drive is Scheduled."""
    if not is_open(status):
        raise errors.InvalidStateError(
            f"Cannot {action} a {DriveStatus(status).value.lower()} vaccination drive."
        )


def ensure_transition(current: DriveStatus, target: DriveStatus) -> None:
    if not can_transition(current, target):
        raise errors.InvalidStateError(
            f"Cannot {_TRANSITION_VERBS[target]} a "
            f"{DriveStatus(current).value.lower()} vaccination drive."
        )
