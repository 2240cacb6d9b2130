"""Pure state transition functions for task lifecycle management."""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from fieldops.core.errors import InvalidTransitionError
from fieldops.domain.task import TaskStatus


logger = logging.getLogger(__name__)


# Allowed transitions: current status -> statuses it may move to
STATUS_WORKFLOW: Mapping[TaskStatus, frozenset[TaskStatus]] = MappingProxyType(
    {
        TaskStatus.PENDING: frozenset({TaskStatus.ASSIGNED, TaskStatus.CANCELLED}),
        TaskStatus.ASSIGNED: frozenset({TaskStatus.ON_THE_WAY, TaskStatus.PENDING, TaskStatus.CANCELLED}),
        TaskStatus.ON_THE_WAY: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.ASSIGNED, TaskStatus.CANCELLED}),
        TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.ON_THE_WAY, TaskStatus.CANCELLED}),
        TaskStatus.COMPLETED: frozenset(),
        TaskStatus.CANCELLED: frozenset({TaskStatus.PENDING}),
    }
)

# Display order for advertising next steps to clients
_STATUS_ORDER = list(TaskStatus)


def allowed_transitions(current: TaskStatus) -> frozenset[TaskStatus]:
    """Return the statuses reachable from `current` in one step."""
    return STATUS_WORKFLOW.get(TaskStatus(current), frozenset())


def ordered_transitions(current: TaskStatus) -> list[TaskStatus]:
    """Allowed next statuses in lifecycle order."""
    allowed = allowed_transitions(current)
    return [status for status in _STATUS_ORDER if status in allowed]


def is_terminal(status: TaskStatus) -> bool:
    """True when no transition leaves `status`."""
    return not allowed_transitions(status)


def is_transition_allowed(current: TaskStatus, requested: TaskStatus) -> bool:
    """Check whether moving from `current` to `requested` is a legal transition."""
    return TaskStatus(requested) in allowed_transitions(current)


def apply_transition(
    current: TaskStatus,
    requested: TaskStatus,
    completion_notes: str | None = None,
) -> TaskStatus:
    """Validate a requested transition and return the new status.

    Completion notes are accepted for every target status, not only
    `completed`; the caller stores them as given.

    Raises:
        InvalidTransitionError: If `requested` is not reachable from `current`
    """
    if not is_transition_allowed(current, requested):
        raise InvalidTransitionError(TaskStatus(current).value, TaskStatus(requested).value)

    logger.debug(
        "Transition validated",
        extra={"from": str(current), "to": str(requested), "has_notes": bool(completion_notes)},
    )
    return TaskStatus(requested)


def initial_status(assigned_to: str | None) -> TaskStatus:
    """Status of a newly created task; creation is not validated against the workflow."""
    return TaskStatus.ASSIGNED if assigned_to else TaskStatus.PENDING


def status_for_assignment_change(
    current: TaskStatus,
    previous_assignee: str | None,
    new_assignee: str | None,
) -> TaskStatus:
    """Derive the status after an assignment change.

    Assigning an unassigned pending task moves it to assigned; unassigning an
    assigned task moves it back to pending. Every other combination keeps the
    current status (e.g. unassigning a task that is in progress).
    """
    current = TaskStatus(current)
    if not previous_assignee and new_assignee and current == TaskStatus.PENDING:
        return TaskStatus.ASSIGNED
    if previous_assignee and not new_assignee and current == TaskStatus.ASSIGNED:
        return TaskStatus.PENDING
    return current
