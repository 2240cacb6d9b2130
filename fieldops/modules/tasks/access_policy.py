"""Role-based access rules for tasks.

Admins can see and change every task. Technicians can only see tasks assigned
to them and may only change the status of those tasks; creating, deleting and
editing a task's fields (including reassignment) is reserved for admins.
"""

from dataclasses import dataclass

from fieldops.core import db_client
from fieldops.core.errors import ForbiddenError
from fieldops.domain.task import Task
from fieldops.domain.user import Actor


@dataclass(frozen=True)
class TaskScope:
    """Restriction applied to task listings before any other filter.

    `assigned_to=None` means unrestricted.
    """

    assigned_to: str | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.assigned_to is None

    def matches(self, task: Task) -> bool:
        """Whether a task falls inside this scope."""
        return self.is_unrestricted or task.assigned_to == self.assigned_to

    def to_filter_query(self) -> str:
        """Render the scope in the db_client filter syntax ("" when unrestricted)."""
        if self.is_unrestricted:
            return ""
        return f'assigned_to = "{db_client.sanitize_param(self.assigned_to)}"'


def can_view(actor: Actor, task: Task) -> bool:
    if actor.is_admin:
        return True
    return task.assigned_to is not None and actor.id == task.assigned_to


def can_mutate_status(actor: Actor, task: Task) -> bool:
    # Same rule as viewing: technicians act only on their own tasks
    return can_view(actor, task)


def can_create_or_delete_or_reassign(actor: Actor) -> bool:
    return actor.is_admin


def scope_list_query(actor: Actor) -> TaskScope:
    """Visibility scope for task listings and dashboard counts."""
    if actor.is_admin:
        return TaskScope()
    return TaskScope(assigned_to=actor.id)


def ensure_can_view(actor: Actor, task: Task) -> None:
    """Raise ForbiddenError unless the actor may view the task."""
    if not can_view(actor, task):
        raise ForbiddenError("You can only view your assigned tasks")


def ensure_can_mutate_status(actor: Actor, task: Task) -> None:
    """Raise ForbiddenError unless the actor may change the task's status."""
    if not can_mutate_status(actor, task):
        raise ForbiddenError("You can only update status of your assigned tasks")


def ensure_admin(actor: Actor) -> None:
    """Raise ForbiddenError unless the actor is an admin."""
    if not can_create_or_delete_or_reassign(actor):
        raise ForbiddenError("Only administrators can perform this action")
