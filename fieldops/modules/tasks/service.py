"""Task service: loads tasks, applies access rules and the status workflow, persists changes."""

import logging
from datetime import UTC, datetime
from typing import Any

from fieldops.core import db_client
from fieldops.core.config import constants
from fieldops.core.errors import ConcurrentUpdateError, TaskNotFoundError
from fieldops.core.logging import log_with_user_context, span
from fieldops.domain.create_models import TaskCreate
from fieldops.domain.task import DashboardStats, Task, TaskStatus, TaskView
from fieldops.domain.update_models import TaskFilters, TaskStatusUpdate, TaskUpdate
from fieldops.domain.user import Actor, User, UserRole
from fieldops.modules.tasks import access_policy, state_machine


logger = logging.getLogger(__name__)

COLLECTION = "tasks"

_NULLABLE_FIELDS = frozenset({"customer_email", "notes"})


def _now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


async def _load_task(task_id: str) -> Task:
    """Fetch a task record, raising TaskNotFoundError if it does not exist."""
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
    except KeyError as err:
        raise TaskNotFoundError("Task not found") from err
    return Task.model_validate(record)


async def _load_users(user_ids: set[str]) -> dict[str, User]:
    """Fetch public user summaries for the given ids."""
    if not user_ids:
        return {}

    comparisons = " || ".join(f'id = "{db_client.sanitize_param(user_id)}"' for user_id in sorted(user_ids))
    records = await db_client.list_records(
        collection="users",
        filter_query=f"({comparisons})",
        per_page=len(user_ids),
    )
    return {record["id"]: User.model_validate(record) for record in records}


def _to_view(task: Task, users: dict[str, User]) -> TaskView:
    return TaskView(
        **task.model_dump(),
        assigned_user=users.get(task.assigned_to) if task.assigned_to else None,
        created_by_user=users.get(task.created_by),
        allowed_transitions=state_machine.ordered_transitions(task.status),
    )


async def _present(tasks: list[Task]) -> list[TaskView]:
    user_ids: set[str] = set()
    for task in tasks:
        user_ids.add(task.created_by)
        if task.assigned_to:
            user_ids.add(task.assigned_to)

    users = await _load_users(user_ids)
    return [_to_view(task, users) for task in tasks]


async def _ensure_assignable(user_id: str) -> None:
    """Guard: tasks may only be assigned to existing technicians."""
    try:
        user = await db_client.get_record(collection="users", record_id=user_id)
    except KeyError as err:
        msg = f"Assignee {user_id} does not exist"
        raise ValueError(msg) from err

    if user["role"] != UserRole.TECHNICIAN:
        msg = f"Assignee {user_id} is not a technician"
        raise ValueError(msg)


async def _write_guarded(*, task: Task, data: dict[str, Any]) -> Task:
    """Persist `data` only if the stored status still equals the validated one."""
    record = await db_client.update_record_if(
        collection=COLLECTION,
        record_id=task.id,
        data=data,
        expected={"status": task.status.value},
    )
    if record is not None:
        return Task.model_validate(record)

    # Nothing matched: either the task is gone or another writer got there first
    await _load_task(task.id)
    msg = f"Task {task.id} changed while it was being updated"
    raise ConcurrentUpdateError(msg)


def _build_filter_query(scope: access_policy.TaskScope, filters: TaskFilters) -> str:
    """Compose the access scope with the request filters, scope first."""
    parts = []
    scope_query = scope.to_filter_query()
    if scope_query:
        parts.append(scope_query)

    for field in ("status", "service_type", "priority", "assigned_to"):
        value = getattr(filters, field)
        if value:
            parts.append(f'{field} = "{db_client.sanitize_param(value)}"')

    if filters.search:
        term = db_client.sanitize_param(filters.search.strip())
        parts.append(f'(title ~ "{term}" || customer_name ~ "{term}" || address ~ "{term}")')

    return " && ".join(parts)


async def list_tasks(*, actor: Actor, filters: TaskFilters | None = None) -> list[TaskView]:
    """List the tasks visible to the actor, newest first.

    Technicians only ever see their own tasks; the request filters narrow the
    scoped result further and can never widen it.
    """
    with span("task_service.list_tasks"):
        filters = filters or TaskFilters()
        scope = access_policy.scope_list_query(actor)

        records = await db_client.list_records(
            collection=COLLECTION,
            filter_query=_build_filter_query(scope, filters),
            sort="created_at DESC",
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
        )
        tasks = [Task.model_validate(record) for record in records]
        return await _present(tasks)


async def get_task(*, actor: Actor, task_id: str) -> TaskView:
    """Get a single task.

    Raises:
        TaskNotFoundError: If the task does not exist
        ForbiddenError: If a technician asks for a task not assigned to them
    """
    with span("task_service.get_task"):
        task = await _load_task(task_id)
        access_policy.ensure_can_view(actor, task)
        return (await _present([task]))[0]


async def create_task(*, actor: Actor, data: TaskCreate) -> TaskView:
    """Create a task (admin only). Supplying an assignee starts it as assigned."""
    with span("task_service.create_task"):
        access_policy.ensure_admin(actor)

        if data.assigned_to:
            await _ensure_assignable(data.assigned_to)

        now = _now()
        task_data = {
            **data.model_dump(mode="json"),
            "assigned_to": data.assigned_to or None,
            "status": state_machine.initial_status(data.assigned_to),
            "created_by": actor.id,
            "created_at": now,
            "updated_at": now,
        }

        record = await db_client.create_record(collection=COLLECTION, data=task_data)
        task = Task.model_validate(record)

        log_with_user_context(
            logger, "info", "Created task", user_id=actor.id, task_id=task.id, status=task.status.value
        )
        return (await _present([task]))[0]


async def update_task(*, actor: Actor, task_id: str, data: TaskUpdate) -> TaskView:
    """Update a task's fields (admin only).

    Changing `assigned_to` runs the assignment auto-transition: assigning a
    pending task makes it assigned, unassigning an assigned task makes it
    pending. The write is guarded on the status that was read.
    """
    with span("task_service.update_task"):
        access_policy.ensure_admin(actor)
        task = await _load_task(task_id)

        update_data: dict[str, Any] = {}
        for field in data.model_fields_set - {"assigned_to"}:
            value = getattr(data, field)
            # Explicit nulls only clear the optional columns
            if value is None and field not in _NULLABLE_FIELDS:
                continue
            update_data[field] = value

        if "assigned_to" in data.model_fields_set:
            new_assignee = data.assigned_to or None
            if new_assignee and new_assignee != task.assigned_to:
                await _ensure_assignable(new_assignee)

            update_data["assigned_to"] = new_assignee
            new_status = state_machine.status_for_assignment_change(task.status, task.assigned_to, new_assignee)
            if new_status != task.status:
                update_data["status"] = new_status
                logger.info(
                    "Assignment change moved task status",
                    extra={"task_id": task_id, "from": task.status.value, "to": new_status.value},
                )

        update_data["updated_at"] = _now()
        updated = await _write_guarded(task=task, data=update_data)

        log_with_user_context(
            logger, "info", "Updated task", user_id=actor.id, task_id=task_id, fields=sorted(update_data)
        )
        return (await _present([updated]))[0]


async def update_status(*, actor: Actor, task_id: str, data: TaskStatusUpdate) -> TaskView:
    """Move a task to a new status.

    Permission is checked before the workflow, so a technician acting on
    someone else's task gets ForbiddenError even if the transition is illegal.

    Raises:
        TaskNotFoundError: If the task does not exist
        ForbiddenError: If the actor may not change this task's status
        InvalidTransitionError: If the transition is not in the workflow
        ConcurrentUpdateError: If the task's status changed after it was read
    """
    with span("task_service.update_status"):
        task = await _load_task(task_id)
        access_policy.ensure_can_mutate_status(actor, task)

        new_status = state_machine.apply_transition(task.status, data.status, data.completion_notes)

        update_data: dict[str, Any] = {"status": new_status, "updated_at": _now()}
        if data.completion_notes:
            update_data["completion_notes"] = data.completion_notes

        updated = await _write_guarded(task=task, data=update_data)

        log_with_user_context(
            logger,
            "info",
            "Transitioned task status",
            user_id=actor.id,
            task_id=task_id,
            from_status=task.status.value,
            to_status=new_status.value,
        )
        return (await _present([updated]))[0]


async def delete_task(*, actor: Actor, task_id: str) -> None:
    """Hard-delete a task (admin only), whatever its status."""
    with span("task_service.delete_task"):
        access_policy.ensure_admin(actor)
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        except KeyError as err:
            raise TaskNotFoundError("Task not found") from err

        log_with_user_context(logger, "info", "Deleted task", user_id=actor.id, task_id=task_id)


async def get_dashboard_stats(*, actor: Actor) -> DashboardStats:
    """Count visible tasks per status."""
    with span("task_service.get_dashboard_stats"):
        scope = access_policy.scope_list_query(actor)
        counts = await db_client.count_by(
            collection=COLLECTION,
            field="status",
            filter_query=scope.to_filter_query(),
        )

        return DashboardStats(
            total_tasks=sum(counts.values()),
            pending_tasks=counts.get(TaskStatus.PENDING, 0),
            assigned_tasks=counts.get(TaskStatus.ASSIGNED, 0),
            in_progress_tasks=counts.get(TaskStatus.ON_THE_WAY, 0) + counts.get(TaskStatus.IN_PROGRESS, 0),
            completed_tasks=counts.get(TaskStatus.COMPLETED, 0),
            cancelled_tasks=counts.get(TaskStatus.CANCELLED, 0),
        )


async def unassign_tasks_for_user(*, user_id: str) -> int:
    """Clear a user's assignments, applying the assignment auto-transition to each task.

    Pages through the user's tasks until none remain assigned. Returns the
    number of tasks that were unassigned.
    """
    with span("task_service.unassign_tasks_for_user"):
        filter_query = f'assigned_to = "{db_client.sanitize_param(user_id)}"'
        released = 0

        # Each pass releases what it read, so the next pass sees the remainder
        while records := await db_client.list_records(
            collection=COLLECTION,
            filter_query=filter_query,
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
        ):
            for record in records:
                task = Task.model_validate(record)
                new_status = state_machine.status_for_assignment_change(task.status, task.assigned_to, None)
                await _write_guarded(
                    task=task,
                    data={"assigned_to": None, "status": new_status, "updated_at": _now()},
                )
            released += len(records)

        logger.info("Unassigned tasks for user", extra={"user_id": user_id, "count": released})
        return released
