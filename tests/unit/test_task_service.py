"""Unit tests for task service using the in-memory database."""

from typing import Any

import pytest

from fieldops.core import db_client
from fieldops.core.config import constants
from fieldops.core.errors import (
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidTransitionError,
    TaskNotFoundError,
)
from fieldops.domain.task import Priority, TaskStatus
from fieldops.domain.update_models import TaskFilters, TaskStatusUpdate, TaskUpdate
from fieldops.domain.user import Actor, UserRole
from fieldops.modules.tasks import service as task_service
from tests.factories import make_task, make_task_create


@pytest.fixture
def admin(seeded_users) -> Actor:
    return Actor(id=seeded_users["admin"]["id"], role=UserRole.ADMIN)


@pytest.fixture
def tech1(seeded_users) -> Actor:
    return Actor(id=seeded_users["tech1"]["id"], role=UserRole.TECHNICIAN)


@pytest.fixture
def tech2(seeded_users) -> Actor:
    return Actor(id=seeded_users["tech2"]["id"], role=UserRole.TECHNICIAN)


@pytest.fixture
def seed_task(in_memory_db, seeded_users):
    """Store a task directly, bypassing the service."""

    def _seed(**overrides: Any) -> dict[str, Any]:
        overrides.setdefault("created_by", seeded_users["admin"]["id"])
        data = make_task(**overrides).model_dump(mode="json", exclude={"id"})
        return in_memory_db.seed("tasks", data)

    return _seed


@pytest.mark.unit
class TestCreateTask:
    """Tests for create_task."""

    async def test_create_without_assignee_is_pending(self, patched_db, admin):
        task = await task_service.create_task(actor=admin, data=make_task_create())

        assert task.status == TaskStatus.PENDING
        assert task.assigned_to is None
        assert task.created_by == admin.id
        assert task.created_by_user is not None
        assert task.created_by_user.name == "Alice Admin"
        assert task.allowed_transitions == [TaskStatus.ASSIGNED, TaskStatus.CANCELLED]

    async def test_create_with_assignee_is_assigned(self, patched_db, admin, tech1):
        task = await task_service.create_task(actor=admin, data=make_task_create(assigned_to=tech1.id))

        assert task.status == TaskStatus.ASSIGNED
        assert task.assigned_to == tech1.id
        assert task.assigned_user is not None
        assert task.assigned_user.id == tech1.id

    async def test_create_persists_enum_values(self, patched_db, in_memory_db, admin):
        task = await task_service.create_task(actor=admin, data=make_task_create())

        stored = await in_memory_db.get_record(collection="tasks", record_id=task.id)
        assert stored["status"] == "pending"
        assert stored["priority"] == "high"
        assert stored["service_type"] == "installation"

    async def test_technician_cannot_create(self, patched_db, tech1):
        with pytest.raises(ForbiddenError):
            await task_service.create_task(actor=tech1, data=make_task_create())

    async def test_unknown_assignee_rejected(self, patched_db, admin):
        with pytest.raises(ValueError, match="does not exist"):
            await task_service.create_task(actor=admin, data=make_task_create(assigned_to="ghost"))

    async def test_admin_cannot_be_assignee(self, patched_db, admin):
        with pytest.raises(ValueError, match="not a technician"):
            await task_service.create_task(actor=admin, data=make_task_create(assigned_to=admin.id))


@pytest.mark.unit
class TestGetTask:
    """Tests for get_task."""

    async def test_missing_task_is_not_found_for_everyone(self, patched_db, admin, tech1):
        with pytest.raises(TaskNotFoundError):
            await task_service.get_task(actor=admin, task_id="missing")
        with pytest.raises(TaskNotFoundError):
            await task_service.get_task(actor=tech1, task_id="missing")

    async def test_technician_cannot_view_other_task(self, patched_db, seed_task, tech1, tech2):
        record = seed_task(assigned_to=tech2.id, status=TaskStatus.ASSIGNED)

        with pytest.raises(ForbiddenError):
            await task_service.get_task(actor=tech1, task_id=record["id"])

    async def test_technician_views_own_task(self, patched_db, seed_task, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        task = await task_service.get_task(actor=tech1, task_id=record["id"])

        assert task.id == record["id"]
        assert task.assigned_user is not None
        assert task.assigned_user.name == "Bob Technician"
        assert task.allowed_transitions == [TaskStatus.PENDING, TaskStatus.ON_THE_WAY, TaskStatus.CANCELLED]

    async def test_view_never_exposes_password(self, patched_db, seed_task, admin, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        task = await task_service.get_task(actor=admin, task_id=record["id"])

        assert "password" not in task.model_dump()["assigned_user"]


@pytest.mark.unit
class TestUpdateStatus:
    """Tests for update_status."""

    async def test_assignee_walks_task_to_completion(self, patched_db, seed_task, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        for status in (TaskStatus.ON_THE_WAY, TaskStatus.IN_PROGRESS):
            task = await task_service.update_status(
                actor=tech1, task_id=record["id"], data=TaskStatusUpdate(status=status)
            )
            assert task.status == status

        task = await task_service.update_status(
            actor=tech1,
            task_id=record["id"],
            data=TaskStatusUpdate(status=TaskStatus.COMPLETED, completion_notes="Replaced capacitor"),
        )

        assert task.status == TaskStatus.COMPLETED
        assert task.completion_notes == "Replaced capacitor"
        assert task.allowed_transitions == []

    async def test_completion_notes_stored_for_any_target(self, patched_db, seed_task, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        task = await task_service.update_status(
            actor=tech1,
            task_id=record["id"],
            data=TaskStatusUpdate(status=TaskStatus.ON_THE_WAY, completion_notes="ETA 20 minutes"),
        )

        assert task.completion_notes == "ETA 20 minutes"

    async def test_other_technician_gets_forbidden_before_workflow(self, patched_db, seed_task, tech2):
        record = seed_task(assigned_to="T1", status=TaskStatus.ASSIGNED)

        # assigned -> completed is illegal too, but permission wins
        with pytest.raises(ForbiddenError):
            await task_service.update_status(
                actor=tech2, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.COMPLETED)
            )

    async def test_illegal_transition_rejected(self, patched_db, seed_task, tech1, in_memory_db):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        with pytest.raises(InvalidTransitionError, match="Cannot transition from assigned to completed"):
            await task_service.update_status(
                actor=tech1, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.COMPLETED)
            )

        stored = await in_memory_db.get_record(collection="tasks", record_id=record["id"])
        assert stored["status"] == "assigned"

    @pytest.mark.parametrize("target", list(TaskStatus))
    async def test_completed_task_rejects_admin_and_assignee(self, patched_db, seed_task, admin, tech1, target):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.COMPLETED)

        for actor in (admin, tech1):
            with pytest.raises(InvalidTransitionError):
                await task_service.update_status(
                    actor=actor, task_id=record["id"], data=TaskStatusUpdate(status=target)
                )

    async def test_admin_can_reopen_cancelled_task(self, patched_db, seed_task, admin):
        record = seed_task(status=TaskStatus.CANCELLED)

        task = await task_service.update_status(
            actor=admin, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.PENDING)
        )

        assert task.status == TaskStatus.PENDING

    async def test_technician_cannot_touch_unassigned_task(self, patched_db, seed_task, tech1):
        record = seed_task(assigned_to=None, status=TaskStatus.PENDING)

        with pytest.raises(ForbiddenError):
            await task_service.update_status(
                actor=tech1, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.CANCELLED)
            )

    async def test_missing_task_is_not_found(self, patched_db, admin):
        with pytest.raises(TaskNotFoundError):
            await task_service.update_status(
                actor=admin, task_id="missing", data=TaskStatusUpdate(status=TaskStatus.CANCELLED)
            )

    async def test_status_changed_during_update_raises_conflict(
        self, patched_db, in_memory_db, seed_task, tech1, monkeypatch
    ):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.IN_PROGRESS)
        guarded_write = in_memory_db.update_record_if

        async def admin_cancels_first(**kwargs):
            await in_memory_db.update_record(
                collection="tasks", record_id=record["id"], data={"status": "cancelled"}
            )
            return await guarded_write(**kwargs)

        monkeypatch.setattr(db_client, "update_record_if", admin_cancels_first)

        with pytest.raises(ConcurrentUpdateError):
            await task_service.update_status(
                actor=tech1, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.COMPLETED)
            )

        stored = await in_memory_db.get_record(collection="tasks", record_id=record["id"])
        assert stored["status"] == "cancelled"

    async def test_task_deleted_during_update_is_not_found(
        self, patched_db, in_memory_db, seed_task, admin, monkeypatch
    ):
        record = seed_task(status=TaskStatus.PENDING)
        guarded_write = in_memory_db.update_record_if

        async def deleted_first(**kwargs):
            await in_memory_db.delete_record(collection="tasks", record_id=record["id"])
            return await guarded_write(**kwargs)

        monkeypatch.setattr(db_client, "update_record_if", deleted_first)

        with pytest.raises(TaskNotFoundError):
            await task_service.update_status(
                actor=admin, task_id=record["id"], data=TaskStatusUpdate(status=TaskStatus.CANCELLED)
            )


@pytest.mark.unit
class TestUpdateTask:
    """Tests for update_task and the assignment auto-transition."""

    async def test_assigning_pending_task_moves_to_assigned(self, patched_db, seed_task, admin, tech1):
        record = seed_task(status=TaskStatus.PENDING)

        task = await task_service.update_task(
            actor=admin, task_id=record["id"], data=TaskUpdate(assigned_to=tech1.id)
        )

        assert task.assigned_to == tech1.id
        assert task.status == TaskStatus.ASSIGNED

    async def test_unassigning_assigned_task_moves_to_pending(self, patched_db, seed_task, admin, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        task = await task_service.update_task(actor=admin, task_id=record["id"], data=TaskUpdate(assigned_to=None))

        assert task.assigned_to is None
        assert task.status == TaskStatus.PENDING

    async def test_unassigning_in_progress_task_keeps_status(self, patched_db, seed_task, admin, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.IN_PROGRESS)

        task = await task_service.update_task(actor=admin, task_id=record["id"], data=TaskUpdate(assigned_to=None))

        assert task.assigned_to is None
        assert task.status == TaskStatus.IN_PROGRESS

    async def test_reassigning_keeps_status(self, patched_db, seed_task, admin, tech1, tech2):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ON_THE_WAY)

        task = await task_service.update_task(
            actor=admin, task_id=record["id"], data=TaskUpdate(assigned_to=tech2.id)
        )

        assert task.assigned_to == tech2.id
        assert task.status == TaskStatus.ON_THE_WAY

    async def test_absent_assignee_leaves_assignment_untouched(self, patched_db, seed_task, admin, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        task = await task_service.update_task(
            actor=admin, task_id=record["id"], data=TaskUpdate(priority=Priority.URGENT, title="Urgent repair")
        )

        assert task.assigned_to == tech1.id
        assert task.status == TaskStatus.ASSIGNED
        assert task.priority == Priority.URGENT
        assert task.title == "Urgent repair"

    async def test_explicit_null_clears_optional_fields_only(self, patched_db, seed_task, admin):
        record = seed_task(notes="Gate code 1234", customer_email="dana@example.com")

        task = await task_service.update_task(
            actor=admin, task_id=record["id"], data=TaskUpdate(notes=None, customer_email=None, title=None)
        )

        assert task.notes is None
        assert task.customer_email is None
        assert task.title == "Replace compressor"

    async def test_technician_cannot_reassign(self, patched_db, seed_task, tech1, tech2):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        with pytest.raises(ForbiddenError):
            await task_service.update_task(
                actor=tech1, task_id=record["id"], data=TaskUpdate(assigned_to=tech2.id)
            )

    async def test_assigning_unknown_user_rejected(self, patched_db, seed_task, admin):
        record = seed_task(status=TaskStatus.PENDING)

        with pytest.raises(ValueError, match="does not exist"):
            await task_service.update_task(actor=admin, task_id=record["id"], data=TaskUpdate(assigned_to="ghost"))

    async def test_missing_task_is_not_found(self, patched_db, admin):
        with pytest.raises(TaskNotFoundError):
            await task_service.update_task(actor=admin, task_id="missing", data=TaskUpdate(title="x"))


@pytest.mark.unit
class TestListTasks:
    """Tests for list_tasks scoping and filtering."""

    @pytest.fixture
    def three_tasks(self, seed_task, tech1, tech2):
        return [
            seed_task(
                title="Install heat pump",
                service_type="installation",
                assigned_to=tech1.id,
                status=TaskStatus.ASSIGNED,
                created_at="2026-10-01T08:00:00Z",
            ),
            seed_task(
                title="Annual maintenance",
                service_type="maintenance",
                customer_name="Maple Bakery",
                assigned_to=tech2.id,
                status=TaskStatus.IN_PROGRESS,
                created_at="2026-10-02T08:00:00Z",
            ),
            seed_task(
                title="Fix thermostat",
                address="9 Maple Avenue",
                status=TaskStatus.PENDING,
                created_at="2026-10-03T08:00:00Z",
            ),
        ]

    async def test_admin_sees_all_newest_first(self, patched_db, three_tasks, admin):
        tasks = await task_service.list_tasks(actor=admin)

        assert [t.title for t in tasks] == ["Fix thermostat", "Annual maintenance", "Install heat pump"]

    async def test_technician_sees_only_own_tasks(self, patched_db, three_tasks, tech1):
        tasks = await task_service.list_tasks(actor=tech1)

        assert [t.title for t in tasks] == ["Install heat pump"]

    async def test_filter_cannot_widen_technician_scope(self, patched_db, three_tasks, tech1, tech2):
        tasks = await task_service.list_tasks(actor=tech1, filters=TaskFilters(assigned_to=tech2.id))

        assert tasks == []

    async def test_status_filter(self, patched_db, three_tasks, admin):
        tasks = await task_service.list_tasks(actor=admin, filters=TaskFilters(status=TaskStatus.PENDING))

        assert [t.title for t in tasks] == ["Fix thermostat"]

    async def test_search_matches_title_customer_and_address(self, patched_db, three_tasks, admin):
        tasks = await task_service.list_tasks(actor=admin, filters=TaskFilters(search="maple"))

        assert {t.title for t in tasks} == {"Annual maintenance", "Fix thermostat"}

    async def test_search_is_combined_with_scope(self, patched_db, three_tasks, tech2):
        tasks = await task_service.list_tasks(actor=tech2, filters=TaskFilters(search="maple"))

        assert [t.title for t in tasks] == ["Annual maintenance"]

    async def test_search_with_quotes_does_not_break_filter(self, patched_db, three_tasks, admin):
        tasks = await task_service.list_tasks(actor=admin, filters=TaskFilters(search='" || title ~ "'))

        assert tasks == []


@pytest.mark.unit
class TestDeleteTask:
    """Tests for delete_task."""

    async def test_admin_deletes_completed_task(self, patched_db, in_memory_db, seed_task, admin):
        record = seed_task(status=TaskStatus.COMPLETED, assigned_to="T1")

        await task_service.delete_task(actor=admin, task_id=record["id"])

        with pytest.raises(KeyError):
            await in_memory_db.get_record(collection="tasks", record_id=record["id"])

    async def test_technician_cannot_delete(self, patched_db, seed_task, tech1):
        record = seed_task(assigned_to=tech1.id, status=TaskStatus.ASSIGNED)

        with pytest.raises(ForbiddenError):
            await task_service.delete_task(actor=tech1, task_id=record["id"])

    async def test_missing_task_is_not_found(self, patched_db, admin):
        with pytest.raises(TaskNotFoundError):
            await task_service.delete_task(actor=admin, task_id="missing")


@pytest.mark.unit
class TestDashboardStats:
    """Tests for get_dashboard_stats."""

    @pytest.fixture
    def mixed_tasks(self, seed_task, tech1, tech2):
        seed_task(status=TaskStatus.PENDING)
        seed_task(status=TaskStatus.ASSIGNED, assigned_to=tech1.id)
        seed_task(status=TaskStatus.ON_THE_WAY, assigned_to=tech1.id)
        seed_task(status=TaskStatus.IN_PROGRESS, assigned_to=tech2.id)
        seed_task(status=TaskStatus.COMPLETED, assigned_to=tech1.id)
        seed_task(status=TaskStatus.CANCELLED)

    async def test_admin_counts_everything(self, patched_db, mixed_tasks, admin):
        stats = await task_service.get_dashboard_stats(actor=admin)

        assert stats.total_tasks == 6
        assert stats.pending_tasks == 1
        assert stats.assigned_tasks == 1
        assert stats.in_progress_tasks == 2
        assert stats.completed_tasks == 1
        assert stats.cancelled_tasks == 1

    async def test_technician_counts_own_tasks(self, patched_db, mixed_tasks, tech1):
        stats = await task_service.get_dashboard_stats(actor=tech1)

        assert stats.total_tasks == 3
        assert stats.assigned_tasks == 1
        assert stats.in_progress_tasks == 1
        assert stats.completed_tasks == 1
        assert stats.pending_tasks == 0


@pytest.mark.unit
class TestUnassignTasksForUser:
    """Tests for unassign_tasks_for_user."""

    async def test_releases_tasks_applying_auto_transition(self, patched_db, in_memory_db, seed_task, tech1, tech2):
        assigned = seed_task(status=TaskStatus.ASSIGNED, assigned_to=tech1.id)
        working = seed_task(status=TaskStatus.IN_PROGRESS, assigned_to=tech1.id)
        other = seed_task(status=TaskStatus.ASSIGNED, assigned_to=tech2.id)

        count = await task_service.unassign_tasks_for_user(user_id=tech1.id)

        assert count == 2
        assigned_now = await in_memory_db.get_record(collection="tasks", record_id=assigned["id"])
        working_now = await in_memory_db.get_record(collection="tasks", record_id=working["id"])
        other_now = await in_memory_db.get_record(collection="tasks", record_id=other["id"])
        assert (assigned_now["assigned_to"], assigned_now["status"]) == (None, "pending")
        assert (working_now["assigned_to"], working_now["status"]) == (None, "in_progress")
        assert other_now["assigned_to"] == tech2.id

    async def test_releases_every_page_of_tasks(self, patched_db, in_memory_db, seed_task, tech1, monkeypatch):
        monkeypatch.setattr(constants, "DEFAULT_PER_PAGE_LIMIT", 2)
        for _ in range(5):
            seed_task(status=TaskStatus.ASSIGNED, assigned_to=tech1.id)

        count = await task_service.unassign_tasks_for_user(user_id=tech1.id)

        assert count == 5
        remaining = await in_memory_db.list_records(collection="tasks", filter_query=f'assigned_to = "{tech1.id}"')
        assert remaining == []


@pytest.mark.unit
class TestDashboardStatsBeyondPageLimit:
    """Counts cover every task, not just one page."""

    async def test_counts_exceed_list_page_size(self, patched_db, seed_task, admin, tech1, monkeypatch):
        monkeypatch.setattr(constants, "DEFAULT_PER_PAGE_LIMIT", 2)
        for _ in range(3):
            seed_task(status=TaskStatus.PENDING)
        seed_task(status=TaskStatus.IN_PROGRESS, assigned_to=tech1.id)

        stats = await task_service.get_dashboard_stats(actor=admin)

        assert stats.total_tasks == 4
        assert stats.pending_tasks == 3
        assert stats.in_progress_tasks == 1


@pytest.mark.unit
class TestAccentedSearch:
    async def test_search_matches_accented_customer_name(self, patched_db, seed_task, admin):
        seed_task(title="Revisión anual", customer_name="José Peña")
        seed_task(title="Install heat pump", customer_name="Jose Smith")

        tasks = await task_service.list_tasks(actor=admin, filters=TaskFilters(search="José"))

        assert [t.customer_name for t in tasks] == ["José Peña"]
