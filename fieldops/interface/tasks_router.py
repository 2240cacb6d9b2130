"""Task endpoints."""

import logging

from fastapi import APIRouter, Depends, Response, status

from fieldops.domain.create_models import TaskCreate
from fieldops.domain.task import DashboardStats, TaskView
from fieldops.domain.update_models import TaskFilters, TaskStatusUpdate, TaskUpdate
from fieldops.domain.user import Actor
from fieldops.interface.dependencies import get_current_actor, require_admin
from fieldops.modules.tasks import service as task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    filters: TaskFilters = Depends(),
    actor: Actor = Depends(get_current_actor),
) -> list[TaskView]:
    """List tasks visible to the caller, narrowed by optional filters."""
    return await task_service.list_tasks(actor=actor, filters=filters)


@router.get("/dashboard/stats")
async def get_dashboard_stats(actor: Actor = Depends(get_current_actor)) -> DashboardStats:
    """Per-status task counts within the caller's visibility."""
    return await task_service.get_dashboard_stats(actor=actor)


@router.get("/{task_id}")
async def get_task(task_id: str, actor: Actor = Depends(get_current_actor)) -> TaskView:
    return await task_service.get_task(actor=actor, task_id=task_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, actor: Actor = Depends(require_admin)) -> TaskView:
    return await task_service.create_task(actor=actor, data=payload)


@router.patch("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate, actor: Actor = Depends(require_admin)) -> TaskView:
    return await task_service.update_task(actor=actor, task_id=task_id, data=payload)


@router.patch("/{task_id}/status")
async def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    actor: Actor = Depends(get_current_actor),
) -> TaskView:
    """Move a task along the status workflow (admins, or the assigned technician)."""
    return await task_service.update_status(actor=actor, task_id=task_id, data=payload)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, actor: Actor = Depends(require_admin)) -> Response:
    await task_service.delete_task(actor=actor, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
