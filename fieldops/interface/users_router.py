"""User management endpoints (admin only, except the technician directory)."""

from fastapi import APIRouter, Depends, Response, status

from fieldops.domain.create_models import UserCreate
from fieldops.domain.update_models import UserUpdate
from fieldops.domain.user import Actor, User
from fieldops.interface.dependencies import get_current_actor, require_admin
from fieldops.services import user_service


router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(_admin: Actor = Depends(require_admin)) -> list[User]:
    return await user_service.list_users()


@router.get("/technicians")
async def list_technicians(_actor: Actor = Depends(get_current_actor)) -> list[User]:
    return await user_service.list_technicians()


@router.get("/{user_id}")
async def get_user(user_id: str, _admin: Actor = Depends(require_admin)) -> User:
    return await user_service.get_user(user_id=user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, _admin: Actor = Depends(require_admin)) -> User:
    return await user_service.create_user(data=payload)


@router.patch("/{user_id}")
async def update_user(user_id: str, payload: UserUpdate, _admin: Actor = Depends(require_admin)) -> User:
    return await user_service.update_user(user_id=user_id, data=payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, _admin: Actor = Depends(require_admin)) -> Response:
    await user_service.delete_user(user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
