"""Authentication endpoints."""

from fastapi import APIRouter, Depends

from fieldops.domain.auth import LoginRequest, LoginResponse, RefreshTokenRequest, TokenPair
from fieldops.domain.user import Actor, User
from fieldops.interface.dependencies import get_current_actor
from fieldops.services import auth_service, user_service


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(payload: LoginRequest) -> LoginResponse:
    return await auth_service.login(email=payload.email, password=payload.password)


@router.post("/refresh")
async def refresh(payload: RefreshTokenRequest) -> TokenPair:
    return await auth_service.refresh(refresh_token=payload.refresh_token)


@router.post("/logout")
async def logout(actor: Actor = Depends(get_current_actor)) -> dict[str, str]:
    await auth_service.logout(actor=actor)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def me(actor: Actor = Depends(get_current_actor)) -> User:
    return await user_service.get_user(user_id=actor.id)
