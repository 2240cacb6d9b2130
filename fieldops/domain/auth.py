"""Authentication request and response models."""

from pydantic import BaseModel

from fieldops.domain.user import User


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    """Signed access and refresh tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPair):
    user: User
