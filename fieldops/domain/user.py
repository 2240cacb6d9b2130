"""User domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field


class UserRole(StrEnum):
    """Role of a user in the service organisation."""

    ADMIN = "admin"
    TECHNICIAN = "technician"


class User(BaseModel):
    """Public user data transfer object (never carries password or refresh token)."""

    id: str = Field(..., description="Unique user ID")
    email: str = Field(..., description="Login e-mail address")
    name: str = Field(..., description="Display name")
    role: UserRole = Field(default=UserRole.TECHNICIAN, description="User role")
    phone: str | None = Field(default=None, description="Contact phone number")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last update timestamp (ISO format)")


class Actor(BaseModel):
    """Identity performing an operation, resolved from a bearer credential."""

    model_config = {"frozen": True}

    id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
