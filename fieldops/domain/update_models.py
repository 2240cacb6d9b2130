"""Update and query models for database operations."""

from pydantic import BaseModel, Field, field_validator

from fieldops.domain.create_models import validate_email, validate_iso_date, validate_not_blank
from fieldops.domain.task import Priority, ServiceType, TaskStatus
from fieldops.domain.user import UserRole


class TaskUpdate(BaseModel):
    """Partial update of a task's fields (admin only).

    Only fields present in the payload are written; `assigned_to: null` clears
    the assignment while an absent `assigned_to` leaves it untouched.
    """

    title: str | None = None
    service_type: ServiceType | None = None
    priority: Priority | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    address: str | None = None
    scheduled_date: str | None = None
    notes: str | None = None
    assigned_to: str | None = None

    @field_validator("title", "customer_name", "customer_phone", "address")
    @classmethod
    def validate_required_text(cls, v: str | None) -> str | None:
        return validate_not_blank(v) if v is not None else None

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v: str | None) -> str | None:
        return validate_email(v) if v else None

    @field_validator("scheduled_date")
    @classmethod
    def validate_scheduled_date(cls, v: str | None) -> str | None:
        return validate_iso_date(v) if v is not None else None


class TaskStatusUpdate(BaseModel):
    """Request to move a task to a new status."""

    status: TaskStatus
    completion_notes: str | None = Field(default=None, description="Accepted for any target status")


class TaskFilters(BaseModel):
    """Optional filters applied to a task listing after access scoping."""

    status: TaskStatus | None = None
    service_type: ServiceType | None = None
    priority: Priority | None = None
    assigned_to: str | None = None
    search: str | None = None


class UserUpdate(BaseModel):
    """Partial update of a user."""

    email: str | None = None
    password: str | None = None
    name: str | None = None
    role: UserRole | None = None
    phone: str | None = None

    @field_validator("email")
    @classmethod
    def validate_user_email(cls, v: str | None) -> str | None:
        return validate_email(v) if v is not None else None
