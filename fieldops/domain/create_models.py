"""Pydantic models for creating records in database."""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from fieldops.domain.task import Priority, ServiceType
from fieldops.domain.user import UserRole


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(v: str) -> str:
    """Validate a plain e-mail address."""
    v = v.strip()
    if not EMAIL_PATTERN.match(v):
        msg = "Invalid e-mail address"
        raise ValueError(msg)
    return v


def validate_iso_date(v: str) -> str:
    """Validate an ISO-8601 date or datetime string."""
    try:
        datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        try:
            date.fromisoformat(v)
        except ValueError as err:
            msg = f"Invalid ISO date: {v}"
            raise ValueError(msg) from err
    return v


def validate_not_blank(v: str) -> str:
    """Reject empty or whitespace-only strings."""
    v = v.strip()
    if not v:
        raise ValueError("Value cannot be empty")
    return v


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    title: str = Field(..., description="Task title")
    service_type: ServiceType = Field(..., description="Kind of service visit")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    customer_name: str = Field(..., description="Customer name")
    customer_phone: str = Field(..., description="Customer phone number")
    customer_email: str | None = Field(default=None, description="Customer e-mail")
    address: str = Field(..., description="Service address")
    scheduled_date: str = Field(..., description="Scheduled visit date (ISO format)")
    notes: str | None = Field(default=None, description="Free-form notes")
    assigned_to: str | None = Field(default=None, description="Technician to assign on creation")

    @field_validator("title", "customer_name", "customer_phone", "address")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Required text fields must not be blank."""
        return validate_not_blank(v)

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v: str | None) -> str | None:
        """Validate the customer e-mail if provided."""
        return validate_email(v) if v else None

    @field_validator("scheduled_date")
    @classmethod
    def validate_scheduled_date(cls, v: str) -> str:
        """Validate the scheduled date is ISO formatted."""
        return validate_iso_date(v)


class UserCreate(BaseModel):
    """Payload for creating a user."""

    email: str = Field(..., description="Login e-mail address")
    password: str = Field(..., min_length=1, description="Plain-text password (hashed before storage)")
    name: str = Field(..., description="Display name")
    role: UserRole = Field(default=UserRole.TECHNICIAN, description="User role")
    phone: str | None = Field(default=None, description="Contact phone number")

    @field_validator("email")
    @classmethod
    def validate_user_email(cls, v: str) -> str:
        """Validate login e-mail."""
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Name must not be blank."""
        return validate_not_blank(v)
