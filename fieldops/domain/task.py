"""Task domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field

from fieldops.domain.user import User


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    ON_THE_WAY = "on_the_way"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceType(StrEnum):
    """Kind of HVAC service visit."""

    INSTALLATION = "installation"
    MAINTENANCE = "maintenance"
    REPAIR = "repair"


class Priority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID")
    title: str = Field(..., description="Task title")
    service_type: ServiceType = Field(..., description="Kind of service visit")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    customer_name: str = Field(..., description="Customer name")
    customer_phone: str = Field(..., description="Customer phone number")
    customer_email: str | None = Field(default=None, description="Customer e-mail")
    address: str = Field(..., description="Service address")
    scheduled_date: str = Field(..., description="Scheduled visit date (ISO format)")
    notes: str | None = Field(default=None, description="Free-form notes from the admin")
    completion_notes: str | None = Field(default=None, description="Notes written when changing status")
    assigned_to: str | None = Field(default=None, description="Assigned technician ID")
    created_by: str = Field(..., description="ID of the creating admin")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last update timestamp (ISO format)")


class TaskView(Task):
    """Task as returned by the API, with related users and next steps."""

    assigned_user: User | None = None
    created_by_user: User | None = None
    allowed_transitions: list[TaskStatus] = Field(default_factory=list)


class DashboardStats(BaseModel):
    """Task counts per status for the dashboard."""

    total_tasks: int = 0
    pending_tasks: int = 0
    assigned_tasks: int = 0
    in_progress_tasks: int = Field(default=0, description="Tasks on the way or in progress")
    completed_tasks: int = 0
    cancelled_tasks: int = 0
