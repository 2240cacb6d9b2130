"""Domain models and DTOs."""

from fieldops.domain.auth import LoginRequest, LoginResponse, RefreshTokenRequest, TokenPair
from fieldops.domain.create_models import TaskCreate, UserCreate
from fieldops.domain.task import DashboardStats, Priority, ServiceType, Task, TaskStatus, TaskView
from fieldops.domain.update_models import TaskFilters, TaskStatusUpdate, TaskUpdate, UserUpdate
from fieldops.domain.user import Actor, User, UserRole


__all__ = [
    "Actor",
    "DashboardStats",
    "LoginRequest",
    "LoginResponse",
    "Priority",
    "RefreshTokenRequest",
    "ServiceType",
    "Task",
    "TaskCreate",
    "TaskFilters",
    "TaskStatus",
    "TaskStatusUpdate",
    "TaskUpdate",
    "TaskView",
    "TokenPair",
    "User",
    "UserCreate",
    "UserRole",
    "UserUpdate",
]
