from fieldops.services import (
    auth_service,
    password_service,
    user_service,
)


__all__ = [
    "auth_service",
    "password_service",
    "user_service",
]
