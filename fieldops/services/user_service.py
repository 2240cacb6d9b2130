"""User service for account management."""

import logging
from datetime import UTC, datetime
from typing import Any

from fieldops.core import db_client
from fieldops.core.config import constants
from fieldops.core.errors import ConflictError, UserNotFoundError
from fieldops.core.logging import span
from fieldops.domain.create_models import UserCreate
from fieldops.domain.update_models import UserUpdate
from fieldops.domain.user import User, UserRole
from fieldops.modules.tasks import service as task_service
from fieldops.services import password_service


logger = logging.getLogger(__name__)

COLLECTION = "users"


def _now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def to_public_user(record: dict[str, Any]) -> User:
    """Strip server-side secrets from a user record."""
    return User.model_validate(record)


async def get_user_record(*, user_id: str) -> dict[str, Any]:
    """Fetch the raw user record, including password hash and refresh token.

    Raises:
        UserNotFoundError: If no user has this id
    """
    try:
        return await db_client.get_record(collection=COLLECTION, record_id=user_id)
    except KeyError as err:
        raise UserNotFoundError("User not found") from err


async def get_user_by_email(*, email: str) -> dict[str, Any] | None:
    """Find the raw user record with this e-mail, or None."""
    return await db_client.get_first_record(
        collection=COLLECTION,
        filter_query=f'email = "{db_client.sanitize_param(email)}"',
    )


async def list_users() -> list[User]:
    """List all users, newest first."""
    with span("user_service.list_users"):
        records = await db_client.list_records(
            collection=COLLECTION,
            sort="created_at DESC",
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
        )
        return [to_public_user(record) for record in records]


async def list_technicians() -> list[User]:
    """List technicians sorted by name (assignment pickers)."""
    with span("user_service.list_technicians"):
        records = await db_client.list_records(
            collection=COLLECTION,
            filter_query=f'role = "{UserRole.TECHNICIAN}"',
            sort="name ASC",
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
        )
        return [to_public_user(record) for record in records]


async def get_user(*, user_id: str) -> User:
    """Get a single user."""
    with span("user_service.get_user"):
        return to_public_user(await get_user_record(user_id=user_id))


async def create_user(*, data: UserCreate) -> User:
    """Create a user with a hashed password.

    Raises:
        ConflictError: If the e-mail is already taken
    """
    with span("user_service.create_user"):
        # Guard: e-mail must be unique
        if await get_user_by_email(email=data.email):
            raise ConflictError("Email already exists")

        now = _now()
        user_data = {
            "email": data.email,
            "password": password_service.hash_password(data.password),
            "name": data.name,
            "role": data.role,
            "phone": data.phone or None,
            "created_at": now,
            "updated_at": now,
        }

        record = await db_client.create_record(collection=COLLECTION, data=user_data)
        logger.info("Created user", extra={"user_id": record["id"], "role": str(data.role)})
        return to_public_user(record)


async def update_user(*, user_id: str, data: UserUpdate) -> User:
    """Update a user; a new password is re-hashed and e-mail uniqueness re-checked.

    Raises:
        UserNotFoundError: If no user has this id
        ConflictError: If the new e-mail belongs to another user
    """
    with span("user_service.update_user"):
        user = await get_user_record(user_id=user_id)

        if data.email and data.email != user["email"]:
            existing = await get_user_by_email(email=data.email)
            if existing and existing["id"] != user_id:
                raise ConflictError("Email already exists")

        update_data: dict[str, Any] = {"updated_at": _now()}
        if data.email:
            update_data["email"] = data.email
        if data.name:
            update_data["name"] = data.name
        if data.role:
            update_data["role"] = data.role
        if "phone" in data.model_fields_set:
            update_data["phone"] = data.phone
        if data.password:
            update_data["password"] = password_service.hash_password(data.password)

        # Only technicians may hold assignments
        if data.role and data.role != UserRole.TECHNICIAN and user["role"] == UserRole.TECHNICIAN:
            released = await task_service.unassign_tasks_for_user(user_id=user_id)
            logger.info("Released tasks on role change", extra={"user_id": user_id, "released_tasks": released})

        record = await db_client.update_record(collection=COLLECTION, record_id=user_id, data=update_data)
        logger.info("Updated user", extra={"user_id": user_id, "fields": sorted(update_data)})
        return to_public_user(record)


async def delete_user(*, user_id: str) -> None:
    """Delete a user after releasing every task assigned to them."""
    with span("user_service.delete_user"):
        await get_user_record(user_id=user_id)

        released = await task_service.unassign_tasks_for_user(user_id=user_id)

        try:
            await db_client.delete_record(collection=COLLECTION, record_id=user_id)
        except KeyError as err:
            raise UserNotFoundError("User not found") from err

        logger.info("Deleted user", extra={"user_id": user_id, "released_tasks": released})


async def set_refresh_token(*, user_id: str, refresh_token: str | None) -> None:
    """Store (or clear) the user's current refresh token."""
    await db_client.update_record(
        collection=COLLECTION,
        record_id=user_id,
        data={"refresh_token": refresh_token, "updated_at": _now()},
    )
