"""Pytest configuration and fixtures for integration tests against a real SQLite file."""

import pytest

from fieldops.core import db_client
from fieldops.core.config import constants, settings
from fieldops.domain.create_models import UserCreate
from fieldops.domain.user import Actor, UserRole
from fieldops.services import user_service


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """Point the app at a fresh database file and create the schema."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "fieldops.db"))
    monkeypatch.setattr(constants, "BCRYPT_ROUNDS", 4)

    await db_client.init_db()
    yield
    await db_client.close_connection()


@pytest.fixture
async def crew(sqlite_db) -> dict[str, Actor]:
    """An admin and two technicians stored in the database."""
    actors = {}
    for key, name, role in (
        ("admin", "Alice Admin", UserRole.ADMIN),
        ("tech1", "Bob Technician", UserRole.TECHNICIAN),
        ("tech2", "Carol Technician", UserRole.TECHNICIAN),
    ):
        user = await user_service.create_user(
            data=UserCreate(email=f"{key}@hvac.test", password="integration-pass", name=name, role=role)
        )
        actors[key] = Actor(id=user.id, role=user.role)
    return actors
