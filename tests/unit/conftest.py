"""Pytest configuration and fixtures for unit tests."""

import pytest

from fieldops.core.config import constants
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches fieldops.core.db_client functions to use InMemoryDBClient.

    Also lowers the bcrypt cost so password hashing stays fast.
    """
    monkeypatch.setattr("fieldops.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("fieldops.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("fieldops.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("fieldops.core.db_client.update_record_if", in_memory_db.update_record_if)
    monkeypatch.setattr("fieldops.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("fieldops.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("fieldops.core.db_client.get_first_record", in_memory_db.get_first_record)
    monkeypatch.setattr("fieldops.core.db_client.count_by", in_memory_db.count_by)

    monkeypatch.setattr(constants, "BCRYPT_ROUNDS", 4)

    return in_memory_db


@pytest.fixture
def seeded_users(in_memory_db):
    """An admin and two technicians stored directly in the in-memory db."""
    users = {}
    for key, name, role in (
        ("admin", "Alice Admin", "admin"),
        ("tech1", "Bob Technician", "technician"),
        ("tech2", "Carol Technician", "technician"),
    ):
        users[key] = in_memory_db.seed(
            "users",
            {
                "email": f"{key}@hvac.test",
                "password": "not-a-real-hash",
                "name": name,
                "role": role,
                "phone": None,
                "refresh_token": None,
                "created_at": "2026-01-01T00:00:00Z",
                "updated_at": "2026-01-01T00:00:00Z",
            },
        )
    return users
