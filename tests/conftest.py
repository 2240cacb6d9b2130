"""Pytest configuration and shared fixtures."""

import pytest

from fieldops.domain.user import Actor, UserRole


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id="A1", role=UserRole.ADMIN)


@pytest.fixture
def tech_actor() -> Actor:
    return Actor(id="T1", role=UserRole.TECHNICIAN)


@pytest.fixture
def other_tech_actor() -> Actor:
    return Actor(id="T2", role=UserRole.TECHNICIAN)
