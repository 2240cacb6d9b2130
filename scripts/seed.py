#!/usr/bin/env python3
"""Seed the database with an admin, two technicians and a few sample tasks.

Existing users (matched by e-mail) are left untouched; sample tasks are only
created when the tasks table is empty.

Usage:
    SEED_ADMIN_PASSWORD=... python scripts/seed.py
"""

import asyncio
import logging
import sys
from datetime import UTC, datetime, timedelta

from fieldops.core import db_client
from fieldops.core.config import settings
from fieldops.domain.create_models import TaskCreate, UserCreate
from fieldops.domain.task import Priority, ServiceType
from fieldops.domain.user import Actor, UserRole
from fieldops.modules.tasks import service as task_service
from fieldops.services import user_service


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

TECHNICIANS = [
    {"email": "tech1@hvac.local", "name": "John Technician", "phone": "555-0101"},
    {"email": "tech2@hvac.local", "name": "Jane Technician", "phone": "555-0102"},
]


async def ensure_user(*, email: str, password: str, name: str, role: UserRole, phone: str | None) -> str:
    """Create the user unless the e-mail is already registered; return its id."""
    existing = await user_service.get_user_by_email(email=email)
    if existing:
        logger.info(f"User {email} already exists, skipping")
        return existing["id"]

    user = await user_service.create_user(
        data=UserCreate(email=email, password=password, name=name, role=role, phone=phone)
    )
    logger.info(f"Created {role} {email}")
    return user.id


async def seed_tasks(*, admin: Actor, technician_ids: list[str]) -> None:
    """Create sample tasks, one unassigned and one per technician."""
    if await db_client.list_records(collection="tasks", per_page=1):
        logger.info("Tasks already present, skipping sample tasks")
        return

    tomorrow = (datetime.now(UTC) + timedelta(days=1)).date().isoformat()
    samples = [
        TaskCreate(
            title="Install new AC unit",
            service_type=ServiceType.INSTALLATION,
            priority=Priority.HIGH,
            customer_name="Robert Smith",
            customer_phone="555-1001",
            address="123 Main St",
            scheduled_date=tomorrow,
        ),
        TaskCreate(
            title="Annual furnace maintenance",
            service_type=ServiceType.MAINTENANCE,
            customer_name="Maria Garcia",
            customer_phone="555-1002",
            address="456 Oak Ave",
            scheduled_date=tomorrow,
            assigned_to=technician_ids[0],
        ),
        TaskCreate(
            title="Repair leaking heat pump",
            service_type=ServiceType.REPAIR,
            priority=Priority.URGENT,
            customer_name="James Wilson",
            customer_phone="555-1003",
            address="789 Pine Rd",
            scheduled_date=tomorrow,
            assigned_to=technician_ids[1],
        ),
    ]

    for sample in samples:
        task = await task_service.create_task(actor=admin, data=sample)
        logger.info(f"Created task '{task.title}' ({task.status})")


async def main() -> None:
    """Initialise the schema and seed users and tasks."""
    try:
        admin_password = settings.require_credential("seed_admin_password", "Seed admin password")
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    await db_client.init_db()

    admin_id = await ensure_user(
        email=settings.seed_admin_email,
        password=admin_password,
        name="Admin User",
        role=UserRole.ADMIN,
        phone=None,
    )

    technician_ids = [
        await ensure_user(password=admin_password, role=UserRole.TECHNICIAN, **tech) for tech in TECHNICIANS
    ]

    await seed_tasks(admin=Actor(id=admin_id, role=UserRole.ADMIN), technician_ids=technician_ids)
    await db_client.close_connection()
    logger.info("Seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
