"""fieldops - HVAC field-service task management API."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from fieldops.core.config import constants, settings
from fieldops.core.db_client import close_connection, init_db
from fieldops.core.logging import configure_logfire, instrument_fastapi
from fieldops.interface.auth_router import router as auth_router
from fieldops.interface.error_handlers import register_error_handlers
from fieldops.interface.tasks_router import router as tasks_router
from fieldops.interface.users_router import router as users_router


logger = logging.getLogger(__name__)

_DEFAULT_SECRETS = {"default-jwt-secret", "default-refresh-secret"}


def validate_startup_configuration() -> None:
    """Fail fast when production runs with missing or default signing secrets."""
    logger.info("startup_validation_begin")

    if not settings.is_production:
        logger.info("startup_validation", extra={"stage": "credentials", "status": "skipped"})
        return

    try:
        for field_name, service_name in (
            ("jwt_secret", "Access token secret"),
            ("jwt_refresh_secret", "Refresh token secret"),
        ):
            value = settings.require_credential(field_name, service_name)
            if value in _DEFAULT_SECRETS:
                raise ValueError(f"{service_name} still uses the default value. Set {field_name.upper()}.")

        logger.info("startup_validation_complete", extra={"status": "ok"})
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()

    await init_db()
    logger.info("Database initialized")
    yield
    await close_connection()


app = FastAPI(
    title="fieldops",
    description="HVAC field-service task management",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

register_error_handlers(app)

# Register routers
app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(users_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)
