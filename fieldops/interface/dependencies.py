"""FastAPI dependencies for resolving the acting user."""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fieldops.core.errors import AuthenticationError
from fieldops.domain.user import Actor
from fieldops.modules.tasks import access_policy
from fieldops.services import auth_service


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """Resolve the actor from the `Authorization: Bearer` header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("auth_missing_bearer", extra={"path": request.url.path})
        raise AuthenticationError("Missing bearer token")

    return await auth_service.resolve_actor(access_token=credentials.credentials)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Resolve the actor and reject non-admins with 403."""
    access_policy.ensure_admin(actor)
    return actor
