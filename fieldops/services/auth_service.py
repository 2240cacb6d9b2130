"""Authentication service: login, signed token issuance and actor resolution.

Access and refresh tokens are itsdangerous timed signatures over
`{"sub", "email", "role", "jti"}`, signed with separate secrets and salts so
one can never be used in place of the other. The latest refresh token is
stored on the user; refreshing rotates it and logging out clears it.
"""

import logging
import secrets
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from fieldops.core.config import constants, settings
from fieldops.core.errors import AuthenticationError, UserNotFoundError
from fieldops.core.logging import span
from fieldops.domain.auth import LoginResponse, TokenPair
from fieldops.domain.user import Actor, UserRole
from fieldops.services import password_service, user_service


logger = logging.getLogger(__name__)


def _access_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.jwt_secret, salt=constants.ACCESS_TOKEN_SALT)


def _refresh_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.jwt_refresh_secret, salt=constants.REFRESH_TOKEN_SALT)


def _generate_tokens(user: dict[str, Any]) -> TokenPair:
    payload = {"sub": user["id"], "email": user["email"], "role": user["role"]}
    return TokenPair(
        access_token=_access_serializer().dumps({**payload, "jti": secrets.token_hex(8)}),
        refresh_token=_refresh_serializer().dumps({**payload, "jti": secrets.token_hex(8)}),
    )


def _load_token(serializer: URLSafeTimedSerializer, token: str, max_age: int) -> dict[str, Any]:
    try:
        payload = serializer.loads(token, max_age=max_age)
    except SignatureExpired as err:
        raise AuthenticationError("Token expired") from err
    except BadSignature as err:
        raise AuthenticationError("Invalid token") from err

    if not isinstance(payload, dict) or "sub" not in payload:
        raise AuthenticationError("Invalid token")
    return payload


async def login(*, email: str, password: str) -> LoginResponse:
    """Verify credentials and issue a fresh token pair.

    Raises:
        AuthenticationError: If the e-mail is unknown or the password is wrong
    """
    with span("auth_service.login"):
        user = await user_service.get_user_by_email(email=email)
        if not user or not password_service.verify_password(password, user["password"]):
            logger.warning("Failed login attempt", extra={"email": email})
            raise AuthenticationError("Invalid credentials")

        tokens = _generate_tokens(user)
        await user_service.set_refresh_token(user_id=user["id"], refresh_token=tokens.refresh_token)

        logger.info("User logged in", extra={"user_id": user["id"]})
        return LoginResponse(**tokens.model_dump(), user=user_service.to_public_user(user))


async def refresh(*, refresh_token: str) -> TokenPair:
    """Exchange the current refresh token for a new pair (rotation).

    Raises:
        AuthenticationError: If the token is invalid, expired or not the stored one
    """
    with span("auth_service.refresh"):
        payload = _load_token(_refresh_serializer(), refresh_token, settings.refresh_token_ttl_seconds)

        try:
            user = await user_service.get_user_record(user_id=payload["sub"])
        except UserNotFoundError as err:
            raise AuthenticationError("Invalid refresh token") from err

        stored = user.get("refresh_token")
        if not stored or not secrets.compare_digest(stored, refresh_token):
            logger.warning("Refresh token mismatch", extra={"user_id": user["id"]})
            raise AuthenticationError("Invalid refresh token")

        tokens = _generate_tokens(user)
        await user_service.set_refresh_token(user_id=user["id"], refresh_token=tokens.refresh_token)
        return tokens


async def logout(*, actor: Actor) -> None:
    """Invalidate the actor's refresh token."""
    with span("auth_service.logout"):
        await user_service.set_refresh_token(user_id=actor.id, refresh_token=None)
        logger.info("User logged out", extra={"user_id": actor.id})


async def resolve_actor(*, access_token: str) -> Actor:
    """Verify an access token and resolve the acting user.

    The role is read from the stored user, not the token, so role changes take
    effect without waiting for the token to expire.

    Raises:
        AuthenticationError: If the token is invalid or the user no longer exists
    """
    payload = _load_token(_access_serializer(), access_token, settings.access_token_ttl_seconds)

    try:
        user = await user_service.get_user_record(user_id=payload["sub"])
    except UserNotFoundError as err:
        raise AuthenticationError("User no longer exists") from err

    return Actor(id=user["id"], role=UserRole(user["role"]))
