"""
Auth utilities for the votes API.

Verifies HS256 JWTs issued by the account service and extracts the integer
user id from the `sub` claim. Falls back to an X-User-Id header when
ALLOW_USER_ID_HEADER is enabled (tests, local development).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt
from fastapi import Header, Request

from votestreak.core.config import settings
from votestreak.core.errors import AuthenticationError

logger = logging.getLogger(__name__)


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise AuthenticationError("Token verification is not configured")
    return settings.JWT_SECRET


def issue_token(user_id: int, email: str, *, now: Optional[datetime] = None) -> str:
    """Sign a token in the account service's format: {sub, email, iat, exp}."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, _secret(), algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify a JWT and return its payload.

    Raises:
        AuthenticationError: expired or otherwise invalid token
    """
    try:
        return jwt.decode(
            token,
            _secret(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise AuthenticationError("Invalid token")


def _as_user_id(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid user id in credentials")


async def get_current_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, description="Test/dev user ID"),
) -> int:
    """
    Extract the caller's user id from request context.

    Priority:
    1. Bearer JWT from Authorization header
    2. X-User-Id header (only when ALLOW_USER_ID_HEADER is set)
    3. 401 Unauthorized
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        payload = verify_token(auth_header[7:])
        return _as_user_id(payload.get("sub"))

    if x_user_id and settings.ALLOW_USER_ID_HEADER:
        return _as_user_id(x_user_id)

    raise AuthenticationError("Missing Authorization (Bearer JWT)")
