"""Authentication utilities for API endpoints."""

import secrets

from fastapi import Header, HTTPException, status

from folkfeed.config import get_settings
from folkfeed.utils.logging import get_logger

logger = get_logger(__name__)


async def verify_refresh_token(
    authorization: str | None = Header(default=None),
) -> None:
    """Verify the shared bearer token guarding the refresh endpoint.

    The endpoint stays disabled until ``FOLKFEED_REFRESH_TOKEN`` is set.

    Args:
        authorization: The Authorization header containing the Bearer token.

    Raises:
        HTTPException: 403 if refreshing is disabled, 401 if the token is
            missing or wrong.
    """
    expected = get_settings().refresh_token
    if expected is None or not expected.get_secret_value():
        logger.warning("Refresh requested but no refresh token is configured")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Refresh endpoint is disabled",
        )

    if not authorization:
        logger.warning("Missing authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
        )

    if not authorization.startswith("Bearer "):
        logger.warning("Invalid authorization header format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    token = authorization[7:]
    if not secrets.compare_digest(token.encode(), expected.get_secret_value().encode()):
        logger.warning("Invalid refresh token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )
