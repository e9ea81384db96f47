"""Stub bearer auth dependency.

Treats the bearer token as the user id. Real token validation belongs in
front of this service.
"""

from typing import Annotated

from fastapi import Header, HTTPException, status

from itinerary_backend.app.db.context import RequestContext
from itinerary_backend.app.db.models import ID_LENGTH

DEV_USER_ID = "00000000-0000-0000-0000-000000000001"


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    - "Bearer <user_id>" identifies the caller
    - No header falls back to a fixed development user

    Args:
        authorization: Authorization header (e.g., "Bearer <user_id>")

    Returns:
        RequestContext with user_id

    Raises:
        HTTPException: If authorization is invalid
    """
    if not authorization:
        return RequestContext(user_id=DEV_USER_ID)

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:].strip()  # Strip "Bearer "

    if not token or len(token) > ID_LENGTH or any(ch.isspace() for ch in token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token (expected user id)",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return RequestContext(user_id=token)
