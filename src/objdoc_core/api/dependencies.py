"""Request dependencies shared by the API routers."""
from fastapi import Header

from ..errors import DocumentValidationError


def get_current_user_id(
    x_user_id: str = Header(
        ...,
        description="Id of the authenticated user, set by the gateway in front of this service",
    ),
) -> str:
    """Return the caller's user id from the X-User-Id header."""
    user_id = x_user_id.strip()
    if not user_id:
        raise DocumentValidationError("X-User-Id header is empty", entity="user_id")
    return user_id
