"""Caller identity for FastAPI routes.

Authentication happens in front of this service; the calling layer forwards
the authorised user id in the ``X-User-Id`` header.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from viberide.utils.logging import get_logger

LOGGER = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER)
) -> str:
    """Get the authorised user id forwarded by the calling layer.

    Raises:
        HTTPException: If the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        LOGGER.warning(f"Request without {USER_ID_HEADER} header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{USER_ID_HEADER} header missing",
        )
    return x_user_id.strip()
