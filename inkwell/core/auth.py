"""
Caller identity for the Inkwell API.

Authentication happens upstream; the gateway forwards the resolved user in
the X-User-Id header and this dependency only checks it is present.
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException

logger = logging.getLogger("inkwell")

MAX_USER_ID_LENGTH = 100


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, description="User resolved by the gateway")
) -> str:
    """
    Extract the current user ID from the X-User-Id header.

    Raises:
        HTTPException 401: Missing or blank header
        HTTPException 400: Identifier longer than the storage column
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "unauthorized",
                "message": "Missing X-User-Id header",
            },
        )
    if len(user_id) > MAX_USER_ID_LENGTH:
        logger.debug(f"Rejected user id of length {len(user_id)}")
        raise HTTPException(status_code=400, detail="X-User-Id is too long")
    return user_id
