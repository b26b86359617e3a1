# practice_booking/api/auth.py
"""
API key authentication for the admin endpoints.
"""
import secrets
from typing import Optional

from fastapi import Header, HTTPException

from practice_booking.core.config import settings
from practice_booking.core.logging import get_logger

logger = get_logger(__name__)


def require_api_key(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> str:
    """
    Require the admin API key in the X-API-Key header.

    Raises:
        HTTPException: 503 when no key is configured, 401 when it is missing or wrong
    """
    expected = settings.ADMIN_API_KEY
    if not expected:
        logger.error("admin_api_key_not_configured")
        raise HTTPException(status_code=503, detail="Admin API is not configured")

    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Provide via X-API-Key header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not secrets.compare_digest(x_api_key, expected):
        logger.warning("admin_api_key_rejected")
        raise HTTPException(status_code=401, detail="Invalid API key", headers={"WWW-Authenticate": "ApiKey"})

    return x_api_key
