"""Bearer token verification for admin and lifecycle endpoints."""

import os
import hmac
from typing import Optional

from src.utils.config import InventoryConfig
from src.utils.errors import AdminAuthError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BEARER_PREFIX = "Bearer "


def should_bypass_verification() -> bool:
    """Check if token verification should be bypassed (dev mode)."""
    env = os.environ.get("ENVIRONMENT", "").lower()
    if env in ("development", "local"):
        return True

    return os.environ.get("ADMIN_BYPASS_AUTH", "").lower() == "true"


def get_admin_token() -> str:
    """Get the admin API token from the environment."""
    token = (os.environ.get("ADMIN_API_TOKEN") or InventoryConfig.ADMIN_API_TOKEN).strip()
    if not token:
        raise AdminAuthError("ADMIN_API_TOKEN not set")
    return token


def verify_admin_token(expected: str, authorization: Optional[str]) -> bool:
    """Compare an Authorization header against the expected token in constant time."""
    if not expected or not authorization:
        return False
    if not authorization.startswith(BEARER_PREFIX):
        return False

    presented = authorization[len(BEARER_PREFIX):].strip()
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def verify_admin_request(authorization: Optional[str]) -> bool:
    """
    Verify an admin request.

    Returns True if verification passes or is bypassed, False otherwise.
    """
    if should_bypass_verification():
        logger.debug("Admin token verification bypassed (dev mode)")
        return True

    try:
        result = verify_admin_token(get_admin_token(), authorization)
    except AdminAuthError as e:
        logger.error("Admin verification error", error=str(e))
        return False

    if not result:
        logger.warning("Admin token mismatch", has_authorization=bool(authorization))
    return result
