"""Server-side verification of the admin credential."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from .config import get_settings

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"


class AuthGate:
    """FastAPI dependency guarding admin routes with the configured ``LUX_ADMIN_TOKEN``."""

    def __call__(
        self,
        x_admin_token: Optional[str] = Header(default=None, alias=ADMIN_TOKEN_HEADER),
    ) -> str:
        expected = get_settings().admin_token
        if not expected:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Admin access is not configured.",
            )
        if not x_admin_token or not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
            logger.warning("Rejected admin request with an invalid token")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid admin token.",
            )
        return "admin"


require_admin = AuthGate()

__all__ = ["ADMIN_TOKEN_HEADER", "AuthGate", "require_admin"]
