"""
Authentication: signed JWT carried in the ``auth-token`` cookie set at login,
or as ``Authorization: Bearer <jwt>`` for programmatic clients.

Scheduler calls use the shared CRON_SECRET instead (see require_cron_secret).
"""

import logging
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from admonitor.config import get_settings
from admonitor.services.auth_service import Identity, decode_access_token

logger = logging.getLogger(__name__)

AUTH_COOKIE = "auth-token"

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_user(
    auth_token: Optional[str] = Cookie(None, alias=AUTH_COOKIE),
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> Identity:
    """Return the logged-in identity, or 401. A stale cookie falls back to the Bearer token."""
    tokens = [t for t in (auth_token, credentials.credentials if credentials else None) if t]
    if not tokens:
        raise HTTPException(status_code=401, detail="Unauthorized")

    identity = next((i for i in map(decode_access_token, tokens) if i), None)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid or expired token. Please log in again.")
    return identity


async def require_cron_secret(
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret"),
    authorization: Optional[str] = Header(None),
) -> None:
    """Verify a scheduler request carries the configured CRON_SECRET."""
    secret = get_settings().cron_secret
    if not secret:
        raise HTTPException(500, "CRON_SECRET not configured")
    token = x_cron_secret
    if not token and authorization and authorization.startswith("Bearer "):
        token = authorization[7:]
    if token != secret:
        raise HTTPException(401, "Invalid cron secret")
