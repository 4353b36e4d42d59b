"""
Auth Router: Login (sets the auth cookie), logout, whoami.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from admonitor.auth import AUTH_COOKIE, require_user
from admonitor.config import get_settings
from admonitor.dependencies import get_credential_store
from admonitor.services.auth_service import CredentialStore, Identity, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


# ── Schemas ────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool = True
    user: Identity
    access_token: str
    token_type: str = "bearer"


# ── Endpoints ───────────────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
):
    """Verify credentials and set an httpOnly auth cookie carrying the JWT."""
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    identity = store.verify(payload.username, payload.password)
    if not identity:
        logger.info(f"Failed login for '{payload.username}'")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    settings = get_settings()
    token = create_access_token(identity)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_days * 24 * 60 * 60,
        path="/",
    )
    return LoginResponse(user=identity, access_token=token)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE, path="/")
    return {"success": True}


@router.get("/whoami", response_model=Identity)
async def whoami(user: Identity = Depends(require_user)):
    return user
