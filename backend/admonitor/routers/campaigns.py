"""
Campaigns Router: Campaign status changes (ACTIVE / PAUSED).
"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from admonitor.ad_platform import AdPlatformError
from admonitor.auth import require_user
from admonitor.database import get_db
from admonitor.dependencies import get_control_service
from admonitor.routers.accounts import action_dict
from admonitor.services.auth_service import Identity
from admonitor.services.control_service import (
    ControlService, ActionValidationError, TargetNotFoundError,
)
from admonitor.utils import platform_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


class SetStatusRequest(BaseModel):
    # Validated by the control service so bad values never reach the platform
    status: Any = None
    account_id: Optional[str] = Field(None, description="Owning account, when the caller knows it")


@router.post("/{campaign_id}/set-status")
async def set_campaign_status(
    campaign_id: str,
    req: SetStatusRequest,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_user),
    service: ControlService = Depends(get_control_service),
):
    """Set a campaign to ACTIVE or PAUSED and record the action."""
    try:
        action = await service.set_campaign_status(
            db, campaign_id, req.status, performed_by=user.username, account_id=req.account_id,
        )
    except ActionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TargetNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")
    except AdPlatformError as e:
        raise platform_http_exception(e, "Campaign operation failed. Please try again.")

    return {
        "success": True,
        "message": f"Campaign status updated to {req.status}",
        "action": action_dict(action),
    }
