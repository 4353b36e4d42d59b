"""
Sync Router: Pull accounts and today's metrics from the ad platform into the
local database. Also used by the cron endpoint.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from admonitor.ad_platform import AdPlatformError
from admonitor.config import ConfigurationError
from admonitor.database import get_db
from admonitor.dependencies import get_sync_service
from admonitor.services.sync_service import SyncService
from admonitor.utils import platform_http_exception, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


async def run_sync(db: AsyncSession, service: SyncService) -> dict:
    """Run one sync and shape the response. Used by both POST /sync and cron."""
    try:
        result = await service.run(db)
    except ConfigurationError as e:
        logger.error(f"Sync misconfigured: {e}")
        raise HTTPException(status_code=500, detail=f"Server misconfiguration: {e}")
    except AdPlatformError as e:
        raise platform_http_exception(e, "Failed to synchronize with the ad platform.")

    if result.success:
        message = "Data synchronized successfully"
    else:
        message = f"Synchronized with {len(result.errors)} account error(s)"
    return {
        "success": result.success,
        "message": message,
        "timestamp": (result.synced_at or utcnow()).isoformat(),
        "stats": result.as_dict(),
    }


@router.post("")
@router.post("/")
async def sync_now(
    db: AsyncSession = Depends(get_db),
    service: SyncService = Depends(get_sync_service),
):
    """Manual sync trigger."""
    return await run_sync(db, service)
