"""
Cron / Scheduled Jobs: Endpoint for an external scheduler.

Sync has no built-in timer; point a scheduler at:
  POST https://your-app.example.com/api/cron/sync
  Header: X-Cron-Secret: <CRON_SECRET>   (or Authorization: Bearer <CRON_SECRET>)
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admonitor.auth import require_cron_secret
from admonitor.database import get_db
from admonitor.dependencies import get_sync_service
from admonitor.routers.sync import run_sync
from admonitor.services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


@router.post("/sync")
async def cron_sync(
    _: None = Depends(require_cron_secret),
    db: AsyncSession = Depends(get_db),
    service: SyncService = Depends(get_sync_service),
):
    """Scheduled sync."""
    result = await run_sync(db, service)
    logger.info(f"Cron sync completed: {result['stats']}")
    return result
