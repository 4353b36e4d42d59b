"""
Control Service: Campaign status changes forwarded to the ad platform.
Every successful action appends exactly one AccountAction audit row; a failed
remote call leaves no audit row behind.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admonitor.ad_platform import AdPlatformClient
from admonitor.models import AdAccount, AccountAction, CampaignStatus, TargetType
from admonitor.payloads import SetCampaignStatusPayload, PauseAllCampaignsPayload, dump_payload
from admonitor.utils import utcnow

logger = logging.getLogger(__name__)

PAUSE_ALL_ACTION = "pause_all_campaigns"


class ActionValidationError(Exception):
    """Control action input was rejected before any side effect."""
    pass


class TargetNotFoundError(Exception):
    """The account targeted by a control action is not in the store."""
    pass


def parse_campaign_status(value) -> CampaignStatus:
    """Accept exactly ACTIVE or PAUSED."""
    try:
        return CampaignStatus(value)
    except ValueError:
        raise ActionValidationError("Invalid status. Must be ACTIVE or PAUSED")


class ControlService:
    def __init__(self, client: AdPlatformClient):
        self.client = client

    async def _require_account(self, db: AsyncSession, account_id: str) -> AdAccount:
        account = await db.get(AdAccount, account_id)
        if not account:
            raise TargetNotFoundError(f"Account {account_id} not found")
        return account

    async def set_campaign_status(
        self,
        db: AsyncSession,
        campaign_id: str,
        status,
        performed_by: str,
        account_id: Optional[str] = None,
    ) -> AccountAction:
        """
        Set a campaign to ACTIVE or PAUSED. ``account_id`` links the audit row
        to its account when the caller knows it; otherwise the row has none.
        """
        target_status = parse_campaign_status(status)
        if account_id is not None:
            await self._require_account(db, account_id)

        await self.client.set_campaign_status(campaign_id, target_status)

        action = AccountAction(
            performed_by=performed_by,
            ad_account_id=account_id,
            target_type=TargetType.CAMPAIGN.value,
            target_id=campaign_id,
            action=f"set_status_{target_status.value.lower()}",
            payload=dump_payload(SetCampaignStatusPayload(status=target_status, timestamp=utcnow())),
        )
        db.add(action)
        await db.flush()
        logger.info(f"{performed_by} set campaign {campaign_id} to {target_status.value}")
        return action

    async def pause_all_campaigns(
        self,
        db: AsyncSession,
        account_id: str,
        performed_by: str,
    ) -> AccountAction:
        """Pause every active campaign of a stored account in one platform batch."""
        await self._require_account(db, account_id)

        paused_ids = await self.client.pause_all_campaigns(account_id)

        action = AccountAction(
            performed_by=performed_by,
            ad_account_id=account_id,
            target_type=TargetType.ACCOUNT.value,
            target_id=account_id,
            action=PAUSE_ALL_ACTION,
            payload=dump_payload(PauseAllCampaignsPayload(timestamp=utcnow(), paused_campaign_ids=paused_ids)),
        )
        db.add(action)
        await db.flush()
        logger.info(f"{performed_by} paused {len(paused_ids)} campaigns on account {account_id}")
        return action
