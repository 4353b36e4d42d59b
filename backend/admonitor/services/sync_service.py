"""
Sync Service: Mirrors ad accounts and today's metrics from the ad platform
into the local database.

One run:
    1. Resolve the owner scope (sample business in simulation, FB_BUSINESS_ID live)
    2. Ensure the owning vendor rows exist (create once, never update)
    3. Upsert every ad account returned by the platform
    4. Upsert today's metric row per account, keyed on (account, UTC midnight)

A platform failure for one account is logged and recorded on the result;
the remaining accounts are still processed.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admonitor.ad_platform import (
    AdPlatformClient, AdPlatformError, AccountSummary, AccountDetails, AccountInsights, status_text,
)
from admonitor.config import Settings
from admonitor.models import Vendor, AdAccount, AccountMetric
from admonitor.utils import utcnow, utc_midnight

logger = logging.getLogger(__name__)

SAMPLE_VENDOR_NAME = "Sample Vendor"
SAMPLE_VENDOR_CONTACT = "@samplevendor"
SAMPLE_BUSINESS_ID = "123456789"
DEFAULT_TIMEZONE = "UTC"


class SyncResult:
    """Outcome of one sync run."""

    def __init__(self):
        self.accounts_synced = 0
        self.accounts_created = 0
        self.metrics_created = 0
        self.metrics_updated = 0
        self.errors: list[dict] = []
        self.synced_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def as_dict(self) -> dict:
        return {
            "accounts_synced": self.accounts_synced,
            "accounts_created": self.accounts_created,
            "metrics_created": self.metrics_created,
            "metrics_updated": self.metrics_updated,
            "errors": self.errors,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
        }

    def __repr__(self):
        return (
            f"SyncResult(accounts={self.accounts_synced}, created={self.accounts_created}, "
            f"metrics_created={self.metrics_created}, metrics_updated={self.metrics_updated}, "
            f"errors={len(self.errors)})"
        )


class SyncService:
    def __init__(self, client: AdPlatformClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def run(self, db: AsyncSession) -> SyncResult:
        result = SyncResult()

        if self.settings.is_simulation:
            owner_id = SAMPLE_BUSINESS_ID
            sample_vendor = await self._ensure_sample_vendor(db)
        else:
            owner_id = self.settings.require_business_id()
            sample_vendor = None

        summaries = await self.client.list_accounts(owner_id)
        logger.info(f"Sync: {len(summaries)} accounts from platform (owner {owner_id})")

        today = utc_midnight()
        vendors: dict[str, Vendor] = {}

        for summary in summaries:
            vendor = sample_vendor or await self._ensure_business_vendor(db, summary, owner_id, vendors)
            account, created = await self._upsert_account(db, summary, vendor)
            result.accounts_synced += 1
            if created:
                result.accounts_created += 1

            try:
                details = await self.client.get_account_details(summary.id)
                insights = await self.client.get_account_insights(summary.id, today.date())
            except AdPlatformError as e:
                logger.error(f"Sync: metrics fetch failed for account {summary.id}: {e}")
                result.errors.append({"account_id": summary.id, "error": str(e)})
                continue

            if await self._upsert_metric(db, account, today, details, insights):
                result.metrics_created += 1
            else:
                result.metrics_updated += 1

        await db.flush()
        result.synced_at = utcnow()
        logger.info(f"Sync complete: {result}")
        return result

    # ── Vendors ──────────────────────────────────────────────────────

    async def _ensure_sample_vendor(self, db: AsyncSession) -> Vendor:
        existing = await db.execute(select(Vendor).where(Vendor.name == SAMPLE_VENDOR_NAME).limit(1))
        vendor = existing.scalar_one_or_none()
        if vendor:
            return vendor
        vendor = Vendor(
            name=SAMPLE_VENDOR_NAME,
            contact_telegram=SAMPLE_VENDOR_CONTACT,
            business_manager_id=SAMPLE_BUSINESS_ID,
        )
        db.add(vendor)
        await db.flush()
        logger.info(f"Sync: created vendor '{vendor.name}'")
        return vendor

    async def _ensure_business_vendor(
        self,
        db: AsyncSession,
        summary: AccountSummary,
        owner_id: str,
        cache: dict[str, Vendor],
    ) -> Vendor:
        """Vendor keyed on the account's business id, falling back to the owner id."""
        business_id = summary.business_id or owner_id
        if business_id in cache:
            return cache[business_id]

        existing = await db.execute(
            select(Vendor).where(Vendor.business_manager_id == business_id).limit(1)
        )
        vendor = existing.scalar_one_or_none()
        if not vendor:
            vendor = Vendor(
                name=summary.business_name or "Unknown Vendor",
                business_manager_id=business_id,
            )
            db.add(vendor)
            await db.flush()
            logger.info(f"Sync: created vendor '{vendor.name}' for business {business_id}")

        cache[business_id] = vendor
        return vendor

    # ── Accounts & metrics ───────────────────────────────────────────

    async def _upsert_account(
        self, db: AsyncSession, summary: AccountSummary, vendor: Vendor,
    ) -> tuple[AdAccount, bool]:
        account = await db.get(AdAccount, summary.id)
        status = status_text(summary.account_status)

        if account:
            # Vendor linkage and timezone are fixed at creation
            account.name = summary.name
            account.status = status
            account.currency = summary.currency
            account.last_seen_at = utcnow()
            return account, False

        account = AdAccount(
            id=summary.id,
            name=summary.name,
            vendor_id=vendor.id,
            business_manager_id=vendor.business_manager_id,
            status=status,
            currency=summary.currency,
            timezone=summary.timezone_name or DEFAULT_TIMEZONE,
            last_seen_at=utcnow(),
        )
        db.add(account)
        return account, True

    async def _upsert_metric(
        self,
        db: AsyncSession,
        account: AdAccount,
        day: datetime,
        details: AccountDetails,
        insights: AccountInsights,
    ) -> bool:
        """Write the (account, day) metric row. Returns True when a row was created."""
        existing = await db.execute(
            select(AccountMetric).where(
                AccountMetric.ad_account_id == account.id,
                AccountMetric.date == day,
            )
        )
        metric = existing.scalar_one_or_none()
        created = metric is None
        if created:
            metric = AccountMetric(ad_account_id=account.id, date=day)
            db.add(metric)

        metric.spend = insights.spend
        metric.spend_cap = details.spend_cap
        metric.clicks = insights.clicks
        metric.impressions = insights.impressions
        metric.cpc = insights.cpc
        metric.balance = details.balance
        metric.status_at_fetch = status_text(details.account_status)
        metric.fetched_at = utcnow()
        return created
