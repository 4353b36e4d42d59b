"""
Accounts Router: Stored ad accounts with their vendor and metrics, live
campaigns from the ad platform, the per-account audit log, and Pause All.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from admonitor.ad_platform import AdPlatformClient, AdPlatformError
from admonitor.auth import require_user
from admonitor.database import get_db
from admonitor.dependencies import get_control_service, get_platform_client
from admonitor.models import AdAccount, AccountMetric, AccountAction
from admonitor.payloads import load_payload
from admonitor.services.auth_service import Identity
from admonitor.services.control_service import ControlService, TargetNotFoundError
from admonitor.utils import isoformat_or_none, platform_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()

UNKNOWN_ACCOUNT = "unknown"


def _account_dict(account: AdAccount) -> dict:
    return {
        "id": account.id,
        "name": account.name,
        "vendor": account.vendor.name if account.vendor else "Unknown",
        "business_manager_id": account.business_manager_id,
        "status": account.status,
        "currency": account.currency,
        "timezone": account.timezone,
        "last_seen_at": isoformat_or_none(account.last_seen_at),
        "created_at": isoformat_or_none(account.created_at),
    }


def _metric_dict(m: AccountMetric) -> dict:
    return {
        "id": str(m.id),
        "ad_account_id": m.ad_account_id,
        "date": m.date.date().isoformat(),
        "spend": m.spend,
        "spend_cap": m.spend_cap,
        "clicks": m.clicks,
        "impressions": m.impressions,
        "cpc": m.cpc,
        "balance": m.balance,
        "status_at_fetch": m.status_at_fetch,
        "fetched_at": isoformat_or_none(m.fetched_at),
    }


def action_dict(a: AccountAction) -> dict:
    return {
        "id": str(a.id),
        "performed_by": a.performed_by,
        "ad_account_id": a.ad_account_id or UNKNOWN_ACCOUNT,
        "target_type": a.target_type,
        "target_id": a.target_id,
        "action": a.action,
        "payload": load_payload(a.payload).model_dump(mode="json"),
        "created_at": isoformat_or_none(a.created_at),
    }


async def _get_account(db: AsyncSession, account_id: str) -> AdAccount:
    result = await db.execute(
        select(AdAccount).options(selectinload(AdAccount.vendor)).where(AdAccount.id == account_id)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("")
@router.get("/")
async def list_accounts(db: AsyncSession = Depends(get_db)):
    """All stored accounts, newest first, each with its latest daily metric."""
    result = await db.execute(
        select(AdAccount).options(selectinload(AdAccount.vendor)).order_by(AdAccount.created_at.desc())
    )
    accounts = result.scalars().all()

    latest = (
        select(AccountMetric.ad_account_id, func.max(AccountMetric.date).label("max_date"))
        .group_by(AccountMetric.ad_account_id)
        .subquery()
    )
    metric_rows = await db.execute(
        select(AccountMetric).join(
            latest,
            (AccountMetric.ad_account_id == latest.c.ad_account_id)
            & (AccountMetric.date == latest.c.max_date),
        )
    )
    latest_by_account = {m.ad_account_id: m for m in metric_rows.scalars().all()}

    return [
        {
            **_account_dict(a),
            "latest_metric": _metric_dict(latest_by_account[a.id]) if a.id in latest_by_account else None,
        }
        for a in accounts
    ]


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    client: AdPlatformClient = Depends(get_platform_client),
):
    """Stored account, its live campaigns, and its 10 most recent metric rows."""
    account = await _get_account(db, account_id)

    try:
        campaigns = await client.list_campaigns(account_id)
    except AdPlatformError as e:
        raise platform_http_exception(e, "Failed to load campaigns from the ad platform.")

    metrics = await db.execute(
        select(AccountMetric)
        .where(AccountMetric.ad_account_id == account_id)
        .order_by(AccountMetric.fetched_at.desc())
        .limit(10)
    )
    return {
        "account": _account_dict(account),
        "campaigns": [c.model_dump() for c in campaigns],
        "metrics": [_metric_dict(m) for m in metrics.scalars().all()],
    }


@router.get("/{account_id}/actions")
async def list_account_actions(
    account_id: str,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Audit log entries for an account, newest first."""
    await _get_account(db, account_id)
    result = await db.execute(
        select(AccountAction)
        .where(AccountAction.ad_account_id == account_id)
        .order_by(AccountAction.created_at.desc())
        .limit(limit)
    )
    actions = result.scalars().all()
    return {"actions": [action_dict(a) for a in actions], "count": len(actions)}


@router.post("/{account_id}/pause-all")
async def pause_all_campaigns(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    user: Identity = Depends(require_user),
    service: ControlService = Depends(get_control_service),
):
    """Pause every active campaign on the account and record the action."""
    try:
        action = await service.pause_all_campaigns(db, account_id, performed_by=user.username)
    except TargetNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")
    except AdPlatformError as e:
        raise platform_http_exception(e, "Failed to pause campaigns. Please try again.")

    return {
        "success": True,
        "message": "All campaigns paused successfully",
        "action": action_dict(action),
    }
