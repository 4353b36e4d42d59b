"""
Ad Platform Client
Reads accounts, campaigns and insights from the Facebook Marketing (Graph) API
and forwards campaign status changes back to it. A simulated variant with the
same interface generates random data when no credentials are configured.
"""

import abc
import asyncio
import json
import logging
import random
import string
from datetime import date
from typing import Any, Optional

import httpx
from faker import Faker
from pydantic import BaseModel

from admonitor.config import Settings
from admonitor.models import AccountStatus, CampaignStatus

logger = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com"
PAGE_SIZE = 100
MAX_PAGES = 500

# Raw account_status codes reported by the platform
ACCOUNT_STATUS_CODES = {
    1: AccountStatus.ACTIVE,
    2: AccountStatus.DISABLED,
    3: AccountStatus.UNSETTLED,
    7: AccountStatus.PENDING_RISK_REVIEW,
    8: AccountStatus.PENDING_SETTLEMENT,
    9: AccountStatus.IN_GRACE_PERIOD,
    100: AccountStatus.PENDING_CLOSURE,
    101: AccountStatus.CLOSED,
    201: AccountStatus.ADVERTISER_DISABLED,
}


def status_text(status_code: Optional[int]) -> str:
    """Map a raw account status code to its name; unmapped codes are UNKNOWN."""
    return ACCOUNT_STATUS_CODES.get(status_code, AccountStatus.UNKNOWN).value


# ── Value types ───────────────────────────────────────────────────────

class AccountSummary(BaseModel):
    id: str
    name: str
    account_status: int
    currency: str
    timezone_id: Optional[int] = None
    timezone_name: Optional[str] = None
    business_id: Optional[str] = None
    business_name: Optional[str] = None

    @classmethod
    def from_graph(cls, data: dict) -> "AccountSummary":
        business = data.get("business") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "Unnamed Account",
            account_status=int(data.get("account_status") or 0),
            currency=data.get("currency") or "USD",
            timezone_id=data.get("timezone_id"),
            timezone_name=data.get("timezone_name"),
            business_id=str(business["id"]) if business.get("id") else None,
            business_name=business.get("name"),
        )


class AccountDetails(BaseModel):
    account_status: int
    spend_cap: float
    currency: str
    balance: float


class AccountInsights(BaseModel):
    spend: float
    clicks: int
    impressions: int
    cpc: float


class CampaignInfo(BaseModel):
    id: str
    name: str
    status: str
    effective_status: str


# ── Errors ────────────────────────────────────────────────────────────

class AdPlatformError(Exception):
    """A call to the ad platform failed."""

    def __init__(self, message: str, retryable: bool = False, status_code: Optional[int] = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class AdPlatformTimeoutError(AdPlatformError):
    """The ad platform did not answer within the request timeout."""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class AdPlatformNotFoundError(AdPlatformError):
    """The requested account or campaign does not exist on the platform."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


# ── Interface ─────────────────────────────────────────────────────────

class AdPlatformClient(abc.ABC):
    """Operations the sync engine and control actions consume."""

    @abc.abstractmethod
    async def list_accounts(self, owner_id: str) -> list[AccountSummary]:
        ...

    @abc.abstractmethod
    async def get_account_details(self, account_id: str) -> AccountDetails:
        ...

    @abc.abstractmethod
    async def get_account_insights(self, account_id: str, day: Optional[date] = None) -> AccountInsights:
        ...

    @abc.abstractmethod
    async def list_campaigns(self, account_id: str) -> list[CampaignInfo]:
        ...

    @abc.abstractmethod
    async def set_campaign_status(self, campaign_id: str, status: CampaignStatus) -> None:
        ...

    @abc.abstractmethod
    async def pause_all_campaigns(self, account_id: str) -> list[str]:
        """Pause every ACTIVE campaign of the account in one batch. Returns paused ids."""
        ...


# ══════════════════════════════════════════════════════════════════════
#  LIVE: Facebook Graph API
# ══════════════════════════════════════════════════════════════════════

class FacebookAdsClient(AdPlatformClient):
    """
    Wrapper around the Graph API endpoints used by the dashboard.
    Each instance is configured with an access token; every request uses a
    short-lived httpx client with the configured timeout.
    """

    def __init__(
        self,
        access_token: str,
        api_version: str = "v18.0",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"{GRAPH_URL}/{self.api_version}"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _account_path(account_id: str) -> str:
        return account_id if account_id.startswith("act_") else f"act_{account_id}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Make a single Graph API call and return the decoded JSON."""
        logger.info(f"Graph API {method} {endpoint}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
                response = await http.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    params=params,
                    json=body,
                    headers=self.headers,
                )
        except httpx.TimeoutException as e:
            logger.warning(f"Graph API timeout: {method} {endpoint}")
            raise AdPlatformTimeoutError(f"Timed out calling {endpoint}") from e
        except httpx.HTTPError as e:
            logger.error(f"Graph API transport error: {method} {endpoint} - {e}")
            raise AdPlatformError(f"Failed to call {endpoint}: {e}", retryable=True) from e

        if response.is_error:
            raise self._error_from_response(endpoint, response)
        try:
            return response.json()
        except ValueError as e:
            # e.g. an HTML page from a proxy or gateway
            logger.error(f"Graph API returned non-JSON body: {method} {endpoint} ({response.status_code})")
            raise AdPlatformError(f"Invalid response from {endpoint}", retryable=True) from e

    @staticmethod
    def _error_from_response(endpoint: str, response: httpx.Response) -> AdPlatformError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        error = (payload.get("error") if isinstance(payload, dict) else None) or {}
        message = error.get("message") or response.reason_phrase
        logger.error(f"Graph API error on {endpoint}: {response.status_code} {message}")
        # Code 100 / subcode 33: object does not exist or is not accessible
        if response.status_code == 404 or (error.get("code") == 100 and error.get("error_subcode") == 33):
            return AdPlatformNotFoundError(f"{endpoint}: {message}")
        return AdPlatformError(
            f"Facebook API error: {response.status_code} {message}",
            retryable=response.status_code >= 500 or response.status_code == 429,
            status_code=response.status_code,
        )

    # ── Paginated Query Helper ────────────────────────────────────────

    async def _paginated_get(self, endpoint: str, params: dict, max_pages: int = MAX_PAGES) -> list[dict]:
        """
        Follow cursor pagination (paging.cursors.after) until the platform
        stops sending paging.next. Hitting ``max_pages`` raises rather than
        returning a truncated list.
        """
        items: list[dict] = []
        after = None
        for page in range(1, max_pages + 1):
            page_params = {**params, "limit": PAGE_SIZE}
            if after:
                page_params["after"] = after
            result = await self._request("GET", endpoint, params=page_params)
            if not isinstance(result, dict):
                raise AdPlatformError(f"Unexpected response shape from {endpoint}", retryable=True)
            data = result.get("data") or []
            items.extend(data)
            paging = result.get("paging") or {}
            logger.debug(f"_paginated_get({endpoint}) page {page}: {len(data)} items")
            if not paging.get("next"):
                return items
            after = (paging.get("cursors") or {}).get("after")
            if not after:
                raise AdPlatformError(f"{endpoint}: next page advertised without a cursor", retryable=True)
        raise AdPlatformError(
            f"{endpoint}: more than {max_pages} pages of {PAGE_SIZE}, refusing a partial result"
        )

    # ── Operations ────────────────────────────────────────────────────

    async def list_accounts(self, owner_id: str) -> list[AccountSummary]:
        rows = await self._paginated_get(f"/{owner_id}/client_ad_accounts", {
            "fields": "id,name,account_status,currency,timezone_id,timezone_name,business",
        })
        return [AccountSummary.from_graph(row) for row in rows]

    async def get_account_details(self, account_id: str) -> AccountDetails:
        data = await self._request("GET", f"/{self._account_path(account_id)}", params={
            "fields": "account_status,spend_cap,currency,balance",
        })
        return AccountDetails(
            account_status=int(data.get("account_status") or 0),
            spend_cap=float(data.get("spend_cap") or 0),
            currency=data.get("currency") or "USD",
            balance=float(data.get("balance") or 0),
        )

    async def get_account_insights(self, account_id: str, day: Optional[date] = None) -> AccountInsights:
        day = (day or date.today()).isoformat()
        result = await self._request("GET", f"/{self._account_path(account_id)}/insights", params={
            "time_range": json.dumps({"since": day, "until": day}),
            "fields": "spend,clicks,impressions,cpc",
        })
        rows = result.get("data") or [{}]
        data = rows[0]
        return AccountInsights(
            spend=float(data.get("spend") or 0),
            clicks=int(data.get("clicks") or 0),
            impressions=int(data.get("impressions") or 0),
            cpc=float(data.get("cpc") or 0),
        )

    async def list_campaigns(self, account_id: str) -> list[CampaignInfo]:
        rows = await self._paginated_get(f"/{self._account_path(account_id)}/campaigns", {
            "fields": "id,name,status,effective_status",
        })
        return [
            CampaignInfo(
                id=str(row["id"]),
                name=row.get("name") or "",
                status=row.get("status") or "",
                effective_status=row.get("effective_status") or row.get("status") or "",
            )
            for row in rows
        ]

    async def set_campaign_status(self, campaign_id: str, status: CampaignStatus) -> None:
        result = await self._request("POST", f"/{campaign_id}", body={"status": CampaignStatus(status).value})
        if isinstance(result, dict) and result.get("success") is False:
            raise AdPlatformError(f"Platform refused status change for campaign {campaign_id}")

    async def pause_all_campaigns(self, account_id: str) -> list[str]:
        campaigns = await self.list_campaigns(account_id)
        active = [c for c in campaigns if c.status == CampaignStatus.ACTIVE.value]
        if not active:
            logger.info(f"pause_all_campaigns({account_id}): no active campaigns")
            return []

        batch = [
            {"method": "POST", "relative_url": c.id, "body": f"status={CampaignStatus.PAUSED.value}"}
            for c in active
        ]
        responses = await self._request("POST", "/", body={"batch": batch})
        if not isinstance(responses, list) or len(responses) != len(active):
            raise AdPlatformError(f"Unexpected batch response while pausing campaigns of {account_id}")

        failed = [
            c.id for c, item in zip(active, responses)
            if not isinstance(item, dict) or item.get("code") != 200
        ]
        if failed:
            raise AdPlatformError(f"Failed to pause campaigns {', '.join(failed)} of {account_id}")
        logger.info(f"pause_all_campaigns({account_id}): paused {len(active)} campaigns")
        return [c.id for c in active]


# ══════════════════════════════════════════════════════════════════════
#  SIMULATED: Random, schema-consistent data
# ══════════════════════════════════════════════════════════════════════

class SimulatedAdsClient(AdPlatformClient):
    """
    Random-data stand-in for the Graph API. The account roster and each
    account's campaigns are generated once per instance, so repeated syncs
    see the same ids; details and insights are re-rolled on every call.
    """

    NAME_SUFFIXES = ["Pro", "Max", "Plus", "Ultra", "Elite", "Premium"]

    def __init__(self, seed: Optional[int] = None, delay: float = 0.1):
        self._rng = random.Random(seed)
        self._fake = Faker()
        if seed is not None:
            self._fake.seed_instance(seed)
        self.delay = delay
        self._accounts: Optional[list[AccountSummary]] = None
        self._campaigns: dict[str, list[CampaignInfo]] = {}

    def _random_id(self, prefix: str) -> str:
        return prefix + "".join(self._rng.choices(string.ascii_lowercase + string.digits, k=9))

    def _random_name(self, prefix: str) -> str:
        return f"{prefix} {self._rng.choice(self.NAME_SUFFIXES)}"

    async def list_accounts(self, owner_id: str) -> list[AccountSummary]:
        if self._accounts is None:
            self._accounts = [
                AccountSummary(
                    id=self._random_id("act_"),
                    name=self._random_name(self._fake.company()),
                    account_status=self._rng.randint(1, 9),
                    currency="USD",
                    timezone_id=1,
                    timezone_name="UTC",
                    business_name="Test Business",
                )
                for _ in range(self._rng.randint(3, 8))
            ]
        return list(self._accounts)

    async def get_account_details(self, account_id: str) -> AccountDetails:
        return AccountDetails(
            account_status=self._rng.randint(1, 9),
            spend_cap=self._rng.uniform(100, 10000),
            currency="USD",
            balance=self._rng.uniform(-100, 5000),
        )

    async def get_account_insights(self, account_id: str, day: Optional[date] = None) -> AccountInsights:
        clicks = self._rng.randint(0, 1000)
        spend = self._rng.uniform(0, 500)
        return AccountInsights(
            spend=spend,
            clicks=clicks,
            impressions=self._rng.randint(clicks * 10, clicks * 100),
            cpc=spend / clicks if clicks > 0 else 0.0,
        )

    async def list_campaigns(self, account_id: str) -> list[CampaignInfo]:
        if account_id not in self._campaigns:
            campaigns = []
            for _ in range(self._rng.randint(2, 6)):
                status = CampaignStatus.ACTIVE.value if self._rng.random() > 0.3 else CampaignStatus.PAUSED.value
                campaigns.append(CampaignInfo(
                    id=self._random_id("camp_"),
                    name=self._random_name(self._fake.catch_phrase()),
                    status=status,
                    effective_status=status,
                ))
            self._campaigns[account_id] = campaigns
        return [c.model_copy() for c in self._campaigns[account_id]]

    def _find_campaign(self, campaign_id: str) -> Optional[CampaignInfo]:
        for campaigns in self._campaigns.values():
            for campaign in campaigns:
                if campaign.id == campaign_id:
                    return campaign
        return None

    async def set_campaign_status(self, campaign_id: str, status: CampaignStatus) -> None:
        await asyncio.sleep(self.delay)
        campaign = self._find_campaign(campaign_id)
        if campaign is None:
            raise AdPlatformNotFoundError(f"Campaign {campaign_id} not found")
        campaign.status = campaign.effective_status = CampaignStatus(status).value

    async def pause_all_campaigns(self, account_id: str) -> list[str]:
        await asyncio.sleep(self.delay * 2)
        if account_id not in self._campaigns:
            await self.list_campaigns(account_id)
        paused = []
        for campaign in self._campaigns[account_id]:
            if campaign.status == CampaignStatus.ACTIVE.value:
                campaign.status = campaign.effective_status = CampaignStatus.PAUSED.value
                paused.append(campaign.id)
        return paused


def create_platform_client(settings: Settings) -> AdPlatformClient:
    """Factory: simulated client in simulation mode, Graph API client otherwise."""
    if settings.is_simulation:
        logger.info("Ad platform: simulation mode")
        return SimulatedAdsClient()
    access_token = settings.require_access_token()
    logger.info(f"Ad platform: live mode (Graph API {settings.fb_api_version})")
    return FacebookAdsClient(
        access_token=access_token,
        api_version=settings.fb_api_version,
        timeout=settings.fb_request_timeout,
    )
