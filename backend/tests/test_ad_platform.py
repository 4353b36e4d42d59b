"""
Tests for the ad platform clients: status mapping, Graph API request/response
handling (via httpx.MockTransport) and the simulated client.
"""

import json
from datetime import date

import httpx
import pytest

from admonitor.ad_platform import (
    AdPlatformError, AdPlatformNotFoundError, AdPlatformTimeoutError, FacebookAdsClient,
    SimulatedAdsClient, create_platform_client, status_text,
)
from admonitor.config import ConfigurationError, Settings
from admonitor.models import CampaignStatus


def _graph_client(handler, requests=None):
    def recording(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    return FacebookAdsClient("token-123", transport=httpx.MockTransport(recording))


# ── Status mapping ────────────────────────────────────────────────────

@pytest.mark.parametrize("code,expected", [
    (1, "ACTIVE"),
    (2, "DISABLED"),
    (3, "UNSETTLED"),
    (9, "IN_GRACE_PERIOD"),
    (101, "CLOSED"),
    (201, "ADVERTISER_DISABLED"),
    (4, "UNKNOWN"),
    (None, "UNKNOWN"),
])
def test_status_text(code, expected):
    assert status_text(code) == expected


# ── Graph API client ──────────────────────────────────────────────────

@pytest.mark.anyio
async def test_list_accounts_follows_cursor_pages():
    requests = []

    def handler(request):
        if "after" not in request.url.params:
            return httpx.Response(200, json={
                "data": [{"id": "act_1", "name": "One", "account_status": 1, "currency": "USD",
                          "business": {"id": "555", "name": "Acme BM"}}],
                "paging": {"cursors": {"after": "cur1"}, "next": "https://graph.facebook.com/next"},
            })
        return httpx.Response(200, json={
            "data": [{"id": "act_2", "name": "Two", "account_status": 2, "currency": "EUR",
                      "timezone_name": "Europe/Berlin"}],
            "paging": {"cursors": {"after": "cur2"}},
        })

    client = _graph_client(handler, requests)
    accounts = await client.list_accounts("555")

    assert [a.id for a in accounts] == ["act_1", "act_2"]
    assert accounts[0].business_id == "555"
    assert accounts[0].business_name == "Acme BM"
    assert accounts[1].timezone_name == "Europe/Berlin"
    assert len(requests) == 2
    assert requests[0].url.path == "/v18.0/555/client_ad_accounts"
    assert requests[1].url.params["after"] == "cur1"
    assert requests[0].headers["Authorization"] == "Bearer token-123"


@pytest.mark.anyio
async def test_account_details_adds_act_prefix():
    requests = []

    def handler(request):
        return httpx.Response(200, json={"account_status": 3, "spend_cap": "5000", "currency": "USD", "balance": "120.5"})

    details = await _graph_client(handler, requests).get_account_details("12345")
    assert requests[0].url.path == "/v18.0/act_12345"
    assert details.account_status == 3
    assert details.spend_cap == 5000.0
    assert details.balance == 120.5


@pytest.mark.anyio
async def test_insights_for_a_single_day():
    requests = []

    def handler(request):
        return httpx.Response(200, json={"data": [{"spend": "12.34", "clicks": "10", "impressions": "2000", "cpc": "1.234"}]})

    insights = await _graph_client(handler, requests).get_account_insights("act_1", date(2024, 5, 1))
    assert insights.spend == 12.34
    assert insights.clicks == 10
    assert insights.impressions == 2000
    assert insights.cpc == 1.234
    assert requests[0].url.path == "/v18.0/act_1/insights"
    assert json.loads(requests[0].url.params["time_range"]) == {"since": "2024-05-01", "until": "2024-05-01"}


@pytest.mark.anyio
async def test_insights_without_activity_are_zero():
    insights = await _graph_client(lambda r: httpx.Response(200, json={"data": []})).get_account_insights("act_1")
    assert (insights.spend, insights.clicks, insights.impressions, insights.cpc) == (0.0, 0, 0, 0.0)


@pytest.mark.anyio
async def test_set_campaign_status_posts_status():
    requests = []
    client = _graph_client(lambda r: httpx.Response(200, json={"success": True}), requests)

    await client.set_campaign_status("c1", CampaignStatus.PAUSED)

    assert requests[0].method == "POST"
    assert requests[0].url.path == "/v18.0/c1"
    assert json.loads(requests[0].content) == {"status": "PAUSED"}


@pytest.mark.anyio
async def test_set_campaign_status_refused():
    client = _graph_client(lambda r: httpx.Response(200, json={"success": False}))
    with pytest.raises(AdPlatformError):
        await client.set_campaign_status("c1", CampaignStatus.ACTIVE)


def _campaigns_response():
    return httpx.Response(200, json={"data": [
        {"id": "c1", "name": "Spring", "status": "ACTIVE", "effective_status": "ACTIVE"},
        {"id": "c2", "name": "Summer", "status": "PAUSED", "effective_status": "PAUSED"},
        {"id": "c3", "name": "Autumn", "status": "ACTIVE", "effective_status": "ACTIVE"},
    ]})


@pytest.mark.anyio
async def test_pause_all_sends_one_batch_for_active_campaigns():
    requests = []

    def handler(request):
        if request.method == "GET":
            return _campaigns_response()
        return httpx.Response(200, json=[{"code": 200, "body": '{"success":true}'}] * 2)

    paused = await _graph_client(handler, requests).pause_all_campaigns("act_1")

    assert paused == ["c1", "c3"]
    batch_requests = [r for r in requests if r.method == "POST"]
    assert len(batch_requests) == 1
    assert batch_requests[0].url.path == "/v18.0/"
    batch = json.loads(batch_requests[0].content)["batch"]
    assert [item["relative_url"] for item in batch] == ["c1", "c3"]
    assert all(item["body"] == "status=PAUSED" for item in batch)


@pytest.mark.anyio
async def test_pause_all_reports_failed_items():
    def handler(request):
        if request.method == "GET":
            return _campaigns_response()
        return httpx.Response(200, json=[{"code": 200}, {"code": 400, "body": '{"error":{}}'}])

    with pytest.raises(AdPlatformError, match="c3"):
        await _graph_client(handler).pause_all_campaigns("act_1")


@pytest.mark.anyio
async def test_pause_all_without_active_campaigns_skips_batch():
    requests = []

    def handler(request):
        return httpx.Response(200, json={"data": [{"id": "c2", "name": "Summer", "status": "PAUSED"}]})

    assert await _graph_client(handler, requests).pause_all_campaigns("act_1") == []
    assert [r.method for r in requests] == ["GET"]


@pytest.mark.anyio
async def test_timeout_is_retryable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(AdPlatformTimeoutError) as exc_info:
        await _graph_client(handler).get_account_details("act_1")
    assert exc_info.value.retryable is True


@pytest.mark.anyio
async def test_missing_object_is_not_found():
    def handler(request):
        return httpx.Response(400, json={"error": {
            "message": "Unsupported get request", "code": 100, "error_subcode": 33,
        }})

    with pytest.raises(AdPlatformNotFoundError):
        await _graph_client(handler).get_account_details("act_404")


@pytest.mark.anyio
async def test_server_error_is_retryable_rate_limit_too():
    client = _graph_client(lambda r: httpx.Response(503, text="unavailable"))
    with pytest.raises(AdPlatformError) as exc_info:
        await client.list_campaigns("act_1")
    assert exc_info.value.retryable is True
    assert exc_info.value.status_code == 503

    client = _graph_client(lambda r: httpx.Response(403, json={"error": {"message": "Permissions error", "code": 200}}))
    with pytest.raises(AdPlatformError) as exc_info:
        await client.list_campaigns("act_1")
    assert exc_info.value.retryable is False
    assert not isinstance(exc_info.value, AdPlatformNotFoundError)


# ── Simulated client ──────────────────────────────────────────────────

@pytest.mark.anyio
async def test_simulated_roster_is_stable():
    client = SimulatedAdsClient(seed=1, delay=0)
    first = await client.list_accounts("123456789")
    second = await client.list_accounts("123456789")

    assert 3 <= len(first) <= 8
    assert [a.id for a in first] == [a.id for a in second]
    for account in first:
        assert account.id.startswith("act_")
        assert len(account.id) == len("act_") + 9
        assert account.currency == "USD"
        assert account.timezone_name == "UTC"
        assert account.business_name == "Test Business"


@pytest.mark.anyio
async def test_simulated_insights_cpc():
    client = SimulatedAdsClient(seed=2, delay=0)
    for _ in range(20):
        insights = await client.get_account_insights("act_x")
        if insights.clicks:
            assert insights.cpc == pytest.approx(insights.spend / insights.clicks)
        else:
            assert insights.cpc == 0.0
        assert insights.clicks * 10 <= insights.impressions <= insights.clicks * 100


@pytest.mark.anyio
async def test_simulated_campaign_status_changes_stick():
    client = SimulatedAdsClient(seed=3, delay=0)
    campaigns = await client.list_campaigns("act_x")
    assert 2 <= len(campaigns) <= 6

    target = campaigns[0]
    new_status = CampaignStatus.PAUSED if target.status == "ACTIVE" else CampaignStatus.ACTIVE
    await client.set_campaign_status(target.id, new_status)

    refreshed = {c.id: c for c in await client.list_campaigns("act_x")}
    assert refreshed[target.id].status == new_status.value


@pytest.mark.anyio
async def test_simulated_unknown_campaign():
    with pytest.raises(AdPlatformNotFoundError):
        await SimulatedAdsClient(seed=4, delay=0).set_campaign_status("camp_missing", CampaignStatus.PAUSED)


@pytest.mark.anyio
async def test_simulated_pause_all():
    client = SimulatedAdsClient(seed=5, delay=0)
    active = [c.id for c in await client.list_campaigns("act_x") if c.status == "ACTIVE"]

    assert await client.pause_all_campaigns("act_x") == active
    assert all(c.status == "PAUSED" for c in await client.list_campaigns("act_x"))
    assert await client.pause_all_campaigns("act_x") == []


def test_factory_picks_client_by_mode():
    assert isinstance(create_platform_client(Settings(app_mode="simulation")), SimulatedAdsClient)

    live = create_platform_client(Settings(app_mode="live", fb_access_token="tok", fb_api_version="v19.0"))
    assert isinstance(live, FacebookAdsClient)
    assert live.base_url == "https://graph.facebook.com/v19.0"

    with pytest.raises(ConfigurationError):
        create_platform_client(Settings(app_mode="live", fb_access_token=""))


@pytest.mark.anyio
async def test_pause_all_reads_every_campaign_page():
    pages = 25
    requests = []

    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json=[{"code": 200}] * pages)
        page = int(request.url.params.get("after", "0"))
        body = {"data": [{"id": f"c{page}", "name": f"Campaign {page}", "status": "ACTIVE"}]}
        if page + 1 < pages:
            body["paging"] = {"cursors": {"after": str(page + 1)}, "next": "https://graph.facebook.com/next"}
        return httpx.Response(200, json=body)

    paused = await _graph_client(handler, requests).pause_all_campaigns("act_1")

    assert paused == [f"c{i}" for i in range(pages)]
    gets = [r for r in requests if r.method == "GET"]
    assert len(gets) == pages
    assert all(r.url.params["limit"] == "100" for r in gets)


@pytest.mark.anyio
async def test_page_cap_raises_instead_of_truncating():
    def handler(request):
        return httpx.Response(200, json={
            "data": [{"id": "c1", "name": "Endless", "status": "ACTIVE"}],
            "paging": {"cursors": {"after": "more"}, "next": "https://graph.facebook.com/next"},
        })

    with pytest.raises(AdPlatformError, match="refusing a partial result"):
        await _graph_client(handler)._paginated_get("/act_1/campaigns", {}, max_pages=3)


@pytest.mark.anyio
async def test_next_page_without_cursor_raises():
    def handler(request):
        return httpx.Response(200, json={"data": [], "paging": {"next": "https://graph.facebook.com/next"}})

    with pytest.raises(AdPlatformError):
        await _graph_client(handler).list_campaigns("act_1")


@pytest.mark.anyio
async def test_non_json_success_body_is_platform_error():
    client = _graph_client(lambda r: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(AdPlatformError) as exc_info:
        await client.get_account_details("act_1")
    assert exc_info.value.retryable is True
