"""
Tests for the typed action payloads stored on audit rows.
"""

from datetime import datetime

from admonitor.models import CampaignStatus
from admonitor.payloads import (
    OtherPayload, PauseAllCampaignsPayload, SetCampaignStatusPayload, dump_payload, load_payload,
)


def test_set_status_payload_is_json_ready():
    payload = SetCampaignStatusPayload(status=CampaignStatus.PAUSED, timestamp=datetime(2024, 5, 1, 12, 30))
    data = dump_payload(payload)
    assert data == {"kind": "set_campaign_status", "status": "PAUSED", "timestamp": "2024-05-01T12:30:00"}

    loaded = load_payload(data)
    assert isinstance(loaded, SetCampaignStatusPayload)
    assert loaded.status is CampaignStatus.PAUSED


def test_pause_all_payload_keeps_campaign_ids():
    data = dump_payload(PauseAllCampaignsPayload(timestamp=datetime(2024, 5, 1), paused_campaign_ids=["c1", "c2"]))
    loaded = load_payload(data)
    assert isinstance(loaded, PauseAllCampaignsPayload)
    assert loaded.paused_campaign_ids == ["c1", "c2"]


def test_pause_all_payload_with_nothing_paused():
    loaded = load_payload({"kind": "pause_all_campaigns", "timestamp": "2024-05-01T00:00:00"})
    assert isinstance(loaded, PauseAllCampaignsPayload)
    assert loaded.paused_campaign_ids == []


def test_unknown_kind_falls_back_to_other():
    loaded = load_payload({"kind": "budget_change", "amount": 10})
    assert isinstance(loaded, OtherPayload)
    assert '"budget_change"' in loaded.raw


def test_invalid_status_falls_back_to_other():
    loaded = load_payload({"kind": "set_campaign_status", "status": "DELETED", "timestamp": "2024-05-01T00:00:00"})
    assert isinstance(loaded, OtherPayload)


def test_text_payloads():
    assert isinstance(load_payload('{"kind": "pause_all_campaigns", "timestamp": "2024-05-01T00:00:00"}'),
                      PauseAllCampaignsPayload)
    assert load_payload("not json") == OtherPayload(raw="not json")


def test_missing_payload():
    assert load_payload(None) == OtherPayload(raw="null")
