"""
Typed payloads stored on AccountAction rows.

Each known action kind has its own schema; anything that does not match one
is read back as ``OtherPayload`` carrying the raw JSON text.
"""

import json
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from admonitor.models import CampaignStatus


class SetCampaignStatusPayload(BaseModel):
    kind: Literal["set_campaign_status"] = "set_campaign_status"
    status: CampaignStatus
    timestamp: datetime


class PauseAllCampaignsPayload(BaseModel):
    kind: Literal["pause_all_campaigns"] = "pause_all_campaigns"
    timestamp: datetime
    paused_campaign_ids: list[str] = Field(default_factory=list)


class OtherPayload(BaseModel):
    kind: Literal["other"] = "other"
    raw: str


ActionPayload = Annotated[
    Union[SetCampaignStatusPayload, PauseAllCampaignsPayload, OtherPayload],
    Field(discriminator="kind"),
]

_payload_adapter = TypeAdapter(ActionPayload)


def dump_payload(payload: ActionPayload) -> dict:
    """Serialize a payload for the JSON column."""
    return payload.model_dump(mode="json")


def load_payload(data: Optional[Union[dict, str]]) -> ActionPayload:
    """Parse a stored payload, falling back to OtherPayload for unknown shapes."""
    if data is None:
        return OtherPayload(raw="null")
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return OtherPayload(raw=data)
    try:
        return _payload_adapter.validate_python(data)
    except ValidationError:
        return OtherPayload(raw=json.dumps(data, default=str))
