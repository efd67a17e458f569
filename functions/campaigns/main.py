"""
Campaigns Cloud Function

HTTP endpoints for creating and fetching marketing campaigns. Campaigns
are kept in a per-instance registry; this function is a small end-to-end
consumer of the cloudfn helpers.
"""
import os
import re
import threading
from typing import Dict, List, Optional

import functions_framework
from flask import Request
from pydantic import Field

from cloudfn import errors
from cloudfn.http_utils import (
    FnHttper,
    get_path_id,
    get_post_data,
    new_ctx,
    parse_origins,
)
from cloudfn.logging_config import CloudFunctionLogger
from cloudfn.schema import Payload, optional_field, required_field

logger = CloudFunctionLogger("campaigns")

CORS_ORIGINS = parse_origins(
    os.environ.get("CORS_ORIGINS", "http://localhost:3000"))

httper = FnHttper(CORS_ORIGINS)

_campaigns: Dict[str, "Campaign"] = {}
_campaigns_lock = threading.Lock()


class Campaign(Payload):
    name: Optional[str] = required_field()
    budget_cents: int = optional_field(alias="budgetCents", default=0, ge=0)
    channels: List[str] = optional_field(default_factory=list)
    id: str = optional_field(default="")


class CreateCampaignReq(Payload):
    campaign: Optional[Campaign] = required_field()
    dry_run: bool = optional_field(alias="dryRun", default=False)


class CreateCampaignRes(Payload):
    campaign: Campaign
    created: bool = Field(default=True)


def slugify(name: str) -> str:
    """Derive a campaign id from its name."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def reset_campaigns():
    """Clear the campaign registry (for testing)."""
    with _campaigns_lock:
        _campaigns.clear()


def save_campaign(campaign: Campaign, dry_run: bool = False) -> Campaign:
    campaign_id = slugify(campaign.name or "")
    if not campaign_id:
        raise errors.new_bad_request("campaign name has no usable characters")

    stored = campaign.model_copy(update={"id": campaign_id})
    if dry_run:
        return stored

    with _campaigns_lock:
        if campaign_id in _campaigns:
            raise errors.new(409, f"campaign {campaign_id!r} already exists")
        _campaigns[campaign_id] = stored
    return stored


def find_campaign(campaign_id: str) -> Campaign:
    with _campaigns_lock:
        campaign = _campaigns.get(campaign_id)
    if campaign is None:
        raise errors.new_not_found("campaign not found", detail=f"id={campaign_id}")
    return campaign


@functions_framework.http
@httper.handler(methods=["POST"], status=201)
def create_campaign(request: Request):
    """
    HTTP endpoint to create a campaign.

    POST /create-campaign
    Body: {
        "campaign": {"name": "Spring Sale", "budgetCents": 5000,
                     "channels": ["email"]},
        "dryRun": false (optional)
    }

    Returns:
        201: {"campaign": {...}, "created": true}
        400: {"error": {"message": "..."}}
        405: {"error": {"message": "method not allowed"}}
        409: {"error": {"message": "campaign '...' already exists"}}
    """
    ctx = new_ctx(request)
    try:
        req = get_post_data(request, CreateCampaignReq)
        campaign = save_campaign(req.campaign, req.dry_run)
    except errors.AppError as err:
        raise errors.wrap("create campaign", err) from err

    logger.info("Campaign created", campaign_id=campaign.id,
                dry_run=req.dry_run, trace_id=ctx.trace_id)
    return CreateCampaignRes(campaign=campaign, created=not req.dry_run)


@functions_framework.http
@httper.handler(methods=["GET"])
def get_campaign(request: Request):
    """
    HTTP endpoint to fetch a campaign.

    GET /<campaign_id>

    Returns:
        200: {"name": ..., "budgetCents": ..., "channels": [...], "id": ...}
        404: {"error": {"message": "campaign not found"}}
    """
    campaign_id = get_path_id(request)
    if not campaign_id:
        raise errors.new_bad_request("missing campaign id")
    return find_campaign(campaign_id)
