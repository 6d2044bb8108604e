"""Campaign creation, browsing, editing and deletion."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog

from marketplace.audit import AuditLogger, EventType
from marketplace.domain.errors import (
    ConflictError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Campaign, Profile
from marketplace.domain.types import CampaignStatus, UserRole
from marketplace.services.common import (
    new_id,
    now_timestamp,
    page_window,
    pagination,
    require_found,
    require_role,
)
from marketplace.state_machine import can_change_campaign_status
from marketplace.store import Repositories
from marketplace.store.base import Filters
from marketplace.timeutil import parse_timestamp

logger = structlog.get_logger()

EDITABLE_CAMPAIGN_FIELDS = frozenset(
    {
        "title",
        "description",
        "requirements",
        "budget_min",
        "budget_max",
        "deliverables",
        "platforms",
        "target_audience",
        "start_date",
        "end_date",
        "application_deadline",
        "required_influencers",
    }
)

# columns a partial update may not clear
REQUIRED_CAMPAIGN_FIELDS = frozenset(
    {"title", "description", "deliverables", "platforms", "required_influencers"}
)


def validate_campaign_fields(fields: dict[str, Any]) -> None:
    """Check date ordering and budget range on a full set of campaign fields.

    Raises:
        ValidationFailedError: On the first rule violated.
    """
    if not (fields.get("title") or "").strip() or not (fields.get("description") or "").strip():
        raise ValidationFailedError("Title and description are required")

    start, end = fields.get("start_date"), fields.get("end_date")
    deadline = fields.get("application_deadline")
    try:
        if start and end and parse_timestamp(start) > parse_timestamp(end):
            raise ValidationFailedError("Start date must be before end date")
        if deadline and start and parse_timestamp(deadline) > parse_timestamp(start):
            raise ValidationFailedError("Application deadline must be before start date")
    except ValueError as exc:
        raise ValidationFailedError("Invalid date format") from exc

    budget_min: Decimal | None = fields.get("budget_min")
    budget_max: Decimal | None = fields.get("budget_max")
    if budget_min is not None and budget_min < 0:
        raise ValidationFailedError("Budget cannot be negative")
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValidationFailedError("Minimum budget cannot exceed maximum budget")
    required = fields.get("required_influencers", 1)
    if required is None or required < 1:
        raise ValidationFailedError("At least one influencer is required")


class CampaignService:
    """Business-owned campaigns and the public campaign browser."""

    def __init__(self, repos: Repositories, audit: AuditLogger) -> None:
        self._repos = repos
        self._audit = audit

    def create(self, actor: Profile, data: dict[str, Any]) -> Campaign:
        require_role(actor, [UserRole.BUSINESS], "Only businesses can create campaigns")
        fields = {k: v for k, v in data.items() if k in EDITABLE_CAMPAIGN_FIELDS}
        if fields.get("required_influencers") is None:
            fields["required_influencers"] = 1
        validate_campaign_fields(fields)

        now = now_timestamp()
        with self._repos.db.transaction():
            campaign = self._repos.campaigns.insert(
                {
                    **fields,
                    "id": new_id(),
                    "business_id": actor.id,
                    "status": CampaignStatus.ACTIVE,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        logger.info("campaign_created", campaign_id=campaign.id, business_id=actor.id)
        return campaign

    def list(
        self,
        *,
        status: CampaignStatus | None = None,
        business_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """List campaigns newest first.

        Without ``business_id`` this is the public browser and only active
        campaigns are shown regardless of ``status``.
        """
        page, limit = page_window(page, limit)
        filters = Filters()
        if business_id is None:
            filters.equal("status", CampaignStatus.ACTIVE)
        else:
            filters.equal("business_id", business_id).equal("status", status)
        items, total = self._repos.campaigns.page(filters, page, limit)
        return {"campaigns": items, "pagination": pagination(page, limit, total)}

    def get(self, campaign_id: str) -> Campaign:
        return require_found(self._repos.campaigns.get(campaign_id), "Campaign not found")

    def update(self, actor: Profile, campaign_id: str, data: dict[str, Any]) -> Campaign:
        """Apply a partial update from the campaign owner.

        Raises:
            NotFoundError: If the campaign does not exist.
            PermissionDeniedError: If the caller does not own it.
            ValidationFailedError: On invalid fields or a disallowed status change.
        """
        with self._repos.db.transaction():
            campaign = self._owned(actor, campaign_id)
            changes = {k: v for k, v in data.items() if k in EDITABLE_CAMPAIGN_FIELDS}
            cleared = sorted(
                k for k in REQUIRED_CAMPAIGN_FIELDS if k in changes and changes[k] is None
            )
            if cleared:
                raise ValidationFailedError(f"Fields cannot be null: {', '.join(cleared)}")

            new_status = data.get("status")
            if new_status is not None:
                try:
                    new_status = CampaignStatus(new_status)
                except ValueError as exc:
                    raise ValidationFailedError(f"Invalid campaign status: {new_status}") from exc
                if new_status != campaign.status:
                    if not can_change_campaign_status(campaign.status, new_status):
                        raise ValidationFailedError(
                            f"Cannot change campaign status from {campaign.status} to {new_status}"
                        )
                    changes["status"] = new_status

            if not changes:
                raise ValidationFailedError("No valid fields to update")

            merged = {**campaign.model_dump(), **changes}
            validate_campaign_fields(merged)
            updated = self._repos.campaigns.update(campaign_id, changes)
            if "status" in changes:
                self._audit.log_status_change(
                    EventType.CAMPAIGN_STATUS_CHANGED,
                    actor.id,
                    "campaign",
                    campaign_id,
                    str(campaign.status),
                    str(changes["status"]),
                )
        return updated

    def delete(self, actor: Profile, campaign_id: str) -> None:
        """Delete a campaign that has no engaged applications and no held escrow."""
        with self._repos.db.transaction():
            self._owned(actor, campaign_id)
            if self._repos.campaigns.has_active_engagements(campaign_id):
                raise ConflictError(
                    "Cannot delete a campaign with active applications or held escrow"
                )
            self._repos.campaigns.delete(campaign_id)
        logger.info("campaign_deleted", campaign_id=campaign_id)

    def mark_in_progress(self, actor_id: str, campaign: Campaign) -> None:
        """Move an active campaign to in-progress once an influencer is engaged.

        Best-effort: failures are logged and never propagate.
        """
        if campaign.status != CampaignStatus.ACTIVE:
            return
        try:
            with self._repos.db.transaction():
                self._repos.campaigns.update(campaign.id, {"status": CampaignStatus.IN_PROGRESS})
                self._audit.log_status_change(
                    EventType.CAMPAIGN_STATUS_CHANGED,
                    actor_id,
                    "campaign",
                    campaign.id,
                    str(campaign.status),
                    str(CampaignStatus.IN_PROGRESS),
                )
        except Exception:
            logger.exception("campaign_status_bump_failed", campaign_id=campaign.id)

    def _owned(self, actor: Profile, campaign_id: str) -> Campaign:
        campaign = self.get(campaign_id)
        if campaign.business_id != actor.id:
            raise PermissionDeniedError("You can only manage your own campaigns")
        return campaign
