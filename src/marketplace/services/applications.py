"""Influencer applications and their status state machine.

Every status change goes through :class:`ApplicationStateMachine` so invalid
moves raise :class:`InvalidTransitionError`, and each recorded step is written
to the audit trail in the same transaction as the row update.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog

from marketplace.audit import AuditLogger
from marketplace.domain.errors import (
    ConflictError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Application, Campaign, Profile
from marketplace.domain.types import (
    ApplicationStatus,
    CampaignStatus,
    PaymentStatus,
    UserRole,
)
from marketplace.observability.metrics import APPLICATIONS_SUBMITTED
from marketplace.services.campaigns import CampaignService
from marketplace.services.common import (
    new_id,
    now_timestamp,
    page_window,
    pagination,
    require_found,
    require_role,
)
from marketplace.services.notifications import Notifier
from marketplace.state_machine import ApplicationEvent, ApplicationStateMachine
from marketplace.store import Repositories
from marketplace.store.base import Filters
from marketplace.timeutil import parse_timestamp, utc_now

logger = structlog.get_logger()

PROPOSAL_FIELDS = frozenset({"proposal", "proposed_rate", "estimated_reach", "portfolio_links"})


class ApplicationService:
    """Applying to campaigns, reviewing applications, and driving their status."""

    def __init__(
        self,
        repos: Repositories,
        audit: AuditLogger,
        notifier: Notifier,
        campaigns: CampaignService,
        currency: str,
    ) -> None:
        self._repos = repos
        self._audit = audit
        self._notifier = notifier
        self._campaigns = campaigns
        self._currency = currency

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def transition(
        self,
        application: Application,
        event: ApplicationEvent,
        actor_id: str | None,
        extra: dict[str, Any] | None = None,
    ) -> Application:
        """Apply *event* to *application*, persist the new status, and audit it.

        Must be called inside a ``Database.transaction()``.

        Raises:
            InvalidTransitionError: If *event* is not valid from the current status.
        """
        machine = ApplicationStateMachine(application.status)
        new_status = machine.trigger(event)
        updated = self._repos.applications.update(
            application.id, {"status": new_status, **(extra or {})}
        )
        self._audit.log_application_transitions(actor_id, application.id, machine.history)
        logger.info(
            "application_transition",
            application_id=application.id,
            application_event=str(event),
            from_status=str(application.status),
            to_status=str(new_status),
        )
        return updated

    def approve(
        self, application: Application, actor: Profile, review_notes: str | None = None
    ) -> Application:
        """Approve a pending application and apply its side effects.

        The campaign moves to in-progress, a pending payment row is created if
        none exists, and the influencer is notified.  Must be called inside a
        transaction.
        """
        campaign = self._campaigns.get(application.campaign_id)
        extra: dict[str, Any] = {"reviewed_at": now_timestamp()}
        if review_notes is not None:
            extra["review_notes"] = review_notes
        approved = self.transition(application, ApplicationEvent.APPROVE, actor.id, extra)

        self._campaigns.mark_in_progress(actor.id, campaign)
        if self._repos.payments.get_by_application(application.id) is None:
            now = now_timestamp()
            self._repos.payments.insert(
                {
                    "id": new_id(),
                    "application_id": application.id,
                    "amount": application.proposed_rate
                    if application.proposed_rate is not None
                    else campaign.budget_min or Decimal("0"),
                    "currency": self._currency,
                    "status": PaymentStatus.PENDING,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        self._notifier.application_approved(
            application.influencer_id,
            campaign.title,
            self._business_name(campaign),
            application.id,
            campaign.id,
        )
        return approved

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def apply(
        self,
        actor: Profile,
        campaign_id: str,
        data: dict[str, Any],
        *,
        require_proposal: bool = True,
    ) -> Application:
        """Create a pending application from an influencer.

        Raises:
            PermissionDeniedError: If the caller is not an influencer.
            NotFoundError: If the campaign does not exist.
            ValidationFailedError: If the campaign is closed, the deadline has
                passed, the proposal is missing, or the caller already applied.
        """
        require_role(actor, [UserRole.INFLUENCER], "Only influencers can apply to campaigns")
        proposal = (data.get("proposal") or "").strip()
        if require_proposal and not proposal:
            raise ValidationFailedError("Proposal is required")

        with self._repos.db.transaction():
            campaign = self._campaigns.get(campaign_id)
            if campaign.status != CampaignStatus.ACTIVE:
                raise ValidationFailedError("Campaign is not accepting applications")
            if campaign.application_deadline and (
                parse_timestamp(campaign.application_deadline) < utc_now()
            ):
                raise ValidationFailedError("Application deadline has passed")
            if self._repos.applications.get_for_influencer(campaign_id, actor.id) is not None:
                raise ValidationFailedError("You have already applied to this campaign")

            now = now_timestamp()
            application = self._repos.applications.insert(
                {
                    **{k: v for k, v in data.items() if k in PROPOSAL_FIELDS},
                    "proposal": proposal or None,
                    "id": new_id(),
                    "campaign_id": campaign_id,
                    "influencer_id": actor.id,
                    "status": ApplicationStatus.PENDING,
                    "submitted_at": now,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            self._notifier.application_submitted(
                campaign.business_id,
                actor.display_name,
                campaign.title,
                application.id,
                campaign.id,
            )
        APPLICATIONS_SUBMITTED.inc()
        logger.info("application_created", application_id=application.id, campaign_id=campaign_id)
        return application

    def list(
        self,
        actor: Profile,
        *,
        campaign_id: str | None = None,
        influencer_id: str | None = None,
        business_id: str | None = None,
        status: ApplicationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """List applications visible to the caller, newest first."""
        page, limit = page_window(page, limit)
        filters = Filters().equal("campaign_id", campaign_id).equal("status", status)
        if actor.role == UserRole.INFLUENCER:
            filters.equal("influencer_id", actor.id)
        elif actor.role == UserRole.BUSINESS:
            filters.equal("business_id", actor.id)
        else:
            filters.equal("influencer_id", influencer_id).equal("business_id", business_id)
        items, total = self._repos.applications.page(filters, page, limit)
        return {"applications": items, "pagination": pagination(page, limit, total)}

    def get(self, actor: Profile, application_id: str) -> Application:
        application = require_found(
            self._repos.applications.get(application_id), "Application not found"
        )
        if actor.role != UserRole.ADMIN and actor.id not in self.participants(application):
            raise PermissionDeniedError("You do not have access to this application")
        return application

    def update(self, actor: Profile, application_id: str, data: dict[str, Any]) -> Application:
        """Apply an influencer edit/withdrawal or a business approve/reject decision.

        Raises:
            PermissionDeniedError: If the caller is neither the applicant nor the
                campaign owner, or asks for a status they may not set.
            ValidationFailedError: On an empty update or a disallowed status.
            InvalidTransitionError: If the status change is not valid now.
        """
        with self._repos.db.transaction():
            application = require_found(
                self._repos.applications.get(application_id), "Application not found"
            )
            campaign = self._campaigns.get(application.campaign_id)
            status = data.get("status")

            if actor.id == application.influencer_id:
                return self._influencer_update(actor, application, data, status)

            if actor.id == campaign.business_id:
                if status == ApplicationStatus.APPROVED:
                    return self.approve(application, actor, data.get("review_notes"))
                if status == ApplicationStatus.REJECTED:
                    return self._reject(application, actor, campaign, data.get("review_notes"))
                if status is None:
                    raise ValidationFailedError("No valid fields to update")
                raise ValidationFailedError(
                    "Business users can only approve or reject applications"
                )

        raise PermissionDeniedError("You do not have access to this application")

    def delete(self, actor: Profile, application_id: str) -> None:
        with self._repos.db.transaction():
            application = require_found(
                self._repos.applications.get(application_id), "Application not found"
            )
            if actor.id != application.influencer_id:
                raise PermissionDeniedError("You can only delete your own applications")
            if application.status not in (ApplicationStatus.PENDING, ApplicationStatus.WITHDRAWN):
                raise ConflictError("Only pending or withdrawn applications can be deleted")
            self._repos.applications.delete(application_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def participants(self, application: Application) -> set[str]:
        campaign = self._campaigns.get(application.campaign_id)
        return {application.influencer_id, campaign.business_id}

    def _influencer_update(
        self,
        actor: Profile,
        application: Application,
        data: dict[str, Any],
        status: str | None,
    ) -> Application:
        if status is not None:
            if status != ApplicationStatus.WITHDRAWN:
                raise PermissionDeniedError("Influencers can only withdraw their applications")
            return self.transition(application, ApplicationEvent.WITHDRAW, actor.id)

        changes = {k: v for k, v in data.items() if k in PROPOSAL_FIELDS}
        if not changes:
            raise ValidationFailedError("No valid fields to update")
        if application.status != ApplicationStatus.PENDING:
            raise ValidationFailedError("Only pending applications can be edited")
        return self._repos.applications.update(application.id, changes)

    def _reject(
        self,
        application: Application,
        actor: Profile,
        campaign: Campaign,
        review_notes: str | None,
    ) -> Application:
        extra: dict[str, Any] = {"reviewed_at": now_timestamp()}
        if review_notes is not None:
            extra["review_notes"] = review_notes
        rejected = self.transition(application, ApplicationEvent.REJECT, actor.id, extra)
        self._notifier.application_rejected(
            application.influencer_id,
            campaign.title,
            self._business_name(campaign),
            application.id,
            campaign.id,
        )
        return rejected

    def _business_name(self, campaign: Campaign) -> str:
        business = self._repos.profiles.get(campaign.business_id)
        if business is None:
            return "the business"
        return business.company_name or business.display_name
