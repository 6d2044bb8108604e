"""Work submissions, business review, and automatic approval of stale reviews.

A submission moves its application to ``submitted``; the business then
approves, rejects or asks for a revision.  Reviews left past the escrow's
auto-release date are approved by :meth:`SubmissionService.release_due_escrows`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import structlog

from marketplace.audit import SYSTEM_ACTOR, AuditLogger, EventType
from marketplace.domain.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Application, Profile, Submission
from marketplace.domain.types import ApplicationStatus, SubmissionStatus, UserRole
from marketplace.observability.metrics import ESCROWS_RELEASED
from marketplace.services.applications import ApplicationService
from marketplace.services.campaigns import CampaignService
from marketplace.services.common import new_id, require_found
from marketplace.services.notifications import Notifier
from marketplace.services.payments import PaymentService
from marketplace.state_machine import ApplicationEvent
from marketplace.store import Repositories
from marketplace.store.base import Filters
from marketplace.timeutil import to_timestamp, utc_now

logger = structlog.get_logger()

MEDIA_FIELDS = ("images", "videos", "links", "documents")
CONTENT_FIELDS = ("title", "description", "notes", *MEDIA_FIELDS)

SUBMITTABLE_STATUSES = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.REVISION_REQUESTED}
)

# Review decision -> application event it triggers.
REVIEW_EVENTS: dict[SubmissionStatus, ApplicationEvent] = {
    SubmissionStatus.APPROVED: ApplicationEvent.APPROVE_SUBMISSION,
    SubmissionStatus.REJECTED: ApplicationEvent.REJECT_SUBMISSION,
    SubmissionStatus.REVISION_REQUESTED: ApplicationEvent.REQUEST_REVISION,
}


class SubmissionService:
    """Submitting work against approved applications and reviewing it."""

    def __init__(
        self,
        repos: Repositories,
        audit: AuditLogger,
        notifier: Notifier,
        applications: ApplicationService,
        campaigns: CampaignService,
        payments: PaymentService,
        *,
        review_days: int,
    ) -> None:
        self._repos = repos
        self._audit = audit
        self._notifier = notifier
        self._applications = applications
        self._campaigns = campaigns
        self._payments = payments
        self._review_days = review_days

    def submit(self, actor: Profile, application_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Submit (or resubmit after a revision request) work for an application.

        Returns:
            ``{"submission": Submission, "message": str}``.

        Raises:
            NotFoundError: If the application is missing or not the caller's.
            ValidationFailedError: If no content is given, the application is
                not awaiting work, or a submission already exists.
        """
        if not any(_has_content(data.get(field)) for field in CONTENT_FIELDS):
            raise ValidationFailedError(
                "At least one field (title, description, notes, or media) must be provided"
            )

        now = utc_now()
        submitted_at = to_timestamp(now)
        auto_approve_date = to_timestamp(now + timedelta(days=self._review_days))
        content: dict[str, Any] = {field: data.get(field) for field in CONTENT_FIELDS}
        for field in MEDIA_FIELDS:
            content[field] = content[field] or []

        with self._repos.db.transaction():
            application = self._repos.applications.get(application_id)
            if application is None or application.influencer_id != actor.id:
                raise NotFoundError("Application not found or access denied")
            if application.status not in SUBMITTABLE_STATUSES:
                raise ValidationFailedError(
                    "Work can only be submitted for approved applications"
                )
            campaign = self._campaigns.get(application.campaign_id)

            existing = self._repos.submissions.get_by_application(application_id)
            is_revision = (
                existing is not None and existing.status == SubmissionStatus.REVISION_REQUESTED
            )
            if existing is not None and not is_revision:
                raise ValidationFailedError("Submission already exists for this application")

            review_fields = {
                "status": SubmissionStatus.PENDING,
                "review_notes": None,
                "reviewed_at": None,
                "submitted_at": submitted_at,
                "auto_approve_date": auto_approve_date,
            }
            if existing is not None:
                submission = self._repos.submissions.update(
                    existing.id, {**content, **review_fields}
                )
            else:
                submission = self._repos.submissions.insert(
                    {
                        **content,
                        **review_fields,
                        "id": new_id(),
                        "application_id": application_id,
                        "influencer_id": actor.id,
                        "campaign_id": campaign.id,
                        "business_id": campaign.business_id,
                        "created_at": submitted_at,
                        "updated_at": submitted_at,
                    }
                )

            self._applications.transition(
                application,
                ApplicationEvent.SUBMIT_WORK,
                actor.id,
                {"work_submitted_at": submitted_at},
            )
            escrow = self._repos.escrows.get_held(application_id)
            if escrow is not None:
                self._repos.escrows.update(escrow.id, {"auto_release_date": auto_approve_date})

            self._notifier.submission_received(
                campaign.business_id,
                actor.display_name,
                campaign.title,
                submission.id,
                campaign.id,
                is_revision=is_revision,
            )

        noun = "Revision" if is_revision else "Work"
        logger.info("work_submitted", submission_id=submission.id, is_revision=is_revision)
        return {
            "submission": submission,
            "message": (
                f"{noun} submitted successfully. "
                f"Business has {self._review_days} days to review."
            ),
        }

    def list(
        self,
        actor: Profile,
        *,
        application_id: str | None = None,
        campaign_id: str | None = None,
        influencer_id: str | None = None,
        business_id: str | None = None,
    ) -> list[Submission]:
        filters = (
            Filters()
            .equal("application_id", application_id)
            .equal("campaign_id", campaign_id)
            .equal("influencer_id", influencer_id)
            .equal("business_id", business_id)
        )
        if actor.role != UserRole.ADMIN:
            filters.add("(influencer_id = ? OR business_id = ?)", actor.id, actor.id)
        return self._repos.submissions.find(filters)

    def get(self, actor: Profile, submission_id: str) -> Submission:
        submission = require_found(
            self._repos.submissions.get(submission_id), "Submission not found"
        )
        if actor.role != UserRole.ADMIN and actor.id not in (
            submission.influencer_id,
            submission.business_id,
        ):
            raise PermissionDeniedError("You do not have access to this submission")
        return submission

    def review(
        self,
        actor: Profile,
        submission_id: str,
        status: str,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Record the business's decision on a pending submission.

        Approval completes the application and releases any held escrow.

        Raises:
            NotFoundError: If the submission does not exist.
            PermissionDeniedError: If the caller is not the submission's business.
            ValidationFailedError: On an unknown review status.
            ConflictError: If the submission was already reviewed.
        """
        try:
            decision = SubmissionStatus(status)
        except ValueError:
            decision = None
        if decision not in REVIEW_EVENTS:
            raise ValidationFailedError(
                "Status must be one of: approved, rejected, revision_requested"
            )

        with self._repos.db.transaction():
            submission = require_found(
                self._repos.submissions.get(submission_id), "Submission not found"
            )
            if submission.business_id != actor.id:
                raise PermissionDeniedError("Only the campaign owner can review this submission")
            updated = self._apply_review(submission, decision, notes, actor.id)

        return {
            "submission": updated,
            "message": f"Submission {decision.value.replace('_', ' ')} successfully",
        }

    def release_due_escrows(self, now: datetime | None = None) -> list[str]:
        """Auto-approve submissions whose review window has lapsed.

        For each held escrow past its ``auto_release_date`` whose application
        is still ``submitted``, the pending submission is approved by
        ``system`` and the escrow released.  Failures are logged per escrow
        and do not stop the sweep.

        Returns:
            The IDs of the escrows released.
        """
        cutoff = to_timestamp(now or utc_now())
        released: list[str] = []
        for escrow in self._repos.escrows.due_for_release(cutoff):
            try:
                with self._repos.db.transaction():
                    if not self._auto_release(escrow.id, escrow.application_id):
                        continue
                released.append(escrow.id)
            except Exception as exc:
                logger.exception("auto_release_failed", escrow_id=escrow.id)
                self._audit.log_error(str(exc), "escrow", escrow.id)
        if released:
            logger.info("auto_release_completed", released=len(released))
        return released

    def _auto_release(self, escrow_id: str, application_id: str) -> bool:
        # A review may have landed since the due list was read.
        escrow = self._repos.escrows.get_held(application_id)
        application = self._repos.applications.get(application_id)
        if (
            escrow is None
            or escrow.id != escrow_id
            or application is None
            or application.status != ApplicationStatus.SUBMITTED
        ):
            logger.info("auto_release_skipped", escrow_id=escrow_id)
            return False

        submission = self._repos.submissions.get_by_application(application_id)
        if submission is not None and submission.status == SubmissionStatus.PENDING:
            self._apply_review(
                submission,
                SubmissionStatus.APPROVED,
                "Automatically approved after the review period ended",
                SYSTEM_ACTOR,
            )
        else:
            self._payments.release_held_escrow(application, escrow, SYSTEM_ACTOR)
            ESCROWS_RELEASED.labels(trigger="auto").inc()
        return True

    def _apply_review(
        self,
        submission: Submission,
        decision: SubmissionStatus,
        notes: str | None,
        actor_id: str,
    ) -> Submission:
        if submission.status != SubmissionStatus.PENDING:
            raise ConflictError("Submission has already been reviewed")

        reviewed_at = to_timestamp(utc_now())
        updated = self._repos.submissions.update(
            submission.id,
            {"status": decision, "review_notes": notes, "reviewed_at": reviewed_at},
        )
        self._audit.log_status_change(
            EventType.SUBMISSION_REVIEWED,
            actor_id,
            "submission",
            submission.id,
            str(submission.status),
            str(decision),
            {"notes": notes},
        )

        application: Application = require_found(
            self._repos.applications.get(submission.application_id), "Application not found"
        )
        extra: dict[str, Any] = {"reviewed_at": reviewed_at}
        if decision != SubmissionStatus.APPROVED:
            extra["review_notes"] = notes
        completed = self._applications.transition(
            application, REVIEW_EVENTS[decision], actor_id, extra
        )

        if decision == SubmissionStatus.APPROVED:
            escrow = self._repos.escrows.get_held(application.id)
            if escrow is not None:
                self._payments.release_held_escrow(completed, escrow, actor_id)
                trigger = "auto" if actor_id == SYSTEM_ACTOR else "approval"
                ESCROWS_RELEASED.labels(trigger=trigger).inc()

        self._notifier.submission_reviewed(
            submission.influencer_id,
            submission.id,
            submission.campaign_id,
            decision,
            notes,
        )
        return updated


def _has_content(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)
