"""In-app notifications: typed senders and the per-user inbox operations.

:class:`Notifier` is used by the other services after their primary write.
Sending is best-effort: a failed insert is logged and ``None`` returned so the
caller's operation still succeeds.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog

from marketplace.domain.errors import NotFoundError, ValidationFailedError
from marketplace.domain.models import Notification, Profile
from marketplace.domain.types import NotificationType, SubmissionStatus, UserRole
from marketplace.services.common import (
    new_id,
    now_timestamp,
    page_window,
    pagination,
    require_found,
    require_role,
)
from marketplace.store import Repositories
from marketplace.store.base import Filters
from marketplace.timeutil import relative_time

logger = structlog.get_logger()

SUBMISSION_REVIEW_MESSAGES: dict[SubmissionStatus, str] = {
    SubmissionStatus.APPROVED: "Your submission has been approved!",
    SubmissionStatus.REJECTED: "Your submission has been rejected.",
    SubmissionStatus.REVISION_REQUESTED: "Revision requested for your submission.",
}


class Notifier:
    """Creates notification rows for marketplace events."""

    def __init__(self, repos: Repositories) -> None:
        self._repos = repos

    def send(
        self,
        user_id: str,
        type_: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification | None:
        """Insert one notification for *user_id*; returns None if the insert fails."""
        try:
            with self._repos.db.transaction():
                return self._repos.notifications.insert(
                    {
                        "id": new_id(),
                        "user_id": user_id,
                        "type": type_,
                        "title": title,
                        "message": message,
                        "data": data or {},
                        "is_read": False,
                        "created_at": now_timestamp(),
                    }
                )
        except Exception:
            logger.exception("notification_failed", user_id=user_id, type=str(type_))
            return None

    def application_submitted(
        self,
        business_id: str,
        influencer_name: str,
        campaign_title: str,
        application_id: str,
        campaign_id: str,
    ) -> Notification | None:
        return self.send(
            business_id,
            NotificationType.APPLICATION,
            "New Campaign Application",
            f'{influencer_name} has applied to your campaign "{campaign_title}"',
            {"application_id": application_id, "campaign_id": campaign_id, "action": "submitted"},
        )

    def application_approved(
        self,
        influencer_id: str,
        campaign_title: str,
        business_name: str,
        application_id: str,
        campaign_id: str,
    ) -> Notification | None:
        return self.send(
            influencer_id,
            NotificationType.APPLICATION,
            "Application Approved!",
            f'Your application for "{campaign_title}" by {business_name} has been approved',
            {"application_id": application_id, "campaign_id": campaign_id, "action": "approved"},
        )

    def application_rejected(
        self,
        influencer_id: str,
        campaign_title: str,
        business_name: str,
        application_id: str,
        campaign_id: str,
    ) -> Notification | None:
        return self.send(
            influencer_id,
            NotificationType.APPLICATION,
            "Application Update",
            f'Your application for "{campaign_title}" by {business_name} '
            "was not selected this time",
            {"application_id": application_id, "campaign_id": campaign_id, "action": "rejected"},
        )

    def payment_received(
        self,
        influencer_id: str,
        amount: Decimal,
        currency: str,
        campaign_title: str,
        payment_id: str,
        *,
        in_escrow: bool = False,
    ) -> Notification | None:
        if in_escrow:
            message = (
                f'{currency} {amount:,} for "{campaign_title}" is now held in escrow '
                "and will be released when your work is approved"
            )
        else:
            message = f'You\'ve received {currency} {amount:,} for "{campaign_title}"'
        return self.send(
            influencer_id,
            NotificationType.PAYMENT,
            "Payment Received!",
            message,
            {"payment_id": payment_id, "amount": str(amount), "campaign_title": campaign_title},
        )

    def payout_updated(
        self,
        influencer_id: str,
        payout_id: str,
        status: str,
        net_amount: Decimal,
        currency: str,
    ) -> Notification | None:
        return self.send(
            influencer_id,
            NotificationType.PAYMENT,
            "Payout Update",
            f"Your payout of {currency} {net_amount:,} is now {status}",
            {"payout_id": payout_id, "status": status},
        )

    def submission_received(
        self,
        business_id: str,
        influencer_name: str,
        campaign_title: str,
        submission_id: str,
        campaign_id: str,
        *,
        is_revision: bool,
    ) -> Notification | None:
        verb = "submitted a revision" if is_revision else "submitted work"
        return self.send(
            business_id,
            NotificationType.SUBMISSION_REVIEW,
            "New Submission",
            f'{influencer_name} has {verb} for "{campaign_title}"',
            {"submission_id": submission_id, "campaign_id": campaign_id},
        )

    def submission_reviewed(
        self,
        influencer_id: str,
        submission_id: str,
        campaign_id: str,
        status: SubmissionStatus,
        notes: str | None,
    ) -> Notification | None:
        return self.send(
            influencer_id,
            NotificationType.SUBMISSION_REVIEW,
            "Submission Review",
            SUBMISSION_REVIEW_MESSAGES[status],
            {
                "submission_id": submission_id,
                "campaign_id": campaign_id,
                "status": str(status),
                "notes": notes,
            },
        )


class NotificationService:
    """The caller's own notification inbox."""

    def __init__(self, repos: Repositories, notifier: Notifier) -> None:
        self._repos = repos
        self._notifier = notifier

    def list(
        self,
        actor: Profile,
        *,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> dict[str, Any]:
        """Return the caller's notifications, newest first, each with a ``time`` label."""
        page, limit = page_window(page, limit)
        filters = Filters().equal("user_id", actor.id)
        if unread_only:
            filters.equal("is_read", False)
        items, total = self._repos.notifications.page(filters, page, limit)
        unread = self._repos.notifications.count(
            Filters().equal("user_id", actor.id).equal("is_read", False)
        )
        return {
            "notifications": [
                {**n.model_dump(mode="json"), "time": relative_time(n.created_at)} for n in items
            ],
            "unread_count": unread,
            "pagination": pagination(page, limit, total),
        }

    def mark_read(
        self,
        actor: Profile,
        *,
        notification_id: str | None = None,
        mark_all: bool = False,
    ) -> int:
        """Mark one notification, or all of the caller's, as read.

        Returns:
            The number of notifications changed.

        Raises:
            ValidationFailedError: If neither an ID nor ``mark_all`` is given.
            NotFoundError: If the notification is missing or not the caller's.
        """
        with self._repos.db.transaction():
            if mark_all:
                return self._repos.notifications.mark_all_read(actor.id)
            if not notification_id:
                raise ValidationFailedError("notification_id or mark_all_as_read is required")
            notification = self._own(actor, notification_id)
            self._repos.notifications.update(notification.id, {"is_read": True})
            return 1

    def send_system(
        self,
        actor: Profile,
        user_id: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        """Send a system notification to *user_id* (admins only)."""
        require_role(actor, [UserRole.ADMIN], "Only admins can send notifications")
        require_found(self._repos.profiles.get(user_id), "User not found")
        with self._repos.db.transaction():
            return self._repos.notifications.insert(
                {
                    "id": new_id(),
                    "user_id": user_id,
                    "type": NotificationType.SYSTEM,
                    "title": title,
                    "message": message,
                    "data": data or {},
                    "is_read": False,
                    "created_at": now_timestamp(),
                }
            )

    def delete(self, actor: Profile, notification_id: str) -> None:
        with self._repos.db.transaction():
            notification = self._own(actor, notification_id)
            self._repos.notifications.delete(notification.id)

    def _own(self, actor: Profile, notification_id: str) -> Notification:
        notification = self._repos.notifications.get(notification_id)
        if notification is None or notification.user_id != actor.id:
            raise NotFoundError("Notification not found")
        return notification
