"""Audit trail models for tracking money movement and status changes."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class EventType(StrEnum):
    """Types of events tracked in the audit trail."""

    CAMPAIGN_STATUS_CHANGED = "campaign_status_changed"
    APPLICATION_STATUS_CHANGED = "application_status_changed"
    SUBMISSION_REVIEWED = "submission_reviewed"
    ESCROW_FUNDED = "escrow_funded"
    ESCROW_RELEASED = "escrow_released"
    ESCROW_REFUNDED = "escrow_refunded"
    PAYOUT_REQUESTED = "payout_requested"
    PAYOUT_STATUS_CHANGED = "payout_status_changed"
    BALANCE_ADJUSTED = "balance_adjusted"
    ERROR = "error"


class AuditEntry(BaseModel):
    """A single audit trail entry.

    ``actor_id`` is the acting user's id, or ``"system"`` for the
    auto-release job and webhooks.
    """

    event_type: EventType
    actor_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    from_status: str | None = None
    to_status: str | None = None
    metadata: dict[str, Any] | None = None
