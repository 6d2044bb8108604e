"""Audit trail for money movement and status changes."""

from marketplace.audit.logger import SYSTEM_ACTOR, AuditLogger
from marketplace.audit.models import AuditEntry, EventType

__all__ = ["SYSTEM_ACTOR", "AuditEntry", "AuditLogger", "EventType"]
