"""Status machines with transition validation."""

from marketplace.state_machine.machine import (
    ApplicationStateMachine,
    PayoutStateMachine,
    StatusMachine,
)
from marketplace.state_machine.transitions import (
    APPLICATION_TERMINAL_STATES,
    APPLICATION_TRANSITIONS,
    CAMPAIGN_TRANSITIONS,
    PAYOUT_TERMINAL_STATES,
    PAYOUT_TRANSITIONS,
    ApplicationEvent,
    PayoutEvent,
    can_change_campaign_status,
)

__all__ = [
    "APPLICATION_TERMINAL_STATES",
    "APPLICATION_TRANSITIONS",
    "CAMPAIGN_TRANSITIONS",
    "PAYOUT_TERMINAL_STATES",
    "PAYOUT_TRANSITIONS",
    "ApplicationEvent",
    "ApplicationStateMachine",
    "PayoutEvent",
    "PayoutStateMachine",
    "StatusMachine",
    "can_change_campaign_status",
]
