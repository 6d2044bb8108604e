"""Status machines with trigger, history, and valid_events."""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar, Generic, TypeVar

from marketplace.domain.errors import InvalidTransitionError
from marketplace.domain.types import ApplicationStatus, PayoutStatus
from marketplace.state_machine.transitions import (
    APPLICATION_TERMINAL_STATES,
    APPLICATION_TRANSITIONS,
    PAYOUT_TERMINAL_STATES,
    PAYOUT_TRANSITIONS,
)

S = TypeVar("S", bound=StrEnum)


class StatusMachine(Generic[S]):
    """Finite state machine over a status enum.

    Tracks the current status, validates transitions against the subclass's
    transition map, and records a history of all status changes so callers
    can write them to the audit trail.
    """

    transitions: ClassVar[dict] = {}
    terminal_states: ClassVar[frozenset] = frozenset()

    def __init__(self, initial_state: S) -> None:
        self._state: S = initial_state
        self._history: list[tuple[S, str, S]] = []

    @property
    def state(self) -> S:
        """Return the current status."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Return True if the machine is in a terminal status."""
        return self._state in self.terminal_states

    @property
    def history(self) -> list[tuple[S, str, S]]:
        """Return a copy of the ``(from_state, event, to_state)`` history."""
        return list(self._history)

    def can_trigger(self, event: str) -> bool:
        """Return True if *event* is valid from the current status."""
        return not self.is_terminal and (self._state, event) in self.transitions

    def trigger(self, event: str) -> S:
        """Apply an event to the current status and transition.

        Args:
            event: The event string (e.g. ``"approve"``).

        Returns:
            The new status after the transition.

        Raises:
            InvalidTransitionError: If the transition is not allowed from
                the current status, or if the machine is in a terminal status.
        """
        if not self.can_trigger(event):
            raise InvalidTransitionError(self._state, event)

        old_state = self._state
        new_state = self.transitions[(self._state, event)]
        self._history.append((old_state, event, new_state))
        self._state = new_state
        return new_state

    def get_valid_events(self) -> list[str]:
        """Return a sorted list of events valid from the current status."""
        if self.is_terminal:
            return []
        return sorted(event for state, event in self.transitions if state == self._state)


class ApplicationStateMachine(StatusMachine[ApplicationStatus]):
    """Lifecycle of an application from proposal to completion.

    Usage::

        sm = ApplicationStateMachine()
        sm.trigger("approve")             # -> APPROVED
        sm.trigger("submit_work")         # -> SUBMITTED
        sm.trigger("approve_submission")  # -> COMPLETED (terminal)
    """

    transitions = APPLICATION_TRANSITIONS
    terminal_states = APPLICATION_TERMINAL_STATES

    def __init__(self, initial_state: ApplicationStatus = ApplicationStatus.PENDING) -> None:
        super().__init__(initial_state)


class PayoutStateMachine(StatusMachine[PayoutStatus]):
    """Lifecycle of a payout request as an admin processes it."""

    transitions = PAYOUT_TRANSITIONS
    terminal_states = PAYOUT_TERMINAL_STATES

    def __init__(self, initial_state: PayoutStatus = PayoutStatus.PENDING) -> None:
        super().__init__(initial_state)
