"""Retry decorator for outbound API calls, with an ops alert on final failure.

Calls are retried 3 times with exponential backoff and jitter; when every
attempt fails the ops notifier is told and the original exception re-raised.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from marketplace.slack.client import build_api_failure_blocks

logger = structlog.get_logger()

MAX_ATTEMPTS = 3

# Set once at startup by initialize_services; None disables alerts.
_notifier: Any = None

F = TypeVar("F", bound=Callable[..., Any])


def configure_error_notifier(notifier: Any) -> None:
    """Set the notifier used to report exhausted retries.

    Args:
        notifier: Anything with ``post_alert(blocks, fallback_text)``, usually
            the SlackNotifier, or None to disable alerts.
    """
    global _notifier
    _notifier = notifier


def _api_name(retry_state: RetryCallState) -> str:
    return getattr(retry_state.fn, "_api_name", "unknown") if retry_state.fn else "unknown"


def notify_on_final_failure(retry_state: RetryCallState) -> Any:
    """Log the exhausted call, alert ops, and re-raise the last exception."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    api_name = _api_name(retry_state)
    attempts = retry_state.attempt_number

    logger.error("api_retries_exhausted", api_name=api_name, attempts=attempts, error=str(error))

    if _notifier is not None:
        try:
            _notifier.post_alert(
                blocks=build_api_failure_blocks(api_name, attempts, error),
                fallback_text=f"{api_name} unavailable after {attempts} attempts",
            )
        except Exception:
            logger.exception("api_failure_alert_failed", api_name=api_name)

    if error is not None:
        raise error
    return None


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "api_call_retrying",
        api_name=_api_name(retry_state),
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def resilient_api_call(
    api_name: str,
    retry_if: Callable[[RetryCallState], bool] | None = None,
) -> Callable[[F], F]:
    """Wrap an outbound call in tenacity retries.

    Args:
        api_name: Name shown in logs and the ops alert.
        retry_if: Optional tenacity retry predicate; every exception is
            retried when omitted.
    """

    def decorator(func: F) -> F:
        func._api_name = api_name  # type: ignore[attr-defined]

        options: dict[str, Any] = {
            "stop": stop_after_attempt(MAX_ATTEMPTS),
            "wait": wait_exponential_jitter(initial=1, max=30, jitter=5),
            "before_sleep": _log_retry,
            "retry_error_callback": notify_on_final_failure,
        }
        if retry_if is not None:
            options["retry"] = retry_if
        return retry(**options)(func)  # type: ignore[return-value]

    return decorator
