"""Retry and error notification for outbound API calls."""

from marketplace.resilience.retry import configure_error_notifier, resilient_api_call

__all__ = ["configure_error_notifier", "resilient_api_call"]
