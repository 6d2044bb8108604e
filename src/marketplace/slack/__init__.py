"""Slack integration for operational alerts."""

from marketplace.slack.client import (
    SlackNotifier,
    build_api_failure_blocks,
    build_payout_alert_blocks,
)

__all__ = ["SlackNotifier", "build_api_failure_blocks", "build_payout_alert_blocks"]
