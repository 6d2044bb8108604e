"""Slack notifier for operational alerts (payout requests, API failures).

Wraps slack_sdk.WebClient to post Block Kit messages to the ops channel.
"""

from __future__ import annotations

from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError


class SlackNotifier:
    """Posts structured alerts to the ops Slack channel."""

    def __init__(self, ops_channel: str, bot_token: str) -> None:
        """Initialize the SlackNotifier.

        Args:
            ops_channel: Channel ID for operational alerts.
            bot_token: Slack bot token.
        """
        self._client = WebClient(token=bot_token)
        self._ops_channel = ops_channel

    def post_alert(self, blocks: list[dict[str, Any]], fallback_text: str) -> str:
        """Post an alert to the ops channel.

        Args:
            blocks: Block Kit blocks for the message.
            fallback_text: Plain-text fallback for notifications.

        Returns:
            The Slack message timestamp (ts) for reference.

        Raises:
            SlackApiError: If the Slack API call fails.
        """
        response = self._client.chat_postMessage(
            channel=self._ops_channel,
            blocks=blocks,
            text=fallback_text,
        )
        return str(response["ts"])


def build_payout_alert_blocks(
    influencer_name: str,
    amount: Any,
    net_amount: Any,
    currency: str,
    payout_id: str,
) -> list[dict[str, Any]]:
    """Build Block Kit blocks announcing a new payout request for ops to process."""
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "New payout request"},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Influencer:*\n{influencer_name}"},
                {"type": "mrkdwn", "text": f"*Amount:*\n{currency} {amount}"},
                {"type": "mrkdwn", "text": f"*Net after fee:*\n{currency} {net_amount}"},
                {"type": "mrkdwn", "text": f"*Payout ID:*\n`{payout_id}`"},
            ],
        },
    ]


def build_api_failure_blocks(api_name: str, attempts: int, error: object) -> list[dict[str, Any]]:
    """Build the ops alert for an outbound call that exhausted its retries."""
    return [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*{api_name} unavailable*\nGave up after {attempts} attempts: `{error}`",
            },
        }
    ]


__all__ = [
    "SlackApiError",
    "SlackNotifier",
    "build_api_failure_blocks",
    "build_payout_alert_blocks",
]
