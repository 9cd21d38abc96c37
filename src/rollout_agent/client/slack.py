"""Slack notifier for rollout start and finish events."""

from typing import Any, Dict

import httpx
import structlog

from ..models import NotificationKind, OverallStatus
from .notifier import NotificationContext, NotificationSink

logger = structlog.get_logger()

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


def _field(title: str, value: str, short: bool = True) -> Dict[str, Any]:
    return {"title": title, "value": value, "short": short}


def started_payload(context: NotificationContext) -> Dict[str, Any]:
    """Build the chat.postMessage body for a started event."""
    return {
        "text": ":rocket: Deployment started (In Progress)",
        "attachments": [
            {
                "color": "dbab09",
                "fields": [
                    _field("⏳ Status", "In Progress"),
                    _field("🧠 Branch", context.branch),
                    _field("👤 Actor", context.actor),
                    _field("📚 Repository", context.repository),
                    _field("🌍 Environment", context.environment),
                    _field("🎯 Target", context.target),
                    _field("🔗 Run URL", context.run_url or "N/A", short=False),
                ],
                "footer": "Deployment started",
            }
        ],
    }


def finished_payload(context: NotificationContext) -> Dict[str, Any]:
    """Build the chat.postMessage body for a finished event."""
    ok = context.status == OverallStatus.SUCCESS
    status_text = "Completed" if ok else "Failed"
    emoji = ":white_check_mark:" if ok else ":x:"
    status_emoji = "✅" if ok else "❌"

    fields = [
        _field(f"{status_emoji} Status", status_text),
        _field("🧠 Branch", context.branch),
        _field("👤 Actor", context.actor),
        _field("📚 Repository", context.repository),
        _field("🌍 Environment", context.environment),
        _field("🎯 Target", context.target),
        _field("🖼️ Image", context.image_ref if ok else "<n/a>", short=False),
    ]
    if not ok and context.summary:
        fields.append(_field("💥 Reason", context.summary, short=False))

    return {
        "text": f"{emoji} Deployment finished ({status_text})",
        "attachments": [
            {
                "color": "28a745" if ok else "ff0000",
                "fields": fields,
                "footer": "Deployment finished",
            }
        ],
    }


class SlackNotifier(NotificationSink):
    """Posts rollout events to a Slack channel."""

    def __init__(self, token: str, channel_id: str, timeout: int = 10):
        """Initialize Slack notifier.

        Args:
            token: Slack bot token
            channel_id: Channel to post to
            timeout: Request timeout in seconds
        """
        self.token = token
        self.channel_id = channel_id
        self.client = httpx.AsyncClient(timeout=timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json; charset=utf-8",
        }

    async def notify(self, kind: NotificationKind, context: NotificationContext):
        """Post one event to Slack.

        Raises:
            httpx.HTTPError: the request failed
        """
        if kind == NotificationKind.STARTED:
            payload = started_payload(context)
        else:
            payload = finished_payload(context)

        response = await self.client.post(
            SLACK_POST_MESSAGE_URL,
            headers=self._get_headers(),
            json={"channel": self.channel_id, **payload},
        )
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            logger.warning("slack.post_rejected", error=data.get("error"))
            return
        logger.info("slack.posted", kind=kind.value, channel=self.channel_id)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
