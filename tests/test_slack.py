"""Tests for Slack notification payloads and delivery."""

from unittest.mock import AsyncMock, Mock

import pytest

from rollout_agent.client.notifier import NotificationContext
from rollout_agent.client.slack import SlackNotifier, finished_payload, started_payload
from rollout_agent.models import NotificationKind, OverallStatus


@pytest.fixture
def context():
    return NotificationContext(
        environment="Staging",
        target="ecs",
        image_ref="registry/app@sha256:abc",
        repository="acme/app",
        branch="main",
        actor="octo",
        run_url="https://ci.example.com/runs/1",
    )


def fields_of(payload):
    return {f["title"]: f["value"] for f in payload["attachments"][0]["fields"]}


class TestPayloads:
    """Message layout."""

    def test_started(self, context):
        payload = started_payload(context)
        assert "started" in payload["text"]
        assert fields_of(payload)["🔗 Run URL"] == "https://ci.example.com/runs/1"

    def test_finished_success_shows_image(self, context):
        context.status = OverallStatus.SUCCESS
        payload = finished_payload(context)
        assert payload["attachments"][0]["color"] == "28a745"
        assert fields_of(payload)["🖼️ Image"] == "registry/app@sha256:abc"

    def test_finished_failure_hides_image(self, context):
        context.status = OverallStatus.FAILURE
        context.summary = "worker: Failed (circuit breaker)"
        payload = finished_payload(context)
        fields = fields_of(payload)
        assert "Failed" in payload["text"]
        assert fields["🖼️ Image"] == "<n/a>"
        assert fields["💥 Reason"] == "worker: Failed (circuit breaker)"


class TestSlackNotifier:
    """HTTP delivery."""

    @pytest.mark.asyncio
    async def test_posts_to_channel(self, context):
        notifier = SlackNotifier(token="xoxb-token", channel_id="C123")
        response = Mock()
        response.json.return_value = {"ok": True}
        notifier.client = Mock()
        notifier.client.post = AsyncMock(return_value=response)

        await notifier.notify(NotificationKind.STARTED, context)

        kwargs = notifier.client.post.await_args.kwargs
        assert kwargs["json"]["channel"] == "C123"
        assert kwargs["headers"]["Authorization"] == "Bearer xoxb-token"

    @pytest.mark.asyncio
    async def test_rejected_post_does_not_raise(self, context):
        notifier = SlackNotifier(token="xoxb-token", channel_id="C123")
        response = Mock()
        response.json.return_value = {"ok": False, "error": "channel_not_found"}
        notifier.client = Mock()
        notifier.client.post = AsyncMock(return_value=response)

        context.status = OverallStatus.SUCCESS
        await notifier.notify(NotificationKind.FINISHED, context)
