"""
Tests for the Slack / Discord webhook adapters.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from config import settings
from src.notifications.adapters import (
    DiscordWebhookAdapter,
    SlackWebhookAdapter,
    SEVERITY_COLORS,
    build_adapters,
)
from src.workflow.errors import ExternalServiceError

PAYLOAD = {
    "alert_id": 7,
    "alert_type": "task_validated",
    "severity": "celebration",
    "title": "🎉 Tarea Validada",
    "message": "El líder ha validado tu tarea \"Crear contenido semanal Instagram\"",
    "target_user_id": "usr_angel",
    "actionable": False,
}


def mock_http_session(status: int, text: str = ""):
    """aiohttp.ClientSession stand-in whose POST answers with `status`."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    post_context = MagicMock()
    post_context.__aenter__ = AsyncMock(return_value=response)
    post_context.__aexit__ = AsyncMock(return_value=False)

    http = MagicMock()
    http.post = MagicMock(return_value=post_context)

    session_context = MagicMock()
    session_context.__aenter__ = AsyncMock(return_value=http)
    session_context.__aexit__ = AsyncMock(return_value=False)
    return session_context, http


class TestFormatting:

    def test_slack_message(self):
        body = SlackWebhookAdapter("https://hooks.slack.test/x").format("smart_alert", PAYLOAD)

        assert body["text"].startswith("*🎉 Tarea Validada*")
        assert body["blocks"][0]["text"]["type"] == "mrkdwn"
        assert "usr_angel" in body["blocks"][1]["elements"][0]["text"]

    def test_discord_embed(self):
        body = DiscordWebhookAdapter("https://discord.test/api/webhooks/1").format("smart_alert", PAYLOAD)

        embed = body["embeds"][0]
        assert embed["title"] == "🎉 Tarea Validada"
        assert embed["color"] == SEVERITY_COLORS["celebration"]
        assert embed["footer"]["text"] == "task_validated · celebration"

    def test_discord_unknown_severity_uses_info_color(self):
        body = DiscordWebhookAdapter("https://discord.test/api/webhooks/1").format(
            "smart_alert", {**PAYLOAD, "severity": "weird"}
        )
        assert body["embeds"][0]["color"] == SEVERITY_COLORS["info"]


class TestBuildAdapters:

    def test_only_configured_webhooks(self):
        configured = settings.model_copy(update={
            "slack_webhook_url": "https://hooks.slack.test/x",
            "discord_webhook_url": "",
        })
        assert [adapter.name for adapter in build_adapters(configured)] == ["slack"]

    def test_none_configured(self):
        empty = settings.model_copy(update={"slack_webhook_url": "", "discord_webhook_url": ""})
        assert build_adapters(empty) == []


class TestSend:

    @pytest.mark.asyncio
    async def test_successful_post(self):
        session_context, http = mock_http_session(204)
        adapter = DiscordWebhookAdapter("https://discord.test/api/webhooks/1")

        with patch("src.notifications.adapters.aiohttp.ClientSession", return_value=session_context):
            await adapter.send("smart_alert", PAYLOAD)

        args, kwargs = http.post.call_args
        assert args[0] == "https://discord.test/api/webhooks/1"
        assert kwargs["json"]["embeds"][0]["title"] == "🎉 Tarea Validada"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        session_context, _ = mock_http_session(500, "internal error")
        adapter = SlackWebhookAdapter("https://hooks.slack.test/x")

        with patch("src.notifications.adapters.aiohttp.ClientSession", return_value=session_context):
            with pytest.raises(ExternalServiceError) as exc_info:
                await adapter.send("smart_alert", PAYLOAD)

        assert exc_info.value.adapter == "slack"
        assert "500" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        session_context, http = mock_http_session(200)
        http.post.side_effect = aiohttp.ClientConnectionError("refused")
        adapter = SlackWebhookAdapter("https://hooks.slack.test/x")

        with patch("src.notifications.adapters.aiohttp.ClientSession", return_value=session_context):
            with pytest.raises(ExternalServiceError):
                await adapter.send("smart_alert", PAYLOAD)
