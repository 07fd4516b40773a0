"""
Outgoing notification adapters.

Each adapter posts one outbox payload to an external sink. Any failure is
raised as ExternalServiceError; the dispatcher decides whether to retry.
"""

import asyncio
import logging
from typing import Dict, Any, List

import aiohttp

from src.workflow.errors import ExternalServiceError

logger = logging.getLogger(__name__)

# Discord embed colors by alert severity
SEVERITY_COLORS = {
    "urgent": 0xE74C3C,
    "important": 0xF39C12,
    "opportunity": 0x3498DB,
    "celebration": 0x2ECC71,
    "info": 0x95A5A6,
}


class NotificationAdapter:
    """Base class for notification sinks."""

    name = "adapter"

    def __init__(self, webhook_url: str, timeout: int = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def format(self, event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def send(self, event_type: str, payload: Dict[str, Any]) -> None:
        body = self.format(event_type, payload)
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.webhook_url, json=body) as response:
                    if response.status not in (200, 204):
                        error = await response.text()
                        raise ExternalServiceError(
                            f"{self.name} webhook error: {response.status} - {error[:200]}",
                            adapter=self.name,
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalServiceError(f"{self.name} webhook unreachable: {e}", adapter=self.name) from e

        logger.debug(f"Delivered {event_type} to {self.name}")


class SlackWebhookAdapter(NotificationAdapter):
    """Slack incoming webhook."""

    name = "slack"

    def format(self, event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        text = f"*{payload.get('title', event_type)}*\n{payload.get('message', '')}"
        return {
            "text": text,
            "blocks": [
                {"type": "section", "text": {"type": "mrkdwn", "text": text}},
                {
                    "type": "context",
                    "elements": [{
                        "type": "mrkdwn",
                        "text": f"{payload.get('severity', 'info')} · <{payload.get('target_user_id', '')}>",
                    }],
                },
            ],
        }


class DiscordWebhookAdapter(NotificationAdapter):
    """Discord channel webhook."""

    name = "discord"

    def format(self, event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        severity = payload.get("severity", "info")
        return {
            "embeds": [{
                "title": payload.get("title", event_type)[:256],
                "description": payload.get("message", "")[:4000],
                "color": SEVERITY_COLORS.get(severity, SEVERITY_COLORS["info"]),
                "footer": {"text": f"{payload.get('alert_type', event_type)} · {severity}"},
            }]
        }


def build_adapters(settings) -> List[NotificationAdapter]:
    """Adapters for every webhook configured in settings."""
    adapters: List[NotificationAdapter] = []
    if settings.slack_webhook_url:
        adapters.append(SlackWebhookAdapter(settings.slack_webhook_url, settings.adapter_timeout_seconds))
    if settings.discord_webhook_url:
        adapters.append(DiscordWebhookAdapter(settings.discord_webhook_url, settings.adapter_timeout_seconds))
    return adapters
