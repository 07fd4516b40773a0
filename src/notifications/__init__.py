"""Alert emission and outbox delivery."""

from .emitter import NotificationEmitter
from .adapters import NotificationAdapter, SlackWebhookAdapter, DiscordWebhookAdapter, build_adapters
from .dispatcher import OutboxDispatcher

__all__ = [
    "NotificationEmitter",
    "NotificationAdapter",
    "SlackWebhookAdapter",
    "DiscordWebhookAdapter",
    "build_adapters",
    "OutboxDispatcher",
]
