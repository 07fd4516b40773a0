"""
Outbox dispatcher.

Delivers committed outbox events to every configured adapter. Delivery is
tracked per adapter so a retry never re-posts to a sink that already got
the event. Events that keep failing are parked as dead after
settings.outbox_max_attempts attempts.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any

from config import settings as default_settings
from src.database.connection import get_database
from src.database.models import OutboxEventDB, OutboxStatusEnum
from src.database.repositories.notifications import OutboxRepository
from src.notifications.adapters import NotificationAdapter, build_adapters
from src.utils.datetime_utils import Clock, resolve_now
from src.utils.retry import RetryExhausted, retry_with_backoff, backoff_delay, WEBHOOK_RETRY
from src.workflow.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class OutboxDispatcher:
    """Moves pending outbox events to the notification adapters."""

    def __init__(
        self,
        adapters: Optional[List[NotificationAdapter]] = None,
        clock: Optional[Clock] = None,
        settings=None,
        retry_options: Optional[Dict[str, Any]] = None,
    ):
        self.settings = settings or default_settings
        self.adapters = adapters if adapters is not None else build_adapters(self.settings)
        self.clock = clock
        self.retry_options = retry_options if retry_options is not None else dict(WEBHOOK_RETRY)

    def _next_attempt(self, attempts: int, now: datetime) -> datetime:
        base = self.settings.outbox_retry_base_seconds
        delay = backoff_delay(attempts - 1, base_delay=base, max_delay=base * 32)
        return now + timedelta(seconds=delay)

    async def deliver(self, event: OutboxEventDB, now: datetime) -> str:
        """Attempt one delivery round for an event. Returns its new status."""
        delivered = list(event.delivered_to or [])
        errors: List[str] = []

        for adapter in self.adapters:
            if adapter.name in delivered:
                continue
            try:
                await retry_with_backoff(
                    adapter.send,
                    event.event_type,
                    event.payload,
                    retry_on=(ExternalServiceError,),
                    **self.retry_options,
                )
                delivered.append(adapter.name)
            except RetryExhausted as e:
                logger.error(f"Outbox event {event.id} failed on {adapter.name}: {e}")
                errors.append(f"{adapter.name}: {e}")
            except Exception as e:
                logger.error(f"Outbox event {event.id} crashed {adapter.name}: {e}", exc_info=True)
                errors.append(f"{adapter.name}: {type(e).__name__}: {e}")

        # New list so the JSON column is flagged dirty
        event.delivered_to = delivered
        event.attempts = (event.attempts or 0) + 1

        if not errors:
            event.status = OutboxStatusEnum.DELIVERED.value
            event.delivered_at = now
            event.last_error = None
        elif event.attempts >= self.settings.outbox_max_attempts:
            event.status = OutboxStatusEnum.DEAD.value
            event.last_error = "; ".join(errors)
            logger.error(f"CRITICAL: Outbox event {event.id} is dead after {event.attempts} attempts")
        else:
            event.last_error = "; ".join(errors)
            event.next_attempt_at = self._next_attempt(event.attempts, now)
            logger.warning(
                f"Outbox event {event.id} attempt {event.attempts} failed, "
                f"next try at {event.next_attempt_at.isoformat()}"
            )

        return event.status

    async def dispatch_pending(self, now: Optional[datetime] = None, session=None) -> Dict[str, int]:
        """
        Deliver every due event.

        Args:
            now: Override for the current time
            session: Session to use; a new one is opened when omitted

        Returns:
            Count of events per resulting status
        """
        moment = resolve_now(self.clock, now)
        if session is None:
            async with get_database().session() as own_session:
                return await self._dispatch(own_session, moment, commit_each=True)
        return await self._dispatch(session, moment, commit_each=False)

    async def _dispatch(self, session, moment: datetime, commit_each: bool) -> Dict[str, int]:
        """Deliver a batch. With commit_each, every event's outcome is committed on its own."""
        repo = OutboxRepository(session)
        events = await repo.due(moment, limit=self.settings.outbox_batch_size)
        if commit_each:
            # Release the connection before any webhook call or backoff sleep
            await session.commit()

        stats = {
            OutboxStatusEnum.DELIVERED.value: 0,
            OutboxStatusEnum.PENDING.value: 0,
            OutboxStatusEnum.DEAD.value: 0,
        }
        for event in events:
            status = await self.deliver(event, moment)
            stats[status] += 1
            if commit_each:
                await session.commit()
            else:
                await session.flush()
        if events:
            logger.info(f"Outbox dispatch: {stats}")
        return stats
