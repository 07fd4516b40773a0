"""
Repository for smart alerts and the notification outbox.

Both are written in the caller's session so they commit together with the
state transition that produced them.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select

from src.database.models import SmartAlertDB, OutboxEventDB, OutboxStatusEnum

logger = logging.getLogger(__name__)


class AlertRepository:
    """Repository for smart alerts."""

    def __init__(self, session):
        self.session = session

    async def exists(self, dedupe_key: str) -> bool:
        result = await self.session.execute(
            select(SmartAlertDB.id).where(SmartAlertDB.dedupe_key == dedupe_key)
        )
        return result.first() is not None

    async def add(self, values: Dict[str, Any]) -> SmartAlertDB:
        alert = SmartAlertDB(**values)
        self.session.add(alert)
        await self.session.flush()
        return alert

    async def list_for_user(
        self,
        organization_id: str,
        user_id: str,
        unread_only: bool = False,
        alert_type: Optional[str] = None,
    ) -> List[SmartAlertDB]:
        query = select(SmartAlertDB).where(
            SmartAlertDB.organization_id == organization_id,
            SmartAlertDB.target_user_id == user_id,
        )
        if unread_only:
            query = query.where(SmartAlertDB.is_read.is_(False))
        if alert_type:
            query = query.where(SmartAlertDB.alert_type == alert_type)
        result = await self.session.execute(query.order_by(SmartAlertDB.created_at, SmartAlertDB.id))
        return list(result.scalars().all())

    async def mark_read(self, organization_id: str, user_id: str, alert_id: int) -> bool:
        result = await self.session.execute(
            select(SmartAlertDB).where(
                SmartAlertDB.organization_id == organization_id,
                SmartAlertDB.target_user_id == user_id,
                SmartAlertDB.id == alert_id,
            )
        )
        alert = result.scalar_one_or_none()
        if alert is None:
            return False
        alert.is_read = True
        await self.session.flush()
        return True


class OutboxRepository:
    """Repository for outbox events awaiting delivery."""

    def __init__(self, session):
        self.session = session

    async def add(
        self,
        organization_id: str,
        event_type: str,
        payload: Dict[str, Any],
        now: datetime,
    ) -> OutboxEventDB:
        event = OutboxEventDB(
            organization_id=organization_id,
            event_type=event_type,
            payload=payload,
            status=OutboxStatusEnum.PENDING.value,
            attempts=0,
            delivered_to=[],
            created_at=now,
            next_attempt_at=now,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def due(self, now: datetime, limit: int = 50) -> List[OutboxEventDB]:
        """Pending events whose next attempt is due, oldest first."""
        result = await self.session.execute(
            select(OutboxEventDB)
            .where(
                OutboxEventDB.status == OutboxStatusEnum.PENDING.value,
                OutboxEventDB.next_attempt_at <= now,
            )
            .order_by(OutboxEventDB.created_at, OutboxEventDB.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_by_status(self, status: str) -> List[OutboxEventDB]:
        result = await self.session.execute(
            select(OutboxEventDB)
            .where(OutboxEventDB.status == status)
            .order_by(OutboxEventDB.id)
        )
        return list(result.scalars().all())
