"""
Repository for weekly objectives and key results.
"""

import logging
from datetime import date, datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select

from src.database.models import ObjectiveDB, KeyResultDB, ObjectiveStatusEnum
from src.database.exceptions import DatabaseOperationError

logger = logging.getLogger(__name__)


class ObjectiveRepository:
    """Repository for objectives with their key results."""

    def __init__(self, session):
        self.session = session

    async def create(
        self,
        organization_id: str,
        owner_user_id: str,
        title: str,
        week_start: date,
        key_results: List[Dict[str, Any]],
        description: Optional[str] = None,
    ) -> ObjectiveDB:
        try:
            objective = ObjectiveDB(
                organization_id=organization_id,
                owner_user_id=owner_user_id,
                title=title,
                description=description,
                status=ObjectiveStatusEnum.ACTIVE.value,
                week_start=week_start,
                original_week_start=week_start,
                carried_over_count=0,
                key_results=[KeyResultDB(**kr) for kr in key_results],
            )
            self.session.add(objective)
            await self.session.flush()
            logger.info(f"Created objective {objective.id} for {owner_user_id} week {week_start}")
            return objective

        except Exception as e:
            logger.error(f"CRITICAL: Objective creation failed for {owner_user_id}: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to create objective: {e}")

    async def get(self, organization_id: str, objective_id: int) -> Optional[ObjectiveDB]:
        result = await self.session.execute(
            select(ObjectiveDB).where(
                ObjectiveDB.organization_id == organization_id,
                ObjectiveDB.id == objective_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_key_result(self, organization_id: str, key_result_id: int) -> Optional[KeyResultDB]:
        result = await self.session.execute(
            select(KeyResultDB)
            .join(ObjectiveDB, ObjectiveDB.id == KeyResultDB.objective_id)
            .where(
                ObjectiveDB.organization_id == organization_id,
                KeyResultDB.id == key_result_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_stale_open(self, organization_id: str, before: date) -> List[ObjectiveDB]:
        """Open objectives whose week_start is before `before`."""
        result = await self.session.execute(
            select(ObjectiveDB)
            .where(
                ObjectiveDB.organization_id == organization_id,
                ObjectiveDB.status != ObjectiveStatusEnum.COMPLETED.value,
                ObjectiveDB.week_start < before,
            )
            .order_by(ObjectiveDB.id)
        )
        return list(result.scalars().all())

    async def list_for_owner(
        self,
        organization_id: str,
        owner_user_id: str,
        open_only: bool = False,
    ) -> List[ObjectiveDB]:
        query = select(ObjectiveDB).where(
            ObjectiveDB.organization_id == organization_id,
            ObjectiveDB.owner_user_id == owner_user_id,
        )
        if open_only:
            query = query.where(ObjectiveDB.status != ObjectiveStatusEnum.COMPLETED.value)
        result = await self.session.execute(query.order_by(ObjectiveDB.week_start, ObjectiveDB.id))
        return list(result.scalars().all())

    async def mark_completed(self, objective: ObjectiveDB, now: datetime) -> ObjectiveDB:
        objective.status = ObjectiveStatusEnum.COMPLETED.value
        objective.completed_at = now
        await self.session.flush()
        return objective

    async def carry_to(self, objective: ObjectiveDB, week_start: date) -> ObjectiveDB:
        """Move an open objective to a later week, in place."""
        objective.week_start = week_start
        objective.carried_over_count = (objective.carried_over_count or 0) + 1
        await self.session.flush()
        return objective
