"""
Swap quota and swap log repository.

Quota consumption is a single conditional UPDATE so two concurrent swaps
can never push used_swaps past total_swaps.
"""

import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from src.database.models import SwapQuotaDB, TaskSwapDB
from src.database.exceptions import DatabaseConstraintError, DatabaseOperationError

logger = logging.getLogger(__name__)


class SwapRepository:
    """Repository for swap quotas and the swap log."""

    def __init__(self, session):
        self.session = session

    async def get_quota(self, organization_id: str, user_id: str, phase: int) -> Optional[SwapQuotaDB]:
        result = await self.session.execute(
            select(SwapQuotaDB).where(
                SwapQuotaDB.organization_id == organization_id,
                SwapQuotaDB.user_id == user_id,
                SwapQuotaDB.phase == phase,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_quota(
        self,
        organization_id: str,
        user_id: str,
        phase: int,
        mode: str,
        total_swaps: int,
    ) -> SwapQuotaDB:
        """Get the quota row, creating it lazily on first use."""
        quota = await self.get_quota(organization_id, user_id, phase)
        if quota is not None:
            return quota

        try:
            quota = SwapQuotaDB(
                organization_id=organization_id,
                user_id=user_id,
                phase=phase,
                mode=mode,
                total_swaps=total_swaps,
                used_swaps=0,
            )
            self.session.add(quota)
            await self.session.flush()
            logger.info(f"Created swap quota for {user_id} phase {phase}: {total_swaps} ({mode})")
            return quota

        except IntegrityError as e:
            logger.error(f"Constraint violation creating swap quota for {user_id} phase {phase}: {e}")
            raise DatabaseConstraintError(f"Swap quota for {user_id} phase {phase} already exists")

    async def consume(self, quota: SwapQuotaDB) -> bool:
        """Use one swap. Returns False when the quota is already exhausted."""
        try:
            result = await self.session.execute(
                update(SwapQuotaDB)
                .where(
                    SwapQuotaDB.id == quota.id,
                    SwapQuotaDB.used_swaps < SwapQuotaDB.total_swaps,
                )
                .values(used_swaps=SwapQuotaDB.used_swaps + 1)
                .execution_options(synchronize_session=False)
            )
            await self.session.refresh(quota)
            return result.rowcount == 1

        except Exception as e:
            logger.error(f"CRITICAL: Consuming swap quota {quota.id} failed: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to consume swap quota: {e}")

    async def log_swap(self, values: Dict[str, Any]) -> TaskSwapDB:
        swap = TaskSwapDB(**values)
        self.session.add(swap)
        await self.session.flush()
        return swap

    async def history(self, organization_id: str, user_id: str, phase: int) -> List[TaskSwapDB]:
        result = await self.session.execute(
            select(TaskSwapDB)
            .where(
                TaskSwapDB.organization_id == organization_id,
                TaskSwapDB.user_id == user_id,
                TaskSwapDB.phase == phase,
            )
            .order_by(TaskSwapDB.swapped_at, TaskSwapDB.id)
        )
        return list(result.scalars().all())
