"""
Task repository.

Handles:
- Reading tasks of the active catalog only (via the phase pointer)
- Owner and leader views of a phase
- In-place content replacement for swaps
- Locking
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select

from src.database.models import TaskDB, PhasePointerDB
from src.database.exceptions import DatabaseOperationError

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for task operations."""

    def __init__(self, session):
        self.session = session

    def _active_tasks(self, organization_id: str):
        """Select tasks whose catalog is the active one for their phase."""
        return (
            select(TaskDB)
            .join(
                PhasePointerDB,
                (PhasePointerDB.active_catalog_id == TaskDB.catalog_id)
                & (PhasePointerDB.organization_id == TaskDB.organization_id),
            )
            .where(TaskDB.organization_id == organization_id)
        )

    async def get_active(self, organization_id: str, task_id: int) -> Optional[TaskDB]:
        """Get a task if it belongs to an active catalog."""
        result = await self.session.execute(
            self._active_tasks(organization_id).where(TaskDB.id == task_id)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, organization_id: str, owner_user_id: str, phase: int) -> List[TaskDB]:
        """All of a user's tasks for a phase, ordered by order_index."""
        result = await self.session.execute(
            self._active_tasks(organization_id)
            .where(TaskDB.owner_user_id == owner_user_id, TaskDB.phase == phase)
            .order_by(TaskDB.order_index, TaskDB.id)
        )
        return list(result.scalars().all())

    async def list_for_leader(self, organization_id: str, leader_id: str, phase: int) -> List[TaskDB]:
        """Collaborative tasks a leader is responsible for (excluding their own)."""
        result = await self.session.execute(
            self._active_tasks(organization_id)
            .where(
                TaskDB.leader_id == leader_id,
                TaskDB.owner_user_id != leader_id,
                TaskDB.phase == phase,
            )
            .order_by(TaskDB.owner_user_id, TaskDB.order_index)
        )
        return list(result.scalars().all())

    async def list_for_phase(self, organization_id: str, phase: int) -> List[TaskDB]:
        result = await self.session.execute(
            self._active_tasks(organization_id)
            .where(TaskDB.phase == phase)
            .order_by(TaskDB.owner_user_id, TaskDB.order_index)
        )
        return list(result.scalars().all())

    async def replace_content(
        self,
        task: TaskDB,
        title: str,
        description: Optional[str],
        area: str,
        now: datetime,
    ) -> TaskDB:
        """Replace a task's content; its schedule slot is untouched."""
        try:
            task.title = title
            task.description = description
            task.area = area
            task.updated_at = now
            await self.session.flush()
            return task

        except Exception as e:
            logger.error(f"CRITICAL: Content replacement failed for task {task.id}: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to update task {task.id}: {e}")

    async def set_locked(self, task: TaskDB, locked: bool) -> TaskDB:
        task.is_locked = locked
        await self.session.flush()
        logger.info(f"Task {task.id} {'locked' if locked else 'unlocked'}")
        return task
