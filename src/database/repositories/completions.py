"""
Completion repository.

Rows exist only for tasks that left the pending state; an unmark archives
the row and then deletes it.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from src.database.models import TaskCompletionDB, CompletionArchiveDB
from src.database.exceptions import DatabaseConstraintError, DatabaseOperationError

logger = logging.getLogger(__name__)


class CompletionRepository:
    """Repository for task completions and their archive."""

    def __init__(self, session):
        self.session = session

    async def get(self, task_id: int, user_id: str) -> Optional[TaskCompletionDB]:
        result = await self.session.execute(
            select(TaskCompletionDB).where(
                TaskCompletionDB.task_id == task_id,
                TaskCompletionDB.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def map_for_tasks(self, task_ids: Iterable[int]) -> Dict[int, TaskCompletionDB]:
        """Completions keyed by task id (owner rows only exist per task)."""
        task_ids = list(task_ids)
        if not task_ids:
            return {}
        result = await self.session.execute(
            select(TaskCompletionDB).where(TaskCompletionDB.task_id.in_(task_ids))
        )
        return {c.task_id: c for c in result.scalars().all()}

    async def upsert(
        self,
        task_id: int,
        user_id: str,
        organization_id: str,
        values: Dict[str, Any],
    ) -> TaskCompletionDB:
        """
        Insert or update the completion keyed by (task_id, user_id).

        No version column: concurrent writers resolve last-write-wins.
        """
        try:
            completion = await self.get(task_id, user_id)
            if completion is None:
                completion = TaskCompletionDB(
                    task_id=task_id,
                    user_id=user_id,
                    organization_id=organization_id,
                    **values,
                )
                self.session.add(completion)
            else:
                for key, value in values.items():
                    setattr(completion, key, value)

            await self.session.flush()
            return completion

        except IntegrityError as e:
            logger.error(f"Constraint violation upserting completion {task_id}/{user_id}: {e}")
            raise DatabaseConstraintError(f"Cannot save completion for task {task_id}: constraint violation")

        except Exception as e:
            logger.error(f"CRITICAL: Completion upsert failed for task {task_id}: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to save completion for task {task_id}: {e}")

    async def archive_and_delete(
        self,
        completion: TaskCompletionDB,
        unmarked_by: str,
        now: datetime,
    ) -> CompletionArchiveDB:
        """Snapshot a completion into the archive, then hard-delete it."""
        try:
            archived = CompletionArchiveDB(
                task_id=completion.task_id,
                user_id=completion.user_id,
                organization_id=completion.organization_id,
                state_at_unmark=completion.state,
                completed_at=completion.completed_at,
                validated_by=completion.validated_by,
                leader_feedback=completion.leader_feedback,
                user_insights=completion.user_insights,
                impact_measurement=completion.impact_measurement,
                unmarked_by=unmarked_by,
                unmarked_at=now,
            )
            self.session.add(archived)
            await self.session.delete(completion)
            await self.session.flush()
            return archived

        except Exception as e:
            logger.error(f"CRITICAL: Unmark failed for completion {completion.id}: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to unmark task {completion.task_id}: {e}")

    async def archive_for(self, task_id: int, user_id: str) -> List[CompletionArchiveDB]:
        result = await self.session.execute(
            select(CompletionArchiveDB)
            .where(
                CompletionArchiveDB.task_id == task_id,
                CompletionArchiveDB.user_id == user_id,
            )
            .order_by(CompletionArchiveDB.unmarked_at)
        )
        return list(result.scalars().all())

    async def count_for(self, task_id: int, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count(TaskCompletionDB.id)).where(
                TaskCompletionDB.task_id == task_id,
                TaskCompletionDB.user_id == user_id,
            )
        )
        return result.scalar() or 0
