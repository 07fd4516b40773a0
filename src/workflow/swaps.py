"""
Swap quota manager.

A swap replaces a task's title, description and area in place. The task
keeps its week, order and completion state. Each user has a fixed number of
swaps per phase, set by the swap mode when the quota row is first created.
"""

import logging
from datetime import datetime
from typing import Optional, Union, Dict, Any, List

from pydantic import ValidationError as PydanticValidationError

from config import settings as default_settings
from src.database.models import SwapQuotaDB, TaskSwapDB
from src.database.repositories.tasks import TaskRepository
from src.database.repositories.completions import CompletionRepository
from src.database.repositories.swaps import SwapRepository
from src.models.task import Task, TaskContent, SwapQuotaView, SwapResult
from src.notifications.emitter import NotificationEmitter
from src.utils.datetime_utils import Clock, resolve_now
from src.workflow.errors import (
    NotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def quota_view(quota: SwapQuotaDB) -> SwapQuotaView:
    return SwapQuotaView(
        remaining_swaps=quota.remaining_swaps,
        total_swaps=quota.total_swaps,
        used_swaps=quota.used_swaps,
    )


class SwapQuotaManager:
    """Tracks swap quotas and applies content swaps."""

    def __init__(self, session, clock: Optional[Clock] = None, settings=None):
        self.session = session
        self.clock = clock
        self.settings = settings or default_settings
        self.tasks = TaskRepository(session)
        self.completions = CompletionRepository(session)
        self.swaps = SwapRepository(session)
        self.emitter = NotificationEmitter(session, clock)

    async def _quota(self, organization_id: str, user_id: str, phase: int) -> SwapQuotaDB:
        mode = self.settings.swap_mode
        return await self.swaps.get_or_create_quota(
            organization_id, user_id, phase, mode, self.settings.swap_limit_for(mode)
        )

    async def get_quota(self, organization_id: str, user_id: str, phase: int) -> SwapQuotaView:
        return quota_view(await self._quota(organization_id, user_id, phase))

    async def swap(
        self,
        organization_id: str,
        task_id: int,
        requester_id: str,
        new_content: Union[TaskContent, Dict[str, Any]],
        leader_comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SwapResult:
        """
        Replace a task's content, consuming one swap of the requester.

        The owner may swap any of their tasks. The leader of a collaborative
        task may swap it too, with a reason, and the owner is notified.

        Raises:
            NotFoundError: task not in an active catalog
            PermissionDeniedError: requester is neither owner nor leader
            ValidationError: task completed or locked, bad content, missing reason
            QuotaExceededError: no swaps left; content unchanged
        """
        task = await self.tasks.get_active(organization_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        is_owner = requester_id == task.owner_user_id
        is_leader = task.is_collaborative and requester_id == task.leader_id
        if not is_owner and not is_leader:
            raise PermissionDeniedError("Only the task owner or its leader can swap it")

        by_leader = is_leader and not is_owner
        if by_leader and not (leader_comment and leader_comment.strip()):
            raise ValidationError("A leader must explain why the task is being changed")

        if task.is_locked:
            raise ValidationError(f"Task \"{task.title}\" is locked")
        if await self.completions.count_for(task.id, task.owner_user_id):
            raise ValidationError("Completed tasks cannot be swapped; unmark it first")

        if not isinstance(new_content, TaskContent):
            try:
                new_content = TaskContent.model_validate(new_content)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid task content: {e.errors()[0].get('msg')}")

        quota = await self._quota(organization_id, requester_id, task.phase)
        if quota.remaining_swaps <= 0 or not await self.swaps.consume(quota):
            raise QuotaExceededError(
                f"No swaps left for phase {task.phase} ({quota.used_swaps}/{quota.total_swaps} used)"
            )

        moment = resolve_now(self.clock, now)
        old_title, old_description, old_area = task.title, task.description, task.area
        await self.tasks.replace_content(
            task,
            new_content.title,
            new_content.description,
            new_content.area or task.area,
            moment,
        )
        await self.swaps.log_swap({
            "task_id": task.id,
            "organization_id": organization_id,
            "user_id": requester_id,
            "phase": task.phase,
            "week_number": task.week_number,
            "old_title": old_title,
            "new_title": task.title,
            "old_description": old_description,
            "new_description": task.description,
            "old_area": old_area,
            "new_area": task.area,
            "leader_comment": leader_comment.strip() if by_leader else None,
            "swapped_at": moment,
        })

        if by_leader:
            await self.emitter.task_changed_by_leader(
                organization_id, task, old_title, leader_comment.strip(), now=moment
            )

        logger.info(
            f"Task {task.id} swapped by {requester_id}: \"{old_title}\" -> \"{task.title}\" "
            f"({quota.remaining_swaps}/{quota.total_swaps} left)"
        )
        return SwapResult(
            task=Task.model_validate(task),
            quota=quota_view(quota),
            swapped_by_leader=by_leader,
        )

    async def history(self, organization_id: str, user_id: str, phase: int) -> List[TaskSwapDB]:
        return await self.swaps.history(organization_id, user_id, phase)
