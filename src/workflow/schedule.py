"""
Weekly schedule read model.

Week numbers are fixed on the task at generation time; only the current
week moves, derived from the phase pointer's start date and the clock.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict

from config.team import get_roster, get_area_leaders
from src.database.models import TaskDB, TaskCompletionDB
from src.database.repositories.catalogs import CatalogRepository
from src.database.repositories.tasks import TaskRepository
from src.database.repositories.completions import CompletionRepository
from src.models.task import Task, ScheduledTask, ScheduleView, CompletionState
from src.scheduler.weeks import current_week, progress_percent
from src.utils.datetime_utils import Clock, resolve_now
from src.workflow.completion import state_of
from src.workflow.errors import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


def schedule_task(
    task: TaskDB,
    completion: Optional[TaskCompletionDB],
    this_week: int,
    read_only: bool,
) -> ScheduledTask:
    """Decorate a task with its state and carry-over flags for one view."""
    state = state_of(completion)
    done = state == CompletionState.VALIDATED
    carried = task.week_number < this_week and not done
    return ScheduledTask(
        **Task.model_validate(task).model_dump(),
        state=state,
        is_carried_over=carried,
        is_actionable=not done and (not read_only or carried),
    )


def build_schedule_view(
    phase: int,
    user_id: str,
    tasks: List[TaskDB],
    completions: Dict[int, TaskCompletionDB],
    started_at: datetime,
    total_weeks: int,
    now: datetime,
    week: Optional[int] = None,
) -> ScheduleView:
    """Assemble the schedule of one user for one phase."""
    this_week = current_week(started_at, now, total_weeks)
    viewed_week = this_week if week is None else week
    if not 1 <= viewed_week <= total_weeks:
        raise ValidationError(f"Week must be between 1 and {total_weeks}, got {viewed_week}")
    read_only = viewed_week != this_week

    tasks_by_week: Dict[int, List[ScheduledTask]] = {w: [] for w in range(1, total_weeks + 1)}
    scheduled = []
    for task in tasks:
        item = schedule_task(task, completions.get(task.id), this_week, read_only)
        scheduled.append(item)
        tasks_by_week.setdefault(task.week_number, []).append(item)

    carried_over = [item for item in scheduled if item.is_carried_over]
    if viewed_week == this_week:
        visible = carried_over + tasks_by_week[viewed_week]
    else:
        visible = list(tasks_by_week[viewed_week])

    completed = sum(1 for item in scheduled if item.is_completed)

    return ScheduleView(
        phase=phase,
        user_id=user_id,
        completed_tasks=completed,
        total_tasks=len(scheduled),
        progress_percent=progress_percent(completed, len(scheduled)),
        tasks_by_week=tasks_by_week,
        current_week=this_week,
        total_weeks=total_weeks,
        viewed_week=viewed_week,
        read_only=read_only,
        visible_tasks=visible,
        carried_over=carried_over,
    )


class ScheduleService:
    """Reads schedules and leader queues from the active catalogs."""

    def __init__(self, session, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock
        self.catalogs = CatalogRepository(session)
        self.tasks = TaskRepository(session)
        self.completions = CompletionRepository(session)

    async def _owner_completions(self, tasks: List[TaskDB]) -> Dict[int, TaskCompletionDB]:
        rows = await self.completions.map_for_tasks(task.id for task in tasks)
        owners = {task.id: task.owner_user_id for task in tasks}
        return {task_id: row for task_id, row in rows.items() if row.user_id == owners[task_id]}

    async def get_schedule(
        self,
        organization_id: str,
        user_id: str,
        phase: int,
        week: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ScheduleView:
        pointer = await self.catalogs.get_pointer(organization_id, phase)
        if pointer is None:
            raise NotFoundError(f"Phase {phase} has not been generated")

        tasks = await self.tasks.list_for_owner(organization_id, user_id, phase)
        completions = await self._owner_completions(tasks)

        return build_schedule_view(
            phase,
            user_id,
            tasks,
            completions,
            pointer.started_at,
            pointer.total_weeks,
            resolve_now(self.clock, now),
            week=week,
        )

    async def carried_over_tasks(
        self,
        organization_id: str,
        user_id: str,
        phase: int,
        now: Optional[datetime] = None,
    ) -> List[ScheduledTask]:
        """Incomplete tasks from weeks before the current one."""
        view = await self.get_schedule(organization_id, user_id, phase, now=now)
        return view.carried_over

    async def get_leader_queue(
        self,
        organization_id: str,
        leader_id: str,
        phase: int,
        now: Optional[datetime] = None,
    ) -> List[ScheduledTask]:
        """Collaborative tasks completed by their executor and awaiting this leader."""
        pointer = await self.catalogs.get_pointer(organization_id, phase)
        if pointer is None:
            raise NotFoundError(f"Phase {phase} has not been generated")

        this_week = current_week(pointer.started_at, resolve_now(self.clock, now), pointer.total_weeks)
        tasks = await self.tasks.list_for_leader(organization_id, leader_id, phase)
        completions = await self._owner_completions(tasks)

        queue = []
        for task in tasks:
            completion = completions.get(task.id)
            if state_of(completion) == CompletionState.COMPLETED_BY_USER:
                queue.append(schedule_task(task, completion, this_week, read_only=False))
        return queue

    async def set_task_lock(
        self,
        organization_id: str,
        task_id: int,
        actor_id: str,
        locked: bool,
    ) -> Task:
        """
        Freeze or release a task. A locked task can be neither completed nor swapped.

        Only the task's leader or a leader of its area may change the lock.
        """
        task = await self.tasks.get_active(organization_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")

        area_leaders = get_area_leaders(task.area)
        area_leader_ids = {member["user_id"] for member in get_roster() if member["username"] in area_leaders}
        if actor_id != task.leader_id and actor_id not in area_leader_ids:
            raise PermissionDeniedError("Only a leader of the task's area can lock it")

        if task.is_locked != locked:
            await self.tasks.set_locked(task, locked)
        return Task.model_validate(task)
