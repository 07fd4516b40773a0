"""
Carry-over reconciler.

Runs at the start of every scheduling cycle:
- Tasks are never moved. Incomplete tasks from past weeks are reported as
  carried over and their owners get one backlog alert per week.
- Open objectives from past weeks are moved to the current week in place.
  A carried objective blocks new weekly objectives for its owner until all
  its key results reach target or it is completed.

Running a cycle twice for the same week changes nothing the second time.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional, Union, Dict, Any, List

from pydantic import ValidationError as PydanticValidationError

from config import settings as default_settings
from src.database.models import ObjectiveDB, ObjectiveStatusEnum
from src.database.repositories.catalogs import CatalogRepository
from src.database.repositories.completions import CompletionRepository
from src.database.repositories.okrs import ObjectiveRepository
from src.database.repositories.tasks import TaskRepository
from src.models.okr import ObjectiveInput, ProgressUpdate, GenerationStatus
from src.models.task import CompletionState, ScheduledTask
from src.notifications.emitter import NotificationEmitter
from src.scheduler.weeks import current_week, week_start_of
from src.utils.datetime_utils import Clock, resolve_now
from src.workflow.completion import state_of
from src.workflow.errors import (
    CarryOverBlockedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from src.workflow.schedule import ScheduleService

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """What one reconciliation cycle did."""
    organization_id: str
    week_start: date
    phase: Optional[int] = None
    current_week: Optional[int] = None
    objectives_carried: int = 0
    objectives_completed: int = 0
    users_with_backlog: int = 0
    backlog_alerts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "organization_id": self.organization_id,
            "week_start": self.week_start.isoformat(),
            "phase": self.phase,
            "current_week": self.current_week,
            "objectives_carried": self.objectives_carried,
            "objectives_completed": self.objectives_completed,
            "users_with_backlog": self.users_with_backlog,
            "backlog_alerts": self.backlog_alerts,
        }


class CarryOverReconciler:
    """Reconciles tasks and weekly objectives across cycle boundaries."""

    def __init__(self, session, clock: Optional[Clock] = None, settings=None):
        self.session = session
        self.clock = clock
        self.settings = settings or default_settings
        self.catalogs = CatalogRepository(session)
        self.tasks = TaskRepository(session)
        self.completions = CompletionRepository(session)
        self.objectives = ObjectiveRepository(session)
        self.schedule = ScheduleService(session, clock)
        self.emitter = NotificationEmitter(session, clock)

    def week_start(self, moment: datetime) -> date:
        return week_start_of(moment, self.settings.week_start_day)

    # ==================== CYCLE ====================

    async def run_cycle(self, organization_id: str, now: Optional[datetime] = None) -> ReconcileReport:
        moment = resolve_now(self.clock, now)
        report = ReconcileReport(organization_id=organization_id, week_start=self.week_start(moment))

        await self._reconcile_objectives(organization_id, report, moment)
        await self._flag_task_backlog(organization_id, report, moment)

        logger.info(
            f"Carry-over for {organization_id} week of {report.week_start}: "
            f"{report.objectives_carried} objective(s) carried, "
            f"{report.objectives_completed} closed, "
            f"{report.users_with_backlog} user(s) with task backlog"
        )
        return report

    async def _reconcile_objectives(self, organization_id: str, report: ReconcileReport, moment: datetime):
        for objective in await self.objectives.list_stale_open(organization_id, report.week_start):
            if objective.all_key_results_met:
                await self.objectives.mark_completed(objective, moment)
                await self.emitter.objective_completed(organization_id, objective, now=moment)
                report.objectives_completed += 1
                continue

            previous = objective.week_start
            await self.objectives.carry_to(objective, report.week_start)
            await self.emitter.objective_carried_over(organization_id, objective, report.week_start, now=moment)
            report.objectives_carried += 1
            logger.info(
                f"Objective {objective.id} of {objective.owner_user_id} carried "
                f"{previous} -> {report.week_start} ({objective.carried_over_count}x)"
            )

    async def _flag_task_backlog(self, organization_id: str, report: ReconcileReport, moment: datetime):
        pointer = await self.catalogs.get_current_pointer(organization_id)
        if pointer is None:
            return

        this_week = current_week(pointer.started_at, moment, pointer.total_weeks)
        report.phase = pointer.phase
        report.current_week = this_week

        tasks = await self.tasks.list_for_phase(organization_id, pointer.phase)
        completions = await self.completions.map_for_tasks(task.id for task in tasks)

        backlog: Dict[str, int] = defaultdict(int)
        for task in tasks:
            completion = completions.get(task.id)
            if completion is not None and completion.user_id != task.owner_user_id:
                completion = None
            if task.week_number < this_week and state_of(completion) != CompletionState.VALIDATED:
                backlog[task.owner_user_id] += 1

        report.users_with_backlog = len(backlog)
        for user_id, count in backlog.items():
            alert = await self.emitter.week_backlog(
                organization_id, user_id, pointer.phase, this_week, count, now=moment
            )
            if alert is not None:
                report.backlog_alerts += 1

    async def carried_over_tasks(
        self,
        organization_id: str,
        user_id: str,
        phase: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ScheduledTask]:
        """Incomplete tasks from past weeks (defaults to the current phase)."""
        if phase is None:
            pointer = await self.catalogs.get_current_pointer(organization_id)
            if pointer is None:
                return []
            phase = pointer.phase
        return await self.schedule.carried_over_tasks(organization_id, user_id, phase, now=now)

    # ==================== WEEKLY OBJECTIVES ====================

    async def generation_status(
        self,
        organization_id: str,
        owner_id: str,
        now: Optional[datetime] = None,
    ) -> GenerationStatus:
        """Whether the user may generate a new weekly objective now."""
        this_week = self.week_start(resolve_now(self.clock, now))
        open_objectives = [
            objective
            for objective in await self.objectives.list_for_owner(organization_id, owner_id, open_only=True)
            if not objective.all_key_results_met
        ]

        for objective in open_objectives:
            if objective.carried_over_count > 0 or objective.week_start < this_week:
                return GenerationStatus(
                    allowed=False,
                    reason=(
                        f"El objetivo \"{objective.title}\" de la semana del "
                        f"{objective.original_week_start.isoformat()} sigue abierto. "
                        "Alcanza todos sus resultados clave o márcalo como completado "
                        "antes de generar uno nuevo."
                    ),
                    week_start=this_week,
                    blocking_objective_id=objective.id,
                )

        for objective in open_objectives:
            if objective.week_start == this_week:
                return GenerationStatus(
                    allowed=False,
                    reason=(
                        f"Ya tienes el objetivo \"{objective.title}\" para esta semana. "
                        "Complétalo antes de generar otro."
                    ),
                    week_start=this_week,
                    blocking_objective_id=objective.id,
                )

        return GenerationStatus(allowed=True, week_start=this_week)

    async def create_weekly_objective(
        self,
        organization_id: str,
        owner_id: str,
        objective: Union[ObjectiveInput, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> ObjectiveDB:
        """
        Create this week's objective for a user.

        Raises:
            ValidationError: malformed objective or key results
            CarryOverBlockedError: a carried or current objective is unresolved
        """
        if not isinstance(objective, ObjectiveInput):
            try:
                objective = ObjectiveInput.model_validate(objective)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid objective: {e.errors()[0].get('msg')}")

        status = await self.generation_status(organization_id, owner_id, now=now)
        if not status.allowed:
            logger.info(f"Objective generation refused for {owner_id}: blocked by {status.blocking_objective_id}")
            raise CarryOverBlockedError(status.reason)

        return await self.objectives.create(
            organization_id,
            owner_id,
            objective.title,
            status.week_start,
            [kr.model_dump() for kr in objective.key_results],
            description=objective.description,
        )

    async def _owned_objective(self, organization_id: str, objective_id: int, actor_id: str) -> ObjectiveDB:
        objective = await self.objectives.get(organization_id, objective_id)
        if objective is None:
            raise NotFoundError(f"Objective {objective_id} not found")
        if objective.owner_user_id != actor_id:
            raise PermissionDeniedError("Only the objective owner can update it")
        return objective

    async def record_progress(
        self,
        organization_id: str,
        key_result_id: int,
        actor_id: str,
        new_value: float,
        comment: str,
        now: Optional[datetime] = None,
    ) -> ObjectiveDB:
        """
        Record a new value on a key result.

        The objective closes itself when every key result reaches target.
        """
        try:
            update = ProgressUpdate(new_value=new_value, comment=comment)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid progress update: {e.errors()[0].get('msg')}")

        key_result = await self.objectives.get_key_result(organization_id, key_result_id)
        if key_result is None:
            raise NotFoundError(f"Key result {key_result_id} not found")

        objective = await self._owned_objective(organization_id, key_result.objective_id, actor_id)
        if objective.status == ObjectiveStatusEnum.COMPLETED.value:
            raise ValidationError(f"Objective \"{objective.title}\" is already completed")

        moment = resolve_now(self.clock, now)
        key_result.progress_log = list(key_result.progress_log or []) + [{
            "previous_value": key_result.current_value,
            "new_value": update.new_value,
            "comment": update.comment,
            "recorded_by": actor_id,
            "recorded_at": moment.isoformat(),
        }]
        key_result.current_value = update.new_value
        await self.session.flush()

        logger.info(
            f"Key result {key_result.id} of objective {objective.id}: "
            f"{key_result.current_value}/{key_result.target_value}"
        )

        if objective.all_key_results_met:
            await self.objectives.mark_completed(objective, moment)
            await self.emitter.objective_completed(organization_id, objective, now=moment)
            logger.info(f"Objective {objective.id} completed: all key results met")

        return objective

    async def complete_objective(
        self,
        organization_id: str,
        objective_id: int,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> ObjectiveDB:
        """Close an objective by hand. Completing it twice is a no-op."""
        objective = await self._owned_objective(organization_id, objective_id, actor_id)
        if objective.status == ObjectiveStatusEnum.COMPLETED.value:
            return objective

        moment = resolve_now(self.clock, now)
        await self.objectives.mark_completed(objective, moment)
        await self.emitter.objective_completed(organization_id, objective, now=moment)
        logger.info(f"Objective {objective.id} marked completed by {actor_id}")
        return objective
