"""
Completion and validation state machine.

States for a (task, owner) pair:

    pending ──complete──► completed_by_user ──validate──► validated
    pending ──complete (no leader)─────────────────────► validated

unmark returns any state to pending by archiving and deleting the row.
Pending is never stored: it is the absence of a completion row.
"""

import logging
from datetime import datetime
from typing import Optional, Union, Dict, Any

from pydantic import ValidationError as PydanticValidationError

from src.database.models import TaskDB, TaskCompletionDB, CompletionStateEnum
from src.database.repositories.tasks import TaskRepository
from src.database.repositories.completions import CompletionRepository
from src.models.impact import ImpactMeasurement
from src.models.task import CompletionState, CompletionResult, LeaderFeedback, UserInsights
from src.notifications.emitter import NotificationEmitter
from src.utils.datetime_utils import Clock, resolve_now
from src.workflow.errors import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


def state_of(completion: Optional[TaskCompletionDB]) -> CompletionState:
    """Explicit workflow state of a completion row (None = pending)."""
    if completion is None:
        return CompletionState.PENDING
    return CompletionState(completion.state)


def _validation_reason(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item.get("loc", ()))
        parts.append(f"{field}: {item.get('msg')}" if field else item.get("msg", ""))
    return "; ".join(parts)


class CompletionService:
    """Applies completion, validation and unmark transitions."""

    def __init__(self, session, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock
        self.tasks = TaskRepository(session)
        self.completions = CompletionRepository(session)
        self.emitter = NotificationEmitter(session, clock)

    async def _get_task(self, organization_id: str, task_id: int) -> TaskDB:
        task = await self.tasks.get_active(organization_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    @staticmethod
    def _result(task_id: int, user_id: str, completion: TaskCompletionDB, changed: bool) -> CompletionResult:
        return CompletionResult(
            task_id=task_id,
            user_id=user_id,
            state=state_of(completion),
            changed=changed,
            completed_at=completion.completed_at,
            leader_feedback=completion.leader_feedback,
        )

    async def complete(
        self,
        organization_id: str,
        task_id: int,
        actor_id: str,
        user_insights: Optional[Union[UserInsights, Dict[str, Any]]] = None,
        impact: Optional[Union[ImpactMeasurement, Dict[str, Any]]] = None,
        now: Optional[datetime] = None,
    ) -> CompletionResult:
        """
        Mark a task completed by its owner.

        Leaderless tasks are self-validated in the same write. Collaborative
        tasks wait for their leader and the leader gets a validation request.
        Re-completing never downgrades a validated task.
        """
        task = await self._get_task(organization_id, task_id)
        if actor_id != task.owner_user_id:
            raise PermissionDeniedError("Only the task owner can complete it")
        if task.is_locked:
            raise ValidationError(f"Task \"{task.title}\" is locked")

        try:
            if isinstance(user_insights, dict):
                user_insights = UserInsights.model_validate(user_insights)
            if isinstance(impact, dict):
                impact = ImpactMeasurement.model_validate(impact)
        except PydanticValidationError as e:
            raise ValidationError(_validation_reason(e))

        if task.requires_impact:
            if impact is None:
                raise ValidationError(f"Task \"{task.title}\" requires an impact measurement")
            gate_errors = impact.gate_errors()
            if gate_errors:
                raise ValidationError("; ".join(gate_errors))

        moment = resolve_now(self.clock, now)
        values: Dict[str, Any] = {}
        if user_insights is not None:
            values["user_insights"] = user_insights.model_dump(by_alias=True, exclude_none=True)
        if impact is not None:
            values["impact_measurement"] = impact.to_record(task.area)

        existing = await self.completions.get(task_id, actor_id)
        if existing is not None:
            # Already completed: only the reflections are refreshed
            completion = await self.completions.upsert(task_id, actor_id, organization_id, values)
            logger.info(f"Task {task_id} re-completed by {actor_id}, state stays {completion.state}")
            return self._result(task_id, actor_id, completion, changed=False)

        values["completed_at"] = moment
        if task.is_collaborative:
            values["state"] = CompletionStateEnum.COMPLETED_BY_USER.value
        else:
            values["state"] = CompletionStateEnum.VALIDATED.value
            values["validated_at"] = moment
            values["validated_by"] = actor_id

        completion = await self.completions.upsert(task_id, actor_id, organization_id, values)

        if task.is_collaborative:
            await self.emitter.validation_request(organization_id, task, actor_id, now=moment)
            logger.info(f"Task {task_id} completed by {actor_id}, awaiting validation by {task.leader_id}")
        else:
            logger.info(f"Task {task_id} completed and self-validated by {actor_id}")

        return self._result(task_id, actor_id, completion, changed=True)

    async def validate(
        self,
        organization_id: str,
        task_id: int,
        executor_id: str,
        leader_id: str,
        feedback: Union[LeaderFeedback, Dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> CompletionResult:
        """
        Leader validation of a collaborative task completed by its executor.

        Raises:
            PermissionDeniedError: caller is not the task's leader
            ValidationError: feedback incomplete or rating outside 1-5
            NotFoundError: the executor has not completed the task
        """
        task = await self._get_task(organization_id, task_id)
        if task.leader_id is None:
            raise PermissionDeniedError("Task has no leader; it is validated when completed")
        if task.leader_id != leader_id:
            raise PermissionDeniedError("Only the task's leader can validate it")

        if not isinstance(feedback, LeaderFeedback):
            try:
                feedback = LeaderFeedback.model_validate(feedback or {})
            except PydanticValidationError as e:
                raise ValidationError(_validation_reason(e))

        completion = await self.completions.get(task_id, executor_id)
        if completion is None:
            raise NotFoundError(f"Task {task_id} has not been completed by {executor_id}")

        if completion.state == CompletionStateEnum.VALIDATED.value:
            logger.info(f"Task {task_id} for {executor_id} already validated, nothing to do")
            return self._result(task_id, executor_id, completion, changed=False)

        moment = resolve_now(self.clock, now)
        completion = await self.completions.upsert(task_id, executor_id, organization_id, {
            "state": CompletionStateEnum.VALIDATED.value,
            "leader_feedback": feedback.model_dump(by_alias=True),
            "validated_at": moment,
            "validated_by": leader_id,
        })

        await self.emitter.task_validated(organization_id, task, executor_id, now=moment)
        logger.info(f"Task {task_id} of {executor_id} validated by {leader_id} (rating {feedback.rating})")
        return self._result(task_id, executor_id, completion, changed=True)

    async def unmark(
        self,
        organization_id: str,
        task_id: int,
        user_id: str,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Return a task to pending. The removed row is kept in the archive.

        Returns False when the task was already pending.
        """
        task = await self._get_task(organization_id, task_id)
        if actor_id != task.owner_user_id or actor_id != user_id:
            raise PermissionDeniedError("Only the task owner can unmark it")

        completion = await self.completions.get(task_id, user_id)
        if completion is None:
            return False

        previous = completion.state
        await self.completions.archive_and_delete(completion, actor_id, resolve_now(self.clock, now))
        logger.info(f"Task {task_id} unmarked by {actor_id} (was {previous})")
        return True

    async def get_state(self, task_id: int, user_id: str) -> CompletionState:
        return state_of(await self.completions.get(task_id, user_id))
