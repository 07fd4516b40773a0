"""Task, completion and schedule data models for the workflow system."""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompletionState(str, Enum):
    """Workflow state of a task for its owner."""
    PENDING = "pending"
    COMPLETED_BY_USER = "completed_by_user"  # Waiting for leader validation
    VALIDATED = "validated"                  # Terminal success


class Task(BaseModel):
    """Task model representing one generated work item."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: str
    owner_user_id: str
    phase: int
    area: str
    title: str
    description: Optional[str] = None
    leader_id: Optional[str] = None
    order_index: int
    week_number: int
    requires_impact: bool = False
    is_locked: bool = False

    @property
    def is_collaborative(self) -> bool:
        return self.leader_id is not None


class ScheduledTask(Task):
    """Task as rendered in a weekly schedule view."""
    state: CompletionState = CompletionState.PENDING
    is_carried_over: bool = False
    is_actionable: bool = True

    @property
    def is_completed(self) -> bool:
        return self.state == CompletionState.VALIDATED


class ScheduleView(BaseModel):
    """Read model for a user's phase schedule."""
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    phase: int
    user_id: str
    completed_tasks: int = Field(0, alias="completedTasks")
    total_tasks: int = Field(0, alias="totalTasks")
    progress_percent: int = Field(0, alias="progressPercent")
    tasks_by_week: Dict[int, List[ScheduledTask]] = Field(default_factory=dict, alias="tasksByWeek")
    current_week: int = Field(1, alias="currentWeek")
    total_weeks: int = Field(0, alias="totalWeeks")
    viewed_week: int = Field(1, alias="viewedWeek")
    read_only: bool = Field(False, alias="readOnly")
    visible_tasks: List[ScheduledTask] = Field(default_factory=list, alias="visibleTasks")
    carried_over: List[ScheduledTask] = Field(default_factory=list, alias="carriedOver")


class LeaderFeedback(BaseModel):
    """Feedback a leader gives when validating a collaborative task."""
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    what_went_well: str = Field(alias="whatWentWell")
    what_to_improve: str = Field(alias="whatToImprove")
    additional_comments: Optional[str] = Field(None, alias="additionalComments")
    rating: int

    @field_validator("what_went_well", "what_to_improve")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("rating")
    @classmethod
    def _rating_range(cls, value: int) -> int:
        if value < 1 or value > 5:
            raise ValueError("rating must be between 1 and 5")
        return value


class UserInsights(BaseModel):
    """Reflection the executor writes when completing a task."""
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    learnings: Optional[str] = None
    contribution: Optional[str] = None
    future_decisions: Optional[str] = Field(None, alias="futureDecisions")
    suggestions: Optional[str] = None


class CompletionResult(BaseModel):
    """Outcome of a state machine operation."""
    task_id: int
    user_id: str
    state: CompletionState
    changed: bool = True
    completed_at: Optional[datetime] = None
    leader_feedback: Optional[Dict[str, Any]] = None

    @property
    def completed_by_user(self) -> bool:
        return self.state in (CompletionState.COMPLETED_BY_USER, CompletionState.VALIDATED)

    @property
    def validated_by_leader(self) -> bool:
        return self.state == CompletionState.VALIDATED


class TaskContent(BaseModel):
    """Replacement content for a task swap."""
    title: str
    description: Optional[str] = None
    area: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("title must not be empty")
        return value.strip()


class SwapQuotaView(BaseModel):
    """Swap quota read model."""
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    remaining_swaps: int = Field(alias="remainingSwaps")
    total_swaps: int = Field(alias="totalSwaps")
    used_swaps: int = Field(alias="usedSwaps")


class SwapResult(BaseModel):
    """Outcome of a content swap."""
    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    task: Task
    quota: SwapQuotaView
    swapped_by_leader: bool = Field(False, alias="swappedByLeader")
