"""Weekly OKR data models."""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeyResultInput(BaseModel):
    """Key result supplied when generating a weekly objective."""
    title: str = Field(min_length=1, max_length=200)
    target_value: float = Field(gt=0)
    current_value: float = 0.0
    unit: Optional[str] = None


class ObjectiveInput(BaseModel):
    """Weekly objective request."""
    title: str = Field(min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    key_results: List[KeyResultInput] = Field(min_length=1)


class ProgressUpdate(BaseModel):
    """Progress entry on a key result."""
    new_value: float
    comment: str

    @field_validator("comment")
    @classmethod
    def _comment_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 10:
            raise ValueError("comment must be at least 10 characters")
        if len(value) > 500:
            raise ValueError("comment must be at most 500 characters")
        return value


class KeyResultView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    current_value: float
    target_value: float
    unit: Optional[str] = None


class ObjectiveView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_user_id: str
    title: str
    status: str
    week_start: date
    original_week_start: date
    carried_over_count: int
    key_results: List[KeyResultView] = Field(default_factory=list)

    @property
    def is_carried_over(self) -> bool:
        return self.carried_over_count > 0


class GenerationStatus(BaseModel):
    """Whether a user may generate a new weekly objective."""
    allowed: bool
    reason: str = ""
    week_start: date
    blocking_objective_id: Optional[int] = None
