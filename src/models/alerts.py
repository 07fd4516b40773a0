"""Smart alert model consumed by the notification layer."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class AlertSeverity(str, Enum):
    """Alert severity levels."""
    URGENT = "urgent"
    IMPORTANT = "important"
    OPPORTUNITY = "opportunity"
    CELEBRATION = "celebration"
    INFO = "info"


class AlertType(str, Enum):
    """Alerts raised by the workflow engine."""
    VALIDATION_REQUEST = "validation_request"
    TASK_VALIDATED = "task_validated"
    TASK_CHANGED_BY_LEADER = "task_changed_by_leader"
    WEEK_BACKLOG = "week_backlog"
    OBJECTIVE_CARRIED_OVER = "objective_carried_over"
    OBJECTIVE_COMPLETED = "objective_completed"
    CATALOG_DEGRADED = "catalog_degraded"


class SmartAlert(BaseModel):
    """Structured alert for a single user."""
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    target_user_id: str
    actionable: bool = False
    dedupe_key: Optional[str] = None
