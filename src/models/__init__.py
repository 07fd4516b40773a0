from .task import (
    CompletionState,
    Task,
    ScheduledTask,
    ScheduleView,
    LeaderFeedback,
    UserInsights,
    CompletionResult,
    TaskContent,
    SwapQuotaView,
    SwapResult,
)
from .impact import (
    ImpactMeasurement,
    ImpactRating,
    InvestmentNeeds,
    KeyMetric,
    MetricKind,
)
from .okr import (
    KeyResultInput,
    ObjectiveInput,
    ProgressUpdate,
    ObjectiveView,
    KeyResultView,
    GenerationStatus,
)
from .alerts import SmartAlert, AlertSeverity, AlertType

__all__ = [
    "CompletionState",
    "Task",
    "ScheduledTask",
    "ScheduleView",
    "LeaderFeedback",
    "UserInsights",
    "CompletionResult",
    "TaskContent",
    "SwapQuotaView",
    "SwapResult",
    "ImpactMeasurement",
    "ImpactRating",
    "InvestmentNeeds",
    "KeyMetric",
    "MetricKind",
    "KeyResultInput",
    "ObjectiveInput",
    "ProgressUpdate",
    "ObjectiveView",
    "KeyResultView",
    "GenerationStatus",
    "SmartAlert",
    "AlertSeverity",
    "AlertType",
]
