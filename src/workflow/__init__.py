"""
Workflow services: schedule read model, completion state machine, swap
quotas and carry-over reconciliation.
"""

from .errors import (
    WorkflowError,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    QuotaExceededError,
    CarryOverBlockedError,
    GenerationFailure,
    ExternalServiceError,
)
from .completion import CompletionService, state_of
from .schedule import ScheduleService, build_schedule_view
from .swaps import SwapQuotaManager
from .carry_over import CarryOverReconciler, ReconcileReport

__all__ = [
    "WorkflowError",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "QuotaExceededError",
    "CarryOverBlockedError",
    "GenerationFailure",
    "ExternalServiceError",
    "CompletionService",
    "state_of",
    "ScheduleService",
    "build_schedule_view",
    "SwapQuotaManager",
    "CarryOverReconciler",
    "ReconcileReport",
]
