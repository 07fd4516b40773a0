"""
Workflow exceptions.

Every rejected user action raises a WorkflowError carrying a human-readable
reason; the HTTP layer maps `status_code` and `code` onto the response.
"""


class WorkflowError(Exception):
    """Base exception for rejected workflow actions."""

    code = "workflow_error"
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.code, "reason": self.reason}


class ValidationError(WorkflowError):
    """Input rejected before any write (missing feedback, rating out of range...)."""
    code = "validation_error"
    status_code = 400


class PermissionDeniedError(WorkflowError):
    """Actor is not allowed to act on this task."""
    code = "permission_denied"
    status_code = 403


class NotFoundError(WorkflowError):
    """Task, completion or objective does not exist."""
    code = "not_found"
    status_code = 404


class QuotaExceededError(WorkflowError):
    """No swaps left for this phase."""
    code = "quota_exceeded"
    status_code = 409


class CarryOverBlockedError(WorkflowError):
    """A carried-over objective blocks generating a new one."""
    code = "carry_over_blocked"
    status_code = 409


class GenerationFailure(WorkflowError):
    """Catalog generation aborted; nothing was published."""
    code = "generation_failure"
    status_code = 500


class ExternalServiceError(WorkflowError):
    """A notification adapter failed. Never propagated past the dispatcher."""
    code = "external_service_error"
    status_code = 502

    def __init__(self, reason: str, adapter: str = ""):
        super().__init__(reason)
        self.adapter = adapter
