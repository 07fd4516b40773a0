"""
HTTP routes for the phase workflow.

Identity comes from the X-User-Id / X-Organization-Id headers set by the
upstream gateway. Every request runs in one database session, so a
transition and the alerts it raises commit together.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from ..catalog.generator import CatalogGenerator
from ..database.connection import get_session
from ..database.repositories.notifications import AlertRepository
from ..models.okr import ObjectiveView
from ..utils.datetime_utils import to_aware_utc
from ..workflow.carry_over import CarryOverReconciler
from ..workflow.completion import CompletionService
from ..workflow.schedule import ScheduleService
from ..workflow.swaps import SwapQuotaManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@dataclass
class Identity:
    """Caller identity resolved by the gateway."""
    user_id: str
    organization_id: str


def get_identity(
    x_user_id: str = Header(...),
    x_organization_id: str = Header(...),
) -> Identity:
    if not x_user_id.strip() or not x_organization_id.strip():
        raise HTTPException(status_code=401, detail="Missing identity headers")
    return Identity(user_id=x_user_id.strip(), organization_id=x_organization_id.strip())


# ============================================================================
# Request bodies
# ============================================================================

class GenerateRequest(BaseModel):
    total_weeks: Optional[int] = None
    restart_schedule: bool = False


class CompleteRequest(BaseModel):
    user_insights: Optional[Dict[str, Any]] = None
    impact: Optional[Dict[str, Any]] = None


class ValidateRequest(BaseModel):
    executor_id: str
    feedback: Dict[str, Any] = {}


class SwapRequest(BaseModel):
    title: str = ""
    description: Optional[str] = None
    area: Optional[str] = None
    leader_comment: Optional[str] = None


class LockRequest(BaseModel):
    locked: bool = True


class ProgressRequest(BaseModel):
    new_value: float
    comment: str = ""


def _completion_body(result) -> Dict[str, Any]:
    body = result.model_dump(mode="json")
    body["completed_by_user"] = result.completed_by_user
    body["validated_by_leader"] = result.validated_by_leader
    return body


# ============================================================================
# Catalog & schedule
# ============================================================================

@router.post("/phases/{phase}/generate")
async def generate_phase(
    phase: int,
    request: Optional[GenerateRequest] = None,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    """Generate a phase catalog, publish it and reconcile carry-over."""
    request = request or GenerateRequest()
    result = await CatalogGenerator(session).generate(
        identity.organization_id,
        phase,
        total_weeks=request.total_weeks,
        generated_by=identity.user_id,
        restart_schedule=request.restart_schedule,
    )
    report = await CarryOverReconciler(session).run_cycle(identity.organization_id)

    body = result.to_dict()
    body["carry_over"] = report.to_dict()
    return body


@router.get("/schedule/{phase}")
async def get_schedule(
    phase: int,
    week: Optional[int] = None,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    view = await ScheduleService(session).get_schedule(
        identity.organization_id, identity.user_id, phase, week=week
    )
    return view.model_dump(mode="json", by_alias=True)


@router.get("/leader-queue/{phase}")
async def get_leader_queue(
    phase: int,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    tasks = await ScheduleService(session).get_leader_queue(
        identity.organization_id, identity.user_id, phase
    )
    return {"tasks": [task.model_dump(mode="json") for task in tasks], "count": len(tasks)}


# ============================================================================
# Completion & validation
# ============================================================================

@router.post("/tasks/{task_id}/complete")
async def complete_task(
    task_id: int,
    request: Optional[CompleteRequest] = None,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    request = request or CompleteRequest()
    result = await CompletionService(session).complete(
        identity.organization_id,
        task_id,
        identity.user_id,
        user_insights=request.user_insights,
        impact=request.impact,
    )
    return _completion_body(result)


@router.post("/tasks/{task_id}/validate")
async def validate_task(
    task_id: int,
    request: ValidateRequest,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    result = await CompletionService(session).validate(
        identity.organization_id,
        task_id,
        request.executor_id,
        identity.user_id,
        request.feedback,
    )
    return _completion_body(result)


@router.delete("/tasks/{task_id}/completion")
async def unmark_task(
    task_id: int,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    unmarked = await CompletionService(session).unmark(
        identity.organization_id, task_id, identity.user_id, identity.user_id
    )
    return {"task_id": task_id, "unmarked": unmarked}


@router.post("/tasks/{task_id}/lock")
async def lock_task(
    task_id: int,
    request: LockRequest,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    task = await ScheduleService(session).set_task_lock(
        identity.organization_id, task_id, identity.user_id, request.locked
    )
    return task.model_dump(mode="json")


# ============================================================================
# Swaps
# ============================================================================

@router.get("/swaps/{phase}")
async def get_swaps(
    phase: int,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    manager = SwapQuotaManager(session)
    quota = await manager.get_quota(identity.organization_id, identity.user_id, phase)
    history = await manager.history(identity.organization_id, identity.user_id, phase)
    return {
        "quota": quota.model_dump(by_alias=True),
        "history": [
            {
                "task_id": swap.task_id,
                "week_number": swap.week_number,
                "old_title": swap.old_title,
                "new_title": swap.new_title,
                "leader_comment": swap.leader_comment,
                "swapped_at": to_aware_utc(swap.swapped_at).isoformat(),
            }
            for swap in history
        ],
    }


@router.post("/tasks/{task_id}/swap")
async def swap_task(
    task_id: int,
    request: SwapRequest,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    result = await SwapQuotaManager(session).swap(
        identity.organization_id,
        task_id,
        identity.user_id,
        {"title": request.title, "description": request.description, "area": request.area},
        leader_comment=request.leader_comment,
    )
    return result.model_dump(mode="json", by_alias=True)


# ============================================================================
# Weekly OKRs & carry-over
# ============================================================================

@router.get("/okrs/generation-status")
async def okr_generation_status(
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    status = await CarryOverReconciler(session).generation_status(
        identity.organization_id, identity.user_id
    )
    return status.model_dump(mode="json")


@router.post("/okrs/objectives")
async def create_objective(
    body: Dict[str, Any],
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    objective = await CarryOverReconciler(session).create_weekly_objective(
        identity.organization_id, identity.user_id, body
    )
    return ObjectiveView.model_validate(objective).model_dump(mode="json")


@router.post("/okrs/key-results/{key_result_id}/progress")
async def record_progress(
    key_result_id: int,
    request: ProgressRequest,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    objective = await CarryOverReconciler(session).record_progress(
        identity.organization_id,
        key_result_id,
        identity.user_id,
        request.new_value,
        request.comment,
    )
    return ObjectiveView.model_validate(objective).model_dump(mode="json")


@router.post("/okrs/objectives/{objective_id}/complete")
async def complete_objective(
    objective_id: int,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    objective = await CarryOverReconciler(session).complete_objective(
        identity.organization_id, objective_id, identity.user_id
    )
    return ObjectiveView.model_validate(objective).model_dump(mode="json")


@router.post("/reconcile")
async def reconcile(
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    report = await CarryOverReconciler(session).run_cycle(identity.organization_id)
    return report.to_dict()


# ============================================================================
# Alerts
# ============================================================================

@router.get("/alerts")
async def list_alerts(
    unread_only: bool = False,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    alerts = await AlertRepository(session).list_for_user(
        identity.organization_id, identity.user_id, unread_only=unread_only
    )
    return {
        "alerts": [
            {
                "id": alert.id,
                "alert_type": alert.alert_type,
                "severity": alert.severity,
                "title": alert.title,
                "message": alert.message,
                "actionable": alert.actionable,
                "is_read": alert.is_read,
                "created_at": to_aware_utc(alert.created_at).isoformat(),
            }
            for alert in alerts
        ],
    }


@router.post("/alerts/{alert_id}/read")
async def mark_alert_read(
    alert_id: int,
    identity: Identity = Depends(get_identity),
    session=Depends(get_session),
):
    if not await AlertRepository(session).mark_read(identity.organization_id, identity.user_id, alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"id": alert_id, "is_read": True}
