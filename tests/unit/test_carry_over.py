"""
Tests for carry-over reconciliation of tasks and weekly objectives.
"""

import pytest
from datetime import date, datetime, timedelta

from src.database.models import ObjectiveStatusEnum
from src.database.repositories.notifications import AlertRepository
from src.models.alerts import AlertType
from src.workflow.carry_over import CarryOverReconciler
from src.workflow.completion import CompletionService
from src.workflow.errors import (
    CarryOverBlockedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

ORG = "org_test"
NOW = datetime(2026, 3, 2, 9, 0)
NEXT_WEEK = NOW + timedelta(days=7)

OBJECTIVE = {
    "title": "Cerrar 100 ventas online",
    "description": "Empujar la tienda antes de primavera",
    "key_results": [{"title": "Ventas cerradas", "target_value": 100, "unit": "ventas"}],
}


@pytest.fixture
def reconciler(session):
    return CarryOverReconciler(session)


@pytest.fixture
def objective_factory(reconciler):
    async def _create(owner="usr_angel", now=NOW, **overrides):
        return await reconciler.create_weekly_objective(ORG, owner, {**OBJECTIVE, **overrides}, now=now)
    return _create


# ============================================================
# WEEKLY OBJECTIVES
# ============================================================

@pytest.mark.asyncio
async def test_partial_objective_is_carried_and_blocks(session, reconciler, objective_factory):
    """An objective at 60/100 moves to next week and blocks a new one."""
    objective = await objective_factory()
    key_result = objective.key_results[0]
    await reconciler.record_progress(ORG, key_result.id, "usr_angel", 60, "Sesenta ventas cerradas", now=NOW)

    report = await reconciler.run_cycle(ORG, now=NEXT_WEEK)

    assert report.objectives_carried == 1
    assert objective.week_start == date(2026, 3, 9)
    assert objective.original_week_start == date(2026, 3, 2)
    assert objective.carried_over_count == 1
    assert objective.status == ObjectiveStatusEnum.ACTIVE.value

    alerts = await AlertRepository(session).list_for_user(
        ORG, "usr_angel", alert_type=AlertType.OBJECTIVE_CARRIED_OVER.value
    )
    assert len(alerts) == 1

    status = await reconciler.generation_status(ORG, "usr_angel", now=NEXT_WEEK)
    assert status.allowed is False
    assert status.blocking_objective_id == objective.id
    assert "Cerrar 100 ventas online" in status.reason

    with pytest.raises(CarryOverBlockedError):
        await objective_factory(now=NEXT_WEEK, title="Otro objetivo semanal")

    # Reaching the target unblocks generation
    await reconciler.record_progress(ORG, key_result.id, "usr_angel", 100, "Objetivo alcanzado al fin", now=NEXT_WEEK)
    assert objective.status == ObjectiveStatusEnum.COMPLETED.value
    assert (await reconciler.generation_status(ORG, "usr_angel", now=NEXT_WEEK)).allowed is True

    second = await objective_factory(now=NEXT_WEEK, title="Otro objetivo semanal")
    assert second.week_start == date(2026, 3, 9)


@pytest.mark.asyncio
async def test_carried_objective_keeps_moving(reconciler, objective_factory):
    objective = await objective_factory()

    await reconciler.run_cycle(ORG, now=NEXT_WEEK)
    await reconciler.run_cycle(ORG, now=NEXT_WEEK + timedelta(days=7))

    assert objective.week_start == date(2026, 3, 16)
    assert objective.carried_over_count == 2
    assert objective.original_week_start == date(2026, 3, 2)


@pytest.mark.asyncio
async def test_met_objective_is_closed_not_carried(session, reconciler, objective_factory):
    objective = await objective_factory(
        key_results=[{"title": "Ventas cerradas", "target_value": 10, "current_value": 10}],
    )

    report = await reconciler.run_cycle(ORG, now=NEXT_WEEK)

    assert report.objectives_carried == 0
    assert report.objectives_completed == 1
    assert objective.status == ObjectiveStatusEnum.COMPLETED.value
    assert objective.week_start == date(2026, 3, 2)

    alerts = await AlertRepository(session).list_for_user(
        ORG, "usr_angel", alert_type=AlertType.OBJECTIVE_COMPLETED.value
    )
    assert len(alerts) == 1


@pytest.mark.asyncio
async def test_one_objective_per_week(reconciler, objective_factory):
    await objective_factory()

    status = await reconciler.generation_status(ORG, "usr_angel", now=NOW)
    assert status.allowed is False
    assert status.reason.startswith("Ya tienes")

    # Other users are not affected
    assert (await reconciler.generation_status(ORG, "usr_carla", now=NOW)).allowed is True


@pytest.mark.asyncio
async def test_manual_completion_unblocks(reconciler, objective_factory):
    objective = await objective_factory()
    await reconciler.run_cycle(ORG, now=NEXT_WEEK)

    await reconciler.complete_objective(ORG, objective.id, "usr_angel", now=NEXT_WEEK)
    again = await reconciler.complete_objective(ORG, objective.id, "usr_angel", now=NEXT_WEEK)

    assert again.status == ObjectiveStatusEnum.COMPLETED.value
    assert (await reconciler.generation_status(ORG, "usr_angel", now=NEXT_WEEK)).allowed is True


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"title": "Mal"},
    {"key_results": []},
    {"key_results": [{"title": "Ventas", "target_value": 0}]},
])
async def test_invalid_objective(objective_factory, payload):
    with pytest.raises(ValidationError):
        await objective_factory(**payload)


@pytest.mark.asyncio
async def test_progress_comment_too_short(reconciler, objective_factory):
    objective = await objective_factory()

    with pytest.raises(ValidationError):
        await reconciler.record_progress(ORG, objective.key_results[0].id, "usr_angel", 20, "poco", now=NOW)


@pytest.mark.asyncio
async def test_progress_only_by_owner(reconciler, objective_factory):
    objective = await objective_factory()

    with pytest.raises(PermissionDeniedError):
        await reconciler.record_progress(
            ORG, objective.key_results[0].id, "usr_carla", 20, "Actualizo por Angel", now=NOW
        )


@pytest.mark.asyncio
async def test_progress_on_unknown_key_result(reconciler):
    with pytest.raises(NotFoundError):
        await reconciler.record_progress(ORG, 777, "usr_angel", 20, "Resultado desconocido", now=NOW)


@pytest.mark.asyncio
async def test_progress_log(reconciler, objective_factory):
    objective = await objective_factory()
    key_result = objective.key_results[0]

    await reconciler.record_progress(ORG, key_result.id, "usr_angel", 25, "Primer cuarto de ventas", now=NOW)
    await reconciler.record_progress(ORG, key_result.id, "usr_angel", 40, "Campaña de email ayudó", now=NOW)

    assert key_result.current_value == 40
    assert [entry["new_value"] for entry in key_result.progress_log] == [25, 40]
    assert key_result.progress_log[1]["previous_value"] == 25


# ============================================================
# TASK BACKLOG
# ============================================================

@pytest.mark.asyncio
async def test_backlog_alert_per_user(session, reconciler, phase_one, find_task):
    solo = await find_task("usr_angel", "Optimizar perfil LinkedIn empresa")
    await CompletionService(session).complete(ORG, solo.id, "usr_angel", now=NOW)

    report = await reconciler.run_cycle(ORG, now=NEXT_WEEK)

    assert report.phase == 1
    assert report.current_week == 2
    assert report.users_with_backlog == 3
    assert report.backlog_alerts == 3

    alerts = await AlertRepository(session).list_for_user(
        ORG, "usr_angel", alert_type=AlertType.WEEK_BACKLOG.value
    )
    assert len(alerts) == 1
    assert "2 tarea(s)" in alerts[0].message

    carried = await reconciler.carried_over_tasks(ORG, "usr_angel", now=NEXT_WEEK)
    assert [task.order_index for task in carried] == [1, 2]


@pytest.mark.asyncio
async def test_no_backlog_in_first_week(reconciler, phase_one):
    report = await reconciler.run_cycle(ORG, now=NOW)

    assert report.current_week == 1
    assert report.users_with_backlog == 0


@pytest.mark.asyncio
async def test_cycle_is_idempotent(session, reconciler, phase_one, objective_factory):
    await objective_factory()

    first = await reconciler.run_cycle(ORG, now=NEXT_WEEK)
    second = await reconciler.run_cycle(ORG, now=NEXT_WEEK + timedelta(hours=5))

    assert first.objectives_carried == 1
    assert first.backlog_alerts == 3
    assert second.objectives_carried == 0
    assert second.backlog_alerts == 0
    assert second.users_with_backlog == 3

    alerts = await AlertRepository(session).list_for_user(ORG, "usr_angel")
    kinds = [alert.alert_type for alert in alerts]
    assert kinds.count(AlertType.WEEK_BACKLOG.value) == 1
    assert kinds.count(AlertType.OBJECTIVE_CARRIED_OVER.value) == 1


@pytest.mark.asyncio
async def test_cycle_without_phase(reconciler):
    report = await reconciler.run_cycle(ORG, now=NOW)

    assert report.phase is None
    assert report.to_dict()["week_start"] == "2026-03-02"
    assert await reconciler.carried_over_tasks(ORG, "usr_angel", now=NOW) == []
