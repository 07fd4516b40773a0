"""
Tests for catalog generation and versioned publication.
"""

import pytest
from datetime import datetime, timedelta

from src.catalog.generator import CatalogGenerator
from src.catalog.templates import get_templates, TASK_TEMPLATES_BY_AREA
from src.database.models import CatalogStatusEnum
from src.database.repositories.catalogs import CatalogRepository
from src.database.repositories.notifications import AlertRepository
from src.database.repositories.tasks import TaskRepository
from src.models.alerts import AlertType
from src.workflow.errors import GenerationFailure, ValidationError

ORG = "org_test"
NOW = datetime(2026, 3, 2, 9, 0)


class TestTemplates:

    def test_every_area_has_twelve_templates(self):
        for area, templates in TASK_TEMPLATES_BY_AREA.items():
            assert len(templates) == 12, area

    def test_unknown_area(self):
        assert get_templates("marketing") == []


class TestBuildRows:

    def test_rows_carry_order_and_week(self, roster):
        rows, _ = CatalogGenerator(session=None).build_rows(ORG, 1, roster[2:], total_weeks=4)

        assert len(rows) == 12
        assert [row["order_index"] for row in rows] == list(range(1, 13))
        assert [row["week_number"] for row in rows] == [1, 1, 1, 2, 2, 2, 3, 3, 3, 4, 4, 4]

    def test_co_leaders_validate_each_other(self, roster):
        rows, _ = CatalogGenerator(session=None).build_rows(ORG, 1, roster, total_weeks=4)

        angel_leaders = {row["leader_id"] for row in rows if row["owner_user_id"] == "usr_angel"}
        carla_leaders = {row["leader_id"] for row in rows if row["owner_user_id"] == "usr_carla"}
        assert angel_leaders == {None, "usr_carla"}
        assert carla_leaders == {None, "usr_angel"}

    def test_sole_leader_gets_solo_tasks_with_warning(self, roster):
        rows, warnings = CatalogGenerator(session=None).build_rows(ORG, 1, roster, total_weeks=4)

        miguel_rows = [row for row in rows if row["owner_user_id"] == "usr_miguel"]
        assert all(row["leader_id"] is None for row in miguel_rows)
        assert len(warnings) == 1
        assert "miguel" in warnings[0]

    def test_leader_missing_from_roster(self):
        roster = [{"username": "carla", "user_id": "usr_carla", "area": "redes"}]
        with pytest.raises(GenerationFailure):
            CatalogGenerator(session=None).build_rows(ORG, 1, roster, total_weeks=4)

    def test_week_over_capacity_is_logged(self, roster, caplog):
        rows, warnings = CatalogGenerator(session=None).build_rows(ORG, 1, roster[2:], total_weeks=1)

        assert {row["week_number"] for row in rows} == {1}
        assert len(warnings) == 1
        assert "exceeds 8 tasks per week" in caplog.text

    def test_area_without_templates(self):
        roster = [{"username": "ana", "user_id": "usr_ana", "area": "marketing"}]
        with pytest.raises(GenerationFailure):
            CatalogGenerator(session=None).build_rows(ORG, 1, roster, total_weeks=4)


class TestGenerate:

    @pytest.mark.asyncio
    async def test_first_generation(self, session, phase_one):
        """Phase 1 is published as version 1 and becomes current."""
        assert phase_one.version == 1
        assert phase_one.task_count == 36
        assert phase_one.users == 3
        assert phase_one.to_dict()["count"] == 36

        pointer = await CatalogRepository(session).get_current_pointer(ORG)
        assert pointer.phase == 1
        assert pointer.active_catalog_id == phase_one.catalog_id
        assert pointer.started_at == NOW

        tasks = await TaskRepository(session).list_for_owner(ORG, "usr_angel", 1)
        assert len(tasks) == 12
        assert tasks[0].order_index == 1

    @pytest.mark.asyncio
    async def test_degraded_catalog_raises_alert(self, session, phase_one):
        alerts = await AlertRepository(session).list_for_user(ORG, "usr_zarko")
        assert [alert.alert_type for alert in alerts] == [AlertType.CATALOG_DEGRADED.value]

    @pytest.mark.asyncio
    async def test_regeneration_supersedes_previous_version(self, session, roster, phase_one):
        later = NOW + timedelta(days=3)
        second = await CatalogGenerator(session).generate(ORG, 1, roster=roster, total_weeks=4, now=later)

        assert second.version == 2
        catalogs = await CatalogRepository(session).list_catalogs(ORG, 1)
        assert [c.status for c in catalogs] == [
            CatalogStatusEnum.SUPERSEDED.value,
            CatalogStatusEnum.ACTIVE.value,
        ]

        # Only the active version is visible
        tasks = await TaskRepository(session).list_for_owner(ORG, "usr_angel", 1)
        assert len(tasks) == 12
        assert {task.catalog_id for task in tasks} == {second.catalog_id}

        # The week clock keeps running unless a restart is requested
        pointer = await CatalogRepository(session).get_pointer(ORG, 1)
        assert pointer.started_at == NOW

    @pytest.mark.asyncio
    async def test_restart_schedule_moves_start(self, session, roster, phase_one):
        later = NOW + timedelta(days=10)
        await CatalogGenerator(session).generate(
            ORG, 1, roster=roster, total_weeks=4, now=later, restart_schedule=True
        )
        pointer = await CatalogRepository(session).get_pointer(ORG, 1)
        assert pointer.started_at == later

    @pytest.mark.asyncio
    async def test_new_phase_becomes_current(self, session, roster, phase_one):
        await CatalogGenerator(session).generate(ORG, 2, roster=roster, total_weeks=3, now=NOW)

        repo = CatalogRepository(session)
        assert (await repo.get_current_pointer(ORG)).phase == 2
        assert (await repo.get_pointer(ORG, 1)).is_current is False
        assert await repo.organizations_with_current_phase() == [ORG]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("phase", [0, 5])
    async def test_phase_out_of_range(self, session, roster, phase):
        with pytest.raises(ValidationError):
            await CatalogGenerator(session).generate(ORG, phase, roster=roster, now=NOW)

    @pytest.mark.asyncio
    async def test_empty_roster(self, session):
        with pytest.raises(GenerationFailure):
            await CatalogGenerator(session).generate(ORG, 1, roster=[], now=NOW)

    @pytest.mark.asyncio
    async def test_failure_leaves_active_catalog(self, session, phase_one):
        roster = [{"username": "carla", "user_id": "usr_carla", "area": "redes"}]
        with pytest.raises(GenerationFailure):
            await CatalogGenerator(session).generate(ORG, 1, roster=roster, now=NOW)

        pointer = await CatalogRepository(session).get_pointer(ORG, 1)
        assert pointer.active_catalog_id == phase_one.catalog_id
        assert len(await CatalogRepository(session).list_catalogs(ORG, 1)) == 1
