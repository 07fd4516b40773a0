"""
Task catalog generator.

Builds the task set of a phase from the per-area templates and the roster,
assigns each task its week, then publishes the set as a new catalog version
by flipping the phase pointer. Every write happens in the caller's session:
a failure anywhere leaves the previously active catalog untouched.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from config import settings as default_settings
from config.team import get_roster, get_area_leaders
from src.catalog.templates import get_templates
from src.database.exceptions import DatabaseError
from src.database.repositories.catalogs import CatalogRepository
from src.notifications.emitter import NotificationEmitter
from src.scheduler.weeks import week_number_for_index, weeks_for_task_count
from src.utils.datetime_utils import Clock, resolve_now
from src.workflow.errors import GenerationFailure, ValidationError

logger = logging.getLogger(__name__)

MIN_PHASE = 1
MAX_PHASE = 4


@dataclass
class GenerationResult:
    """Summary of a published catalog."""
    catalog_id: int
    organization_id: str
    phase: int
    version: int
    total_weeks: int
    task_count: int
    users: int
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "catalog_id": self.catalog_id,
            "organization_id": self.organization_id,
            "phase": self.phase,
            "version": self.version,
            "total_weeks": self.total_weeks,
            "count": self.task_count,
            "users": self.users,
            "warnings": list(self.warnings),
        }


class CatalogGenerator:
    """Generates and publishes phase catalogs."""

    def __init__(self, session, clock: Optional[Clock] = None, settings=None):
        self.session = session
        self.clock = clock
        self.settings = settings or default_settings
        self.catalogs = CatalogRepository(session)

    def _resolve_leader(
        self,
        area: str,
        username: str,
        user_ids: Dict[str, str],
    ) -> Optional[str]:
        """First area leader who is not the executing user, as a user id."""
        eligible = [leader for leader in get_area_leaders(area) if leader != username]
        if not eligible:
            return None

        leader = eligible[0]
        if leader not in user_ids:
            raise GenerationFailure(f"Leader '{leader}' of area '{area}' is not in the roster")
        return user_ids[leader]

    def build_rows(
        self,
        organization_id: str,
        phase: int,
        roster: List[Dict[str, Any]],
        total_weeks: int,
    ) -> Tuple[List[Dict[str, Any]], List[str]]:
        """
        Build task rows for every roster member.

        Returns:
            (rows, warnings) where warnings lists leader-required tasks that
            fell back to solo.
        """
        user_ids = {member["username"]: member["user_id"] for member in roster}
        rows: List[Dict[str, Any]] = []
        degraded: Dict[str, int] = {}

        for member in roster:
            username = member["username"]
            area = member["area"]
            templates = get_templates(area)
            if not templates:
                raise GenerationFailure(f"No task templates for area '{area}' (user '{username}')")
            if weeks_for_task_count(len(templates), self.settings.tasks_per_week) > total_weeks:
                logger.warning(
                    f"{username}: {len(templates)} tasks over {total_weeks} week(s) exceeds "
                    f"{self.settings.tasks_per_week} tasks per week"
                )

            for index, template in enumerate(templates):
                leader_id = None
                if template.has_leader:
                    leader_id = self._resolve_leader(area, username, user_ids)
                    if leader_id is None:
                        degraded[username] = degraded.get(username, 0) + 1

                rows.append({
                    "organization_id": organization_id,
                    "owner_user_id": member["user_id"],
                    "leader_id": leader_id,
                    "phase": phase,
                    "area": area,
                    "title": template.title,
                    "description": template.description,
                    "order_index": index + 1,
                    "week_number": week_number_for_index(index, len(templates), total_weeks),
                    "requires_impact": template.requires_impact,
                    "is_locked": False,
                })

        warnings = [
            f"{count} leader task(s) for '{username}' have no eligible leader and were generated as solo"
            for username, count in degraded.items()
        ]
        return rows, warnings

    async def generate(
        self,
        organization_id: str,
        phase: int,
        roster: Optional[List[Dict[str, Any]]] = None,
        total_weeks: Optional[int] = None,
        generated_by: Optional[str] = None,
        now: Optional[datetime] = None,
        restart_schedule: bool = False,
    ) -> GenerationResult:
        """
        Generate the catalog of a phase and make it the active one.

        Raises:
            ValidationError: phase outside 1-4 or a non-positive week count
            GenerationFailure: roster/template/leader lookup or store failure
        """
        if not MIN_PHASE <= phase <= MAX_PHASE:
            raise ValidationError(f"Phase must be between {MIN_PHASE} and {MAX_PHASE}, got {phase}")

        total_weeks = total_weeks or self.settings.phase_weeks
        if total_weeks < 1:
            raise ValidationError("A phase needs at least one week")

        roster = roster if roster is not None else get_roster()
        if not roster:
            raise GenerationFailure("Roster is empty")

        moment = resolve_now(self.clock, now)
        rows, warnings = self.build_rows(organization_id, phase, roster, total_weeks)

        try:
            catalog = await self.catalogs.create_staging(
                organization_id, phase, total_weeks, moment, generated_by=generated_by
            )
            await self.catalogs.add_tasks(catalog, rows)
            catalog.warnings = warnings
            await self.catalogs.activate(catalog, moment, restart_schedule=restart_schedule)

            if warnings and generated_by:
                await NotificationEmitter(self.session).catalog_degraded(
                    organization_id, generated_by, phase, warnings, now=moment
                )

        except DatabaseError as e:
            logger.error(f"Catalog generation failed for org {organization_id} phase {phase}: {e}", exc_info=True)
            raise GenerationFailure(f"Could not publish phase {phase} catalog: {e}")

        for warning in warnings:
            logger.warning(f"Phase {phase} catalog v{catalog.version} ({organization_id}): {warning}")

        logger.info(
            f"Generated phase {phase} catalog v{catalog.version} for {organization_id}: "
            f"{len(rows)} tasks, {len(roster)} users, {total_weeks} weeks"
        )

        return GenerationResult(
            catalog_id=catalog.id,
            organization_id=organization_id,
            phase=phase,
            version=catalog.version,
            total_weeks=total_weeks,
            task_count=len(rows),
            users=len(roster),
            warnings=warnings,
        )
