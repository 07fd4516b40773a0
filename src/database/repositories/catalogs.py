"""
Repository for versioned task catalogs and phase pointers.

A phase's tasks are written into a new catalog version and only become
visible once the (organization, phase) pointer is flipped to it. Older
versions are kept as superseded history.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from src.database.models import (
    TaskCatalogDB,
    PhasePointerDB,
    TaskDB,
    CatalogStatusEnum,
)
from src.database.exceptions import DatabaseConstraintError, DatabaseOperationError

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Repository for catalogs and the pointers that activate them."""

    def __init__(self, session):
        self.session = session

    async def next_version(self, organization_id: str, phase: int) -> int:
        result = await self.session.execute(
            select(func.max(TaskCatalogDB.version)).where(
                TaskCatalogDB.organization_id == organization_id,
                TaskCatalogDB.phase == phase,
            )
        )
        return (result.scalar() or 0) + 1

    async def create_staging(
        self,
        organization_id: str,
        phase: int,
        total_weeks: int,
        generated_at: datetime,
        generated_by: Optional[str] = None,
    ) -> TaskCatalogDB:
        """Create an empty catalog version in staging."""
        try:
            catalog = TaskCatalogDB(
                organization_id=organization_id,
                phase=phase,
                version=await self.next_version(organization_id, phase),
                status=CatalogStatusEnum.STAGING.value,
                total_weeks=total_weeks,
                task_count=0,
                warnings=[],
                generated_by=generated_by,
                generated_at=generated_at,
            )
            self.session.add(catalog)
            await self.session.flush()
            return catalog

        except IntegrityError as e:
            logger.error(f"Constraint violation creating catalog for phase {phase}: {e}")
            raise DatabaseConstraintError(f"Catalog version clash for phase {phase}")

        except Exception as e:
            logger.error(f"CRITICAL: Catalog creation failed: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to create catalog: {e}")

    async def add_tasks(self, catalog: TaskCatalogDB, rows: List[Dict[str, Any]]) -> List[TaskDB]:
        """Insert task rows into a staging catalog."""
        try:
            tasks = [TaskDB(catalog_id=catalog.id, **row) for row in rows]
            self.session.add_all(tasks)
            await self.session.flush()
            catalog.task_count = len(tasks)
            return tasks

        except Exception as e:
            logger.error(f"CRITICAL: Inserting {len(rows)} tasks failed: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to insert tasks: {e}")

    async def get_pointer(self, organization_id: str, phase: int) -> Optional[PhasePointerDB]:
        result = await self.session.execute(
            select(PhasePointerDB).where(
                PhasePointerDB.organization_id == organization_id,
                PhasePointerDB.phase == phase,
            )
        )
        return result.scalar_one_or_none()

    async def get_current_pointer(self, organization_id: str) -> Optional[PhasePointerDB]:
        result = await self.session.execute(
            select(PhasePointerDB).where(
                PhasePointerDB.organization_id == organization_id,
                PhasePointerDB.is_current.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def activate(
        self,
        catalog: TaskCatalogDB,
        now: datetime,
        restart_schedule: bool = False,
    ) -> PhasePointerDB:
        """
        Point (organization, phase) at `catalog` and make the phase current.

        The previously active catalog is marked superseded, not deleted.
        """
        try:
            pointer = await self.get_pointer(catalog.organization_id, catalog.phase)

            if pointer is None:
                pointer = PhasePointerDB(
                    organization_id=catalog.organization_id,
                    phase=catalog.phase,
                    active_catalog_id=catalog.id,
                    started_at=now,
                    total_weeks=catalog.total_weeks,
                    is_current=True,
                )
                self.session.add(pointer)
            else:
                previous = await self.session.get(TaskCatalogDB, pointer.active_catalog_id)
                if previous is not None and previous.id != catalog.id:
                    previous.status = CatalogStatusEnum.SUPERSEDED.value
                pointer.active_catalog_id = catalog.id
                pointer.total_weeks = catalog.total_weeks
                if restart_schedule:
                    pointer.started_at = now

            # Only one current phase per organization
            others = await self.session.execute(
                select(PhasePointerDB).where(
                    PhasePointerDB.organization_id == catalog.organization_id,
                    PhasePointerDB.phase != catalog.phase,
                    PhasePointerDB.is_current.is_(True),
                )
            )
            for other in others.scalars().all():
                other.is_current = False
            pointer.is_current = True
            catalog.status = CatalogStatusEnum.ACTIVE.value

            await self.session.flush()
            logger.info(
                f"Activated catalog v{catalog.version} for org {catalog.organization_id} "
                f"phase {catalog.phase} ({catalog.task_count} tasks)"
            )
            return pointer

        except Exception as e:
            logger.error(f"CRITICAL: Activating catalog {catalog.id} failed: {e}", exc_info=True)
            raise DatabaseOperationError(f"Failed to activate catalog: {e}")

    async def list_catalogs(self, organization_id: str, phase: int) -> List[TaskCatalogDB]:
        result = await self.session.execute(
            select(TaskCatalogDB)
            .where(
                TaskCatalogDB.organization_id == organization_id,
                TaskCatalogDB.phase == phase,
            )
            .order_by(TaskCatalogDB.version)
        )
        return list(result.scalars().all())

    async def organizations_with_current_phase(self) -> List[str]:
        """Organizations that have a current phase (reconciliation targets)."""
        result = await self.session.execute(
            select(PhasePointerDB.organization_id)
            .where(PhasePointerDB.is_current.is_(True))
            .distinct()
        )
        return list(result.scalars().all())
