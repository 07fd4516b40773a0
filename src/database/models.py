"""
SQLAlchemy models for PostgreSQL database.

Schema includes:
- Versioned task catalogs with a per-phase active pointer
- Tasks bound to a catalog, owner, week and optional leader
- Task completions with an explicit workflow state
- Archived completions (snapshots taken on unmark)
- Swap quotas and the swap log
- Weekly objectives and key results
- Smart alerts and the notification outbox
"""

from datetime import datetime, date
from typing import Optional, List
from sqlalchemy import (
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    Date,
    Float,
    ForeignKey,
    JSON,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
from sqlalchemy.sql import func
import enum


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ==================== ENUMS ====================

class CatalogStatusEnum(str, enum.Enum):
    STAGING = "staging"
    ACTIVE = "active"
    SUPERSEDED = "superseded"


class CompletionStateEnum(str, enum.Enum):
    # PENDING is never stored: a pending task has no completion row
    PENDING = "pending"
    COMPLETED_BY_USER = "completed_by_user"
    VALIDATED = "validated"


class ObjectiveStatusEnum(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class OutboxStatusEnum(str, enum.Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    DEAD = "dead"


# ==================== CATALOGS ====================

class TaskCatalogDB(Base):
    """One immutable generation of a phase's task set."""
    __tablename__ = "task_catalogs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    phase: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=CatalogStatusEnum.STAGING.value)

    total_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    task_count: Mapped[int] = mapped_column(Integer, default=0)
    warnings: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    generated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    tasks: Mapped[List["TaskDB"]] = relationship("TaskDB", back_populates="catalog")

    __table_args__ = (
        UniqueConstraint("organization_id", "phase", "version", name="uq_catalog_version"),
        Index("idx_catalogs_org_phase", "organization_id", "phase"),
    )


class PhasePointerDB(Base):
    """Selects the active catalog of a phase and anchors its week clock."""
    __tablename__ = "phase_pointers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    phase: Mapped[int] = mapped_column(Integer, nullable=False)
    active_catalog_id: Mapped[int] = mapped_column(Integer, ForeignKey("task_catalogs.id"), nullable=False)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    total_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("organization_id", "phase", name="uq_phase_pointer"),
        Index("idx_pointers_current", "organization_id", "is_current"),
    )


# ==================== TASKS ====================

class TaskDB(Base):
    """A generated task inside one catalog."""
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    catalog_id: Mapped[int] = mapped_column(Integer, ForeignKey("task_catalogs.id"), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Ownership
    owner_user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    leader_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # set = collaborative

    # Content (swappable)
    phase: Mapped[int] = mapped_column(Integer, nullable=False)
    area: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Schedule slot (fixed at generation)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Flags
    requires_impact: Mapped[bool] = mapped_column(Boolean, default=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    catalog: Mapped["TaskCatalogDB"] = relationship("TaskCatalogDB", back_populates="tasks")

    @property
    def is_collaborative(self) -> bool:
        return self.leader_id is not None

    __table_args__ = (
        Index("idx_tasks_catalog_owner", "catalog_id", "owner_user_id"),
        Index("idx_tasks_catalog_leader", "catalog_id", "leader_id"),
        Index("idx_tasks_org_phase", "organization_id", "phase"),
    )


class TaskCompletionDB(Base):
    """Completion record for a (task, user) pair."""
    __tablename__ = "task_completions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)

    state: Mapped[str] = mapped_column(String(30), nullable=False)

    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    validated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    validated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    leader_feedback: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    user_insights: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    impact_measurement: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def completed_by_user(self) -> bool:
        return self.state in (
            CompletionStateEnum.COMPLETED_BY_USER.value,
            CompletionStateEnum.VALIDATED.value,
        )

    @property
    def validated_by_leader(self) -> bool:
        return self.state == CompletionStateEnum.VALIDATED.value

    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_completion_task_user"),
        CheckConstraint(
            "state IN ('completed_by_user', 'validated')",
            name="ck_completion_state",
        ),
        Index("idx_completions_user", "organization_id", "user_id"),
    )


class CompletionArchiveDB(Base):
    """Snapshot of a completion taken right before it is unmarked."""
    __tablename__ = "completion_archive"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)

    state_at_unmark: Mapped[str] = mapped_column(String(30), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    validated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    leader_feedback: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    user_insights: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    impact_measurement: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    unmarked_by: Mapped[str] = mapped_column(String(100), nullable=False)
    unmarked_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_archive_task_user", "task_id", "user_id"),
    )


# ==================== SWAPS ====================

class SwapQuotaDB(Base):
    """Per-user, per-phase swap allowance."""
    __tablename__ = "swap_quotas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    phase: Mapped[int] = mapped_column(Integer, nullable=False)

    mode: Mapped[str] = mapped_column(String(20), nullable=False)
    total_swaps: Mapped[int] = mapped_column(Integer, nullable=False)
    used_swaps: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def remaining_swaps(self) -> int:
        return max(self.total_swaps - self.used_swaps, 0)

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", "phase", name="uq_swap_quota"),
    )


class TaskSwapDB(Base):
    """Log of content swaps applied to tasks."""
    __tablename__ = "task_swaps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(Integer, ForeignKey("tasks.id"), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)  # requester
    phase: Mapped[int] = mapped_column(Integer, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)

    old_title: Mapped[str] = mapped_column(String(500), nullable=False)
    new_title: Mapped[str] = mapped_column(String(500), nullable=False)
    old_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    old_area: Mapped[str] = mapped_column(String(50), nullable=False)
    new_area: Mapped[str] = mapped_column(String(50), nullable=False)
    leader_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    swapped_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_swaps_user_phase", "organization_id", "user_id", "phase"),
    )


# ==================== OKRS ====================

class ObjectiveDB(Base):
    """Weekly objective owned by one user."""
    __tablename__ = "objectives"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_user_id: Mapped[str] = mapped_column(String(100), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ObjectiveStatusEnum.ACTIVE.value)

    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    original_week_start: Mapped[date] = mapped_column(Date, nullable=False)
    carried_over_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    key_results: Mapped[List["KeyResultDB"]] = relationship(
        "KeyResultDB",
        back_populates="objective",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="KeyResultDB.id",
    )

    @property
    def all_key_results_met(self) -> bool:
        return bool(self.key_results) and all(kr.is_met for kr in self.key_results)

    __table_args__ = (
        Index("idx_objectives_owner_week", "organization_id", "owner_user_id", "week_start"),
        Index("idx_objectives_status", "status"),
    )


class KeyResultDB(Base):
    """Quantitative target under an objective."""
    __tablename__ = "key_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    objective_id: Mapped[int] = mapped_column(Integer, ForeignKey("objectives.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    current_value: Mapped[float] = mapped_column(Float, default=0.0)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    progress_log: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    objective: Mapped["ObjectiveDB"] = relationship("ObjectiveDB", back_populates="key_results")

    @property
    def is_met(self) -> bool:
        return self.current_value >= self.target_value


# ==================== NOTIFICATIONS ====================

class SmartAlertDB(Base):
    """Alert shown to a user by the notification layer."""
    __tablename__ = "smart_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    target_user_id: Mapped[str] = mapped_column(String(100), nullable=False)

    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    actionable: Mapped[bool] = mapped_column(Boolean, default=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)

    # Alerts sharing a dedupe key are emitted once
    dedupe_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_alerts_target", "organization_id", "target_user_id", "is_read"),
    )


class OutboxEventDB(Base):
    """Event committed with a state transition, delivered later to adapters."""
    __tablename__ = "outbox_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(String(100), nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default=OutboxStatusEnum.PENDING.value)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    delivered_to: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    next_attempt_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_outbox_pending", "status", "next_attempt_at"),
    )
