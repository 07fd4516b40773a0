"""
Repository classes for database operations.

Each repository is bound to the caller's session so a whole workflow
transition (rows, alerts and outbox events) commits or rolls back together.
"""

from .catalogs import CatalogRepository
from .tasks import TaskRepository
from .completions import CompletionRepository
from .swaps import SwapRepository
from .okrs import ObjectiveRepository
from .notifications import AlertRepository, OutboxRepository

__all__ = [
    "CatalogRepository",
    "TaskRepository",
    "CompletionRepository",
    "SwapRepository",
    "ObjectiveRepository",
    "AlertRepository",
    "OutboxRepository",
]
