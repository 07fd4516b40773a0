"""
Database module for the phase workflow engine.

Handles:
- Versioned task catalogs and phase pointers
- Task completions and their archive
- Swap quotas and the swap log
- Weekly objectives and key results
- Smart alerts and the notification outbox
"""

from .connection import (
    get_database,
    set_database,
    Database,
    init_database,
    close_database,
    get_session,
)
from .models import (
    Base,
    TaskCatalogDB,
    PhasePointerDB,
    TaskDB,
    TaskCompletionDB,
    CompletionArchiveDB,
    SwapQuotaDB,
    TaskSwapDB,
    ObjectiveDB,
    KeyResultDB,
    SmartAlertDB,
    OutboxEventDB,
)

__all__ = [
    "get_database",
    "set_database",
    "Database",
    "init_database",
    "close_database",
    "get_session",
    "Base",
    "TaskCatalogDB",
    "PhasePointerDB",
    "TaskDB",
    "TaskCompletionDB",
    "CompletionArchiveDB",
    "SwapQuotaDB",
    "TaskSwapDB",
    "ObjectiveDB",
    "KeyResultDB",
    "SmartAlertDB",
    "OutboxEventDB",
]
