"""Week arithmetic and scheduled jobs."""

from .weeks import (
    weeks_for_task_count,
    week_number_for_index,
    distribute_tasks,
    current_week,
    week_start_of,
    progress_percent,
)

__all__ = [
    "weeks_for_task_count",
    "week_number_for_index",
    "distribute_tasks",
    "current_week",
    "week_start_of",
    "progress_percent",
]
