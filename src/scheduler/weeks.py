"""
Week arithmetic for phase schedules.

Everything here is a pure function of its arguments: the current moment is
always passed in, never read from the wall clock.
"""

import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Sequence, TypeVar, Union

T = TypeVar("T")

WEEK = timedelta(days=7)


def weeks_for_task_count(task_count: int, tasks_per_week: int = 8) -> int:
    """Weeks needed to fit a task list at a weekly capacity."""
    if tasks_per_week < 1:
        raise ValueError("tasks_per_week must be at least 1")
    return max(1, math.ceil(task_count / tasks_per_week))


def week_number_for_index(index: int, total: int, total_weeks: int) -> int:
    """
    Week (1-based) of the task at `index` in an ordered list of `total` tasks.

    The first `total mod total_weeks` weeks get one extra task, so bucket
    sizes never differ by more than one.
    """
    if total_weeks < 1:
        raise ValueError("total_weeks must be at least 1")
    if index < 0 or index >= total:
        raise IndexError(f"index {index} out of range for {total} tasks")

    base, extra = divmod(total, total_weeks)
    big_bucket = base + 1
    if index < extra * big_bucket:
        return index // big_bucket + 1
    return extra + (index - extra * big_bucket) // base + 1


def distribute_tasks(tasks: Sequence[T], total_weeks: int) -> Dict[int, List[T]]:
    """Split an ordered task list into `total_weeks` order-preserving buckets."""
    if total_weeks < 1:
        raise ValueError("total_weeks must be at least 1")

    by_week: Dict[int, List[T]] = {week: [] for week in range(1, total_weeks + 1)}
    for index, task in enumerate(tasks):
        by_week[week_number_for_index(index, len(tasks), total_weeks)].append(task)
    return by_week


def current_week(started_at: datetime, now: datetime, total_weeks: int) -> int:
    """clamp(floor(weeks elapsed since start) + 1, 1, total_weeks)."""
    if total_weeks < 1:
        return 1
    elapsed_weeks = (now - started_at) / WEEK
    week = math.floor(elapsed_weeks) + 1
    return max(1, min(week, total_weeks))


def week_start_of(moment: Union[date, datetime], week_start_day: int = 0) -> date:
    """First day of the week containing `moment` (0 = Monday ... 6 = Sunday)."""
    day = moment.date() if isinstance(moment, datetime) else moment
    offset = (day.weekday() - week_start_day) % 7
    return day - timedelta(days=offset)


def progress_percent(completed: int, total: int) -> int:
    """round(completed / total * 100), 0 for an empty phase."""
    if total <= 0:
        return 0
    # Half-up rounding so 2.5% reads as 3%, like the dashboards
    return int(math.floor(completed * 100 / total + 0.5))
