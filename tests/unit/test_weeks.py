"""
Tests for src/scheduler/weeks.py

Pure week arithmetic: task distribution, current week and progress.
"""

import pytest
from datetime import date, datetime, timedelta

from src.scheduler.weeks import (
    weeks_for_task_count,
    week_number_for_index,
    distribute_tasks,
    current_week,
    week_start_of,
    progress_percent,
)

START = datetime(2026, 3, 2, 9, 0)


class TestWeeksForTaskCount:

    def test_rounds_up(self):
        assert weeks_for_task_count(12, 8) == 2
        assert weeks_for_task_count(16, 8) == 2
        assert weeks_for_task_count(17, 8) == 3

    def test_never_zero(self):
        assert weeks_for_task_count(0, 8) == 1

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            weeks_for_task_count(10, 0)


class TestDistribution:
    """Order-preserving buckets whose sizes differ by at most one."""

    def test_twelve_tasks_in_four_weeks(self):
        buckets = distribute_tasks(list(range(12)), 4)
        assert {week: len(tasks) for week, tasks in buckets.items()} == {1: 3, 2: 3, 3: 3, 4: 3}
        assert buckets[1] == [0, 1, 2]
        assert buckets[4] == [9, 10, 11]

    def test_remainder_goes_to_first_weeks(self):
        buckets = distribute_tasks(list(range(10)), 4)
        assert [len(buckets[w]) for w in range(1, 5)] == [3, 3, 2, 2]
        assert buckets[2] == [3, 4, 5]
        assert buckets[3] == [6, 7]

    def test_fewer_tasks_than_weeks(self):
        buckets = distribute_tasks(["a", "b"], 4)
        assert buckets == {1: ["a"], 2: ["b"], 3: [], 4: []}

    @pytest.mark.parametrize("total,weeks", [(12, 4), (10, 4), (7, 3), (1, 1), (13, 5)])
    def test_concatenation_preserves_order(self, total, weeks):
        tasks = list(range(total))
        buckets = distribute_tasks(tasks, weeks)
        flattened = [task for week in range(1, weeks + 1) for task in buckets[week]]
        assert flattened == tasks
        sizes = [len(bucket) for bucket in buckets.values()]
        assert max(sizes) - min(sizes) <= 1

    def test_index_matches_bucket(self):
        buckets = distribute_tasks(list(range(10)), 4)
        for week, tasks in buckets.items():
            for index in tasks:
                assert week_number_for_index(index, 10, 4) == week

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            week_number_for_index(12, 12, 4)


class TestCurrentWeek:

    def test_first_day_is_week_one(self):
        assert current_week(START, START, 4) == 1

    def test_week_boundary(self):
        assert current_week(START, START + timedelta(days=6, hours=23), 4) == 1
        assert current_week(START, START + timedelta(days=7), 4) == 2

    def test_clamped_to_phase_length(self):
        assert current_week(START, START + timedelta(weeks=10), 4) == 4

    def test_before_start_is_week_one(self):
        assert current_week(START, START - timedelta(days=3), 4) == 1


class TestWeekStart:

    def test_monday_start(self):
        # Thursday 5 March 2026
        assert week_start_of(datetime(2026, 3, 5, 18, 0)) == date(2026, 3, 2)

    def test_sunday_start(self):
        assert week_start_of(date(2026, 3, 5), week_start_day=6) == date(2026, 3, 1)

    def test_start_day_itself(self):
        assert week_start_of(date(2026, 3, 2)) == date(2026, 3, 2)


class TestProgressPercent:

    def test_rounding(self):
        assert progress_percent(1, 12) == 8
        assert progress_percent(1, 8) == 13
        assert progress_percent(12, 12) == 100

    def test_empty_phase(self):
        assert progress_percent(0, 0) == 0
