"""Tests for anchor time resolution."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from taskcopilot.core.anchor import resolve_anchor_time
from taskcopilot.core.clock import to_epoch_ms
from taskcopilot.core.tasks import RecurrenceRule, Task


@pytest.fixture
def as_of():
    # Wednesday
    return datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)


def utc_ms(*args):
    return to_epoch_ms(datetime(*args, tzinfo=timezone.utc))


class TestDeadlineAndTarget:
    def test_deadline_with_time(self, as_of):
        task = Task(id="1", deadline_date="2025-03-10", deadline_time="17:00")
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 3, 10, 17, 0)

    def test_deadline_outranks_target(self, as_of):
        task = Task(
            id="1",
            deadline_date="2025-03-10",
            deadline_time="17:00",
            target_date="2025-03-01",
            target_time="09:00",
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 3, 10, 17, 0)

    def test_deadline_without_time_falls_through_to_target(self, as_of):
        task = Task(
            id="1",
            deadline_date="2025-03-10",
            target_date="2025-03-01",
            target_time="09:30",
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 3, 1, 9, 30)

    def test_target_without_time_is_not_an_anchor(self, as_of):
        task = Task(id="1", target_date="2025-03-01")
        assert resolve_anchor_time(task, as_of) is None

    def test_no_dates(self, as_of):
        assert resolve_anchor_time(Task(id="1"), as_of) is None

    def test_uses_local_timezone(self, as_of):
        task = Task(id="1", deadline_date="2025-03-10", deadline_time="17:00")
        toronto = ZoneInfo("America/Toronto")
        # EDT (UTC-4) after the March 9 switch
        assert resolve_anchor_time(task, as_of, toronto) == utc_ms(2025, 3, 10, 21, 0)

    def test_malformed_time_raises(self, as_of):
        task = Task(id="1", deadline_date="2025-03-10", deadline_time="5pm")
        with pytest.raises(ValueError):
            resolve_anchor_time(task, as_of)

    def test_malformed_date_raises(self, as_of):
        task = Task(id="1", deadline_date="03/10/2025", deadline_time="17:00")
        with pytest.raises(ValueError):
            resolve_anchor_time(task, as_of)


class TestRecurring:
    def test_stored_next_due_in_future(self, as_of):
        task = Task(
            id="r",
            is_recurring=True,
            recurrence=RecurrenceRule(frequency="daily", time="07:30"),
            recurring_next_due="2025-01-16",
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 1, 16, 7, 30)

    def test_stale_next_due_is_recomputed(self, as_of):
        task = Task(
            id="r",
            is_recurring=True,
            recurrence=RecurrenceRule(frequency="daily", time="07:30", start_date="2025-01-01"),
            recurring_next_due="2025-01-10",
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 1, 15, 7, 30)

    def test_weekly_pattern_finds_next_matching_day(self, as_of):
        task = Task(
            id="r",
            is_recurring=True,
            # Mondays
            recurrence=RecurrenceRule(
                frequency="weekly", days_of_week=[1], time="10:00", start_date="2025-01-01"
            ),
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 1, 20, 10, 0)

    def test_recurrence_without_time_is_not_an_anchor(self, as_of):
        task = Task(id="r", is_recurring=True, recurrence=RecurrenceRule(frequency="daily"))
        assert resolve_anchor_time(task, as_of) is None

    def test_target_outranks_recurrence(self, as_of):
        task = Task(
            id="r",
            is_recurring=True,
            recurrence=RecurrenceRule(frequency="daily", time="07:30"),
            target_date="2025-01-20",
            target_time="12:00",
        )
        assert resolve_anchor_time(task, as_of) == utc_ms(2025, 1, 20, 12, 0)
