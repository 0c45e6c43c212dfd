"""Anchor time resolution - when a task must be done by.

Pure function - no I/O.
"""

from datetime import date, datetime, timezone, tzinfo

from .clock import local_date, local_timestamp
from .recurrence import next_occurrence
from .tasks import Task


def resolve_anchor_time(
    task: Task,
    as_of: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> int | None:
    """
    Resolve the epoch-ms timestamp a task must be finished by.

    Priority: deadline > target > recurrence time. A date without an explicit
    time-of-day is not a usable anchor; resolution falls through to the next
    candidate.

    Returns None if no candidate qualifies.
    """
    if task.deadline_date and task.deadline_time:
        return local_timestamp(task.deadline_date, task.deadline_time, tz)

    if task.target_date and task.target_time:
        return local_timestamp(task.target_date, task.target_time, tz)

    if task.is_recurring and task.recurrence and task.recurrence.time:
        anchor_day = _recurring_anchor_date(task, local_date(as_of, tz), tz)
        return local_timestamp(anchor_day, task.recurrence.time, tz)

    return None


def _recurring_anchor_date(task: Task, today: date, tz: tzinfo) -> date:
    """Next due date for a routine: stored next-due if still current, else recomputed."""
    if task.recurring_next_due:
        stored = date.fromisoformat(task.recurring_next_due)
        if stored >= today:
            return stored

    rule = task.recurrence
    if rule.start_date:
        start = date.fromisoformat(rule.start_date)
    elif task.created_at:
        start = local_date(datetime.fromtimestamp(task.created_at / 1000, tz), tz)
    else:
        start = today

    return next_occurrence(rule, today, start) or today
