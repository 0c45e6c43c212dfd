"""Pure recurrence pattern matching - no I/O dependencies."""

from datetime import date, timedelta

from .tasks import RecurrenceRule

# Roughly a year of days; patterns with no match inside this window yield None.
MAX_SCAN_DAYS = 400


def _weekday_from_sunday(d: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def week_of_month(d: date) -> int:
    """Which week of the month a date falls in (1-6), counting partial first weeks."""
    first_dow = _weekday_from_sunday(d.replace(day=1))
    return -(-(d.day + first_dow) // 7)


def _matches_weekly(d: date, rule: RecurrenceRule, start: date) -> bool:
    if rule.days_of_week and _weekday_from_sunday(d) not in rule.days_of_week:
        return False
    if rule.week_of_month is not None and week_of_month(d) != rule.week_of_month:
        return False
    if rule.interval > 1:
        weeks = (d - start).days // 7
        if weeks % rule.interval != 0:
            return False
    return True


def _matches_monthly(d: date, rule: RecurrenceRule, start: date) -> bool:
    months = (d.year - start.year) * 12 + (d.month - start.month)
    if months % rule.interval != 0:
        return False

    if rule.day_of_month is not None:
        return d.day == rule.day_of_month

    # e.g. "first Monday"
    if rule.days_of_week and rule.week_of_month is not None:
        return _weekday_from_sunday(d) in rule.days_of_week and week_of_month(d) == rule.week_of_month

    return d.day == start.day


def _matches_yearly(d: date, rule: RecurrenceRule, start: date) -> bool:
    if (d.month, d.day) != (start.month, start.day):
        return False
    return (d.year - start.year) % rule.interval == 0


def date_matches(d: date, rule: RecurrenceRule, start_date: date) -> bool:
    """Check if a date is an occurrence of the pattern."""
    if d < start_date:
        return False
    if rule.end_date and d > date.fromisoformat(rule.end_date):
        return False

    match rule.frequency:
        case "daily":
            return (d - start_date).days % rule.interval == 0
        case "weekly":
            return _matches_weekly(d, rule, start_date)
        case "monthly":
            return _matches_monthly(d, rule, start_date)
        case "yearly":
            return _matches_yearly(d, rule, start_date)
        case _:
            raise ValueError(f"Unknown recurrence frequency: {rule.frequency!r}")


def next_occurrence(rule: RecurrenceRule, from_date: date, start_date: date) -> date | None:
    """First occurrence on or after `from_date`, or None if none within the scan window."""
    if rule.interval < 1:
        raise ValueError(f"Recurrence interval must be >= 1, got {rule.interval}")

    check = from_date
    for _ in range(MAX_SCAN_DAYS):
        if rule.end_date and check > date.fromisoformat(rule.end_date):
            return None
        if date_matches(check, rule, start_date):
            return check
        check += timedelta(days=1)
    return None
