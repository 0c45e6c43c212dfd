"""Time conversions shared by the calculators - no I/O dependencies.

All engine timestamps are integer milliseconds since the Unix epoch.
"""

from datetime import date, datetime, time, timezone, tzinfo

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


def parse_hhmm(value: str) -> time:
    """Parse an "HH:MM" time-of-day string."""
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.strip().isdigit() or not minutes.strip().isdigit():
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    h, m = int(hours), int(minutes)
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Time out of range: {value!r}")
    return time(h, m)


def minutes_of_day(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    t = parse_hhmm(value)
    return t.hour * 60 + t.minute


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_epoch_ms(ms: int, tz: tzinfo = timezone.utc) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz)


def local_timestamp(day: date | str, time_of_day: str | time, tz: tzinfo = timezone.utc) -> int:
    """Epoch ms for a local date + time-of-day in the given timezone."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    if isinstance(time_of_day, str):
        time_of_day = parse_hhmm(time_of_day)
    return to_epoch_ms(datetime.combine(day, time_of_day, tzinfo=tz))


def local_date(as_of: datetime | None = None, tz: tzinfo = timezone.utc) -> date:
    """The calendar date of `as_of` in the given timezone."""
    as_of = as_of or datetime.now(tz)
    if as_of.tzinfo is None:
        return as_of.date()
    return as_of.astimezone(tz).date()


def localize(dt: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """Attach `tz` to a naive datetime. Aware datetimes are returned as is."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt
