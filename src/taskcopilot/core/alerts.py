"""Alert records and the builders that derive them from tasks - no I/O.

An alert is immutable once built. The orchestrator decides whether it
surfaces; on the next recompute it is simply rebuilt.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum

from .clock import MINUTE_MS, local_timestamp, to_epoch_ms
from .priority import effective_deadline
from .settings import UserSettings
from .start_poke import StartPoke, calculate_start_poke, is_start_poke_enabled
from .tasks import Task

RUNWAY_NUDGE_TIME = "09:00"
RELATIVE_REMINDER_TIME = "09:00"


class AlertType(Enum):
    START_POKE = "start_poke"
    REMINDER = "reminder"
    RUNWAY_NUDGE = "runway_nudge"

    @property
    def weight(self) -> int:
        """Higher weight surfaces first when tiers tie."""
        match self:
            case AlertType.START_POKE:
                return 3
            case AlertType.REMINDER:
                return 2
            case AlertType.RUNWAY_NUDGE:
                return 1

    @property
    def headline(self) -> str:
        match self:
            case AlertType.START_POKE:
                return "Time to start"
            case AlertType.REMINDER:
                return "Reminder"
            case AlertType.RUNWAY_NUDGE:
                return "Time to get started"


@dataclass(frozen=True, kw_only=True)
class Alert:
    task_id: str
    type: AlertType
    fire_time: int
    title: str = ""

    @property
    def dedup_key(self) -> tuple[str, AlertType]:
        return (self.task_id, self.type)

    @property
    def schedule_key(self) -> str:
        return f"{self.task_id}:{self.type.value}"


@dataclass(frozen=True, kw_only=True)
class StartPokeAlert(Alert):
    type: AlertType = AlertType.START_POKE
    anchor_time: int = 0
    duration_minutes: int = 0
    buffer_minutes: float = 0


@dataclass(frozen=True, kw_only=True)
class ReminderAlert(Alert):
    type: AlertType = AlertType.REMINDER


@dataclass(frozen=True, kw_only=True)
class RunwayNudgeAlert(Alert):
    type: AlertType = AlertType.RUNWAY_NUDGE
    effective_deadline: date | None = None
    actual_deadline: date | None = None
    lead_time_days: int = 0


def build_start_poke_alert(
    task: Task,
    settings: UserSettings,
    as_of: datetime | None = None,
) -> StartPokeAlert | None:
    """Start poke alert, or None when pokes are disabled or unavailable."""
    if not is_start_poke_enabled(task, settings):
        return None
    poke = calculate_start_poke(task, settings, as_of)
    if not isinstance(poke, StartPoke):
        return None
    return StartPokeAlert(
        task_id=task.id,
        fire_time=poke.fire_time,
        title=task.title,
        anchor_time=poke.anchor_time,
        duration_minutes=poke.duration_minutes,
        buffer_minutes=poke.buffer_minutes,
    )


def build_runway_nudge_alert(task: Task, tz: tzinfo = timezone.utc) -> RunwayNudgeAlert | None:
    """
    Nudge the morning before the effective deadline.

    Only tasks with a deadline and a positive lead time get one.
    """
    if not task.deadline_date or not task.lead_time_days or task.lead_time_days <= 0:
        return None
    start_by = effective_deadline(task)
    nudge_day = start_by - timedelta(days=1)
    return RunwayNudgeAlert(
        task_id=task.id,
        fire_time=local_timestamp(nudge_day, RUNWAY_NUDGE_TIME, tz),
        title=task.title,
        effective_deadline=start_by,
        actual_deadline=date.fromisoformat(task.deadline_date),
        lead_time_days=task.lead_time_days,
    )


def build_reminder_alert(task: Task, tz: tzinfo = timezone.utc) -> ReminderAlert | None:
    reminder = task.reminder
    if reminder is None:
        return None

    if reminder.type == "absolute":
        if reminder.absolute_time is None:
            return None
        return ReminderAlert(task_id=task.id, fire_time=reminder.absolute_time, title=task.title)

    # relative: N minutes before 09:00 on the referenced date
    ref_date = task.deadline_date if reminder.relative_to == "deadline" else task.target_date
    if not ref_date or reminder.relative_minutes is None:
        return None
    base = local_timestamp(ref_date, RELATIVE_REMINDER_TIME, tz)
    return ReminderAlert(
        task_id=task.id,
        fire_time=base - reminder.relative_minutes * MINUTE_MS,
        title=task.title,
    )


def collect_alerts(
    tasks: list[Task],
    settings: UserSettings,
    as_of: datetime | None = None,
) -> list[Alert]:
    """
    Build every alert for the active tasks.

    Pure function - no I/O.
    """
    tz = settings.tzinfo
    as_of = as_of or datetime.now(tz)
    alerts: list[Alert] = []
    for task in tasks:
        if not task.is_active:
            continue
        for alert in (
            build_start_poke_alert(task, settings, as_of),
            build_reminder_alert(task, tz),
            build_runway_nudge_alert(task, tz),
        ):
            if alert is not None:
                alerts.append(alert)
    return alerts


def ready_to_fire(alerts: list[Alert], now: datetime | int) -> list[Alert]:
    """Alerts whose fire time is at or before `now`."""
    now_ms = now if isinstance(now, int) else to_epoch_ms(now)
    return [a for a in alerts if a.fire_time <= now_ms]
