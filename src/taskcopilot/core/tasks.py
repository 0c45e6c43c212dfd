"""Pure task domain model - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class TaskStatus(Enum):
    INBOX = "inbox"
    POOL = "pool"
    COMPLETE = "complete"
    ARCHIVED = "archived"


class Importance(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnergyType(Enum):
    """How a task affects the user's energy."""

    ENERGIZING = "energizing"
    NEUTRAL = "neutral"
    DRAINING = "draining"


class EnergyLevel(Enum):
    """The user's current energy."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskSource(Enum):
    MANUAL = "manual"
    VOICE = "voice"
    AI_BREAKDOWN = "ai_breakdown"
    AI_SUGGESTION = "ai_suggestion"
    EMAIL = "email"
    CALENDAR = "calendar"
    SHARED = "shared"

    @property
    def is_structured(self) -> bool:
        """Captured from a structured system rather than typed freeform."""
        return self in (TaskSource.EMAIL, TaskSource.CALENDAR, TaskSource.SHARED)


class DurationSource(Enum):
    MANUAL = "manual"
    STEPS = "steps"
    AI = "ai"
    NONE = "none"


@dataclass
class Step:
    id: str
    text: str = ""
    completed: bool = False
    estimated_minutes: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Step":
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            completed=bool(data.get("completed", False)),
            estimated_minutes=data.get("estimatedMinutes", data.get("estimated_minutes")),
        )


@dataclass
class RecurrenceRule:
    """Recurrence pattern for routines.

    days_of_week uses 0=Sunday .. 6=Saturday.
    """

    frequency: str = "daily"  # daily, weekly, monthly, yearly
    interval: int = 1
    days_of_week: list[int] = field(default_factory=list)
    day_of_month: int | None = None
    week_of_month: int | None = None
    start_date: str | None = None
    end_date: str | None = None
    time: str | None = None
    rollover: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        frequency = data.get("frequency", "daily")
        if frequency not in ("daily", "weekly", "monthly", "yearly"):
            raise ValueError(f"Unknown recurrence frequency: {frequency!r}")
        return cls(
            frequency=frequency,
            interval=int(data.get("interval") or 1),
            days_of_week=list(data.get("daysOfWeek") or data.get("days_of_week") or []),
            day_of_month=data.get("dayOfMonth", data.get("day_of_month")),
            week_of_month=data.get("weekOfMonth", data.get("week_of_month")),
            start_date=data.get("startDate", data.get("start_date")),
            end_date=data.get("endDate", data.get("end_date")),
            time=data.get("time"),
            rollover=bool(data.get("rolloverIfMissed", data.get("rollover", False))),
        )


@dataclass
class Reminder:
    type: str  # absolute, relative
    absolute_time: int | None = None
    relative_minutes: int | None = None
    relative_to: str = "target"  # target, deadline

    @classmethod
    def from_dict(cls, data: dict) -> "Reminder":
        kind = data.get("type", "absolute")
        if kind not in ("absolute", "relative"):
            raise ValueError(f"Unknown reminder type: {kind!r}")
        return cls(
            type=kind,
            absolute_time=data.get("absoluteTime", data.get("absolute_time")),
            relative_minutes=data.get("relativeMinutes", data.get("relative_minutes")),
            relative_to=data.get("relativeTo", data.get("relative_to", "target")),
        )


@dataclass
class Task:
    """A task as seen by the engine. Extra app metadata is ignored."""

    id: str
    title: str = ""
    status: TaskStatus = TaskStatus.POOL
    importance: Importance = Importance.NONE
    importance_source: str | None = None  # self, inferred
    energy_type: EnergyType | None = None
    source: TaskSource = TaskSource.MANUAL
    target_date: str | None = None
    target_time: str | None = None
    deadline_date: str | None = None
    deadline_time: str | None = None
    lead_time_days: int | None = None
    estimated_duration_minutes: int | None = None
    estimated_duration_source: DurationSource | None = None
    estimated_minutes: int | None = None  # legacy estimate
    steps: list[Step] = field(default_factory=list)
    deferred_count: int = 0
    deferred_until: str | None = None
    last_deferred_at: int | None = None
    is_recurring: bool = False
    recurrence: RecurrenceRule | None = None
    recurring_streak: int = 0
    recurring_next_due: str | None = None
    start_poke_override: str | None = None  # on, off
    reminder: Reminder | None = None
    created_at: int = 0
    updated_at: int = 0
    completed_at: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status not in (TaskStatus.COMPLETE, TaskStatus.ARCHIVED) and not self.completed_at

    def is_deferred(self, today: date) -> bool:
        """Deferred past `today`. A task resurfaces on its deferred_until date."""
        if not self.deferred_until:
            return False
        return date.fromisoformat(self.deferred_until[:10]) > today

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from an app JSON record (camelCase or snake_case keys)."""

        def get(camel: str, snake: str, default=None):
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        energy = get("energyType", "energy_type")
        duration_source = get("estimatedDurationSource", "estimated_duration_source")
        recurrence = data.get("recurrence")
        reminder = data.get("reminder")
        override = get("startPokeOverride", "start_poke_override")
        if override not in (None, "on", "off"):
            raise ValueError(f"Unknown startPokeOverride: {override!r}")

        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            status=TaskStatus(data.get("status", "pool")),
            importance=Importance(data.get("importance") or "none"),
            importance_source=get("importanceSource", "importance_source"),
            energy_type=EnergyType(energy) if energy else None,
            source=TaskSource(data.get("source") or "manual"),
            target_date=get("targetDate", "target_date"),
            target_time=get("targetTime", "target_time"),
            deadline_date=get("deadlineDate", "deadline_date"),
            deadline_time=get("deadlineTime", "deadline_time"),
            lead_time_days=get("leadTimeDays", "lead_time_days"),
            estimated_duration_minutes=get("estimatedDurationMinutes", "estimated_duration_minutes"),
            estimated_duration_source=DurationSource(duration_source) if duration_source else None,
            estimated_minutes=get("estimatedMinutes", "estimated_minutes"),
            steps=[Step.from_dict(s) for s in data.get("steps") or []],
            deferred_count=int(get("deferredCount", "deferred_count", 0) or 0),
            deferred_until=get("deferredUntil", "deferred_until"),
            last_deferred_at=get("lastDeferredAt", "last_deferred_at"),
            is_recurring=bool(get("isRecurring", "is_recurring", False)),
            recurrence=RecurrenceRule.from_dict(recurrence) if recurrence else None,
            recurring_streak=int(get("recurringStreak", "recurring_streak", 0) or 0),
            recurring_next_due=get("recurringNextDue", "recurring_next_due"),
            start_poke_override=override,
            reminder=Reminder.from_dict(reminder) if reminder else None,
            created_at=int(get("createdAt", "created_at", 0) or 0),
            updated_at=int(get("updatedAt", "updated_at", 0) or 0),
            completed_at=get("completedAt", "completed_at"),
        )
