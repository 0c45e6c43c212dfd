"""Pure priority scoring logic - no I/O dependencies.

Importance is user judgment; priority is the system's recommendation. Each
factor contributes an independent integer and the total maps to a coarse tier.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum

from .clock import DAY_MS, local_date, to_epoch_ms
from .tasks import EnergyLevel, EnergyType, Importance, Task

IMPORTANCE_POINTS = {
    Importance.NONE: 0,
    Importance.LOW: 5,
    Importance.MEDIUM: 15,
    Importance.HIGH: 30,
}

# Day horizons for deadline/target pressure
THIS_WEEK_DAYS = 7
THIS_MONTH_DAYS = 30

STALE_MODERATE_DAYS = 7
STALE_SEVERE_DAYS = 14

STRUCTURED_SOURCE_POINTS = 15


class PriorityTier(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """0 for critical, increasing as the tier gets less urgent."""
        return _TIER_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


_TIER_ORDER = [PriorityTier.CRITICAL, PriorityTier.HIGH, PriorityTier.MEDIUM, PriorityTier.LOW]

TIER_THRESHOLDS = {
    PriorityTier.CRITICAL: 60,
    PriorityTier.HIGH: 40,
    PriorityTier.MEDIUM: 20,
}


@dataclass(frozen=True)
class PriorityBreakdown:
    importance: int = 0
    time_pressure: int = 0
    target_pressure: int = 0
    source: int = 0
    staleness: int = 0
    defer: int = 0
    streak_risk: int = 0
    energy_match: int = 0

    @property
    def total(self) -> int:
        return sum(asdict(self).values())


@dataclass(frozen=True)
class PriorityInfo:
    score: int
    tier: PriorityTier
    effective_deadline: date | None
    breakdown: PriorityBreakdown


@dataclass(frozen=True)
class RankedTask:
    task: Task
    priority: PriorityInfo


# ============== Component scores ==============


def effective_deadline(task: Task) -> date | None:
    """Deadline pulled earlier by the task's lead time."""
    if not task.deadline_date:
        return None
    deadline = date.fromisoformat(task.deadline_date)
    if task.lead_time_days and task.lead_time_days > 0:
        deadline -= timedelta(days=task.lead_time_days)
    return deadline


def importance_score(importance: Importance) -> int:
    return IMPORTANCE_POINTS[importance]


def time_pressure_score(task: Task, today: date) -> int:
    deadline = effective_deadline(task)
    if deadline is None:
        return 0
    days = (deadline - today).days
    if days < 0:
        return 40
    if days <= 1:
        return 35
    if days <= THIS_WEEK_DAYS:
        return 15
    if days <= THIS_MONTH_DAYS:
        return 5
    return 0


def target_pressure_score(task: Task, today: date) -> int:
    """Softer than a deadline, but still signals urgency."""
    if not task.target_date:
        return 0
    days = (date.fromisoformat(task.target_date) - today).days
    if days < 0:
        return 15
    if days <= 1:
        return 10
    if days <= THIS_WEEK_DAYS:
        return 3
    return 0


def source_score(task: Task) -> int:
    return STRUCTURED_SOURCE_POINTS if task.source.is_structured else 0


def last_touched(task: Task) -> int:
    """Epoch ms of the last edit. Deferring counts as touching the task."""
    return max(task.updated_at, task.last_deferred_at or 0)


def staleness_score(task: Task, now_ms: int) -> int:
    days = (now_ms - last_touched(task)) / DAY_MS
    if days > STALE_SEVERE_DAYS:
        return 15
    if days > STALE_MODERATE_DAYS:
        return 8
    return 0


def defer_score(deferred_count: int) -> int:
    if deferred_count >= 3:
        return 10
    if deferred_count >= 1:
        return 5
    return 0


def streak_risk_score(task: Task) -> int:
    if not task.is_recurring:
        return 0
    if task.recurring_streak > 7:
        return 12
    if task.recurring_streak >= 3:
        return 6
    return 0


def energy_match_status(task_energy: EnergyType | None, user_energy: EnergyLevel | None) -> str:
    """
    Match between task and user energy: "match", "mismatch" or "neutral".

    High energy suits draining tasks; low energy suits energizing ones.
    """
    if task_energy is None or user_energy is None:
        return "neutral"
    if task_energy == EnergyType.NEUTRAL or user_energy == EnergyLevel.MEDIUM:
        return "neutral"
    optimal = EnergyType.DRAINING if user_energy == EnergyLevel.HIGH else EnergyType.ENERGIZING
    return "match" if task_energy == optimal else "mismatch"


def energy_match_score(task_energy: EnergyType | None, user_energy: EnergyLevel | None) -> int:
    match energy_match_status(task_energy, user_energy):
        case "match":
            return 8
        case "mismatch":
            return -5
        case _:
            return 0


# ============== Scoring ==============


def tier_for_score(score: int) -> PriorityTier:
    for tier in (PriorityTier.CRITICAL, PriorityTier.HIGH, PriorityTier.MEDIUM):
        if score >= TIER_THRESHOLDS[tier]:
            return tier
    return PriorityTier.LOW


def score_task(
    task: Task,
    user_energy: EnergyLevel | None = None,
    as_of: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> PriorityInfo:
    """
    Score a task. Same task, `as_of` and energy always give the same result.

    Pure function - no I/O.
    """
    as_of = as_of or datetime.now(tz)
    today = local_date(as_of, tz)

    breakdown = PriorityBreakdown(
        importance=importance_score(task.importance),
        time_pressure=time_pressure_score(task, today),
        target_pressure=target_pressure_score(task, today),
        source=source_score(task),
        staleness=staleness_score(task, to_epoch_ms(as_of)),
        defer=defer_score(task.deferred_count),
        streak_risk=streak_risk_score(task),
        energy_match=energy_match_score(task.energy_type, user_energy),
    )
    score = breakdown.total
    return PriorityInfo(
        score=score,
        tier=tier_for_score(score),
        effective_deadline=effective_deadline(task),
        breakdown=breakdown,
    )


def rank_tasks(
    tasks: list[Task],
    user_energy: EnergyLevel | None = None,
    as_of: datetime | None = None,
    tz: tzinfo = timezone.utc,
    include_deferred: bool = False,
) -> list[RankedTask]:
    """
    Active tasks sorted by score, highest first. Ties keep input order.

    Tasks deferred past today are left out unless include_deferred is set.

    Pure function - no I/O.
    """
    as_of = as_of or datetime.now(tz)
    today = local_date(as_of, tz)
    ranked = [
        RankedTask(t, score_task(t, user_energy, as_of, tz))
        for t in tasks
        if t.is_active and (include_deferred or not t.is_deferred(today))
    ]
    return sorted(ranked, key=lambda r: -r.priority.score)


def group_by_tier(ranked: list[RankedTask]) -> dict[PriorityTier, list[RankedTask]]:
    groups: dict[PriorityTier, list[RankedTask]] = {tier: [] for tier in _TIER_ORDER}
    for r in ranked:
        groups[r.priority.tier].append(r)
    return groups


def filter_by_energy(
    ranked: list[RankedTask],
    user_energy: EnergyLevel | None,
    mode: str = "all",
) -> tuple[list[RankedTask], list[RankedTask]]:
    """
    Split ranked tasks into (visible, hidden) by energy fit.

    Modes: "all" (no filtering), "hide_mismatched", "matching" (exact matches
    only). Critical tasks are always visible.
    """
    if mode not in ("all", "matching", "hide_mismatched"):
        raise ValueError(f"Unknown energy filter mode: {mode!r}")
    if mode == "all" or user_energy is None:
        return list(ranked), []

    visible, hidden = [], []
    for r in ranked:
        if r.priority.tier == PriorityTier.CRITICAL:
            visible.append(r)
            continue
        status = energy_match_status(r.task.energy_type, user_energy)
        keep = status == "match" if mode == "matching" else status != "mismatch"
        (visible if keep else hidden).append(r)
    return visible, hidden


def describe_breakdown(
    task: Task,
    user_energy: EnergyLevel | None = None,
    as_of: datetime | None = None,
) -> dict[str, str]:
    """Human-readable explanation for each breakdown factor."""
    as_of = as_of or datetime.now(timezone.utc)
    days_idle = int((to_epoch_ms(as_of) - last_touched(task)) // DAY_MS)

    if task.deadline_date:
        lead = f" ({task.lead_time_days}d lead)" if task.lead_time_days else ""
        time_pressure = f"Due {task.deadline_date}{lead}"
    else:
        time_pressure = "No deadline"

    if days_idle == 0:
        staleness = "Today"
    elif days_idle == 1:
        staleness = "Yesterday"
    else:
        staleness = f"{days_idle} days ago"

    if user_energy is None:
        energy = "N/A"
    elif task.energy_type is None:
        energy = "Not set"
    else:
        energy = f"{task.energy_type.value.capitalize()} task, {user_energy.value} energy"

    plural = "s" if task.deferred_count != 1 else ""
    return {
        "importance": task.importance.value.capitalize() if task.importance != Importance.NONE else "Not set",
        "time_pressure": time_pressure,
        "target_pressure": f"Target {task.target_date}" if task.target_date else "No target",
        "source": "External" if task.source.is_structured else "Self",
        "staleness": staleness,
        "defer": f"{task.deferred_count} time{plural}",
        "streak_risk": f"{task.recurring_streak} day streak" if task.is_recurring else "N/A",
        "energy_match": energy,
    }
