"""Task duration estimation - no I/O dependencies."""

from dataclasses import dataclass

from .tasks import DurationSource, Step, Task


@dataclass(frozen=True)
class DurationEstimate:
    """Expected duration and where it came from. Both None when unknown."""

    minutes: int | None
    source: DurationSource | None

    @property
    def known(self) -> bool:
        return self.minutes is not None


def step_duration_sum(steps: list[Step]) -> int:
    return sum(s.estimated_minutes for s in steps if s.estimated_minutes)


def estimate_duration(task: Task) -> DurationEstimate:
    """
    Estimate how long a task takes.

    Priority: explicit estimate > legacy estimate > sum of step estimates.
    """
    if task.estimated_duration_minutes and task.estimated_duration_minutes > 0:
        source = task.estimated_duration_source
        if source is None or source == DurationSource.NONE:
            source = DurationSource.MANUAL
        return DurationEstimate(task.estimated_duration_minutes, source)

    if task.estimated_minutes and task.estimated_minutes > 0:
        return DurationEstimate(task.estimated_minutes, DurationSource.MANUAL)

    total = step_duration_sum(task.steps)
    if total > 0:
        return DurationEstimate(total, DurationSource.STEPS)

    return DurationEstimate(None, None)


def format_duration(minutes: int) -> str:
    """Format minutes for display, e.g. "45 min" or "1h 15m"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
