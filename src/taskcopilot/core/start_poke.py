"""Start poke calculation - when to nudge the user to start a task.

Start Poke Time = Anchor Time - Duration - Buffer, rounded to the nearest
five minutes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .anchor import resolve_anchor_time
from .clock import MINUTE_MS
from .duration import estimate_duration
from .settings import UserSettings
from .tasks import Task

MIN_PERCENTAGE_BUFFER = 5
BUFFER_PERCENTAGE = 0.15
ROUNDING_MS = 5 * MINUTE_MS


class UnavailableReason(Enum):
    NO_ANCHOR = "no_anchor"
    NO_DURATION = "no_duration"


@dataclass(frozen=True)
class StartPoke:
    fire_time: int
    anchor_time: int
    duration_minutes: int
    buffer_minutes: float


@dataclass(frozen=True)
class StartPokeUnavailable:
    reason: UnavailableReason
    anchor_time: int | None = None


@dataclass(frozen=True)
class StartPokeStatus:
    """Everything the task detail view needs to show about a start poke."""

    enabled: bool
    override: str | None
    has_anchor: bool
    has_duration: bool
    poke: StartPoke | None
    missing_reason: UnavailableReason | None


def calculate_buffer(duration_minutes: int, settings: UserSettings) -> float:
    """Fixed buffer, or 15% of the duration with a five minute floor."""
    if settings.start_poke_buffer_percentage:
        return max(MIN_PERCENTAGE_BUFFER, duration_minutes * BUFFER_PERCENTAGE)
    return settings.start_poke_buffer_minutes


def round_to_five_minutes(ms: int) -> int:
    """Round epoch ms to the nearest five-minute boundary, halves rounding up."""
    return (ms + ROUNDING_MS // 2) // ROUNDING_MS * ROUNDING_MS


def calculate_start_poke(
    task: Task,
    settings: UserSettings,
    as_of: datetime | None = None,
) -> StartPoke | StartPokeUnavailable:
    """
    Compute the start poke for a task, or the reason it can't be computed.

    Pure function - no I/O. Does not check whether pokes are enabled.
    """
    anchor = resolve_anchor_time(task, as_of, settings.tzinfo)
    if anchor is None:
        return StartPokeUnavailable(UnavailableReason.NO_ANCHOR)

    duration = estimate_duration(task)
    if not duration.known:
        return StartPokeUnavailable(UnavailableReason.NO_DURATION, anchor_time=anchor)

    buffer = calculate_buffer(duration.minutes, settings)
    raw = anchor - round((duration.minutes + buffer) * MINUTE_MS)
    return StartPoke(
        fire_time=round_to_five_minutes(raw),
        anchor_time=anchor,
        duration_minutes=duration.minutes,
        buffer_minutes=buffer,
    )


def _default_enabled(task: Task, settings: UserSettings) -> bool:
    if not settings.start_poke_enabled:
        return False
    match settings.start_poke_default:
        case "all":
            return True
        case "routines_only":
            return task.is_recurring
        case "tasks_only":
            return not task.is_recurring
        case _:
            return False


def is_start_poke_enabled(task: Task, settings: UserSettings) -> bool:
    """Per-task override wins; otherwise the global toggle and scope decide."""
    if task.start_poke_override == "on":
        return True
    if task.start_poke_override == "off":
        return False
    return _default_enabled(task, settings)


def override_differs_from_default(task: Task, settings: UserSettings) -> bool:
    if task.start_poke_override is None:
        return False
    return (task.start_poke_override == "on") != _default_enabled(task, settings)


def start_poke_status(
    task: Task,
    settings: UserSettings,
    as_of: datetime | None = None,
) -> StartPokeStatus:
    enabled = is_start_poke_enabled(task, settings)
    result = calculate_start_poke(task, settings, as_of)

    if isinstance(result, StartPoke):
        return StartPokeStatus(
            enabled=enabled,
            override=task.start_poke_override,
            has_anchor=True,
            has_duration=True,
            poke=result,
            missing_reason=None,
        )

    return StartPokeStatus(
        enabled=enabled,
        override=task.start_poke_override,
        has_anchor=result.reason != UnavailableReason.NO_ANCHOR,
        has_duration=estimate_duration(task).known,
        poke=None,
        missing_reason=result.reason if enabled else None,
    )


def default_label(settings: UserSettings) -> str:
    """Text for the "Default" option in the start poke picker."""
    if not settings.start_poke_enabled:
        return "Off"
    match settings.start_poke_default:
        case "all":
            return "On"
        case "routines_only":
            return "On (routines only)"
        case "tasks_only":
            return "On (tasks only)"
        case _:
            return "Off"
