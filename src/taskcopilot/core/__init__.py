"""Functional core - pure engine logic with no I/O."""

from .tasks import Task, TaskStatus, Importance, EnergyType, EnergyLevel, TaskSource
from .settings import UserSettings, SettingsError
from .anchor import resolve_anchor_time
from .duration import DurationEstimate, estimate_duration, format_duration
from .priority import PriorityTier, PriorityInfo, RankedTask, score_task, rank_tasks, group_by_tier
from .start_poke import StartPoke, StartPokeUnavailable, calculate_start_poke, is_start_poke_enabled
from .alerts import Alert, AlertType, collect_alerts, ready_to_fire
from .nudges import NudgeOrchestrator, NudgeDecision, Outcome, SuppressionReason
from .focus_queue import (
    FocusQueue,
    FocusQueueItem,
    build_elements,
    derive_state,
    process_rollover,
    queue_limit_warning,
    reorder_elements,
)

__all__ = [
    # Tasks
    "Task",
    "TaskStatus",
    "Importance",
    "EnergyType",
    "EnergyLevel",
    "TaskSource",
    # Settings
    "UserSettings",
    "SettingsError",
    # Calculators
    "resolve_anchor_time",
    "DurationEstimate",
    "estimate_duration",
    "format_duration",
    "PriorityTier",
    "PriorityInfo",
    "RankedTask",
    "score_task",
    "rank_tasks",
    "group_by_tier",
    "StartPoke",
    "StartPokeUnavailable",
    "calculate_start_poke",
    "is_start_poke_enabled",
    # Alerts
    "Alert",
    "AlertType",
    "collect_alerts",
    "ready_to_fire",
    "NudgeOrchestrator",
    "NudgeDecision",
    "Outcome",
    "SuppressionReason",
    # Focus queue
    "FocusQueue",
    "FocusQueueItem",
    "build_elements",
    "derive_state",
    "process_rollover",
    "queue_limit_warning",
    "reorder_elements",
]
