"""Nudge orchestration - decides which alerts surface and how.

The only stateful piece of the engine: a last-fired map keyed by
(task_id, alert type) and the overflow alerts waiting for the next pass.
Every pass decides all outcomes first and records fires afterwards.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum

from .alerts import Alert, AlertType
from .clock import MINUTE_MS, localize, minutes_of_day, to_epoch_ms
from .priority import PriorityTier
from .settings import SettingsError, UserSettings

logger = logging.getLogger(__name__)

FIRE_RECORD_TTL_MS = 24 * 60 * MINUTE_MS


class Outcome(Enum):
    FIRE = "fire"
    SUPPRESS = "suppress"
    DOWNGRADE_TO_BADGE = "downgrade_to_badge"


class SuppressionReason(Enum):
    DUPLICATE = "duplicate"
    QUEUE_OVERFLOW = "queue_overflow"
    QUIET_HOURS = "quiet_hours"


@dataclass(frozen=True)
class NudgeDecision:
    alert: Alert
    outcome: Outcome
    reason: SuppressionReason | None = None

    @property
    def delivered(self) -> bool:
        return self.outcome != Outcome.SUPPRESS


def is_in_quiet_hours(now: datetime, settings: UserSettings) -> bool:
    """
    Check `now` against the quiet window in the user's timezone.

    Windows may wrap midnight (e.g. 22:00-07:00). Start is inclusive,
    end exclusive. An empty window (start == end) is never quiet.
    A naive `now` is read as local time in the user's timezone.
    """
    if not settings.quiet_hours_enabled:
        return False
    if not settings.quiet_hours_start or not settings.quiet_hours_end:
        return False

    local = localize(now, settings.tzinfo).astimezone(settings.tzinfo)
    current = local.hour * 60 + local.minute
    start = minutes_of_day(settings.quiet_hours_start)
    end = minutes_of_day(settings.quiet_hours_end)

    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


def _check_settings(settings: UserSettings | None) -> UserSettings:
    if settings is None:
        raise SettingsError("Nudge evaluation requires user settings")
    settings.validate()
    return settings


class NudgeOrchestrator:
    """Dedup, ordering, overflow and quiet-hours policy for alerts."""

    def __init__(self):
        self.last_fired: dict[tuple[str, AlertType], int] = {}
        self.pending: dict[tuple[str, AlertType], Alert] = {}

    def _is_duplicate(self, alert: Alert, now_ms: int, settings: UserSettings) -> bool:
        last = self.last_fired.get(alert.dedup_key)
        if last is None:
            return False
        return now_ms - last < settings.nudge_cooldown_minutes * MINUTE_MS

    def _delivery(self, alert: Alert, tier: PriorityTier, quiet: bool) -> NudgeDecision:
        # Critical alerts ignore quiet hours
        if quiet and tier != PriorityTier.CRITICAL:
            return NudgeDecision(alert, Outcome.DOWNGRADE_TO_BADGE, SuppressionReason.QUIET_HOURS)
        return NudgeDecision(alert, Outcome.FIRE)

    def _record(self, decisions: list[NudgeDecision], now_ms: int) -> None:
        for d in decisions:
            key = d.alert.dedup_key
            if d.delivered:
                self.last_fired[key] = now_ms
                self.pending.pop(key, None)
            elif d.reason == SuppressionReason.QUEUE_OVERFLOW:
                self.pending[key] = d.alert
            else:
                self.pending.pop(key, None)

    def admit(
        self,
        alert: Alert,
        now: datetime,
        settings: UserSettings,
        tier: PriorityTier = PriorityTier.LOW,
    ) -> NudgeDecision:
        """Decide a single alert. Only FIRE and DOWNGRADE_TO_BADGE start a cooldown."""
        settings = _check_settings(settings)
        now = localize(now, settings.tzinfo)
        now_ms = to_epoch_ms(now)

        if self._is_duplicate(alert, now_ms, settings):
            decision = NudgeDecision(alert, Outcome.SUPPRESS, SuppressionReason.DUPLICATE)
        else:
            decision = self._delivery(alert, tier, is_in_quiet_hours(now, settings))

        logger.debug(f"admit {alert.schedule_key}: {decision.outcome.value}")
        self._record([decision], now_ms)
        return decision

    def evaluate(
        self,
        candidates: list[Alert],
        now: datetime,
        settings: UserSettings,
        tiers: dict[str, PriorityTier] | None = None,
    ) -> list[NudgeDecision]:
        """
        Decide a batch of alerts in one pass.

        Alerts left over from earlier passes are offered again alongside the
        new candidates. Eligible alerts are ordered by task tier, then alert
        type weight, then earliest fire time, and at most
        `settings.max_visible_nudges` are delivered. The rest are suppressed
        as queue overflow and kept pending.
        """
        settings = _check_settings(settings)
        tiers = tiers or {}
        now = localize(now, settings.tzinfo)
        now_ms = to_epoch_ms(now)
        quiet = is_in_quiet_hours(now, settings)

        pool = dict(self.pending)
        for alert in candidates:
            pool[alert.dedup_key] = alert

        decisions: list[NudgeDecision] = []
        eligible: list[Alert] = []
        for alert in pool.values():
            if self._is_duplicate(alert, now_ms, settings):
                decisions.append(NudgeDecision(alert, Outcome.SUPPRESS, SuppressionReason.DUPLICATE))
            else:
                eligible.append(alert)

        def tier_of(alert: Alert) -> PriorityTier:
            return tiers.get(alert.task_id, PriorityTier.LOW)

        eligible.sort(key=lambda a: (tier_of(a).rank, -a.type.weight, a.fire_time))

        for i, alert in enumerate(eligible):
            if i < settings.max_visible_nudges:
                decisions.append(self._delivery(alert, tier_of(alert), quiet))
            else:
                decisions.append(
                    NudgeDecision(alert, Outcome.SUPPRESS, SuppressionReason.QUEUE_OVERFLOW)
                )

        self._record(decisions, now_ms)

        delivered = sum(1 for d in decisions if d.delivered)
        logger.debug(
            f"Evaluated {len(decisions)} alerts: {delivered} delivered, {len(self.pending)} pending"
        )
        return decisions

    def retain(self, keys: set[tuple[str, AlertType]]) -> None:
        """Drop pending alerts whose key is no longer produced by any task."""
        for key in list(self.pending):
            if key not in keys:
                del self.pending[key]

    def prune(self, now: datetime, tz: tzinfo = timezone.utc) -> int:
        """Forget fire records older than a day. Returns how many were dropped."""
        cutoff = to_epoch_ms(localize(now, tz)) - FIRE_RECORD_TTL_MS
        stale = [key for key, fired in self.last_fired.items() if fired < cutoff]
        for key in stale:
            del self.last_fired[key]
        return len(stale)
