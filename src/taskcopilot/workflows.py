"""Shared workflow layer between the CLI and long-running hosts.

NudgeEngine wires the pure calculators and the orchestrator to a Scheduler
and a Notifier. The engine only decides *when* and *whether*; waking up is
the scheduler's job.
"""

import logging
import threading
from datetime import datetime, timedelta

from .core.alerts import Alert, collect_alerts, ready_to_fire
from .core.clock import from_epoch_ms, to_epoch_ms
from .core.nudges import NudgeDecision, NudgeOrchestrator, Outcome, SuppressionReason
from .core.priority import PriorityTier, rank_tasks
from .core.settings import UserSettings
from .core.tasks import Task
from .ports.notifier import Notifier
from .ports.scheduler import Scheduler

logger = logging.getLogger(__name__)

RETRY_KEY = "engine:retry"
RETRY_DELAY = timedelta(minutes=1)


class NudgeEngine:
    """
    Keeps scheduled alerts in line with the current tasks and delivers them.

    reschedule() recomputes everything from scratch whenever tasks or
    settings change. tick() is what the scheduler calls when an alert is due.
    """

    def __init__(
        self,
        settings: UserSettings,
        scheduler: Scheduler,
        notifier: Notifier,
        orchestrator: NudgeOrchestrator | None = None,
    ):
        self.settings = settings
        self.scheduler = scheduler
        self.notifier = notifier
        self.orchestrator = orchestrator or NudgeOrchestrator()
        self.upcoming: dict[str, Alert] = {}
        self.tiers: dict[str, PriorityTier] = {}
        self._handled: set[tuple[str, int]] = set()
        self._lock = threading.Lock()

    def reschedule(self, tasks: list[Task], as_of: datetime | None = None) -> list[Alert]:
        """
        Rebuild every alert and sync the scheduler with them.

        Alerts whose time already passed are not scheduled, unless they were
        scheduled earlier and have not been delivered yet.
        Returns all alerts built for the tasks.
        """
        self.settings.validate()
        tz = self.settings.tzinfo
        as_of = as_of or datetime.now(tz)
        now_ms = to_epoch_ms(as_of)

        with self._lock:
            alerts = collect_alerts(tasks, self.settings, as_of)
            self.tiers = {
                r.task.id: r.priority.tier
                for r in rank_tasks(tasks, as_of=as_of, tz=tz, include_deferred=True)
            }

            upcoming: dict[str, Alert] = {}
            for alert in alerts:
                key = alert.schedule_key
                if (key, alert.fire_time) in self._handled:
                    continue
                # Overdue alerts survive only if they were already waiting on a tick
                if alert.fire_time >= now_ms or key in self.upcoming:
                    upcoming[key] = alert

            for key in self.scheduler.keys() - upcoming.keys() - {RETRY_KEY}:
                self.scheduler.cancel(key)
            for key, alert in upcoming.items():
                run_at = from_epoch_ms(max(alert.fire_time, now_ms), tz)
                self.scheduler.schedule(key, run_at, self._wake)

            self.orchestrator.retain({a.dedup_key for a in alerts})
            self._handled = {
                (a.schedule_key, a.fire_time)
                for a in alerts
                if (a.schedule_key, a.fire_time) in self._handled
            }
            self.upcoming = upcoming

        logger.info(f"Rescheduled {len(upcoming)} of {len(alerts)} alerts")
        return alerts

    def _wake(self) -> None:
        self.tick()

    def tick(self, now: datetime | None = None) -> list[NudgeDecision]:
        """Offer due alerts to the orchestrator and deliver what it admits."""
        now = now or datetime.now(self.settings.tzinfo)

        with self._lock:
            self.orchestrator.prune(now, self.settings.tzinfo)
            due = ready_to_fire(list(self.upcoming.values()), now)
            decisions = self.orchestrator.evaluate(due, now, self.settings, self.tiers)

            for d in decisions:
                if d.reason != SuppressionReason.QUEUE_OVERFLOW:
                    self.upcoming.pop(d.alert.schedule_key, None)
                    self._handled.add((d.alert.schedule_key, d.alert.fire_time))

            overflow = bool(self.orchestrator.pending)

        for d in decisions:
            match d.outcome:
                case Outcome.FIRE:
                    self.notifier.push(d.alert)
                case Outcome.DOWNGRADE_TO_BADGE:
                    self.notifier.badge(d.alert)
                case Outcome.SUPPRESS:
                    logger.debug(f"Suppressed {d.alert.schedule_key}: {d.reason.value}")

        if overflow:
            # Overflow must be re-offered, not dropped
            self.scheduler.schedule(RETRY_KEY, now + RETRY_DELAY, self._wake)
        else:
            self.scheduler.cancel(RETRY_KEY)

        return decisions
