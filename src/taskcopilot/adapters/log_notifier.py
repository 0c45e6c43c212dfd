"""Notifier that writes alerts to the log."""

import logging

from taskcopilot.core.alerts import Alert

logger = logging.getLogger(__name__)


class LogNotifier:
    """
    Log-only delivery, for the CLI and headless hosts.

    Implements Notifier protocol. Keeps what it delivered so callers can
    report on it.
    """

    def __init__(self):
        self.pushed: list[Alert] = []
        self.badged: list[Alert] = []

    def push(self, alert: Alert) -> None:
        self.pushed.append(alert)
        logger.info(f"{alert.type.headline}: {alert.title or alert.task_id}")

    def badge(self, alert: Alert) -> None:
        self.badged.append(alert)
        logger.info(f"(badge) {alert.type.headline}: {alert.title or alert.task_id}")
