"""Notifier interface for delivering alerts."""

from typing import Protocol

from taskcopilot.core.alerts import Alert


class Notifier(Protocol):
    """Interface for surfacing alerts to the user."""

    def push(self, alert: Alert) -> None:
        """Deliver a full, attention-grabbing notification."""
        ...

    def badge(self, alert: Alert) -> None:
        """Deliver a silent, badge-only notification."""
        ...
