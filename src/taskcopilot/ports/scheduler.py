"""Scheduler interface - wakes the engine up at a given time."""

from datetime import datetime
from typing import Callable, Protocol


class Scheduler(Protocol):
    """
    Interface for one-shot timers keyed by a string.

    The host owns the scheduler's lifecycle. Scheduling an existing key
    replaces it.
    """

    def schedule(self, key: str, when: datetime, callback: Callable[[], None]) -> None:
        """Run callback once at `when`."""
        ...

    def cancel(self, key: str) -> None:
        """Cancel a pending timer. Unknown keys are ignored."""
        ...

    def keys(self) -> set[str]:
        """Keys of timers that have not run yet."""
        ...
