"""Task repository interface."""

from typing import Protocol

from taskcopilot.core.focus_queue import FocusQueue
from taskcopilot.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for loading tasks from any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def fetch_queue(self) -> FocusQueue:
        """Fetch the focus queue."""
        ...

    def save_queue(self, queue: FocusQueue) -> None:
        """Persist the focus queue."""
        ...
