"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskRepository
from .scheduler import Scheduler
from .notifier import Notifier

__all__ = [
    "TaskRepository",
    "Scheduler",
    "Notifier",
]
