"""Adapters - I/O implementations of ports."""

from .apscheduler_scheduler import APSchedulerScheduler
from .json_task_store import JsonTaskStore
from .log_notifier import LogNotifier

__all__ = [
    "APSchedulerScheduler",
    "JsonTaskStore",
    "LogNotifier",
]
