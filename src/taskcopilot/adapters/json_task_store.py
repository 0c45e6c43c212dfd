"""JSON export file adapter for tasks and the focus queue."""

import json
from pathlib import Path

from taskcopilot.core.focus_queue import FocusQueue
from taskcopilot.core.tasks import Task


class JsonTaskStore:
    """
    Tasks and focus queue read from an app JSON export.

    Implements TaskRepository protocol. The file holds
    {"tasks": [...], "focusQueue": {...}}; a bare list of tasks is also
    accepted. Saving the queue keeps every other key in the file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text())
        if isinstance(data, list):
            return {"tasks": data}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected JSON document in {self.path}")
        return data

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks. A missing file has no tasks."""
        return [Task.from_dict(t) for t in self._load().get("tasks") or []]

    def fetch_queue(self) -> FocusQueue:
        data = self._load().get("focusQueue")
        return FocusQueue.from_dict(data) if data else FocusQueue()

    def save_queue(self, queue: FocusQueue) -> None:
        data = self._load()
        data["focusQueue"] = queue.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
