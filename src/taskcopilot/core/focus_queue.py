"""Focus queue ordering - pure functions, no I/O.

The queue is shown as a single visual list of items with one "today line"
sentinel between the items committed for today and the ones for later.
During a drag that visual list is the source of truth; the
(items, today_line_index) pair is derived from it.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone, tzinfo
from enum import Enum

from .clock import DAY_MS, to_epoch_ms
from .priority import rank_tasks
from .tasks import EnergyLevel, Task

TODAY_LIMIT = 15
TOTAL_LIMIT = 30


class SelectionType(Enum):
    ENTIRE_TASK = "entire_task"
    SUBSET = "subset"


@dataclass
class FocusQueueItem:
    id: str
    task_id: str
    selection_type: SelectionType = SelectionType.ENTIRE_TASK
    selected_step_ids: list[str] = field(default_factory=list)
    order: int = 0
    completed: bool = False
    completed_at: int | None = None
    added_at: int = 0
    last_interacted_at: int = 0
    rollover_count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "FocusQueueItem":
        selection = data.get("selectionType", data.get("selection_type", "entire_task"))
        # Older exports used per-horizon selection names
        if selection in ("all_today", "all_upcoming"):
            selection = "entire_task"
        elif selection == "specific_steps":
            selection = "subset"
        return cls(
            id=str(data["id"]),
            task_id=str(data.get("taskId", data.get("task_id"))),
            selection_type=SelectionType(selection),
            selected_step_ids=list(data.get("selectedStepIds", data.get("selected_step_ids")) or []),
            order=int(data.get("order", 0)),
            completed=bool(data.get("completed", False)),
            completed_at=data.get("completedAt", data.get("completed_at")),
            added_at=int(data.get("addedAt", data.get("added_at", 0)) or 0),
            last_interacted_at=int(
                data.get("lastInteractedAt", data.get("last_interacted_at"))
                or data.get("addedAt", data.get("added_at", 0))
                or 0
            ),
            rollover_count=int(data.get("rolloverCount", data.get("rollover_count", 0)) or 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "selectionType": self.selection_type.value,
            "selectedStepIds": list(self.selected_step_ids),
            "order": self.order,
            "completed": self.completed,
            "completedAt": self.completed_at,
            "addedAt": self.added_at,
            "lastInteractedAt": self.last_interacted_at,
            "rolloverCount": self.rollover_count,
        }


@dataclass
class FocusQueue:
    """Active items in visual order, followed by completed items.

    today_line_index counts active items only.
    """

    items: list[FocusQueueItem] = field(default_factory=list)
    today_line_index: int = 0

    @property
    def active_items(self) -> list[FocusQueueItem]:
        return [i for i in self.items if not i.completed]

    @classmethod
    def from_dict(cls, data: dict) -> "FocusQueue":
        items = [FocusQueueItem.from_dict(i) for i in data.get("items") or []]
        active = sorted((i for i in items if not i.completed), key=lambda i: i.order)
        done = [i for i in items if i.completed]
        line = int(data.get("todayLineIndex", data.get("today_line_index", 0)) or 0)
        return cls(items=active + done, today_line_index=max(0, min(line, len(active))))

    def to_dict(self) -> dict:
        return {
            "items": [i.to_dict() for i in self.items],
            "todayLineIndex": self.today_line_index,
        }


@dataclass(frozen=True)
class ItemElement:
    item: FocusQueueItem
    original_index: int


@dataclass(frozen=True)
class LineElement:
    pass


LINE = LineElement()

VisualElement = ItemElement | LineElement


# ============== Visual reordering ==============


def reorder_elements(
    elements: list[VisualElement], from_index: int, to_index: int
) -> list[VisualElement]:
    """
    Move the element at from_index so it lands at drop position to_index.

    to_index is a drop position in the original list (0..len). Moving forward
    shifts the target back by one once the element is removed.
    """
    if not 0 <= from_index < len(elements):
        raise ValueError(f"from_index {from_index} out of range for {len(elements)} elements")
    if not 0 <= to_index <= len(elements):
        raise ValueError(f"to_index {to_index} out of range for {len(elements)} elements")
    if from_index == to_index:
        return elements

    result = list(elements)
    moved = result.pop(from_index)
    target = to_index - 1 if from_index < to_index else to_index
    result.insert(target, moved)
    return result


def derive_state(elements: list[VisualElement]) -> tuple[list[FocusQueueItem], int]:
    """Items in visual order and the number of items above the line."""
    items: list[FocusQueueItem] = []
    today_line_index = 0
    seen_line = False

    for el in elements:
        if isinstance(el, LineElement):
            if seen_line:
                raise ValueError("Visual list contains more than one today line")
            seen_line = True
            today_line_index = len(items)
        else:
            items.append(el.item)

    return items, today_line_index


def build_elements(items: list[FocusQueueItem], today_line_index: int) -> list[VisualElement]:
    """Inverse of derive_state: items with the line spliced in at the boundary."""
    if not 0 <= today_line_index <= len(items):
        raise ValueError(f"today_line_index {today_line_index} out of range 0..{len(items)}")
    elements: list[VisualElement] = [ItemElement(item, i) for i, item in enumerate(items)]
    elements.insert(today_line_index, LINE)
    return elements


# ============== Queue operations ==============


def _with_active(
    queue: FocusQueue,
    active: list[FocusQueueItem],
    line: int,
    done: list[FocusQueueItem] | None = None,
) -> FocusQueue:
    """Rebuild a queue with dense order numbers."""
    if done is None:
        done = [i for i in queue.items if i.completed]
    items = [replace(item, order=idx) for idx, item in enumerate(active + done)]
    return FocusQueue(items=items, today_line_index=max(0, min(line, len(active))))


def move_item(queue: FocusQueue, from_index: int, to_index: int) -> FocusQueue:
    """Apply a drag in the visual list (indices include the line)."""
    elements = build_elements(queue.active_items, queue.today_line_index)
    items, line = derive_state(reorder_elements(elements, from_index, to_index))
    return _with_active(queue, items, line)


def add_to_queue(
    queue: FocusQueue,
    task_id: str,
    for_today: bool = False,
    selected_step_ids: list[str] | None = None,
    now_ms: int = 0,
    item_id: str | None = None,
) -> FocusQueue:
    """
    Add a task just below the today line.

    With for_today the line moves down past it, so it joins today's items.
    A task that already has an active item is left as is.
    """
    active = queue.active_items
    if any(i.task_id == task_id for i in active):
        return queue

    item = FocusQueueItem(
        id=item_id or uuid.uuid4().hex,
        task_id=task_id,
        selection_type=SelectionType.SUBSET if selected_step_ids else SelectionType.ENTIRE_TASK,
        selected_step_ids=list(selected_step_ids or []),
        added_at=now_ms,
        last_interacted_at=now_ms,
    )
    line = queue.today_line_index
    active = active[:line] + [item] + active[line:]
    return _with_active(queue, active, line + 1 if for_today else line)


def _without(queue: FocusQueue, item_id: str) -> tuple[list[FocusQueueItem], int, FocusQueueItem]:
    active = queue.active_items
    for idx, item in enumerate(active):
        if item.id == item_id:
            line = queue.today_line_index - 1 if idx < queue.today_line_index else queue.today_line_index
            return active[:idx] + active[idx + 1:], line, item
    raise KeyError(item_id)


def remove_from_queue(queue: FocusQueue, item_id: str) -> FocusQueue:
    """Drop an active item. The line moves up if the item was above it."""
    try:
        active, line, _ = _without(queue, item_id)
    except KeyError:
        return queue
    return _with_active(queue, active, line)


def complete_item(queue: FocusQueue, item_id: str, now_ms: int) -> FocusQueue:
    """Mark an item done and move it to the completed section."""
    try:
        active, line, item = _without(queue, item_id)
    except KeyError:
        return queue
    done = replace(item, completed=True, completed_at=now_ms, last_interacted_at=now_ms)
    return _with_active(queue, active, line, completed_items(queue) + [done])


def today_items(queue: FocusQueue) -> list[FocusQueueItem]:
    return queue.active_items[: queue.today_line_index]


def later_items(queue: FocusQueue) -> list[FocusQueueItem]:
    return queue.active_items[queue.today_line_index :]


def completed_items(queue: FocusQueue) -> list[FocusQueueItem]:
    return [i for i in queue.items if i.completed]


def seed_queue(
    tasks: list[Task],
    today_count: int = 3,
    user_energy: EnergyLevel | None = None,
    as_of: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> FocusQueue:
    """
    Build a fresh queue from the ranked active tasks.

    The top `today_count` tasks go above the line. Tasks deferred past
    today are left out.
    """
    as_of = as_of or datetime.now(tz)
    ranked = rank_tasks(tasks, user_energy, as_of, tz)
    now_ms = to_epoch_ms(as_of)
    items = [
        FocusQueueItem(
            id=uuid.uuid4().hex,
            task_id=r.task.id,
            order=idx,
            added_at=now_ms,
            last_interacted_at=now_ms,
        )
        for idx, r in enumerate(ranked)
    ]
    return FocusQueue(items=items, today_line_index=max(0, min(today_count, len(items))))


# ============== Rollover and limits ==============


def is_item_stale(item: FocusQueueItem, now_ms: int, days: int = 3) -> bool:
    """Untouched for at least `days` whole days."""
    return (now_ms - item.last_interacted_at) // DAY_MS >= days


def process_rollover(queue: FocusQueue, now_ms: int) -> tuple[FocusQueue, list[FocusQueueItem]]:
    """
    Carry unfinished today items into a new day.

    Today items untouched for a day get their rollover_count bumped and are
    returned for review. Bumped items count as touched, so running this
    twice on the same day changes nothing.
    """
    line = queue.today_line_index
    review: list[FocusQueueItem] = []
    active: list[FocusQueueItem] = []
    for idx, item in enumerate(queue.active_items):
        if idx < line and is_item_stale(item, now_ms, days=1):
            item = replace(item, rollover_count=item.rollover_count + 1, last_interacted_at=now_ms)
            review.append(item)
        active.append(item)
    return _with_active(queue, active, line), review


def queue_limit_warning(queue: FocusQueue) -> str | None:
    """A nudge to trim the queue once today or the whole queue is full."""
    today_count = len(today_items(queue))
    total = len(queue.active_items)
    if today_count >= TODAY_LIMIT:
        return f"That's a full day ({today_count} items). Consider moving some below the line."
    if total >= TOTAL_LIMIT:
        return f"Queue is getting large ({total} items). Review and prune?"
    return None
