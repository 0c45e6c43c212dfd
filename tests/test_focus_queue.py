"""Tests for focus queue reordering and lifecycle."""

import random
from datetime import datetime, timezone

import pytest

from taskcopilot.core import focus_queue as fq
from taskcopilot.core.focus_queue import (
    LINE,
    FocusQueue,
    FocusQueueItem,
    ItemElement,
    build_elements,
    derive_state,
    reorder_elements,
)
from taskcopilot.core.tasks import Importance, Task


def item(name: str) -> FocusQueueItem:
    return FocusQueueItem(id=f"q-{name}", task_id=name)


def names(items) -> list[str]:
    return [i.task_id for i in items]


@pytest.fixture
def abc():
    return [item("A"), item("B"), item("C")]


@pytest.fixture
def queue(abc):
    # A, B today; C later
    return FocusQueue(items=abc, today_line_index=2)


class TestBuildAndDerive:
    def test_build_places_line(self, abc):
        elements = build_elements(abc, 2)
        assert elements[2] == LINE
        assert [e.item.task_id for e in elements if isinstance(e, ItemElement)] == ["A", "B", "C"]

    def test_line_last(self, abc):
        items, line = derive_state(build_elements(abc, 3))
        assert line == 3 == len(items)

    def test_line_first(self, abc):
        assert derive_state(build_elements(abc, 0))[1] == 0

    def test_out_of_range_line(self, abc):
        with pytest.raises(ValueError):
            build_elements(abc, 4)

    def test_two_lines_rejected(self, abc):
        with pytest.raises(ValueError):
            derive_state([LINE, ItemElement(abc[0], 0), LINE])

    def test_round_trip(self):
        rng = random.Random(7)
        for length in range(21):
            items = [item(str(rng.random())) for _ in range(length)]
            for k in range(length + 1):
                assert derive_state(build_elements(items, k)) == (items, k)


class TestReorder:
    def test_same_index_is_unchanged(self, abc):
        elements = build_elements(abc, 2)
        assert reorder_elements(elements, 1, 1) is elements

    def test_move_backward(self, abc):
        # [A, B, LINE, C] -> drag C to the top
        elements = reorder_elements(build_elements(abc, 2), 3, 0)
        items, line = derive_state(elements)
        assert names(items) == ["C", "A", "B"]
        assert line == 3

    def test_move_forward_adjusts_for_removal(self, abc):
        # Drop A between B and the line
        elements = reorder_elements(build_elements(abc, 2), 0, 2)
        items, line = derive_state(elements)
        assert names(items) == ["B", "A", "C"]
        assert line == 2

    def test_drag_line_up(self, abc):
        items, line = derive_state(reorder_elements(build_elements(abc, 2), 2, 1))
        assert names(items) == ["A", "B", "C"]
        assert line == 1

    def test_drop_at_end(self, abc):
        items, line = derive_state(reorder_elements(build_elements(abc, 2), 0, 4))
        assert names(items) == ["B", "C", "A"]
        assert line == 1

    def test_out_of_range(self, abc):
        with pytest.raises(ValueError):
            reorder_elements(build_elements(abc, 2), 4, 0)

    def test_preserves_count_and_bounds(self):
        rng = random.Random(11)
        for _ in range(200):
            length = rng.randint(0, 12)
            items = [item(str(i)) for i in range(length)]
            elements = build_elements(items, rng.randint(0, length))
            moved = reorder_elements(
                elements, rng.randrange(len(elements)), rng.randint(0, len(elements))
            )
            new_items, line = derive_state(moved)
            assert len(new_items) == length
            assert 0 <= line <= len(new_items)


class TestQueueOperations:
    def test_move_item_renumbers(self, queue):
        moved = fq.move_item(queue, 3, 0)
        assert names(moved.items) == ["C", "A", "B"]
        assert [i.order for i in moved.items] == [0, 1, 2]
        assert moved.today_line_index == 3

    def test_add_for_later(self, queue):
        added = fq.add_to_queue(queue, "D", item_id="q-D")
        assert names(added.items) == ["A", "B", "D", "C"]
        assert added.today_line_index == 2

    def test_add_for_today(self, queue):
        added = fq.add_to_queue(queue, "D", for_today=True)
        assert names(fq.today_items(added)) == ["A", "B", "D"]
        assert names(fq.later_items(added)) == ["C"]

    def test_add_existing_is_noop(self, queue):
        assert fq.add_to_queue(queue, "A") is queue

    def test_add_with_steps(self, queue):
        added = fq.add_to_queue(queue, "D", selected_step_ids=["s1"])
        new = next(i for i in added.items if i.task_id == "D")
        assert new.selection_type == fq.SelectionType.SUBSET

    def test_remove_above_line_moves_line_up(self, queue):
        removed = fq.remove_from_queue(queue, "q-A")
        assert names(removed.items) == ["B", "C"]
        assert removed.today_line_index == 1

    def test_remove_below_line_keeps_line(self, queue):
        removed = fq.remove_from_queue(queue, "q-C")
        assert removed.today_line_index == 2

    def test_remove_unknown_is_noop(self, queue):
        assert fq.remove_from_queue(queue, "nope") is queue

    def test_complete_moves_to_completed(self, queue):
        done = fq.complete_item(queue, "q-B", now_ms=1000)
        assert names(done.active_items) == ["A", "C"]
        assert done.today_line_index == 1
        [completed] = fq.completed_items(done)
        assert completed.task_id == "B"
        assert completed.completed_at == 1000
        assert [i.order for i in done.items] == [0, 1, 2]

    def test_operations_do_not_mutate_input(self, queue):
        fq.move_item(queue, 3, 0)
        fq.complete_item(queue, "q-A", now_ms=1)
        assert names(queue.items) == ["A", "B", "C"]
        assert queue.today_line_index == 2
        assert not any(i.completed for i in queue.items)


class TestSeedQueue:
    def test_orders_by_priority(self):
        as_of = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
        now_ms = int(as_of.timestamp() * 1000)
        tasks = [
            Task(id="low", importance=Importance.LOW, updated_at=now_ms),
            Task(id="high", importance=Importance.HIGH, updated_at=now_ms),
            Task(id="mid", importance=Importance.MEDIUM, updated_at=now_ms),
        ]
        seeded = fq.seed_queue(tasks, today_count=2, as_of=as_of)
        assert names(seeded.items) == ["high", "mid", "low"]
        assert seeded.today_line_index == 2

    def test_today_count_capped(self):
        seeded = fq.seed_queue([Task(id="only")], today_count=5)
        assert seeded.today_line_index == 1

    def test_deferred_tasks_stay_out(self):
        as_of = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
        now_ms = int(as_of.timestamp() * 1000)
        tasks = [
            Task(id="deferred", importance=Importance.HIGH, deferred_until="2025-03-20", updated_at=now_ms),
            Task(id="ready", importance=Importance.LOW, updated_at=now_ms),
        ]
        seeded = fq.seed_queue(tasks, today_count=1, as_of=as_of)
        assert names(fq.today_items(seeded)) == ["ready"]
        assert names(seeded.items) == ["ready"]


class TestRollover:
    DAY = 24 * 60 * 60 * 1000

    def test_bumps_stale_today_items(self, queue):
        now_ms = 2 * self.DAY
        rolled, review = fq.process_rollover(queue, now_ms)
        assert names(review) == ["A", "B"]
        assert [i.rollover_count for i in rolled.items] == [1, 1, 0]
        assert rolled.today_line_index == 2

    def test_recently_touched_items_are_left_alone(self):
        queue = FocusQueue(
            items=[FocusQueueItem(id="q-A", task_id="A", last_interacted_at=self.DAY)],
            today_line_index=1,
        )
        rolled, review = fq.process_rollover(queue, self.DAY + 60_000)
        assert review == []
        assert rolled == queue

    def test_second_run_same_day_is_noop(self, queue):
        rolled, _ = fq.process_rollover(queue, 2 * self.DAY)
        again, review = fq.process_rollover(rolled, 2 * self.DAY + 60_000)
        assert review == []
        assert [i.rollover_count for i in again.items] == [1, 1, 0]

    def test_stale_threshold(self):
        fresh = FocusQueueItem(id="1", task_id="A", last_interacted_at=0)
        assert not fq.is_item_stale(fresh, 2 * self.DAY)
        assert fq.is_item_stale(fresh, 3 * self.DAY)


class TestQueueLimits:
    def make(self, count: int, line: int) -> FocusQueue:
        return FocusQueue(items=[item(f"T{n}") for n in range(count)], today_line_index=line)

    def test_under_limits(self):
        assert fq.queue_limit_warning(self.make(10, 5)) is None

    def test_today_full(self):
        warning = fq.queue_limit_warning(self.make(15, 15))
        assert warning.startswith("That's a full day (15 items)")

    def test_queue_large(self):
        warning = fq.queue_limit_warning(self.make(30, 3))
        assert warning.startswith("Queue is getting large (30 items)")

    def test_completed_items_do_not_count(self):
        queue = fq.complete_item(self.make(30, 3), "q-T0", now_ms=1)
        assert fq.queue_limit_warning(queue) is None


class TestSerialization:
    def test_from_dict_sorts_active_and_clamps_line(self):
        queue = FocusQueue.from_dict(
            {
                "items": [
                    {"id": "2", "taskId": "B", "order": 1},
                    {"id": "x", "taskId": "X", "order": 0, "completed": True},
                    {"id": "1", "taskId": "A", "order": 0, "selectionType": "specific_steps"},
                ],
                "todayLineIndex": 9,
            }
        )
        assert names(queue.items) == ["A", "B", "X"]
        assert queue.today_line_index == 2
        assert queue.items[0].selection_type == fq.SelectionType.SUBSET

    def test_to_dict_round_trip(self, queue):
        assert FocusQueue.from_dict(queue.to_dict()) == queue
