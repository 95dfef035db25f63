"""Tests for task reordering."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from adhd_dashboard.core.reorder import REORDER_FACTORS, TaskNotFoundError, reorder
from adhd_dashboard.db.models import Task, TaskPriority

NOW = datetime(2024, 5, 15, 15, 0, tzinfo=timezone.utc)


def _lookup(*tasks: Task) -> dict[str, Task]:
    return {t.id: t for t in tasks}


class TestReorder:
    def test_urgent_due_tomorrow_before_low(self):
        lookup = _lookup(
            Task(id="A", title="A", priority=TaskPriority.URGENT, due_date=NOW + timedelta(days=1)),
            Task(id="B", title="B", priority=TaskPriority.LOW),
        )
        result = reorder(["A", "B"], lookup, NOW)
        assert result.suggested_order == ["A", "B"]
        assert result.original_order == ["A", "B"]

    def test_moves_urgent_to_front(self):
        lookup = _lookup(
            Task(id="low", title="low", priority=TaskPriority.LOW),
            Task(id="high", title="high", priority=TaskPriority.HIGH),
            Task(id="urgent", title="urgent", priority=TaskPriority.URGENT),
        )
        result = reorder(["low", "high", "urgent"], lookup, NOW)
        assert result.suggested_order == ["urgent", "high", "low"]
        assert result.original_order == ["low", "high", "urgent"]

    def test_due_date_can_outrank_priority(self):
        lookup = _lookup(
            Task(id="urgent", title="urgent", priority=TaskPriority.URGENT),
            Task(id="overdue", title="overdue", priority=TaskPriority.LOW,
                 due_date=NOW - timedelta(days=1)),
        )
        result = reorder(["urgent", "overdue"], lookup, NOW)
        assert result.suggested_order == ["overdue", "urgent"]

    def test_ties_keep_original_order(self):
        lookup = _lookup(*(Task(id=c, title=c) for c in "abcd"))
        assert reorder(["c", "a", "d", "b"], lookup, NOW).suggested_order == ["c", "a", "d", "b"]

    def test_reasoning_for_top_task_only(self):
        lookup = _lookup(
            Task(id="x", title="x", priority=TaskPriority.LOW),
            Task(id="y", title="y", priority=TaskPriority.HIGH),
        )
        result = reorder(["x", "y"], lookup, NOW)
        assert len(result.reasoning) == 1
        assert result.reasoning[0].task_id == "y"
        assert result.reasoning[0].factors_considered == REORDER_FACTORS

    def test_fixed_productivity_gain(self):
        lookup = _lookup(Task(id="x", title="x"))
        assert reorder(["x"], lookup, NOW).estimated_productivity_gain == 15.0

    def test_empty_input(self):
        result = reorder([], {}, NOW)
        assert result.suggested_order == []
        assert result.reasoning == []

    def test_is_a_permutation(self):
        rng = random.Random(7)
        priorities = list(TaskPriority)
        tasks = [
            Task(
                id=f"t{i}",
                title=f"t{i}",
                priority=rng.choice(priorities),
                due_date=NOW + timedelta(hours=rng.randint(-48, 240)) if rng.random() < 0.6 else None,
            )
            for i in range(40)
        ]
        ids = [t.id for t in tasks] + ["t3", "t3"]
        result = reorder(ids, _lookup(*tasks), NOW)
        assert sorted(result.suggested_order) == sorted(ids)

    def test_missing_ids(self):
        lookup = _lookup(Task(id="a", title="a"))
        with pytest.raises(TaskNotFoundError) as exc:
            reorder(["a", "ghost", "nope", "ghost"], lookup, NOW)
        assert exc.value.missing_ids == ["ghost", "nope"]
        assert "ghost" in str(exc.value)

    def test_missing_id_is_lookup_error(self):
        with pytest.raises(LookupError):
            reorder(["ghost"], {}, NOW)

    def test_naive_current_time(self):
        lookup = _lookup(
            Task(id="low", title="low", priority=TaskPriority.LOW,
                 due_date=NOW + timedelta(hours=6)),
            Task(id="urgent", title="urgent", priority=TaskPriority.URGENT),
        )
        naive = reorder(["urgent", "low"], lookup, NOW.replace(tzinfo=None))
        aware = reorder(["urgent", "low"], lookup, NOW)
        assert naive.suggested_order == aware.suggested_order == ["low", "urgent"]
