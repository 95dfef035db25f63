"""Tests for the store-backed suggestion, reorder and insight services."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from adhd_dashboard.config import HeuristicConfig
from adhd_dashboard.core import assistant as assistant_mod
from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.core.reorder import TaskNotFoundError
from adhd_dashboard.core.users import UserNotFoundError
from adhd_dashboard.db.engine import init_db
from adhd_dashboard.db.models import AdhdProfile, InsightType, Preferences, SuggestionType


@pytest.fixture
def db():
    with tempfile.TemporaryDirectory() as tmp:
        conn = init_db(Path(tmp) / "test.db")
        profile = AdhdProfile(best_focus_time_start="00:00", best_focus_time_end="23:59")
        users_mod.create_user(conn, "alex", "alex@example.com", profile=profile)
        users_mod.create_user(conn, "sam", "sam@example.com")
        yield conn
        conn.close()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TestGenerateForUser:
    def test_response(self, db):
        tasks_mod.create_task(db, "alex", "Pay bills", priority="urgent")
        now = _now()
        response = assistant_mod.generate_for_user(db, "alex", now)
        kinds = [s.type for s in response.suggestions]
        assert kinds[:2] == [SuggestionType.TASK_PRIORITIZATION, SuggestionType.OPTIMAL_TIMING]
        assert response.confidence == 0.85
        assert response.generated_at == now
        assert response.reasoning

    def test_naive_time_is_utc(self, db):
        naive = datetime(2024, 5, 15, 12, 0)
        response = assistant_mod.generate_for_user(db, "alex", naive)
        assert response.generated_at == naive.replace(tzinfo=timezone.utc)

    def test_preferences(self, db):
        prefs = Preferences(suggestion_types=[SuggestionType.FOCUS_STRATEGIES], max_suggestions=1)
        response = assistant_mod.generate_for_user(db, "alex", _now(), preferences=prefs)
        assert [s.title for s in response.suggestions] == ["Start tracking your focus"]

    def test_uses_recent_sessions(self, db):
        tasks_mod.create_task(db, "alex", "Study")
        start = _now() - timedelta(hours=1)
        session = focus_mod.start_focus_session(db, "study", "alex", now=start)
        focus_mod.end_focus_session(db, session.id, "alex", 2, distractions=6,
                                    now=start + timedelta(minutes=30))
        prefs = Preferences(suggestion_types=[SuggestionType.FOCUS_STRATEGIES])
        response = assistant_mod.generate_for_user(db, "alex", _now(), preferences=prefs)
        assert response.suggestions[0].title == "Improve your focus environment"

    def test_only_own_tasks(self, db):
        tasks_mod.create_task(db, "sam", "Sam's urgent thing", priority="urgent")
        prefs = Preferences(suggestion_types=[SuggestionType.TASK_PRIORITIZATION])
        response = assistant_mod.generate_for_user(db, "alex", _now(), preferences=prefs)
        assert response.suggestions == []

    def test_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            assistant_mod.generate_for_user(db, "ghost", _now())

    def test_unknown_time_zone(self, db):
        with pytest.raises(ValueError):
            assistant_mod.generate_for_user(db, "alex", _now(), time_zone="Nowhere/Land")


class TestReorderForUser:
    def test_reorder(self, db):
        tasks_mod.create_task(db, "alex", "Low thing", priority="low")
        tasks_mod.create_task(db, "alex", "Due soon", due_date=_now() + timedelta(days=1))
        result = assistant_mod.reorder_for_user(db, "alex", ["low-thing", "due-soon"], _now())
        assert result.suggested_order == ["due-soon", "low-thing"]
        assert result.reasoning[0].task_id == "due-soon"

    def test_subtasks_can_be_reordered(self, db):
        tasks_mod.create_task(db, "alex", "Parent")
        tasks_mod.break_down_task(db, "parent", [{"title": "Step", "priority": "urgent"}])
        result = assistant_mod.reorder_for_user(db, "alex", ["parent", "step"], _now())
        assert result.suggested_order == ["step", "parent"]

    def test_other_users_tasks_are_missing(self, db):
        tasks_mod.create_task(db, "alex", "Mine")
        tasks_mod.create_task(db, "sam", "Theirs")
        with pytest.raises(TaskNotFoundError) as exc:
            assistant_mod.reorder_for_user(db, "alex", ["mine", "theirs"], _now())
        assert exc.value.missing_ids == ["theirs"]

    def test_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            assistant_mod.reorder_for_user(db, "ghost", [], _now())


class TestInsightsForUser:
    def test_completion_trend(self, db):
        tasks_mod.create_task(db, "alex", "One")
        tasks_mod.create_task(db, "alex", "Two")
        tasks_mod.update_task_status(db, "one", "completed")
        insights = assistant_mod.insights_for_user(db, "alex", _now() + timedelta(seconds=1))
        assert [i.type for i in insights] == [InsightType.TASK_COMPLETION_TRENDS]
        assert insights[0].data["rate"] == 50.0

    def test_peak_performance(self, db):
        tasks_mod.create_task(db, "alex", "Study")
        base = _now().replace(minute=0, second=0, microsecond=0) - timedelta(days=1)
        for i in range(6):
            start = base + timedelta(minutes=i)
            session = focus_mod.start_focus_session(db, "study", "alex", now=start)
            focus_mod.end_focus_session(db, session.id, "alex", 8, now=start + timedelta(minutes=1))
        insights = assistant_mod.insights_for_user(db, "alex", _now() + timedelta(seconds=1))
        peak = next(i for i in insights if i.type == InsightType.PEAK_PERFORMANCE_TIMES)
        assert peak.data["peak_hour"] == base.hour

    def test_window_length(self, db):
        now = _now()
        config = HeuristicConfig(insight_window_days=3)
        tasks_mod.create_task(db, "alex", "One")
        insights = assistant_mod.insights_for_user(db, "alex", now + timedelta(seconds=1),
                                                   config=config)
        assert insights[0].timeframe_end - insights[0].timeframe_start == timedelta(days=3)

    def test_no_history(self, db):
        assert assistant_mod.insights_for_user(db, "alex", _now()) == []

    def test_unknown_user(self, db):
        with pytest.raises(UserNotFoundError):
            assistant_mod.insights_for_user(db, "ghost", _now())
