"""Tests for the MCP tool functions."""

import tempfile
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from adhd_dashboard.config import DEFAULT_HEURISTICS, Config
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.db.engine import init_db
from adhd_dashboard.mcp import server

NOW = "2024-05-15T15:00:00Z"


@pytest.fixture
def ctx():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = Path(tmp) / "test.db"
        conn = init_db(db_path)
        users_mod.create_user(conn, "alex", "alex@example.com")
        mock = MagicMock()
        mock.request_context.lifespan_context = server.AppContext(
            db=conn, config=Config(db_path=db_path)
        )
        yield mock
        conn.close()


class TestTaskTools:
    def test_create_and_get(self, ctx):
        created = server.create_task(ctx, "alex", "Pay rent", priority="urgent")
        assert created["id"] == "pay-rent"
        assert server.get_task(ctx, "pay-rent")["priority"] == "urgent"

    def test_create_for_unknown_user(self, ctx):
        assert "error" in server.create_task(ctx, "ghost", "Pay rent")

    def test_create_invalid(self, ctx):
        assert "error" in server.create_task(ctx, "alex", "Pay rent", priority="asap")

    def test_list_and_status(self, ctx):
        server.create_task(ctx, "alex", "Laundry")
        server.update_task_status(ctx, "laundry", "completed")
        assert server.list_tasks(ctx, "alex", status="todo") == []
        assert server.task_stats(ctx, "alex")["completed"] == 1

    def test_break_down(self, ctx):
        server.create_task(ctx, "alex", "Clean flat", estimated_duration=120)
        subs = server.break_down_task(ctx, "clean-flat", [{"title": "Kitchen"}])
        assert subs[0]["parent_task_id"] == "clean-flat"

    def test_missing_task(self, ctx):
        assert "error" in server.get_task(ctx, "nope")


class TestFocusTools:
    def test_cycle(self, ctx):
        server.create_task(ctx, "alex", "Study")
        session = server.start_focus(ctx, "alex", "study")
        ended = server.end_focus(ctx, "alex", session["id"], 9, distractions=1)
        assert ended["focus_score"] == 9
        assert "error" in server.end_focus(ctx, "alex", session["id"], 9)


class TestAssistantTools:
    def test_suggestions(self, ctx):
        server.create_task(ctx, "alex", "Pay rent", priority="urgent")
        result = server.get_suggestions(ctx, "alex", current_time=NOW, max_suggestions=1)
        assert [s["type"] for s in result["suggestions"]] == ["task_prioritization"]

    def test_suggestions_use_configured_cap(self, ctx):
        app = ctx.request_context.lifespan_context
        app.config = Config(
            db_path=app.config.db_path,
            heuristics=replace(DEFAULT_HEURISTICS, max_suggestions=1),
        )
        server.create_task(ctx, "alex", "Pay rent", priority="urgent")
        server.create_task(ctx, "alex", "Write report", estimated_duration=120)
        result = server.get_suggestions(ctx, "alex", current_time=NOW)
        assert [s["type"] for s in result["suggestions"]] == ["task_prioritization"]

    def test_suggestions_unknown_type(self, ctx):
        result = server.get_suggestions(ctx, "alex", suggestion_types=["nagging"])
        assert "error" in result

    def test_reorder(self, ctx):
        server.create_task(ctx, "alex", "Water plants", priority="low")
        server.create_task(ctx, "alex", "Pay rent", priority="urgent")
        result = server.reorder_tasks(ctx, "alex", ["water-plants", "pay-rent"], current_time=NOW)
        assert result["suggested_order"] == ["pay-rent", "water-plants"]

    def test_reorder_missing(self, ctx):
        result = server.reorder_tasks(ctx, "alex", ["ghost"])
        assert result["missing_ids"] == ["ghost"]

    def test_insights_unknown_user(self, ctx):
        assert "error" in server.get_insights(ctx, "ghost")[0]


def test_prompts_mention_tools():
    from adhd_dashboard.mcp import prompts

    assert "get_suggestions" in prompts.plan_my_day("alex")
    assert "break_down_task" in prompts.break_down("clean-flat")
    assert "get_insights" in prompts.weekly_review("alex")
