"""MCP server exposing the dashboard's task, focus and suggestion tools."""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

from mcp.server.fastmcp import Context, FastMCP

from adhd_dashboard import serializers as ser
from adhd_dashboard.config import Config, get_config
from adhd_dashboard.core import assistant as assistant_mod
from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.core.focus import FocusSessionError
from adhd_dashboard.core.reorder import TaskNotFoundError
from adhd_dashboard.core.users import UserNotFoundError
from adhd_dashboard.db.engine import init_db


@dataclass
class AppContext:
    db: sqlite3.Connection
    config: Config


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Initialize DB connection on startup, close on shutdown."""
    config = get_config()
    db = init_db(config.db_path)
    try:
        yield AppContext(db=db, config=config)
    finally:
        db.close()


mcp = FastMCP("adhd-dashboard", lifespan=app_lifespan)


def _ctx(ctx: Context) -> AppContext:
    """Extract AppContext from MCP Context."""
    return ctx.request_context.lifespan_context


def _now(value: str | None) -> datetime:
    return ser.parse_datetime(value) or datetime.now(timezone.utc)


# ── Task Tools ────────────────────────────────────────────────────────────────


@mcp.tool()
def create_task(
    ctx: Context,
    user_id: str,
    title: str,
    description: str = "",
    priority: str = "medium",
    difficulty: str = "medium",
    estimated_duration: int = 30,
    due_date: str | None = None,
    energy_level: str | None = None,
    context: str | None = None,
    tags: list[str] | None = None,
) -> dict:
    """Create a task. Priority: low, medium, high, urgent. Energy level: low, medium, high."""
    app = _ctx(ctx)
    if not users_mod.get_user(app.db, user_id):
        return {"error": f"User not found: {user_id}"}
    try:
        task = tasks_mod.create_task(
            app.db,
            user_id,
            title,
            description=description,
            priority=priority,
            difficulty=difficulty,
            estimated_duration=estimated_duration,
            tags=tags,
            due_date=ser.parse_datetime(due_date),
            energy_level=energy_level,
            context=context,
        )
    except ValueError as e:
        return {"error": str(e)}
    return ser.task_to_dict(task)


@mcp.tool()
def list_tasks(
    ctx: Context,
    user_id: str,
    status: str | None = None,
    energy_level: str | None = None,
) -> list[dict]:
    """List a user's top-level tasks, optionally filtered by status or energy level."""
    app = _ctx(ctx)
    try:
        tasks = tasks_mod.list_tasks(app.db, user_id, status=status, energy_level=energy_level)
    except ValueError as e:
        return [{"error": str(e)}]
    return [ser.task_to_dict(t) for t in tasks]


@mcp.tool()
def get_task(ctx: Context, task_id: str) -> dict:
    """Get full details of a task including subtasks."""
    app = _ctx(ctx)
    task = tasks_mod.get_task(app.db, task_id)
    if not task:
        return {"error": f"Task not found: {task_id}"}
    return ser.task_to_dict(task)


@mcp.tool()
def update_task_status(ctx: Context, task_id: str, status: str) -> dict:
    """Update a task's status. Valid statuses: todo, in_progress, blocked, completed, cancelled."""
    app = _ctx(ctx)
    try:
        task = tasks_mod.update_task_status(app.db, task_id, status)
    except ValueError as e:
        return {"error": str(e)}
    if not task:
        return {"error": f"Task not found: {task_id}"}
    return ser.task_to_dict(task)


@mcp.tool()
def break_down_task(ctx: Context, task_id: str, subtasks: list[dict]) -> list[dict]:
    """Break a task into subtasks. Each subtask dict needs 'title' and may set 'estimated_duration'."""
    app = _ctx(ctx)
    try:
        created = tasks_mod.break_down_task(app.db, task_id, subtasks)
    except (KeyError, ValueError) as e:
        return [{"error": str(e)}]
    return [ser.task_to_dict(t) for t in created]


@mcp.tool()
def task_stats(ctx: Context, user_id: str) -> dict:
    """Completion, overdue, focus and time statistics for a user."""
    app = _ctx(ctx)
    return ser.stats_to_dict(tasks_mod.get_task_stats(app.db, user_id))


# ── Focus Tools ───────────────────────────────────────────────────────────────


@mcp.tool()
def start_focus(ctx: Context, user_id: str, task_id: str) -> dict:
    """Start a focus session on a task."""
    app = _ctx(ctx)
    try:
        session = focus_mod.start_focus_session(app.db, task_id, user_id)
    except FocusSessionError as e:
        return {"error": str(e)}
    return ser.session_to_dict(session)


@mcp.tool()
def end_focus(
    ctx: Context,
    user_id: str,
    session_id: int,
    focus_score: int,
    distractions: int = 0,
) -> dict:
    """End a focus session with a 1-10 focus score and a distraction count."""
    app = _ctx(ctx)
    try:
        session = focus_mod.end_focus_session(
            app.db, session_id, user_id, focus_score, distractions
        )
    except (FocusSessionError, ValueError) as e:
        return {"error": str(e)}
    return ser.session_to_dict(session)


# ── Suggestion Tools ──────────────────────────────────────────────────────────


@mcp.tool()
def get_suggestions(
    ctx: Context,
    user_id: str,
    current_time: str | None = None,
    time_zone: str | None = None,
    suggestion_types: list[str] | None = None,
    max_suggestions: int | None = None,
) -> dict:
    """Get ADHD-friendly suggestions for what to do right now."""
    app = _ctx(ctx)
    try:
        preferences = ser.preferences_from_dict(
            {"suggestion_types": suggestion_types, "max_suggestions": max_suggestions},
            default_max=app.config.heuristics.max_suggestions,
        )
        response = assistant_mod.generate_for_user(
            app.db,
            user_id,
            _now(current_time),
            time_zone=time_zone or app.config.default_timezone,
            preferences=preferences,
            config=app.config.heuristics,
        )
    except (UserNotFoundError, ValueError) as e:
        return {"error": str(e)}
    return ser.suggestion_response_to_dict(response)


@mcp.tool()
def reorder_tasks(
    ctx: Context,
    user_id: str,
    task_ids: list[str],
    current_time: str | None = None,
    time_zone: str | None = None,
) -> dict:
    """Suggest a better order for the given tasks based on priority, due date and energy."""
    app = _ctx(ctx)
    try:
        result = assistant_mod.reorder_for_user(
            app.db,
            user_id,
            task_ids,
            _now(current_time),
            time_zone=time_zone or app.config.default_timezone,
            config=app.config.heuristics,
        )
    except TaskNotFoundError as e:
        return {"error": str(e), "missing_ids": e.missing_ids}
    except (UserNotFoundError, ValueError) as e:
        return {"error": str(e)}
    return ser.reorder_to_dict(result)


@mcp.tool()
def get_insights(
    ctx: Context,
    user_id: str,
    current_time: str | None = None,
    time_zone: str | None = None,
) -> list[dict]:
    """Productivity insights (peak focus hour, completion rate) for the recent window."""
    app = _ctx(ctx)
    try:
        insights = assistant_mod.insights_for_user(
            app.db,
            user_id,
            _now(current_time),
            time_zone=time_zone or app.config.default_timezone,
            config=app.config.heuristics,
        )
    except (UserNotFoundError, ValueError) as e:
        return [{"error": str(e)}]
    return [ser.insight_to_dict(i) for i in insights]
