"""CLI entry point for the ADHD dashboard."""

import json
import logging
import sqlite3
import sys
from datetime import datetime, timezone

import click

from adhd_dashboard import serializers as ser
from adhd_dashboard.config import get_config
from adhd_dashboard.core import assistant as assistant_mod
from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.core.focus import FocusSessionError
from adhd_dashboard.core.reorder import TaskNotFoundError
from adhd_dashboard.core.users import UserNotFoundError
from adhd_dashboard.db.engine import get_db
from adhd_dashboard.db.models import Preferences, SuggestionType, TaskStatus


def _get_db():
    config = get_config()
    return get_db(config.db_path)


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_time(value: str | None) -> datetime:
    try:
        return ser.parse_datetime(value) or datetime.now(timezone.utc)
    except ValueError:
        _fail(f"Invalid timestamp: {value}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose):
    """adhd - ADHD Dashboard CLI"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── User Commands ─────────────────────────────────────────────────────────────


@main.group("user")
def user_group():
    """Manage users and their ADHD profiles."""
    pass


@user_group.command("add")
@click.argument("user_id")
@click.argument("email")
@click.option("--first-name", default="", help="First name")
@click.option("--last-name", default="", help="Last name")
@click.option("--focus-start", default="09:00", help="Best focus window start (HH:mm)")
@click.option("--focus-end", default="11:00", help="Best focus window end (HH:mm)")
def user_add(user_id, email, first_name, last_name, focus_start, focus_end):
    """Create a user."""
    try:
        profile = users_mod.profile_from_dict(
            {"best_focus_time_start": focus_start, "best_focus_time_end": focus_end}
        )
    except ValueError as e:
        _fail(str(e))
    with _get_db() as db:
        if users_mod.get_user(db, user_id):
            _fail(f"User already exists: {user_id}")
        try:
            user = users_mod.create_user(db, user_id, email, first_name, last_name, profile=profile)
        except sqlite3.IntegrityError:
            _fail(f"Email already in use: {email}")
        click.echo(f"Created user: {user.id} ({user.email})")
        click.echo(
            f"  Focus window: {user.adhd_profile.best_focus_time_start}"
            f"-{user.adhd_profile.best_focus_time_end}"
        )


@user_group.command("show")
@click.argument("user_id")
def user_show(user_id):
    """Show a user and their profile."""
    with _get_db() as db:
        user = users_mod.get_user(db, user_id)
        if not user:
            _fail(f"User not found: {user_id}")
        click.echo(json.dumps(ser.user_to_dict(user), indent=2))


@user_group.command("profile")
@click.argument("user_id")
@click.option("--focus-start", default=None, help="Best focus window start (HH:mm)")
@click.option("--focus-end", default=None, help="Best focus window end (HH:mm)")
@click.option("--work-duration", type=int, default=None, help="Preferred work block (minutes)")
@click.option("--break-duration", type=int, default=None, help="Preferred break (minutes)")
@click.option(
    "--energy-pattern",
    default=None,
    help='JSON object mapping day (0=Sunday) to slots, e.g. \'{"1": [{"start_time": "13:00", '
    '"end_time": "15:00", "energy_level": "low"}]}\'',
)
def user_profile(user_id, focus_start, focus_end, work_duration, break_duration, energy_pattern):
    """Update a user's ADHD profile."""
    try:
        pattern = json.loads(energy_pattern) if energy_pattern else None
    except json.JSONDecodeError as e:
        _fail(f"Invalid energy pattern: {e}")
    with _get_db() as db:
        try:
            user = users_mod.update_profile(
                db,
                user_id,
                best_focus_time_start=focus_start,
                best_focus_time_end=focus_end,
                preferred_work_duration=work_duration,
                preferred_break_duration=break_duration,
                energy_pattern=pattern,
            )
        except (KeyError, ValueError) as e:
            _fail(str(e))
        if not user:
            _fail(f"User not found: {user_id}")
        click.echo(f"Updated profile for {user_id}")


# ── Task Commands ─────────────────────────────────────────────────────────────


@main.group("task")
def task_group():
    """Manage tasks."""
    pass


@task_group.command("add")
@click.argument("user_id")
@click.argument("title")
@click.option("--description", "-d", default="", help="Task description")
@click.option("--priority", "-p", default="medium",
              type=click.Choice(["low", "medium", "high", "urgent"]), help="Priority")
@click.option("--difficulty", default="medium",
              type=click.Choice(["easy", "medium", "hard", "very_hard"]), help="Difficulty")
@click.option("--duration", default=30, type=int, help="Estimated duration in minutes")
@click.option("--due", default=None, help="Due date (ISO-8601)")
@click.option("--energy", default=None, type=click.Choice(["low", "medium", "high"]),
              help="Energy level the task needs")
@click.option("--context", default=None,
              type=click.Choice(["work", "personal", "health", "learning", "creative", "social"]))
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--parent", default=None, help="Parent task ID")
def task_add(user_id, title, description, priority, difficulty, duration, due, energy,
             context, tags, parent):
    """Create a new task."""
    with _get_db() as db:
        if not users_mod.get_user(db, user_id):
            _fail(f"User not found: {user_id}")
        try:
            task = tasks_mod.create_task(
                db,
                user_id,
                title,
                description=description,
                priority=priority,
                difficulty=difficulty,
                estimated_duration=duration,
                tags=list(tags),
                due_date=ser.parse_datetime(due),
                energy_level=energy,
                context=context,
                parent_task_id=parent,
            )
        except ValueError as e:
            _fail(str(e))
        click.echo(f"Created task: {task.id}")
        click.echo(f"  Title: {task.title}")
        click.echo(f"  Priority: {task.priority.value}")
        click.echo(f"  Status: {task.status.value}")
        if task.due_date:
            click.echo(f"  Due: {task.due_date.isoformat()}")


_STATUS_ICONS = {
    TaskStatus.TODO: "○",
    TaskStatus.IN_PROGRESS: "●",
    TaskStatus.BLOCKED: "✗",
    TaskStatus.COMPLETED: "✓",
    TaskStatus.CANCELLED: "-",
}


@task_group.command("list")
@click.argument("user_id")
@click.option("--status", default=None, help="Filter by status")
@click.option("--energy", default=None, help="Filter by energy level")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def task_list(user_id, status, energy, json_output):
    """List tasks."""
    with _get_db() as db:
        try:
            tasks = tasks_mod.list_tasks(db, user_id, status=status, energy_level=energy)
        except ValueError as e:
            _fail(str(e))

        if json_output:
            click.echo(json.dumps([ser.task_to_dict(t) for t in tasks], indent=2))
            return

        if not tasks:
            click.echo("No tasks found.")
            return

        for task in tasks:
            icon = _STATUS_ICONS.get(task.status, "?")
            due = f" [due: {task.due_date:%Y-%m-%d}]" if task.due_date else ""
            click.echo(
                f"  {icon} {task.id}: {task.title} "
                f"({task.status.value}, {task.priority.value}, {task.estimated_duration}m){due}"
            )
            for sub in task.subtasks:
                sub_icon = _STATUS_ICONS.get(sub.status, "?")
                click.echo(f"    {sub_icon} {sub.id}: {sub.title} ({sub.status.value})")


@task_group.command("show")
@click.argument("task_id")
def task_show(task_id):
    """Show task details."""
    with _get_db() as db:
        task = tasks_mod.get_task(db, task_id)
        if not task:
            _fail(f"Task not found: {task_id}")

        click.echo(f"Task: {task.id}")
        click.echo(f"  Title: {task.title}")
        click.echo(f"  Status: {task.status.value}")
        click.echo(f"  Priority: {task.priority.value}")
        click.echo(f"  Difficulty: {task.difficulty.value}")
        click.echo(f"  Estimate: {task.estimated_duration} min")
        if task.description:
            click.echo(f"  Description: {task.description}")
        if task.due_date:
            click.echo(f"  Due: {task.due_date.isoformat()}")
        if task.energy_level:
            click.echo(f"  Energy: {task.energy_level.value}")
        if task.context:
            click.echo(f"  Context: {task.context.value}")
        if task.tags:
            click.echo(f"  Tags: {', '.join(task.tags)}")
        if task.focus_score is not None:
            click.echo(f"  Best focus score: {task.focus_score}/10")
        if task.completed_at:
            click.echo(f"  Completed: {task.completed_at.isoformat()}")
        if task.subtasks:
            click.echo("  Subtasks:")
            for sub in task.subtasks:
                click.echo(f"    - {sub.id}: {sub.title} ({sub.status.value})")


@task_group.command("status")
@click.argument("task_id")
@click.argument("status", type=click.Choice([s.value for s in TaskStatus]))
def task_status(task_id, status):
    """Set a task's status."""
    with _get_db() as db:
        task = tasks_mod.update_task_status(db, task_id, status)
        if not task:
            _fail(f"Task not found: {task_id}")
        click.echo(f"Updated {task_id} status to {task.status.value}")


@task_group.command("breakdown")
@click.argument("task_id")
@click.argument("titles", nargs=-1, required=True)
@click.option("--duration", default=15, type=int, help="Estimate for each subtask (minutes)")
def task_breakdown(task_id, titles, duration):
    """Split a task into subtasks, one per TITLES argument."""
    with _get_db() as db:
        try:
            subs = tasks_mod.break_down_task(
                db, task_id, [{"title": t, "estimated_duration": duration} for t in titles]
            )
        except ValueError as e:
            _fail(str(e))
        for sub in subs:
            click.echo(f"  Created subtask: {sub.id}")


@task_group.command("delete")
@click.argument("task_id")
def task_delete(task_id):
    """Delete a task and its subtasks."""
    with _get_db() as db:
        if not tasks_mod.delete_task(db, task_id):
            _fail(f"Task not found: {task_id}")
        click.echo(f"Deleted task: {task_id}")


@main.command("stats")
@click.argument("user_id")
def stats_command(user_id):
    """Show task statistics for a user."""
    with _get_db() as db:
        if not users_mod.get_user(db, user_id):
            _fail(f"User not found: {user_id}")
        stats = tasks_mod.get_task_stats(db, user_id)
        click.echo(f"Tasks: {stats.total} total, {stats.completed} completed, "
                   f"{stats.in_progress} in progress, {stats.overdue} overdue")
        click.echo(f"  Completion rate: {stats.completion_rate:.0f}%")
        click.echo(f"  Average focus score: {stats.avg_focus_score:.1f}")
        click.echo(f"  Time spent: {stats.total_time_spent} min")


# ── Focus Commands ────────────────────────────────────────────────────────────


@main.group("focus")
def focus_group():
    """Track focus sessions."""
    pass


@focus_group.command("start")
@click.argument("user_id")
@click.argument("task_id")
def focus_start(user_id, task_id):
    """Start a focus session on a task."""
    with _get_db() as db:
        try:
            session = focus_mod.start_focus_session(db, task_id, user_id)
        except FocusSessionError as e:
            _fail(str(e))
        click.echo(f"Focus session {session.id} started on {task_id}")


@focus_group.command("end")
@click.argument("user_id")
@click.argument("session_id", type=int)
@click.option("--score", "-s", required=True, type=click.IntRange(1, 10), help="Focus score 1-10")
@click.option("--distractions", default=0, type=click.IntRange(min=0), help="Distraction count")
def focus_end(user_id, session_id, score, distractions):
    """End a focus session."""
    with _get_db() as db:
        try:
            session = focus_mod.end_focus_session(db, session_id, user_id, score, distractions)
        except (FocusSessionError, ValueError) as e:
            _fail(str(e))
        click.echo(f"Focus session {session.id} ended after {session.duration} min")


@focus_group.command("history")
@click.argument("user_id")
@click.option("--limit", default=10, type=int, help="Number of sessions")
def focus_history(user_id, limit):
    """List recent focus sessions."""
    with _get_db() as db:
        sessions = focus_mod.recent_for_user(db, user_id, limit=limit)
        if not sessions:
            click.echo("No focus sessions recorded.")
            return
        for s in sessions:
            state = f"{s.duration} min, score {s.focus_score}, {s.distractions} distractions" \
                if s.ended else "running"
            click.echo(f"  #{s.id} {s.task_id} at {s.start_time:%Y-%m-%d %H:%M} ({state})")


# ── Assistant Commands ────────────────────────────────────────────────────────


@main.command("suggest")
@click.argument("user_id")
@click.option("--at", "at_time", default=None, help="Current time (ISO-8601), defaults to now")
@click.option("--tz", "time_zone", default=None, help="IANA time zone, e.g. Europe/Berlin")
@click.option("--type", "types", multiple=True,
              type=click.Choice([s.value for s in SuggestionType]), help="Only these categories")
@click.option("--max", "max_suggestions", default=None, type=click.IntRange(1, 10),
              help="Maximum number of suggestions")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def suggest_command(user_id, at_time, time_zone, types, max_suggestions, json_output):
    """Suggest what to do next."""
    config = get_config()
    preferences = Preferences(
        suggestion_types=[SuggestionType(t) for t in types] or None,
        max_suggestions=max_suggestions or config.heuristics.max_suggestions,
    )
    with _get_db() as db:
        try:
            response = assistant_mod.generate_for_user(
                db,
                user_id,
                _parse_time(at_time),
                time_zone=time_zone or config.default_timezone,
                preferences=preferences,
                config=config.heuristics,
            )
        except (UserNotFoundError, ValueError) as e:
            _fail(str(e))

        if json_output:
            click.echo(json.dumps(ser.suggestion_response_to_dict(response), indent=2))
            return
        if not response.suggestions:
            click.echo("No suggestions right now.")
            return
        for s in response.suggestions:
            click.echo(f"  [{s.priority}] {s.title} (impact {s.estimated_impact}/10)")
            click.echo(f"      {s.description}")


@main.command("reorder")
@click.argument("user_id")
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--at", "at_time", default=None, help="Current time (ISO-8601), defaults to now")
@click.option("--tz", "time_zone", default=None, help="IANA time zone")
def reorder_command(user_id, task_ids, at_time, time_zone):
    """Suggest an order for TASK_IDS."""
    config = get_config()
    with _get_db() as db:
        try:
            result = assistant_mod.reorder_for_user(
                db,
                user_id,
                list(task_ids),
                _parse_time(at_time),
                time_zone=time_zone or config.default_timezone,
                config=config.heuristics,
            )
        except (TaskNotFoundError, UserNotFoundError, ValueError) as e:
            _fail(str(e))
        for i, tid in enumerate(result.suggested_order, 1):
            click.echo(f"  {i}. {tid}")
        for reason in result.reasoning:
            click.echo(f"  {reason.task_id}: {reason.reason}")
        click.echo(f"  Estimated productivity gain: {result.estimated_productivity_gain:.0f}%")


@main.command("insights")
@click.argument("user_id")
@click.option("--at", "at_time", default=None, help="End of the window (ISO-8601), defaults to now")
@click.option("--tz", "time_zone", default=None, help="IANA time zone")
def insights_command(user_id, at_time, time_zone):
    """Show productivity insights."""
    config = get_config()
    with _get_db() as db:
        try:
            insights = assistant_mod.insights_for_user(
                db,
                user_id,
                _parse_time(at_time),
                time_zone=time_zone or config.default_timezone,
                config=config.heuristics,
            )
        except (UserNotFoundError, ValueError) as e:
            _fail(str(e))
        if not insights:
            click.echo("Not enough data for insights yet.")
            return
        for insight in insights:
            click.echo(f"  {insight.title}: {insight.description}")


# ── Server Commands ───────────────────────────────────────────────────────────


@main.command("serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8787, type=int, help="Port to listen on")
def serve_command(host, port):
    """Run the JSON API."""
    from adhd_dashboard.web.app import run_server

    click.echo(f"Serving API at http://{host}:{port}")
    run_server(host=host, port=port)


@main.group("mcp")
def mcp_group():
    """MCP server commands."""
    pass


@mcp_group.command("serve")
def mcp_serve():
    """Start the MCP server (stdio transport)."""
    from adhd_dashboard.mcp.server import mcp
    from adhd_dashboard.mcp import prompts  # noqa: F401 - registers prompts

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
