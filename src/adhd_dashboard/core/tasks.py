"""Task management operations."""

import json
import re
import sqlite3
from datetime import datetime, timezone

from adhd_dashboard.core.scoring import ensure_aware
from adhd_dashboard.db.models import (
    EnergyLevel,
    Task,
    TaskContext,
    TaskDifficulty,
    TaskPriority,
    TaskStats,
    TaskStatus,
)


def slugify(title: str) -> str:
    """Convert a title to a URL-friendly slug."""
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:60]


def _unique_id(db: sqlite3.Connection, base_slug: str) -> str:
    """Generate a unique task ID from a slug, appending a number if needed."""
    base_slug = base_slug or "task"
    existing = db.execute(
        "SELECT id FROM tasks WHERE id = ?", (base_slug,)
    ).fetchone()
    if not existing:
        return base_slug

    i = 2
    while True:
        candidate = f"{base_slug}-{i}"
        existing = db.execute(
            "SELECT id FROM tasks WHERE id = ?", (candidate,)
        ).fetchone()
        if not existing:
            return candidate
        i += 1


def create_task(
    db: sqlite3.Connection,
    user_id: str,
    title: str,
    description: str = "",
    priority: str = "medium",
    difficulty: str = "medium",
    estimated_duration: int = 30,
    tags: list[str] | None = None,
    due_date: datetime | None = None,
    energy_level: str | None = None,
    context: str | None = None,
    parent_task_id: str | None = None,
) -> Task:
    """Create a new task. Enum-valued fields accept their string values."""
    if estimated_duration <= 0:
        raise ValueError("Estimated duration must be a positive number of minutes")
    priority = TaskPriority(priority)
    difficulty = TaskDifficulty(difficulty)
    energy_level = EnergyLevel(energy_level) if energy_level else None
    context = TaskContext(context) if context else None

    if parent_task_id and not get_task(db, parent_task_id):
        raise ValueError(f"Parent task not found: {parent_task_id}")

    task_id = _unique_id(db, slugify(title))
    now = _format_dt(_now())

    db.execute(
        """INSERT INTO tasks (id, user_id, title, description, priority, difficulty,
                              estimated_duration, tags, due_date, energy_level, context,
                              parent_task_id, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            task_id,
            user_id,
            title,
            description,
            priority.value,
            difficulty.value,
            estimated_duration,
            json.dumps(sorted(set(tags or []))),
            _format_dt(due_date),
            energy_level.value if energy_level else None,
            context.value if context else None,
            parent_task_id,
            now,
            now,
        ),
    )
    db.commit()
    return get_task(db, task_id)


def get_task(db: sqlite3.Connection, task_id: str) -> Task | None:
    """Get a task by ID with its subtasks."""
    row = db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    if not row:
        return None

    task = _row_to_task(row)
    task.subtasks = _load_subtasks(db, task_id)
    return task


def list_tasks(
    db: sqlite3.Connection,
    user_id: str,
    status: str | None = None,
    priority: str | None = None,
    energy_level: str | None = None,
    context: str | None = None,
    parent_task_id: str | None = None,
) -> list[Task]:
    """List a user's top-level tasks (or one task's subtasks) with optional filters."""
    query = "SELECT * FROM tasks WHERE user_id = ?"
    params: list = [user_id]

    if status:
        query += " AND status = ?"
        params.append(TaskStatus(status).value)

    if priority:
        query += " AND priority = ?"
        params.append(TaskPriority(priority).value)

    if energy_level:
        query += " AND energy_level = ?"
        params.append(EnergyLevel(energy_level).value)

    if context:
        query += " AND context = ?"
        params.append(TaskContext(context).value)

    if parent_task_id is not None:
        query += " AND parent_task_id = ?"
        params.append(parent_task_id)
    else:
        query += " AND parent_task_id IS NULL"

    query += " ORDER BY created_at ASC, rowid ASC"
    rows = db.execute(query, params).fetchall()
    tasks = []
    for row in rows:
        task = _row_to_task(row)
        task.subtasks = _load_subtasks(db, task.id)
        tasks.append(task)
    return tasks


def load_for_user(db: sqlite3.Connection, user_id: str) -> list[Task]:
    """Load every task a user owns, subtasks included, newest first.

    This is the snapshot the suggestion engine works from.
    """
    rows = db.execute(
        "SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    tasks = [_row_to_task(r) for r in rows]
    by_parent: dict[str, list[Task]] = {}
    for task in reversed(tasks):
        if task.parent_task_id:
            by_parent.setdefault(task.parent_task_id, []).append(task)
    for task in tasks:
        task.subtasks = by_parent.get(task.id, [])
    return tasks


UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "priority",
    "difficulty",
    "estimated_duration",
    "actual_duration",
    "tags",
    "due_date",
    "energy_level",
    "context",
    "focus_score",
})


def update_task(
    db: sqlite3.Connection,
    task_id: str,
    **kwargs,
) -> Task | None:
    """Update task fields. Status changes go through update_task_status.

    Raises ValueError for fields that cannot be updated this way.
    """
    unknown = sorted(set(kwargs) - UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(unknown)}")

    task = get_task(db, task_id)
    if not task:
        return None

    converters = {
        "title": str,
        "description": str,
        "priority": lambda v: TaskPriority(v).value,
        "difficulty": lambda v: TaskDifficulty(v).value,
        "estimated_duration": _positive_minutes,
        "actual_duration": int,
        "tags": lambda v: json.dumps(sorted(set(v))),
        "due_date": _format_dt,
        "energy_level": lambda v: EnergyLevel(v).value,
        "context": lambda v: TaskContext(v).value,
        "focus_score": _focus_score,
    }
    updates = {
        k: converters[k](v) for k, v in kwargs.items() if k in converters and v is not None
    }
    if not updates:
        return task

    set_parts = [f"{k} = ?" for k in updates]
    set_parts.append("updated_at = ?")
    values = list(updates.values()) + [_format_dt(_now()), task_id]
    db.execute(
        f"UPDATE tasks SET {', '.join(set_parts)} WHERE id = ?",
        values,
    )
    db.commit()
    return get_task(db, task_id)


def update_task_status(
    db: sqlite3.Connection,
    task_id: str,
    status: str,
    now: datetime | None = None,
) -> Task | None:
    """Update a task's status. Returns the updated task.

    completed_at is stamped when the task becomes completed and cleared when
    it leaves that state.
    """
    task = get_task(db, task_id)
    if not task:
        return None

    status = TaskStatus(status)
    now = _as_utc(now or _now())
    completed_at = task.completed_at
    if status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
        completed_at = now
    elif status != TaskStatus.COMPLETED:
        completed_at = None

    db.execute(
        "UPDATE tasks SET status = ?, completed_at = ?, updated_at = ? WHERE id = ?",
        (status.value, _format_dt(completed_at), _format_dt(now), task_id),
    )
    db.commit()
    return get_task(db, task_id)


def break_down_task(
    db: sqlite3.Connection,
    task_id: str,
    subtasks: list[dict],
) -> list[Task]:
    """Break a task into subtasks. Each dict needs 'title' and may carry any create_task field."""
    parent = get_task(db, task_id)
    if not parent:
        raise ValueError(f"Task not found: {task_id}")

    created = []
    for sub in subtasks:
        t = create_task(
            db,
            parent.user_id,
            title=sub["title"],
            description=sub.get("description", ""),
            priority=sub.get("priority", parent.priority.value),
            difficulty=sub.get("difficulty", "easy"),
            estimated_duration=sub.get("estimated_duration", 15),
            tags=sub.get("tags", parent.tags),
            energy_level=sub.get("energy_level"),
            context=sub.get("context", parent.context.value if parent.context else None),
            parent_task_id=task_id,
        )
        created.append(t)
    return created


def delete_task(db: sqlite3.Connection, task_id: str) -> bool:
    """Delete a task and its subtasks. Focus sessions referencing it are kept."""
    task = get_task(db, task_id)
    if not task:
        return False

    for subtask in task.subtasks:
        delete_task(db, subtask.id)

    db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    db.commit()
    return True


def get_task_stats(
    db: sqlite3.Connection,
    user_id: str,
    now: datetime | None = None,
) -> TaskStats:
    """Aggregate counts, completion rate, focus and time statistics for a user."""
    now = _as_utc(now or _now())
    tasks = load_for_user(db, user_id)

    total = len(tasks)
    completed = [t for t in tasks if t.status == TaskStatus.COMPLETED]
    in_progress = sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS)
    overdue = sum(
        1 for t in tasks
        if t.due_date and t.due_date < now and t.status != TaskStatus.COMPLETED
    )

    scored = [t.focus_score for t in tasks if t.focus_score is not None]
    timed = [t.actual_duration for t in completed if t.actual_duration is not None]
    total_time = sum(timed)

    return TaskStats(
        total=total,
        completed=len(completed),
        in_progress=in_progress,
        overdue=overdue,
        completion_rate=(len(completed) / total * 100) if total > 0 else 0.0,
        avg_focus_score=(sum(scored) / len(scored)) if scored else 0.0,
        total_time_spent=total_time,
        avg_completion_time=(total_time / len(timed)) if timed else 0.0,
    )


def _load_subtasks(db: sqlite3.Connection, task_id: str) -> list[Task]:
    rows = db.execute(
        "SELECT * FROM tasks WHERE parent_task_id = ? ORDER BY created_at ASC, rowid ASC",
        (task_id,),
    ).fetchall()
    return [_row_to_task(r) for r in rows]


def _positive_minutes(value) -> int:
    value = int(value)
    if value <= 0:
        raise ValueError("Estimated duration must be a positive number of minutes")
    return value


def _focus_score(value) -> int:
    value = int(value)
    if not 1 <= value <= 10:
        raise ValueError("Focus score must be between 1 and 10")
    return value


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"] or "",
        status=TaskStatus(row["status"]),
        priority=TaskPriority(row["priority"]),
        difficulty=TaskDifficulty(row["difficulty"]),
        estimated_duration=row["estimated_duration"],
        actual_duration=row["actual_duration"],
        tags=json.loads(row["tags"] or "[]"),
        due_date=_parse_dt(row["due_date"]),
        completed_at=_parse_dt(row["completed_at"]),
        energy_level=EnergyLevel(row["energy_level"]) if row["energy_level"] else None,
        context=TaskContext(row["context"]) if row["context"] else None,
        focus_score=row["focus_score"],
        parent_task_id=row["parent_task_id"],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(val: datetime) -> datetime:
    return ensure_aware(val).astimezone(timezone.utc)


def _format_dt(val: datetime | None) -> str | None:
    if val is None:
        return None
    return _as_utc(val).isoformat()


def _parse_dt(val: str | None) -> datetime | None:
    """Parse a stored instant. Naive values are taken as UTC."""
    if val is None:
        return None
    return ensure_aware(datetime.fromisoformat(val))
