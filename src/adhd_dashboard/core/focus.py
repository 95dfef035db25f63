"""Focus session tracking: start, end and history lookups."""

import logging
import sqlite3
from datetime import datetime

from adhd_dashboard.core.tasks import _as_utc, _format_dt, _now, _parse_dt, get_task
from adhd_dashboard.db.models import FocusSession

logger = logging.getLogger(__name__)


class FocusSessionError(Exception):
    """Raised when a focus session cannot be started or ended."""


def start_focus_session(
    db: sqlite3.Connection,
    task_id: str,
    user_id: str,
    now: datetime | None = None,
) -> FocusSession:
    """Start a focus session on one of the user's tasks."""
    task = get_task(db, task_id)
    if not task or task.user_id != user_id:
        raise FocusSessionError(f"Task not found: {task_id}")

    cursor = db.execute(
        """INSERT INTO focus_sessions (task_id, user_id, start_time, duration, focus_score, distractions)
           VALUES (?, ?, ?, 0, 5, 0)""",
        (task_id, user_id, _format_dt(now or _now())),
    )
    db.commit()
    logger.info("Focus session %s started on task %s", cursor.lastrowid, task_id)
    return get_session(db, cursor.lastrowid)


def end_focus_session(
    db: sqlite3.Connection,
    session_id: int,
    user_id: str,
    focus_score: int,
    distractions: int = 0,
    now: datetime | None = None,
) -> FocusSession:
    """End a running session. A session can only be ended once.

    The task's focus score is raised to this session's score when higher.
    """
    if not 1 <= focus_score <= 10:
        raise ValueError("Focus score must be between 1 and 10")
    if distractions < 0:
        raise ValueError("Distractions cannot be negative")

    session = get_session(db, session_id)
    if not session or session.user_id != user_id:
        raise FocusSessionError(f"Focus session not found: {session_id}")
    if session.ended:
        raise FocusSessionError(f"Focus session already ended: {session_id}")

    end_time = _as_utc(now or _now())
    if end_time < session.start_time:
        raise FocusSessionError("Focus session cannot end before it started")
    duration = round((end_time - session.start_time).total_seconds() / 60)

    db.execute(
        """UPDATE focus_sessions
           SET end_time = ?, duration = ?, focus_score = ?, distractions = ?
           WHERE id = ?""",
        (_format_dt(end_time), duration, focus_score, distractions, session_id),
    )

    task = get_task(db, session.task_id)
    if task and (task.focus_score is None or focus_score > task.focus_score):
        db.execute(
            "UPDATE tasks SET focus_score = ? WHERE id = ?",
            (focus_score, task.id),
        )
    db.commit()
    logger.info(
        "Focus session %s ended after %d min (score %d, %d distractions)",
        session_id, duration, focus_score, distractions,
    )
    return get_session(db, session_id)


def get_session(db: sqlite3.Connection, session_id: int) -> FocusSession | None:
    """Get a focus session by ID."""
    row = db.execute(
        "SELECT * FROM focus_sessions WHERE id = ?", (session_id,)
    ).fetchone()
    if not row:
        return None
    return _row_to_session(row)


def recent_for_user(
    db: sqlite3.Connection,
    user_id: str,
    limit: int = 10,
) -> list[FocusSession]:
    """Most recent focus sessions for a user, newest first."""
    rows = db.execute(
        "SELECT * FROM focus_sessions WHERE user_id = ? ORDER BY start_time DESC, id DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
    return [_row_to_session(r) for r in rows]


def _row_to_session(row: sqlite3.Row) -> FocusSession:
    return FocusSession(
        id=row["id"],
        task_id=row["task_id"],
        user_id=row["user_id"],
        start_time=_parse_dt(row["start_time"]),
        end_time=_parse_dt(row["end_time"]),
        duration=row["duration"],
        focus_score=row["focus_score"],
        distractions=row["distractions"],
    )
