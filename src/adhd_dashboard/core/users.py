"""User and ADHD profile operations."""

import json
import sqlite3
from datetime import datetime, timezone

from adhd_dashboard.core.scoring import parse_hhmm
from adhd_dashboard.core.tasks import _format_dt, _parse_dt
from adhd_dashboard.db.models import AdhdProfile, EnergyLevel, TimeSlot, User


class UserNotFoundError(Exception):
    """Raised when an operation needs a user that does not exist."""


def create_user(
    db: sqlite3.Connection,
    user_id: str,
    email: str,
    first_name: str = "",
    last_name: str = "",
    profile: AdhdProfile | None = None,
) -> User:
    """Create a new user with a default ADHD profile unless one is given."""
    profile = profile_from_dict(profile_to_dict(profile or AdhdProfile()))
    db.execute(
        """INSERT INTO users (id, email, first_name, last_name, adhd_profile, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (
            user_id,
            email,
            first_name,
            last_name,
            json.dumps(profile_to_dict(profile)),
            _format_dt(datetime.now(timezone.utc)),
        ),
    )
    db.commit()
    return get_user(db, user_id)


def get_user(db: sqlite3.Connection, user_id: str) -> User | None:
    """Get a user by ID."""
    row = db.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if not row:
        return None
    return _row_to_user(row)


def require_user(db: sqlite3.Connection, user_id: str) -> User:
    user = get_user(db, user_id)
    if not user:
        raise UserNotFoundError(f"User not found: {user_id}")
    return user


def list_users(db: sqlite3.Connection) -> list[User]:
    """List all users."""
    rows = db.execute("SELECT * FROM users ORDER BY created_at").fetchall()
    return [_row_to_user(r) for r in rows]


def update_profile(
    db: sqlite3.Connection,
    user_id: str,
    **kwargs,
) -> User | None:
    """Update ADHD profile fields. Unknown or None values are ignored."""
    user = get_user(db, user_id)
    if not user:
        return None

    data = profile_to_dict(user.adhd_profile)
    allowed = set(data)
    for key, value in kwargs.items():
        if key in allowed and value is not None:
            data[key] = value

    profile = profile_from_dict(data)
    db.execute(
        "UPDATE users SET adhd_profile = ? WHERE id = ?",
        (json.dumps(profile_to_dict(profile)), user_id),
    )
    db.commit()
    return get_user(db, user_id)


def delete_user(db: sqlite3.Connection, user_id: str) -> bool:
    """Delete a user together with their tasks and focus sessions."""
    result = db.execute("DELETE FROM users WHERE id = ?", (user_id,))
    db.commit()
    return result.rowcount > 0


def profile_to_dict(profile: AdhdProfile) -> dict:
    return {
        "energy_pattern": {
            str(day): [
                {
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "energy_level": EnergyLevel(slot.energy_level).value,
                }
                for slot in slots
            ]
            for day, slots in profile.energy_pattern.items()
        },
        "best_focus_time_start": profile.best_focus_time_start,
        "best_focus_time_end": profile.best_focus_time_end,
        "preferred_work_duration": profile.preferred_work_duration,
        "preferred_break_duration": profile.preferred_break_duration,
        "distraction_triggers": list(profile.distraction_triggers),
    }


def profile_from_dict(data: dict) -> AdhdProfile:
    """Build a profile from its JSON form. Day keys may be strings or ints.

    Raises ValueError for malformed times, durations or energy slots.
    """
    defaults = AdhdProfile()
    energy_pattern = data.get("energy_pattern") or {}
    if not isinstance(energy_pattern, dict):
        raise ValueError("energy_pattern must map day of week to a list of slots")

    pattern = {}
    for day, slots in energy_pattern.items():
        day = int(day)
        if not 0 <= day <= 6:
            raise ValueError(f"Day of week must be between 0 and 6: {day}")
        if not isinstance(slots, list) or not all(isinstance(s, dict) for s in slots):
            raise ValueError(f"Energy slots for day {day} must be a list of objects")
        pattern[day] = [
            TimeSlot(
                start_time=_hhmm(s.get("start_time"), "start_time"),
                end_time=_hhmm(s.get("end_time"), "end_time"),
                energy_level=EnergyLevel(s.get("energy_level")),
            )
            for s in slots
        ]

    triggers = data.get("distraction_triggers", [])
    if not isinstance(triggers, list) or not all(isinstance(t, str) for t in triggers):
        raise ValueError("distraction_triggers must be a list of strings")

    return AdhdProfile(
        energy_pattern=pattern,
        best_focus_time_start=_hhmm(
            data.get("best_focus_time_start", defaults.best_focus_time_start),
            "best_focus_time_start",
        ),
        best_focus_time_end=_hhmm(
            data.get("best_focus_time_end", defaults.best_focus_time_end),
            "best_focus_time_end",
        ),
        preferred_work_duration=_minutes(
            data.get("preferred_work_duration", defaults.preferred_work_duration),
            "preferred_work_duration",
        ),
        preferred_break_duration=_minutes(
            data.get("preferred_break_duration", defaults.preferred_break_duration),
            "preferred_break_duration",
        ),
        distraction_triggers=list(triggers),
    )


def _hhmm(value, name: str) -> str:
    if not isinstance(value, str) or parse_hhmm(value) is None:
        raise ValueError(f"{name} must be a time of day as HH:mm, got {value!r}")
    return value


def _minutes(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive number of minutes, got {value!r}")
    return value


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        adhd_profile=profile_from_dict(json.loads(row["adhd_profile"] or "{}")),
        created_at=_parse_dt(row["created_at"]),
    )
