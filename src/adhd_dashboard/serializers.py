"""Conversion between domain records and JSON-ready dicts, shared by the CLI, web API and MCP server."""

from datetime import datetime

from adhd_dashboard.core.users import profile_to_dict
from adhd_dashboard.db.models import Preferences, SuggestionType


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 timestamp, got {value!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def preferences_from_dict(data: dict | None, default_max: int = 5) -> Preferences | None:
    """Caller preferences from their JSON form. An omitted cap falls back to default_max."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValueError("preferences must be an object")
    kinds = data.get("suggestion_types")
    max_suggestions = data.get("max_suggestions")
    if max_suggestions is None:
        max_suggestions = default_max
    elif isinstance(max_suggestions, bool) or not isinstance(max_suggestions, int):
        raise ValueError(f"max_suggestions must be an integer, got {max_suggestions!r}")
    return Preferences(
        suggestion_types=[SuggestionType(k) for k in kinds] if kinds is not None else None,
        max_suggestions=max_suggestions,
        include_explanations=bool(data.get("include_explanations", True)),
    )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_to_dict(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "adhd_profile": profile_to_dict(user.adhd_profile),
        "created_at": _iso(user.created_at),
    }


def task_to_dict(task) -> dict:
    d = {
        "id": task.id,
        "user_id": task.user_id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "difficulty": task.difficulty.value,
        "estimated_duration": task.estimated_duration,
        "tags": list(task.tags),
        "created_at": _iso(task.created_at),
        "updated_at": _iso(task.updated_at),
    }
    if task.actual_duration is not None:
        d["actual_duration"] = task.actual_duration
    if task.due_date:
        d["due_date"] = _iso(task.due_date)
    if task.completed_at:
        d["completed_at"] = _iso(task.completed_at)
    if task.energy_level:
        d["energy_level"] = task.energy_level.value
    if task.context:
        d["context"] = task.context.value
    if task.focus_score is not None:
        d["focus_score"] = task.focus_score
    if task.parent_task_id:
        d["parent_task_id"] = task.parent_task_id
    if task.subtasks:
        d["subtasks"] = [task_to_dict(s) for s in task.subtasks]
    return d


def session_to_dict(session) -> dict:
    return {
        "id": session.id,
        "task_id": session.task_id,
        "user_id": session.user_id,
        "start_time": _iso(session.start_time),
        "end_time": _iso(session.end_time),
        "duration": session.duration,
        "focus_score": session.focus_score,
        "distractions": session.distractions,
    }


def suggestion_to_dict(suggestion) -> dict:
    return {
        "id": suggestion.id,
        "type": suggestion.type.value,
        "title": suggestion.title,
        "description": suggestion.description,
        "actionable": suggestion.actionable,
        "priority": suggestion.priority,
        "estimated_impact": suggestion.estimated_impact,
        "time_to_implement": suggestion.time_to_implement,
        "related_task_ids": list(suggestion.related_task_ids),
        "metadata": dict(suggestion.metadata),
    }


def suggestion_response_to_dict(response) -> dict:
    return {
        "suggestions": [suggestion_to_dict(s) for s in response.suggestions],
        "confidence": response.confidence,
        "reasoning": response.reasoning,
        "generated_at": _iso(response.generated_at),
    }


def reorder_to_dict(result) -> dict:
    return {
        "original_order": list(result.original_order),
        "suggested_order": list(result.suggested_order),
        "reasoning": [
            {
                "task_id": r.task_id,
                "reason": r.reason,
                "factors_considered": list(r.factors_considered),
            }
            for r in result.reasoning
        ],
        "estimated_productivity_gain": result.estimated_productivity_gain,
    }


def insight_to_dict(insight) -> dict:
    return {
        "type": insight.type.value,
        "title": insight.title,
        "description": insight.description,
        "data": insight.data,
        "actionable": insight.actionable,
        "timeframe": {
            "start": _iso(insight.timeframe_start),
            "end": _iso(insight.timeframe_end),
        },
    }


def stats_to_dict(stats) -> dict:
    return {
        "total": stats.total,
        "completed": stats.completed,
        "in_progress": stats.in_progress,
        "overdue": stats.overdue,
        "completion_rate": round(stats.completion_rate, 1),
        "avg_focus_score": round(stats.avg_focus_score, 1),
        "total_time_spent": stats.total_time_spent,
        "avg_completion_time": round(stats.avg_completion_time, 1),
    }
