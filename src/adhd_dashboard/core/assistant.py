"""Service layer: load a user's snapshot from the store and run the engine on it."""

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from adhd_dashboard.config import DEFAULT_HEURISTICS, HeuristicConfig
from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import insights as insights_mod
from adhd_dashboard.core import reorder as reorder_mod
from adhd_dashboard.core import suggestions as suggestions_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core.reorder import TaskNotFoundError
from adhd_dashboard.core.scoring import ensure_aware
from adhd_dashboard.core.users import require_user
from adhd_dashboard.db.models import Insight, Preferences, ReorderResult, Suggestion

logger = logging.getLogger(__name__)


@dataclass
class SuggestionResponse:
    suggestions: list[Suggestion]
    confidence: float
    reasoning: str
    generated_at: datetime


def generate_for_user(
    db: sqlite3.Connection,
    user_id: str,
    current_time: datetime,
    time_zone: str | None = None,
    preferences: Preferences | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> SuggestionResponse:
    """Suggestions for a user based on all their tasks and recent focus sessions."""
    current_time = ensure_aware(current_time)
    user = require_user(db, user_id)
    tasks = tasks_mod.load_for_user(db, user_id)
    sessions = focus_mod.recent_for_user(db, user_id, limit=config.suggestion_session_limit)

    suggestions = suggestions_mod.generate_suggestions(
        tasks,
        sessions,
        user.adhd_profile,
        current_time,
        time_zone=time_zone,
        preferences=preferences,
        config=config,
    )
    logger.info("Generated %d suggestions for user %s", len(suggestions), user_id)
    return SuggestionResponse(
        suggestions=suggestions,
        confidence=config.confidence,
        reasoning="Generated based on ADHD patterns, task history, and focus sessions",
        generated_at=current_time,
    )


def reorder_for_user(
    db: sqlite3.Connection,
    user_id: str,
    task_ids: Sequence[str],
    current_time: datetime,
    time_zone: str | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> ReorderResult:
    """Reorder a user's tasks. IDs of other users' tasks count as missing."""
    current_time = ensure_aware(current_time)
    user = require_user(db, user_id)
    lookup = {t.id: t for t in tasks_mod.load_for_user(db, user_id)}
    try:
        return reorder_mod.reorder(
            task_ids,
            lookup,
            current_time,
            profile=user.adhd_profile,
            config=config,
            time_zone=time_zone,
        )
    except TaskNotFoundError as e:
        logger.warning("Reorder for user %s failed: %s", user_id, e)
        raise


def insights_for_user(
    db: sqlite3.Connection,
    user_id: str,
    current_time: datetime,
    time_zone: str | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> list[Insight]:
    """Insights over the configured window ending at current_time."""
    current_time = ensure_aware(current_time)
    require_user(db, user_id)
    tasks = tasks_mod.load_for_user(db, user_id)
    sessions = focus_mod.recent_for_user(db, user_id, limit=config.insight_session_limit)
    window_start = current_time - timedelta(days=config.insight_window_days)
    return insights_mod.summarize(
        tasks, sessions, window_start, current_time, config=config, time_zone=time_zone
    )
