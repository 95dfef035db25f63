"""Re-ranking of a task list by urgency score."""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime

from adhd_dashboard.config import DEFAULT_HEURISTICS, HeuristicConfig
from adhd_dashboard.core.scoring import ensure_aware, score
from adhd_dashboard.db.models import AdhdProfile, ReorderReason, ReorderResult, Task

logger = logging.getLogger(__name__)

REORDER_FACTORS = ["priority", "due_date", "energy_level"]


class TaskNotFoundError(LookupError):
    """Raised when task IDs handed to the reorderer cannot be resolved."""

    def __init__(self, missing_ids: Sequence[str]):
        self.missing_ids = list(missing_ids)
        super().__init__(f"Task not found: {', '.join(self.missing_ids)}")


def reorder(
    task_ids: Sequence[str],
    task_lookup: Mapping[str, Task],
    current_time: datetime,
    profile: AdhdProfile | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
    time_zone: str | None = None,
) -> ReorderResult:
    """Order task IDs by descending score.

    Every ID must resolve in `task_lookup`. The sort is stable, so tasks with
    equal scores keep their original relative order.
    """
    current_time = ensure_aware(current_time)
    missing = [tid for tid in dict.fromkeys(task_ids) if tid not in task_lookup]
    if missing:
        raise TaskNotFoundError(missing)

    scores = {
        tid: score(task_lookup[tid], current_time, profile, config, time_zone)
        for tid in dict.fromkeys(task_ids)
    }
    suggested = sorted(task_ids, key=lambda tid: scores[tid], reverse=True)
    logger.debug("Reordered %d tasks: %s", len(suggested), scores)

    reasoning = []
    if suggested:
        reasoning.append(
            ReorderReason(
                task_id=suggested[0],
                reason="High priority and due soon",
                factors_considered=list(REORDER_FACTORS),
            )
        )

    return ReorderResult(
        original_order=list(task_ids),
        suggested_order=suggested,
        reasoning=reasoning,
        estimated_productivity_gain=config.estimated_productivity_gain,
    )
