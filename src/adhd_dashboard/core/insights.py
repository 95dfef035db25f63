"""Productivity insights over a window of task and focus history."""

from collections.abc import Callable, Sequence
from datetime import datetime

from adhd_dashboard.config import DEFAULT_HEURISTICS, HeuristicConfig
from adhd_dashboard.core.scoring import ensure_aware, localize
from adhd_dashboard.db.models import FocusSession, Insight, InsightType, Task

InsightBuilder = Callable[..., Insight | None]

# Insight types with no builder yet. Adding a builder for one of these means
# removing it from this set.
UNIMPLEMENTED_INSIGHT_TYPES = frozenset({
    InsightType.DISTRACTION_PATTERNS,
    InsightType.ENERGY_OPTIMIZATION,
    InsightType.CONTEXT_SWITCHING_IMPACT,
    InsightType.BREAK_EFFECTIVENESS,
})


def peak_performance(
    tasks: Sequence[Task],
    sessions: Sequence[FocusSession],
    window_start: datetime,
    window_end: datetime,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
    time_zone: str | None = None,
) -> Insight | None:
    """Hour of day with the best average focus score.

    Needs more than `peak_min_sessions` sessions. Ties go to the earliest hour.
    """
    if len(sessions) <= config.peak_min_sessions:
        return None

    by_hour: dict[int, list[int]] = {}
    for session in sessions:
        hour = localize(session.start_time, time_zone).hour
        by_hour.setdefault(hour, []).append(session.focus_score)

    hourly = [
        {"hour": hour, "avg_score": sum(scores) / len(scores)}
        for hour, scores in sorted(by_hour.items())
    ]
    best = hourly[0]
    for entry in hourly[1:]:
        if entry["avg_score"] > best["avg_score"]:
            best = entry

    return Insight(
        type=InsightType.PEAK_PERFORMANCE_TIMES,
        title="Your peak focus time",
        description=(
            f"You focus best around {best['hour']}:00 "
            f"with an average score of {best['avg_score']:.1f}/10"
        ),
        data={
            "peak_hour": best["hour"],
            "avg_score": best["avg_score"],
            "hourly_data": hourly,
        },
        actionable=True,
        timeframe_start=window_start,
        timeframe_end=window_end,
    )


def completion_trend(
    tasks: Sequence[Task],
    sessions: Sequence[FocusSession],
    window_start: datetime,
    window_end: datetime,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
    time_zone: str | None = None,
) -> Insight | None:
    """Share of tasks created in the window that were completed in it."""
    window_start, window_end = ensure_aware(window_start), ensure_aware(window_end)

    def in_window(moment):
        return moment is not None and window_start <= ensure_aware(moment) <= window_end

    total = sum(1 for t in tasks if in_window(t.created_at))
    if total == 0:
        return None
    completed = sum(1 for t in tasks if in_window(t.completed_at))
    rate = completed / total * 100

    return Insight(
        type=InsightType.TASK_COMPLETION_TRENDS,
        title="Weekly completion rate",
        description=f"You completed {completed} out of {total} tasks this week ({rate:.0f}%)",
        data={"completed": completed, "total": total, "rate": rate},
        actionable=True,
        timeframe_start=window_start,
        timeframe_end=window_end,
    )


BUILDERS: dict[InsightType, InsightBuilder] = {
    InsightType.PEAK_PERFORMANCE_TIMES: peak_performance,
    InsightType.TASK_COMPLETION_TRENDS: completion_trend,
}


def summarize(
    tasks: Sequence[Task],
    sessions: Sequence[FocusSession],
    window_start: datetime,
    window_end: datetime,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
    time_zone: str | None = None,
) -> list[Insight]:
    """Build every insight whose data requirements are met, in builder order."""
    window_start, window_end = ensure_aware(window_start), ensure_aware(window_end)
    if window_end < window_start:
        raise ValueError("Insight window ends before it starts")

    insights = []
    for builder in BUILDERS.values():
        insight = builder(tasks, sessions, window_start, window_end, config, time_zone)
        if insight is not None:
            insights.append(insight)
    return insights
