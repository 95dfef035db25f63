"""Suggestion generators.

Each generator looks at a snapshot of the user's tasks, recent focus
sessions and profile at an explicit point in time, and returns at most one
Suggestion. `generate_suggestions` runs the enabled generators in a fixed
category order and caps the result.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from adhd_dashboard.config import DEFAULT_HEURISTICS, HeuristicConfig
from adhd_dashboard.core.scoring import (
    day_of_week,
    ensure_aware,
    in_focus_window,
    localize,
    minute_of_day,
    parse_hhmm,
)
from adhd_dashboard.db.models import (
    AdhdProfile,
    EnergyLevel,
    FocusSession,
    Preferences,
    Suggestion,
    SuggestionType,
    Task,
    TaskPriority,
    TaskStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class SuggestionContext:
    tasks: Sequence[Task]
    sessions: Sequence[FocusSession]
    profile: AdhdProfile
    # Already expressed in the user's time zone.
    current_time: datetime
    config: HeuristicConfig = DEFAULT_HEURISTICS


Generator = Callable[[SuggestionContext], Suggestion | None]


def _suggestion_id(prefix: str, current_time: datetime) -> str:
    return f"{prefix}-{int(current_time.timestamp() * 1000)}"


# ── Generators ────────────────────────────────────────────────────────────────


def prioritization(ctx: SuggestionContext) -> Suggestion | None:
    overdue = [
        t for t in ctx.tasks
        if t.due_date
        and ensure_aware(t.due_date) < ctx.current_time
        and t.status != TaskStatus.COMPLETED
    ]
    urgent = [
        t for t in ctx.tasks
        if t.priority == TaskPriority.URGENT and t.status != TaskStatus.COMPLETED
    ]
    if not overdue and not urgent:
        return None

    related = list(dict.fromkeys([t.id for t in overdue] + [t.id for t in urgent]))
    return Suggestion(
        id=_suggestion_id("prioritization", ctx.current_time),
        type=SuggestionType.TASK_PRIORITIZATION,
        title="Focus on urgent tasks first",
        description=(
            f"You have {len(overdue)} overdue and {len(urgent)} urgent tasks. "
            f"Consider tackling these first to reduce stress."
        ),
        actionable=True,
        priority="high",
        estimated_impact=8,
        time_to_implement=5,
        related_task_ids=related,
        metadata={
            "contextual_factors": ["overdue_tasks", "urgent_priority", "stress_reduction"],
            "alternatives": ["Delegate some tasks", "Extend deadlines if possible"],
        },
    )


def optimal_timing(ctx: SuggestionContext) -> Suggestion | None:
    start = parse_hhmm(ctx.profile.best_focus_time_start)
    end = parse_hhmm(ctx.profile.best_focus_time_end)
    if start is None or end is None:
        return None
    if not in_focus_window(ctx.current_time, ctx.profile, ctx.config):
        return None

    return Suggestion(
        id=_suggestion_id("timing", ctx.current_time),
        type=SuggestionType.OPTIMAL_TIMING,
        title="Perfect time for focused work!",
        description=(
            "You're in your optimal focus window. "
            "This is a great time to tackle challenging tasks."
        ),
        actionable=True,
        priority="high",
        estimated_impact=9,
        time_to_implement=0,
        metadata={
            "suggested_time": ctx.current_time.isoformat(),
            "energy_level_required": EnergyLevel.HIGH.value,
            "contextual_factors": ["peak_focus_time", "high_energy"],
            "alternatives": ["Save easier tasks for later", "Take advantage of high focus"],
        },
    )


def task_breakdown(ctx: SuggestionContext) -> Suggestion | None:
    task = next(
        (
            t for t in ctx.tasks
            if t.estimated_duration > ctx.config.large_task_minutes
            and t.status == TaskStatus.TODO
            and not t.subtasks
        ),
        None,
    )
    if task is None:
        return None

    return Suggestion(
        id=_suggestion_id("breakdown", ctx.current_time),
        type=SuggestionType.TASK_BREAKDOWN,
        title="Break down large tasks",
        description=(
            f'"{task.title}" is estimated to take {task.estimated_duration} minutes. '
            f"Breaking it into smaller chunks can make it feel less overwhelming."
        ),
        actionable=True,
        priority="medium",
        estimated_impact=7,
        time_to_implement=10,
        related_task_ids=[task.id],
        metadata={
            "contextual_factors": ["large_task", "adhd_overwhelm", "task_management"],
            "alternatives": ["Set a timer for focused work", "Find an accountability partner"],
        },
    )


def focus_strategies(ctx: SuggestionContext) -> Suggestion | None:
    if not ctx.sessions:
        return Suggestion(
            id=_suggestion_id("focus", ctx.current_time),
            type=SuggestionType.FOCUS_STRATEGIES,
            title="Start tracking your focus",
            description=(
                "Begin using focus sessions to understand your concentration "
                "patterns and improve over time."
            ),
            actionable=True,
            priority="medium",
            estimated_impact=6,
            time_to_implement=2,
            metadata={
                "contextual_factors": ["no_focus_data", "self_awareness", "habit_building"],
                "alternatives": ["Use the Pomodoro Technique", "Try different focus methods"],
            },
        )

    count = len(ctx.sessions)
    avg_focus = sum(s.focus_score for s in ctx.sessions) / count
    avg_distractions = sum(s.distractions for s in ctx.sessions) / count
    if avg_focus >= ctx.config.low_focus_score and avg_distractions <= ctx.config.high_distractions:
        return None

    return Suggestion(
        id=_suggestion_id("focus-improve", ctx.current_time),
        type=SuggestionType.FOCUS_STRATEGIES,
        title="Improve your focus environment",
        description=(
            f"Your average focus score is {avg_focus:.1f} with {avg_distractions:.1f} "
            f"distractions per session. Try adjusting your environment."
        ),
        actionable=True,
        priority="medium",
        estimated_impact=7,
        time_to_implement=15,
        metadata={
            "contextual_factors": ["low_focus_score", "high_distractions", "environment_optimization"],
            "alternatives": [
                "Change workspace",
                "Use noise-canceling headphones",
                "Turn off notifications",
            ],
        },
    )


def energy_management(ctx: SuggestionContext) -> Suggestion | None:
    slots = ctx.profile.energy_pattern.get(day_of_week(ctx.current_time), [])
    now = minute_of_day(ctx.current_time)
    current = None
    for slot in slots:
        start, end = parse_hhmm(slot.start_time), parse_hhmm(slot.end_time)
        if start is not None and end is not None and start <= now <= end:
            current = slot
            break
    if current is None or current.energy_level != EnergyLevel.LOW:
        return None

    return Suggestion(
        id=_suggestion_id("energy", ctx.current_time),
        type=SuggestionType.ENERGY_MANAGEMENT,
        title="Low energy time - choose easier tasks",
        description=(
            "Based on your energy pattern, this is typically a low-energy time. "
            "Consider working on routine or administrative tasks."
        ),
        actionable=True,
        priority="medium",
        estimated_impact=6,
        time_to_implement=0,
        metadata={
            "energy_level_required": EnergyLevel.LOW.value,
            "contextual_factors": ["low_energy_period", "energy_optimization", "task_matching"],
            "alternatives": ["Take a short walk", "Do some light stretching", "Have a healthy snack"],
        },
    )


def motivation_boost(ctx: SuggestionContext) -> Suggestion | None:
    if not ctx.tasks:
        return None
    completed = sum(1 for t in ctx.tasks if t.status == TaskStatus.COMPLETED)
    rate = completed / len(ctx.tasks) * 100

    if rate > ctx.config.high_completion_rate:
        return Suggestion(
            id=_suggestion_id("motivation", ctx.current_time),
            type=SuggestionType.MOTIVATION_BOOST,
            title="You're doing great!",
            description=(
                f"Amazing work! You've completed {rate:.0f}% of your tasks. "
                f"Keep up the momentum!"
            ),
            actionable=False,
            priority="low",
            estimated_impact=5,
            time_to_implement=0,
            metadata={
                "contextual_factors": ["high_completion_rate", "positive_reinforcement", "momentum"],
                "alternatives": ["Celebrate your progress", "Share your success with others"],
            },
        )

    if rate < ctx.config.low_completion_rate:
        return Suggestion(
            id=_suggestion_id("motivation-encourage", ctx.current_time),
            type=SuggestionType.MOTIVATION_BOOST,
            title="Small steps lead to big changes",
            description=(
                "Starting can be the hardest part. "
                "Pick one small task and build momentum from there."
            ),
            actionable=True,
            priority="medium",
            estimated_impact=6,
            time_to_implement=5,
            metadata={
                "contextual_factors": ["low_completion_rate", "motivation_boost", "small_wins"],
                "alternatives": [
                    "Set a 5-minute timer",
                    "Choose the easiest task first",
                    "Ask for support",
                ],
            },
        )

    return None


# Category order is the output order.
GENERATORS: dict[SuggestionType, Generator] = {
    SuggestionType.TASK_PRIORITIZATION: prioritization,
    SuggestionType.OPTIMAL_TIMING: optimal_timing,
    SuggestionType.TASK_BREAKDOWN: task_breakdown,
    SuggestionType.FOCUS_STRATEGIES: focus_strategies,
    SuggestionType.ENERGY_MANAGEMENT: energy_management,
    SuggestionType.MOTIVATION_BOOST: motivation_boost,
}


def validate_preferences(
    preferences: Preferences,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> None:
    if not 1 <= preferences.max_suggestions <= config.max_suggestions_limit:
        raise ValueError(
            f"max_suggestions must be between 1 and {config.max_suggestions_limit}"
        )
    for kind in preferences.suggestion_types or []:
        SuggestionType(kind)


def generate_suggestions(
    tasks: Sequence[Task],
    sessions: Sequence[FocusSession],
    profile: AdhdProfile,
    current_time: datetime,
    time_zone: str | None = None,
    preferences: Preferences | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> list[Suggestion]:
    """Run the enabled generators and return at most max_suggestions results."""
    preferences = preferences or Preferences(max_suggestions=config.max_suggestions)
    validate_preferences(preferences, config)

    enabled = None
    if preferences.suggestion_types is not None:
        enabled = {SuggestionType(kind) for kind in preferences.suggestion_types}

    ctx = SuggestionContext(
        tasks=tasks,
        sessions=sessions,
        profile=profile,
        current_time=localize(current_time, time_zone),
        config=config,
    )

    suggestions = []
    for kind, generator in GENERATORS.items():
        if enabled is not None and kind not in enabled:
            continue
        suggestion = generator(ctx)
        if suggestion is None:
            continue
        if not preferences.include_explanations:
            suggestion.metadata = {}
        suggestions.append(suggestion)

    logger.debug(
        "Generated %d suggestions: %s",
        len(suggestions), [s.type.value for s in suggestions],
    )
    return suggestions[: preferences.max_suggestions]
