"""Data models for the ADHD dashboard."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"


class EnergyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskContext(str, Enum):
    WORK = "work"
    PERSONAL = "personal"
    HEALTH = "health"
    LEARNING = "learning"
    CREATIVE = "creative"
    SOCIAL = "social"


class SuggestionType(str, Enum):
    TASK_PRIORITIZATION = "task_prioritization"
    OPTIMAL_TIMING = "optimal_timing"
    TASK_BREAKDOWN = "task_breakdown"
    FOCUS_STRATEGIES = "focus_strategies"
    ENERGY_MANAGEMENT = "energy_management"
    MOTIVATION_BOOST = "motivation_boost"


class InsightType(str, Enum):
    PEAK_PERFORMANCE_TIMES = "peak_performance_times"
    DISTRACTION_PATTERNS = "distraction_patterns"
    TASK_COMPLETION_TRENDS = "task_completion_trends"
    ENERGY_OPTIMIZATION = "energy_optimization"
    CONTEXT_SWITCHING_IMPACT = "context_switching_impact"
    BREAK_EFFECTIVENESS = "break_effectiveness"


@dataclass
class Task:
    id: str
    title: str
    user_id: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    difficulty: TaskDifficulty = TaskDifficulty.MEDIUM
    estimated_duration: int = 30
    actual_duration: int | None = None
    tags: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    completed_at: datetime | None = None
    energy_level: EnergyLevel | None = None
    context: TaskContext | None = None
    focus_score: int | None = None
    parent_task_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    subtasks: list["Task"] = field(default_factory=list)


@dataclass
class FocusSession:
    id: int | None = None
    task_id: str = ""
    user_id: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int = 0
    focus_score: int = 5
    distractions: int = 0

    @property
    def ended(self) -> bool:
        return self.end_time is not None


@dataclass
class TimeSlot:
    start_time: str
    end_time: str
    energy_level: EnergyLevel


@dataclass
class AdhdProfile:
    # Day of week, Sunday = 0.
    energy_pattern: dict[int, list[TimeSlot]] = field(default_factory=dict)
    best_focus_time_start: str = "09:00"
    best_focus_time_end: str = "11:00"
    preferred_work_duration: int = 25
    preferred_break_duration: int = 5
    distraction_triggers: list[str] = field(default_factory=list)


@dataclass
class User:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    adhd_profile: AdhdProfile = field(default_factory=AdhdProfile)
    created_at: datetime | None = None


@dataclass
class Preferences:
    suggestion_types: list[SuggestionType] | None = None
    max_suggestions: int = 5
    include_explanations: bool = True


@dataclass
class Suggestion:
    id: str
    type: SuggestionType
    title: str
    description: str
    actionable: bool
    priority: str
    estimated_impact: int
    time_to_implement: int
    related_task_ids: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


@dataclass
class ReorderReason:
    task_id: str
    reason: str
    factors_considered: list[str] = field(default_factory=list)


@dataclass
class ReorderResult:
    original_order: list[str]
    suggested_order: list[str]
    reasoning: list[ReorderReason] = field(default_factory=list)
    estimated_productivity_gain: float = 0.0


@dataclass
class Insight:
    type: InsightType
    title: str
    description: str
    data: dict = field(default_factory=dict)
    actionable: bool = True
    timeframe_start: datetime | None = None
    timeframe_end: datetime | None = None


@dataclass
class TaskStats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0
    completion_rate: float = 0.0
    avg_focus_score: float = 0.0
    total_time_spent: int = 0
    avg_completion_time: float = 0.0
