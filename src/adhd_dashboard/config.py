"""Configuration loading from environment variables."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path


@dataclass(frozen=True)
class HeuristicConfig:
    """Tunable constants used by the scoring, suggestion and insight code."""

    priority_weights: dict[str, int] = field(
        default_factory=lambda: {"urgent": 4, "high": 3, "medium": 2, "low": 1}
    )
    due_soon_horizon_days: float = 5.0
    high_energy_bonus: float = 2.0
    # Used when the profile has no usable best-focus window.
    default_focus_window: tuple[str, str] = ("09:00", "11:59")

    max_suggestions: int = 5
    max_suggestions_limit: int = 10
    large_task_minutes: int = 60
    low_focus_score: float = 5.0
    high_distractions: float = 3.0
    high_completion_rate: float = 70.0
    low_completion_rate: float = 30.0

    estimated_productivity_gain: float = 15.0
    peak_min_sessions: int = 5

    suggestion_session_limit: int = 10
    insight_session_limit: int = 50
    insight_window_days: int = 7
    confidence: float = 0.85


DEFAULT_HEURISTICS = HeuristicConfig()


@dataclass
class Config:
    db_path: Path = field(default_factory=lambda: Path.home() / ".adhd_dashboard" / "adhd.db")
    default_timezone: str | None = None
    heuristics: HeuristicConfig = DEFAULT_HEURISTICS

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if db := os.environ.get("ADHD_DB_PATH"):
            config.db_path = Path(db)

        config.default_timezone = os.environ.get("ADHD_DEFAULT_TIMEZONE") or None

        if max_suggestions := os.environ.get("ADHD_MAX_SUGGESTIONS"):
            config.heuristics = replace(config.heuristics, max_suggestions=int(max_suggestions))

        if window_days := os.environ.get("ADHD_INSIGHT_WINDOW_DAYS"):
            config.heuristics = replace(config.heuristics, insight_window_days=int(window_days))

        return config


def get_config() -> Config:
    return Config.from_env()
