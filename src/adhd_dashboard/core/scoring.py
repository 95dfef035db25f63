"""Per-task urgency scoring and the time-of-day helpers shared by the engine."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from adhd_dashboard.config import DEFAULT_HEURISTICS, HeuristicConfig
from adhd_dashboard.db.models import AdhdProfile, EnergyLevel, Task, TaskPriority

SECONDS_PER_DAY = 24 * 60 * 60


def ensure_aware(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware ones keep their offset."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def localize(moment: datetime, time_zone: str | None = None) -> datetime:
    """Express an instant in the user's time zone, if one is given.

    Naive instants are taken as UTC.
    """
    moment = ensure_aware(moment)
    if not time_zone:
        return moment
    try:
        zone = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone: {time_zone}") from e
    return moment.astimezone(zone)


def parse_hhmm(value: str | None) -> int | None:
    """Minutes since midnight for an HH:mm string, or None if malformed."""
    if not value:
        return None
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        return None
    hours, minutes = int(hours), int(minutes)
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def day_of_week(moment: datetime) -> int:
    """Day of week with Sunday = 0."""
    return (moment.weekday() + 1) % 7


def focus_window(
    profile: AdhdProfile | None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> tuple[int, int]:
    """The best-focus window in minutes of day, falling back to the default window."""
    if profile is not None:
        start = parse_hhmm(profile.best_focus_time_start)
        end = parse_hhmm(profile.best_focus_time_end)
        if start is not None and end is not None:
            return start, end
    start, end = config.default_focus_window
    return parse_hhmm(start), parse_hhmm(end)


def in_focus_window(
    current_time: datetime,
    profile: AdhdProfile | None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
) -> bool:
    start, end = focus_window(profile, config)
    return start <= minute_of_day(current_time) <= end


def days_until(due: datetime, current_time: datetime) -> float:
    """Fractional days until a due date, floored at zero for overdue tasks."""
    delta = ensure_aware(due) - ensure_aware(current_time)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def score(
    task: Task,
    current_time: datetime,
    profile: AdhdProfile | None = None,
    config: HeuristicConfig = DEFAULT_HEURISTICS,
    time_zone: str | None = None,
) -> float:
    """Urgency score for a task at a given time.

    The score is the priority weight, plus up to `due_soon_horizon_days`
    points as the due date approaches (overdue counts as due now), plus the
    high-energy bonus for high-energy tasks inside the focus window.
    """
    current_time = ensure_aware(current_time)
    total = float(config.priority_weights.get(TaskPriority(task.priority).value, 0))

    if task.due_date is not None:
        total += max(0.0, config.due_soon_horizon_days - days_until(task.due_date, current_time))

    if task.energy_level == EnergyLevel.HIGH and in_focus_window(
        localize(current_time, time_zone), profile, config
    ):
        total += config.high_energy_bonus

    return total
