"""Tests for task scoring and time-of-day helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from adhd_dashboard.config import HeuristicConfig
from adhd_dashboard.core import scoring
from adhd_dashboard.db.models import AdhdProfile, EnergyLevel, Task, TaskPriority

# A Wednesday, outside the default 09:00-11:00 focus window.
NOW = datetime(2024, 5, 15, 15, 0, tzinfo=timezone.utc)


def _task(**kwargs) -> Task:
    return Task(id=kwargs.pop("id", "t"), title="Task", **kwargs)


class TestParseHHMM:
    def test_valid(self):
        assert scoring.parse_hhmm("09:30") == 570

    def test_midnight(self):
        assert scoring.parse_hhmm("00:00") == 0

    @pytest.mark.parametrize("value", [None, "", "9", "25:00", "10:60", "ab:cd", "10-30"])
    def test_malformed(self, value):
        assert scoring.parse_hhmm(value) is None


class TestDayOfWeek:
    def test_sunday_is_zero(self):
        assert scoring.day_of_week(datetime(2024, 5, 12, 12, 0)) == 0

    def test_wednesday(self):
        assert scoring.day_of_week(NOW) == 3

    def test_saturday(self):
        assert scoring.day_of_week(datetime(2024, 5, 18, 12, 0)) == 6


class TestFocusWindow:
    def test_uses_profile(self):
        profile = AdhdProfile(best_focus_time_start="14:00", best_focus_time_end="16:30")
        assert scoring.focus_window(profile) == (840, 990)

    def test_falls_back_when_malformed(self):
        profile = AdhdProfile(best_focus_time_start="later", best_focus_time_end="16:30")
        assert scoring.focus_window(profile) == (540, 719)

    def test_falls_back_without_profile(self):
        assert scoring.focus_window(None) == (540, 719)

    def test_bounds_are_inclusive(self):
        profile = AdhdProfile(best_focus_time_start="09:00", best_focus_time_end="11:00")
        assert scoring.in_focus_window(NOW.replace(hour=9, minute=0), profile)
        assert scoring.in_focus_window(NOW.replace(hour=11, minute=0), profile)
        assert not scoring.in_focus_window(NOW.replace(hour=11, minute=1), profile)


class TestLocalize:
    def test_no_zone_keeps_moment(self):
        assert scoring.localize(NOW) is NOW

    def test_converts_to_zone(self):
        local = scoring.localize(NOW, "Europe/Berlin")
        assert local.hour == 17
        assert local == NOW

    def test_unknown_zone(self):
        with pytest.raises(ValueError, match="Unknown time zone"):
            scoring.localize(NOW, "Mars/Olympus_Mons")

    def test_naive_moment_is_utc(self):
        local = scoring.localize(NOW.replace(tzinfo=None))
        assert local.tzinfo is timezone.utc
        assert local == NOW

    def test_naive_moment_converts_to_zone(self):
        assert scoring.localize(NOW.replace(tzinfo=None), "Europe/Berlin").hour == 17


class TestScore:
    def test_priority_weights(self):
        assert scoring.score(_task(priority=TaskPriority.URGENT), NOW) == 4
        assert scoring.score(_task(priority=TaskPriority.HIGH), NOW) == 3
        assert scoring.score(_task(priority=TaskPriority.MEDIUM), NOW) == 2
        assert scoring.score(_task(priority=TaskPriority.LOW), NOW) == 1

    def test_due_tomorrow(self):
        task = _task(priority=TaskPriority.LOW, due_date=NOW + timedelta(days=1))
        assert scoring.score(task, NOW) == pytest.approx(1 + 4)

    def test_due_in_half_a_day_is_fractional(self):
        task = _task(priority=TaskPriority.LOW, due_date=NOW + timedelta(hours=12))
        assert scoring.score(task, NOW) == pytest.approx(1 + 4.5)

    def test_overdue_gets_full_bonus(self):
        task = _task(priority=TaskPriority.LOW, due_date=NOW - timedelta(days=3))
        assert scoring.score(task, NOW) == pytest.approx(1 + 5)

    def test_far_due_date_adds_nothing(self):
        task = _task(priority=TaskPriority.LOW, due_date=NOW + timedelta(days=30))
        assert scoring.score(task, NOW) == 1

    def test_high_energy_bonus_inside_window(self):
        profile = AdhdProfile(best_focus_time_start="14:00", best_focus_time_end="16:00")
        task = _task(priority=TaskPriority.MEDIUM, energy_level=EnergyLevel.HIGH)
        assert scoring.score(task, NOW, profile) == 4

    def test_no_bonus_for_low_energy_task(self):
        profile = AdhdProfile(best_focus_time_start="14:00", best_focus_time_end="16:00")
        task = _task(priority=TaskPriority.MEDIUM, energy_level=EnergyLevel.LOW)
        assert scoring.score(task, NOW, profile) == 2

    def test_no_bonus_outside_window(self):
        task = _task(priority=TaskPriority.MEDIUM, energy_level=EnergyLevel.HIGH)
        assert scoring.score(task, NOW, AdhdProfile()) == 2

    def test_window_checked_in_user_time_zone(self):
        # 15:00 UTC is 17:00 in Berlin.
        profile = AdhdProfile(best_focus_time_start="16:30", best_focus_time_end="18:00")
        task = _task(priority=TaskPriority.MEDIUM, energy_level=EnergyLevel.HIGH)
        assert scoring.score(task, NOW, profile) == 2
        assert scoring.score(task, NOW, profile, time_zone="Europe/Berlin") == 4

    def test_custom_weights(self):
        config = HeuristicConfig(
            priority_weights={"urgent": 10, "high": 3, "medium": 2, "low": 1},
            due_soon_horizon_days=2.0,
        )
        task = _task(priority=TaskPriority.URGENT, due_date=NOW - timedelta(days=1))
        assert scoring.score(task, NOW, config=config) == pytest.approx(12)

    def test_naive_current_time(self):
        profile = AdhdProfile(best_focus_time_start="14:00", best_focus_time_end="16:00")
        task = _task(priority=TaskPriority.LOW, energy_level=EnergyLevel.HIGH,
                     due_date=NOW + timedelta(hours=12))
        naive = NOW.replace(tzinfo=None)
        assert scoring.score(task, naive, profile) == scoring.score(task, NOW, profile)
        assert scoring.score(task, naive, profile) == pytest.approx(1 + 4.5 + 2)
