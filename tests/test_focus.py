"""Tests for focus session tracking."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from adhd_dashboard.core import focus as focus_mod
from adhd_dashboard.core import tasks as tasks_mod
from adhd_dashboard.core import users as users_mod
from adhd_dashboard.core.focus import FocusSessionError
from adhd_dashboard.db.engine import init_db

START = datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    with tempfile.TemporaryDirectory() as tmp:
        conn = init_db(Path(tmp) / "test.db")
        users_mod.create_user(conn, "alex", "alex@example.com")
        users_mod.create_user(conn, "sam", "sam@example.com")
        tasks_mod.create_task(conn, "alex", "Write essay")
        yield conn
        conn.close()


class TestFocusSessions:
    def test_start(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        assert session.id is not None
        assert session.start_time == START
        assert not session.ended

    def test_start_on_other_users_task(self, db):
        with pytest.raises(FocusSessionError):
            focus_mod.start_focus_session(db, "write-essay", "sam")

    def test_start_on_missing_task(self, db):
        with pytest.raises(FocusSessionError):
            focus_mod.start_focus_session(db, "nope", "alex")

    def test_end(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        ended = focus_mod.end_focus_session(
            db, session.id, "alex", focus_score=7, distractions=2,
            now=START + timedelta(minutes=25, seconds=20),
        )
        assert ended.ended
        assert ended.duration == 25
        assert ended.focus_score == 7
        assert ended.distractions == 2

    def test_end_twice(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        focus_mod.end_focus_session(db, session.id, "alex", 6, now=START + timedelta(minutes=10))
        with pytest.raises(FocusSessionError, match="already ended"):
            focus_mod.end_focus_session(db, session.id, "alex", 6, now=START + timedelta(minutes=20))

    def test_end_before_start(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        with pytest.raises(FocusSessionError):
            focus_mod.end_focus_session(db, session.id, "alex", 6, now=START - timedelta(minutes=1))

    def test_end_other_users_session(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        with pytest.raises(FocusSessionError):
            focus_mod.end_focus_session(db, session.id, "sam", 6)

    @pytest.mark.parametrize("score", [0, 11])
    def test_score_out_of_range(self, db, score):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        with pytest.raises(ValueError):
            focus_mod.end_focus_session(db, session.id, "alex", score)

    def test_negative_distractions(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        with pytest.raises(ValueError):
            focus_mod.end_focus_session(db, session.id, "alex", 5, distractions=-1)

    def test_raises_task_focus_score(self, db):
        for score in (6, 9, 4):
            session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
            focus_mod.end_focus_session(db, session.id, "alex", score,
                                        now=START + timedelta(minutes=5))

        assert tasks_mod.get_task(db, "write-essay").focus_score == 9

    def test_sessions_survive_task_deletion(self, db):
        session = focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        tasks_mod.delete_task(db, "write-essay")
        assert focus_mod.get_session(db, session.id) is not None


class TestRecentForUser:
    def test_newest_first_and_limited(self, db):
        for i in range(4):
            focus_mod.start_focus_session(db, "write-essay", "alex", now=START + timedelta(hours=i))
        recent = focus_mod.recent_for_user(db, "alex", limit=3)
        assert [s.start_time.hour for s in recent] == [12, 11, 10]

    def test_other_users_excluded(self, db):
        focus_mod.start_focus_session(db, "write-essay", "alex", now=START)
        assert focus_mod.recent_for_user(db, "sam") == []
