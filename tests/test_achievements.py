"""Tests for streaks and badges."""

from datetime import date, timedelta

from gymsync.achievements import BADGES, achievements, current_streak, training_dates
from gymsync.models import Exercise, ExerciseSet, ParticipantData, Session


def _session(day: date, user_id: str = "alice", exercise: str = "Squat", weight: float = 60.0) -> Session:
    return Session(
        sync_code="SHARED",
        created_by=user_id,
        creator_name=user_id,
        date=day,
        type="Legs",
        participants=[
            ParticipantData(
                user_id=user_id,
                user_name=user_id,
                exercises=[
                    Exercise(exercise_name=exercise, sets=[ExerciseSet(set_number=1, weight=weight, reps=5)])
                ],
            )
        ],
    )


def _ids(badges) -> set[str]:
    return {b.id for b in badges}


class TestCurrentStreak:
    def test_four_consecutive_days(self):
        sessions = [_session(date(2024, 1, d)) for d in (13, 12, 11, 10)]
        assert current_streak(sessions, "alice", today=date(2024, 1, 13)) == 4

    def test_gap_ends_streak(self):
        sessions = [_session(date(2024, 1, d)) for d in (13, 12, 10)]
        assert current_streak(sessions, "alice", today=date(2024, 1, 13)) == 2

    def test_starts_yesterday(self):
        sessions = [_session(date(2024, 1, d)) for d in (12, 11)]
        assert current_streak(sessions, "alice", today=date(2024, 1, 13)) == 2

    def test_stale_latest_date(self):
        sessions = [_session(date(2024, 1, d)) for d in (11, 10)]
        assert current_streak(sessions, "alice", today=date(2024, 1, 13)) == 0

    def test_duplicate_dates_count_once(self):
        sessions = [_session(date(2024, 1, 13)), _session(date(2024, 1, 13)), _session(date(2024, 1, 12))]
        assert training_dates(sessions, "alice") == [date(2024, 1, 13), date(2024, 1, 12)]
        assert current_streak(sessions, "alice", today=date(2024, 1, 13)) == 2

    def test_no_sessions(self):
        assert current_streak([], "alice", today=date(2024, 1, 13)) == 0


class TestAchievements:
    def test_week_streak(self):
        today = date(2024, 3, 7)
        sessions = [_session(today - timedelta(days=i)) for i in range(7)]
        assert "streak_7" in _ids(achievements(sessions, "alice", today=today))

    def test_session_counts(self):
        today = date(2024, 3, 1)
        sessions = [_session(date(2023, 1, 1) + timedelta(days=2 * i)) for i in range(50)]
        earned = _ids(achievements(sessions, "alice", today=today))
        assert {"sessions_10", "sessions_50"} <= earned
        assert "sessions_100" not in earned

    def test_heavy_lifter(self):
        today = date(2024, 3, 1)
        assert "heavy_lifter" in _ids(achievements([_session(today, weight=100)], "alice", today=today))
        assert "heavy_lifter" not in _ids(achievements([_session(today, weight=99.5)], "alice", today=today))

    def test_explorer(self):
        today = date(2024, 3, 1)
        sessions = [_session(today - timedelta(days=30 + i), exercise=f"Move {i}") for i in range(10)]
        assert "explorer" in _ids(achievements(sessions, "alice", today=today))

    def test_nothing_earned(self):
        assert achievements([], "alice", today=date(2024, 1, 1)) == []

    def test_badge_catalog(self):
        assert set(BADGES) == {
            "streak_7", "streak_30", "sessions_10", "sessions_50", "sessions_100",
            "heavy_lifter", "explorer",
        }
