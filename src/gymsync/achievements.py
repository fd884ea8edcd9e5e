"""Streaks and achievement badges."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .aggregation import iter_user_exercises, user_sessions
from .models import Session

STREAK_THRESHOLDS: tuple[int, ...] = (7, 30)
SESSION_COUNT_THRESHOLDS: tuple[int, ...] = (10, 50, 100)
HEAVY_LIFT_KG = 100.0
EXPLORER_DISTINCT_EXERCISES = 10


@dataclass(frozen=True)
class Badge:
    id: str
    title: str
    emoji: str
    description: str


BADGES: dict[str, Badge] = {
    "streak_7": Badge("streak_7", "Week Warrior", "🔥", "Trained 7 days in a row"),
    "streak_30": Badge("streak_30", "Unstoppable", "⚡", "Trained 30 days in a row"),
    "sessions_10": Badge("sessions_10", "Getting Started", "🏁", "Logged 10 sessions"),
    "sessions_50": Badge("sessions_50", "Dedicated", "💪", "Logged 50 sessions"),
    "sessions_100": Badge("sessions_100", "Centurion", "🏆", "Logged 100 sessions"),
    "heavy_lifter": Badge("heavy_lifter", "Heavy Lifter", "🏋️", "Lifted 100 kg or more in a set"),
    "explorer": Badge("explorer", "Explorer", "🧭", "Performed 10 different exercises"),
}


def training_dates(sessions: Iterable[Session], user_id: str) -> list[date]:
    """Distinct dates with a session for the user, most recent first."""
    return sorted({s.date for s in user_sessions(sessions, user_id)}, reverse=True)


def current_streak(
    sessions: Iterable[Session], user_id: str, today: date | None = None
) -> int:
    """Consecutive training days ending today or yesterday.

    Walks back from the most recent date; the i-th date must be exactly i
    days before it. The first gap ends the streak.
    """
    today = today or date.today()
    dates = training_dates(sessions, user_id)
    if not dates:
        return 0
    latest = dates[0]
    if (today - latest).days > 1:
        return 0

    streak = 1
    for offset, day in enumerate(dates[1:], start=1):
        if (latest - day).days != offset:
            break
        streak += 1
    return streak


def achievements(
    sessions: Iterable[Session], user_id: str, today: date | None = None
) -> list[Badge]:
    sessions = list(sessions)
    earned: list[Badge] = []

    streak = current_streak(sessions, user_id, today=today)
    for threshold in STREAK_THRESHOLDS:
        if streak >= threshold:
            earned.append(BADGES[f"streak_{threshold}"])

    count = len(user_sessions(sessions, user_id))
    for threshold in SESSION_COUNT_THRESHOLDS:
        if count >= threshold:
            earned.append(BADGES[f"sessions_{threshold}"])

    names: set[str] = set()
    heavy = False
    for _, exercise in iter_user_exercises(sessions, user_id):
        names.add(exercise.exercise_name)
        if any(s.weight >= HEAVY_LIFT_KG for s in exercise.sets):
            heavy = True
    if heavy:
        earned.append(BADGES["heavy_lifter"])
    if len(names) >= EXPLORER_DISTINCT_EXERCISES:
        earned.append(BADGES["explorer"])

    return earned
