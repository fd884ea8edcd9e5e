"""Per-exercise analytics over fetched sessions.

Sessions are expected newest first (the order the record store returns
them). Every function here is pure: inputs are only read, never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from .models import Exercise, ParticipantData, Session

DEFAULT_PROGRESS_LIMIT = 20
TOP_EXERCISES_DEFAULT = 5
LEADERBOARD_SIZE = 10


@dataclass(frozen=True)
class ProgressPoint:
    date: date
    max_weight: float
    total_volume: float


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    user_name: str
    user_avatar: str
    max_weight: float
    date: date


@dataclass(frozen=True)
class PersonalRecord:
    exercise_name: str
    weight: float
    date: date


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    max_weight: float


# ---------------------------------------------------------------------------
# Iteration helpers
# ---------------------------------------------------------------------------


def iter_user_entries(
    sessions: Iterable[Session], user_id: str
) -> Iterator[tuple[Session, ParticipantData]]:
    """Yield (session, participant) for every entry of ``user_id``."""
    for session in sessions:
        for participant in session.participants:
            if participant.user_id == user_id:
                yield session, participant


def iter_user_exercises(
    sessions: Iterable[Session], user_id: str
) -> Iterator[tuple[Session, Exercise]]:
    for session, participant in iter_user_entries(sessions, user_id):
        for exercise in participant.exercises:
            yield session, exercise


def user_sessions(sessions: Iterable[Session], user_id: str) -> list[Session]:
    return [s for s in sessions if s.has_participant(user_id)]


# ---------------------------------------------------------------------------
# Exercise views
# ---------------------------------------------------------------------------


def exercises_for_user(sessions: Iterable[Session], user_id: str) -> set[str]:
    return {exercise.exercise_name for _, exercise in iter_user_exercises(sessions, user_id)}


def top_exercises(
    sessions: Iterable[Session], user_id: str, k: int = TOP_EXERCISES_DEFAULT
) -> list[tuple[str, int]]:
    """Most performed exercises, counted once per session.

    Ties keep first-encountered order (``sorted`` is stable and dicts keep
    insertion order).
    """
    counts: dict[str, int] = {}
    for session in sessions:
        names: dict[str, None] = {}
        for participant in session.participant_entries(user_id):
            for exercise in participant.exercises:
                names.setdefault(exercise.exercise_name, None)
        for name in names:
            counts[name] = counts.get(name, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[: max(k, 0)]


def exercise_progress(
    sessions: Sequence[Session],
    user_id: str,
    exercise_name: str,
    *,
    all_time: bool = False,
    limit: int = DEFAULT_PROGRESS_LIMIT,
) -> list[ProgressPoint]:
    """Max weight and volume for ``exercise_name`` per session, newest first."""
    points: list[ProgressPoint] = []
    for session in sessions:
        for participant in session.participant_entries(user_id):
            exercise = participant.find_exercise(exercise_name)
            if exercise is None:
                continue
            points.append(
                ProgressPoint(
                    date=session.date,
                    max_weight=exercise.max_weight,
                    total_volume=exercise.total_volume,
                )
            )
            break
    if not all_time:
        points = points[: max(limit, 0)]
    return points


def leaderboard(
    sessions: Iterable[Session], exercise_name: str, size: int = LEADERBOARD_SIZE
) -> list[LeaderboardEntry]:
    """Each user's single heaviest set of ``exercise_name`` across all sessions."""
    best: dict[str, LeaderboardEntry] = {}
    for session in sessions:
        for participant in session.participants:
            if not participant.user_id:
                continue
            exercise = participant.find_exercise(exercise_name)
            if exercise is None or not exercise.sets:
                continue
            weight = exercise.max_weight
            current = best.get(participant.user_id)
            if current is None or weight > current.max_weight:
                best[participant.user_id] = LeaderboardEntry(
                    user_id=participant.user_id,
                    user_name=current.user_name if current else participant.user_name,
                    user_avatar=current.user_avatar if current else participant.user_avatar,
                    max_weight=weight,
                    date=session.date,
                )
    ranked = sorted(best.values(), key=lambda entry: entry.max_weight, reverse=True)
    return ranked[:size]


def personal_records(sessions: Iterable[Session], user_id: str) -> list[PersonalRecord]:
    """Heaviest weight per exercise and the earliest date it was lifted."""
    records: dict[str, PersonalRecord] = {}
    for session, exercise in iter_user_exercises(sessions, user_id):
        if not exercise.sets:
            continue
        weight = exercise.max_weight
        name = exercise.exercise_name
        current = records.get(name)
        if (
            current is None
            or weight > current.weight
            or (weight == current.weight and session.date < current.date)
        ):
            records[name] = PersonalRecord(exercise_name=name, weight=weight, date=session.date)
    return sorted(records.values(), key=lambda record: record.weight, reverse=True)


def comparison_series(
    sessions: Iterable[Session], exercise_name: str, user_ids: Sequence[str]
) -> dict[str, list[SeriesPoint]]:
    """Per-user max weight series for one exercise, oldest first."""
    wanted = set(user_ids)
    series: dict[str, list[SeriesPoint]] = {uid: [] for uid in user_ids}
    for session in sessions:
        seen: set[str] = set()
        for participant in session.participants:
            uid = participant.user_id
            if uid not in wanted or uid in seen:
                continue
            exercise = participant.find_exercise(exercise_name)
            if exercise is None:
                continue
            seen.add(uid)
            series[uid].append(SeriesPoint(date=session.date, max_weight=exercise.max_weight))
    for points in series.values():
        points.sort(key=lambda point: point.date)
    return series


# ---------------------------------------------------------------------------
# Attendance counters
# ---------------------------------------------------------------------------


def gym_days_in_window(
    sessions: Iterable[Session],
    user_id: str,
    window_days: int = 30,
    today: date | None = None,
) -> int:
    """Distinct calendar dates within the trailing window the user trained on."""
    today = today or date.today()
    cutoff = today - timedelta(days=window_days)
    return len({s.date for s in sessions if s.date > cutoff and s.has_participant(user_id)})


def total_sessions(sessions: Iterable[Session], user_id: str) -> int:
    return len(user_sessions(sessions, user_id))


def sessions_this_month(
    sessions: Iterable[Session], user_id: str, today: date | None = None
) -> int:
    today = today or date.today()
    return sum(
        1
        for s in sessions
        if s.date.year == today.year and s.date.month == today.month and s.has_participant(user_id)
    )
