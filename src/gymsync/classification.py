"""Keyword classification of exercise names.

Two deliberately different semantics share the same keyword-matching idea:

- movement balance buckets are mutually exclusive (first bucket wins);
- body-part heat map matches overlap (one exercise may hit several parts).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from .aggregation import iter_user_exercises
from .catalog import BALANCE_FALLBACK, BALANCE_KEYWORDS, HEAT_MAP_KEYWORDS
from .models import Session

BALANCE_BUCKETS: tuple[str, ...] = (*BALANCE_KEYWORDS.keys(), BALANCE_FALLBACK)


@dataclass(frozen=True)
class HeatMapCell:
    trained: bool
    count: int
    intensity: float


def _matches(name: str, keywords: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def classify_movement(exercise_name: str) -> str:
    """Exactly one of Push, Pull, Legs or Other."""
    for bucket, keywords in BALANCE_KEYWORDS.items():
        if _matches(exercise_name, keywords):
            return bucket
    return BALANCE_FALLBACK


def body_parts_for(
    exercise_name: str,
    keywords: Mapping[str, Sequence[str]] = HEAT_MAP_KEYWORDS,
) -> list[str]:
    """Every body part whose keywords appear in the name (may be several)."""
    return [part for part, words in keywords.items() if _matches(exercise_name, words)]


def rounded_percentages(counts: Mapping[str, int]) -> dict[str, int]:
    """Integer percentages that sum to exactly 100 (largest remainder).

    All zeros when there is nothing to divide.
    """
    total = sum(counts.values())
    if total <= 0:
        return {key: 0 for key in counts}

    exact = {key: count * 100 / total for key, count in counts.items()}
    floored = {key: int(value) for key, value in exact.items()}
    leftover = 100 - sum(floored.values())
    # Ties go to the earlier bucket.
    order = sorted(counts, key=lambda key: exact[key] - floored[key], reverse=True)
    for key in order[:leftover]:
        floored[key] += 1
    return floored


def movement_counts(sessions: Iterable[Session], user_id: str) -> dict[str, int]:
    counts = {bucket: 0 for bucket in BALANCE_BUCKETS}
    for _, exercise in iter_user_exercises(sessions, user_id):
        counts[classify_movement(exercise.exercise_name)] += 1
    return counts


def exercise_balance(sessions: Iterable[Session], user_id: str) -> dict[str, int]:
    """Push/Pull/Legs/Other share of the user's exercise occurrences."""
    return rounded_percentages(movement_counts(sessions, user_id))


def body_part_heat_map(
    sessions: Iterable[Session],
    user_id: str,
    window_days: int = 7,
    today: date | None = None,
) -> dict[str, HeatMapCell]:
    """How often each body part was hit in the trailing window."""
    today = today or date.today()
    cutoff = today - timedelta(days=window_days)
    recent = [s for s in sessions if s.date > cutoff]

    counts = {part: 0 for part in HEAT_MAP_KEYWORDS}
    for _, exercise in iter_user_exercises(recent, user_id):
        for part in body_parts_for(exercise.exercise_name):
            counts[part] += 1

    peak = max(max(counts.values(), default=0), 1)
    return {
        part: HeatMapCell(trained=count > 0, count=count, intensity=count / peak)
        for part, count in counts.items()
    }
