"""Record shapes exchanged with the record store.

Sessions embed participant snapshots (name/avatar copied from the User at
logging time) so history keeps the identity a participant had back then.
Collections default to empty and accept ``null`` so analytics can run over
partially-populated rows.
"""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .catalog import DEFAULT_AVATAR, display_avatar


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _normalize_non_empty(value: str, *, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} must not be empty")
    return normalized


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    avatar: str = DEFAULT_AVATAR
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_non_empty(value, field_name="name")

    @property
    def display_avatar(self) -> str:
        return display_avatar(self.avatar)


class ExerciseSet(BaseModel):
    set_number: int = Field(ge=1)
    weight: float = Field(default=0.0, ge=0)
    reps: int = Field(default=0, ge=0)


class Exercise(BaseModel):
    exercise_name: str
    sets: list[ExerciseSet] = Field(default_factory=list)

    @field_validator("exercise_name")
    @classmethod
    def validate_exercise_name(cls, value: str) -> str:
        return _normalize_non_empty(value, field_name="exercise_name")

    @field_validator("sets", mode="before")
    @classmethod
    def coerce_sets(cls, value: Any) -> Any:
        return _none_to_list(value)

    @classmethod
    def blank(cls, name: str) -> "Exercise":
        return cls(exercise_name=name, sets=[ExerciseSet(set_number=1)])

    @property
    def max_weight(self) -> float:
        return max((s.weight for s in self.sets), default=0.0)

    @property
    def total_volume(self) -> float:
        return sum(s.weight * s.reps for s in self.sets)


class ParticipantData(BaseModel):
    user_id: str = ""
    user_name: str = ""
    user_avatar: str = DEFAULT_AVATAR
    exercises: list[Exercise] = Field(default_factory=list)
    notes: str | None = None

    @field_validator("exercises", mode="before")
    @classmethod
    def coerce_exercises(cls, value: Any) -> Any:
        return _none_to_list(value)

    @classmethod
    def snapshot(cls, user: User, exercises: list[Exercise] | None = None) -> "ParticipantData":
        """Copy identity values out of ``user``; later profile edits don't leak in."""
        return cls(
            user_id=user.id,
            user_name=user.name,
            user_avatar=user.avatar,
            exercises=[e.model_copy(deep=True) for e in exercises or []],
            notes="",
        )

    def find_exercise(self, name: str) -> Exercise | None:
        for exercise in self.exercises:
            if exercise.exercise_name == name:
                return exercise
        return None


class Reaction(BaseModel):
    id: str = Field(default_factory=new_id)
    session_id: str
    user_id: str
    user_name: str
    user_avatar: str = DEFAULT_AVATAR
    category: str
    emoji: str
    gif_url: str
    gif_id: str
    created_at: datetime = Field(default_factory=utc_now)


class Session(BaseModel):
    id: str = Field(default_factory=new_id)
    sync_code: str
    created_by: str
    creator_name: str
    creator_avatar: str = DEFAULT_AVATAR
    date: dt.date
    type: str
    participants: list[ParticipantData] = Field(default_factory=list)
    reactions: list[Reaction] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("participants", "reactions", mode="before")
    @classmethod
    def coerce_collections(cls, value: Any) -> Any:
        return _none_to_list(value)

    def participant_entries(self, user_id: str) -> list[ParticipantData]:
        return [p for p in self.participants if p.user_id == user_id]

    def has_participant(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    def is_owned_by(self, user_id: str) -> bool:
        return bool(user_id) and self.created_by == user_id


CustomExerciseRegistry = dict[str, list[str]]
