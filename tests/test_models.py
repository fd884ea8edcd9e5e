"""Tests for record models and the exercise catalog."""

from datetime import date

import pytest
from pydantic import ValidationError

from gymsync.catalog import (
    BODY_PARTS,
    DEFAULT_AVATAR,
    EXERCISES_BY_BODY_PART,
    available_exercises,
    display_avatar,
    is_valid_image_path,
)
from gymsync.models import Exercise, ExerciseSet, ParticipantData, Session, User


class TestUser:
    def test_name_is_trimmed(self):
        assert User(name="  Alice ").name == "Alice"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            User(name="   ")

    def test_defaults(self):
        user = User(name="Alice")
        assert user.id
        assert user.avatar == DEFAULT_AVATAR
        assert user.created_at.tzinfo is not None

    def test_display_avatar_falls_back(self):
        assert User(name="Alice", avatar="not a path").display_avatar == DEFAULT_AVATAR
        assert User(name="Alice", avatar="https://cdn.example/a.png").display_avatar == "https://cdn.example/a.png"


class TestExercise:
    def test_max_weight_and_volume(self):
        exercise = Exercise(
            exercise_name="Bench Press",
            sets=[ExerciseSet(set_number=1, weight=100, reps=5), ExerciseSet(set_number=2, weight=105, reps=3)],
        )
        assert exercise.max_weight == 105
        assert exercise.total_volume == 815

    def test_null_sets(self):
        exercise = Exercise(exercise_name="Squat", sets=None)
        assert exercise.sets == []
        assert exercise.max_weight == 0
        assert exercise.total_volume == 0

    def test_negative_values_rejected(self):
        with pytest.raises(ValidationError):
            ExerciseSet(set_number=1, weight=-5)
        with pytest.raises(ValidationError):
            ExerciseSet(set_number=0)


class TestParticipantData:
    def test_snapshot_copies_identity(self):
        user = User(id="alice", name="Alice", avatar="/avatars/a.jpg")
        participant = ParticipantData.snapshot(user)
        user.name = "Renamed"
        assert participant.user_name == "Alice"
        assert participant.user_avatar == "/avatars/a.jpg"
        assert participant.exercises == []

    def test_find_exercise(self):
        participant = ParticipantData(user_id="a", exercises=[Exercise(exercise_name="Squat")])
        assert participant.find_exercise("Squat") is not None
        assert participant.find_exercise("Lunges") is None


class TestSession:
    def test_json_round_trip(self):
        session = Session(
            sync_code="GYM42", created_by="alice", creator_name="Alice", date=date(2024, 1, 2), type="Legs",
            participants=[ParticipantData(user_id="alice", user_name="Alice", exercises=None)],
            reactions=None,
        )
        restored = Session.model_validate_json(session.model_dump_json())
        assert restored == session
        assert restored.date == date(2024, 1, 2)

    def test_ownership(self):
        session = Session(sync_code="X", created_by="alice", creator_name="Alice", date=date(2024, 1, 1), type="Legs")
        assert session.is_owned_by("alice")
        assert not session.is_owned_by("bob")
        assert not session.is_owned_by("")


class TestCatalog:
    def test_every_body_part_has_exercises(self):
        assert set(EXERCISES_BY_BODY_PART) == set(BODY_PARTS)
        assert all(EXERCISES_BY_BODY_PART[part] for part in BODY_PARTS)

    def test_available_exercises_appends_custom_once(self):
        names = available_exercises("Legs", {"Legs": ["Squat", "Sissy Squat"]})
        assert names.count("Squat") == 1
        assert names[-1] == "Sissy Squat"

    def test_unknown_body_part(self):
        assert available_exercises("Neck") == []

    @pytest.mark.parametrize(
        "src,valid",
        [
            ("/avatars/a.jpg", True),
            ("https://cdn.example/a.png", True),
            ("http://cdn.example/a.png", True),
            ("avatars/a.jpg", False),
            ("", False),
            (None, False),
        ],
    )
    def test_image_paths(self, src, valid):
        assert is_valid_image_path(src) is valid
        assert display_avatar(src) == (src if valid else DEFAULT_AVATAR)
