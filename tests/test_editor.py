"""Tests for the in-memory session editor."""

from datetime import date

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gymsync.aggregation import exercises_for_user
from gymsync.catalog import DEFAULT_AVATAR
from gymsync.context import SyncContext
from gymsync.editor import SessionEditor
from gymsync.errors import ValidationError
from gymsync.models import User

TODAY = date(2024, 6, 1)


def _editor() -> SessionEditor:
    user = User(id="alice", name="Alice", avatar="/avatars/alice.jpg")
    return SessionEditor(SyncContext(sync_code="GYM42", user=user), today=TODAY)


def _names(editor: SessionEditor, idx: int) -> list[str]:
    return [e.exercise_name for e in editor.participants[idx].exercises]


class TestDraft:
    def test_initial_state(self):
        editor = _editor()
        assert editor.date == TODAY
        assert editor.body_part == ""
        assert editor.shared_exercise_names == []
        [first] = editor.participants
        assert first.user_id == "alice"
        assert first.user_name == "Alice"
        assert first.user_avatar == "/avatars/alice.jpg"

    def test_add_participant_gets_shared_exercises(self):
        editor = _editor()
        editor.add_exercise_to_session("Squat")
        editor.add_exercise_to_session("Lunges")
        new = editor.add_participant()
        assert new.user_id == ""
        assert new.user_avatar == DEFAULT_AVATAR
        assert _names(editor, 1) == ["Squat", "Lunges"]
        assert [(s.set_number, s.weight, s.reps) for s in new.exercises[0].sets] == [(1, 0, 0)]

    def test_cannot_remove_last_participant(self):
        editor = _editor()
        editor.remove_participant(0)
        assert len(editor.participants) == 1

    def test_remove_participant(self):
        editor = _editor()
        editor.add_participant()
        editor.remove_participant(1)
        assert len(editor.participants) == 1

    def test_select_user_for_participant(self):
        editor = _editor()
        editor.add_participant()
        editor.select_user_for_participant(1, User(id="bob", name="Bob"))
        assert editor.participants[1].user_id == "bob"
        assert editor.participants[1].user_name == "Bob"

    def test_available_exercises_include_custom(self):
        editor = _editor()
        editor.body_part = "Legs"
        names = editor.available_exercises({"Legs": ["Sissy Squat"], "Chest": ["Svend Press"]})
        assert names[0] == "Squat"
        assert names[-1] == "Sissy Squat"
        assert "Svend Press" not in names


class TestSharedExercises:
    def test_add_applies_to_everyone(self):
        editor = _editor()
        editor.add_participant()
        editor.add_exercise_to_session("Bench Press")
        assert _names(editor, 0) == _names(editor, 1) == ["Bench Press"]

    def test_remove_applies_to_everyone(self):
        editor = _editor()
        editor.add_participant()
        editor.add_exercise_to_session("Bench Press")
        editor.add_exercise_to_session("Chest Fly")
        editor.remove_exercise_from_session("Bench Press")
        assert editor.shared_exercise_names == ["Chest Fly"]
        assert _names(editor, 0) == _names(editor, 1) == ["Chest Fly"]

    def test_blank_names_ignored(self):
        editor = _editor()
        editor.add_exercise_to_session("   ")
        assert editor.shared_exercise_names == []

    def test_sets_stay_independent(self):
        editor = _editor()
        editor.add_participant()
        editor.add_exercise_to_session("Squat")
        editor.add_set(0, 0)
        editor.update_set(0, 0, 0, weight=100, reps=5)
        assert len(editor.participants[1].exercises[0].sets) == 1
        assert editor.participants[1].exercises[0].sets[0].weight == 0


class TestSets:
    def test_add_set_numbers_sequentially(self):
        editor = _editor()
        editor.add_exercise_to_session("Squat")
        new = editor.add_set(0, 0)
        assert new.set_number == 2

    def test_remove_renumbers(self):
        editor = _editor()
        editor.add_exercise_to_session("Squat")
        editor.add_set(0, 0)
        editor.add_set(0, 0)
        editor.update_set(0, 0, 1, weight=60)
        editor.update_set(0, 0, 2, weight=70)
        editor.remove_set(0, 0, 0)
        sets = editor.participants[0].exercises[0].sets
        assert [(s.set_number, s.weight) for s in sets] == [(1, 60), (2, 70)]

    def test_last_set_is_kept(self):
        editor = _editor()
        editor.add_exercise_to_session("Squat")
        editor.remove_set(0, 0, 0)
        assert len(editor.participants[0].exercises[0].sets) == 1

    def test_negative_values_rejected(self):
        editor = _editor()
        editor.add_exercise_to_session("Squat")
        with pytest.raises(ValueError):
            editor.update_set(0, 0, 0, weight=-1)
        with pytest.raises(ValueError):
            editor.update_set(0, 0, 0, reps=-1)

    def test_notes(self):
        editor = _editor()
        editor.set_notes(0, "felt strong")
        assert editor.participants[0].notes == "felt strong"


class TestCommit:
    def test_missing_body_part(self):
        editor = _editor()
        with pytest.raises(ValidationError) as exc_info:
            editor.commit()
        assert "body part is required" in exc_info.value.problems

    def test_unknown_body_part(self):
        editor = _editor()
        editor.body_part = "Neck"
        with pytest.raises(ValidationError):
            editor.commit()

    def test_participant_without_identity(self):
        editor = _editor()
        editor.body_part = "Legs"
        editor.add_participant()
        with pytest.raises(ValidationError) as exc_info:
            editor.commit()
        assert any("participant 2" in p for p in exc_info.value.problems)

    def test_commit_builds_session(self):
        editor = _editor()
        editor.body_part = "Chest"
        editor.add_exercise_to_session("Bench Press")
        editor.update_set(0, 0, 0, weight=100, reps=5)
        session = editor.commit()
        assert session.sync_code == "GYM42"
        assert session.created_by == "alice"
        assert session.creator_name == "Alice"
        assert session.date == TODAY
        assert session.type == "Chest"
        assert session.id
        assert session.created_at.tzinfo is not None

    def test_commit_is_a_deep_copy(self):
        editor = _editor()
        editor.body_part = "Chest"
        editor.add_exercise_to_session("Bench Press")
        session = editor.commit()
        editor.update_set(0, 0, 0, weight=120)
        assert session.participants[0].exercises[0].sets[0].weight == 0

    def test_round_trip_through_aggregation(self):
        editor = _editor()
        editor.body_part = "Legs"
        editor.add_participant()
        editor.select_user_for_participant(1, User(id="bob", name="Bob"))
        for name in ("Squat", "Lunges", "Calf Raise"):
            editor.add_exercise_to_session(name)
        session = editor.commit()
        assert exercises_for_user([session], "alice") == {"Squat", "Lunges", "Calf Raise"}
        assert exercises_for_user([session], "bob") == {"Squat", "Lunges", "Calf Raise"}

    def test_reset(self):
        editor = _editor()
        editor.body_part = "Chest"
        editor.add_exercise_to_session("Bench Press")
        editor.add_participant()
        editor.reset()
        assert editor.body_part == ""
        assert editor.shared_exercise_names == []
        assert len(editor.participants) == 1


# ---------------------------------------------------------------------------
# Property tests
# ---------------------------------------------------------------------------

_operations = st.lists(
    st.one_of(
        st.tuples(st.just("add_exercise"), st.sampled_from(["Squat", "Lunges", "Leg Press", "Calf Raise"])),
        st.tuples(st.just("remove_exercise"), st.sampled_from(["Squat", "Lunges", "Leg Press", "Calf Raise"])),
        st.tuples(st.just("add_participant"), st.none()),
        st.tuples(st.just("remove_participant"), st.integers(min_value=0, max_value=3)),
        st.tuples(st.just("add_set"), st.integers(min_value=0, max_value=10)),
        st.tuples(st.just("remove_set"), st.integers(min_value=0, max_value=10)),
    ),
    max_size=40,
)


def _apply(editor: SessionEditor, op: str, arg) -> None:
    if op == "add_exercise":
        editor.add_exercise_to_session(arg)
    elif op == "remove_exercise":
        editor.remove_exercise_from_session(arg)
    elif op == "add_participant":
        editor.add_participant()
    elif op == "remove_participant":
        editor.remove_participant(arg)
    elif editor.shared_exercise_names:
        p_idx = arg % len(editor.participants)
        e_idx = arg % len(editor.shared_exercise_names)
        if op == "add_set":
            editor.add_set(p_idx, e_idx)
        else:
            editor.remove_set(p_idx, e_idx, arg % 4)


@given(_operations)
@settings(max_examples=100)
def test_editor_invariants_hold(operations):
    editor = _editor()
    for op, arg in operations:
        _apply(editor, op, arg)
        for idx, participant in enumerate(editor.participants):
            assert _names(editor, idx) == editor.shared_exercise_names
            for exercise in participant.exercises:
                assert exercise.sets
                assert [s.set_number for s in exercise.sets] == list(range(1, len(exercise.sets) + 1))
        assert len(editor.participants) >= 1
