"""In-memory builder for a new session.

All participants share one exercise list: adding or removing an exercise
applies to every participant, while sets, weights and reps stay independent.
Nothing here talks to the record store; ``commit()`` only produces the
Session to persist.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date

from .catalog import BODY_PARTS, DEFAULT_AVATAR, available_exercises
from .context import SyncContext
from .errors import ValidationError
from .models import Exercise, ExerciseSet, ParticipantData, Session, User, new_id, utc_now

logger = logging.getLogger(__name__)


class SessionEditor:
    def __init__(self, context: SyncContext, *, today: date | None = None) -> None:
        self.context = context
        self._today = today
        self.reset()

    def reset(self) -> None:
        """Start a fresh draft with the active user as the only participant."""
        self.date: date | None = self._today or date.today()
        self.body_part: str = ""
        self.shared_exercise_names: list[str] = []
        self.participants: list[ParticipantData] = [ParticipantData.snapshot(self.context.user)]

    # --- participants -----------------------------------------------------

    def add_participant(self) -> ParticipantData:
        participant = ParticipantData(
            user_avatar=DEFAULT_AVATAR,
            exercises=[Exercise.blank(name) for name in self.shared_exercise_names],
            notes="",
        )
        self.participants.append(participant)
        return participant

    def remove_participant(self, index: int) -> None:
        if len(self.participants) <= 1:
            logger.debug("Refusing to remove the last participant")
            return
        if not 0 <= index < len(self.participants):
            return
        del self.participants[index]

    def select_user_for_participant(self, index: int, user: User) -> None:
        participant = self.participants[index]
        participant.user_id = user.id
        participant.user_name = user.name
        participant.user_avatar = user.avatar

    def set_notes(self, index: int, notes: str) -> None:
        self.participants[index].notes = notes

    # --- shared exercises -------------------------------------------------

    def available_exercises(self, custom: Mapping[str, Sequence[str]] | None = None) -> list[str]:
        return available_exercises(self.body_part, custom)

    def add_exercise_to_session(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self.shared_exercise_names.append(name)
        for participant in self.participants:
            participant.exercises.append(Exercise.blank(name))

    def remove_exercise_from_session(self, name: str) -> None:
        self.shared_exercise_names = [n for n in self.shared_exercise_names if n != name]
        for participant in self.participants:
            participant.exercises = [e for e in participant.exercises if e.exercise_name != name]

    # --- sets -------------------------------------------------------------

    def _exercise(self, participant_idx: int, exercise_idx: int) -> Exercise:
        return self.participants[participant_idx].exercises[exercise_idx]

    def add_set(self, participant_idx: int, exercise_idx: int) -> ExerciseSet:
        exercise = self._exercise(participant_idx, exercise_idx)
        new_set = ExerciseSet(set_number=len(exercise.sets) + 1)
        exercise.sets.append(new_set)
        return new_set

    def remove_set(self, participant_idx: int, exercise_idx: int, set_idx: int) -> None:
        """Drop one set and renumber the rest from 1.

        The last remaining set is never removed, so an exercise always keeps
        at least one set.
        """
        exercise = self._exercise(participant_idx, exercise_idx)
        if len(exercise.sets) <= 1:
            logger.debug("Refusing to remove the only set of %s", exercise.exercise_name)
            return
        if not 0 <= set_idx < len(exercise.sets):
            return
        del exercise.sets[set_idx]
        for number, remaining in enumerate(exercise.sets, start=1):
            remaining.set_number = number

    def update_set(
        self,
        participant_idx: int,
        exercise_idx: int,
        set_idx: int,
        *,
        weight: float | None = None,
        reps: int | None = None,
    ) -> None:
        target = self._exercise(participant_idx, exercise_idx).sets[set_idx]
        if weight is not None:
            if weight < 0:
                raise ValueError("weight must be >= 0")
            target.weight = float(weight)
        if reps is not None:
            if reps < 0:
                raise ValueError("reps must be >= 0")
            target.reps = int(reps)

    # --- commit -----------------------------------------------------------

    def validate(self) -> list[str]:
        problems: list[str] = []
        if self.date is None:
            problems.append("date is required")
        if not self.body_part:
            problems.append("body part is required")
        elif self.body_part not in BODY_PARTS:
            problems.append(f"unknown body part {self.body_part!r}")
        for idx, participant in enumerate(self.participants, start=1):
            if not participant.user_id:
                problems.append(f"participant {idx} has no person selected")
            for exercise in participant.exercises:
                if not exercise.sets:
                    problems.append(
                        f"participant {idx} has no sets for {exercise.exercise_name}"
                    )
        return problems

    def commit(self) -> Session:
        """Build the Session to persist, or raise ValidationError."""
        problems = self.validate()
        if problems:
            raise ValidationError(problems)

        user = self.context.user
        return Session(
            id=new_id(),
            sync_code=self.context.sync_code,
            created_by=user.id,
            creator_name=user.name,
            creator_avatar=user.avatar,
            date=self.date,
            type=self.body_part,
            participants=[p.model_copy(deep=True) for p in self.participants],
            created_at=utc_now(),
        )
