from __future__ import annotations
import datetime
import uuid
from collections import Counter
from typing import Callable, List, Optional, Tuple

from db import RecordStore
from models import (
    Exercise,
    MuscleGroup,
    SavedWorkout,
    WorkoutExercise,
    WorkoutSession,
)
from tools import MathTools


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class WorkoutSessionRecorder:
    """Step through an ad-hoc workout and record the finished session.

    The recorder moves through ``select`` (choosing exercises), ``active``
    (performing them one by one) and ``complete`` (waiting to be saved).
    """

    SELECT = "select"
    ACTIVE = "active"
    COMPLETE = "complete"

    def __init__(
        self,
        store: RecordStore,
        default_sets: int = 3,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.store = store
        self.default_sets = MathTools.clamp_sets(default_sets)
        self.clock = clock or _utcnow
        self.step = self.SELECT
        self.muscle_group: MuscleGroup | None = None
        self.selected: list[WorkoutExercise] = []
        self.current_index = 0

    def choose_muscle_group(self, muscle_group: MuscleGroup | str) -> List[Exercise]:
        """Remember ``muscle_group`` and return the catalog entries for it."""
        self.muscle_group = MuscleGroup(muscle_group)
        return [
            e for e in self.store.get_exercises() if e.muscle_group is self.muscle_group
        ]

    def is_selected(self, exercise: Exercise) -> bool:
        return any(we.exercise.id == exercise.id for we in self.selected)

    def toggle_exercise(self, exercise: Exercise) -> bool:
        """Add or remove ``exercise``; return whether it is now selected."""
        self._require(self.SELECT)
        if self.is_selected(exercise):
            self.selected = [we for we in self.selected if we.exercise.id != exercise.id]
            return False
        self.selected.append(WorkoutExercise(exercise=exercise, sets=self.default_sets))
        return True

    def set_sets(self, sets: int) -> int:
        """Apply one set count to every selected exercise."""
        value = MathTools.clamp_sets(sets)
        self.default_sets = value
        self.selected = [we.model_copy(update={"sets": value}) for we in self.selected]
        return value

    def set_actual_duration(self, index: int, minutes: int | None) -> None:
        if not 0 <= index < len(self.selected):
            raise ValueError("exercise index out of range")
        if minutes is not None and minutes < 0:
            raise ValueError("duration must be non-negative")
        self.selected[index] = self.selected[index].model_copy(
            update={"actual_duration": minutes}
        )

    def load_template(self, workout: SavedWorkout) -> None:
        """Pre-fill the selection from a saved workout."""
        self._require(self.SELECT)
        self.muscle_group = workout.muscle_group
        self.selected = [
            WorkoutExercise(exercise=we.exercise, sets=we.sets) for we in workout.exercises
        ]

    def start(self) -> None:
        self._require(self.SELECT)
        if not self.selected:
            raise ValueError("select at least one exercise")
        self.step = self.ACTIVE
        self.current_index = 0

    @property
    def current_exercise(self) -> Optional[WorkoutExercise]:
        if self.step != self.ACTIVE or not self.selected:
            return None
        return self.selected[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.selected) - 1

    @property
    def progress(self) -> float:
        """Percentage of exercises reached so far."""
        if not self.selected:
            return 0.0
        return (self.current_index + 1) / len(self.selected) * 100.0

    def next_exercise(self) -> WorkoutExercise:
        self._require(self.ACTIVE)
        if self.is_last:
            raise ValueError("already at the last exercise")
        self.current_index += 1
        return self.selected[self.current_index]

    def finish(self) -> None:
        self._require(self.ACTIVE)
        self.step = self.COMPLETE

    def totals(self) -> Tuple[int, int]:
        return MathTools.workout_totals(self.selected)

    def _primary_group(self) -> MuscleGroup:
        if self.muscle_group is not None:
            return self.muscle_group
        counts = Counter(we.exercise.muscle_group for we in self.selected)
        return counts.most_common(1)[0][0]

    def complete(
        self, save_template: bool, name: str | None = None
    ) -> Tuple[WorkoutSession, Optional[SavedWorkout]]:
        """Store the session and, when requested with a name, a template."""
        self._require(self.COMPLETE)
        calories, duration = self.totals()
        now = self.clock()
        session = WorkoutSession(
            id=_new_id(),
            timestamp=now,
            exercises=list(self.selected),
            total_calories=calories,
            total_duration=duration,
            saved=save_template,
        )
        self.store.add_session(session)
        saved = None
        if save_template and name and name.strip():
            saved = SavedWorkout(
                id=_new_id(),
                name=name.strip(),
                timestamp=now,
                muscle_group=self._primary_group(),
                exercises=list(self.selected),
                total_calories=calories,
                total_duration=duration,
            )
            self.store.add_saved_workout(saved)
        self.reset()
        return session, saved

    def reset(self) -> None:
        self.step = self.SELECT
        self.muscle_group = None
        self.selected = []
        self.current_index = 0

    def _require(self, step: str) -> None:
        if self.step != step:
            raise ValueError(f"workout is {self.step}, expected {step}")


class WorkoutService:
    """Access to recorded sessions and saved workout templates."""

    def __init__(
        self,
        store: RecordStore,
        default_sets: int = 3,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.store = store
        self.default_sets = default_sets
        self.clock = clock

    def new_recorder(self) -> WorkoutSessionRecorder:
        return WorkoutSessionRecorder(self.store, self.default_sets, self.clock)

    def recorder_from_template(self, workout_id: str) -> WorkoutSessionRecorder:
        recorder = self.new_recorder()
        recorder.load_template(self.fetch_saved_workout(workout_id))
        return recorder

    def list_sessions(self) -> List[WorkoutSession]:
        return sorted(self.store.get_sessions(), key=lambda s: s.timestamp, reverse=True)

    def list_saved_workouts(self) -> List[SavedWorkout]:
        return sorted(
            self.store.get_saved_workouts(), key=lambda w: w.timestamp, reverse=True
        )

    def fetch_saved_workout(self, workout_id: str) -> SavedWorkout:
        for workout in self.store.get_saved_workouts():
            if workout.id == workout_id:
                return workout
        raise ValueError("saved workout not found")

    def delete_saved_workout(self, workout_id: str) -> None:
        self.store.delete_saved_workout(workout_id)
