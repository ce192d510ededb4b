from __future__ import annotations
import uuid
from typing import List, Optional, Tuple

from pydantic import ValidationError

from db import RecordStore
from models import Exercise, MuscleGroup


class ExerciseCatalogService:
    """Browse the exercise catalog and add custom exercises."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def list_exercises(
        self, muscle_group: MuscleGroup | str | None = None
    ) -> List[Exercise]:
        exercises = self.store.get_exercises()
        if muscle_group is None or muscle_group == "":
            return exercises
        group = MuscleGroup(muscle_group)
        return [e for e in exercises if e.muscle_group is group]

    def fetch(self, exercise_id: str) -> Exercise:
        for exercise in self.store.get_exercises():
            if exercise.id == exercise_id:
                return exercise
        raise ValueError("exercise not found")

    @staticmethod
    def validate(
        name: str | None,
        muscle_group: MuscleGroup | str | None,
        instructions: str | None,
    ) -> List[str]:
        """Return user-facing messages for missing required fields."""
        errors: list[str] = []
        if not name or not name.strip():
            errors.append("Exercise name is required")
        if not muscle_group:
            errors.append("Muscle group is required")
        elif muscle_group not in MuscleGroup.labels():
            errors.append(f"Unknown muscle group: {muscle_group}")
        if not instructions or not instructions.strip():
            errors.append("Instructions are required")
        return errors

    def add_exercise(
        self,
        name: str | None,
        muscle_group: MuscleGroup | str | None,
        instructions: str | None,
        reps: int = 10,
        calories: int = 5,
        duration: int = 2,
        image_url: Optional[str] = None,
    ) -> Tuple[Optional[Exercise], List[str]]:
        """Create and store an exercise.

        Returns the new exercise and an empty list, or ``None`` and the
        messages explaining why nothing was stored.
        """
        errors = self.validate(name, muscle_group, instructions)
        if errors:
            return None, errors
        existing = {e.id for e in self.store.get_exercises()}
        new_id = uuid.uuid4().hex
        while new_id in existing:
            new_id = uuid.uuid4().hex
        try:
            exercise = Exercise(
                id=new_id,
                name=name.strip(),
                muscle_group=MuscleGroup(muscle_group),
                instructions=instructions.strip(),
                reps=reps,
                calories=calories,
                duration=duration,
                image_url=image_url or None,
            )
        except ValidationError as e:
            return None, [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
        self.store.add_exercise(exercise)
        return exercise, []
