import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from catalog_service import ExerciseCatalogService
from db import Collection, DEFAULT_EXERCISES, MemoryKeyValueStore, RecordStore
from models import MuscleGroup


class ExerciseCatalogServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.kv = MemoryKeyValueStore()
        self.catalog = ExerciseCatalogService(RecordStore(self.kv))

    def test_list_by_muscle_group(self) -> None:
        self.assertEqual(len(self.catalog.list_exercises()), 8)
        self.assertEqual(len(self.catalog.list_exercises("")), 8)
        abs_names = [e.name for e in self.catalog.list_exercises(MuscleGroup.ABS)]
        self.assertEqual(abs_names, ["Plank", "Crunch"])
        self.assertEqual(
            [e.name for e in self.catalog.list_exercises("Lưng")], ["Pull-up"]
        )

    def test_fetch(self) -> None:
        self.assertEqual(self.catalog.fetch("4").name, "Bicep Curl")
        with self.assertRaises(ValueError):
            self.catalog.fetch("missing")

    def test_validate_missing_fields(self) -> None:
        errors = ExerciseCatalogService.validate("", None, "  ")
        self.assertEqual(
            errors,
            [
                "Exercise name is required",
                "Muscle group is required",
                "Instructions are required",
            ],
        )
        self.assertEqual(ExerciseCatalogService.validate("A", MuscleGroup.ARMS, "B"), [])

    def test_validate_unknown_group(self) -> None:
        errors = ExerciseCatalogService.validate("Burpee", "Legs", "Jump")
        self.assertEqual(errors, ["Unknown muscle group: Legs"])

    def test_invalid_exercise_not_stored(self) -> None:
        exercise, errors = self.catalog.add_exercise("", "Chân", "")
        self.assertIsNone(exercise)
        self.assertEqual(len(errors), 2)
        self.assertIsNone(self.kv.get(Collection.EXERCISES.value))

    def test_non_positive_numbers_rejected(self) -> None:
        exercise, errors = self.catalog.add_exercise("Burpee", "Chân", "Jump", reps=0)
        self.assertIsNone(exercise)
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("reps"))
        self.assertEqual(len(self.catalog.list_exercises()), 8)

    def test_add_exercise(self) -> None:
        exercise, errors = self.catalog.add_exercise(
            " Burpee ", "Chân", " Jump and squat ", image_url=""
        )
        self.assertEqual(errors, [])
        self.assertEqual(exercise.name, "Burpee")
        self.assertEqual(exercise.instructions, "Jump and squat")
        self.assertEqual((exercise.reps, exercise.calories, exercise.duration), (10, 5, 2))
        self.assertIsNone(exercise.image_url)
        self.assertNotIn(exercise.id, {e.id for e in DEFAULT_EXERCISES})
        exercises = self.catalog.list_exercises(MuscleGroup.LEGS)
        self.assertEqual([e.name for e in exercises], ["Squat", "Lunge", "Burpee"])

    def test_ids_are_unique(self) -> None:
        first, _ = self.catalog.add_exercise("A", "Tay", "x")
        second, _ = self.catalog.add_exercise("A", "Tay", "x")
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(len(self.catalog.list_exercises()), 10)


if __name__ == "__main__":
    unittest.main()
