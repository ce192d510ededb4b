import os
import sys
import io
import json
import unittest
from contextlib import redirect_stdout, redirect_stderr

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from cli import (
    backup_db,
    demo_data,
    export_collections,
    import_browser,
    main,
    print_report,
    restore_db,
    write_chart,
)
from db import Collection, RecordStore
from models import DeserializationError


class CLIToolsTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_cli.db"
        self.db2_path = "test_cli_import.db"
        self.yaml_path = "test_cli.yaml"
        self.json_path = "test_cli_export.json"
        self.png_path = "test_cli_chart.png"
        self.backup_path = "test_cli_backup.db"
        self._cleanup()

    def tearDown(self) -> None:
        self._cleanup()

    def _cleanup(self) -> None:
        for path in [
            self.db_path,
            self.db2_path,
            self.yaml_path,
            self.json_path,
            self.png_path,
            self.backup_path,
        ]:
            if os.path.exists(path):
                os.remove(path)

    def _quiet(self, func, *args):
        with redirect_stdout(io.StringIO()):
            return func(*args)

    def test_demo_data(self) -> None:
        self._quiet(demo_data, self.db_path, 3)
        sessions = RecordStore(db_path=self.db_path).get_sessions()
        self.assertEqual(len(sessions), 3)
        self.assertEqual(sessions[0].id, "demo-2")
        self.assertTrue(all(len(s.exercises) == 3 for s in sessions))
        out = io.StringIO()
        with redirect_stdout(out):
            demo_data(self.db_path, 3)
        self.assertIn("already contains", out.getvalue())
        self.assertEqual(len(RecordStore(db_path=self.db_path).get_sessions()), 3)

    def test_export_import(self) -> None:
        self._quiet(demo_data, self.db_path, 2)
        export_collections(self.db_path, self.json_path)
        with open(self.json_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(len(data[Collection.EXERCISES.value]), 8)
        self.assertEqual(len(data[Collection.SESSIONS.value]), 2)
        self.assertEqual(data[Collection.SAVED_WORKOUTS.value], [])
        self.assertIn("date", data[Collection.SESSIONS.value][0])

        counts = import_browser(self.json_path, self.db2_path)
        self.assertEqual(
            counts,
            {
                "fitness_exercises": 8,
                "fitness_sessions": 2,
                "fitness_saved_workouts": 0,
            },
        )
        original = RecordStore(db_path=self.db_path).get_sessions()
        imported = RecordStore(db_path=self.db2_path).get_sessions()
        self.assertEqual(imported, original)

    def test_import_browser_strings(self) -> None:
        sessions = [
            {
                "id": "1711878000000",
                "date": "2026-03-31T09:40:00.000Z",
                "exercises": [],
                "totalCalories": 120,
                "totalDuration": 15,
                "saved": False,
            }
        ]
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump({"fitness_sessions": json.dumps(sessions)}, f)
        counts = import_browser(self.json_path, self.db_path)
        self.assertEqual(counts, {"fitness_sessions": 1})
        store = RecordStore(db_path=self.db_path)
        self.assertEqual(store.get_sessions()[0].total_calories, 120)
        self.assertEqual(len(store.get_exercises()), 8)

    def test_import_rejects_malformed(self) -> None:
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "fitness_exercises": [],
                    "fitness_sessions": [{"id": "x", "date": "soon"}],
                },
                f,
            )
        with self.assertRaises(DeserializationError):
            import_browser(self.json_path, self.db_path)
        store = RecordStore(db_path=self.db_path)
        self.assertEqual(len(store.get_exercises()), 8)
        with redirect_stderr(io.StringIO()):
            code = main(["import_browser", "--json", self.json_path, "--db", self.db_path])
        self.assertEqual(code, 1)

    def test_import_rejects_duplicate_exercise_ids(self) -> None:
        exercise = {
            "id": "1",
            "name": "Push-up",
            "muscleGroup": "Ngực",
            "instructions": "Push",
            "reps": 15,
            "calories": 7,
            "duration": 2,
        }
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "fitness_exercises": [exercise, dict(exercise, name="Wide Push-up")],
                    "fitness_sessions": [],
                },
                f,
            )
        with self.assertRaises(DeserializationError) as ctx:
            import_browser(self.json_path, self.db_path)
        self.assertIn("duplicate exercise ids: 1", str(ctx.exception))
        store = RecordStore(db_path=self.db_path)
        self.assertIsNone(store.kv.get(Collection.EXERCISES.value))
        self.assertIsNone(store.kv.get(Collection.SESSIONS.value))

    def test_backup_restore(self) -> None:
        self._quiet(demo_data, self.db_path, 1)
        backup_db(self.db_path, self.backup_path)
        self.assertTrue(os.path.exists(self.backup_path))
        os.remove(self.db_path)
        restore_db(self.backup_path, self.db_path)
        self.assertEqual(len(RecordStore(db_path=self.db_path).get_sessions()), 1)

    def test_print_report(self) -> None:
        self._quiet(demo_data, self.db_path, 3)
        out = io.StringIO()
        with redirect_stdout(out):
            report = print_report(self.db_path, self.yaml_path, "week")
        self.assertEqual(report["summary"]["count"], 3)
        self.assertEqual(len(report["daily"]), 3)
        self.assertIn("week: 3 sessions", out.getvalue())

    def test_write_chart(self) -> None:
        self.assertFalse(
            self._quiet(write_chart, self.db_path, self.yaml_path, "week", self.png_path)
        )
        self._quiet(demo_data, self.db_path, 2)
        self.assertTrue(
            write_chart(self.db_path, self.yaml_path, "week", self.png_path)
        )
        with open(self.png_path, "rb") as f:
            self.assertEqual(f.read(4), b"\x89PNG")

    def test_main_commands(self) -> None:
        with redirect_stdout(io.StringIO()):
            self.assertEqual(main(["demo", "--db", self.db_path, "--days", "2"]), 0)
            self.assertEqual(
                main(["report", "--db", self.db_path, "--yaml", self.yaml_path]), 0
            )
            self.assertEqual(
                main(["delete_template", "--db", self.db_path, "--id", "missing"]), 0
            )
        self.assertEqual(len(RecordStore(db_path=self.db_path).get_sessions()), 2)


if __name__ == "__main__":
    unittest.main()
