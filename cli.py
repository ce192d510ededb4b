import argparse
import datetime
import json
import logging
import shutil
import sys

from db import Collection, RecordStore, SettingsRepository
from models import DeserializationError, TimeWindow, WorkoutExercise, WorkoutSession
from report_service import ReportService
from tools import MathTools
from workout_service import WorkoutService

logger = logging.getLogger(__name__)


def export_collections(db_path: str, out_path: str) -> None:
    """Write all collections to one JSON file keyed like browser storage."""
    store = RecordStore(db_path=db_path)
    data = {}
    for collection in Collection:
        data[collection.value] = json.loads(
            store.encode(collection, store.get(collection))
        )
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info("Exported %s to %s", ", ".join(data), out_path)


def _duplicate_ids(records: list) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for record in records:
        if record.id in seen and record.id not in duplicates:
            duplicates.append(record.id)
        seen.add(record.id)
    return duplicates


def import_browser(json_path: str, db_path: str) -> dict[str, int]:
    """Import a browser storage export, replacing the stored collections.

    Each collection may be given as a JSON array or as the JSON text stored
    by the browser. Collections absent from the file are left untouched.
    A catalog repeating an exercise id is rejected and nothing is written.
    """
    store = RecordStore(db_path=db_path)
    with open(json_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    parsed = {}
    for collection in Collection:
        if collection.value not in data:
            continue
        raw = data[collection.value]
        if not isinstance(raw, str):
            raw = json.dumps(raw)
        parsed[collection] = store.decode(collection, raw)
    duplicates = _duplicate_ids(parsed.get(Collection.EXERCISES, []))
    if duplicates:
        raise DeserializationError(
            Collection.EXERCISES.value,
            f"duplicate exercise ids: {', '.join(duplicates)}",
        )
    for collection, items in parsed.items():
        store.put(collection, items)
        logger.info("Imported %d records into %s", len(items), collection.value)
    return {c.value: len(items) for c, items in parsed.items()}


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, days: int = 10) -> None:
    """Populate the session log with one demo session per day if empty."""
    store = RecordStore(db_path=db_path)
    if store.get_sessions():
        print("Database already contains sessions")
        return
    exercises = store.get_exercises()
    now = datetime.datetime.now(datetime.timezone.utc)
    sessions = []
    for offset in range(days):
        picked = [exercises[(offset + i) % len(exercises)] for i in range(3)]
        items = [WorkoutExercise(exercise=e, sets=3) for e in picked]
        calories, duration = MathTools.workout_totals(items)
        sessions.append(
            WorkoutSession(
                id=f"demo-{offset}",
                timestamp=now - datetime.timedelta(days=offset),
                exercises=items,
                total_calories=calories,
                total_duration=duration,
            )
        )
    store.put(Collection.SESSIONS, list(reversed(sessions)))
    print("Demo data inserted")


def print_report(db_path: str, yaml_path: str, window: str) -> dict:
    settings = SettingsRepository(db_path, yaml_path)
    service = ReportService(RecordStore(db_path=db_path), settings)
    report = service.report(window)
    summary = report["summary"]
    print(
        f"{report['window']}: {summary['count']} sessions, "
        f"{summary['calories']} cal, {summary['duration']} min"
    )
    for day in report["daily"]:
        print(f"  {day['label']}  {day['calories']:>6} cal  {day['duration']:>4} min")
    for cat in report["categories"]:
        print(f"  {cat['category']}: {cat['count']} ({cat['percent']}%)")
    return report


def write_chart(db_path: str, yaml_path: str, window: str, out_path: str) -> bool:
    settings = SettingsRepository(db_path, yaml_path)
    service = ReportService(RecordStore(db_path=db_path), settings)
    png = service.report_chart_png(window)
    if not png:
        print("No sessions in this window")
        return False
    with open(out_path, "wb") as f:
        f.write(png)
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Utility commands")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    windows = [w.value for w in TimeWindow]

    rep = sub.add_parser("report")
    rep.add_argument("--db", default="fitness.db")
    rep.add_argument("--yaml", default="settings.yaml")
    rep.add_argument("--window", choices=windows, default="week")

    chart = sub.add_parser("chart")
    chart.add_argument("--db", default="fitness.db")
    chart.add_argument("--yaml", default="settings.yaml")
    chart.add_argument("--window", choices=windows, default="week")
    chart.add_argument("--out", default="report.png")

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="fitness.db")
    exp.add_argument("--out", default="fitness_export.json")

    imp = sub.add_parser("import_browser")
    imp.add_argument("--json", required=True)
    imp.add_argument("--db", default="fitness.db")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="fitness.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="fitness.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="fitness.db")
    demo.add_argument("--days", type=int, default=10)

    dele = sub.add_parser("delete_template")
    dele.add_argument("--db", default="fitness.db")
    dele.add_argument("--id", required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "report":
        print_report(args.db, args.yaml, args.window)
    elif args.cmd == "chart":
        if not write_chart(args.db, args.yaml, args.window, args.out):
            return 1
    elif args.cmd == "export":
        export_collections(args.db, args.out)
    elif args.cmd == "import_browser":
        try:
            counts = import_browser(args.json, args.db)
        except (DeserializationError, json.JSONDecodeError) as e:
            print(f"Import failed: {e}", file=sys.stderr)
            return 1
        for key, count in counts.items():
            print(f"{key}: {count}")
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        demo_data(args.db, args.days)
    elif args.cmd == "delete_template":
        WorkoutService(RecordStore(db_path=args.db)).delete_saved_workout(args.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
