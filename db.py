import sqlite3
import logging
from contextlib import contextmanager
from enum import Enum
from typing import List, Tuple, Optional, Iterable

from pydantic import TypeAdapter, ValidationError

from config import APP_VERSION, YamlConfig
from models import (
    DeserializationError,
    Exercise,
    MuscleGroup,
    SavedWorkout,
    WorkoutSession,
)
from settings_schema import validate_settings

logger = logging.getLogger(__name__)


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "storage": (
            """CREATE TABLE storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str = "fitness.db") -> None:
        self._db_path = db_path
        self._ensure_schema()
        self._init_settings()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")

    def _init_settings(self) -> None:
        defaults = {
            "language": "en",
            "timezone": "UTC",
            "default_time_window": "week",
            "chart_days": "7",
            "default_sets": "3",
            "app_version": APP_VERSION,
        }
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    def _delete_all(self, table: str) -> None:
        self.execute(f"DELETE FROM {table};")


class SQLiteKeyValueStore(BaseRepository):
    """Key-value substrate holding one text blob per key."""

    def get(self, key: str) -> Optional[str]:
        rows = self.fetch_all("SELECT value FROM storage WHERE key = ?;", (key,))
        return rows[0][0] if rows else None

    def set(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO storage (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )

    def delete(self, key: str) -> None:
        self.execute("DELETE FROM storage WHERE key = ?;", (key,))

    def keys(self) -> List[str]:
        return [r[0] for r in self.fetch_all("SELECT key FROM storage ORDER BY key;")]

    def clear(self) -> None:
        self._delete_all("storage")


class MemoryKeyValueStore:
    """In-process key-value substrate with the same interface as SQLite."""

    def __init__(self, data: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)

    def clear(self) -> None:
        self._data.clear()


class Collection(str, Enum):
    """Storage keys of the three persisted collections."""

    EXERCISES = "fitness_exercises"
    SESSIONS = "fitness_sessions"
    SAVED_WORKOUTS = "fitness_saved_workouts"


DEFAULT_EXERCISES: List[Exercise] = [
    Exercise(
        id="1",
        name="Push-up",
        muscle_group=MuscleGroup.CHEST,
        instructions="Nằm sấp, đặt tay rộng bằng vai, đẩy người lên xuống",
        reps=15,
        calories=7,
        duration=2,
        image_url="https://images.unsplash.com/photo-1571019614242-c5c5dee9f50b?w=400",
    ),
    Exercise(
        id="2",
        name="Squat",
        muscle_group=MuscleGroup.LEGS,
        instructions="Đứng thẳng, chân rộng bằng vai, ngồi xuống như ngồi ghế",
        reps=20,
        calories=10,
        duration=3,
        image_url="https://images.unsplash.com/photo-1574680096145-d05b474e2155?w=400",
    ),
    Exercise(
        id="3",
        name="Plank",
        muscle_group=MuscleGroup.ABS,
        instructions="Chống tay hoặc khuỷu tay, giữ thẳng người",
        reps=1,
        calories=5,
        duration=1,
        image_url="https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=400",
    ),
    Exercise(
        id="4",
        name="Bicep Curl",
        muscle_group=MuscleGroup.ARMS,
        instructions="Cầm tạ, uốn cong tay về phía vai",
        reps=12,
        calories=6,
        duration=2,
        image_url="https://images.unsplash.com/photo-1581009146145-b5ef050c2e1e?w=400",
    ),
    Exercise(
        id="5",
        name="Shoulder Press",
        muscle_group=MuscleGroup.SHOULDERS,
        instructions="Đẩy tạ từ vai lên trên đầu",
        reps=10,
        calories=8,
        duration=2,
        image_url="https://images.unsplash.com/photo-1583454110551-21f2fa2afe61?w=400",
    ),
    Exercise(
        id="6",
        name="Pull-up",
        muscle_group=MuscleGroup.BACK,
        instructions="Treo xà đơn, kéo người lên đến khi cằm qua xà",
        reps=8,
        calories=9,
        duration=2,
        image_url="https://images.unsplash.com/photo-1605296867304-46d5465a13f1?w=400",
    ),
    Exercise(
        id="7",
        name="Crunch",
        muscle_group=MuscleGroup.ABS,
        instructions="Nằm ngửa, gập bụng lên",
        reps=20,
        calories=5,
        duration=2,
        image_url="https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=400",
    ),
    Exercise(
        id="8",
        name="Lunge",
        muscle_group=MuscleGroup.LEGS,
        instructions="Bước chân về phía trước, hạ thấp người xuống",
        reps=15,
        calories=8,
        duration=3,
        image_url="https://images.unsplash.com/photo-1574680096145-d05b474e2155?w=400",
    ),
]


class RecordStore:
    """Reads and writes whole collections as JSON blobs.

    Every write replaces the stored collection; ``add`` and
    ``delete_saved_workout`` are read-modify-write cycles and are not safe
    against a second concurrent writer.
    """

    _ADAPTERS = {
        Collection.EXERCISES: TypeAdapter(List[Exercise]),
        Collection.SESSIONS: TypeAdapter(List[WorkoutSession]),
        Collection.SAVED_WORKOUTS: TypeAdapter(List[SavedWorkout]),
    }
    _RECORD_TYPES = {
        Collection.EXERCISES: Exercise,
        Collection.SESSIONS: WorkoutSession,
        Collection.SAVED_WORKOUTS: SavedWorkout,
    }

    def __init__(self, kv=None, db_path: str = "fitness.db") -> None:
        self.kv = kv if kv is not None else SQLiteKeyValueStore(db_path)

    @staticmethod
    def _default(collection: Collection) -> list:
        if collection is Collection.EXERCISES:
            return list(DEFAULT_EXERCISES)
        return []

    def decode(self, collection: Collection | str, raw: str) -> list:
        """Parse ``raw`` into records or raise :class:`DeserializationError`."""
        collection = Collection(collection)
        try:
            return self._ADAPTERS[collection].validate_json(raw)
        except ValidationError as e:
            raise DeserializationError(collection.value, str(e)) from e

    def encode(self, collection: Collection | str, items: Iterable) -> str:
        collection = Collection(collection)
        record_type = self._RECORD_TYPES[collection]
        items = list(items)
        for item in items:
            if not isinstance(item, record_type):
                raise TypeError(
                    f"{collection.value} holds {record_type.__name__} records, "
                    f"got {type(item).__name__}"
                )
        return self._ADAPTERS[collection].dump_json(items, by_alias=True).decode(
            "utf-8"
        )

    def get(self, collection: Collection | str) -> list:
        collection = Collection(collection)
        raw = self.kv.get(collection.value)
        if raw is None:
            return self._default(collection)
        try:
            return self.decode(collection, raw)
        except DeserializationError as e:
            logger.warning("Ignoring malformed %s data: %s", collection.value, e)
            return self._default(collection)

    def put(self, collection: Collection | str, items: Iterable) -> None:
        collection = Collection(collection)
        self.kv.set(collection.value, self.encode(collection, items))

    def add(self, collection: Collection | str, item) -> None:
        items = self.get(collection)
        items.append(item)
        self.put(collection, items)

    def delete_saved_workout(self, workout_id: str) -> None:
        workouts = self.get(Collection.SAVED_WORKOUTS)
        remaining = [w for w in workouts if w.id != workout_id]
        if len(remaining) == len(workouts):
            return
        self.put(Collection.SAVED_WORKOUTS, remaining)

    def get_exercises(self) -> List[Exercise]:
        return self.get(Collection.EXERCISES)

    def get_sessions(self) -> List[WorkoutSession]:
        return self.get(Collection.SESSIONS)

    def get_saved_workouts(self) -> List[SavedWorkout]:
        return self.get(Collection.SAVED_WORKOUTS)

    def add_exercise(self, exercise: Exercise) -> None:
        self.add(Collection.EXERCISES, exercise)

    def add_session(self, session: WorkoutSession) -> None:
        self.add(Collection.SESSIONS, session)

    def add_saved_workout(self, workout: SavedWorkout) -> None:
        self.add(Collection.SAVED_WORKOUTS, workout)


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    INT_KEYS = {"chart_days", "default_sets"}

    def __init__(
        self, db_path: str = "fitness.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, int | str] = {}
        for k, v in rows:
            if k in self.INT_KEYS:
                try:
                    result[k] = int(float(v))
                except ValueError:
                    result[k] = v
            else:
                result[k] = v
        return result

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_int(self, key: str, value: int) -> None:
        self.set_text(key, str(value))

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()
