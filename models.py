from __future__ import annotations
import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel


class DeserializationError(ValueError):
    """Raised when a persisted collection cannot be parsed back into records."""

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection


class MuscleGroup(str, Enum):
    """The six muscle-group labels an exercise can target."""

    ARMS = "Tay"
    CHEST = "Ngực"
    SHOULDERS = "Vai"
    LEGS = "Chân"
    ABS = "Bụng"
    BACK = "Lưng"

    @classmethod
    def labels(cls) -> list[str]:
        return [m.value for m in cls]


class TimeWindow(str, Enum):
    """Rolling look-back periods offered by the reports view."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Record(BaseModel):
    """Base for persisted records; JSON keys are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class Exercise(Record):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    muscle_group: MuscleGroup
    instructions: str
    reps: PositiveInt
    calories: PositiveInt
    duration: PositiveInt
    image_url: Optional[str] = None


class WorkoutExercise(Record):
    exercise: Exercise
    sets: PositiveInt
    actual_duration: Optional[int] = None

    @property
    def calories(self) -> int:
        return self.exercise.calories * self.sets

    @property
    def duration(self) -> int:
        return self.exercise.duration * self.sets


class WorkoutSession(Record):
    id: str
    timestamp: datetime.datetime = Field(alias="date")
    exercises: List[WorkoutExercise] = Field(default_factory=list)
    total_calories: int = 0
    total_duration: int = 0
    saved: bool = False

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime.datetime) -> datetime.datetime:
        return _as_utc(value)


class SavedWorkout(Record):
    id: str
    name: str
    timestamp: datetime.datetime = Field(alias="date")
    muscle_group: MuscleGroup
    exercises: List[WorkoutExercise] = Field(default_factory=list)
    total_calories: int = 0
    total_duration: int = 0

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime.datetime) -> datetime.datetime:
        return _as_utc(value)
