import calendar
import datetime
from typing import Iterable, Tuple
from zoneinfo import ZoneInfo

from models import TimeWindow, WorkoutExercise


class MathTools:
    """Provides small arithmetic helpers for workout calculations."""

    MIN_SETS: int = 1
    MAX_SETS: int = 10

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @classmethod
    def clamp_sets(cls, sets: int) -> int:
        return int(cls.clamp(int(sets), cls.MIN_SETS, cls.MAX_SETS))

    @staticmethod
    def workout_totals(exercises: Iterable[WorkoutExercise]) -> Tuple[int, int]:
        """Return total calories and minutes as catalog estimate times sets."""
        calories = 0
        duration = 0
        for item in exercises:
            calories += item.calories
            duration += item.duration
        return calories, duration

    @staticmethod
    def percent(part: float, total: float, digits: int = 1) -> float:
        if total <= 0:
            return 0.0
        return round(part / total * 100.0, digits)


class DateTools:
    """Calendar arithmetic for report windows."""

    @staticmethod
    def shift_months(value: datetime.datetime, months: int) -> datetime.datetime:
        """Move ``value`` by whole calendar months keeping the day of month.

        Days that do not exist in the target month are clamped to its last
        day, so 31 March minus one month is 28 (or 29) February.
        """
        index = value.year * 12 + (value.month - 1) + months
        year, month = divmod(index, 12)
        month += 1
        last_day = calendar.monthrange(year, month)[1]
        return value.replace(year=year, month=month, day=min(value.day, last_day))

    @classmethod
    def window_start(
        cls,
        window: TimeWindow | str,
        now: datetime.datetime,
        timezone: str = "UTC",
    ) -> datetime.datetime:
        """Return the inclusive lower bound of ``window`` ending at ``now``."""
        try:
            window = TimeWindow(window)
        except ValueError:
            raise ValueError(f"unknown time window: {window}") from None
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)
        local = now.astimezone(ZoneInfo(timezone))
        if window is TimeWindow.DAY:
            return local - datetime.timedelta(days=1)
        if window is TimeWindow.WEEK:
            return local - datetime.timedelta(days=7)
        if window is TimeWindow.MONTH:
            return cls.shift_months(local, -1)
        return cls.shift_months(local, -12)

    @staticmethod
    def local_time(value: datetime.datetime, timezone: str = "UTC") -> datetime.datetime:
        return value.astimezone(ZoneInfo(timezone))

    @classmethod
    def local_date(cls, value: datetime.datetime, timezone: str = "UTC") -> datetime.date:
        return cls.local_time(value, timezone).date()

    @staticmethod
    def day_label(day: datetime.date) -> str:
        """Short day/month label shown on chart axes."""
        return day.strftime("%d/%m")
