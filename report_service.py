from __future__ import annotations
import datetime
from typing import Callable, Dict, Iterable, List, Optional

from db import RecordStore, SettingsRepository
from models import MuscleGroup, TimeWindow, WorkoutSession
from tools import DateTools, MathTools


class ReportService:
    """Aggregate recorded sessions into report statistics.

    All aggregation methods take the sessions explicitly and never modify
    them; :meth:`report` reads the current session log from the store.
    """

    def __init__(
        self,
        store: RecordStore,
        settings_repo: SettingsRepository | None = None,
        timezone: str | None = None,
        chart_days: int | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings_repo
        self._timezone = timezone
        self._chart_days = chart_days
        self.clock = clock or (
            lambda: datetime.datetime.now(datetime.timezone.utc)
        )

    @property
    def timezone(self) -> str:
        if self._timezone:
            return self._timezone
        if self.settings is not None:
            return self.settings.get_text("timezone", "UTC")
        return "UTC"

    @property
    def chart_days(self) -> int:
        if self._chart_days:
            return self._chart_days
        if self.settings is not None:
            return self.settings.get_int("chart_days", 7)
        return 7

    def filter_by_window(
        self,
        sessions: Iterable[WorkoutSession],
        window: TimeWindow | str,
        now: Optional[datetime.datetime] = None,
        timezone: Optional[str] = None,
    ) -> List[WorkoutSession]:
        """Return sessions at or after the start of ``window``, in input order."""
        start = DateTools.window_start(
            window, now or self.clock(), timezone or self.timezone
        )
        return [s for s in sessions if s.timestamp >= start]

    @staticmethod
    def summarize(sessions: Iterable[WorkoutSession]) -> Dict[str, int]:
        """Return total calories, minutes and number of sessions."""
        calories = 0
        duration = 0
        count = 0
        for s in sessions:
            calories += s.total_calories
            duration += s.total_duration
            count += 1
        return {"calories": calories, "duration": duration, "count": count}

    def bucket_by_day(
        self,
        sessions: Iterable[WorkoutSession],
        limit: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> List[Dict[str, object]]:
        """Return per-day calories and minutes for the most recent days."""
        limit = self.chart_days if limit is None else limit
        tz = timezone or self.timezone
        by_date: Dict[datetime.date, Dict[str, int]] = {}
        for s in sessions:
            day = DateTools.local_date(s.timestamp, tz)
            entry = by_date.setdefault(day, {"calories": 0, "duration": 0})
            entry["calories"] += s.total_calories
            entry["duration"] += s.total_duration
        days = sorted(by_date)[-limit:] if limit > 0 else []
        result = []
        for d in days:
            data = by_date[d]
            result.append(
                {
                    "date": d.isoformat(),
                    "label": DateTools.day_label(d),
                    "calories": data["calories"],
                    "duration": data["duration"],
                }
            )
        return result

    @staticmethod
    def category_distribution(
        sessions: Iterable[WorkoutSession],
    ) -> List[Dict[str, object]]:
        """Count exercise entries per muscle group.

        Each entry in a session counts once regardless of its set count.
        Groups that never occur are left out.
        """
        counts: Dict[MuscleGroup, int] = {}
        for s in sessions:
            for we in s.exercises:
                group = we.exercise.muscle_group
                counts[group] = counts.get(group, 0) + 1
        total = sum(counts.values())
        return [
            {
                "category": group.value,
                "count": counts[group],
                "percent": MathTools.percent(counts[group], total),
            }
            for group in MuscleGroup
            if group in counts
        ]

    def report(
        self,
        window: TimeWindow | str = TimeWindow.WEEK,
        now: Optional[datetime.datetime] = None,
    ) -> Dict[str, object]:
        """Return summary, daily series and category share for ``window``."""
        tz = self.timezone
        sessions = self.filter_by_window(
            self.store.get_sessions(), window, now, timezone=tz
        )
        return {
            "window": TimeWindow(window).value,
            "summary": self.summarize(sessions),
            "daily": self.bucket_by_day(sessions, self.chart_days, timezone=tz),
            "categories": self.category_distribution(sessions),
        }

    def report_chart_png(
        self,
        window: TimeWindow | str = TimeWindow.WEEK,
        now: Optional[datetime.datetime] = None,
    ) -> bytes:
        """Return a PNG with daily calories bars and a duration line."""
        daily = self.report(window, now)["daily"]
        if not daily:
            return b""
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from io import BytesIO

        labels = [d["label"] for d in daily]
        fig, ax = plt.subplots()
        ax.bar(labels, [d["calories"] for d in daily], color="#f97316", label="Calories")
        ax.set_xlabel("Date")
        ax.set_ylabel("Calories")
        ax2 = ax.twinx()
        ax2.plot(
            labels,
            [d["duration"] for d in daily],
            color="#3b82f6",
            marker="o",
            label="Duration (min)",
        )
        ax2.set_ylabel("Minutes")
        ax.set_title(f"Activity ({TimeWindow(window).value})")
        fig.tight_layout()
        buf = BytesIO()
        fig.savefig(buf, format="png")
        plt.close(fig)
        return buf.getvalue()
