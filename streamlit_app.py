import datetime
import os
import warnings
from contextlib import contextmanager
from typing import Generator

import altair as alt
import pandas as pd
import streamlit as st
from altair.utils.deprecation import AltairDeprecationWarning

warnings.filterwarnings("ignore", category=AltairDeprecationWarning)

from catalog_service import ExerciseCatalogService
from db import RecordStore, SettingsRepository
from localization import translator
from models import MuscleGroup, TimeWindow
from report_service import ReportService
from tools import DateTools
from workout_service import WorkoutService, WorkoutSessionRecorder

_ = translator.gettext


class FitnessApp:
    """Streamlit application for recording workouts and viewing reports."""

    CATEGORY_COLORS = ["#f97316", "#22c55e", "#3b82f6", "#a855f7", "#eab308", "#ec4899"]

    def __init__(
        self, db_path: str = "fitness.db", yaml_path: str = "settings.yaml"
    ) -> None:
        self.settings_repo = SettingsRepository(db_path, yaml_path)
        translator.set_language(self.settings_repo.get_text("language", "en"))
        self.default_window = self.settings_repo.get_text("default_time_window", "week")
        self.timezone = self.settings_repo.get_text("timezone", "UTC")
        self._configure_page()
        self.store = RecordStore(db_path=db_path)
        self.catalog = ExerciseCatalogService(self.store)
        self.workouts = WorkoutService(
            self.store, default_sets=self.settings_repo.get_int("default_sets", 3)
        )
        self.reports = ReportService(self.store, self.settings_repo, timezone=self.timezone)
        self._state_init()

    def _configure_page(self) -> None:
        if st.session_state.get("layout_set"):
            return
        if os.environ.get("TEST_MODE") != "1":
            st.set_page_config(page_title="Fitness Tracker", page_icon="🏋️", layout="wide")
        st.session_state.layout_set = True

    def _state_init(self) -> None:
        if "recorder" not in st.session_state:
            st.session_state.recorder = self.workouts.new_recorder()
        if "flash" not in st.session_state:
            st.session_state.flash = None

    @property
    def recorder(self) -> WorkoutSessionRecorder:
        return st.session_state.recorder

    def _local(self, value: datetime.datetime) -> datetime.datetime:
        return DateTools.local_time(value, self.timezone)

    def _flash(self, message: str) -> None:
        st.session_state.flash = message

    def _clear_workout_widgets(self) -> None:
        for key in [k for k in st.session_state if str(k).startswith("wo_")]:
            del st.session_state[key]

    def _show_flash(self) -> None:
        if st.session_state.flash:
            st.success(st.session_state.flash)
            st.session_state.flash = None

    @contextmanager
    def _section(self, title: str) -> Generator[None, None, None]:
        st.header(_(title))
        yield

    def _metric_grid(self, metrics: list[tuple[str, str]]) -> None:
        cols = st.columns(len(metrics))
        for col, (label, val) in zip(cols, metrics):
            with col:
                st.metric(label, val)

    def _bar_chart(self, df: pd.DataFrame, x: str, y: str, color: str, title: str) -> None:
        chart = (
            alt.Chart(df)
            .mark_bar(color=color)
            .encode(
                x=alt.X(f"{x}:N", title=None, sort=None),
                y=alt.Y(f"{y}:Q", title=title),
            )
        )
        st.altair_chart(chart, use_container_width=True)

    def _line_chart(self, df: pd.DataFrame, x: str, y: str, color: str, title: str) -> None:
        chart = (
            alt.Chart(df)
            .mark_line(color=color, point=True)
            .encode(
                x=alt.X(f"{x}:N", title=None, sort=None),
                y=alt.Y(f"{y}:Q", title=title),
            )
        )
        st.altair_chart(chart, use_container_width=True)

    def _pie_chart(self, df: pd.DataFrame) -> None:
        chart = (
            alt.Chart(df)
            .mark_arc()
            .encode(
                theta=alt.Theta("count:Q"),
                color=alt.Color(
                    "category:N",
                    scale=alt.Scale(range=self.CATEGORY_COLORS),
                    legend=alt.Legend(title=_("Muscle Group")),
                ),
                tooltip=["category", "count", "percent"],
            )
        )
        st.altair_chart(chart, use_container_width=True)

    def _dashboard_tab(self) -> None:
        with self._section("Dashboard"):
            summary = self.reports.report(TimeWindow.WEEK)["summary"]
            self._metric_grid(
                [
                    (_("Total Sessions"), str(summary["count"])),
                    (_("Total Calories"), f"{summary['calories']} cal"),
                    (_("Total Duration"), f"{summary['duration']} min"),
                ]
            )
            recent = self.workouts.list_sessions()[:5]
            for s in recent:
                names = ", ".join(we.exercise.name for we in s.exercises)
                st.write(
                    f"{self._local(s.timestamp):%d/%m/%Y %H:%M} · {names} · "
                    f"{s.total_calories} cal · {s.total_duration} min"
                )

    def _workout_tab(self) -> None:
        with self._section("Workout"):
            step = self.recorder.step
            if step == WorkoutSessionRecorder.SELECT:
                self._select_exercises()
            elif step == WorkoutSessionRecorder.ACTIVE:
                self._active_exercise()
            else:
                self._complete_workout()

    def _select_exercises(self) -> None:
        rec = self.recorder
        options = [""] + MuscleGroup.labels()
        current = rec.muscle_group.value if rec.muscle_group else ""
        group = st.selectbox(
            _("Muscle Group"), options, index=options.index(current), key="wo_group"
        )
        if group:
            for ex in rec.choose_muscle_group(group):
                selected = rec.is_selected(ex)
                checked = st.checkbox(
                    f"{ex.name} · {ex.reps} reps · {ex.calories} cal · {ex.duration} min",
                    value=selected,
                    key=f"wo_pick_{ex.id}",
                )
                if checked != selected:
                    rec.toggle_exercise(ex)
        if rec.selected:
            sets = st.number_input(
                _("Sets"),
                min_value=1,
                max_value=10,
                value=rec.selected[0].sets,
                step=1,
                key="wo_sets",
            )
            if any(we.sets != int(sets) for we in rec.selected):
                rec.set_sets(int(sets))
            calories, duration = rec.totals()
            st.caption(
                f"{len(rec.selected)} · {calories} cal · {duration} min"
            )
            if st.button(_("Start Workout"), key="wo_start"):
                rec.start()
                st.rerun()

    def _active_exercise(self) -> None:
        rec = self.recorder
        current = rec.current_exercise
        st.progress(int(rec.progress))
        st.subheader(
            f"{rec.current_index + 1}/{len(rec.selected)} · {current.exercise.name}"
        )
        if current.exercise.image_url:
            st.image(current.exercise.image_url, width=320)
        st.write(current.exercise.instructions)
        st.write(f"{current.sets} × {current.exercise.reps} reps")
        if rec.is_last:
            if st.button(_("Finish"), key="wo_finish"):
                rec.finish()
                st.rerun()
        elif st.button(_("Next Exercise"), key="wo_next"):
            rec.next_exercise()
            st.rerun()

    def _complete_workout(self) -> None:
        rec = self.recorder
        calories, duration = rec.totals()
        self._metric_grid(
            [
                (_("Total Calories"), f"{calories} cal"),
                (_("Total Duration"), f"{duration} min"),
            ]
        )
        name = st.text_input(_("Workout Name"), key="wo_name")
        save_template = st.checkbox(_("Save as template"), key="wo_save_template")
        if st.button(_("Save Result"), key="wo_save"):
            _session, saved = rec.complete(save_template, name)
            self._clear_workout_widgets()
            self._flash(_("Workout saved") + (f": {saved.name}" if saved else ""))
            st.rerun()

    def _add_exercise_tab(self) -> None:
        with self._section("Add Exercise"):
            with st.form("add_exercise_form"):
                name = st.text_input(_("Exercise Name"), key="ax_name")
                group = st.selectbox(
                    _("Muscle Group"), [""] + MuscleGroup.labels(), key="ax_group"
                )
                instructions = st.text_area(_("Instructions"), key="ax_instructions")
                cols = st.columns(3)
                with cols[0]:
                    reps = st.number_input(_("Reps"), min_value=1, value=10, key="ax_reps")
                with cols[1]:
                    calories = st.number_input(
                        _("Calories"), min_value=1, value=5, key="ax_calories"
                    )
                with cols[2]:
                    duration = st.number_input(
                        _("Duration (min)"), min_value=1, value=2, key="ax_duration"
                    )
                image_url = st.text_input("Image URL", key="ax_image")
                submitted = st.form_submit_button(_("Add Exercise"))
            if submitted:
                exercise, errors = self.catalog.add_exercise(
                    name,
                    group,
                    instructions,
                    int(reps),
                    int(calories),
                    int(duration),
                    image_url,
                )
                for msg in errors:
                    st.error(_(msg))
                if exercise is not None:
                    st.success(f"{_('Exercise added')} {exercise.name}")

    def _history_tab(self) -> None:
        with self._section("History"):
            saved = self.workouts.list_saved_workouts()
            if not saved:
                st.info(_("No saved workouts yet"))
                return
            for w in saved:
                label = f"{w.name} · {w.muscle_group.value} · {self._local(w.timestamp):%d/%m/%Y}"
                with st.expander(label):
                    for we in w.exercises:
                        st.write(f"• {we.exercise.name} - {we.sets} sets × {we.exercise.reps} reps")
                    st.caption(f"{w.total_calories} cal · {w.total_duration} min")
                    cols = st.columns(2)
                    with cols[0]:
                        if st.button(_("Do Again"), key=f"hist_again_{w.id}"):
                            st.session_state.recorder = self.workouts.recorder_from_template(w.id)
                            self._clear_workout_widgets()
                            st.rerun()
                    with cols[1]:
                        if st.button(_("Delete"), key=f"hist_del_{w.id}"):
                            self.workouts.delete_saved_workout(w.id)
                            st.rerun()

    def _reports_tab(self) -> None:
        with self._section("Reports"):
            windows = [w.value for w in TimeWindow]
            default = windows.index(self.default_window) if self.default_window in windows else 1
            window = st.radio(
                _("Reports"),
                windows,
                index=default,
                format_func=_,
                horizontal=True,
                key="rep_window",
                label_visibility="collapsed",
            )
            report = self.reports.report(window)
            summary = report["summary"]
            self._metric_grid(
                [
                    (_("Total Calories"), f"{summary['calories']} cal"),
                    (_("Total Duration"), f"{summary['duration']} min"),
                    (_("Total Sessions"), str(summary["count"])),
                ]
            )
            if report["daily"]:
                daily = pd.DataFrame(report["daily"])
                st.subheader(_("Calories per Day"))
                self._bar_chart(daily, "label", "calories", "#f97316", "Calories")
                st.subheader(_("Duration per Day"))
                self._line_chart(daily, "label", "duration", "#3b82f6", _("Duration (min)"))
            if report["categories"]:
                st.subheader(_("Muscle Group Distribution"))
                self._pie_chart(pd.DataFrame(report["categories"]))

    def run(self) -> None:
        st.title("Fitness Tracker")
        self._show_flash()
        dash, workout, add, history, reports = st.tabs(
            [_("Dashboard"), _("Workout"), _("Add Exercise"), _("History"), _("Reports")]
        )
        with dash:
            self._dashboard_tab()
        with workout:
            self._workout_tab()
        with add:
            self._add_exercise_tab()
        with history:
            self._history_tab()
        with reports:
            self._reports_tab()


if __name__ == "__main__":
    db_path = os.environ.get("DB_PATH", "fitness.db")
    yaml_path = os.environ.get("YAML_PATH", "settings.yaml")
    FitnessApp(db_path=db_path, yaml_path=yaml_path).run()
