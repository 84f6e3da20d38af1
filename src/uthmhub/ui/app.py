from __future__ import annotations

from datetime import datetime
from typing import Optional

import flet as ft

from uthmhub.config.logger import get_logger
from uthmhub.config.settings import settings
from uthmhub.core.grading import available_grades
from uthmhub.core.predictor import (
    PlannedSubject,
    calculate_final_exam_score,
    calculate_min_grades,
    calculate_required_gpa,
)
from uthmhub.core.study import (
    STUDY_SUBJECTS,
    daily_goal_progress,
    elapsed_seconds,
    format_duration,
    format_duration_short,
)
from uthmhub.services.appwrite_service import AppwriteService, AppwriteServiceError
from uthmhub.services.profile_service import ProfileService, ProfileServiceError
from uthmhub.services.semester_service import SemesterService, SemesterServiceError
from uthmhub.services.storage import Storage
from uthmhub.services.study_service import StudyService

log = get_logger("ui")

CREDIT_OPTIONS = [1, 2, 3, 4, 5, 6]


def _float(field: ft.TextField, label: str) -> float:
    try:
        return float(field.value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be a number") from exc


def _int(field: ft.TextField, label: str) -> int:
    try:
        return int(field.value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be a whole number") from exc


class UthmHubApp:
    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self.page.title = "UTHMhub"
        self.page.scroll = ft.ScrollMode.AUTO
        self.store = Storage(settings.db_path)
        self.semesters = SemesterService(self.store)
        self.profile = ProfileService(self.store)

        self.cloud: Optional[AppwriteService] = None
        if settings.appwrite_configured:
            try:
                self.cloud = AppwriteService.from_settings()
            except AppwriteServiceError as exc:
                log.warning("Cloud sync disabled: %s", exc)
        self.study = StudyService(self.store, uploader=self.cloud)
        self.session_started: Optional[datetime] = None

    def run(self) -> None:
        self.page.clean()

        calculator_container = ft.Container()
        predictor_container = ft.Container()
        study_container = ft.Container()
        profile_container = ft.Container()

        def refresh_all() -> None:
            calculator_container.content = self.calculator_view(refresh_all)
            predictor_container.content = self.predictor_view()
            study_container.content = self.study_view(refresh_all)
            profile_container.content = self.profile_view(refresh_all)
            self.page.update()

        tabs = ft.Tabs(
            selected_index=0,
            tabs=[
                ft.Tab(text="Calculator", content=calculator_container),
                ft.Tab(text="Predictor", content=predictor_container),
                ft.Tab(text="Study", content=study_container),
                ft.Tab(text="Profile", content=profile_container),
            ],
            expand=1,
        )

        self.page.add(ft.Text("UTHMhub", size=28, weight=ft.FontWeight.BOLD), tabs)
        refresh_all()

    def _sync_profile(self) -> None:
        uid = settings.user_id
        if self.cloud is None or not uid:
            return
        try:
            self.cloud.sync_profile(
                uid,
                name=self.profile.display_name(),
                cgpa=self.semesters.cgpa(),
                total_credits=self.semesters.total_credits(),
            )
        except AppwriteServiceError as exc:
            log.warning("Profile sync failed: %s", exc)

    def calculator_view(self, refresh_all) -> ft.Control:
        error = ft.Text(color=ft.Colors.RED)
        grades = available_grades()

        def run_action(action) -> None:
            try:
                action()
                self._sync_profile()
                refresh_all()
            except (SemesterServiceError, ValueError) as exc:
                error.value = str(exc)
                self.page.update()

        transcript = ft.TextField(label="Paste transcript text", multiline=True, min_lines=3, max_lines=8)

        def import_transcript(_: ft.ControlEvent) -> None:
            run_action(lambda: self.semesters.import_transcript(transcript.value or ""))

        def semester_card(sem) -> ft.Control:
            code = ft.TextField(label="Code", width=120)
            name = ft.TextField(label="Name", width=220)
            credit = ft.Dropdown(label="Credits", width=100, options=[ft.dropdown.Option(str(c)) for c in CREDIT_OPTIONS], value="3")
            mode = ft.Dropdown(label="By", width=110, options=[ft.dropdown.Option("grade", "Grade"), ft.dropdown.Option("marks", "Marks")], value="grade")
            grade = ft.Dropdown(label="Grade", width=100, options=[ft.dropdown.Option(g) for g in grades], value="A")
            marks = ft.TextField(label="Marks %", width=100, value="85")
            rename = ft.TextField(label="Semester name", value=sem.name, width=260)

            def add_subject(_: ft.ControlEvent) -> None:
                def action() -> None:
                    by_marks = mode.value == "marks"
                    self.semesters.add_subject(
                        sem.id,
                        code=code.value or "",
                        name=name.value or "",
                        credit_hour=int(credit.value),
                        grade=None if by_marks else grade.value,
                        marks=_float(marks, "Marks") if by_marks else None,
                    )

                run_action(action)

            subject_rows = [
                ft.Row(
                    [
                        ft.Text(f"{s.code} {s.name} ({s.credit_hour} cr) • {s.grade} • {s.point_value:.2f}"),
                        ft.Dropdown(
                            width=90,
                            options=[ft.dropdown.Option(g) for g in grades],
                            value=s.grade or None,
                            on_change=lambda e, sid=s.id: run_action(
                                lambda: self.semesters.set_subject_grade(sem.id, sid, e.control.value)
                            ),
                        ),
                        ft.IconButton(
                            icon=ft.Icons.DELETE,
                            on_click=lambda _, sid=s.id: run_action(lambda: self.semesters.remove_subject(sem.id, sid)),
                        ),
                    ],
                    alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                )
                for s in sem.subjects
            ] or [ft.Text("No subjects yet")]

            return ft.Card(
                content=ft.Container(
                    padding=12,
                    content=ft.Column(
                        [
                            ft.Row(
                                [
                                    ft.Text(f"{sem.name} • GPA {sem.gpa:.2f} • {sem.credits} cr", weight=ft.FontWeight.BOLD),
                                    ft.IconButton(
                                        icon=ft.Icons.DELETE,
                                        on_click=lambda _: run_action(lambda: self.semesters.remove_semester(sem.id)),
                                    ),
                                ],
                                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                            ),
                            ft.Row(
                                [
                                    rename,
                                    ft.TextButton(
                                        "Rename",
                                        on_click=lambda _: run_action(lambda: self.semesters.rename_semester(sem.id, rename.value or "")),
                                    ),
                                ]
                            ),
                            *subject_rows,
                            ft.Row([code, name, credit]),
                            ft.Row([mode, grade, marks]),
                            ft.ElevatedButton("Add Subject", on_click=add_subject),
                        ]
                    ),
                )
            )

        semesters = self.semesters.list_semesters()
        trend_lines = [
            ft.Text(f"{label}: GPA {gpa:.2f} → CGPA {cgpa:.2f}") for label, gpa, cgpa in self.semesters.trend()
        ] or [ft.Text("No semesters yet")]
        subject_count = sum(len(s.subjects) for s in semesters)

        return ft.Column(
            [
                ft.Text(f"Cumulative CGPA: {self.semesters.cgpa():.2f}", size=22, weight=ft.FontWeight.BOLD),
                ft.Text(f"{len(semesters)} semesters • {subject_count} subjects • {self.semesters.total_credits()} credits"),
                ft.Row(
                    [
                        ft.ElevatedButton("Add Semester", on_click=lambda _: run_action(lambda: self.semesters.add_semester())),
                    ]
                ),
                transcript,
                ft.OutlinedButton("Import Transcript", on_click=import_transcript),
                error,
                ft.Divider(),
                *[semester_card(sem) for sem in semesters],
                ft.Divider(),
                ft.Text("CGPA Trend", size=20, weight=ft.FontWeight.BOLD),
                *trend_lines,
            ]
        )

    def predictor_view(self) -> ft.Control:
        current = ft.TextField(label="Current CGPA", value=f"{self.semesters.cgpa():.2f}", width=160)
        completed = ft.TextField(label="Credits completed", value=str(self.semesters.total_credits()), width=160)
        target = ft.TextField(label="Target CGPA", value="3.50", width=160)
        next_credits = ft.TextField(label="Next semester credits", value="18", width=180)
        required_text = ft.Text()

        def on_required(_: ft.ControlEvent) -> None:
            try:
                result = calculate_required_gpa(
                    _float(current, "Current CGPA"),
                    _int(completed, "Credits completed"),
                    _float(target, "Target CGPA"),
                    _int(next_credits, "Next semester credits"),
                )
                required_text.value = result.message
                required_text.color = ft.Colors.GREEN if result.achievable else ft.Colors.RED
            except ValueError as exc:
                required_text.value = str(exc)
                required_text.color = ft.Colors.RED
            self.page.update()

        target_gpa = ft.TextField(label="Target semester GPA", value="3.00", width=180)
        planned = ft.TextField(
            label="Subjects (one per line: CODE, Name, credits)",
            multiline=True,
            min_lines=3,
            max_lines=8,
        )
        min_grades = ft.Column()

        def on_min_grades(_: ft.ControlEvent) -> None:
            min_grades.controls.clear()
            try:
                subjects = []
                for line in (planned.value or "").splitlines():
                    parts = [p.strip() for p in line.split(",")]
                    if len(parts) != 3:
                        continue
                    subjects.append(PlannedSubject(code=parts[0], name=parts[1], credit_hour=int(parts[2])))
                for row in calculate_min_grades(_float(target_gpa, "Target GPA"), subjects):
                    min_grades.controls.append(
                        ft.Text(f"{row.code} {row.name} ({row.credit_hour} cr): at least {row.min_grade} ({row.min_point:.2f})")
                    )
            except ValueError as exc:
                min_grades.controls.append(ft.Text(str(exc), color=ft.Colors.RED))
            self.page.update()

        carry = ft.TextField(label="Carry mark %", value="70", width=140)
        carry_weight = ft.TextField(label="Carry weight %", value="60", width=140)
        target_grade = ft.Dropdown(label="Target grade", width=120, options=[ft.dropdown.Option(g) for g in available_grades()], value="A")
        final_text = ft.Text()

        def on_final(_: ft.ControlEvent) -> None:
            try:
                result = calculate_final_exam_score(
                    _float(carry, "Carry mark"),
                    _float(carry_weight, "Carry weight"),
                    target_grade.value,
                )
                final_text.value = result.message
                final_text.color = ft.Colors.GREEN if result.achievable else ft.Colors.RED
            except ValueError as exc:
                final_text.value = str(exc)
                final_text.color = ft.Colors.RED
            self.page.update()

        return ft.Column(
            [
                ft.Text("Required GPA next semester", size=20, weight=ft.FontWeight.BOLD),
                ft.Row([current, completed]),
                ft.Row([target, next_credits]),
                ft.ElevatedButton("Calculate", on_click=on_required),
                required_text,
                ft.Divider(),
                ft.Text("Minimum grade per subject", size=20, weight=ft.FontWeight.BOLD),
                target_gpa,
                planned,
                ft.ElevatedButton("Calculate", on_click=on_min_grades),
                min_grades,
                ft.Divider(),
                ft.Text("Final exam target", size=20, weight=ft.FontWeight.BOLD),
                ft.Row([carry, carry_weight, target_grade]),
                ft.ElevatedButton("Calculate", on_click=on_final),
                final_text,
            ]
        )

    def study_view(self, refresh_all) -> ft.Control:
        subject = ft.Dropdown(label="Subject", options=[ft.dropdown.Option(s) for s in STUDY_SUBJECTS], value=STUDY_SUBJECTS[0])
        status = ft.Text()

        def start(_: ft.ControlEvent) -> None:
            self.session_started = datetime.now()
            status.value = f"Studying since {self.session_started.strftime('%H:%M:%S')}"
            self.page.update()

        def stop(_: ft.ControlEvent) -> None:
            if self.session_started is None:
                return
            started, self.session_started = self.session_started, None
            elapsed = elapsed_seconds(started)
            saved = self.study.finish_session(
                subject.value,
                started,
                datetime.now(),
                uid=settings.user_id or None,
            )
            if saved is None:
                status.value = f"Session too short ({format_duration(elapsed)}), not saved"
                self.page.update()
                return
            refresh_all()

        today = self.study.today_total()
        goal_seconds = int(settings.daily_goal_hours * 3600)

        return ft.Column(
            [
                ft.Text(f"Today: {format_duration(today)}", size=22, weight=ft.FontWeight.BOLD),
                ft.ProgressBar(value=daily_goal_progress(today, goal_seconds), width=320),
                ft.Text(f"Daily goal: {format_duration_short(goal_seconds)}"),
                ft.Text(f"This week: {format_duration_short(self.study.week_total())}"),
                ft.Text(f"Day streak: {self.study.streak()}"),
                ft.Divider(),
                subject,
                ft.Row(
                    [
                        ft.ElevatedButton("Start", on_click=start),
                        ft.OutlinedButton("Stop", on_click=stop),
                    ]
                ),
                status,
            ]
        )

    def profile_view(self, refresh_all) -> ft.Control:
        nickname = ft.TextField(label="Nickname", value=self.profile.nickname(), hint_text="Your display name", width=320)
        status = ft.Text()

        def save(_: ft.ControlEvent) -> None:
            try:
                self.profile.set_nickname(nickname.value or "")
            except ProfileServiceError as exc:
                status.value = str(exc)
                status.color = ft.Colors.RED
                self.page.update()
                return
            self._sync_profile()
            refresh_all()

        cloud_state = "Cloud sync on" if self.cloud is not None and settings.user_id else "Cloud sync off"
        return ft.Column(
            [
                ft.Text(self.profile.display_name(), size=22, weight=ft.FontWeight.BOLD),
                ft.Text(cloud_state),
                nickname,
                ft.ElevatedButton("Save", on_click=save),
                status,
            ]
        )


def main(page: ft.Page) -> None:
    UthmHubApp(page).run()
