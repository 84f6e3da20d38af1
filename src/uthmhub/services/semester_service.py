from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from uthmhub.config.logger import get_logger
from uthmhub.core.gpa import calculate_cgpa, cgpa_trend, total_credits
from uthmhub.core.transcript import parse_transcript_text
from uthmhub.models.entities import Semester, Subject, new_id
from uthmhub.services.storage import SEMESTERS_KEY, Storage

log = get_logger("semesters")


class SemesterServiceError(Exception):
    pass


class SemesterService:
    """Owns the user's semester list and writes it back after every change."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._semesters = self._load()

    def _load(self) -> List[Semester]:
        stored = self.storage.get_json(SEMESTERS_KEY, [])
        if not isinstance(stored, list):
            log.warning("Ignoring stored semesters: expected a list, got %s", type(stored).__name__)
            return []
        semesters: List[Semester] = []
        for data in stored:
            if not isinstance(data, dict):
                log.warning("Skipping malformed semester record: %r", data)
                continue
            semesters.append(Semester.from_dict(data))
        return semesters

    def _save(self) -> None:
        self.storage.set_json(SEMESTERS_KEY, [s.to_dict() for s in self._semesters])

    def _semester(self, semester_id: str) -> Semester:
        for sem in self._semesters:
            if sem.id == semester_id:
                return sem
        raise SemesterServiceError(f"Semester not found: {semester_id}")

    def _subject_index(self, sem: Semester, subject_id: str) -> int:
        for idx, sub in enumerate(sem.subjects):
            if sub.id == subject_id:
                return idx
        raise SemesterServiceError(f"Subject not found: {subject_id}")

    @staticmethod
    def _check_credit(credit_hour: int) -> None:
        if credit_hour < 1:
            raise SemesterServiceError("Credit hour must be at least 1")

    def list_semesters(self) -> List[Semester]:
        return list(self._semesters)

    def get_semester(self, semester_id: str) -> Semester:
        return self._semester(semester_id)

    def add_semester(self, name: Optional[str] = None) -> Semester:
        sem = Semester(id=new_id(), name=name or f"Semester {len(self._semesters) + 1}")
        self._semesters.append(sem)
        self._save()
        return sem

    def rename_semester(self, semester_id: str, name: str) -> None:
        sem = self._semester(semester_id)
        sem.name = name.strip() or sem.name
        self._save()

    def remove_semester(self, semester_id: str) -> None:
        sem = self._semester(semester_id)
        self._semesters.remove(sem)
        self._save()

    def add_subject(
        self,
        semester_id: str,
        *,
        code: str,
        name: str,
        credit_hour: int,
        grade: Optional[str] = None,
        marks: Optional[float] = None,
    ) -> Subject:
        sem = self._semester(semester_id)
        self._check_credit(credit_hour)
        code = code.strip() or "SUB"
        name = name.strip() or "Subject"
        if marks is not None:
            subject = Subject.from_marks(code, name, credit_hour, marks)
        elif grade is not None:
            subject = Subject.from_grade(code, name, credit_hour, grade)
        else:
            raise SemesterServiceError("Either a grade or marks are required")
        sem.subjects.append(subject)
        self._save()
        return subject

    def edit_subject(self, semester_id: str, subject_id: str, *, code: str, name: str, credit_hour: int) -> Subject:
        sem = self._semester(semester_id)
        idx = self._subject_index(sem, subject_id)
        self._check_credit(credit_hour)
        updated = replace(
            sem.subjects[idx],
            code=code.strip() or "SUB",
            name=name.strip() or "Unknown",
            credit_hour=credit_hour,
        )
        sem.subjects[idx] = updated
        self._save()
        return updated

    def set_subject_grade(self, semester_id: str, subject_id: str, grade: str) -> Subject:
        sem = self._semester(semester_id)
        idx = self._subject_index(sem, subject_id)
        updated = sem.subjects[idx].with_grade(grade)
        sem.subjects[idx] = updated
        self._save()
        return updated

    def remove_subject(self, semester_id: str, subject_id: str) -> None:
        sem = self._semester(semester_id)
        del sem.subjects[self._subject_index(sem, subject_id)]
        self._save()

    def import_transcript(self, text: str) -> Semester:
        subjects = parse_transcript_text(text)
        if not subjects:
            raise SemesterServiceError(
                "Could not detect any valid subjects. Please try a clearer screenshot."
            )
        sem = Semester(
            id=new_id(),
            name=f"Extracted Semester {len(self._semesters) + 1}",
            subjects=subjects,
        )
        self._semesters.append(sem)
        self._save()
        log.info("Imported %d subjects into %s", len(subjects), sem.name)
        return sem

    def cgpa(self) -> float:
        return calculate_cgpa(self._semesters)

    def total_credits(self) -> int:
        return total_credits(self._semesters)

    def trend(self) -> List[tuple[str, float, float]]:
        return cgpa_trend(self._semesters)
