from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from uthmhub.config.logger import get_logger
from uthmhub.core.gpa import calculate_gpa
from uthmhub.core.grading import grade_from_marks, point_from_grade

log = get_logger("entities")


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Subject:
    id: str
    code: str
    name: str
    credit_hour: int
    grade: str
    point_value: float
    marks_percentage: Optional[float] = None

    @classmethod
    def from_grade(cls, code: str, name: str, credit_hour: int, grade: str, *, id: Optional[str] = None) -> "Subject":
        return cls(
            id=id or new_id(),
            code=code,
            name=name,
            credit_hour=credit_hour,
            grade=grade,
            point_value=point_from_grade(grade),
        )

    @classmethod
    def from_marks(cls, code: str, name: str, credit_hour: int, marks: float, *, id: Optional[str] = None) -> "Subject":
        grade, point_value = grade_from_marks(marks)
        return cls(
            id=id or new_id(),
            code=code,
            name=name,
            credit_hour=credit_hour,
            grade=grade,
            point_value=point_value,
            marks_percentage=marks,
        )

    def with_grade(self, grade: str) -> "Subject":
        return replace(self, grade=grade, point_value=point_from_grade(grade), marks_percentage=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "credit_hour": self.credit_hour,
            "grade": self.grade,
            "marks_percentage": self.marks_percentage,
            "point_value": self.point_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        marks = data.get("marks_percentage")
        grade = str(data.get("grade", ""))
        return cls(
            id=str(data.get("id") or new_id()),
            code=str(data.get("code", "")),
            name=str(data.get("name", "")),
            credit_hour=int(data.get("credit_hour", 0)),
            grade=grade,
            # Re-derived so a hand-edited point value cannot drift from the grade.
            point_value=point_from_grade(grade),
            marks_percentage=float(marks) if marks is not None else None,
        )


@dataclass
class Semester:
    id: str
    name: str
    subjects: List[Subject] = field(default_factory=list)

    @property
    def gpa(self) -> float:
        return calculate_gpa(self.subjects)

    @property
    def credits(self) -> int:
        return sum(s.credit_hour for s in self.subjects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "subjects": [s.to_dict() for s in self.subjects],
            "gpa": self.gpa,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Semester":
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data.get("name", "")),
            subjects=_load_subjects(data.get("subjects") or []),
        )


def _load_subjects(items: List[Any]) -> List[Subject]:
    subjects: List[Subject] = []
    if not isinstance(items, list):
        log.warning("Skipping malformed subject list: %r", items)
        return subjects
    for item in items:
        try:
            subjects.append(Subject.from_dict(item))
        except (AttributeError, TypeError, ValueError):
            log.warning("Skipping malformed subject record: %r", item)
    return subjects
