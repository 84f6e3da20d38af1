from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GradingEntry:
    min_mark: int
    max_mark: int
    grade: str
    point_value: float


# UTHM scale, highest band first. Table order is display order.
GRADING_SCALE: tuple[GradingEntry, ...] = (
    GradingEntry(90, 100, "A+", 4.00),
    GradingEntry(85, 89, "A", 4.00),
    GradingEntry(80, 84, "A-", 3.67),
    GradingEntry(75, 79, "B+", 3.33),
    GradingEntry(70, 74, "B", 3.00),
    GradingEntry(65, 69, "B-", 2.67),
    GradingEntry(60, 64, "C+", 2.33),
    GradingEntry(55, 59, "C", 2.00),
    GradingEntry(50, 54, "C-", 1.67),
    GradingEntry(45, 49, "D+", 1.33),
    GradingEntry(40, 44, "D", 1.00),
    GradingEntry(35, 39, "D-", 0.67),
    GradingEntry(0, 34, "F", 0.00),
)

FAIL_GRADE = "F"


def grade_from_marks(marks: float) -> tuple[str, float]:
    """Map a percentage mark to ``(grade, point_value)``.

    Marks are rounded half up before the lookup, so 84.5 lands in the 85-89
    band. Anything that matches no band (negative, above 100, NaN) is an F.
    """
    if not math.isfinite(marks):
        return FAIL_GRADE, 0.0
    rounded = math.floor(marks + 0.5)
    for entry in GRADING_SCALE:
        if entry.min_mark <= rounded <= entry.max_mark:
            return entry.grade, entry.point_value
    return FAIL_GRADE, 0.0


def entry_for_grade(grade: str) -> GradingEntry | None:
    for entry in GRADING_SCALE:
        if entry.grade == grade:
            return entry
    return None


def point_from_grade(grade: str) -> float:
    entry = entry_for_grade(grade)
    return entry.point_value if entry else 0.0


def min_mark_for_grade(grade: str) -> int | None:
    entry = entry_for_grade(grade)
    return entry.min_mark if entry else None


def available_grades() -> list[str]:
    return [entry.grade for entry in GRADING_SCALE]
