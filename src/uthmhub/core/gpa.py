from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from uthmhub.models.entities import Semester, Subject


def round_half_up(value: float, places: int = 2) -> float:
    """Round on the scaled value with halves going up, e.g. 0.125 -> 0.13."""
    scale = 10 ** places
    scaled = value * scale
    if not math.isfinite(scaled):
        # NaN, infinities and values too large to scale come back unchanged.
        return value
    return math.floor(scaled + 0.5) / scale


def calculate_gpa(subjects: Iterable[Subject]) -> float:
    """
    GPA = Σ(credit_hour * point_value) / Σ(credit_hour)
    Empty input or zero total credits gives 0.0.
    """
    quality_points = 0.0
    total = 0
    for s in subjects:
        quality_points += s.credit_hour * s.point_value
        total += s.credit_hour
    if total == 0:
        return 0.0
    return round_half_up(quality_points / total, 2)


def calculate_cgpa(semesters: Iterable[Semester]) -> float:
    # Computed over every subject, not as an average of semester GPAs.
    return calculate_gpa(s for sem in semesters for s in sem.subjects)


def total_credits(semesters: Iterable[Semester]) -> int:
    return sum(s.credit_hour for sem in semesters for s in sem.subjects)


def cgpa_trend(semesters: Iterable[Semester]) -> list[tuple[str, float, float]]:
    """Per semester in order: (name, semester gpa, cgpa up to and including it)."""
    trend: list[tuple[str, float, float]] = []
    seen: list[Subject] = []
    for sem in semesters:
        seen.extend(sem.subjects)
        trend.append((sem.name, calculate_gpa(sem.subjects), calculate_gpa(seen)))
    return trend
