from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from uthmhub.core.gpa import round_half_up
from uthmhub.core.grading import GRADING_SCALE, entry_for_grade

MAX_GPA = 4.0
MAX_MARK = 100.0
INVALID_INPUT_MESSAGE = "Inputs must be finite numbers."


@dataclass(frozen=True)
class PredictionResult:
    result: float
    achievable: bool
    message: str


@dataclass(frozen=True)
class PlannedSubject:
    code: str
    name: str
    credit_hour: int


@dataclass(frozen=True)
class MinGrade:
    code: str
    name: str
    credit_hour: int
    min_grade: str
    min_point: float


def calculate_required_gpa(
    current_cgpa: float,
    completed_credits: int,
    target_cgpa: float,
    next_credits: int,
) -> PredictionResult:
    """
    GPA needed next semester to reach ``target_cgpa``:

        required = (target * (completed + next) - current * completed) / next
    """
    if next_credits == 0:
        return PredictionResult(0.0, False, "No credits for next semester.")

    total = completed_credits + next_credits
    required = round_half_up(
        (target_cgpa * total - current_cgpa * completed_credits) / next_credits, 2
    )
    if not math.isfinite(required):
        return PredictionResult(0.0, False, INVALID_INPUT_MESSAGE)

    if required > MAX_GPA:
        return PredictionResult(
            required,
            False,
            f"You would need a GPA of {required:.2f}, which is above {MAX_GPA:.2f}. "
            "This target is not achievable in one semester.",
        )
    if required < 0:
        return PredictionResult(
            0.0,
            True,
            f"You've already exceeded this target! Any GPA will keep your CGPA above {target_cgpa:.2f}.",
        )
    return PredictionResult(
        required,
        True,
        f"You need at least {required:.2f} GPA next semester to achieve a {target_cgpa:.2f} CGPA.",
    )


def calculate_min_grades(target_gpa: float, subjects: Iterable[PlannedSubject]) -> list[MinGrade]:
    """Minimum grade per subject for a target semester GPA.

    Every subject is asked for the same point value, the target itself, so
    credit hours do not change which grade a subject needs. The lowest band
    whose point value reaches the target wins; a target above 4.00 saturates
    at A+.
    """
    ascending = list(reversed(GRADING_SCALE))
    match = next((entry for entry in ascending if entry.point_value >= target_gpa), None)
    min_grade = match.grade if match else GRADING_SCALE[0].grade
    min_point = match.point_value if match else MAX_GPA

    return [
        MinGrade(
            code=s.code,
            name=s.name,
            credit_hour=s.credit_hour,
            min_grade=min_grade,
            min_point=min_point,
        )
        for s in subjects
    ]


def calculate_final_exam_score(carry_mark: float, carry_weight: float, target_grade: str) -> PredictionResult:
    """
    Final exam percentage needed for ``target_grade``:

        total = carry * carry_weight/100 + final * (100 - carry_weight)/100
    """
    entry = entry_for_grade(target_grade)
    if entry is None:
        return PredictionResult(0.0, False, "Invalid grade.")

    final_weight = 100 - carry_weight
    if final_weight == 0:
        return PredictionResult(0.0, False, "Final exam has 0% weight.")

    carry_contribution = carry_mark * (carry_weight / 100)
    required = round_half_up((entry.min_mark - carry_contribution) / (final_weight / 100), 1)
    if not math.isfinite(required):
        return PredictionResult(0.0, False, INVALID_INPUT_MESSAGE)

    if required > MAX_MARK:
        return PredictionResult(
            required,
            False,
            f"You need {required:.1f}% on the final, which is not achievable (max 100%).",
        )
    if required < 0:
        return PredictionResult(
            0.0,
            True,
            f"You've already secured {target_grade} with your carry marks! Any final score will work.",
        )
    return PredictionResult(
        required,
        True,
        f"You need at least {required:.1f}% on the final exam to get {target_grade}.",
    )
