"""Best-effort conversion of OCR'd transcript text into subjects.

The input is whatever the OCR engine produced from a results-slip screenshot,
so nothing here is guaranteed: codes, names, credits and grades are pulled
out with loose patterns and sensible defaults fill the gaps. Users are
expected to fix the result by hand.
"""

from __future__ import annotations

import re
from typing import List, Optional

from uthmhub.models.entities import Subject

DEFAULT_CREDIT = 3
DEFAULT_GRADE = "A"

HEADER_RE = re.compile(r"GRADE|STATUS|ASSESSMENT|SYSTEM|LETTER", re.IGNORECASE)
CODE_RE = re.compile(r"([a-zA-Z]{3,4}\d{4,5})")
NAME_RE = re.compile(r"^([a-zA-Z\s&\-,()]+)")
NOISE_RE = re.compile(r"DT NORMAL|DT|NORMAL|PC|NA", re.IGNORECASE)
CREDIT_RE = re.compile(r"(?:^|\s)([1-6])(?=\s)")
# \b does not work around '+' and '-', so grades are delimited by whitespace.
GRADE_RE = re.compile(r"(?:^|\s)(A\+|A-|A|B\+|B-|B|C\+|C-|C|D\+|D-|D|F)(?=\s|$)", re.IGNORECASE)
STRAY_RE = re.compile(r"PASS|FAIL|PC|NA", re.IGNORECASE)


def _find_credit(text: str) -> Optional[int]:
    # Slips print "section credit" next to each other; the second digit is the credit.
    numbers = [int(n) for n in CREDIT_RE.findall(text)]
    if not numbers:
        return None
    return numbers[1] if len(numbers) > 1 else numbers[0]


def _find_grade(text: str) -> Optional[str]:
    match = GRADE_RE.search(text)
    return match.group(1).upper() if match else None


class _Draft:
    def __init__(self, code: str, name: str, credit_hour: int, grade: Optional[str]) -> None:
        self.code = code
        self.name = name
        self.credit_hour = credit_hour
        self.grade = grade

    def close(self) -> Subject:
        return Subject.from_grade(self.code, self.name, self.credit_hour, self.grade or DEFAULT_GRADE)


def parse_transcript_text(text: str) -> List[Subject]:
    lines = [line.strip() for line in text.splitlines()]
    subjects: List[Subject] = []
    current: Optional[_Draft] = None
    unknown_count = 1

    for line in lines:
        if not line or HEADER_RE.search(line):
            continue

        code_match = CODE_RE.search(line)
        grade = _find_grade(line)

        if code_match:
            if current is not None:
                subjects.append(current.close())

            code = code_match.group(1).upper()
            after_code = line[code_match.end():].strip()
            name_match = NAME_RE.match(after_code)
            name = name_match.group(1).strip() if name_match else "Unknown Subject"
            name = NOISE_RE.sub("", name).strip()

            current = _Draft(
                code=code,
                name=name or "Unknown",
                credit_hour=_find_credit(after_code) or DEFAULT_CREDIT,
                grade=grade,
            )
        elif current is not None:
            if current.grade is None and grade:
                current.grade = grade
            if current.credit_hour == DEFAULT_CREDIT:
                credit = _find_credit(line)
                if credit:
                    current.credit_hour = credit
        elif grade and STRAY_RE.search(line):
            subjects.append(Subject.from_grade(f"???{unknown_count}", "Tap edit icon →", DEFAULT_CREDIT, grade))
            unknown_count += 1

    if current is not None:
        subjects.append(current.close())

    return subjects
