from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional

MIN_SESSION_SECONDS = 10
STREAK_DAY_SECONDS = 60
WEEK_DAYS = 7

STUDY_SUBJECTS = [
    "General",
    "Mathematics",
    "Programming",
    "Physics",
    "English",
    "Engineering",
    "Islamic Studies",
    "Other",
]


@dataclass(frozen=True)
class StudySession:
    id: str
    subject: str
    started_at: datetime
    ended_at: datetime
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudySession":
        return cls(
            id=str(data["id"]),
            subject=str(data.get("subject", "General")),
            started_at=datetime.fromisoformat(data["started_at"]),
            ended_at=datetime.fromisoformat(data["ended_at"]),
            duration=int(data.get("duration", 0)),
        )


@dataclass(frozen=True)
class DailyStudy:
    date: str
    total_seconds: int
    sessions: List[StudySession] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "total_seconds": self.total_seconds,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyStudy":
        return cls(
            date=str(data["date"]),
            total_seconds=int(data.get("total_seconds", 0)),
            sessions=[StudySession.from_dict(s) for s in data.get("sessions", [])],
        )


def day_key(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def record_session(history: List[DailyStudy], session: StudySession) -> List[DailyStudy]:
    """Add a finished session to its day. Sessions under 10 seconds are dropped."""
    if session.duration < MIN_SESSION_SECONDS:
        return list(history)

    key = day_key(session.started_at)
    updated: List[DailyStudy] = []
    found = False
    for day in history:
        if day.date == key:
            day = replace(
                day,
                total_seconds=day.total_seconds + session.duration,
                sessions=[*day.sessions, session],
            )
            found = True
        updated.append(day)
    if not found:
        updated.append(DailyStudy(date=key, total_seconds=session.duration, sessions=[session]))
    return updated


def total_for_day(history: List[DailyStudy], day: date) -> int:
    key = day_key(day)
    return sum(d.total_seconds for d in history if d.date == key)


def week_total(history: List[DailyStudy], today: date) -> int:
    total = 0
    for d in history:
        try:
            studied_on = date.fromisoformat(d.date)
        except ValueError:
            continue
        if (today - studied_on).days <= WEEK_DAYS:
            total += d.total_seconds
    return total


def study_streak(history: List[DailyStudy]) -> int:
    # Newest first; the streak ends at the first day under a minute.
    streak = 0
    for d in sorted(history, key=lambda d: d.date, reverse=True):
        if d.total_seconds < STREAK_DAY_SECONDS:
            break
        streak += 1
    return streak


def daily_goal_progress(total_seconds: int, goal_seconds: int) -> float:
    if goal_seconds <= 0:
        return 1.0
    return min(total_seconds / goal_seconds, 1.0)


def format_duration(total_seconds: int) -> str:
    hours, rest = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration_short(total_seconds: int) -> str:
    hours, rest = divmod(int(total_seconds), 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def elapsed_seconds(started_at: datetime, now: Optional[datetime] = None) -> int:
    now = now or datetime.now()
    return max(0, int((now - started_at).total_seconds()))
