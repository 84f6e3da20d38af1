from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from uthmhub.config.logger import get_logger
from uthmhub.core.study import (
    MIN_SESSION_SECONDS,
    DailyStudy,
    StudySession,
    record_session,
    study_streak,
    total_for_day,
    week_total,
)
from uthmhub.models.entities import new_id
from uthmhub.services.appwrite_service import AppwriteServiceError
from uthmhub.services.storage import STUDY_HISTORY_KEY, Storage

log = get_logger("study")


class StudyService:
    """Persists the study history and optionally mirrors sessions to the cloud."""

    def __init__(self, storage: Storage, uploader=None) -> None:
        self.storage = storage
        self.uploader = uploader
        self.history: List[DailyStudy] = [
            DailyStudy.from_dict(d) for d in storage.get_json(STUDY_HISTORY_KEY, [])
        ]

    def finish_session(
        self,
        subject: str,
        started_at: datetime,
        ended_at: datetime,
        *,
        uid: Optional[str] = None,
    ) -> Optional[StudySession]:
        session = StudySession(
            id=new_id(),
            subject=subject,
            started_at=started_at,
            ended_at=ended_at,
            duration=max(0, int((ended_at - started_at).total_seconds())),
        )
        if session.duration < MIN_SESSION_SECONDS:
            return None

        self.history = record_session(self.history, session)
        self.storage.set_json(STUDY_HISTORY_KEY, [d.to_dict() for d in self.history])

        if uid and self.uploader is not None:
            try:
                self.uploader.push_study_session(uid, session)
            except AppwriteServiceError:
                # Local history stays the source of truth.
                log.exception("Failed to push study session to the cloud")
        return session

    def today_total(self, today: Optional[date] = None) -> int:
        return total_for_day(self.history, today or date.today())

    def week_total(self, today: Optional[date] = None) -> int:
        return week_total(self.history, today or date.today())

    def streak(self) -> int:
        return study_streak(self.history)
