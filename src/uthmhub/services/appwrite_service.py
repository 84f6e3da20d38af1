from datetime import datetime, timezone
from typing import Dict, List, Optional

from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query
from appwrite.services.databases import Databases

from uthmhub.config.logger import get_logger
from uthmhub.config.settings import settings
from uthmhub.core.study import StudySession

log = get_logger("appwrite")


class AppwriteServiceError(Exception):
    pass


class AppwriteService:
    """Optional cloud sync: profile CGPA, study sessions and the leaderboard."""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: str,
        database_id: str,
        profiles_collection_id: str,
        study_sessions_collection_id: str,
    ) -> None:
        if not endpoint:
            raise AppwriteServiceError("Missing APPWRITE_ENDPOINT in environment")
        if not project_id:
            raise AppwriteServiceError("Missing APPWRITE_PROJECT_ID in environment")
        if not api_key:
            raise AppwriteServiceError("Missing APPWRITE_API_KEY in environment")
        if not database_id:
            raise AppwriteServiceError("Missing APPWRITE_DATABASE_ID in environment")

        self.database_id = database_id
        self.profiles_collection_id = profiles_collection_id
        self.study_sessions_collection_id = study_sessions_collection_id

        client = Client()
        client.set_endpoint(endpoint.rstrip("/"))
        client.set_project(project_id)
        client.set_key(api_key)

        self.db = Databases(client)

    @classmethod
    def from_settings(cls) -> "AppwriteService":
        return cls(
            endpoint=settings.appwrite_endpoint,
            project_id=settings.appwrite_project_id,
            api_key=settings.appwrite_api_key,
            database_id=settings.appwrite_database_id,
            profiles_collection_id=settings.appwrite_profiles_collection_id,
            study_sessions_collection_id=settings.appwrite_study_sessions_collection_id,
        )

    @staticmethod
    def _to_iso(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()

    def _list_documents(self, collection_id: str, queries: List[str]) -> List[Dict]:
        try:
            result = self.db.list_documents(self.database_id, collection_id, queries=queries)
            return list(result.get("documents", []))
        except AppwriteException as exc:
            raise AppwriteServiceError(str(exc)) from exc

    def _create_document(self, collection_id: str, data: Dict, document_id: Optional[str] = None) -> Dict:
        try:
            return self.db.create_document(
                self.database_id,
                collection_id,
                document_id or ID.unique(),
                data,
            )
        except AppwriteException as exc:
            raise AppwriteServiceError(str(exc)) from exc

    def _update_document(self, collection_id: str, document_id: str, data: Dict) -> Dict:
        try:
            return self.db.update_document(self.database_id, collection_id, document_id, data)
        except AppwriteException as exc:
            raise AppwriteServiceError(str(exc)) from exc

    def get_profile(self, uid: str) -> Dict:
        try:
            return self.db.get_document(self.database_id, self.profiles_collection_id, uid)
        except AppwriteException as exc:
            if getattr(exc, "code", None) == 404:
                return {}
            raise AppwriteServiceError(str(exc)) from exc

    def sync_profile(self, uid: str, *, name: str, cgpa: float, total_credits: int) -> Dict:
        data = {
            "name": name,
            "cgpa": cgpa,
            "total_credits": total_credits,
            "updated_at": self._to_iso(datetime.now(timezone.utc)),
        }
        if self.get_profile(uid):
            return self._update_document(self.profiles_collection_id, uid, data)
        return self._create_document(
            self.profiles_collection_id,
            {**data, "uid": uid, "total_study_seconds": 0},
            document_id=uid,
        )

    def push_study_session(self, uid: str, session: StudySession) -> None:
        self._create_document(
            self.study_sessions_collection_id,
            {
                "user_id": uid,
                "subject": session.subject,
                "started_at": self._to_iso(session.started_at),
                "ended_at": self._to_iso(session.ended_at),
                "duration_seconds": session.duration,
            },
        )

        profile = self.get_profile(uid)
        if profile:
            total = int(profile.get("total_study_seconds") or 0) + session.duration
            self._update_document(self.profiles_collection_id, uid, {"total_study_seconds": total})
        log.info("Pushed %ds study session for %s", session.duration, uid)

    def leaderboard(self, limit: int = 20) -> List[Dict]:
        docs = self._list_documents(
            self.profiles_collection_id,
            [
                Query.order_desc("total_study_seconds"),
                Query.limit(limit),
            ],
        )
        return [
            {
                "rank": idx + 1,
                "uid": doc.get("uid", doc.get("$id")),
                "name": doc.get("name") or "Student",
                "total_study_seconds": int(doc.get("total_study_seconds") or 0),
                "cgpa": doc.get("cgpa"),
            }
            for idx, doc in enumerate(docs)
        ]
