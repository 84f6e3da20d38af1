from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    db_path: str = os.getenv("UTHMHUB_DB_PATH", "data/uthmhub.db")
    log_level: str = os.getenv("UTHMHUB_LOG_LEVEL", "INFO")
    daily_goal_hours: float = float(os.getenv("UTHMHUB_DAILY_GOAL_HOURS", "4"))
    user_id: str = os.getenv("UTHMHUB_USER_ID", "")

    appwrite_endpoint: str = os.getenv("APPWRITE_ENDPOINT", "")
    appwrite_project_id: str = os.getenv("APPWRITE_PROJECT_ID", "")
    appwrite_api_key: str = os.getenv("APPWRITE_API_KEY") or os.getenv("APPWRITE_FUNCTION_API_KEY", "")
    appwrite_database_id: str = os.getenv("APPWRITE_DATABASE_ID", "")

    appwrite_profiles_collection_id: str = os.getenv("APPWRITE_PROFILES_COLLECTION_ID", "profiles")
    appwrite_study_sessions_collection_id: str = os.getenv("APPWRITE_STUDY_SESSIONS_COLLECTION_ID", "study_sessions")

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )
    cors_allow_origin_regex: str = os.getenv(
        "CORS_ALLOW_ORIGIN_REGEX",
        r"^https?:\/\/(localhost|127\.0\.0\.1)(:\d+)?$",
    )

    @property
    def appwrite_configured(self) -> bool:
        return bool(
            self.appwrite_endpoint
            and self.appwrite_project_id
            and self.appwrite_api_key
            and self.appwrite_database_id
        )


settings = Settings()
