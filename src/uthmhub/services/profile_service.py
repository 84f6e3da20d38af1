from __future__ import annotations

from uthmhub.config.logger import get_logger
from uthmhub.services.storage import NICKNAME_KEY, Storage

log = get_logger("profile")

DEFAULT_DISPLAY_NAME = "Student"
MAX_NICKNAME_LENGTH = 40


class ProfileServiceError(Exception):
    pass


class ProfileService:
    """Local profile settings; currently just the nickname shown on the leaderboard."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def nickname(self) -> str:
        value = self.storage.get_json(NICKNAME_KEY, "")
        return value if isinstance(value, str) else ""

    def set_nickname(self, nickname: str) -> str:
        value = " ".join((nickname or "").split())
        if len(value) > MAX_NICKNAME_LENGTH:
            raise ProfileServiceError(f"Nickname must be at most {MAX_NICKNAME_LENGTH} characters")
        if value:
            self.storage.set_json(NICKNAME_KEY, value)
        else:
            self.storage.delete(NICKNAME_KEY)
        log.info("Nickname updated")
        return value

    def display_name(self) -> str:
        return self.nickname() or DEFAULT_DISPLAY_NAME
