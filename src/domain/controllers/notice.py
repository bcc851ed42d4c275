"""User-facing results shared by the profile screens."""

from dataclasses import dataclass
from enum import StrEnum


class NoticeLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A short message shown to the user after an action."""

    level: NoticeLevel
    message: str

    @classmethod
    def info(cls, message: str) -> "Notice":
        return cls(NoticeLevel.INFO, message)

    @classmethod
    def success(cls, message: str) -> "Notice":
        return cls(NoticeLevel.SUCCESS, message)

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls(NoticeLevel.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.level is NoticeLevel.ERROR


@dataclass(frozen=True)
class UpdateOutcome:
    """What the update screen reports back to the form that opened it."""

    changed: bool
    closed: bool


NOT_LOGGED_IN = "User not logged in."
NO_USER_DATA = "No user data found."
