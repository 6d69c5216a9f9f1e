"""Tagged scrape results returned to every caller of the scraper."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict

from .profile import ProfileStatistics

if TYPE_CHECKING:
    from ..scraper.errors import ScrapeError


class ErrorKind(str, Enum):
    CONNECTION = "connection"
    SESSION_RESET = "session_reset"
    HTTP = "http"
    PARSE = "parse"
    UPSTREAM = "upstream"
    LAUNCH = "launch"
    TIMEOUT = "timeout"
    NETWORK = "network"

    @property
    def resets_session(self) -> bool:
        """The browser is presumed corrupt and must be rebuilt."""
        return self is ErrorKind.CONNECTION

    @property
    def long_backoff(self) -> bool:
        return self in (ErrorKind.CONNECTION, ErrorKind.SESSION_RESET)


class ScrapeStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


class ScrapeOutcome(BaseModel):
    """Success(profile) | NotFound | Failure(kind, message)."""

    model_config = ConfigDict(frozen=True)

    status: ScrapeStatus
    handle: str
    profile: Optional[ProfileStatistics] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def success(cls, handle: str, profile: ProfileStatistics) -> ScrapeOutcome:
        return cls(status=ScrapeStatus.SUCCESS, handle=handle, profile=profile)

    @classmethod
    def not_found(cls, handle: str) -> ScrapeOutcome:
        return cls(
            status=ScrapeStatus.NOT_FOUND,
            handle=handle,
            message=f"LeetCode user '{handle}' not found.",
        )

    @classmethod
    def failure(cls, handle: str, error: ScrapeError) -> ScrapeOutcome:
        return cls(
            status=ScrapeStatus.FAILURE,
            handle=handle,
            error_kind=error.kind,
            message=error.message,
        )

    @property
    def is_success(self) -> bool:
        return self.status is ScrapeStatus.SUCCESS

    @property
    def is_not_found(self) -> bool:
        return self.status is ScrapeStatus.NOT_FOUND

    @property
    def is_failure(self) -> bool:
        return self.status is ScrapeStatus.FAILURE
