"""Pydantic models for tracked friends and bulk sweep reports."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..constants import LEETCODE_PROFILE_URL
from .outcome import ErrorKind, ScrapeStatus
from .profile import ProfileStatistics


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_handle(handle: str) -> str:
    """Friend handles are stored trimmed and lower-cased."""
    return (handle or "").strip().lower()


class ScrapingStatus(str, Enum):
    PENDING = "pending"
    SCRAPING = "scraping"
    SUCCESS = "success"
    FAILED = "failed"


class ScrapingError(BaseModel):
    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class Friend(BaseModel):
    """A tracked LeetCode handle with its last scraped statistics."""

    handle: str
    display_name: str = ""
    stats: Optional[ProfileStatistics] = None
    scraping_status: ScrapingStatus = ScrapingStatus.PENDING
    last_scraped_at: Optional[datetime] = None
    last_error: Optional[str] = None
    scraping_errors: list[ScrapingError] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def profile_url(self) -> str:
        return f"{LEETCODE_PROFILE_URL}{self.handle}/"

    def needs_refresh(self, stale_after: timedelta, now: Optional[datetime] = None) -> bool:
        if self.last_scraped_at is None or self.scraping_status == ScrapingStatus.FAILED:
            return True
        return self.last_scraped_at < (now or utcnow()) - stale_after


class LeaderboardEntry(BaseModel):
    position: int
    handle: str
    display_name: str
    stats: ProfileStatistics


class SweepItem(BaseModel):
    handle: str
    status: ScrapeStatus
    error_kind: Optional[ErrorKind] = None
    message: str = ""


class SweepReport(BaseModel):
    """Per-item tally of one bulk refresh pass."""

    started_at: datetime = Field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    items: list[SweepItem] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for i in self.items if i.status == ScrapeStatus.SUCCESS)

    @property
    def not_found(self) -> int:
        return sum(1 for i in self.items if i.status == ScrapeStatus.NOT_FOUND)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if i.status == ScrapeStatus.FAILURE)

    def summary(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "not_found": self.not_found,
            "failed": self.failed,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "items": [i.model_dump(mode="json") for i in self.items],
        }
