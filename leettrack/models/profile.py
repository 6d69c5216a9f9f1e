"""Pydantic models for scraped LeetCode profile statistics."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import ACCEPTED_STATUS, MAX_RECENT_SUBMISSIONS, UNKNOWN_LANGUAGE


class SubmissionRecord(BaseModel):
    """One accepted submission from a profile's recent activity."""

    model_config = ConfigDict(frozen=True)

    title: str
    title_slug: str
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = ACCEPTED_STATUS
    language: str = UNKNOWN_LANGUAGE


class ProfileStatistics(BaseModel):
    """Normalized statistics for one LeetCode handle, fresh per scrape."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    avatar: str = ""
    total_solved: int = Field(default=0, ge=0)
    easy_solved: int = Field(default=0, ge=0)
    medium_solved: int = Field(default=0, ge=0)
    hard_solved: int = Field(default=0, ge=0)
    ranking: int = Field(default=0, ge=0)  # 0 = unranked
    contest_rating: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    recent_submissions: list[SubmissionRecord] = Field(default_factory=list)

    @field_validator("recent_submissions")
    @classmethod
    def _accepted_only(cls, value: list[SubmissionRecord]) -> list[SubmissionRecord]:
        if len(value) > MAX_RECENT_SUBMISSIONS:
            raise ValueError(f"at most {MAX_RECENT_SUBMISSIONS} recent submissions allowed")
        if any(s.status != ACCEPTED_STATUS for s in value):
            raise ValueError("recent submissions must all be accepted")
        return value

    @model_validator(mode="after")
    def _total_matches_buckets(self) -> ProfileStatistics:
        expected = self.easy_solved + self.medium_solved + self.hard_solved
        if self.total_solved != expected:
            raise ValueError(
                f"total_solved={self.total_solved} does not match bucket sum {expected}"
            )
        return self
