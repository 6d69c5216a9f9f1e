"""Normalization of raw LeetCode GraphQL payloads into ProfileStatistics.

All defaulting policy lives here so consumers never see a partial record:
missing difficulty buckets count as 0, contest rating is floored, streak
defaults to 0, and only accepted submissions are kept.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from ..constants import ACCEPTED_STATUS, DIFFICULTIES, MAX_RECENT_SUBMISSIONS, UNKNOWN_LANGUAGE
from ..models.profile import ProfileStatistics, SubmissionRecord
from .errors import ParseFault


def _as_dict(value: Any, field: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseFault(f"Unexpected shape for '{field}': {type(value).__name__}")
    return value


def _as_list(value: Any, field: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseFault(f"Unexpected shape for '{field}': {type(value).__name__}")
    return value


def _non_negative_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or number < 0:
        return 0
    return math.floor(number)


def extract_matched_user(profile_data: Optional[dict]) -> Optional[dict]:
    """Return `matchedUser` from the profile query, or None if the user is absent."""
    data = _as_dict(profile_data, "data")
    user = data.get("matchedUser")
    if not user:
        return None
    return _as_dict(user, "matchedUser")


def parse_difficulty_counts(user: dict) -> dict[str, int]:
    stats = _as_dict(user.get("submitStats"), "submitStats")
    buckets = _as_list(stats.get("acSubmissionNum"), "acSubmissionNum")
    counts = {difficulty: 0 for difficulty in DIFFICULTIES}
    for bucket in buckets:
        if isinstance(bucket, dict) and bucket.get("difficulty") in counts:
            counts[bucket["difficulty"]] = _non_negative_int(bucket.get("count"))
    return counts


def parse_timestamp(value: Any) -> datetime:
    """Unix seconds (int or numeric string) to UTC datetime; "now" when absent."""
    seconds = _non_negative_int(value)
    if not seconds:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_submissions(raw: Any) -> list[SubmissionRecord]:
    submissions = []
    for entry in _as_list(raw, "recentSubmissionList"):
        if not isinstance(entry, dict) or entry.get("statusDisplay") != ACCEPTED_STATUS:
            continue
        submissions.append(
            SubmissionRecord(
                title=entry.get("title") or "",
                title_slug=entry.get("titleSlug") or "",
                submitted_at=parse_timestamp(entry.get("timestamp")),
                status=ACCEPTED_STATUS,
                language=entry.get("lang") or UNKNOWN_LANGUAGE,
            )
        )
        if len(submissions) == MAX_RECENT_SUBMISSIONS:
            break
    return submissions


def parse_contest_rating(contest_data: Optional[dict]) -> int:
    ranking = _as_dict(contest_data, "data").get("userContestRanking")
    return _non_negative_int(_as_dict(ranking, "userContestRanking").get("rating"))


def parse_streak(calendar_data: Optional[dict]) -> int:
    user = _as_dict(_as_dict(calendar_data, "data").get("matchedUser"), "matchedUser")
    calendar = _as_dict(user.get("userCalendar"), "userCalendar")
    return _non_negative_int(calendar.get("streak"))


def parse_profile(
    handle: str,
    profile_data: dict,
    contest_data: Optional[dict] = None,
    calendar_data: Optional[dict] = None,
) -> ProfileStatistics:
    """Build ProfileStatistics from the three query payloads.

    `profile_data` must contain a matched user; call `extract_matched_user`
    first to detect absence.
    """
    user = extract_matched_user(profile_data)
    if user is None:
        raise ParseFault(f"Profile payload for '{handle}' has no matched user")

    profile = _as_dict(user.get("profile"), "profile")
    counts = parse_difficulty_counts(user)

    try:
        return ProfileStatistics(
            display_name=profile.get("realName") or user.get("username") or handle,
            avatar=profile.get("userAvatar") or "",
            total_solved=sum(counts.values()),
            easy_solved=counts["Easy"],
            medium_solved=counts["Medium"],
            hard_solved=counts["Hard"],
            ranking=_non_negative_int(profile.get("ranking")),
            contest_rating=parse_contest_rating(contest_data),
            streak=parse_streak(calendar_data),
            recent_submissions=parse_submissions(profile_data.get("recentSubmissionList")),
        )
    except ValidationError as e:
        raise ParseFault(f"Profile payload for '{handle}' failed validation: {e}") from e
