from .friend import Friend, LeaderboardEntry, ScrapingStatus, SweepItem, SweepReport
from .outcome import ErrorKind, ScrapeOutcome, ScrapeStatus
from .profile import ProfileStatistics, SubmissionRecord

__all__ = [
    "ErrorKind",
    "Friend",
    "LeaderboardEntry",
    "ProfileStatistics",
    "ScrapeOutcome",
    "ScrapeStatus",
    "ScrapingStatus",
    "SubmissionRecord",
    "SweepItem",
    "SweepReport",
]
