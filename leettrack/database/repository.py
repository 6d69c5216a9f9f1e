"""Async repository for tracked friends and their scraped statistics."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timedelta
from typing import Optional

import aiosqlite

from ..constants import LEADERBOARD_SORT_FIELDS, MAX_STORED_ERRORS
from ..models.friend import (
    Friend,
    LeaderboardEntry,
    ScrapingError,
    ScrapingStatus,
    SweepReport,
    normalize_handle,
    utcnow,
)
from ..models.profile import ProfileStatistics, SubmissionRecord

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="microseconds") if value else None


class FriendRepository:
    """Async repository for friend records in SQLite."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def upsert_friend_profile(self, handle: str, stats: ProfileStatistics) -> Friend:
        """Store fresh statistics, creating the friend if needed."""
        handle = normalize_handle(handle)
        now = _ts(utcnow())
        submissions = json.dumps(
            [s.model_dump(mode="json") for s in stats.recent_submissions]
        )
        await self._db.execute(
            """
            INSERT INTO friends (
                handle, display_name, avatar, has_stats, total_solved,
                easy_solved, medium_solved, hard_solved, ranking,
                contest_rating, streak, recent_submissions, scraping_status,
                last_scraped_at, last_error, is_active, created_at
            ) VALUES (?, ?, ?, 1, ?, ?, ?, ?, ?, ?, ?, ?, 'success', ?, NULL, 1, ?)
            ON CONFLICT(handle) DO UPDATE SET
                display_name = excluded.display_name,
                avatar = COALESCE(NULLIF(excluded.avatar, ''), friends.avatar),
                has_stats = 1,
                total_solved = excluded.total_solved,
                easy_solved = excluded.easy_solved,
                medium_solved = excluded.medium_solved,
                hard_solved = excluded.hard_solved,
                ranking = excluded.ranking,
                contest_rating = excluded.contest_rating,
                streak = excluded.streak,
                recent_submissions = excluded.recent_submissions,
                scraping_status = 'success',
                last_scraped_at = excluded.last_scraped_at,
                last_error = NULL,
                is_active = 1
            """,
            (
                handle, stats.display_name or handle, stats.avatar,
                stats.total_solved, stats.easy_solved, stats.medium_solved,
                stats.hard_solved, stats.ranking, stats.contest_rating,
                stats.streak, submissions, now, now,
            ),
        )
        await self._db.commit()
        return await self.get_friend(handle, include_inactive=True)

    async def get_friend(self, handle: str, include_inactive: bool = False) -> Optional[Friend]:
        """Get a single friend by handle."""
        query = "SELECT * FROM friends WHERE handle = ?"
        if not include_inactive:
            query += " AND is_active = 1"
        async with self._db.execute(query, (normalize_handle(handle),)) as cursor:
            row = await cursor.fetchone()
            if row:
                return self._row_to_friend(row, cursor.description)
        return None

    async def list_friends(self) -> list[Friend]:
        """Active friends, most problems solved first."""
        async with self._db.execute(
            "SELECT * FROM friends WHERE is_active = 1 ORDER BY total_solved DESC, handle"
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_friend(row, cursor.description) for row in rows]

    async def remove_friend(self, handle: str) -> bool:
        """Soft-delete a friend. Returns False if it was not tracked."""
        cursor = await self._db.execute(
            "UPDATE friends SET is_active = 0 WHERE handle = ? AND is_active = 1",
            (normalize_handle(handle),),
        )
        await self._db.commit()
        return cursor.rowcount > 0

    async def mark_scraping_started(self, handle: str):
        await self._db.execute(
            "UPDATE friends SET scraping_status = 'scraping' WHERE handle = ?",
            (normalize_handle(handle),),
        )
        await self._db.commit()

    async def mark_scraping_failed(self, handle: str, message: str):
        """Record a failed scrape, keeping only the most recent errors."""
        handle = normalize_handle(handle)
        friend = await self.get_friend(handle, include_inactive=True)
        if friend is None:
            return
        errors = friend.scraping_errors + [ScrapingError(message=message)]
        errors = errors[-MAX_STORED_ERRORS:]
        await self._db.execute(
            """
            UPDATE friends
            SET scraping_status = 'failed', last_error = ?, scraping_errors = ?
            WHERE handle = ?
            """,
            (message, json.dumps([e.model_dump(mode="json") for e in errors]), handle),
        )
        await self._db.commit()

    async def list_friends_needing_refresh(
        self, stale_after: timedelta, limit: int = 10
    ) -> list[Friend]:
        """Active friends never scraped, scraped before the cutoff, or last failed."""
        cutoff = _ts(utcnow() - stale_after)
        async with self._db.execute(
            """
            SELECT * FROM friends
            WHERE is_active = 1
              AND (last_scraped_at IS NULL OR last_scraped_at < ? OR scraping_status = 'failed')
            ORDER BY last_scraped_at IS NOT NULL, last_scraped_at
            LIMIT ?
            """,
            (cutoff, limit),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_friend(row, cursor.description) for row in rows]

    async def leaderboard(
        self, sort_by: str = "total_solved", order: str = "desc"
    ) -> list[LeaderboardEntry]:
        """Successfully scraped friends ranked by one statistic."""
        if sort_by not in LEADERBOARD_SORT_FIELDS:
            sort_by = "total_solved"
        direction = "ASC" if order == "asc" else "DESC"
        async with self._db.execute(
            f"""
            SELECT * FROM friends
            WHERE is_active = 1 AND has_stats = 1 AND scraping_status = 'success'
            ORDER BY {sort_by} {direction}, handle
            """
        ) as cursor:
            rows = await cursor.fetchall()
            friends = [self._row_to_friend(row, cursor.description) for row in rows]

        return [
            LeaderboardEntry(
                position=i,
                handle=f.handle,
                display_name=f.display_name,
                stats=f.stats,
            )
            for i, f in enumerate(friends, 1)
        ]

    async def get_friend_count(self) -> int:
        async with self._db.execute("SELECT COUNT(*) FROM friends WHERE is_active = 1") as cursor:
            return (await cursor.fetchone())[0]

    async def record_sweep(self, report: SweepReport):
        await self._db.execute(
            """
            INSERT INTO sweeps (started_at, finished_at, total, succeeded, not_found, failed)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                _ts(report.started_at), _ts(report.finished_at), report.total,
                report.succeeded, report.not_found, report.failed,
            ),
        )
        await self._db.commit()

    async def last_sweep_time(self) -> Optional[str]:
        async with self._db.execute("SELECT MAX(finished_at) FROM sweeps") as cursor:
            row = await cursor.fetchone()
            return row[0] if row and row[0] else None

    def _row_to_friend(self, row: tuple, description) -> Friend:
        """Convert a database row to a Friend model."""
        col_names = [d[0] for d in description]
        data = dict(zip(col_names, row))

        try:
            submissions = json.loads(data.get("recent_submissions") or "[]")
        except json.JSONDecodeError:
            submissions = []
        try:
            errors = json.loads(data.get("scraping_errors") or "[]")
        except json.JSONDecodeError:
            errors = []

        stats = None
        if data.get("has_stats"):
            stats = ProfileStatistics(
                display_name=data["display_name"] or data["handle"],
                avatar=data.get("avatar") or "",
                total_solved=data["total_solved"],
                easy_solved=data["easy_solved"],
                medium_solved=data["medium_solved"],
                hard_solved=data["hard_solved"],
                ranking=data["ranking"],
                contest_rating=data["contest_rating"],
                streak=data["streak"],
                recent_submissions=[SubmissionRecord(**s) for s in submissions],
            )

        return Friend(
            handle=data["handle"],
            display_name=data["display_name"],
            stats=stats,
            scraping_status=ScrapingStatus(data["scraping_status"]),
            last_scraped_at=data.get("last_scraped_at"),
            last_error=data.get("last_error"),
            scraping_errors=[ScrapingError(**e) for e in errors],
            is_active=bool(data.get("is_active", 1)),
            created_at=data["created_at"],
        )
