"""
tests/test_repository.py

Tests for FriendRepository against a temporary SQLite database.

Coverage
--------
- Upsert creates then updates, round-trips statistics and submissions
- Soft delete and reactivation through a fresh upsert
- Failure bookkeeping keeps only the most recent errors
- Staleness query: never scraped, stale, failed; oldest first; limit
- Leaderboard sorting, fallback field, excluded records
- Sweep bookkeeping
"""

from __future__ import annotations

from datetime import timedelta

import aiosqlite
import pytest

from leettrack.database.models import initialize_db
from leettrack.database.repository import FriendRepository
from leettrack.models.friend import ScrapingStatus, SweepReport, utcnow
from leettrack.models.profile import ProfileStatistics, SubmissionRecord


@pytest.fixture()
async def repo(tmp_path):
    db = await aiosqlite.connect(str(tmp_path / "friends.db"))
    await initialize_db(db)
    yield FriendRepository(db)
    await db.close()


def _stats(easy: int = 1, medium: int = 1, hard: int = 1, **extra) -> ProfileStatistics:
    return ProfileStatistics(
        display_name=extra.pop("display_name", "Someone"),
        total_solved=easy + medium + hard,
        easy_solved=easy,
        medium_solved=medium,
        hard_solved=hard,
        **extra,
    )


async def _backdate(repo: FriendRepository, handle: str, minutes: int) -> None:
    stamp = (utcnow() - timedelta(minutes=minutes)).isoformat(timespec="microseconds")
    await repo._db.execute("UPDATE friends SET last_scraped_at = ? WHERE handle = ?", (stamp, handle))
    await repo._db.commit()


class TestUpsert:
    async def test_creates_friend(self, repo) -> None:
        sub = SubmissionRecord(title="Two Sum", title_slug="two-sum", language="python3")
        friend = await repo.upsert_friend_profile(
            "  LeetCode ", _stats(3, 2, 1, ranking=10, recent_submissions=[sub])
        )

        assert friend.handle == "leetcode"
        assert friend.scraping_status == ScrapingStatus.SUCCESS
        assert friend.last_scraped_at is not None
        assert friend.stats.total_solved == 6
        assert friend.stats.ranking == 10
        assert friend.stats.recent_submissions == [sub]
        assert friend.profile_url == "https://leetcode.com/u/leetcode/"

    async def test_updates_existing(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats(1, 0, 0))
        await repo.upsert_friend_profile("leetcode", _stats(5, 5, 5, display_name="New Name"))

        friends = await repo.list_friends()
        assert len(friends) == 1
        assert friends[0].stats.total_solved == 15
        assert friends[0].display_name == "New Name"

    async def test_success_clears_last_error(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats())
        await repo.mark_scraping_failed("leetcode", "HTTP 500")
        friend = await repo.upsert_friend_profile("leetcode", _stats())
        assert friend.last_error is None
        assert friend.scraping_status == ScrapingStatus.SUCCESS


class TestRemove:
    async def test_soft_delete(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats())
        assert await repo.remove_friend("LEETCODE") is True
        assert await repo.get_friend("leetcode") is None
        assert (await repo.get_friend("leetcode", include_inactive=True)).is_active is False
        assert await repo.get_friend_count() == 0

    async def test_remove_unknown(self, repo) -> None:
        assert await repo.remove_friend("ghost") is False

    async def test_re_adding_reactivates(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats())
        await repo.remove_friend("leetcode")
        await repo.upsert_friend_profile("leetcode", _stats())
        assert (await repo.get_friend("leetcode")).is_active


class TestScrapingStatus:
    async def test_started_then_failed(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats())
        await repo.mark_scraping_started("leetcode")
        assert (await repo.get_friend("leetcode")).scraping_status == ScrapingStatus.SCRAPING

        await repo.mark_scraping_failed("leetcode", "Request timeout")
        friend = await repo.get_friend("leetcode")
        assert friend.scraping_status == ScrapingStatus.FAILED
        assert friend.last_error == "Request timeout"
        assert friend.stats is not None

    async def test_only_last_five_errors_kept(self, repo) -> None:
        await repo.upsert_friend_profile("leetcode", _stats())
        for i in range(8):
            await repo.mark_scraping_failed("leetcode", f"error {i}")
        friend = await repo.get_friend("leetcode")
        assert [e.message for e in friend.scraping_errors] == [f"error {i}" for i in range(3, 8)]

    async def test_failing_unknown_friend_is_noop(self, repo) -> None:
        await repo.mark_scraping_failed("ghost", "whatever")
        assert await repo.get_friend("ghost", include_inactive=True) is None


class TestNeedingRefresh:
    async def test_stale_and_failed_selected(self, repo) -> None:
        for handle in ("fresh", "stale", "failed", "removed"):
            await repo.upsert_friend_profile(handle, _stats())
        await _backdate(repo, "stale", 120)
        await _backdate(repo, "removed", 120)
        await repo.mark_scraping_failed("failed", "HTTP 500")
        await repo.remove_friend("removed")

        due = await repo.list_friends_needing_refresh(timedelta(hours=1), limit=10)

        assert {f.handle for f in due} == {"stale", "failed"}
        assert due[0].handle == "stale"  # oldest scrape first

    async def test_limit(self, repo) -> None:
        for i in range(5):
            await repo.upsert_friend_profile(f"user{i}", _stats())
            await _backdate(repo, f"user{i}", 100 + i)
        due = await repo.list_friends_needing_refresh(timedelta(hours=1), limit=2)
        assert [f.handle for f in due] == ["user4", "user3"]

    async def test_needs_refresh_property(self, repo) -> None:
        friend = await repo.upsert_friend_profile("leetcode", _stats())
        assert not friend.needs_refresh(timedelta(hours=1))
        assert friend.needs_refresh(timedelta(hours=1), now=utcnow() + timedelta(hours=2))


class TestLeaderboard:
    async def test_sorted_with_positions(self, repo) -> None:
        await repo.upsert_friend_profile("alice", _stats(10, 0, 0, streak=1))
        await repo.upsert_friend_profile("bob", _stats(20, 0, 0, streak=5))
        await repo.upsert_friend_profile("carol", _stats(5, 0, 0, streak=9))

        board = await repo.leaderboard()
        assert [(e.position, e.handle) for e in board] == [(1, "bob"), (2, "alice"), (3, "carol")]

        by_streak = await repo.leaderboard("streak", "asc")
        assert [e.handle for e in by_streak] == ["alice", "bob", "carol"]

    async def test_unknown_sort_field_falls_back(self, repo) -> None:
        await repo.upsert_friend_profile("alice", _stats(1, 0, 0))
        await repo.upsert_friend_profile("bob", _stats(2, 0, 0))
        board = await repo.leaderboard("total_solved; DROP TABLE friends", "desc")
        assert [e.handle for e in board] == ["bob", "alice"]

    async def test_failed_and_removed_excluded(self, repo) -> None:
        for handle in ("ok", "failed", "removed"):
            await repo.upsert_friend_profile(handle, _stats())
        await repo.mark_scraping_failed("failed", "boom")
        await repo.remove_friend("removed")
        assert [e.handle for e in await repo.leaderboard()] == ["ok"]


async def test_record_sweep(repo) -> None:
    assert await repo.last_sweep_time() is None
    report = SweepReport()
    report.finished_at = utcnow()
    await repo.record_sweep(report)
    assert await repo.last_sweep_time() == report.finished_at.isoformat(timespec="microseconds")
