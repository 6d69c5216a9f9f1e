"""Best-effort bulk refresh of stale friend profiles."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import timedelta

from ..config import STALE_AFTER_MINUTES, SWEEP_CONCURRENCY, SWEEP_DEFAULT_LIMIT
from ..database.repository import FriendRepository
from ..models.friend import Friend, SweepItem, SweepReport, utcnow
from ..models.outcome import ScrapeStatus
from .retry import ScrapeOperation

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

PROFILE_NOT_FOUND = "Profile not found"


async def run_sweep(
    repo: FriendRepository,
    fetch: ScrapeOperation,
    limit: int = SWEEP_DEFAULT_LIMIT,
    stale_after: timedelta = timedelta(minutes=STALE_AFTER_MINUTES),
    concurrency: int = SWEEP_CONCURRENCY,
) -> SweepReport:
    """Refresh up to `limit` stale friends, at most `concurrency` at a time.

    One friend's failure never aborts the others; every friend ends up with a
    SweepItem in the report and a matching status in the repository.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    report = SweepReport()
    friends = await repo.list_friends_needing_refresh(stale_after, limit)
    logger.info(f"Bulk sweep: {len(friends)} friends need refreshing (concurrency={concurrency}).")

    semaphore = asyncio.Semaphore(concurrency)

    async def _refresh_one(friend: Friend) -> SweepItem:
        async with semaphore:
            try:
                await repo.mark_scraping_started(friend.handle)
                outcome = await fetch(friend.handle)
                if outcome.is_success:
                    await repo.upsert_friend_profile(friend.handle, outcome.profile)
                elif outcome.is_not_found:
                    await repo.mark_scraping_failed(friend.handle, PROFILE_NOT_FOUND)
                else:
                    await repo.mark_scraping_failed(friend.handle, outcome.message)
                return SweepItem(
                    handle=friend.handle,
                    status=outcome.status,
                    error_kind=outcome.error_kind,
                    message=outcome.message,
                )
            except Exception as e:
                logger.warning(f"Failed to refresh {friend.handle}: {e}")
                message = str(e) or type(e).__name__
                try:
                    await repo.mark_scraping_failed(friend.handle, message)
                except Exception as db_error:
                    logger.error(f"Could not record failure for {friend.handle}: {db_error}")
                return SweepItem(handle=friend.handle, status=ScrapeStatus.FAILURE, message=message)

    report.items = list(await asyncio.gather(*(_refresh_one(f) for f in friends)))
    report.finished_at = utcnow()
    await repo.record_sweep(report)

    logger.info(
        f"Bulk sweep done: {report.succeeded} succeeded, {report.not_found} not found, "
        f"{report.failed} failed of {report.total}."
    )
    return report
