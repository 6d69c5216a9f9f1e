"""Bounded retry around a scrape operation, with browser reset on connection faults."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable

from ..config import CONNECTION_BACKOFF_SECONDS, MAX_SCRAPE_ATTEMPTS, RETRY_BACKOFF_SECONDS
from ..models.outcome import ScrapeOutcome
from .browser import BrowserSession

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

ScrapeOperation = Callable[[str], Awaitable[ScrapeOutcome]]


async def with_retry(
    operation: ScrapeOperation,
    handle: str,
    *,
    session: BrowserSession,
    max_attempts: int = MAX_SCRAPE_ATTEMPTS,
    connection_backoff: float = CONNECTION_BACKOFF_SECONDS,
    retry_backoff: float = RETRY_BACKOFF_SECONDS,
) -> ScrapeOutcome:
    """Run `operation(handle)` until it succeeds, reports NotFound, or attempts run out.

    Connection faults tear the browser down and wait `connection_backoff`
    before the next attempt; a session reset by another caller waits the same
    without a second teardown; everything else waits `retry_backoff`.
    The last failure is returned unchanged once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        outcome = await operation(handle)
        if not outcome.is_failure:
            return outcome

        logger.warning(
            f"Attempt {attempt}/{max_attempts} for '{handle}' failed: "
            f"[{outcome.error_kind.value}] {outcome.message}"
        )
        if attempt == max_attempts:
            break

        if outcome.error_kind.resets_session:
            await session.teardown_session()
        await asyncio.sleep(connection_backoff if outcome.error_kind.long_backoff else retry_backoff)

    return outcome
