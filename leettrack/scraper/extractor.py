"""Single-attempt scrape of one LeetCode handle into a ScrapeOutcome."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from ..constants import USER_CALENDAR_QUERY, USER_CONTEST_QUERY, USER_PROFILE_QUERY
from ..models.outcome import ErrorKind, ScrapeOutcome
from .browser import BrowserSession
from .errors import ScrapeError, SessionResetFault, classify_error
from .graphql import GraphQLBridge
from .parser import extract_matched_user, parse_profile

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class ProfileExtractor:
    """Scrapes profile, contest and calendar data for a handle over one page."""

    def __init__(self, session: BrowserSession, bridge: Optional[GraphQLBridge] = None):
        self.session = session
        self.bridge = bridge or GraphQLBridge(session)

    async def scrape_profile(self, handle: str) -> ScrapeOutcome:
        """Scrape `handle` once. Never raises for upstream or browser faults.

        Returns:
            Success with the normalized statistics, NotFound when LeetCode has
            no such user, or Failure carrying the classified error.
        """
        handle = handle.strip()
        generation = self.session.generation
        try:
            generation = await self.session.ensure_session()
            async with self.bridge.profile_page(handle) as page:
                variables = {"username": handle}
                profile, contest, calendar = await asyncio.gather(
                    self.bridge.query(page, USER_PROFILE_QUERY, variables),
                    self.bridge.query(page, USER_CONTEST_QUERY, variables),
                    self.bridge.query(page, USER_CALENDAR_QUERY, variables),
                    return_exceptions=True,
                )
        except (ScrapeError, PlaywrightError, asyncio.TimeoutError) as e:
            return self._failure(handle, e, generation)

        if isinstance(profile, BaseException):
            if not isinstance(profile, (ScrapeError, PlaywrightError, asyncio.TimeoutError)):
                raise profile
            return self._failure(handle, profile, generation)

        contest = self._optional(handle, "contest", contest)
        calendar = self._optional(handle, "calendar", calendar)

        try:
            if profile is None or extract_matched_user(profile) is None:
                logger.info(f"LeetCode user '{handle}' not found.")
                return ScrapeOutcome.not_found(handle)
            stats = parse_profile(handle, profile, contest, calendar)
        except ScrapeError as e:
            return self._failure(handle, e, generation)

        logger.info(
            f"Scraped '{handle}': solved={stats.total_solved}, ranking={stats.ranking}, "
            f"rating={stats.contest_rating}, streak={stats.streak}"
        )
        return ScrapeOutcome.success(handle, stats)

    def _optional(self, handle: str, label: str, result) -> Optional[dict]:
        """Contest/calendar data legitimately may not exist; failures default to zero."""
        if isinstance(result, BaseException):
            if not isinstance(result, (ScrapeError, PlaywrightError, asyncio.TimeoutError)):
                raise result
            logger.warning(f"{label} query failed for '{handle}', defaulting to 0: {result}")
            return None
        return result

    def _failure(self, handle: str, exc: BaseException, generation: int) -> ScrapeOutcome:
        error = classify_error(exc)
        if error.kind == ErrorKind.CONNECTION and self.session.generation != generation:
            error = SessionResetFault(
                f"Browser session was reset while scraping '{handle}': {error.message}"
            )
        logger.error(f"Error scraping LeetCode profile for {handle}: [{error.kind.value}] {error.message}")
        return ScrapeOutcome.failure(handle, error)
