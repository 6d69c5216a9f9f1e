"""Typed scrape failures, classified where they are detected."""

from __future__ import annotations

import asyncio

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..constants import CONNECTION_ERROR_MARKERS
from ..models.outcome import ErrorKind


class ScrapeError(Exception):
    """Base class for classified scraper failures."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConnectionFault(ScrapeError):
    kind = ErrorKind.CONNECTION


class SessionResetFault(ScrapeError):
    kind = ErrorKind.SESSION_RESET


class HttpFault(ScrapeError):
    kind = ErrorKind.HTTP

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"HTTP {status}: Failed to fetch data from LeetCode")
        self.status = status


class ParseFault(ScrapeError):
    kind = ErrorKind.PARSE


class UpstreamFault(ScrapeError):
    kind = ErrorKind.UPSTREAM


class LaunchFault(ScrapeError):
    kind = ErrorKind.LAUNCH


class TimeoutFault(ScrapeError):
    kind = ErrorKind.TIMEOUT


class NetworkFault(ScrapeError):
    kind = ErrorKind.NETWORK


def is_connection_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in CONNECTION_ERROR_MARKERS)


def classify_error(exc: BaseException) -> ScrapeError:
    """Map a browser-layer exception onto the scrape error taxonomy.

    Anything that is neither a ScrapeError nor a Playwright/timeout error is
    re-raised: those are programming errors, not upstream faults.
    """
    if isinstance(exc, ScrapeError):
        return exc
    if isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return TimeoutFault(f"Request timeout. LeetCode might be slow or unavailable. ({exc})")
    if isinstance(exc, PlaywrightError):
        message = str(exc)
        if is_connection_error(message):
            return ConnectionFault(f"Browser connection lost: {message}")
        return NetworkFault(f"Browser error: {message}")
    raise exc
