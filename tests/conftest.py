"""
tests/conftest.py

Shared fakes for the scraper tests.

A FakeBrowser / FakePage pair stands in for Playwright so that the session
manager, bridge and extractor run their real code paths with no browser
process. FakeLeetCode plays the upstream GraphQL endpoint: each in-page
`fetch` is answered by looking at which query document was sent.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Callable

import pytest
from playwright.async_api import Error as PlaywrightError

from leettrack.scraper.browser import BrowserSession
from leettrack.scraper.extractor import ProfileExtractor
from leettrack.scraper.graphql import GraphQLBridge


# ---------------------------------------------------------------------------
# Upstream response builders
# ---------------------------------------------------------------------------


def ok(data: Any) -> dict:
    return {"ok": True, "status": 200, "text": json.dumps({"data": data})}


def graphql_error(message: str, data: Any = None) -> dict:
    return {
        "ok": True,
        "status": 200,
        "text": json.dumps({"errors": [{"message": message}], "data": data}),
    }


def http_status(status: int) -> dict:
    return {"ok": False, "status": status, "text": "<html>error</html>"}


def profile_data(
    username: str = "leetcode",
    real_name: str = "LeetCode",
    easy: int = 300,
    medium: int = 250,
    hard: int = 50,
    ranking: int = 1234,
    submissions: list[dict] | None = None,
) -> dict:
    if submissions is None:
        submissions = [
            {
                "title": "Two Sum",
                "titleSlug": "two-sum",
                "timestamp": "1700000000",
                "statusDisplay": "Accepted",
                "lang": "python3",
            },
            {
                "title": "Add Two Numbers",
                "titleSlug": "add-two-numbers",
                "timestamp": "1699990000",
                "statusDisplay": "Wrong Answer",
                "lang": "cpp",
            },
        ]
    return {
        "matchedUser": {
            "username": username,
            "profile": {
                "realName": real_name,
                "userAvatar": "https://assets.leetcode.com/avatar.png",
                "ranking": ranking,
            },
            "submitStats": {
                "acSubmissionNum": [
                    {"difficulty": "All", "count": easy + medium + hard},
                    {"difficulty": "Easy", "count": easy},
                    {"difficulty": "Medium", "count": medium},
                    {"difficulty": "Hard", "count": hard},
                ]
            },
        },
        "recentSubmissionList": submissions,
    }


def contest_data(rating: float | None = 1850.7) -> dict:
    return {"userContestRanking": None if rating is None else {"rating": rating}}


def calendar_data(streak: int | None = 12) -> dict:
    return {"matchedUser": {"userCalendar": {"streak": streak}}}


async def hang() -> dict:
    """An in-page fetch that never settles."""
    await asyncio.Event().wait()
    raise AssertionError("unreachable")


def query_kind(query: str) -> str:
    if "userContestRanking" in query:
        return "contest"
    if "userCalendar" in query:
        return "calendar"
    return "profile"


class FakeLeetCode:
    """Per-handle, per-query canned responses.

    A response may be a record dict, an exception to raise from evaluate, or a
    callable producing either (async callables are awaited inside the page).
    """

    def __init__(self):
        self.users: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    def add_user(self, handle: str, **overrides: Any) -> None:
        self.users[handle] = {
            "profile": overrides.get("profile", ok(profile_data(username=handle))),
            "contest": overrides.get("contest", ok(contest_data())),
            "calendar": overrides.get("calendar", ok(calendar_data())),
        }

    def respond(self, query: str, variables: dict) -> Any:
        handle = variables["username"]
        kind = query_kind(query)
        self.calls.append((handle, kind))
        user = self.users.get(handle)
        if user is None:
            if kind == "profile":
                return graphql_error("That user was not found.", {"matchedUser": None})
            return ok({"userContestRanking": None} if kind == "contest" else {"matchedUser": None})
        response = user[kind]
        if callable(response):
            response = response()
        return response


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


class FakePage:
    def __init__(self, browser: FakeBrowser, options: dict):
        self.browser = browser
        self.options = options
        self.url = "about:blank"
        self.closed = False
        self.close_calls = 0
        self.default_timeout = None
        self.navigation_timeout = None

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.navigation_timeout = timeout

    async def goto(self, url: str, wait_until: str = "load", timeout: float | None = None):
        self._check_alive()
        if self.browser.goto_error is not None:
            raise self.browser.goto_error
        self.url = url

    async def wait_for_timeout(self, timeout: float) -> None:
        self._check_alive()

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self._check_alive()
        result = self.browser.responder(arg["query"], arg["variables"])
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.close_calls += 1
        if self.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.closed = True
        self.browser.open_pages.remove(self)

    def _check_alive(self) -> None:
        if self.closed or not self.browser.connected:
            raise PlaywrightError("Target page, context or browser has been closed")


class FakeBrowser:
    def __init__(self, responder: Callable[[str, dict], Any]):
        self.responder = responder
        self.connected = True
        self.closed = False
        self.handlers: dict[str, list[Callable]] = {}
        self.open_pages: list[FakePage] = []
        self.max_open_pages = 0
        self.goto_error: BaseException | None = None
        self.close_error: BaseException | None = None

    def on(self, event: str, callback: Callable) -> None:
        self.handlers.setdefault(event, []).append(callback)

    def is_connected(self) -> bool:
        return self.connected

    async def new_page(self, **options: Any) -> FakePage:
        if not self.connected:
            raise PlaywrightError("Browser has been closed")
        page = FakePage(self, options)
        self.open_pages.append(page)
        self.max_open_pages = max(self.max_open_pages, len(self.open_pages))
        return page

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self._disconnect()
        self.closed = True

    def crash(self) -> None:
        """Simulate the process dying underneath us."""
        self._disconnect()

    def _disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        for page in list(self.open_pages):
            page.closed = True
            self.open_pages.remove(page)
        for callback in self.handlers.get("disconnected", []):
            callback(self)


class FakeLaunchContext:
    def __init__(self, launcher: FakeLauncher):
        self._launcher = launcher
        self.browser: FakeBrowser | None = None

    async def __aenter__(self) -> FakeBrowser:
        if self._launcher.fail_with is not None:
            raise self._launcher.fail_with
        self.browser = FakeBrowser(self._launcher.responder)
        self._launcher.browsers.append(self.browser)
        return self.browser

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.browser.close()


class FakeLauncher:
    """Injectable replacement for the Camoufox/Chromium launchers."""

    def __init__(self, responder: Callable[[str, dict], Any]):
        self.responder = responder
        self.browsers: list[FakeBrowser] = []
        self.fail_with: BaseException | None = None

    def __call__(self) -> FakeLaunchContext:
        return FakeLaunchContext(self)

    @property
    def launches(self) -> int:
        return len(self.browsers)

    @property
    def current(self) -> FakeBrowser:
        return self.browsers[-1]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def upstream() -> FakeLeetCode:
    fake = FakeLeetCode()
    fake.add_user("leetcode")
    return fake


@pytest.fixture()
def launcher(upstream: FakeLeetCode) -> FakeLauncher:
    return FakeLauncher(upstream.respond)


@pytest.fixture()
def session(launcher: FakeLauncher) -> BrowserSession:
    return BrowserSession(engine="chromium", launcher=launcher, timeout_ms=30000)


@pytest.fixture()
def bridge(session: BrowserSession) -> GraphQLBridge:
    return GraphQLBridge(session, settle_ms=0)


@pytest.fixture()
def extractor(session: BrowserSession, bridge: GraphQLBridge) -> ProfileExtractor:
    return ProfileExtractor(session, bridge)
