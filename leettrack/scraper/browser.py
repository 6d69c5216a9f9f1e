"""Shared headless browser lifecycle: lazy launch, disconnect tracking, teardown."""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from camoufox.async_api import AsyncCamoufox
from playwright.async_api import Browser, Page, async_playwright

from ..config import BROWSER_ENGINE, BROWSER_HEADLESS, BROWSER_TIMEOUT
from ..constants import CAMOUFOX_SANDBOX_PREFS, CHROMIUM_ARGS, DESKTOP_USER_AGENT
from .errors import LaunchFault, SessionResetFault

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

Launcher = Callable[[], AsyncContextManager[Browser]]


class SessionState(str, Enum):
    ABSENT = "absent"
    LAUNCHING = "launching"
    READY = "ready"
    DISCONNECTED = "disconnected"


def camoufox_launcher(
    headless: bool = BROWSER_HEADLESS, timeout_ms: int = BROWSER_TIMEOUT
) -> Launcher:
    def launch() -> AsyncContextManager[Browser]:
        return AsyncCamoufox(
            headless=headless,
            geoip=True,
            i_know_what_im_doing=True,
            firefox_user_prefs=CAMOUFOX_SANDBOX_PREFS,
            timeout=timeout_ms,
        )

    return launch


def chromium_launcher(
    headless: bool = BROWSER_HEADLESS, timeout_ms: int = BROWSER_TIMEOUT
) -> Launcher:
    @asynccontextmanager
    async def launch() -> AsyncIterator[Browser]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=headless,
                chromium_sandbox=False,
                args=CHROMIUM_ARGS,
                timeout=timeout_ms,
            )
            try:
                yield browser
            finally:
                await browser.close()

    return launch


class BrowserSession:
    """Owns the single browser process shared by all scrapes.

    Pages are opened per scrape through `page()`. The session is never locked
    while scrapes run; only launching is serialized so that concurrent callers
    share one process. `generation` changes on every launch and teardown, which
    lets callers tell "my session was reset under me" apart from a crash.
    """

    def __init__(
        self,
        engine: str = BROWSER_ENGINE,
        headless: bool = BROWSER_HEADLESS,
        launcher: Optional[Launcher] = None,
        timeout_ms: int = BROWSER_TIMEOUT,
    ):
        if launcher is None:
            if engine == "chromium":
                launcher = chromium_launcher(headless, timeout_ms)
            elif engine == "camoufox":
                launcher = camoufox_launcher(headless, timeout_ms)
            else:
                raise ValueError(f"Unknown browser engine: {engine!r}")
        self.engine = engine
        # Camoufox generates a consistent fingerprint of its own
        self.user_agent: Optional[str] = DESKTOP_USER_AGENT if engine == "chromium" else None
        self._launcher = launcher
        self._timeout_ms = timeout_ms
        self._launch_cm: Optional[AsyncContextManager[Browser]] = None
        self._browser: Optional[Browser] = None
        self._state = SessionState.ABSENT
        self._generation = 0
        self._open_pages = 0
        self._launch_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def open_pages(self) -> int:
        return self._open_pages

    @property
    def is_ready(self) -> bool:
        return (
            self._state == SessionState.READY
            and self._browser is not None
            and self._browser.is_connected()
        )

    async def ensure_session(self) -> int:
        """Launch the browser unless a connected one exists. Returns the generation."""
        if self.is_ready:
            return self._generation

        async with self._launch_lock:
            if self.is_ready:
                return self._generation
            if self._launch_cm is not None:
                logger.info(f"Discarding stale browser session (state={self._state.value})")
                await self._close_quietly()
            await self._launch()
        return self._generation

    async def _launch(self):
        self._state = SessionState.LAUNCHING
        logger.info(f"Launching {self.engine} browser...")
        launch_cm = self._launcher()
        try:
            browser = await launch_cm.__aenter__()
        except Exception as e:
            self._state = SessionState.ABSENT
            logger.error(f"Failed to launch browser: {e}")
            raise LaunchFault(f"Failed to initialize web scraper: {e}") from e

        browser.on("disconnected", self._on_disconnected)
        self._launch_cm = launch_cm
        self._browser = browser
        self._generation += 1
        self._state = SessionState.READY
        logger.info(f"Browser ready (generation {self._generation}).")

    def _on_disconnected(self, browser: Browser):
        if browser is self._browser and self._state == SessionState.READY:
            logger.warning(f"Browser disconnected (generation {self._generation}).")
            self._state = SessionState.DISCONNECTED

    async def teardown_session(self):
        """Close the browser if one exists. Always leaves the session absent."""
        if self._launch_cm is None:
            self._state = SessionState.ABSENT
            return

        logger.info(f"Tearing down browser session (generation {self._generation})...")
        await self._close_quietly()
        self._generation += 1
        self._state = SessionState.ABSENT
        logger.info("Browser session stopped.")

    async def _close_quietly(self):
        launch_cm, self._launch_cm, self._browser = self._launch_cm, None, None
        if launch_cm is None:
            return
        try:
            await launch_cm.__aexit__(None, None, None)
        except Exception as e:
            # The process may already be dead
            logger.warning(f"Error closing browser: {e}")

    @asynccontextmanager
    async def page(self, **options) -> AsyncIterator[Page]:
        """Open a page in the current session and close it on every exit path."""
        await self.ensure_session()
        browser = self._browser
        if browser is None:
            raise SessionResetFault("Browser session was reset before a page could be opened.")

        page = await browser.new_page(**options)
        self._open_pages += 1
        try:
            page.set_default_timeout(self._timeout_ms)
            page.set_default_navigation_timeout(self._timeout_ms)
            yield page
        finally:
            self._open_pages -= 1
            await self._close_page(page)

    async def _close_page(self, page: Page):
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            logger.warning(f"Error closing page: {e}")
