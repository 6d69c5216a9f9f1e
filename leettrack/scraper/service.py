"""Scraper HTTP service.

Runs as a lightweight local web server that owns the shared browser session
and the friend database. Every scrape goes through the retry orchestrator
except `/scrape/validate`, which is a single cheap attempt.

Endpoints:
    GET    /status                    - Browser state and database counters
    POST   /stop                      - Tear the browser down
    GET    /scrape/profile/{handle}   - Scrape a profile (retried)
    GET    /scrape/validate/{handle}  - Check that a handle exists (single attempt)
    GET    /friends                   - List tracked friends
    POST   /friends                   - Track a new friend
    GET    /friends/leaderboard       - Friends ranked by a statistic
    POST   /friends/bulk-update       - Refresh stale friends in one sweep
    GET    /friends/{handle}          - One friend's stored record
    DELETE /friends/{handle}          - Stop tracking a friend
    POST   /friends/{handle}/refresh  - Re-scrape one friend
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import aiosqlite
from aiohttp import web

from ..config import (
    CONNECTION_BACKOFF_SECONDS,
    DB_PATH,
    MAX_SCRAPE_ATTEMPTS,
    RETRY_BACKOFF_SECONDS,
    SERVICE_HOST,
    SERVICE_PORT,
    STALE_AFTER_MINUTES,
    SWEEP_CONCURRENCY,
    SWEEP_DEFAULT_LIMIT,
    ensure_dirs,
)
from ..database.models import initialize_db
from ..database.repository import FriendRepository
from ..models.friend import Friend, ScrapingStatus, normalize_handle
from ..models.outcome import ScrapeOutcome
from .browser import BrowserSession
from .extractor import ProfileExtractor
from .retry import with_retry
from .sweep import PROFILE_NOT_FOUND, run_sweep

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

NOT_FOUND_MESSAGE = "LeetCode profile not found. Please check the username."
UNAVAILABLE_MESSAGE = "Temporarily unable to reach LeetCode, try again."


class ScraperService:
    """Owns the browser session, extractor and friend repository."""

    def __init__(
        self,
        browser: Optional[BrowserSession] = None,
        db_path: Path = DB_PATH,
        max_attempts: int = MAX_SCRAPE_ATTEMPTS,
        connection_backoff: float = CONNECTION_BACKOFF_SECONDS,
        retry_backoff: float = RETRY_BACKOFF_SECONDS,
        sweep_concurrency: int = SWEEP_CONCURRENCY,
        stale_after: timedelta = timedelta(minutes=STALE_AFTER_MINUTES),
    ):
        self.browser = browser or BrowserSession()
        self.extractor = ProfileExtractor(self.browser)
        self.db: aiosqlite.Connection | None = None
        self.repo: FriendRepository | None = None
        self.sweep_concurrency = sweep_concurrency
        self.stale_after = stale_after
        self._db_path = Path(db_path)
        self._max_attempts = max_attempts
        self._connection_backoff = connection_backoff
        self._retry_backoff = retry_backoff

    async def setup(self):
        """Initialize database connection."""
        if self._db_path == DB_PATH:
            ensure_dirs()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db = await aiosqlite.connect(str(self._db_path))
        await initialize_db(self.db)
        self.repo = FriendRepository(self.db)

    async def cleanup(self):
        """Clean up resources."""
        await self.browser.teardown_session()
        if self.db:
            await self.db.close()

    async def scrape_once(self, handle: str) -> ScrapeOutcome:
        return await self.extractor.scrape_profile(handle)

    async def fetch_profile(self, handle: str) -> ScrapeOutcome:
        """Retried scrape; the entry point for every production call site."""
        return await with_retry(
            self.extractor.scrape_profile,
            handle,
            session=self.browser,
            max_attempts=self._max_attempts,
            connection_backoff=self._connection_backoff,
            retry_backoff=self._retry_backoff,
        )


# ── Helpers ──────────────────────────────────────────────────────────────────


def _service(request: web.Request) -> ScraperService:
    return request.app["service"]


def _friend_json(friend: Friend) -> dict:
    data = friend.model_dump(mode="json", exclude={"scraping_errors"})
    data["profile_url"] = friend.profile_url
    return data


def _scrape_error_response(outcome: ScrapeOutcome) -> web.Response:
    if outcome.is_not_found:
        return web.json_response(
            {"error": NOT_FOUND_MESSAGE, "handle": outcome.handle}, status=404
        )
    return web.json_response(
        {
            "error": UNAVAILABLE_MESSAGE,
            "error_kind": outcome.error_kind.value,
            "detail": outcome.message,
            "handle": outcome.handle,
        },
        status=502,
    )


async def _read_json(request: web.Request) -> dict:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Request body must be JSON."}),
            content_type="application/json",
        )
    return body if isinstance(body, dict) else {}


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def handle_status(request: web.Request) -> web.Response:
    svc = _service(request)
    status = {
        "browser_state": svc.browser.state.value,
        "engine": svc.browser.engine,
        "generation": svc.browser.generation,
        "open_pages": svc.browser.open_pages,
        "friend_count": await svc.repo.get_friend_count() if svc.repo else 0,
        "last_sweep_time": await svc.repo.last_sweep_time() if svc.repo else None,
    }
    return web.json_response(status)


async def handle_stop(request: web.Request) -> web.Response:
    await _service(request).browser.teardown_session()
    return web.json_response({"message": "Browser stopped. Stored friend data is still available."})


async def handle_scrape_profile(request: web.Request) -> web.Response:
    handle = request.match_info["handle"].strip()
    if not handle:
        return web.json_response({"error": "LeetCode handle is required."}, status=400)

    outcome = await _service(request).fetch_profile(handle)
    if not outcome.is_success:
        return _scrape_error_response(outcome)
    return web.json_response({"handle": handle, "profile": outcome.profile.model_dump(mode="json")})


async def handle_validate(request: web.Request) -> web.Response:
    handle = request.match_info["handle"].strip()
    outcome = await _service(request).scrape_once(handle) if handle else None
    return web.json_response({"handle": handle, "is_valid": bool(outcome and outcome.is_success)})


async def handle_list_friends(request: web.Request) -> web.Response:
    friends = await _service(request).repo.list_friends()
    return web.json_response({"friends": [_friend_json(f) for f in friends], "count": len(friends)})


async def handle_add_friend(request: web.Request) -> web.Response:
    svc = _service(request)
    body = await _read_json(request)
    handle = normalize_handle(str(body.get("handle", "")))
    if not handle:
        return web.json_response({"error": "LeetCode handle is required."}, status=400)

    if await svc.repo.get_friend(handle):
        return web.json_response(
            {"error": f"'{handle}' is already in your friends list."}, status=409
        )

    logger.info(f"Adding friend: {handle}")
    outcome = await svc.fetch_profile(handle)
    if not outcome.is_success:
        return _scrape_error_response(outcome)

    friend = await svc.repo.upsert_friend_profile(handle, outcome.profile)
    return web.json_response({"friend": _friend_json(friend)}, status=201)


async def handle_get_friend(request: web.Request) -> web.Response:
    friend = await _service(request).repo.get_friend(request.match_info["handle"])
    if friend is None:
        return web.json_response({"error": "Friend not found in your list."}, status=404)
    return web.json_response({"friend": _friend_json(friend)})


async def handle_remove_friend(request: web.Request) -> web.Response:
    handle = normalize_handle(request.match_info["handle"])
    if not await _service(request).repo.remove_friend(handle):
        return web.json_response({"error": "Friend not found in your list."}, status=404)
    return web.json_response({"handle": handle, "message": "Friend removed."})


async def handle_refresh_friend(request: web.Request) -> web.Response:
    svc = _service(request)
    friend = await svc.repo.get_friend(request.match_info["handle"])
    if friend is None:
        return web.json_response({"error": "Friend not found in your list."}, status=404)
    if friend.scraping_status == ScrapingStatus.SCRAPING:
        return web.json_response({"error": "Profile data is already being updated."}, status=409)

    await svc.repo.mark_scraping_started(friend.handle)
    try:
        outcome = await svc.fetch_profile(friend.handle)
        if not outcome.is_success:
            message = PROFILE_NOT_FOUND if outcome.is_not_found else outcome.message
            await svc.repo.mark_scraping_failed(friend.handle, message)
            return _scrape_error_response(outcome)

        friend = await svc.repo.upsert_friend_profile(friend.handle, outcome.profile)
    except Exception as e:
        logger.error(f"Refresh of {friend.handle} failed: {e}")
        await svc.repo.mark_scraping_failed(friend.handle, str(e) or type(e).__name__)
        raise
    return web.json_response({"friend": _friend_json(friend)})


async def handle_leaderboard(request: web.Request) -> web.Response:
    sort_by = request.query.get("sort_by", "total_solved")
    order = request.query.get("order", "desc")
    entries = await _service(request).repo.leaderboard(sort_by, order)
    return web.json_response(
        {"leaderboard": [e.model_dump(mode="json") for e in entries], "count": len(entries)}
    )


async def handle_bulk_update(request: web.Request) -> web.Response:
    svc = _service(request)
    body = await _read_json(request)
    try:
        limit = int(body.get("limit", SWEEP_DEFAULT_LIMIT))
    except (TypeError, ValueError):
        return web.json_response({"error": "limit must be an integer."}, status=400)
    if limit < 1:
        return web.json_response({"error": "limit must be positive."}, status=400)

    report = await run_sweep(
        svc.repo,
        svc.fetch_profile,
        limit=limit,
        stale_after=svc.stale_after,
        concurrency=svc.sweep_concurrency,
    )
    return web.json_response(report.summary())


# ── App Factory ──────────────────────────────────────────────────────────────


async def on_startup(app: web.Application):
    await app["service"].setup()
    logger.info(f"Scraper service started on {SERVICE_HOST}:{SERVICE_PORT}")


async def on_cleanup(app: web.Application):
    await app["service"].cleanup()
    logger.info("Scraper service stopped.")


def create_app(service: Optional[ScraperService] = None) -> web.Application:
    app = web.Application()
    app["service"] = service or ScraperService()
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    app.router.add_get("/status", handle_status)
    app.router.add_post("/stop", handle_stop)
    app.router.add_get("/scrape/profile/{handle}", handle_scrape_profile)
    app.router.add_get("/scrape/validate/{handle}", handle_validate)
    app.router.add_get("/friends", handle_list_friends)
    app.router.add_post("/friends", handle_add_friend)
    app.router.add_get("/friends/leaderboard", handle_leaderboard)
    app.router.add_post("/friends/bulk-update", handle_bulk_update)
    app.router.add_get("/friends/{handle}", handle_get_friend)
    app.router.add_delete("/friends/{handle}", handle_remove_friend)
    app.router.add_post("/friends/{handle}/refresh", handle_refresh_friend)

    return app


def main():
    """Run the scraper as a standalone HTTP service."""
    app = create_app()
    web.run_app(app, host=SERVICE_HOST, port=SERVICE_PORT)


if __name__ == "__main__":
    main()
