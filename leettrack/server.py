"""MCP Server entry point for the LeetCode friend tracker.

Exposes 10 tools via the Model Context Protocol:
- Profiles: lookup_profile, validate_handle
- Friends: add_friend, refresh_friend, remove_friend, list_friends,
  friends_leaderboard, bulk_refresh
- Session: session_status, stop_session

The scraper HTTP service (aiohttp on localhost:8031) is auto-started
as part of the MCP server lifecycle; no separate process needed.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from aiohttp.web import AppRunner, TCPSite
from mcp.server.fastmcp import FastMCP

from .config import SERVICE_HOST, SERVICE_PORT, ensure_dirs
from .tools.friend_tools import (
    add_friend,
    bulk_refresh,
    friends_leaderboard,
    list_friends,
    refresh_friend,
    remove_friend,
)
from .tools.profile_tools import lookup_profile, validate_handle
from .tools.session_tools import session_status, stop_session

# Configure logging to stderr (stdout is reserved for MCP JSON-RPC)
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("leettrack")

ensure_dirs()


# ── Lifespan: auto-start the scraper service ─────────────────────────────────


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Start the scraper HTTP service alongside the MCP server."""
    from .scraper.service import create_app

    app = create_app()
    runner = AppRunner(app)
    await runner.setup()
    site = TCPSite(runner, SERVICE_HOST, SERVICE_PORT)
    managed = False
    try:
        await site.start()
        logger.info("Scraper service auto-started on %s:%s", SERVICE_HOST, SERVICE_PORT)
        managed = True
    except OSError:
        # Port already in use: assume the service was started manually
        logger.info("Scraper service already running on %s:%s", SERVICE_HOST, SERVICE_PORT)
        await runner.cleanup()

    try:
        yield {}
    finally:
        if managed:
            await runner.cleanup()
            logger.info("Scraper service stopped.")


# ── MCP Server ───────────────────────────────────────────────────────────────

mcp = FastMCP(
    "leettrack",
    lifespan=lifespan,
    instructions=(
        "LeetCode friend tracker. Profiles are scraped through a headless browser, "
        "so each lookup takes a few seconds. Use lookup_profile for one-off checks "
        "and add_friend to start tracking someone. list_friends and "
        "friends_leaderboard read stored data instantly; refresh_friend and "
        "bulk_refresh re-scrape. If scrapes keep failing, check session_status "
        "and call stop_session to force a fresh browser."
    ),
)


# ── Profile Tools ────────────────────────────────────────────────────────────


@mcp.tool()
async def tool_lookup_profile(handle: str) -> str:
    """Scrape a LeetCode profile without tracking it.

    Args:
        handle: LeetCode username.
    """
    return await lookup_profile(handle)


@mcp.tool()
async def tool_validate_handle(handle: str) -> str:
    """Check that a LeetCode username exists (single attempt).

    Args:
        handle: LeetCode username.
    """
    return await validate_handle(handle)


# ── Friend Tools ─────────────────────────────────────────────────────────────


@mcp.tool()
async def tool_add_friend(handle: str) -> str:
    """Track a LeetCode user as a friend. Scrapes the profile right away.

    Args:
        handle: LeetCode username.
    """
    return await add_friend(handle)


@mcp.tool()
async def tool_refresh_friend(handle: str) -> str:
    """Re-scrape a tracked friend's profile.

    Args:
        handle: LeetCode username of a tracked friend.
    """
    return await refresh_friend(handle)


@mcp.tool()
async def tool_remove_friend(handle: str) -> str:
    """Stop tracking a friend.

    Args:
        handle: LeetCode username of a tracked friend.
    """
    return await remove_friend(handle)


@mcp.tool()
async def tool_list_friends() -> str:
    """List tracked friends with their stored statistics (instant)."""
    return await list_friends()


@mcp.tool()
async def tool_friends_leaderboard(sort_by: str = "total_solved", order: str = "desc") -> str:
    """Rank tracked friends by a statistic.

    Args:
        sort_by: "total_solved", "ranking", "contest_rating", or "streak".
        order: "desc" or "asc".
    """
    return await friends_leaderboard(sort_by, order)


@mcp.tool()
async def tool_bulk_refresh(limit: int = 10) -> str:
    """Refresh friends whose data is stale or whose last scrape failed.

    Args:
        limit: Maximum friends to refresh (default 10).
    """
    return await bulk_refresh(limit)


# ── Session Tools ────────────────────────────────────────────────────────────


@mcp.tool()
async def tool_session_status() -> str:
    """Show browser state, open pages, and how many friends are tracked."""
    return await session_status()


@mcp.tool()
async def tool_stop_session() -> str:
    """Close the headless browser; the next scrape starts a fresh one."""
    return await stop_session()


# ── Entry Point ──────────────────────────────────────────────────────────────


def main():
    """Run the MCP server on STDIO transport."""
    logger.info("Starting LeetCode tracker MCP server...")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
