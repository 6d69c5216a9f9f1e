"""MCP tools for inspecting and stopping the scraper's browser session."""

from __future__ import annotations

import json

from .formatting import format_error
from .service_client import call_service


async def session_status() -> str:
    """Report browser state, session generation, open pages, and friend count.

    Returns:
        JSON-formatted service status.
    """
    result = await call_service("GET", "/status")
    if "error" in result:
        return format_error(result)
    return json.dumps(result, indent=2)


async def stop_session() -> str:
    """Close the headless browser. The next scrape relaunches it.

    Returns:
        Confirmation message.
    """
    result = await call_service("POST", "/stop")
    if "error" in result:
        return format_error(result)
    return result.get("message", "Browser stopped.")
