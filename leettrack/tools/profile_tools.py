"""MCP tools for one-off LeetCode profile lookups."""

from __future__ import annotations

from urllib.parse import quote

from .formatting import format_error, format_stats, format_submissions
from .service_client import call_service


async def lookup_profile(handle: str) -> str:
    """Scrape a LeetCode profile without adding it as a friend.

    Args:
        handle: LeetCode username.

    Returns:
        Summary of solved counts, ranking, contest rating, streak, and the
        most recent accepted submissions.
    """
    handle = handle.strip()
    if not handle:
        return "Error: a LeetCode handle is required."

    result = await call_service("GET", f"/scrape/profile/{quote(handle, safe='')}")
    if "error" in result:
        return format_error(result)

    profile = result.get("profile", {})
    return (
        f"**{profile.get('display_name', handle)}** (@{handle})\n"
        f"{format_stats(profile)}\n"
        f"Recent accepted submissions:\n"
        f"{format_submissions(profile.get('recent_submissions', []))}"
    )


async def validate_handle(handle: str) -> str:
    """Check whether a LeetCode handle exists (single attempt, no retries).

    Args:
        handle: LeetCode username.

    Returns:
        Whether the handle resolved to a LeetCode profile.
    """
    handle = handle.strip()
    if not handle:
        return "Error: a LeetCode handle is required."

    result = await call_service("GET", f"/scrape/validate/{quote(handle, safe='')}")
    if "error" in result:
        return format_error(result)

    if result.get("is_valid"):
        return f"'{handle}' is a valid LeetCode profile."
    return f"'{handle}' could not be verified. Check the username or try again later."
