"""MCP tools for tracking friends and their LeetCode progress."""

from __future__ import annotations

from urllib.parse import quote, urlencode

from .formatting import format_error, format_friend, format_stats
from .service_client import call_service


async def add_friend(handle: str) -> str:
    """Start tracking a LeetCode handle. Scrapes it immediately.

    Args:
        handle: LeetCode username.

    Returns:
        The stored friend record, or why it could not be added.
    """
    result = await call_service("POST", "/friends", {"handle": handle})
    if "error" in result:
        return format_error(result)
    return f"Friend added.\n{format_friend(result.get('friend', {}))}"


async def refresh_friend(handle: str) -> str:
    """Re-scrape one tracked friend.

    Args:
        handle: LeetCode username of a tracked friend.
    """
    result = await call_service("POST", f"/friends/{quote(handle.strip(), safe='')}/refresh")
    if "error" in result:
        return format_error(result)
    return f"Friend updated.\n{format_friend(result.get('friend', {}))}"


async def remove_friend(handle: str) -> str:
    """Stop tracking a friend. Stored statistics are kept but hidden."""
    result = await call_service("DELETE", f"/friends/{quote(handle.strip(), safe='')}")
    if "error" in result:
        return format_error(result)
    return result.get("message", "Friend removed.")


async def list_friends() -> str:
    """List tracked friends with their latest statistics."""
    result = await call_service("GET", "/friends")
    if "error" in result:
        return format_error(result)

    friends = result.get("friends", [])
    if not friends:
        return "No friends tracked yet. Use add_friend with a LeetCode handle."

    lines = [f"Tracking {len(friends)} friends:\n"]
    for i, friend in enumerate(friends, 1):
        lines.append(f"{i}. {format_friend(friend)}\n")
    return "\n".join(lines)


async def friends_leaderboard(sort_by: str = "total_solved", order: str = "desc") -> str:
    """Rank tracked friends.

    Args:
        sort_by: "total_solved", "ranking", "contest_rating", or "streak".
        order: "desc" (default) or "asc".
    """
    query = urlencode({"sort_by": sort_by, "order": order})
    result = await call_service("GET", f"/friends/leaderboard?{query}")
    if "error" in result:
        return format_error(result)

    entries = result.get("leaderboard", [])
    if not entries:
        return "Leaderboard is empty. Add friends and let their profiles scrape first."

    lines = [f"Leaderboard by {sort_by} ({order}):\n"]
    for entry in entries:
        lines.append(
            f"{entry['position']}. **{entry.get('display_name') or entry['handle']}** "
            f"(@{entry['handle']})\n   {format_stats(entry.get('stats', {}))}"
        )
    return "\n".join(lines)


async def bulk_refresh(limit: int = 10) -> str:
    """Refresh stale friends (not scraped in the last hour, or last failed).

    Args:
        limit: Maximum friends to refresh in this pass (default 10).
    """
    result = await call_service("POST", "/friends/bulk-update", {"limit": limit})
    if "error" in result:
        return format_error(result)

    lines = [
        f"Refreshed {result.get('total', 0)} friends: "
        f"{result.get('succeeded', 0)} succeeded, "
        f"{result.get('not_found', 0)} not found, "
        f"{result.get('failed', 0)} failed."
    ]
    for item in result.get("items", []):
        if item.get("status") != "success":
            lines.append(f"   - {item['handle']}: {item.get('status')} {item.get('message', '')}".rstrip())
    return "\n".join(lines)
