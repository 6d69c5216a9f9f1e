"""Plain-text rendering of service responses for MCP tool output."""

from __future__ import annotations


def format_error(result: dict) -> str:
    message = f"Error: {result['error']}"
    if result.get("error_kind"):
        message += f" ({result['error_kind']})"
    return message


def format_stats(stats: dict) -> str:
    return (
        f"Solved: {stats.get('total_solved', 0)} "
        f"(E {stats.get('easy_solved', 0)} / M {stats.get('medium_solved', 0)} / "
        f"H {stats.get('hard_solved', 0)}) | "
        f"Ranking: {stats.get('ranking') or 'N/A'} | "
        f"Contest rating: {stats.get('contest_rating', 0)} | "
        f"Streak: {stats.get('streak', 0)} days"
    )


def format_submissions(submissions: list[dict], limit: int = 5) -> str:
    if not submissions:
        return "   No recent accepted submissions."
    lines = []
    for sub in submissions[:limit]:
        lines.append(
            f"   - {sub.get('title', 'Untitled')} [{sub.get('language', 'Unknown')}] "
            f"at {sub.get('submitted_at', '?')}"
        )
    return "\n".join(lines)


def format_friend(friend: dict) -> str:
    stats = friend.get("stats")
    name = friend.get("display_name") or friend.get("handle", "?")
    lines = [f"**{name}** (@{friend.get('handle', '?')})"]
    if stats:
        lines.append(f"   {format_stats(stats)}")
    else:
        lines.append("   No statistics yet.")
    lines.append(
        f"   Status: {friend.get('scraping_status', 'unknown')} | "
        f"Last scraped: {friend.get('last_scraped_at') or 'never'}"
    )
    if friend.get("last_error"):
        lines.append(f"   Last error: {friend['last_error']}")
    return "\n".join(lines)
