"""LeetCode URLs, GraphQL documents, browser flags, and error markers."""

# ── URLs ─────────────────────────────────────────────────────────────────────

LEETCODE_BASE = "https://leetcode.com"
LEETCODE_GRAPHQL_URL = f"{LEETCODE_BASE}/graphql"
LEETCODE_PROFILE_URL = f"{LEETCODE_BASE}/u/"  # append handle + "/"

# ── GraphQL Queries ──────────────────────────────────────────────────────────

USER_PROFILE_QUERY = """
query getUserProfile($username: String!) {
  matchedUser(username: $username) {
    username
    profile {
      realName
      userAvatar
      ranking
    }
    submitStats: submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
  recentSubmissionList(username: $username) {
    title
    titleSlug
    timestamp
    statusDisplay
    lang
  }
}
"""

USER_CONTEST_QUERY = """
query getUserContest($username: String!) {
  userContestRanking(username: $username) {
    rating
  }
}
"""

USER_CALENDAR_QUERY = """
query getUserCalendar($username: String!) {
  matchedUser(username: $username) {
    userCalendar {
      streak
    }
  }
}
"""

# ── Profile Normalization ────────────────────────────────────────────────────

DIFFICULTIES = ("Easy", "Medium", "Hard")
ACCEPTED_STATUS = "Accepted"
UNKNOWN_LANGUAGE = "Unknown"
MAX_RECENT_SUBMISSIONS = 50

# ── Browser ──────────────────────────────────────────────────────────────────

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# Firefox prefs that turn off the content sandbox inside containers
CAMOUFOX_SANDBOX_PREFS = {
    "security.sandbox.content.level": 0,
    "media.cubeb.sandbox": False,
}

# ── Error Classification ─────────────────────────────────────────────────────

# Upstream GraphQL error text treated as "no such user"
NOT_FOUND_MARKERS = ("not found",)

# Playwright error text that means the browser or its channel is gone
CONNECTION_ERROR_MARKERS = (
    "target closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "browser has disconnected",
    "connection closed",
    "protocol error",
)

# ── Friends ──────────────────────────────────────────────────────────────────

MAX_STORED_ERRORS = 5
LEADERBOARD_SORT_FIELDS = ("total_solved", "ranking", "contest_rating", "streak")
