"""In-page GraphQL calls against LeetCode, routed through the shared browser.

Requests are issued with `fetch` from inside a page that has already loaded a
LeetCode profile, so they carry the browser's TLS fingerprint, cookies and
origin. A plain server-side HTTP client gets challenged by LeetCode's bot
detection.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..config import BROWSER_TIMEOUT, PAGE_SETTLE_MS
from ..constants import LEETCODE_BASE, LEETCODE_GRAPHQL_URL, LEETCODE_PROFILE_URL, NOT_FOUND_MARKERS
from .browser import BrowserSession
from .errors import HttpFault, NetworkFault, ParseFault, TimeoutFault, UpstreamFault, classify_error

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

# Runs inside the page; never lets a fetch exception escape.
FETCH_GRAPHQL_JS = """
async ({ url, referer, query, variables }) => {
    try {
        const res = await fetch(url, {
            method: 'POST',
            headers: {
                'Content-Type': 'application/json',
                'Referer': referer
            },
            body: JSON.stringify({ query, variables })
        });
        return { ok: res.ok, status: res.status, text: await res.text() };
    } catch (err) {
        return { ok: false, status: 0, error: String((err && err.message) || err) };
    }
}
"""


def profile_url(handle: str) -> str:
    return f"{LEETCODE_PROFILE_URL}{quote(handle, safe='')}/"


def parse_graphql_response(response: dict) -> Optional[dict]:
    """Classify the raw `{ok, status, text, error}` record captured in the page.

    Returns the `data` payload, or None when upstream reports the entity as
    not found. Raises a typed ScrapeError for every other failure.
    """
    if response.get("error"):
        raise NetworkFault(f"Network error: {response['error']}")

    status = int(response.get("status") or 0)
    if not response.get("ok") or not 200 <= status < 300:
        raise HttpFault(status)

    try:
        payload = json.loads(response.get("text") or "")
    except json.JSONDecodeError as e:
        raise ParseFault(f"Invalid response from LeetCode API: {e}") from e
    if not isinstance(payload, dict):
        raise ParseFault("Invalid response from LeetCode API: expected a JSON object")

    errors = payload.get("errors")
    if errors:
        first = errors[0] if isinstance(errors, list) else errors
        message = first.get("message", "") if isinstance(first, dict) else str(first)
        message = message or "Unknown error"
        # Upstream folds several conditions into "not found"; treated as absence
        if any(marker in message.lower() for marker in NOT_FOUND_MARKERS):
            return None
        raise UpstreamFault(f"LeetCode API Error: {message}")

    return payload.get("data") or {}


class GraphQLBridge:
    """Opens profile pages and runs GraphQL queries from inside them."""

    def __init__(
        self,
        session: BrowserSession,
        settle_ms: int = PAGE_SETTLE_MS,
        timeout_ms: int = BROWSER_TIMEOUT,
    ):
        self._session = session
        self._settle_ms = settle_ms
        self._timeout_ms = timeout_ms

    @asynccontextmanager
    async def profile_page(self, handle: str) -> AsyncIterator[Page]:
        """Yield a page parked on the handle's profile; the page is always released."""
        async with self._session.page(user_agent=self._session.user_agent) as page:
            url = profile_url(handle)
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self._timeout_ms)
                if self._settle_ms:
                    await page.wait_for_timeout(self._settle_ms)
            except (PlaywrightError, asyncio.TimeoutError) as e:
                raise classify_error(e) from e
            logger.info(f"Profile page ready: {url}")
            yield page

    async def query(self, page: Page, query: str, variables: dict[str, Any]) -> Optional[dict]:
        """Execute one GraphQL query in `page`. The caller owns the page.

        `page.evaluate` has no timeout of its own, so the in-page fetch is
        bounded here and a hung request surfaces as a TimeoutFault.
        """
        payload = {
            "url": LEETCODE_GRAPHQL_URL,
            "referer": f"{LEETCODE_BASE}/",
            "query": query,
            "variables": variables,
        }
        try:
            response = await asyncio.wait_for(
                page.evaluate(FETCH_GRAPHQL_JS, payload), timeout=self._timeout_ms / 1000
            )
        except asyncio.TimeoutError as e:
            raise TimeoutFault(
                f"Request timeout. LeetCode did not answer within {self._timeout_ms} ms."
            ) from e
        except PlaywrightError as e:
            raise classify_error(e) from e

        if not isinstance(response, dict):
            raise ParseFault("In-page fetch returned no response record")
        return parse_graphql_response(response)
