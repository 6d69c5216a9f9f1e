"""
tests/test_graphql.py

Tests for the in-page GraphQL bridge.

Coverage
--------
- Response classification: network error, HTTP status, bad JSON,
  "not found" errors, other GraphQL errors, null data
- Queries run through page.evaluate with the right payload
- Profile pages: navigation target, user agent, timeouts, release on
  success / error / timeout, no double close after a crash
- A hung in-page fetch is cut off by the bridge timeout
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from leettrack.constants import DESKTOP_USER_AGENT, USER_PROFILE_QUERY
from leettrack.models.outcome import ErrorKind
from leettrack.scraper.errors import (
    ConnectionFault,
    HttpFault,
    NetworkFault,
    ParseFault,
    TimeoutFault,
    UpstreamFault,
)
from leettrack.scraper.graphql import GraphQLBridge, parse_graphql_response, profile_url
from tests.conftest import graphql_error, hang, http_status, ok, profile_data


class TestParseGraphQLResponse:
    def test_returns_data(self) -> None:
        assert parse_graphql_response(ok({"a": 1})) == {"a": 1}

    def test_null_data_is_empty_dict(self) -> None:
        assert parse_graphql_response(ok(None)) == {}

    def test_in_page_fetch_error(self) -> None:
        with pytest.raises(NetworkFault):
            parse_graphql_response({"ok": False, "status": 0, "error": "Failed to fetch"})

    @pytest.mark.parametrize("status", [403, 429, 500])
    def test_http_error_keeps_status(self, status: int) -> None:
        with pytest.raises(HttpFault) as exc_info:
            parse_graphql_response(http_status(status))
        assert exc_info.value.status == status
        assert exc_info.value.kind == ErrorKind.HTTP

    def test_invalid_json(self) -> None:
        with pytest.raises(ParseFault):
            parse_graphql_response({"ok": True, "status": 200, "text": "<html>"})

    def test_json_array_is_parse_error(self) -> None:
        with pytest.raises(ParseFault):
            parse_graphql_response({"ok": True, "status": 200, "text": "[1, 2]"})

    @pytest.mark.parametrize("message", ["User not found", "That user was NOT FOUND."])
    def test_not_found_errors_mean_absent(self, message: str) -> None:
        assert parse_graphql_response(graphql_error(message)) is None

    def test_other_errors_are_upstream_faults(self) -> None:
        with pytest.raises(UpstreamFault) as exc_info:
            parse_graphql_response(graphql_error("Rate limit exceeded"))
        assert "Rate limit exceeded" in exc_info.value.message


def test_profile_url_quotes_handle() -> None:
    assert profile_url("leetcode") == "https://leetcode.com/u/leetcode/"
    assert profile_url("a/b c") == "https://leetcode.com/u/a%2Fb%20c/"


class TestBridge:
    async def test_query_sends_document_and_variables(self, bridge, upstream) -> None:
        async with bridge.profile_page("leetcode") as page:
            data = await bridge.query(page, USER_PROFILE_QUERY, {"username": "leetcode"})
        assert data == profile_data(username="leetcode")
        assert upstream.calls == [("leetcode", "profile")]

    async def test_profile_page_setup(self, bridge, launcher, session) -> None:
        async with bridge.profile_page("leetcode") as page:
            assert page.url == "https://leetcode.com/u/leetcode/"
            assert page.options["user_agent"] == DESKTOP_USER_AGENT
            assert page.default_timeout == 30000
            assert page.navigation_timeout == 30000
            assert session.open_pages == 1
        assert page.closed
        assert session.open_pages == 0
        assert launcher.current.open_pages == []

    async def test_page_released_when_body_raises(self, bridge, launcher) -> None:
        with pytest.raises(UpstreamFault):
            async with bridge.profile_page("leetcode") as page:
                raise UpstreamFault("boom")
        assert page.closed
        assert launcher.current.open_pages == []

    async def test_navigation_timeout_is_classified(self, bridge, session, launcher) -> None:
        await session.ensure_session()
        launcher.current.goto_error = PlaywrightTimeoutError("Timeout 30000ms exceeded.")
        with pytest.raises(TimeoutFault):
            async with bridge.profile_page("leetcode"):
                pass
        assert launcher.current.open_pages == []

    async def test_evaluate_on_dead_page_is_connection_fault(self, bridge, launcher) -> None:
        with pytest.raises(ConnectionFault):
            async with bridge.profile_page("leetcode") as page:
                launcher.current.crash()
                await bridge.query(page, USER_PROFILE_QUERY, {"username": "leetcode"})
        # Page died with the browser; cleanup must not try to close it again
        assert page.close_calls == 0

    async def test_evaluate_generic_browser_error_is_network_fault(self, bridge, upstream) -> None:
        upstream.add_user("leetcode", profile=lambda: PlaywrightError("net::ERR_FAILED"))
        async with bridge.profile_page("leetcode") as page:
            with pytest.raises(NetworkFault):
                await bridge.query(page, USER_PROFILE_QUERY, {"username": "leetcode"})

    async def test_hung_query_is_bounded_by_timeout(self, session, upstream) -> None:
        upstream.add_user("leetcode", profile=hang)
        bridge = GraphQLBridge(session, settle_ms=0, timeout_ms=100)

        async with bridge.profile_page("leetcode") as page:
            with pytest.raises(TimeoutFault) as excinfo:
                await asyncio.wait_for(
                    bridge.query(page, USER_PROFILE_QUERY, {"username": "leetcode"}), timeout=5
                )

        assert excinfo.value.kind == ErrorKind.TIMEOUT
        assert "100 ms" in excinfo.value.message
        assert session.open_pages == 0
