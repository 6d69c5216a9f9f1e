"""HTTP client for the local scraper service."""

from __future__ import annotations

import httpx

from ..config import SERVICE_URL


async def call_service(method: str, path: str, json_body: dict | None = None) -> dict:
    """Make a request to the scraper service.

    Never raises: transport problems and error responses come back as
    `{"error": ...}` dicts.
    """
    url = f"{SERVICE_URL}{path}"
    try:
        async with httpx.AsyncClient(timeout=120.0) as client:
            if method == "GET":
                resp = await client.get(url)
            elif method == "DELETE":
                resp = await client.delete(url)
            else:
                resp = await client.post(url, json=json_body or {})

            if resp.status_code >= 400:
                try:
                    data = resp.json()
                except ValueError:
                    data = {}
                return {
                    "error": data.get("error", f"HTTP {resp.status_code}"),
                    "status": resp.status_code,
                    "error_kind": data.get("error_kind"),
                }
            return resp.json()

    except httpx.ConnectError:
        return {
            "error": "Scraper service is not reachable at "
            f"{SERVICE_URL}. It should auto-start with the MCP server. "
            "If running standalone: python -m leettrack.scraper"
        }
    except httpx.TimeoutException:
        return {"error": "Scraper service timed out. LeetCode may be slow."}
    except Exception as e:
        return {"error": f"Failed to connect to scraper service: {e}"}
