# =============================================================================
# core/brave_search.py  -  Brave Search web and local search
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Calls the Brave Search API and formats the results as plain text blocks
#   an LLM can read directly:
#
#     web_search()   → "Title / Description / URL" per result
#     local_search() → business name, address, phone, rating, hours, ...
#
# LOCAL SEARCH FLOW:
#   1. Web search restricted to `locations` to collect location ids
#   2. POI details and descriptions fetched concurrently for those ids
#   3. No ids at all → fall back to a plain web search
#
# QUERY LIMITS:
#   Brave rejects queries over 400 characters or 50 words, so we check
#   those before spending quota.
# =============================================================================

import asyncio
from typing import Any, Optional

import httpx

from core.errors import ToolValidationError
from core.http import RestClient

BASE_URL = "https://api.search.brave.com/res/v1"

MAX_QUERY_CHARS = 400
MAX_QUERY_WORDS = 50
MAX_COUNT = 20


def validate_query(query: str) -> str:
    query = (query or "").strip()
    if not query:
        raise ToolValidationError("must not be empty", field="query")
    if len(query) > MAX_QUERY_CHARS:
        raise ToolValidationError(f"longer than {MAX_QUERY_CHARS} characters", field="query")
    if len(query.split()) > MAX_QUERY_WORDS:
        raise ToolValidationError(f"more than {MAX_QUERY_WORDS} words", field="query")
    return query


def format_web_results(data: dict) -> str:
    results = (data.get("web") or {}).get("results") or []
    blocks = [
        f"Title: {r.get('title') or ''}\n"
        f"Description: {r.get('description') or ''}\n"
        f"URL: {r.get('url') or ''}"
        for r in results
    ]
    return "\n\n".join(blocks) or "No web results found"


def format_local_results(pois: dict, descriptions: dict) -> str:
    descs = descriptions.get("descriptions") or {}
    blocks = []
    for poi in pois.get("results") or []:
        address = poi.get("address") or {}
        address_line = ", ".join(
            part for part in (
                address.get("streetAddress"),
                address.get("addressLocality"),
                address.get("addressRegion"),
                address.get("postalCode"),
            ) if part
        ) or "N/A"
        rating = poi.get("rating") or {}
        rating_value = rating.get("ratingValue")
        hours = ", ".join(poi.get("openingHours") or []) or "N/A"
        blocks.append(
            f"Name: {poi.get('name', 'N/A')}\n"
            f"Address: {address_line}\n"
            f"Phone: {poi.get('phone') or 'N/A'}\n"
            f"Rating: {rating_value if rating_value is not None else 'N/A'} "
            f"({rating.get('ratingCount') or 0} reviews)\n"
            f"Price Range: {poi.get('priceRange') or 'N/A'}\n"
            f"Hours: {hours}\n"
            f"Description: {descs.get(poi.get('id'), 'No description available')}\n"
        )
    return "\n---\n".join(blocks) or "No local results found"


class BraveSearchClient(RestClient):
    """Async client for the Brave Search API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url,
            headers={"Accept-Encoding": "gzip", "X-Subscription-Token": api_key},
            transport=transport,
        )

    async def web_search(self, query: str, count: int = 10, offset: int = 0) -> str:
        data = await self.get(
            "/web/search",
            params={"q": query, "count": min(count, MAX_COUNT), "offset": offset},
        )
        return format_web_results(data)

    async def local_search(self, query: str, count: int = 5) -> str:
        data = await self.get(
            "/web/search",
            params={
                "q": query,
                "search_lang": "en",
                "result_filter": "locations",
                "count": min(count, MAX_COUNT),
            },
        )
        ids = [r["id"] for r in (data.get("locations") or {}).get("results") or [] if r.get("id")]
        if not ids:
            return await self.web_search(query, count)

        pois, descriptions = await asyncio.gather(self.pois(ids), self.descriptions(ids))
        return format_local_results(pois, descriptions)

    async def pois(self, ids: list[str]) -> Any:
        return await self.get("/local/pois", params=[("ids", i) for i in ids])

    async def descriptions(self, ids: list[str]) -> Any:
        return await self.get("/local/descriptions", params=[("ids", i) for i in ids])
