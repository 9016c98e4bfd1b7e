# =============================================================================
# tools/brave_search_server.py  -  FastMCP server for Brave Search
# =============================================================================
#
# TOOLS:
#   brave_web_search   → general web results (news, articles, docs)
#   brave_local_search → businesses and places, falls back to web search
#
# QUOTA:
#   Brave's plans cap the ACCOUNT at 1 request/second and 15000/month, so
#   both tools draw from one shared "brave-search" quota.  A local search
#   issues up to three upstream requests but is counted as one tool call.
#
# CREDENTIALS:
#   BRAVE_API_KEY (required, the server refuses to start without it)
# =============================================================================

from typing import Annotated, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from core.brave_search import MAX_COUNT, BraveSearchClient, validate_query
from core.config import load_adapter_settings, require_env
from core.governor import RequestGovernor
from core.models import AdapterSettings
from tools.common import execute_tool, log_request, make_governor, respond, serve

ADAPTER = "brave-search"


def build_server(
    settings: AdapterSettings,
    client: BraveSearchClient,
    governor: Optional[RequestGovernor] = None,
) -> FastMCP:
    """Create the FastMCP server with the Brave Search tools registered."""
    governor = governor or make_governor(settings)
    mcp = FastMCP(ADAPTER)

    @mcp.tool()
    async def brave_web_search(
        query: Annotated[str, Field(description="Search query (max 400 chars, 50 words)")],
        count: Annotated[int, Field(ge=1, le=MAX_COUNT, description="Number of results (1-20)")] = 10,
        offset: Annotated[int, Field(ge=0, le=9, description="Pagination offset (0-9)")] = 0,
    ) -> str:
        """Perform a web search using the Brave Search API.

        WHEN TO CALL THIS: general queries, news, articles and online content;
        broad information gathering or recent events.  At most 20 results per
        request; use `offset` to page.
        """
        log_request("brave_web_search", query=query, count=count, offset=offset)
        outcome = await execute_tool(
            "brave_web_search",
            governor,
            settings.category("brave_web_search"),
            lambda: client.web_search(query.strip(), count, offset),
            validate=lambda: validate_query(query),
        )
        return respond(outcome)

    @mcp.tool()
    async def brave_local_search(
        query: Annotated[str, Field(description="Local query, e.g. 'pizza near Central Park'")],
        count: Annotated[int, Field(ge=1, le=MAX_COUNT, description="Number of results (1-20)")] = 5,
    ) -> str:
        """Search for local businesses and places with Brave's Local Search API.

        Returns business names and addresses, ratings and review counts,
        phone numbers and opening hours.  Use it when the query implies
        "near me" or names a specific place.  Falls back to a web search
        when no local results exist.
        """
        log_request("brave_local_search", query=query, count=count)
        outcome = await execute_tool(
            "brave_local_search",
            governor,
            settings.category("brave_local_search"),
            lambda: client.local_search(query.strip(), count),
            validate=lambda: validate_query(query),
        )
        return respond(outcome)

    return mcp


def create_server() -> FastMCP:
    load_dotenv()
    creds = require_env("BRAVE_API_KEY")
    return build_server(load_adapter_settings(ADAPTER), BraveSearchClient(creds["BRAVE_API_KEY"]))


def main() -> None:
    serve(create_server, "Brave Search")


if __name__ == "__main__":
    main()
