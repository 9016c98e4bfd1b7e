# =============================================================================
# tools/slack_server.py  -  FastMCP server for a Slack workspace
# =============================================================================
#
# TOOLS:
#   Read:   slack_list_channels, slack_get_channel_history,
#           slack_get_thread_replies, slack_search_messages,
#           slack_get_users, slack_get_user_profile
#   Write:  slack_post_message, slack_reply_to_thread, slack_add_reaction
#
# Write tools are NOT idempotent: calling slack_post_message twice posts two
# messages.  Nothing here retries, so a timeout may or may not have posted.
#
# CREDENTIALS:
#   SLACK_BOT_TOKEN, SLACK_USER_TOKEN, SLACK_TEAM_ID (all required)
# =============================================================================

from typing import Annotated, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from core.config import load_adapter_settings, require_env
from core.governor import RequestGovernor
from core.models import AdapterSettings
from core.slack import MAX_PAGE_SIZE, SlackClient
from tools.common import execute_tool, log_request, make_governor, not_blank, respond, serve

ADAPTER = "slack"

PageSize = Annotated[int, Field(ge=1, le=MAX_PAGE_SIZE)]


def build_server(
    settings: AdapterSettings,
    client: SlackClient,
    governor: Optional[RequestGovernor] = None,
) -> FastMCP:
    """Create the FastMCP server with every Slack tool registered."""
    governor = governor or make_governor(settings)
    mcp = FastMCP(ADAPTER)

    async def run(tool_name: str, operation, validate=None) -> str:
        outcome = await execute_tool(
            tool_name, governor, settings.category(tool_name), operation, validate
        )
        return respond(outcome)

    @mcp.tool()
    async def slack_list_channels(limit: PageSize = 100, cursor: Optional[str] = None) -> str:
        """List public channels in the workspace with pagination.

        Args:
            limit: Maximum number of channels to return (default 100, max 200).
            cursor: Pagination cursor for the next page of results.
        """
        log_request("slack_list_channels", limit=limit, cursor=cursor)
        return await run("slack_list_channels", lambda: client.list_channels(limit, cursor))

    @mcp.tool()
    async def slack_post_message(channel_id: str, text: str) -> str:
        """Post a new message to a Slack channel.

        Args:
            channel_id: The ID of the channel to post to.
            text: The message text to post.
        """
        log_request("slack_post_message", channel_id=channel_id, text=text)
        return await run(
            "slack_post_message",
            lambda: client.post_message(channel_id, text),
            not_blank(channel_id=channel_id, text=text),
        )

    @mcp.tool()
    async def slack_reply_to_thread(channel_id: str, thread_ts: str, text: str) -> str:
        """Reply to a specific message thread in Slack.

        Args:
            channel_id: The ID of the channel containing the thread.
            thread_ts: Timestamp of the parent message ("1234567890.123456").
            text: The reply text.
        """
        log_request("slack_reply_to_thread", channel_id=channel_id, thread_ts=thread_ts, text=text)
        return await run(
            "slack_reply_to_thread",
            lambda: client.post_reply(channel_id, thread_ts, text),
            not_blank(channel_id=channel_id, thread_ts=thread_ts, text=text),
        )

    @mcp.tool()
    async def slack_add_reaction(channel_id: str, timestamp: str, reaction: str) -> str:
        """Add a reaction emoji to a message.

        Args:
            channel_id: The ID of the channel containing the message.
            timestamp: The timestamp of the message to react to.
            reaction: Emoji name without colons (e.g. "thumbsup").
        """
        log_request("slack_add_reaction", channel_id=channel_id, timestamp=timestamp, reaction=reaction)
        return await run(
            "slack_add_reaction",
            lambda: client.add_reaction(channel_id, timestamp, reaction),
            not_blank(channel_id=channel_id, timestamp=timestamp, reaction=reaction.strip(":")),
        )

    @mcp.tool()
    async def slack_get_channel_history(channel_id: str, limit: PageSize = 10) -> str:
        """Get recent messages from a channel.

        Args:
            channel_id: The ID of the channel.
            limit: Number of messages to retrieve (default 10).
        """
        log_request("slack_get_channel_history", channel_id=channel_id, limit=limit)
        return await run(
            "slack_get_channel_history",
            lambda: client.channel_history(channel_id, limit),
            not_blank(channel_id=channel_id),
        )

    @mcp.tool()
    async def slack_get_thread_replies(channel_id: str, thread_ts: str) -> str:
        """Get all replies in a message thread.

        Args:
            channel_id: The ID of the channel containing the thread.
            thread_ts: The timestamp of the parent message.
        """
        log_request("slack_get_thread_replies", channel_id=channel_id, thread_ts=thread_ts)
        return await run(
            "slack_get_thread_replies",
            lambda: client.thread_replies(channel_id, thread_ts),
            not_blank(channel_id=channel_id, thread_ts=thread_ts),
        )

    @mcp.tool()
    async def slack_search_messages(query: str, count: Annotated[int, Field(ge=1, le=100)] = 5) -> str:
        """Search for messages across channels.

        Args:
            query: The search query (Slack search syntax, e.g. "in:#general deploy").
            count: Number of results to return (default 5).
        """
        log_request("slack_search_messages", query=query, count=count)
        return await run(
            "slack_search_messages",
            lambda: client.search_messages(query, count),
            not_blank(query=query),
        )

    @mcp.tool()
    async def slack_get_users(cursor: Optional[str] = None, limit: PageSize = 100) -> str:
        """Get the workspace's users with their basic profile information.

        Args:
            cursor: Pagination cursor for the next page of results.
            limit: Maximum number of users to return (default 100, max 200).
        """
        log_request("slack_get_users", cursor=cursor, limit=limit)
        return await run("slack_get_users", lambda: client.users(limit, cursor))

    @mcp.tool()
    async def slack_get_user_profile(user_id: str) -> str:
        """Get detailed profile information for a specific user.

        Args:
            user_id: The ID of the user (e.g. "U0123ABCD").
        """
        log_request("slack_get_user_profile", user_id=user_id)
        return await run(
            "slack_get_user_profile",
            lambda: client.user_profile(user_id),
            not_blank(user_id=user_id),
        )

    return mcp


def create_server() -> FastMCP:
    load_dotenv()
    creds = require_env("SLACK_BOT_TOKEN", "SLACK_USER_TOKEN", "SLACK_TEAM_ID")
    client = SlackClient(creds["SLACK_BOT_TOKEN"], creds["SLACK_USER_TOKEN"], creds["SLACK_TEAM_ID"])
    return build_server(load_adapter_settings(ADAPTER), client)


def main() -> None:
    serve(create_server, "Slack")


if __name__ == "__main__":
    main()
