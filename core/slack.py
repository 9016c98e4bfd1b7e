# =============================================================================
# core/slack.py  -  Slack Web API client
# =============================================================================
#
# Two tokens are involved:
#   - the BOT token for channels, messages, reactions and users
#   - the USER token for search.messages (bots cannot search)
#
# Slack answers HTTP 200 even for failures and reports them as
# {"ok": false, "error": "channel_not_found"}.  Those bodies are raised as
# UpstreamError so the caller sees an error-flagged result.
# =============================================================================

from typing import Any, Optional

import httpx

from core.errors import UpstreamError
from core.http import RestClient

BASE_URL = "https://slack.com/api"
MAX_PAGE_SIZE = 200


class SlackClient(RestClient):
    """Async client for the Slack Web API."""

    def __init__(
        self,
        bot_token: str,
        user_token: str,
        team_id: str,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url,
            headers={"Authorization": f"Bearer {bot_token}", "Content-Type": "application/json"},
            transport=transport,
        )
        self._user_auth = {"Authorization": f"Bearer {user_token}"}
        self.team_id = team_id

    async def call(self, method: str, endpoint: str, **kwargs) -> Any:
        data = await self.request(method, endpoint, **kwargs)
        if isinstance(data, dict) and data.get("ok") is False:
            raise UpstreamError(None, f"Slack error: {data.get('error', 'unknown_error')}")
        return data

    async def list_channels(self, limit: int = 100, cursor: Optional[str] = None) -> Any:
        params = {
            "types": "public_channel",
            "exclude_archived": "true",
            "limit": min(limit, MAX_PAGE_SIZE),
            "team_id": self.team_id,
        }
        if cursor:
            params["cursor"] = cursor
        return await self.call("GET", "/conversations.list", params=params)

    async def post_message(self, channel_id: str, text: str) -> Any:
        return await self.call("POST", "/chat.postMessage", json={"channel": channel_id, "text": text})

    async def post_reply(self, channel_id: str, thread_ts: str, text: str) -> Any:
        return await self.call(
            "POST",
            "/chat.postMessage",
            json={"channel": channel_id, "thread_ts": thread_ts, "text": text},
        )

    async def add_reaction(self, channel_id: str, timestamp: str, reaction: str) -> Any:
        return await self.call(
            "POST",
            "/reactions.add",
            json={"channel": channel_id, "timestamp": timestamp, "name": reaction.strip(":")},
        )

    async def channel_history(self, channel_id: str, limit: int = 10) -> Any:
        return await self.call(
            "GET", "/conversations.history", params={"channel": channel_id, "limit": limit}
        )

    async def thread_replies(self, channel_id: str, thread_ts: str) -> Any:
        return await self.call(
            "GET", "/conversations.replies", params={"channel": channel_id, "ts": thread_ts}
        )

    async def search_messages(self, query: str, count: int = 5) -> Any:
        return await self.call(
            "GET",
            "/search.messages",
            params={"query": query, "count": count},
            headers=self._user_auth,
        )

    async def users(self, limit: int = 100, cursor: Optional[str] = None) -> Any:
        params = {"limit": min(limit, MAX_PAGE_SIZE), "team_id": self.team_id}
        if cursor:
            params["cursor"] = cursor
        return await self.call("GET", "/users.list", params=params)

    async def user_profile(self, user_id: str) -> Any:
        return await self.call(
            "GET", "/users.profile.get", params={"user": user_id, "include_labels": "true"}
        )
