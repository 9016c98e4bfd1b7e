# =============================================================================
# core/google_calendar.py  -  Google Calendar v3 REST client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Lists calendars and events and creates / updates / deletes events via
#   https://www.googleapis.com/calendar/v3, authenticated with an OAuth
#   access token.
#
# CREDENTIALS:
#   Either CREDENTIALS (a JSON blob with at least "access_token", as issued by
#   an upstream credential store) or GOOGLE_ACCESS_TOKEN.  Refreshing an
#   expired token is left to whatever issues the credentials; an expired
#   token shows up as a 401 UpstreamError.
#
# EVENT TIMES:
#   Google accepts either an all-day `date` ("2025-05-01") or a `dateTime`
#   ("2025-05-01T10:00:00-03:00"), optionally with a `timeZone`.  EventTime
#   checks that one of the two is present before anything is sent.
# =============================================================================

import json
from typing import Any, Mapping, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.errors import FatalStartupError
from core.http import RestClient

BASE_URL = "https://www.googleapis.com/calendar/v3"


# -----------------------------------------------------------------------------
# Event payload shapes (field names follow the Google API: camelCase)
# -----------------------------------------------------------------------------
class EventTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    date: Optional[str] = Field(None, description="All-day date, YYYY-MM-DD")
    date_time: Optional[str] = Field(None, alias="dateTime", description="RFC3339 timestamp")
    time_zone: Optional[str] = Field(None, alias="timeZone", description="IANA time zone name")

    @model_validator(mode="after")
    def _date_or_datetime(self):
        if not self.date and not self.date_time:
            raise ValueError("either 'date' or 'dateTime' is required")
        return self


class Attendee(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    response_status: Optional[str] = Field(None, alias="responseStatus")


class ReminderOverride(BaseModel):
    method: str
    minutes: int


class Reminders(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    use_default: Optional[bool] = Field(None, alias="useDefault")
    overrides: Optional[list[ReminderOverride]] = None


def event_body(**fields) -> dict:
    """Assemble an event resource, skipping fields that were not given."""
    body = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, BaseModel):
            value = value.model_dump(by_alias=True, exclude_none=True)
        elif isinstance(value, list):
            value = [
                v.model_dump(by_alias=True, exclude_none=True) if isinstance(v, BaseModel) else v
                for v in value
            ]
        body[key] = value
    return body


def load_access_token(env: Mapping[str, str]) -> str:
    """Pick the access token out of CREDENTIALS or GOOGLE_ACCESS_TOKEN."""
    raw = env.get("CREDENTIALS")
    if raw:
        try:
            credentials = json.loads(raw)
        except ValueError:
            raise FatalStartupError("CREDENTIALS is not valid JSON") from None
        token = credentials.get("access_token") if isinstance(credentials, dict) else None
        if not token:
            raise FatalStartupError("CREDENTIALS has no access_token")
        return token
    token = env.get("GOOGLE_ACCESS_TOKEN")
    if not token:
        raise FatalStartupError("Set CREDENTIALS or GOOGLE_ACCESS_TOKEN to use Google Calendar")
    return token


def _id(value: str) -> str:
    # Calendar ids are often e-mail addresses ("team@group.calendar.google.com").
    return quote(value, safe="")


class GoogleCalendarClient(RestClient):
    """Async client for the Google Calendar v3 API."""

    def __init__(
        self,
        access_token: str,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )

    async def list_calendars(self, max_results: int = 100, page_token: Optional[str] = None) -> Any:
        params = {"maxResults": max_results}
        if page_token:
            params["pageToken"] = page_token
        return await self.get("/users/me/calendarList", params=params)

    async def get_calendar(self, calendar_id: str) -> Any:
        return await self.get(f"/calendars/{_id(calendar_id)}")

    async def list_events(
        self,
        calendar_id: str,
        time_min: Optional[str] = None,
        time_max: Optional[str] = None,
        max_results: int = 10,
        page_token: Optional[str] = None,
        q: Optional[str] = None,
    ) -> Any:
        params = {"maxResults": max_results}
        optional = {"timeMin": time_min, "timeMax": time_max, "pageToken": page_token, "q": q}
        params.update({k: v for k, v in optional.items() if v})
        return await self.get(f"/calendars/{_id(calendar_id)}/events", params=params)

    async def get_event(self, calendar_id: str, event_id: str) -> Any:
        return await self.get(f"/calendars/{_id(calendar_id)}/events/{_id(event_id)}")

    async def create_event(self, calendar_id: str, body: dict) -> Any:
        return await self.post(f"/calendars/{_id(calendar_id)}/events", json=body)

    async def update_event(self, calendar_id: str, event_id: str, body: dict) -> Any:
        return await self.patch(f"/calendars/{_id(calendar_id)}/events/{_id(event_id)}", json=body)

    async def delete_event(self, calendar_id: str, event_id: str) -> dict:
        await self.delete(
            f"/calendars/{_id(calendar_id)}/events/{_id(event_id)}", expect_body=False
        )
        return {"deleted": True, "calendarId": calendar_id, "eventId": event_id}
