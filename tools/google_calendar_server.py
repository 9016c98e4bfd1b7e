# =============================================================================
# tools/google_calendar_server.py  -  FastMCP server for Google Calendar
# =============================================================================
#
# TOOLS:
#   google_calendar_list_calendars   google_calendar_get_calendar
#   google_calendar_list_events      google_calendar_get_event
#   google_calendar_create_event     google_calendar_update_event
#   google_calendar_delete_event
#
# QUOTA:
#   Google meters the Calendar API per method, so every tool gets its OWN
#   category (the tool name), each with 500 calls per 100 s by default.
#   Listing events heavily does not starve event creation.
#
# CREDENTIALS:
#   CREDENTIALS='{"access_token": "..."}'  or  GOOGLE_ACCESS_TOKEN
# =============================================================================

import os
from typing import Annotated, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from core.config import load_adapter_settings
from core.errors import ToolValidationError
from core.google_calendar import (
    Attendee,
    EventTime,
    GoogleCalendarClient,
    Reminders,
    event_body,
    load_access_token,
)
from core.governor import RequestGovernor
from core.models import AdapterSettings
from tools.common import execute_tool, log_request, make_governor, not_blank, respond, serve

ADAPTER = "google-calendar"

CalendarId = Annotated[str, Field(description="Calendar id, or 'primary' for the user's main calendar")]


def build_server(
    settings: AdapterSettings,
    client: GoogleCalendarClient,
    governor: Optional[RequestGovernor] = None,
) -> FastMCP:
    """Create the FastMCP server with every Google Calendar tool registered."""
    governor = governor or make_governor(settings)
    mcp = FastMCP(ADAPTER)

    async def run(tool_name: str, operation, validate=None) -> str:
        outcome = await execute_tool(
            tool_name, governor, settings.category(tool_name), operation, validate
        )
        return respond(outcome)

    # =========================================================================
    # Calendars
    # =========================================================================
    @mcp.tool()
    async def google_calendar_list_calendars(
        max_results: Annotated[int, Field(ge=1, le=250)] = 100,
        page_token: Optional[str] = None,
    ) -> str:
        """List the calendars on the user's calendar list.

        Args:
            max_results: Maximum number of calendars to return (1-250).
            page_token: Token of the page to return (from nextPageToken).
        """
        log_request("google_calendar_list_calendars", max_results=max_results, page_token=page_token)
        return await run(
            "google_calendar_list_calendars",
            lambda: client.list_calendars(max_results, page_token),
        )

    @mcp.tool()
    async def google_calendar_get_calendar(calendar_id: CalendarId) -> str:
        """Get the metadata of one calendar (summary, time zone, description)."""
        log_request("google_calendar_get_calendar", calendar_id=calendar_id)
        return await run(
            "google_calendar_get_calendar",
            lambda: client.get_calendar(calendar_id),
            not_blank(calendar_id=calendar_id),
        )

    # =========================================================================
    # Events
    # =========================================================================
    @mcp.tool()
    async def google_calendar_list_events(
        calendar_id: CalendarId = "primary",
        time_min: Optional[str] = None,
        time_max: Optional[str] = None,
        max_results: Annotated[int, Field(ge=1, le=2500)] = 10,
        page_token: Optional[str] = None,
        q: Optional[str] = None,
    ) -> str:
        """List events in a calendar.

        Args:
            calendar_id: Calendar to read (default "primary").
            time_min: Lower bound (RFC3339) for an event's end time.
            time_max: Upper bound (RFC3339) for an event's start time.
            max_results: Maximum number of events to return.
            page_token: Token of the page to return.
            q: Free-text search over summary, description, location, attendees.
        """
        log_request(
            "google_calendar_list_events", calendar_id=calendar_id, time_min=time_min,
            time_max=time_max, max_results=max_results, page_token=page_token, q=q,
        )
        return await run(
            "google_calendar_list_events",
            lambda: client.list_events(calendar_id, time_min, time_max, max_results, page_token, q),
            not_blank(calendar_id=calendar_id),
        )

    @mcp.tool()
    async def google_calendar_get_event(calendar_id: CalendarId, event_id: str) -> str:
        """Get one event by id."""
        log_request("google_calendar_get_event", calendar_id=calendar_id, event_id=event_id)
        return await run(
            "google_calendar_get_event",
            lambda: client.get_event(calendar_id, event_id),
            not_blank(calendar_id=calendar_id, event_id=event_id),
        )

    @mcp.tool()
    async def google_calendar_create_event(
        calendar_id: CalendarId,
        summary: str,
        start: EventTime,
        end: EventTime,
        description: Optional[str] = None,
        location: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
        recurrence: Optional[list[str]] = None,
        reminders: Optional[Reminders] = None,
    ) -> str:
        """Create an event.

        Args:
            calendar_id: Calendar to create the event in.
            summary: Event title.
            start: {"dateTime": "...", "timeZone": "..."} or {"date": "YYYY-MM-DD"}.
            end: Same shape as start.
            description: Event description.
            location: Free-form location.
            attendees: [{"email": "..."}, ...]
            recurrence: RRULE / EXRULE / RDATE / EXDATE lines (RFC5545).
            reminders: {"useDefault": false, "overrides": [{"method": "popup", "minutes": 10}]}
        """
        log_request(
            "google_calendar_create_event", calendar_id=calendar_id, summary=summary,
            start=start, end=end, location=location,
        )
        body = event_body(
            summary=summary, description=description, location=location, start=start,
            end=end, attendees=attendees, recurrence=recurrence, reminders=reminders,
        )
        return await run(
            "google_calendar_create_event",
            lambda: client.create_event(calendar_id, body),
            not_blank(calendar_id=calendar_id, summary=summary),
        )

    @mcp.tool()
    async def google_calendar_update_event(
        calendar_id: CalendarId,
        event_id: str,
        summary: Optional[str] = None,
        start: Optional[EventTime] = None,
        end: Optional[EventTime] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
        recurrence: Optional[list[str]] = None,
        reminders: Optional[Reminders] = None,
    ) -> str:
        """Update an event.  Only the fields given are changed (PATCH semantics)."""
        log_request(
            "google_calendar_update_event", calendar_id=calendar_id, event_id=event_id,
            summary=summary, start=start, end=end, location=location,
        )
        body = event_body(
            summary=summary, description=description, location=location, start=start,
            end=end, attendees=attendees, recurrence=recurrence, reminders=reminders,
        )

        def validate():
            not_blank(calendar_id=calendar_id, event_id=event_id)()
            if not body:
                raise ToolValidationError("no fields to update")

        return await run(
            "google_calendar_update_event",
            lambda: client.update_event(calendar_id, event_id, body),
            validate,
        )

    @mcp.tool()
    async def google_calendar_delete_event(calendar_id: CalendarId, event_id: str) -> str:
        """Delete an event.  This cannot be undone."""
        log_request("google_calendar_delete_event", calendar_id=calendar_id, event_id=event_id)
        return await run(
            "google_calendar_delete_event",
            lambda: client.delete_event(calendar_id, event_id),
            not_blank(calendar_id=calendar_id, event_id=event_id),
        )

    return mcp


def create_server() -> FastMCP:
    load_dotenv()
    token = load_access_token(os.environ)
    return build_server(load_adapter_settings(ADAPTER), GoogleCalendarClient(token))


def main() -> None:
    serve(create_server, "Google Calendar")


if __name__ == "__main__":
    main()
