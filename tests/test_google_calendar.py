"""Tests for the Google Calendar client, event models and credentials."""

import json

import pytest
from pydantic import ValidationError
from pytest_httpx import HTTPXMock

from core.errors import FatalStartupError
from core.google_calendar import (
    BASE_URL,
    Attendee,
    EventTime,
    GoogleCalendarClient,
    Reminders,
    event_body,
    load_access_token,
)


@pytest.fixture
def client():
    return GoogleCalendarClient("ya29.token")


class TestEventModels:
    def test_event_time_requires_date_or_datetime(self):
        with pytest.raises(ValidationError):
            EventTime(timeZone="America/Sao_Paulo")

    def test_event_body_uses_api_field_names(self):
        body = event_body(
            summary="Planning",
            description=None,
            start=EventTime(dateTime="2025-05-01T10:00:00-03:00", timeZone="America/Sao_Paulo"),
            end=EventTime(date_time="2025-05-01T11:00:00-03:00"),
            attendees=[Attendee(email="ana@example.com")],
            reminders=Reminders(use_default=False, overrides=[{"method": "popup", "minutes": 10}]),
        )

        assert body == {
            "summary": "Planning",
            "start": {"dateTime": "2025-05-01T10:00:00-03:00", "timeZone": "America/Sao_Paulo"},
            "end": {"dateTime": "2025-05-01T11:00:00-03:00"},
            "attendees": [{"email": "ana@example.com"}],
            "reminders": {"useDefault": False, "overrides": [{"method": "popup", "minutes": 10}]},
        }


class TestAccessToken:
    def test_from_credentials_json(self):
        env = {"CREDENTIALS": '{"access_token": "ya29.a", "refresh_token": "r"}'}
        assert load_access_token(env) == "ya29.a"

    def test_from_plain_variable(self):
        assert load_access_token({"GOOGLE_ACCESS_TOKEN": "ya29.b"}) == "ya29.b"

    @pytest.mark.parametrize("env", [{}, {"CREDENTIALS": "not json"}, {"CREDENTIALS": "{}"}])
    def test_missing_or_broken(self, env):
        with pytest.raises(FatalStartupError):
            load_access_token(env)


class TestGoogleCalendarClient:
    @pytest.mark.asyncio
    async def test_list_events_quotes_calendar_id(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(
            url=(
                f"{BASE_URL}/calendars/team%40group.calendar.google.com/events"
                f"?maxResults=10&timeMin=2025-05-01T00:00:00Z"
            ),
            match_headers={"Authorization": "Bearer ya29.token"},
            json={"items": [{"id": "evt1", "summary": "Standup"}]},
        )

        result = await client.list_events(
            "team@group.calendar.google.com", time_min="2025-05-01T00:00:00Z"
        )

        assert result["items"][0]["summary"] == "Standup"

    @pytest.mark.asyncio
    async def test_create_event_posts_body(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(
            method="POST", url=f"{BASE_URL}/calendars/primary/events", json={"id": "new"}
        )
        body = {"summary": "Lunch", "start": {"date": "2025-05-02"}, "end": {"date": "2025-05-03"}}

        assert await client.create_event("primary", body) == {"id": "new"}
        assert json.loads(httpx_mock.get_request().content) == body

    @pytest.mark.asyncio
    async def test_delete_event(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(
            method="DELETE", url=f"{BASE_URL}/calendars/primary/events/evt1", status_code=204
        )

        result = await client.delete_event("primary", "evt1")

        assert result == {"deleted": True, "calendarId": "primary", "eventId": "evt1"}
