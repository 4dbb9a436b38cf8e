"""
Tests for the Google Calendar API client.
"""

from typing import Any, Dict, List

import pendulum
import pytest
import requests

from openslots.adapters import google_calendar_client
from openslots.adapters.google_calendar_client import GoogleCalendarClient
from openslots.domain.exceptions import CalendarAPIError

TZ = "Europe/Amsterdam"


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return self._payload


@pytest.fixture
def recorded_posts(monkeypatch):
    """Replace requests.post and record every call."""
    calls: List[Dict[str, Any]] = []
    responses: List[FakeResponse] = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        return responses.pop(0)

    monkeypatch.setattr(google_calendar_client.requests, "post", fake_post)
    return calls, responses


def _window():
    return (
        pendulum.parse("2018-05-21 00:00", tz=TZ),
        pendulum.parse("2018-05-28 00:00", tz=TZ),
    )


class TestGetBusyTimes:
    """Tests for the freeBusy query."""

    def test_request_payload(self, recorded_posts):
        calls, responses = recorded_posts
        responses.append(FakeResponse({"calendars": {"primary": {"busy": []}}}))
        start, end = _window()

        GoogleCalendarClient(access_token="token-123").get_busy_times("primary", start, end, TZ)

        call = calls[0]
        assert call["url"] == "https://www.googleapis.com/calendar/v3/freeBusy"
        assert call["headers"]["Authorization"] == "Bearer token-123"
        assert call["json"] == {
            "timeMin": "2018-05-21T00:00:00+02:00",
            "timeMax": "2018-05-28T00:00:00+02:00",
            "timeZone": TZ,
            "items": [{"id": "primary"}],
        }

    def test_busy_blocks_are_parsed_sorted_and_zoned(self, recorded_posts):
        _, responses = recorded_posts
        responses.append(FakeResponse({
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2018-05-22T08:00:00Z", "end": "2018-05-22T09:00:00Z"},
                        {"start": "2018-05-21T10:00:00+02:00", "end": "2018-05-21T11:30:00+02:00"},
                    ]
                }
            }
        }))
        start, end = _window()

        busy = GoogleCalendarClient("token").get_busy_times("primary", start, end, TZ)

        assert [str(r) for r in busy] == [
            "2018-05-21 10:00 - 2018-05-21 11:30",
            "2018-05-22 10:00 - 2018-05-22 11:00",
        ]
        assert busy[1].start.timezone_name == TZ

    def test_calendar_errors_are_raised(self, recorded_posts):
        _, responses = recorded_posts
        responses.append(FakeResponse({
            "calendars": {"primary": {"busy": [], "errors": [{"domain": "global", "reason": "notFound"}]}}
        }))
        start, end = _window()

        with pytest.raises(CalendarAPIError, match="notFound"):
            GoogleCalendarClient("token").get_busy_times("primary", start, end, TZ)

    def test_missing_calendar_entry(self, recorded_posts):
        _, responses = recorded_posts
        responses.append(FakeResponse({"calendars": {}}))
        start, end = _window()

        with pytest.raises(CalendarAPIError, match="no entry"):
            GoogleCalendarClient("token").get_busy_times("primary", start, end, TZ)

    def test_http_error(self, recorded_posts):
        _, responses = recorded_posts
        responses.append(FakeResponse({"error": "unauthorized"}, status_code=401))
        start, end = _window()

        with pytest.raises(CalendarAPIError, match="401"):
            GoogleCalendarClient("token").get_busy_times("primary", start, end, TZ)

    def test_unparseable_block(self, recorded_posts):
        _, responses = recorded_posts
        responses.append(FakeResponse({"calendars": {"primary": {"busy": [{"start": "2018-05-21T10:00:00Z"}]}}}))
        start, end = _window()

        with pytest.raises(CalendarAPIError, match="Could not parse"):
            GoogleCalendarClient("token").get_busy_times("primary", start, end, TZ)


class TestInsertEvent:
    """Tests for booking an appointment."""

    def test_insert_event(self, recorded_posts):
        calls, responses = recorded_posts
        responses.append(FakeResponse({"id": "abc123", "status": "confirmed"}))
        start = pendulum.parse("2018-05-22 10:30", tz=TZ)

        event = GoogleCalendarClient("token").insert_event(
            "practice@example.com",
            start,
            start.add(hours=5),
            summary="John Doe",
            description="Check-up",
        )

        assert event["id"] == "abc123"
        call = calls[0]
        assert call["url"] == (
            "https://www.googleapis.com/calendar/v3/calendars/practice%40example.com/events"
        )
        assert call["json"] == {
            "start": {"dateTime": "2018-05-22T10:30:00+02:00"},
            "end": {"dateTime": "2018-05-22T15:30:00+02:00"},
            "summary": "John Doe",
            "description": "Check-up",
        }
