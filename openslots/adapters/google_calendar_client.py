"""
Google Calendar API client for fetching free/busy data and inserting events.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import quote

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar API v3.

    Uses the /freeBusy endpoint to fetch busy blocks of one calendar and
    /calendars/{id}/events to book appointments.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, timeout: int = 30):
        """
        Initialize the Calendar API client.

        Args:
            access_token: Valid Google OAuth access token
            timeout: Request timeout in seconds
        """
        self.access_token = access_token
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    def get_busy_times(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str = "Europe/Amsterdam"
    ) -> List[TimeRange]:
        """
        Get the busy blocks of a calendar within a time window.

        Args:
            calendar_id: Calendar identifier (e.g. "primary" or an address)
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone identifier

        Returns:
            Ascending list of busy TimeRange objects in ``timezone``

        Raises:
            CalendarAPIError: If the API call fails or the calendar reports errors
        """
        payload = {
            "timeMin": start_time.to_iso8601_string(),
            "timeMax": end_time.to_iso8601_string(),
            "timeZone": timezone,
            "items": [{"id": calendar_id}],
        }

        data = self._post(f"{self.CALENDAR_API_ENDPOINT}/freeBusy", payload)

        return self._parse_free_busy_response(data, calendar_id, timezone)

    def insert_event(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        summary: str,
        description: str = ""
    ) -> Dict[str, Any]:
        """
        Create an event in the calendar.

        Returns:
            The created event resource as returned by the API
        """
        payload = {
            "start": {"dateTime": start_time.to_iso8601_string()},
            "end": {"dateTime": end_time.to_iso8601_string()},
            "summary": summary,
            "description": description,
        }

        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{quote(calendar_id, safe='')}/events"
        return self._post(url, payload)

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Google Calendar request to {url} failed: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Google Calendar returned invalid JSON: {e}") from e

    def _parse_free_busy_response(
        self,
        response_data: Dict[str, Any],
        calendar_id: str,
        timezone: str
    ) -> List[TimeRange]:
        """
        Parse the freeBusy API response into our domain model.

        Response format:
        {
            "timeMin": "...",
            "timeMax": "...",
            "calendars": {
                "primary": {
                    "busy": [{"start": "...", "end": "..."}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendar = response_data.get("calendars", {}).get(calendar_id)
        if calendar is None:
            raise CalendarAPIError(f"Free/busy response has no entry for calendar {calendar_id!r}")

        errors = calendar.get("errors", [])
        if errors:
            reasons = ", ".join(error.get("reason", "unknown") for error in errors)
            raise CalendarAPIError(f"Calendar {calendar_id!r} reported errors: {reasons}")

        busy_ranges: List[TimeRange] = []

        for item in calendar.get("busy", []):
            try:
                busy_ranges.append(TimeRange(
                    start=self._parse_datetime(item["start"], timezone),
                    end=self._parse_datetime(item["end"], timezone),
                ))
            except (KeyError, ValueError) as e:
                raise CalendarAPIError(f"Could not parse busy block {item!r}: {e}") from e

        busy_ranges.sort(key=lambda r: r.start)
        logger.debug("Calendar %s has %d busy block(s)", calendar_id, len(busy_ranges))
        return busy_ranges

    def _parse_datetime(self, datetime_str: str, timezone: str) -> DateTime:
        """
        Parse an RFC 3339 string to a pendulum DateTime in the given timezone.
        """
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt.in_timezone(timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")
