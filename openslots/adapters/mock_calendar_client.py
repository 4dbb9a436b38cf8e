"""
Mock Google Calendar client for testing without OAuth credentials.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that simulates Google Calendar responses.

    Busy blocks are loaded from a JSON list of
    ``{"calendarId": ..., "start": ..., "end": ...}`` objects; inserted
    events are kept in memory.
    """

    def __init__(self, access_token: str = "mock_token", data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            access_token: Dummy token (not used, but kept for interface compatibility)
            data_file: Optional JSON file with busy blocks
        """
        self.access_token = access_token
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.inserted_events: List[Dict[str, Any]] = []
        self._load_calendar_data()

    def _load_calendar_data(self):
        """Load mock calendar data from JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                self.calendar_events = json.load(f)
        else:
            self.calendar_events = []

    def get_busy_times(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str = "Europe/Amsterdam"
    ) -> List[TimeRange]:
        """
        Load busy times of one calendar that overlap the time window.

        Blocks are clipped to the window, sorted, and overlapping or touching
        blocks are merged, like the free/busy endpoint does.
        """
        busy_ranges: List[TimeRange] = []
        window = TimeRange(start=start_time, end=end_time)

        for event in self.calendar_events:
            if event.get("calendarId", "primary") != calendar_id:
                continue

            try:
                event_start = pendulum.parse(event["start"], tz=timezone).in_timezone(timezone)
                event_end = pendulum.parse(event["end"], tz=timezone).in_timezone(timezone)
                event_range = TimeRange(start=event_start, end=event_end)
            except (KeyError, ValueError) as e:
                logger.warning("Skipping invalid mock event %r: %s", event, e)
                continue

            if event_range.overlaps(window):
                busy_ranges.append(TimeRange(
                    start=max(event_start, start_time),
                    end=min(event_end, end_time),
                ))

        return self._merge_adjacent_ranges(busy_ranges)

    @staticmethod
    def _merge_adjacent_ranges(ranges: List[TimeRange]) -> List[TimeRange]:
        """
        Merge overlapping or adjacent time ranges.

        Example: [10:00-12:00, 10:30-11:00, 12:00-13:00] -> [10:00-13:00]
        """
        if not ranges:
            return []

        sorted_ranges = sorted(ranges, key=lambda r: r.start)
        merged: List[TimeRange] = [sorted_ranges[0]]

        for current in sorted_ranges[1:]:
            last = merged[-1]

            if current.start <= last.end:
                merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
            else:
                merged.append(current)

        return merged

    def insert_event(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        summary: str,
        description: str = ""
    ) -> Dict[str, Any]:
        """Record the event and return a fake API resource."""
        event = {
            "id": f"mock-event-{len(self.inserted_events) + 1}",
            "calendarId": calendar_id,
            "start": {"dateTime": start_time.to_iso8601_string()},
            "end": {"dateTime": end_time.to_iso8601_string()},
            "summary": summary,
            "description": description,
            "status": "confirmed",
        }
        self.inserted_events.append(event)
        return event
