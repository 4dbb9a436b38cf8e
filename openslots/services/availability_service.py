"""
Application services for answering availability and booking requests.

The service fetches busy times through a calendar client adapter and
delegates the availability computation to the domain-level
``AvailabilityCalculator``. The calendar dependency is a simple protocol so
the Google client and the mock client are interchangeable.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from pendulum import DateTime

from ..domain.availability_calculator import AvailabilityCalculator
from ..domain.models import BookableSlot, TimeRange

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def get_busy_times(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """Return ascending, non-overlapping busy ranges of one calendar."""

    def insert_event(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
        summary: str,
        description: str = "",
    ) -> Dict[str, Any]:
        """Create an event and return the stored resource."""


class AvailabilityService:
    """
    Orchestrates busy-time retrieval, availability calculation and booking.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        calculator: AvailabilityCalculator,
        calendar_id: str = "primary",
    ) -> None:
        self._calendar_client = calendar_client
        self._calculator = calculator
        self.calendar_id = calendar_id

    @property
    def timezone(self) -> str:
        return self._calculator.timezone

    def fetch_busy_times(self, *, start_date: DateTime, end_date: DateTime) -> List[TimeRange]:
        """Fetch busy times of the configured calendar."""
        return self._calendar_client.get_busy_times(
            calendar_id=self.calendar_id,
            start_time=start_date,
            end_time=end_date,
            timezone=self.timezone,
        )

    def find_free_ranges(self, *, start_date: DateTime, end_date: DateTime) -> List[TimeRange]:
        """Fetch busy data and invert it into free ranges over the window."""
        self._validate_window(start_date, end_date)
        busy_times = self.fetch_busy_times(start_date=start_date, end_date=end_date)
        logger.debug("Inverting %d busy block(s) between %s and %s", len(busy_times), start_date, end_date)

        return self._calculator.invert_busy_to_free(busy_times, start_date, end_date)

    def find_free_days(self, *, start_date: DateTime, end_date: DateTime) -> List[str]:
        """Return "YYYY-MM-DD" dates with room for at least one booking."""
        free_ranges = self.find_free_ranges(start_date=start_date, end_date=end_date)
        return self._calculator.find_free_days(free_ranges)

    def find_free_slots(self, *, start_date: DateTime, end_date: DateTime) -> List[BookableSlot]:
        """Return bookable start times within the window."""
        free_ranges = self.find_free_ranges(start_date=start_date, end_date=end_date)
        return self._calculator.find_free_slots(free_ranges)

    def book_appointment(
        self,
        *,
        start: DateTime,
        end: DateTime,
        summary: str,
        description: str = "",
    ) -> Dict[str, Any]:
        """Insert an appointment into the configured calendar."""
        if start >= end:
            raise ValueError(f"Appointment start {start} must be before end {end}")

        event = self._calendar_client.insert_event(
            calendar_id=self.calendar_id,
            start_time=start,
            end_time=end,
            summary=summary,
            description=description,
        )
        logger.info("Booked %r from %s to %s", summary, start, end)
        return event

    @staticmethod
    def _validate_window(start_date: DateTime, end_date: DateTime) -> None:
        if start_date > end_date:
            raise ValueError(f"Window start {start_date} must not be after end {end_date}")
