"""
Core business logic for turning busy time into bookable availability.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

import logging
from typing import Iterator, List, Sequence, Tuple

from pendulum import Date, DateTime

from .models import DAY_FORMAT, BookableSlot, OpeningHours, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 15


class AvailabilityCalculator:
    """
    Derives free days and bookable slots for a single calendar.

    Algorithm:
    1. Invert the calendar's busy ranges into free ranges over the request window
    2. Walk every civil date a free range touches and resolve its opening hours
    3. Days: keep dates where the free range clipped to opening hours
       lasts at least one step
    4. Slots: step through the free range on a grid anchored at its own
       start and keep candidates lying fully inside opening hours
    """

    def __init__(self, opening_hours: OpeningHours, step_minutes: int = DEFAULT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be greater than zero, got {step_minutes}")
        self.opening_hours = opening_hours
        self.step_minutes = step_minutes

    @property
    def timezone(self) -> str:
        return self.opening_hours.timezone

    def invert_busy_to_free(
        self,
        busy_ranges: Sequence[TimeRange],
        range_start: DateTime,
        range_end: DateTime
    ) -> List[TimeRange]:
        """
        Convert busy times to free times within the bounding range.

        ``busy_ranges`` must be ascending and non-overlapping; the result is
        undefined otherwise.

        Example:
        Range: 09:00 - 17:00
        Busy: [10:00-11:00, 11:00-12:00, 14:00-15:00]
        Result: [09:00-10:00, 12:00-14:00, 15:00-17:00]
        """
        if not busy_ranges:
            return [TimeRange(start=range_start, end=range_end)]

        free_ranges: List[TimeRange] = []

        first = busy_ranges[0]
        if range_start < first.start:
            free_ranges.append(TimeRange(start=range_start, end=first.start))

        for previous, current in zip(busy_ranges, busy_ranges[1:]):
            # Touching ranges leave no gap
            if previous.end < current.start:
                free_ranges.append(TimeRange(start=previous.end, end=current.start))

        last = busy_ranges[-1]
        if last.end < range_end:
            free_ranges.append(TimeRange(start=last.end, end=range_end))

        return free_ranges

    def find_free_days(self, free_ranges: Sequence[TimeRange]) -> List[str]:
        """
        List the dates that can take at least one booking.

        Each free range is clipped to the opening hours of every date it
        spans; a date qualifies when the clipped part lasts at least one step.

        Returns:
            Distinct "YYYY-MM-DD" strings in the order they were found
        """
        days: List[str] = []

        for free in free_ranges:
            free = free.in_timezone(self.timezone)

            for day, window in self._open_days(free):
                key = day.format(DAY_FORMAT)
                if key in days:
                    continue

                clipped = window.clip(free)
                if clipped is None or clipped.duration_minutes() < self.step_minutes:
                    continue

                days.append(key)

        logger.debug("Found %d free day(s) in %d free range(s)", len(days), len(free_ranges))
        return days

    def find_free_slots(self, free_ranges: Sequence[TimeRange]) -> List[BookableSlot]:
        """
        List bookable start times on a grid of ``step_minutes``.

        The grid starts at each free range's own start, and the number of
        candidates follows from the unclipped length of the free range.
        A candidate is kept only when it lies completely inside the opening
        hours of the date being walked.
        """
        slots: List[BookableSlot] = []

        for free in free_ranges:
            free = free.in_timezone(self.timezone)
            total_minutes = free.duration_minutes()
            if total_minutes <= 0:
                continue

            for _, window in self._open_days(free):
                remaining = total_minutes
                index = 0
                while remaining >= self.step_minutes:
                    candidate = self._grid_cell(free.start, index)
                    if candidate.start >= window.open and candidate.end <= window.closed:
                        slots.append(BookableSlot(start=candidate.start))
                    remaining -= self.step_minutes
                    index += 1

        logger.debug("Found %d slot(s) in %d free range(s)", len(slots), len(free_ranges))
        return slots

    def _grid_cell(self, anchor: DateTime, index: int) -> TimeRange:
        return TimeRange(
            start=anchor.add(minutes=index * self.step_minutes),
            end=anchor.add(minutes=(index + 1) * self.step_minutes),
        )

    def _spanned_dates(self, free: TimeRange) -> Iterator[Tuple[int, Date]]:
        """
        Yield (offset, date) for every civil date from the range's start date
        up to and including its end date.
        """
        start_date = free.start.date()
        end_date = free.end.date()
        span = start_date.diff(end_date).in_days()

        for offset in range(span + 1):
            yield offset, start_date.add(days=offset)

    def _open_days(self, free: TimeRange):
        """Yield (date, window) for the spanned dates that are not closed."""
        start_date = free.start.date()

        for offset, day in self._spanned_dates(free):
            window = self.opening_hours.get_day_window(start_date, offset)
            if window.is_closed:
                continue
            yield day, window
