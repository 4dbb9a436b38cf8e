"""
Domain models for time ranges, opening hours and bookable slots.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import ConfigurationError

SLOT_FORMAT = "YYYY-MM-DD HH:mm"
DAY_FORMAT = "YYYY-MM-DD"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must not be after end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Start time {self.start} must not be after end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def in_timezone(self, timezone: str) -> "TimeRange":
        """Return the same range expressed in another timezone."""
        return TimeRange(
            start=self.start.in_timezone(timezone),
            end=self.end.in_timezone(timezone),
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('YYYY-MM-DD HH:mm')}"


@dataclass(frozen=True)
class DayHours:
    """Opening and closing time of one weekday, as "HH:MM" strings."""
    open: str | None = None
    closed: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.open is None or self.closed is None


@dataclass(frozen=True)
class DayWindow:
    """
    Resolved opening hours for one concrete calendar date.

    Both bounds are None when the business is closed that day.
    """
    open: DateTime | None
    closed: DateTime | None

    @property
    def is_closed(self) -> bool:
        return self.open is None or self.closed is None

    def clip(self, time_range: TimeRange) -> TimeRange | None:
        """
        Intersect a range with this window.
        Returns None for a closed day or when nothing of the range is left.
        """
        if self.is_closed:
            return None

        start = max(time_range.start, self.open)
        end = min(time_range.end, self.closed)

        if start > end:
            return None

        return TimeRange(start=start, end=end)


def _parse_clock(value: str) -> Tuple[int, int]:
    """Split an "HH:MM" string into hour and minute."""
    try:
        hour_text, minute_text = value.split(":")
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid time of day {value!r}, expected HH:MM") from exc

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ConfigurationError(f"Invalid time of day {value!r}, expected HH:MM")

    return hour, minute


@dataclass(frozen=True)
class OpeningHours:
    """
    Weekly opening-hours table bound to a timezone.

    The table holds seven entries indexed by weekday with 0 = Sunday.
    """
    table: Tuple[DayHours, ...]
    timezone: str = "Europe/Amsterdam"

    @classmethod
    def from_entries(
        cls,
        entries: Sequence[Dict[str, str | None]],
        timezone: str = "Europe/Amsterdam"
    ) -> "OpeningHours":
        """Build a table from plain ``{"open": ..., "closed": ...}`` mappings."""
        table = tuple(
            DayHours(open=entry.get("open"), closed=entry.get("closed"))
            for entry in entries
        )
        return cls(table=table, timezone=timezone)

    def get_day_window(self, date: Date, offset: int = 0) -> DayWindow:
        """
        Resolve the opening window of ``date`` shifted by ``offset`` days.

        Raises:
            ConfigurationError: If the table has no entry for that weekday
                or an entry holds a malformed time
        """
        current = date.add(days=offset)
        weekday = current.isoweekday() % 7

        try:
            hours = self.table[weekday]
        except IndexError as exc:
            raise ConfigurationError(
                f"Opening hours have no entry for weekday {weekday}"
            ) from exc

        if hours.is_closed:
            return DayWindow(open=None, closed=None)

        open_hour, open_minute = _parse_clock(hours.open)
        closed_hour, closed_minute = _parse_clock(hours.closed)

        return DayWindow(
            open=pendulum.datetime(
                current.year, current.month, current.day,
                open_hour, open_minute, tz=self.timezone
            ),
            closed=pendulum.datetime(
                current.year, current.month, current.day,
                closed_hour, closed_minute, tz=self.timezone
            ),
        )


@dataclass(frozen=True)
class BookableSlot:
    """
    A bookable start time on the slot grid.
    """
    start: DateTime

    def format_display(self) -> str:
        return self.start.format(SLOT_FORMAT)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.format_display()}
