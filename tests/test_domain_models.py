"""
Tests for domain models.
"""

import pendulum
import pytest

from openslots.domain.exceptions import ConfigurationError
from openslots.domain.models import BookableSlot, DayHours, DayWindow, OpeningHours, TimeRange

TZ = "Europe/Amsterdam"

WEEKDAYS_9_TO_5 = [
    {"open": None, "closed": None},        # Sunday
    {"open": "09:00", "closed": "17:00"},
    {"open": "09:00", "closed": "17:00"},
    {"open": "09:00", "closed": "17:00"},
    {"open": "09:00", "closed": "17:00"},
    {"open": "09:00", "closed": "17:00"},
    {"open": None, "closed": None},        # Saturday
]


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2018-05-21 09:00", tz=TZ)
        end = pendulum.parse("2018-05-21 17:00", tz=TZ)

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_zero_length_range_is_allowed(self):
        """Touching endpoints form an empty but valid range."""
        moment = pendulum.parse("2018-05-21 09:00", tz=TZ)

        assert TimeRange(start=moment, end=moment).duration_minutes() == 0

    def test_invalid_time_range_raises_error(self):
        """Test that an end before the start raises ValueError."""
        start = pendulum.parse("2018-05-21 17:00", tz=TZ)
        end = pendulum.parse("2018-05-21 09:00", tz=TZ)

        with pytest.raises(ValueError, match="must not be after end time"):
            TimeRange(start=start, end=end)

    def test_duration_truncates_partial_minutes(self):
        tr = TimeRange(
            start=pendulum.parse("2018-05-21 09:00:00", tz=TZ),
            end=pendulum.parse("2018-05-21 09:14:59", tz=TZ),
        )

        assert tr.duration_minutes() == 14

    def test_overlaps(self):
        """Test overlap detection."""
        tr1 = TimeRange(
            start=pendulum.parse("2018-05-21 09:00", tz=TZ),
            end=pendulum.parse("2018-05-21 12:00", tz=TZ)
        )
        tr2 = TimeRange(
            start=pendulum.parse("2018-05-21 11:00", tz=TZ),
            end=pendulum.parse("2018-05-21 14:00", tz=TZ)
        )
        tr3 = TimeRange(
            start=pendulum.parse("2018-05-21 14:00", tz=TZ),
            end=pendulum.parse("2018-05-21 17:00", tz=TZ)
        )

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)

    def test_in_timezone_keeps_instants(self):
        tr = TimeRange(
            start=pendulum.parse("2018-05-21T07:00:00Z"),
            end=pendulum.parse("2018-05-21T08:00:00Z"),
        )

        converted = tr.in_timezone(TZ)

        assert converted.start == tr.start
        assert converted.start.hour == 9
        assert converted.end.hour == 10


class TestDayWindow:
    """Tests for clipping free time to a day's opening hours."""

    def _window(self):
        return DayWindow(
            open=pendulum.parse("2018-05-21 09:00", tz=TZ),
            closed=pendulum.parse("2018-05-21 17:00", tz=TZ),
        )

    def test_clip_inside_window(self):
        free = TimeRange(
            start=pendulum.parse("2018-05-21 10:00", tz=TZ),
            end=pendulum.parse("2018-05-21 11:00", tz=TZ),
        )

        assert self._window().clip(free) == free

    def test_clip_to_bounds(self):
        free = TimeRange(
            start=pendulum.parse("2018-05-21 07:00", tz=TZ),
            end=pendulum.parse("2018-05-21 20:00", tz=TZ),
        )

        clipped = self._window().clip(free)

        assert clipped.start.hour == 9
        assert clipped.end.hour == 17

    def test_clip_before_opening_is_empty(self):
        free = TimeRange(
            start=pendulum.parse("2018-05-21 08:00", tz=TZ),
            end=pendulum.parse("2018-05-21 08:10", tz=TZ),
        )

        assert self._window().clip(free) is None

    def test_closed_window(self):
        window = DayWindow(open=None, closed=None)
        free = TimeRange(
            start=pendulum.parse("2018-05-21 10:00", tz=TZ),
            end=pendulum.parse("2018-05-21 11:00", tz=TZ),
        )

        assert window.is_closed
        assert window.clip(free) is None


class TestOpeningHours:
    """Tests for resolving the opening window of a date."""

    def test_weekday_table_starts_on_sunday(self):
        opening_hours = OpeningHours.from_entries(WEEKDAYS_9_TO_5, timezone=TZ)

        sunday = pendulum.date(2018, 5, 20)
        monday = pendulum.date(2018, 5, 21)

        assert opening_hours.get_day_window(sunday).is_closed
        assert not opening_hours.get_day_window(monday).is_closed

    def test_get_day_window(self):
        """Test getting the opening window for a specific day."""
        opening_hours = OpeningHours.from_entries(WEEKDAYS_9_TO_5, timezone=TZ)

        window = opening_hours.get_day_window(pendulum.date(2018, 5, 17))

        assert window.open == pendulum.datetime(2018, 5, 17, 9, 0, tz=TZ)
        assert window.closed == pendulum.datetime(2018, 5, 17, 17, 0, tz=TZ)
        assert window.open.timezone_name == TZ

    def test_offset_walks_forward(self):
        opening_hours = OpeningHours.from_entries(WEEKDAYS_9_TO_5, timezone=TZ)
        friday = pendulum.date(2018, 5, 25)

        assert not opening_hours.get_day_window(friday, 0).is_closed
        assert opening_hours.get_day_window(friday, 1).is_closed  # Saturday
        assert opening_hours.get_day_window(friday, 2).is_closed  # Sunday

        monday = opening_hours.get_day_window(friday, 3)
        assert monday.open == pendulum.datetime(2018, 5, 28, 9, 0, tz=TZ)

    def test_half_configured_day_is_closed(self):
        entries = [dict(entry) for entry in WEEKDAYS_9_TO_5]
        entries[1] = {"open": "09:00", "closed": None}
        opening_hours = OpeningHours.from_entries(entries, timezone=TZ)

        assert opening_hours.get_day_window(pendulum.date(2018, 5, 21)).is_closed

    def test_missing_entry_raises_configuration_error(self):
        opening_hours = OpeningHours.from_entries(WEEKDAYS_9_TO_5[:5], timezone=TZ)

        with pytest.raises(ConfigurationError, match="weekday 6"):
            opening_hours.get_day_window(pendulum.date(2018, 5, 26))

    def test_malformed_time_raises_configuration_error(self):
        opening_hours = OpeningHours(
            table=tuple([DayHours("9am", "17:00")] * 7),
            timezone=TZ,
        )

        with pytest.raises(ConfigurationError, match="expected HH:MM"):
            opening_hours.get_day_window(pendulum.date(2018, 5, 21))

    def test_out_of_range_time_raises_configuration_error(self):
        opening_hours = OpeningHours(
            table=tuple([DayHours("09:00", "25:00")] * 7),
            timezone=TZ,
        )

        with pytest.raises(ConfigurationError):
            opening_hours.get_day_window(pendulum.date(2018, 5, 21))


class TestBookableSlot:
    """Tests for slot serialisation."""

    def test_to_dict(self):
        slot = BookableSlot(start=pendulum.datetime(2018, 5, 17, 9, 15, tz=TZ))

        assert slot.to_dict() == {"start": "2018-05-17 09:15"}
