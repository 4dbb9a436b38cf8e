"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_calculator import AvailabilityCalculator, DEFAULT_STEP_MINUTES
from .exceptions import AuthenticationError, CalendarAPIError, ConfigurationError, OpenSlotsError
from .models import BookableSlot, DayHours, DayWindow, OpeningHours, TimeRange

__all__ = [
    "AvailabilityCalculator",
    "DEFAULT_STEP_MINUTES",
    "AuthenticationError",
    "CalendarAPIError",
    "ConfigurationError",
    "OpenSlotsError",
    "BookableSlot",
    "DayHours",
    "DayWindow",
    "OpeningHours",
    "TimeRange",
]
