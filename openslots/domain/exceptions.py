"""
Domain-specific exception hierarchy for the openslots application.
"""


class OpenSlotsError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(OpenSlotsError):
    """Raised when opening hours or other settings are unusable."""


class CalendarAPIError(OpenSlotsError):
    """Raised when calendar data cannot be fetched, written or parsed."""


class AuthenticationError(OpenSlotsError):
    """Raised when authentication or token handling fails."""
