"""
Configuration management using Pydantic models loaded from YAML.
"""

import re
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import ConfigurationError
from .domain.models import DayHours, OpeningHours

CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class DayHoursConfig(BaseModel):
    """Opening hours of one weekday. Both values null means closed."""
    open: Optional[str] = None
    closed: Optional[str] = None

    @field_validator("open", "closed")
    @classmethod
    def validate_clock(cls, value: Optional[str]) -> Optional[str]:
        """Validate time of day is HH:MM."""
        if value is not None and not CLOCK_PATTERN.match(value):
            raise ValueError(f"Time of day must be HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def validate_pair(self) -> "DayHoursConfig":
        """Reject half-configured days and windows that close before they open."""
        if (self.open is None) != (self.closed is None):
            raise ValueError("open and closed must both be set or both be null")
        if self.open is not None and self.closed <= self.open:
            raise ValueError(f"closed ({self.closed}) must be later than open ({self.open})")
        return self

    def to_domain(self) -> DayHours:
        return DayHours(open=self.open, closed=self.closed)


class AvailabilityConfig(BaseModel):
    """Settings for the availability computation."""
    step_minutes: int = 15

    @field_validator("step_minutes")
    @classmethod
    def validate_step(cls, value: int) -> int:
        """Ensure the slot step is positive."""
        if value <= 0:
            raise ValueError("step_minutes must be greater than zero")
        return value


class GoogleConfig(BaseModel):
    """OAuth client settings for the Google Calendar API."""
    client_id: str = ""
    client_secret: str = ""
    token_cache_file: Optional[Path] = None
    scopes: List[str] = Field(default_factory=lambda: [CALENDAR_SCOPE])


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Amsterdam"
    calendar_id: str = "primary"
    opening_hours: List[DayHoursConfig]
    availability: AvailabilityConfig = Field(default_factory=AvailabilityConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("opening_hours")
    @classmethod
    def validate_week(cls, value: List[DayHoursConfig]) -> List[DayHoursConfig]:
        """Ensure there is exactly one entry per weekday, Sunday first."""
        if len(value) != 7:
            raise ValueError(
                f"opening_hours must have 7 entries (Sunday to Saturday), got {len(value)}"
            )
        return value

    def get_opening_hours(self) -> OpeningHours:
        """Build the domain opening-hours table in the configured timezone."""
        return OpeningHours(
            table=tuple(day.to_domain() for day in self.opening_hours),
            timezone=self.timezone,
        )

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}:\n{exc}") from exc


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
