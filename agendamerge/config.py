"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.calendar_prepare import DEFAULT_BUSY_PADDING_MINUTES, DEFAULT_TICK_MINUTES
from .services.calendar_service import DAY_END_HOUR, DAY_START_HOUR


class CalendarDefaults(BaseModel):
    """Default settings for slot generation."""
    tick_minutes: int = DEFAULT_TICK_MINUTES
    busy_padding_minutes: int = DEFAULT_BUSY_PADDING_MINUTES
    day_start_hour: int = DAY_START_HOUR
    day_end_hour: int = DAY_END_HOUR

    @field_validator("tick_minutes")
    @classmethod
    def validate_tick(cls, value: int) -> int:
        """Ensure the slot grid advances."""
        if value <= 0:
            raise ValueError("tick_minutes must be greater than zero")
        return value

    @field_validator("busy_padding_minutes")
    @classmethod
    def validate_padding(cls, value: int) -> int:
        if value < 0:
            raise ValueError("busy_padding_minutes must not be negative")
        return value

    @field_validator("day_start_hour", "day_end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "CalendarDefaults":
        """Ensure the booking day opens before it closes."""
        if self.day_end_hour <= self.day_start_hour:
            raise ValueError("day_end_hour must be later than day_start_hour")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    current_user_id: int
    events_file: Path = Path("events.json")
    timezone: str = "UTC"
    defaults: CalendarDefaults = Field(default_factory=CalendarDefaults)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``events_file`` is resolved against the directory holding
        the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
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
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.events_file.is_absolute():
            config.events_file = config_path.parent / config.events_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of agendamerge/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
