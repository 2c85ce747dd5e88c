"""
Price updater configuration.

Defines when the daily price refresh runs and how quotes are fetched.
"""

from pydantic import BaseModel, Field, field_validator


class PriceScheduleConfig(BaseModel):
    """Schedule for the investment price refresh."""

    enabled: bool = Field(default=True, description="Enable/disable scheduled updates")
    hour: int = Field(default=9, ge=0, le=23, description="Local hour of the daily run")
    minute: int = Field(default=0, ge=0, le=59, description="Local minute of the daily run")
    timezone: str = Field(
        default="Asia/Kolkata", description="IANA time zone the schedule is evaluated in"
    )
    weekdays: list[int] = Field(
        default_factory=lambda: [0, 1, 2, 3, 4],
        description="Days to run on (Monday=0 ... Sunday=6)",
    )
    quote_timeout: float = Field(
        default=10.0, gt=0, description="Quote request timeout in seconds"
    )

    @field_validator("weekdays")
    @classmethod
    def _check_weekdays(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("at least one weekday is required")
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("weekdays must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(value))

    @classmethod
    def from_settings(cls, settings) -> "PriceScheduleConfig":
        return cls(
            enabled=settings.PRICE_UPDATES_ENABLED,
            timezone=settings.PRICE_UPDATE_TIMEZONE,
            quote_timeout=settings.QUOTE_API_TIMEOUT,
        )
