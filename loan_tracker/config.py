"""Configuration management for loan-tracker."""

import os
from dataclasses import dataclass, field

from loan_tracker.dates import DEFAULT_TIMEZONE, DateProvider
from loan_tracker.exceptions import ConfigurationError


@dataclass
class TermOptions:
    """Term choices offered when a loan is created."""

    single_payment_days: tuple[int, ...] = (7, 15, 30, 45, 60)
    daily_installments: tuple[int, ...] = tuple(range(5, 31))
    weekly_installments: tuple[int, ...] = (2, 3, 4, 6, 8, 10, 12)
    biweekly_installments: tuple[int, ...] = (2, 3, 4, 6)
    max_installments: int = 200


@dataclass
class TrackerConfig:
    """Main configuration for loan-tracker."""

    timezone: str = DEFAULT_TIMEZONE
    currency_symbol: str = "S/"
    upcoming_limit: int = 20
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None
    terms: TermOptions = field(default_factory=TermOptions)

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """Create config from environment variables."""
        log_format = os.getenv("LOG_FORMAT", "standard")
        if log_format not in ("standard", "json"):
            raise ConfigurationError(f"LOG_FORMAT must be 'standard' or 'json', got {log_format!r}")

        return cls(
            timezone=os.getenv("LOAN_TRACKER_TIMEZONE", DEFAULT_TIMEZONE),
            currency_symbol=os.getenv("LOAN_TRACKER_CURRENCY_SYMBOL", "S/"),
            upcoming_limit=_int_env("LOAN_TRACKER_UPCOMING_LIMIT", 20),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=log_format,
            seed=_int_env("SEED", None),
        )

    def date_provider(self) -> DateProvider:
        """Build the "today" provider for the configured time zone."""
        return DateProvider(timezone=self.timezone)


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
