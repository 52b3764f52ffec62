"""Calendar date helpers and the injectable "today" provider.

Dates inside the engine are plain ``datetime.date`` values: no time of day,
no zone. Zone conversion happens once, in ``DateProvider``, where "today"
is read from a real clock.
"""

import re
from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone
from typing import Callable, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loan_tracker.exceptions import ConfigurationError, InvalidInputError

DateLike = Union[date, datetime, str]

DEFAULT_TIMEZONE = "America/Lima"

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def to_calendar_date(value: DateLike) -> date:
    """Reduce a date, datetime or ``YYYY-MM-DD[T...]`` string to a date.

    The time component is dropped, never converted: a stored
    ``2024-03-01T23:00:00`` is due on March 1st.

    Raises
    ------
    InvalidInputError
        If the value cannot be read as a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid calendar date: {value!r}")

    text = value.strip().split("T")[0].split(" ")[0]
    match = _DATE_RE.match(text)
    if match is None:
        raise InvalidInputError(f"Invalid calendar date: {value!r}")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidInputError(f"Invalid calendar date: {value!r}") from e


def format_date(value: date) -> str:
    """Format a date as zero-padded ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


class DateProvider:
    """Supply "today" as a calendar date in a fixed time zone.

    Parameters
    ----------
    timezone : str
        IANA zone name (default ``America/Lima``, UTC-5, no DST).
    clock : Callable[[], datetime] | None
        Returns the current aware datetime. Defaults to the system clock
        in UTC; tests pass a fixed clock.
    """

    def __init__(
        self,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        try:
            self.zone = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown time zone: {timezone!r}") from e
        self.timezone = timezone
        self._clock = clock or _utc_now

    def now(self) -> datetime:
        """Current time in the provider's zone."""
        current = self._clock()
        if current.tzinfo is None:
            raise InvalidInputError("Clock returned a naive datetime")
        return current.astimezone(self.zone)

    def today(self) -> date:
        """Today's calendar date in the provider's zone."""
        return self.now().date()

    def tomorrow(self) -> date:
        return self.today() + timedelta(days=1)

    def today_str(self) -> str:
        return format_date(self.today())
