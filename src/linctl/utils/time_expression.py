"""Time expression parsing for --newer-than style flags.

A time expression is one of:

- an empty string, meaning "use the caller's default window"
- ``all_time``, meaning no lower bound
- ``N_unit_ago`` where unit is minute, hour, day, week, month or year
  (singular or plural), e.g. ``1_week_ago`` or ``6_months_ago``
- an ISO-8601 date (``2024-01-31``) or RFC 3339 date-time
  (``2024-01-31T09:30:00Z``); values without an offset are taken as UTC

Matching of ``all_time`` and unit names is case-insensitive.
"""

import calendar
import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional

from ..exceptions import InvalidTimeExpressionError
from ..models import USE_DEFAULT, UNBOUNDED, At, ResolvedBoundary

logger = logging.getLogger(__name__)

ALL_TIME = "all_time"

RELATIVE_PATTERN = re.compile(
    r"^([0-9]+)_(minute|hour|day|week|month|year)s?_ago$"
)
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
DATETIME_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}[Tt ][0-9]{2}:[0-9]{2}")

ACCEPTED_FORMS = (
    "'' (use the default window)",
    "all_time",
    "N_minutes_ago",
    "N_hours_ago",
    "N_days_ago",
    "N_weeks_ago",
    "N_months_ago",
    "N_years_ago",
    "YYYY-MM-DD",
    "RFC 3339 date-time (e.g. 2024-01-31T09:30:00Z)",
)

_FIXED_UNITS = {
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` back by calendar months, clamping to the month's last day.

    March 31 minus one month is February 28 (or 29 in a leap year), not
    March 3.
    """
    total = moment.year * 12 + (moment.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def subtract_units(moment: datetime, amount: int, unit: str) -> datetime:
    """Subtract ``amount`` of ``unit`` from ``moment``."""
    if unit == "month":
        return subtract_months(moment, amount)
    if unit == "year":
        return subtract_months(moment, amount * 12)
    return moment - _FIXED_UNITS[unit] * amount


def parse_absolute(expression: str) -> Optional[datetime]:
    """Parse an ISO-8601 date or RFC 3339 date-time into an aware UTC datetime.

    Returns None when the string is not in either format.
    """
    if DATE_PATTERN.match(expression):
        try:
            parsed_date = date.fromisoformat(expression)
        except ValueError:
            return None
        return datetime.combine(parsed_date, time.min, tzinfo=timezone.utc)

    if DATETIME_PATTERN.match(expression):
        candidate = expression
        if candidate[-1] in "Zz":
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    return None


def resolve_time_expression(
    expression: Optional[str],
    clock: Optional[Callable[[], datetime]] = None,
) -> ResolvedBoundary:
    """Resolve a time expression into a creation-time boundary.

    Args:
        expression: Raw user input, e.g. "2_weeks_ago", "all_time", "2024-01-01"
        clock: Callable returning the current aware UTC datetime. Read once
            per call; defaults to the system clock.

    Returns:
        USE_DEFAULT for an empty expression, UNBOUNDED for all_time,
        otherwise an At boundary in UTC.

    Raises:
        InvalidTimeExpressionError: If the expression matches no accepted form
    """
    if expression is None or not expression.strip():
        return USE_DEFAULT

    text = expression.strip()
    lowered = text.lower()

    if lowered == ALL_TIME:
        return UNBOUNDED

    match = RELATIVE_PATTERN.match(lowered)
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        now = (clock or utc_now)()
        try:
            boundary = subtract_units(now, amount, unit)
        except (ValueError, OverflowError):
            # amount reaches past datetime.min
            raise InvalidTimeExpressionError(expression, ACCEPTED_FORMS)
        logger.debug("Resolved %r to %s (now=%s)", text, boundary.isoformat(), now.isoformat())
        return At(boundary)

    absolute = parse_absolute(text)
    if absolute is not None:
        logger.debug("Resolved %r to absolute boundary %s", text, absolute.isoformat())
        return At(absolute)

    raise InvalidTimeExpressionError(expression, ACCEPTED_FORMS)
