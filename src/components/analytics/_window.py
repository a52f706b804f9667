"""
Reporting window resolution.

Pure functions of ``(token, now)``; nothing here reads the wall clock.

Rules (all UTC, ``end`` inclusive to 23:59:59.999):
- absent/empty token: today only
- ``weekly`` / ``monthly`` / ``yearly``: today minus 7 / 30 / 365 days, through today
- ``YYYY-MM-DD``: that single day
- anything else is rejected
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from src.core.errors import AnalyticsValidationError

from .models import ReportingWindow

RANGE_DAYS: dict[str, int] = {
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}

DATE_FORMAT = "%Y-%m-%d"

MIN_REALTIME_MINUTES = 1
MAX_REALTIME_MINUTES = 1440


class InvalidWindowError(ValueError):
    """Window token is neither a known range nor a ``YYYY-MM-DD`` date."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Invalid date range '{token}': use weekly, monthly, yearly or YYYY-MM-DD")


def start_of_day(dt: datetime) -> datetime:
    return dt.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return start_of_day(dt).replace(hour=23, minute=59, second=59, microsecond=999000)


def resolve_window(token: str | None, now: datetime) -> ReportingWindow:
    """Map a range token to a concrete window. Raises InvalidWindowError."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    cleaned = (token or "").strip()
    if not cleaned:
        return ReportingWindow(start=start_of_day(now), end=end_of_day(now), token="today")

    days = RANGE_DAYS.get(cleaned.lower())
    if days is not None:
        return ReportingWindow(
            start=start_of_day(now) - timedelta(days=days),
            end=end_of_day(now),
            token=cleaned.lower(),
        )

    try:
        day = datetime.strptime(cleaned, DATE_FORMAT).replace(tzinfo=UTC)
    except ValueError as e:
        raise InvalidWindowError(cleaned) from e
    return ReportingWindow(start=start_of_day(day), end=end_of_day(day), token=cleaned)


def validate_window(
    token: str | None, now: datetime
) -> tuple[ReportingWindow | None, list[AnalyticsValidationError]]:
    """resolve_window, reporting a bad token as a field-level error."""
    try:
        return resolve_window(token, now), []
    except InvalidWindowError as e:
        return None, [
            AnalyticsValidationError(
                code="invalid_date_range",
                message=str(e),
                field_name="date_range",
            )
        ]


def rolling_window(now: datetime, minutes: int) -> ReportingWindow:
    """The last ``minutes`` minutes up to ``now`` (not day-aligned)."""
    if not MIN_REALTIME_MINUTES <= minutes <= MAX_REALTIME_MINUTES:
        raise ValueError(
            f"minutes must be between {MIN_REALTIME_MINUTES} and {MAX_REALTIME_MINUTES}"
        )
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return ReportingWindow(start=now - timedelta(minutes=minutes), end=now, token=f"{minutes}m")
