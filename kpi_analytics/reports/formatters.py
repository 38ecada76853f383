"""Display formatting for metrics, periods and records."""

import calendar
from datetime import date

from ..constants import RateMetric, TimePeriod

METRIC_LABELS: dict[str, str] = {
    "trips": "Trips",
    "quotes": "Quotes",
    "passthroughs": "Passthroughs",
    "tq": "T>Q %",
    "tp": "T>P %",
    "pq": "P>Q %",
}

PERIOD_LABELS: dict[str, str] = {
    TimePeriod.DAY: "Daily",
    TimePeriod.WEEK: "Weekly",
    TimePeriod.MONTH: "Monthly",
    TimePeriod.QUARTER: "Quarterly",
}

_RATE_METRICS = {metric.value for metric in RateMetric}


def format_metric_name(metric: str) -> str:
    return METRIC_LABELS.get(metric, metric)


def format_period_name(period: str) -> str:
    return PERIOD_LABELS.get(period, period)


def format_record_value(metric: str, value: float) -> str:
    """Rates as one-decimal percentages, volumes with thousands separators."""
    if metric in _RATE_METRICS:
        return f"{value:.1f}%"
    return f"{value:,.0f}"


def format_percent(value: float | None) -> str:
    """Format a 0-100 rate; an absent value renders as a dash."""
    return "-" if value is None else f"{value:.1f}%"


def _short(day: date) -> str:
    return f"{day:%b} {day.day}"


def format_date_range(start: str, end: str) -> str:
    """Describe a record period in words.

    Single days read ``Jan 5, 2024``, whole months ``January 2024``, whole
    quarters ``Q1 2024`` and anything else ``Jan 1 - Jan 7, 2024``.

    Args:
        start: First day, YYYY-MM-DD.
        end: Last day, YYYY-MM-DD.

    Returns:
        str: Human-readable description of the range.
    """
    start_day = date.fromisoformat(start)
    end_day = date.fromisoformat(end)

    if start_day == end_day:
        return f"{_short(start_day)}, {start_day.year}"

    starts_month = start_day.day == 1
    ends_month = end_day.day == calendar.monthrange(end_day.year, end_day.month)[1]
    same_year = start_day.year == end_day.year

    if starts_month and ends_month and same_year and start_day.month == end_day.month:
        return f"{start_day:%B} {start_day.year}"

    quarter = (start_day.month - 1) // 3
    if (
        starts_month
        and ends_month
        and same_year
        and start_day.month == quarter * 3 + 1
        and end_day.month == quarter * 3 + 3
    ):
        return f"Q{quarter + 1} {start_day.year}"

    return f"{_short(start_day)} - {_short(end_day)}, {end_day.year}"
