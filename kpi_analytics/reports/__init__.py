"""Report formatting helpers for terminal output."""

from .formatters import (
    format_date_range,
    format_metric_name,
    format_percent,
    format_period_name,
    format_record_value,
)

__all__ = [
    "format_date_range",
    "format_metric_name",
    "format_percent",
    "format_period_name",
    "format_record_value",
]
