"""Analyzers built on top of the per-agent time series."""

from .insights import (
    analyze_non_validated_by_agent,
    analyze_non_validated_reasons,
    analyze_passthroughs_by_day,
    analyze_passthroughs_by_time,
)
from .quartiles import calculate_quartile_analysis
from .records import AllRecords, RecordUpdate, analyze_and_update_records
from .trends import best_regression, linear_regression, log_linear_regression

__all__ = [
    "AllRecords",
    "RecordUpdate",
    "analyze_and_update_records",
    "analyze_non_validated_by_agent",
    "analyze_non_validated_reasons",
    "analyze_passthroughs_by_day",
    "analyze_passthroughs_by_time",
    "best_regression",
    "calculate_quartile_analysis",
    "linear_regression",
    "log_linear_regression",
]
