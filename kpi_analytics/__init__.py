"""KPI funnel analytics for sales and travel operations teams."""

from .aggregator import calculate_metrics, compare_teams, summarize_group, summarize_seniority
from .analyzers.quartiles import calculate_quartile_analysis
from .counters import count_by_agent, count_dataset
from .dates import date_to_int, normalize_date
from .detection import find_agent_column, find_column, find_date_column
from .loader import load_datasets, load_rows
from .models import (
    AnalysisConfig,
    AnalysisResult,
    Datasets,
    DateRange,
    Metrics,
    QuartileAnalysisResult,
    Row,
    Team,
    TimeSeriesData,
)
from .pipeline import run_analysis
from .storage import RecordsStore, ResultStorage, load_roster
from .timeseries import build_time_series, segment_daily_averages

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "Datasets",
    "DateRange",
    "Metrics",
    "QuartileAnalysisResult",
    "RecordsStore",
    "ResultStorage",
    "Row",
    "Team",
    "TimeSeriesData",
    "build_time_series",
    "calculate_metrics",
    "calculate_quartile_analysis",
    "compare_teams",
    "count_by_agent",
    "count_dataset",
    "date_to_int",
    "find_agent_column",
    "find_column",
    "find_date_column",
    "load_datasets",
    "load_roster",
    "load_rows",
    "normalize_date",
    "run_analysis",
    "segment_daily_averages",
    "summarize_group",
    "summarize_seniority",
]
