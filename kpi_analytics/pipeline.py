"""End-to-end analysis over parsed datasets."""

from loguru import logger

from .aggregator import calculate_metrics, compare_teams, summarize_seniority
from .analyzers.quartiles import calculate_quartile_analysis
from .constants import (
    BOOKINGS_DATE_PATTERNS,
    HOT_PASS_DATE_PATTERNS,
    NON_CONVERTED_DATE_PATTERNS,
    PASSTHROUGHS_DATE_PATTERNS,
    QUOTES_DATE_PATTERNS,
    TRIPS_DATE_PATTERNS,
    Dataset,
    LogMessage,
    Segment,
)
from .counters import (
    build_trip_date_map_for,
    count_b2b_by_agent,
    count_dataset,
    count_non_converted,
    count_quotes_started,
    count_repeat_by_agent,
)
from .detection import find_agent_column, find_date_column, headers_of
from .models import AnalysisConfig, AnalysisResult, Datasets
from .timeseries import build_time_series, find_date_index, segment_daily_averages


def run_analysis(datasets: Datasets, config: AnalysisConfig | None = None) -> AnalysisResult:
    """Run every analysis stage over one set of uploads.

    Metrics honour ``config.date_range`` and the quartile analysis is
    windowed to it. The time series always spans every dated row, so a
    chart can be windowed later without recounting.

    Args:
        datasets: Parsed rows per export.
        config: Date range, roster and thresholds. Defaults apply when None.

    Returns:
        AnalysisResult: Metrics, time series, quartiles and group summaries.
    """
    config = config or AnalysisConfig()
    date_range = config.date_range
    logger.info(LogMessage.ANALYSIS_HEADER)

    trips = count_dataset(datasets.trips, TRIPS_DATE_PATTERNS, date_range, label=Dataset.TRIPS)
    quotes = count_dataset(datasets.quotes, QUOTES_DATE_PATTERNS, date_range, label=Dataset.QUOTES)
    passthroughs = count_dataset(
        datasets.passthroughs, PASSTHROUGHS_DATE_PATTERNS, date_range, label=Dataset.PASSTHROUGHS
    )
    hot_passes = count_dataset(
        datasets.hot_pass, HOT_PASS_DATE_PATTERNS, date_range, label=Dataset.HOT_PASS
    )
    bookings = count_dataset(
        datasets.bookings, BOOKINGS_DATE_PATTERNS, date_range, label=Dataset.BOOKINGS
    )

    trip_headers = headers_of(datasets.trips)
    trip_agent_column = find_agent_column(trip_headers)
    trip_date_column = find_date_column(trip_headers, TRIPS_DATE_PATTERNS)
    repeat = count_repeat_by_agent(datasets.trips, trip_agent_column, trip_date_column, date_range)
    b2b = count_b2b_by_agent(datasets.trips, trip_agent_column, trip_date_column, date_range)

    non_converted = count_non_converted(
        datasets.non_converted,
        find_date_column(headers_of(datasets.non_converted), NON_CONVERTED_DATE_PATTERNS),
        date_range,
        build_trip_date_map_for(datasets.trips),
    )
    quotes_started = count_quotes_started(datasets.quotes_started, date_range)

    metrics = calculate_metrics(
        trips=trips.total,
        quotes=quotes.total,
        passthroughs=passthroughs.total,
        hot_passes=hot_passes.total,
        bookings=bookings.total,
        non_converted=non_converted.total,
        repeat_trips=repeat.trips.total,
        repeat_passthroughs=repeat.passthroughs.total,
        b2b_trips=b2b.trips.total,
        b2b_passthroughs=b2b.passthroughs.total,
        quotes_started=quotes_started.total,
    )

    # The chart axis ignores the metrics date filter
    if date_range.is_active:
        trips = count_dataset(datasets.trips, TRIPS_DATE_PATTERNS, label=Dataset.TRIPS)
        quotes = count_dataset(datasets.quotes, QUOTES_DATE_PATTERNS, label=Dataset.QUOTES)
        passthroughs = count_dataset(
            datasets.passthroughs, PASSTHROUGHS_DATE_PATTERNS, label=Dataset.PASSTHROUGHS
        )
        hot_passes = count_dataset(
            datasets.hot_pass, HOT_PASS_DATE_PATTERNS, label=Dataset.HOT_PASS
        )
        bookings = count_dataset(
            datasets.bookings, BOOKINGS_DATE_PATTERNS, label=Dataset.BOOKINGS
        )
        non_converted = count_non_converted(
            datasets.non_converted,
            find_date_column(headers_of(datasets.non_converted), NON_CONVERTED_DATE_PATTERNS),
            trip_date_map=build_trip_date_map_for(datasets.trips),
        )

    time_series = build_time_series(
        trips_by_date=trips.by_date,
        quotes_by_date=quotes.by_date,
        passthroughs_by_date=passthroughs.by_date,
        hot_pass_by_date=hot_passes.by_date,
        bookings_by_date=bookings.by_date,
        non_converted_by_date=non_converted.by_date,
        seniors=config.seniors,
    )
    dates = time_series.dates
    quartiles = calculate_quartile_analysis(
        time_series,
        dates,
        find_date_index(dates, date_range.start),
        find_date_index(dates, date_range.end, end=True),
        config.min_passthroughs,
    )

    senior_summary, non_senior_summary = summarize_seniority(metrics, config.seniors)
    return AnalysisResult(
        metrics=metrics,
        time_series=time_series,
        quartiles=quartiles,
        team_summaries=compare_teams(metrics, config.teams),
        senior_summary=senior_summary,
        non_senior_summary=non_senior_summary,
        repeat_daily=segment_daily_averages(datasets.trips, Segment.REPEAT, date_range),
        b2b_daily=segment_daily_averages(datasets.trips, Segment.B2B, date_range),
    )
