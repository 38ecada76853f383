"""Dense per-agent daily series and group rollups."""

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence

from loguru import logger

from .constants import (
    B2B_COLUMN_PATTERNS,
    EMPTY_STRING,
    PASSTHROUGH_DATE_COLUMN_PATTERNS,
    REPEAT_COLUMN_PATTERNS,
    TRIPS_DATE_PATTERNS,
    UNKNOWN_DATE,
    LogMessage,
    Segment,
)
from .counters import is_b2b_value, is_repeat_value
from .dates import normalize_date
from .detection import find_any_column, find_date_column, headers_of
from .models import (
    AgentTimeSeries,
    DailyAgentMetrics,
    DailyRatioPoint,
    DateRange,
    Row,
    TimeSeriesData,
    safe_rate,
)
from .names import AgentIndex, fold_by_date, normalize_agent_name

ByDate = Mapping[str, Mapping[str, int]]

_SEGMENT_RULES: dict[Segment, tuple[tuple[str, ...], Callable[[str | None], bool]]] = {
    Segment.REPEAT: (REPEAT_COLUMN_PATTERNS, is_repeat_value),
    Segment.B2B: (B2B_COLUMN_PATTERNS, is_b2b_value),
}


def _group_daily(
    agents: Sequence[AgentTimeSeries], dates: Sequence[str]
) -> list[DailyRatioPoint]:
    """Sum raw counts across ``agents`` per date, then derive ratios from the sums.

    Every series is dense over ``dates``, so position ``i`` of each series
    is the same date.
    """
    points: list[DailyRatioPoint] = []
    for position, date_str in enumerate(dates):
        trips = quotes = passthroughs = hot_passes = bookings = non_converted = 0
        for agent in agents:
            day = agent.daily_metrics[position]
            trips += day.trips
            quotes += day.quotes
            passthroughs += day.passthroughs
            hot_passes += day.hot_passes
            bookings += day.bookings
            non_converted += day.non_converted

        points.append(
            DailyRatioPoint(
                date=date_str,
                tq=safe_rate(quotes, trips),
                tp=safe_rate(passthroughs, trips),
                pq=safe_rate(quotes, passthroughs),
                hp=safe_rate(hot_passes, passthroughs),
                nc=safe_rate(non_converted, trips),
                trips=trips,
                quotes=quotes,
                passthroughs=passthroughs,
                hot_passes=hot_passes,
                bookings=bookings,
                non_converted=non_converted,
            )
        )
    return points


def build_time_series(
    *,
    trips_by_date: ByDate,
    quotes_by_date: ByDate,
    passthroughs_by_date: ByDate,
    hot_pass_by_date: ByDate,
    bookings_by_date: ByDate,
    non_converted_by_date: ByDate | None = None,
    seniors: Iterable[str] = (),
) -> TimeSeriesData:
    """Build dense daily series for every agent plus group rollups.

    The date axis is the sorted union of every observed date (``unknown``
    excluded). Each agent gets one entry per axis date, zero-filled where
    the agent had no activity. Spellings of the same agent across exports
    are merged exact-first, then case-insensitively.

    Args:
        trips_by_date: Agent -> date -> trips.
        quotes_by_date: Agent -> date -> quotes.
        passthroughs_by_date: Agent -> date -> passthroughs.
        hot_pass_by_date: Agent -> date -> hot passes.
        bookings_by_date: Agent -> date -> bookings.
        non_converted_by_date: Agent -> date -> non-converted leads.
        seniors: Senior agent display names (matched case-insensitively).

    Returns:
        TimeSeriesData: Agent series and department / senior / non-senior rollups.
    """
    index = AgentIndex()
    sources = [
        trips_by_date,
        quotes_by_date,
        passthroughs_by_date,
        hot_pass_by_date,
        bookings_by_date,
        non_converted_by_date or {},
    ]
    trips, quotes, passthroughs, hot_pass, bookings, non_converted = (
        fold_by_date(source, index) for source in sources
    )

    all_dates: set[str] = set()
    for source in (trips, quotes, passthroughs, hot_pass, bookings, non_converted):
        for dates in source.values():
            all_dates.update(date_str for date_str in dates if date_str != UNKNOWN_DATE)
    sorted_dates = sorted(all_dates)

    empty: dict[str, int] = {}
    agents: list[AgentTimeSeries] = []
    for agent_name in index.names:
        trip_dates = trips.get(agent_name, empty)
        quote_dates = quotes.get(agent_name, empty)
        passthrough_dates = passthroughs.get(agent_name, empty)
        hot_pass_dates = hot_pass.get(agent_name, empty)
        booking_dates = bookings.get(agent_name, empty)
        non_converted_dates = non_converted.get(agent_name, empty)

        daily_metrics = [
            DailyAgentMetrics(
                date=date_str,
                trips=trip_dates.get(date_str, 0),
                quotes=quote_dates.get(date_str, 0),
                passthroughs=passthrough_dates.get(date_str, 0),
                hot_passes=hot_pass_dates.get(date_str, 0),
                bookings=booking_dates.get(date_str, 0),
                non_converted=non_converted_dates.get(date_str, 0),
            )
            for date_str in sorted_dates
        ]
        agents.append(AgentTimeSeries(agent_name=agent_name, daily_metrics=daily_metrics))

    agents.sort(key=lambda a: (a.agent_name.casefold(), a.agent_name))

    senior_keys = {normalize_agent_name(name) for name in seniors}
    senior_agents = [a for a in agents if normalize_agent_name(a.agent_name) in senior_keys]
    non_senior_agents = [
        a for a in agents if normalize_agent_name(a.agent_name) not in senior_keys
    ]

    logger.info(LogMessage.BUILT_TIME_SERIES.format(len(agents), len(sorted_dates)))

    return TimeSeriesData(
        start=sorted_dates[0] if sorted_dates else EMPTY_STRING,
        end=sorted_dates[-1] if sorted_dates else EMPTY_STRING,
        dates=sorted_dates,
        agents=agents,
        department_daily=_group_daily(agents, sorted_dates),
        senior_daily=_group_daily(senior_agents, sorted_dates),
        non_senior_daily=_group_daily(non_senior_agents, sorted_dates),
    )


def find_date_index(dates: Sequence[str], date_str: str, *, end: bool = False) -> int:
    """Locate a date window bound on a sorted axis.

    For a start bound returns the first position on or after ``date_str``;
    for an end bound the last position on or before it. An empty
    ``date_str`` selects the axis edge.
    """
    if not date_str:
        return len(dates) - 1 if end else 0
    if end:
        positions = [i for i, value in enumerate(dates) if value <= date_str]
        return positions[-1] if positions else -1
    for position, value in enumerate(dates):
        if value >= date_str:
            return position
    return len(dates)


def agent_daily_ratios(series: AgentTimeSeries) -> list[DailyRatioPoint]:
    """Per-day ratios for a single agent, derived from that day's counts."""
    return _group_daily([series], [day.date for day in series.daily_metrics])


def segment_daily_averages(
    trips_rows: Sequence[Row],
    segment: Segment,
    date_range: DateRange | None = None,
) -> list[DailyRatioPoint]:
    """Department-wide daily T>P for repeat-client or B2B trips.

    Rows are classified the same way the segment counters classify them,
    but no agent column is needed. Only dates with at least one segment
    trip appear; trips without a parseable date are skipped. Quotes, hot
    passes and the other ratios are not known for a segment and stay 0.

    Args:
        trips_rows: Rows of the trips export.
        segment: Which classification to follow.
        date_range: Optional inclusive filter on the trip date.

    Returns:
        list[DailyRatioPoint]: One point per date, in date order.
    """
    patterns, matches_segment = _SEGMENT_RULES[segment]
    headers = headers_of(trips_rows)
    segment_column = find_any_column(headers, patterns)
    date_column = find_date_column(headers, TRIPS_DATE_PATTERNS)
    if segment_column is None or date_column is None:
        return []
    passthrough_column = find_any_column(headers, PASSTHROUGH_DATE_COLUMN_PATTERNS)

    in_range = date_range or DateRange()
    trips: Counter[str] = Counter()
    passthroughs: Counter[str] = Counter()
    for row in trips_rows:
        if not matches_segment(row.get(segment_column)):
            continue
        date_str = normalize_date(row.value(date_column))
        if date_str is None or not in_range.contains(date_str):
            continue
        trips[date_str] += 1
        if passthrough_column and row.value(passthrough_column):
            passthroughs[date_str] += 1

    return [
        DailyRatioPoint(
            date=date_str,
            tq=0.0,
            tp=safe_rate(passthroughs[date_str], trips[date_str]),
            pq=0.0,
            hp=0.0,
            nc=0.0,
            trips=trips[date_str],
            quotes=0,
            passthroughs=passthroughs[date_str],
            hot_passes=0,
            bookings=0,
            non_converted=0,
        )
        for date_str in sorted(trips)
    ]
