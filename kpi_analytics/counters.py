"""Single-pass per-agent counters over exported datasets.

Each counter walks its rows once, producing per-agent totals and a
per-agent per-date breakdown. A row whose date cannot be parsed is
dropped whenever a date filter is active (it cannot be shown to be in
range) but still counts toward unfiltered totals.
"""

from collections.abc import Callable, Iterable, Sequence

from loguru import logger

from .constants import (
    B2B_COLUMN_PATTERNS,
    B2B_EXACT_VALUES,
    B2B_SUBSTRING,
    NON_CONVERTED_OWNER_PATTERNS,
    NON_VALIDATED_REASON_PATTERNS,
    PASSTHROUGH_DATE_COLUMN_PATTERNS,
    QUOTES_STARTED_AGENT_PATTERNS,
    QUOTES_STARTED_DATE_PATTERNS,
    REPEAT_COLUMN_PATTERNS,
    REPEAT_VALUES,
    SYNTHETIC_AGENT_COLUMN,
    TRIP_NAME_EXACT_NAMES,
    TRIP_NAME_PATTERNS,
    TRIPS_DATE_PATTERNS,
    LogMessage,
)
from .dates import normalize_date
from .detection import (
    find_agent_column,
    find_any_column,
    find_column,
    find_date_column,
    find_exact_column,
    headers_of,
)
from .models import CountResult, DateRange, Row, SegmentCountResult


def _row_date(row: Row, date_column: str | None) -> str | None:
    if not date_column:
        return None
    raw = row.value(date_column)
    return normalize_date(raw) if raw else None


def count_by_agent(
    rows: Sequence[Row],
    agent_column: str | None,
    date_column: str | None,
    date_range: DateRange | None = None,
) -> CountResult:
    """Count rows per agent and per agent per date in one pass.

    Args:
        rows: Dataset rows.
        agent_column: Header holding the agent name; None yields an empty result.
        date_column: Header holding the row date, if any.
        date_range: Optional inclusive filter.

    Returns:
        CountResult: Totals and by-date counts keyed by raw agent name.
    """
    result = CountResult()
    if not agent_column:
        return result

    in_range = date_range or DateRange()
    for row in rows:
        agent = row.value(agent_column)
        if not agent:
            continue

        date_str = _row_date(row, date_column)
        if not in_range.contains(date_str):
            continue

        result.add(agent, date_str)

    return result


def count_dataset(
    rows: Sequence[Row],
    date_patterns: Iterable[str],
    date_range: DateRange | None = None,
    *,
    label: str = "dataset",
) -> CountResult:
    """Detect the agent and date columns of a dataset once, then count it.

    A dataset with no rows or no detectable agent column degrades to an
    empty result rather than an error.
    """
    headers = headers_of(rows)
    agent_column = find_agent_column(headers)
    if agent_column is None:
        if rows:
            logger.warning(LogMessage.NO_AGENT_COLUMN.format(label))
        return CountResult()

    date_column = find_date_column(headers, date_patterns)
    logger.debug(LogMessage.DETECTED_COLUMNS.format(label, agent_column, date_column))

    result = count_by_agent(rows, agent_column, date_column, date_range)
    logger.debug(
        LogMessage.COUNTED_ROWS.format(
            label, sum(result.total.values()), len(result.total)
        )
    )
    return result


def is_repeat_value(value: str | None) -> bool:
    """Check whether a client-type cell marks a repeat client."""
    return (value or "").strip().lower() in REPEAT_VALUES


def is_b2b_value(value: str | None) -> bool:
    """Check whether a channel/category cell marks a B2B lead."""
    lowered = (value or "").strip().lower()
    return lowered in B2B_EXACT_VALUES or B2B_SUBSTRING in lowered


def _count_segment(
    rows: Sequence[Row],
    agent_column: str | None,
    date_column: str | None,
    date_range: DateRange | None,
    segment_patterns: Iterable[str],
    matches_segment: Callable[[str | None], bool],
    segment_label: str,
) -> SegmentCountResult:
    result = SegmentCountResult()
    if not rows or not agent_column:
        return result

    headers = headers_of(rows)
    segment_column = find_any_column(headers, segment_patterns)
    passthrough_column = find_any_column(headers, PASSTHROUGH_DATE_COLUMN_PATTERNS)
    if segment_column is None:
        logger.debug(LogMessage.NO_CLASSIFICATION_COLUMN.format(segment_label))
        return result

    in_range = date_range or DateRange()
    for row in rows:
        agent = row.value(agent_column)
        if not agent:
            continue
        if not matches_segment(row.get(segment_column)):
            continue

        date_str = _row_date(row, date_column)
        if not in_range.contains(date_str):
            continue

        result.trips.add(agent, date_str)
        if passthrough_column and row.value(passthrough_column):
            result.passthroughs.add(agent, date_str)

    return result


def count_repeat_by_agent(
    rows: Sequence[Row],
    agent_column: str | None,
    date_column: str | None,
    date_range: DateRange | None = None,
) -> SegmentCountResult:
    """Count repeat-client trips, and those that reached passthrough, per agent.

    A row is a repeat client when its client-type cell equals ``repeat``,
    ``returning`` or ``existing`` (case-insensitive). It counts as a
    passthrough when its passthrough-date cell is non-empty.
    """
    return _count_segment(
        rows,
        agent_column,
        date_column,
        date_range,
        REPEAT_COLUMN_PATTERNS,
        is_repeat_value,
        "repeat client",
    )


def count_b2b_by_agent(
    rows: Sequence[Row],
    agent_column: str | None,
    date_column: str | None,
    date_range: DateRange | None = None,
) -> SegmentCountResult:
    """Count B2B trips, and those that reached passthrough, per agent.

    A row is B2B when its channel cell contains ``b2b`` or equals ``business``.
    """
    return _count_segment(
        rows,
        agent_column,
        date_column,
        date_range,
        B2B_COLUMN_PATTERNS,
        is_b2b_value,
        "B2B",
    )


def count_quotes_started(
    rows: Sequence[Row],
    date_range: DateRange | None = None,
) -> CountResult:
    """Count quotes started per agent; every row is one started quote."""
    headers = headers_of(rows)
    if not headers:
        return CountResult()

    agent_column = find_exact_column(
        headers, (SYNTHETIC_AGENT_COLUMN,)
    ) or find_any_column(headers, QUOTES_STARTED_AGENT_PATTERNS)
    if agent_column is None:
        logger.warning(LogMessage.NO_AGENT_COLUMN.format("quotes started"))
        return CountResult()

    date_column = find_any_column(headers, QUOTES_STARTED_DATE_PATTERNS)
    return count_by_agent(rows, agent_column, date_column, date_range)


def find_trip_name_column(headers: Iterable[str]) -> str | None:
    """Identify the column holding a trip / lead name."""
    header_list = list(headers)
    for header in header_list:
        lower = header.strip().lower()
        if lower in TRIP_NAME_EXACT_NAMES or any(
            pattern in lower for pattern in TRIP_NAME_PATTERNS
        ):
            return header
    return None


def build_trip_date_map(
    rows: Sequence[Row],
    trip_name_column: str | None,
    date_column: str | None,
) -> dict[str, str]:
    """Map lower-cased trip names to their canonical created date.

    Later rows overwrite earlier rows with the same trip name.
    """
    trip_dates: dict[str, str] = {}
    if not trip_name_column or not date_column:
        return trip_dates

    for row in rows:
        trip_name = row.value(trip_name_column).lower()
        if not trip_name:
            continue
        date_str = _row_date(row, date_column)
        if date_str:
            trip_dates[trip_name] = date_str
    return trip_dates


def build_trip_date_map_for(rows: Sequence[Row]) -> dict[str, str]:
    """Detect the trip name and date columns of a trips dataset, then map them."""
    headers = headers_of(rows)
    return build_trip_date_map(
        rows,
        find_trip_name_column(headers),
        find_date_column(headers, TRIPS_DATE_PATTERNS),
    )


def count_non_converted(
    rows: Sequence[Row],
    date_column: str | None,
    date_range: DateRange | None = None,
    trip_date_map: dict[str, str] | None = None,
) -> CountResult:
    """Count non-converted leads from a grouped report.

    Grouped reports only print the owner on the first row of each group,
    so the last non-blank owner is carried forward to the rows below it.
    A row counts only when its non-validated reason is non-empty. Its date
    comes from ``date_column`` or, failing that, from looking up its trip
    name in ``trip_date_map``.

    Args:
        rows: Non-converted report rows, in report order.
        date_column: Header holding the row date, if any.
        date_range: Optional inclusive filter.
        trip_date_map: Lower-cased trip name -> YYYY-MM-DD.

    Returns:
        CountResult: Totals and by-date counts keyed by carried-forward agent.
    """
    result = CountResult()
    headers = headers_of(rows)
    if not headers:
        return result

    owner_column = find_column(headers, NON_CONVERTED_OWNER_PATTERNS)
    reason_column = find_column(headers, NON_VALIDATED_REASON_PATTERNS)
    if owner_column is None or reason_column is None:
        logger.warning(LogMessage.NO_AGENT_COLUMN.format("non-converted"))
        return result

    trip_name_column = find_trip_name_column(
        header for header in headers if header not in (owner_column, reason_column)
    )
    in_range = date_range or DateRange()
    current_agent = ""

    for row in rows:
        owner = row.value(owner_column)
        if owner:
            current_agent = owner

        if not current_agent or not row.value(reason_column):
            continue

        date_str = _row_date(row, date_column)
        if date_str is None and trip_name_column and trip_date_map:
            trip_name = row.value(trip_name_column).lower()
            if trip_name:
                date_str = trip_date_map.get(trip_name)

        if not in_range.contains(date_str):
            continue

        result.add(current_agent, date_str)

    return result
