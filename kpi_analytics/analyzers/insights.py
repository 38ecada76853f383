"""Descriptive insights: why leads were not validated and when passthroughs happen."""

import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from ..constants import (
    DAY_NAMES,
    NON_CONVERTED_OWNER_PATTERNS,
    NON_VALIDATED_REASON_PATTERNS,
    PASSTHROUGHS_DATE_PATTERNS,
    TIME_SLOTS,
    TOP_AGENT_REASONS_LIMIT,
    TOP_REASONS_LIMIT,
)
from ..dates import normalize_date, parse_time_of_day
from ..detection import find_any_column, find_column, headers_of
from ..models import Row, safe_rate

_NUMERIC_RE = re.compile(r"^\d+$")


@dataclass(frozen=True)
class ReasonCount:
    reason: str
    count: int
    percentage: float


@dataclass(frozen=True)
class AgentReasons:
    """Non-validated leads attributed to one agent, with their most common reasons."""

    agent_name: str
    total: int
    top_reasons: list[ReasonCount] = field(default_factory=list)


@dataclass(frozen=True)
class DayAnalysis:
    """Passthrough volume on one weekday.

    Attributes:
        day: Weekday name.
        count: Passthroughs on that weekday.
        percentage: Share of all dated passthroughs.
        avg_per_day: Count divided by the number of distinct dates falling on that weekday.
    """

    day: str
    count: int
    percentage: float
    avg_per_day: float


@dataclass(frozen=True)
class TimeSlotAnalysis:
    time_slot: str
    count: int
    percentage: float


def is_meaningful_reason(reason: str) -> bool:
    """Reject blanks, bare numbers and single characters (group subtotals and stray codes)."""
    return len(reason) > 1 and not _NUMERIC_RE.match(reason)


def _ranked(counts: Counter[str], limit: int) -> list[ReasonCount]:
    total = sum(counts.values())
    return [
        ReasonCount(reason=reason, count=count, percentage=safe_rate(count, total))
        for reason, count in counts.most_common(limit)
    ]


def analyze_non_validated_reasons(rows: Sequence[Row]) -> list[ReasonCount]:
    """Return the ten most common non-validated reasons with their share."""
    reason_column = find_column(headers_of(rows), NON_VALIDATED_REASON_PATTERNS)
    if reason_column is None:
        return []

    counts: Counter[str] = Counter()
    for row in rows:
        reason = row.value(reason_column)
        if is_meaningful_reason(reason):
            counts[reason] += 1
    return _ranked(counts, TOP_REASONS_LIMIT)


def analyze_non_validated_by_agent(rows: Sequence[Row]) -> list[AgentReasons]:
    """Attribute non-validated reasons to agents and rank agents by total.

    The owner is carried forward across the grouped report, ignoring
    numeric-only owner cells. Each agent keeps their top three reasons.
    """
    headers = headers_of(rows)
    agent_column = find_any_column(headers, NON_CONVERTED_OWNER_PATTERNS)
    reason_column = find_column(headers, NON_VALIDATED_REASON_PATTERNS)
    if agent_column is None or reason_column is None:
        return []

    by_agent: dict[str, Counter[str]] = {}
    current_agent = ""
    for row in rows:
        owner = row.value(agent_column)
        if owner and not _NUMERIC_RE.match(owner):
            current_agent = owner

        reason = row.value(reason_column)
        if current_agent and is_meaningful_reason(reason):
            by_agent.setdefault(current_agent, Counter())[reason] += 1

    results = [
        AgentReasons(
            agent_name=agent,
            total=sum(reasons.values()),
            top_reasons=_ranked(reasons, TOP_AGENT_REASONS_LIMIT),
        )
        for agent, reasons in by_agent.items()
    ]
    results.sort(key=lambda a: -a.total)
    return results


def analyze_passthroughs_by_day(rows: Sequence[Row]) -> list[DayAnalysis]:
    """Count passthroughs per weekday, busiest first."""
    date_column = find_column(headers_of(rows), PASSTHROUGHS_DATE_PATTERNS)
    if date_column is None:
        return []

    counts: Counter[str] = Counter()
    dates_seen: dict[str, set[str]] = {day: set() for day in DAY_NAMES}
    for row in rows:
        date_str = normalize_date(row.value(date_column))
        if date_str is None:
            continue
        day_name = DAY_NAMES[date.fromisoformat(date_str).weekday()]
        counts[day_name] += 1
        dates_seen[day_name].add(date_str)

    total = sum(counts.values())
    days = [
        DayAnalysis(
            day=day,
            count=counts[day],
            percentage=safe_rate(counts[day], total),
            avg_per_day=counts[day] / len(dates_seen[day]) if dates_seen[day] else 0.0,
        )
        for day in DAY_NAMES
    ]
    days.sort(key=lambda d: -d.count)
    return days


def time_slot_for(hour: int) -> str:
    """Name the TIME_SLOTS entry an hour (0-23) falls in."""
    for name, start, end in TIME_SLOTS:
        if start < end:
            if start <= hour < end:
                return name
        elif hour >= start or hour < end:
            return name
    raise ValueError(f"Hour out of range: {hour}")


def analyze_passthroughs_by_time(rows: Sequence[Row]) -> list[TimeSlotAnalysis]:
    """Count passthroughs per time-of-day slot, busiest first.

    Exports that carry dates only read every passthrough as midnight; when
    no dated row has a time other than 00:00 there is nothing to report and
    the result is empty.
    """
    date_column = find_column(headers_of(rows), PASSTHROUGHS_DATE_PATTERNS)
    if date_column is None:
        return []

    counts: Counter[str] = Counter()
    has_time = False
    for row in rows:
        time_of_day = parse_time_of_day(row.value(date_column))
        if time_of_day is None:
            continue
        hour, minute = time_of_day
        has_time = has_time or hour != 0 or minute != 0
        counts[time_slot_for(hour)] += 1

    if not has_time:
        return []

    total = sum(counts.values())
    slots = [
        TimeSlotAnalysis(
            time_slot=name,
            count=counts[name],
            percentage=safe_rate(counts[name], total),
        )
        for name, _, _ in TIME_SLOTS
    ]
    slots.sort(key=lambda s: -s.count)
    return slots
