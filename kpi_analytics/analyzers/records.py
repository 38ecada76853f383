"""Personal-best tracking per agent across days, weeks, months and quarters."""

import calendar
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from loguru import logger

from ..constants import (
    MAX_RECORD_RATE,
    UNKNOWN_DATE,
    LogMessage,
    RateMetric,
    TimePeriod,
    VolumeMetric,
)
from ..models import DailyAgentMetrics, TimeSeriesData, safe_rate

VOLUME_PERIODS: tuple[TimePeriod, ...] = (
    TimePeriod.DAY,
    TimePeriod.WEEK,
    TimePeriod.MONTH,
    TimePeriod.QUARTER,
)
RATE_PERIODS: tuple[TimePeriod, ...] = (TimePeriod.MONTH, TimePeriod.QUARTER)


def period_start(day: date, period: TimePeriod) -> date:
    """First day of the period containing ``day``; weeks start on Monday."""
    match period:
        case TimePeriod.DAY:
            return day
        case TimePeriod.WEEK:
            return day - timedelta(days=day.weekday())
        case TimePeriod.MONTH:
            return day.replace(day=1)
        case TimePeriod.QUARTER:
            return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
    raise ValueError(f"Unknown period: {period}")


def period_end(day: date, period: TimePeriod) -> date:
    """Last day of the period containing ``day``."""
    match period:
        case TimePeriod.DAY:
            return day
        case TimePeriod.WEEK:
            return period_start(day, period) + timedelta(days=6)
        case TimePeriod.MONTH:
            return day.replace(day=calendar.monthrange(day.year, day.month)[1])
        case TimePeriod.QUARTER:
            last_month = 3 * ((day.month - 1) // 3) + 3
            return date(day.year, last_month, calendar.monthrange(day.year, last_month)[1])
    raise ValueError(f"Unknown period: {period}")


@dataclass
class RecordEntry:
    """A personal best and the period it was set in."""

    value: float
    period_start: str
    period_end: str
    set_at: str

    @classmethod
    def from_dict(cls, *, data: Mapping[str, Any]) -> "RecordEntry":
        return cls(
            value=data["value"],
            period_start=data["period_start"],
            period_end=data["period_end"],
            set_at=data.get("set_at", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "period_start": self.period_start,
            "period_end": self.period_end,
            "set_at": self.set_at,
        }


def _empty_slots() -> dict[str, dict[str, RecordEntry | None]]:
    slots: dict[str, dict[str, RecordEntry | None]] = {
        metric.value: {period.value: None for period in VOLUME_PERIODS}
        for metric in VolumeMetric
    }
    slots.update(
        {metric.value: {period.value: None for period in RATE_PERIODS} for metric in RateMetric}
    )
    return slots


@dataclass
class AgentRecords:
    """Best values per metric and period for one agent.

    Volume metrics have day, week, month and quarter slots; rate metrics
    only month and quarter.
    """

    agent_name: str
    slots: dict[str, dict[str, RecordEntry | None]] = field(default_factory=_empty_slots)

    def get(self, metric: str, period: str) -> RecordEntry | None:
        return self.slots[metric][period]

    def set(self, metric: str, period: str, entry: RecordEntry) -> None:
        self.slots[metric][period] = entry

    @classmethod
    def from_dict(cls, *, data: Mapping[str, Any]) -> "AgentRecords":
        """Load stored records, filling slots missing from older files with None."""
        records = cls(agent_name=data["agent_name"])
        for metric, periods in records.slots.items():
            stored = data.get(metric) or {}
            for period in periods:
                entry = stored.get(period)
                periods[period] = RecordEntry.from_dict(data=entry) if entry else None
        return records

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"agent_name": self.agent_name}
        for metric, periods in self.slots.items():
            result[metric] = {
                period: entry.to_dict() if entry else None for period, entry in periods.items()
            }
        return result


@dataclass
class AllRecords:
    """Every agent's records plus the time they were last updated."""

    agents: dict[str, AgentRecords] = field(default_factory=dict)
    last_updated: str = ""

    @classmethod
    def from_dict(cls, *, data: Mapping[str, Any]) -> "AllRecords":
        return cls(
            agents={
                name: AgentRecords.from_dict(data={"agent_name": name, **agent})
                for name, agent in (data.get("agents") or {}).items()
            },
            last_updated=data.get("last_updated", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents": {name: agent.to_dict() for name, agent in self.agents.items()},
            "last_updated": self.last_updated,
        }


@dataclass(frozen=True)
class RecordUpdate:
    """A personal best that changed during one analysis."""

    agent_name: str
    metric: str
    period: str
    previous_value: float | None
    new_value: float
    period_start: str
    period_end: str
    timestamp: str


@dataclass
class _PeriodTotals:
    start: str
    end: str
    trips: int = 0
    quotes: int = 0
    passthroughs: int = 0

    def volume(self, metric: VolumeMetric) -> int:
        return getattr(self, metric.value)

    def rate(self, metric: RateMetric) -> float:
        match metric:
            case RateMetric.TQ:
                return safe_rate(self.quotes, self.trips)
            case RateMetric.TP:
                return safe_rate(self.passthroughs, self.trips)
            case RateMetric.PQ:
                return safe_rate(self.quotes, self.passthroughs)
        raise ValueError(f"Unknown rate metric: {metric}")


def aggregate_by_period(
    daily_metrics: Sequence[DailyAgentMetrics], period: TimePeriod
) -> list[_PeriodTotals]:
    """Sum daily counts into periods, in order of first appearance."""
    periods: dict[str, _PeriodTotals] = {}
    for day in daily_metrics:
        if day.date == UNKNOWN_DATE:
            continue
        current = date.fromisoformat(day.date)
        start = period_start(current, period).isoformat()
        totals = periods.get(start)
        if totals is None:
            totals = _PeriodTotals(start=start, end=period_end(current, period).isoformat())
            periods[start] = totals
        totals.trips += day.trips
        totals.quotes += day.quotes
        totals.passthroughs += day.passthroughs
    return list(periods.values())


def _candidate(
    current: RecordEntry | None,
    value: float,
    start: str,
    end: str,
    is_valid: Callable[[float], bool],
) -> bool:
    """Whether ``value`` should replace ``current`` as the stored best.

    A same-period entry is replaced whenever its value changed, up or down;
    an unchanged entry keeps its ``set_at``.
    """
    if not is_valid(value):
        return False
    if current is None:
        return True
    same_period = current.period_start == start and current.period_end == end
    if same_period:
        return value != current.value
    return value > current.value


def _is_valid_volume(value: float) -> bool:
    return value > 0


def _is_valid_rate(value: float) -> bool:
    return 0 < value <= MAX_RECORD_RATE


def analyze_and_update_records(
    time_series: TimeSeriesData,
    existing: AllRecords,
    *,
    today: date | None = None,
    now: datetime | None = None,
) -> tuple[AllRecords, list[RecordUpdate]]:
    """Compare every agent's period totals against stored personal bests.

    Volume records cover every period seen in the data. Rate records only
    consider periods that ended before ``today`` with a rate in (0, 200].

    Args:
        time_series: Dense per-agent daily series.
        existing: Previously stored records; not modified.
        today: Reference day for period completion (defaults to today).
        now: Timestamp stamped on new entries (defaults to now).

    Returns:
        tuple[AllRecords, list[RecordUpdate]]: The new records and the updates
        that actually changed a stored value.
    """
    today = today or date.today()
    timestamp = (now or datetime.now()).isoformat()
    today_iso = today.isoformat()

    agents = {
        name: AgentRecords.from_dict(data=records.to_dict())
        for name, records in existing.agents.items()
    }
    updates: list[RecordUpdate] = []

    def apply(
        records: AgentRecords,
        metric: str,
        period: TimePeriod,
        value: float,
        totals: _PeriodTotals,
        is_valid: Callable[[float], bool],
    ) -> None:
        current = records.get(metric, period.value)
        if not _candidate(current, value, totals.start, totals.end, is_valid):
            return
        records.set(
            metric,
            period.value,
            RecordEntry(
                value=value,
                period_start=totals.start,
                period_end=totals.end,
                set_at=timestamp,
            ),
        )
        updates.append(
            RecordUpdate(
                agent_name=records.agent_name,
                metric=metric,
                period=period.value,
                previous_value=current.value if current else None,
                new_value=value,
                period_start=totals.start,
                period_end=totals.end,
                timestamp=timestamp,
            )
        )

    for series in time_series.agents:
        records = agents.setdefault(series.agent_name, AgentRecords(agent_name=series.agent_name))
        by_period = {
            period: aggregate_by_period(series.daily_metrics, period) for period in VOLUME_PERIODS
        }

        for metric in VolumeMetric:
            for period in VOLUME_PERIODS:
                for totals in by_period[period]:
                    apply(records, metric.value, period, totals.volume(metric), totals, _is_valid_volume)

        for metric in RateMetric:
            for period in RATE_PERIODS:
                for totals in by_period[period]:
                    if totals.end >= today_iso:
                        continue
                    apply(records, metric.value, period, totals.rate(metric), totals, _is_valid_rate)

    if updates:
        logger.info(LogMessage.RECORDS_UPDATED.format(len(updates)))

    return AllRecords(agents=agents, last_updated=timestamp), updates
