"""Data models for KPI funnel analytics."""

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from functools import cached_property
from typing import Any

from .constants import DEFAULT_MIN_PASSTHROUGHS, EMPTY_STRING, PERCENT
from .dates import date_to_int


def safe_rate(numerator: float, denominator: float) -> float:
    """Return numerator/denominator as a percentage, or 0 when the denominator is 0."""
    return (numerator / denominator) * PERCENT if denominator > 0 else 0.0


@dataclass(frozen=True)
class Row:
    """A single exported record: ordered column name -> cell text.

    Attributes:
        cells: Mapping of header to cell value, in column order.
    """

    cells: dict[str, str]

    @classmethod
    def from_dict(cls, *, data: Mapping[str, Any]) -> "Row":
        """Create a Row from any mapping.

        ``None`` becomes an empty string and other values are converted with ``str``.

        Args:
            data: Mapping of header to raw cell value.

        Returns:
            Row: A new Row with string cells.
        """
        return cls(
            cells={
                str(key): EMPTY_STRING if value is None else str(value)
                for key, value in data.items()
            }
        )

    @property
    def headers(self) -> list[str]:
        return list(self.cells)

    def get(self, column: str | None) -> str | None:
        """Return the raw cell for ``column``, or None when the column is absent."""
        if column is None:
            return None
        return self.cells.get(column)

    def value(self, column: str | None) -> str:
        """Return the stripped cell for ``column``, or an empty string."""
        raw = self.get(column)
        return raw.strip() if raw else EMPTY_STRING


@dataclass(frozen=True)
class DateRange:
    """Inclusive date filter; empty bounds are unbounded.

    Attributes:
        start: Start date in YYYY-MM-DD format, or empty.
        end: End date in YYYY-MM-DD format, or empty.
    """

    start: str = EMPTY_STRING
    end: str = EMPTY_STRING

    @cached_property
    def start_key(self) -> int | None:
        return date_to_int(self.start) if self.start else None

    @cached_property
    def end_key(self) -> int | None:
        return date_to_int(self.end) if self.end else None

    @property
    def is_active(self) -> bool:
        return bool(self.start or self.end)

    def contains(self, date_str: str | None) -> bool:
        """Check whether a canonical date falls inside the inclusive range.

        An unparseable (None) date never satisfies an active filter.
        """
        if not self.is_active:
            return True
        if not date_str:
            return False
        key = date_to_int(date_str)
        start_key = self.start_key
        end_key = self.end_key
        if start_key is not None and key < start_key:
            return False
        if end_key is not None and key > end_key:
            return False
        return True


@dataclass
class CountResult:
    """Per-agent totals plus per-agent per-date counts from a single pass.

    Attributes:
        total: Agent name -> row count.
        by_date: Agent name -> (YYYY-MM-DD -> row count).
    """

    total: dict[str, int] = field(default_factory=dict)
    by_date: dict[str, dict[str, int]] = field(default_factory=dict)

    def add(self, agent: str, date_str: str | None) -> None:
        self.total[agent] = self.total.get(agent, 0) + 1
        if date_str:
            agent_dates = self.by_date.setdefault(agent, {})
            agent_dates[date_str] = agent_dates.get(date_str, 0) + 1


@dataclass
class SegmentCountResult:
    """Counts for a classified trips segment (repeat clients or B2B).

    Attributes:
        trips: Segment trips per agent.
        passthroughs: Segment trips that also carry a passthrough date.
    """

    trips: CountResult = field(default_factory=CountResult)
    passthroughs: CountResult = field(default_factory=CountResult)


@dataclass(frozen=True)
class Metrics:
    """Funnel metrics for one agent.

    All rates are 0-100 floats and are 0 when their denominator is 0.
    ``total_leads`` is always the (filtered) trips count.
    """

    agent_name: str
    trips: int
    quotes: int
    passthroughs: int
    hot_passes: int
    bookings: int
    non_converted_leads: int
    total_leads: int
    quotes_from_trips: float
    passthroughs_from_trips: float
    quotes_from_passthroughs: float
    hot_pass_rate: float
    non_converted_rate: float
    repeat_trips: int = 0
    repeat_passthroughs: int = 0
    repeat_tp_rate: float = 0.0
    b2b_trips: int = 0
    b2b_passthroughs: int = 0
    b2b_tp_rate: float = 0.0
    quotes_started: int = 0
    potential_tq: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DailyAgentMetrics:
    """Raw counts for one agent on one date (not cumulative)."""

    date: str
    trips: int = 0
    quotes: int = 0
    passthroughs: int = 0
    hot_passes: int = 0
    bookings: int = 0
    non_converted: int = 0


@dataclass
class AgentTimeSeries:
    """Dense daily series for one agent over the full date axis."""

    agent_name: str
    daily_metrics: list[DailyAgentMetrics]


@dataclass(frozen=True)
class DailyRatioPoint:
    """Group totals and ratios recomputed from summed counts for one date."""

    date: str
    tq: float
    tp: float
    pq: float
    hp: float
    nc: float
    trips: int
    quotes: int
    passthroughs: int
    hot_passes: int
    bookings: int
    non_converted: int


@dataclass
class TimeSeriesData:
    """Per-agent daily series plus department, senior and non-senior rollups.

    Attributes:
        start: First date of the axis, or empty when there are no dates.
        end: Last date of the axis, or empty when there are no dates.
        dates: Sorted date axis shared by every series.
        agents: Agent series sorted by name.
        department_daily: Rollup over all agents.
        senior_daily: Rollup over senior agents.
        non_senior_daily: Rollup over everyone else.
    """

    start: str
    end: str
    dates: list[str]
    agents: list[AgentTimeSeries]
    department_daily: list[DailyRatioPoint]
    senior_daily: list[DailyRatioPoint]
    non_senior_daily: list[DailyRatioPoint]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Team:
    """User-defined grouping of agents by display name."""

    id: str
    name: str
    agent_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupSummary:
    """Summed counts and recomputed rates for a group of agents."""

    name: str
    agent_count: int
    trips: int
    quotes: int
    passthroughs: int
    hot_passes: int
    bookings: int
    non_converted_leads: int
    quotes_started: int
    tq: float
    tp: float
    pq: float
    hot_pass_rate: float
    non_converted_rate: float
    potential_tq: float


@dataclass(frozen=True)
class QuartileAgent:
    """Aggregate stats for an agent over the quartile analysis window."""

    agent_name: str
    aggregate_hot_pass_rate: float
    total_trips: int
    total_passthroughs: int
    total_quotes: int
    total_hot_passes: int
    total_bookings: int


@dataclass(frozen=True)
class QuartileDailyPoint:
    """Trip-weighted T>Q for each quartile on one date; None when no member had trips."""

    date: str
    top_quartile_avg_tq: float | None
    bottom_quartile_avg_tq: float | None
    top_quartile_agent_count: int
    bottom_quartile_agent_count: int


@dataclass
class QuartileAnalysisResult:
    """Top vs bottom hot-pass quartiles over a date window."""

    top_quartile_agents: list[QuartileAgent]
    bottom_quartile_agents: list[QuartileAgent]
    daily_comparison: list[QuartileDailyPoint]
    start: str
    end: str
    qualifying_agent_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Datasets:
    """Parsed rows for every uploaded export."""

    trips: Sequence[Row] = ()
    quotes: Sequence[Row] = ()
    passthroughs: Sequence[Row] = ()
    hot_pass: Sequence[Row] = ()
    bookings: Sequence[Row] = ()
    non_converted: Sequence[Row] = ()
    quotes_started: Sequence[Row] = ()


@dataclass(frozen=True)
class AnalysisConfig:
    """Explicit inputs for one analysis run.

    Attributes:
        date_range: Inclusive date filter for metrics.
        seniors: Agent display names designated senior.
        teams: Team groupings.
        min_passthroughs: Volume threshold for quartile analysis.
    """

    date_range: DateRange = field(default_factory=DateRange)
    seniors: tuple[str, ...] = ()
    teams: tuple[Team, ...] = ()
    min_passthroughs: int = DEFAULT_MIN_PASSTHROUGHS


@dataclass
class AnalysisResult:
    """Everything one pipeline run produces."""

    metrics: list[Metrics]
    time_series: TimeSeriesData
    quartiles: QuartileAnalysisResult | None
    team_summaries: list[GroupSummary]
    senior_summary: GroupSummary
    non_senior_summary: GroupSummary
    repeat_daily: list[DailyRatioPoint] = field(default_factory=list)
    b2b_daily: list[DailyRatioPoint] = field(default_factory=list)
