"""Top vs bottom hot-pass quartile analysis."""

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from ..constants import (
    DEFAULT_MIN_PASSTHROUGHS,
    EMPTY_STRING,
    QUARTILE_DIVISOR,
    QUARTILE_MIN_AGENTS,
    LogMessage,
)
from ..models import (
    QuartileAgent,
    QuartileAnalysisResult,
    QuartileDailyPoint,
    TimeSeriesData,
    safe_rate,
)


@dataclass
class _AgentTotals:
    trips: int = 0
    passthroughs: int = 0
    quotes: int = 0
    hot_passes: int = 0
    bookings: int = 0


def quartile_size(agent_count: int) -> int:
    """Number of agents in each of the top and bottom quartiles.

    ``floor(n / 4)``, never less than one: 4-7 agents -> 1, 8-11 -> 2.
    """
    return max(1, agent_count // QUARTILE_DIVISOR)


def _clamp_window(dates: Sequence[str], start_index: int, end_index: int) -> list[str]:
    if not dates:
        return []
    start_index = max(0, start_index)
    end_index = min(len(dates) - 1, end_index)
    if start_index > end_index:
        return []
    return list(dates[start_index : end_index + 1])


def _totals_by_agent(
    time_series: TimeSeriesData, window: set[str], min_passthroughs: int
) -> dict[str, _AgentTotals]:
    qualifying: dict[str, _AgentTotals] = {}
    for agent in time_series.agents:
        totals = _AgentTotals()
        for day in agent.daily_metrics:
            if day.date not in window:
                continue
            totals.trips += day.trips
            totals.passthroughs += day.passthroughs
            totals.quotes += day.quotes
            totals.hot_passes += day.hot_passes
            totals.bookings += day.bookings

        if totals.passthroughs >= min_passthroughs:
            qualifying[agent.agent_name] = totals
    return qualifying


def _rank(qualifying: dict[str, _AgentTotals]) -> list[QuartileAgent]:
    ranked = [
        QuartileAgent(
            agent_name=name,
            aggregate_hot_pass_rate=safe_rate(totals.hot_passes, totals.passthroughs),
            total_trips=totals.trips,
            total_passthroughs=totals.passthroughs,
            total_quotes=totals.quotes,
            total_hot_passes=totals.hot_passes,
            total_bookings=totals.bookings,
        )
        for name, totals in qualifying.items()
    ]
    # Highest rate first; name breaks ties so the split is deterministic
    ranked.sort(key=lambda a: (-a.aggregate_hot_pass_rate, a.agent_name))
    return ranked


def _group_tq(
    names: Sequence[str], day_lookup: dict[str, dict[str, tuple[int, int]]], date_str: str
) -> tuple[float | None, int]:
    trips = quotes = active = 0
    for name in names:
        day_trips, day_quotes = day_lookup.get(name, {}).get(date_str, (0, 0))
        if day_trips > 0:
            trips += day_trips
            quotes += day_quotes
            active += 1
    if trips == 0:
        return None, 0
    return safe_rate(quotes, trips), active


def calculate_quartile_analysis(
    time_series: TimeSeriesData,
    dates: Sequence[str],
    start_index: int,
    end_index: int,
    min_passthroughs: int = DEFAULT_MIN_PASSTHROUGHS,
) -> QuartileAnalysisResult | None:
    """Compare the highest and lowest hot-pass-rate quartiles over a date window.

    Agents qualify when their passthroughs inside the window reach
    ``min_passthroughs``. Qualifying agents are ranked by aggregate hot-pass
    rate and the top and bottom ``quartile_size`` agents are compared day by
    day on trip-weighted T>Q. Agent-days without trips are left out of a
    day's value, and a day where no member had trips is None rather than 0.

    Args:
        time_series: Dense per-agent daily series.
        dates: Sorted date axis.
        start_index: First axis position of the window (inclusive).
        end_index: Last axis position of the window (inclusive).
        min_passthroughs: Minimum passthrough volume to qualify.

    Returns:
        QuartileAnalysisResult | None: None when fewer than four agents qualify.
    """
    window_dates = _clamp_window(dates, start_index, end_index)
    if not window_dates:
        logger.info(LogMessage.QUARTILE_INSUFFICIENT.format(QUARTILE_MIN_AGENTS, min_passthroughs, 0))
        return None

    qualifying = _totals_by_agent(time_series, set(window_dates), min_passthroughs)
    if len(qualifying) < QUARTILE_MIN_AGENTS:
        logger.info(
            LogMessage.QUARTILE_INSUFFICIENT.format(
                QUARTILE_MIN_AGENTS, min_passthroughs, len(qualifying)
            )
        )
        return None

    ranked = _rank(qualifying)
    size = quartile_size(len(ranked))
    top = ranked[:size]
    bottom = ranked[-size:]
    logger.debug(LogMessage.QUARTILE_SPLIT.format(len(ranked), size))

    # agent -> date -> (trips, quotes) for O(1) daily lookups
    day_lookup = {
        agent.agent_name: {day.date: (day.trips, day.quotes) for day in agent.daily_metrics}
        for agent in time_series.agents
        if agent.agent_name in qualifying
    }
    top_names = [a.agent_name for a in top]
    bottom_names = [a.agent_name for a in bottom]

    daily_comparison = []
    for date_str in window_dates:
        top_tq, top_count = _group_tq(top_names, day_lookup, date_str)
        bottom_tq, bottom_count = _group_tq(bottom_names, day_lookup, date_str)
        daily_comparison.append(
            QuartileDailyPoint(
                date=date_str,
                top_quartile_avg_tq=top_tq,
                bottom_quartile_avg_tq=bottom_tq,
                top_quartile_agent_count=top_count,
                bottom_quartile_agent_count=bottom_count,
            )
        )

    return QuartileAnalysisResult(
        top_quartile_agents=top,
        bottom_quartile_agents=bottom,
        daily_comparison=daily_comparison,
        start=window_dates[0] if window_dates else EMPTY_STRING,
        end=window_dates[-1] if window_dates else EMPTY_STRING,
        qualifying_agent_count=len(ranked),
    )
