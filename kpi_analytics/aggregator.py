"""Combine per-agent counts into funnel metrics and group summaries."""

from collections.abc import Iterable, Mapping, Sequence

from loguru import logger

from .constants import LogMessage
from .models import GroupSummary, Metrics, Team, safe_rate
from .names import AgentIndex, fold_counts, normalize_agent_name


def _sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def calculate_metrics(
    *,
    trips: Mapping[str, int],
    quotes: Mapping[str, int],
    passthroughs: Mapping[str, int],
    hot_passes: Mapping[str, int],
    bookings: Mapping[str, int],
    non_converted: Mapping[str, int],
    repeat_trips: Mapping[str, int] | None = None,
    repeat_passthroughs: Mapping[str, int] | None = None,
    b2b_trips: Mapping[str, int] | None = None,
    b2b_passthroughs: Mapping[str, int] | None = None,
    quotes_started: Mapping[str, int] | None = None,
) -> list[Metrics]:
    """Synthesize one Metrics record per agent from per-agent total counts.

    Every spelling in the six primary maps is matched exactly when possible
    and case-insensitively otherwise, in the same order the time series
    uses, so both see one agent per identity under the same display name.
    Spellings that match nobody become agents of their own. Unmatched
    quotes-started spellings are dropped. Repeat and B2B counts are read
    by exact display name only.

    Args:
        trips: Agent -> trips in range.
        quotes: Agent -> quotes in range.
        passthroughs: Agent -> passthroughs in range.
        hot_passes: Agent -> hot passes in range.
        bookings: Agent -> bookings in range.
        non_converted: Agent -> non-converted leads in range.
        repeat_trips: Agent -> repeat-client trips.
        repeat_passthroughs: Agent -> repeat-client trips with a passthrough.
        b2b_trips: Agent -> B2B trips.
        b2b_passthroughs: Agent -> B2B trips with a passthrough.
        quotes_started: Agent -> quotes started but not sent.

    Returns:
        list[Metrics]: One record per agent, sorted alphabetically by name.
    """
    index = AgentIndex()
    # Index is built once; every spelling resolves in O(1)
    trips, quotes, passthroughs, hot_pass_counts, bookings, non_converted_counts = (
        fold_counts(counts, index, register_unmatched=True)
        for counts in (trips, quotes, passthroughs, hot_passes, bookings, non_converted)
    )
    quotes_started_counts = fold_counts(
        quotes_started or {}, index, register_unmatched=False
    )

    repeat_trips = repeat_trips or {}
    repeat_passthroughs = repeat_passthroughs or {}
    b2b_trips = b2b_trips or {}
    b2b_passthroughs = b2b_passthroughs or {}

    metrics: list[Metrics] = []
    for agent_name in index.names:
        agent_trips = trips.get(agent_name, 0)
        agent_quotes = quotes.get(agent_name, 0)
        agent_passthroughs = passthroughs.get(agent_name, 0)
        agent_hot_passes = hot_pass_counts.get(agent_name, 0)
        agent_non_converted = non_converted_counts.get(agent_name, 0)
        agent_quotes_started = quotes_started_counts.get(agent_name, 0)
        agent_repeat_trips = repeat_trips.get(agent_name, 0)
        agent_repeat_passthroughs = repeat_passthroughs.get(agent_name, 0)
        agent_b2b_trips = b2b_trips.get(agent_name, 0)
        agent_b2b_passthroughs = b2b_passthroughs.get(agent_name, 0)

        metrics.append(
            Metrics(
                agent_name=agent_name,
                trips=agent_trips,
                quotes=agent_quotes,
                passthroughs=agent_passthroughs,
                hot_passes=agent_hot_passes,
                bookings=bookings.get(agent_name, 0),
                non_converted_leads=agent_non_converted,
                total_leads=agent_trips,
                quotes_from_trips=safe_rate(agent_quotes, agent_trips),
                passthroughs_from_trips=safe_rate(agent_passthroughs, agent_trips),
                quotes_from_passthroughs=safe_rate(agent_quotes, agent_passthroughs),
                hot_pass_rate=safe_rate(agent_hot_passes, agent_passthroughs),
                non_converted_rate=safe_rate(agent_non_converted, agent_trips),
                repeat_trips=agent_repeat_trips,
                repeat_passthroughs=agent_repeat_passthroughs,
                repeat_tp_rate=safe_rate(agent_repeat_passthroughs, agent_repeat_trips),
                b2b_trips=agent_b2b_trips,
                b2b_passthroughs=agent_b2b_passthroughs,
                b2b_tp_rate=safe_rate(agent_b2b_passthroughs, agent_b2b_trips),
                quotes_started=agent_quotes_started,
                potential_tq=safe_rate(agent_quotes + agent_quotes_started, agent_trips),
            )
        )

    logger.info(LogMessage.SYNTHESIZED_METRICS.format(len(metrics)))
    return sorted(metrics, key=lambda m: _sort_key(m.agent_name))


def summarize_group(
    name: str,
    metrics: Sequence[Metrics],
    agent_names: Iterable[str] | None = None,
) -> GroupSummary:
    """Sum a group's raw counts and recompute its rates from the sums.

    Args:
        name: Label for the group.
        metrics: Per-agent metrics for the whole run.
        agent_names: Members (matched case-insensitively); None means everyone.

    Returns:
        GroupSummary: Summed counts and rates for the group.
    """
    if agent_names is None:
        members = list(metrics)
    else:
        wanted = {normalize_agent_name(agent) for agent in agent_names}
        members = [m for m in metrics if normalize_agent_name(m.agent_name) in wanted]

    trips = sum(m.trips for m in members)
    quotes = sum(m.quotes for m in members)
    passthroughs = sum(m.passthroughs for m in members)
    hot_passes = sum(m.hot_passes for m in members)
    non_converted = sum(m.non_converted_leads for m in members)
    total_leads = sum(m.total_leads for m in members)
    quotes_started = sum(m.quotes_started for m in members)

    return GroupSummary(
        name=name,
        agent_count=len(members),
        trips=trips,
        quotes=quotes,
        passthroughs=passthroughs,
        hot_passes=hot_passes,
        bookings=sum(m.bookings for m in members),
        non_converted_leads=non_converted,
        quotes_started=quotes_started,
        tq=safe_rate(quotes, trips),
        tp=safe_rate(passthroughs, trips),
        pq=safe_rate(quotes, passthroughs),
        hot_pass_rate=safe_rate(hot_passes, passthroughs),
        non_converted_rate=safe_rate(non_converted, total_leads),
        potential_tq=safe_rate(quotes + quotes_started, trips),
    )


def compare_teams(metrics: Sequence[Metrics], teams: Iterable[Team]) -> list[GroupSummary]:
    """Summarize every team, in the order the teams are given."""
    return [summarize_group(team.name, metrics, team.agent_names) for team in teams]


def summarize_seniority(
    metrics: Sequence[Metrics], seniors: Iterable[str]
) -> tuple[GroupSummary, GroupSummary]:
    """Return (senior, non-senior) summaries; membership is case-insensitive."""
    senior_keys = {normalize_agent_name(name) for name in seniors}
    senior_names = [
        m.agent_name for m in metrics if normalize_agent_name(m.agent_name) in senior_keys
    ]
    non_senior_names = [
        m.agent_name
        for m in metrics
        if normalize_agent_name(m.agent_name) not in senior_keys
    ]
    return (
        summarize_group("Seniors", metrics, senior_names),
        summarize_group("Non-seniors", metrics, non_senior_names),
    )
