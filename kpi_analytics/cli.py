"""CLI interface for KPI funnel analytics."""

from collections.abc import Sequence
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from .analyzers.insights import (
    analyze_non_validated_by_agent,
    analyze_non_validated_reasons,
    analyze_passthroughs_by_day,
    analyze_passthroughs_by_time,
)
from .analyzers.records import analyze_and_update_records
from .analyzers.trends import best_regression, ratio_series
from .constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_METRICS_OUTPUT,
    DEFAULT_MIN_PASSTHROUGHS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_QUARTILES_OUTPUT,
    DEFAULT_R_SQUARED_THRESHOLD,
    DEFAULT_RECORDS_FILE,
    DEFAULT_TIME_SERIES_OUTPUT,
    EMPTY_STRING,
    EXIT_CODE_ERROR,
    CliHelp,
    LogMessage,
    RatioKey,
    Segment,
)
from .loader import load_datasets
from .models import AnalysisConfig, DateRange, Metrics, QuartileAgent
from .names import normalize_agent_name
from .pipeline import run_analysis
from .reports.formatters import (
    format_date_range,
    format_metric_name,
    format_percent,
    format_period_name,
    format_record_value,
)
from .storage import RecordsStore, ResultStorage, load_roster
from .timeseries import agent_daily_ratios

app = typer.Typer(help=CliHelp.APP)
console = Console()

DataDirOption = typer.Option(
    DEFAULT_DATA_DIR, "--data-dir", "-d", envvar="KPI_DATA_DIR", help=CliHelp.DATA_DIR
)
RosterOption = typer.Option(
    None, "--roster", "-r", envvar="KPI_ROSTER_FILE", help=CliHelp.ROSTER
)
StartDateOption = typer.Option(EMPTY_STRING, "--start", "-s", help=CliHelp.START_DATE)
EndDateOption = typer.Option(EMPTY_STRING, "--end", "-e", help=CliHelp.END_DATE)
MinPassthroughsOption = typer.Option(
    DEFAULT_MIN_PASSTHROUGHS, "--min-passthroughs", "-m", help=CliHelp.MIN_PASSTHROUGHS
)


def _build_config(
    roster: Path | None,
    start_date: str = EMPTY_STRING,
    end_date: str = EMPTY_STRING,
    min_passthroughs: int = DEFAULT_MIN_PASSTHROUGHS,
) -> AnalysisConfig:
    seniors, teams = load_roster(roster)
    return AnalysisConfig(
        date_range=DateRange(start=start_date, end=end_date),
        seniors=seniors,
        teams=teams,
        min_passthroughs=min_passthroughs,
    )


def _print_metrics(metrics: Sequence[Metrics]) -> None:
    table = Table(title="Agent Funnel Metrics")
    table.add_column("Agent", style="bold")
    for header in ("Trips", "Quotes", "Passthroughs", "Hot Passes", "Bookings"):
        table.add_column(header, justify="right")
    for header in ("T>Q", "T>P", "P>Q", "Hot Pass %", "Non-conv %"):
        table.add_column(header, justify="right")

    for m in metrics:
        table.add_row(
            m.agent_name,
            str(m.trips),
            str(m.quotes),
            str(m.passthroughs),
            str(m.hot_passes),
            str(m.bookings),
            format_percent(m.quotes_from_trips),
            format_percent(m.passthroughs_from_trips),
            format_percent(m.quotes_from_passthroughs),
            format_percent(m.hot_pass_rate),
            format_percent(m.non_converted_rate),
        )
    console.print(table)


def _print_quartile(title: str, agents: Sequence[QuartileAgent]) -> None:
    table = Table(title=title)
    table.add_column("Agent", style="bold")
    table.add_column("Hot Pass %", justify="right")
    table.add_column("Passthroughs", justify="right")
    table.add_column("Trips", justify="right")
    table.add_column("Quotes", justify="right")
    for agent in agents:
        table.add_row(
            agent.agent_name,
            format_percent(agent.aggregate_hot_pass_rate),
            str(agent.total_passthroughs),
            str(agent.total_trips),
            str(agent.total_quotes),
        )
    console.print(table)


def _add_trend_row(
    table: Table,
    label: str,
    values: Sequence[float],
    total_points: int,
    r_squared: float,
) -> None:
    fit = best_regression(values, total_points, r_squared)
    if fit is None:
        table.add_row(label, "-", "-", "-", "-")
        return
    table.add_row(
        label,
        fit.kind.value,
        f"{fit.slope:.4f}",
        f"{fit.r_squared:.3f}",
        str(fit.valid_point_count),
    )


@app.command(help=CliHelp.ANALYZE_COMMAND)
def analyze(
    data_dir: Path = DataDirOption,
    start_date: str = StartDateOption,
    end_date: str = EndDateOption,
    roster: Path | None = RosterOption,
    min_passthroughs: int = MinPassthroughsOption,
    output_dir: Path = typer.Option(
        DEFAULT_OUTPUT_DIR, "--output-dir", "-o", help=CliHelp.OUTPUT_DIR
    ),
) -> None:
    try:
        config = _build_config(roster, start_date, end_date, min_passthroughs)
        result = run_analysis(load_datasets(data_dir), config)

        storage = ResultStorage()
        storage.save_metrics_csv(
            metrics=result.metrics, filepath=output_dir / DEFAULT_METRICS_OUTPUT
        )
        storage.save_json(
            data=result.time_series,
            filepath=output_dir / DEFAULT_TIME_SERIES_OUTPUT,
            label="time series",
        )
        storage.save_json(
            data=result.quartiles,
            filepath=output_dir / DEFAULT_QUARTILES_OUTPUT,
            label="quartile analysis",
        )

        _print_metrics(result.metrics)
        for summary in (result.senior_summary, result.non_senior_summary, *result.team_summaries):
            console.print(
                f"[bold]{summary.name}[/bold] ({summary.agent_count} agents): "
                f"T>Q {format_percent(summary.tq)}, T>P {format_percent(summary.tp)}, "
                f"P>Q {format_percent(summary.pq)}, "
                f"Hot Pass {format_percent(summary.hot_pass_rate)}"
            )
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)


@app.command(help=CliHelp.QUARTILES_COMMAND)
def quartiles(
    data_dir: Path = DataDirOption,
    start_date: str = StartDateOption,
    end_date: str = EndDateOption,
    min_passthroughs: int = MinPassthroughsOption,
) -> None:
    try:
        config = AnalysisConfig(
            date_range=DateRange(start=start_date, end=end_date),
            min_passthroughs=min_passthroughs,
        )
        analysis = run_analysis(load_datasets(data_dir), config).quartiles
        if analysis is None:
            console.print(
                f"[yellow]Not enough agents with {min_passthroughs}+ passthroughs "
                "for quartile analysis[/yellow]"
            )
            return

        console.print(
            f"{analysis.qualifying_agent_count} qualifying agents, "
            f"{analysis.start} to {analysis.end}"
        )
        _print_quartile("Top Quartile", analysis.top_quartile_agents)
        _print_quartile("Bottom Quartile", analysis.bottom_quartile_agents)

        daily = Table(title="Daily T>Q: Top vs Bottom")
        daily.add_column("Date")
        daily.add_column("Top", justify="right")
        daily.add_column("Bottom", justify="right")
        for point in analysis.daily_comparison:
            daily.add_row(
                point.date,
                format_percent(point.top_quartile_avg_tq),
                format_percent(point.bottom_quartile_avg_tq),
            )
        console.print(daily)
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)


@app.command(help=CliHelp.RECORDS_COMMAND)
def records(
    data_dir: Path = DataDirOption,
    records_file: Path = typer.Option(
        DEFAULT_RECORDS_FILE,
        "--records-file",
        envvar="KPI_RECORDS_FILE",
        help=CliHelp.RECORDS_FILE,
    ),
) -> None:
    try:
        result = run_analysis(load_datasets(data_dir))
        store = RecordsStore(filepath=records_file)
        updated, updates = analyze_and_update_records(result.time_series, store.load())
        store.save(updated)

        if not updates:
            console.print("No new personal records")
            return

        table = Table(title="New Personal Records")
        for header in ("Agent", "Metric", "Period", "Previous", "New", "When"):
            table.add_column(header)
        for update in updates:
            previous = (
                format_record_value(update.metric, update.previous_value)
                if update.previous_value is not None
                else "-"
            )
            table.add_row(
                update.agent_name,
                format_metric_name(update.metric),
                format_period_name(update.period),
                previous,
                format_record_value(update.metric, update.new_value),
                format_date_range(update.period_start, update.period_end),
            )
        console.print(table)
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)


@app.command(help=CliHelp.TRENDS_COMMAND)
def trends(
    data_dir: Path = DataDirOption,
    r_squared: float = typer.Option(
        DEFAULT_R_SQUARED_THRESHOLD, "--r-squared", help=CliHelp.R_SQUARED
    ),
    agent: str | None = typer.Option(None, "--agent", "-a", help=CliHelp.AGENT),
) -> None:
    try:
        result = run_analysis(load_datasets(data_dir))
        if agent is None:
            title = "Department Trends"
            points = result.time_series.department_daily
        else:
            wanted = normalize_agent_name(agent)
            series = next(
                (
                    s
                    for s in result.time_series.agents
                    if normalize_agent_name(s.agent_name) == wanted
                ),
                None,
            )
            if series is None:
                console.print(f"[yellow]No activity found for agent {agent}[/yellow]")
                return
            title = f"{series.agent_name} Trends"
            points = agent_daily_ratios(series)

        table = Table(title=title)
        for header in ("Ratio", "Model", "Slope", "R²", "Points"):
            table.add_column(header)
        for key in RatioKey:
            _add_trend_row(table, key.value, ratio_series(points, key), len(points), r_squared)
        if agent is None:
            segments = ((Segment.REPEAT, result.repeat_daily), (Segment.B2B, result.b2b_daily))
            for segment, segment_points in segments:
                _add_trend_row(
                    table,
                    f"{segment.value} tp",
                    ratio_series(segment_points, RatioKey.TP),
                    len(segment_points),
                    r_squared,
                )
        console.print(table)
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)


@app.command(help=CliHelp.INSIGHTS_COMMAND)
def insights(data_dir: Path = DataDirOption) -> None:
    try:
        datasets = load_datasets(data_dir)

        reasons = Table(title="Top Non-Validated Reasons")
        for header in ("Reason", "Count", "Share"):
            reasons.add_column(header)
        for reason in analyze_non_validated_reasons(datasets.non_converted):
            reasons.add_row(reason.reason, str(reason.count), format_percent(reason.percentage))
        console.print(reasons)

        by_agent = Table(title="Non-Validated by Agent")
        for header in ("Agent", "Total", "Top Reasons"):
            by_agent.add_column(header)
        for agent in analyze_non_validated_by_agent(datasets.non_converted):
            by_agent.add_row(
                agent.agent_name,
                str(agent.total),
                ", ".join(f"{r.reason} ({r.count})" for r in agent.top_reasons),
            )
        console.print(by_agent)

        days = Table(title="Passthroughs by Weekday")
        for header in ("Day", "Count", "Share", "Avg / Day"):
            days.add_column(header)
        for day in analyze_passthroughs_by_day(datasets.passthroughs):
            days.add_row(
                day.day, str(day.count), format_percent(day.percentage), f"{day.avg_per_day:.1f}"
            )
        console.print(days)

        time_slots = analyze_passthroughs_by_time(datasets.passthroughs)
        if not time_slots:
            console.print("No passthrough times recorded; time-of-day breakdown skipped")
            return

        times = Table(title="Passthroughs by Time of Day")
        for header in ("Time Slot", "Count", "Share"):
            times.add_column(header)
        for slot in time_slots:
            times.add_row(slot.time_slot, str(slot.count), format_percent(slot.percentage))
        console.print(times)
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)
