"""Shared fixtures for building in-memory datasets."""

from collections.abc import Callable, Mapping
from typing import Any

import pytest

from kpi_analytics.models import Row, TimeSeriesData
from kpi_analytics.timeseries import build_time_series


@pytest.fixture
def make_rows() -> Callable[..., list[Row]]:
    """Build rows from plain dicts: make_rows({"agent": "Alice"}, ...)."""

    def _make(*records: Mapping[str, Any]) -> list[Row]:
        return [Row.from_dict(data=record) for record in records]

    return _make


@pytest.fixture
def make_series() -> Callable[..., TimeSeriesData]:
    """Build a time series from {agent: {date: (trips, quotes, passthroughs, hot_passes)}}."""

    def _make(
        activity: Mapping[str, Mapping[str, tuple[int, int, int, int]]],
        seniors: tuple[str, ...] = (),
    ) -> TimeSeriesData:
        trips: dict[str, dict[str, int]] = {}
        quotes: dict[str, dict[str, int]] = {}
        passthroughs: dict[str, dict[str, int]] = {}
        hot_passes: dict[str, dict[str, int]] = {}
        for agent, days in activity.items():
            for date_str, (t, q, p, h) in days.items():
                trips.setdefault(agent, {})[date_str] = t
                quotes.setdefault(agent, {})[date_str] = q
                passthroughs.setdefault(agent, {})[date_str] = p
                hot_passes.setdefault(agent, {})[date_str] = h
        return build_time_series(
            trips_by_date=trips,
            quotes_by_date=quotes,
            passthroughs_by_date=passthroughs,
            hot_pass_by_date=hot_passes,
            bookings_by_date={},
            seniors=seniors,
        )

    return _make
