import pytest

from kpi_analytics.constants import Segment
from kpi_analytics.models import DateRange
from kpi_analytics.timeseries import (
    agent_daily_ratios,
    build_time_series,
    find_date_index,
    segment_daily_averages,
)


def _build(**maps):
    defaults = {
        "trips_by_date": {},
        "quotes_by_date": {},
        "passthroughs_by_date": {},
        "hot_pass_by_date": {},
        "bookings_by_date": {},
    }
    defaults.update(maps)
    return build_time_series(**defaults)


def test_series_are_dense_over_the_full_axis():
    ts = _build(
        trips_by_date={"Alice": {"2024-01-03": 2}, "Bob": {"2024-01-01": 1}},
        quotes_by_date={"Carl": {"2024-01-02": 1, "unknown": 4}},
        non_converted_by_date={"Dana": {"2024-01-05": 1}},
    )

    assert ts.dates == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05"]
    assert ts.start == "2024-01-01"
    assert ts.end == "2024-01-05"
    assert [a.agent_name for a in ts.agents] == ["Alice", "Bob", "Carl", "Dana"]
    for agent in ts.agents:
        assert [day.date for day in agent.daily_metrics] == ts.dates

    alice = ts.agents[0]
    assert [day.trips for day in alice.daily_metrics] == [0, 0, 2, 0]


def test_spellings_merge_case_insensitively():
    ts = _build(
        trips_by_date={"Alice": {"2024-01-01": 4}},
        hot_pass_by_date={"alice": {"2024-01-01": 2}, "ALICE ": {"2024-01-01": 1}},
    )
    assert [a.agent_name for a in ts.agents] == ["Alice"]
    assert ts.agents[0].daily_metrics[0].hot_passes == 3


def test_department_ratios_use_summed_counts():
    ts = _build(
        trips_by_date={"Alice": {"2024-01-01": 100}, "Bob": {"2024-01-01": 1}},
        quotes_by_date={"Alice": {"2024-01-01": 10}, "Bob": {"2024-01-01": 1}},
    )
    day = ts.department_daily[0]
    assert day.trips == 101
    assert day.quotes == 11
    assert day.tq == pytest.approx(11 / 101 * 100)
    assert day.tq != pytest.approx((10.0 + 100.0) / 2)


def test_senior_split_is_case_insensitive():
    ts = build_time_series(
        trips_by_date={"Alice": {"2024-01-01": 4}, "Bob": {"2024-01-01": 6}},
        quotes_by_date={"Alice": {"2024-01-01": 2}, "Bob": {"2024-01-01": 3}},
        passthroughs_by_date={},
        hot_pass_by_date={},
        bookings_by_date={},
        seniors=["alice"],
    )
    assert ts.senior_daily[0].trips == 4
    assert ts.non_senior_daily[0].trips == 6
    assert ts.department_daily[0].trips == 10


def test_zero_denominator_days_have_zero_ratios():
    ts = _build(passthroughs_by_date={"Alice": {"2024-01-01": 3}})
    day = ts.department_daily[0]
    assert day.tq == 0
    assert day.tp == 0
    assert day.nc == 0
    assert day.hp == 0


def test_empty_inputs():
    ts = _build()
    assert ts.dates == []
    assert ts.agents == []
    assert ts.start == ""
    assert ts.end == ""
    assert ts.department_daily == []


def test_agent_daily_ratios():
    ts = _build(
        trips_by_date={"Alice": {"2024-01-01": 4, "2024-01-02": 0}},
        quotes_by_date={"Alice": {"2024-01-01": 1}},
    )
    ratios = agent_daily_ratios(ts.agents[0])
    assert [r.tq for r in ratios] == [pytest.approx(25.0), 0]


@pytest.mark.parametrize(
    ("date_str", "end", "expected"),
    [
        ("", False, 0),
        ("", True, 2),
        ("2024-01-02", False, 1),
        ("2024-01-03", False, 2),
        ("2024-01-03", True, 1),
        ("2023-12-31", True, -1),
        ("2024-02-01", False, 3),
    ],
)
def test_find_date_index(date_str, end, expected):
    dates = ["2024-01-01", "2024-01-02", "2024-01-05"]
    assert find_date_index(dates, date_str, end=end) == expected


def test_repeat_daily_averages(make_rows):
    rows = make_rows(
        {"agent": "A", "created date": "2024-01-01", "client type": "repeat", "passthrough to sales date": "2024-01-02"},
        {"agent": "A", "created date": "2024-01-01", "client type": "Returning", "passthrough to sales date": ""},
        {"agent": "B", "created date": "2024-01-02", "client type": "new", "passthrough to sales date": "2024-01-02"},
        {"agent": "B", "created date": "2024-01-03", "client type": "existing", "passthrough to sales date": "2024-01-04"},
        {"agent": "C", "created date": "", "client type": "repeat", "passthrough to sales date": "2024-01-04"},
    )

    points = segment_daily_averages(rows, Segment.REPEAT)

    assert [(p.date, p.trips, p.passthroughs) for p in points] == [
        ("2024-01-01", 2, 1),
        ("2024-01-03", 1, 1),
    ]
    assert [p.tp for p in points] == pytest.approx([50.0, 100.0])
    assert all(p.tq == 0 and p.quotes == 0 for p in points)

    windowed = segment_daily_averages(rows, Segment.REPEAT, DateRange(start="2024-01-02"))
    assert [p.date for p in windowed] == ["2024-01-03"]


def test_b2b_daily_averages_without_passthrough_column(make_rows):
    rows = make_rows(
        {"created date": "2024-02-01", "lead channel": "B2B Partner"},
        {"created date": "2024-02-01", "lead channel": "business"},
        {"created date": "2024-02-01", "lead channel": "Direct"},
    )

    points = segment_daily_averages(rows, Segment.B2B)

    assert [(p.date, p.trips, p.passthroughs, p.tp) for p in points] == [("2024-02-01", 2, 0, 0.0)]


def test_segment_daily_averages_without_segment_column(make_rows):
    rows = make_rows({"agent": "A", "created date": "2024-01-01"})
    assert segment_daily_averages(rows, Segment.REPEAT) == []
    assert segment_daily_averages([], Segment.B2B) == []
