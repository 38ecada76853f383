import random

import pytest

from kpi_analytics.constants import QUOTES_DATE_PATTERNS, TRIPS_DATE_PATTERNS
from kpi_analytics.counters import (
    build_trip_date_map_for,
    count_b2b_by_agent,
    count_by_agent,
    count_dataset,
    count_non_converted,
    count_quotes_started,
    count_repeat_by_agent,
    find_trip_name_column,
    is_b2b_value,
    is_repeat_value,
)
from kpi_analytics.models import DateRange


def test_count_by_agent_totals_and_dates(make_rows):
    rows = make_rows(
        {"agent": "Alice", "created date": "2024-01-01"},
        {"agent": "Alice", "created date": "01/01/2024"},
        {"agent": "Bob", "created date": "2024-01-02"},
        {"agent": "  ", "created date": "2024-01-02"},
    )
    result = count_by_agent(rows, "agent", "created date")
    assert result.total == {"Alice": 2, "Bob": 1}
    assert result.by_date == {"Alice": {"2024-01-01": 2}, "Bob": {"2024-01-02": 1}}


def test_unparseable_date_counts_only_without_filter(make_rows):
    rows = make_rows(
        {"agent": "Alice", "created date": "garbage"},
        {"agent": "Alice", "created date": "2024-01-05"},
    )
    unfiltered = count_by_agent(rows, "agent", "created date")
    assert unfiltered.total == {"Alice": 2}
    assert unfiltered.by_date == {"Alice": {"2024-01-05": 1}}

    filtered = count_by_agent(rows, "agent", "created date", DateRange(start="2024-01-01"))
    assert filtered.total == {"Alice": 1}


def test_date_range_is_inclusive(make_rows):
    rows = make_rows(
        *(
            {"agent": "Alice", "created date": f"2024-01-0{day}"}
            for day in range(1, 8)
        )
    )
    result = count_by_agent(
        rows, "agent", "created date", DateRange(start="2024-01-02", end="2024-01-04")
    )
    assert result.total == {"Alice": 3}
    assert set(result.by_date["Alice"]) == {"2024-01-02", "2024-01-03", "2024-01-04"}


@pytest.mark.parametrize(
    ("date_range", "date_str", "expected"),
    [
        (DateRange(), None, True),
        (DateRange(), "1999-12-31", True),
        (DateRange(start="2024-01-02"), None, False),
        (DateRange(start="2024-01-02"), "2024-01-02", True),
        (DateRange(start="2024-01-02"), "2024-01-01", False),
        (DateRange(end="2024-01-31"), "2024-01-31", True),
        (DateRange(end="2024-01-31"), "2024-02-01", False),
    ],
)
def test_date_range_contains(date_range, date_str, expected):
    assert date_range.contains(date_str) is expected


def test_filtered_total_matches_by_date_sum(make_rows):
    rng = random.Random(7)
    agents = ["Alice", "Bob", "Carl", "Dana"]
    records = []
    for _ in range(400):
        day = rng.randint(1, 28)
        records.append(
            {
                "agent": rng.choice(agents),
                "created date": f"2024-02-{day:02d}" if rng.random() > 0.1 else "n/a",
            }
        )
    rows = make_rows(*records)
    date_range = DateRange(start="2024-02-05", end="2024-02-20")

    result = count_by_agent(rows, "agent", "created date", date_range)

    for agent, total in result.total.items():
        by_date = result.by_date[agent]
        assert total == sum(by_date.values())
        assert all("2024-02-05" <= d <= "2024-02-20" for d in by_date)


def test_count_dataset_detects_columns(make_rows):
    rows = make_rows(
        {"gtt owner": "Alice", "created date": "2024-01-01", "quote first sent": "2024-01-03"},
    )
    result = count_dataset(rows, QUOTES_DATE_PATTERNS, label="quotes")
    assert result.by_date == {"Alice": {"2024-01-03": 1}}


def test_count_dataset_empty_rows():
    result = count_dataset([], TRIPS_DATE_PATTERNS, label="trips")
    assert result.total == {}
    assert result.by_date == {}


def test_count_by_agent_without_agent_column(make_rows):
    rows = make_rows({"agent": "Alice"})
    assert count_by_agent(rows, None, None).total == {}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Repeat", True),
        (" returning ", True),
        ("EXISTING", True),
        ("new", False),
        ("repeat customer", False),
        ("", False),
        (None, False),
    ],
)
def test_is_repeat_value(value, expected):
    assert is_repeat_value(value) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("B2B", True),
        ("Partner B2B Portal", True),
        ("business", True),
        ("Business Travel", False),
        ("b2c", False),
        (None, False),
    ],
)
def test_is_b2b_value(value, expected):
    assert is_b2b_value(value) is expected


def _trip_rows(make_rows, segment_header, segment_values):
    records = []
    for index, (value, has_passthrough) in enumerate(segment_values):
        records.append(
            {
                "agent": "Alice",
                "created date": f"2024-01-{index % 28 + 1:02d}",
                segment_header: value,
                "passthrough to sales date": "2024-02-01" if has_passthrough else "",
            }
        )
    return make_rows(*records)


def test_repeat_counting_scenario(make_rows):
    values = [("repeat", i < 6) for i in range(10)] + [("new", True)] * 5
    rows = _trip_rows(make_rows, "client type", values)

    result = count_repeat_by_agent(rows, "agent", "created date")

    assert result.trips.total == {"Alice": 10}
    assert result.passthroughs.total == {"Alice": 6}


def test_b2b_counting(make_rows):
    values = [("B2B", True), ("business", False), ("consumer", True), ("b2b agency", False)]
    rows = _trip_rows(make_rows, "lead channel", values)

    result = count_b2b_by_agent(rows, "agent", "created date")

    assert result.trips.total == {"Alice": 3}
    assert result.passthroughs.total == {"Alice": 1}


def test_segment_without_classification_column(make_rows):
    rows = make_rows({"agent": "Alice", "created date": "2024-01-01"})
    result = count_repeat_by_agent(rows, "agent", "created date")
    assert result.trips.total == {}
    assert result.passthroughs.total == {}


def test_segment_with_no_rows():
    result = count_b2b_by_agent([], "agent", "created date")
    assert result.trips.total == {}


def test_count_quotes_started(make_rows):
    rows = make_rows(
        {"owner name": "Alice", "date": "2024-01-01"},
        {"owner name": "Alice", "date": "2024-01-02"},
        {"owner name": "Bob", "date": "2024-03-01"},
    )
    result = count_quotes_started(rows, DateRange(end="2024-01-31"))
    assert result.total == {"Alice": 2}


def test_count_quotes_started_prefers_synthetic_agent(make_rows):
    rows = make_rows({"owner name": "Parent", "_agent": "Alice", "created": "2024-01-01"})
    assert count_quotes_started(rows).total == {"Alice": 1}


def test_non_converted_carry_forward_scenario(make_rows):
    rows = make_rows(
        {"agent": "Bob", "reason": ""},
        {"agent": "", "reason": "duplicate"},
        {"agent": "", "reason": ""},
        {"agent": "Carl", "reason": "spam"},
    )
    result = count_non_converted(rows, None)
    assert result.total == {"Bob": 1, "Carl": 1}
    assert sum(result.total.values()) == 2


def test_non_converted_dates_from_trip_names(make_rows):
    trips = make_rows(
        {"trip name": "Smith Family", "created date": "2024-03-01", "agent": "Bob"},
        {"trip name": "Jones", "created date": "2024-04-10", "agent": "Bob"},
    )
    non_converted = make_rows(
        {"lead owner": "Bob", "non validated reason": "No answer", "trip name": "smith family"},
        {"lead owner": "", "non validated reason": "Budget", "trip name": "JONES"},
        {"lead owner": "", "non validated reason": "Budget", "trip name": "unknown trip"},
    )
    trip_dates = build_trip_date_map_for(trips)
    assert trip_dates == {"smith family": "2024-03-01", "jones": "2024-04-10"}

    march = count_non_converted(
        non_converted, None, DateRange(start="2024-03-01", end="2024-03-31"), trip_dates
    )
    assert march.total == {"Bob": 1}
    assert march.by_date == {"Bob": {"2024-03-01": 1}}

    everything = count_non_converted(non_converted, None, trip_date_map=trip_dates)
    assert everything.total == {"Bob": 3}
    assert everything.by_date == {"Bob": {"2024-03-01": 1, "2024-04-10": 1}}


def test_non_converted_without_reason_column(make_rows):
    rows = make_rows({"lead owner": "Bob", "status": "closed"})
    assert count_non_converted(rows, None).total == {}


def test_find_trip_name_column():
    assert find_trip_name_column(["agent", "Trip Name", "date"]) == "Trip Name"
    assert find_trip_name_column(["agent", "date"]) is None
