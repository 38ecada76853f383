from datetime import date, datetime

import pytest

from kpi_analytics.analyzers.records import (
    AgentRecords,
    AllRecords,
    RecordEntry,
    aggregate_by_period,
    analyze_and_update_records,
    period_end,
    period_start,
)
from kpi_analytics.constants import TimePeriod

TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 9, 30)


@pytest.fixture
def alice_series(make_series):
    return make_series(
        {
            "Alice": {
                "2024-01-02": (4, 2, 1, 0),
                "2024-01-03": (6, 3, 2, 0),
                "2024-03-11": (2, 2, 1, 0),
            }
        }
    )


@pytest.mark.parametrize(
    ("day", "period", "start", "end"),
    [
        (date(2024, 1, 7), TimePeriod.WEEK, date(2024, 1, 1), date(2024, 1, 7)),
        (date(2024, 1, 1), TimePeriod.WEEK, date(2024, 1, 1), date(2024, 1, 7)),
        (date(2024, 2, 10), TimePeriod.MONTH, date(2024, 2, 1), date(2024, 2, 29)),
        (date(2024, 5, 10), TimePeriod.QUARTER, date(2024, 4, 1), date(2024, 6, 30)),
        (date(2024, 12, 31), TimePeriod.QUARTER, date(2024, 10, 1), date(2024, 12, 31)),
        (date(2024, 3, 3), TimePeriod.DAY, date(2024, 3, 3), date(2024, 3, 3)),
    ],
)
def test_period_bounds(day, period, start, end):
    assert period_start(day, period) == start
    assert period_end(day, period) == end


def test_aggregate_by_period(alice_series):
    weeks = aggregate_by_period(alice_series.agents[0].daily_metrics, TimePeriod.WEEK)
    assert [(w.start, w.end, w.trips) for w in weeks] == [
        ("2024-01-01", "2024-01-07", 10),
        ("2024-03-11", "2024-03-17", 2),
    ]


def test_first_run_sets_records(alice_series):
    records, updates = analyze_and_update_records(
        alice_series, AllRecords(), today=TODAY, now=NOW
    )
    alice = records.agents["Alice"]

    assert alice.get("trips", "day").value == 6
    assert alice.get("trips", "day").period_start == "2024-01-03"
    assert alice.get("trips", "week").value == 10
    assert alice.get("trips", "month").value == 10
    assert alice.get("trips", "quarter").value == 12
    assert alice.get("quotes", "quarter").value == 7

    tq_month = alice.get("tq", "month")
    assert tq_month.value == pytest.approx(50.0)
    assert (tq_month.period_start, tq_month.period_end) == ("2024-01-01", "2024-01-31")
    assert alice.get("pq", "month").value == pytest.approx(5 / 3 * 100)
    # Q1 has not ended yet
    assert alice.get("tq", "quarter") is None

    assert len(updates) == 18
    assert all(u.timestamp == NOW.isoformat() for u in updates)
    assert records.last_updated == NOW.isoformat()


def test_rerun_with_same_data_reports_nothing(alice_series):
    records, _ = analyze_and_update_records(alice_series, AllRecords(), today=TODAY, now=NOW)
    again, updates = analyze_and_update_records(alice_series, records, today=TODAY, now=NOW)
    assert updates == []
    assert again.agents["Alice"].get("trips", "week").value == 10


def test_same_period_is_replaced_even_when_lower(alice_series):
    existing = AllRecords(agents={"Alice": AgentRecords(agent_name="Alice")})
    existing.agents["Alice"].set(
        "tq", "month", RecordEntry(90.0, "2024-01-01", "2024-01-31", "2024-02-01T00:00:00")
    )

    records, updates = analyze_and_update_records(alice_series, existing, today=TODAY, now=NOW)

    assert records.agents["Alice"].get("tq", "month").value == pytest.approx(50.0)
    tq_updates = [u for u in updates if u.metric == "tq" and u.period == "month"]
    assert len(tq_updates) == 1
    assert tq_updates[0].previous_value == 90.0
    # input left untouched
    assert existing.agents["Alice"].get("tq", "month").value == 90.0


def test_older_higher_record_is_kept(alice_series):
    existing = AllRecords(agents={"Alice": AgentRecords(agent_name="Alice")})
    existing.agents["Alice"].set(
        "trips", "month", RecordEntry(100, "2023-12-01", "2023-12-31", "2024-01-01T00:00:00")
    )

    records, updates = analyze_and_update_records(alice_series, existing, today=TODAY, now=NOW)

    assert records.agents["Alice"].get("trips", "month").value == 100
    assert not [u for u in updates if u.metric == "trips" and u.period == "month"]


def test_rates_outside_sanity_range_are_ignored(make_series):
    ts = make_series({"Bob": {"2024-01-05": (1, 3, 0, 0)}})
    records, _ = analyze_and_update_records(ts, AllRecords(), today=TODAY, now=NOW)
    bob = records.agents["Bob"]
    assert bob.get("tq", "month") is None
    assert bob.get("tp", "month") is None
    assert bob.get("quotes", "month").value == 3


def test_migration_fills_missing_day_slot():
    stored = {
        "agents": {
            "Alice": {
                "trips": {
                    "week": {
                        "value": 9,
                        "period_start": "2024-01-01",
                        "period_end": "2024-01-07",
                        "set_at": "2024-01-08T00:00:00",
                    },
                    "month": None,
                    "quarter": None,
                },
                "tq": {"month": None},
            }
        },
        "last_updated": "2024-01-08T00:00:00",
    }
    records = AllRecords.from_dict(data=stored)
    alice = records.agents["Alice"]

    assert alice.agent_name == "Alice"
    assert alice.get("trips", "day") is None
    assert alice.get("trips", "week").value == 9
    assert alice.get("quotes", "day") is None
    assert alice.get("tq", "quarter") is None


def test_records_round_trip_through_dict(alice_series):
    records, _ = analyze_and_update_records(alice_series, AllRecords(), today=TODAY, now=NOW)
    restored = AllRecords.from_dict(data=records.to_dict())
    assert restored.to_dict() == records.to_dict()


def test_unchanged_record_keeps_set_at(alice_series):
    first, _ = analyze_and_update_records(alice_series, AllRecords(), today=TODAY, now=NOW)
    later = datetime(2024, 3, 16, 8, 0)

    second, updates = analyze_and_update_records(alice_series, first, today=TODAY, now=later)

    assert updates == []
    entry = second.agents["Alice"].get("trips", "week")
    assert entry.set_at == NOW.isoformat()
    assert second.last_updated == later.isoformat()


def test_same_period_drop_replaces_and_restamps(make_series):
    before = make_series({"Alice": {"2024-01-02": (5, 0, 0, 0)}})
    after = make_series({"Alice": {"2024-01-02": (3, 0, 0, 0)}})
    first, _ = analyze_and_update_records(before, AllRecords(), today=TODAY, now=NOW)
    later = datetime(2024, 3, 16, 8, 0)

    second, updates = analyze_and_update_records(after, first, today=TODAY, now=later)

    entry = second.agents["Alice"].get("trips", "day")
    assert (entry.value, entry.set_at) == (3, later.isoformat())
    assert {(u.metric, u.period, u.previous_value, u.new_value) for u in updates} >= {
        ("trips", "day", 5, 3)
    }
