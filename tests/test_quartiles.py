import pytest

from kpi_analytics.analyzers.quartiles import calculate_quartile_analysis, quartile_size

D1 = "2024-01-01"
D2 = "2024-01-02"


def _agents(count, passthroughs=10):
    """Agents ranked by name: Agent 0 has the highest hot-pass rate."""
    return {
        f"Agent {i}": {D1: (10, 5, passthroughs, passthroughs - i)}
        for i in range(count)
    }


@pytest.mark.parametrize(
    ("agent_count", "expected"),
    [(4, 1), (5, 1), (7, 1), (8, 2), (11, 2), (12, 3), (17, 4)],
)
def test_quartile_size_floors(agent_count, expected):
    assert quartile_size(agent_count) == expected


def test_three_qualifying_agents_is_not_enough(make_series):
    ts = make_series(_agents(3))
    assert calculate_quartile_analysis(ts, ts.dates, 0, len(ts.dates) - 1) is None


def test_four_qualifying_agents_produce_a_result(make_series):
    ts = make_series(_agents(4))
    result = calculate_quartile_analysis(ts, ts.dates, 0, len(ts.dates) - 1)

    assert result is not None
    assert result.qualifying_agent_count == 4
    assert [a.agent_name for a in result.top_quartile_agents] == ["Agent 0"]
    assert [a.agent_name for a in result.bottom_quartile_agents] == ["Agent 3"]
    assert result.top_quartile_agents[0].aggregate_hot_pass_rate == pytest.approx(100.0)
    assert result.start == D1
    assert result.end == D1


def test_threshold_excludes_low_volume_agents(make_series):
    activity = _agents(4)
    activity["Agent 9"] = {D1: (10, 0, 9, 9)}
    ts = make_series(activity)

    result = calculate_quartile_analysis(ts, ts.dates, 0, 0, min_passthroughs=10)

    assert result.qualifying_agent_count == 4
    names = {a.agent_name for a in result.top_quartile_agents + result.bottom_quartile_agents}
    assert "Agent 9" not in names


def test_eight_agents_split_two_and_two(make_series):
    ts = make_series(_agents(8))
    result = calculate_quartile_analysis(ts, ts.dates, 0, 0)
    assert [a.agent_name for a in result.top_quartile_agents] == ["Agent 0", "Agent 1"]
    assert [a.agent_name for a in result.bottom_quartile_agents] == ["Agent 6", "Agent 7"]


def test_ties_are_broken_by_name(make_series):
    ts = make_series({name: {D1: (1, 1, 10, 5)} for name in ("Dana", "Carl", "Bob", "Alice")})
    result = calculate_quartile_analysis(ts, ts.dates, 0, 0)
    assert result.top_quartile_agents[0].agent_name == "Alice"
    assert result.bottom_quartile_agents[0].agent_name == "Dana"


def test_days_without_trips_are_absent_not_zero(make_series):
    ts = make_series(
        {
            "Top": {D1: (10, 5, 10, 9)},
            "Mid A": {D1: (4, 2, 10, 6), D2: (4, 2, 0, 0)},
            "Mid B": {D1: (4, 2, 10, 5)},
            "Bottom": {D1: (10, 2, 10, 1), D2: (5, 1, 0, 0)},
        }
    )
    result = calculate_quartile_analysis(ts, ts.dates, 0, 1)

    day_one, day_two = result.daily_comparison
    assert day_one.top_quartile_avg_tq == pytest.approx(50.0)
    assert day_one.bottom_quartile_avg_tq == pytest.approx(20.0)
    assert day_two.date == D2
    assert day_two.top_quartile_avg_tq is None
    assert day_two.top_quartile_agent_count == 0
    assert day_two.bottom_quartile_avg_tq == pytest.approx(20.0)
    assert day_two.bottom_quartile_agent_count == 1


def test_daily_value_is_trip_weighted(make_series):
    activity = {
        "A": {D1: (100, 50, 10, 10)},
        "B": {D1: (1, 1, 10, 10)},
    }
    activity.update({f"Low {i}": {D1: (1, 0, 10, 0)} for i in range(6)})
    ts = make_series(activity)

    result = calculate_quartile_analysis(ts, ts.dates, 0, 0)

    assert {a.agent_name for a in result.top_quartile_agents} == {"A", "B"}
    assert result.daily_comparison[0].top_quartile_avg_tq == pytest.approx(51 / 101 * 100)


def test_window_restricts_volume(make_series):
    ts = make_series({f"Agent {i}": {D1: (1, 1, 5, 1), D2: (1, 1, 5, 1)} for i in range(4)})
    assert calculate_quartile_analysis(ts, ts.dates, 1, 1) is None
    assert calculate_quartile_analysis(ts, ts.dates, 0, 1) is not None


def test_window_indices_are_clamped(make_series):
    ts = make_series(_agents(4))
    result = calculate_quartile_analysis(ts, ts.dates, -5, 99)
    assert [p.date for p in result.daily_comparison] == [D1]
    assert calculate_quartile_analysis(ts, ts.dates, 1, 0) is None
