from season_tracker.records import DriverRecord, EventRecord, ResultEntry
from season_tracker.rules import DID_NOT_FINISH, DID_NOT_START, GRAND_PRIX, SPRINT
from season_tracker.trends import build_trend, order_by_round


DRIVERS = [DriverRecord("d1", "Piastri"), DriverRecord("d2", "Russell"), DriverRecord("d3", "Tsunoda")]


def test_cumulative_points_follow_round_order():
    events = [
        EventRecord("late", "Monza", 3, kind=GRAND_PRIX),
        EventRecord("early", "Melbourne", 1, kind=GRAND_PRIX),
        EventRecord("mid", "Suzuka", 2, kind=GRAND_PRIX),
    ]
    results = [
        ResultEntry("early", "d1", 1),
        ResultEntry("early", "d2", 2),
        ResultEntry("mid", "d2", 1),
        ResultEntry("late", "d1", 2),
    ]
    trend = build_trend(DRIVERS, events, results)
    assert trend.rounds == [1, 2, 3]
    assert trend.event_ids == ["early", "mid", "late"]
    assert trend.cumulative["d1"] == [25, 25, 43]
    assert trend.cumulative["d2"] == [18, 43, 43]
    assert trend.cumulative["d3"] == [0, 0, 0]


def test_series_is_the_same_for_any_input_order():
    events = [
        EventRecord("a", "One", 1, kind=GRAND_PRIX),
        EventRecord("b", "Two", 2, kind=SPRINT),
    ]
    results = [ResultEntry("a", "d1", 3), ResultEntry("b", "d1", 1)]
    forward = build_trend(DRIVERS, events, results)
    backward = build_trend(DRIVERS, list(reversed(events)), list(reversed(results)))
    assert forward.cumulative == backward.cumulative
    assert forward.cumulative["d1"] == [15, 23]


def test_shared_round_keeps_input_order():
    events = [
        EventRecord("gp", "Grand Prix", 5, kind=GRAND_PRIX),
        EventRecord("sprint", "Sprint", 5, kind=SPRINT),
        EventRecord("first", "Opener", 1, kind=GRAND_PRIX),
    ]
    assert [e.id for e in order_by_round(events)] == ["first", "gp", "sprint"]


def test_driver_summaries():
    events = [
        EventRecord("e1", "One", 1, kind=GRAND_PRIX),
        EventRecord("e2", "Two", 2, kind=GRAND_PRIX),
        EventRecord("e3", "Three", 3, kind=GRAND_PRIX),
    ]
    results = [
        ResultEntry("e1", "d1", 2),
        ResultEntry("e2", "d1", 5, status=DID_NOT_FINISH),
        ResultEntry("e3", "d1", 11, status=DID_NOT_START),
        ResultEntry("e1", "d2", 3, status=DID_NOT_FINISH),
    ]
    trend = build_trend(DRIVERS, events, results)

    d1 = trend.summaries["d1"]
    assert d1.starts == 3
    assert d1.average_finish == 6.0
    assert d1.podiums == 1
    assert d1.dnfs == 1
    assert d1.dns == 1

    d2 = trend.summaries["d2"]
    assert d2.average_finish == 3.0
    assert d2.podiums == 1
    assert d2.dnfs == 1

    d3 = trend.summaries["d3"]
    assert d3.starts == 0
    assert d3.average_finish is None


def test_unknown_drivers_are_ignored():
    events = [EventRecord("e1", "One", 1, kind=GRAND_PRIX)]
    trend = build_trend(DRIVERS, events, [ResultEntry("e1", "ghost", 1)])
    assert "ghost" not in trend.cumulative
    assert trend.cumulative["d1"] == [0]


def test_empty_season():
    trend = build_trend(DRIVERS, [], [])
    assert trend.rounds == []
    assert trend.cumulative == {"d1": [], "d2": [], "d3": []}
