from season_tracker.records import DriverRecord, EventRecord, ResultEntry, SeasonSnapshot, TeamRecord
from season_tracker.rules import BEST_FINISH_SENTINEL, DID_NOT_FINISH, GRAND_PRIX, SPRINT
from season_tracker.standings import DriverStats, aggregate, build_standings, rank_drivers, rank_teams


TEAMS = (TeamRecord("t1", "Ferrari", "#dc0000"), TeamRecord("t2", "McLaren", "#ff8700"))
DRIVERS = (
    DriverRecord("d1", "Leclerc", "MC", "t1"),
    DriverRecord("d2", "Norris", "GB", "t2"),
    DriverRecord("d3", "Hamilton", "GB", "t1"),
    DriverRecord("d4", "Privateer", "", None),
)
EVENTS = (
    EventRecord("e1", "Bahrain", 1, "2025-03-02", GRAND_PRIX),
    EventRecord("e2", "Miami Sprint", 2, "2025-05-03", SPRINT),
    EventRecord("e3", "Miami", 2, "2025-05-04", GRAND_PRIX),
)
RESULTS = (
    ResultEntry("e1", "d1", 1, fastest_lap=True),
    ResultEntry("e1", "d2", 2),
    ResultEntry("e1", "d3", 3),
    ResultEntry("e1", "d4", 4),
    ResultEntry("e2", "d2", 1),
    ResultEntry("e2", "d1", 2),
    ResultEntry("e2", "d4", 3),
    ResultEntry("e3", "d2", 1),
    ResultEntry("e3", "d3", 2, fastest_lap=True),
    ResultEntry("e3", "d1", 3, status=DID_NOT_FINISH),
)


def test_scenario_fastest_lap_winner():
    events = [EventRecord("e1", "GP", 1, kind=GRAND_PRIX)]
    drivers = [DriverRecord("D1", "One"), DriverRecord("D2", "Two")]
    results = [ResultEntry("e1", "D1", 1, fastest_lap=True), ResultEntry("e1", "D2", 2)]
    agg = aggregate(drivers, [], events, results)
    assert agg.driver_stats["D1"].points == 26
    assert agg.driver_stats["D2"].points == 18


def test_scenario_sprint_winner_no_bonus():
    events = [EventRecord("e1", "Sprint", 1, kind=SPRINT)]
    drivers = [DriverRecord("D1", "One")]
    agg = aggregate(drivers, [], events, [ResultEntry("e1", "D1", 1, fastest_lap=True)])
    assert agg.driver_stats["D1"].points == 8


def test_scenario_dnf_in_first_still_counts_win_and_podium():
    events = [EventRecord("e1", "GP", 1, kind=GRAND_PRIX)]
    drivers = [DriverRecord("D1", "One")]
    agg = aggregate(drivers, [], events, [ResultEntry("e1", "D1", 1, status=DID_NOT_FINISH)])
    stats = agg.driver_stats["D1"]
    assert stats.points == 0
    assert stats.wins == 1
    assert stats.podiums == 1
    assert stats.best_finish == 1


def test_classified_only_policy_ignores_non_finishers_for_wins():
    events = [EventRecord("e1", "GP", 1, kind=GRAND_PRIX)]
    drivers = [DriverRecord("D1", "One")]
    agg = aggregate(
        drivers, [], events, [ResultEntry("e1", "D1", 1, status=DID_NOT_FINISH)], classified_only=True
    )
    stats = agg.driver_stats["D1"]
    assert stats.wins == 0
    assert stats.podiums == 0
    assert stats.best_finish == 1


def test_season_totals():
    agg = aggregate(DRIVERS, TEAMS, EVENTS, RESULTS)
    d1 = agg.driver_stats["d1"]
    assert d1.points == 26 + 7 + 0
    assert d1.wins == 1
    assert d1.podiums == 3
    assert d1.best_finish == 1
    assert d1.finish_positions == [1, 2, 3]

    assert agg.driver_stats["d2"].points == 18 + 8 + 25
    assert agg.driver_stats["d3"].points == 15 + 19
    assert agg.team_points == {"t1": 33 + 34, "t2": 51}


def test_driver_without_results_keeps_sentinel():
    agg = aggregate([DriverRecord("d9", "Reserve")], [], EVENTS, RESULTS)
    stats = agg.driver_stats["d9"]
    assert stats.points == 0
    assert stats.best_finish == BEST_FINISH_SENTINEL
    assert stats.finish_positions == []


def test_unaffiliated_driver_points_never_reach_a_team():
    agg = aggregate(DRIVERS, TEAMS, EVENTS, RESULTS)
    driver_total = sum(s.points for s in agg.driver_stats.values())
    team_total = sum(agg.team_points.values())
    privateer = agg.driver_stats["d4"].points
    assert privateer == 12 + 6
    assert driver_total - team_total == privateer


def test_results_for_deleted_driver_are_skipped():
    results = RESULTS + (ResultEntry("e1", "ghost", 5),)
    agg = aggregate(DRIVERS, TEAMS, EVENTS, results)
    assert "ghost" not in agg.driver_stats
    assert agg.team_points == aggregate(DRIVERS, TEAMS, EVENTS, RESULTS).team_points


def test_results_for_deleted_event_are_skipped():
    agg = aggregate(DRIVERS, TEAMS, EVENTS[:1], RESULTS)
    assert agg.driver_stats["d2"].points == 18


def test_team_of_deleted_constructor_gets_nothing():
    drivers = (DriverRecord("d1", "Leclerc", team_id="gone"),)
    agg = aggregate(drivers, TEAMS, EVENTS, RESULTS)
    assert agg.team_points == {"t1": 0, "t2": 0}
    assert agg.driver_stats["d1"].points == 33


def test_totals_do_not_depend_on_event_order():
    forward = aggregate(DRIVERS, TEAMS, EVENTS, RESULTS)
    backward = aggregate(DRIVERS, TEAMS, tuple(reversed(EVENTS)), tuple(reversed(RESULTS)))
    assert {k: v.points for k, v in forward.driver_stats.items()} == {
        k: v.points for k, v in backward.driver_stats.items()
    }
    assert forward.team_points == backward.team_points


def test_rank_drivers_tie_breaks():
    drivers = [
        DriverRecord("a", "Zed"),
        DriverRecord("b", "amy"),
        DriverRecord("c", "Bob"),
        DriverRecord("d", "Cal"),
        DriverRecord("e", "Dee"),
    ]
    stats = {
        "a": DriverStats(points=10, wins=1, podiums=1, best_finish=1),
        "b": DriverStats(points=10, wins=1, podiums=1, best_finish=1),
        "c": DriverStats(points=10, wins=0, podiums=2, best_finish=2),
        "d": DriverStats(points=10, wins=1, podiums=2, best_finish=1),
        "e": DriverStats(points=12),
    }
    rows = rank_drivers(drivers, stats)
    assert [r.driver.id for r in rows] == ["e", "d", "b", "a", "c"]
    assert [r.rank for r in rows] == [1, 2, 3, 4, 5]


def test_rank_drivers_prefers_better_best_finish():
    drivers = [DriverRecord("a", "A"), DriverRecord("b", "B")]
    stats = {
        "a": DriverStats(points=4, best_finish=8),
        "b": DriverStats(points=4, best_finish=5),
    }
    assert [r.driver.id for r in rank_drivers(drivers, stats)] == ["b", "a"]


def test_rank_teams_points_then_name():
    teams = [TeamRecord("t1", "Williams"), TeamRecord("t2", "Alpine"), TeamRecord("t3", "Haas")]
    rows = rank_teams(teams, {"t1": 10, "t2": 3, "t3": 10})
    assert [r.team.name for r in rows] == ["Haas", "Williams", "Alpine"]
    assert rows[0].points == 10


def test_build_standings_end_to_end():
    standings = build_standings(SeasonSnapshot(TEAMS, DRIVERS, EVENTS, RESULTS))
    assert [r.driver.name for r in standings.drivers] == ["Norris", "Hamilton", "Leclerc", "Privateer"]
    assert [(r.team.name, r.points) for r in standings.teams] == [("Ferrari", 67), ("McLaren", 51)]
