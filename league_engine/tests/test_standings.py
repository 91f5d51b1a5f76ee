"""
Tests for the league table: points, tie-breaks, determinism.
"""
from __future__ import annotations

import itertools

from league_engine.models import (
    CompetitionMatch,
    MatchData,
    MatchPlayer,
    MatchTeamSide,
    Roster,
)
from league_engine.services.standings import compute_standings


def _roster(rid: str) -> Roster:
    return Roster(
        id=rid, competition_id="comp-1", user_id=None,
        name=f"Team {rid}", team_id="human", team_name="Human", coach_name=f"Coach {rid}",
    )


def _match(mid, home, away, hs, aws, status="played", home_cas=0, away_cas=0) -> CompetitionMatch:
    return CompetitionMatch(
        id=mid,
        competition_id="comp-1",
        home_roster_id=home,
        away_roster_id=away,
        round="1",
        status=status,
        data=MatchData(
            home_team=MatchTeamSide(roster_id=home, players=[MatchPlayer(uid="h", cas=home_cas)]),
            away_team=MatchTeamSide(roster_id=away, players=[MatchPlayer(uid="a", cas=away_cas)]),
            home_score=hs,
            away_score=aws,
        ),
    )


def test_scenario_win_draw_loss():
    """A 2-1 B, B 1-1 C: A first, then C and B separated by TD difference."""
    rosters = [_roster("A"), _roster("B"), _roster("C")]
    matches = [_match("m1", "A", "B", 2, 1), _match("m2", "B", "C", 1, 1)]
    rows = compute_standings(rosters, matches)
    assert [r.roster_id for r in rows] == ["A", "C", "B"]
    a, c, b = rows
    assert (a.played, a.won, a.drawn, a.lost, a.points, a.td_diff) == (1, 1, 0, 0, 3, 1)
    assert (b.played, b.won, b.drawn, b.lost, b.points, b.td_diff) == (2, 0, 1, 1, 1, -1)
    assert (c.played, c.won, c.drawn, c.lost, c.points, c.td_diff) == (1, 0, 1, 0, 1, 0)
    assert b.td_for == 2
    assert b.td_against == 3


def test_row_carries_roster_identity():
    rows = compute_standings([_roster("A")], [])
    assert rows[0].to_dict() == {
        "roster_id": "A",
        "team_name": "Team A",
        "coach_name": "Coach A",
        "race": "Human",
        "played": 0,
        "won": 0,
        "drawn": 0,
        "lost": 0,
        "td_for": 0,
        "td_against": 0,
        "td_diff": 0,
        "cas_for": 0,
        "points": 0,
    }


def test_casualties_summed_per_side():
    rows = compute_standings(
        [_roster("A"), _roster("B")],
        [_match("m1", "A", "B", 0, 0, home_cas=3, away_cas=1), _match("m2", "B", "A", 1, 0, home_cas=2)],
    )
    by_id = {r.roster_id: r for r in rows}
    assert by_id["A"].cas_for == 3
    assert by_id["B"].cas_for == 3


def test_td_for_breaks_remaining_ties():
    rows = compute_standings(
        [_roster("A"), _roster("B"), _roster("C"), _roster("D")],
        [_match("m1", "A", "B", 1, 1), _match("m2", "C", "D", 3, 3)],
    )
    assert [r.roster_id for r in rows] == ["C", "D", "A", "B"]


def test_scheduled_matches_and_unknown_rosters_are_skipped():
    rows = compute_standings(
        [_roster("A"), _roster("B")],
        [
            _match("m1", "A", "B", 0, 0, status="scheduled"),
            _match("m2", "A", "gone", 2, 0),
        ],
    )
    by_id = {r.roster_id: r for r in rows}
    assert by_id["A"].played == 1
    assert by_id["A"].points == 3
    assert by_id["B"].played == 0
    assert len(rows) == 2


def test_match_order_does_not_matter():
    rosters = [_roster("A"), _roster("B"), _roster("C"), _roster("D")]
    matches = [
        _match("m1", "A", "B", 2, 1),
        _match("m2", "C", "D", 0, 2),
        _match("m3", "A", "C", 1, 1),
        _match("m4", "B", "D", 3, 0),
    ]
    expected = [r.to_dict() for r in compute_standings(rosters, matches)]
    for perm in itertools.permutations(matches):
        assert [r.to_dict() for r in compute_standings(rosters, list(perm))] == expected


def test_full_ties_keep_roster_order():
    rows = compute_standings([_roster("B"), _roster("A")], [])
    assert [r.roster_id for r in rows] == ["B", "A"]
