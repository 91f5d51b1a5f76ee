"""
League table from played matches.
Pure aggregation: same rosters and matches in any order give the same table.
"""
from __future__ import annotations

from typing import Iterable

from league_engine.models import CompetitionMatch, MatchStatus, Roster, StandingRow

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


def _record(row: StandingRow, scored: int, conceded: int, cas: int) -> None:
    row.played += 1
    row.td_for += scored
    row.td_against += conceded
    row.cas_for += cas
    if scored > conceded:
        row.won += 1
        row.points += WIN_POINTS
    elif scored == conceded:
        row.drawn += 1
        row.points += DRAW_POINTS
    else:
        row.lost += 1
        row.points += LOSS_POINTS


def compute_standings(rosters: Iterable[Roster], matches: Iterable[CompetitionMatch]) -> list[StandingRow]:
    """
    One row per roster, sorted by points, then td_diff, then td_for (all descending).
    Ties beyond that keep roster order. Scheduled matches and unknown roster ids are skipped.
    """
    table: dict[str, StandingRow] = {}
    for r in rosters:
        table[r.id] = StandingRow(
            roster_id=r.id,
            team_name=r.name,
            coach_name=r.coach_name,
            race=r.team_name,
        )

    for m in matches:
        if m.status != MatchStatus.PLAYED:
            continue
        d = m.data
        home = table.get(m.home_roster_id)
        away = table.get(m.away_roster_id)
        if home is not None:
            _record(home, d.home_score, d.away_score, d.home_team.total_cas())
        if away is not None:
            _record(away, d.away_score, d.home_score, d.away_team.total_cas())

    rows = list(table.values())
    for row in rows:
        row.td_diff = row.td_for - row.td_against
    # sorted() is stable, so equal rows stay in roster order
    return sorted(rows, key=lambda x: (-x.points, -x.td_diff, -x.td_for))
