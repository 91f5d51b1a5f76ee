"""
Deterministic round-robin schedule generation for competitions.

Round-robin is used so every roster plays every other roster exactly once; the schedule
has N-1 rounds where N is the roster count padded to even.

BYE handling: when the number of rosters is odd, we add a virtual BYE. Pairings against
the BYE are not emitted, so each round has one fixture fewer and one roster sits out.

Uses the circle method: fix the first slot, rotate the others each round. Same roster
ordering yields the same schedule.
"""
from __future__ import annotations

from dataclasses import dataclass

from league_engine.errors import InsufficientParticipantsError

# Sentinel for bye when number of rosters is odd
BYE = "__bye__"


@dataclass(frozen=True)
class Fixture:
    """One scheduled pairing. round is a 1-based label ("1", "2", ...)."""
    round: str
    home_roster_id: str
    away_roster_id: str


def round_robin_pairings(roster_ids: list[str]) -> tuple[list[Fixture], int]:
    """
    Generate a single round robin: (fixtures, rounds).
    Raises InsufficientParticipantsError for fewer than two rosters.
    Deterministic: same roster list => same schedule.
    """
    if len(roster_ids) < 2:
        raise InsufficientParticipantsError(
            f"Need at least 2 rosters to generate schedule (got {len(roster_ids)})",
            current_state=f"{len(roster_ids)} rosters",
        )
    ids = list(roster_ids)
    if len(ids) % 2 == 1:
        ids.append(BYE)
    n = len(ids)  # n is even
    rounds = n - 1
    fixed = ids[0]
    rotating = ids[1:]
    fixtures: list[Fixture] = []
    for rnd in range(rounds):
        order = [fixed] + rotating
        # Pair order[0] with order[n-1], order[1] with order[n-2], ...
        for i in range(n // 2):
            home_id, away_id = order[i], order[n - 1 - i]
            if home_id == BYE or away_id == BYE:
                continue
            fixtures.append(Fixture(round=str(rnd + 1), home_roster_id=home_id, away_roster_id=away_id))
        # Rotate: last element of the rotating part moves to its front
        rotating = [rotating[-1]] + rotating[:-1]
    return fixtures, rounds


def fixtures_by_round(fixtures: list[Fixture]) -> dict[str, list[Fixture]]:
    """Group fixtures by round label, preserving round order."""
    grouped: dict[str, list[Fixture]] = {}
    for f in fixtures:
        grouped.setdefault(f.round, []).append(f)
    return grouped
