"""
Progression engine: apply or revert one match side's effects on a roster snapshot.

Both directions are pure: the input roster is never mutated, a new snapshot is returned.
Revert is the inverse of Apply for the supplied entries, with one deliberate exception:
Apply clears every player's miss-next-game flag (the suspension has been served), and
Revert does not restore flags of players outside the supplied entries.
"""
from __future__ import annotations

import copy
import secrets
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

from league_engine.models import (
    MatchPlayer,
    PlayerInjury,
    PostMatchStatus,
    Roster,
    RosterPlayer,
)


def new_injury_id() -> str:
    return secrets.token_urlsafe(6)


@dataclass
class ProgressionResult:
    """Outcome of applying one side: the new snapshot plus what was generated."""
    roster: Roster
    injury_ids: dict[str, str] = field(default_factory=dict)  # player uid -> injury id
    served_suspension_uids: list[str] = field(default_factory=list)


def apply_match(
    roster: Roster,
    match_players: Iterable[MatchPlayer],
    injury_id_factory: Callable[[], str] = new_injury_id,
) -> ProgressionResult:
    """
    Apply one side's match entries to a roster snapshot.

    1. Clear miss_next_game on every roster player.
    2. Add tds/cp/int/def/cas(->bh) to each matching player's SPP; +1 mvp if MVP.
    3. mng -> MNG; si -> MNG + injury of injury_detail (default niggle); dead -> dead + MNG.
    Entries whose uid is not on the roster are ignored.
    """
    updated = copy.deepcopy(roster)
    result = ProgressionResult(roster=updated)

    for player in updated.players:
        if player.miss_next_game:
            result.served_suspension_uids.append(player.uid)
        player.miss_next_game = False

    for mp in match_players:
        player = updated.find_player(mp.uid)
        if player is None:
            continue
        spp = player.spp
        spp.td += mp.tds
        spp.cp += mp.cp
        spp.interceptions += mp.interceptions
        spp.deflections += mp.deflections
        spp.bh += mp.cas
        if mp.mvp:
            spp.mvp += 1

        status = mp.post_match_status
        if status == PostMatchStatus.MNG:
            player.miss_next_game = True
        elif status == PostMatchStatus.SI:
            player.miss_next_game = True
            injury = PlayerInjury(id=injury_id_factory(), type=mp.injury_type)
            player.injuries.append(injury)
            result.injury_ids[player.uid] = injury.id
        elif status == PostMatchStatus.DEAD:
            player.dead = True
            player.miss_next_game = True

    return result


def apply_progression(
    roster: Roster,
    match_players: Iterable[MatchPlayer],
    injury_id_factory: Callable[[], str] = new_injury_id,
) -> Roster:
    """Apply one side's entries; returns the new snapshot."""
    return apply_match(roster, match_players, injury_id_factory).roster


def _remove_injury(player: RosterPlayer, injury_type: str, injury_id: str | None) -> None:
    """Remove the injury with injury_id if still present, else the latest one of injury_type."""
    if injury_id is not None:
        for i, injury in enumerate(player.injuries):
            if injury.id == injury_id:
                del player.injuries[i]
                return
    for i in range(len(player.injuries) - 1, -1, -1):
        if player.injuries[i].type == injury_type:
            del player.injuries[i]
            return


def revert_progression(
    roster: Roster,
    match_players: Iterable[MatchPlayer],
    injury_ids: Mapping[str, str] | None = None,
) -> Roster:
    """
    Undo apply_progression for the supplied entries.

    Counters are decremented and clamped at zero. mng/si clear MNG; si removes one injury
    (the recorded one when injury_ids knows it, otherwise the latest of the same type);
    dead clears dead and MNG. Other players' MNG flags are left as they are.
    """
    updated = copy.deepcopy(roster)
    injury_ids = injury_ids or {}

    for mp in match_players:
        player = updated.find_player(mp.uid)
        if player is None:
            continue
        spp = player.spp
        spp.td = max(0, spp.td - mp.tds)
        spp.cp = max(0, spp.cp - mp.cp)
        spp.interceptions = max(0, spp.interceptions - mp.interceptions)
        spp.deflections = max(0, spp.deflections - mp.deflections)
        spp.bh = max(0, spp.bh - mp.cas)
        if mp.mvp:
            spp.mvp = max(0, spp.mvp - 1)

        status = mp.post_match_status
        if status == PostMatchStatus.MNG:
            player.miss_next_game = False
        elif status == PostMatchStatus.SI:
            player.miss_next_game = False
            _remove_injury(player, mp.injury_type, injury_ids.get(player.uid))
        elif status == PostMatchStatus.DEAD:
            player.dead = False
            player.miss_next_game = False

    return updated
