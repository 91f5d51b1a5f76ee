"""
Tests for the progression engine: apply/revert on roster snapshots, SPP accounting.
"""
from __future__ import annotations

import pytest

from league_engine.models import (
    MatchPlayer,
    PlayerInjury,
    Roster,
    RosterPlayer,
    SPPRecord,
)
from league_engine.services.progression import (
    apply_match,
    apply_progression,
    revert_progression,
)


def _roster(*players: RosterPlayer) -> Roster:
    return Roster(
        id="X",
        competition_id="comp-1",
        user_id="coach-x",
        name="Da Krumpers",
        team_id="orc",
        team_name="Orc",
        players=list(players),
    )


def _ids(prefix="inj"):
    n = [0]

    def factory():
        n[0] += 1
        return f"{prefix}-{n[0]}"

    return factory


def test_scenario_si_mvp_then_revert_restores_player():
    """2 TDs, MVP, seriously injured (MA): counters, MNG and injury; revert undoes all of it."""
    roster = _roster(RosterPlayer(uid="p1", name="Grishnak", cost=50000))
    before = roster.find_player("p1").to_dict()
    entries = [MatchPlayer(uid="p1", tds=2, mvp=True, post_match_status="si", injury_detail="MA")]

    result = apply_match(roster, entries, _ids())
    p1 = result.roster.find_player("p1")
    assert p1.spp.td == 2
    assert p1.spp.mvp == 1
    assert p1.miss_next_game is True
    assert p1.injuries == [PlayerInjury(id="inj-1", type="MA")]
    assert result.injury_ids == {"p1": "inj-1"}

    restored = revert_progression(result.roster, entries, result.injury_ids)
    assert restored.find_player("p1").to_dict() == before


def test_apply_is_pure():
    roster = _roster(RosterPlayer(uid="p1"), RosterPlayer(uid="p2", miss_next_game=True))
    apply_progression(roster, [MatchPlayer(uid="p1", tds=1, post_match_status="dead")])
    assert roster.find_player("p1").spp.td == 0
    assert roster.find_player("p1").dead is False
    assert roster.find_player("p2").miss_next_game is True


def test_apply_counts_every_stat():
    roster = _roster(RosterPlayer(uid="p1"))
    updated = apply_progression(
        roster, [MatchPlayer(uid="p1", tds=1, cas=2, cp=3, interceptions=1, deflections=4)]
    )
    spp = updated.find_player("p1").spp
    assert spp.to_dict() == {"cp": 3, "td": 1, "def": 4, "int": 1, "bh": 2, "si": 0, "kill": 0, "mvp": 0}


def test_apply_clears_every_suspension_and_revert_leaves_others_cleared():
    """A suspended player outside the match still serves the suspension; revert does not restore it."""
    roster = _roster(RosterPlayer(uid="p1"), RosterPlayer(uid="p2", miss_next_game=True))
    entries = [MatchPlayer(uid="p1", tds=1)]

    result = apply_match(roster, entries)
    assert result.roster.find_player("p2").miss_next_game is False
    assert result.served_suspension_uids == ["p2"]

    reverted = revert_progression(result.roster, entries)
    assert reverted.find_player("p2").miss_next_game is False
    assert reverted.find_player("p1").spp.td == 0


def test_mng_sets_and_revert_clears_flag():
    roster = _roster(RosterPlayer(uid="p1"))
    entries = [MatchPlayer(uid="p1", post_match_status="mng")]
    applied = apply_progression(roster, entries)
    assert applied.find_player("p1").miss_next_game is True
    assert applied.find_player("p1").injuries == []
    assert revert_progression(applied, entries).find_player("p1").miss_next_game is False


def test_dead_sets_dead_and_mng_and_revert_clears_both():
    roster = _roster(RosterPlayer(uid="p1"))
    entries = [MatchPlayer(uid="p1", post_match_status="dead")]
    applied = apply_progression(roster, entries)
    p1 = applied.find_player("p1")
    assert p1.dead is True
    assert p1.miss_next_game is True
    reverted = revert_progression(applied, entries).find_player("p1")
    assert reverted.dead is False
    assert reverted.miss_next_game is False


@pytest.mark.parametrize("status", ["ok", "ko", "bh", "sent"])
def test_statuses_without_lasting_effect(status):
    roster = _roster(RosterPlayer(uid="p1"))
    p1 = apply_progression(roster, [MatchPlayer(uid="p1", post_match_status=status)]).find_player("p1")
    assert p1.miss_next_game is False
    assert p1.dead is False
    assert p1.injuries == []


def test_si_without_detail_records_niggle():
    roster = _roster(RosterPlayer(uid="p1"))
    applied = apply_progression(roster, [MatchPlayer(uid="p1", post_match_status="si")], _ids())
    assert applied.find_player("p1").injuries == [PlayerInjury(id="inj-1", type="niggle")]


def test_unknown_uid_is_ignored():
    roster = _roster(RosterPlayer(uid="p1"))
    applied = apply_progression(roster, [MatchPlayer(uid="ghost", tds=3, mvp=True)])
    assert applied.find_player("p1").to_dict() == roster.find_player("p1").to_dict()
    assert revert_progression(roster, [MatchPlayer(uid="ghost", tds=3)]).players == roster.players


def test_revert_clamps_counters_at_zero():
    roster = _roster(RosterPlayer(uid="p1", spp=SPPRecord(td=1, cp=0, mvp=0)))
    reverted = revert_progression(roster, [MatchPlayer(uid="p1", tds=3, cp=2, mvp=True)])
    spp = reverted.find_player("p1").spp
    assert spp.td == 0
    assert spp.cp == 0
    assert spp.mvp == 0


def test_revert_removes_recorded_injury_id():
    roster = _roster(RosterPlayer(uid="p1", injuries=[
        PlayerInjury(id="a", type="MA"),
        PlayerInjury(id="b", type="MA"),
    ]))
    entries = [MatchPlayer(uid="p1", post_match_status="si", injury_detail="MA")]
    reverted = revert_progression(roster, entries, {"p1": "a"})
    assert [i.id for i in reverted.find_player("p1").injuries] == ["b"]


def test_revert_without_recorded_id_removes_latest_of_type():
    roster = _roster(RosterPlayer(uid="p1", injuries=[
        PlayerInjury(id="a", type="MA"),
        PlayerInjury(id="n", type="niggle"),
        PlayerInjury(id="b", type="MA"),
    ]))
    entries = [MatchPlayer(uid="p1", post_match_status="si", injury_detail="MA")]
    reverted = revert_progression(roster, entries)
    assert [i.id for i in reverted.find_player("p1").injuries] == ["a", "n"]


def test_revert_with_no_matching_injury_is_noop():
    roster = _roster(RosterPlayer(uid="p1", injuries=[PlayerInjury(id="n", type="niggle")]))
    entries = [MatchPlayer(uid="p1", post_match_status="si", injury_detail="AV")]
    reverted = revert_progression(roster, entries)
    assert [i.id for i in reverted.find_player("p1").injuries] == ["n"]


def test_apply_then_revert_is_identity_for_entries():
    roster = _roster(
        RosterPlayer(uid="p1", spp=SPPRecord(td=4, mvp=1)),
        RosterPlayer(uid="p2", injuries=[PlayerInjury(id="old", type="AV")]),
    )
    entries = [
        MatchPlayer(uid="p1", tds=1, cas=1, cp=2, mvp=True, post_match_status="mng"),
        MatchPlayer(uid="p2", interceptions=1, deflections=2, post_match_status="si", injury_detail="AV"),
    ]
    result = apply_match(roster, entries, _ids())
    reverted = revert_progression(result.roster, entries, result.injury_ids)
    assert [p.to_dict() for p in reverted.players] == [p.to_dict() for p in roster.players]


def test_total_spp_weights():
    spp = SPPRecord(cp=1, td=2, deflections=1, interceptions=1, bh=1, si=1, kill=1, mvp=1)
    # 1 + 6 + 1 + 2 + 2 + 2 + 2 + 4
    assert spp.total() == 20
    assert SPPRecord().total() == 0


def test_spent_unspent_and_value():
    player = RosterPlayer(
        uid="p1",
        cost=50000,
        spp=SPPRecord(td=3),
        upgrades=[{"type": "skill", "spp_cost": 6, "tv_increase": 20000}],
    )
    assert player.spent_spp() == 6
    assert player.unspent_spp() == 3
    assert player.value() == 70000


def test_roster_views_expose_spp_and_value():
    roster = _roster(
        RosterPlayer(uid="p1", cost=50000, spp=SPPRecord(td=2, mvp=1),
                     upgrades=[{"spp_cost": 6, "tv_increase": 20000}]),
        RosterPlayer(uid="p2", cost=40000, spp=SPPRecord(cp=1), dead=True),
    )
    summary = roster.summary()
    assert summary["team_value"] == 110000
    assert summary["total_spp"] == 11
    assert summary["player_count"] == 1
    assert roster.to_dict()["player_spp"]["p1"] == {"total": 10, "unspent": 4, "value": 70000}
    assert "player_spp" not in roster.data_dict()


def test_applied_match_raises_unspent_spp():
    roster = _roster(RosterPlayer(uid="p1", spp=SPPRecord(), upgrades=[{"spp_cost": 3}]))
    result = apply_match(roster, [MatchPlayer(uid="p1", tds=1, mvp=True)], lambda: "inj")
    assert result.roster.find_player("p1").unspent_spp() == 4
