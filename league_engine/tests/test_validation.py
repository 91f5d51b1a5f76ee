"""
Tests for match and roster payload validation.
"""
from __future__ import annotations

import pytest

from league_engine.errors import TooManyMVPsError, ValidationError
from league_engine.models import MatchData, MatchPlayer, MatchTeamSide
from league_engine.services.validation import parse_match_data, validate_match_data, validate_roster_data


def _payload(home_players=(), away_players=(), home_score=1, away_score=0):
    return {
        "date": "2026-03-01",
        "home_team": {"name": "Da Krumpers", "players": list(home_players)},
        "away_team": {"name": "Reikland Reavers", "players": list(away_players)},
        "home_score": home_score,
        "away_score": away_score,
    }


def test_parse_valid_payload():
    data = parse_match_data(_payload(
        home_players=[{"uid": "p1", "tds": 1, "int": 1, "def": 2, "mvp": True}],
        away_players=[{"uid": "q1", "cas": 1, "post_match_status": "si", "injury_detail": "AV"}],
    ))
    assert data.home_score == 1
    p1 = data.home_team.players[0]
    assert p1.interceptions == 1
    assert p1.deflections == 2
    assert p1.mvp is True
    assert p1.post_match_status == "ok"
    q1 = data.away_team.players[0]
    assert q1.injury_type == "AV"


def test_missing_data():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(None)
    assert exc.value.field == "data"


def test_missing_side():
    payload = _payload()
    del payload["away_team"]
    with pytest.raises(ValidationError) as exc:
        parse_match_data(payload)
    assert exc.value.field == "away_team"


@pytest.mark.parametrize("score", [-1, "2", 1.5, True, None])
def test_scores_must_be_non_negative_integers(score):
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_score=score))
    assert exc.value.field == "home_score"


def test_negative_player_stat():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_players=[{"uid": "p1", "tds": -1}]))
    assert exc.value.field == "home_team.players[0].tds"
    assert "greater than or equal to 0" in str(exc.value)


def test_player_needs_uid():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(away_players=[{"uid": "q1"}, {"name": "Nameless"}]))
    assert exc.value.field == "away_team.players[1].uid"


def test_unknown_post_match_status():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_players=[{"uid": "p1", "post_match_status": "exploded"}]))
    assert exc.value.field == "home_team.players[0].post_match_status"


def test_unknown_injury_detail():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_players=[{"uid": "p1", "post_match_status": "si", "injury_detail": "XX"}]))
    assert exc.value.field == "home_team.players[0].injury_detail"


def test_two_mvps_on_one_side():
    with pytest.raises(TooManyMVPsError) as exc:
        parse_match_data(_payload(away_players=[
            {"uid": "q1", "mvp": True},
            {"uid": "q2", "mvp": True},
        ]))
    assert isinstance(exc.value, ValidationError)
    assert exc.value.side == "away_team"
    assert exc.value.count == 2
    assert "Max 1 MVP" in str(exc.value)


def test_one_mvp_per_side_is_fine():
    data = parse_match_data(_payload(
        home_players=[{"uid": "p1", "mvp": True}],
        away_players=[{"uid": "q1", "mvp": True}],
    ))
    assert data.home_team.mvp_count() == 1
    assert data.away_team.mvp_count() == 1


def test_validate_typed_match_data():
    data = MatchData(
        home_team=MatchTeamSide(players=[MatchPlayer(uid="p1", mvp=True), MatchPlayer(uid="p2", mvp=True)]),
        away_team=MatchTeamSide(),
    )
    with pytest.raises(TooManyMVPsError):
        validate_match_data(data)


def test_validate_typed_negative_counter():
    data = MatchData(
        home_team=MatchTeamSide(),
        away_team=MatchTeamSide(players=[MatchPlayer(uid="q1", deflections=-2)]),
    )
    with pytest.raises(ValidationError) as exc:
        validate_match_data(data)
    assert exc.value.field == "away_team.players[0].def"


@pytest.mark.parametrize("flag", ["false", "no", 1, 0])
def test_mvp_must_be_a_boolean(flag):
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_players=[{"uid": "p1", "mvp": flag}]))
    assert not isinstance(exc.value, TooManyMVPsError)
    assert exc.value.field == "home_team.players[0].mvp"


def test_string_mvps_are_not_counted_as_mvps():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(home_players=[{"uid": "a", "mvp": "false"}, {"uid": "b", "mvp": "no"}]))
    assert not isinstance(exc.value, TooManyMVPsError)


def test_numeric_string_counter_is_rejected():
    with pytest.raises(ValidationError) as exc:
        parse_match_data(_payload(away_players=[{"uid": "q1", "cas": "2"}]))
    assert exc.value.field == "away_team.players[0].cas"


def test_unknown_keys_survive_parsing():
    payload = _payload(home_players=[{"uid": "p1", "tds": 1, "star_player": True}])
    payload["weather"] = "blizzard"
    payload["home_team"]["inducements"] = ["bribe"]
    data = parse_match_data(payload)
    assert data.extra == {"weather": "blizzard"}
    assert data.home_team.extra == {"inducements": ["bribe"]}
    assert data.home_team.players[0].extra == {"star_player": True}
    out = data.to_dict()
    assert out["weather"] == "blizzard"
    assert out["home_team"]["inducements"] == ["bribe"]
    assert out["home_team"]["players"][0]["star_player"] is True


def test_roster_payload_is_returned_unchanged():
    payload = {"players": [{"uid": "p1", "spp": {"td": 2}, "skills": ["Block"]}], "treasury": 40000}
    assert validate_roster_data(payload) == payload
    assert validate_roster_data(None) == {}


def test_roster_player_needs_uid():
    with pytest.raises(ValidationError) as exc:
        validate_roster_data({"players": [{"uid": "p1"}, {"name": "nouid"}]})
    assert exc.value.field == "data.players[1].uid"


def test_roster_spp_must_be_integers():
    with pytest.raises(ValidationError) as exc:
        validate_roster_data({"players": [{"uid": "p", "spp": {"td": "lots"}}]})
    assert exc.value.field == "data.players[0].spp.td"


def test_roster_injury_type_must_be_known():
    with pytest.raises(ValidationError) as exc:
        validate_roster_data({"players": [{"uid": "p", "injuries": [{"id": "i1", "type": "XX"}]}]})
    assert exc.value.field == "data.players[0].injuries[0].type"
