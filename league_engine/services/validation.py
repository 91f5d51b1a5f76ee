"""
Validation of reported match data and enrolled roster payloads. Runs before any mutation begins.

Shapes and ranges are checked by the pydantic models below; the MVP limit is checked
afterwards on the typed MatchData.
"""
from __future__ import annotations

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from league_engine.errors import TooManyMVPsError, ValidationError
from league_engine.models import InjuryType, MatchData, MatchTeamSide, PostMatchStatus

SIDES = ("home", "away")
MAX_MVPS_PER_SIDE = 1

# Non-negative integer; bools and numeric strings are rejected
Counter = Annotated[StrictInt, Field(ge=0)]


# ---------- Match payload models ----------


class MatchPlayerIn(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uid: StrictStr = Field(..., min_length=1)
    name: str | None = ""
    position: str | None = ""
    tds: Counter | None = 0
    cas: Counter | None = 0
    cp: Counter | None = 0
    interceptions: Counter | None = Field(0, alias="int")
    deflections: Counter | None = Field(0, alias="def")
    mvp: StrictBool = False
    post_match_status: PostMatchStatus | None = PostMatchStatus.OK
    injury_detail: InjuryType | None = None


class MatchSideIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    roster_id: str | None = ""
    name: str | None = ""
    coach: str | None = ""
    race: str | None = ""
    players: list[MatchPlayerIn] = Field(default_factory=list)


class MatchDataIn(BaseModel):
    """home_team, away_team, home_score, away_score, date, notes."""
    model_config = ConfigDict(extra="allow")

    home_team: MatchSideIn
    away_team: MatchSideIn
    home_score: Counter
    away_score: Counter
    date: str | None = ""
    notes: str | None = None


# ---------- Roster payload models ----------


class SPPIn(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    cp: Counter | None = 0
    td: Counter | None = 0
    deflections: Counter | None = Field(0, alias="def")
    interceptions: Counter | None = Field(0, alias="int")
    bh: Counter | None = 0
    si: Counter | None = 0
    kill: Counter | None = 0
    mvp: Counter | None = 0


class InjuryIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = ""
    type: InjuryType = InjuryType.NIGGLE
    game_id: str | None = None


class RosterPlayerIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    uid: StrictStr = Field(..., min_length=1)
    name: str | None = ""
    position: str | None = ""
    cost: Counter | None = 0
    spp: SPPIn | None = None
    injuries: list[InjuryIn] | None = None
    upgrades: list[dict[str, Any]] | None = None
    miss_next_game: StrictBool = False
    dead: StrictBool = False


class RosterDataIn(BaseModel):
    """Roster-builder payload; everything except players is passed through untouched."""
    model_config = ConfigDict(extra="allow")

    players: list[RosterPlayerIn] | None = None


def _field_path(loc: tuple[Any, ...], prefix: str = "") -> str:
    """('home_team', 'players', 0, 'mvp') -> 'home_team.players[0].mvp'"""
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _check_schema(model: type[BaseModel], payload: Mapping[str, Any], prefix: str = "") -> BaseModel:
    """Validate payload against model; the first error becomes a ValidationError naming its field."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        err = e.errors()[0]
        where = _field_path(tuple(err["loc"]), prefix)
        raise ValidationError(f"Invalid {where}: {err['msg']}", field=where or prefix or None) from e


def _check_mvps(data: MatchData) -> None:
    for side in SIDES:
        team: MatchTeamSide = data.side(side)
        mvps = team.mvp_count()
        if mvps > MAX_MVPS_PER_SIDE:
            raise TooManyMVPsError(f"{side}_team", mvps)


def parse_match_data(payload: Mapping[str, Any] | None) -> MatchData:
    """
    Check a raw match payload and build MatchData.
    Raises ValidationError naming the offending field, TooManyMVPsError for 2+ MVPs.
    """
    if not payload:
        raise ValidationError("Missing required field: data", field="data")
    model = _check_schema(MatchDataIn, payload)
    data = MatchData.from_dict(model.model_dump(by_alias=True, mode="json"))
    _check_mvps(data)
    return data


def validate_match_data(data: MatchData) -> None:
    """Same checks on an already-typed payload (scores, counters, enums, MVP limit)."""
    _check_schema(MatchDataIn, data.to_dict())
    _check_mvps(data)


def validate_roster_data(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Check an enrollment payload's players (uid present, counters non-negative, known injury types).
    Returns the payload unchanged so unknown fields survive storage.
    """
    payload = dict(data or {})
    _check_schema(RosterDataIn, payload, prefix="data")
    return payload
