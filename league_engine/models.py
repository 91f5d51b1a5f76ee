"""
Data models for the competition engine.
Domain objects only; no persistence or API logic.

Competition-centric architecture: rosters are enrolled in a competition; matches between
two enrolled rosters are either scheduled (fixture) or played (result reported).
Roster and match payloads are stored as JSON; to_dict/from_dict round-trips are lossless.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Match status (state machine) ----------
class MatchStatus(str, Enum):
    """Match lifecycle: scheduled → played. Either may be deleted."""
    SCHEDULED = "scheduled"  # Created by the scheduler, no progression applied
    PLAYED = "played"        # Result reported, progression applied


# ---------- Post-match player status ----------
class PostMatchStatus(str, Enum):
    OK = "ok"
    KO = "ko"
    BH = "bh"        # Badly hurt, no lasting effect
    SI = "si"        # Seriously injured: MNG + lasting injury
    DEAD = "dead"
    MNG = "mng"      # Miss next game
    SENT = "sent"    # Sent off


# ---------- Lasting injury types ----------
class InjuryType(str, Enum):
    NIGGLE = "niggle"
    MA = "MA"
    AV = "AV"
    AG = "AG"
    PA = "PA"
    ST = "ST"


class CompetitionType(str, Enum):
    LEAGUE = "league"
    TOURNAMENT = "tournament"


DEFAULT_INJURY_TYPE = InjuryType.NIGGLE.value


# SPP weight per counter
SPP_VALUES: dict[str, int] = {
    "cp": 1,
    "td": 3,
    "def": 1,
    "int": 2,
    "bh": 2,
    "si": 2,
    "kill": 2,
    "mvp": 4,
}


# ---------- SPP ----------
@dataclass
class SPPRecord:
    """
    Star Player Points counters for one player.
    `int` and `def` are Python keywords/builtins, hence interceptions/deflections.
    """
    cp: int = 0
    td: int = 0
    deflections: int = 0
    interceptions: int = 0
    bh: int = 0
    si: int = 0
    kill: int = 0
    mvp: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "cp": self.cp,
            "td": self.td,
            "def": self.deflections,
            "int": self.interceptions,
            "bh": self.bh,
            "si": self.si,
            "kill": self.kill,
            "mvp": self.mvp,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> SPPRecord:
        d = d or {}
        return cls(
            cp=int(d.get("cp", 0) or 0),
            td=int(d.get("td", 0) or 0),
            deflections=int(d.get("def", 0) or 0),
            interceptions=int(d.get("int", 0) or 0),
            bh=int(d.get("bh", 0) or 0),
            si=int(d.get("si", 0) or 0),
            kill=int(d.get("kill", 0) or 0),
            mvp=int(d.get("mvp", 0) or 0),
        )

    def total(self) -> int:
        """Weighted SPP earned."""
        counts = self.to_dict()
        return sum(counts[key] * weight for key, weight in SPP_VALUES.items())


# ---------- Injury ----------
@dataclass
class PlayerInjury:
    """A lasting injury. id is generated when the injury is recorded."""
    id: str
    type: str  # InjuryType value
    game_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.game_id is not None:
            d["game_id"] = self.game_id
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PlayerInjury:
        return cls(id=str(d.get("id", "")), type=str(d.get("type", DEFAULT_INJURY_TYPE)), game_id=d.get("game_id"))


# ---------- Roster player ----------
@dataclass
class RosterPlayer:
    """
    One player on an enrolled roster.
    Fields the engine does not interpret (stats, skills, ...) are kept in `extra`.
    """
    uid: str
    name: str = ""
    position: str = ""
    cost: int = 0
    spp: SPPRecord = field(default_factory=SPPRecord)
    injuries: list[PlayerInjury] = field(default_factory=list)
    upgrades: list[dict[str, Any]] = field(default_factory=list)
    miss_next_game: bool = False
    dead: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("uid", "name", "position", "cost", "spp", "injuries", "upgrades", "miss_next_game", "dead")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({
            "uid": self.uid,
            "name": self.name,
            "position": self.position,
            "cost": self.cost,
            "spp": self.spp.to_dict(),
            "injuries": [i.to_dict() for i in self.injuries],
            "upgrades": [dict(u) for u in self.upgrades],
            "miss_next_game": self.miss_next_game,
            "dead": self.dead,
        })
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RosterPlayer:
        return cls(
            uid=str(d["uid"]),
            name=d.get("name", "") or "",
            position=d.get("position", "") or "",
            cost=d.get("cost", 0) or 0,
            spp=SPPRecord.from_dict(d.get("spp")),
            injuries=[PlayerInjury.from_dict(i) for i in d.get("injuries") or []],
            upgrades=[dict(u) for u in d.get("upgrades") or []],
            miss_next_game=bool(d.get("miss_next_game", False)),
            dead=bool(d.get("dead", False)),
            extra={k: v for k, v in d.items() if k not in cls._KNOWN},
        )

    def spent_spp(self) -> int:
        return sum(u.get("spp_cost", 0) or 0 for u in self.upgrades)

    def unspent_spp(self) -> int:
        return self.spp.total() - self.spent_spp()

    def value(self) -> int:
        """Hiring cost plus the team-value increase of every upgrade."""
        return (self.cost or 0) + sum(u.get("tv_increase", 0) or 0 for u in self.upgrades)


# ---------- Roster snapshot ----------
@dataclass
class Roster:
    """
    A team enrolled in a competition. Mutated only by the progression engine.
    version is the optimistic-concurrency token; every snapshot write bumps it.
    name is the team's own name; team_name is the race (e.g. "Orc").
    """
    id: str
    competition_id: str
    user_id: str | None
    name: str
    team_id: str
    team_name: str
    coach_name: str = ""
    players: list[RosterPlayer] = field(default_factory=list)
    version: int = 1
    original_roster_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def find_player(self, uid: str) -> RosterPlayer | None:
        for p in self.players:
            if p.uid == uid:
                return p
        return None

    def data_dict(self) -> dict[str, Any]:
        """The JSON payload stored in the `data` column."""
        d: dict[str, Any] = dict(self.extra)
        d["players"] = [p.to_dict() for p in self.players]
        return d

    @staticmethod
    def split_data(data: dict[str, Any] | None) -> tuple[list[RosterPlayer], dict[str, Any]]:
        """Split a stored payload into players and pass-through fields."""
        data = dict(data or {})
        players = [RosterPlayer.from_dict(p) for p in data.pop("players", None) or []]
        return players, data

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "competition_id": self.competition_id,
            "user_id": self.user_id,
            "name": self.name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "coach_name": self.coach_name,
            "version": self.version,
            "data": self.data_dict(),
        }
        if self.original_roster_id is not None:
            d["original_roster_id"] = self.original_roster_id
        if self.created_at is not None:
            d["created_at"] = self.created_at.isoformat()
        if self.updated_at is not None:
            d["updated_at"] = self.updated_at.isoformat()
        d["player_spp"] = {
            p.uid: {"total": p.spp.total(), "unspent": p.unspent_spp(), "value": p.value()}
            for p in self.players
        }
        return d

    def team_value(self) -> int:
        return sum(p.value() for p in self.players)

    def summary(self) -> dict[str, Any]:
        """List view: active (non-dead) player count, team value and SPP earned."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "coach_name": self.coach_name,
            "player_count": sum(1 for p in self.players if not p.dead),
            "team_value": self.team_value(),
            "total_spp": sum(p.spp.total() for p in self.players),
        }


# ---------- Match player entry ----------
@dataclass
class MatchPlayer:
    """One player's line in a reported match, for one side. Unknown keys are kept in `extra`."""
    uid: str
    name: str = ""
    position: str = ""
    tds: int = 0
    cas: int = 0
    cp: int = 0
    interceptions: int = 0
    deflections: int = 0
    mvp: bool = False
    post_match_status: str = PostMatchStatus.OK.value
    injury_detail: str | None = None  # InjuryType value, only for si
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("uid", "name", "position", "tds", "cas", "cp", "int", "def", "mvp", "post_match_status", "injury_detail")

    @property
    def injury_type(self) -> str:
        return self.injury_detail or DEFAULT_INJURY_TYPE

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({
            "uid": self.uid,
            "name": self.name,
            "position": self.position,
            "tds": self.tds,
            "cas": self.cas,
            "cp": self.cp,
            "int": self.interceptions,
            "def": self.deflections,
            "mvp": self.mvp,
            "post_match_status": self.post_match_status,
        })
        if self.injury_detail is not None:
            d["injury_detail"] = self.injury_detail
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MatchPlayer:
        return cls(
            uid=str(d["uid"]),
            name=d.get("name", "") or "",
            position=d.get("position", "") or "",
            tds=d.get("tds", 0) or 0,
            cas=d.get("cas", 0) or 0,
            cp=d.get("cp", 0) or 0,
            interceptions=d.get("int", 0) or 0,
            deflections=d.get("def", 0) or 0,
            mvp=bool(d.get("mvp", False)),
            post_match_status=d.get("post_match_status") or PostMatchStatus.OK.value,
            injury_detail=d.get("injury_detail"),
            extra={k: v for k, v in d.items() if k not in cls._KNOWN},
        )


# ---------- Team side ----------
@dataclass
class MatchTeamSide:
    """Denormalized team info plus the players' lines for one side of a match."""
    roster_id: str = ""
    name: str = ""
    coach: str = ""
    race: str = ""
    players: list[MatchPlayer] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("roster_id", "name", "coach", "race", "players")

    def total_cas(self) -> int:
        return sum(p.cas for p in self.players)

    def mvp_count(self) -> int:
        return sum(1 for p in self.players if p.mvp)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({
            "roster_id": self.roster_id,
            "name": self.name,
            "coach": self.coach,
            "race": self.race,
            "players": [p.to_dict() for p in self.players],
        })
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> MatchTeamSide:
        d = d or {}
        return cls(
            roster_id=d.get("roster_id", "") or "",
            name=d.get("name", "") or "",
            coach=d.get("coach", "") or "",
            race=d.get("race", "") or "",
            players=[MatchPlayer.from_dict(p) for p in d.get("players") or []],
            extra={k: v for k, v in d.items() if k not in cls._KNOWN},
        )


# ---------- Match payload ----------
@dataclass
class MatchData:
    """The `data` payload of a match record."""
    home_team: MatchTeamSide
    away_team: MatchTeamSide
    home_score: int = 0
    away_score: int = 0
    date: str = ""
    notes: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("date", "home_team", "away_team", "home_score", "away_score", "notes")

    def side(self, side: str) -> MatchTeamSide:
        return self.home_team if side == "home" else self.away_team

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        d.update({
            "date": self.date,
            "home_team": self.home_team.to_dict(),
            "away_team": self.away_team.to_dict(),
            "home_score": self.home_score,
            "away_score": self.away_score,
        })
        if self.notes is not None:
            d["notes"] = self.notes
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MatchData:
        return cls(
            home_team=MatchTeamSide.from_dict(d.get("home_team")),
            away_team=MatchTeamSide.from_dict(d.get("away_team")),
            home_score=d.get("home_score", 0) or 0,
            away_score=d.get("away_score", 0) or 0,
            date=d.get("date", "") or "",
            notes=d.get("notes"),
            extra={k: v for k, v in d.items() if k not in cls._KNOWN},
        )


# ---------- Competition ----------
@dataclass
class Competition:
    """League or tournament container. Owns enrolled rosters and matches."""
    id: str
    owner_id: str | None
    name: str
    type: str  # CompetitionType value
    status: str
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "type": self.type,
            "status": self.status,
        }
        if self.created_at is not None:
            d["created_at"] = self.created_at.isoformat()
        return d


# ---------- CompetitionMatch ----------
@dataclass
class CompetitionMatch:
    """
    A scheduled fixture or a played match between two enrolled rosters.
    round is a free-form label, numerically sortable ("1", "2", ...).
    """
    id: str
    competition_id: str
    home_roster_id: str
    away_roster_id: str
    round: str
    status: str  # MatchStatus value
    data: MatchData
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "competition_id": self.competition_id,
            "home_roster_id": self.home_roster_id,
            "away_roster_id": self.away_roster_id,
            "round": self.round,
            "status": self.status,
            "data": self.data.to_dict(),
        }
        if self.created_at is not None:
            d["created_at"] = self.created_at.isoformat()
        return d

    def summary(self) -> dict[str, Any]:
        """List view of a match."""
        return {
            "id": self.id,
            "round": self.round,
            "status": self.status,
            "date": self.data.date,
            "home_team_name": self.data.home_team.name,
            "away_team_name": self.data.away_team.name,
            "home_roster_id": self.home_roster_id,
            "away_roster_id": self.away_roster_id,
            "home_score": self.data.home_score,
            "away_score": self.data.away_score,
        }


# ---------- Progression event (audit log) ----------
@dataclass
class ProgressionEvent:
    """
    One application of a match side onto a roster. Append-only; revert sets retracted_at.
    injury_ids maps player uid -> id of the injury generated for that player.
    served_suspension_uids lists players whose MNG was cleared by the blanket clear.
    """
    id: str
    match_id: str
    roster_id: str
    side: str  # "home" | "away"
    players: list[MatchPlayer]
    injury_ids: dict[str, str] = field(default_factory=dict)
    served_suspension_uids: list[str] = field(default_factory=list)
    applied_at: datetime | None = None
    retracted_at: datetime | None = None

    @property
    def is_live(self) -> bool:
        return self.retracted_at is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_id": self.match_id,
            "roster_id": self.roster_id,
            "side": self.side,
            "players": [p.to_dict() for p in self.players],
            "injury_ids": dict(self.injury_ids),
            "served_suspension_uids": list(self.served_suspension_uids),
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
            "retracted_at": self.retracted_at.isoformat() if self.retracted_at else None,
        }


# ---------- Notification ----------
@dataclass
class NotificationEvent:
    """Fire-and-forget message for a roster owner."""
    recipient_user_id: str
    kind: str
    title: str
    body: str = ""
    entity_type: str | None = None
    entity_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipient_user_id": self.recipient_user_id,
            "kind": self.kind,
            "title": self.title,
            "body": self.body,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
        }


# ---------- Standings ----------
@dataclass
class StandingRow:
    """One league-table line. Derived, never persisted."""
    roster_id: str
    team_name: str
    coach_name: str
    race: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    td_for: int = 0
    td_against: int = 0
    td_diff: int = 0
    cas_for: int = 0
    points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "roster_id": self.roster_id,
            "team_name": self.team_name,
            "coach_name": self.coach_name,
            "race": self.race,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "td_for": self.td_for,
            "td_against": self.td_against,
            "td_diff": self.td_diff,
            "cas_for": self.cas_for,
            "points": self.points,
        }
