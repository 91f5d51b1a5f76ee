"""
Repository interfaces for competition data.
No business logic, only read/write operations. Repositories never commit: writes made
inside persistence.db.transaction() land atomically; outside it the connection autocommits.
"""
from __future__ import annotations

import json
import secrets
import sqlite3
from datetime import datetime, timezone
from typing import Any, Iterable

from league_engine.errors import StaleRosterVersionError
from league_engine.models import (
    Competition,
    CompetitionMatch,
    MatchData,
    MatchPlayer,
    MatchStatus,
    NotificationEvent,
    ProgressionEvent,
    Roster,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_datetime(s: str | None) -> datetime | None:
    if not s:
        return None
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def new_id() -> str:
    """Short URL-safe random id for generated records."""
    return secrets.token_urlsafe(8)


# ---------- CompetitionRepository ----------


class CompetitionRepository:
    """CRUD for competitions. No business logic."""

    def create(
        self,
        conn: sqlite3.Connection,
        id: str,
        name: str,
        owner_id: str | None = None,
        type: str = "league",
        status: str = "active",
    ) -> Competition:
        now = _now_iso()
        conn.execute(
            "INSERT INTO competitions (id, owner_id, name, type, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (id, owner_id, name, type, status, now, now),
        )
        return Competition(
            id=id, owner_id=owner_id, name=name, type=type, status=status,
            created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, competition_id: str) -> Competition | None:
        row = conn.execute(
            "SELECT id, owner_id, name, type, status, created_at FROM competitions WHERE id = ?",
            (competition_id,),
        ).fetchone()
        if row is None:
            return None
        return Competition(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=row["type"],
            status=row["status"],
            created_at=_parse_datetime(row["created_at"]),
        )


# ---------- RosterRepository ----------


def _row_to_roster(row: sqlite3.Row) -> Roster:
    players, extra = Roster.split_data(json.loads(row["data"]))
    return Roster(
        id=row["id"],
        competition_id=row["competition_id"],
        user_id=row["user_id"],
        name=row["name"],
        team_id=row["team_id"],
        team_name=row["team_name"],
        coach_name=row["coach_name"] or "",
        players=players,
        version=row["version"],
        original_roster_id=row["original_roster_id"],
        extra=extra,
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


_ROSTER_COLS = (
    "id, competition_id, user_id, original_roster_id, name, team_id, team_name, "
    "coach_name, data, version, created_at, updated_at"
)


class RosterRepository:
    """Roster snapshot store. Writes are conditional on the snapshot version."""

    def create(self, conn: sqlite3.Connection, roster: Roster) -> Roster:
        now = _now_iso()
        conn.execute(
            f"INSERT INTO competition_rosters ({_ROSTER_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                roster.id,
                roster.competition_id,
                roster.user_id,
                roster.original_roster_id,
                roster.name,
                roster.team_id,
                roster.team_name,
                roster.coach_name,
                json.dumps(roster.data_dict()),
                1,
                now,
                now,
            ),
        )
        return self.get(conn, roster.id)  # type: ignore[return-value]

    def get(self, conn: sqlite3.Connection, roster_id: str) -> Roster | None:
        row = conn.execute(
            f"SELECT {_ROSTER_COLS} FROM competition_rosters WHERE id = ?",
            (roster_id,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_roster(row)

    def get_in_competition(self, conn: sqlite3.Connection, competition_id: str, roster_id: str) -> Roster | None:
        """Roster only if it is enrolled in competition_id."""
        row = conn.execute(
            f"SELECT {_ROSTER_COLS} FROM competition_rosters WHERE id = ? AND competition_id = ?",
            (roster_id, competition_id),
        ).fetchone()
        if row is None:
            return None
        return _row_to_roster(row)

    def list_by_competition(self, conn: sqlite3.Connection, competition_id: str) -> list[Roster]:
        """Enrolled rosters in enrollment order."""
        rows = conn.execute(
            f"SELECT {_ROSTER_COLS} FROM competition_rosters WHERE competition_id = ? ORDER BY created_at, rowid",
            (competition_id,),
        ).fetchall()
        return [_row_to_roster(r) for r in rows]

    def list_ids_by_user(self, conn: sqlite3.Connection, competition_id: str, user_id: str) -> list[str]:
        rows = conn.execute(
            "SELECT id FROM competition_rosters WHERE competition_id = ? AND user_id = ?",
            (competition_id, user_id),
        ).fetchall()
        return [r["id"] for r in rows]

    def save(self, conn: sqlite3.Connection, roster: Roster, expected_version: int | None = None) -> Roster:
        """
        Write the snapshot's data if the stored version still equals expected_version
        (default: roster.version). Returns the roster with its new version.
        Raises StaleRosterVersionError when another writer got there first.
        """
        expected = roster.version if expected_version is None else expected_version
        now = _now_iso()
        cur = conn.execute(
            "UPDATE competition_rosters SET data = ?, version = version + 1, updated_at = ? WHERE id = ? AND version = ?",
            (json.dumps(roster.data_dict()), now, roster.id, expected),
        )
        if cur.rowcount == 0:
            raise StaleRosterVersionError(roster.id, expected)
        roster.version = expected + 1
        roster.updated_at = _parse_datetime(now)
        return roster

    def delete(self, conn: sqlite3.Connection, roster_id: str) -> bool:
        cur = conn.execute("DELETE FROM competition_rosters WHERE id = ?", (roster_id,))
        return cur.rowcount > 0


# ---------- CompetitionMatchRepository ----------


_MATCH_COLS = "id, competition_id, home_roster_id, away_roster_id, round, status, data, created_at, updated_at"


def _row_to_match(row: sqlite3.Row) -> CompetitionMatch:
    return CompetitionMatch(
        id=row["id"],
        competition_id=row["competition_id"],
        home_roster_id=row["home_roster_id"],
        away_roster_id=row["away_roster_id"],
        round=row["round"] or "",
        status=row["status"] or MatchStatus.PLAYED.value,
        data=MatchData.from_dict(json.loads(row["data"])),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


class CompetitionMatchRepository:
    """CRUD for competition_matches (fixtures and results). No business logic."""

    def create(
        self,
        conn: sqlite3.Connection,
        id: str,
        competition_id: str,
        home_roster_id: str,
        away_roster_id: str,
        data: MatchData,
        round: str = "",
        status: str = MatchStatus.PLAYED.value,
    ) -> CompetitionMatch:
        now = _now_iso()
        conn.execute(
            f"INSERT INTO competition_matches ({_MATCH_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (id, competition_id, home_roster_id, away_roster_id, round, status, json.dumps(data.to_dict()), now, now),
        )
        return CompetitionMatch(
            id=id, competition_id=competition_id,
            home_roster_id=home_roster_id, away_roster_id=away_roster_id,
            round=round, status=status, data=data,
            created_at=_parse_datetime(now), updated_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, match_id: str) -> CompetitionMatch | None:
        row = conn.execute(
            f"SELECT {_MATCH_COLS} FROM competition_matches WHERE id = ?",
            (match_id,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_match(row)

    def get_in_competition(self, conn: sqlite3.Connection, competition_id: str, match_id: str) -> CompetitionMatch | None:
        row = conn.execute(
            f"SELECT {_MATCH_COLS} FROM competition_matches WHERE id = ? AND competition_id = ?",
            (match_id, competition_id),
        ).fetchone()
        if row is None:
            return None
        return _row_to_match(row)

    def list_by_competition(
        self, conn: sqlite3.Connection, competition_id: str, status: str | None = None
    ) -> list[CompetitionMatch]:
        """Ordered by numeric round, newest first within a round."""
        sql = f"SELECT {_MATCH_COLS} FROM competition_matches WHERE competition_id = ?"
        args: list[Any] = [competition_id]
        if status is not None:
            sql += " AND status = ?"
            args.append(status)
        sql += " ORDER BY CAST(round AS INTEGER), created_at DESC, rowid DESC"
        rows = conn.execute(sql, args).fetchall()
        return [_row_to_match(r) for r in rows]

    def list_for_rosters(
        self, conn: sqlite3.Connection, competition_id: str, roster_ids: Iterable[str]
    ) -> list[CompetitionMatch]:
        """Matches where any of roster_ids plays, in round order."""
        ids = list(roster_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = conn.execute(
            f"SELECT {_MATCH_COLS} FROM competition_matches WHERE competition_id = ? "
            f"AND (home_roster_id IN ({placeholders}) OR away_roster_id IN ({placeholders})) "
            "ORDER BY CAST(round AS INTEGER), created_at, rowid",
            [competition_id, *ids, *ids],
        ).fetchall()
        return [_row_to_match(r) for r in rows]

    def count_scheduled(self, conn: sqlite3.Connection, competition_id: str) -> int:
        row = conn.execute(
            "SELECT COUNT(*) AS c FROM competition_matches WHERE competition_id = ? AND status = ?",
            (competition_id, MatchStatus.SCHEDULED.value),
        ).fetchone()
        return int(row["c"])

    def update(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        data: MatchData,
        round: str | None = None,
        status: str | None = None,
    ) -> None:
        """Replace data; round/status only when given."""
        sets = ["data = ?", "updated_at = ?"]
        args: list[Any] = [json.dumps(data.to_dict()), _now_iso()]
        if round is not None:
            sets.append("round = ?")
            args.append(round)
        if status is not None:
            sets.append("status = ?")
            args.append(status)
        args.append(match_id)
        conn.execute(f"UPDATE competition_matches SET {', '.join(sets)} WHERE id = ?", args)

    def delete(self, conn: sqlite3.Connection, match_id: str) -> bool:
        cur = conn.execute("DELETE FROM competition_matches WHERE id = ?", (match_id,))
        return cur.rowcount > 0

    def delete_scheduled(self, conn: sqlite3.Connection, competition_id: str) -> int:
        """Remove every unplayed fixture of a competition. Returns the number removed."""
        cur = conn.execute(
            "DELETE FROM competition_matches WHERE competition_id = ? AND status = ?",
            (competition_id, MatchStatus.SCHEDULED.value),
        )
        return cur.rowcount


# ---------- ProgressionEventRepository ----------


def _row_to_event(row: sqlite3.Row) -> ProgressionEvent:
    return ProgressionEvent(
        id=row["id"],
        match_id=row["match_id"],
        roster_id=row["roster_id"],
        side=row["side"],
        players=[MatchPlayer.from_dict(p) for p in json.loads(row["players_json"])],
        injury_ids=json.loads(row["injury_ids_json"] or "{}"),
        served_suspension_uids=json.loads(row["served_suspensions_json"] or "[]"),
        applied_at=_parse_datetime(row["applied_at"]),
        retracted_at=_parse_datetime(row["retracted_at"]),
    )


class ProgressionEventRepository:
    """Append-only progression log. Events are retracted, never deleted."""

    def append(self, conn: sqlite3.Connection, event: ProgressionEvent) -> ProgressionEvent:
        now = _now_iso()
        conn.execute(
            """INSERT INTO progression_events (
                id, match_id, roster_id, side, players_json,
                injury_ids_json, served_suspensions_json, applied_at, retracted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, NULL)""",
            (
                event.id,
                event.match_id,
                event.roster_id,
                event.side,
                json.dumps([p.to_dict() for p in event.players]),
                json.dumps(event.injury_ids),
                json.dumps(event.served_suspension_uids),
                now,
            ),
        )
        event.applied_at = _parse_datetime(now)
        return event

    def get_live(self, conn: sqlite3.Connection, match_id: str, roster_id: str) -> ProgressionEvent | None:
        """The most recent non-retracted event for (match, roster)."""
        row = conn.execute(
            """SELECT * FROM progression_events
               WHERE match_id = ? AND roster_id = ? AND retracted_at IS NULL
               ORDER BY applied_at DESC, rowid DESC LIMIT 1""",
            (match_id, roster_id),
        ).fetchone()
        if row is None:
            return None
        return _row_to_event(row)

    def retract(self, conn: sqlite3.Connection, event_id: str) -> None:
        conn.execute(
            "UPDATE progression_events SET retracted_at = ? WHERE id = ? AND retracted_at IS NULL",
            (_now_iso(), event_id),
        )

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[ProgressionEvent]:
        rows = conn.execute(
            "SELECT * FROM progression_events WHERE match_id = ? ORDER BY applied_at, rowid",
            (match_id,),
        ).fetchall()
        return [_row_to_event(r) for r in rows]


# ---------- NotificationRepository ----------


class NotificationRepository:
    """Stored notifications for users."""

    def create(self, conn: sqlite3.Connection, event: NotificationEvent, id: str | None = None) -> str:
        nid = id or new_id()
        conn.execute(
            """INSERT INTO notifications (id, user_id, type, title, body, entity_type, entity_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                nid,
                event.recipient_user_id,
                event.kind,
                event.title,
                event.body or "",
                event.entity_type,
                event.entity_id,
                _now_iso(),
            ),
        )
        return nid

    def list_by_user(self, conn: sqlite3.Connection, user_id: str, limit: int = 30) -> list[NotificationEvent]:
        rows = conn.execute(
            """SELECT user_id, type, title, body, entity_type, entity_id FROM notifications
               WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        return [
            NotificationEvent(
                recipient_user_id=r["user_id"],
                kind=r["type"],
                title=r["title"],
                body=r["body"],
                entity_type=r["entity_type"],
                entity_id=r["entity_id"],
            )
            for r in rows
        ]
