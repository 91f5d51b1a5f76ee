"""
Match lifecycle: state machine, guards, scheduling, progression bookkeeping.

scheduled --report--> played --edit--> played; either state may be deleted.
Every write operation is one transaction spanning the match record, both roster
snapshots and the progression log. Notifications go out after commit.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from league_engine.errors import (
    DuplicateIdError,
    InvalidRosterReferenceError,
    MatchAlreadyPlayedError,
    MatchNotPlayedError,
    NotFoundError,
    ScheduleAlreadyExistsError,
)
from league_engine.models import (
    Competition,
    CompetitionMatch,
    MatchData,
    MatchStatus,
    MatchTeamSide,
    ProgressionEvent,
    Roster,
    StandingRow,
)
from league_engine.persistence.db import transaction
from league_engine.persistence.repositories import (
    CompetitionMatchRepository,
    CompetitionRepository,
    ProgressionEventRepository,
    RosterRepository,
    new_id,
)
from league_engine.services.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    dispatch,
    match_result_events,
)
from league_engine.services.progression import apply_match, new_injury_id, revert_progression
from league_engine.services.scheduling import round_robin_pairings
from league_engine.services.standings import compute_standings
from league_engine.services.validation import parse_match_data, validate_match_data

logger = logging.getLogger(__name__)

SIDES = ("home", "away")


@dataclass
class ScheduleResult:
    """Outcome of a schedule run."""
    rounds: int
    match_ids: list[str] = field(default_factory=list)

    @property
    def matches_created(self) -> int:
        return len(self.match_ids)


def _coerce_match_data(data: MatchData | Mapping[str, Any]) -> MatchData:
    if isinstance(data, MatchData):
        validate_match_data(data)
        return data
    return parse_match_data(data)


def _side_from_roster(roster: Roster) -> MatchTeamSide:
    return MatchTeamSide(
        roster_id=roster.id,
        name=roster.name,
        coach=roster.coach_name,
        race=roster.team_name,
        players=[],
    )


def _bind_side(side: MatchTeamSide, roster_id: str, label: str, fallback: MatchTeamSide | Roster | None) -> MatchTeamSide:
    """
    Tie a payload side to the match's roster, filling denormalized fields that were left empty.
    Returns a copy; the caller's side is not modified.
    """
    if side.roster_id and side.roster_id != roster_id:
        raise InvalidRosterReferenceError(
            f"{label}_team.roster_id {side.roster_id} does not match the fixture ({roster_id})",
            roster_id=side.roster_id,
            field=f"{label}_team.roster_id",
        )
    if fallback is None:
        return replace(side, roster_id=roster_id)
    if isinstance(fallback, Roster):
        fallback = _side_from_roster(fallback)
    return replace(
        side,
        roster_id=roster_id,
        name=side.name or fallback.name,
        coach=side.coach or fallback.coach,
        race=side.race or fallback.race,
    )


def _bind_sides(
    data: MatchData,
    home_roster_id: str,
    away_roster_id: str,
    home_fallback: MatchTeamSide | Roster | None,
    away_fallback: MatchTeamSide | Roster | None,
) -> MatchData:
    return replace(
        data,
        home_team=_bind_side(data.home_team, home_roster_id, "home", home_fallback),
        away_team=_bind_side(data.away_team, away_roster_id, "away", away_fallback),
    )


class MatchService:
    """
    Domain logic for competition matches: transitions, guards, progression, standings.
    Persistence is delegated to repositories; transaction boundaries live here.
    """

    def __init__(
        self,
        notification_sink: NotificationSink | None = None,
        injury_id_factory: Callable[[], str] = new_injury_id,
    ) -> None:
        self._competition_repo = CompetitionRepository()
        self._roster_repo = RosterRepository()
        self._match_repo = CompetitionMatchRepository()
        self._event_repo = ProgressionEventRepository()
        self._sink: NotificationSink = notification_sink or LoggingNotificationSink()
        self._injury_id_factory = injury_id_factory

    # ---------- Guards ----------

    def _require_competition(self, conn: sqlite3.Connection, competition_id: str) -> Competition:
        competition = self._competition_repo.get(conn, competition_id)
        if competition is None:
            raise NotFoundError("competition", competition_id)
        return competition

    def _require_match(self, conn: sqlite3.Connection, competition_id: str, match_id: str) -> CompetitionMatch:
        match = self._match_repo.get_in_competition(conn, competition_id, match_id)
        if match is None:
            raise NotFoundError("match", match_id)
        return match

    def _require_enrolled(self, conn: sqlite3.Connection, competition_id: str, roster_id: str, field_name: str) -> Roster:
        roster = self._roster_repo.get_in_competition(conn, competition_id, roster_id)
        if roster is None:
            raise InvalidRosterReferenceError(
                f"Rosters must belong to this competition ({roster_id})",
                roster_id=roster_id,
                field=field_name,
            )
        return roster

    def _side_rosters(self, conn: sqlite3.Connection, match: CompetitionMatch) -> dict[str, Roster | None]:
        """Current snapshots of both sides; None if a roster was removed since."""
        return {
            "home": self._roster_repo.get(conn, match.home_roster_id),
            "away": self._roster_repo.get(conn, match.away_roster_id),
        }

    # ---------- Progression bookkeeping ----------

    def _apply(
        self, conn: sqlite3.Connection, match: CompetitionMatch, rosters: Mapping[str, Roster | None]
    ) -> None:
        """Apply each side onto its roster, write the snapshot and log the event."""
        for side in SIDES:
            roster = rosters.get(side)
            if roster is None:
                continue
            players = match.data.side(side).players
            result = apply_match(roster, players, self._injury_id_factory)
            self._roster_repo.save(conn, result.roster)
            self._event_repo.append(conn, ProgressionEvent(
                id=new_id(),
                match_id=match.id,
                roster_id=roster.id,
                side=side,
                players=list(players),
                injury_ids=result.injury_ids,
                served_suspension_uids=result.served_suspension_uids,
            ))

    def _revert(self, conn: sqlite3.Connection, match: CompetitionMatch) -> dict[str, Roster | None]:
        """Undo the match's stored data on both rosters; retract its events. Returns new snapshots."""
        reverted: dict[str, Roster | None] = {}
        for side, roster in self._side_rosters(conn, match).items():
            if roster is None:
                reverted[side] = None
                continue
            event = self._event_repo.get_live(conn, match.id, roster.id)
            updated = revert_progression(
                roster,
                match.data.side(side).players,
                injury_ids=event.injury_ids if event else None,
            )
            self._roster_repo.save(conn, updated)
            if event is not None:
                self._event_repo.retract(conn, event.id)
            reverted[side] = updated
        return reverted

    def _notify(
        self,
        competition: Competition,
        match: CompetitionMatch,
        rosters: Mapping[str, Roster | None],
        actor_user_id: str | None,
    ) -> None:
        owners = [r for r in rosters.values() if r is not None]
        dispatch(self._sink, match_result_events(competition, match, owners, actor_user_id))

    # ---------- Scheduling ----------

    def generate_schedule(self, conn: sqlite3.Connection, competition_id: str) -> ScheduleResult:
        """
        Round robin over all enrolled rosters, persisted as scheduled fixtures in one transaction.
        Refuses while scheduled fixtures exist; delete_schedule first.
        """
        with transaction(conn):
            self._require_competition(conn, competition_id)
            rosters = self._roster_repo.list_by_competition(conn, competition_id)
            fixtures, rounds = round_robin_pairings([r.id for r in rosters])
            existing = self._match_repo.count_scheduled(conn, competition_id)
            if existing > 0:
                raise ScheduleAlreadyExistsError(
                    f"Schedule already exists ({existing} scheduled matches). Delete scheduled matches first.",
                    current_state=MatchStatus.SCHEDULED.value,
                )
            by_id = {r.id: r for r in rosters}
            result = ScheduleResult(rounds=rounds)
            for f in fixtures:
                data = MatchData(
                    home_team=_side_from_roster(by_id[f.home_roster_id]),
                    away_team=_side_from_roster(by_id[f.away_roster_id]),
                )
                match = self._match_repo.create(
                    conn,
                    new_id(),
                    competition_id,
                    f.home_roster_id,
                    f.away_roster_id,
                    data,
                    round=f.round,
                    status=MatchStatus.SCHEDULED.value,
                )
                result.match_ids.append(match.id)
        logger.info(
            "Generated schedule for %s: %d rosters, %d rounds, %d fixtures",
            competition_id, len(rosters), rounds, result.matches_created,
        )
        return result

    def delete_schedule(self, conn: sqlite3.Connection, competition_id: str) -> int:
        """Remove all scheduled fixtures; played matches and their progression are untouched."""
        with transaction(conn):
            self._require_competition(conn, competition_id)
            deleted = self._match_repo.delete_scheduled(conn, competition_id)
        logger.info("Deleted %d scheduled matches in %s", deleted, competition_id)
        return deleted

    # ---------- Lifecycle transitions ----------

    def create_match(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        match_id: str,
        home_roster_id: str,
        away_roster_id: str,
        data: MatchData | Mapping[str, Any],
        round: str = "",
        actor_user_id: str | None = None,
    ) -> CompetitionMatch:
        """Record an already-played match directly and apply its progression."""
        match_data = _coerce_match_data(data)
        with transaction(conn):
            competition = self._require_competition(conn, competition_id)
            if self._match_repo.get(conn, match_id) is not None:
                raise DuplicateIdError("match", match_id)
            home = self._require_enrolled(conn, competition_id, home_roster_id, "home_roster_id")
            away = self._require_enrolled(conn, competition_id, away_roster_id, "away_roster_id")
            if home.id == away.id:
                raise InvalidRosterReferenceError(
                    "Home and away must be different rosters", roster_id=home.id, field="away_roster_id"
                )
            match_data = _bind_sides(match_data, home.id, away.id, home, away)
            match = self._match_repo.create(
                conn, match_id, competition_id, home.id, away.id, match_data,
                round=round or "", status=MatchStatus.PLAYED.value,
            )
            rosters = {"home": home, "away": away}
            self._apply(conn, match, rosters)
        logger.info(
            "Match %s recorded in %s: %s %d - %d %s",
            match.id, competition_id, match_data.home_team.name, match_data.home_score,
            match_data.away_score, match_data.away_team.name,
        )
        self._notify(competition, match, rosters, actor_user_id)
        return match

    def report_match(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        match_id: str,
        data: MatchData | Mapping[str, Any],
        actor_user_id: str | None = None,
    ) -> CompetitionMatch:
        """scheduled -> played: store the result and apply progression."""
        match_data = _coerce_match_data(data)
        with transaction(conn):
            competition = self._require_competition(conn, competition_id)
            existing = self._require_match(conn, competition_id, match_id)
            if existing.status != MatchStatus.SCHEDULED:
                raise MatchAlreadyPlayedError(
                    f"Match {match_id} is not scheduled (current: {existing.status})",
                    current_state=existing.status,
                )
            rosters = self._side_rosters(conn, existing)
            match_data = _bind_sides(
                match_data, existing.home_roster_id, existing.away_roster_id,
                rosters["home"] or existing.data.home_team, rosters["away"] or existing.data.away_team,
            )
            match = replace(existing, data=match_data, status=MatchStatus.PLAYED.value)
            self._match_repo.update(conn, match.id, match_data, status=MatchStatus.PLAYED.value)
            self._apply(conn, match, rosters)
        logger.info("Match %s reported in %s", match_id, competition_id)
        self._notify(competition, match, rosters, actor_user_id)
        return match

    def edit_match(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        match_id: str,
        data: MatchData | Mapping[str, Any],
        round: str | None = None,
    ) -> CompetitionMatch:
        """played -> played: revert the stored result, apply the new one, replace the record."""
        match_data = _coerce_match_data(data)
        with transaction(conn):
            self._require_competition(conn, competition_id)
            existing = self._require_match(conn, competition_id, match_id)
            if existing.status != MatchStatus.PLAYED:
                raise MatchNotPlayedError(
                    f"Match {match_id} has not been played; report it instead",
                    current_state=existing.status,
                )
            match_data = _bind_sides(
                match_data, existing.home_roster_id, existing.away_roster_id,
                existing.data.home_team, existing.data.away_team,
            )
            rosters = self._revert(conn, existing)
            match = replace(
                existing,
                data=match_data,
                round=existing.round if round is None else round,
            )
            self._apply(conn, match, rosters)
            self._match_repo.update(conn, match.id, match_data, round=round)
        logger.info("Match %s edited in %s", match_id, competition_id)
        return match

    def delete_match(self, conn: sqlite3.Connection, competition_id: str, match_id: str) -> None:
        """Remove a match; a played match has its progression reverted first."""
        with transaction(conn):
            self._require_competition(conn, competition_id)
            existing = self._require_match(conn, competition_id, match_id)
            if existing.status == MatchStatus.PLAYED:
                self._revert(conn, existing)
            self._match_repo.delete(conn, existing.id)
        logger.info("Match %s (%s) deleted from %s", match_id, existing.status, competition_id)

    # ---------- Reads ----------

    def get_match(self, conn: sqlite3.Connection, competition_id: str, match_id: str) -> CompetitionMatch:
        self._require_competition(conn, competition_id)
        return self._require_match(conn, competition_id, match_id)

    def list_matches(
        self, conn: sqlite3.Connection, competition_id: str, status: str | None = None
    ) -> list[CompetitionMatch]:
        self._require_competition(conn, competition_id)
        return self._match_repo.list_by_competition(conn, competition_id, status=status)

    def list_matches_for_rosters(
        self, conn: sqlite3.Connection, competition_id: str, roster_ids: list[str]
    ) -> list[CompetitionMatch]:
        self._require_competition(conn, competition_id)
        return self._match_repo.list_for_rosters(conn, competition_id, roster_ids)

    def list_matches_for_user(
        self, conn: sqlite3.Connection, competition_id: str, user_id: str
    ) -> list[CompetitionMatch]:
        """Matches involving any roster the user enrolled in this competition."""
        roster_ids = self._roster_repo.list_ids_by_user(conn, competition_id, user_id)
        return self.list_matches_for_rosters(conn, competition_id, roster_ids)

    def get_standings(self, conn: sqlite3.Connection, competition_id: str) -> list[StandingRow]:
        self._require_competition(conn, competition_id)
        rosters = self._roster_repo.list_by_competition(conn, competition_id)
        played = self._match_repo.list_by_competition(conn, competition_id, status=MatchStatus.PLAYED.value)
        return compute_standings(rosters, played)

    def progression_history(self, conn: sqlite3.Connection, competition_id: str, match_id: str) -> list[ProgressionEvent]:
        """Every progression event logged for a match, retracted ones included."""
        self._require_competition(conn, competition_id)
        return self._event_repo.list_by_match(conn, match_id)
