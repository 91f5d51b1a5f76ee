"""
Competition setup: create competitions, enroll and remove rosters.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from league_engine.errors import DuplicateIdError, NotFoundError, ValidationError
from league_engine.models import Competition, CompetitionType, Roster
from league_engine.persistence.db import transaction
from league_engine.persistence.repositories import (
    CompetitionRepository,
    RosterRepository,
    new_id,
)
from league_engine.services.validation import validate_roster_data

logger = logging.getLogger(__name__)

_COMPETITION_TYPES = {t.value for t in CompetitionType}


class CompetitionService:
    """Competition and enrollment bookkeeping. Matches live in MatchService."""

    def __init__(self) -> None:
        self._competition_repo = CompetitionRepository()
        self._roster_repo = RosterRepository()

    def create_competition(
        self,
        conn: sqlite3.Connection,
        name: str,
        owner_id: str | None = None,
        type: str = CompetitionType.LEAGUE.value,
        id: str | None = None,
    ) -> Competition:
        if not name:
            raise ValidationError("Missing required field: name", field="name")
        if type not in _COMPETITION_TYPES:
            raise ValidationError(f"Invalid competition type {type!r}", field="type")
        competition_id = id or new_id()
        with transaction(conn):
            if self._competition_repo.get(conn, competition_id) is not None:
                raise DuplicateIdError("competition", competition_id)
            competition = self._competition_repo.create(
                conn, competition_id, name, owner_id=owner_id, type=type
            )
        logger.info("Created %s %s (%s)", type, competition_id, name)
        return competition

    def get_competition(self, conn: sqlite3.Connection, competition_id: str) -> Competition:
        competition = self._competition_repo.get(conn, competition_id)
        if competition is None:
            raise NotFoundError("competition", competition_id)
        return competition

    def enroll_roster(
        self,
        conn: sqlite3.Connection,
        competition_id: str,
        name: str,
        team_id: str,
        team_name: str,
        user_id: str | None = None,
        coach_name: str = "",
        data: Mapping[str, Any] | None = None,
        original_roster_id: str | None = None,
        id: str | None = None,
    ) -> Roster:
        """
        Snapshot a team into the competition. data is the roster-builder payload;
        its players list is interpreted, everything else is stored as-is.
        """
        if not name:
            raise ValidationError("Missing required field: name", field="name")
        players, extra = Roster.split_data(validate_roster_data(data))
        roster_id = id or new_id()
        with transaction(conn):
            self.get_competition(conn, competition_id)
            if self._roster_repo.get(conn, roster_id) is not None:
                raise DuplicateIdError("roster", roster_id)
            roster = self._roster_repo.create(conn, Roster(
                id=roster_id,
                competition_id=competition_id,
                user_id=user_id,
                name=name,
                team_id=team_id,
                team_name=team_name,
                coach_name=coach_name,
                players=players,
                original_roster_id=original_roster_id,
                extra=extra,
            ))
        logger.info("Enrolled roster %s (%s) in %s", roster_id, name, competition_id)
        return roster

    def list_rosters(self, conn: sqlite3.Connection, competition_id: str) -> list[Roster]:
        self.get_competition(conn, competition_id)
        return self._roster_repo.list_by_competition(conn, competition_id)

    def get_roster(self, conn: sqlite3.Connection, competition_id: str, roster_id: str) -> Roster:
        roster = self._roster_repo.get_in_competition(conn, competition_id, roster_id)
        if roster is None:
            raise NotFoundError("roster", roster_id)
        return roster

    def remove_roster(self, conn: sqlite3.Connection, competition_id: str, roster_id: str) -> None:
        """Withdraw a roster. Its past matches stay; standings ignore the missing side."""
        with transaction(conn):
            self.get_roster(conn, competition_id, roster_id)
            self._roster_repo.delete(conn, roster_id)
        logger.info("Removed roster %s from %s", roster_id, competition_id)
