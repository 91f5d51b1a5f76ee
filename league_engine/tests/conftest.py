"""
Shared fixtures: a temporary database per test, a competition, roster enrollment.
"""
from __future__ import annotations

import itertools

import pytest

from league_engine.models import NotificationEvent
from league_engine.persistence.db import get_connection, init_db, set_db_path
from league_engine.services.competition_service import CompetitionService
from league_engine.services.match_service import MatchService


def player_payload(uid: str, **fields) -> dict:
    """Roster-builder player entry, including fields the engine does not interpret."""
    p = {
        "uid": uid,
        "name": f"Player {uid}",
        "position": "Lineman",
        "cost": 50000,
        "spp": {"cp": 0, "td": 0, "def": 0, "int": 0, "bh": 0, "si": 0, "kill": 0, "mvp": 0},
        "injuries": [],
        "upgrades": [],
        "miss_next_game": False,
        "dead": False,
        "skills": ["Block"],
        "stats": {"MA": 6, "ST": 3, "AG": 3, "PA": 4, "AV": 9},
    }
    p.update(fields)
    return p


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def send(self, event: NotificationEvent) -> None:
        self.events.append(event)


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "league_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def competition_service():
    return CompetitionService()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def injury_ids():
    """Deterministic injury id factory: inj-1, inj-2, ..."""
    counter = itertools.count(1)
    return lambda: f"inj-{next(counter)}"


@pytest.fixture
def match_service(sink, injury_ids):
    return MatchService(notification_sink=sink, injury_id_factory=injury_ids)


@pytest.fixture
def competition(db_conn, competition_service):
    return competition_service.create_competition(db_conn, "Spring League", owner_id="owner", id="comp-1")


@pytest.fixture
def enroll(db_conn, competition_service, competition):
    """enroll(roster_id, name, user_id=None, uids=("p1", "p2"), competition_id=...) -> Roster"""

    def _enroll(roster_id, name, user_id=None, uids=("p1", "p2"), competition_id=None, players=None):
        if players is None:
            players = [player_payload(f"{roster_id}-{u}") for u in uids]
        return competition_service.enroll_roster(
            db_conn,
            competition_id or competition.id,
            name=name,
            team_id="orc",
            team_name="Orc",
            user_id=user_id,
            coach_name=f"Coach {name}",
            data={"players": players, "treasury": 40000, "rerolls": 2},
            id=roster_id,
        )

    return _enroll


@pytest.fixture
def make_player():
    return player_payload
