"""
REST API for the competition engine.
Thin wrappers around the services; engine errors map to HTTP status codes.
"""
from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from league_engine.config import get_settings
from league_engine.errors import CompetitionError, ConflictError, NotFoundError
from league_engine.logging_config import setup_logging
from league_engine.models import CompetitionType, MatchStatus
from league_engine.persistence import NotificationRepository, get_connection, init_db
from league_engine.services import (
    CompetitionService,
    MatchDataIn,
    MatchService,
    RepositoryNotificationSink,
)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(log_dir=settings.log_dir, level=settings.log_level, log_to_file=settings.log_to_file)
    init_db()
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="League Engine API",
    description="Fixtures, match results, player progression and standings for competitions",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request models ----------


class CreateCompetitionRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(CompetitionType.LEAGUE.value, description="league | tournament")
    id: str | None = Field(None, description="Optional client-chosen id")


class EnrollRosterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Team name")
    team_id: str = Field(..., description="Race / team template id")
    team_name: str = Field(..., description="Race name, e.g. 'Orc'")
    coach_name: str = ""
    data: dict[str, Any] = Field(default_factory=dict, description="Roster-builder payload with players")
    original_roster_id: str | None = None
    id: str | None = None


class CreateMatchRequest(BaseModel):
    id: str = Field(..., min_length=1)
    home_roster_id: str
    away_roster_id: str
    round: str = ""
    data: MatchDataIn | None = Field(None, description="home_team, away_team, home_score, away_score, date, notes")


class EditMatchRequest(BaseModel):
    data: MatchDataIn | None = None
    round: str | None = None


class ReportMatchRequest(BaseModel):
    data: MatchDataIn | None = None


def _current_user_id(x_user_id: str | None = Header(None)) -> str | None:
    """Acting user from the X-User-Id header; authentication happens upstream."""
    return x_user_id or None


def _http_error(e: CompetitionError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _match_service() -> MatchService:
    return MatchService(notification_sink=RepositoryNotificationSink())


def _match_payload(data: MatchDataIn | None) -> dict[str, Any]:
    """Back to the wire shape ("int"/"def" keys); the service checks it again, including MVPs."""
    if data is None:
        return {}
    return data.model_dump(by_alias=True, mode="json")


# ---------- Competitions ----------


@app.post("/competitions")
def create_competition(
    req: CreateCompetitionRequest,
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    """Create a league or tournament owned by the acting user."""
    with db_conn() as conn:
        try:
            competition = CompetitionService().create_competition(
                conn, req.name, owner_id=user_id, type=req.type, id=req.id
            )
        except CompetitionError as e:
            raise _http_error(e) from e
        return competition.to_dict()


@app.get("/competitions/{competition_id}")
def get_competition(competition_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            competition = CompetitionService().get_competition(conn, competition_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return competition.to_dict()


# ---------- Rosters ----------


@app.post("/competitions/{competition_id}/rosters")
def enroll_roster(
    competition_id: str,
    req: EnrollRosterRequest,
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    """Enroll a snapshot of a team. The acting user becomes the roster owner."""
    with db_conn() as conn:
        try:
            roster = CompetitionService().enroll_roster(
                conn,
                competition_id,
                name=req.name,
                team_id=req.team_id,
                team_name=req.team_name,
                user_id=user_id,
                coach_name=req.coach_name,
                data=req.data,
                original_roster_id=req.original_roster_id,
                id=req.id,
            )
        except CompetitionError as e:
            raise _http_error(e) from e
        return roster.to_dict()


@app.get("/competitions/{competition_id}/rosters")
def list_rosters(competition_id: str) -> dict[str, Any]:
    """Enrolled rosters with active player count and team value."""
    with db_conn() as conn:
        try:
            rosters = CompetitionService().list_rosters(conn, competition_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"rosters": [r.summary() for r in rosters]}


@app.get("/competitions/{competition_id}/rosters/{roster_id}")
def get_roster(competition_id: str, roster_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            roster = CompetitionService().get_roster(conn, competition_id, roster_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return roster.to_dict()


@app.delete("/competitions/{competition_id}/rosters/{roster_id}")
def remove_roster(competition_id: str, roster_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            CompetitionService().remove_roster(conn, competition_id, roster_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"roster_id": roster_id, "deleted": True}


# ---------- Schedule ----------


@app.post("/competitions/{competition_id}/schedule")
def generate_schedule(competition_id: str) -> dict[str, Any]:
    """Round robin over enrolled rosters. Fails while scheduled fixtures exist."""
    with db_conn() as conn:
        try:
            result = _match_service().generate_schedule(conn, competition_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {
            "matches_created": result.matches_created,
            "rounds": result.rounds,
            "match_ids": result.match_ids,
        }


@app.delete("/competitions/{competition_id}/schedule")
def delete_schedule(competition_id: str) -> dict[str, Any]:
    """Remove all scheduled (unplayed) fixtures."""
    with db_conn() as conn:
        try:
            deleted = _match_service().delete_schedule(conn, competition_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"deleted": deleted}


# ---------- Matches ----------


@app.get("/competitions/{competition_id}/matches")
def list_matches(
    competition_id: str,
    status: str | None = Query(None, description="scheduled | played"),
) -> dict[str, Any]:
    if status is not None and status not in {s.value for s in MatchStatus}:
        raise HTTPException(status_code=400, detail="status must be 'scheduled' or 'played'")
    with db_conn() as conn:
        try:
            matches = _match_service().list_matches(conn, competition_id, status=status)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"matches": [m.summary() for m in matches]}


@app.post("/competitions/{competition_id}/matches")
def create_match(
    competition_id: str,
    req: CreateMatchRequest,
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    """Record a played match directly; progression is applied to both rosters."""
    with db_conn() as conn:
        try:
            match = _match_service().create_match(
                conn,
                competition_id,
                req.id,
                req.home_roster_id,
                req.away_roster_id,
                _match_payload(req.data),
                round=req.round,
                actor_user_id=user_id,
            )
        except CompetitionError as e:
            raise _http_error(e) from e
        return match.to_dict()


@app.get("/competitions/{competition_id}/matches/{match_id}")
def get_match(competition_id: str, match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            match = _match_service().get_match(conn, competition_id, match_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return match.to_dict()


@app.put("/competitions/{competition_id}/matches/{match_id}")
def edit_match(competition_id: str, match_id: str, req: EditMatchRequest) -> dict[str, Any]:
    """Replace a played match's data: old progression reverted, new applied."""
    with db_conn() as conn:
        try:
            match = _match_service().edit_match(
                conn, competition_id, match_id, _match_payload(req.data), round=req.round
            )
        except CompetitionError as e:
            raise _http_error(e) from e
        return match.to_dict()


@app.post("/competitions/{competition_id}/matches/{match_id}/report")
def report_match(
    competition_id: str,
    match_id: str,
    req: ReportMatchRequest,
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    """Report the result of a scheduled fixture."""
    with db_conn() as conn:
        try:
            match = _match_service().report_match(
                conn, competition_id, match_id, _match_payload(req.data), actor_user_id=user_id
            )
        except CompetitionError as e:
            raise _http_error(e) from e
        return match.to_dict()


@app.delete("/competitions/{competition_id}/matches/{match_id}")
def delete_match(competition_id: str, match_id: str) -> dict[str, Any]:
    """Delete a match; a played match has its progression reverted first."""
    with db_conn() as conn:
        try:
            _match_service().delete_match(conn, competition_id, match_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"match_id": match_id, "deleted": True}


@app.get("/competitions/{competition_id}/matches/{match_id}/progression")
def get_match_progression(competition_id: str, match_id: str) -> dict[str, Any]:
    """Progression log for a match, retracted entries included."""
    with db_conn() as conn:
        try:
            events = _match_service().progression_history(conn, competition_id, match_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"events": [ev.to_dict() for ev in events]}


@app.get("/competitions/{competition_id}/my-matches")
def list_my_matches(
    competition_id: str,
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    """Matches involving any roster the acting user enrolled."""
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    with db_conn() as conn:
        try:
            matches = _match_service().list_matches_for_user(conn, competition_id, user_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"matches": [m.summary() for m in matches]}


@app.get("/competitions/{competition_id}/standings")
def get_standings(competition_id: str) -> dict[str, Any]:
    """League table: points, then TD difference, then TDs scored."""
    with db_conn() as conn:
        try:
            rows = _match_service().get_standings(conn, competition_id)
        except CompetitionError as e:
            raise _http_error(e) from e
        return {"competition_id": competition_id, "standings": [r.to_dict() for r in rows]}


# ---------- Notifications ----------


@app.get("/notifications")
def list_notifications(
    limit: int = Query(default=30, ge=1, le=100),
    user_id: str | None = Depends(_current_user_id),
) -> dict[str, Any]:
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    with db_conn() as conn:
        events = NotificationRepository().list_by_user(conn, user_id, limit=limit)
        return {"notifications": [e.to_dict() for e in events]}


# ---------- Run with: uvicorn league_engine.api:app --reload ----------
