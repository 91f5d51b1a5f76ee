"""
Service layer: scheduling, progression, validation, standings, match lifecycle.
Pure engines (scheduling, progression, standings) never touch the database;
match_service and competition_service orchestrate persistence.
"""
from .competition_service import CompetitionService
from .match_service import MatchService, ScheduleResult
from .notifications import (
    LoggingNotificationSink,
    NotificationSink,
    RepositoryNotificationSink,
)
from .progression import apply_progression, revert_progression
from .scheduling import Fixture, round_robin_pairings
from .standings import compute_standings
from .validation import MatchDataIn, parse_match_data, validate_match_data, validate_roster_data

__all__ = [
    "CompetitionService",
    "MatchService",
    "ScheduleResult",
    "LoggingNotificationSink",
    "NotificationSink",
    "RepositoryNotificationSink",
    "apply_progression",
    "revert_progression",
    "Fixture",
    "round_robin_pairings",
    "compute_standings",
    "MatchDataIn",
    "parse_match_data",
    "validate_match_data",
    "validate_roster_data",
]
