"""
Persistence layer for competition data.
No business logic: read/write interfaces and the transaction boundary.
"""
from .db import get_connection, init_db, set_db_path, transaction
from .repositories import (
    CompetitionRepository,
    RosterRepository,
    CompetitionMatchRepository,
    ProgressionEventRepository,
    NotificationRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "set_db_path",
    "transaction",
    "CompetitionRepository",
    "RosterRepository",
    "CompetitionMatchRepository",
    "ProgressionEventRepository",
    "NotificationRepository",
]
