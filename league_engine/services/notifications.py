"""
Notification sinks. Delivery is fire-and-forget: it happens after the match transaction
commits, and a failing sink never undoes a recorded result.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Iterable, Protocol

from league_engine.models import CompetitionMatch, Competition, NotificationEvent, Roster
from league_engine.persistence.db import get_connection
from league_engine.persistence.repositories import NotificationRepository

logger = logging.getLogger(__name__)

MATCH_RESULT = "match_result"


class NotificationSink(Protocol):
    def send(self, event: NotificationEvent) -> None: ...


class LoggingNotificationSink:
    """Writes events to the log only."""

    def send(self, event: NotificationEvent) -> None:
        logger.info("Notify %s [%s]: %s", event.recipient_user_id, event.kind, event.title)


class RepositoryNotificationSink:
    """Persists events into the notifications table on its own connection."""

    def __init__(self, connect: Callable[[], sqlite3.Connection] = get_connection) -> None:
        self._connect = connect
        self._repo = NotificationRepository()

    def send(self, event: NotificationEvent) -> None:
        conn = self._connect()
        try:
            self._repo.create(conn, event)
        finally:
            conn.close()


def match_result_events(
    competition: Competition,
    match: CompetitionMatch,
    rosters: Iterable[Roster],
    actor_user_id: str | None = None,
) -> list[NotificationEvent]:
    """One match_result event per distinct roster owner, skipping the acting user."""
    data = match.data
    title = f"{data.home_team.name} {data.home_score} - {data.away_score} {data.away_team.name}"
    events: list[NotificationEvent] = []
    seen: set[str] = set()
    for roster in rosters:
        owner = roster.user_id
        if not owner or owner == actor_user_id or owner in seen:
            continue
        seen.add(owner)
        events.append(NotificationEvent(
            recipient_user_id=owner,
            kind=MATCH_RESULT,
            title=title,
            body=competition.name,
            entity_type=competition.type,
            entity_id=competition.id,
        ))
    return events


def dispatch(sink: NotificationSink, events: Iterable[NotificationEvent]) -> None:
    """Send each event; failures are logged and do not propagate."""
    for event in events:
        try:
            sink.send(event)
        except Exception:
            logger.exception("Notification to %s failed", event.recipient_user_id)
