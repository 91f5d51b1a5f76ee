"""
SQLite schema for competition entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def competitions_schema() -> str:
    """Competition container. type: league | tournament."""
    return """
    CREATE TABLE IF NOT EXISTS competitions (
        id TEXT PRIMARY KEY,
        owner_id TEXT,
        name TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'league',
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_competitions_owner ON competitions(owner_id);
    """


def competition_rosters_schema() -> str:
    """Roster snapshots enrolled in a competition. data is JSON; version guards concurrent writes."""
    return """
    CREATE TABLE IF NOT EXISTS competition_rosters (
        id TEXT PRIMARY KEY,
        competition_id TEXT NOT NULL,
        user_id TEXT,
        original_roster_id TEXT,
        name TEXT NOT NULL,
        team_id TEXT NOT NULL,
        team_name TEXT NOT NULL,
        coach_name TEXT NOT NULL DEFAULT '',
        data TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_competition_rosters_competition ON competition_rosters(competition_id);
    CREATE INDEX IF NOT EXISTS ix_competition_rosters_user ON competition_rosters(user_id);
    """


def competition_matches_schema() -> str:
    """Fixture or played match. status: scheduled | played. data is JSON."""
    return """
    CREATE TABLE IF NOT EXISTS competition_matches (
        id TEXT PRIMARY KEY,
        competition_id TEXT NOT NULL,
        home_roster_id TEXT NOT NULL,
        away_roster_id TEXT NOT NULL,
        round TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'played',
        data TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_competition_matches_competition ON competition_matches(competition_id);
    CREATE INDEX IF NOT EXISTS ix_competition_matches_status ON competition_matches(competition_id, status);
    CREATE INDEX IF NOT EXISTS ix_competition_matches_home ON competition_matches(home_roster_id);
    CREATE INDEX IF NOT EXISTS ix_competition_matches_away ON competition_matches(away_roster_id);
    """


def progression_events_schema() -> str:
    """Append-only log of progression applied per (match, roster). retracted_at set on revert."""
    return """
    CREATE TABLE IF NOT EXISTS progression_events (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        roster_id TEXT NOT NULL,
        side TEXT NOT NULL,
        players_json TEXT NOT NULL,
        injury_ids_json TEXT NOT NULL DEFAULT '{}',
        served_suspensions_json TEXT NOT NULL DEFAULT '[]',
        applied_at TEXT NOT NULL,
        retracted_at TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_progression_events_match ON progression_events(match_id);
    CREATE INDEX IF NOT EXISTS ix_progression_events_roster ON progression_events(roster_id);
    """


def notifications_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        body TEXT NOT NULL DEFAULT '',
        entity_type TEXT,
        entity_id TEXT,
        is_read INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_notifications_user ON notifications(user_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Order: competitions, rosters, matches, progression_events, notifications."""
    return "\n".join([
        competitions_schema(),
        competition_rosters_schema(),
        competition_matches_schema(),
        progression_events_schema(),
        notifications_schema(),
    ])
