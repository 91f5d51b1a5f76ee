"""
Error taxonomy for the competition engine.
Every error carries enough context (field, state, ids) to render a user-facing message.
"""
from __future__ import annotations

# ---------- Base ----------


class CompetitionError(ValueError):
    """Base class for all engine errors."""


# ---------- Validation ----------


class ValidationError(CompetitionError):
    """Malformed or semantically invalid input. No state has been touched."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TooManyMVPsError(ValidationError):
    """More than one MVP on a single team side."""

    def __init__(self, side: str, count: int) -> None:
        super().__init__(f"Max 1 MVP per team ({side}): got {count}", field=f"{side}.players")
        self.side = side
        self.count = count


class InvalidRosterReferenceError(ValidationError):
    """Roster id does not belong to the competition (or sides reference the same roster)."""

    def __init__(self, message: str, roster_id: str | None = None, field: str | None = None) -> None:
        super().__init__(message, field=field)
        self.roster_id = roster_id


# ---------- State ----------


class StateError(CompetitionError):
    """Operation not allowed in the current state."""

    def __init__(self, message: str, current_state: str | None = None) -> None:
        super().__init__(message)
        self.current_state = current_state


class MatchAlreadyPlayedError(StateError):
    """Report on a match that is not scheduled."""


class MatchNotPlayedError(StateError):
    """Edit on a match that has not been reported yet."""


class InsufficientParticipantsError(StateError):
    """Schedule generation with fewer than two rosters."""


class ScheduleAlreadyExistsError(StateError):
    """Schedule generation while scheduled fixtures still exist."""


# ---------- Lookup ----------


class NotFoundError(CompetitionError):
    """Unknown competition, roster or match id."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


# ---------- Conflicts ----------


class ConflictError(CompetitionError):
    """Write conflicts with existing data."""


class DuplicateIdError(ConflictError):
    """Create with an id that already exists."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} with this ID already exists: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class StaleRosterVersionError(ConflictError):
    """Roster snapshot changed since it was read; caller must retry with fresh data."""

    def __init__(self, roster_id: str, expected_version: int) -> None:
        super().__init__(
            f"Roster {roster_id} was modified concurrently (expected version {expected_version})"
        )
        self.roster_id = roster_id
        self.expected_version = expected_version
