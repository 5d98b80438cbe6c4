"""
League exception hierarchy.

Validation outcomes (activity outside the window, segment missing, not
enough laps) are NOT exceptions; they travel as `Rejection` values. The
classes here cover faults: upstream transport/auth, malformed upstream
timestamps, persistence failures and missing rows.
"""


class LeagueError(Exception):
    """Base class for every error raised by the league package."""


class UpstreamError(LeagueError):
    """Strava could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamAuthError(UpstreamError):
    """401 from Strava: access token invalid or expired."""


class UpstreamNotFoundError(UpstreamError):
    """404 from Strava: activity deleted or private."""


class NotConnectedError(LeagueError):
    """Participant has no stored Strava token."""

    def __init__(self, participant_id: int):
        super().__init__(f"Participant {participant_id} is not connected to Strava")
        self.participant_id = participant_id


class TimestampError(LeagueError, ValueError):
    """An upstream timestamp lacks an explicit UTC designator or is unparseable."""

    def __init__(self, raw, problem: str):
        super().__init__(f"Invalid upstream timestamp {raw!r}: {problem}")
        self.raw = raw
        self.problem = problem


class PersistenceError(LeagueError):
    """A reconciliation transaction failed and was rolled back."""


class NotFoundError(LeagueError):
    def __init__(self, resource: str, identifier):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class InvalidRowError(LeagueError):
    """A stored row is missing a field the engine requires."""

    def __init__(self, table: str, row_id, field: str):
        super().__init__(f"{table} row {row_id} is missing required field {field!r}")
        self.table = table
        self.row_id = row_id
        self.field = field
