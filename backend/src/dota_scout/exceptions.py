"""Error types raised by the scouting store."""

from typing import Optional


class ScoutError(Exception):
    """Base class for store errors."""


class NetworkError(ScoutError):
    """Upstream request failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EntityNotFoundError(NetworkError):
    """Upstream has no entity with the requested id."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class TeamNotFoundError(ScoutError):
    """A team key was used that the store does not hold."""

    def __init__(self, team_key: str):
        super().__init__(f"Team not found: {team_key}")
        self.team_key = team_key
