"""
Error kinds raised by the leaderboard pipeline.
All of them derive from LeaderboardError so the CLI can report any pipeline failure in one place.
"""
from typing import Optional


class LeaderboardError(Exception):
    """Base class for every failure the pipeline reports."""


class TransportError(LeaderboardError):
    """
    A request could not be completed: connection failure, timeout, or a non-success HTTP status
    that survived the retry budget.
    """

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(LeaderboardError):
    """A response body was not the JSON array of objects the endpoint promises."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class EmptyResultError(LeaderboardError):
    """No repositories or no contributors were found where at least one was required."""


class PersistenceError(LeaderboardError):
    """The report could not be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


__all__ = ["LeaderboardError", "TransportError", "DecodeError", "EmptyResultError", "PersistenceError"]
