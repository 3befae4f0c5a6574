from typing import Any, Dict, Optional


class TournamentError(Exception):
    """Base class for errors raised by the tournament core.

    ``details`` carries structured diagnostics (e.g. the actual group
    distribution, or how many participants a bracket is missing) and is
    merged into the HTTP error body.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(TournamentError):
    """The request is structurally invalid (bad counts, bounds or scores)."""


class StateError(TournamentError):
    """The request conflicts with the current state of a match or round."""


class NotFoundError(TournamentError):
    """An unknown tournament, match or participant was referenced."""
