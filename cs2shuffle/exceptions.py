"""
Exceptions for the shuffle tournament core.

Validation failures carry a message that names the violated precondition and
what is needed to satisfy it, so the HTTP layer and CLI can show them to an
operator unchanged.
"""

from typing import Optional


# ========== Base Exception ==========


class ShuffleError(Exception):
    """Base exception for all shuffle tournament errors."""

    pass


# ========== Lookup Errors ==========


class NotFoundError(ShuffleError):
    """Base exception for missing records."""

    pass


class TournamentNotFound(NotFoundError):
    """Raised when a shuffle tournament id does not exist."""

    def __init__(self, tournament_id: Optional[int] = None):
        self.tournament_id = tournament_id
        if tournament_id is None:
            msg = "No shuffle tournament found. Please create a shuffle tournament first."
        else:
            msg = (f"Shuffle tournament {tournament_id} not found. "
                   "Please create a shuffle tournament first.")
        super().__init__(msg)


class PlayerNotFound(NotFoundError):
    """Raised when one or more player ids cannot be resolved."""

    def __init__(self, player_ids):
        self.player_ids = list(player_ids)
        super().__init__(f"Some players not found: {', '.join(self.player_ids)}")


class MatchNotFound(NotFoundError):
    """Raised when a match slug does not exist in the tournament."""

    def __init__(self, match_slug: str):
        self.match_slug = match_slug
        super().__init__(f"Match not found: {match_slug}")


class RatingTemplateNotFound(NotFoundError):
    """Raised when a rating template id does not exist."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Rating template not found: {template_id}")


# ========== Validation Errors ==========


class InvalidTournamentConfig(ShuffleError, ValueError):
    """Raised when a tournament configuration fails validation."""

    pass


class TournamentStateError(ShuffleError, ValueError):
    """Raised when the tournament status does not allow the requested mutation."""

    pass


class InvalidRound(ShuffleError, ValueError):
    """Raised for a round number outside 1..total rounds or out of sequence."""

    pass


class InvalidMatchResult(ShuffleError, ValueError):
    """Raised when a reported match result or status change is not acceptable."""

    pass


class EmptyInput(ShuffleError, ValueError):
    """Raised when an operation that needs players receives none."""

    pass


class InsufficientPlayers(ShuffleError, ValueError):
    """Raised when fewer players are available than the operation requires."""

    def __init__(self, message: str, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(message)

    @property
    def missing(self) -> int:
        return max(0, self.required - self.available)


class InvalidRatingTemplate(ShuffleError, ValueError):
    """Raised when a rating template cannot be created or removed."""

    pass
