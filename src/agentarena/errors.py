"""
Error taxonomy for the arena.

Every error carries the HTTP status the backend answers with. Only
UpstreamGenerationFailure is ever retried, and only inside the generator.
"""


class ArenaError(Exception):
    """Base class for all arena errors."""

    status_code: int = 500


class NotFound(ArenaError):
    """A game or user id does not exist."""

    status_code = 404


class InsufficientPlayers(ArenaError):
    """Fewer than two funded users at game creation."""


class AlreadyConcluded(ArenaError):
    """Mutation attempted on a game that already has a winner."""


class InvalidPlayer(ArenaError):
    """A turn or settlement was requested for a non-active participant."""


class UpstreamGenerationFailure(ArenaError):
    """The text generation service failed after retries."""


class SchemaViolation(ArenaError):
    """A structured generation response failed to parse or validate."""


class PersistenceFailure(ArenaError):
    """A storage operation failed."""
