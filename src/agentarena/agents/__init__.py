"""
Text generation service: persona contexts and the OpenAI-backed generator.
"""

from .generator import OpenAIGenerator, is_transient_error
from .personas import (
    EliminationRequest,
    HistoryEntry,
    KickDecision,
    PersonaContext,
    PlayerToKick,
)

__all__ = [
    "OpenAIGenerator",
    "is_transient_error",
    "EliminationRequest",
    "HistoryEntry",
    "KickDecision",
    "PersonaContext",
    "PlayerToKick",
]
