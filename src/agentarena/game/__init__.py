"""
Game engine: speaker resolution, turn advancement and the game lifecycle.
"""

from .lifecycle import (
    GameSummary,
    Payout,
    Settlement,
    compute_payout,
    create_game,
    end_game,
    get_game,
    get_game_messages,
    get_game_summary,
)
from .speakers import GAME_MASTER, GameMaster, PlayerSpeaker, Speaker
from .turns import TurnResult, advance_turn, is_elimination_due

__all__ = [
    "GameSummary",
    "Payout",
    "Settlement",
    "compute_payout",
    "create_game",
    "end_game",
    "get_game",
    "get_game_messages",
    "get_game_summary",
    "GAME_MASTER",
    "GameMaster",
    "PlayerSpeaker",
    "Speaker",
    "TurnResult",
    "advance_turn",
    "is_elimination_due",
]
