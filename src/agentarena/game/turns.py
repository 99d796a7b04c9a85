"""
Turn engine.

One call to advance_turn resolves exactly one step of a game: an optional
elimination, then one narrative turn by the Game Master or a player, then the
choice of who speaks next. The caller owns the transaction; the game row is
locked for the duration of the call.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from agentarena.agents.personas import (
    EliminationRequest,
    HistoryEntry,
    KickDecision,
    PersonaContext,
)
from agentarena.constants import (
    ELIMINATION_INTERVAL_PER_PLAYER,
    GAME_MASTER_HANDLE,
    HISTORY_WINDOW,
)
from agentarena.db.models import Game
from agentarena.db.repository import Repository
from agentarena.errors import AlreadyConcluded, InvalidPlayer, SchemaViolation
from agentarena.game.lifecycle import Settlement, get_game, settle_game
from agentarena.game.speakers import (
    GAME_MASTER,
    GameMaster,
    PlayerSpeaker,
    Speaker,
    resolve_next_speaker,
    speaker_from_handle,
)

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def narrate(self, context: PersonaContext) -> str: ...

    def decide_elimination(self, request: EliminationRequest) -> KickDecision: ...


@dataclass
class TurnResult:
    game_id: int
    text: str
    speaker: str | None
    next_player: str
    current_turn: int
    active_players: list[str]
    eliminated: str | None = None
    elimination_reason: str | None = None
    game_over: bool = False
    settlement: Settlement | None = None


def elimination_interval(initial_players: int) -> int:
    return initial_players * ELIMINATION_INTERVAL_PER_PLAYER


def is_elimination_due(
    current_turn: int, last_elimination_turn: int, initial_players: int
) -> bool:
    """An elimination is due every players*3 turns, counted from the last one."""
    interval = elimination_interval(initial_players)
    return current_turn > 0 and current_turn >= last_elimination_turn + interval


def _history(repo: Repository, game_id: int) -> list[HistoryEntry]:
    return [
        HistoryEntry(handle=m.handle, message=m.message)
        for m in repo.get_recent_messages(game_id, HISTORY_WINDOW)
    ]


def build_persona_context(
    repo: Repository,
    game: Game,
    speaker: Speaker,
    active_players: list[str],
    current_turn: int,
) -> PersonaContext:
    if isinstance(speaker, GameMaster):
        persona_prompt = game.init_data["game_master_prompt"]
    else:
        participant = next(
            (p for p in game.players if p["handle"] == speaker.handle), None
        )
        if participant is None:
            raise InvalidPlayer(f"{speaker.handle} did not play in game {game.id}")
        persona_prompt = participant["prompt"]

    return PersonaContext(
        game_id=game.id,
        current_turn=current_turn,
        handle=speaker.handle,
        persona_prompt=persona_prompt,
        active_players=list(active_players),
        elimination_interval=elimination_interval(len(game.players)),
        history=_history(repo, game.id),
    )


def _eliminate(
    repo: Repository,
    generator: TextGenerator,
    game: Game,
    active_players: list[str],
    current_turn: int,
) -> tuple[str, str, str]:
    """Ask the Game Master who leaves, record it, and return (handle, reason, text)."""
    decision = generator.decide_elimination(
        EliminationRequest(
            game_id=game.id,
            current_turn=current_turn,
            game_master_prompt=game.init_data["game_master_prompt"],
            active_players=list(active_players),
            history=_history(repo, game.id),
        )
    )
    kicked = speaker_from_handle(decision.player_to_kick.handle, active_players)
    if not isinstance(kicked, PlayerSpeaker):
        raise SchemaViolation(
            f"Elimination chose {decision.player_to_kick.handle!r}, "
            f"which is not an active player"
        )

    reason = decision.player_to_kick.reason
    text = f"@{kicked.handle} has been eliminated! {reason}".strip()
    repo.add_message(game.id, GAME_MASTER_HANDLE, text)
    logger.info(
        "Game %s turn %d: eliminated %s (%s)", game.id, current_turn, kicked.handle, reason
    )
    return kicked.handle, reason, text


def advance_turn(
    repo: Repository,
    generator: TextGenerator,
    game_id: int,
    speaker: Speaker | None = None,
) -> TurnResult:
    """
    Advance a game by one turn.

    Args:
        repo: Repository bound to the transaction
        generator: Text generation service
        game_id: Game to advance
        speaker: Force this speaker instead of the stored next player

    Returns:
        TurnResult whose text is the generated narrative, or the
        elimination/termination text when the game ended during this call

    Raises:
        NotFound: If the game does not exist
        AlreadyConcluded: If the game already has a winner
        InvalidPlayer: If a forced speaker is not an active player
        UpstreamGenerationFailure, SchemaViolation: From the generator
    """
    game = get_game(repo, game_id, for_update=True)

    if game.winner_id is not None:
        raise AlreadyConcluded(f"Game {game_id} is already finished")

    state = game.current_data
    active_players = list(state["active_players"])
    current_turn = state["current_turn"]
    last_elimination_turn = state["last_elimination_turn"]

    if len(active_players) <= 1:
        if not active_players:
            raise AlreadyConcluded(f"Game {game_id} has no active players left")
        # A survivor without a recorded winner: finish the settlement
        settlement = settle_game(repo, game, active_players[0])
        return TurnResult(
            game_id=game.id,
            text=settlement.message,
            speaker=None,
            next_player=GAME_MASTER_HANDLE,
            current_turn=current_turn,
            active_players=active_players,
            game_over=True,
            settlement=settlement,
        )

    if isinstance(speaker, PlayerSpeaker):
        speaker = speaker_from_handle(speaker.handle, active_players)
        if isinstance(speaker, GameMaster):
            raise InvalidPlayer(f"Player is not active in game {game_id}")

    current = speaker or speaker_from_handle(state["next_player"], active_players)
    eliminated = reason = None
    elimination_text = ""

    if is_elimination_due(current_turn, last_elimination_turn, len(game.players)):
        eliminated, reason, elimination_text = _eliminate(
            repo, generator, game, active_players, current_turn
        )
        active_players.remove(eliminated)
        last_elimination_turn = current_turn
        # The eliminated player can no longer speak; everyone else yields to the Game Master
        if speaker is None or speaker.handle == eliminated:
            current = GAME_MASTER

        if len(active_players) == 1:
            repo.update_game_state(
                game,
                current_turn=current_turn + 1,
                active_players=active_players,
                next_player=GAME_MASTER_HANDLE,
                last_elimination_turn=last_elimination_turn,
            )
            settlement = settle_game(repo, game, active_players[0])
            return TurnResult(
                game_id=game.id,
                text=f"{elimination_text}\n\n{settlement.message}",
                speaker=None,
                next_player=GAME_MASTER_HANDLE,
                current_turn=current_turn + 1,
                active_players=active_players,
                eliminated=eliminated,
                elimination_reason=reason,
                game_over=True,
                settlement=settlement,
            )

    context = build_persona_context(repo, game, current, active_players, current_turn)
    text = generator.narrate(context)
    repo.add_message(game.id, current.handle, text)

    following = resolve_next_speaker(text, current, active_players)
    repo.update_game_state(
        game,
        current_turn=current_turn + 1,
        active_players=active_players,
        next_player=following.handle,
        last_elimination_turn=last_elimination_turn,
    )
    logger.info(
        "Game %s turn %d: %s spoke, next is %s",
        game.id,
        current_turn,
        current.handle,
        following.handle,
    )

    return TurnResult(
        game_id=game.id,
        text=text,
        speaker=current.handle,
        next_player=following.handle,
        current_turn=current_turn + 1,
        active_players=active_players,
        eliminated=eliminated,
        elimination_reason=reason,
    )
