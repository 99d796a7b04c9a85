"""
Game lifecycle: creating games with staked players, settling the pot, and
read-only projections of a game.

All functions work on a Repository whose session is the transaction
boundary, so staking every player and inserting the game (or crediting the
winner and concluding the game) commit or roll back together.
"""

import logging
import random
from dataclasses import dataclass, field

from agentarena.constants import (
    DEFAULT_GAME_COST,
    GAME_MASTER_HANDLE,
    HOUSE_FEE_PERCENT,
    MIN_PLAYERS,
)
from agentarena.db.models import Game, Message
from agentarena.db.repository import Repository, is_reserved_handle
from agentarena.db.samples import GAME_MASTER_PROMPTS
from agentarena.errors import (
    AlreadyConcluded,
    InsufficientPlayers,
    InvalidPlayer,
    NotFound,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Payout:
    pot: int
    fee: int
    reward: int


def compute_payout(cost: int, players: int) -> Payout:
    """Pot is every stake; the house keeps floor(10%) and the winner takes the rest."""
    pot = cost * players
    fee = pot * HOUSE_FEE_PERCENT // 100
    return Payout(pot=pot, fee=fee, reward=pot - fee)


@dataclass
class Settlement:
    game_id: int
    winner_id: int
    winner: str
    pot: int
    fee: int
    reward: int
    message: str


@dataclass
class GameSummary:
    game_id: int
    total_turns: int
    initial_player_count: int
    current_player_count: int
    active_players: list[str]
    winner: dict | None
    message_counts: dict[str, int] = field(default_factory=dict)
    total_messages: int = 0
    is_game_over: bool = False


def create_game(
    repo: Repository,
    cost: int = DEFAULT_GAME_COST,
    theme: str | None = None,
    rng: random.Random | None = None,
) -> Game:
    """
    Create a game with every user who can afford the entry cost.

    Args:
        repo: Repository bound to the transaction
        cost: Entry stake deducted from each participant
        theme: Game Master prompt; picked from the sample set when omitted
        rng: Random source for the theme choice

    Returns:
        The new Game

    Raises:
        ValueError: If cost is not a positive integer
        InsufficientPlayers: If fewer than two users hold at least `cost` tokens
    """
    if isinstance(cost, bool) or not isinstance(cost, int) or cost <= 0:
        raise ValueError(f"Game cost must be a positive integer, got {cost!r}")

    users = repo.get_users(for_update=True)
    # A player named like the Game Master could never be given a turn
    eligible = [
        user
        for user in users
        if user.tokens >= cost and not is_reserved_handle(user.handle)
    ]

    if len(eligible) < MIN_PLAYERS:
        raise InsufficientPlayers(
            f"Not enough users with sufficient tokens to start a game: "
            f"{len(eligible)} of {len(users)} users hold at least {cost} tokens"
        )

    if theme is None:
        theme = (rng or random).choice(GAME_MASTER_PROMPTS)

    game = repo.create_game(
        init_data={
            "game_master_prompt": theme,
            "cost": cost,
            "players": [
                {"user_id": user.id, "handle": user.handle, "prompt": user.prompt}
                for user in eligible
            ],
        },
        current_data={
            "current_turn": 0,
            "active_players": [user.handle for user in eligible],
            "next_player": GAME_MASTER_HANDLE,
            "last_elimination_turn": 0,
        },
    )

    for user in eligible:
        repo.adjust_tokens(user, -cost)

    logger.info(
        "Created game %s with %d players at %d tokens each",
        game.id,
        len(eligible),
        cost,
    )
    return game


def get_game(repo: Repository, game_id: int, for_update: bool = False) -> Game:
    """Load a game or raise NotFound."""
    game = repo.get_game_by_id(game_id, for_update=for_update)
    if game is None:
        raise NotFound(f"Game with ID {game_id} not found")
    return game


def get_game_messages(repo: Repository, game_id: int) -> list[Message]:
    get_game(repo, game_id)
    return repo.get_game_messages(game_id)


def settle_game(repo: Repository, game: Game, winner_handle: str) -> Settlement:
    """
    Credit the winner and conclude a locked, unfinished game.

    This is the only place a winner is ever recorded.
    """
    if game.winner_id is not None:
        raise AlreadyConcluded(f"Game {game.id} is already finished")

    participant = next(
        (p for p in game.players if p["handle"] == winner_handle), None
    )
    if participant is None:
        raise InvalidPlayer(f"{winner_handle} did not play in game {game.id}")

    user = repo.get_user_by_id(participant["user_id"], for_update=True)
    if user is None:
        raise NotFound(f"User with ID {participant['user_id']} not found")

    payout = compute_payout(game.cost, len(game.players))
    repo.adjust_tokens(user, payout.reward)
    repo.set_game_winner(game, user.id)
    if game.active_players != [winner_handle]:
        repo.update_game_state(
            game, active_players=[winner_handle], next_player=GAME_MASTER_HANDLE
        )

    message = f"Game Over! {user.handle} is the winner and receives {payout.reward} tokens!"
    repo.add_message(game.id, GAME_MASTER_HANDLE, message)

    logger.info(
        "Game %s won by %s: pot %d, fee %d, reward %d",
        game.id,
        user.handle,
        payout.pot,
        payout.fee,
        payout.reward,
    )
    return Settlement(
        game_id=game.id,
        winner_id=user.id,
        winner=user.handle,
        pot=payout.pot,
        fee=payout.fee,
        reward=payout.reward,
        message=message,
    )


def end_game(repo: Repository, game_id: int, winner: str | int) -> Settlement:
    """
    End a game and distribute the pot.

    Args:
        repo: Repository bound to the transaction
        game_id: Game to settle
        winner: Winner's handle or user id; must still be an active player

    Raises:
        NotFound: If the game does not exist
        AlreadyConcluded: If the game already has a winner
        InvalidPlayer: If the winner is not an active player of this game
    """
    game = get_game(repo, game_id, for_update=True)

    if game.winner_id is not None:
        raise AlreadyConcluded(f"Game {game_id} is already finished")

    if isinstance(winner, int):
        participant = next((p for p in game.players if p["user_id"] == winner), None)
        handle = participant["handle"] if participant else None
    else:
        handle = next(
            (p["handle"] for p in game.players if p["handle"].casefold() == winner.casefold()),
            None,
        )

    if handle is None or handle not in game.active_players:
        raise InvalidPlayer(f"{winner} is not an active player in game {game_id}")

    return settle_game(repo, game, handle)


def get_game_summary(repo: Repository, game_id: int) -> GameSummary:
    """Read-only aggregate view of a game."""
    game = repo.get_game_by_id(game_id, with_relations=True)
    if game is None:
        raise NotFound(f"Game with ID {game_id} not found")

    message_counts = repo.count_messages_by_handle(game.id)
    winner = None
    if game.winner is not None:
        winner = {"user_id": game.winner.id, "handle": game.winner.handle}

    return GameSummary(
        game_id=game.id,
        total_turns=game.current_turn,
        initial_player_count=len(game.players),
        current_player_count=len(game.active_players),
        active_players=list(game.active_players),
        winner=winner,
        message_counts=message_counts,
        total_messages=sum(message_counts.values()),
        is_game_over=game.is_over,
    )
