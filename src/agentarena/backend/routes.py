"""
API routes for the agent arena backend.

Turn routes are plain `def` so the blocking generation call runs in the
threadpool instead of on the event loop.
"""

from functools import lru_cache
from typing import Generator, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from agentarena.agents import OpenAIGenerator
from agentarena.db import Repository, get_session
from agentarena.errors import InvalidPlayer, NotFound
from agentarena.game import (
    GAME_MASTER,
    PlayerSpeaker,
    TurnResult,
    advance_turn,
    create_game,
    end_game,
    get_game,
    get_game_summary,
)
from agentarena.game.turns import TextGenerator
from .schemas import (
    CreateGameRequest,
    CreateGameResponse,
    EndGameRequest,
    EndGameResponse,
    GameDetailsResponse,
    GameListResponse,
    GameResponse,
    GameSummary,
    GameSummaryResponse,
    MessageResponse,
    SettlementResponse,
    TurnResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)

# Create router
router = APIRouter(prefix="/api")


# Dependency to get database session
def get_db_session() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    The whole request is one transaction.

    Yields:
        SQLAlchemy session instance
    """
    with get_session() as session:
        yield session


@lru_cache(maxsize=1)
def get_generator() -> TextGenerator:
    """Dependency that provides the shared text generation service."""
    return OpenAIGenerator()


def _turn_response(result: TurnResult) -> TurnResponse:
    return TurnResponse(
        response=result.text,
        speaker=result.speaker,
        next_player=result.next_player,
        current_turn=result.current_turn,
        active_players=result.active_players,
        eliminated=result.eliminated,
        elimination_reason=result.elimination_reason,
        game_over=result.game_over,
        settlement=(
            SettlementResponse.model_validate(result.settlement)
            if result.settlement
            else None
        ),
    )


# ===== Game Endpoints =====


@router.post("/games", response_model=CreateGameResponse)
async def create_game_endpoint(
    request: Optional[CreateGameRequest] = None,
    session: Session = Depends(get_db_session),
):
    """
    Create a new game.

    Every user holding at least `gameCost` tokens joins and is charged the stake.
    """
    cost = request.game_cost if request else CreateGameRequest().game_cost
    repo = Repository(session)
    game = create_game(repo, cost=cost)
    return CreateGameResponse(game=GameResponse.model_validate(game))


@router.get("/games", response_model=GameListResponse)
async def list_games(
    finished: Optional[bool] = Query(None, description="Filter by whether a winner exists"),
    limit: Optional[int] = Query(50, description="Maximum results"),
    offset: Optional[int] = Query(0, description="Offset for pagination"),
    session: Session = Depends(get_db_session),
):
    """List games, newest first."""
    repo = Repository(session)
    games = repo.get_games(finished=finished, limit=limit, offset=offset)
    return GameListResponse(
        games=[GameResponse.model_validate(g) for g in games],
        total=repo.count_games(finished=finished),
    )


@router.get("/games/{game_id}", response_model=GameDetailsResponse)
async def get_game_details(game_id: int, session: Session = Depends(get_db_session)):
    """Get a game with its full message history."""
    repo = Repository(session)
    game = get_game(repo, game_id)
    messages = repo.get_game_messages(game.id)
    return GameDetailsResponse(
        game=GameResponse.model_validate(game),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )


@router.post("/games/{game_id}/turn", response_model=TurnResponse)
def advance_game_turn(
    game_id: int,
    session: Session = Depends(get_db_session),
    generator: TextGenerator = Depends(get_generator),
):
    """Advance the game by one turn, letting the stored next player speak."""
    result = advance_turn(Repository(session), generator, game_id)
    return _turn_response(result)


@router.post("/games/{game_id}/gameMaster", response_model=TurnResponse)
def game_master_turn(
    game_id: int,
    session: Session = Depends(get_db_session),
    generator: TextGenerator = Depends(get_generator),
):
    """Force a Game Master turn."""
    result = advance_turn(Repository(session), generator, game_id, speaker=GAME_MASTER)
    return _turn_response(result)


@router.post("/games/{game_id}/players/{user_id}", response_model=TurnResponse)
def player_turn(
    game_id: int,
    user_id: int,
    session: Session = Depends(get_db_session),
    generator: TextGenerator = Depends(get_generator),
):
    """Force a turn for one participant, who must still be active."""
    repo = Repository(session)
    game = get_game(repo, game_id)
    participant = next((p for p in game.players if p["user_id"] == user_id), None)
    if participant is None:
        raise InvalidPlayer(f"User {user_id} is not a player in game {game_id}")

    result = advance_turn(
        repo, generator, game_id, speaker=PlayerSpeaker(participant["handle"])
    )
    return _turn_response(result)


@router.post("/games/{game_id}/end", response_model=EndGameResponse)
async def end_game_endpoint(
    game_id: int,
    request: EndGameRequest,
    session: Session = Depends(get_db_session),
):
    """Settle a game in favour of an active player."""
    settlement = end_game(Repository(session), game_id, request.winner)
    return EndGameResponse(result=SettlementResponse.model_validate(settlement))


@router.get("/games/{game_id}/summary", response_model=GameSummaryResponse)
async def get_game_summary_endpoint(
    game_id: int, session: Session = Depends(get_db_session)
):
    """Turn count, player counts, winner and per-speaker message counts."""
    summary = get_game_summary(Repository(session), game_id)
    return GameSummaryResponse(summary=GameSummary.model_validate(summary))


# ===== User Endpoints =====


@router.get("/users", response_model=UserListResponse)
async def list_users(session: Session = Depends(get_db_session)):
    """List all users with their balances."""
    users = Repository(session).get_users()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users], total=len(users)
    )


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def get_user(user_id: int, session: Session = Depends(get_db_session)):
    """Get a specific user by ID."""
    user = Repository(session).get_user_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return UserDetailResponse(user=UserResponse.model_validate(user))
