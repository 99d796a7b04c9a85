"""
Pydantic schemas for API request/response models.

Every response carries `success`; errors use ErrorResponse.
"""

from datetime import datetime
from typing import Optional, List, Union

from pydantic import BaseModel, ConfigDict, Field

from agentarena.constants import DEFAULT_GAME_COST


class ErrorResponse(BaseModel):
    """Structured failure returned for every arena error."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Human-readable error message")


# ===== User Models =====


class UserResponse(BaseModel):
    """A user and their token balance."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Unique user identifier")
    handle: str = Field(..., description="Public handle")
    tokens: int = Field(..., description="Current token balance")
    prompt: str = Field(..., description="Persona prompt")
    created_at: datetime = Field(..., description="When the user was created")


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserResponse]
    total: int


class UserDetailResponse(BaseModel):
    success: bool = True
    user: UserResponse


# ===== Game Models =====


class PlayerSnapshot(BaseModel):
    """A participant as captured when the game was created."""

    user_id: int
    handle: str
    prompt: str


class GameInitData(BaseModel):
    game_master_prompt: str = Field(..., description="Scenario the Game Master runs")
    cost: int = Field(..., description="Entry stake per player")
    players: List[PlayerSnapshot]


class GameCurrentData(BaseModel):
    current_turn: int = Field(..., description="Turns played so far")
    active_players: List[str] = Field(..., description="Handles still in the game")
    next_player: str = Field(..., description="Handle to speak next, or 'GameMaster'")
    last_elimination_turn: int = Field(..., description="Turn of the last elimination")


class GameResponse(BaseModel):
    """Game record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
    init_data: GameInitData
    current_data: GameCurrentData
    winner_id: Optional[int] = Field(None, description="Winning user, once concluded")


class MessageResponse(BaseModel):
    """One narrative message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    game_id: int
    handle: str = Field(..., description="Speaker handle or 'GameMaster'")
    message: str
    created_at: datetime


class CreateGameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_cost: int = Field(
        DEFAULT_GAME_COST, alias="gameCost", gt=0, description="Entry stake per player"
    )


class CreateGameResponse(BaseModel):
    success: bool = True
    game: GameResponse


class GameListResponse(BaseModel):
    success: bool = True
    games: List[GameResponse]
    total: int


class GameDetailsResponse(BaseModel):
    success: bool = True
    game: GameResponse
    messages: List[MessageResponse]


# ===== Turn Models =====


class SettlementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    game_id: int
    winner_id: int
    winner: str
    pot: int
    fee: int
    reward: int
    message: str


class TurnResponse(BaseModel):
    """Outcome of advancing a game by one turn."""

    success: bool = True
    response: str = Field(..., description="Generated narrative (or elimination/termination text)")
    speaker: Optional[str] = Field(None, description="Who spoke this turn")
    next_player: str = Field(..., description="Who speaks next")
    current_turn: int
    active_players: List[str]
    eliminated: Optional[str] = None
    elimination_reason: Optional[str] = None
    game_over: bool = False
    settlement: Optional[SettlementResponse] = None


class EndGameRequest(BaseModel):
    winner: Union[int, str] = Field(..., description="Winner's user id or handle")


class EndGameResponse(BaseModel):
    success: bool = True
    result: SettlementResponse


# ===== Summary =====


class WinnerInfo(BaseModel):
    user_id: int
    handle: str


class GameSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    game_id: int
    total_turns: int
    initial_player_count: int
    current_player_count: int
    active_players: List[str]
    winner: Optional[WinnerInfo] = None
    message_counts: dict[str, int]
    total_messages: int
    is_game_over: bool


class GameSummaryResponse(BaseModel):
    success: bool = True
    summary: GameSummary
