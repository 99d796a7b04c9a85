"""
Persona contexts handed to the text generation service.

A context carries everything a persona may see on its turn: who it is, the
active roster and a bounded window of recent history. Rendering to chat
messages lives here so the generator stays a thin transport.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from agentarena.constants import GAME_MASTER_HANDLE, HOUSE_FEE_PERCENT
from agentarena.prompts import (
    GAME_MASTER_PROMPT,
    GAME_STATE_TEMPLATE,
    KICK_PLAYER_PROMPT,
    PLAYER_PROMPT,
)

EMPTY_HISTORY = "Game is starting. Waiting for the Game Master's first message."


@dataclass
class HistoryEntry:
    handle: str
    message: str


def render_history(history: list[HistoryEntry]) -> str:
    if not history:
        return EMPTY_HISTORY
    return "\n".join(f"@{entry.handle}: {entry.message}" for entry in history)


@dataclass
class PersonaContext:
    """Input for one free-form narrative turn."""

    game_id: int
    current_turn: int
    handle: str
    persona_prompt: str
    active_players: list[str]
    elimination_interval: int
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def is_game_master(self) -> bool:
        return self.handle == GAME_MASTER_HANDLE

    def system_prompt(self) -> str:
        if self.is_game_master:
            return GAME_MASTER_PROMPT.format(
                fee_percent=HOUSE_FEE_PERCENT,
                elimination_interval=self.elimination_interval,
                game_master_prompt=self.persona_prompt,
            )
        return PLAYER_PROMPT.format(
            fee_percent=HOUSE_FEE_PERCENT,
            handle=self.handle,
            persona_prompt=self.persona_prompt,
        )

    def to_messages(self) -> list[dict[str, str]]:
        if self.is_game_master:
            instruction = (
                "It is your turn, Game Master. Continue the narrative and "
                "@tag the player who should act next."
            )
        else:
            instruction = (
                f"It is your turn, @{self.handle}. Respond in character and "
                "optionally @tag one other player to act next."
            )
        state = GAME_STATE_TEMPLATE.format(
            game_id=self.game_id,
            current_turn=self.current_turn,
            active_players=", ".join(f"@{h}" for h in self.active_players),
            history=render_history(self.history),
            instruction=instruction,
        )
        return [
            {"role": "system", "content": self.system_prompt()},
            {"role": "user", "content": state},
        ]


@dataclass
class EliminationRequest:
    """Input for the structured elimination decision."""

    game_id: int
    current_turn: int
    game_master_prompt: str
    active_players: list[str]
    history: list[HistoryEntry] = field(default_factory=list)

    def to_messages(self) -> list[dict[str, str]]:
        state = GAME_STATE_TEMPLATE.format(
            game_id=self.game_id,
            current_turn=self.current_turn,
            active_players=", ".join(self.active_players),
            history=render_history(self.history),
            instruction="Choose exactly one of the active players to eliminate.",
        )
        return [
            {
                "role": "system",
                "content": KICK_PLAYER_PROMPT.format(
                    game_master_prompt=self.game_master_prompt
                ),
            },
            {"role": "user", "content": state},
        ]


class PlayerToKick(BaseModel):
    handle: str = Field(..., min_length=1, description="Handle of the player to eliminate")
    reason: str = Field(..., description="In-theme explanation of the elimination")


class KickDecision(BaseModel):
    """Structured output of the elimination decision."""

    model_config = ConfigDict(populate_by_name=True)

    player_to_kick: PlayerToKick = Field(..., alias="playerToKick")
