"""
Who speaks next.

Speakers are a tagged variant, GameMaster or PlayerSpeaker(handle), rather
than raw strings; the "GameMaster" pseudo-handle only exists at the storage
boundary.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from agentarena.constants import GAME_MASTER_HANDLE


@dataclass(frozen=True)
class GameMaster:
    handle: ClassVar[str] = GAME_MASTER_HANDLE

    def __str__(self) -> str:
        return self.handle


@dataclass(frozen=True)
class PlayerSpeaker:
    handle: str

    def __str__(self) -> str:
        return self.handle


Speaker = GameMaster | PlayerSpeaker

GAME_MASTER = GameMaster()


def speaker_from_handle(handle: str | None, active_players: list[str]) -> Speaker:
    """
    Parse a stored handle back into a Speaker.

    Anything that is not a currently active player (including a player who has
    been eliminated since being tagged) resolves to the Game Master.
    """
    if handle is None or handle == GAME_MASTER_HANDLE:
        return GAME_MASTER
    for active in active_players:
        if active.casefold() == handle.casefold():
            return PlayerSpeaker(active)
    return GAME_MASTER


def _mention_pattern(handles: list[str]) -> re.Pattern:
    # Longest first so "@Al" never shadows "@Alice"
    alternatives = sorted(set(handles), key=len, reverse=True)
    escaped = "|".join(re.escape(h) for h in alternatives)
    return re.compile(rf"@({escaped})(?![\w-])", re.IGNORECASE)


def find_mentions(text: str, active_players: list[str]) -> list[Speaker]:
    """All addressable @mentions in order of appearance."""
    candidates = [GAME_MASTER_HANDLE, *active_players]
    canonical = {h.casefold(): h for h in candidates}
    mentions: list[Speaker] = []
    for match in _mention_pattern(candidates).finditer(text):
        handle = canonical[match.group(1).casefold()]
        mentions.append(speaker_from_handle(handle, active_players))
    return mentions


def resolve_next_speaker(
    text: str, current: Speaker, active_players: list[str]
) -> Speaker:
    """
    Pick the next speaker from a narrative turn.

    The first @mention that is neither the current speaker nor an inactive
    handle wins. With no such mention the turn goes back to the Game Master.
    """
    for speaker in find_mentions(text, active_players):
        if speaker != current:
            return speaker
    return GAME_MASTER
