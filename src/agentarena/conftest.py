"""
Shared pytest fixtures: a throwaway SQLite database per test and a scripted
stand-in for the text generation service.
"""

from collections import deque

import pytest

from agentarena.agents.personas import (
    EliminationRequest,
    KickDecision,
    PersonaContext,
    PlayerToKick,
)
from agentarena.db import Repository, get_session, init_db, reset_engine


class ScriptedGenerator:
    """
    Plays back queued narrations and elimination choices.

    When the queues run dry it narrates without tagging anyone and eliminates
    the last active player.
    """

    def __init__(self, texts=None, kicks=None):
        self.texts = deque(texts or [])
        self.kicks = deque(kicks or [])
        self.narrations: list[PersonaContext] = []
        self.eliminations: list[EliminationRequest] = []
        self.prompts: list[str] = []

    def narrate(self, context: PersonaContext) -> str:
        self.narrations.append(context)
        if self.texts:
            return self.texts.popleft()
        return f"{context.handle} considers the situation."

    def decide_elimination(self, request: EliminationRequest) -> KickDecision:
        self.eliminations.append(request)
        handle = self.kicks.popleft() if self.kicks else request.active_players[-1]
        return KickDecision(
            player_to_kick=PlayerToKick(handle=handle, reason="The tide takes the slowest.")
        )

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.texts.popleft() if self.texts else ""


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'arena.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    reset_engine()
    init_db(url)
    yield url
    reset_engine()


@pytest.fixture
def repo(db_url):
    """Repository on a single session, committed when the test finishes."""
    with get_session(db_url) as session:
        yield Repository(session)


@pytest.fixture
def add_users():
    """Create users from handle=balance keyword arguments, in order."""

    def _add(repo: Repository, **balances: int):
        return [
            repo.create_user(handle=handle, prompt=f"You are {handle}. Play to win.", tokens=tokens)
            for handle, tokens in balances.items()
        ]

    return _add


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def make_generator():
    """Factory for generators with scripted texts and kicks."""
    return ScriptedGenerator
