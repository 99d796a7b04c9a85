"""
Database package for the agent arena.

SQLAlchemy-based persistence gateway: models, session management and the
repository used by the game engine.
"""

from .models import Base, Game, Message, User
from .session import get_session, init_db, get_engine, reset_engine
from .repository import Repository

__all__ = [
    "Base",
    "Game",
    "Message",
    "User",
    "get_session",
    "init_db",
    "get_engine",
    "reset_engine",
    "Repository",
]
