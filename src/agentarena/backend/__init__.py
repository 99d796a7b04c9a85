"""
FastAPI backend for the agent arena.

Provides REST API endpoints for creating games, advancing turns, settling
games and inspecting users.
"""

from .app import app
from .routes import get_db_session, get_generator

__all__ = ["app", "get_db_session", "get_generator"]
