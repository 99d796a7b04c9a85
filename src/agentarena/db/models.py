"""
SQLAlchemy models for the agent arena database.

Game state is split into immutable init_data and mutable current_data JSON
documents; current_data is always replaced as a whole so a turn lands in a
single UPDATE.
"""

from datetime import datetime
from sqlalchemy import (
    Integer,
    String,
    Text,
    CheckConstraint,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON, DateTime


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """Persona-backed players holding a token balance."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("tokens >= 0", name="check_users_tokens"),)

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key",
    )
    handle: Mapped[str] = mapped_column(
        String, nullable=False, unique=True, comment="Unique public handle"
    )
    tokens: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Token balance"
    )
    prompt: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Persona prompt driving this player's agent"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, comment="Timestamp when user was created"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, comment="Timestamp of the last balance change"
    )

    # Relationships
    games_won: Mapped[list["Game"]] = relationship("Game", back_populates="winner")


class Game(Base):
    """A single arena game."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, comment="Timestamp when game was created"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, comment="Timestamp of the last state change"
    )
    init_data: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Immutable setup: game_master_prompt, cost, players[{user_id, handle, prompt}]",
    )
    current_data: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Mutable state: current_turn, active_players, next_player, last_elimination_turn",
    )
    winner_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        comment="Winning user (NULL while the game is in progress)",
    )

    # Relationships
    winner: Mapped["User | None"] = relationship("User", back_populates="games_won")
    messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="Message.id",
    )

    @property
    def cost(self) -> int:
        return self.init_data["cost"]

    @property
    def players(self) -> list[dict]:
        return self.init_data["players"]

    @property
    def active_players(self) -> list[str]:
        return self.current_data["active_players"]

    @property
    def current_turn(self) -> int:
        return self.current_data["current_turn"]

    @property
    def is_over(self) -> bool:
        return self.winner_id is not None or len(self.active_players) <= 1


Index("idx_games_winner", Game.winner_id)


class Message(Base):
    """Append-only narrative log of a game."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key",
    )
    game_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        comment="Reference to games table",
    )
    handle: Mapped[str] = mapped_column(
        String,
        nullable=False,
        comment="Speaker: a participant handle or 'GameMaster'",
    )
    message: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Generated narrative text"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, comment="Timestamp when the message was written"
    )

    # Relationships
    game: Mapped["Game"] = relationship("Game", back_populates="messages")


Index("idx_messages_game", Message.game_id, Message.created_at)
