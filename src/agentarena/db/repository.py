"""
Data access layer (repository pattern) for database operations.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, func
from sqlalchemy.orm import Session, joinedload

from agentarena.constants import GAME_MASTER_HANDLE
from .models import Game, Message, User


def is_reserved_handle(handle: str) -> bool:
    return handle.casefold() == GAME_MASTER_HANDLE.casefold()


class Repository:
    """
    Repository for database operations.

    Provides high-level methods for common database queries and operations.
    Writes are flushed, never committed: the surrounding session decides the
    transaction boundary.
    """

    def __init__(self, session: Session):
        """
        Initialize repository with a database session.

        Args:
            session: SQLAlchemy session instance
        """
        self.session = session

    # ===== User Operations =====

    def create_user(self, handle: str, prompt: str, tokens: int = 0) -> User:
        """
        Create a new user.

        Raises:
            ValueError: If the handle is the Game Master's, in any casing
        """
        if is_reserved_handle(handle):
            raise ValueError(f"Handle {handle!r} is reserved for the Game Master")
        now = datetime.now(timezone.utc)
        user = User(
            handle=handle,
            prompt=prompt,
            tokens=tokens,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        self.session.flush()
        return user

    def get_user_by_id(self, user_id: int, for_update: bool = False) -> User | None:
        """
        Get user by ID.

        Args:
            user_id: User ID
            for_update: If True, lock the row until the transaction ends

        Returns:
            User instance or None
        """
        if for_update:
            stmt = (
                select(User)
                .where(User.id == user_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            return self.session.execute(stmt).scalar_one_or_none()
        return self.session.get(User, user_id)

    def get_user_by_handle(self, handle: str, for_update: bool = False) -> User | None:
        """Get user by handle."""
        stmt = select(User).where(User.handle == handle)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_users(self, for_update: bool = False) -> list[User]:
        """Get all users ordered by ID."""
        stmt = select(User).order_by(User.id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return list(self.session.execute(stmt).scalars())

    def adjust_tokens(self, user: User, delta: int) -> User:
        """
        Add delta (which may be negative) to a user's balance.

        Raises:
            ValueError: If the balance would drop below zero
        """
        new_balance = user.tokens + delta
        if new_balance < 0:
            raise ValueError(
                f"User {user.handle} has {user.tokens} tokens, cannot apply {delta}"
            )
        user.tokens = new_balance
        user.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return user

    # ===== Game Operations =====

    def create_game(self, init_data: dict[str, Any], current_data: dict[str, Any]) -> Game:
        """Create a new game."""
        now = datetime.now(timezone.utc)
        game = Game(
            init_data=init_data,
            current_data=current_data,
            created_at=now,
            updated_at=now,
        )
        self.session.add(game)
        self.session.flush()
        return game

    def get_game_by_id(
        self, game_id: int, for_update: bool = False, with_relations: bool = False
    ) -> Game | None:
        """
        Get game by ID.

        Args:
            game_id: Game ID
            for_update: If True, lock the row so concurrent turns on the same
                        game are serialized
            with_relations: If True, eagerly load the winner

        Returns:
            Game instance or None
        """
        if for_update:
            stmt = (
                select(Game)
                .where(Game.id == game_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            return self.session.execute(stmt).scalar_one_or_none()
        if with_relations:
            stmt = (
                select(Game)
                .where(Game.id == game_id)
                .options(joinedload(Game.winner))
                .execution_options(populate_existing=True)
            )
            return self.session.execute(stmt).unique().scalar_one_or_none()
        return self.session.get(Game, game_id)

    def update_game_state(self, game: Game, **changes: Any) -> Game:
        """
        Merge changes into current_data and write it back as a new document.

        The dict is replaced rather than mutated so the JSON column is marked
        dirty and the whole state lands in a single UPDATE.
        """
        game.current_data = {**game.current_data, **changes}
        game.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return game

    def set_game_winner(self, game: Game, winner_id: int) -> Game:
        """Record the winner of a game."""
        game.winner_id = winner_id
        game.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return game

    def get_games(
        self,
        finished: bool | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Game]:
        """
        Get games, newest first.

        Args:
            finished: If set, only games with (True) or without (False) a winner
            limit: Maximum number of games to return
            offset: Number of games to skip

        Returns:
            List of Game instances
        """
        stmt = select(Game)

        if finished is True:
            stmt = stmt.where(Game.winner_id.is_not(None))
        elif finished is False:
            stmt = stmt.where(Game.winner_id.is_(None))

        stmt = stmt.order_by(Game.created_at.desc(), Game.id.desc())

        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        return list(self.session.execute(stmt).scalars())

    def count_games(self, finished: bool | None = None) -> int:
        """Count games, optionally filtered by whether they have a winner."""
        stmt = select(func.count(Game.id))
        if finished is True:
            stmt = stmt.where(Game.winner_id.is_not(None))
        elif finished is False:
            stmt = stmt.where(Game.winner_id.is_(None))
        return self.session.execute(stmt).scalar() or 0

    # ===== Message Operations =====

    def add_message(self, game_id: int, handle: str, message: str) -> Message:
        """Append a message to a game."""
        msg = Message(
            game_id=game_id,
            handle=handle,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(msg)
        self.session.flush()
        return msg

    def get_game_messages(self, game_id: int) -> list[Message]:
        """Get all messages for a game in creation order."""
        stmt = (
            select(Message)
            .where(Message.game_id == game_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(self.session.execute(stmt).scalars())

    def get_recent_messages(self, game_id: int, limit: int) -> list[Message]:
        """Get the most recent `limit` messages for a game, oldest first."""
        stmt = (
            select(Message)
            .where(Message.game_id == game_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        messages = list(self.session.execute(stmt).scalars())
        messages.reverse()
        return messages

    def count_messages_by_handle(self, game_id: int) -> dict[str, int]:
        """Count messages per speaker handle."""
        stmt = (
            select(Message.handle, func.count(Message.id))
            .where(Message.game_id == game_id)
            .group_by(Message.handle)
        )
        return {handle: count for handle, count in self.session.execute(stmt).all()}
