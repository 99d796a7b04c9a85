import argparse
import os
from concurrent.futures import ProcessPoolExecutor, as_completed

from tqdm import tqdm

from agentarena.agents import OpenAIGenerator
from agentarena.constants import DEFAULT_GAME_COST, GAME_MASTER_HANDLE
from agentarena.db.repository import Repository
from agentarena.db.samples import create_sample_users, generate_game_master_prompt
from agentarena.db.session import get_session, init_db
from agentarena.errors import ArenaError
from agentarena.game import advance_turn, create_game, end_game, get_game, get_game_summary
from agentarena.game.turns import TextGenerator

DEFAULT_MAX_TURNS = 1000  # Safety limit to prevent runaway games

RESET = "\033[0m"


class HandleColors:
    """
    Console colour per handle, assigned on first sight.

    Presentation only: lives for one process run and is never persisted.
    """

    PALETTE = [
        "\033[31m",
        "\033[32m",
        "\033[33m",
        "\033[34m",
        "\033[35m",
        "\033[36m",
        "\033[91m",
        "\033[92m",
        "\033[94m",
        "\033[95m",
    ]

    def __init__(self):
        self._colors: dict[str, str] = {GAME_MASTER_HANDLE: "\033[1m"}

    def color_for(self, handle: str) -> str:
        if handle not in self._colors:
            assigned = len(self._colors) - 1
            self._colors[handle] = self.PALETTE[assigned % len(self.PALETTE)]
        return self._colors[handle]

    def paint(self, handle: str, text: str) -> str:
        return f"{self.color_for(handle)}{text}{RESET}"


def run_game(
    db_url: str | None = None,
    cost: int = DEFAULT_GAME_COST,
    max_turns: int = DEFAULT_MAX_TURNS,
    generate_theme: bool = False,
    verbose: bool = True,
    generator: TextGenerator | None = None,
) -> tuple[bool, int, str | None]:
    """
    Play a single game to completion, one transaction per turn.

    Args:
        db_url: Database URL (if None, uses DATABASE_URL env var)
        cost: Entry stake per player
        max_turns: Stop after this many turns even without a winner
        generate_theme: Generate a fresh Game Master scenario instead of a sample one
        verbose: Whether to print every turn
        generator: Text generation service (defaults to the OpenAI-backed one)

    Returns:
        Tuple of (success: bool, game_id: int, winner: Optional[str])
    """
    generator = generator or OpenAIGenerator()
    colors = HandleColors()

    theme = generate_game_master_prompt(generator) if generate_theme else None
    with get_session(db_url) as session:
        game = create_game(Repository(session), cost=cost, theme=theme)
        game_id = game.id
        players = list(game.active_players)

    if verbose:
        print(f"\n📝 Game {game_id} created with {len(players)} players: {', '.join(players)}")

    try:
        turn_count = 0
        game_over = False
        while not game_over and turn_count < max_turns:
            turn_count += 1
            with get_session(db_url) as session:
                result = advance_turn(Repository(session), generator, game_id)

            game_over = result.game_over
            if verbose:
                print(f"\n🔄 Turn {result.current_turn}")
                if result.eliminated:
                    print(colors.paint(GAME_MASTER_HANDLE, f"❌ {result.eliminated} eliminated"))
                speaker = result.speaker or GAME_MASTER_HANDLE
                print(colors.paint(speaker, f"{speaker}: {result.text}"))

        winner = None
        with get_session(db_url) as session:
            repo = Repository(session)
            game = get_game(repo, game_id)
            if game.winner_id is None and len(game.active_players) == 1:
                winner = end_game(repo, game_id, game.active_players[0]).winner
            elif game.winner is not None:
                winner = game.winner.handle
            summary = get_game_summary(repo, game_id)

        if verbose:
            print(f"\n🏁 Game {game_id} finished after {summary.total_turns} turns")
            print(f"🏆 Winner: {winner or 'none (turn limit reached)'}")
            for handle, count in sorted(summary.message_counts.items()):
                print(f"   {colors.paint(handle, handle)}: {count} messages")

        return (winner is not None, game_id, winner)

    except ArenaError as e:
        if verbose:
            print(f"❌ Game {game_id} failed: {e}")
        return (False, game_id, None)


def _run_game_worker(
    args_tuple: tuple[str | None, int, int, bool],
) -> tuple[bool, int, str | None]:
    """Run one quiet game in a separate process."""
    db_url, cost, max_turns, generate_theme = args_tuple
    try:
        return run_game(
            db_url,
            cost=cost,
            max_turns=max_turns,
            generate_theme=generate_theme,
            verbose=False,
        )
    except ArenaError as e:
        print(f"❌ Error in game: {e}")
        return (False, -1, None)


def run_arena() -> None:
    """Run arena games against the configured database."""
    parser = argparse.ArgumentParser(description="Run agent arena games")
    parser.add_argument(
        "-n",
        "--n-games",
        type=int,
        default=1,
        help="Number of games to run (default: 1)",
    )
    parser.add_argument(
        "-p",
        "--parallel",
        type=int,
        default=1,
        help="Number of games to run in parallel (default: 1 for sequential)",
    )
    parser.add_argument(
        "--cost",
        type=int,
        default=DEFAULT_GAME_COST,
        help=f"Entry stake per player (default: {DEFAULT_GAME_COST})",
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=DEFAULT_MAX_TURNS,
        help=f"Turn limit per game (default: {DEFAULT_MAX_TURNS})",
    )
    parser.add_argument(
        "--generate-theme",
        action="store_true",
        help="Generate a Game Master scenario with the model instead of using a sample",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Initialize the database schema before running",
    )
    parser.add_argument(
        "--seed-users",
        type=int,
        default=0,
        help="Create this many sample users before running",
    )
    parser.add_argument(
        "--ai-users",
        action="store_true",
        help="Generate sample user handles and personas with the model",
    )
    parser.add_argument(
        "--db-url",
        type=str,
        default=None,
        help="Database URL (defaults to DATABASE_URL env var)",
    )
    args = parser.parse_args()

    db_url = args.db_url or os.environ.get("DATABASE_URL")

    if args.init_db:
        print("🔧 Initializing database schema...")
        init_db(db_url)

    if args.seed_users:
        with get_session(db_url) as session:
            users = create_sample_users(
                Repository(session),
                count=args.seed_users,
                generator=OpenAIGenerator() if args.ai_users else None,
            )
            print(f"👥 Created {len(users)} sample users")

    successful_games = 0
    failed_games = 0

    if args.parallel > 1:
        print(f"🚀 Running {args.n_games} game(s) with {args.parallel} parallel workers")

        with ProcessPoolExecutor(max_workers=args.parallel) as executor:
            future_to_game = {
                executor.submit(
                    _run_game_worker,
                    (db_url, args.cost, args.max_turns, args.generate_theme),
                ): game_num
                for game_num in range(1, args.n_games + 1)
            }

            with tqdm(total=args.n_games, desc="Running games", unit="game") as pbar:
                for future in as_completed(future_to_game):
                    game_num = future_to_game[future]
                    try:
                        success, _, _ = future.result()
                        if success:
                            successful_games += 1
                        else:
                            failed_games += 1
                    except Exception as e:
                        failed_games += 1
                        print(f"\n❌ Game {game_num} raised exception: {e}")
                    pbar.update(1)
    else:
        print(f"🚀 Running {args.n_games} game(s) sequentially")

        for game_number in range(1, args.n_games + 1):
            try:
                success, _, _ = run_game(
                    db_url,
                    cost=args.cost,
                    max_turns=args.max_turns,
                    generate_theme=args.generate_theme,
                )
            except ArenaError as e:
                print(f"❌ Error in game {game_number}: {e}")
                success = False
            if success:
                successful_games += 1
            else:
                failed_games += 1

    print(f"\n🏁 Completed running {args.n_games} game(s)")
    print(f"✅ Successful: {successful_games}")
    print(f"❌ Failed: {failed_games}")


def main() -> None:
    try:
        run_arena()
    except KeyboardInterrupt:
        print("\n⏹️  Interrupted by user")


if __name__ == "__main__":
    main()
