"""Tests for the arena runner."""

import sys
from concurrent.futures import ThreadPoolExecutor

from agentarena import arena
from agentarena.arena import HandleColors, run_game
from agentarena.db import Repository, get_session
from agentarena.db.samples import GAME_MASTER_PROMPTS


def seed(db_url, add_users, **balances):
    with get_session(db_url) as session:
        add_users(Repository(session), **balances)


def test_run_game_plays_until_one_player_remains(db_url, add_users, generator):
    seed(db_url, add_users, Alice=150, Bob=150, Carol=150)

    success, game_id, winner = run_game(db_url, verbose=False, generator=generator)

    assert success
    assert winner == "Alice"
    assert len(generator.eliminations) == 2
    with get_session(db_url) as session:
        repo = Repository(session)
        assert repo.get_game_by_id(game_id).winner.handle == "Alice"
        assert repo.get_user_by_handle("Alice").tokens == 320


def test_run_game_stops_at_turn_limit(db_url, add_users, generator):
    seed(db_url, add_users, Alice=150, Bob=150)

    success, game_id, winner = run_game(
        db_url, max_turns=3, verbose=False, generator=generator
    )

    assert not success
    assert winner is None
    with get_session(db_url) as session:
        assert Repository(session).get_game_by_id(game_id).current_turn == 3


def test_verbose_run_prints_turns(db_url, add_users, make_generator, capsys):
    seed(db_url, add_users, Alice=150, Bob=150)
    generator = make_generator(texts=["Let the games begin, @Bob!"])

    run_game(db_url, max_turns=2, generator=generator)

    out = capsys.readouterr().out
    assert "Game 1 created with 2 players: Alice, Bob" in out
    assert "Let the games begin, @Bob!" in out
    assert "none (turn limit reached)" in out


def test_handle_colors_are_stable():
    colors = HandleColors()

    first = colors.color_for("Alice")
    assert colors.color_for("Bob") != first
    assert colors.color_for("Alice") == first
    assert colors.paint("Alice", "hi").startswith(first)


def test_cli_seeds_users_and_runs_games(db_url, monkeypatch, make_generator, capsys):
    monkeypatch.setattr(arena, "OpenAIGenerator", lambda: make_generator())
    monkeypatch.setattr(
        sys, "argv", ["agentarena-arena", "--db-url", db_url, "--seed-users", "3", "-n", "1"]
    )

    arena.main()

    out = capsys.readouterr().out
    assert "Created 3 sample users" in out
    assert "Successful: 1" in out


def test_worker_forwards_generate_theme(monkeypatch):
    calls = []

    def fake_run_game(*args, **kwargs):
        calls.append((args, kwargs))
        return (True, 1, "Alice")

    monkeypatch.setattr(arena, "run_game", fake_run_game)

    assert arena._run_game_worker(("sqlite:///x.db", 50, 10, True)) == (True, 1, "Alice")
    assert calls == [
        (
            ("sqlite:///x.db",),
            {"cost": 50, "max_turns": 10, "generate_theme": True, "verbose": False},
        )
    ]


def test_parallel_cli_generates_themes(db_url, add_users, monkeypatch, make_generator, capsys):
    seed(db_url, add_users, Alice=150, Bob=150, Carol=150)
    # Threads share this process, so the scripted generator reaches the workers
    monkeypatch.setattr(arena, "ProcessPoolExecutor", ThreadPoolExecutor)
    monkeypatch.setattr(arena, "OpenAIGenerator", lambda: make_generator())
    monkeypatch.setattr(
        sys,
        "argv",
        ["agentarena-arena", "--db-url", db_url, "-n", "1", "-p", "2", "--generate-theme"],
    )

    arena.main()

    assert "Successful: 1" in capsys.readouterr().out
    with get_session(db_url) as session:
        (game,) = Repository(session).get_games()
        assert game.init_data["game_master_prompt"] not in GAME_MASTER_PROMPTS
        assert game.init_data["game_master_prompt"].startswith("Welcome to the Agent Arena!")
