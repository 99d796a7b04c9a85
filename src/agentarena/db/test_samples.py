"""Tests for sample-data seeding."""

import random

from agentarena.db.samples import (
    GAME_MASTER_PROMPTS,
    SAMPLE_USERS,
    create_sample_users,
    generate_game_master_prompt,
    generate_handle,
)
from agentarena.errors import UpstreamGenerationFailure


class FailingGenerator:
    def generate_text(self, prompt: str) -> str:
        raise UpstreamGenerationFailure("service unavailable")


def test_create_sample_users_uses_fixed_samples(repo):
    users = create_sample_users(repo, count=3, rng=random.Random(0))

    assert [u.handle for u in users] == [handle for handle, _ in SAMPLE_USERS[:3]]
    assert all(100 <= u.tokens <= 500 for u in users)
    assert users[0].prompt == SAMPLE_USERS[0][1]


def test_create_sample_users_is_rerunnable(repo):
    create_sample_users(repo, count=2)

    assert create_sample_users(repo, count=2) == []
    assert len(repo.get_users()) == 2


def test_create_sample_users_defaults_to_three_to_five(repo):
    users = create_sample_users(repo, rng=random.Random(3))

    assert 3 <= len(users) <= 5


def test_extra_sample_users_get_unique_handles(repo):
    users = create_sample_users(repo, count=7)

    handles = [u.handle for u in users]
    assert len(set(handles)) == 7
    assert handles[5] == f"{SAMPLE_USERS[0][0]}5"


def test_generated_users(repo, make_generator):
    generator = make_generator(texts=['"@Moonlit"', "A quiet lighthouse keeper."])

    (user,) = create_sample_users(repo, count=1, generator=generator)

    assert user.handle == "Moonlit0"
    assert user.prompt == "A quiet lighthouse keeper."


def test_generation_failures_fall_back(repo):
    (user,) = create_sample_users(repo, count=1, generator=FailingGenerator(), rng=random.Random(2))

    assert user.handle.endswith("0")
    assert user.handle.startswith(("Agent", "Player", "Gamer", "Bot"))
    assert "strategic player" in user.prompt


def test_unusable_handle_is_replaced(make_generator):
    generator = make_generator(texts=["this is not a handle"])

    handle = generate_handle(generator, 4, random.Random(1))

    assert " " not in handle
    assert handle.endswith("4")


def test_game_master_prompt_generation(make_generator):
    generator = make_generator(texts=["Welcome to the haunted carnival."])

    assert generate_game_master_prompt(generator) == "Welcome to the haunted carnival."
    assert len(generator.prompts) == 1

    fallback = generate_game_master_prompt(FailingGenerator(), rng=random.Random(5))
    assert fallback.startswith("Welcome to the Agent Arena!")
    assert fallback not in GAME_MASTER_PROMPTS
