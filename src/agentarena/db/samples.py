"""
Sample data for local runs: Game Master scenarios and seeded users.

Handles and personas can be AI-generated; whenever generation fails or
returns something unusable the fixed samples are used instead.
"""

import logging
import random
from typing import Protocol

from agentarena.errors import UpstreamGenerationFailure
from agentarena.prompts import CHARACTER_PROMPT, HANDLE_PROMPT, SCENARIO_PROMPT

from .models import User
from .repository import Repository

logger = logging.getLogger(__name__)


class PromptGenerator(Protocol):
    def generate_text(self, prompt: str) -> str: ...


GAME_TYPES = [
    "survival game",
    "mystery investigation",
    "fantasy adventure",
    "political intrigue",
    "space exploration",
    "post-apocalyptic scenario",
    "supernatural horror",
    "competitive tournament",
]

GAME_MASTER_PROMPTS = [
    "Welcome to the Sunken Citadel. The tide is rising through the lower halls and the "
    "only way out is the single escape pod at the top of the tower. Every few rounds the "
    "water claims the player who has contributed least to the climb. Be vivid, be ruthless, "
    "and keep the pressure on.",
    "You host 'Last Word', a televised debate tournament broadcast across the galaxy. "
    "Players argue increasingly absurd motions you put to them. Judge their wit and "
    "rhetoric, and periodically disqualify the weakest speaker with theatrical flair.",
    "A blizzard has trapped the guests of Ravenmoor Manor and one of them is a murderer. "
    "Lead the investigation as the stern but fair Inspector Hale. Players uncover clues, "
    "accuse each other and defend themselves; the least convincing are removed from the "
    "investigation.",
    "The colony ship Meridian has lost its navigator and the reactor is failing. The crew "
    "must decide who repairs what, who rations air, and who gets left behind. You are "
    "MOTHER, the ship's coldly logical AI.",
    "Welcome to the Grand Bazaar of Qadir, where fortunes are made and lost in a single "
    "afternoon. Players trade, bluff and scheme for the Sultan's favour. Merchants who "
    "fall too far behind are bankrupted and escorted from the market.",
]

SAMPLE_USERS = [
    (
        "NightStalker",
        "A soft-spoken former cartographer who trusts maps more than people. Patient, "
        "observant, and quietly ruthless when cornered.",
    ),
    (
        "QuantumQuasar",
        "A flamboyant physicist-turned-showman who explains everything with wild analogies "
        "and loves forming alliances he plans to break.",
    ),
    (
        "FrostByte",
        "A terse ex-hacker who speaks in short sentences, distrusts authority and always "
        "looks for the loophole in the rules.",
    ),
    (
        "ShadowWeaver",
        "A theatrical storyteller who turns every exchange into a legend with herself as "
        "the heroine. Charming, manipulative, never boring.",
    ),
    (
        "PixelPunisher",
        "A hyper-competitive gamer who narrates his own moves like a sports commentator "
        "and targets whoever seems strongest.",
    ),
]

MIN_HANDLE_LENGTH = 3
MAX_HANDLE_LENGTH = 20


def _fallback_handle(rng: random.Random) -> str:
    prefixes = ["Agent", "Player", "Gamer", "Bot"]
    return f"{rng.choice(prefixes)}{rng.randint(0, 999)}"


def generate_handle(generator: PromptGenerator, index: int, rng: random.Random) -> str:
    """Generate a handle with AI, suffixed with index to keep one run's handles unique."""
    try:
        handle = generator.generate_text(HANDLE_PROMPT)
    except UpstreamGenerationFailure as e:
        logger.warning("Handle generation failed, using a fallback: %s", e)
        return f"{_fallback_handle(rng)}{index}"

    handle = handle.strip().replace('"', "").replace("'", "").replace("@", "")
    if not MIN_HANDLE_LENGTH <= len(handle) <= MAX_HANDLE_LENGTH or " " in handle:
        handle = _fallback_handle(rng)
    return f"{handle}{index}"


def generate_persona(generator: PromptGenerator, handle: str) -> str:
    fallback = (
        f"I am {handle}, a strategic player who aims to win by making alliances "
        "and breaking them at the right time."
    )
    try:
        return generator.generate_text(CHARACTER_PROMPT) or fallback
    except UpstreamGenerationFailure as e:
        logger.warning("Persona generation failed for %s, using a fallback: %s", handle, e)
        return fallback


def generate_game_master_prompt(
    generator: PromptGenerator, rng: random.Random | None = None
) -> str:
    """Generate a themed Game Master prompt for a random game type."""
    rng = rng or random.Random()
    game_type = rng.choice(GAME_TYPES)
    fallback = (
        f"Welcome to the Agent Arena! This is a {game_type} where only one player will "
        "survive. Use strategy, form alliances, and outsmart your opponents to be the last "
        "one standing. The winner takes all the tokens minus a 10% fee. Good luck!"
    )
    try:
        return generator.generate_text(SCENARIO_PROMPT.format(game_type=game_type)) or fallback
    except UpstreamGenerationFailure as e:
        logger.warning("Scenario generation failed, using a fallback: %s", e)
        return fallback


def create_sample_users(
    repo: Repository,
    count: int | None = None,
    generator: PromptGenerator | None = None,
    rng: random.Random | None = None,
) -> list[User]:
    """
    Create 3-5 users (or `count`) with 100-500 tokens each.

    Existing handles are skipped so the command can be re-run.
    """
    rng = rng or random.Random()
    count = count or rng.randint(3, 5)
    users = []

    for index in range(count):
        if generator is not None:
            handle = generate_handle(generator, index, rng)
            prompt = generate_persona(generator, handle)
        else:
            base_handle, prompt = SAMPLE_USERS[index % len(SAMPLE_USERS)]
            handle = base_handle if index < len(SAMPLE_USERS) else f"{base_handle}{index}"

        if repo.get_user_by_handle(handle) is not None:
            logger.info("User %s already exists, skipping", handle)
            continue

        users.append(
            repo.create_user(handle=handle, prompt=prompt, tokens=rng.randint(100, 500))
        )

    logger.info("Created %d sample users", len(users))
    return users
