"""Tests for next-speaker resolution."""

from agentarena.game.speakers import (
    GAME_MASTER,
    GameMaster,
    PlayerSpeaker,
    find_mentions,
    resolve_next_speaker,
    speaker_from_handle,
)

ACTIVE = ["Alice", "Bob", "Carol"]


def test_first_mention_wins():
    speaker = resolve_next_speaker("hello @Alice and @Bob", PlayerSpeaker("Carol"), ACTIVE)
    assert speaker == PlayerSpeaker("Alice")


def test_self_mention_is_skipped():
    current = PlayerSpeaker("Alice")
    assert resolve_next_speaker("I, @Alice, pass to @Bob", current, ACTIVE) == PlayerSpeaker("Bob")


def test_only_self_mention_returns_to_game_master():
    current = PlayerSpeaker("Alice")
    assert resolve_next_speaker("Trust me, @Alice knows best.", current, ACTIVE) == GAME_MASTER


def test_no_mention_returns_to_game_master():
    assert resolve_next_speaker("Nobody is tagged here.", PlayerSpeaker("Bob"), ACTIVE) == GAME_MASTER


def test_mentions_are_case_insensitive_and_canonicalised():
    speaker = resolve_next_speaker("your turn, @carol", GAME_MASTER, ACTIVE)
    assert speaker == PlayerSpeaker("Carol")
    assert speaker.handle == "Carol"


def test_inactive_handles_are_ignored():
    text = "@Dave was eliminated, so @Bob goes"
    assert resolve_next_speaker(text, GAME_MASTER, ACTIVE) == PlayerSpeaker("Bob")


def test_player_can_hand_back_to_game_master():
    text = "@GameMaster, I demand a ruling before @Bob speaks."
    assert resolve_next_speaker(text, PlayerSpeaker("Alice"), ACTIVE) == GAME_MASTER


def test_longer_handle_is_not_shadowed_by_prefix():
    active = ["Al", "Alice"]
    assert find_mentions("over to @Alice", active) == [PlayerSpeaker("Alice")]
    assert find_mentions("over to @Al!", active) == [PlayerSpeaker("Al")]


def test_handle_followed_by_word_characters_is_not_a_mention():
    assert find_mentions("ask @Bobby", ACTIVE) == []


def test_speaker_from_handle():
    assert speaker_from_handle("GameMaster", ACTIVE) == GAME_MASTER
    assert speaker_from_handle(None, ACTIVE) == GAME_MASTER
    assert speaker_from_handle("bob", ACTIVE) == PlayerSpeaker("Bob")
    assert isinstance(speaker_from_handle("Dave", ACTIVE), GameMaster)
    assert str(GAME_MASTER) == "GameMaster"
