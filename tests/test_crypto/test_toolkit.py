"""
Tests for the player-side toolkit: shuffle, lock and unlock without the engine.

These tests verify:
- Locked slots decrypt to a permutation of the canonical deck
- Layers can be removed in any order
- Split submissions decode back to the full deck
"""

import pytest

from mentalpoker.crypto.commitment import derive_shuffle_values
from mentalpoker.crypto.group import CURVE_ORDER, decompress_many, generator_mul, scalar_mul
from mentalpoker.crypto.toolkit import (
    PlayerSecrets, find_card, random_permutation, split_halves, unlock, work_deck,
)
from mentalpoker.errors import IllegalCard, InvalidVectorSize


def accumulate(players):
    acc = [0] * 52
    for secrets in players:
        acc = [(a + v) % CURVE_ORDER for a, v in zip(acc, derive_shuffle_values(secrets.seed))]
    return acc


def shuffle_and_lock(players, canonical):
    deck = canonical
    for secrets in players:
        deck = secrets.shuffle_deck(deck)
    for secrets in players:
        deck = secrets.lock_deck(deck)
    return deck


@pytest.fixture
def players():
    return [PlayerSecrets.generate() for _ in range(3)]


@pytest.fixture
def canonical(players):
    return work_deck(accumulate(players))


class TestPlayerSecrets:
    """Tests for secret generation and validation."""

    def test_generate(self):
        """Fresh secrets have a 32-byte seed and 52 non-zero locks."""
        secrets = PlayerSecrets.generate()
        assert len(secrets.seed) == 32
        assert len(secrets.lock_vector) == 52
        assert all(0 < k < CURVE_ORDER for k in secrets.lock_vector)
        assert 0 < secrets.shuffle_key < CURVE_ORDER

    def test_seed_size(self):
        with pytest.raises(InvalidVectorSize):
            PlayerSecrets(seed=b"x", shuffle_key=3)

    def test_reveal_key_range(self):
        with pytest.raises(InvalidVectorSize):
            PlayerSecrets.generate().reveal_key(52)

    def test_bad_permutation(self, canonical):
        """A permutation must use every slot once."""
        with pytest.raises(InvalidVectorSize):
            PlayerSecrets.generate().shuffle_deck(canonical, permutation=[0] * 52)

    def test_random_permutation(self):
        order = random_permutation(52)
        assert sorted(order) == list(range(52))


class TestDeckProtocol:
    """Full shuffle / lock / unlock cycle for three players."""

    def test_canonical_deck(self, players, canonical):
        """The work deck is G * acc[i] with 52 distinct points."""
        acc = accumulate(players)
        assert canonical[0] == generator_mul(acc[0])
        assert len(set(canonical)) == 52

    def test_locked_deck_is_permutation(self, players, canonical):
        """Every locked slot decrypts to a distinct canonical card."""
        locked = shuffle_and_lock(players, canonical)
        assert len(set(locked)) == 52

        card_ids = []
        for index, point in enumerate(locked):
            keys = [p.reveal_key(index) for p in players]
            card_ids.append(find_card(unlock(point, keys), canonical))
        assert sorted(card_ids) == list(range(52))

    def test_unlock_order_does_not_matter(self, players, canonical):
        """Layers commute: any reveal order reaches the same card."""
        locked = shuffle_and_lock(players, canonical)
        keys = [p.reveal_key(10) for p in players]
        assert unlock(locked[10], keys) == unlock(locked[10], list(reversed(keys)))

    def test_missing_layer_is_not_a_card(self, players, canonical):
        """Removing only some layers does not reveal the card."""
        locked = shuffle_and_lock(players, canonical)
        partial = unlock(locked[0], [players[0].reveal_key(0)])
        with pytest.raises(IllegalCard):
            find_card(partial, canonical)

    def test_fixed_permutation(self, canonical):
        """shuffle_deck applies the given order and the shuffle key."""
        secrets = PlayerSecrets.generate()
        order = list(reversed(range(52)))
        shuffled = secrets.shuffle_deck(canonical, permutation=order)
        assert shuffled[0] == scalar_mul(canonical[51], secrets.shuffle_key)


class TestSplitSubmission:
    """Tests for the 26 + 26 compressed halves."""

    def test_halves_decode_to_deck(self, canonical):
        first, second = split_halves(canonical)
        assert len(first) == 26 and len(second) == 26
        assert all(len(chunk) == 32 for chunk in first + second)
        assert decompress_many(first + second) == canonical

    def test_wrong_deck_size(self, canonical):
        with pytest.raises(InvalidVectorSize):
            split_halves(canonical[:51])
