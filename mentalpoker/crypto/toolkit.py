"""
Player-side cryptography.

The engine never sees a player's secrets. Each player keeps a PlayerSecrets
object for the hand and uses it to produce what the engine asks for:

1. commitment()            -> commit-seed
2. seed                    -> generate
3. work_deck(accumulator)  -> submit-deck-mapping (first shuffler only)
4. shuffle_deck(deck)      -> shuffle: permute, then multiply every slot by s
5. lock_deck(deck)         -> lock: slot i times s^-1 * lock[i]
6. reveal_key(i)           -> reveal / open: lock[i]^-1

After every player has locked, slot i carries the product of all players'
lock[i] values, so removing each layer with reveal_key(i) yields the
canonical point, which find_card() maps back to a card id.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import secrets

from mentalpoker.crypto.commitment import commit, derive_shuffle_values, SEED_SIZE
from mentalpoker.crypto.group import (
    CURVE_ORDER, GroupElement, compress, generator_mul, mod_inverse, mod_mul,
    scalar_mul, validate_point,
)
from mentalpoker.errors import IllegalCard, InvalidScalar, InvalidVectorSize


DECK_SIZE = 52
CARDS_PER_PART = 26


def random_scalar() -> int:
    """Uniform scalar in [1, n-1]."""
    return 1 + secrets.randbelow(CURVE_ORDER - 1)


def random_permutation(size: int) -> List[int]:
    """Fisher-Yates permutation of range(size) drawn from the OS CSPRNG."""
    order = list(range(size))
    for i in range(size - 1):
        j = i + secrets.randbelow(size - i)
        order[i], order[j] = order[j], order[i]
    return order


@dataclass
class PlayerSecrets:
    """
    One player's secret material for a single hand.

    Attributes:
        seed: 32-byte shuffle seed, committed to before it is revealed
        shuffle_key: scalar applied to every card during the shuffle pass
        lock_vector: one scalar per deck slot applied during the lock pass
    """
    seed: bytes
    shuffle_key: int
    lock_vector: List[int] = field(default_factory=list)

    @classmethod
    def generate(cls) -> PlayerSecrets:
        return cls(
            seed=secrets.token_bytes(SEED_SIZE),
            shuffle_key=random_scalar(),
            lock_vector=[random_scalar() for _ in range(DECK_SIZE)],
        )

    def __post_init__(self):
        if len(self.seed) != SEED_SIZE:
            raise InvalidVectorSize(f"Seed must be {SEED_SIZE} bytes")
        if self.lock_vector and len(self.lock_vector) != DECK_SIZE:
            raise InvalidVectorSize(f"Lock vector must hold {DECK_SIZE} scalars")
        if self.shuffle_key % CURVE_ORDER == 0:
            raise InvalidScalar("Shuffle key reduces to zero")

    def commitment(self) -> bytes:
        return commit(self.seed)

    def shuffle_values(self) -> List[int]:
        return derive_shuffle_values(self.seed)

    def shuffle_deck(
        self,
        deck: Sequence[GroupElement],
        permutation: Optional[Sequence[int]] = None,
    ) -> List[GroupElement]:
        """
        Permute the deck and encrypt every slot with the shuffle key.

        Args:
            deck: Current 52 deck points
            permutation: Optional fixed permutation (random if omitted)
        """
        _check_deck(deck)
        order = list(permutation) if permutation is not None else random_permutation(len(deck))
        if sorted(order) != list(range(len(deck))):
            raise InvalidVectorSize("Permutation must reorder every slot exactly once")
        return [scalar_mul(validate_point(deck[i]), self.shuffle_key) for i in order]

    def lock_deck(self, deck: Sequence[GroupElement]) -> List[GroupElement]:
        """Strip the shuffle layer and apply the per-slot lock."""
        _check_deck(deck)
        unshuffle = mod_inverse(self.shuffle_key)
        if unshuffle is None:
            raise InvalidScalar("Shuffle key has no inverse")
        return [
            scalar_mul(validate_point(point), mod_mul(unshuffle, self.lock_vector[i]))
            for i, point in enumerate(deck)
        ]

    def reveal_key(self, index: int) -> int:
        """Inverse of this player's lock on one slot."""
        if not 0 <= index < DECK_SIZE:
            raise InvalidVectorSize(f"Slot index out of range: {index}")
        inverse = mod_inverse(self.lock_vector[index])
        if inverse is None:
            raise InvalidScalar(f"Lock for slot {index} has no inverse")
        return inverse


def work_deck(accumulator: Sequence[int]) -> List[GroupElement]:
    """Canonical deck points G * (acc[i] mod n)."""
    if len(accumulator) != DECK_SIZE:
        raise InvalidVectorSize(f"Accumulator must hold {DECK_SIZE} values")
    return [generator_mul(value % CURVE_ORDER) for value in accumulator]


def split_halves(points: Sequence[GroupElement]) -> Tuple[List[bytes], List[bytes]]:
    """Compressed first and second halves for split submissions."""
    _check_deck(points)
    compressed = [compress(point) for point in points]
    return compressed[:CARDS_PER_PART], compressed[CARDS_PER_PART:]


def unlock(point: GroupElement, inverse_keys: Sequence[int]) -> GroupElement:
    """Apply several inverse keys locally (useful to peek at one's own card)."""
    for key in inverse_keys:
        point = scalar_mul(point, key)
    return point


def find_card(point: GroupElement, canonical: Sequence[GroupElement]) -> int:
    """
    Map a fully decrypted point to its card id.

    Raises:
        IllegalCard: If the point is not in the canonical deck.
    """
    for card_id, candidate in enumerate(canonical):
        if candidate == point:
            return card_id
    raise IllegalCard(f"Point {point!r} is not a canonical card")


def _check_deck(deck: Sequence[GroupElement]) -> None:
    if len(deck) != DECK_SIZE:
        raise InvalidVectorSize(f"Deck must hold {DECK_SIZE} points, got {len(deck)}")
