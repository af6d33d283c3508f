"""
Collective shuffle: Committing -> Generating -> Shuffling -> Locking.

Every sub-phase walks single file through all seated players, starting at
dealer + 3. Folded seats still take part; their key layer is on the deck.

1. Committing: each player publishes keccak256(seed).
2. Generating: each player reveals the seed. It must open the commitment;
   the 52 derived values are added into the accumulator modulo n.
3. Shuffling: the first shuffler submits the canonical deck mapping
   G * acc[i], then every player submits a permuted, re-encrypted deck.
4. Locking: every player submits the deck with the per-slot lock applied.

Bulk submissions (mapping, shuffle, lock) may be split into two halves of
26 compressed points. The first half is staged and a per-player flag set;
the second half completes the submission and clears both.
"""

from __future__ import annotations
from typing import List, Sequence
import logging

from mentalpoker.core.player import PlayerEntry
from mentalpoker.core.rules import (
    GamePhase, ShufflingState, DECK_SIZE, CARDS_PER_PART,
    first_to_act_preflop,
)
from mentalpoker.core.state import GameContext
from mentalpoker.crypto.commitment import COMMITMENT_SIZE, verify_commitment, derive_shuffle_values
from mentalpoker.crypto.group import GroupElement, decompress_many, generator_mul, validate_point
from mentalpoker.errors import (
    InvalidState, InvalidShufflingState, InvalidVectorSize, InvalidPoint,
    DeckNotSubmitted, DeckAlreadySubmitted,
    Part1AlreadySubmitted, Part1NotSubmitted,
)


logger = logging.getLogger(__name__)


def check_deck_points(points: Sequence[GroupElement]) -> List[GroupElement]:
    """
    Validate a full deck submission.

    Raises:
        InvalidVectorSize: If there are not exactly 52 points.
        InvalidPoint: If a point is the identity, off the curve, or repeated.
    """
    if len(points) != DECK_SIZE:
        raise InvalidVectorSize(f"Deck must hold {DECK_SIZE} points, got {len(points)}")
    checked = [validate_point(GroupElement(*p)) for p in points]
    if len(set(checked)) != DECK_SIZE:
        raise InvalidPoint("Deck points must be pairwise distinct")
    return checked


def _decompress_part(chunks: Sequence[bytes]) -> List[GroupElement]:
    if len(chunks) != CARDS_PER_PART:
        raise InvalidVectorSize(f"Each part must hold {CARDS_PER_PART} points, got {len(chunks)}")
    return decompress_many(chunks)


class ShuffleProtocol:
    """Turn-gated shuffle sub-phases over one GameContext."""

    def __init__(self, ctx: GameContext):
        self.ctx = ctx

    @property
    def state(self):
        return self.ctx.state

    def _require(self, sub_state: ShufflingState, player_id: str) -> PlayerEntry:
        if self.state.phase != GamePhase.SHUFFLING:
            raise InvalidState(f"Game is in {self.state.phase.name}, not SHUFFLING")
        if self.state.shuffling_state != sub_state:
            raise InvalidShufflingState(
                f"Shuffle is in {self.state.shuffling_state.name}, not {sub_state.name}"
            )
        return self.ctx.require_turn(player_id)

    def _advance(self, next_state: ShufflingState) -> bool:
        """
        Count a submission and move the turn.

        Returns:
            True when every seat has submitted for the current sub-phase.
        """
        self.state.submissions += 1
        if self.state.submissions >= self.ctx.num_seats:
            finished = self.state.shuffling_state
            self.state.submissions = 0
            self.state.shuffling_state = next_state
            self.ctx.set_turn(first_to_act_preflop(self.ctx.num_seats, self.ctx.config.dealer_index))
            logger.info(f"Game {self.ctx.config.game_id}: {finished.name} complete")
            return True
        self.ctx.set_turn(self.state.current_turn + 1)
        return False

    # ============= Commit / Generate =============

    def commit(self, player_id: str, commitment: bytes) -> None:
        entry = self._require(ShufflingState.COMMITTING, player_id)
        if entry.has_committed:
            raise InvalidShufflingState(f"{player_id} has already committed")
        if len(commitment) != COMMITMENT_SIZE:
            raise InvalidVectorSize(f"Commitment must be {COMMITMENT_SIZE} bytes")

        entry.commitment = bytes(commitment)
        entry.has_committed = True
        self.ctx.log_action("COMMIT", player=player_id)
        logger.debug(f"{player_id} committed to a shuffle seed")
        self._advance(ShufflingState.GENERATING)

    def generate(self, player_id: str, seed: bytes) -> None:
        """Reveal a seed and fold its derived values into the accumulator."""
        entry = self._require(ShufflingState.GENERATING, player_id)
        if entry.has_generated:
            raise InvalidShufflingState(f"{player_id} has already generated")
        if entry.commitment is None:
            raise InvalidShufflingState(f"{player_id} has no commitment")

        verify_commitment(seed, entry.commitment)
        self.ctx.accumulator.accumulate(derive_shuffle_values(seed, DECK_SIZE))
        entry.has_generated = True
        self.ctx.log_action("GENERATE", player=player_id)
        logger.debug(f"{player_id} revealed a seed ({self.ctx.accumulator.contributions} so far)")
        self._advance(ShufflingState.SHUFFLING)

    # ============= Deck mapping =============

    def submit_deck_mapping(self, player_id: str, points: Sequence[GroupElement]) -> None:
        """
        Record the canonical deck G * (acc[i] mod n).

        The mapping is checked against the finished accumulator, so it is
        fully determined by the revealed seeds. It does not move the turn.
        """
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if self.ctx.accumulator.is_submitted:
            raise DeckAlreadySubmitted()

        checked = check_deck_points(points)
        for index, (point, value) in enumerate(zip(checked, self.ctx.accumulator.values)):
            if point != generator_mul(value):
                raise InvalidPoint(f"Mapping point {index} does not match the accumulator")

        self.ctx.accumulator.canonical = checked
        self.ctx.accumulator.staged = []
        entry.map_part1_done = False
        self.ctx.log_action("MAP_DECK", player=player_id)
        logger.info(f"Game {self.ctx.config.game_id}: canonical deck mapping recorded")

    def submit_deck_mapping_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if self.ctx.accumulator.is_submitted:
            raise DeckAlreadySubmitted()
        if entry.map_part1_done:
            raise Part1AlreadySubmitted()
        self.ctx.accumulator.staged = _decompress_part(chunks)
        entry.map_part1_done = True
        logger.debug(f"{player_id} staged the first half of the deck mapping")

    def submit_deck_mapping_part2(self, player_id: str, chunks: Sequence[bytes]) -> None:
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if not entry.map_part1_done:
            raise Part1NotSubmitted()
        second = _decompress_part(chunks)
        self.submit_deck_mapping(player_id, list(self.ctx.accumulator.staged) + second)

    # ============= Shuffle / Lock =============

    def shuffle(self, player_id: str, points: Sequence[GroupElement]) -> None:
        """Overwrite the deck with a permuted, re-encrypted one."""
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if not self.ctx.accumulator.is_submitted:
            raise DeckNotSubmitted()
        self.ctx.deck.replace_all(check_deck_points(points))
        self.ctx.deck.staged = []
        entry.shuffle_part1_done = False
        self.ctx.log_action("SHUFFLE", player=player_id)
        logger.debug(f"{player_id} shuffled the deck")
        self._advance(ShufflingState.LOCKING)

    def shuffle_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if not self.ctx.accumulator.is_submitted:
            raise DeckNotSubmitted()
        if entry.shuffle_part1_done:
            raise Part1AlreadySubmitted()
        self.ctx.deck.staged = _decompress_part(chunks)
        entry.shuffle_part1_done = True

    def shuffle_part2(self, player_id: str, chunks: Sequence[bytes]) -> None:
        entry = self._require(ShufflingState.SHUFFLING, player_id)
        if not entry.shuffle_part1_done:
            raise Part1NotSubmitted()
        second = _decompress_part(chunks)
        self.shuffle(player_id, list(self.ctx.deck.staged) + second)

    def lock(self, player_id: str, points: Sequence[GroupElement]) -> bool:
        """
        Overwrite the deck with the locked one.

        Returns:
            True when the last player has locked and the deck is frozen.
        """
        entry = self._require(ShufflingState.LOCKING, player_id)
        self.ctx.deck.replace_all(check_deck_points(points))
        self.ctx.deck.staged = []
        entry.lock_part1_done = False
        self.ctx.log_action("LOCK", player=player_id)
        logger.debug(f"{player_id} locked the deck")

        if self.state.submissions + 1 >= self.ctx.num_seats:
            self.state.submissions = 0
            logger.info(f"Game {self.ctx.config.game_id}: deck locked by every player")
            return True
        self._advance(ShufflingState.LOCKING)
        return False

    def lock_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        entry = self._require(ShufflingState.LOCKING, player_id)
        if entry.lock_part1_done:
            raise Part1AlreadySubmitted()
        self.ctx.deck.staged = _decompress_part(chunks)
        entry.lock_part1_done = True

    def lock_part2(self, player_id: str, chunks: Sequence[bytes]) -> bool:
        entry = self._require(ShufflingState.LOCKING, player_id)
        if not entry.lock_part1_done:
            raise Part1NotSubmitted()
        second = _decompress_part(chunks)
        return self.lock(player_id, list(self.ctx.deck.staged) + second)
