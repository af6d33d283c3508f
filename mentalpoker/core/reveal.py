"""
Collaborative card reveal.

A dealt slot carries one lock layer per seated player. Every player except
the slot holder removes their layer exactly once by multiplying the slot by
the inverse of their lock key; the reveal bitmap enforces exactly-once. When
num_seats - 1 players have revealed, only the holder's layer is left. The
holder removes it with open(), which resolves the point to a card id through
the canonical deck mapping and clears the holder.

Inverse keys are computed by the players; the engine only multiplies.
"""

from __future__ import annotations
from typing import List, Optional, Tuple
import logging

from mentalpoker.core.rules import DrawingState
from mentalpoker.core.state import GameContext
from mentalpoker.crypto.group import GroupElement, require_scalar, scalar_mul, validate_point
from mentalpoker.errors import (
    InvalidDrawingState, InvalidCardIndex, NotCardOwner, PlayerAlreadyRevealed,
    CardAlreadyRevealed,
)


logger = logging.getLogger(__name__)


class RevealProtocol:
    """Reveal bookkeeping for the slot in ctx.state.card_to_reveal."""

    def __init__(self, ctx: GameContext):
        self.ctx = ctx

    def begin(self, index: int, holder: str) -> None:
        """Start revealing a freshly dealt slot held by holder."""
        self.ctx.deck.set_holder(index, holder)
        self.ctx.state.card_to_reveal = index
        self.ctx.state.drawing_state = DrawingState.REVEALING
        self.ctx.players.reset_revealed()
        logger.debug(f"Slot {index} dealt to {holder}, reveal started")

    @property
    def threshold(self) -> int:
        return self.ctx.num_seats - 1

    @property
    def is_complete(self) -> bool:
        return self.ctx.players.count_revealed() >= self.threshold

    def reveal(self, player_id: str, inverse_key: int, index: int) -> bool:
        """
        Remove one player's lock layer from the slot being revealed.

        Args:
            player_id: A seated player other than the slot holder
            inverse_key: Inverse of the player's lock key for this slot
            index: Slot index, must equal the slot being revealed

        Returns:
            True once every non-holder player has revealed.

        Raises:
            InvalidDrawingState: If no reveal is in progress.
            InvalidCardIndex: If index is not the slot being revealed.
            NotCardOwner: If the caller holds the slot.
            PlayerAlreadyRevealed: If the caller already revealed this slot.
        """
        state = self.ctx.state
        if state.drawing_state != DrawingState.REVEALING:
            raise InvalidDrawingState("No card is being revealed")
        if index != state.card_to_reveal:
            raise InvalidCardIndex(f"Slot {index} is not being revealed")
        seat = self.ctx.seat_of(player_id)
        if self.ctx.deck.holder_of(index) == player_id:
            raise NotCardOwner("The holder cannot reveal their own card")
        if self.ctx.players.has_revealed(seat):
            raise PlayerAlreadyRevealed()

        key = require_scalar(inverse_key)
        self.ctx.deck.cards[index] = validate_point(scalar_mul(self.ctx.deck.cards[index], key))
        self.ctx.players.mark_revealed(seat)
        self.ctx.log_action("REVEAL", player=player_id, index=index)
        logger.debug(
            f"{player_id} revealed slot {index} "
            f"({self.ctx.players.count_revealed()}/{self.threshold})"
        )

        if self.is_complete:
            state.drawing_state = DrawingState.PICKING
            return True
        return False

    def open(self, player_id: str, inverse_key: int, index: int) -> Tuple[GroupElement, int]:
        """
        Remove the holder's own layer and identify the card.

        The slot is only written once the point resolves to a canonical card.

        Returns:
            Tuple of (plaintext point, card id)
        """
        holder = self.ctx.deck.holder_of(index)
        if holder is None:
            raise CardAlreadyRevealed(f"Slot {index} is already open")
        if holder != player_id:
            raise NotCardOwner(f"Slot {index} is not held by {player_id}")

        key = require_scalar(inverse_key)
        point = scalar_mul(self.ctx.deck.cards[index], key)
        card_id = self.ctx.accumulator.find_card(point)

        self.ctx.deck.cards[index] = point
        self.ctx.deck.clear_holder(index)
        logger.debug(f"{player_id} opened slot {index}")
        return point, card_id

    def pending_seats(self) -> List[int]:
        """Non-holder seats yet to reveal, in turn order from the turn pointer."""
        index = self.ctx.state.card_to_reveal
        holder = self.ctx.deck.holder_of(index) if index is not None else None
        seats = []
        n = self.ctx.num_seats
        for step in range(n):
            seat = (self.ctx.state.current_turn + step) % n
            if self.ctx.players.player_at(seat) == holder:
                continue
            if not self.ctx.players.has_revealed(seat):
                seats.append(seat)
        return seats

    def stalled_seat(self) -> Optional[int]:
        pending = self.pending_seats()
        return pending[0] if pending else None
