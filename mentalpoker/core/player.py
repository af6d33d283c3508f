"""
Player records for a Mental Poker table.

Manages per-player state including:
- Stack (chip count), which persists across hands
- Shuffle bookkeeping (commitment, split-submission flags)
- Hole card slots and the points opened at showdown
- The submitted best hand

and the ordered seat list with the per-slot "who has revealed" bitmap.
"""

from __future__ import annotations
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field

from mentalpoker.core.fields import HexBytes, PointField
from mentalpoker.core.hand import HandRank, HandResult
from mentalpoker.core.rules import HOLE_CARDS_PER_PLAYER


class PlayerEntry(BaseModel):
    """
    A seated player.

    Attributes:
        player_id: Unique identifier (also the player's ledger account)
        seat: Seat position at the table (0-indexed)
        chips: Current chip count
        current_bet: Amount put in during the current betting round
        total_bet: Amount put in during the current hand
        commitment: keccak256 of the player's shuffle seed for this hand
        hole_cards: Deck slot indices dealt to this player (at most 2)
        revealed_cards: Plaintext points of opened hole cards
        revealed_card_ids: Card ids of opened hole cards
    """
    player_id: str
    seat: int = 0
    chips: int = 0
    current_bet: int = 0
    total_bet: int = 0

    commitment: Optional[HexBytes] = None
    has_committed: bool = False
    has_generated: bool = False
    shuffle_part1_done: bool = False
    lock_part1_done: bool = False
    map_part1_done: bool = False

    hole_cards: List[int] = Field(default_factory=list)
    revealed_cards: List[PointField] = Field(default_factory=list)
    revealed_card_ids: List[int] = Field(default_factory=list)
    is_folded: bool = False

    submitted_hand: Optional[HandRank] = None
    hand_tiebreak: List[int] = Field(default_factory=list)
    hand_cards: List[int] = Field(default_factory=list)

    def reset_for_next_hand(self) -> None:
        """Reset everything except the chip count and seat."""
        self.current_bet = 0
        self.total_bet = 0
        self.commitment = None
        self.has_committed = False
        self.has_generated = False
        self.shuffle_part1_done = False
        self.lock_part1_done = False
        self.map_part1_done = False
        self.hole_cards = []
        self.revealed_cards = []
        self.revealed_card_ids = []
        self.is_folded = False
        self.submitted_hand = None
        self.hand_tiebreak = []
        self.hand_cards = []

    def reset_for_new_round(self) -> None:
        self.current_bet = 0

    def put_in(self, amount: int) -> None:
        """Move chips from the stack into the pot."""
        self.chips -= amount
        self.current_bet += amount
        self.total_bet += amount

    def record_hand(self, result: HandResult, card_ids: List[int]) -> None:
        self.submitted_hand = result.rank
        self.hand_tiebreak = list(result.tiebreak)
        self.hand_cards = list(card_ids)

    @property
    def hand_result(self) -> Optional[HandResult]:
        if self.submitted_hand is None:
            return None
        return HandResult(HandRank(self.submitted_hand), tuple(self.hand_tiebreak))

    @property
    def is_all_in(self) -> bool:
        return not self.is_folded and self.chips == 0

    @property
    def can_bet(self) -> bool:
        """Check if player can still take a betting action."""
        return not self.is_folded and self.chips > 0

    @property
    def has_full_hand(self) -> bool:
        return len(self.hole_cards) >= HOLE_CARDS_PER_PLAYER

    @property
    def has_opened_hand(self) -> bool:
        return len(self.revealed_cards) >= HOLE_CARDS_PER_PLAYER

    def to_dict(self) -> Dict[str, Any]:
        """Public view of the player."""
        return {
            "id": self.player_id,
            "seat": self.seat,
            "chips": self.chips,
            "bet": self.current_bet,
            "total_bet": self.total_bet,
            "folded": self.is_folded,
            "hole_slots": list(self.hole_cards),
            "opened_cards": list(self.revealed_card_ids),
            "hand": self.submitted_hand.name if self.submitted_hand is not None else None,
        }

    def __repr__(self) -> str:
        return (
            f"PlayerEntry({self.player_id}, seat={self.seat}, chips={self.chips}, "
            f"bet={self.current_bet}, folded={self.is_folded})"
        )


class PlayerList(BaseModel):
    """Seat order plus the reveal bitmap for the slot being revealed."""
    seats: List[str] = Field(default_factory=list)
    revealed: List[bool] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.seats)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.seats

    def index_of(self, player_id: str) -> Optional[int]:
        try:
            return self.seats.index(player_id)
        except ValueError:
            return None

    def player_at(self, seat: int) -> Optional[str]:
        if 0 <= seat < len(self.seats):
            return self.seats[seat]
        return None

    def add(self, player_id: str) -> int:
        self.seats.append(player_id)
        self.revealed.append(False)
        return len(self.seats) - 1

    def remove(self, player_id: str) -> None:
        index = self.seats.index(player_id)
        del self.seats[index]
        del self.revealed[index]

    def has_revealed(self, seat: int) -> bool:
        return self.revealed[seat]

    def mark_revealed(self, seat: int) -> None:
        self.revealed[seat] = True

    def reset_revealed(self) -> None:
        self.revealed = [False] * len(self.seats)

    def count_revealed(self) -> int:
        return sum(self.revealed)
