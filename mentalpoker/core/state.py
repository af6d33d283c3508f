"""
Typed state records for one Mental Poker game.

Each record is a pydantic model that the session loads from the state store,
hands to the phase machine inside a GameContext, and writes back whole once
the operation has succeeded:

    GameConfig        table parameters, seats taken, dealer button
    GameState         the six sub-states, turn pointer, pot and counters
    DeckState         52 encrypted slots plus the holder of each slot
    AccumulatorState  summed seed randomness and the canonical deck mapping
    CommunityCards    slots dealt to the board and the opened points
    PlayerList        seat order and the reveal bitmap
    PlayerEntry       one per seated player (see core.player)
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, NamedTuple, Optional
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from mentalpoker.core.fields import PointField, U256
from mentalpoker.core.player import PlayerEntry, PlayerList
from mentalpoker.core.rules import (
    GamePhase, ShufflingState, DrawingState, TexasHoldEmState,
    BettingRoundState, CommunityCardsState,
    DECK_SIZE, MAX_COMMUNITY_CARDS,
    DEFAULT_TIMEOUT_SECONDS, DEFAULT_SLASH_PERCENTAGE,
)
from mentalpoker.crypto.group import IDENTITY, GroupElement, mod_add
from mentalpoker.errors import IllegalCard, InvalidPoint, NotAPlayer, NotYourTurn


def vault_account(game_id: str) -> str:
    """Ledger account holding the chips of a game."""
    return f"vault:{game_id}"


class GameConfig(BaseModel):
    """Table parameters. Fixed at creation except seats and the button."""
    game_id: str
    authority: str
    max_players: int
    current_players: int = 0
    small_blind: int
    min_buy_in: int
    dealer_index: int = 0
    is_accepting_players: bool = True
    created_at: float = 0.0
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    slash_percentage: int = DEFAULT_SLASH_PERCENTAGE
    game_number: int = 1

    @property
    def big_blind(self) -> int:
        return self.small_blind * 2

    @property
    def vault(self) -> str:
        return vault_account(self.game_id)


class GameState(BaseModel):
    """Phase machine state for the current hand."""
    phase: GamePhase = GamePhase.WAITING_FOR_PLAYERS
    shuffling_state: ShufflingState = ShufflingState.NOT_STARTED
    drawing_state: DrawingState = DrawingState.NOT_DRAWN
    texas_state: TexasHoldEmState = TexasHoldEmState.NOT_STARTED
    betting_state: BettingRoundState = BettingRoundState.BLINDS
    community_state: CommunityCardsState = CommunityCardsState.OPENING

    current_turn: int = 0
    # Seats taking part in the hand; seat arithmetic is modulo this
    num_seats: int = 0
    # Completed submissions in the current crypto sub-phase
    submissions: int = 0

    pot: int = 0
    current_call_amount: int = 0
    last_to_call: int = 0
    blinds_posted: int = 0
    num_folded: int = 0

    cards_left: int = DECK_SIZE
    cards_drawn: int = 0
    card_to_reveal: Optional[int] = None

    hole_cards_opened: int = 0
    hands_submitted: int = 0
    pot_claimed: bool = False
    winners: List[Dict[str, Any]] = Field(default_factory=list)

    last_action_timestamp: float = 0.0
    history: List[Dict[str, Any]] = Field(default_factory=list)


class DeckState(BaseModel):
    """
    The 52 encrypted deck slots.

    Slots hold the identity element until the first shuffle replaces the whole
    deck. The slot count never changes.
    """
    cards: List[PointField] = Field(default_factory=lambda: [IDENTITY] * DECK_SIZE)
    holders: List[Optional[str]] = Field(default_factory=lambda: [None] * DECK_SIZE)
    # First half of a split shuffle or lock submission
    staged: List[PointField] = Field(default_factory=list)

    def replace_all(self, points: List[GroupElement]) -> None:
        self.cards = list(points)

    def holder_of(self, index: int) -> Optional[str]:
        return self.holders[index]

    def set_holder(self, index: int, player_id: Optional[str]) -> None:
        self.holders[index] = player_id

    def clear_holder(self, index: int) -> None:
        self.holders[index] = None

    @property
    def is_established(self) -> bool:
        return not any(point.is_identity for point in self.cards)


class AccumulatorState(BaseModel):
    """
    Summed shuffle randomness and the canonical deck mapping.

    values[i] is the sum modulo n of every player's keccak256(seed || i).
    The canonical table, once complete, is the ground truth that maps a fully
    decrypted point back to a card id; it is never overwritten during a hand.
    """
    values: List[U256] = Field(default_factory=lambda: [0] * DECK_SIZE)
    contributions: int = 0
    canonical: List[PointField] = Field(default_factory=list)
    staged: List[PointField] = Field(default_factory=list)

    def accumulate(self, derived: List[int]) -> None:
        self.values = [mod_add(a, b) for a, b in zip(self.values, derived)]
        self.contributions += 1

    @property
    def is_submitted(self) -> bool:
        return len(self.canonical) == DECK_SIZE

    def find_card(self, point: GroupElement) -> int:
        """
        Resolve a fully decrypted point to its card id.

        Raises:
            InvalidPoint: If the point is the identity.
            IllegalCard: If the point is not in the canonical table.
        """
        if point.is_identity:
            raise InvalidPoint("Identity element cannot encode a card")
        for card_id, candidate in enumerate(self.canonical):
            if candidate == point:
                return card_id
        raise IllegalCard(f"Point {point!r} is not a canonical card")


class CommunityCards(BaseModel):
    """Board cards: dealt slot indices and the points opened so far."""
    card_indices: List[int] = Field(default_factory=list)
    opened_cards: List[PointField] = Field(default_factory=list)
    opened_card_ids: List[int] = Field(default_factory=list)

    def is_community_card(self, index: int) -> bool:
        return index in self.card_indices

    @property
    def num_dealt(self) -> int:
        return len(self.card_indices)

    @property
    def num_opened(self) -> int:
        return len(self.opened_cards)

    @property
    def is_full(self) -> bool:
        return self.num_dealt >= MAX_COMMUNITY_CARDS


class LedgerTransfer(NamedTuple):
    """A value transfer the session executes once the operation succeeds."""
    source: str
    destination: str
    amount: int


@dataclass
class GameContext:
    """
    Everything one operation may read or mutate.

    The session builds a fresh context per call from the stored records, so
    an operation that raises leaves nothing behind.
    """
    config: GameConfig
    state: GameState
    deck: DeckState
    accumulator: AccumulatorState
    community: CommunityCards
    players: PlayerList
    entries: Dict[str, PlayerEntry] = field(default_factory=dict)
    now: float = 0.0
    transfers: List[LedgerTransfer] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    # ============= Seats =============

    @property
    def num_seats(self) -> int:
        return len(self.players)

    def entry(self, player_id: str) -> PlayerEntry:
        if player_id not in self.entries or player_id not in self.players:
            raise NotAPlayer(f"{player_id} is not seated at {self.config.game_id}")
        return self.entries[player_id]

    def seat_of(self, player_id: str) -> int:
        seat = self.players.index_of(player_id)
        if seat is None:
            raise NotAPlayer(f"{player_id} is not seated at {self.config.game_id}")
        return seat

    def entry_at(self, seat: int) -> PlayerEntry:
        player_id = self.players.player_at(seat % self.num_seats)
        if player_id is None:
            raise NotAPlayer(f"No player at seat {seat}")
        return self.entries[player_id]

    def seated_entries(self) -> List[PlayerEntry]:
        return [self.entries[pid] for pid in self.players.seats]

    def live_entries(self) -> List[PlayerEntry]:
        """Players who have not folded, in seat order."""
        return [e for e in self.seated_entries() if not e.is_folded]

    def seat_from(self, start: int, eligible: Optional[Callable[[PlayerEntry], bool]] = None) -> Optional[int]:
        """First seat at or after start (wrapping) whose entry is eligible."""
        n = self.num_seats
        if n == 0:
            return None
        for step in range(n):
            seat = (start + step) % n
            if eligible is None or eligible(self.entry_at(seat)):
                return seat
        return None

    def seat_before(self, seat: int, eligible: Optional[Callable[[PlayerEntry], bool]] = None) -> Optional[int]:
        """Closest seat before seat (wrapping) whose entry is eligible."""
        n = self.num_seats
        for step in range(1, n + 1):
            candidate = (seat - step) % n
            if eligible is None or eligible(self.entry_at(candidate)):
                return candidate
        return None

    # ============= Turn =============

    @property
    def turn_player(self) -> Optional[str]:
        if self.num_seats == 0:
            return None
        return self.players.player_at(self.state.current_turn % self.num_seats)

    def require_turn(self, player_id: str) -> PlayerEntry:
        """
        Check that player_id holds the turn.

        Raises:
            NotAPlayer: If the player is not seated.
            NotYourTurn: If another seat holds the turn.
        """
        entry = self.entry(player_id)
        if self.turn_player != player_id:
            raise NotYourTurn(f"It is {self.turn_player}'s turn, not {player_id}'s")
        return entry

    def set_turn(self, seat: int) -> None:
        self.state.current_turn = seat % self.num_seats

    # ============= Bookkeeping =============

    def touch(self) -> None:
        self.state.last_action_timestamp = self.now

    def log_action(self, action: str, **details: Any) -> None:
        """Append an accepted operation to the hand history."""
        self.state.history.append({
            "action": action,
            "phase": self.state.phase.name,
            **details,
        })

    def transfer(self, source: str, destination: str, amount: int) -> None:
        if amount > 0:
            self.transfers.append(LedgerTransfer(source, destination, amount))
