"""
Pydantic schemas for operation requests and views.

Requests only check shapes and types and convert hex strings into bytes,
points and scalars. Game rules (blind sizes, player counts, point validity)
are checked by the engine, which raises the named PokerError.
"""

from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field

from mentalpoker.core.fields import HexBytes, PointField, U256


# ============= Request Schemas =============

class CreateGameRequest(BaseModel):
    """Request to create a new game."""
    authority: str = Field(min_length=1)
    game_id: str = Field(min_length=1)
    max_players: int
    small_blind: int
    min_buy_in: int
    timeout_seconds: Optional[int] = Field(default=None, gt=0)
    slash_percentage: Optional[int] = Field(default=None, ge=0, le=100)


class JoinRequest(BaseModel):
    """Request to take a seat."""
    player_id: str = Field(min_length=1)
    deposit: int


class CommitRequest(BaseModel):
    commitment: HexBytes


class SeedRequest(BaseModel):
    seed: HexBytes


class DeckSubmission(BaseModel):
    """A full deck: 52 affine points."""
    points: List[PointField]


class PartSubmission(BaseModel):
    """Half of a deck: 26 compressed points."""
    chunks: List[HexBytes]


class BlindRequest(BaseModel):
    amount: int


class BetRequest(BaseModel):
    """Additional chips put in: 0 checks, the call amount calls."""
    amount: int


class RevealRequest(BaseModel):
    """An inverse lock key applied to one deck slot."""
    inverse_key: U256
    index: int


class HandSubmission(BaseModel):
    """Five opened card points."""
    points: List[PointField]


class CloseGameRequest(BaseModel):
    game_id: str
    force: bool = False


# ============= Response Schemas =============

class WinnerSchema(BaseModel):
    """Winner of a settled pot."""
    player_id: str
    amount: int
    hand_type: str
    description: str
    cards: Optional[List[str]] = None


class RefundSchema(BaseModel):
    player_id: str
    amount: int


class PlayerViewSchema(BaseModel):
    """Public player information (visible to all)."""
    id: str
    seat: int
    chips: int
    bet: int
    total_bet: int
    folded: bool
    hole_slots: List[int]
    opened_cards: List[int]
    hand: Optional[str] = None


class GameViewSchema(BaseModel):
    """Public game state plus the viewer's next step."""
    game_id: str
    game_number: int
    phase: str
    shuffling_state: str
    drawing_state: str
    texas_state: str
    betting_state: str
    community_state: str
    dealer: int
    turn: int
    current_player: Optional[str] = None
    pot: int
    current_call: int
    card_to_reveal: Optional[int] = None
    cards_left: int
    players: List[PlayerViewSchema]
    board: List[str]
    board_slots: List[int]
    winners: List[WinnerSchema]
    history: List[Dict[str, Any]]
    required_action: Optional[str] = None
    legal_actions: List[Dict[str, Any]] = Field(default_factory=list)
