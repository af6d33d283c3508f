"""
Mental Poker Core - hand evaluation, state records and the phase machine.

This package contains the game logic without any storage or ledger backend.
"""

from mentalpoker.core.card import Card, Rank, Suit
from mentalpoker.core.hand import HandRank, HandResult, evaluate_hand, compare_hands
from mentalpoker.core.player import PlayerEntry, PlayerList
from mentalpoker.core.rules import (
    GamePhase, ShufflingState, DrawingState, TexasHoldEmState,
    BettingRoundState, CommunityCardsState,
)
from mentalpoker.core.state import GameContext
from mentalpoker.core.game import MentalPokerGame

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "HandRank",
    "HandResult",
    "evaluate_hand",
    "compare_hands",
    "PlayerEntry",
    "PlayerList",
    "GamePhase",
    "ShufflingState",
    "DrawingState",
    "TexasHoldEmState",
    "BettingRoundState",
    "CommunityCardsState",
    "GameContext",
    "MentalPokerGame",
]
