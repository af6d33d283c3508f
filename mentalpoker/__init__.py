"""
Mental Poker - Texas Hold'em on a collectively shuffled, encrypted deck

No player ever learns the card/position mapping of the deck:
- BN254 commutative encryption for shuffle, lock and reveal
- Commit-reveal seeds for the canonical deck mapping
- A turn-based phase machine over pluggable state store and ledger

Usage:
    from mentalpoker import GameSession, PlayerSecrets
    from mentalpoker.storage import InMemoryStateStore, InMemoryLedger
"""

__version__ = "0.1.0"

from mentalpoker.core.card import Card
from mentalpoker.core.hand import HandRank, evaluate_hand, compare_hands
from mentalpoker.core.game import MentalPokerGame
from mentalpoker.crypto.toolkit import PlayerSecrets
from mentalpoker.errors import PokerError
from mentalpoker.session import GameSession

__all__ = [
    "Card",
    "HandRank",
    "evaluate_hand",
    "compare_hands",
    "MentalPokerGame",
    "PlayerSecrets",
    "PokerError",
    "GameSession",
    "__version__",
]
