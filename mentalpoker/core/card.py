"""
Card identities for the canonical deck.

A card id is an integer 0-51. Slot i of the canonical deck mapping holds
card id i. The encoding is:

    suit = id // 13   (Clubs, Diamonds, Hearts, Spades)
    rank = id % 13    (Ace=0, Two=1, ..., King=12)

For comparisons the Ace plays high: order_value(Ace) = 13, every other rank
keeps its index, so Two=1 ... King=12.
"""

from __future__ import annotations
from typing import List
from enum import IntEnum


class Suit(IntEnum):
    """Card suits in canonical deck order."""
    CLUBS = 0     # ♣
    DIAMONDS = 1  # ♦
    HEARTS = 2    # ♥
    SPADES = 3    # ♠


class Rank(IntEnum):
    """Card ranks in canonical deck order (Ace first)."""
    ACE = 0
    TWO = 1
    THREE = 2
    FOUR = 3
    FIVE = 4
    SIX = 5
    SEVEN = 6
    EIGHT = 7
    NINE = 8
    TEN = 9
    JACK = 10
    QUEEN = 11
    KING = 12


ACE_HIGH_VALUE = 13
CARDS_PER_SUIT = 13

SUIT_SYMBOLS = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}

SUIT_CHARS = {
    Suit.CLUBS: "c",
    Suit.DIAMONDS: "d",
    Suit.HEARTS: "h",
    Suit.SPADES: "s",
}

RANK_CHARS = {
    Rank.ACE: "A",
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "T",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
}

CHAR_TO_RANK = {v: k for k, v in RANK_CHARS.items()}
CHAR_TO_RANK["10"] = Rank.TEN
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
SYMBOL_TO_SUIT = {v: k for k, v in SUIT_SYMBOLS.items()}


def order_value(rank: Rank) -> int:
    """Comparison value of a rank with the Ace high."""
    return ACE_HIGH_VALUE if rank == Rank.ACE else int(rank)


class Card:
    """
    A card identity resolved from the canonical deck.

    Cards can be created from:
    - Card id (0-51): Card.from_id(0) = Ace of Clubs
    - Rank and Suit enums: Card(Rank.KING, Suit.SPADES)
    - String notation: Card.from_string("Ks") or Card.from_string("K♠")
    """

    __slots__ = ("rank", "suit", "card_id")

    def __init__(self, rank: Rank, suit: Suit):
        self.rank = Rank(rank)
        self.suit = Suit(suit)
        self.card_id = int(self.suit) * CARDS_PER_SUIT + int(self.rank)

    @classmethod
    def from_id(cls, card_id: int) -> Card:
        if not 0 <= card_id <= 51:
            raise ValueError(f"Card id must be 0-51, got {card_id}")
        return cls(Rank(card_id % CARDS_PER_SUIT), Suit(card_id // CARDS_PER_SUIT))

    @classmethod
    def from_string(cls, s: str) -> Card:
        """
        Create a card from string notation.

        Accepts "As", "Td", "10h" and the symbol forms "A♠", "T♦".
        """
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_part, suit_part = s[:-1].upper(), s[-1]
        if rank_part not in CHAR_TO_RANK:
            raise ValueError(f"Invalid rank: {rank_part}")

        if suit_part.lower() in CHAR_TO_SUIT:
            suit = CHAR_TO_SUIT[suit_part.lower()]
        elif suit_part in SYMBOL_TO_SUIT:
            suit = SYMBOL_TO_SUIT[suit_part]
        else:
            raise ValueError(f"Invalid suit: {suit_part}")

        return cls(CHAR_TO_RANK[rank_part], suit)

    @property
    def order_value(self) -> int:
        return order_value(self.rank)

    def __int__(self) -> int:
        return self.card_id

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Card):
            return self.card_id == other.card_id
        return False

    def __hash__(self) -> int:
        return self.card_id

    def __repr__(self) -> str:
        return f"Card({self.short_str})"

    def __str__(self) -> str:
        return f"{RANK_CHARS[self.rank]}{SUIT_SYMBOLS[self.suit]}"

    @property
    def short_str(self) -> str:
        """Short string like 'As', 'Kh'."""
        return f"{RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]}"

    def to_dict(self) -> dict:
        return {
            "id": self.card_id,
            "rank": RANK_CHARS[self.rank],
            "suit": SUIT_SYMBOLS[self.suit],
            "text": str(self),
        }


def card_name(card_id: int) -> str:
    return str(Card.from_id(card_id))


def parse_cards(cards_str: str) -> List[int]:
    """
    Parse space-separated cards into card ids.

    >>> parse_cards("Tc Jc Qc Kc Ac")
    [9, 10, 11, 12, 0]
    """
    return [Card.from_string(s).card_id for s in cards_str.split()]
