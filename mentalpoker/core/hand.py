"""
Hand Evaluation for Mental Poker showdowns.

Players submit exactly five card ids. The evaluator classifies them into one
of ten categories and produces a tie-break vector of five order values,
padded with -1, ordered by significance:

    Four of a Kind    [quad, kicker]
    Full House        [trips, pair]
    Three of a Kind   [trips, high kicker, low kicker]
    Two Pair          [high pair, low pair, kicker]
    One Pair          [pair, k1, k2, k3]
    Flush / High Card all five values, descending
    Straight (Flush)  all five values, descending

Hand Rankings (lower value = better hand):
0. Royal Flush: T♠ J♠ Q♠ K♠ A♠
1. Straight Flush: 5 consecutive cards of same suit
2. Four of a Kind
3. Full House
4. Flush
5. Straight
6. Three of a Kind
7. Two Pair
8. One Pair
9. High Card

Note: the Ace plays low in A-2-3-4-5 (wheel). Its vector is [4, 3, 2, 1, 0]
so that a wheel loses to a six-high straight.
"""

from __future__ import annotations
from typing import List, NamedTuple, Sequence, Tuple
from itertools import combinations
from enum import IntEnum
from collections import Counter

from mentalpoker.core.card import Card, RANK_CHARS, Rank
from mentalpoker.errors import DuplicateCards, InvalidHand


class HandRank(IntEnum):
    """Hand categories from best (lowest value) to worst (highest value)."""
    ROYAL_FLUSH = 0
    STRAIGHT_FLUSH = 1
    FOUR_OF_A_KIND = 2
    FULL_HOUSE = 3
    FLUSH = 4
    STRAIGHT = 5
    THREE_OF_A_KIND = 6
    TWO_PAIR = 7
    ONE_PAIR = 8
    HIGH_CARD = 9


HAND_RANK_NAMES = {
    HandRank.ROYAL_FLUSH: "Royal Flush",
    HandRank.STRAIGHT_FLUSH: "Straight Flush",
    HandRank.FOUR_OF_A_KIND: "Four of a Kind",
    HandRank.FULL_HOUSE: "Full House",
    HandRank.FLUSH: "Flush",
    HandRank.STRAIGHT: "Straight",
    HandRank.THREE_OF_A_KIND: "Three of a Kind",
    HandRank.TWO_PAIR: "Two Pair",
    HandRank.ONE_PAIR: "One Pair",
    HandRank.HIGH_CARD: "High Card",
}

TIEBREAK_LENGTH = 5
WHEEL_VECTOR = [4, 3, 2, 1, 0]
_WHEEL_VALUES = [13, 4, 3, 2, 1]


class HandResult(NamedTuple):
    """Category plus tie-break vector of an evaluated hand."""
    rank: HandRank
    tiebreak: Tuple[int, ...]

    @property
    def name(self) -> str:
        return HAND_RANK_NAMES[self.rank]


def _pad(values: List[int]) -> Tuple[int, ...]:
    return tuple(values + [-1] * (TIEBREAK_LENGTH - len(values)))


def _check_straight(values: List[int]) -> Tuple[bool, List[int]]:
    """
    Check if five descending order values form a straight.

    Returns:
        Tuple of (is_straight, tie-break values)
    """
    if len(set(values)) != 5:
        return False, values
    if values[0] - values[4] == 4:
        return True, values
    if values == _WHEEL_VALUES:
        return True, list(WHEEL_VECTOR)
    return False, values


def evaluate_hand(card_ids: Sequence[int]) -> HandResult:
    """
    Evaluate exactly five cards.

    Args:
        card_ids: Five distinct card ids (0-51)

    Returns:
        HandResult with the category and a five-slot tie-break vector

    Raises:
        InvalidHand: If not five ids or an id is out of range
        DuplicateCards: If an id repeats
    """
    if len(card_ids) != 5:
        raise InvalidHand(f"Need exactly 5 cards, got {len(card_ids)}")
    for card_id in card_ids:
        if not isinstance(card_id, int) or not 0 <= card_id <= 51:
            raise InvalidHand(f"Card id out of range: {card_id}")
    if len(set(card_ids)) != 5:
        raise DuplicateCards()

    cards = [Card.from_id(card_id) for card_id in card_ids]
    values = sorted((c.order_value for c in cards), reverse=True)
    is_flush = len({c.suit for c in cards}) == 1
    is_straight, straight_values = _check_straight(values)

    if is_flush and is_straight:
        if straight_values[0] == 13 and straight_values[4] == 9:
            return HandResult(HandRank.ROYAL_FLUSH, _pad(straight_values))
        return HandResult(HandRank.STRAIGHT_FLUSH, _pad(straight_values))

    counts = Counter(values)
    # Group values by multiplicity, highest multiplicity then highest value
    groups = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in groups]
    ordered = [value for value, _ in groups]

    if shape == [4, 1]:
        return HandResult(HandRank.FOUR_OF_A_KIND, _pad(ordered))
    if shape == [3, 2]:
        return HandResult(HandRank.FULL_HOUSE, _pad(ordered))
    if is_flush:
        return HandResult(HandRank.FLUSH, _pad(values))
    if is_straight:
        return HandResult(HandRank.STRAIGHT, _pad(straight_values))
    if shape == [3, 1, 1]:
        return HandResult(HandRank.THREE_OF_A_KIND, _pad(ordered))
    if shape == [2, 2, 1]:
        return HandResult(HandRank.TWO_PAIR, _pad(ordered))
    if shape == [2, 1, 1, 1]:
        return HandResult(HandRank.ONE_PAIR, _pad(ordered))
    return HandResult(HandRank.HIGH_CARD, _pad(values))


def compare_hands(hand1: HandResult, hand2: HandResult) -> int:
    """
    Compare two evaluated hands.

    Returns:
        -1 if hand1 wins, 1 if hand2 wins, 0 if tie
    """
    if hand1.rank != hand2.rank:
        return -1 if hand1.rank < hand2.rank else 1
    for a, b in zip(hand1.tiebreak, hand2.tiebreak):
        if a != b:
            return -1 if a > b else 1
    return 0


def best_hand(card_ids: Sequence[int]) -> Tuple[HandResult, List[int]]:
    """
    Pick the best five-card hand out of 5-7 cards.

    Returns:
        Tuple of (result, the five card ids that make it)
    """
    if not 5 <= len(card_ids) <= 7:
        raise InvalidHand(f"Need 5-7 cards, got {len(card_ids)}")

    best_result = None
    best_cards: List[int] = []
    for combo in combinations(card_ids, 5):
        result = evaluate_hand(list(combo))
        if best_result is None or compare_hands(result, best_result) < 0:
            best_result = result
            best_cards = list(combo)
    return best_result, best_cards


def _value_name(value: int) -> str:
    rank = Rank.ACE if value in (0, 13) else Rank(value)
    return {
        "A": "Ace", "K": "King", "Q": "Queen", "J": "Jack", "T": "Ten",
        "9": "Nine", "8": "Eight", "7": "Seven", "6": "Six", "5": "Five",
        "4": "Four", "3": "Three", "2": "Two",
    }[RANK_CHARS[rank]]


def get_hand_description(result: HandResult) -> str:
    """Get a human-readable description of an evaluated hand."""
    top = result.tiebreak[0]
    if result.rank == HandRank.ROYAL_FLUSH:
        return "Royal Flush"
    if result.rank == HandRank.STRAIGHT_FLUSH:
        return f"Straight Flush, {_value_name(top)} high"
    if result.rank == HandRank.FOUR_OF_A_KIND:
        return f"Four of a Kind, {_value_name(top)}s"
    if result.rank == HandRank.FULL_HOUSE:
        return f"Full House, {_value_name(top)}s full of {_value_name(result.tiebreak[1])}s"
    if result.rank == HandRank.FLUSH:
        return f"Flush, {_value_name(top)} high"
    if result.rank == HandRank.STRAIGHT:
        if list(result.tiebreak) == WHEEL_VECTOR:
            return "Straight, Five high (Wheel)"
        return f"Straight, {_value_name(top)} high"
    if result.rank == HandRank.THREE_OF_A_KIND:
        return f"Three of a Kind, {_value_name(top)}s"
    if result.rank == HandRank.TWO_PAIR:
        return f"Two Pair, {_value_name(top)}s and {_value_name(result.tiebreak[1])}s"
    if result.rank == HandRank.ONE_PAIR:
        return f"Pair of {_value_name(top)}s"
    return f"High Card, {_value_name(top)}"
