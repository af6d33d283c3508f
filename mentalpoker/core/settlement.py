"""
Pot settlement.

Winners are the single remaining player when everyone else folded, otherwise
the showdown players holding the best (category, tie-break) pair. The pot is
floor-divided among winners and the remainder goes entirely to the first
winner in seat order.
"""

from __future__ import annotations
from typing import List, Dict, Any, Sequence
import logging

from mentalpoker.core.card import card_name
from mentalpoker.core.hand import compare_hands, get_hand_description
from mentalpoker.core.player import PlayerEntry
from mentalpoker.errors import NoWinner


logger = logging.getLogger(__name__)


def split_pot(pot: int, num_winners: int) -> List[int]:
    """
    Shares of the pot, in winner order.

    >>> split_pot(100, 3)
    [34, 33, 33]
    """
    if num_winners <= 0:
        raise NoWinner()
    share, remainder = divmod(pot, num_winners)
    return [share + remainder] + [share] * (num_winners - 1)


def determine_winners(entries: Sequence[PlayerEntry]) -> List[PlayerEntry]:
    """
    Pick the winners among seated players, given in seat order.

    Raises:
        NoWinner: If nobody is left, or nobody left has submitted a hand.
    """
    live = [e for e in entries if not e.is_folded]
    if len(live) == 1:
        return live

    winners: List[PlayerEntry] = []
    for entry in live:
        result = entry.hand_result
        if result is None:
            continue
        if not winners:
            winners = [entry]
            continue
        comparison = compare_hands(result, winners[0].hand_result)
        if comparison < 0:
            winners = [entry]
        elif comparison == 0:
            winners.append(entry)

    if not winners:
        raise NoWinner()
    return winners


def settle(entries: Sequence[PlayerEntry], pot: int) -> List[Dict[str, Any]]:
    """
    Credit the pot to the winners' stacks.

    Returns:
        List of winner info dicts with player_id, amount won, and hand description
    """
    winners = determine_winners(entries)
    shares = split_pot(pot, len(winners))
    by_fold = sum(1 for e in entries if not e.is_folded) == 1

    results = []
    for winner, amount in zip(winners, shares):
        winner.chips += amount
        result = winner.hand_result
        if by_fold or result is None:
            results.append({
                "player_id": winner.player_id,
                "amount": amount,
                "hand_type": "WIN_BY_FOLD",
                "description": "All other players folded",
            })
        else:
            results.append({
                "player_id": winner.player_id,
                "amount": amount,
                "hand_type": result.rank.name,
                "description": get_hand_description(result),
                "cards": [card_name(c) for c in winner.hand_cards],
            })
        logger.debug(f"{winner.player_id} wins {amount}")

    for entry in entries:
        entry.total_bet = 0
        entry.current_bet = 0
    return results
