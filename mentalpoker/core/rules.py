"""
Mental Poker Rules and Constants.

The hand is driven by six orthogonal sub-state enumerations. Only one
combination is current at any time, and for that combination exactly one
seat (the turn pointer) may act, except for collaborative reveals where every
non-holder seat contributes once.

Seat positions are counted from the dealer, modulo the number of seated
players for the hand:

    dealer + 1   small blind, first to act post-flop
    dealer + 2   big blind, last to call pre-flop
    dealer + 3   first to act pre-flop and first in every crypto sub-phase
"""

from enum import IntEnum


class GamePhase(IntEnum):
    """Overall phase of the table."""
    WAITING_FOR_PLAYERS = 0
    SHUFFLING = 1
    DRAWING = 2
    OPENING = 3
    FINISHED = 4


class ShufflingState(IntEnum):
    """Sub-phases of the collective shuffle."""
    NOT_STARTED = 0
    COMMITTING = 1
    GENERATING = 2
    SHUFFLING = 3
    LOCKING = 4


class DrawingState(IntEnum):
    """Whether a slot is being picked or collaboratively revealed."""
    NOT_DRAWN = 0
    PICKING = 1
    REVEALING = 2


class TexasHoldEmState(IntEnum):
    """Hold'em progression on top of the locked deck."""
    NOT_STARTED = 0
    SETUP = 1
    DRAWING = 2
    COMMUNITY_CARDS_AWAITING = 3
    BETTING = 4
    REVEALING = 5
    SUBMIT_BEST = 6
    CLAIM_POT = 7
    START_NEXT = 8
    FINISHED = 9


class BettingRoundState(IntEnum):
    """Which betting round is running."""
    BLINDS = 0
    PRE_FLOP = 1
    POST_FLOP = 2
    POST_TURN = 3
    SHOWDOWN = 4


class CommunityCardsState(IntEnum):
    """Community card progress."""
    OPENING = 0
    FLOP_AWAITING = 1
    TURN_AWAITING = 2
    RIVER_AWAITING = 3


# Table limits
MIN_PLAYERS = 2
MAX_PLAYERS = 6

# Deck layout
DECK_SIZE = 52
HOLE_CARDS_PER_PLAYER = 2
MAX_COMMUNITY_CARDS = 5
FLOP_CARDS = 3
TURN_CARDS = 4
RIVER_CARDS = 5
CARDS_PER_PART = 26
HAND_SIZE = 5

# Liveness defaults
DEFAULT_TIMEOUT_SECONDS = 120
DEFAULT_SLASH_PERCENTAGE = 10


# Betting round opened after the n-th community card is opened
BETTING_ROUND_AFTER_OPENED = {
    FLOP_CARDS: BettingRoundState.POST_FLOP,
    TURN_CARDS: BettingRoundState.POST_TURN,
    RIVER_CARDS: BettingRoundState.SHOWDOWN,
}

# Community step that follows a finished betting round
NEXT_COMMUNITY_STEP = {
    BettingRoundState.PRE_FLOP: CommunityCardsState.FLOP_AWAITING,
    BettingRoundState.POST_FLOP: CommunityCardsState.TURN_AWAITING,
    BettingRoundState.POST_TURN: CommunityCardsState.RIVER_AWAITING,
}


def small_blind_seat(num_seats: int, dealer_index: int) -> int:
    return (dealer_index + 1) % num_seats


def big_blind_seat(num_seats: int, dealer_index: int) -> int:
    return (dealer_index + 2) % num_seats


def first_to_act_preflop(num_seats: int, dealer_index: int) -> int:
    """
    First seat to act pre-flop, and first seat of every crypto sub-phase.

    Heads-up this wraps onto the small blind, which is the dealer's opponent.
    """
    return (dealer_index + 3) % num_seats


def first_to_act_postflop(num_seats: int, dealer_index: int) -> int:
    """First seat left of the dealer."""
    return (dealer_index + 1) % num_seats


def community_count_allowed(state: CommunityCardsState, dealt: int) -> bool:
    """Whether another community card may be dealt in this sub-state."""
    if state == CommunityCardsState.FLOP_AWAITING:
        return dealt < FLOP_CARDS
    if state == CommunityCardsState.TURN_AWAITING:
        return dealt == FLOP_CARDS
    if state == CommunityCardsState.RIVER_AWAITING:
        return dealt == TURN_CARDS
    return False


def slash_amount(chips: int, slash_percentage: int) -> int:
    """Penalty taken from a stalled player's stack."""
    return chips * min(max(slash_percentage, 0), 100) // 100
