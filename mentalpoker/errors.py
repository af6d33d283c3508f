"""
Error hierarchy for the Mental Poker engine.

Every rejected operation raises a subclass of PokerError. Errors are grouped
by what went wrong:

- SequencingError: wrong phase, wrong turn, or a single-use action repeated
- CryptographicError: invalid points, failed group operations, bad commitments
- ResourceError: not enough chips, seats, cards or ledger funds
- LivenessError: a timeout that has not elapsed yet
- HandError: a malformed best-hand submission
- ConfigurationError: invalid game parameters

Each leaf error carries a stable numeric code so that callers on the other
side of a transport can match on it without parsing messages.
"""

from typing import Dict, Optional


class PokerError(Exception):
    """Base class for all engine errors."""
    code: int = 0
    default_message: str = "Poker engine error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "error": type(self).__name__, "message": self.message}


# ============= Taxonomy =============

class SequencingError(PokerError):
    """Call arrived in the wrong phase, out of turn, or was repeated."""


class CryptographicError(PokerError):
    """Supplied cryptographic material did not verify."""


class ResourceError(PokerError):
    """Not enough chips, seats, cards or funds."""


class LivenessError(PokerError):
    """A liveness precondition (timeout) is not met yet."""


class HandError(PokerError):
    """Best-hand submission is malformed."""


class ConfigurationError(PokerError):
    """Game parameters are out of range."""


class StorageError(PokerError):
    """A persisted record is missing or unreadable."""


# ============= State errors =============

class InvalidState(SequencingError):
    code = 100
    default_message = "Invalid game state for this operation"


class InvalidShufflingState(SequencingError):
    code = 101
    default_message = "Invalid shuffling state"


class InvalidDrawingState(SequencingError):
    code = 102
    default_message = "Invalid drawing state"


class InvalidBettingState(SequencingError):
    code = 103
    default_message = "Invalid betting state"


class InvalidTexasState(SequencingError):
    code = 104
    default_message = "Invalid Texas Hold'em state"


class InvalidCommunityCardsState(SequencingError):
    code = 105
    default_message = "Invalid community cards state"


# ============= Seat and turn errors =============

class NotYourTurn(SequencingError):
    code = 201
    default_message = "Not your turn"


class NotAPlayer(SequencingError):
    code = 202
    default_message = "Not a player in this game"


class AlreadyPlayer(SequencingError):
    code = 203
    default_message = "Already a player in this game"


class CannotSlashSelf(SequencingError):
    code = 206
    default_message = "A player cannot slash themselves"


# ============= Game logic errors =============

class GameFull(ResourceError):
    code = 300
    default_message = "Game is full"


class InsufficientChips(ResourceError):
    code = 301
    default_message = "Insufficient chips"


class InvalidBetAmount(SequencingError):
    code = 302
    default_message = "Invalid bet amount"


class AlreadyFolded(SequencingError):
    code = 303
    default_message = "Player already folded"


class DeckNotSubmitted(SequencingError):
    code = 304
    default_message = "Deck mapping not yet submitted"


class CardAlreadyRevealed(SequencingError):
    code = 305
    default_message = "Card already revealed"


class InvalidCommitment(CryptographicError):
    code = 306
    default_message = "Seed does not match commitment"


class CannotDrawMoreCards(ResourceError):
    code = 307
    default_message = "Cannot draw more cards"


class InvalidVectorSize(CryptographicError):
    code = 308
    default_message = "Invalid vector size"


class NoCardsLeft(ResourceError):
    code = 309
    default_message = "No cards left in deck"


class InvalidCardIndex(SequencingError):
    code = 310
    default_message = "Invalid card index"


class PlayerAlreadyRevealed(SequencingError):
    code = 311
    default_message = "Player already revealed this card"


class NotCardOwner(SequencingError):
    code = 312
    default_message = "Not the holder of this card"


class InvalidSmallBlind(ConfigurationError):
    code = 313
    default_message = "Invalid small blind amount"


class InvalidBigBlind(SequencingError):
    code = 314
    default_message = "Invalid big blind amount"


class DeckAlreadySubmitted(SequencingError):
    code = 315
    default_message = "Deck mapping already submitted"


class MinBuyInTooLow(ConfigurationError):
    code = 317
    default_message = "Minimum buy-in must exceed the big blind"


class NotCommunityCard(SequencingError):
    code = 321
    default_message = "Card is not a community card"


class InvalidNumPlayers(ConfigurationError):
    code = 322
    default_message = "Invalid number of players"


# ============= Cryptographic errors =============

class InvalidPoint(CryptographicError):
    code = 400
    default_message = "Invalid elliptic curve point"


class InvalidScalar(CryptographicError):
    code = 401
    default_message = "Invalid scalar value"


class ECOperationFailed(CryptographicError):
    code = 402
    default_message = "Elliptic curve operation failed"


# ============= Hand errors =============

class InvalidHand(HandError):
    code = 500
    default_message = "Invalid hand submitted"


class DuplicateCards(HandError):
    code = 501
    default_message = "Duplicate cards in hand"


class IllegalCard(CryptographicError):
    code = 502
    default_message = "Point does not match any card"


# ============= Storage errors =============

class RecordNotFound(StorageError):
    code = 601
    default_message = "Record not found"


class CorruptRecord(StorageError):
    code = 603
    default_message = "Record could not be decoded"


class InsufficientFunds(ResourceError):
    code = 604
    default_message = "Insufficient ledger funds"


# ============= Resolution errors =============

class PotAlreadyClaimed(SequencingError):
    code = 700
    default_message = "Pot has already been claimed"


class PotNotClaimed(SequencingError):
    code = 701
    default_message = "Pot has not been claimed yet"


class NoWinner(HandError):
    code = 702
    default_message = "No winner could be determined"


class CannotLeaveNow(SequencingError):
    code = 703
    default_message = "Cannot leave the game at this time"


class TimeoutNotReached(LivenessError):
    code = 704
    default_message = "Timeout not yet reached"


class InvalidGamePhase(SequencingError):
    code = 705
    default_message = "Invalid game phase for this operation"


class GameNotFinished(SequencingError):
    code = 706
    default_message = "Game is not finished yet"


class InvalidAuthority(SequencingError):
    code = 707
    default_message = "Invalid authority for this operation"


class InvalidGameId(ConfigurationError):
    code = 708
    default_message = "Invalid game id"


# ============= Split submission errors =============

class Part1NotSubmitted(SequencingError):
    code = 800
    default_message = "Part 1 must be submitted before part 2"


class Part1AlreadySubmitted(SequencingError):
    code = 801
    default_message = "Part 1 already submitted, send part 2"


class DecompressionFailed(InvalidPoint):
    code = 802
    default_message = "Point decompression failed"
