"""
Game session: the operation surface over a state store and a ledger.

Each call is one state transition:

1. load every record of the game into a fresh GameContext
2. run the operation on the MentalPokerGame phase machine
3. execute the ledger transfers the operation queued
4. write every record back in one batch

An exception in any step leaves the store untouched, and a rejected ledger
batch is raised before any record is written.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
import logging
import time

from mentalpoker.config import Settings
from mentalpoker.core.game import MentalPokerGame
from mentalpoker.core.player import PlayerEntry, PlayerList
from mentalpoker.core.state import (
    GameContext, GameConfig, GameState, DeckState, AccumulatorState, CommunityCards,
)
from mentalpoker.errors import InvalidGameId, PokerError
from mentalpoker.schemas import (
    CreateGameRequest, JoinRequest, CommitRequest, SeedRequest, DeckSubmission,
    PartSubmission, BlindRequest, BetRequest, RevealRequest, HandSubmission,
    CloseGameRequest, GameViewSchema, RefundSchema,
)
from mentalpoker.storage.ledger import Ledger
from mentalpoker.storage.store import StateStore, encode_record, load_record, record_key


logger = logging.getLogger(__name__)

T = TypeVar("T")

_RECORDS = (
    ("config", GameConfig),
    ("state", GameState),
    ("deck", DeckState),
    ("accumulator", AccumulatorState),
    ("community", CommunityCards),
    ("players", PlayerList),
)


class GameSession:
    """
    Runs Mental Poker operations against persistent records.

    Usage:
        session = GameSession(InMemoryStateStore(), ledger)
        session.create_game("host", "table-1", max_players=2, small_blind=5, min_buy_in=100)
        session.join("table-1", "alice", 100)
        session.join("table-1", "bob", 100)
        session.required_action("table-1", "alice")   # -> "commit_seed" or None
    """

    def __init__(
        self,
        store: StateStore,
        ledger: Ledger,
        clock: Callable[[], float] = time.time,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.settings = settings or Settings()

    # ============= Persistence =============

    def _load(self, game_id: str) -> GameContext:
        config, state, deck, accumulator, community, players = (
            load_record(self.store, record_key(game_id, kind), model)
            for kind, model in _RECORDS
        )
        entries = {
            pid: load_record(self.store, record_key(game_id, "player", pid), PlayerEntry)
            for pid in players.seats
        }
        return GameContext(
            config=config,
            state=state,
            deck=deck,
            accumulator=accumulator,
            community=community,
            players=players,
            entries=entries,
            now=self.clock(),
        )

    def _save(self, ctx: GameContext) -> None:
        game_id = ctx.config.game_id
        records = {
            record_key(game_id, "config"): encode_record(ctx.config),
            record_key(game_id, "state"): encode_record(ctx.state),
            record_key(game_id, "deck"): encode_record(ctx.deck),
            record_key(game_id, "accumulator"): encode_record(ctx.accumulator),
            record_key(game_id, "community"): encode_record(ctx.community),
            record_key(game_id, "players"): encode_record(ctx.players),
        }
        for pid, entry in ctx.entries.items():
            records[record_key(game_id, "player", pid)] = encode_record(entry)
        deletes = [record_key(game_id, "player", pid) for pid in ctx.removed]
        self.store.write_batch(records, deletes)

    def _execute(
        self,
        game_id: str,
        action: str,
        player_id: str,
        operation: Callable[[MentalPokerGame], T],
    ) -> T:
        ctx = self._load(game_id)
        game = MentalPokerGame(ctx)
        try:
            result = operation(game)
        except PokerError as e:
            logger.debug(f"{action} by {player_id} on {game_id} rejected: {e}")
            raise
        self.ledger.apply(ctx.transfers)
        self._save(ctx)
        return result

    def _game(self, game_id: str) -> MentalPokerGame:
        return MentalPokerGame(self._load(game_id))

    # ============= Lifecycle =============

    def create_game(
        self,
        authority: str,
        game_id: str,
        max_players: Optional[int] = None,
        small_blind: int = 1,
        min_buy_in: int = 100,
        timeout_seconds: Optional[int] = None,
        slash_percentage: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Create every record of a new game.

        Raises:
            InvalidGameId: If a game with this id exists
            InvalidNumPlayers, InvalidSmallBlind, MinBuyInTooLow: On bad parameters
        """
        req = CreateGameRequest(
            authority=authority,
            game_id=game_id,
            max_players=max_players if max_players is not None else self.settings.max_players,
            small_blind=small_blind,
            min_buy_in=min_buy_in,
            timeout_seconds=timeout_seconds,
            slash_percentage=slash_percentage,
        )
        if self.store.exists(record_key(req.game_id, "config")):
            raise InvalidGameId(f"Game {req.game_id} already exists")

        ctx = MentalPokerGame.new_context(
            authority=req.authority,
            game_id=req.game_id,
            max_players=req.max_players,
            small_blind=req.small_blind,
            min_buy_in=req.min_buy_in,
            timeout_seconds=req.timeout_seconds or self.settings.timeout_seconds,
            slash_percentage=(
                req.slash_percentage if req.slash_percentage is not None
                else self.settings.slash_percentage
            ),
            now=self.clock(),
        )
        self._save(ctx)
        return ctx.config.model_dump()

    def join(self, game_id: str, player_id: str, deposit: int) -> None:
        req = JoinRequest(player_id=player_id, deposit=deposit)
        self._execute(game_id, "join", player_id, lambda g: g.join(req.player_id, req.deposit))

    def leave(self, game_id: str, player_id: str) -> None:
        self._execute(game_id, "leave", player_id, lambda g: g.leave(player_id))

    def start_next_hand(self, game_id: str, player_id: str) -> None:
        self._execute(game_id, "start_next_hand", player_id, lambda g: g.start_next_hand(player_id))

    def close_game(self, caller: str, game_id: str, force: bool = False) -> List[Dict[str, Any]]:
        """Refund every stack from the vault and delete the game's records."""
        req = CloseGameRequest(game_id=game_id, force=force)
        ctx = self._load(req.game_id)
        game = MentalPokerGame(ctx)
        try:
            refunds = game.close_game(caller, req.game_id, req.force)
        except PokerError as e:
            logger.debug(f"close_game by {caller} on {game_id} rejected: {e}")
            raise
        self.ledger.apply(ctx.transfers)
        self.store.write_batch({}, self.store.keys(f"{req.game_id}/"))
        return [RefundSchema(**r).model_dump() for r in refunds]

    # ============= Shuffling =============

    def commit_seed(self, game_id: str, player_id: str, commitment: Any) -> None:
        req = CommitRequest(commitment=commitment)
        self._execute(game_id, "commit_seed", player_id, lambda g: g.commit_seed(player_id, req.commitment))

    def generate(self, game_id: str, player_id: str, seed: Any) -> None:
        req = SeedRequest(seed=seed)
        self._execute(game_id, "generate", player_id, lambda g: g.generate(player_id, req.seed))

    def submit_deck_mapping(self, game_id: str, player_id: str, points: Sequence[Any]) -> None:
        req = DeckSubmission(points=list(points))
        self._execute(
            game_id, "submit_deck_mapping", player_id,
            lambda g: g.submit_deck_mapping(player_id, req.points),
        )

    def submit_deck_mapping_part1(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(
            game_id, "submit_deck_mapping_part1", player_id,
            lambda g: g.submit_deck_mapping_part1(player_id, req.chunks),
        )

    def submit_deck_mapping_part2(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(
            game_id, "submit_deck_mapping_part2", player_id,
            lambda g: g.submit_deck_mapping_part2(player_id, req.chunks),
        )

    def shuffle(self, game_id: str, player_id: str, points: Sequence[Any]) -> None:
        req = DeckSubmission(points=list(points))
        self._execute(game_id, "shuffle", player_id, lambda g: g.shuffle(player_id, req.points))

    def shuffle_part1(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(game_id, "shuffle_part1", player_id, lambda g: g.shuffle_part1(player_id, req.chunks))

    def shuffle_part2(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(game_id, "shuffle_part2", player_id, lambda g: g.shuffle_part2(player_id, req.chunks))

    def lock(self, game_id: str, player_id: str, points: Sequence[Any]) -> None:
        req = DeckSubmission(points=list(points))
        self._execute(game_id, "lock", player_id, lambda g: g.lock(player_id, req.points))

    def lock_part1(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(game_id, "lock_part1", player_id, lambda g: g.lock_part1(player_id, req.chunks))

    def lock_part2(self, game_id: str, player_id: str, chunks: Sequence[Any]) -> None:
        req = PartSubmission(chunks=list(chunks))
        self._execute(game_id, "lock_part2", player_id, lambda g: g.lock_part2(player_id, req.chunks))

    # ============= Dealing =============

    def place_blind(self, game_id: str, player_id: str, amount: int) -> None:
        req = BlindRequest(amount=amount)
        self._execute(game_id, "place_blind", player_id, lambda g: g.place_blind(player_id, req.amount))

    def draw(self, game_id: str, player_id: str) -> None:
        self._execute(game_id, "draw", player_id, lambda g: g.draw(player_id))

    def reveal(self, game_id: str, player_id: str, inverse_key: Any, index: int) -> None:
        req = RevealRequest(inverse_key=inverse_key, index=index)
        self._execute(game_id, "reveal", player_id, lambda g: g.reveal(player_id, req.inverse_key, req.index))

    def deal_community_card(self, game_id: str, player_id: str) -> None:
        self._execute(game_id, "deal_community_card", player_id, lambda g: g.deal_community_card(player_id))

    def open_community_card(self, game_id: str, player_id: str, inverse_key: Any, index: int) -> None:
        req = RevealRequest(inverse_key=inverse_key, index=index)
        self._execute(
            game_id, "open_community_card", player_id,
            lambda g: g.open_community_card(player_id, req.inverse_key, req.index),
        )

    def open(self, game_id: str, player_id: str, inverse_key: Any, index: int) -> None:
        """Open one of the caller's hole cards at showdown."""
        req = RevealRequest(inverse_key=inverse_key, index=index)
        self._execute(
            game_id, "open", player_id,
            lambda g: g.open_hole_card(player_id, req.inverse_key, req.index),
        )

    # ============= Betting and settlement =============

    def bet(self, game_id: str, player_id: str, amount: int) -> None:
        req = BetRequest(amount=amount)
        self._execute(game_id, "bet", player_id, lambda g: g.bet(player_id, req.amount))

    def fold(self, game_id: str, player_id: str) -> None:
        self._execute(game_id, "fold", player_id, lambda g: g.fold(player_id))

    def submit_best_hand(self, game_id: str, player_id: str, points: Sequence[Any]) -> None:
        req = HandSubmission(points=list(points))
        self._execute(
            game_id, "submit_best_hand", player_id,
            lambda g: g.submit_best_hand(player_id, req.points),
        )

    def claim_pot(self, game_id: str, player_id: str) -> List[Dict[str, Any]]:
        return self._execute(game_id, "claim_pot", player_id, lambda g: g.claim_pot(player_id))

    def slash(self, game_id: str, caller: str) -> int:
        return self._execute(game_id, "slash", caller, lambda g: g.slash(caller))

    # ============= Views =============

    def view(self, game_id: str, player_id: Optional[str] = None) -> Dict[str, Any]:
        """Public state of the game, plus the next step of player_id if given."""
        state = self._game(game_id).get_state(player_id)
        return GameViewSchema(**state["public_info"], **state["private_info"]).model_dump()

    def required_action(self, game_id: str, player_id: str) -> Optional[str]:
        return self._game(game_id).required_action(player_id)

    def legal_bets(self, game_id: str, player_id: str) -> List[Dict[str, Any]]:
        return self._game(game_id).get_legal_actions(player_id)

    def winners(self, game_id: str) -> List[Dict[str, Any]]:
        return self._game(game_id).get_winners()

    def context(self, game_id: str) -> GameContext:
        """A detached copy of the game's records (changes are not saved)."""
        return self._load(game_id)
