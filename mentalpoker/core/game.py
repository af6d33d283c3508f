"""
Mental Poker Game Engine - Phase Machine Implementation.

This module sequences one Texas Hold'em hand played on a collectively
shuffled, encrypted deck. It handles:
- Seating, hand start and dealer button rotation
- The shuffle sub-phases (delegated to ShuffleProtocol)
- Blinds, drawing hole cards and collaborative reveals (RevealProtocol)
- Betting rounds interleaved with community cards
- Showdown: opening hole cards, best hand submission, pot settlement
- Slashing stalled players after a timeout

Every operation works on a GameContext and either applies completely or
raises a PokerError before anything observable changes (the session discards
the context on error).

Turn policy:
- Crypto sub-phases (commit, generate, map, shuffle, lock, draw, deal)
  visit every seat, folded or not.
- Betting skips folded and all-in seats.
- Opening hole cards and submitting hands skip folded seats.
"""

from __future__ import annotations
from typing import List, Dict, Optional, Any, Sequence
import logging

from mentalpoker.core.card import card_name
from mentalpoker.core.hand import evaluate_hand
from mentalpoker.core.player import PlayerEntry, PlayerList
from mentalpoker.core.reveal import RevealProtocol
from mentalpoker.core.rules import (
    GamePhase, ShufflingState, DrawingState, TexasHoldEmState,
    BettingRoundState, CommunityCardsState,
    MIN_PLAYERS, MAX_PLAYERS, HOLE_CARDS_PER_PLAYER, HAND_SIZE, FLOP_CARDS,
    BETTING_ROUND_AFTER_OPENED, NEXT_COMMUNITY_STEP,
    small_blind_seat, big_blind_seat, first_to_act_preflop, first_to_act_postflop,
    community_count_allowed, slash_amount,
)
from mentalpoker.core.settlement import settle
from mentalpoker.core.shuffle import ShuffleProtocol
from mentalpoker.core.state import (
    GameContext, GameConfig, GameState, DeckState, AccumulatorState, CommunityCards,
)
from mentalpoker.crypto.group import GroupElement
from mentalpoker.errors import (
    InvalidNumPlayers, InvalidSmallBlind, MinBuyInTooLow, InvalidGamePhase,
    AlreadyPlayer, GameFull, InsufficientChips, InvalidTexasState,
    InvalidBettingState, InvalidDrawingState, InvalidCommunityCardsState,
    InvalidBigBlind, InvalidBetAmount, AlreadyFolded, CannotDrawMoreCards,
    NoCardsLeft, NotCommunityCard, NotCardOwner, InvalidCardIndex, InvalidHand,
    DuplicateCards, IllegalCard, PotAlreadyClaimed, PotNotClaimed,
    CannotLeaveNow, TimeoutNotReached, CannotSlashSelf, InvalidAuthority,
    InvalidGameId, GameNotFinished,
)


logger = logging.getLogger(__name__)


def _can_bet(entry: PlayerEntry) -> bool:
    return entry.can_bet


def _is_live(entry: PlayerEntry) -> bool:
    return not entry.is_folded


def _opening_pending(entry: PlayerEntry) -> bool:
    return not entry.is_folded and not entry.has_opened_hand


def _submission_pending(entry: PlayerEntry) -> bool:
    return not entry.is_folded and entry.submitted_hand is None


class MentalPokerGame:
    """
    Phase machine over one game's records.

    Usage:
        ctx = MentalPokerGame.new_context("alice", "g1", max_players=2,
                                          small_blind=5, min_buy_in=100)
        game = MentalPokerGame(ctx)
        game.join("alice", 100)
        game.join("bob", 100)       # table full: shuffling starts
        game.commit_seed(game.ctx.turn_player, secrets.commitment())
        ...
    """

    def __init__(self, ctx: GameContext):
        self.ctx = ctx
        self.shuffler = ShuffleProtocol(ctx)
        self.revealer = RevealProtocol(ctx)

    @property
    def config(self) -> GameConfig:
        return self.ctx.config

    @property
    def state(self) -> GameState:
        return self.ctx.state

    @property
    def dealer(self) -> int:
        return self.config.dealer_index

    # ============= Creation =============

    @staticmethod
    def validate_config(max_players: int, small_blind: int, min_buy_in: int) -> None:
        """
        Check table parameters.

        Raises:
            InvalidNumPlayers: Unless 2 <= max_players <= 6
            InvalidSmallBlind: If small_blind is zero
            MinBuyInTooLow: If min_buy_in does not exceed the big blind
        """
        if not MIN_PLAYERS <= max_players <= MAX_PLAYERS:
            raise InvalidNumPlayers(f"Number of players must be {MIN_PLAYERS}-{MAX_PLAYERS}")
        if small_blind <= 0:
            raise InvalidSmallBlind("Small blind must be positive")
        if min_buy_in <= small_blind * 2:
            raise MinBuyInTooLow(f"Minimum buy-in must exceed the big blind ({small_blind * 2})")

    @classmethod
    def new_context(
        cls,
        authority: str,
        game_id: str,
        max_players: int,
        small_blind: int,
        min_buy_in: int,
        timeout_seconds: int,
        slash_percentage: int,
        now: float = 0.0,
    ) -> GameContext:
        cls.validate_config(max_players, small_blind, min_buy_in)
        config = GameConfig(
            game_id=game_id,
            authority=authority,
            max_players=max_players,
            small_blind=small_blind,
            min_buy_in=min_buy_in,
            created_at=now,
            timeout_seconds=timeout_seconds,
            slash_percentage=slash_percentage,
        )
        ctx = GameContext(
            config=config,
            state=GameState(last_action_timestamp=now),
            deck=DeckState(),
            accumulator=AccumulatorState(),
            community=CommunityCards(),
            players=PlayerList(),
            now=now,
        )
        logger.info(
            f"Created game {game_id}: {max_players} seats, blinds "
            f"{small_blind}/{small_blind * 2}, min buy-in {min_buy_in}"
        )
        return ctx

    # ============= Seating =============

    def join(self, player_id: str, deposit: int) -> None:
        if self.state.phase != GamePhase.WAITING_FOR_PLAYERS or not self.config.is_accepting_players:
            raise InvalidGamePhase("Game is not accepting players")
        if player_id in self.ctx.players:
            raise AlreadyPlayer(f"{player_id} is already seated")
        if self.ctx.num_seats >= self.config.max_players:
            raise GameFull()
        if deposit < self.config.min_buy_in:
            raise InsufficientChips(f"Deposit {deposit} is below the minimum buy-in {self.config.min_buy_in}")

        seat = self.ctx.players.add(player_id)
        self.ctx.entries[player_id] = PlayerEntry(player_id=player_id, seat=seat, chips=deposit)
        self.config.current_players = self.ctx.num_seats
        self.ctx.transfer(player_id, self.config.vault, deposit)
        self.ctx.log_action("JOIN", player=player_id, seat=seat, chips=deposit)
        logger.info(f"{player_id} joined {self.config.game_id} at seat {seat} with {deposit}")

        if self.ctx.num_seats == self.config.max_players:
            self._start_hand()

    def leave(self, player_id: str) -> None:
        """
        Leave the table and withdraw the stack.

        Only possible while no hand is in progress; a folded player still
        holds a key layer on every slot.
        """
        entry = self.ctx.entry(player_id)
        hand_over = (
            self.state.phase == GamePhase.WAITING_FOR_PLAYERS
            or self.state.texas_state == TexasHoldEmState.FINISHED
            or (self.state.texas_state == TexasHoldEmState.CLAIM_POT and self.state.pot_claimed)
        )
        if not hand_over:
            raise CannotLeaveNow()

        self.ctx.transfer(self.config.vault, player_id, entry.chips)
        self.ctx.players.remove(player_id)
        del self.ctx.entries[player_id]
        self.ctx.removed.append(player_id)
        for seat, pid in enumerate(self.ctx.players.seats):
            self.ctx.entries[pid].seat = seat

        self.config.current_players = self.ctx.num_seats
        if self.ctx.num_seats and self.config.dealer_index >= self.ctx.num_seats:
            self.config.dealer_index = 0
        if self.state.phase == GamePhase.WAITING_FOR_PLAYERS:
            self.config.is_accepting_players = True
        self.ctx.log_action("LEAVE", player=player_id, chips=entry.chips)
        logger.info(f"{player_id} left {self.config.game_id} with {entry.chips}")

    def _start_hand(self) -> None:
        n = self.ctx.num_seats
        self.config.is_accepting_players = False
        self.state.phase = GamePhase.SHUFFLING
        self.state.shuffling_state = ShufflingState.COMMITTING
        self.state.texas_state = TexasHoldEmState.SETUP
        self.state.num_seats = n
        self.state.submissions = 0
        self.ctx.set_turn(first_to_act_preflop(n, self.dealer))
        self.ctx.touch()
        self.ctx.log_action("START_HAND", game_number=self.config.game_number, dealer=self.dealer)
        logger.info(
            f"Starting hand #{self.config.game_number} of {self.config.game_id} "
            f"with {n} players, dealer seat {self.dealer}"
        )

    # ============= Shuffling =============

    def commit_seed(self, player_id: str, commitment: bytes) -> None:
        self.shuffler.commit(player_id, commitment)
        self.ctx.touch()

    def generate(self, player_id: str, seed: bytes) -> None:
        self.shuffler.generate(player_id, seed)
        self.ctx.touch()

    def submit_deck_mapping(self, player_id: str, points: Sequence[GroupElement]) -> None:
        self.shuffler.submit_deck_mapping(player_id, points)
        self.ctx.touch()

    def submit_deck_mapping_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        self.shuffler.submit_deck_mapping_part1(player_id, chunks)
        self.ctx.touch()

    def submit_deck_mapping_part2(self, player_id: str, chunks: Sequence[bytes]) -> None:
        self.shuffler.submit_deck_mapping_part2(player_id, chunks)
        self.ctx.touch()

    def shuffle(self, player_id: str, points: Sequence[GroupElement]) -> None:
        self.shuffler.shuffle(player_id, points)
        self.ctx.touch()

    def shuffle_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        self.shuffler.shuffle_part1(player_id, chunks)
        self.ctx.touch()

    def shuffle_part2(self, player_id: str, chunks: Sequence[bytes]) -> None:
        self.shuffler.shuffle_part2(player_id, chunks)
        self.ctx.touch()

    def lock(self, player_id: str, points: Sequence[GroupElement]) -> None:
        if self.shuffler.lock(player_id, points):
            self._start_blinds()
        self.ctx.touch()

    def lock_part1(self, player_id: str, chunks: Sequence[bytes]) -> None:
        self.shuffler.lock_part1(player_id, chunks)
        self.ctx.touch()

    def lock_part2(self, player_id: str, chunks: Sequence[bytes]) -> None:
        if self.shuffler.lock_part2(player_id, chunks):
            self._start_blinds()
        self.ctx.touch()

    # ============= Blinds and drawing =============

    def _start_blinds(self) -> None:
        self.state.phase = GamePhase.DRAWING
        self.state.drawing_state = DrawingState.NOT_DRAWN
        self.state.texas_state = TexasHoldEmState.BETTING
        self.state.betting_state = BettingRoundState.BLINDS
        self.state.blinds_posted = 0
        self.ctx.set_turn(small_blind_seat(self.ctx.num_seats, self.dealer))
        logger.info(f"Game {self.config.game_id}: deck frozen, posting blinds")

        # Busted stacks sit the betting out but keep their key layers
        for entry in self.ctx.live_entries():
            if entry.chips == 0:
                entry.is_folded = True
                self.state.num_folded += 1
                logger.debug(f"{entry.player_id} has no chips and sits this hand out")
        if len(self.ctx.live_entries()) == 1:
            self._to_claim_pot()

    def place_blind(self, player_id: str, amount: int) -> None:
        """
        Post the small blind (first) or the big blind (second).

        A short stack may post all remaining chips instead.
        """
        if self.state.texas_state != TexasHoldEmState.BETTING:
            raise InvalidTexasState("Blinds are only posted in the betting state")
        if self.state.betting_state != BettingRoundState.BLINDS:
            raise InvalidBettingState("Blinds have already been posted")
        entry = self.ctx.require_turn(player_id)
        if amount < 0 or entry.chips < amount:
            raise InsufficientChips(f"{player_id} cannot post {amount}")

        is_small = self.state.blinds_posted == 0
        blind = self.config.small_blind if is_small else self.config.big_blind
        expected = min(blind, entry.chips)
        if amount != expected and amount != entry.chips:
            if is_small:
                raise InvalidSmallBlind(f"Small blind is {expected}, got {amount}")
            raise InvalidBigBlind(f"Big blind is {expected}, got {amount}")

        entry.put_in(amount)
        self.state.pot += amount
        self.state.current_call_amount = max(self.state.current_call_amount, entry.current_bet)
        self.ctx.log_action("SMALL_BLIND" if is_small else "BIG_BLIND", player=player_id, amount=amount)
        logger.debug(f"{player_id} posts {'small' if is_small else 'big'} blind {amount}")
        self._after_blind()
        self.ctx.touch()

    def _after_blind(self) -> None:
        self.state.blinds_posted += 1
        if self.state.blinds_posted == 1:
            self.ctx.set_turn(big_blind_seat(self.ctx.num_seats, self.dealer))
            return
        self.state.texas_state = TexasHoldEmState.DRAWING
        self.state.drawing_state = DrawingState.PICKING
        self.ctx.set_turn(first_to_act_preflop(self.ctx.num_seats, self.dealer))
        logger.info(f"Game {self.config.game_id}: blinds posted, dealing hole cards")

    def draw(self, player_id: str) -> None:
        """Take the top slot of the deck as a hole card and start its reveal."""
        if self.state.texas_state != TexasHoldEmState.DRAWING:
            raise InvalidTexasState("Cards are drawn in the drawing state")
        if self.state.drawing_state != DrawingState.PICKING:
            raise InvalidDrawingState("A card is still being revealed")
        entry = self.ctx.require_turn(player_id)
        if entry.has_full_hand:
            raise CannotDrawMoreCards()
        if self.state.cards_left == 0:
            raise NoCardsLeft()

        self.state.cards_left -= 1
        index = self.state.cards_left
        entry.hole_cards.append(index)
        self.state.cards_drawn += 1
        self.revealer.begin(index, player_id)
        self.ctx.log_action("DRAW", player=player_id, index=index)
        self.ctx.touch()

    def reveal(self, player_id: str, inverse_key: int, index: int) -> None:
        """Remove the caller's layer from the slot being revealed."""
        if self.state.texas_state not in (
            TexasHoldEmState.DRAWING, TexasHoldEmState.COMMUNITY_CARDS_AWAITING
        ):
            raise InvalidTexasState("No card is being dealt")
        complete = self.revealer.reveal(player_id, inverse_key, index)
        self.ctx.touch()
        if not complete or self.state.texas_state != TexasHoldEmState.DRAWING:
            return

        if self.state.cards_drawn >= self.ctx.num_seats * HOLE_CARDS_PER_PLAYER:
            self._open_preflop()
        else:
            self.ctx.set_turn(self.state.current_turn + 1)

    # ============= Betting =============

    def _open_preflop(self) -> None:
        n = self.ctx.num_seats
        self.state.texas_state = TexasHoldEmState.BETTING
        self.state.betting_state = BettingRoundState.PRE_FLOP
        logger.info(f"Game {self.config.game_id}: hole cards dealt, pre-flop betting")
        self._begin_round(first_to_act_preflop(n, self.dealer), big_blind_seat(n, self.dealer))

    def _begin_round(self, first_seat: int, last_to_call: int) -> None:
        self.state.last_to_call = last_to_call
        if self._round_settled():
            self._finish_betting_round()
            return
        self.ctx.set_turn(self.ctx.seat_from(first_seat, _can_bet))

    def _round_settled(self) -> bool:
        """Fewer than two seats can act and all of them have matched the call."""
        actors = [e for e in self.ctx.seated_entries() if e.can_bet]
        return len(actors) < 2 and all(
            e.current_bet >= self.state.current_call_amount for e in actors
        )

    def _require_betting(self, player_id: str) -> PlayerEntry:
        if self.state.texas_state != TexasHoldEmState.BETTING:
            raise InvalidTexasState("Not in a betting round")
        if self.state.betting_state == BettingRoundState.BLINDS:
            raise InvalidBettingState("Blinds must be posted first")
        entry = self.ctx.require_turn(player_id)
        if entry.is_folded:
            raise AlreadyFolded()
        return entry

    def bet(self, player_id: str, amount: int) -> None:
        """
        Put amount more chips in.

        amount == 0 checks, matching the call calls, more raises. An amount
        below the call is only accepted when it is the whole stack (all-in).
        """
        entry = self._require_betting(player_id)
        if amount < 0:
            raise InvalidBetAmount(f"Bet cannot be negative: {amount}")
        if entry.chips < amount:
            raise InsufficientChips(f"{player_id} has {entry.chips}, cannot bet {amount}")
        new_bet = entry.current_bet + amount
        if new_bet < self.state.current_call_amount and amount != entry.chips:
            raise InvalidBetAmount(
                f"Bet of {amount} does not reach the call of {self.state.current_call_amount}"
            )

        seat = entry.seat
        entry.put_in(amount)
        self.state.pot += amount
        if new_bet > self.state.current_call_amount:
            self.state.current_call_amount = new_bet
            previous = self.ctx.seat_before(seat, _is_live)
            self.state.last_to_call = previous if previous is not None else seat
            action = "RAISE"
        elif amount == 0:
            action = "CHECK"
        else:
            action = "CALL"
        self.ctx.log_action(action, player=player_id, amount=amount, all_in=entry.chips == 0)
        logger.debug(f"{player_id} {action.lower()}s {amount} (pot {self.state.pot})")

        self.ctx.touch()
        self._advance_betting(seat)

    def fold(self, player_id: str) -> None:
        entry = self._require_betting(player_id)
        entry.is_folded = True
        self.state.num_folded += 1
        self.ctx.log_action("FOLD", player=player_id)
        logger.debug(f"{player_id} folds")
        self.ctx.touch()
        self._advance_betting(entry.seat)

    def _advance_betting(self, seat: int) -> None:
        """Pass the turn on from seat, or close the round."""
        if len(self.ctx.live_entries()) == 1:
            self._to_claim_pot()
            return
        if seat == self.state.last_to_call or self._round_settled():
            self._finish_betting_round()
            return

        n = self.ctx.num_seats
        for step in range(1, n):
            candidate = (seat + step) % n
            if self.ctx.entry_at(candidate).can_bet:
                self.ctx.set_turn(candidate)
                return
            if candidate == self.state.last_to_call:
                break
        self._finish_betting_round()

    def _finish_betting_round(self) -> None:
        finished = self.state.betting_state
        if finished == BettingRoundState.SHOWDOWN:
            self._start_showdown()
            return
        self.state.texas_state = TexasHoldEmState.COMMUNITY_CARDS_AWAITING
        self.state.community_state = NEXT_COMMUNITY_STEP[finished]
        self.ctx.set_turn(self.dealer)
        self.ctx.log_action("ROUND_END", round=finished.name, pot=self.state.pot)
        logger.info(
            f"Game {self.config.game_id}: {finished.name} betting finished, "
            f"pot {self.state.pot}, waiting for {self.state.community_state.name}"
        )

    # ============= Community cards =============

    def deal_community_card(self, player_id: str) -> None:
        """The dealer takes the top slot for the board and starts its reveal."""
        if self.state.texas_state != TexasHoldEmState.COMMUNITY_CARDS_AWAITING:
            raise InvalidTexasState("Community cards are not awaited")
        if not community_count_allowed(self.state.community_state, self.ctx.community.num_dealt):
            raise InvalidCommunityCardsState(
                f"Cannot deal card {self.ctx.community.num_dealt + 1} "
                f"in {self.state.community_state.name}"
            )
        self.ctx.require_turn(player_id)
        if self.state.cards_left == 0:
            raise NoCardsLeft()

        self.state.cards_left -= 1
        index = self.state.cards_left
        self.ctx.community.card_indices.append(index)
        self.state.community_state = CommunityCardsState.OPENING
        self.revealer.begin(index, player_id)
        self.ctx.log_action("DEAL_COMMUNITY", player=player_id, index=index)
        self.ctx.touch()

    def open_community_card(self, player_id: str, inverse_key: int, index: int) -> None:
        """
        The dealer removes the last layer of a community card.

        Raises:
            NotCommunityCard: If index is not a board slot
            NotCardOwner: If the caller did not deal it
            InvalidDrawingState: If other players have not all revealed it
        """
        if self.state.texas_state != TexasHoldEmState.COMMUNITY_CARDS_AWAITING:
            raise InvalidTexasState("Community cards are not awaited")
        if self.state.community_state != CommunityCardsState.OPENING:
            raise InvalidCommunityCardsState("No community card is being opened")
        self.ctx.entry(player_id)
        if not self.ctx.community.is_community_card(index):
            raise NotCommunityCard(f"Slot {index} is not a community card")
        if index != self.state.card_to_reveal:
            raise InvalidCardIndex(f"Slot {index} is not the card being opened")
        if self.ctx.deck.holder_of(index) != player_id:
            raise NotCardOwner(f"Slot {index} was not dealt by {player_id}")
        if not self.revealer.is_complete:
            raise InvalidDrawingState("Other players have not revealed this card yet")

        point, card_id = self.revealer.open(player_id, inverse_key, index)
        self.ctx.community.opened_cards.append(point)
        self.ctx.community.opened_card_ids.append(card_id)
        self.state.card_to_reveal = None
        self.state.drawing_state = DrawingState.PICKING
        self.ctx.log_action("OPEN_COMMUNITY", player=player_id, index=index, card=card_name(card_id))
        logger.info(f"Game {self.config.game_id}: board card {card_name(card_id)}")
        self.ctx.touch()

        opened = self.ctx.community.num_opened
        if opened < FLOP_CARDS:
            self.state.community_state = CommunityCardsState.FLOP_AWAITING
            self.ctx.set_turn(self.dealer)
            return

        self.state.texas_state = TexasHoldEmState.BETTING
        self.state.betting_state = BETTING_ROUND_AFTER_OPENED[opened]
        self.state.current_call_amount = 0
        for entry in self.ctx.seated_entries():
            entry.reset_for_new_round()
        logger.info(f"Game {self.config.game_id}: {self.state.betting_state.name} betting")
        self._begin_round(first_to_act_postflop(self.ctx.num_seats, self.dealer), self.dealer)

    # ============= Showdown =============

    def _start_showdown(self) -> None:
        self.state.phase = GamePhase.OPENING
        self.state.texas_state = TexasHoldEmState.REVEALING
        self.ctx.set_turn(self.ctx.seat_from(first_to_act_preflop(self.ctx.num_seats, self.dealer), _is_live))
        self.ctx.log_action("SHOWDOWN", pot=self.state.pot)
        logger.info(f"Game {self.config.game_id}: showdown, opening hole cards")
        self._after_showdown_step()

    def _after_showdown_step(self) -> None:
        """Move the showdown turn to the next live player with work left."""
        live = self.ctx.live_entries()
        if self.state.texas_state == TexasHoldEmState.REVEALING:
            if all(e.has_opened_hand for e in live):
                self.state.texas_state = TexasHoldEmState.SUBMIT_BEST
                self.ctx.set_turn(first_to_act_preflop(self.ctx.num_seats, self.dealer))
                logger.info(f"Game {self.config.game_id}: hole cards open, submitting hands")
            else:
                self.ctx.set_turn(self.ctx.seat_from(self.state.current_turn, _opening_pending))
                return

        if self.state.texas_state == TexasHoldEmState.SUBMIT_BEST:
            if all(e.submitted_hand is not None for e in live):
                self._to_claim_pot()
            else:
                self.ctx.set_turn(self.ctx.seat_from(self.state.current_turn, _submission_pending))

    def open_hole_card(self, player_id: str, inverse_key: int, index: int) -> None:
        """Remove the holder's own layer from one hole card at showdown."""
        if self.state.texas_state != TexasHoldEmState.REVEALING:
            raise InvalidTexasState("Hole cards are opened at showdown")
        if self.state.betting_state != BettingRoundState.SHOWDOWN:
            raise InvalidBettingState("Showdown betting has not finished")
        entry = self.ctx.require_turn(player_id)
        if entry.is_folded:
            raise AlreadyFolded()
        if self.ctx.community.is_community_card(index):
            raise NotCommunityCard(f"Slot {index} is a community card")
        if index not in entry.hole_cards:
            raise NotCardOwner(f"Slot {index} is not a hole card of {player_id}")
        if entry.has_opened_hand:
            raise CannotDrawMoreCards("Both hole cards are already open")

        point, card_id = self.revealer.open(player_id, inverse_key, index)
        entry.revealed_cards.append(point)
        entry.revealed_card_ids.append(card_id)
        self.state.hole_cards_opened += 1
        self.ctx.log_action("OPEN", player=player_id, index=index, card=card_name(card_id))
        logger.debug(f"{player_id} shows {card_name(card_id)}")
        self.ctx.touch()
        self._after_showdown_step()

    def submit_best_hand(self, player_id: str, points: Sequence[GroupElement]) -> None:
        """
        Submit five opened cards as the player's best hand.

        Raises:
            InvalidHand: If not exactly five points
            IllegalCard: If a point is not a card, or not one this player may use
            DuplicateCards: If a card repeats
        """
        if self.state.texas_state != TexasHoldEmState.SUBMIT_BEST:
            raise InvalidTexasState("Hands are submitted after the showdown reveal")
        entry = self.ctx.require_turn(player_id)
        if entry.is_folded:
            raise AlreadyFolded()
        if len(points) != HAND_SIZE:
            raise InvalidHand(f"Need exactly {HAND_SIZE} cards, got {len(points)}")

        card_ids = [self.ctx.accumulator.find_card(GroupElement(*p)) for p in points]
        if len(set(card_ids)) != HAND_SIZE:
            raise DuplicateCards()
        usable = set(entry.revealed_card_ids) | set(self.ctx.community.opened_card_ids)
        for card_id in card_ids:
            if card_id not in usable:
                raise IllegalCard(f"{card_name(card_id)} is not available to {player_id}")

        result = evaluate_hand(card_ids)
        entry.record_hand(result, card_ids)
        self.state.hands_submitted += 1
        self.ctx.log_action(
            "SUBMIT_HAND", player=player_id, hand=result.name,
            cards=[card_name(c) for c in card_ids],
        )
        logger.debug(f"{player_id} submits {result.name}")
        self.ctx.touch()
        self._after_showdown_step()

    # ============= Settlement =============

    def _to_claim_pot(self) -> None:
        self.state.texas_state = TexasHoldEmState.CLAIM_POT
        self.ctx.set_turn(self.dealer)
        logger.info(f"Game {self.config.game_id}: pot of {self.state.pot} ready to claim")

    def claim_pot(self, player_id: str) -> List[Dict[str, Any]]:
        """Settle the pot into the winners' stacks. Any seated player may call it."""
        if self.state.pot_claimed:
            raise PotAlreadyClaimed()
        if self.state.texas_state != TexasHoldEmState.CLAIM_POT:
            raise InvalidTexasState("The pot is not ready to be claimed")
        self.ctx.entry(player_id)

        winners = settle(self.ctx.seated_entries(), self.state.pot)
        self.state.winners = winners
        self.state.pot = 0
        self.state.current_call_amount = 0
        self.state.pot_claimed = True
        self.state.texas_state = TexasHoldEmState.FINISHED
        self.state.phase = GamePhase.FINISHED
        self.ctx.log_action("CLAIM_POT", player=player_id, winners=winners)
        for w in winners:
            logger.info(f"Hand #{self.config.game_number}: {w['player_id']} wins {w['amount']} ({w['description']})")
        self.ctx.touch()
        return winners

    # ============= Liveness =============

    def stalled_seat(self) -> int:
        """Seat the table is waiting on."""
        if self.state.drawing_state == DrawingState.REVEALING:
            seat = self.revealer.stalled_seat()
            if seat is not None:
                return seat
        return self.state.current_turn % self.ctx.num_seats

    def slash(self, caller: str) -> int:
        """
        Penalise and fold the stalled player once the timeout has passed.

        Returns:
            The penalty moved to the caller.
        """
        if self.state.phase in (GamePhase.WAITING_FOR_PLAYERS, GamePhase.FINISHED):
            raise InvalidGamePhase("No hand in progress")
        if self.state.texas_state == TexasHoldEmState.CLAIM_POT:
            raise InvalidGamePhase("The pot can be claimed by anyone")
        self.ctx.entry(caller)
        deadline = self.state.last_action_timestamp + self.config.timeout_seconds
        if self.ctx.now < deadline:
            raise TimeoutNotReached(f"{deadline - self.ctx.now:.0f}s left before a slash")

        seat = self.stalled_seat()
        offender = self.ctx.entry_at(seat)
        if offender.player_id == caller:
            raise CannotSlashSelf()

        # Shuffling needs every player, and a folded offender was only
        # stalling on key material the hand cannot do without.
        unrecoverable = offender.is_folded or self.state.phase == GamePhase.SHUFFLING

        penalty = slash_amount(offender.chips, self.config.slash_percentage)
        offender.chips -= penalty
        self.ctx.transfer(self.config.vault, caller, penalty)
        if not offender.is_folded:
            offender.is_folded = True
            self.state.num_folded += 1
        self.ctx.touch()
        self.ctx.log_action("SLASH", player=caller, offender=offender.player_id, penalty=penalty)
        logger.info(f"{caller} slashed {offender.player_id} for {penalty} in {self.config.game_id}")

        if len(self.ctx.live_entries()) == 1:
            self._to_claim_pot()
        elif unrecoverable:
            self._cancel_hand()
        elif self.state.texas_state == TexasHoldEmState.BETTING:
            if self.state.betting_state == BettingRoundState.BLINDS:
                self._after_blind()
            else:
                self._advance_betting(seat)
        elif self.state.texas_state in (TexasHoldEmState.REVEALING, TexasHoldEmState.SUBMIT_BEST):
            self._after_showdown_step()
        return penalty

    def _cancel_hand(self) -> None:
        """Return every contribution and end the hand without a winner."""
        for entry in self.ctx.seated_entries():
            entry.chips += entry.total_bet
            entry.total_bet = 0
            entry.current_bet = 0
        self.state.pot = 0
        self.state.current_call_amount = 0
        self.state.winners = []
        self.state.pot_claimed = True
        self.state.texas_state = TexasHoldEmState.FINISHED
        self.state.phase = GamePhase.FINISHED
        self.ctx.log_action("CANCEL_HAND")
        logger.warning(f"Game {self.config.game_id}: hand #{self.config.game_number} cancelled, bets returned")

    # ============= Next hand / close =============

    def start_next_hand(self, player_id: str) -> None:
        if self.state.texas_state == TexasHoldEmState.CLAIM_POT and not self.state.pot_claimed:
            raise PotNotClaimed()
        if self.state.texas_state != TexasHoldEmState.FINISHED:
            raise InvalidTexasState("The current hand has not finished")
        self.ctx.entry(player_id)

        n = self.ctx.num_seats
        self.config.dealer_index = (self.dealer + 1) % n
        self.config.game_number += 1
        self.ctx.state = GameState(last_action_timestamp=self.ctx.now)
        self.ctx.deck = DeckState()
        self.ctx.accumulator = AccumulatorState()
        self.ctx.community = CommunityCards()
        self.ctx.players.reset_revealed()
        for entry in self.ctx.seated_entries():
            entry.reset_for_next_hand()
        self.shuffler = ShuffleProtocol(self.ctx)
        self.revealer = RevealProtocol(self.ctx)

        if n >= MIN_PLAYERS:
            self._start_hand()
        else:
            self.config.is_accepting_players = True
            logger.info(f"Game {self.config.game_id}: waiting for players")

    def close_game(self, caller: str, game_id: str, force: bool = False) -> List[Dict[str, Any]]:
        """
        Refund every stack and return the refunds.

        Unless forced, only allowed between hands.
        """
        if caller != self.config.authority:
            raise InvalidAuthority()
        if game_id != self.config.game_id:
            raise InvalidGameId(f"Expected {self.config.game_id}, got {game_id}")
        between_hands = (
            self.state.texas_state in (TexasHoldEmState.FINISHED, TexasHoldEmState.START_NEXT)
            or self.state.phase == GamePhase.WAITING_FOR_PLAYERS
            or self.ctx.num_seats == 0
        )
        if not between_hands and not force:
            raise GameNotFinished()

        refunds = []
        for entry in self.ctx.seated_entries():
            amount = entry.chips
            if not self.state.pot_claimed:
                amount += entry.total_bet
            self.ctx.transfer(self.config.vault, entry.player_id, amount)
            refunds.append({"player_id": entry.player_id, "amount": amount})
        logger.info(f"Closed game {self.config.game_id}, refunded {sum(r['amount'] for r in refunds)}")
        return refunds

    # ============= Views =============

    def get_legal_actions(self, player_id: str) -> List[Dict[str, Any]]:
        """
        Get legal betting actions for a player.

        Returns:
            List of action dicts with type and constraints
        """
        if self.state.texas_state != TexasHoldEmState.BETTING:
            return []
        if player_id not in self.ctx.players or self.ctx.turn_player != player_id:
            return []
        entry = self.ctx.entries[player_id]

        if self.state.betting_state == BettingRoundState.BLINDS:
            blind = self.config.small_blind if self.state.blinds_posted == 0 else self.config.big_blind
            return [{"type": "blind", "amount": min(blind, entry.chips)}]

        to_call = max(0, self.state.current_call_amount - entry.current_bet)
        actions: List[Dict[str, Any]] = [{"type": "fold"}]
        if to_call == 0:
            actions.append({"type": "check", "amount": 0})
        else:
            actions.append({"type": "call", "amount": min(to_call, entry.chips)})
        if entry.chips > to_call:
            actions.append({"type": "raise", "min": to_call + 1, "max": entry.chips})
        if entry.chips > 0:
            actions.append({"type": "all_in", "amount": entry.chips})
        return actions

    def required_action(self, player_id: str) -> Optional[str]:
        """Name of the single operation player_id may perform next, if any."""
        ctx, state = self.ctx, self.state
        if player_id not in ctx.players:
            if state.phase == GamePhase.WAITING_FOR_PLAYERS and self.config.is_accepting_players:
                return "join"
            return None
        on_turn = ctx.turn_player == player_id

        if state.phase == GamePhase.WAITING_FOR_PLAYERS:
            return None
        if state.texas_state == TexasHoldEmState.FINISHED:
            return "start_next_hand"
        if state.texas_state == TexasHoldEmState.CLAIM_POT:
            return "claim_pot" if on_turn else None

        if state.drawing_state == DrawingState.REVEALING:
            index = state.card_to_reveal
            holder = ctx.deck.holder_of(index)
            if holder != player_id:
                return None if ctx.players.has_revealed(ctx.seat_of(player_id)) else "reveal"
            if state.community_state == CommunityCardsState.OPENING and self.revealer.is_complete:
                return "open_community_card"
            return None
        if (
            state.community_state == CommunityCardsState.OPENING
            and state.texas_state == TexasHoldEmState.COMMUNITY_CARDS_AWAITING
        ):
            opening = ctx.deck.holder_of(state.card_to_reveal) == player_id
            return "open_community_card" if opening else None

        if not on_turn:
            return None
        if state.phase == GamePhase.SHUFFLING:
            return {
                ShufflingState.COMMITTING: "commit_seed",
                ShufflingState.GENERATING: "generate",
                ShufflingState.SHUFFLING: "shuffle" if ctx.accumulator.is_submitted else "submit_deck_mapping",
                ShufflingState.LOCKING: "lock",
            }.get(state.shuffling_state)
        return {
            TexasHoldEmState.BETTING: "place_blind" if state.betting_state == BettingRoundState.BLINDS else "bet",
            TexasHoldEmState.DRAWING: "draw",
            TexasHoldEmState.COMMUNITY_CARDS_AWAITING: "deal_community_card",
            TexasHoldEmState.REVEALING: "open",
            TexasHoldEmState.SUBMIT_BEST: "submit_best_hand",
        }.get(state.texas_state)

    def get_winners(self) -> List[Dict[str, Any]]:
        """Get winner information after the pot is claimed."""
        return list(self.state.winners)

    def get_state(self, for_player_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get the current game state.

        Args:
            for_player_id: If specified, include the actions open to this player

        Returns:
            Game state dictionary
        """
        state, ctx = self.state, self.ctx
        public_info = {
            "game_id": self.config.game_id,
            "game_number": self.config.game_number,
            "phase": state.phase.name,
            "shuffling_state": state.shuffling_state.name,
            "drawing_state": state.drawing_state.name,
            "texas_state": state.texas_state.name,
            "betting_state": state.betting_state.name,
            "community_state": state.community_state.name,
            "dealer": self.dealer,
            "turn": state.current_turn,
            "current_player": ctx.turn_player,
            "pot": state.pot,
            "current_call": state.current_call_amount,
            "card_to_reveal": state.card_to_reveal,
            "cards_left": state.cards_left,
            "players": [e.to_dict() for e in ctx.seated_entries()],
            "board": [card_name(c) for c in ctx.community.opened_card_ids],
            "board_slots": list(ctx.community.card_indices),
            "winners": list(state.winners),
            "history": list(state.history),
        }
        private_info: Dict[str, Any] = {}
        if for_player_id and for_player_id in ctx.players:
            private_info = {
                "required_action": self.required_action(for_player_id),
                "legal_actions": self.get_legal_actions(for_player_id),
            }
        return {"public_info": public_info, "private_info": private_info}
