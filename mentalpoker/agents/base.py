"""
Base Agent Interface for Mental Poker.

An agent is one player's client: it keeps the player's secret key material
for the current hand and answers whatever operation the table is waiting on.
The cryptographic steps (commit, generate, map, shuffle, lock, reveal, open,
submit) are mechanical and handled here; subclasses only decide how to bet.

Usage:
    class MyAgent(BaseAgent):
        def act(self, game_state, legal_actions):
            return {"action": "call", "amount": legal_actions[1]["amount"]}
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
import logging

from mentalpoker.core.hand import best_hand
from mentalpoker.core.rules import DrawingState
from mentalpoker.core.state import GameContext
from mentalpoker.crypto.toolkit import PlayerSecrets, find_card, split_halves, unlock, work_deck
from mentalpoker.session import GameSession


logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """
    Abstract base class for Mental Poker agents.

    Attributes:
        player_id: Unique identifier for this agent (its seat and ledger account)
        name: Human-readable name
        split_submissions: Send deck submissions as two 26-point halves
    """

    def __init__(self, player_id: str, name: Optional[str] = None, split_submissions: bool = False):
        """
        Initialize the agent.

        Args:
            player_id: Unique identifier for this agent
            name: Optional human-readable name
            split_submissions: Use the part 1 / part 2 submission calls
        """
        self.player_id = player_id
        self.name = name or f"Agent-{player_id}"
        self.split_submissions = split_submissions
        self.secrets: Optional[PlayerSecrets] = None
        self._hand_number: Optional[int] = None

    @abstractmethod
    def act(
        self,
        game_state: Dict[str, Any],
        legal_actions: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Choose a betting action.

        Args:
            game_state: Current game state (public_info / private_info)
            legal_actions: List of legal action dicts, each containing:
                - type: fold, check, call, raise or all_in
                - amount: Chips to put in (check, call, all_in)
                - min/max: Valid range (raise)

        Returns:
            Action dictionary with:
                - action: "fold" or any other type, which puts in amount
                - amount: Additional chips to put in
        """

    def on_hand_start(self, hand_number: int) -> None:
        """Draw fresh secrets for a new hand."""
        self.secrets = PlayerSecrets.generate()
        self._hand_number = hand_number
        logger.debug(f"{self.name} prepared secrets for hand #{hand_number}")

    def _secrets_for(self, ctx: GameContext) -> PlayerSecrets:
        if self.secrets is None or self._hand_number != ctx.config.game_number:
            self.on_hand_start(ctx.config.game_number)
        return self.secrets

    def peek_hole_cards(self, ctx: GameContext) -> List[int]:
        """
        Card ids of this player's hole cards.

        Only works once every other player has revealed the slot; the agent
        removes its own layer locally without publishing the key.
        """
        secrets = self._secrets_for(ctx)
        entry = ctx.entry(self.player_id)
        cards = []
        for index in entry.hole_cards:
            pending = ctx.state.drawing_state == DrawingState.REVEALING and ctx.state.card_to_reveal == index
            if ctx.deck.holder_of(index) != self.player_id or pending:
                continue
            point = unlock(ctx.deck.cards[index], [secrets.reveal_key(index)])
            cards.append(find_card(point, ctx.accumulator.canonical))
        return cards

    def perform(self, session: GameSession, game_id: str, action: str) -> None:
        """
        Carry out the operation the table is waiting on.

        Args:
            session: Session holding the game
            game_id: Game identifier
            action: Name returned by GameSession.required_action
        """
        ctx = session.context(game_id)
        secrets = self._secrets_for(ctx)
        pid = self.player_id

        if action == "commit_seed":
            session.commit_seed(game_id, pid, secrets.commitment())
        elif action == "generate":
            session.generate(game_id, pid, secrets.seed)
        elif action == "submit_deck_mapping":
            mapping = work_deck(ctx.accumulator.values)
            if self.split_submissions:
                first, second = split_halves(mapping)
                session.submit_deck_mapping_part1(game_id, pid, first)
                session.submit_deck_mapping_part2(game_id, pid, second)
            else:
                session.submit_deck_mapping(game_id, pid, mapping)
        elif action in ("shuffle", "lock"):
            if action == "lock":
                deck = secrets.lock_deck(ctx.deck.cards)
            elif ctx.deck.is_established:
                deck = secrets.shuffle_deck(ctx.deck.cards)
            else:
                # First shuffler starts from the canonical deck
                deck = secrets.shuffle_deck(ctx.accumulator.canonical)
            if self.split_submissions:
                first, second = split_halves(deck)
                getattr(session, f"{action}_part1")(game_id, pid, first)
                getattr(session, f"{action}_part2")(game_id, pid, second)
            else:
                getattr(session, action)(game_id, pid, deck)
        elif action == "place_blind":
            blind = session.legal_bets(game_id, pid)[0]
            session.place_blind(game_id, pid, blind["amount"])
        elif action == "draw":
            session.draw(game_id, pid)
        elif action in ("reveal", "open_community_card"):
            index = ctx.state.card_to_reveal
            getattr(session, action)(game_id, pid, secrets.reveal_key(index), index)
        elif action == "deal_community_card":
            session.deal_community_card(game_id, pid)
        elif action == "bet":
            game_state = session.view(game_id, pid)
            choice = self.act(game_state, session.legal_bets(game_id, pid))
            if choice["action"] == "fold":
                session.fold(game_id, pid)
            else:
                session.bet(game_id, pid, choice.get("amount", 0))
        elif action == "open":
            entry = ctx.entry(pid)
            index = entry.hole_cards[len(entry.revealed_cards)]
            session.open(game_id, pid, secrets.reveal_key(index), index)
        elif action == "submit_best_hand":
            entry = ctx.entry(pid)
            _, card_ids = best_hand(entry.revealed_card_ids + ctx.community.opened_card_ids)
            session.submit_best_hand(
                game_id, pid, [ctx.accumulator.canonical[c] for c in card_ids]
            )
        elif action == "claim_pot":
            session.claim_pot(game_id, pid)
        else:
            raise ValueError(f"{self.name} cannot perform {action}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.player_id}, {self.name})"
