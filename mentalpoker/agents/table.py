"""
Table driver: plays agents against each other through a GameSession.

Every step asks each seated agent for its required action and performs the
first one found, so the table never bypasses the engine's turn checks.
"""

from __future__ import annotations
from typing import Dict, List, Any, Sequence, Tuple
import logging

from mentalpoker.agents.base import BaseAgent
from mentalpoker.core.rules import TexasHoldEmState
from mentalpoker.session import GameSession


logger = logging.getLogger(__name__)

MAX_STEPS = 2000


class TableStalled(RuntimeError):
    """No agent has anything to do, yet the hand is not over."""


class Table:
    """
    A set of agents seated at one game.

    Usage:
        table = Table(session, "table-1", [CallAgent("alice"), CallAgent("bob")])
        table.seat_all(buy_in=100)
        winners = table.play_hand()
    """

    def __init__(self, session: GameSession, game_id: str, agents: Sequence[BaseAgent]):
        self.session = session
        self.game_id = game_id
        self.agents: Dict[str, BaseAgent] = {a.player_id: a for a in agents}

    def seat_all(self, buy_in: int) -> None:
        """Join every agent in order; the last join starts the first hand."""
        for agent in self.agents.values():
            self.session.join(self.game_id, agent.player_id, buy_in)

    def pending(self) -> List[Tuple[BaseAgent, str]]:
        """Agents with an operation to perform, paired with its name."""
        result = []
        for agent in self.agents.values():
            action = self.session.required_action(self.game_id, agent.player_id)
            if action not in (None, "join", "start_next_hand"):
                result.append((agent, action))
        return result

    def step(self) -> bool:
        """
        Perform one operation.

        Returns:
            False once the hand is finished
        """
        state = self.session.context(self.game_id).state
        if state.texas_state == TexasHoldEmState.FINISHED:
            return False
        pending = self.pending()
        if not pending:
            raise TableStalled(f"Nobody can act in game {self.game_id}")
        agent, action = pending[0]
        logger.debug(f"{agent.name}: {action}")
        agent.perform(self.session, self.game_id, action)
        return True

    def play_hand(self, max_steps: int = MAX_STEPS) -> List[Dict[str, Any]]:
        """
        Play until the pot is claimed.

        Returns:
            Winner info dicts of the finished hand
        """
        for _ in range(max_steps):
            if not self.step():
                return self.session.winners(self.game_id)
        raise TableStalled(f"Hand did not finish within {max_steps} steps")

    def next_hand(self) -> None:
        """Start the next hand from the first seated agent."""
        for player_id in self.agents:
            if player_id in self.session.context(self.game_id).players:
                self.session.start_next_hand(self.game_id, player_id)
                return
