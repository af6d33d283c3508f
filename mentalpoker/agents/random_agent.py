"""
Simple betting agents.

Baselines for tests and demos: they only decide how to bet, every other
step of the protocol is handled by BaseAgent.
"""

import random
from typing import Dict, List, Any, Optional

from mentalpoker.agents.base import BaseAgent


def _find(legal_actions: List[Dict[str, Any]], action_type: str) -> Optional[Dict[str, Any]]:
    return next((a for a in legal_actions if a["type"] == action_type), None)


class RandomAgent(BaseAgent):
    """
    An agent that selects random legal actions.

    The agent has configurable tendencies:
    - fold_probability: How likely to fold when facing a bet
    - raise_probability: How likely to raise vs call
    """

    def __init__(
        self,
        player_id: str,
        name: Optional[str] = None,
        fold_probability: float = 0.1,
        raise_probability: float = 0.3,
        seed: Optional[int] = None,
        split_submissions: bool = False,
    ):
        """
        Initialize the random agent.

        Args:
            player_id: Unique identifier
            name: Optional name
            fold_probability: Probability of folding (0-1)
            raise_probability: Probability of raising vs calling (0-1)
            seed: Seed for the betting decisions (not the key material)
            split_submissions: Use the part 1 / part 2 submission calls
        """
        super().__init__(player_id, name or f"Random-{player_id}", split_submissions)
        self.fold_probability = fold_probability
        self.raise_probability = raise_probability
        self.rng = random.Random(seed)

    def act(
        self,
        game_state: Dict[str, Any],
        legal_actions: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Select a random legal action.

        Never folds when checking is free.
        """
        if not legal_actions:
            return {"action": "fold", "amount": 0}

        check = _find(legal_actions, "check")
        roll = self.rng.random()

        if check is None and roll < self.fold_probability:
            return {"action": "fold", "amount": 0}

        raise_action = _find(legal_actions, "raise")
        if raise_action and roll < self.fold_probability + self.raise_probability:
            amount = self.rng.randint(raise_action["min"], raise_action["max"])
            return {"action": "raise", "amount": amount}

        if check:
            return {"action": "check", "amount": 0}
        call = _find(legal_actions, "call") or _find(legal_actions, "all_in")
        if call:
            return {"action": call["type"], "amount": call["amount"]}
        return {"action": "fold", "amount": 0}


class CallAgent(BaseAgent):
    """
    An agent that always calls (or checks).

    Useful for testing and as a simple baseline.
    """

    def __init__(self, player_id: str, name: Optional[str] = None, split_submissions: bool = False):
        super().__init__(player_id, name or f"Caller-{player_id}", split_submissions)

    def act(
        self,
        game_state: Dict[str, Any],
        legal_actions: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Always check or call."""
        if _find(legal_actions, "check"):
            return {"action": "check", "amount": 0}
        call = _find(legal_actions, "call")
        if call:
            return {"action": "call", "amount": call["amount"]}
        return {"action": "fold", "amount": 0}


class FoldAgent(BaseAgent):
    """An agent that folds at its first betting decision."""

    def __init__(self, player_id: str, name: Optional[str] = None):
        super().__init__(player_id, name or f"Folder-{player_id}")

    def act(self, game_state, legal_actions):
        return {"action": "fold", "amount": 0}
