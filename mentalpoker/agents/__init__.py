"""
Mental Poker Agents - player-side clients

Each agent holds one player's secret keys and answers the operation the
table is waiting on.
"""

from mentalpoker.agents.base import BaseAgent
from mentalpoker.agents.random_agent import RandomAgent, CallAgent, FoldAgent
from mentalpoker.agents.table import Table

__all__ = ["BaseAgent", "RandomAgent", "CallAgent", "FoldAgent", "Table"]
