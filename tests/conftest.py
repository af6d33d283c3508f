"""
Pytest configuration and shared fixtures for Mental Poker tests.
"""

import pytest

from mentalpoker.agents import CallAgent, Table
from mentalpoker.core.rules import TexasHoldEmState
from mentalpoker.session import GameSession
from mentalpoker.storage import InMemoryLedger, InMemoryStateStore


PLAYERS = ["alice", "bob", "carol", "dave", "erin", "frank"]
BANKROLL = 1000
BUY_IN = 200


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def ledger():
    """Ledger with every test player funded."""
    return InMemoryLedger({pid: BANKROLL for pid in PLAYERS})


@pytest.fixture
def session(store, ledger, clock):
    return GameSession(store, ledger, clock=clock)


@pytest.fixture
def make_game(session):
    """Create a game and return its id."""
    def _make(game_id="g1", max_players=2, small_blind=5, min_buy_in=100, **kwargs):
        session.create_game(
            "host", game_id,
            max_players=max_players,
            small_blind=small_blind,
            min_buy_in=min_buy_in,
            **kwargs,
        )
        return game_id
    return _make


@pytest.fixture
def make_table(session, make_game):
    """
    Create a game, seat the given agents and return the Table.

    The last join fills the table, so the hand is already in the shuffle.
    """
    def _make(agents=None, num_players=2, buy_in=BUY_IN, **game_kwargs):
        agents = agents or [CallAgent(pid) for pid in PLAYERS[:num_players]]
        game_id = make_game(max_players=len(agents), **game_kwargs)
        table = Table(session, game_id, agents)
        table.seat_all(buy_in)
        return table
    return _make


def play_until(table, condition, max_steps=2000):
    """Step the table until condition(ctx) holds."""
    for _ in range(max_steps):
        ctx = table.session.context(table.game_id)
        if condition(ctx):
            return ctx
        if not table.step():
            break
    ctx = table.session.context(table.game_id)
    assert condition(ctx), "condition never reached"
    return ctx


def in_texas_state(texas_state):
    return lambda ctx: ctx.state.texas_state == texas_state


hand_finished = in_texas_state(TexasHoldEmState.FINISHED)


@pytest.fixture
def advance():
    """The play_until helper, for tests that drive a table step by step."""
    return play_until
