#!/usr/bin/env python3
"""
Mental Poker - local table demo

Seats a few agents at an in-memory table and plays hands through the full
commit / shuffle / lock / reveal protocol.

Usage:
    python run.py [--players N] [--small-blind SB] [--buy-in CHIPS] [--hands H]
"""

import argparse
import logging

from mentalpoker.agents import CallAgent, RandomAgent, Table
from mentalpoker.config import Settings, configure_logging
from mentalpoker.session import GameSession
from mentalpoker.storage import InMemoryLedger, InMemoryStateStore


logger = logging.getLogger("mentalpoker.demo")


def main():
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Mental Poker table demo")
    parser.add_argument("--players", type=int, default=3, help="Number of agents")
    parser.add_argument("--small-blind", type=int, default=5, help="Small blind")
    parser.add_argument("--buy-in", type=int, default=200, help="Chips each agent brings")
    parser.add_argument("--hands", type=int, default=1, help="Hands to play")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args()

    configure_logging(args.log_level)

    agents = [CallAgent("player-0")] + [
        RandomAgent(f"player-{i}", seed=i) for i in range(1, args.players)
    ]
    ledger = InMemoryLedger({a.player_id: args.buy_in for a in agents})
    session = GameSession(InMemoryStateStore(), ledger, settings=settings)
    session.create_game(
        "host", "demo",
        max_players=args.players,
        small_blind=args.small_blind,
        min_buy_in=args.buy_in,
    )

    table = Table(session, "demo", agents)
    table.seat_all(args.buy_in)
    for hand in range(args.hands):
        for winner in table.play_hand():
            print(f"Hand {hand + 1}: {winner['player_id']} wins {winner['amount']} - {winner['description']}")
        if hand + 1 < args.hands:
            table.next_hand()

    for refund in session.close_game("host", "demo"):
        print(f"{refund['player_id']} leaves with {refund['amount']}")


if __name__ == "__main__":
    main()
