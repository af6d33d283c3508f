"""
Tests for pot splitting and winner determination.

These tests verify:
- Floor division with the remainder to the first winner
- Win by fold without a showdown
- Ties between equal hands
"""

import pytest
from mentalpoker.core.card import parse_cards
from mentalpoker.core.hand import evaluate_hand
from mentalpoker.core.player import PlayerEntry
from mentalpoker.core.settlement import determine_winners, settle, split_pot
from mentalpoker.errors import NoWinner


def entry(pid, seat, cards=None, folded=False, chips=0, total_bet=0):
    e = PlayerEntry(player_id=pid, seat=seat, chips=chips, total_bet=total_bet, is_folded=folded)
    if cards:
        ids = parse_cards(cards)
        e.record_hand(evaluate_hand(ids), ids)
    return e


class TestSplitPot:

    def test_three_way_remainder(self):
        """100 among three: the first winner takes the extra chip."""
        assert split_pot(100, 3) == [34, 33, 33]

    def test_even_split(self):
        assert split_pot(90, 2) == [45, 45]

    def test_single_winner(self):
        assert split_pot(77, 1) == [77]

    def test_no_winners(self):
        with pytest.raises(NoWinner):
            split_pot(100, 0)


class TestDetermineWinners:
    """Tests for picking winners among seated players."""

    def test_last_player_standing(self):
        """Everyone else folded: no hand needed."""
        players = [entry("a", 0, folded=True), entry("b", 1), entry("c", 2, folded=True)]
        assert [w.player_id for w in determine_winners(players)] == ["b"]

    def test_best_hand_wins(self):
        players = [
            entry("a", 0, "2c 2d 3h 4s 6c"),
            entry("b", 1, "Ac Ad 3c 4d 6h"),
        ]
        assert [w.player_id for w in determine_winners(players)] == ["b"]

    def test_folded_hand_ignored(self):
        """A folded player's submitted hand never wins."""
        players = [
            entry("a", 0, "Ac Kc Qc Jc Tc", folded=True),
            entry("b", 1, "2c 2d 3h 4s 6c"),
            entry("c", 2, "3c 3d 5h 7s 9c"),
        ]
        assert [w.player_id for w in determine_winners(players)] == ["c"]

    def test_tie_in_seat_order(self):
        players = [
            entry("a", 0, "Ac Kc Qd Jh 9s"),
            entry("b", 1, "Ad Kd Qh Js 9c"),
        ]
        assert [w.player_id for w in determine_winners(players)] == ["a", "b"]

    def test_no_hands(self):
        with pytest.raises(NoWinner):
            determine_winners([entry("a", 0), entry("b", 1)])


class TestSettle:
    """Tests for crediting the pot."""

    def test_three_way_split(self):
        """Three identical straights share 100 as 34/33/33."""
        players = [
            entry("a", 0, "5c 6d 7h 8s 9c", total_bet=40),
            entry("b", 1, "5d 6h 7s 8c 9d", total_bet=30),
            entry("c", 2, "5h 6s 7c 8d 9h", total_bet=30),
        ]
        winners = settle(players, 100)
        assert [w["amount"] for w in winners] == [34, 33, 33]
        assert [p.chips for p in players] == [34, 33, 33]
        assert all(p.total_bet == 0 for p in players)
        assert winners[0]["hand_type"] == "STRAIGHT"
        assert len(winners[0]["cards"]) == 5

    def test_win_by_fold(self):
        players = [entry("a", 0, folded=True), entry("b", 1, chips=50)]
        winners = settle(players, 30)
        assert winners == [{
            "player_id": "b",
            "amount": 30,
            "hand_type": "WIN_BY_FOLD",
            "description": "All other players folded",
        }]
        assert players[1].chips == 80
