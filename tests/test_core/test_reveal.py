"""
Tests for drawing hole cards and the collaborative reveal.
"""

import pytest

from mentalpoker.core.rules import BettingRoundState, DrawingState, TexasHoldEmState
from mentalpoker.core.game import MentalPokerGame
from mentalpoker.errors import (
    InvalidCardIndex, InvalidDrawingState, InvalidScalar, NotCardOwner,
    NotYourTurn, PlayerAlreadyRevealed,
)


def picking(ctx):
    return (
        ctx.state.texas_state == TexasHoldEmState.DRAWING
        and ctx.state.drawing_state == DrawingState.PICKING
    )


@pytest.fixture
def three_way(make_table, advance):
    """Three seats, blinds posted, alice (seat 0) about to draw."""
    table = make_table(num_players=3)
    advance(table, picking)
    return table


class TestDraw:
    """Tests for taking a slot from the top of the deck."""

    def test_draw_takes_top_slot(self, three_way):
        session, gid = three_way.session, three_way.game_id
        assert session.required_action(gid, "alice") == "draw"
        session.draw(gid, "alice")

        ctx = session.context(gid)
        assert ctx.state.cards_left == 51
        assert ctx.state.card_to_reveal == 51
        assert ctx.state.drawing_state == DrawingState.REVEALING
        assert ctx.deck.holder_of(51) == "alice"
        assert ctx.entry("alice").hole_cards == [51]

    def test_draw_out_of_turn(self, three_way):
        with pytest.raises(NotYourTurn):
            three_way.session.draw(three_way.game_id, "bob")

    def test_no_draw_during_reveal(self, three_way):
        three_way.session.draw(three_way.game_id, "alice")
        with pytest.raises(InvalidDrawingState):
            three_way.session.draw(three_way.game_id, "alice")


class TestReveal:
    """Tests for removing lock layers exactly once."""

    @pytest.fixture
    def revealing(self, three_way):
        three_way.session.draw(three_way.game_id, "alice")
        return three_way

    def test_non_holders_must_reveal(self, revealing):
        session, gid = revealing.session, revealing.game_id
        assert session.required_action(gid, "bob") == "reveal"
        assert session.required_action(gid, "carol") == "reveal"
        assert session.required_action(gid, "alice") is None

    def test_holder_cannot_reveal(self, revealing):
        key = revealing.agents["alice"].secrets.reveal_key(51)
        with pytest.raises(NotCardOwner):
            revealing.session.reveal(revealing.game_id, "alice", key, 51)

    def test_wrong_index(self, revealing):
        key = revealing.agents["bob"].secrets.reveal_key(50)
        with pytest.raises(InvalidCardIndex):
            revealing.session.reveal(revealing.game_id, "bob", key, 50)

    def test_zero_key(self, revealing):
        with pytest.raises(InvalidScalar):
            revealing.session.reveal(revealing.game_id, "bob", 0, 51)

    def test_reveal_exactly_once(self, revealing):
        session, gid = revealing.session, revealing.game_id
        key = revealing.agents["bob"].secrets.reveal_key(51)
        session.reveal(gid, "bob", key, 51)
        revealed = session.context(gid).players.count_revealed()
        with pytest.raises(PlayerAlreadyRevealed):
            session.reveal(gid, "bob", key, 51)
        assert session.context(gid).players.count_revealed() == revealed == 1
        assert session.required_action(gid, "bob") is None

    def test_reveal_completes_at_threshold(self, revealing):
        """seated - 1 reveals finish the slot and pass the draw on."""
        session, gid = revealing.session, revealing.game_id
        for pid in ("carol", "bob"):
            session.reveal(gid, pid, revealing.agents[pid].secrets.reveal_key(51), 51)

        ctx = session.context(gid)
        assert ctx.state.drawing_state == DrawingState.PICKING
        assert ctx.turn_player == "bob"
        assert ctx.deck.holder_of(51) == "alice"

    def test_holder_peeks_own_card(self, revealing):
        """Only the holder's layer is left, which they remove locally."""
        session, gid = revealing.session, revealing.game_id
        assert revealing.agents["alice"].peek_hole_cards(session.context(gid)) == []
        for pid in ("bob", "carol"):
            session.reveal(gid, pid, revealing.agents[pid].secrets.reveal_key(51), 51)
        cards = revealing.agents["alice"].peek_hole_cards(session.context(gid))
        assert len(cards) == 1
        assert 0 <= cards[0] <= 51

    def test_stalled_seat_is_first_pending(self, revealing):
        session, gid = revealing.session, revealing.game_id
        game = MentalPokerGame(session.context(gid))
        assert game.stalled_seat() == 1
        session.reveal(gid, "bob", revealing.agents["bob"].secrets.reveal_key(51), 51)
        game = MentalPokerGame(session.context(gid))
        assert game.stalled_seat() == 2


class TestDealingHoleCards:

    def test_all_hole_cards_then_preflop(self, three_way, advance):
        ctx = advance(three_way, lambda c: c.state.texas_state == TexasHoldEmState.BETTING)
        assert ctx.state.betting_state == BettingRoundState.PRE_FLOP
        assert ctx.state.cards_left == 46
        assert all(len(e.hole_cards) == 2 for e in ctx.seated_entries())

        seen = []
        for pid, agent in three_way.agents.items():
            seen.extend(agent.peek_hole_cards(ctx))
        assert len(seen) == 6
        assert len(set(seen)) == 6
