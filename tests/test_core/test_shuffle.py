"""
Tests for the shuffle sub-phases: commit, generate, map, shuffle and lock.

These tests verify:
- Turn order from dealer + 3 through every seat
- Commitment checks before the accumulator is touched
- Deck mapping checks against the accumulator
- Deck submission validation (size, identity, duplicates)
- Split submissions in two compressed halves
"""

import pytest

from mentalpoker.agents import CallAgent
from mentalpoker.core.rules import (
    BettingRoundState, GamePhase, ShufflingState, TexasHoldEmState,
)
from mentalpoker.core.state import AccumulatorState
from mentalpoker.crypto.commitment import derive_shuffle_values
from mentalpoker.crypto.group import CURVE_ORDER, IDENTITY, generator_mul
from mentalpoker.crypto.toolkit import split_halves, work_deck
from mentalpoker.errors import (
    DeckAlreadySubmitted, DeckNotSubmitted, InvalidCommitment, InvalidPoint,
    InvalidShufflingState, InvalidVectorSize, NotAPlayer, NotYourTurn,
    Part1AlreadySubmitted, Part1NotSubmitted,
)
from mentalpoker.storage.store import record_key


def in_shuffling_state(sub_state):
    return lambda ctx: ctx.state.shuffling_state == sub_state


@pytest.fixture
def table(make_table):
    """Heads-up table, dealer alice (seat 0), bob (seat 1) acts first."""
    return make_table(num_players=2)


class TestCommitting:
    """Tests for the commit sub-phase."""

    def test_hand_starts_when_table_fills(self, table):
        """Test the last join starts the commit round."""
        ctx = table.session.context(table.game_id)
        assert ctx.state.phase == GamePhase.SHUFFLING
        assert ctx.state.shuffling_state == ShufflingState.COMMITTING
        assert not ctx.config.is_accepting_players
        assert ctx.turn_player == "bob"

    def test_required_action(self, table):
        assert table.session.required_action(table.game_id, "bob") == "commit_seed"
        assert table.session.required_action(table.game_id, "alice") is None

    def test_out_of_turn(self, table):
        """Test committing out of turn."""
        with pytest.raises(NotYourTurn):
            table.session.commit_seed(table.game_id, "alice", bytes(32))

    def test_not_seated(self, table):
        with pytest.raises(NotAPlayer):
            table.session.commit_seed(table.game_id, "carol", bytes(32))

    def test_commitment_size(self, table):
        """Test commitments must be 32 bytes."""
        with pytest.raises(InvalidVectorSize):
            table.session.commit_seed(table.game_id, "bob", bytes(31))

    def test_turn_moves_after_commit(self, table):
        table.step()
        ctx = table.session.context(table.game_id)
        assert ctx.entry("bob").has_committed
        assert ctx.turn_player == "alice"

    def test_commits_lead_to_generating(self, table, advance):
        """Test every commitment moves the hand to generating."""
        ctx = advance(table, in_shuffling_state(ShufflingState.GENERATING))
        assert ctx.turn_player == "bob"
        assert ctx.state.submissions == 0


class TestGenerating:
    """Tests for seed reveal and accumulation."""

    def test_commitment_mismatch_leaves_state_untouched(self, table, store, advance):
        """Test a seed that does not match its commitment."""
        advance(table, in_shuffling_state(ShufflingState.GENERATING))
        key = record_key(table.game_id, "accumulator")
        before = store.read(key)

        with pytest.raises(InvalidCommitment):
            table.session.generate(table.game_id, "bob", bytes(32))

        assert store.read(key) == before
        ctx = table.session.context(table.game_id)
        assert ctx.accumulator.contributions == 0
        assert not ctx.entry("bob").has_generated
        assert ctx.turn_player == "bob"

    def test_turn_passes_after_generate(self, table, advance):
        advance(table, in_shuffling_state(ShufflingState.GENERATING))
        table.step()
        ctx = table.session.context(table.game_id)
        assert ctx.turn_player == "alice"
        with pytest.raises(NotYourTurn):
            table.session.generate(table.game_id, "bob", table.agents["bob"].secrets.seed)

    def test_accumulator_sums_seeds(self, table, advance):
        """Test the accumulator is the sum of derived values modulo n."""
        ctx = advance(table, in_shuffling_state(ShufflingState.SHUFFLING))
        expected = [
            (a + b) % CURVE_ORDER
            for a, b in zip(
                derive_shuffle_values(table.agents["alice"].secrets.seed),
                derive_shuffle_values(table.agents["bob"].secrets.seed),
            )
        ]
        assert ctx.accumulator.values == expected
        assert ctx.accumulator.contributions == 2

    def test_accumulation_wraps_at_group_order(self):
        """Test accumulated values stay reduced below n."""
        acc = AccumulatorState()
        acc.accumulate([CURVE_ORDER - 1] * 52)
        acc.accumulate([2] * 52)
        assert acc.values == [1] * 52
        assert acc.contributions == 2


class TestDeckMapping:
    """Tests for the canonical deck mapping."""

    @pytest.fixture
    def shuffling(self, table, advance):
        advance(table, in_shuffling_state(ShufflingState.SHUFFLING))
        return table

    def test_shuffle_requires_mapping(self, shuffling):
        """Test the first shuffle needs the canonical mapping."""
        ctx = shuffling.session.context(shuffling.game_id)
        deck = work_deck(ctx.accumulator.values)
        with pytest.raises(DeckNotSubmitted):
            shuffling.session.shuffle(shuffling.game_id, "bob", deck)

    def test_mapping_must_match_accumulator(self, shuffling):
        """Test a mapping that does not match the accumulator."""
        wrong = [generator_mul(k) for k in range(1, 53)]
        with pytest.raises(InvalidPoint):
            shuffling.session.submit_deck_mapping(shuffling.game_id, "bob", wrong)

    def test_mapping_does_not_move_turn(self, shuffling):
        session, gid = shuffling.session, shuffling.game_id
        session.submit_deck_mapping(gid, "bob", work_deck(session.context(gid).accumulator.values))
        ctx = session.context(gid)
        assert ctx.accumulator.is_submitted
        assert ctx.turn_player == "bob"
        assert session.required_action(gid, "bob") == "shuffle"

    def test_mapping_only_once(self, shuffling):
        """Test the mapping cannot be replaced."""
        session, gid = shuffling.session, shuffling.game_id
        mapping = work_deck(session.context(gid).accumulator.values)
        session.submit_deck_mapping(gid, "bob", mapping)
        with pytest.raises(DeckAlreadySubmitted):
            session.submit_deck_mapping(gid, "bob", mapping)

    def test_split_mapping(self, shuffling):
        """Test the mapping submitted in two halves."""
        session, gid = shuffling.session, shuffling.game_id
        mapping = work_deck(session.context(gid).accumulator.values)
        first, second = split_halves(mapping)

        with pytest.raises(Part1NotSubmitted):
            session.submit_deck_mapping_part2(gid, "bob", second)
        session.submit_deck_mapping_part1(gid, "bob", first)
        with pytest.raises(Part1AlreadySubmitted):
            session.submit_deck_mapping_part1(gid, "bob", first)
        session.submit_deck_mapping_part2(gid, "bob", second)

        assert session.context(gid).accumulator.canonical == mapping

    def test_part_size(self, shuffling):
        """Test each half carries exactly 26 points."""
        session, gid = shuffling.session, shuffling.game_id
        first, _ = split_halves(work_deck(session.context(gid).accumulator.values))
        with pytest.raises(InvalidVectorSize):
            session.submit_deck_mapping_part1(gid, "bob", first[:25])


class TestShuffleSubmission:
    """Tests for deck validation on shuffle."""

    @pytest.fixture
    def mapped(self, table, advance):
        advance(table, in_shuffling_state(ShufflingState.SHUFFLING))
        table.step()
        return table

    def test_wrong_size(self, mapped):
        """Test a deck without 52 points."""
        canonical = mapped.session.context(mapped.game_id).accumulator.canonical
        with pytest.raises(InvalidVectorSize):
            mapped.session.shuffle(mapped.game_id, "bob", canonical[:51])

    def test_duplicate_points(self, mapped):
        """Test a deck with a repeated point."""
        canonical = mapped.session.context(mapped.game_id).accumulator.canonical
        deck = list(canonical)
        deck[1] = deck[0]
        with pytest.raises(InvalidPoint):
            mapped.session.shuffle(mapped.game_id, "bob", deck)

    def test_identity_point(self, mapped):
        """Test a deck containing the identity element."""
        canonical = mapped.session.context(mapped.game_id).accumulator.canonical
        deck = list(canonical)
        deck[5] = IDENTITY
        with pytest.raises(InvalidPoint):
            mapped.session.shuffle(mapped.game_id, "bob", deck)

    def test_lock_before_shuffle_finished(self, mapped):
        """Test locking before every player shuffled."""
        canonical = mapped.session.context(mapped.game_id).accumulator.canonical
        with pytest.raises(InvalidShufflingState):
            mapped.session.lock(mapped.game_id, "bob", canonical)


class TestLocking:
    """Tests for the end of the shuffle."""

    def test_lock_completion_opens_blinds(self, table, advance):
        """Test the last lock opens the blinds."""
        ctx = advance(table, lambda c: c.state.texas_state == TexasHoldEmState.BETTING)
        assert ctx.state.phase == GamePhase.DRAWING
        assert ctx.state.betting_state == BettingRoundState.BLINDS
        assert ctx.turn_player == "bob"
        assert table.session.required_action(table.game_id, "bob") == "place_blind"

    def test_locked_deck_has_distinct_slots(self, table, advance):
        ctx = advance(table, lambda c: c.state.texas_state == TexasHoldEmState.BETTING)
        assert ctx.deck.is_established
        assert len(set(ctx.deck.cards)) == 52
        assert not set(ctx.deck.cards) & set(ctx.accumulator.canonical)

    def test_split_submissions_through_lock(self, make_table, advance):
        """Test split shuffle and lock submissions end to end."""
        agents = [CallAgent("alice", split_submissions=True), CallAgent("bob", split_submissions=True)]
        table = make_table(agents=agents)
        ctx = advance(table, lambda c: c.state.texas_state == TexasHoldEmState.BETTING)
        assert ctx.accumulator.is_submitted
        assert len(set(ctx.deck.cards)) == 52


class TestThreePlayerOrder:

    def test_crypto_turns_start_after_big_blind(self, make_table):
        """Test three-seat turn order starts left of the big blind."""
        """With three seats and dealer 0, seat 0 (dealer + 3) starts."""
        table = make_table(num_players=3)
        ctx = table.session.context(table.game_id)
        assert ctx.turn_player == "alice"
        table.step()
        assert table.session.context(table.game_id).turn_player == "bob"
