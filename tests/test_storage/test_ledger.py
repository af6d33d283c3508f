"""
Tests for the in-memory value ledger.
"""

import pytest

from mentalpoker.core.state import LedgerTransfer
from mentalpoker.errors import InsufficientFunds
from mentalpoker.storage import InMemoryLedger


class TestTransfers:

    def test_transfer(self):
        ledger = InMemoryLedger({"alice": 100})
        ledger.transfer("alice", "vault:g1", 40)
        assert ledger.balance("alice") == 60
        assert ledger.balance("vault:g1") == 40

    def test_unknown_account_is_empty(self):
        assert InMemoryLedger().balance("nobody") == 0

    def test_overdraw(self):
        ledger = InMemoryLedger({"alice": 10})
        with pytest.raises(InsufficientFunds):
            ledger.transfer("alice", "bob", 11)
        assert ledger.balance("alice") == 10

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            InMemoryLedger({"alice": 10}).transfer("alice", "bob", -1)

    def test_fund(self):
        ledger = InMemoryLedger()
        ledger.fund("alice", 25)
        ledger.fund("alice", 25)
        assert ledger.balance("alice") == 50


class TestBatches:
    """apply() is all-or-nothing."""

    def test_chained_transfers(self):
        """A later transfer may spend what an earlier one in the batch paid in."""
        ledger = InMemoryLedger({"alice": 100})
        ledger.apply([
            LedgerTransfer("alice", "vault:g1", 100),
            LedgerTransfer("vault:g1", "bob", 30),
        ])
        assert ledger.balance("vault:g1") == 70
        assert ledger.balance("bob") == 30

    def test_failed_batch_changes_nothing(self):
        ledger = InMemoryLedger({"alice": 100, "bob": 5})
        with pytest.raises(InsufficientFunds):
            ledger.apply([
                LedgerTransfer("alice", "vault:g1", 100),
                LedgerTransfer("bob", "vault:g1", 50),
            ])
        assert ledger.balance("alice") == 100
        assert ledger.balance("vault:g1") == 0

    def test_total_is_conserved(self, ledger):
        before = ledger.total()
        ledger.apply([LedgerTransfer("alice", "vault:g1", 200), LedgerTransfer("vault:g1", "bob", 20)])
        assert ledger.total() == before
