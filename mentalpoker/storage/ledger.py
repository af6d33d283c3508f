"""
Value-transfer ledger.

The engine never moves money itself. Operations queue LedgerTransfer
requests (player -> vault on join, vault -> player on leave and close,
vault -> caller on slash) and the session hands them to a Ledger once the
operation has succeeded.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Optional, Sequence
import logging
import threading

from mentalpoker.core.state import LedgerTransfer
from mentalpoker.errors import InsufficientFunds


logger = logging.getLogger(__name__)


class Ledger(ABC):
    """Moves fungible balances between named accounts."""

    @abstractmethod
    def balance(self, account: str) -> int:
        ...

    @abstractmethod
    def transfer(self, source: str, destination: str, amount: int) -> None:
        """
        Move amount from source to destination.

        Raises:
            InsufficientFunds: If source holds less than amount.
        """

    def apply(self, transfers: Sequence[LedgerTransfer]) -> None:
        """Execute transfers in order. Subclasses may make this atomic."""
        for t in transfers:
            self.transfer(t.source, t.destination, t.amount)


class InMemoryLedger(Ledger):
    """Dict-backed ledger whose batches apply all-or-nothing."""

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self._balances: Dict[str, int] = defaultdict(int, balances or {})
        self._lock = threading.Lock()

    def fund(self, account: str, amount: int) -> None:
        """Mint amount into an account (test and demo setup)."""
        with self._lock:
            self._balances[account] += amount

    def balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, source: str, destination: str, amount: int) -> None:
        self.apply([LedgerTransfer(source, destination, amount)])

    def apply(self, transfers: Sequence[LedgerTransfer]) -> None:
        with self._lock:
            pending = dict(self._balances)
            for t in transfers:
                if t.amount < 0:
                    raise ValueError(f"Negative transfer: {t}")
                if pending.get(t.source, 0) < t.amount:
                    raise InsufficientFunds(
                        f"{t.source} holds {pending.get(t.source, 0)}, cannot send {t.amount}"
                    )
                pending[t.source] = pending.get(t.source, 0) - t.amount
                pending[t.destination] = pending.get(t.destination, 0) + t.amount
            self._balances = defaultdict(int, pending)
        for t in transfers:
            logger.debug(f"Transferred {t.amount} from {t.source} to {t.destination}")

    def total(self) -> int:
        return sum(self._balances.values())
