"""
Mental Poker Storage - state store and value ledger collaborators.
"""

from mentalpoker.storage.store import (
    StateStore,
    InMemoryStateStore,
    load_record,
    save_record,
    record_key,
)
from mentalpoker.storage.ledger import Ledger, InMemoryLedger

__all__ = [
    "StateStore",
    "InMemoryStateStore",
    "load_record",
    "save_record",
    "record_key",
    "Ledger",
    "InMemoryLedger",
]
