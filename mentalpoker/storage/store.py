"""
Keyed persistent-state store.

Records are opaque bytes to the store. The typed helpers load_record() and
save_record() (de)serialise pydantic records as JSON at the store boundary;
the engine itself only ever sees typed values.

Keys for one game:

    {game_id}/config
    {game_id}/state
    {game_id}/deck
    {game_id}/accumulator
    {game_id}/community
    {game_id}/players
    {game_id}/player/{player_id}
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Type, TypeVar
import logging
import threading

from pydantic import BaseModel, ValidationError

from mentalpoker.errors import CorruptRecord, RecordNotFound


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def record_key(game_id: str, kind: str, player_id: Optional[str] = None) -> str:
    if player_id is not None:
        return f"{game_id}/{kind}/{player_id}"
    return f"{game_id}/{kind}"


class StateStore(ABC):
    """Whole-record read/write of opaque records."""

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Return the record stored under key, or None."""

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        ...

    def exists(self, key: str) -> bool:
        return self.read(key) is not None

    def write_batch(self, records: Dict[str, bytes], deletes: Iterable[str] = ()) -> None:
        """Apply several writes and deletes. Subclasses may make this atomic."""
        for key, data in records.items():
            self.write(key, data)
        for key in deletes:
            self.delete(key)


class InMemoryStateStore(StateStore):
    """
    Dict-backed store.

    Reads hand out the stored bytes, so callers always decode a fresh copy;
    batches are applied under a lock in one step.
    """

    def __init__(self):
        self._records: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[bytes]:
        return self._records.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self._records[key] = bytes(data)

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._records if k.startswith(prefix))

    def write_batch(self, records: Dict[str, bytes], deletes: Iterable[str] = ()) -> None:
        with self._lock:
            updated = dict(self._records)
            updated.update({k: bytes(v) for k, v in records.items()})
            for key in deletes:
                updated.pop(key, None)
            self._records = updated

    def __len__(self) -> int:
        return len(self._records)


def encode_record(record: BaseModel) -> bytes:
    return record.model_dump_json().encode("utf-8")


def decode_record(key: str, data: bytes, model: Type[RecordT]) -> RecordT:
    """
    Decode bytes into a typed record.

    Raises:
        CorruptRecord: If the bytes do not decode into the model.
    """
    try:
        return model.model_validate_json(data)
    except ValidationError as e:
        logger.error(f"Record {key} failed validation: {e.error_count()} errors")
        raise CorruptRecord(f"Record {key} is corrupt") from e


def load_record(store: StateStore, key: str, model: Type[RecordT]) -> RecordT:
    """
    Read and decode one record.

    Raises:
        RecordNotFound: If nothing is stored under key.
        CorruptRecord: If the stored bytes do not decode.
    """
    data = store.read(key)
    if data is None:
        raise RecordNotFound(f"No record under {key}")
    return decode_record(key, data, model)


def save_record(store: StateStore, key: str, record: BaseModel) -> None:
    store.write(key, encode_record(record))
