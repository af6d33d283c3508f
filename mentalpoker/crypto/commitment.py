"""
Commit-reveal helpers for the shuffle seed.

Every player commits to keccak256(seed) before any seed is revealed. When the
seed is revealed, 52 pseudo-random values are derived from it as
keccak256(seed || k) for k in 0..51, k encoded as a single byte. These values
are summed into the shared accumulator, so no single player chooses the
canonical deck.

Keccak-256 here is the original Keccak padding (as used by Ethereum), not the
standardised SHA3-256.
"""

from __future__ import annotations
from typing import List
import hmac

from Crypto.Hash import keccak

from mentalpoker.errors import InvalidCommitment, InvalidVectorSize


SEED_SIZE = 32
COMMITMENT_SIZE = 32


def keccak256(*parts: bytes) -> bytes:
    """Keccak-256 digest over the concatenation of parts."""
    h = keccak.new(digest_bits=256)
    for part in parts:
        h.update(part)
    return h.digest()


def commit(seed: bytes) -> bytes:
    """Commitment for a 32-byte seed."""
    _check_seed(seed)
    return keccak256(seed)


def verify_commitment(seed: bytes, commitment: bytes) -> None:
    """
    Check that a revealed seed opens a commitment.

    Raises:
        InvalidVectorSize: If the seed is not 32 bytes.
        InvalidCommitment: If keccak256(seed) != commitment.
    """
    _check_seed(seed)
    if not hmac.compare_digest(keccak256(seed), bytes(commitment)):
        raise InvalidCommitment()


def derive_shuffle_value(seed: bytes, index: int) -> int:
    """v[index] = keccak256(seed || index) as a big-endian integer."""
    if not 0 <= index < 256:
        raise InvalidVectorSize(f"Derivation index must fit in one byte, got {index}")
    return int.from_bytes(keccak256(seed, bytes([index])), "big")


def derive_shuffle_values(seed: bytes, count: int = 52) -> List[int]:
    _check_seed(seed)
    return [derive_shuffle_value(seed, k) for k in range(count)]


def _check_seed(seed: bytes) -> None:
    if len(seed) != SEED_SIZE:
        raise InvalidVectorSize(f"Seed must be {SEED_SIZE} bytes, got {len(seed)}")
