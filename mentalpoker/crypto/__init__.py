"""
Mental Poker Crypto - BN254 group arithmetic, commitments and the
player-side key toolkit.
"""

from mentalpoker.crypto.group import (
    CURVE_ORDER,
    FIELD_MODULUS,
    GENERATOR,
    IDENTITY,
    GroupElement,
    compress,
    decompress,
    generator_mul,
    mod_inverse,
    point_add,
    scalar_mul,
)
from mentalpoker.crypto.commitment import commit, keccak256, verify_commitment
from mentalpoker.crypto.toolkit import PlayerSecrets, find_card, split_halves, work_deck

__all__ = [
    "CURVE_ORDER",
    "FIELD_MODULUS",
    "GENERATOR",
    "IDENTITY",
    "GroupElement",
    "compress",
    "decompress",
    "generator_mul",
    "mod_inverse",
    "point_add",
    "scalar_mul",
    "commit",
    "keccak256",
    "verify_commitment",
    "PlayerSecrets",
    "find_card",
    "split_halves",
    "work_deck",
]
