"""
Group arithmetic on the BN254 (alt_bn128) G1 curve.

The deck is a list of points on y^2 = x^3 + 3 over the BN254 base field. The
group has prime order n, so every non-zero scalar is invertible and the
inverse of a lock key k is k^(n-2) mod n (Fermat's little theorem).

Point arithmetic is delegated to fastecdsa through a custom curve definition;
this module only converts between fastecdsa points and the engine's
GroupElement tuples, validates inputs and implements the 32-byte compressed
encoding:

    byte 0..31  big-endian x coordinate
    bit 0x80    set when y > p/2 (the "negative" root)
    bit 0x40    set for the point at infinity (all other bits zero)

The identity is represented as the all-zero pair (0, 0). It is never a valid
card encoding; validate_point() rejects it.
"""

from __future__ import annotations
from typing import NamedTuple, Optional, Sequence, List
import logging

from fastecdsa.curve import Curve
from fastecdsa.point import Point

from mentalpoker.errors import (
    InvalidPoint, InvalidScalar, ECOperationFailed, DecompressionFailed,
)


logger = logging.getLogger(__name__)


# Base field modulus
FIELD_MODULUS = 0x30644E72E131A029B85045B68181585D97816A916871CA8D3C208C16D87CFD47
# Order of the G1 subgroup (and of the whole curve group, cofactor 1)
CURVE_ORDER = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001
CURVE_B = 3
GENERATOR_X = 1
GENERATOR_Y = 2

BN254 = Curve(
    "BN254",
    FIELD_MODULUS,
    0,
    CURVE_B,
    CURVE_ORDER,
    GENERATOR_X,
    GENERATOR_Y,
)

COMPRESSED_SIZE = 32
AFFINE_SIZE = 64
SCALAR_SIZE = 32

FLAG_NEGATIVE_Y = 0x80
FLAG_INFINITY = 0x40
FLAG_MASK = FLAG_NEGATIVE_Y | FLAG_INFINITY

_HALF_FIELD = FIELD_MODULUS // 2


class GroupElement(NamedTuple):
    """Affine point (x, y). (0, 0) is the identity."""
    x: int
    y: int

    @property
    def is_identity(self) -> bool:
        return self.x == 0 and self.y == 0

    def to_bytes(self) -> bytes:
        """64-byte affine form: x || y, both big-endian."""
        return self.x.to_bytes(32, "big") + self.y.to_bytes(32, "big")

    @classmethod
    def from_bytes(cls, data: bytes) -> GroupElement:
        if len(data) != AFFINE_SIZE:
            raise ECOperationFailed(f"Affine point must be {AFFINE_SIZE} bytes, got {len(data)}")
        return cls(int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, text: str) -> GroupElement:
        try:
            data = bytes.fromhex(text)
        except ValueError as e:
            raise InvalidPoint(f"Malformed point hex: {e}") from e
        return cls.from_bytes(data)

    def __repr__(self) -> str:
        if self.is_identity:
            return "GroupElement(identity)"
        return f"GroupElement(x=0x{self.x:064x}, y=0x{self.y:064x})"


IDENTITY = GroupElement(0, 0)
GENERATOR = GroupElement(GENERATOR_X, GENERATOR_Y)


# ============= Points =============

def is_on_curve(point: GroupElement) -> bool:
    """Check the curve equation (the identity is not on the affine curve)."""
    x, y = point
    if not (0 <= x < FIELD_MODULUS and 0 <= y < FIELD_MODULUS):
        return False
    return (y * y - x * x * x - CURVE_B) % FIELD_MODULUS == 0


def validate_point(point: GroupElement) -> GroupElement:
    """
    Ensure a point can stand for an encrypted card.

    Raises:
        InvalidPoint: If the point is the identity or not on the curve.
    """
    if point.is_identity:
        raise InvalidPoint("Identity element cannot encode a card")
    if not is_on_curve(point):
        raise InvalidPoint(f"Point is not on the curve: {point!r}")
    return point


def _to_fastecdsa(point: GroupElement) -> Point:
    validate_point(point)
    return Point(point.x, point.y, curve=BN254)


def _from_fastecdsa(point: Point) -> GroupElement:
    # fastecdsa encodes infinity with x == 0 and a curve-less point
    if point.curve is None or (point.x == 0 and point.y in (0, 1)):
        return IDENTITY
    return GroupElement(point.x, point.y)


def point_add(p: GroupElement, q: GroupElement) -> GroupElement:
    """Add two points. The identity is the neutral element."""
    if p.is_identity:
        return q
    if q.is_identity:
        return p
    return _from_fastecdsa(_to_fastecdsa(p) + _to_fastecdsa(q))


def point_neg(p: GroupElement) -> GroupElement:
    if p.is_identity:
        return p
    return GroupElement(p.x, (-p.y) % FIELD_MODULUS)


def scalar_mul(point: GroupElement, scalar: int) -> GroupElement:
    """
    Multiply a point by a scalar.

    The scalar is reduced modulo the group order first; a zero scalar or an
    identity input yields the identity.
    """
    k = scalar % CURVE_ORDER
    if k == 0 or point.is_identity:
        return IDENTITY
    return _from_fastecdsa(k * _to_fastecdsa(point))


def generator_mul(scalar: int) -> GroupElement:
    return scalar_mul(GENERATOR, scalar)


# ============= Raw byte interface =============

def add_affine(a: bytes, b: bytes) -> bytes:
    """
    Add two 64-byte affine points.

    Raises:
        ECOperationFailed: If an input has the wrong size or is not a point.
    """
    if len(a) != AFFINE_SIZE or len(b) != AFFINE_SIZE:
        raise ECOperationFailed("add expects two 64-byte points")
    p, q = GroupElement.from_bytes(a), GroupElement.from_bytes(b)
    for point in (p, q):
        if not point.is_identity and not is_on_curve(point):
            raise ECOperationFailed("add input is not on the curve")
    return point_add(p, q).to_bytes()


def mul_affine(point: bytes, scalar: bytes) -> bytes:
    """
    Multiply a 64-byte affine point by a 32-byte big-endian scalar.

    Raises:
        ECOperationFailed: If an input has the wrong size or is not a point.
    """
    if len(point) != AFFINE_SIZE or len(scalar) != SCALAR_SIZE:
        raise ECOperationFailed("mul expects a 64-byte point and a 32-byte scalar")
    p = GroupElement.from_bytes(point)
    if not p.is_identity and not is_on_curve(p):
        raise ECOperationFailed("mul input is not on the curve")
    return scalar_mul(p, int.from_bytes(scalar, "big")).to_bytes()


# ============= Compression =============

def compress(point: GroupElement) -> bytes:
    """Encode a point into its 32-byte compressed form."""
    if point.is_identity:
        out = bytearray(COMPRESSED_SIZE)
        out[0] = FLAG_INFINITY
        return bytes(out)
    if not is_on_curve(point):
        raise InvalidPoint(f"Cannot compress a point off the curve: {point!r}")
    out = bytearray(point.x.to_bytes(COMPRESSED_SIZE, "big"))
    if point.y > _HALF_FIELD:
        out[0] |= FLAG_NEGATIVE_Y
    return bytes(out)


def decompress(data: bytes) -> GroupElement:
    """
    Decode a 32-byte compressed point.

    Raises:
        DecompressionFailed: If the encoding is malformed or x has no square
            root on the curve. DecompressionFailed is an InvalidPoint.
    """
    if len(data) != COMPRESSED_SIZE:
        raise DecompressionFailed(f"Compressed point must be {COMPRESSED_SIZE} bytes, got {len(data)}")

    flags = data[0] & FLAG_MASK
    if flags & FLAG_INFINITY:
        if flags & FLAG_NEGATIVE_Y or any(data[1:]) or data[0] & ~FLAG_MASK & 0xFF:
            raise DecompressionFailed("Malformed infinity encoding")
        return IDENTITY

    x = int.from_bytes(bytes([data[0] & ~FLAG_MASK & 0xFF]) + data[1:], "big")
    if x >= FIELD_MODULUS:
        raise DecompressionFailed("x coordinate exceeds the field modulus")

    rhs = (x * x * x + CURVE_B) % FIELD_MODULUS
    # p = 3 mod 4, so a square root is rhs^((p+1)/4)
    y = pow(rhs, (FIELD_MODULUS + 1) // 4, FIELD_MODULUS)
    if (y * y) % FIELD_MODULUS != rhs:
        raise DecompressionFailed(f"x=0x{x:064x} has no point on the curve")

    if bool(flags & FLAG_NEGATIVE_Y) != (y > _HALF_FIELD):
        y = FIELD_MODULUS - y
    return GroupElement(x, y)


def decompress_many(chunks: Sequence[bytes]) -> List[GroupElement]:
    return [decompress(chunk) for chunk in chunks]


# ============= Scalars =============

def scalar_from_bytes(data: bytes) -> int:
    """
    Read a 32-byte big-endian scalar, reduced into [0, n).

    Raises:
        InvalidScalar: If the input is not exactly 32 bytes.
    """
    if len(data) != SCALAR_SIZE:
        raise InvalidScalar(f"Scalar must be {SCALAR_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "big") % CURVE_ORDER


def scalar_to_bytes(scalar: int) -> bytes:
    return (scalar % CURVE_ORDER).to_bytes(SCALAR_SIZE, "big")


def require_scalar(value: int) -> int:
    """
    Reduce a key into [1, n).

    Raises:
        InvalidScalar: If the value is negative, wider than 256 bits, or
            reduces to zero.
    """
    if not isinstance(value, int) or value < 0 or value.bit_length() > 256:
        raise InvalidScalar("Scalar must be a 256-bit unsigned integer")
    reduced = value % CURVE_ORDER
    if reduced == 0:
        raise InvalidScalar("Scalar reduces to zero")
    return reduced


def mod_add(a: int, b: int, modulus: int = CURVE_ORDER) -> int:
    return (a + b) % modulus


def mod_sub(a: int, b: int, modulus: int = CURVE_ORDER) -> int:
    return (a - b) % modulus


def mod_mul(a: int, b: int, modulus: int = CURVE_ORDER) -> int:
    return (a * b) % modulus


def mod_compare(a: int, b: int, modulus: int = CURVE_ORDER) -> int:
    """Compare canonical representatives: -1, 0 or 1."""
    a, b = a % modulus, b % modulus
    return (a > b) - (a < b)


def mod_inverse(a: int, modulus: int = CURVE_ORDER) -> Optional[int]:
    """
    Modular inverse via Fermat: a^(n-2) mod n.

    Returns:
        The inverse, or None when a reduces to zero.
    """
    a %= modulus
    if a == 0:
        return None
    return pow(a, modulus - 2, modulus)
