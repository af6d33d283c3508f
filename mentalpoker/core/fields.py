"""
Pydantic field types for 256-bit values.

State records keep curve points and accumulator values as Python objects in
memory and as fixed-width hex strings in JSON, so that records survive any
store that only understands JSON numbers of limited width.
"""

from typing import Annotated, Any

from pydantic import PlainSerializer, PlainValidator

from mentalpoker.crypto.group import GroupElement


def _to_point(value: Any) -> GroupElement:
    if isinstance(value, GroupElement):
        return value
    if isinstance(value, str):
        return GroupElement.from_hex(value)
    if isinstance(value, (bytes, bytearray)):
        return GroupElement.from_bytes(bytes(value))
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return GroupElement(int(value[0]), int(value[1]))
    raise ValueError(f"Cannot read a curve point from {type(value).__name__}")


def _to_u256(value: Any) -> int:
    if isinstance(value, str):
        value = int(value, 16)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Cannot read a 256-bit integer from {type(value).__name__}")
    if value < 0 or value.bit_length() > 256:
        raise ValueError("Value does not fit in 256 bits")
    return value


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value)
    raise ValueError(f"Cannot read bytes from {type(value).__name__}")


PointField = Annotated[
    GroupElement,
    PlainValidator(_to_point),
    PlainSerializer(lambda p: p.to_hex(), return_type=str, when_used="json"),
]

U256 = Annotated[
    int,
    PlainValidator(_to_u256),
    PlainSerializer(lambda v: format(v, "064x"), return_type=str, when_used="json"),
]

HexBytes = Annotated[
    bytes,
    PlainValidator(_to_bytes),
    PlainSerializer(lambda b: b.hex(), return_type=str, when_used="json"),
]
