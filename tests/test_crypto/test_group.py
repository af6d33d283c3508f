"""
Tests for BN254 group arithmetic and point compression.
"""

import pytest

from mentalpoker.crypto.group import (
    CURVE_ORDER, FIELD_MODULUS, GENERATOR, IDENTITY, GroupElement,
    add_affine, compress, decompress, decompress_many, generator_mul,
    mod_add, mod_compare, mod_inverse, mod_mul, mod_sub, mul_affine, point_add,
    point_neg, require_scalar, scalar_from_bytes, scalar_mul, scalar_to_bytes,
    validate_point,
)
from mentalpoker.errors import (
    DecompressionFailed, ECOperationFailed, InvalidPoint, InvalidScalar,
)


class TestPoints:
    """Tests for point validation and arithmetic."""

    def test_generator_is_on_curve(self):
        """The generator is (1, 2) and passes validation."""
        assert GENERATOR == GroupElement(1, 2)
        assert validate_point(GENERATOR) == GENERATOR

    def test_identity_is_rejected(self):
        """The identity never stands for a card."""
        with pytest.raises(InvalidPoint):
            validate_point(IDENTITY)

    def test_off_curve_point_is_rejected(self):
        """(1, 3) does not satisfy y^2 = x^3 + 3."""
        with pytest.raises(InvalidPoint):
            validate_point(GroupElement(1, 3))

    def test_doubling_matches_scalar_two(self):
        """G + G == 2G."""
        assert point_add(GENERATOR, GENERATOR) == generator_mul(2)

    def test_point_plus_negation_is_identity(self):
        """P + (-P) is the identity."""
        p = generator_mul(7)
        assert point_add(p, point_neg(p)) == IDENTITY

    def test_order_multiple_is_identity(self):
        """Scalars are reduced mod n, so n * G is the identity."""
        assert scalar_mul(GENERATOR, CURVE_ORDER) == IDENTITY
        assert scalar_mul(GENERATOR, CURVE_ORDER + 3) == generator_mul(3)

    def test_scalar_multiplication_commutes(self):
        """Encryption layers can be removed in any order."""
        p = generator_mul(11)
        assert scalar_mul(scalar_mul(p, 5), 9) == scalar_mul(scalar_mul(p, 9), 5)


class TestModularArithmetic:
    """Tests for scalar helpers."""

    def test_mod_inverse(self):
        """a * a^-1 == 1 mod n."""
        for a in (1, 2, 12345, CURVE_ORDER - 1):
            assert a * mod_inverse(a) % CURVE_ORDER == 1

    def test_mod_inverse_of_zero(self):
        """Zero has no inverse."""
        assert mod_inverse(0) is None
        assert mod_inverse(CURVE_ORDER) is None

    def test_inverse_removes_layer(self):
        """Multiplying by k then k^-1 returns the original point."""
        p = generator_mul(42)
        k = 987654321
        assert scalar_mul(scalar_mul(p, k), mod_inverse(k)) == p

    def test_require_scalar_rejects_bad_values(self):
        """Zero, negative and oversized scalars are rejected."""
        for value in (0, CURVE_ORDER, -1, 2 ** 256):
            with pytest.raises(InvalidScalar):
                require_scalar(value)

    def test_require_scalar_reduces(self):
        """Values above n are reduced."""
        assert require_scalar(CURVE_ORDER + 5) == 5

    def test_scalar_from_bytes_size(self):
        """Scalars are exactly 32 bytes."""
        assert scalar_from_bytes((7).to_bytes(32, "big")) == 7
        with pytest.raises(InvalidScalar):
            scalar_from_bytes(b"\x07")

    def test_scalar_to_bytes(self):
        """Scalars are written reduced, as 32 big-endian bytes."""
        assert scalar_to_bytes(7) == (7).to_bytes(32, "big")
        assert scalar_to_bytes(CURVE_ORDER + 7) == (7).to_bytes(32, "big")
        assert scalar_from_bytes(scalar_to_bytes(CURVE_ORDER - 1)) == CURVE_ORDER - 1

    def test_mod_add_wraps(self):
        """Sums past n wrap around."""
        assert mod_add(CURVE_ORDER - 1, 2) == 1
        assert mod_add(3, 4) == 7

    def test_mod_sub_wraps(self):
        """Differences below zero wrap around."""
        assert mod_sub(1, 2) == CURVE_ORDER - 1
        assert mod_sub(9, 4) == 5

    def test_mod_mul(self):
        assert mod_mul(CURVE_ORDER - 1, CURVE_ORDER - 1) == 1

    def test_mod_compare(self):
        """Comparison uses canonical representatives."""
        assert mod_compare(1, 2) == -1
        assert mod_compare(CURVE_ORDER + 5, 5) == 0
        assert mod_compare(CURVE_ORDER + 6, 5) == 1

    def test_generator(self):
        """G1 is generated by (1, 2) and has order n."""
        assert GENERATOR == GroupElement(1, 2)
        assert scalar_mul(GENERATOR, CURVE_ORDER) == IDENTITY
        assert generator_mul(CURVE_ORDER - 1) == point_neg(GENERATOR)


class TestCompression:
    """Tests for the 32-byte compressed encoding."""

    def test_round_trip(self):
        """decompress(compress(P)) == P for both y roots."""
        for scalar in (1, 2, 3, 1000, CURVE_ORDER - 1):
            p = generator_mul(scalar)
            assert decompress(compress(p)) == p

    def test_negative_flag(self):
        """The 0x80 bit marks the larger y root."""
        assert compress(GENERATOR)[0] & 0x80 == 0
        assert compress(point_neg(GENERATOR))[0] & 0x80 == 0x80

    def test_identity_encoding(self):
        """The identity compresses to the infinity flag and decodes back."""
        data = compress(IDENTITY)
        assert data == bytes([0x40]) + bytes(31)
        assert decompress(data) == IDENTITY

    def test_identity_never_validates(self):
        """A decoded identity is still rejected as a card point."""
        with pytest.raises(InvalidPoint):
            validate_point(decompress(bytes([0x40]) + bytes(31)))

    def test_malformed_infinity(self):
        """Infinity with trailing bits is rejected."""
        with pytest.raises(DecompressionFailed):
            decompress(bytes([0x40]) + bytes(30) + b"\x01")

    def test_wrong_length(self):
        """Compressed points are exactly 32 bytes."""
        with pytest.raises(DecompressionFailed):
            decompress(bytes(31))

    def test_x_outside_field(self):
        """x must be below the field modulus."""
        with pytest.raises(DecompressionFailed):
            decompress(FIELD_MODULUS.to_bytes(32, "big"))

    def test_decompression_failure_is_invalid_point(self):
        """Callers can treat decompression failures as invalid points."""
        assert issubclass(DecompressionFailed, InvalidPoint)

    def test_decompress_many(self):
        """Lists decode element-wise."""
        points = [generator_mul(k) for k in range(1, 6)]
        assert decompress_many([compress(p) for p in points]) == points


class TestRawInterface:
    """Tests for the 64-byte affine add/mul helpers."""

    def test_mul_affine(self):
        """mul_affine matches scalar_mul."""
        out = mul_affine(GENERATOR.to_bytes(), (5).to_bytes(32, "big"))
        assert GroupElement.from_bytes(out) == generator_mul(5)

    def test_add_affine(self):
        """add_affine matches point_add."""
        out = add_affine(generator_mul(2).to_bytes(), generator_mul(3).to_bytes())
        assert GroupElement.from_bytes(out) == generator_mul(5)

    def test_bad_sizes(self):
        """Inputs of the wrong size fail the operation."""
        with pytest.raises(ECOperationFailed):
            add_affine(b"\x00" * 63, GENERATOR.to_bytes())
        with pytest.raises(ECOperationFailed):
            mul_affine(GENERATOR.to_bytes(), b"\x01")

    def test_off_curve_input(self):
        """Points off the curve fail the operation."""
        with pytest.raises(ECOperationFailed):
            mul_affine(GroupElement(1, 3).to_bytes(), (2).to_bytes(32, "big"))
