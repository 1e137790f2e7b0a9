import math

import pytest

from pimdram.fp16 import fp16_equal, half_bits, half_from_bits, to_half


def test_one_has_ieee_bit_pattern():
    assert half_bits(1.0) == 0x3C00


def test_negative_zero_bit_pattern():
    assert half_bits(-0.0) == 0x8000


@pytest.mark.parametrize("value", [0.0, 0.5, 1.0, -2.0, 1024.0, 0.25, -65504.0])
def test_exact_values_round_trip(value):
    assert float(to_half(value)) == value
    assert float(half_from_bits(half_bits(value))) == value


@pytest.mark.parametrize("bits", [0x0000, 0x0001, 0x3C00, 0x3C01, 0x7BFF, 0x8001, 0xC000])
def test_bits_round_trip(bits):
    assert half_bits(half_from_bits(bits)) == bits


@pytest.mark.parametrize("value", [0.1, 3.14159, -7.7, 1e-3])
def test_rounding_is_idempotent(value):
    once = to_half(value)
    assert to_half(float(once)) == once
    assert abs(float(once) - value) <= abs(value) * 2 ** -10


def test_overflow_becomes_infinity():
    assert float(to_half(1e6)) == math.inf
    assert half_bits(to_half(1e6)) == 0x7C00
    assert float(to_half(-1e6)) == -math.inf
    assert half_bits(to_half(-1e6)) == 0xFC00


def test_half_from_bits_rejects_out_of_range():
    with pytest.raises(ValueError):
        half_from_bits(0x10000)
    with pytest.raises(ValueError):
        half_from_bits(-1)


def test_zeros_of_opposite_sign_are_equal():
    assert fp16_equal(0.0, -0.0, 0, 0.0) is True


def test_adjacent_values_by_ulps():
    a = half_from_bits(0x3C00)
    b = half_from_bits(0x3C01)
    assert fp16_equal(a, b, 1, 0.0) is True
    assert fp16_equal(a, b, 0, 0.0) is False


def test_equal_values_need_no_tolerance():
    assert fp16_equal(2.5, 2.5, 0, 0.0) is True


def test_absolute_tolerance():
    assert fp16_equal(1.0, 1.5, 0, 1.0) is True
    assert fp16_equal(1.0, 1.5, 0, 0.25) is False


def test_equality_is_symmetric():
    a = half_from_bits(0x4000)
    b = half_from_bits(0x4005)
    for ulps in range(0, 8):
        assert fp16_equal(a, b, ulps, 0.0) == fp16_equal(b, a, ulps, 0.0)