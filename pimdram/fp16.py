"""IEEE 754 half-precision helpers."""

import numpy as np


def to_half(value) -> np.float16:
    """Round ``value`` to the nearest half-precision number."""
    with np.errstate(over="ignore"):
        return np.float16(value)


def half_bits(value) -> int:
    """Return the 16-bit pattern of ``value`` rounded to half precision."""
    return int(np.array(to_half(value), dtype=np.float16).view(np.uint16))


def half_from_bits(bits: int) -> np.float16:
    """Build a half-precision number from its 16-bit pattern."""
    if not 0 <= bits <= 0xFFFF:
        raise ValueError(f"half-precision bit pattern out of range: {bits:#x}")
    return np.array(bits, dtype=np.uint16).view(np.float16)[()]


def fp16_equal(a, b, max_ulps_diff: int, max_fs_diff: float) -> bool:
    """Compare two halves within a ULP distance or an absolute difference."""
    ha = to_half(a)
    hb = to_half(b)
    a_bits = half_bits(ha)
    b_bits = half_bits(hb)

    if (a_bits & 0x8000) != (b_bits & 0x8000) and ha == hb:
        return True

    ulps_diff = abs(a_bits - b_bits)
    with np.errstate(invalid="ignore", over="ignore"):
        fs_diff = abs(np.float32(ha) - np.float32(hb))
        if ulps_diff <= max_ulps_diff:
            return True
        return bool(fs_diff < np.float32(max_fs_diff))