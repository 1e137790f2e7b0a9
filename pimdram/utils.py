"""Small integer helpers: base-2 logarithms and byte-unit shifts."""


def ulog2(value: int) -> int:
    """Return the base-2 logarithm of ``value`` rounded up (0 for 0 and 1)."""
    if value < 0:
        raise ValueError("ulog2 is defined for non-negative integers only")
    log_base2 = max(value.bit_length() - 1, 0)
    if (1 << log_base2) < value:
        log_base2 += 1
    return log_base2


def is_power_of_two(x: int) -> bool:
    """Return True when ``x`` is an exact power of two."""
    return (1 << ulog2(x)) == x


def bytes_to_gb(x: int) -> int:
    """Whole gibibytes in ``x`` bytes."""
    return x >> 30


def bytes_to_mb(x: int) -> int:
    """Whole mebibytes in ``x`` bytes."""
    return x >> 20


def bytes_to_kb(x: int) -> int:
    """Whole kibibytes in ``x`` bytes."""
    return x >> 10