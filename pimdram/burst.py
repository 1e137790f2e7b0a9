"""A 128-byte data burst with typed views, and bursts loaded from .npy files."""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

BURST_BYTES = 128

_U16_LIMIT = 0xFFFF
_U32_LIMIT = 0xFFFFFFFF


def _check_count(count: int, capacity: int, kind: str) -> None:
    if count == 0:
        raise ValueError(f"at least one {kind} value is required")
    if count > capacity:
        raise ValueError(f"a burst holds at most {capacity} {kind} values, got {count}")


def _float_array(values, dtype) -> np.ndarray:
    with np.errstate(over="ignore", invalid="ignore"):
        return np.atleast_1d(np.asarray(values, dtype=np.float64)).astype(dtype)


def _int_array(values, limit: int, kind: str) -> np.ndarray:
    arr = np.atleast_1d(np.asarray(values))
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"{kind} values must be integers")
    arr = arr.astype(np.int64)
    if arr.size and (arr.min() < 0 or arr.max() > limit):
        raise ValueError(f"{kind} value out of range 0..{limit:#x}")
    return arr


class Burst:
    """128 bytes of burst data, viewed as fp16, u8, fp32, u32 or u16 lanes."""

    __slots__ = ("_buf",)
    __hash__ = None  # mutable

    def __init__(self, data: Optional[bytes] = None) -> None:
        if data is None:
            self._buf = bytearray(BURST_BYTES)
            return
        buf = bytearray(data)
        if len(buf) != BURST_BYTES:
            raise ValueError(f"burst data must be {BURST_BYTES} bytes, got {len(buf)}")
        self._buf = buf

    # Typed views share the underlying buffer, so writing to them changes the burst.
    @property
    def data(self) -> bytes:
        return bytes(self._buf)

    @property
    def fp16(self) -> np.ndarray:
        return np.frombuffer(self._buf, dtype="<f2")

    @property
    def u8(self) -> np.ndarray:
        return np.frombuffer(self._buf, dtype=np.uint8)

    @property
    def fp32(self) -> np.ndarray:
        return np.frombuffer(self._buf, dtype="<f4")

    @property
    def u32(self) -> np.ndarray:
        return np.frombuffer(self._buf, dtype="<u4")

    @property
    def u16(self) -> np.ndarray:
        return np.frombuffer(self._buf, dtype="<u2")

    # Construction helpers -------------------------------------------------
    @classmethod
    def from_fp32(cls, values: Iterable[float]) -> "Burst":
        """Burst whose leading fp32 lanes hold ``values``; the rest are zero."""
        burst = cls()
        burst.set_fp32(*np.atleast_1d(np.asarray(values, dtype=np.float64)))
        return burst

    @classmethod
    def from_fp16(cls, values: Iterable[float]) -> "Burst":
        """Burst whose leading fp16 lanes hold ``values``; the rest are zero."""
        burst = cls()
        burst._store_fp16(_float_array(values, np.float16))
        return burst

    @classmethod
    def from_u32(cls, values: Iterable[int]) -> "Burst":
        """Burst whose leading u32 lanes hold ``values``; the rest are zero."""
        burst = cls()
        arr = _int_array(values, _U32_LIMIT, "u32")
        _check_count(arr.size, 32, "u32")
        burst.u32[: arr.size] = arr
        return burst

    @classmethod
    def from_u16(cls, values: Iterable[int]) -> "Burst":
        """Burst whose leading u16 lanes hold ``values``; the rest are zero."""
        burst = cls()
        arr = _int_array(values, _U16_LIMIT, "u16")
        _check_count(arr.size, 64, "u16")
        burst.u16[: arr.size] = arr
        return burst

    def _store_fp16(self, arr: np.ndarray) -> None:
        _check_count(arr.size, 64, "fp16")
        self.fp16[: arr.size] = arr

    # Setters ---------------------------------------------------------------
    def set_fp32(self, *args: float) -> None:
        """Set leading fp32 lanes; a single value fills the first 8."""
        values = args * 8 if len(args) == 1 else args
        arr = _float_array(values, np.float32)
        _check_count(arr.size, 32, "fp32")
        self.fp32[: arr.size] = arr

    def set_fp16(self, *args: float) -> None:
        """Set leading fp16 lanes; a single value fills the first 16."""
        values = args * 16 if len(args) == 1 else args
        self._store_fp16(_float_array(values, np.float16))

    def set_u32(self, *args: int) -> None:
        """Set leading u32 lanes; a single value fills the first 8."""
        values = args * 8 if len(args) == 1 else args
        arr = _int_array(values, _U32_LIMIT, "u32")
        _check_count(arr.size, 32, "u32")
        self.u32[: arr.size] = arr

    def set_u16(self, *args: int) -> None:
        """Set leading u16 lanes; a single value fills the first 16."""
        values = args * 16 if len(args) == 1 else args
        arr = _int_array(values, _U16_LIMIT, "u16")
        _check_count(arr.size, 64, "u16")
        self.u16[: arr.size] = arr

    def copy_from(self, other: "Burst") -> None:
        """Copy all 128 bytes of ``other`` into this burst."""
        self._buf[:] = other._buf

    def set_random(self, rng: Optional[np.random.Generator] = None) -> None:
        """Fill the first 16 fp16 lanes with uniform values in [-10, 10)."""
        generator = rng if rng is not None else np.random.default_rng()
        values = generator.uniform(-10.0, 10.0, 16).astype(np.float32)
        self.fp16[:16] = values.astype(np.float16)

    # Text renderings -------------------------------------------------------
    def bin_to_str(self) -> str:
        return "[" + "".join(f"{int(v):016b}" for v in self.u16[:16]) + "]"

    def hex_to_str(self) -> str:
        return "".join(f"{int(v):04x}" for v in self.u16[:16])

    def hex_to_str_u8(self) -> str:
        return "".join(f"{int(v):02x}" for v in self.u8[:32])

    def hex_to_str2(self) -> str:
        return "".join(f"{int(v):04x}" for v in self.u16[15::-1])

    def hex_to_str_range(self, start: int, end: int) -> str:
        """Hex of u16 lanes ``start`` to ``end`` inclusive."""
        return "".join(f"{int(v):04x}" for v in self.u16[start : end + 1])

    def hex_to_str_range_u8(self, start: int, end: int) -> str:
        """Hex of bytes ``start`` to ``end`` inclusive."""
        return "".join(f"{int(v):02x}" for v in self.u8[start : end + 1])

    def fp32_to_str(self) -> str:
        return "[ " + "".join(f"{float(v):g} " for v in self.fp32[:8]) + "]"

    def fp16_to_str(self) -> str:
        return "[ " + "".join(f"{float(v):g} " for v in self.fp16[:16]) + "]"

    # Arithmetic ------------------------------------------------------------
    def fp16_similar(self, other: "Burst", epsilon: float) -> bool:
        """True unless some of the first 16 lanes has (self - other) / self above epsilon."""
        mine = self.fp16[:16].astype(np.float32)
        theirs = other.fp16[:16].astype(np.float32)
        with np.errstate(all="ignore"):
            ratio = (mine - theirs) / mine
            return not bool(np.any(ratio > np.float32(epsilon)))

    def fp16_reduce_sum(self) -> np.float16:
        """Sum all 64 fp16 lanes in order, rounding to half after each step."""
        total = np.float16(0.0)
        with np.errstate(all="ignore"):
            for value in self.fp16:
                total = np.float16(total + value)
        return total

    def fp16_adder_tree(self) -> np.float16:
        """Sum the first 16 fp16 lanes pairwise over four levels."""
        level = self.fp16[:16].copy()
        with np.errstate(all="ignore"):
            while level.size > 1:
                level = (level[0::2] + level[1::2]).astype(np.float16)
        return np.float16(level[0])

    def fp32_reduce_sum(self) -> np.float32:
        """Sum the first 8 fp32 lanes in order in single precision."""
        total = np.float32(0.0)
        with np.errstate(all="ignore"):
            for value in self.fp32[:8]:
                total = np.float32(total + value)
        return total

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Burst):
            return NotImplemented
        return self._buf == other._buf

    def _combine(self, other: "Burst", op) -> "Burst":
        result = Burst()
        with np.errstate(all="ignore"):
            result.fp16[:] = op(self.fp16, other.fp16).astype(np.float16)
        return result

    def __add__(self, other: "Burst") -> "Burst":
        if not isinstance(other, Burst):
            return NotImplemented
        return self._combine(other, np.add)

    def __mul__(self, other: "Burst") -> "Burst":
        if not isinstance(other, Burst):
            return NotImplemented
        return self._combine(other, np.multiply)

    def __repr__(self) -> str:
        return f"Burst({self.hex_to_str()})"


class NumpyBurst:
    """Array data loaded from a .npy file and cut into bursts."""

    def __init__(self) -> None:
        self.shape: List[int] = []
        self.data: np.ndarray = np.empty(0, dtype=np.float32)
        self.u16_data: np.ndarray = np.empty(0, dtype=np.uint16)
        self.b_shape: List[int] = []
        self.b_data: List[Burst] = []

    def get_burst(self, x: int, y: Optional[int] = None) -> Burst:
        """Burst ``x`` of the flat list, or column ``x`` of row ``y``."""
        if y is None:
            return self.b_data[x]
        return self.b_data[y * self.b_shape[1] + x]

    def _load(self, filename, accepted) -> np.ndarray:
        array = np.load(filename, allow_pickle=False)
        if array.dtype not in accepted:
            raise ValueError(f"unexpected array type {array.dtype} in {filename}")
        self.shape = [int(dim) for dim in array.shape]
        return np.ravel(array, order="A")

    def _load_to_b_shape(self, divisor: int) -> None:
        if not self.shape:
            return
        self.b_shape.extend(self.shape[:-1])
        self.b_shape.append(math.ceil(self.shape[-1] / divisor))

    @staticmethod
    def _rows(flat: np.ndarray, size: int) -> np.ndarray:
        padding = (-flat.size) % size
        padded = np.concatenate([flat, np.zeros(padding, dtype=flat.dtype)])
        return padded.reshape(-1, size)

    def load_fp32(self, filename) -> None:
        """Load a float32 array, eight values per burst."""
        flat = self._load(filename, (np.dtype("<f4"), np.dtype(">f4")))
        self.data = flat.astype(np.float32)
        self._load_to_b_shape(8)
        self.b_data.extend(Burst.from_fp32(row) for row in self._rows(self.data, 8))

    def load_fp16(self, filename) -> None:
        """Load raw half-precision patterns (uint16 or float16), 64 per burst."""
        accepted = (np.dtype("<u2"), np.dtype(">u2"), np.dtype("<f2"), np.dtype(">f2"))
        flat = self._load(filename, accepted)
        if flat.dtype.kind == "f":
            flat = flat.astype("<f2").view("<u2")
        self.u16_data = flat.astype(np.uint16)
        self._load_to_b_shape(64)
        self.b_data.extend(Burst.from_u16(row) for row in self._rows(self.u16_data, 64))

    def load_fp16_from_fp32(self, filename) -> None:
        """Load a float32 array, rounding to half, sixteen values per burst."""
        flat = self._load(filename, (np.dtype("<f4"), np.dtype(">f4")))
        self.data = flat.astype(np.float32)
        self._load_to_b_shape(16)
        self.b_data.extend(Burst.from_fp16(row) for row in self._rows(self.data, 16))

    def dump_fp16(self, filename) -> None:
        """Write the first 16 u16 lanes of every burst as space-separated decimals."""
        with open(filename, "w", encoding="ascii") as out:
            out.write(
                "".join(f"{int(v)} " for burst in self.b_data for v in burst.u16[:16])
            )

    def dump_int8(self, filename) -> None:
        """Write the first 32 bytes of every burst as raw bytes."""
        with open(filename, "wb") as out:
            out.write(b"".join(burst.data[:32] for burst in self.b_data))

    def copy_bursts(self, bursts: Sequence[Burst]) -> None:
        """Append copies of ``bursts`` as one more dimension."""
        items = list(bursts)
        self.b_shape.append(len(items))
        self.b_data.extend(Burst(burst.data) for burst in items)

    def total_dim(self) -> int:
        """Product of the burst shape."""
        return math.prod(self.b_shape)