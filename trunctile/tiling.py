"""Host-side tiling and shape inference for the elementwise truncation operator."""

from __future__ import annotations

import struct
from dataclasses import dataclass, astuple
from enum import Enum

BLOCK_SIZE = 32
"""Size in bytes of one aligned block of the unified buffer."""

_UINT32_MAX = 0xFFFFFFFF
_LAYOUT = struct.Struct("<4I")


class DataType(Enum):
    """Element types the operator accepts; values are their common names."""

    FLOAT16 = "float16"
    BF16 = "bfloat16"
    FLOAT = "float32"
    INT8 = "int8"
    INT32 = "int32"
    UINT8 = "uint8"

    @property
    def itemsize(self) -> int:
        """Size of one element in bytes."""
        return _ITEMSIZE[self]

    @property
    def buffer_count(self) -> int:
        """Number of tile-sized buffers the kernel keeps for this type."""
        return _BUFFER_COUNT[self]


_ITEMSIZE = {
    DataType.INT8: 1,
    DataType.UINT8: 1,
    DataType.FLOAT16: 2,
    DataType.BF16: 2,
    DataType.FLOAT: 4,
    DataType.INT32: 4,
}

_BUFFER_COUNT = {
    DataType.INT8: 4,
    DataType.UINT8: 4,
    DataType.FLOAT16: 5,
    DataType.BF16: 5,
    DataType.FLOAT: 3,
    DataType.INT32: 3,
}


@dataclass(frozen=True)
class TruncTilingData:
    """How the input is split into tiles; all fields are unsigned 32-bit counts of elements."""

    block_size: int
    core_size: int
    tile_num: int
    final_length: int

    def __post_init__(self) -> None:
        for name, value in zip(("block_size", "core_size", "tile_num", "final_length"), astuple(self)):
            if not isinstance(value, int) or not 0 <= value <= _UINT32_MAX:
                raise ValueError(f"{name} must be an unsigned 32-bit integer, got {value!r}")

    def to_bytes(self) -> bytes:
        """Serialise as four little-endian uint32 values in field order."""
        return _LAYOUT.pack(*astuple(self))


def parse_tiling(data: bytes) -> TruncTilingData:
    """Read tiling data written by :meth:`TruncTilingData.to_bytes`."""
    raw = bytes(data)
    if len(raw) != _LAYOUT.size:
        raise ValueError(f"tiling data must be {_LAYOUT.size} bytes, got {len(raw)}")
    return TruncTilingData(*_LAYOUT.unpack(raw))


def compute_tiling(total_length: int, dtype: DataType | str, ub_size: int) -> TruncTilingData:
    """Split ``total_length`` elements into tiles fitting a unified buffer of ``ub_size`` bytes."""
    dtype = DataType(dtype)
    if not 0 <= total_length <= _UINT32_MAX:
        raise ValueError(f"total_length out of range: {total_length}")
    if ub_size < 0:
        raise ValueError(f"ub_size must not be negative: {ub_size}")

    align = BLOCK_SIZE // dtype.itemsize
    tiling_size = (ub_size // BLOCK_SIZE // 2 // dtype.buffer_count) & _UINT32_MAX
    if tiling_size > 8:
        tiling_size = tiling_size // 8 * 8
    block_size = (tiling_size * align) & _UINT32_MAX
    if block_size == 0:
        raise ValueError(f"unified buffer of {ub_size} bytes is too small for {dtype.value}")

    remainder = total_length % align
    core_size = (total_length + (align - remainder if remainder else 0)) & _UINT32_MAX
    tile_num = ((core_size + block_size - 1) & _UINT32_MAX) // block_size
    final_length = (core_size - (tile_num - 1) * block_size) & _UINT32_MAX
    return TruncTilingData(block_size, core_size, tile_num, final_length)


def infer_shape(shape) -> tuple[int, ...]:
    """The output has the same shape as the input."""
    return tuple(shape)