"""Device-side truncation toward zero, applied tile by tile."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from trunctile.tiling import DataType, TruncTilingData, compute_tiling, infer_shape

_INT32_MIN = np.iinfo(np.int32).min
_INT32_MAX = np.iinfo(np.int32).max

# bfloat16 values are carried in float32 arrays whose low 16 bits are zero.
_NUMPY_TYPES = {
    DataType.FLOAT16: np.float16,
    DataType.BF16: np.float32,
    DataType.FLOAT: np.float32,
    DataType.INT8: np.int8,
    DataType.INT32: np.int32,
    DataType.UINT8: np.uint8,
}


def _to_int32_trunc(values: np.ndarray) -> np.ndarray:
    """Round toward zero into int32, saturating at the type's limits."""
    wide = np.trunc(values.astype(np.float64))
    wide = np.nan_to_num(wide, nan=0.0, posinf=float(_INT32_MAX), neginf=float(_INT32_MIN))
    return np.clip(wide, _INT32_MIN, _INT32_MAX).astype(np.int32)


def _int32_to_float32_trunc(values: np.ndarray) -> np.ndarray:
    """Convert int32 to float32, rounding toward zero where the value is not exact."""
    exact = values.astype(np.int64)
    nearest = values.astype(np.float32)
    overshoot = np.abs(nearest.astype(np.int64)) > np.abs(exact)
    stepped = np.nextafter(nearest, np.float32(0))
    return np.where(overshoot, stepped, nearest).astype(np.float32)


def _float32_to_bf16_trunc(values: np.ndarray) -> np.ndarray:
    """Drop the low 16 mantissa bits, leaving a bfloat16 value stored as float32."""
    bits = np.ascontiguousarray(values, dtype=np.float32).view(np.uint32)
    return (bits & np.uint32(0xFFFF0000)).view(np.float32)


def trunc_tile(values, dtype: DataType | str) -> np.ndarray:
    """Truncate one tile of ``values`` toward zero the way the kernel does for ``dtype``."""
    dtype = DataType(dtype)
    values = np.asarray(values)
    out_type = _NUMPY_TYPES[dtype]
    with np.errstate(over="ignore", invalid="ignore"):
        if dtype in (DataType.INT8, DataType.UINT8):
            as_half = values.astype(out_type).astype(np.float16)
            return np.trunc(as_half).astype(out_type)
        if dtype is DataType.FLOAT16:
            ints = _to_int32_trunc(values.astype(np.float16))
            return ints.astype(np.float32).astype(np.float16)
        if dtype is DataType.FLOAT:
            return np.trunc(values.astype(np.float32))
        if dtype is DataType.INT32:
            return values.astype(np.int32).copy()
        ints = _to_int32_trunc(values.astype(np.float32))
        return _float32_to_bf16_trunc(_int32_to_float32_trunc(ints))


def tile_spans(tiling: TruncTilingData) -> Iterator[tuple[int, int]]:
    """Yield ``(offset, length)`` for each tile in the order the kernel processes them."""
    if tiling.tile_num == 0:
        raise ValueError("tiling has no tiles")
    tile = tiling.block_size
    last = tiling.tile_num - 1
    for progress in range(0, last, 2):
        yield progress * tile, tile
        yield (progress + 1) * tile, tile
    if last % 2:
        yield (last - 1) * tile, tile
    yield last * tile, tiling.final_length


def run_kernel(x, dtype: DataType | str, tiling: TruncTilingData) -> np.ndarray:
    """Run the tiled truncation over ``x`` using a precomputed ``tiling``."""
    dtype = DataType(dtype)
    array = np.asarray(x)
    element_type = _NUMPY_TYPES[dtype]
    flat = array.reshape(-1).astype(element_type)
    if tiling.core_size < flat.size:
        raise ValueError(
            f"tiling covers {tiling.core_size} elements but input has {flat.size}"
        )

    spans = list(tile_spans(tiling))
    extent = max(offset + length for offset, length in spans)
    source = np.zeros(max(extent, flat.size), dtype=element_type)
    source[: flat.size] = flat
    result = np.zeros_like(source)
    for offset, length in spans:
        window = slice(offset, offset + length)
        result[window] = trunc_tile(source[window], dtype)
    return result[: flat.size].reshape(array.shape)


def trunc(x, dtype: DataType | str, ub_size: int) -> np.ndarray:
    """Truncate every element of ``x`` toward zero on a core with ``ub_size`` bytes of buffer."""
    dtype = DataType(dtype)
    array = np.asarray(x)
    shape = infer_shape(array.shape)
    if array.size == 0:
        return np.zeros(shape, dtype=_NUMPY_TYPES[dtype])
    tiling = compute_tiling(array.size, dtype, ub_size)
    return run_kernel(array, dtype, tiling).reshape(shape)