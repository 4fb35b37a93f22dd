import numpy as np
import pytest

from trunctile.kernel import run_kernel, tile_spans, trunc, trunc_tile
from trunctile.tiling import DataType, TruncTilingData, compute_tiling

UB_SIZE = 262144


def test_float_matches_truncation_toward_zero():
    values = np.array([1.5, -1.5, 2.999, -0.25, 0.0, 1e30, -7.0], dtype=np.float32)
    result = trunc_tile(values, DataType.FLOAT)
    assert result.dtype == np.float32
    np.testing.assert_array_equal(result, np.trunc(values))


def test_float_keeps_special_values():
    values = np.array([np.inf, -np.inf, np.nan], dtype=np.float32)
    np.testing.assert_array_equal(trunc_tile(values, "float32"), values)


def test_half_matches_truncation():
    rng = np.random.default_rng(1)
    values = (rng.standard_normal(500) * 1000).astype(np.float16)
    result = trunc_tile(values, DataType.FLOAT16)
    assert result.dtype == np.float16
    np.testing.assert_array_equal(result, np.trunc(values))


@pytest.mark.parametrize(
    "dtype, values",
    [
        (DataType.INT8, np.array([-128, -1, 0, 1, 127], dtype=np.int8)),
        (DataType.UINT8, np.array([0, 1, 128, 255], dtype=np.uint8)),
        (DataType.INT32, np.array([-(2**31), -5, 0, 5, 2**31 - 1], dtype=np.int32)),
    ],
)
def test_integer_types_are_unchanged(dtype, values):
    result = trunc_tile(values, dtype)
    assert result.dtype == values.dtype
    np.testing.assert_array_equal(result, values)


def test_bf16_small_values():
    values = np.array([1.5, -2.75, 7.9375, -0.5], dtype=np.float32)
    np.testing.assert_array_equal(trunc_tile(values, DataType.BF16), np.trunc(values))


def test_bf16_large_values_round_toward_zero():
    values = np.array([16777218.0, -123456789.0, 3.0e9, -3.0e9], dtype=np.float32)
    result = trunc_tile(values, "bfloat16")
    assert np.all(result.view(np.uint32) & np.uint32(0xFFFF) == 0)
    assert np.all(np.abs(result) <= np.abs(values))
    assert np.all(np.sign(result) == np.sign(values))


def test_tile_spans_order_for_four_tiles():
    tiling = TruncTilingData(block_size=8, core_size=30, tile_num=4, final_length=6)
    offsets = [offset for offset, _ in tile_spans(tiling)]
    assert offsets == [0, 8, 16, 24, 16, 24]


@pytest.mark.parametrize("total_length", [1, 40, 41, 123, 999, 1000])
def test_tile_spans_cover_core(total_length):
    tiling = compute_tiling(total_length, DataType.FLOAT, 960)
    spans = list(tile_spans(tiling))
    covered = set()
    for offset, length in spans:
        covered.update(range(offset, offset + length))
    assert covered >= set(range(tiling.core_size))
    assert spans[-1] == ((tiling.tile_num - 1) * tiling.block_size, tiling.final_length)


def test_tile_spans_rejects_empty_tiling():
    with pytest.raises(ValueError):
        list(tile_spans(TruncTilingData(8, 0, 0, 8)))


@pytest.mark.parametrize("dtype", [DataType.FLOAT, DataType.FLOAT16, DataType.BF16])
def test_many_tiles_agree_with_one_tile(dtype):
    rng = np.random.default_rng(7)
    x = (rng.standard_normal(997) * 50).astype(np.float32)
    many = compute_tiling(x.size, dtype, 960)
    one = compute_tiling(x.size, dtype, UB_SIZE)
    assert many.tile_num > 1
    assert one.tile_num == 1
    np.testing.assert_array_equal(run_kernel(x, dtype, many), run_kernel(x, dtype, one))


def test_run_kernel_rejects_short_tiling():
    x = np.arange(100, dtype=np.float32)
    tiling = compute_tiling(50, DataType.FLOAT, UB_SIZE)
    with pytest.raises(ValueError):
        run_kernel(x, DataType.FLOAT, tiling)


def test_trunc_preserves_shape_and_matches_reference():
    rng = np.random.default_rng(3)
    x = (rng.standard_normal((4, 5, 6)) * 20).astype(np.float32)
    result = trunc(x, "float32", 960)
    assert result.shape == x.shape
    np.testing.assert_array_equal(result, np.trunc(x))


def test_trunc_int8_round_trip():
    x = np.arange(-128, 128, dtype=np.int8).reshape(16, 16)
    result = trunc(x, DataType.INT8, 960)
    assert result.dtype == np.int8
    np.testing.assert_array_equal(result, x)


def test_trunc_empty_input():
    result = trunc(np.zeros((0, 3), dtype=np.float16), DataType.FLOAT16, UB_SIZE)
    assert result.shape == (0, 3)
    assert result.dtype == np.float16


def test_trunc_rejects_tiny_buffer():
    with pytest.raises(ValueError):
        trunc(np.ones(4, dtype=np.float32), DataType.FLOAT, 32)