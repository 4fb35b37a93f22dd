# trunctile

`trunctile` truncates every element of an array toward zero. It works tile
by tile, as a vector core does. The input is padded to a 32-byte block and
split into tiles that fit a unified buffer. Each tile is then cast through
the same intermediate types the hardware operator uses.

## Element types

The `DataType` enum lists the supported element types:

| Member     | Value        | Bytes per element |
|------------|--------------|-------------------|
| `FLOAT16`  | `"float16"`  | 2                 |
| `BF16`     | `"bfloat16"` | 2                 |
| `FLOAT`    | `"float32"`  | 4                 |
| `INT8`     | `"int8"`     | 1                 |
| `INT32`    | `"int32"`    | 4                 |
| `UINT8`    | `"uint8"`    | 1                 |

Every function that takes a `dtype` accepts either a member or its string
value. NumPy has no bfloat16 type, so `BF16` data goes in and comes out as
`float32` arrays. The low 16 bits of each result are cleared.

Each type is cast through its own path:

- `int8` and `uint8` go through `float16`.
- `float16` and `bfloat16` go through `int32`, saturating at the int32 limits, with NaN becoming 0.
- `float32` is truncated directly.
- `int32` is copied unchanged.

## Installing

```
pip install .
```

Install with the `test` extra to run the test suite with pytest.

## Planning the tiles (`trunctile.tiling`)

`compute_tiling(total_length, dtype, ub_size)` plans the tiles for an input
of `total_length` elements and a unified buffer of `ub_size` bytes. It
returns a frozen `TruncTilingData` with these fields:

- `block_size`
- `core_size`
- `tile_num`
- `final_length`

Each field must be an unsigned 32-bit integer. `compute_tiling` raises
`ValueError` in these cases:

- `total_length` is out of range.
- `ub_size` is negative.
- The buffer is too small to hold a single tile.

```python
from trunctile.tiling import DataType, compute_tiling, parse_tiling

plan = compute_tiling(1000, DataType.FLOAT, 192 * 1024)
raw = plan.to_bytes()          # four little-endian uint32 fields, 16 bytes
assert parse_tiling(raw) == plan
```

`parse_tiling` raises `ValueError` unless it is given exactly 16 bytes.

`infer_shape(shape)` gives the output shape, which is always the input
shape as a tuple.

## Running the operator (`trunctile.kernel`)

```python
import numpy as np
from trunctile.kernel import trunc

x = np.array([1.7, -2.5, 3.0, -0.2], dtype=np.float32)
y = trunc(x, "float32", 192 * 1024)   # [1.0, -2.0, 3.0, -0.0]
```

`trunc(x, dtype, ub_size)` plans the tiles and runs the tiled pass. The
result has the shape of `x`. An empty input gives an empty result.

For finer control, use these functions:

- `tile_spans(tiling)` yields the `(offset, length)` of each tile, in processing order.
- `trunc_tile(values, dtype)` truncates one tile.
- `run_kernel(x, dtype, tiling)` runs the whole tiled pass with a given plan. It raises `ValueError` if the plan covers fewer elements than `x` has.

## What it does not do

`trunctile` is a library only. It has no command-line tool. It does not
talk to any accelerator: all computation runs on the CPU with NumPy.