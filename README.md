# pcpatch

`pcpatch` is a pure-Python library for point cloud data. It describes points
with a schema, gathers them into uncompressed patches, and stores the values
of one dimension as a byte array. Each byte array can use one of these
compressions:

- run-length encoding, for values that repeat in long runs
- significant-bit packing, which strips the high bits that all values share
  and packs the remaining bits tightly
- deflate (zlib)

Points and uncompressed patches can be read from and written to their
well-known-binary (WKB) layout.

## Installation

```
pip install pcpatch
```

The package uses only the Python standard library and needs Python 3.10 or
later.

## Schemas (`pcpatch.schema`)

- `Interpretation` is the storage type of a dimension: `INT8` to `UINT64`,
  `DOUBLE` and `FLOAT`. Its `size` property gives the width in bytes.
- `Dimension` has a name, an interpretation, a `scale` and an `offset`. The
  real value is the stored value times the scale, plus the offset.
  `scale_offset` and `unscale_unoffset` convert between the two.
  `read(data, offset)` and `write(buf, offset, value)` work on a point record.
- `Schema(pcid, dims, srid=0)` lays the dimensions out one after another. It
  fills in each dimension's `position` and `byteoffset`, and finds the X and Y
  dimensions by name, ignoring case. `size` is the record width in bytes.
  `dimension(index)` looks a dimension up by index.
  `dimension_by_name(name)` looks one up by name, ignoring case, and returns
  `None` when there is no such dimension.
- `Bounds` is an X/Y extent. `include(x, y)` and `merge(other)` grow it.
- `Compression` (`NONE`, `RLE`, `SIGBITS`, `ZLIB`) names the byte-array
  encodings. `PatchType` names the patch storage layouts.
- `read_value` and `write_value` read and write one raw little-endian value.
  When a value is written to an integer type it is rounded. A value that is
  out of range raises an error.

## Points (`pcpatch.point`)

```python
from pcpatch.schema import Schema, Dimension, Interpretation
from pcpatch.point import Point

schema = Schema(1, [
    Dimension("X", Interpretation.INT32, scale=0.01),
    Dimension("Y", Interpretation.INT32, scale=0.01),
    Dimension("Z", Interpretation.INT16),
])
pt = Point.from_values(schema, [1.5, 2.25, 10])
pt.x, pt.y               # (1.5, 2.25)
pt.get_by_name("z")      # 10.0
pt.to_string()           # '{"pcid":1,"pt":[1.5,2.25,10]}'
```

- `to_wkb()` writes the endian flag, the pcid and the raw record.
  `Point.from_wkb(schema, wkb)` reads this form and byte-swaps big-endian
  input.
- `to_geometry_wkb()` writes a WKB POINT. It adds the SRID flag when the
  schema's `srid` is positive, and a Z coordinate when the schema has a `Z`
  dimension.
- `to_values()` returns the real value of every dimension, in schema order.

## Uncompressed patches (`pcpatch.uncompressed`)

- `UncompressedPatch.from_points(points)` copies points that share a pcid
  into one buffer. It computes the `bounds` and the per-dimension `stats` (a
  `PatchStats` of min, max and average points). `None` entries are skipped
  with a logged warning.
- `UncompressedPatch.make(schema, maxpoints)` returns an empty patch.
  `add_point(point)` appends a point, doubling the storage when it is full,
  and widens the bounds.
- `point_at(n)` is 0-based. `points()` and iteration give every point.
- `to_wkb()` and `UncompressedPatch.from_wkb(schema, wkb)` write and read the
  patch WKB form: endian flag, pcid, compression, point count, records.
- `to_string()` gives `{"pcid":…,"pts":[[…],[…]]}`.
- `compute_extent()` and `compute_stats()` recalculate the bounds and the
  statistics.

## Dimension byte arrays (`pcpatch.bytes`, `pcpatch.sigbits`, `pcpatch.bytesops`)

```python
from pcpatch.bytes import PointBytes
from pcpatch.schema import Compression, Interpretation
from pcpatch.bytesops import minmax, value_at

pcb = PointBytes.from_values(Interpretation.UINT16, [5, 5, 5, 7])
rle = pcb.encode(Compression.RLE)
rle.decode().values()    # [5.0, 5.0, 5.0, 7.0]
minmax(rle)              # (5.0, 7.0, 5.5)
value_at(rle, 3)         # 7.0
```

- `PointBytes` is immutable. `encode(compression)` and `decode()` return new
  arrays.
- `run_count()` counts runs of equal values. `sigbits_count()` counts the
  leading bits that all values share.
- `serialize()` writes a compression byte, a 4-byte length and the data.
  `PointBytes.deserialize(buf, interpretation, npoints, flip_endian)` reads
  that form back.
- `flip_endian()` byte-swaps the words stored in run-length and
  significant-bit data.
- `rle_encode`, `rle_decode`, `zlib_encode` and `zlib_decode` are the
  individual codecs. A run-length entry holds at most 255 values.
- `pcpatch.sigbits` holds the bit packing itself: `common_bits`,
  `sigbits_encode`, `sigbits_decode`, `sigbits_value_at` and
  `sigbits_flip_endian`. It works on unsigned words of 8, 16, 32 or 64 bits.
- `pcpatch.bytesops` provides:
  - `minmax(pcb)`, which returns the raw minimum, maximum and average
  - `value_at(pcb, n)`, which returns one raw value. For run-length and
    significant-bit data it does not decode the whole array.
  - `bytes_bitmap(pcb, filter_type, val1, val2)`, which builds a selection
    `Bitmap`
  - `filter_bytes(pcb, bitmap, stats)`, which keeps the flagged values and
    gathers raw statistics into a `DoubleStat`

  Run-length data is read without being expanded.

## Bitmaps (`pcpatch.bitmap`)

`Bitmap(npoints)` holds one flag per point and keeps a count of the set flags
in `nset`. `apply(filter_type, i, d, val1, val2)` sets flag `i` from a
`FilterType`:

- `GT`: `d > val1`
- `LT`: `d < val1`
- `EQUAL`: `d == val1`
- `BETWEEN`: `val1 < d < val2`, both bounds excluded

## Compression statistics (`pcpatch.dimstats`)

`DimStats.for_schema(schema)` starts empty running statistics.
`update(patch)` accepts any object with `schema`, `npoints` and a `bytes`
sequence holding one uncompressed `PointBytes` per dimension. After each
update, every dimension has a `recommended_compression`:

- zlib for `DOUBLE` dimensions
- otherwise significant-bit packing or run-length encoding, when the estimated
  saving is large enough, and zlib when it is not

`to_string()` gives the totals as JSON text.

## What the package does not do

The package does not provide:

- a patch type that holds one compressed byte array per dimension
- conversion between patch types
- merging several patches into one
- filtering a whole patch by a dimension value

`PointBytes`, `Bitmap` and `pcpatch.bytesops` supply the per-dimension pieces
for these, but no patch-level operations are built on them.
`UncompressedPatch.from_wkb` accepts only uncompressed patch WKB and raises
`PointCloudError` for any other compression.

## Errors

Invalid input raises `pcpatch.schema.PointCloudError`. Examples are:

- points with differing pcids
- a WKB buffer of the wrong length
- an unknown compression
- an out-of-range index

## Running the tests

```
pip install -e .[test]
pytest
```