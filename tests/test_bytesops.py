import pytest
from hypothesis import given, strategies as st

from pcpatch.bitmap import Bitmap, FilterType
from pcpatch.bytes import PointBytes
from pcpatch.bytesops import (
    FLT_MAX,
    DoubleStat,
    bytes_bitmap,
    filter_bytes,
    minmax,
    value_at,
)
from pcpatch.schema import Compression, Interpretation, PointCloudError

ALL = [Compression.NONE, Compression.RLE, Compression.SIGBITS, Compression.ZLIB]


def make(values, interp=Interpretation.INT32, compression=Compression.NONE):
    return PointBytes.from_values(interp, values).encode(compression)


def bitmap_of(npoints, keep):
    bm = Bitmap(npoints)
    for i in keep:
        bm.set(i, True)
    return bm


def test_doublestat_update():
    stat = DoubleStat()
    assert stat.min == FLT_MAX and stat.max == -FLT_MAX
    for d in (5.0, -2.0, 8.0):
        stat.update(d)
    assert (stat.min, stat.max, stat.sum) == (-2.0, 8.0, 11.0)


@pytest.mark.parametrize("compression", ALL)
def test_minmax_all_compressions(compression):
    pcb = make([3, 1, 2, 2, 2], compression=compression)
    mn, mx, avg = minmax(pcb)
    assert mn == 1
    assert mx == 3
    assert avg == pytest.approx(2.0)


def test_minmax_empty_raises():
    with pytest.raises(PointCloudError):
        minmax(PointBytes(Interpretation.INT32, 0))


@pytest.mark.parametrize("compression", ALL)
@pytest.mark.parametrize(
    "interp",
    [Interpretation.INT8, Interpretation.UINT16, Interpretation.INT32, Interpretation.INT64],
)
def test_value_at_matches_values(compression, interp):
    raw = [-3, 0, 0, 5, 5, 5, 12, -1] if interp.is_signed else [3, 0, 0, 5, 5, 5, 12, 1]
    pcb = make(raw, interp, compression)
    assert [value_at(pcb, n) for n in range(len(raw))] == [float(v) for v in raw]


@pytest.mark.parametrize("compression", ALL)
def test_value_at_out_of_bound(compression):
    pcb = make([1, 2, 3], compression=compression)
    with pytest.raises(PointCloudError):
        value_at(pcb, 3)
    with pytest.raises(PointCloudError):
        value_at(pcb, -1)


@pytest.mark.parametrize("compression", ALL)
def test_bytes_bitmap_between(compression):
    pcb = make([1, 2, 3, 4, 5, 6], compression=compression)
    bm = bytes_bitmap(pcb, FilterType.BETWEEN, 2, 5)
    assert list(bm) == [False, False, True, True, False, False]
    assert bm.nset == 2


@pytest.mark.parametrize("compression", ALL)
def test_bytes_bitmap_gt_consistent(compression):
    values = [7, 7, 1, 9, 9, 9, 0]
    pcb = make(values, compression=compression)
    bm = bytes_bitmap(pcb, FilterType.GT, 6, 6)
    assert list(bm) == [v > 6 for v in values]


def test_filter_uncompressed_with_stats():
    pcb = make([5, 1, 9, 3])
    stats = DoubleStat()
    out = filter_bytes(pcb, bitmap_of(4, [0, 2]), stats)
    assert out.compression is Compression.NONE
    assert out.npoints == 2
    assert out.values() == [5.0, 9.0]
    assert (stats.min, stats.max, stats.sum) == (5.0, 9.0, 14.0)


def test_filter_rle_keeps_encoding():
    pcb = make([4, 4, 4, 7, 7, 1], compression=Compression.RLE)
    stats = DoubleStat()
    out = filter_bytes(pcb, bitmap_of(6, [1, 2, 3, 5]), stats)
    assert out.compression is Compression.RLE
    assert out.npoints == 4
    assert out.decode().values() == [4.0, 4.0, 7.0, 1.0]
    assert (stats.min, stats.max) == (1.0, 7.0)


@pytest.mark.parametrize("compression", [Compression.SIGBITS, Compression.ZLIB])
def test_filter_recompresses(compression):
    values = [10, 11, 12, 13, 14]
    pcb = make(values, compression=compression)
    out = filter_bytes(pcb, bitmap_of(5, [0, 4]))
    assert out.compression is compression
    assert out.values() == [10.0, 14.0]


def test_filter_sigbits_to_nothing():
    pcb = make([1, 2, 3], compression=Compression.SIGBITS)
    out = filter_bytes(pcb, Bitmap(3))
    assert out.npoints == 0
    assert out.values() == []


@given(st.lists(st.integers(min_value=0, max_value=65535), min_size=1, max_size=60))
def test_value_at_property(values):
    for compression in ALL:
        pcb = make(values, Interpretation.UINT16, compression)
        assert [value_at(pcb, n) for n in range(len(values))] == [float(v) for v in values]


@given(st.lists(st.integers(min_value=-1000, max_value=1000), min_size=1, max_size=60))
def test_minmax_property(values):
    for compression in ALL:
        mn, mx, avg = minmax(make(values, compression=compression))
        assert mn == min(values)
        assert mx == max(values)
        assert mn <= avg <= mx