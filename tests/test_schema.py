import pytest
from hypothesis import given
from hypothesis import strategies as st

from pcpatch.schema import (
    Bounds,
    Dimension,
    Interpretation,
    PointCloudError,
    Schema,
    read_value,
    write_value,
)


def make_schema():
    return Schema(
        pcid=1,
        dims=[
            Dimension("X", Interpretation.INT32, scale=0.01),
            Dimension("Y", Interpretation.INT32, scale=0.01),
            Dimension("Z", Interpretation.INT16, scale=0.01, offset=100.0),
            Dimension("Intensity", Interpretation.UINT8),
        ],
    )


@pytest.mark.parametrize(
    "interp,size",
    [
        (Interpretation.INT8, 1),
        (Interpretation.UINT16, 2),
        (Interpretation.INT32, 4),
        (Interpretation.UINT64, 8),
        (Interpretation.DOUBLE, 8),
        (Interpretation.FLOAT, 4),
    ],
)
def test_interpretation_sizes(interp, size):
    assert interp.size == size


@given(st.integers(min_value=-(2**31), max_value=2**31 - 1))
def test_int32_write_read_round_trip(value):
    buf = bytearray(4)
    write_value(buf, 0, Interpretation.INT32, value)
    assert read_value(buf, 0, Interpretation.INT32) == value


@given(st.floats(allow_nan=False, allow_infinity=False))
def test_double_write_read_round_trip(value):
    buf = bytearray(10)
    write_value(buf, 2, Interpretation.DOUBLE, value)
    assert read_value(buf, 2, Interpretation.DOUBLE) == value


def test_write_out_of_range_raises():
    buf = bytearray(1)
    with pytest.raises(PointCloudError):
        write_value(buf, 0, Interpretation.UINT8, 256)
    with pytest.raises(PointCloudError):
        write_value(buf, 0, Interpretation.UINT8, -1)


def test_write_nan_to_integer_raises():
    with pytest.raises(PointCloudError):
        write_value(bytearray(4), 0, Interpretation.INT32, float("nan"))


def test_read_short_buffer_raises():
    with pytest.raises(PointCloudError):
        read_value(b"\x00\x01", 0, Interpretation.INT32)


def test_dimension_scale_round_trip():
    dim = Dimension("Z", Interpretation.INT16, scale=0.01, offset=100.0)
    assert dim.unscale_unoffset(dim.scale_offset(1234.0)) == pytest.approx(1234.0)
    buf = bytearray(dim.size)
    dim.write(buf, 0, 112.34)
    assert dim.read(buf, 0) == pytest.approx(112.34)


def test_schema_layout():
    schema = make_schema()
    assert schema.ndims == len(schema.dims)
    assert schema.size == sum(d.size for d in schema.dims)
    for index, dim in enumerate(schema.dims):
        assert dim.position == index
    z = schema.dimension_by_name("Z")
    assert z.byteoffset == schema.dims[0].size + schema.dims[1].size
    assert schema.x_position == schema.dimension_by_name("X").position
    assert schema.y_position == schema.dimension_by_name("Y").position


def test_dimension_by_name_is_case_insensitive():
    schema = make_schema()
    assert schema.dimension_by_name("intensity") is schema.dimension_by_name("Intensity")
    assert schema.dimension_by_name("intensity").name == "Intensity"
    assert schema.dimension_by_name("missing") is None


def test_dimension_index_out_of_range_raises():
    schema = make_schema()
    with pytest.raises(PointCloudError):
        schema.dimension(schema.ndims)
    with pytest.raises(PointCloudError):
        schema.dimension(-1)
    assert schema.dimension(0).name == "X"


def test_schema_without_xy():
    schema = Schema(pcid=2, dims=[Dimension("A", Interpretation.UINT8)])
    assert schema.x_position is None
    assert schema.y_position is None


def test_dimension_write_read_at_record_offset():
    schema = make_schema()
    buf = bytearray(schema.size * 2)
    dim = schema.dimension_by_name("Intensity")
    dim.write(buf, schema.size, 42)
    assert dim.read(buf, schema.size) == 42
    assert dim.read(buf, 0) == 0


def test_bounds_include_and_merge():
    b = Bounds()
    assert b.is_empty
    b.include(1.5, -2.0)
    b.include(-3.0, 4.0)
    assert (b.xmin, b.xmax, b.ymin, b.ymax) == (-3.0, 1.5, -2.0, 4.0)
    other = Bounds()
    other.include(10.0, -20.0)
    b.merge(other)
    assert (b.xmin, b.xmax, b.ymin, b.ymax) == (-3.0, 10.0, -20.0, 4.0)
    assert not b.is_empty


def test_bounds_merge_empty_is_noop():
    b = Bounds()
    b.include(1.0, 2.0)
    b.merge(Bounds())
    assert (b.xmin, b.xmax, b.ymin, b.ymax) == (1.0, 1.0, 2.0, 2.0)