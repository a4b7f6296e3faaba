import pytest
from hypothesis import given
from hypothesis import strategies as st

from pcpatch.schema import PointCloudError
from pcpatch.sigbits import (
    common_bits,
    sigbits_decode,
    sigbits_encode,
    sigbits_flip_endian,
    sigbits_value_at,
)

WIDTHS = [8, 16, 32, 64]


@st.composite
def width_and_values(draw):
    width = draw(st.sampled_from(WIDTHS))
    values = draw(
        st.lists(st.integers(min_value=0, max_value=(1 << width) - 1), min_size=1, max_size=60)
    )
    return width, values


@st.composite
def width_and_clustered_values(draw):
    width = draw(st.sampled_from(WIDTHS))
    base = draw(st.integers(min_value=0, max_value=(1 << width) - 1))
    spread = draw(st.integers(min_value=0, max_value=width))
    high = base | ((1 << spread) - 1)
    low = base & ~((1 << spread) - 1)
    values = draw(st.lists(st.integers(min_value=low, max_value=high), min_size=1, max_size=60))
    return width, values


@given(width_and_values())
def test_round_trip(case):
    width, values = case
    encoded = sigbits_encode(values, width)
    assert sigbits_decode(encoded, width, len(values)) == values


@given(width_and_clustered_values())
def test_round_trip_clustered(case):
    width, values = case
    encoded = sigbits_encode(values, width)
    assert sigbits_decode(encoded, width, len(values)) == values


@given(width_and_clustered_values())
def test_value_at_matches_decode(case):
    width, values = case
    encoded = sigbits_encode(values, width)
    assert [sigbits_value_at(encoded, width, i) for i in range(len(values))] == values


@given(width_and_values())
def test_header_holds_unique_bits_and_common_value(case):
    width, values = case
    wordbytes = width // 8
    commonvalue, commonbits = common_bits(values, width)
    encoded = sigbits_encode(values, width)
    assert int.from_bytes(encoded[:wordbytes], "little") == width - commonbits
    assert int.from_bytes(encoded[wordbytes:2 * wordbytes], "little") == commonvalue
    assert all(v & commonvalue == commonvalue for v in values)


@given(width_and_values())
def test_flip_endian_twice_is_identity(case):
    width, values = case
    encoded = sigbits_encode(values, width)
    assert sigbits_flip_endian(sigbits_flip_endian(encoded, width), width) == encoded


def test_flip_endian_swaps_header_words():
    values = [0x1234, 0x1299]
    encoded = sigbits_encode(values, 16)
    flipped = sigbits_flip_endian(encoded, 16)
    assert flipped[0:2] == encoded[0:2][::-1]
    assert flipped[2:4] == encoded[2:4][::-1]
    assert flipped[4:] == encoded[4:]


def test_flip_endian_8bit_unchanged():
    encoded = sigbits_encode([1, 2, 3], 8)
    assert sigbits_flip_endian(encoded, 8) == encoded


def test_common_bits_worked_example():
    assert common_bits([0xA1, 0xA2], 8) == (0xA0, 6)


def test_all_equal_values_encode_header_only():
    assert sigbits_encode([7, 7, 7], 8) == bytes([0, 7, 0])
    assert sigbits_decode(bytes([0, 7, 0]), 8, 3) == [7, 7, 7]


def test_full_width_values_round_trip():
    values = [0, (1 << 64) - 1, 12345]
    encoded = sigbits_encode(values, 64)
    _, commonbits = common_bits(values, 64)
    assert int.from_bytes(encoded[:8], "little") == 64 - commonbits
    assert sigbits_decode(encoded, 64, len(values)) == values


@pytest.mark.parametrize("width", [0, 7, 12, 128])
def test_bad_width_raises(width):
    with pytest.raises(PointCloudError):
        sigbits_encode([1], width)


def test_empty_values_raise():
    with pytest.raises(PointCloudError):
        common_bits([], 8)


def test_value_out_of_range_raises():
    with pytest.raises(PointCloudError):
        sigbits_encode([256], 8)
    with pytest.raises(PointCloudError):
        common_bits([-1], 16)


def test_truncated_decode_raises():
    encoded = sigbits_encode(list(range(40)), 32)
    with pytest.raises(PointCloudError):
        sigbits_decode(encoded[:9], 32, 40)
    with pytest.raises(PointCloudError):
        sigbits_decode(encoded[:3], 32, 40)


def test_value_at_out_of_bound_raises():
    values = list(range(10))
    encoded = sigbits_encode(values, 16)
    with pytest.raises(PointCloudError):
        sigbits_value_at(encoded, 16, 10_000)
    with pytest.raises(PointCloudError):
        sigbits_value_at(encoded, 16, -1)


def test_values_split_across_words_round_trip():
    values = [0b10101, 0b01010, 0b11111, 0b00001, 0b10000]
    encoded = sigbits_encode(values, 8)
    assert sigbits_decode(encoded, 8, len(values)) == values
    assert sigbits_value_at(encoded, 8, 2) == values[2]