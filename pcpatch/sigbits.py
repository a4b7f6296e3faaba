"""Significant-bit compression: strip the bits common to all words, pack the rest."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from pcpatch.schema import PointCloudError

_WIDTHS = (8, 16, 32, 64)


def _check_width(bitwidth: int) -> int:
    if bitwidth not in _WIDTHS:
        raise PointCloudError(f"cannot handle bit width {bitwidth}")
    return bitwidth // 8


def _encoded_size(bitwidth: int, npoints: int, nbits: int) -> int:
    wordbytes = bitwidth // 8
    raw = nbits * npoints // 8 + 1 + 2 * wordbytes
    if bitwidth == 8:
        return raw
    if bitwidth == 16:
        return raw + raw % 2
    return raw + wordbytes - raw % wordbytes


def _chunks(data: bytes, size: int) -> Iterator[bytes]:
    for start in range(0, len(data), size):
        yield data[start:start + size]


def _swap_words(data: bytes, wordbytes: int) -> bytes:
    if wordbytes == 1:
        return bytes(data)
    return b"".join(chunk[::-1] for chunk in _chunks(data, wordbytes))


def _parse_header(data, bitwidth: int) -> Tuple[int, int, bytes]:
    wordbytes = _check_width(bitwidth)
    data = bytes(data)
    if len(data) < 2 * wordbytes:
        raise PointCloudError("sigbits buffer too short for its header")
    nbits = int.from_bytes(data[:wordbytes], "little")
    commonvalue = int.from_bytes(data[wordbytes:2 * wordbytes], "little")
    if nbits > bitwidth:
        raise PointCloudError(f"invalid unique bit count {nbits} for width {bitwidth}")
    return nbits, commonvalue, data[2 * wordbytes:]


def common_bits(values: Iterable[int], bitwidth: int) -> Tuple[int, int]:
    """Return (common value, number of leading bits shared by all values)."""
    _check_width(bitwidth)
    limit = (1 << bitwidth) - 1
    it = iter(values)
    try:
        first = next(it)
    except StopIteration:
        raise PointCloudError("cannot count common bits of no values") from None
    elem_and = elem_or = first
    for value in (first, *it):
        if not 0 <= value <= limit:
            raise PointCloudError(f"value {value} does not fit in {bitwidth} bits")
        elem_and &= value
        elem_or |= value
    commonbits = bitwidth
    while elem_and != elem_or:
        elem_and >>= 1
        elem_or >>= 1
        commonbits -= 1
    return (elem_and << (bitwidth - commonbits)) & limit, commonbits


def sigbits_encode(values: Iterable[int], bitwidth: int) -> bytes:
    """Encode unsigned words: header of unique-bit count and common value, then packed bits."""
    wordbytes = _check_width(bitwidth)
    values = list(values)
    commonvalue, commonbits = common_bits(values, bitwidth)
    nbits = bitwidth - commonbits
    out = bytearray(_encoded_size(bitwidth, len(values), nbits))
    out[:wordbytes] = nbits.to_bytes(wordbytes, "little")
    out[wordbytes:2 * wordbytes] = commonvalue.to_bytes(wordbytes, "little")
    if nbits == 0:
        return bytes(out)

    mask = (1 << nbits) - 1
    total = nbits * len(values)
    nwords = -(-total // bitwidth)
    bits = "".join(format(value & mask, f"0{nbits}b") for value in values)
    bits = bits.ljust(nwords * bitwidth, "0")
    payload = int(bits, 2).to_bytes(nwords * wordbytes, "big")
    start = 2 * wordbytes
    out[start:start + len(payload)] = _swap_words(payload, wordbytes)
    return bytes(out)


def sigbits_decode(data, bitwidth: int, npoints: int) -> List[int]:
    """Decode ``npoints`` unsigned words from a sigbits buffer."""
    wordbytes = bitwidth // 8
    nbits, commonvalue, payload = _parse_header(data, bitwidth)
    if npoints < 0:
        raise PointCloudError("negative point count")
    if nbits == 0:
        return [commonvalue] * npoints
    total = nbits * npoints
    nwords = -(-total // bitwidth)
    if len(payload) < nwords * wordbytes:
        raise PointCloudError("sigbits buffer too short for point count")
    if nwords == 0:
        return []
    stream = int.from_bytes(_swap_words(payload[:nwords * wordbytes], wordbytes), "big")
    bits = format(stream, f"0{nwords * bitwidth}b")
    return [
        commonvalue | int(bits[start:start + nbits], 2)
        for start in range(0, total, nbits)
    ]


def sigbits_value_at(data, bitwidth: int, n: int) -> int:
    """Return the ``n``-th (0-based) word of a sigbits buffer without decoding it all."""
    wordbytes = bitwidth // 8
    nbits, commonvalue, payload = _parse_header(data, bitwidth)
    if n < 0:
        raise PointCloudError(f"index {n} out of bound")
    if nbits == 0:
        return commonvalue
    bitoffset = n * nbits
    first = bitoffset // bitwidth
    within = bitoffset % bitwidth
    count = 1 if within + nbits <= bitwidth else 2
    end = (first + count) * wordbytes
    if end > len(payload):
        raise PointCloudError(f"index {n} out of bound")
    combined = int.from_bytes(
        _swap_words(payload[first * wordbytes:end], wordbytes), "big"
    )
    span = count * bitwidth
    mask = (1 << nbits) - 1
    return commonvalue | ((combined >> (span - within - nbits)) & mask)


def sigbits_flip_endian(data, bitwidth: int) -> bytes:
    """Byte-swap the two header words of a sigbits buffer."""
    wordbytes = _check_width(bitwidth)
    data = bytes(data)
    if wordbytes == 1:
        return data
    if len(data) < 2 * wordbytes:
        raise PointCloudError("sigbits buffer too short for its header")
    return (
        data[:wordbytes][::-1]
        + data[wordbytes:2 * wordbytes][::-1]
        + data[2 * wordbytes:]
    )