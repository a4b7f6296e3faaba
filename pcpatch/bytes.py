"""Per-dimension byte arrays with run-length, significant-bit and deflate compression."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, Iterator, List

from pcpatch.schema import (
    Compression,
    Interpretation,
    PointCloudError,
    read_value,
    write_value,
)
from pcpatch.sigbits import (
    common_bits,
    sigbits_decode,
    sigbits_encode,
    sigbits_flip_endian,
)

_MAX_RUN = 255
_HEADER_SIZE = 5


def _as_compression(value) -> Compression:
    try:
        return Compression(value)
    except ValueError:
        raise PointCloudError(f"unknown compression {value!r}") from None


def _chunks(data: bytes, size: int) -> Iterator[bytes]:
    for start in range(0, len(data), size):
        yield data[start:start + size]


def _rle_entries(data: bytes, size: int) -> Iterator[tuple]:
    """Yield (count, raw value) pairs of a run-length encoded buffer."""
    step = size + 1
    for start in range(0, len(data), step):
        entry = data[start:start + step]
        if len(entry) < step:
            raise PointCloudError("run-length buffer is truncated")
        yield entry[0], entry[1:]


@dataclass(frozen=True)
class PointBytes:
    """The values of one dimension for every point of a patch, possibly compressed."""

    interpretation: Interpretation
    npoints: int
    data: bytes = b""
    compression: Compression = Compression.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "interpretation", Interpretation(self.interpretation))
        object.__setattr__(self, "compression", _as_compression(self.compression))
        object.__setattr__(self, "data", bytes(self.data))
        if self.npoints < 0:
            raise PointCloudError("negative point count")

    @classmethod
    def zeros(cls, interpretation, npoints: int) -> "PointBytes":
        """An uncompressed array of ``npoints`` zero values."""
        interpretation = Interpretation(interpretation)
        return cls(interpretation, npoints, b"\x00" * (interpretation.size * npoints))

    @classmethod
    def from_values(cls, interpretation, values: Iterable[float]) -> "PointBytes":
        """An uncompressed array holding the given raw (unscaled) values."""
        interpretation = Interpretation(interpretation)
        values = list(values)
        size = interpretation.size
        buf = bytearray(size * len(values))
        for offset, value in zip(range(0, len(buf), size), values):
            write_value(buf, offset, interpretation, value)
        return cls(interpretation, len(values), buf)

    def is_empty(self) -> bool:
        return self.npoints == 0 or not self.data

    @property
    def element_size(self) -> int:
        """Size of one uncompressed value in bytes."""
        return self.interpretation.size

    def _uncompressed(self) -> "PointBytes":
        return self if self.compression is Compression.NONE else self.decode()

    def _words(self) -> List[int]:
        size = self.element_size
        raw = self._uncompressed().data[:size * self.npoints]
        return [int.from_bytes(chunk, "little") for chunk in _chunks(raw, size)]

    def values(self) -> List[float]:
        """All raw values as floats, decoding first if needed."""
        src = self._uncompressed()
        size = self.element_size
        return [
            read_value(src.data, offset, self.interpretation)
            for offset in range(0, size * self.npoints, size)
        ]

    def run_count(self) -> int:
        """Number of runs of identical consecutive values."""
        size = self.element_size
        raw = self._uncompressed().data[:size * self.npoints]
        return max(1, sum(1 for _ in groupby(_chunks(raw, size))))

    def sigbits_count(self) -> int:
        """Number of leading bits shared by every value."""
        return common_bits(self._words(), self.element_size * 8)[1]

    def encode(self, compression) -> "PointBytes":
        """Return a copy compressed with ``compression``."""
        target = _as_compression(compression)
        src = self._uncompressed()
        if target is Compression.NONE:
            return src
        return _ENCODERS[target](src)

    def decode(self) -> "PointBytes":
        """Return an uncompressed copy."""
        if self.compression is Compression.NONE:
            return self
        return _DECODERS[self.compression](self)

    def flip_endian(self) -> "PointBytes":
        """Byte-swap the multi-byte words that the encoding stores."""
        size = self.element_size
        if self.compression is Compression.SIGBITS:
            data = sigbits_flip_endian(self.data, size * 8)
        elif self.compression is Compression.RLE and size > 1:
            data = b"".join(
                bytes((count,)) + value[::-1]
                for count, value in _rle_entries(self.data, size)
            )
        else:
            return self
        return PointBytes(self.interpretation, self.npoints, data, self.compression)

    def serialized_size(self) -> int:
        """Compression byte, four-byte length, then the data."""
        return _HEADER_SIZE + len(self.data)

    def serialize(self) -> bytes:
        return (
            bytes((int(self.compression),))
            + len(self.data).to_bytes(4, "little", signed=True)
            + self.data
        )

    @classmethod
    def deserialize(cls, buf, interpretation, npoints: int, flip_endian: bool = False) -> "PointBytes":
        """Read one serialized array from the start of ``buf``."""
        buf = bytes(buf)
        if len(buf) < _HEADER_SIZE:
            raise PointCloudError("serialized bytes too short for header")
        compression = _as_compression(buf[0])
        order = "big" if flip_endian else "little"
        size = int.from_bytes(buf[1:_HEADER_SIZE], order, signed=True)
        if size < 0 or len(buf) < _HEADER_SIZE + size:
            raise PointCloudError("serialized bytes are truncated")
        pcb = cls(interpretation, npoints, buf[_HEADER_SIZE:_HEADER_SIZE + size], compression)
        return pcb.flip_endian() if flip_endian else pcb


def rle_encode(pcb: PointBytes) -> PointBytes:
    """Run-length encode: a count byte followed by the value, runs of at most 255."""
    src = pcb._uncompressed()
    size = src.element_size
    out = bytearray()
    for value, group in groupby(_chunks(src.data[:size * src.npoints], size)):
        run = sum(1 for _ in group)
        while run > 0:
            count = min(run, _MAX_RUN)
            out.append(count)
            out += value
            run -= count
    return PointBytes(src.interpretation, src.npoints, out, Compression.RLE)


def rle_decode(pcb: PointBytes) -> PointBytes:
    """Expand a run-length encoded array."""
    if pcb.compression is not Compression.RLE:
        raise PointCloudError("bytes are not run-length encoded")
    entries = list(_rle_entries(pcb.data, pcb.element_size))
    if sum(count for count, _ in entries) != pcb.npoints:
        raise PointCloudError("run-length counts do not match point count")
    data = b"".join(value * count for count, value in entries)
    return PointBytes(pcb.interpretation, pcb.npoints, data, Compression.NONE)


def zlib_encode(pcb: PointBytes) -> PointBytes:
    """Deflate the raw values at the highest compression level."""
    src = pcb._uncompressed()
    return PointBytes(src.interpretation, src.npoints, zlib.compress(src.data, 9), Compression.ZLIB)


def zlib_decode(pcb: PointBytes) -> PointBytes:
    """Inflate a deflated array."""
    if pcb.compression is not Compression.ZLIB:
        raise PointCloudError("bytes are not zlib compressed")
    try:
        raw = zlib.decompress(pcb.data)
    except zlib.error as exc:
        raise PointCloudError(f"zlib decompression failed: {exc}") from exc
    if len(raw) != pcb.element_size * pcb.npoints:
        raise PointCloudError("inflated size does not match point count")
    return PointBytes(pcb.interpretation, pcb.npoints, raw, Compression.NONE)


def _sigbits_encode(pcb: PointBytes) -> PointBytes:
    src = pcb._uncompressed()
    data = sigbits_encode(src._words(), src.element_size * 8)
    return PointBytes(src.interpretation, src.npoints, data, Compression.SIGBITS)


def _sigbits_decode(pcb: PointBytes) -> PointBytes:
    size = pcb.element_size
    words = sigbits_decode(pcb.data, size * 8, pcb.npoints)
    data = b"".join(word.to_bytes(size, "little") for word in words)
    return PointBytes(pcb.interpretation, pcb.npoints, data, Compression.NONE)


_ENCODERS = {
    Compression.RLE: rle_encode,
    Compression.SIGBITS: _sigbits_encode,
    Compression.ZLIB: zlib_encode,
}

_DECODERS = {
    Compression.RLE: rle_decode,
    Compression.SIGBITS: _sigbits_decode,
    Compression.ZLIB: zlib_decode,
}