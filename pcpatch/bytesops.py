"""Statistics, filtering and random access over per-dimension byte arrays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from pcpatch.bitmap import Bitmap
from pcpatch.bytes import PointBytes
from pcpatch.schema import Compression, PointCloudError, read_value
from pcpatch.sigbits import sigbits_value_at

FLT_MAX = 3.4028234663852886e38


@dataclass
class DoubleStat:
    """Running minimum, maximum and sum of raw values."""

    min: float = FLT_MAX
    max: float = -FLT_MAX
    sum: float = 0.0

    def update(self, d: float) -> None:
        """Fold one value into the statistics."""
        if d < self.min:
            self.min = d
        if d > self.max:
            self.max = d
        self.sum += d


def _rle_runs(pcb: PointBytes) -> Iterator[Tuple[int, bytes]]:
    """Yield (count, raw value bytes) for each entry of a run-length array."""
    size = pcb.element_size
    step = size + 1
    data = pcb.data
    for start in range(0, len(data), step):
        entry = data[start:start + step]
        if len(entry) < step:
            raise PointCloudError("run-length buffer is truncated")
        yield entry[0], entry[1:]


def _raw_chunks(pcb: PointBytes) -> Iterator[bytes]:
    size = pcb.element_size
    data = pcb.data
    for start in range(0, size * pcb.npoints, size):
        yield data[start:start + size]


def minmax(pcb: PointBytes) -> Tuple[float, float, float]:
    """Return (min, max, average) of the raw values, unscaled."""
    if pcb.npoints == 0:
        raise PointCloudError("cannot compute statistics of no points")
    mn, mx, total = FLT_MAX, -FLT_MAX, 0.0
    if pcb.compression is Compression.RLE:
        for count, raw in _rle_runs(pcb):
            d = read_value(raw, 0, pcb.interpretation)
            mn = min(mn, d)
            mx = max(mx, d)
            total += count * d
    else:
        for d in pcb.values():
            mn = min(mn, d)
            mx = max(mx, d)
            total += d
    return mn, mx, total / pcb.npoints


def _filter_uncompressed(pcb: PointBytes, bitmap: Bitmap, stats: Optional[DoubleStat]) -> PointBytes:
    kept = bytearray()
    count = 0
    for i, chunk in enumerate(_raw_chunks(pcb)):
        if bitmap.get(i):
            if stats is not None:
                stats.update(read_value(chunk, 0, pcb.interpretation))
            kept += chunk
            count += 1
    return PointBytes(pcb.interpretation, count, kept, Compression.NONE)


def _filter_rle(pcb: PointBytes, bitmap: Bitmap, stats: Optional[DoubleStat]) -> PointBytes:
    out = bytearray()
    npoints = 0
    position = 0
    for count, raw in _rle_runs(pcb):
        fcount = sum(1 for j in range(position, position + count) if bitmap.get(j))
        if fcount:
            out.append(fcount)
            out += raw
            npoints += fcount
            if stats is not None:
                # One contribution per kept entry, not per kept point.
                stats.update(read_value(raw, 0, pcb.interpretation))
        position += count
    return PointBytes(pcb.interpretation, npoints, out, Compression.RLE)


def filter_bytes(pcb: PointBytes, bitmap: Bitmap, stats: Optional[DoubleStat] = None) -> PointBytes:
    """Keep the values whose bitmap flag is set, gathering raw statistics on the way.

    Run-length and uncompressed arrays keep their encoding; significant-bit and
    deflated arrays are decoded, filtered and encoded again. An empty significant-bit
    result is returned uncompressed, since it has no values to describe.
    """
    if pcb.compression is Compression.NONE:
        return _filter_uncompressed(pcb, bitmap, stats)
    if pcb.compression is Compression.RLE:
        return _filter_rle(pcb, bitmap, stats)
    filtered = _filter_uncompressed(pcb.decode(), bitmap, stats)
    if filtered.npoints == 0 and pcb.compression is Compression.SIGBITS:
        return filtered
    return filtered.encode(pcb.compression)


def bytes_bitmap(pcb: PointBytes, filter_type, val1: float, val2: float) -> Bitmap:
    """Build a bitmap flagging the raw values that pass the filter."""
    bitmap = Bitmap(pcb.npoints)
    if pcb.compression is Compression.RLE:
        position = 0
        for count, raw in _rle_runs(pcb):
            d = read_value(raw, 0, pcb.interpretation)
            for i in range(position, position + count):
                bitmap.apply(filter_type, i, d, val1, val2)
            position += count
        return bitmap
    for i, d in enumerate(pcb.values()):
        bitmap.apply(filter_type, i, d, val1, val2)
    return bitmap


def value_at(pcb: PointBytes, n: int) -> float:
    """Return the raw ``n``-th (0-based) value without applying scale or offset."""
    if not 0 <= n < pcb.npoints:
        raise PointCloudError(f"index {n} out of bound")
    size = pcb.element_size
    if pcb.compression is Compression.RLE:
        remaining = n
        for count, raw in _rle_runs(pcb):
            if remaining < count:
                return read_value(raw, 0, pcb.interpretation)
            remaining -= count
        raise PointCloudError(f"index {n} out of bound")
    if pcb.compression is Compression.SIGBITS:
        word = sigbits_value_at(pcb.data, size * 8, n)
        return read_value(word.to_bytes(size, "little"), 0, pcb.interpretation)
    src = pcb.decode()
    return read_value(src.data, n * size, pcb.interpretation)