"""Uncompressed patches: point records stored one after another."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from pcpatch.point import Point
from pcpatch.schema import Bounds, PatchType, PointCloudError, Schema

_log = logging.getLogger(__name__)

_NDR = 1
_HEADER_SIZE = 1 + 4 + 4 + 4


def _flip_records(data: bytes, schema: Schema, npoints: int) -> bytearray:
    """Byte-swap every dimension of ``npoints`` consecutive point records."""
    out = bytearray(data)
    for record in range(0, schema.size * npoints, schema.size):
        for dim in schema.dims:
            start = record + dim.byteoffset
            end = start + dim.size
            out[start:end] = out[start:end][::-1]
    return out


@dataclass
class PatchStats:
    """Per-dimension minimum, maximum and average of a patch, held as points."""

    min: Point
    max: Point
    avg: Point

    @classmethod
    def from_points(cls, schema: Schema, points: Iterable[Point]) -> "PatchStats":
        """Gather the statistics of a non-empty set of points."""
        rows = [point.to_values() for point in points]
        if not rows:
            raise PointCloudError("cannot compute statistics of no points")
        columns = list(zip(*rows))
        count = len(rows)
        return cls(
            min=Point.from_values(schema, [min(column) for column in columns]),
            max=Point.from_values(schema, [max(column) for column in columns]),
            avg=Point.from_values(schema, [sum(column) / count for column in columns]),
        )

    def copy(self) -> "PatchStats":
        """An independent copy of these statistics."""
        return PatchStats(
            min=Point(self.min.schema, self.min.data),
            max=Point(self.max.schema, self.max.data),
            avg=Point(self.avg.schema, self.avg.data),
        )


class UncompressedPatch:
    """A patch whose points are stored as consecutive raw records."""

    type = PatchType.NONE

    def __init__(
        self,
        schema: Schema,
        data: Optional[bytes] = None,
        npoints: int = 0,
        maxpoints: Optional[int] = None,
        bounds: Optional[Bounds] = None,
        stats: Optional[PatchStats] = None,
        readonly: bool = False,
    ) -> None:
        if schema is None:
            raise PointCloudError("null schema passed in")
        if not schema.size:
            raise PointCloudError("invalid size calculation")
        self.schema = schema
        self.npoints = npoints
        self.maxpoints = npoints if maxpoints is None else maxpoints
        self.data = bytearray(data) if data is not None else bytearray(schema.size * self.maxpoints)
        self.bounds = bounds if bounds is not None else Bounds()
        self.stats = stats
        self.readonly = readonly

    @classmethod
    def make(cls, schema: Schema, maxpoints: int) -> "UncompressedPatch":
        """An empty patch with room for ``maxpoints`` points."""
        if maxpoints < 0:
            raise PointCloudError("negative point capacity")
        return cls(schema, npoints=0, maxpoints=maxpoints)

    @classmethod
    def from_points(cls, points: Iterable[Optional[Point]]) -> "UncompressedPatch":
        """Build a patch from points sharing one schema, with extent and stats."""
        points = list(points)
        if not points:
            raise PointCloudError("zero size point list passed in")
        first = points[0]
        if first is None or first.schema is None:
            raise PointCloudError("null schema encountered")
        schema = first.schema
        if not schema.size:
            raise PointCloudError("invalid point size")
        patch = cls.make(schema, len(points))
        size = schema.size
        for point in points:
            if point is None:
                _log.warning("encountered null point")
                continue
            if point.schema.pcid != schema.pcid:
                raise PointCloudError("points do not share a schema")
            start = patch.npoints * size
            patch.data[start:start + size] = point.data
            patch.npoints += 1
        patch.compute_extent()
        patch.compute_stats()
        return patch

    @classmethod
    def from_wkb(cls, schema: Schema, wkb: bytes) -> "UncompressedPatch":
        """Read a patch from its binary form: endian, pcid, compression, npoints, records."""
        wkb = bytes(wkb)
        if len(wkb) < _HEADER_SIZE:
            raise PointCloudError("wkb too short for patch header")
        order = "<" if wkb[0] == _NDR else ">"
        _pcid, compression, npoints = struct.unpack_from(order + "III", wkb, 1)
        if compression != PatchType.NONE:
            raise PointCloudError("call with wkb that is not uncompressed")
        body = wkb[_HEADER_SIZE:]
        if len(body) != schema.size * npoints:
            raise PointCloudError("wkb size and expected data size do not match")
        if order == ">":
            body = _flip_records(body, schema, npoints)
        return cls(schema, body, npoints=npoints, maxpoints=npoints)

    @property
    def datasize(self) -> int:
        return len(self.data)

    def to_wkb(self) -> bytes:
        """Binary form in little-endian order."""
        header = struct.pack("<BIII", _NDR, self.schema.pcid, int(self.type), self.npoints)
        return header + bytes(self.data[:self.schema.size * self.npoints])

    def to_string(self) -> str:
        """JSON-like text listing every point's values."""
        rows = ",".join(
            "[" + ",".join("%g" % value for value in point.to_values()) + "]"
            for point in self
        )
        return '{"pcid":%d,"pts":[%s]}' % (self.schema.pcid, rows)

    def compute_extent(self) -> None:
        """Recalculate the x/y bounds from the points."""
        bounds = Bounds()
        for point in self:
            bounds.include(point.x, point.y)
        self.bounds = bounds

    def compute_stats(self) -> None:
        """Recalculate per-dimension statistics; an empty patch has none."""
        self.stats = PatchStats.from_points(self.schema, self) if self.npoints else None

    def add_point(self, point: Point) -> None:
        """Append a point, growing storage as needed and widening the bounds."""
        if point is None:
            raise PointCloudError("null point or patch argument")
        if self.schema.pcid != point.schema.pcid:
            raise PointCloudError(
                f"pcids of point ({point.schema.pcid}) and patch ({self.schema.pcid}) not equal"
            )
        if self.readonly:
            raise PointCloudError("cannot add point to readonly patch")
        size = self.schema.size
        if self.npoints >= self.maxpoints:
            self.maxpoints = max(1, self.maxpoints * 2)
            self.data.extend(bytes(self.maxpoints * size - len(self.data)))
        start = self.npoints * size
        self.data[start:start + size] = point.data
        self.npoints += 1
        self.bounds.include(point.x, point.y)

    def point_at(self, n: int) -> Point:
        """The ``n``-th (0-based) point."""
        if not 0 <= n < self.npoints:
            raise PointCloudError(f"point index {n} out of range")
        size = self.schema.size
        return Point(self.schema, self.data[n * size:(n + 1) * size])

    def points(self) -> List[Point]:
        """Every point of the patch, in order."""
        return list(self)

    def __iter__(self) -> Iterator[Point]:
        return (self.point_at(n) for n in range(self.npoints))

    def __len__(self) -> int:
        return self.npoints