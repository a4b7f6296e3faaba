"""A single point: one record of bytes laid out by a schema."""

from __future__ import annotations

import struct
from typing import List, Optional, Sequence

from pcpatch.schema import Dimension, PointCloudError, Schema

_NDR = 1
_WKB_POINT = 1
_SRID_FLAG = 0x20000000
_Z_FLAG = 0x80000000
_WKB_HEADER = 1 + 4


def _flip_record(data: bytes, schema: Schema) -> bytearray:
    """Byte-swap every dimension of one point record."""
    out = bytearray(data)
    for dim in schema.dims:
        start, end = dim.byteoffset, dim.byteoffset + dim.size
        out[start:end] = out[start:end][::-1]
    return out


class Point:
    """A point record with scaled access to its dimensions."""

    def __init__(self, schema: Schema, data: Optional[bytes] = None) -> None:
        if schema is None:
            raise PointCloudError("null schema passed to point")
        if not schema.size:
            raise PointCloudError("invalid schema size for point")
        if data is None:
            buf = bytearray(schema.size)
        else:
            buf = bytearray(data)
            if len(buf) != schema.size:
                raise PointCloudError("point data size does not match schema size")
        self.schema = schema
        self.data = buf

    @classmethod
    def from_values(cls, schema: Schema, values: Sequence[float]) -> "Point":
        """Build a point from one real-world value per dimension."""
        values = list(values)
        if schema is None:
            raise PointCloudError("null schema passed to point")
        if len(values) != schema.ndims:
            raise PointCloudError("number of elements in schema and array differ")
        point = cls(schema)
        for index, value in enumerate(values):
            point.set_by_index(index, value)
        return point

    @classmethod
    def from_wkb(cls, schema: Schema, wkb: bytes) -> "Point":
        """Read a point from its binary form: endian flag, pcid, record."""
        wkb = bytes(wkb)
        if not wkb:
            raise PointCloudError("zero length wkb")
        if len(wkb) - _WKB_HEADER != schema.size:
            raise PointCloudError("wkb size inconsistent with schema size")
        body = wkb[_WKB_HEADER:]
        if wkb[0] != _NDR:
            body = _flip_record(body, schema)
        return cls(schema, body)

    def get_double(self, dim: Dimension) -> float:
        return dim.read(self.data)

    def get_by_index(self, index: int) -> float:
        return self.get_double(self.schema.dimension(index))

    def get_by_name(self, name: str) -> float:
        dim = self.schema.dimension_by_name(name)
        if dim is None:
            raise PointCloudError(f"no dimension named {name!r}")
        return self.get_double(dim)

    def set_double(self, dim: Dimension, value: float) -> None:
        dim.write(self.data, 0, value)

    def set_by_index(self, index: int, value: float) -> None:
        self.set_double(self.schema.dimension(index), value)

    def set_by_name(self, name: str, value: float) -> None:
        dim = self.schema.dimension_by_name(name)
        if dim is None:
            raise PointCloudError(f"no dimension named {name!r}")
        self.set_double(dim, value)

    @property
    def x(self) -> float:
        if self.schema.x_position is None:
            raise PointCloudError("schema has no X dimension")
        return self.get_by_index(self.schema.x_position)

    @property
    def y(self) -> float:
        if self.schema.y_position is None:
            raise PointCloudError("schema has no Y dimension")
        return self.get_by_index(self.schema.y_position)

    def to_values(self) -> List[float]:
        """Every dimension's real-world value, in schema order."""
        return [self.get_double(dim) for dim in self.schema.dims]

    def to_string(self) -> str:
        body = ",".join("%g" % value for value in self.to_values())
        return '{"pcid":%d,"pt":[%s]}' % (self.schema.pcid, body)

    def to_wkb(self) -> bytes:
        """Binary form: endian flag, little-endian pcid, then the record."""
        return bytes((_NDR,)) + struct.pack("<I", self.schema.pcid) + bytes(self.data)

    def to_geometry_wkb(self) -> bytes:
        """A WKB point geometry, with SRID and Z where the schema has them."""
        wkbtype = _WKB_POINT
        srid = self.schema.srid
        if srid > 0:
            wkbtype |= _SRID_FLAG
        zdim = self.schema.dimension_by_name("Z")
        if zdim is not None:
            wkbtype |= _Z_FLAG
        out = struct.pack("<BI", _NDR, wkbtype)
        if srid > 0:
            out += struct.pack("<I", srid)
        out += struct.pack("<dd", self.x, self.y)
        if zdim is not None:
            out += struct.pack("<d", self.get_double(zdim))
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.schema.pcid == other.schema.pcid and self.data == other.data

    def __repr__(self) -> str:
        return f"Point({self.to_string()})"