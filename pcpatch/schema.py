"""Schema, dimension and value-interpretation types for point cloud data."""

from __future__ import annotations

import enum
import math
import struct
import sys
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence


class PointCloudError(Exception):
    """Raised when point cloud data cannot be read, written or processed."""


class Interpretation(enum.IntEnum):
    """How the raw bytes of a dimension are interpreted."""

    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    INT64 = 7
    UINT64 = 8
    DOUBLE = 9
    FLOAT = 10

    @property
    def struct_format(self) -> str:
        """Little-endian struct format for one value."""
        return _FORMATS[self]

    @property
    def size(self) -> int:
        """Size of one value in bytes."""
        return struct.calcsize(self.struct_format)

    @property
    def is_integer(self) -> bool:
        return self not in (Interpretation.DOUBLE, Interpretation.FLOAT)

    @property
    def is_signed(self) -> bool:
        return self.struct_format[1].islower() or not self.is_integer


_FORMATS = {
    Interpretation.INT8: "<b",
    Interpretation.UINT8: "<B",
    Interpretation.INT16: "<h",
    Interpretation.UINT16: "<H",
    Interpretation.INT32: "<i",
    Interpretation.UINT32: "<I",
    Interpretation.INT64: "<q",
    Interpretation.UINT64: "<Q",
    Interpretation.DOUBLE: "<d",
    Interpretation.FLOAT: "<f",
}


class Compression(enum.IntEnum):
    """Per-dimension compression of a dimensional patch."""

    NONE = 0
    RLE = 1
    SIGBITS = 2
    ZLIB = 3


class PatchType(enum.IntEnum):
    """Storage layout of a patch."""

    NONE = 0
    DIMENSIONAL = 1
    GHT = 2
    LAZPERF = 3


def read_value(data, offset: int, interpretation: Interpretation) -> float:
    """Read one raw value at ``offset`` and return it as a float."""
    interpretation = Interpretation(interpretation)
    try:
        (value,) = struct.unpack_from(interpretation.struct_format, data, offset)
    except struct.error as exc:
        raise PointCloudError(f"cannot read {interpretation.name} at offset {offset}") from exc
    return float(value)


def write_value(buf, offset: int, interpretation: Interpretation, value: float) -> None:
    """Write ``value`` into ``buf`` at ``offset`` using the given interpretation."""
    interpretation = Interpretation(interpretation)
    fmt = interpretation.struct_format
    if interpretation.is_integer:
        if not math.isfinite(value):
            raise PointCloudError(f"cannot store {value} as {interpretation.name}")
        ivalue = round(value)
        bits = interpretation.size * 8
        if interpretation.is_signed:
            low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        else:
            low, high = 0, (1 << bits) - 1
        if not low <= ivalue <= high:
            raise PointCloudError(f"value {value} out of range for {interpretation.name}")
        packed = ivalue
    else:
        packed = value
    try:
        struct.pack_into(fmt, buf, offset, packed)
    except (struct.error, OverflowError) as exc:
        raise PointCloudError(f"cannot write {interpretation.name} at offset {offset}") from exc


@dataclass(frozen=True)
class Dimension:
    """One named, typed, optionally scaled dimension of a point."""

    name: str
    interpretation: Interpretation
    scale: float = 1.0
    offset: float = 0.0
    description: str = ""
    position: int = 0
    byteoffset: int = 0
    active: bool = True

    @property
    def size(self) -> int:
        return Interpretation(self.interpretation).size

    def scale_offset(self, value: float) -> float:
        """Turn a raw stored value into its real-world value."""
        if self.scale != 1:
            value *= self.scale
        if self.offset != 0:
            value += self.offset
        return value

    def unscale_unoffset(self, value: float) -> float:
        """Turn a real-world value into the raw value to be stored."""
        if self.offset != 0:
            value -= self.offset
        if self.scale != 1:
            value /= self.scale
        return value

    def read(self, data, offset: int = 0) -> float:
        """Read this dimension from a point record starting at ``offset``."""
        raw = read_value(data, offset + self.byteoffset, self.interpretation)
        return self.scale_offset(raw)

    def write(self, buf, offset: int, value: float) -> None:
        """Write this dimension into a point record starting at ``offset``."""
        write_value(buf, offset + self.byteoffset, self.interpretation, self.unscale_unoffset(value))


@dataclass
class Schema:
    """An ordered set of dimensions describing the layout of one point."""

    pcid: int
    dims: Sequence[Dimension]
    srid: int = 0
    compression: PatchType = PatchType.NONE
    x_position: Optional[int] = field(init=False, default=None)
    y_position: Optional[int] = field(init=False, default=None)

    def __post_init__(self) -> None:
        placed = []
        offset = 0
        for position, dim in enumerate(self.dims):
            placed.append(replace(dim, position=position, byteoffset=offset))
            offset += dim.size
        self.dims = tuple(placed)
        self._size = offset
        self._by_name = {}
        for dim in self.dims:
            self._by_name.setdefault(dim.name.lower(), dim)
        x_dim = self._by_name.get("x")
        y_dim = self._by_name.get("y")
        self.x_position = x_dim.position if x_dim else None
        self.y_position = y_dim.position if y_dim else None

    @property
    def size(self) -> int:
        """Size of one point record in bytes."""
        return self._size

    @property
    def ndims(self) -> int:
        return len(self.dims)

    def dimension(self, index: int) -> Dimension:
        """Return the dimension at ``index``."""
        if not 0 <= index < len(self.dims):
            raise PointCloudError(f"no dimension at index {index}")
        return self.dims[index]

    def dimension_by_name(self, name: str) -> Optional[Dimension]:
        """Return the dimension called ``name`` (case-insensitive), or None."""
        return self._by_name.get(name.lower())


_FAR = sys.float_info.max


@dataclass
class Bounds:
    """Planar x/y extent of a set of points."""

    xmin: float = _FAR
    xmax: float = -_FAR
    ymin: float = _FAR
    ymax: float = -_FAR

    @property
    def is_empty(self) -> bool:
        return self.xmin > self.xmax or self.ymin > self.ymax

    def include(self, x: float, y: float) -> None:
        """Grow the bounds to cover the point (x, y)."""
        if self.xmin > x:
            self.xmin = x
        if self.ymin > y:
            self.ymin = y
        if self.xmax < x:
            self.xmax = x
        if self.ymax < y:
            self.ymax = y

    def merge(self, other: "Bounds") -> None:
        """Grow the bounds to cover ``other``."""
        if other.xmin < self.xmin:
            self.xmin = other.xmin
        if other.xmax > self.xmax:
            self.xmax = other.xmax
        if other.ymin < self.ymin:
            self.ymin = other.ymin
        if other.ymax > self.ymax:
            self.ymax = other.ymax