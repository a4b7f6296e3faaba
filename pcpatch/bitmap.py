"""Per-point selection bitmaps used when filtering patches."""

from __future__ import annotations

import enum
from typing import Iterator

from pcpatch.schema import PointCloudError


class FilterType(enum.IntEnum):
    """Comparison applied to each value when building a bitmap."""

    GT = 0
    LT = 1
    EQUAL = 2
    BETWEEN = 3


_PREDICATES = {
    FilterType.GT: lambda d, val1, val2: d > val1,
    FilterType.LT: lambda d, val1, val2: d < val1,
    FilterType.EQUAL: lambda d, val1, val2: d == val1,
    FilterType.BETWEEN: lambda d, val1, val2: val1 < d < val2,
}


class Bitmap:
    """One flag per point, keeping count of how many are set."""

    def __init__(self, npoints: int) -> None:
        if npoints < 0:
            raise PointCloudError("negative point count")
        self.npoints = npoints
        self._flags = bytearray(npoints)
        self._nset = 0

    def _check(self, i: int) -> None:
        if not 0 <= i < self.npoints:
            raise IndexError(f"bitmap index {i} out of range")

    def set(self, i: int, value) -> None:
        """Set or clear the flag of point ``i``."""
        self._check(i)
        new = 1 if value else 0
        self._nset += new - self._flags[i]
        self._flags[i] = new

    def get(self, i: int) -> bool:
        self._check(i)
        return bool(self._flags[i])

    @property
    def nset(self) -> int:
        """Number of points whose flag is set."""
        return self._nset

    def apply(self, filter_type, i: int, d: float, val1: float, val2: float) -> None:
        """Set the flag of point ``i`` to whether ``d`` passes the filter."""
        try:
            predicate = _PREDICATES[FilterType(filter_type)]
        except ValueError:
            raise PointCloudError(f"unknown filter type {filter_type!r}") from None
        self.set(i, predicate(d, val1, val2))

    def __len__(self) -> int:
        return self.npoints

    def __iter__(self) -> Iterator[bool]:
        return (bool(flag) for flag in self._flags)