"""Running per-dimension statistics used to choose a compression for each dimension."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from pcpatch.schema import Compression, Interpretation, PointCloudError, Schema


@dataclass
class DimStat:
    """Accumulated run and common-bit counts of one dimension."""

    total_runs: int = 0
    total_commonbits: int = 0
    recommended_compression: Compression = Compression.NONE


@dataclass
class DimStats:
    """Accumulated statistics over the patches seen so far."""

    ndims: int
    total_points: int = 0
    total_patches: int = 0
    stats: List[DimStat] = field(default_factory=list)

    @classmethod
    def for_schema(cls, schema: Schema) -> "DimStats":
        """Fresh statistics with one entry per dimension of ``schema``."""
        return cls(ndims=schema.ndims, stats=[DimStat() for _ in range(schema.ndims)])

    def update(self, patch) -> None:
        """Fold in a dimensional patch and refresh each recommended compression."""
        if len(patch.bytes) != self.ndims:
            raise PointCloudError("patch dimension count does not match statistics")
        self.total_points += patch.npoints
        self.total_patches += 1

        for stat, pcb in zip(self.stats, patch.bytes):
            stat.total_runs += pcb.run_count()
            stat.total_commonbits += pcb.sigbits_count()

        for stat, dim in zip(self.stats, patch.schema.dims):
            size = dim.size
            raw_size = self.total_points * size
            rle_size = stat.total_runs * (size + 1)
            avg_commonbits = stat.total_commonbits // self.total_patches
            avg_uniquebits = 8 * size - avg_commonbits
            sigbits_size = (
                self.total_patches * 2 * size + self.total_points * avg_uniquebits / 8
            )
            stat.recommended_compression = Compression.ZLIB
            if Interpretation(dim.interpretation) is not Interpretation.DOUBLE:
                if raw_size / sigbits_size > 1.6:
                    stat.recommended_compression = Compression.SIGBITS
                if raw_size / rle_size > 4.0:
                    stat.recommended_compression = Compression.RLE

    def to_string(self) -> str:
        """JSON text of the totals and per-dimension entries."""
        dims = ",".join(
            '{"total_runs":%d,"total_commonbits":%d,"recommended_compression":%d}'
            % (stat.total_runs, stat.total_commonbits, int(stat.recommended_compression))
            for stat in self.stats
        )
        return '{"ndims":%d,"total_points":%d,"total_patches":%d,"dims":[%s]}' % (
            self.ndims,
            self.total_points,
            self.total_patches,
            dims,
        )