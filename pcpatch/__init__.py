"""Point cloud schemas, points, uncompressed patches and compressed per-dimension byte arrays."""

__version__ = "0.1.0"

__all__ = [
    "schema",
    "sigbits",
    "bytes",
    "bitmap",
    "bytesops",
    "point",
    "uncompressed",
    "dimstats",
]