"""
Utilities for playnext.
"""

from .snapshot_loader import (
    SnapshotFormatError,
    load_snapshot,
    load_snapshot_with_patches,
    parse_raw_metadata,
)

__all__ = [
    "SnapshotFormatError",
    "load_snapshot",
    "load_snapshot_with_patches",
    "parse_raw_metadata",
]
