"""
Metadata indexing for playnext.

This package builds the normalized in-memory index from raw snapshots and
applies incremental tag patches.
"""

from .metadata_index import MetadataIndex, build_index, empty_metadata
from .patches import apply_patches, patch_from_dict, patch_to_dict

__all__ = [
    "MetadataIndex",
    "apply_patches",
    "build_index",
    "empty_metadata",
    "patch_from_dict",
    "patch_to_dict",
]
