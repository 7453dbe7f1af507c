#!/usr/bin/env python3
"""
playnext - Music Library Selection Engine

A Python package that orders, filters and recommends tracks from a tagged
music library using embedding similarity, and tracks playback history to
decide what plays next.
"""

__version__ = "1.0.0"

from .core.metadata.metadata_index import MetadataIndex, build_index
from .core.selection.selection_pipeline import SelectionPipeline
from .core.session import LibrarySession
from .core.tracklist.tracklist_machine import TracklistStateMachine

__all__ = [
    "LibrarySession",
    "MetadataIndex",
    "SelectionPipeline",
    "TracklistStateMachine",
    "build_index",
]
