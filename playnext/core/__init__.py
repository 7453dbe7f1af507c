"""
Core functionality for playnext
"""

from .metadata.metadata_index import MetadataIndex, build_index
from .scoring.score_engine import ScoreEngine
from .search.search_index import SearchIndex
from .selection.selection_pipeline import SelectionPipeline
from .session import LibrarySession
from .tracklist.tracklist_machine import TracklistStateMachine

__all__ = [
    "LibrarySession",
    "MetadataIndex",
    "ScoreEngine",
    "SearchIndex",
    "SelectionPipeline",
    "TracklistStateMachine",
    "build_index",
]
