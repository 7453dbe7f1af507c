"""
Candidate selection for playnext.

This package combines library filtering, sort strategies, text search and
similarity scoring into one ordered candidate list.
"""

from .library_filter import LibraryFilter, user_library_key
from .selection_pipeline import (
    SelectionPipeline,
    empty_music_select,
    is_keep_order,
    is_similarity,
    new_search_form,
    sort_kind_eq,
)

__all__ = [
    "LibraryFilter",
    "SelectionPipeline",
    "empty_music_select",
    "is_keep_order",
    "is_similarity",
    "new_search_form",
    "sort_kind_eq",
    "user_library_key",
]
