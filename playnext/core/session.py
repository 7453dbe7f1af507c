#!/usr/bin/env python3
"""
Library session: keeps the current metadata snapshot, search form and
tracklist together and recomputes the selection when any of them changes.
"""

import logging
from typing import Callable, List, Optional

from playnext.core.metadata.metadata_index import MetadataIndex, empty_metadata
from playnext.core.models import MusicSelect, PlayAction, RawMetadata, SearchForm
from playnext.core.selection.selection_pipeline import SelectionPipeline, new_search_form
from playnext.core.tracklist.tracklist_machine import TracklistStateMachine

logger = logging.getLogger(__name__)


class LibrarySession:
    """Orchestrate index rebuilds, selection and playback transitions."""

    def __init__(
        self,
        index: Optional[MetadataIndex] = None,
        form: Optional[SearchForm] = None,
        pipeline: Optional[SelectionPipeline] = None,
        dispatch: Optional[Callable[[PlayAction], None]] = None,
        max_history: Optional[int] = None,
    ):
        """
        Initialize the session.

        Args:
            index: Initial metadata snapshot (empty if None)
            form: Initial search form (defaults for the first user if None)
            pipeline: Selection pipeline (default pipeline if None)
            dispatch: Receives play actions; they are only recorded if None
            max_history: History cap for the tracklist
        """
        self.index = index if index is not None else empty_metadata()
        self.form = form or new_search_form(self.index.first_user())
        self.pipeline = pipeline or SelectionPipeline()
        self.played: List[PlayAction] = []
        self._dispatch = dispatch
        self.machine = TracklistStateMachine(
            self.index, self._on_play, max_size=max_history
        )

    def _on_play(self, action: PlayAction) -> None:
        self.played.append(action)
        if self._dispatch is not None:
            self._dispatch(action)

    def apply_snapshot(self, raw: RawMetadata) -> MetadataIndex:
        """Replace the index with one built from a new snapshot or patch batch."""
        self.index = MetadataIndex.build(raw, previous=self.index)
        self.machine.update_index(self.index)
        logger.info(f"📥 Applied snapshot, now at index v{self.index.version}")
        return self.index

    def set_search_form(self, form: SearchForm) -> None:
        self.form = form

    @property
    def music_select(self) -> MusicSelect:
        """Current selection, recomputed only when an input changed."""
        return self.pipeline.select(self.index, self.machine.tracklist, self.form)

    def play_next(self, seek: Optional[float] = None) -> Optional[PlayAction]:
        """Advance automatically: queue first, then the selection order."""
        return self.machine.play(seek=seek, music_select=self.music_select)

    def play(self, music_id: int, seek: Optional[float] = None) -> Optional[PlayAction]:
        return self.machine.play(music_id, seek=seek)

    def select(self, music_id: int) -> Optional[PlayAction]:
        """Play a track the user clicked on."""
        return self.machine.select(music_id)

    def previous(self) -> Optional[PlayAction]:
        return self.machine.previous()

    def enqueue(self, music_id: int) -> None:
        self.machine.enqueue(music_id)

    def reset(self) -> None:
        self.machine.reset()
