#!/usr/bin/env python3
"""
Playback history state machine.

Owns the play history, the manual selection and the pending queue, and
decides which track plays next when none is requested explicitly.
"""

import logging
from typing import Callable, Optional

from playnext.core.config import get_tracklist_defaults
from playnext.core.metadata.metadata_index import MetadataIndex
from playnext.core.models import MusicSelect, PlayAction, Tracklist

logger = logging.getLogger(__name__)

Dispatch = Callable[[PlayAction], None]


def empty_tracklist(max_size: Optional[int] = None) -> Tracklist:
    """A tracklist with nothing played."""
    if max_size is None:
        max_size = get_tracklist_defaults()["max_history"]
    return Tracklist(max_size=max_size)


def next_in_selection(
    music_select: Optional[MusicSelect], current: Optional[int]
) -> Optional[int]:
    """
    Track following ``current`` in the ordered list, wrapping around.

    Falls back to the first candidate when nothing is playing or the current
    track is not in the list.
    """
    if music_select is None or not music_select.ordered_list:
        return None

    candidates = music_select.ordered_list
    if current is not None and current in candidates:
        position = candidates.index(current)
        return candidates[(position + 1) % len(candidates)]
    return candidates[0]


class TracklistStateMachine:
    """
    Apply play/previous/reset transitions to a Tracklist.

    Every transition builds a new Tracklist instead of mutating the current
    one, so snapshots handed to the UI or used as cache keys stay valid.
    """

    def __init__(
        self,
        index: MetadataIndex,
        dispatch: Dispatch,
        tracklist: Optional[Tracklist] = None,
        max_size: Optional[int] = None,
    ):
        """
        Initialize the state machine.

        Args:
            index: Metadata snapshot used to attach tags to play actions
            dispatch: Receives play side effects for the audio transport
            tracklist: Initial state (empty if None)
            max_size: History cap used when creating an empty tracklist
        """
        self.index = index
        self.dispatch = dispatch
        self.tracklist = tracklist or empty_tracklist(max_size)

    @property
    def current(self) -> Optional[int]:
        return self.tracklist.current

    @property
    def is_idle(self) -> bool:
        return not self.tracklist.history

    def update_index(self, index: MetadataIndex) -> None:
        self.index = index

    def play(
        self,
        music_id: Optional[int] = None,
        seek: Optional[float] = None,
        music_select: Optional[MusicSelect] = None,
    ) -> Optional[PlayAction]:
        """
        Play a track, resolving one automatically when no id is given.

        Resolution order: head of the queue, then the track after the current
        one in ``music_select``.

        Args:
            music_id: Explicit track to play
            seek: Offset in seconds passed to the transport
            music_select: Current candidate list for automatic advancement

        Returns:
            The dispatched action, or None if no track could be resolved
        """
        tracklist = self.tracklist.copy()

        if music_id is None:
            if tracklist.queue:
                music_id = tracklist.queue.pop(0)
                logger.info(f"⏭️  Playing {music_id} from queue ({len(tracklist.queue)} left)")
            else:
                music_id = next_in_selection(music_select, tracklist.current)

        if music_id is None:
            logger.debug("No track to play next")
            return None

        if music_id != tracklist.current:
            tracklist.history.append(music_id)
            overflow = len(tracklist.history) - tracklist.max_size
            if overflow > 0:
                tracklist.history = tracklist.history[overflow:]

        self.tracklist = tracklist

        action = PlayAction(id=music_id, tags=self.index.get_tags(music_id), seek=seek)
        self.dispatch(action)
        return action

    def select(
        self,
        music_id: int,
        seek: Optional[float] = None,
    ) -> Optional[PlayAction]:
        """Play a track chosen explicitly by the user and remember the choice."""
        tracklist = self.tracklist.copy()
        tracklist.manual_select = music_id
        self.tracklist = tracklist
        return self.play(music_id, seek=seek)

    def previous(self) -> Optional[PlayAction]:
        """
        Go back one track.

        Drops the current track from history and replays the one before it
        from the start. Nothing is dispatched once history is empty.
        """
        if not self.tracklist.history:
            return None

        tracklist = self.tracklist.copy()
        tracklist.history.pop()
        self.tracklist = tracklist

        last = tracklist.current
        if last is None:
            return None

        action = PlayAction(id=last, tags=self.index.get_tags(last))
        self.dispatch(action)
        return action

    def reset(self) -> None:
        """Return to the idle state."""
        self.tracklist = Tracklist(
            max_size=self.tracklist.max_size, version=self.tracklist.version + 1
        )
        logger.info("🔄 Tracklist reset")

    def enqueue(self, music_id: int) -> None:
        """Add a track to the end of the queue."""
        tracklist = self.tracklist.copy()
        tracklist.queue.append(music_id)
        self.tracklist = tracklist
