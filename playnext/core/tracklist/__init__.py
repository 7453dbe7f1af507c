"""
Play history and queue management for playnext.
"""

from .tracklist_machine import TracklistStateMachine, empty_tracklist, next_in_selection

__all__ = ["TracklistStateMachine", "empty_tracklist", "next_in_selection"]
