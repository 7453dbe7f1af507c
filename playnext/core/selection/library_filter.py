"""
Library membership filtering for selection results.
"""

import logging
from typing import List, Optional, Sequence

from playnext.core.metadata.metadata_index import MetadataIndex
from playnext.core.models import Filters

logger = logging.getLogger(__name__)

USER_LIBRARY_PREFIX = "user_library:"


def user_library_key(user_id: int) -> str:
    return f"{USER_LIBRARY_PREFIX}{user_id}"


class LibraryFilter:
    """Keep only the tracks that belong to a user's library."""

    def __init__(self, index: MetadataIndex) -> None:
        self.index = index

    def in_library(self, music_id: int, user_id: int) -> bool:
        tags = self.index.get_tags(music_id)
        return tags is not None and user_library_key(user_id) in tags

    def filter_by_user(
        self, music_ids: Sequence[int], user_id: Optional[int]
    ) -> List[int]:
        """
        Return a new list with the tracks in the user's library.

        Relative order is preserved; no user means no filtering.
        """
        if user_id is None:
            return list(music_ids)

        kept = [m for m in music_ids if self.in_library(m, user_id)]
        logger.debug(
            f"👤 Library filter for user {user_id}: {len(music_ids)} → {len(kept)} tracks"
        )
        return kept

    def apply(self, filters: Filters, music_ids: Sequence[int]) -> List[int]:
        return self.filter_by_user(music_ids, filters.user)
