#!/usr/bin/env python3
"""
In-memory metadata index built from a raw snapshot and an optional patch log.

The index is an immutable value: every snapshot or patch batch produces a new
MetadataIndex with a fresh version number, which downstream caches use to
decide when to recompute.
"""

import itertools
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from playnext.core.metadata.patches import apply_patches
from playnext.core.models import Patch, RawMetadata, SearchEntry, Tag, User, Vector

EMBEDDING_KEY = "embedding"
TITLE_KEY = "title"
ARTIST_KEY = "artist"

_versions = itertools.count(1)


class MetadataIndex:
    """Normalized lookup structures over one metadata snapshot."""

    def __init__(
        self,
        musics: Sequence[int],
        tags: Sequence[Tag],
        users: Sequence[User],
        settings: Sequence[Tuple[str, str]] = (),
    ):
        """
        Build the index from already patched tags.

        Args:
            musics: Track ids in insertion order
            tags: Final tag sequence (last tag per (music_id, key) wins)
            users: Known users
            settings: Key/value settings pairs from the snapshot
        """
        self.version = next(_versions)
        self.musics: List[int] = list(musics)
        self.tags: List[Tag] = list(tags)
        self.users: List[User] = list(users)
        self.settings_list: List[Tuple[str, str]] = [(k, v) for k, v in settings]
        self.settings: Dict[str, str] = dict(self.settings_list)

        self.tags_by_music: Dict[int, Dict[str, Tag]] = {m: {} for m in self.musics}
        self.embeddings: Dict[int, Vector] = {}

        for tag in self.tags:
            music_tags = self.tags_by_music.get(tag.music_id)
            if music_tags is not None:
                music_tags[tag.key] = tag
            if tag.key == EMBEDDING_KEY and tag.vector is not None:
                try:
                    self.embeddings[tag.music_id] = Vector.from_components(tag.vector)
                except (TypeError, ValueError) as e:
                    logger.warning(
                        f"⚠️  Ignoring malformed embedding for track {tag.music_id}: {e}"
                    )
                    self.embeddings.pop(tag.music_id, None)

        self.search_document: List[SearchEntry] = [
            SearchEntry(
                id=music_id,
                title=self.tag_text(music_id, TITLE_KEY),
                artist=self.tag_text(music_id, ARTIST_KEY),
            )
            for music_id in self.musics
        ]

    @classmethod
    def build(
        cls, raw: RawMetadata, previous: Optional["MetadataIndex"] = None
    ) -> "MetadataIndex":
        """Build from a raw snapshot, patching against the previous index's tags."""
        return build_index(
            raw,
            patches=raw.patches,
            previous_tags=previous.tags if previous is not None else None,
        )

    def get_tags(self, music_id: Optional[int]) -> Optional[Dict[str, Tag]]:
        """Tags of a track, or None if the track is unknown."""
        if music_id is None:
            return None
        return self.tags_by_music.get(music_id)

    def get_tag(self, music_id: int, key: str) -> Optional[Tag]:
        tags = self.tags_by_music.get(music_id)
        if tags is None:
            return None
        return tags.get(key)

    def tag_text(self, music_id: int, key: str) -> str:
        """Text value of a tag, or an empty string when absent."""
        tag = self.get_tag(music_id, key)
        if tag is None or tag.text is None:
            return ""
        return tag.text

    def embedding(self, music_id: Optional[int]) -> Optional[Vector]:
        if music_id is None:
            return None
        return self.embeddings.get(music_id)

    def setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.settings.get(key, default)

    def first_user(self) -> Optional[int]:
        """Id of the first known user."""
        return self.users[0].id if self.users else None

    def __len__(self) -> int:
        return len(self.musics)

    def __contains__(self, music_id: object) -> bool:
        return music_id in self.tags_by_music

    def __repr__(self) -> str:
        return (
            f"MetadataIndex(version={self.version}, musics={len(self.musics)}, "
            f"tags={len(self.tags)}, embeddings={len(self.embeddings)})"
        )


def build_index(
    raw: RawMetadata,
    patches: Optional[Iterable[Patch]] = None,
    previous_tags: Optional[Sequence[Tag]] = None,
) -> MetadataIndex:
    """
    Build a MetadataIndex from a raw snapshot.

    Args:
        raw: Raw snapshot; ``raw.tags`` of None means "tags unchanged"
        patches: Ordered patches applied to the base tag list
        previous_tags: Tags of the previously known snapshot

    Returns:
        A new MetadataIndex
    """
    if raw.tags is not None:
        base_tags: Sequence[Tag] = raw.tags
    elif previous_tags is not None:
        base_tags = previous_tags
    else:
        base_tags = []

    patch_list = list(patches or [])
    tags = apply_patches(base_tags, patch_list)

    index = MetadataIndex(raw.musics, tags, raw.users, raw.settings)
    logger.info(
        f"📚 Built metadata index v{index.version}: {len(index.musics)} tracks, "
        f"{len(index.tags)} tags ({len(patch_list)} patches), "
        f"{len(index.embeddings)} embeddings"
    )
    return index


def empty_metadata() -> MetadataIndex:
    """An index with no tracks."""
    return MetadataIndex([], [], [])
