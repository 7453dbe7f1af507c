#!/usr/bin/env python3
"""
Data models for playnext.

This module contains the dataclasses shared by the metadata index, the
selection pipeline and the tracklist state machine. Field names of Tag,
User and the patch variants follow the sync layer's wire format.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np


@dataclass(frozen=True)
class Tag:
    """A typed key/value fact attached to one track."""

    music_id: int
    key: str

    # Exactly one of these is expected to be set
    text: Optional[str] = None
    integer: Optional[int] = None
    date: Optional[str] = None
    vector: Optional[Tuple[float, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        """Create a Tag from its wire dictionary, ignoring unknown keys."""
        vector = data.get("vector")
        return cls(
            music_id=data.get("music_id", 0),
            key=data.get("key", ""),
            text=data.get("text"),
            integer=data.get("integer"),
            date=data.get("date"),
            vector=tuple(vector) if isinstance(vector, (list, tuple)) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Tag to its wire dictionary, excluding None values."""
        data: Dict[str, Any] = {"music_id": self.music_id, "key": self.key}
        if self.text is not None:
            data["text"] = self.text
        if self.integer is not None:
            data["integer"] = self.integer
        if self.date is not None:
            data["date"] = self.date
        if self.vector is not None:
            data["vector"] = list(self.vector)
        return data


@dataclass(frozen=True)
class User:
    """A library owner."""

    id: int
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(id=data.get("id", 0), name=data.get("name", ""))


@dataclass(eq=False)
class Vector:
    """An embedding with its precomputed Euclidean norm."""

    components: np.ndarray
    magnitude: float

    @classmethod
    def from_components(cls, components: Any) -> "Vector":
        """
        Build a Vector, computing the magnitude once.

        Raises:
            ValueError: If the components are not a flat sequence of numbers
        """
        array = np.asarray(components, dtype=np.float64)
        if array.ndim != 1:
            raise ValueError(f"Embedding must be one-dimensional, got shape {array.shape}")
        return cls(components=array, magnitude=float(np.linalg.norm(array)))

    def __len__(self) -> int:
        return int(self.components.shape[0])


@dataclass(frozen=True)
class SearchEntry:
    """One row of the flattened search document."""

    id: int
    title: str = ""
    artist: str = ""


# --- Patches -----------------------------------------------------------------


@dataclass(frozen=True)
class AddPatch:
    """Append a tag."""

    tag: Tag


@dataclass(frozen=True)
class RemovePatch:
    """Delete every tag with this music id and key."""

    music_id: int
    key: str


@dataclass(frozen=True)
class UpdatePatch:
    """Replace the first tag with the same music id and key."""

    tag: Tag


Patch = Union[AddPatch, RemovePatch, UpdatePatch]


@dataclass
class RawMetadata:
    """A raw metadata snapshot as delivered by the sync layer."""

    musics: List[int] = field(default_factory=list)
    tags: Optional[List[Tag]] = None
    users: List[User] = field(default_factory=list)
    settings: List[Tuple[str, str]] = field(default_factory=list)
    patches: List[Patch] = field(default_factory=list)


# --- Search form ---------------------------------------------------------------


@dataclass(frozen=True)
class SimilaritySort:
    """Order by embedding similarity to the anchor track."""

    keep_order: bool = False


@dataclass(frozen=True)
class CreationTimeSort:
    """Order by insertion, most recent first."""


@dataclass(frozen=True)
class TagSort:
    """Order by the text value of a tag."""

    key: str


@dataclass(frozen=True)
class RandomSort:
    """Order by a seeded pseudorandom value per track."""


SortKind = Union[SimilaritySort, CreationTimeSort, TagSort, RandomSort]


@dataclass(frozen=True)
class Filters:
    user: Optional[int] = None
    search_query: str = ""


@dataclass(frozen=True)
class SortBy:
    kind: SortKind = SimilaritySort()
    descending: bool = True


@dataclass(frozen=True)
class SimilarityParams:
    temperature: float = 0.0


@dataclass(frozen=True)
class SearchForm:
    """Filters, sort strategy and similarity parameters chosen by the user."""

    filters: Filters = Filters()
    sort: SortBy = SortBy()
    similarity_params: SimilarityParams = SimilarityParams()


# --- Selection and playback ------------------------------------------------------


@dataclass(frozen=True)
class MusicSelect:
    """Ordered candidate list plus the similarity score of each scored track."""

    ordered_list: List[int] = field(default_factory=list)
    score_map: Dict[int, float] = field(default_factory=dict)


@dataclass
class Tracklist:
    """Play history, manual selection and pending queue."""

    history: List[int] = field(default_factory=list)
    max_size: int = 30
    manual_select: Optional[int] = None
    queue: List[int] = field(default_factory=list)
    version: int = 0

    @property
    def current(self) -> Optional[int]:
        """The most recently played track, if any."""
        return self.history[-1] if self.history else None

    def copy(self) -> "Tracklist":
        """Return an independent copy with the next version number."""
        return Tracklist(
            history=list(self.history),
            max_size=self.max_size,
            manual_select=self.manual_select,
            queue=list(self.queue),
            version=self.version + 1,
        )


@dataclass(frozen=True)
class PlayAction:
    """Play side effect dispatched to the audio transport."""

    id: int
    tags: Optional[Dict[str, Tag]] = None
    seek: Optional[float] = None
    action: str = "play"
