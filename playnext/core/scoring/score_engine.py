#!/usr/bin/env python3
"""
Similarity scoring between track embeddings and recency malus from history.
"""

import logging
import random
from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from playnext.core.config import get_scoring_defaults
from playnext.core.metadata.metadata_index import MetadataIndex
from playnext.core.models import Tag, Vector

logger = logging.getLogger(__name__)

PLAYABLE_PREFIX = "local_"


def is_playable(tags: Optional[Mapping[str, Tag]]) -> bool:
    """A track is playable when it has at least one local rendition tag."""
    if not tags:
        return False
    return any(key.startswith(PLAYABLE_PREFIX) for key in tags)


class ScoreEngine:
    """Compute cosine similarity scores and recency malus."""

    def __init__(
        self,
        current_track_bonus: Optional[float] = None,
        recency_malus_factor: Optional[float] = None,
        jitter_scale: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the score engine.

        Args:
            current_track_bonus: Bonus given to the currently playing track
            recency_malus_factor: Factor f in the -1 / (f * d) history penalty
            jitter_scale: Upper bound of the tie-breaking jitter
            rng: Random source for the jitter (defaults to a fresh Random)
        """
        defaults = get_scoring_defaults()
        self.current_track_bonus = (
            current_track_bonus
            if current_track_bonus is not None
            else defaults["current_track_bonus"]
        )
        self.recency_malus_factor = (
            recency_malus_factor
            if recency_malus_factor is not None
            else defaults["recency_malus_factor"]
        )
        self.jitter_scale = (
            jitter_scale if jitter_scale is not None else defaults["jitter_scale"]
        )
        self.rng = rng or random.Random()

    def similarity(
        self, reference: Optional[Vector], candidate: Optional[Vector]
    ) -> Optional[float]:
        """
        Cosine similarity between two embeddings.

        Vectors of different lengths are compared on their common prefix.

        Returns:
            The similarity, or None if a vector is missing or has no magnitude
        """
        if reference is None or candidate is None:
            return None

        denominator = reference.magnitude * candidate.magnitude
        if denominator == 0:
            return None

        n = min(len(reference), len(candidate))
        dot = float(np.dot(reference.components[:n], candidate.components[:n]))
        return dot / denominator

    def recency_malus(self, history: Sequence[int]) -> Dict[int, float]:
        """
        Score adjustment for tracks in the play history.

        The current track gets a large bonus so it sorts first; a track played
        d tracks ago gets -1 / (factor * d), fading towards zero.
        """
        malus: Dict[int, float] = {}
        last = len(history) - 1

        for position, music_id in enumerate(history):
            distance = last - position
            if distance == 0:
                malus[music_id] = self.current_track_bonus
            else:
                malus[music_id] = -1.0 / (self.recency_malus_factor * distance)

        return malus

    def jitter(self) -> float:
        """Fresh tie-breaking jitter in [0, jitter_scale)."""
        return self.rng.random() * self.jitter_scale

    def score_map(self, index: MetadataIndex, anchor_id: int) -> Dict[int, float]:
        """
        Similarity of every playable track to the anchor track.

        Tracks that are not playable or have no embedding are left out. The
        jitter is drawn again on every call, so maps are not stable ranks.
        """
        anchor_vector = index.embedding(anchor_id)
        if anchor_vector is None:
            logger.debug(f"Anchor track {anchor_id} has no embedding")
            return {}

        scores: Dict[int, float] = {}
        for music_id in index.musics:
            if not is_playable(index.get_tags(music_id)):
                continue
            similarity = self.similarity(anchor_vector, index.embedding(music_id))
            if similarity is None:
                continue
            scores[music_id] = similarity + self.jitter()

        logger.debug(
            f"🎯 Scored {len(scores)}/{len(index.musics)} tracks against {anchor_id}"
        )
        return scores
