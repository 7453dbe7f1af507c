"""
Free-text search over the title/artist search document.

A query starting with ``/`` is a case-insensitive regular expression; any
other query is matched approximately with rapidfuzz.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from rapidfuzz import fuzz, process, utils

from playnext.core.config import get_search_defaults
from playnext.core.models import SearchEntry

logger = logging.getLogger(__name__)

REGEX_PREFIX = "/"


def is_regex_query(query: str) -> bool:
    return query.startswith(REGEX_PREFIX)


class SearchIndex:
    """Resolve a query into an ordered list of track ids."""

    def __init__(
        self, document: Sequence[SearchEntry], threshold: Optional[float] = None
    ):
        """
        Initialize the search index.

        Args:
            document: Search entries in display order
            threshold: Fuzzy threshold, 0.0 for exact matches up to 1.0 for anything
        """
        self.document = list(document)
        self.threshold = (
            threshold
            if threshold is not None
            else get_search_defaults()["fuzzy_threshold"]
        )
        self._titles = {entry.id: entry.title for entry in self.document}
        self._artists = {entry.id: entry.artist for entry in self.document}

    @property
    def score_cutoff(self) -> float:
        """Minimum rapidfuzz score (0-100) for a field to match."""
        return (1.0 - self.threshold) * 100.0

    def search(self, query: str) -> List[int]:
        """
        Search the document.

        Args:
            query: Free text, or ``/pattern`` for a regular expression

        Returns:
            Matching track ids, best first; empty for an empty query
        """
        if not query:
            return []
        if is_regex_query(query):
            return self.regex_search(query[len(REGEX_PREFIX) :])
        return self.fuzzy_search(query)

    def regex_search(self, pattern: str) -> List[int]:
        """Ids whose title or artist matches the pattern, in document order."""
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.debug(f"Invalid search pattern {pattern!r}: {e}")
            return []

        return [
            entry.id
            for entry in self.document
            if regex.search(entry.title) or regex.search(entry.artist)
        ]

    def fuzzy_search(self, query: str) -> List[int]:
        """Ids whose title or artist approximately matches, most relevant first."""
        best: Dict[int, float] = {}

        for choices in (self._titles, self._artists):
            matches = process.extract(
                query,
                choices,
                scorer=fuzz.partial_ratio,
                processor=utils.default_process,
                score_cutoff=self.score_cutoff,
                limit=None,
            )
            for _, score, music_id in matches:
                if score > best.get(music_id, -1.0):
                    best[music_id] = score

        # Stable sort keeps document order among equal scores
        ranked = [entry.id for entry in self.document if entry.id in best]
        ranked.sort(key=lambda music_id: best[music_id], reverse=True)

        logger.debug(f"🔍 Fuzzy search {query!r}: {len(ranked)} matches")
        return ranked


def search_document(
    document: Sequence[SearchEntry], query: str, threshold: Optional[float] = None
) -> List[int]:
    """Search a document without keeping the index around."""
    return SearchIndex(document, threshold=threshold).search(query)
