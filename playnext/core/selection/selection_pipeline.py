#!/usr/bin/env python3
"""
Selection pipeline: turn a metadata snapshot, the play history and the
search form into one ordered candidate list plus a score map.
"""

import logging
from typing import Dict, Hashable, List, Optional, Tuple, assert_never

from playnext.core.config import get_scoring_defaults, get_selection_defaults
from playnext.core.metadata.metadata_index import MetadataIndex
from playnext.core.models import (
    CreationTimeSort,
    Filters,
    MusicSelect,
    RandomSort,
    SearchForm,
    SimilarityParams,
    SimilaritySort,
    SortBy,
    SortKind,
    TagSort,
    Tracklist,
)
from playnext.core.scoring.score_engine import ScoreEngine
from playnext.core.scoring.seeded_random import PROCESS_SEED, seeded_value
from playnext.core.search.search_index import SearchIndex
from playnext.core.selection.library_filter import LibraryFilter

logger = logging.getLogger(__name__)


def new_search_form(user: Optional[int] = None) -> SearchForm:
    """Default form: similarity order, descending, configured temperature."""
    return SearchForm(
        filters=Filters(user=user, search_query=""),
        sort=SortBy(kind=SimilaritySort(), descending=True),
        similarity_params=SimilarityParams(
            temperature=get_selection_defaults()["default_temperature"]
        ),
    )


def empty_music_select() -> MusicSelect:
    return MusicSelect(ordered_list=[], score_map={})


def is_keep_order(form: SearchForm) -> bool:
    kind = form.sort.kind
    return isinstance(kind, SimilaritySort) and kind.keep_order


def is_similarity(form: SearchForm) -> bool:
    """True when the list is ordered by similarity (no search overriding it)."""
    return isinstance(form.sort.kind, SimilaritySort) and not form.filters.search_query


def sort_kind_eq(a: SortKind, b: SortKind) -> bool:
    """Compare sort kinds, ignoring the keep-order flag of similarity sorts."""
    if isinstance(a, TagSort) and isinstance(b, TagSort):
        return a.key == b.key
    return type(a) is type(b)


class SelectionPipeline:
    """
    Compute MusicSelect values.

    Results are memoized on the index version, the history content and the
    (hashable) search form, so repeated calls with unchanged inputs return
    the same MusicSelect without rescoring.
    """

    def __init__(
        self,
        score_engine: Optional[ScoreEngine] = None,
        seed: Optional[int] = None,
        unscored_sentinel: Optional[float] = None,
        search_threshold: Optional[float] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            score_engine: Engine for similarity and malus (default engine if None)
            seed: Seed for random and temperature orderings (process seed if None)
            unscored_sentinel: Score given to tracks missing from the score map
            search_threshold: Fuzzy search threshold passed to SearchIndex
        """
        self.score_engine = score_engine or ScoreEngine()
        self.seed = seed if seed is not None else PROCESS_SEED
        self.unscored_sentinel = (
            unscored_sentinel
            if unscored_sentinel is not None
            else get_scoring_defaults()["unscored_sentinel"]
        )
        self.search_threshold = search_threshold

        self._score_cache: Optional[Tuple[Tuple[int, int], Dict[int, float]]] = None
        self._search_cache: Optional[Tuple[int, SearchIndex]] = None
        self._select_cache: Optional[Tuple[Hashable, MusicSelect]] = None

    def invalidate(self) -> None:
        """Drop every memoized result."""
        self._score_cache = None
        self._search_cache = None
        self._select_cache = None

    @staticmethod
    def anchor(tracklist: Tracklist, form: SearchForm) -> Optional[int]:
        """
        Track whose embedding ranks the others.

        The last played track, or the manual selection when the similarity
        order is locked.
        """
        if is_keep_order(form) and tracklist.manual_select is not None:
            return tracklist.manual_select
        return tracklist.current

    def select(
        self, index: MetadataIndex, tracklist: Tracklist, form: SearchForm
    ) -> MusicSelect:
        """
        Order and filter the catalog.

        Args:
            index: Current metadata snapshot
            tracklist: Play history (read only)
            form: Filters, sort and similarity parameters

        Returns:
            A fresh MusicSelect
        """
        cache_key = (
            index.version,
            tuple(tracklist.history),
            tracklist.manual_select,
            form,
        )
        if self._select_cache is not None and self._select_cache[0] == cache_key:
            return self._select_cache[1]

        keep_order = is_keep_order(form)
        anchor = self.anchor(tracklist, form)
        score_map = self._scores(index, anchor) if anchor is not None else {}
        malus = {} if keep_order else self.score_engine.recency_malus(tracklist.history)

        query = form.filters.search_query
        if query:
            ordered = self._search_index(index).search(query)
        else:
            ordered = self._sort(index, tracklist, form, score_map, malus)
            if not form.sort.descending:
                ordered.reverse()
            ordered = LibraryFilter(index).apply(form.filters, ordered)

        result = MusicSelect(ordered_list=ordered, score_map=score_map)
        self._select_cache = (cache_key, result)

        logger.debug(
            f"🎼 Selected {len(ordered)} tracks (anchor={anchor}, "
            f"sort={type(form.sort.kind).__name__}, query={query!r})"
        )
        return result

    def _scores(self, index: MetadataIndex, anchor: int) -> Dict[int, float]:
        key = (index.version, anchor)
        if self._score_cache is not None and self._score_cache[0] == key:
            return self._score_cache[1]

        scores = self.score_engine.score_map(index, anchor)
        self._score_cache = (key, scores)
        return scores

    def _search_index(self, index: MetadataIndex) -> SearchIndex:
        if self._search_cache is None or self._search_cache[0] != index.version:
            self._search_cache = (
                index.version,
                SearchIndex(index.search_document, threshold=self.search_threshold),
            )
        return self._search_cache[1]

    def _sort(
        self,
        index: MetadataIndex,
        tracklist: Tracklist,
        form: SearchForm,
        score_map: Dict[int, float],
        malus: Dict[int, float],
    ) -> List[int]:
        """Descending-first ordering for the chosen sort kind."""
        kind = form.sort.kind
        musics = list(index.musics)

        if isinstance(kind, SimilaritySort):
            if tracklist.current is None:
                musics.reverse()
                return musics
            if not score_map:
                return musics
            temperature = form.similarity_params.temperature
            return sorted(
                musics,
                key=lambda m: -(
                    score_map.get(m, self.unscored_sentinel)
                    + malus.get(m, 0.0)
                    - temperature * seeded_value(self.seed, m)
                ),
            )
        elif isinstance(kind, CreationTimeSort):
            musics.reverse()
            return musics
        elif isinstance(kind, TagSort):
            return sorted(musics, key=lambda m: index.tag_text(m, kind.key))
        elif isinstance(kind, RandomSort):
            return sorted(musics, key=lambda m: seeded_value(self.seed, m))
        else:
            assert_never(kind)
