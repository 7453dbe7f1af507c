"""
Similarity scoring for playnext.
"""

from .score_engine import ScoreEngine, is_playable
from .seeded_random import PROCESS_SEED, seeded_value

__all__ = ["PROCESS_SEED", "ScoreEngine", "is_playable", "seeded_value"]
