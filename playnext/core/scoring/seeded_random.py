"""
Seeded pseudorandom values for reproducible random and temperature orderings.

The generator is pinned (one mulberry32 step over ``seed + music_id``) so that
an ordering depends only on the seed and the track ids, never on insertion
order or on the interpreter's own PRNG.
"""

import random

from playnext.core.config import get_selection_defaults

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit unsigned multiply, low word."""
    return (a * b) & _MASK


def seeded_value(seed: int, music_id: int) -> float:
    """
    Deterministic value in [0, 1) for a track.

    Args:
        seed: Process seed
        music_id: Track id

    Returns:
        Float in [0, 1)
    """
    state = (seed + music_id + 0x6D2B79F5) & _MASK
    t = _imul(state ^ (state >> 15), state | 1)
    t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
    return ((t ^ (t >> 14)) & _MASK) / 4294967296.0


def _initial_seed() -> int:
    configured = get_selection_defaults()["random_seed"]
    if configured is not None:
        return int(configured)
    return random.randrange(10_000_000)


# Fixed for the process lifetime so repeated renders are stable
PROCESS_SEED = _initial_seed()
