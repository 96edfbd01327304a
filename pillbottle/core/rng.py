"""
RNG - Seeded Color Sources
==========================

Seeded random sources shared by the placers and the pill factory, and the
fixed weighted table the console-style placer samples virus colors from.
"""

from __future__ import annotations

import random
from collections import Counter
from typing import Dict, Optional, Sequence, Tuple

from pillbottle.core.cell import Color, PLAYABLE_COLORS


def make_rng(seed: Optional[int] = None) -> random.Random:
    """
    Create an independent random source.

    Args:
        seed: Random seed for reproducibility. Random if None.
    """
    return random.Random(seed)


def pick_random_color(rng: random.Random) -> Color:
    """Uniformly pick one of the three playable colors."""
    return PLAYABLE_COLORS[rng.randrange(len(PLAYABLE_COLORS))]


class ColorTable:
    """
    Fixed weighted color table.

    Weighting comes from repetition: a color listed six times out of fifteen
    is drawn 6/15 of the time. Sampling is with replacement.
    """

    def __init__(self, entries: Sequence[Color]):
        """
        Initialize table.

        Args:
            entries: Table entries; every entry must be a playable color.
        """
        if not entries:
            raise ValueError("Color table cannot be empty")
        for entry in entries:
            if not Color(entry).is_real:
                raise ValueError(f"Color table entries must be playable colors, got {entry!r}")
        self._entries: Tuple[Color, ...] = tuple(Color(e) for e in entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[Color, ...]:
        return self._entries

    @property
    def weights(self) -> Dict[Color, int]:
        """Occurrences of each playable color in the table."""
        counts = Counter(self._entries)
        return {color: counts.get(color, 0) for color in PLAYABLE_COLORS}

    def sample(self, rng: random.Random) -> Color:
        """Draw one entry uniformly from the table."""
        return self._entries[rng.randrange(len(self._entries))]
