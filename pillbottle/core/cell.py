"""
Cell Types
==========

Colors, linkage tags and the immutable cell snapshot shared by every
board-level subsystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

# (x, y) cell coordinates, y grows downward
Position = Tuple[int, int]


class Color(IntEnum):
    """
    Cell color.

    NONE means "no color / empty" and never matches anything,
    including another NONE.
    """
    NONE = 0
    RED = 1
    YELLOW = 2
    BLUE = 3

    @property
    def is_real(self) -> bool:
        """True for the three playable colors."""
        return self is not Color.NONE

    @property
    def label(self) -> str:
        """Lowercase name used in config files and text views."""
        return self.name.lower()

    def next_in_cycle(self) -> "Color":
        """
        Next color in the Red -> Yellow -> Blue -> Red rotation.

        NONE has no successor and is returned unchanged.
        """
        if self is Color.NONE:
            return self
        return _COLOR_CYCLE[self]

    @classmethod
    def from_label(cls, label: str) -> "Color":
        """Parse a color name (case-insensitive). Unknown names map to NONE."""
        try:
            return cls[str(label).strip().upper()]
        except KeyError:
            return cls.NONE


PLAYABLE_COLORS: Tuple[Color, ...] = (Color.RED, Color.YELLOW, Color.BLUE)

_COLOR_CYCLE = {
    Color.RED: Color.YELLOW,
    Color.YELLOW: Color.BLUE,
    Color.BLUE: Color.RED,
}


class Linkage(IntEnum):
    """Which orthogonal neighbor a pill half is paired with."""
    NONE = 0
    LEFT = 1
    RIGHT = 2
    UP = 3
    DOWN = 4

    @property
    def offset(self) -> Position:
        """Grid offset from this cell to its partner."""
        return _LINK_OFFSETS[self]

    @property
    def opposite(self) -> "Linkage":
        """The reciprocal tag the partner cell carries."""
        return _LINK_OPPOSITES[self]


_LINK_OFFSETS = {
    Linkage.NONE: (0, 0),
    Linkage.LEFT: (-1, 0),
    Linkage.RIGHT: (1, 0),
    Linkage.UP: (0, -1),
    Linkage.DOWN: (0, 1),
}

_LINK_OPPOSITES = {
    Linkage.NONE: Linkage.NONE,
    Linkage.LEFT: Linkage.RIGHT,
    Linkage.RIGHT: Linkage.LEFT,
    Linkage.UP: Linkage.DOWN,
    Linkage.DOWN: Linkage.UP,
}


@dataclass(frozen=True)
class Cell:
    """
    Read-only snapshot of one grid square.

    An empty cell (color NONE) is never a virus, never linked and
    never marked for destruction.
    """
    color: Color = Color.NONE
    is_virus: bool = False
    marked_for_destruction: bool = False
    link: Linkage = Linkage.NONE

    @property
    def is_empty(self) -> bool:
        return self.color is Color.NONE

    @property
    def is_pill(self) -> bool:
        """True for a single or linked pill half."""
        return self.color is not Color.NONE and not self.is_virus

    def __repr__(self) -> str:
        if self.is_empty:
            return "Cell(empty)"
        kind = "virus" if self.is_virus else "pill"
        flags = "" if not self.marked_for_destruction else ", marked"
        link = "" if self.link is Linkage.NONE else f", link={self.link.name.lower()}"
        return f"Cell({self.color.label} {kind}{link}{flags})"


EMPTY_CELL = Cell()
