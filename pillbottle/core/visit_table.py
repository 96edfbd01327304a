"""
Visit Table
===========

Boolean scan markers over a grid, used to avoid revisiting cells during
line scans and placement searches. A table is created fresh for each
query scope and never shared between unrelated scans.
"""

from __future__ import annotations

import numpy as np


class VisitTable:
    """
    Width x height visited flags.

    Out-of-bounds coordinates read as visited and ignore writes, so scans
    stop at the board edge without extra bounds checks.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Visit table dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._grid = np.zeros((height, width), dtype=bool)

    @property
    def width(self) -> int:
        """Number of cells across."""
        return self._width

    @property
    def height(self) -> int:
        """Number of cells down."""
        return self._height

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def is_visited(self, x: int, y: int) -> bool:
        if not self._in_bounds(x, y):
            return True
        return bool(self._grid[y, x])

    def set_visited(self, x: int, y: int) -> None:
        if self._in_bounds(x, y):
            self._grid[y, x] = True

    def clear(self) -> None:
        """Reset every flag to unvisited."""
        self._grid.fill(False)

    def count(self) -> int:
        """Number of visited cells."""
        return int(np.count_nonzero(self._grid))

    def __str__(self) -> str:
        return "\n".join(
            " ".join("X" if visited else "·" for visited in row)
            for row in self._grid
        )

    def __repr__(self) -> str:
        return f"VisitTable({self._width}x{self._height}, visited={self.count()})"
