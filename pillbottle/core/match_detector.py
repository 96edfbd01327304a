"""
Match Detector
==============

Finds same-color runs of three or more cells along a row or column,
starting from the positions that just changed (typically the one or two
cells a pill settled into). Detection never mutates the grid; marking and
removal are separate calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, TYPE_CHECKING

from pillbottle.core.cell import Color, Position
from pillbottle.core.visit_table import VisitTable

if TYPE_CHECKING:
    from pillbottle.core.grid import GridModel

# Shortest run that clears
MIN_MATCH_LENGTH = 3


@dataclass(frozen=True)
class Match:
    """A same-color run, anchored at its lowest-coordinate cell."""
    start: Position
    vertical: bool
    length: int

    @property
    def positions(self) -> List[Position]:
        """Every cell of the run, from the anchor outward."""
        x, y = self.start
        if self.vertical:
            return [(x, y + i) for i in range(self.length)]
        return [(x + i, y) for i in range(self.length)]

    def __repr__(self) -> str:
        axis = "vertical" if self.vertical else "horizontal"
        return f"Match({self.start}, {axis}, length={self.length})"


def _find_span(
    grid: "GridModel",
    color: Color,
    pos: Position,
    vertical: bool,
    visited: VisitTable
) -> Optional[Match]:
    """
    Scan one axis from a changed position.

    Walks backward from the seed, then forward from one past it, marking
    every matching cell visited. A seed already covered by an earlier scan
    on this axis reports nothing, so each run is recorded once.
    """
    if not color.is_real:
        return None

    dx, dy = (0, 1) if vertical else (1, 0)

    x, y = pos
    span = 0
    start = pos
    while not visited.is_visited(x, y) and grid.get_color(x, y) == color:
        visited.set_visited(x, y)
        span += 1
        start = (x, y)
        x -= dx
        y -= dy
    if span == 0:
        return None

    x, y = pos[0] + dx, pos[1] + dy
    while not visited.is_visited(x, y) and grid.get_color(x, y) == color:
        visited.set_visited(x, y)
        span += 1
        x += dx
        y += dy

    if span < MIN_MATCH_LENGTH:
        return None
    return Match(start=start, vertical=vertical, length=span)


def find_matches(grid: "GridModel", positions: Iterable[Position]) -> List[Match]:
    """
    Report every run of length >= 3 through the given positions.

    Horizontal and vertical scans keep separate visit tables, so one cell
    can belong to both a horizontal and a vertical match.

    Args:
        grid: Board to scan.
        positions: Recently changed cells, in the order they changed.

    Returns:
        Matches in discovery order; each position yields at most one per axis.
    """
    horizontal_visited = VisitTable(grid.width, grid.height)
    vertical_visited = VisitTable(grid.width, grid.height)

    matches: List[Match] = []
    for pos in positions:
        if not grid.is_in_bounds(*pos):
            continue
        color = grid.get_color(*pos)
        match = _find_span(grid, color, pos, False, horizontal_visited)
        if match is not None:
            matches.append(match)
        match = _find_span(grid, color, pos, True, vertical_visited)
        if match is not None:
            matches.append(match)
    return matches


def mark_matches(grid: "GridModel", matches: Iterable[Match]) -> List[Position]:
    """
    Mark every cell of every match for destruction.

    Cells shared by crossing matches are marked once.

    Returns:
        Marked positions in first-seen order.
    """
    marked: List[Position] = []
    seen = set()
    for match in matches:
        for pos in match.positions:
            if pos in seen:
                continue
            seen.add(pos)
            grid.mark_for_destruction(*pos)
            marked.append(pos)
    return marked
