"""
Board Snapshot
==============

Packs board and pill state into fixed-size numpy arrays for the rendering
layer, which polls once per tick after logic updates. Snapshots are copies:
nothing written to them reaches the grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, TYPE_CHECKING

import numpy as np

from pillbottle.core.cell import Color

if TYPE_CHECKING:
    from pillbottle.core.grid import GridModel
    from pillbottle.core.pill import PillEntity

# Text glyphs: viruses upper case, pill halves lower case
_VIRUS_GLYPHS = {Color.RED: "R", Color.YELLOW: "Y", Color.BLUE: "B"}
_PILL_GLYPHS = {Color.RED: "r", Color.YELLOW: "y", Color.BLUE: "b"}
_EMPTY_GLYPH = "."
_MARKED_GLYPH = "*"


@dataclass
class BoardSnapshot:
    """
    Complete board state for one tick.

    Grid arrays are (height, width). Pill fields describe the first
    floating pill, with has_pill False when there is none.
    """
    board_width: int
    board_height: int

    # Grid arrays
    colors: np.ndarray                # (H, W) int8, Color values
    is_virus: np.ndarray              # (H, W) bool
    marked: np.ndarray                # (H, W) bool
    links: np.ndarray                 # (H, W) int8, Linkage values

    # Virus counts
    remaining_red: int
    remaining_yellow: int
    remaining_blue: int

    # Floating pill
    has_pill: bool
    pill_x: int
    pill_y: int
    pill_vertical: bool
    pill_colors: np.ndarray           # (2,) int8

    @property
    def remaining_viruses(self) -> int:
        return self.remaining_red + self.remaining_yellow + self.remaining_blue

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to a flat dictionary of numpy values."""
        return {
            "board_width": np.array(self.board_width, dtype=np.int32),
            "board_height": np.array(self.board_height, dtype=np.int32),
            "colors": self.colors,
            "is_virus": self.is_virus,
            "marked": self.marked,
            "links": self.links,
            "remaining_red": np.array(self.remaining_red, dtype=np.int32),
            "remaining_yellow": np.array(self.remaining_yellow, dtype=np.int32),
            "remaining_blue": np.array(self.remaining_blue, dtype=np.int32),
            "has_pill": np.array(self.has_pill, dtype=bool),
            "pill_x": np.array(self.pill_x, dtype=np.int32),
            "pill_y": np.array(self.pill_y, dtype=np.int32),
            "pill_vertical": np.array(self.pill_vertical, dtype=bool),
            "pill_colors": self.pill_colors,
        }


class SnapshotBuilder:
    """Builds board snapshots with pre-allocated arrays."""

    def __init__(self, width: int, height: int):
        self._width = width
        self._height = height

        # Pre-allocate arrays
        self._colors = np.zeros((height, width), dtype=np.int8)
        self._is_virus = np.zeros((height, width), dtype=bool)
        self._marked = np.zeros((height, width), dtype=bool)
        self._links = np.zeros((height, width), dtype=np.int8)
        self._pill_colors = np.zeros(2, dtype=np.int8)

    def build(
        self,
        grid: "GridModel",
        pill: Optional["PillEntity"] = None
    ) -> BoardSnapshot:
        """Build a snapshot from current board state."""
        np.copyto(self._colors, grid.colors)
        np.copyto(self._is_virus, grid.virus_flags)
        np.copyto(self._marked, grid.marked_flags)
        np.copyto(self._links, grid.links)

        self._pill_colors.fill(0)
        if pill is not None:
            self._pill_colors[0] = int(pill.colors[0])
            self._pill_colors[1] = int(pill.colors[1])
            pill_x, pill_y = pill.position
        else:
            pill_x, pill_y = -1, -1

        return BoardSnapshot(
            board_width=self._width,
            board_height=self._height,
            colors=self._colors.copy(),
            is_virus=self._is_virus.copy(),
            marked=self._marked.copy(),
            links=self._links.copy(),
            remaining_red=grid.count_viruses(Color.RED),
            remaining_yellow=grid.count_viruses(Color.YELLOW),
            remaining_blue=grid.count_viruses(Color.BLUE),
            has_pill=pill is not None,
            pill_x=pill_x,
            pill_y=pill_y,
            pill_vertical=pill.is_vertical if pill is not None else False,
            pill_colors=self._pill_colors.copy()
        )


def render_text(
    grid: "GridModel",
    pills: Iterable["PillEntity"] = ()
) -> str:
    """
    Render the board as text, one line per row.

    Viruses are upper case (R, Y, B), pill halves lower case, marked cells
    '*', empty cells '.'. Floating pills are drawn over the grid.
    """
    rows = []
    for y in range(grid.height):
        row = []
        for x in range(grid.width):
            cell = grid.get_cell_info(x, y)
            if cell.is_empty:
                row.append(_EMPTY_GLYPH)
            elif cell.marked_for_destruction:
                row.append(_MARKED_GLYPH)
            elif cell.is_virus:
                row.append(_VIRUS_GLYPHS[cell.color])
            else:
                row.append(_PILL_GLYPHS[cell.color])
        rows.append(row)

    for pill in pills:
        for (px, py), color in zip(pill.part_positions, pill.colors):
            if grid.is_in_bounds(px, py) and color.is_real:
                rows[py][px] = _PILL_GLYPHS[color]

    return "\n".join(" ".join(row) for row in rows)
