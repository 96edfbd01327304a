"""
Grid Model
==========

Owns the bottle's width x height cells and is the only place they are
written. Storage is flat and row-major (index = y * width + x) across
parallel numpy arrays, one per cell field.

Out-of-bounds reads return the empty cell and out-of-bounds writes are
ignored, so scanning code may read one step past an edge freely.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

import numpy as np

from pillbottle.core.cell import Cell, Color, EMPTY_CELL, Linkage, Position
from pillbottle.core.pill import PillEntity


class GridModel:
    """
    The pill bottle grid.

    Every cell holds a color, a virus flag, a destruction mark and a link
    tag naming the neighbor it forms a pill with. Linked halves always
    point at each other.
    """

    def __init__(self, width: int, height: int):
        """
        Initialize an empty grid.

        Args:
            width: Cells across.
            height: Cells down.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

        self._width = width
        self._height = height
        size = width * height
        self._colors = np.zeros(size, dtype=np.int8)
        self._virus = np.zeros(size, dtype=bool)
        self._marked = np.zeros(size, dtype=bool)
        self._links = np.zeros(size, dtype=np.int8)

    # =========================================================================
    # Getters
    # =========================================================================

    @property
    def width(self) -> int:
        """Number of cells across."""
        return self._width

    @property
    def height(self) -> int:
        """Number of cells down."""
        return self._height

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width), matching the array views."""
        return (self._height, self._width)

    def _index(self, x: int, y: int) -> int:
        return y * self._width + x

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def is_empty(self, x: int, y: int) -> bool:
        """True if the cell is in bounds and holds no color."""
        if not self.is_in_bounds(x, y):
            return False
        return self._colors[self._index(x, y)] == Color.NONE

    def get_cell_info(self, x: int, y: int) -> Cell:
        """
        Snapshot of the cell at (x, y).

        Returns the empty cell for out-of-bounds coordinates.
        """
        if not self.is_in_bounds(x, y):
            return EMPTY_CELL
        i = self._index(x, y)
        return Cell(
            color=Color(int(self._colors[i])),
            is_virus=bool(self._virus[i]),
            marked_for_destruction=bool(self._marked[i]),
            link=Linkage(int(self._links[i]))
        )

    def get_color(self, x: int, y: int) -> Color:
        """Color at (x, y); NONE when out of bounds."""
        if not self.is_in_bounds(x, y):
            return Color.NONE
        return Color(int(self._colors[self._index(x, y)]))

    def iter_cells(self) -> Iterator[Tuple[int, int, Cell]]:
        """Yield (x, y, cell) for every cell in row-major order."""
        for y in range(self._height):
            for x in range(self._width):
                yield x, y, self.get_cell_info(x, y)

    def count_viruses(self, color: Optional[Color] = None) -> int:
        """Number of viruses on the board, optionally of one color."""
        if color is None:
            return int(np.count_nonzero(self._virus))
        return int(np.count_nonzero(self._virus & (self._colors == int(color))))

    def count_occupied(self) -> int:
        """Number of non-empty cells."""
        return int(np.count_nonzero(self._colors))

    def _read_only(self, flat: np.ndarray) -> np.ndarray:
        view = flat.reshape(self._height, self._width)
        view.flags.writeable = False
        return view

    @property
    def colors(self) -> np.ndarray:
        """Read-only (height, width) view of color values."""
        return self._read_only(self._colors)

    @property
    def virus_flags(self) -> np.ndarray:
        """Read-only (height, width) view of virus flags."""
        return self._read_only(self._virus)

    @property
    def marked_flags(self) -> np.ndarray:
        """Read-only (height, width) view of destruction marks."""
        return self._read_only(self._marked)

    @property
    def links(self) -> np.ndarray:
        """Read-only (height, width) view of link tags."""
        return self._read_only(self._links)

    # =========================================================================
    # Setting Cells
    # =========================================================================

    def _write(
        self,
        x: int,
        y: int,
        color: Color,
        is_virus: bool = False,
        link: Linkage = Linkage.NONE
    ) -> None:
        i = self._index(x, y)
        if color == Color.NONE:
            # Empty cells are never viruses or linked
            is_virus = False
            link = Linkage.NONE
        self._colors[i] = int(color)
        self._virus[i] = is_virus
        self._marked[i] = False
        self._links[i] = int(link)

    def _unlink_adjacents(self, x: int, y: int) -> None:
        """Drop the link of any neighbor that points back at (x, y)."""
        for link in (Linkage.LEFT, Linkage.RIGHT, Linkage.UP, Linkage.DOWN):
            dx, dy = link.offset
            nx, ny = x + dx, y + dy
            if not self.is_in_bounds(nx, ny):
                continue
            i = self._index(nx, ny)
            if self._links[i] == int(link.opposite):
                self._links[i] = int(Linkage.NONE)

    def _clear_and_unlink(self, x: int, y: int) -> None:
        if not self.is_in_bounds(x, y):
            return
        self._unlink_adjacents(x, y)
        self._write(x, y, Color.NONE)

    def clear(self) -> None:
        """Reset every cell to empty."""
        self._colors.fill(0)
        self._virus.fill(False)
        self._marked.fill(False)
        self._links.fill(0)

    def set_empty(self, x: int, y: int) -> None:
        """
        Reset one cell to empty.

        Neighbors keep their links; use the destruction path to sever a pill.
        """
        if self.is_in_bounds(x, y):
            self._write(x, y, Color.NONE)

    def set_virus(self, x: int, y: int, color: Color) -> None:
        if self.is_in_bounds(x, y):
            self._write(x, y, color, is_virus=True)

    def set_single_pill(self, x: int, y: int, color: Color) -> None:
        if self.is_in_bounds(x, y):
            self._write(x, y, color)

    def set_double_pill(
        self,
        x: int,
        y: int,
        vertical: bool,
        color1: Color,
        color2: Color
    ) -> None:
        """
        Write a linked two-part pill.

        (x, y) is the top-left half and gets color1. The second half goes
        below (vertical) or to the right and gets color2. The halves are
        linked only when both are in bounds and colored; otherwise each
        in-bounds half is written unlinked (NONE as empty). Placement
        legality beyond raw bounds is the caller's concern.
        """
        nx, ny = (x, y + 1) if vertical else (x + 1, y)
        first_ok = self.is_in_bounds(x, y)
        second_ok = self.is_in_bounds(nx, ny)
        linked = color1 != Color.NONE and color2 != Color.NONE

        if first_ok and second_ok and linked:
            self._write(x, y, color1, link=Linkage.DOWN if vertical else Linkage.RIGHT)
            self._write(nx, ny, color2, link=Linkage.UP if vertical else Linkage.LEFT)
        else:
            if first_ok:
                self._write(x, y, color1)
            if second_ok:
                self._write(nx, ny, color2)

    def mark_for_destruction(self, x: int, y: int) -> None:
        """
        Flag a cell for removal and sever its pill pairing.

        Neighbors linked to this cell are unlinked first. Empty cells are
        never marked.
        """
        if not self.is_in_bounds(x, y):
            return
        self._unlink_adjacents(x, y)
        i = self._index(x, y)
        if self._colors[i] != Color.NONE:
            self._marked[i] = True
            self._links[i] = int(Linkage.NONE)

    def remove_destruction_cells(self) -> int:
        """
        Empty every cell marked for destruction.

        Returns:
            Number of cells removed.
        """
        marked = self._marked.copy()
        removed = int(np.count_nonzero(marked))
        self._colors[marked] = 0
        self._virus[marked] = False
        self._links[marked] = 0
        self._marked[marked] = False
        return removed

    # =========================================================================
    # Pill Queries
    # =========================================================================

    def will_pill_collide(self, pill: PillEntity, x: int, y: int) -> bool:
        """
        True if the pill cannot occupy (x, y).

        Every covered cell must be in bounds and empty.
        """
        return any(not self.is_empty(px, py) for px, py in pill.part_positions_at((x, y)))

    def is_pill_resting(self, pill: PillEntity) -> bool:
        """True if any cell directly below the pill is blocked."""
        parts = pill.part_positions
        for px, py in parts:
            below = (px, py + 1)
            if below in parts:
                continue
            if not self.is_empty(*below):
                return True
        return False

    def insert_pill(self, pill: PillEntity) -> List[Position]:
        """
        Lock a floating pill into the grid.

        Target cells are cleared first, severing any pill previously there.

        Returns:
            In-bounds positions written, primary half first.
        """
        parts = [p for p in pill.part_positions if self.is_in_bounds(*p)]
        for px, py in parts:
            self._clear_and_unlink(px, py)

        c1, c2 = pill.colors
        x, y = pill.position
        if pill.is_single:
            self.set_single_pill(x, y, c1)
        else:
            self.set_double_pill(x, y, pill.is_vertical, c1, c2)
        return parts

    def extract_pill(self, x: int, y: int) -> Optional[PillEntity]:
        """
        Lift the pill containing (x, y) out of the grid.

        The linked partner, if any, is lifted with it and both cells are
        emptied.

        Returns:
            The pill, or None for empty, virus or out-of-bounds cells.
        """
        cell = self.get_cell_info(x, y)
        if not cell.is_pill:
            return None

        link = cell.link
        vertical = link in (Linkage.UP, Linkage.DOWN)
        if link is Linkage.NONE:
            first, second = (x, y), None
        elif link in (Linkage.LEFT, Linkage.UP):
            dx, dy = link.offset
            first, second = (x + dx, y + dy), (x, y)
        else:
            dx, dy = link.offset
            first, second = (x, y), (x + dx, y + dy)

        color1 = self.get_color(*first)
        color2 = self.get_color(*second) if second is not None else Color.NONE

        self._clear_and_unlink(*first)
        if second is not None:
            self._clear_and_unlink(*second)

        return PillEntity(first, (color1, color2), vertical)

    def __str__(self) -> str:
        from pillbottle.core.snapshot import render_text
        return render_text(self)

    def __repr__(self) -> str:
        return (
            f"GridModel({self._width}x{self._height}, "
            f"occupied={self.count_occupied()}, viruses={self.count_viruses()})"
        )
