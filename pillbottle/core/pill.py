"""
Pill Entity
===========

Logical model of a floating pill: grid position of its primary half,
orientation, and the color of each half. The primary half is always the
top-left-most cell; the second half sits below it when vertical and to
its right when horizontal.
"""

from __future__ import annotations

import random
from typing import List, Optional, Tuple

from pillbottle.core.cell import Color, Position
from pillbottle.core.rng import pick_random_color

ColorPair = Tuple[Color, Color]


class PillEntity:
    """
    A one- or two-part pill floating over the grid.

    A pill whose second color is NONE is a single pellet: it occupies one
    cell and ignores rotation.
    """

    def __init__(
        self,
        position: Position,
        colors: ColorPair,
        vertical: bool = False
    ):
        """
        Initialize pill.

        Args:
            position: (x, y) of the primary (top-left) half.
            colors: (first half, second half) colors.
            vertical: True if the second half sits below the first.
        """
        self._position: Position = (int(position[0]), int(position[1]))
        self._colors: ColorPair = (Color(colors[0]), Color(colors[1]))
        self._vertical = bool(vertical)
        self.settling = False

    @property
    def position(self) -> Position:
        return self._position

    @position.setter
    def position(self, value: Position) -> None:
        self._position = (int(value[0]), int(value[1]))

    @property
    def is_vertical(self) -> bool:
        return self._vertical

    @property
    def colors(self) -> ColorPair:
        return self._colors

    @property
    def is_single(self) -> bool:
        return self._colors[1] is Color.NONE

    @property
    def second_offset(self) -> Position:
        """Offset of the second half relative to the primary half."""
        return (0, 1) if self._vertical else (1, 0)

    @property
    def part_positions(self) -> List[Position]:
        """Grid cells the pill covers: one for a pellet, two otherwise."""
        return self.part_positions_at(self._position)

    def part_positions_at(self, position: Position) -> List[Position]:
        """Cells the pill would cover with its primary half at ``position``."""
        x, y = position
        if self.is_single:
            return [(x, y)]
        dx, dy = self.second_offset
        return [(x, y), (x + dx, y + dy)]

    def _swap_colors(self) -> None:
        self._colors = (self._colors[1], self._colors[0])

    def rotate_clockwise(self) -> None:
        """Rotate 90 degrees clockwise. Colors swap when leaving vertical."""
        if self.is_single:
            return
        if self._vertical:
            self._swap_colors()
        self._vertical = not self._vertical

    def rotate_counter_clockwise(self) -> None:
        """Rotate 90 degrees counter-clockwise. Colors swap when entering vertical."""
        if self.is_single:
            return
        self._vertical = not self._vertical
        if self._vertical:
            self._swap_colors()

    def copy(self) -> "PillEntity":
        pill = PillEntity(self._position, self._colors, self._vertical)
        pill.settling = self.settling
        return pill

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PillEntity):
            return NotImplemented
        return (
            self._position == other._position
            and self._colors == other._colors
            and self._vertical == other._vertical
        )

    def __repr__(self) -> str:
        orientation = "v" if self._vertical else "h"
        c1, c2 = self._colors
        return f"PillEntity({self._position}, {orientation}, {c1.label}/{c2.label})"


def create_pill(
    position: Position,
    color1: Color,
    color2: Color = Color.NONE,
    vertical: bool = False
) -> PillEntity:
    """Create a pill with explicit colors. Omit color2 for a single pellet."""
    return PillEntity(position, (color1, color2), vertical)


def create_random_pill(
    position: Position,
    vertical: bool = False,
    rng: Optional[random.Random] = None
) -> PillEntity:
    """
    Create a two-part pill with independently random half colors.

    Args:
        position: (x, y) of the primary half.
        vertical: Initial orientation.
        rng: Random source. A fresh unseeded one if None.
    """
    if rng is None:
        rng = random.Random()
    return PillEntity(position, (pick_random_color(rng), pick_random_color(rng)), vertical)
