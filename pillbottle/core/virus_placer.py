"""
Virus Placer
============

Two interchangeable strategies for populating the bottle with viruses
below a ceiling band:

- Ring expansion: plans every position up front against per-color visit
  tables, widening a square search ring around a random seed until a cell
  keeps the color free of three-in-a-row.
- Console style: places one virus per call directly on the live grid,
  scanning row-major for an open cell and steering the color away from
  the cells two steps out on each axis.

Both satisfy the VirusPlacer protocol so the populate phase can use
either. Failing to place is reported through counts, never raised.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Protocol, Tuple, TYPE_CHECKING

from pillbottle.core.cell import Color, PLAYABLE_COLORS, Position
from pillbottle.core.rng import ColorTable, make_rng
from pillbottle.core.visit_table import VisitTable

if TYPE_CHECKING:
    from pillbottle.core.grid import GridModel

# Same-color run length the placers must never produce
MAX_RUN = 3

# Console-style table: Y R B B R Y Y R B B R Y Y R B
DEFAULT_COLOR_TABLE: Tuple[Color, ...] = (
    Color.YELLOW, Color.RED, Color.BLUE, Color.BLUE, Color.RED,
    Color.YELLOW, Color.YELLOW, Color.RED, Color.BLUE, Color.BLUE,
    Color.RED, Color.YELLOW, Color.YELLOW, Color.RED, Color.BLUE,
)

# Fixed colors for remaining % 4 in (0, 1, 2); 3 samples the table
_CYCLE_COLORS = (Color.YELLOW, Color.RED, Color.BLUE)

_SECOND_NEIGHBORS = ((-2, 0), (2, 0), (0, -2), (0, 2))


@dataclass(frozen=True)
class VirusPlacement:
    """One planned virus."""
    color: Color
    position: Position


@dataclass
class PlacementResult:
    """Outcome of a planning run: what was placed and what could not be."""
    placements: List[VirusPlacement] = field(default_factory=list)
    missing: Dict[Color, int] = field(
        default_factory=lambda: {color: 0 for color in PLAYABLE_COLORS}
    )

    @property
    def missing_red(self) -> int:
        return self.missing[Color.RED]

    @property
    def missing_yellow(self) -> int:
        return self.missing[Color.YELLOW]

    @property
    def missing_blue(self) -> int:
        return self.missing[Color.BLUE]

    @property
    def total_missing(self) -> int:
        return sum(self.missing.values())

    def placed(self, color: Color) -> int:
        """Number of placements of one color."""
        return sum(1 for p in self.placements if p.color == color)

    def offset(self, dx: int, dy: int) -> "PlacementResult":
        """Copy with every position shifted, e.g. from band to grid rows."""
        return PlacementResult(
            placements=[
                VirusPlacement(p.color, (p.position[0] + dx, p.position[1] + dy))
                for p in self.placements
            ],
            missing=dict(self.missing)
        )


class VirusPlacer(Protocol):
    """Per-tick placement interface shared by both strategies."""

    @property
    def exhausted(self) -> bool:
        """True once no later call can place anything."""
        ...

    def generate(self, viruses_remaining: int, grid: "GridModel") -> int:
        """
        Attempt to place one virus.

        Returns:
            viruses_remaining - 1 on success, viruses_remaining unchanged
            when nothing was placed this call.
        """
        ...


def clamp_ceiling(ceiling: int, height: int) -> int:
    """Keep at least one placement row below the ceiling."""
    if ceiling >= height:
        return height - 1
    return max(0, ceiling)


def split_counts(total: int) -> Tuple[int, int, int]:
    """Split a virus total across (red, yellow, blue), remainder to red first."""
    base, rem = divmod(max(0, total), 3)
    return (base + (1 if rem >= 1 else 0), base + (1 if rem >= 2 else 0), base)


# =============================================================================
# Strategy A: ring expansion
# =============================================================================

def _in_table(visit: VisitTable, x: int, y: int) -> bool:
    return 0 <= x < visit.width and 0 <= y < visit.height


def _run_length(visit: VisitTable, pos: Position, dx: int, dy: int) -> int:
    """Length of the run ``pos`` would join along one axis, capped at MAX_RUN."""
    count = 1
    x, y = pos[0] + dx, pos[1] + dy
    while count < MAX_RUN and _in_table(visit, x, y) and visit.is_visited(x, y):
        count += 1
        x += dx
        y += dy
    x, y = pos[0] - dx, pos[1] - dy
    while count < MAX_RUN and _in_table(visit, x, y) and visit.is_visited(x, y):
        count += 1
        x -= dx
        y -= dy
    return count


def _is_valid_position(pos: Position, visit: VisitTable, occupied: VisitTable) -> bool:
    """
    True if a virus of this table's color may go at ``pos``.

    The cell must be free, and must not extend this color's own earlier
    placements into a run of three on either axis.
    """
    if occupied.is_visited(*pos) or visit.is_visited(*pos):
        return False
    if _run_length(visit, pos, 1, 0) >= MAX_RUN:
        return False
    if _run_length(visit, pos, 0, 1) >= MAX_RUN:
        return False
    return True


def _ring_candidates(seed: Position, offset: int, occupied: VisitTable) -> List[Position]:
    """Free in-bounds cells on the perimeter of the square at ``offset``."""
    sx, sy = seed
    x0, y0 = sx - offset, sy - offset
    x1, y1 = sx + offset, sy + offset
    candidates: List[Position] = []
    for x in range(x0, x1 + 1):
        for y in (y0, y1):
            if not occupied.is_visited(x, y):
                candidates.append((x, y))
    for y in range(y0 + 1, y1):
        for x in (x0, x1):
            if not occupied.is_visited(x, y):
                candidates.append((x, y))
    return candidates


def _ring_outside(seed: Position, offset: int, width: int, height: int) -> bool:
    """True once the square at ``offset`` encloses the whole grid."""
    sx, sy = seed
    return sx - offset < 0 and sy - offset < 0 and sx + offset >= width and sy + offset >= height


def _pick_position(
    width: int,
    height: int,
    visit: VisitTable,
    occupied: VisitTable,
    rng: random.Random
) -> Optional[Position]:
    """Search outward from a random seed for the first valid cell."""
    seed = (rng.randrange(width), rng.randrange(height))
    if _is_valid_position(seed, visit, occupied):
        return seed

    offset = 1
    while not _ring_outside(seed, offset - 1, width, height):
        candidates = _ring_candidates(seed, offset, occupied)
        rng.shuffle(candidates)
        for pos in candidates:
            if _is_valid_position(pos, visit, occupied):
                return pos
        offset += 1
    return None


def generate_virus_positions(
    width: int,
    height: int,
    red_count: int,
    yellow_count: int,
    blue_count: int,
    rng: Optional[random.Random] = None,
    blocked: Optional[VisitTable] = None
) -> PlacementResult:
    """
    Plan virus positions with the ring-expansion search.

    Args:
        width: Band width in cells.
        height: Band height in cells (grid height minus the ceiling).
        red_count: Red viruses requested.
        yellow_count: Yellow viruses requested.
        blue_count: Blue viruses requested.
        rng: Random source. A fresh unseeded one if None.
        blocked: Cells already taken before planning. Not modified.

    Returns:
        PlacementResult in band coordinates. For each color, placed plus
        missing equals the requested count.
    """
    if rng is None:
        rng = make_rng()

    pool: List[List] = []
    visits: Dict[Color, VisitTable] = {}
    for color, count in zip(PLAYABLE_COLORS, (red_count, yellow_count, blue_count)):
        if count > 0:
            pool.append([color, count])
            visits[color] = VisitTable(width, height)

    occupied = VisitTable(width, height)
    if blocked is not None:
        for y in range(height):
            for x in range(width):
                if blocked.is_visited(x, y):
                    occupied.set_visited(x, y)

    result = PlacementResult()
    while pool:
        index = rng.randrange(len(pool))
        color = pool[index][0]
        visit = visits[color]

        pos = _pick_position(width, height, visit, occupied, rng)
        if pos is not None:
            visit.set_visited(*pos)
            occupied.set_visited(*pos)
            result.placements.append(VirusPlacement(color, pos))
        else:
            result.missing[color] += 1

        pool[index][1] -= 1
        if pool[index][1] <= 0:
            pool.pop(index)

    return result


def populate_grid(
    grid: "GridModel",
    red_count: int,
    yellow_count: int,
    blue_count: int,
    ceiling: int,
    rng: Optional[random.Random] = None
) -> PlacementResult:
    """
    Clear the grid and fill the band below the ceiling in one go.

    Args:
        grid: Board to populate.
        red_count: Red viruses requested.
        yellow_count: Yellow viruses requested.
        blue_count: Blue viruses requested.
        ceiling: Top rows to keep free; clamped to leave one row.
        rng: Random source.

    Returns:
        PlacementResult in grid coordinates.
    """
    ceiling = clamp_ceiling(ceiling, grid.height)
    result = generate_virus_positions(
        grid.width,
        grid.height - ceiling,
        red_count,
        yellow_count,
        blue_count,
        rng=rng
    ).offset(0, ceiling)

    grid.clear()
    for placement in result.placements:
        grid.set_virus(placement.position[0], placement.position[1], placement.color)
    return result


class RingExpansionPlacer:
    """
    Ring-expansion strategy behind the per-tick interface.

    The first generate() call plans the whole population into the band,
    treating cells already occupied on the grid as blocked. Each call then
    writes one planned virus.
    """

    def __init__(
        self,
        width: int,
        height: int,
        ceiling: int,
        counts: Optional[Tuple[int, int, int]] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize placer.

        Args:
            width: Grid width.
            height: Grid height.
            ceiling: Top rows kept free.
            counts: Explicit (red, yellow, blue) counts. If None, the first
                generate() call splits its remaining count evenly.
            rng: Random source.
        """
        self._width = width
        self._height = height
        self._ceiling = clamp_ceiling(ceiling, height)
        self._counts = counts
        self._rng = rng if rng is not None else make_rng()
        self._plan: Optional[Deque[VirusPlacement]] = None
        self._result: Optional[PlacementResult] = None

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def result(self) -> Optional[PlacementResult]:
        """Planning outcome in grid coordinates, once planned."""
        return self._result

    @property
    def planned_remaining(self) -> int:
        return len(self._plan) if self._plan is not None else 0

    @property
    def exhausted(self) -> bool:
        """True once planned and every planned virus has been written."""
        return self._plan is not None and not self._plan

    def reset(self) -> None:
        """Drop the current plan; the next generate() plans again."""
        self._plan = None
        self._result = None

    def _make_plan(self, viruses_remaining: int, grid: "GridModel") -> None:
        band_height = self._height - self._ceiling
        blocked = VisitTable(self._width, band_height)
        for y in range(band_height):
            for x in range(self._width):
                if not grid.is_empty(x, y + self._ceiling):
                    blocked.set_visited(x, y)

        if self._counts is not None:
            red, yellow, blue = self._counts
        else:
            red, yellow, blue = split_counts(viruses_remaining)
        self._result = generate_virus_positions(
            self._width, band_height, red, yellow, blue,
            rng=self._rng, blocked=blocked
        ).offset(0, self._ceiling)
        self._plan = deque(self._result.placements)

    def generate(self, viruses_remaining: int, grid: "GridModel") -> int:
        if viruses_remaining <= 0:
            return viruses_remaining
        if self._plan is None:
            self._make_plan(viruses_remaining, grid)
        if not self._plan:
            return viruses_remaining

        placement = self._plan.popleft()
        x, y = placement.position
        if not grid.is_empty(x, y):
            return viruses_remaining
        grid.set_virus(x, y, placement.color)
        return viruses_remaining - 1


# =============================================================================
# Strategy B: console style
# =============================================================================

class ConsolePlacer:
    """
    Console-style strategy: one attempt per call against the live grid.

    The candidate color cycles Yellow, Red, Blue with the remaining count,
    every fourth pick coming from the weighted table. The virus lands in
    the first empty cell at or after a random slot, with its color rotated
    away from any cell two steps out on either axis.
    """

    def __init__(
        self,
        width: int,
        height: int,
        ceiling: int,
        color_table: Optional[ColorTable] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize placer.

        Args:
            width: Grid width.
            height: Grid height.
            ceiling: Top rows kept free.
            color_table: Weighted table for every fourth pick.
            rng: Random source.
        """
        self._width = width
        self._height = height
        self._ceiling = clamp_ceiling(ceiling, height)
        self._table = color_table if color_table is not None else ColorTable(DEFAULT_COLOR_TABLE)
        self._rng = rng if rng is not None else make_rng()

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def exhausted(self) -> bool:
        # Each call scans from a fresh random slot
        return False

    def pick_color(self, viruses_remaining: int) -> Color:
        """Candidate color for the given remaining count."""
        phase = viruses_remaining % 4
        if phase < 3:
            return _CYCLE_COLORS[phase]
        return self._table.sample(self._rng)

    def _scan_open(self, grid: "GridModel", x: int, y: int) -> Optional[Position]:
        """First empty cell at or after (x, y) in row-major order."""
        while y < self._height:
            if x >= self._width:
                x = 0
                y += 1
                continue
            if grid.is_empty(x, y):
                return (x, y)
            x += 1
        return None

    def generate(self, viruses_remaining: int, grid: "GridModel") -> int:
        if viruses_remaining <= 0:
            return viruses_remaining

        y = self._rng.randrange(self._ceiling, self._height)
        x = self._rng.randrange(self._width)
        color = self.pick_color(viruses_remaining)

        while True:
            pos = self._scan_open(grid, x, y)
            if pos is None:
                return viruses_remaining
            x, y = pos

            nearby = {grid.get_color(x + dx, y + dy) for dx, dy in _SECOND_NEIGHBORS}
            nearby.discard(Color.NONE)

            if color not in nearby:
                break
            if all(c in nearby for c in PLAYABLE_COLORS):
                x += 1
                continue
            while color in nearby:
                color = color.next_in_cycle()
            break

        grid.set_virus(x, y, color)
        return viruses_remaining - 1


def build_virus_placer(
    strategy: str,
    width: int,
    height: int,
    ceiling: int,
    rng: Optional[random.Random] = None,
    color_table: Optional[ColorTable] = None,
    counts: Optional[Tuple[int, int, int]] = None
) -> VirusPlacer:
    """
    Build a placer by strategy name.

    Args:
        strategy: "console" or "ring".
        width: Grid width.
        height: Grid height.
        ceiling: Top rows kept free.
        rng: Random source.
        color_table: Weighted table (console strategy only).
        counts: Explicit (red, yellow, blue) counts (ring strategy only).

    Raises:
        ValueError: For an unknown strategy name.
    """
    if strategy == "console":
        return ConsolePlacer(width, height, ceiling, color_table=color_table, rng=rng)
    if strategy == "ring":
        return RingExpansionPlacer(width, height, ceiling, counts=counts, rng=rng)
    raise ValueError(f"Unknown virus placer strategy: '{strategy}'")
