"""
Tests for same-color run detection.
"""

import pytest

from pillbottle.core.cell import Color, Linkage
from pillbottle.core.grid import GridModel
from pillbottle.core.match_detector import Match, find_matches, mark_matches


@pytest.fixture
def grid():
    return GridModel(8, 16)


class TestFindMatches:
    """Test run detection from changed positions."""

    def test_row_of_five_from_middle(self, grid):
        """Scanning from x=2 reports the whole run anchored at x=0."""
        for x in range(5):
            grid.set_virus(x, 0, Color.RED)

        matches = find_matches(grid, [(2, 0)])

        assert matches == [Match(start=(0, 0), vertical=False, length=5)]

    def test_l_shape_from_corner(self, grid):
        """Corner of an L reports one match per axis."""
        for x in range(3):
            grid.set_single_pill(x, 10, Color.BLUE)
        for y in range(10, 13):
            grid.set_single_pill(0, y, Color.BLUE)

        matches = find_matches(grid, [(0, 10)])

        assert len(matches) == 2
        horizontal = [m for m in matches if not m.vertical]
        vertical = [m for m in matches if m.vertical]
        assert horizontal == [Match(start=(0, 10), vertical=False, length=3)]
        assert vertical == [Match(start=(0, 10), vertical=True, length=3)]

    def test_vertical_run_anchor(self, grid):
        for y in range(12, 16):
            grid.set_virus(5, y, Color.YELLOW)

        matches = find_matches(grid, [(5, 15)])

        assert matches == [Match(start=(5, 12), vertical=True, length=4)]

    def test_run_reported_once(self, grid):
        """Several changed cells in one run report a single match."""
        for x in range(2, 6):
            grid.set_single_pill(x, 7, Color.RED)

        matches = find_matches(grid, [(3, 7), (4, 7), (2, 7)])

        assert matches == [Match(start=(2, 7), vertical=False, length=4)]

    def test_short_run_ignored(self, grid):
        """Runs shorter than three are never reported."""
        grid.set_virus(0, 15, Color.RED)
        grid.set_virus(1, 15, Color.RED)
        grid.set_virus(2, 15, Color.BLUE)

        assert find_matches(grid, [(0, 15), (1, 15), (2, 15)]) == []

    def test_empty_never_matches(self, grid):
        """A row of empty cells is not a run."""
        assert find_matches(grid, [(x, 0) for x in range(8)]) == []

    def test_empty_gap_breaks_run(self, grid):
        for x in (0, 1, 3, 4):
            grid.set_virus(x, 3, Color.YELLOW)

        assert find_matches(grid, [(1, 3), (3, 3)]) == []

    def test_out_of_bounds_position_skipped(self, grid):
        assert find_matches(grid, [(-1, 0), (8, 15)]) == []

    def test_mixed_virus_and_pill(self, grid):
        """Viruses and pill halves of one color form a run together."""
        grid.set_virus(0, 15, Color.BLUE)
        grid.set_double_pill(1, 15, False, Color.BLUE, Color.BLUE)

        matches = find_matches(grid, [(1, 15), (2, 15)])

        assert matches == [Match(start=(0, 15), vertical=False, length=3)]

    def test_detection_does_not_mutate(self, grid):
        for x in range(3):
            grid.set_virus(x, 0, Color.RED)

        find_matches(grid, [(0, 0)])

        assert not any(cell.marked_for_destruction for _, _, cell in grid.iter_cells())


class TestMarkMatches:
    """Test marking matched cells for destruction."""

    def test_mark_and_sweep(self, grid):
        for x in range(3):
            grid.set_virus(x, 15, Color.RED)
        grid.set_virus(3, 15, Color.BLUE)

        marked = mark_matches(grid, find_matches(grid, [(0, 15)]))

        assert marked == [(0, 15), (1, 15), (2, 15)]
        assert grid.remove_destruction_cells() == 3
        assert grid.count_viruses() == 1
        assert grid.get_color(3, 15) == Color.BLUE

    def test_shared_corner_marked_once(self, grid):
        for x in range(3):
            grid.set_single_pill(x, 10, Color.BLUE)
        for y in range(11, 13):
            grid.set_single_pill(0, y, Color.BLUE)

        marked = mark_matches(grid, find_matches(grid, [(0, 10)]))

        assert len(marked) == 5
        assert len(set(marked)) == 5

    def test_mark_unlinks_surviving_half(self, grid):
        """A cleared half leaves its partner as an unlinked single."""
        for x in range(3):
            grid.set_virus(x, 14, Color.YELLOW)
        grid.set_double_pill(2, 13, True, Color.RED, Color.YELLOW)
        # (2, 14) now belongs to the pill, completing the yellow row

        mark_matches(grid, find_matches(grid, [(2, 14)]))
        grid.remove_destruction_cells()

        survivor = grid.get_cell_info(2, 13)
        assert survivor.color == Color.RED
        assert survivor.link == Linkage.NONE
