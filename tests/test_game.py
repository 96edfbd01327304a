"""
Tests for the game orchestrator and board snapshots.
"""

import numpy as np
import pytest

from pillbottle.core.cell import Color, Linkage
from pillbottle.core.config_loader import load_config
from pillbottle.core.game import CoreGame
from pillbottle.core.phases import PhaseKind, populate_viruses_phase
from pillbottle.core.pill import create_pill
from pillbottle.core.snapshot import SnapshotBuilder, render_text
from pillbottle.core.grid import GridModel


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    return CoreGame(config=config, seed=42)


class TestCoreGame:
    """Test reset, ticking and phase advancement."""

    def test_reset_enters_populate(self, game):
        snapshot = game.reset()

        assert game.current_phase.kind == PhaseKind.POPULATE_VIRUSES
        assert snapshot.remaining_viruses == 0
        assert game.ticks == 0

    def test_populate_configured_count(self, game, config):
        """Driving the phase to completion places the configured count."""
        game.reset()
        game.run_until_idle()

        info = game.get_info()
        assert info["phase_finished"]
        assert info["shortfall"] == 0
        assert game.remaining_viruses == config.virus.count
        assert (
            info["remaining_red"] + info["remaining_yellow"] + info["remaining_blue"]
            == config.virus.count
        )

    def test_reset_overrides(self, game):
        game.reset(count=12, strategy="ring")
        game.run_until_idle()

        assert game.remaining_viruses == 12

    def test_deterministic_with_seed(self, config):
        boards = []
        for _ in range(2):
            game = CoreGame(config=config, seed=7)
            game.reset()
            game.run_until_idle()
            boards.append(game.snapshot().colors)

        assert np.array_equal(boards[0], boards[1])

    def test_reset_clears_previous_board(self, game):
        game.reset(count=10)
        game.run_until_idle()
        game.spawn_pill()

        game.reset(count=0)

        assert game.remaining_viruses == 0
        assert game.model.floating_pills == []

    def test_advances_to_queued_phase(self, game):
        """A finished phase hands over to the next queued one."""
        game.reset(count=3, strategy="ring")
        game.queue_phases(populate_viruses_phase(count=5, strategy="ring"))

        first = game.current_phase
        game.run_until_idle()

        assert game.current_phase is not first
        assert game.remaining_viruses == 5
        assert game.is_idle

    def test_tick_counts(self, game):
        game.reset(count=4, strategy="ring")
        for _ in range(4):
            game.tick()

        assert game.ticks == 4
        assert game.is_idle

    def test_overfull_ring_request_ends_with_last_placement(self, config):
        """No idle ticks follow the final planned virus."""
        game = CoreGame(config=config, seed=3)
        game.reset(strategy="ring", counts=(40, 40, 40))
        ticks = game.run_until_idle()

        info = game.get_info()
        placed = game.remaining_viruses
        assert placed + info["shortfall"] == 120
        assert info["shortfall"] > 0
        assert ticks == placed

    def test_generate_viruses(self, game):
        result = game.generate_viruses(3, 3, 3)

        assert len(result.placements) == 9
        assert result.total_missing == 0
        assert game.remaining_viruses == 9

    def test_spawn_pill(self, game, config):
        pill = game.spawn_pill()

        assert pill.position == (config.pill.spawn_x, config.pill.spawn_y)
        assert pill.is_vertical == config.pill.vertical
        assert game.model.floating_pills == [pill]

    def test_resolve_matches(self, game):
        for x in range(3):
            game.grid.set_virus(x, 15, Color.BLUE)

        matches = game.resolve_matches([(1, 15)])

        assert len(matches) == 1
        assert game.grid.get_cell_info(0, 15).marked_for_destruction
        assert game.grid.remove_destruction_cells() == 3

    def test_debug_output(self, config, capsys):
        CoreGame(config=config, seed=1, debug=True)
        assert "[DEBUG] CoreGame initialized" in capsys.readouterr().out

    def test_render_data(self, game):
        game.grid.set_double_pill(0, 15, False, Color.RED, Color.YELLOW)
        game.spawn_pill()

        data = game.get_render_data()

        assert data["board_width"] == 8
        assert data["board_height"] == 16
        assert len(data["cells"]) == 2
        assert data["cells"][0]["link"] == "right"
        assert data["cells"][1]["color"] == "yellow"
        assert len(data["pills"]) == 1


class TestSnapshot:
    """Test numpy board snapshots and text rendering."""

    def test_snapshot_arrays(self):
        grid = GridModel(8, 16)
        grid.set_virus(2, 10, Color.RED)
        grid.set_double_pill(4, 5, True, Color.BLUE, Color.YELLOW)

        snapshot = SnapshotBuilder(8, 16).build(grid)

        assert snapshot.colors.shape == (16, 8)
        assert snapshot.colors[10, 2] == Color.RED
        assert snapshot.is_virus[10, 2]
        assert not snapshot.is_virus[5, 4]
        assert snapshot.links[5, 4] == Linkage.DOWN
        assert snapshot.links[6, 4] == Linkage.UP
        assert snapshot.remaining_red == 1
        assert snapshot.remaining_viruses == 1
        assert not snapshot.has_pill

    def test_snapshot_is_a_copy(self):
        grid = GridModel(4, 4)
        builder = SnapshotBuilder(4, 4)
        first = builder.build(grid)

        grid.set_virus(0, 0, Color.BLUE)
        second = builder.build(grid)

        assert first.colors[0, 0] == 0
        assert second.colors[0, 0] == Color.BLUE

        second.colors[0, 0] = 0
        assert grid.get_color(0, 0) == Color.BLUE

    def test_snapshot_pill_fields(self):
        grid = GridModel(8, 16)
        pill = create_pill((3, 0), Color.RED, Color.BLUE, vertical=True)

        snapshot = SnapshotBuilder(8, 16).build(grid, pill)

        assert snapshot.has_pill
        assert (snapshot.pill_x, snapshot.pill_y) == (3, 0)
        assert snapshot.pill_vertical
        assert list(snapshot.pill_colors) == [Color.RED, Color.BLUE]

    def test_obs_dict(self, game):
        game.reset(count=6, strategy="ring")
        game.run_until_idle()

        obs = game.snapshot().to_obs_dict()

        assert obs["colors"].shape == (16, 8)
        assert int(obs["remaining_red"] + obs["remaining_yellow"] + obs["remaining_blue"]) == 6
        assert int(obs["board_width"]) == 8

    def test_render_text_with_pill(self):
        grid = GridModel(4, 2)
        grid.set_virus(0, 1, Color.YELLOW)
        grid.set_single_pill(1, 1, Color.RED)
        grid.mark_for_destruction(1, 1)
        pill = create_pill((2, 0), Color.BLUE, Color.RED)

        text = render_text(grid, [pill])

        assert text.splitlines() == [". . b r", "Y * . ."]
