"""
Core Game
=========

Main game orchestrator combining the bottle grid, phase sequencer, virus
placement and snapshots.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from pillbottle.core.cell import Position
from pillbottle.core.config_loader import GameConfig, get_config
from pillbottle.core.grid import GridModel
from pillbottle.core.match_detector import Match, find_matches, mark_matches
from pillbottle.core.model import GameModel
from pillbottle.core.phases import is_phase_finished, populate_viruses_phase
from pillbottle.core.pill import PillEntity, create_random_pill
from pillbottle.core.rng import make_rng
from pillbottle.core.snapshot import BoardSnapshot, SnapshotBuilder, render_text
from pillbottle.core.state_machine import Phase, StateSequencer
from pillbottle.core.virus_placer import PlacementResult, populate_grid


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Bottle grid
    - Phase sequencer (virus population and later phases)
    - Pill spawning
    - Match detection
    - State snapshots

    One tick = one update of the active phase. When that phase reports it
    is finished and another is queued, the game moves on to it.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        debug: Optional[bool] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility.
            debug: Print lifecycle events. Uses config.debug if None.
        """
        if config is None:
            config = get_config()
        if debug is None:
            debug = config.debug

        self._config = config
        self._seed = seed
        self._debug = debug

        self._grid = GridModel(config.board.width, config.board.height)
        self._model = GameModel(
            config=config,
            grid=self._grid,
            rng=make_rng(seed),
            debug=debug
        )
        self._sequencer = StateSequencer(self._model)
        self._snapshot_builder = SnapshotBuilder(config.board.width, config.board.height)

        self._ticks: int = 0

        self._model.log(
            f"CoreGame initialized: {config.board.width}x{config.board.height}, "
            f"seed={seed}"
        )

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def grid(self) -> GridModel:
        """The bottle grid."""
        return self._grid

    @property
    def model(self) -> GameModel:
        """Shared phase context."""
        return self._model

    @property
    def sequencer(self) -> StateSequencer:
        """The phase sequencer."""
        return self._sequencer

    @property
    def current_phase(self) -> Optional[Phase]:
        """The active phase, or None."""
        return self._sequencer.current

    @property
    def ticks(self) -> int:
        """Ticks since the last reset."""
        return self._ticks

    @property
    def remaining_viruses(self) -> int:
        """Viruses currently on the board."""
        return self._model.remaining_viruses

    @property
    def is_idle(self) -> bool:
        """True when the active phase is finished and nothing is queued."""
        return self._sequencer.pending == 0 and (
            self._sequencer.current is None
            or is_phase_finished(self._sequencer.current)
        )

    def reset(self, seed: Optional[int] = None, **populate_args: Any) -> BoardSnapshot:
        """
        Reset to an empty board and start virus population.

        Args:
            seed: New random seed. Uses previous if None.
            **populate_args: Overrides passed to populate_viruses_phase
                (count, ceiling, strategy, counts).

        Returns:
            Snapshot of the cleared board.
        """
        if seed is not None:
            self._seed = seed

        self._model.rng = make_rng(self._seed)
        self._model.floating_pills.clear()
        self._grid.clear()
        self._ticks = 0

        self._sequencer.clear_and_queue(populate_viruses_phase(**populate_args))
        self._sequencer.advance()

        return self.snapshot()

    def tick(self, dt: float = 0.0) -> None:
        """Update the active phase, then advance if it has finished."""
        self._ticks += 1
        self._sequencer.update(dt)
        if is_phase_finished(self._sequencer.current) and self._sequencer.pending > 0:
            self._sequencer.advance()

    def run_until_idle(self, max_ticks: int = 10_000, dt: float = 0.0) -> int:
        """
        Tick until the game is idle or the tick cap is reached.

        Returns:
            Number of ticks run.
        """
        ticks = 0
        while not self.is_idle and ticks < max_ticks:
            self.tick(dt)
            ticks += 1
        return ticks

    def queue_phases(self, *phases: Phase) -> None:
        """Queue phases to run after the active one finishes."""
        self._sequencer.queue_phases(*phases)

    def generate_viruses(
        self,
        red_count: int,
        yellow_count: int,
        blue_count: int,
        ceiling: Optional[int] = None
    ) -> PlacementResult:
        """
        Fill the board with viruses in a single call (ring expansion).

        Args:
            red_count: Red viruses requested.
            yellow_count: Yellow viruses requested.
            blue_count: Blue viruses requested.
            ceiling: Top rows kept free. Uses config if None.

        Returns:
            PlacementResult with placed positions and per-color shortfall.
        """
        if ceiling is None:
            ceiling = self._config.virus.ceiling
        result = populate_grid(
            self._grid,
            red_count,
            yellow_count,
            blue_count,
            ceiling,
            rng=self._model.rng
        )
        self._model.log(
            f"Generated {len(result.placements)} viruses, {result.total_missing} missing"
        )
        return result

    def spawn_pill(self) -> PillEntity:
        """Create a random pill at the configured spawn point and track it."""
        spawn = self._config.pill
        pill = create_random_pill(
            (spawn.spawn_x, spawn.spawn_y),
            vertical=spawn.vertical,
            rng=self._model.rng
        )
        self._model.floating_pills.append(pill)
        self._model.log(f"Spawned {pill!r}")
        return pill

    def resolve_matches(self, positions: Iterable[Position]) -> List[Match]:
        """
        Find runs through the given cells and mark them for destruction.

        Marked cells stay on the board until grid.remove_destruction_cells().
        """
        matches = find_matches(self._grid, positions)
        if matches:
            marked = mark_matches(self._grid, matches)
            self._model.log(f"Marked {len(marked)} cells in {len(matches)} runs")
        return matches

    def snapshot(self) -> BoardSnapshot:
        """Build current board snapshot."""
        pills = self._model.floating_pills
        return self._snapshot_builder.build(self._grid, pills[0] if pills else None)

    def render_text(self) -> str:
        """Board as text, floating pills drawn over it."""
        return render_text(self._grid, self._model.floating_pills)

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict."""
        phase = self._sequencer.current
        state = phase.state if phase is not None else None
        return {
            "ticks": self._ticks,
            "phase": getattr(phase.kind, "value", phase.kind) if phase is not None else None,
            "phase_finished": is_phase_finished(phase),
            "pending_phases": self._sequencer.pending,
            "remaining_red": self._model.remaining_red,
            "remaining_yellow": self._model.remaining_yellow,
            "remaining_blue": self._model.remaining_blue,
            "remaining_viruses": self._model.remaining_viruses,
            "shortfall": getattr(state, "shortfall", 0),
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with occupied cells, floating pills and board info.
        """
        cells_data = []
        for x, y, cell in self._grid.iter_cells():
            if cell.is_empty:
                continue
            cells_data.append({
                "x": x,
                "y": y,
                "color": cell.color.label,
                "is_virus": cell.is_virus,
                "marked": cell.marked_for_destruction,
                "link": cell.link.name.lower(),
            })

        pills_data = []
        for pill in self._model.floating_pills:
            pills_data.append({
                "x": pill.position[0],
                "y": pill.position[1],
                "vertical": pill.is_vertical,
                "colors": [c.label for c in pill.colors],
            })

        return {
            "cells": cells_data,
            "pills": pills_data,
            "board_width": self._grid.width,
            "board_height": self._grid.height,
            "remaining_viruses": self._model.remaining_viruses,
        }
