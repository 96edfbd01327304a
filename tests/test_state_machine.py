"""
Tests for the phase sequencer and the Populate Viruses phase.
"""

import random

import pytest

from pillbottle.core.config_loader import load_config
from pillbottle.core.grid import GridModel
from pillbottle.core.model import GameModel
from pillbottle.core.phases import (
    PhaseKind,
    is_phase_finished,
    populate_viruses_phase,
)
from pillbottle.core.state_machine import Phase, PhaseHandlers, StateSequencer


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def model(config):
    grid = GridModel(config.board.width, config.board.height)
    return GameModel(config=config, grid=grid, rng=random.Random(42))


def recording_handlers(log, name):
    """Handlers that append (event, name) to log."""
    return PhaseHandlers(
        enter=lambda phase, model: log.append(("enter", name)),
        update=lambda phase, model, dt: log.append(("update", name, dt)),
        exit=lambda phase, model: log.append(("exit", name))
    )


class TestStateSequencer:
    """Test queueing, entering and dispatch."""

    def test_starts_idle(self, model):
        sequencer = StateSequencer(model, handlers={})
        assert sequencer.current is None
        assert sequencer.pending == 0
        assert sequencer.peek() is None

    def test_advance_empty_queue(self, model):
        sequencer = StateSequencer(model, handlers={})
        assert sequencer.advance() is False
        assert sequencer.current is None

    def test_exit_runs_before_enter(self, model):
        log = []
        sequencer = StateSequencer(model, handlers={})
        sequencer.register("a", recording_handlers(log, "a"))
        sequencer.register("b", recording_handlers(log, "b"))

        sequencer.queue_phases(Phase("a"), Phase("b"))
        assert sequencer.advance()
        assert sequencer.advance()

        assert log == [("enter", "a"), ("exit", "a"), ("enter", "b")]
        assert sequencer.current.kind == "b"

    def test_fifo_order(self, model):
        sequencer = StateSequencer(model, handlers={})
        for kind in ("a", "b", "c"):
            sequencer.register(kind, PhaseHandlers(update=lambda p, m, dt: None))

        sequencer.queue_phases(Phase("a"), Phase("b"))
        sequencer.queue_phases(Phase("c"))

        assert sequencer.pending == 3
        assert sequencer.peek().kind == "a"

        order = []
        while sequencer.advance():
            order.append(sequencer.current.kind)
        assert order == ["a", "b", "c"]

    def test_update_goes_to_active_only(self, model):
        log = []
        sequencer = StateSequencer(model, handlers={})
        sequencer.register("a", recording_handlers(log, "a"))
        sequencer.register("b", recording_handlers(log, "b"))

        sequencer.update(0.5)
        assert log == []

        sequencer.queue_phases(Phase("a"), Phase("b"))
        sequencer.advance()
        sequencer.update(0.25)

        assert log == [("enter", "a"), ("update", "a", 0.25)]

    def test_sequencer_never_self_advances(self, model):
        log = []
        sequencer = StateSequencer(model, handlers={})
        sequencer.register("a", recording_handlers(log, "a"))
        sequencer.register("b", recording_handlers(log, "b"))

        sequencer.queue_phases(Phase("a"), Phase("b"))
        sequencer.advance()
        for _ in range(5):
            sequencer.update(0.0)

        assert sequencer.current.kind == "a"
        assert sequencer.pending == 1

    def test_clear_and_queue(self, model):
        sequencer = StateSequencer(model, handlers={})
        sequencer.queue_phases(Phase("a"), Phase("b"))
        sequencer.clear_and_queue(Phase("c"))

        assert sequencer.pending == 1
        assert sequencer.peek().kind == "c"

        sequencer.clear_queue()
        assert sequencer.pending == 0

    def test_enter_directly(self, model):
        log = []
        sequencer = StateSequencer(model, handlers={})
        sequencer.register("a", recording_handlers(log, "a"))

        sequencer.enter(Phase("a"))

        assert sequencer.current.kind == "a"
        assert log == [("enter", "a")]

    def test_unregistered_kind(self, model):
        sequencer = StateSequencer(model, handlers={})
        with pytest.raises(KeyError):
            sequencer.enter(Phase("missing"))

        sequencer.queue_phases(Phase("missing"))
        with pytest.raises(KeyError):
            sequencer.advance()

    def test_debug_logging(self, model, capsys):
        model.debug = True
        sequencer = StateSequencer(model, handlers={})
        sequencer.register("a", PhaseHandlers(update=lambda p, m, dt: None))
        sequencer.enter(Phase("a"))

        assert "[DEBUG] Entered Phase(a)" in capsys.readouterr().out


class TestPopulateVirusesPhase:
    """Test the built-in virus population phase."""

    def run_phase(self, model, phase, max_ticks=10_000):
        sequencer = StateSequencer(model)
        sequencer.enter(phase)
        ticks = 0
        while not is_phase_finished(phase) and ticks < max_ticks:
            sequencer.update(1 / 60)
            ticks += 1
        return ticks

    def test_console_places_count(self, model):
        phase = populate_viruses_phase(count=20, strategy="console")
        self.run_phase(model, phase)

        assert phase.kind == PhaseKind.POPULATE_VIRUSES
        assert phase.state.finished
        assert phase.state.remaining == 0
        assert phase.state.shortfall == 0
        assert model.remaining_viruses == 20

    def test_ring_places_counts(self, model):
        phase = populate_viruses_phase(counts=(4, 3, 2), strategy="ring")
        ticks = self.run_phase(model, phase)

        assert ticks == 9
        assert model.remaining_red == 4
        assert model.remaining_yellow == 3
        assert model.remaining_blue == 2

    def test_defaults_from_config(self, model, config):
        phase = populate_viruses_phase()
        self.run_phase(model, phase)

        assert phase.state.finished
        assert model.remaining_viruses == config.virus.count
        for x, y, cell in model.grid.iter_cells():
            if cell.is_virus:
                assert y >= config.virus.ceiling

    def test_enter_clears_grid(self, model):
        from pillbottle.core.cell import Color

        model.grid.set_single_pill(0, 0, Color.RED)
        sequencer = StateSequencer(model)
        sequencer.enter(populate_viruses_phase(count=5))

        assert model.grid.count_occupied() == 0

    def test_zero_count_finishes_immediately(self, model):
        phase = populate_viruses_phase(count=0)
        StateSequencer(model).enter(phase)
        assert phase.state.finished

    def test_exhausted_plan_finishes_at_once(self, model):
        """An over-full ring request ends on its last placement."""
        phase = populate_viruses_phase(counts=(50, 50, 50), strategy="ring")
        ticks = self.run_phase(model, phase)

        state = phase.state
        placed = model.remaining_viruses
        assert state.finished
        assert state.shortfall > 0
        assert state.shortfall == state.remaining
        assert placed + state.shortfall == 150
        assert ticks == placed
        assert state.ticks == placed
        assert state.failed_attempts == 0

    def test_stall_records_shortfall(self, model, config):
        """A placer that never lands stops after max_failed_attempts empty ticks."""

        class BlockedPlacer:
            exhausted = False

            def generate(self, viruses_remaining, grid):
                return viruses_remaining

        phase = populate_viruses_phase(count=5, strategy="console")
        sequencer = StateSequencer(model)
        sequencer.enter(phase)
        phase.state.placer = BlockedPlacer()

        for _ in range(config.virus.max_failed_attempts - 1):
            sequencer.update(0.0)
        assert not phase.state.finished

        sequencer.update(0.0)
        assert phase.state.finished
        assert phase.state.shortfall == 5
        assert phase.state.failed_attempts == config.virus.max_failed_attempts
