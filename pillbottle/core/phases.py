"""
Gameplay Phases
===============

Phase kinds and their handlers. Populate Viruses is the only concrete
phase; further phases (falling pill, clearing, gravity) plug into the
same handler table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, Optional, Tuple

from pillbottle.core.model import GameModel
from pillbottle.core.rng import ColorTable
from pillbottle.core.state_machine import Phase, PhaseHandlers
from pillbottle.core.virus_placer import VirusPlacer, build_virus_placer


class PhaseKind(str, Enum):
    """Built-in phase kinds."""
    POPULATE_VIRUSES = "populate_viruses"


@dataclass
class PopulateVirusesState:
    """
    Parameters and progress of a virus population run.

    Parameters left as None fall back to the virus section of the config.
    """
    count: Optional[int] = None
    ceiling: Optional[int] = None
    strategy: Optional[str] = None
    counts: Optional[Tuple[int, int, int]] = None  # ring strategy only

    placer: Optional[VirusPlacer] = None
    remaining: int = 0
    failed_attempts: int = 0
    ticks: int = 0
    shortfall: int = 0
    finished: bool = False


def populate_viruses_phase(
    count: Optional[int] = None,
    ceiling: Optional[int] = None,
    strategy: Optional[str] = None,
    counts: Optional[Tuple[int, int, int]] = None
) -> Phase:
    """
    Build a Populate Viruses phase.

    Args:
        count: Total viruses to place.
        ceiling: Top rows kept free.
        strategy: "console" or "ring".
        counts: Explicit (red, yellow, blue) split for the ring strategy.
            Their sum replaces count when given.
    """
    if counts is not None:
        count = sum(counts)
    return Phase(
        PhaseKind.POPULATE_VIRUSES,
        PopulateVirusesState(count=count, ceiling=ceiling, strategy=strategy, counts=counts)
    )


def _enter_populate(phase: Phase, model: GameModel) -> None:
    state: PopulateVirusesState = phase.state
    virus_config = model.config.virus
    grid = model.grid

    count = state.count if state.count is not None else virus_config.count
    ceiling = state.ceiling if state.ceiling is not None else virus_config.ceiling
    strategy = state.strategy if state.strategy is not None else virus_config.strategy

    state.placer = build_virus_placer(
        strategy,
        grid.width,
        grid.height,
        ceiling,
        rng=model.rng,
        color_table=ColorTable(virus_config.color_table),
        counts=state.counts
    )
    state.remaining = count
    state.failed_attempts = 0
    state.ticks = 0
    state.shortfall = 0
    state.finished = count <= 0
    grid.clear()
    model.log(f"Populating {count} viruses ({strategy}, ceiling={ceiling})")


def _update_populate(phase: Phase, model: GameModel, dt: float) -> None:
    state: PopulateVirusesState = phase.state
    if state.finished or state.remaining <= 0:
        return

    state.ticks += 1
    remaining = state.placer.generate(state.remaining, model.grid)
    if remaining == state.remaining:
        state.failed_attempts += 1
    else:
        state.failed_attempts = 0
        state.remaining = remaining

    if state.remaining <= 0:
        state.finished = True
        model.log(f"Virus population finished in {state.ticks} ticks")
    elif state.placer.exhausted:
        state.shortfall = state.remaining
        state.finished = True
        model.log(f"Virus placer exhausted, {state.shortfall} not placed")
    elif state.failed_attempts >= model.config.virus.max_failed_attempts:
        state.shortfall = state.remaining
        state.finished = True
        model.log(
            f"Virus population stalled after {state.failed_attempts} empty ticks, "
            f"{state.shortfall} not placed"
        )


DEFAULT_PHASE_HANDLERS: Dict[Hashable, PhaseHandlers] = {
    PhaseKind.POPULATE_VIRUSES: PhaseHandlers(
        enter=_enter_populate,
        update=_update_populate
    ),
}


def is_phase_finished(phase: Optional[Phase]) -> bool:
    """True if the phase's state reports it has no work left."""
    if phase is None:
        return False
    return bool(getattr(phase.state, "finished", False))
