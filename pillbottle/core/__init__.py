"""
Pill Bottle Core - Board logic and gameplay sequencing.

This module provides the bottle grid, match detection, virus placement,
the floating pill model and the phase sequencer that drives them.

Main exports:
- CoreGame: Game orchestrator (reset, tick, snapshots)
- GridModel: The bottle grid and its mutation contract
- find_matches / mark_matches: Same-color run detection
- build_virus_placer / populate_grid: Virus population strategies
- PillEntity: Floating pill with rotation
- StateSequencer: Phase queue with enter/exit hooks
- GameConfig: Configuration loaded from game_config.yaml
"""

from pillbottle.core.cell import Cell, Color, Linkage, Position
from pillbottle.core.config_loader import GameConfig, get_config, load_config
from pillbottle.core.grid import GridModel
from pillbottle.core.match_detector import Match, find_matches, mark_matches
from pillbottle.core.pill import PillEntity, create_pill, create_random_pill
from pillbottle.core.state_machine import Phase, PhaseHandlers, StateSequencer
from pillbottle.core.phases import PhaseKind, populate_viruses_phase
from pillbottle.core.virus_placer import (
    ConsolePlacer,
    PlacementResult,
    RingExpansionPlacer,
    build_virus_placer,
    generate_virus_positions,
    populate_grid,
)
from pillbottle.core.visit_table import VisitTable
from pillbottle.core.snapshot import BoardSnapshot, SnapshotBuilder
from pillbottle.core.game import CoreGame

__all__ = [
    "Cell",
    "Color",
    "Linkage",
    "Position",
    "GameConfig",
    "get_config",
    "load_config",
    "GridModel",
    "Match",
    "find_matches",
    "mark_matches",
    "PillEntity",
    "create_pill",
    "create_random_pill",
    "Phase",
    "PhaseHandlers",
    "StateSequencer",
    "PhaseKind",
    "populate_viruses_phase",
    "ConsolePlacer",
    "PlacementResult",
    "RingExpansionPlacer",
    "build_virus_placer",
    "generate_virus_positions",
    "populate_grid",
    "VisitTable",
    "BoardSnapshot",
    "SnapshotBuilder",
    "CoreGame",
]
