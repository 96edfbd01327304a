"""
Game Model
==========

Shared context handed to every phase: the configuration, the bottle grid,
the floating pills and the random source.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List

from pillbottle.core.cell import Color
from pillbottle.core.config_loader import GameConfig
from pillbottle.core.grid import GridModel
from pillbottle.core.pill import PillEntity


@dataclass
class GameModel:
    """State owned by the active phase for the duration of a tick."""
    config: GameConfig
    grid: GridModel
    rng: random.Random
    floating_pills: List[PillEntity] = field(default_factory=list)
    debug: bool = False

    @property
    def remaining_red(self) -> int:
        return self.grid.count_viruses(Color.RED)

    @property
    def remaining_yellow(self) -> int:
        return self.grid.count_viruses(Color.YELLOW)

    @property
    def remaining_blue(self) -> int:
        return self.grid.count_viruses(Color.BLUE)

    @property
    def remaining_viruses(self) -> int:
        return self.grid.count_viruses()

    def log(self, message: str) -> None:
        """Print a debug line when debugging is enabled."""
        if self.debug:
            print(f"[DEBUG] {message}")
