"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from pillbottle.core.cell import Color

# Number of entries in the weighted virus color table
COLOR_TABLE_SIZE = 15

PLACER_STRATEGIES = ("console", "ring")


@dataclass(frozen=True)
class BoardConfig:
    """Bottle grid dimensions, fixed for the lifetime of a board."""
    width: int                   # Cells across
    height: int                  # Cells down


@dataclass(frozen=True)
class VirusConfig:
    """Virus population parameters."""
    ceiling: int                 # Top rows excluded from placement
    count: int                   # Viruses requested by the populate phase
    strategy: str                # "console" or "ring"
    max_failed_attempts: int     # Consecutive empty ticks before giving up
    color_table: Tuple[Color, ...]


@dataclass(frozen=True)
class PillConfig:
    """Where new floating pills appear."""
    spawn_x: int
    spawn_y: int
    vertical: bool


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    virus: VirusConfig
    pill: PillConfig
    debug: bool = False

    @property
    def placement_rows(self) -> int:
        """Number of rows below the ceiling that may hold viruses."""
        return self.board.height - self.virus.ceiling


def _parse_color_table(table_data: List) -> Tuple[Color, ...]:
    """Parse the weighted color table from YAML color names."""
    colors = []
    for entry in table_data:
        color = Color.from_label(entry)
        if not color.is_real:
            raise ValueError(f"Color table entries must be red, yellow or blue, got {entry!r}")
        colors.append(color)
    return tuple(colors)


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    board = config.board
    if board.width <= 0 or board.height <= 0:
        raise ValueError(f"Board dimensions must be positive, got {board.width}x{board.height}")

    virus = config.virus
    if not 0 <= virus.ceiling < board.height:
        raise ValueError(
            f"virus.ceiling ({virus.ceiling}) must be in [0, board.height={board.height})"
        )
    if virus.count < 0:
        raise ValueError(f"virus.count must be non-negative, got {virus.count}")
    if virus.strategy not in PLACER_STRATEGIES:
        raise ValueError(
            f"virus.strategy must be one of {PLACER_STRATEGIES}, got '{virus.strategy}'"
        )
    if virus.max_failed_attempts <= 0:
        raise ValueError(
            f"virus.max_failed_attempts must be positive, got {virus.max_failed_attempts}"
        )
    if len(virus.color_table) != COLOR_TABLE_SIZE:
        raise ValueError(
            f"virus.color_table must have {COLOR_TABLE_SIZE} entries, "
            f"got {len(virus.color_table)}"
        )

    pill = config.pill
    if not (0 <= pill.spawn_x < board.width and 0 <= pill.spawn_y < board.height):
        raise ValueError(
            f"Pill spawn ({pill.spawn_x}, {pill.spawn_y}) lies outside the "
            f"{board.width}x{board.height} board"
        )


def parse_config(raw: dict) -> GameConfig:
    """
    Build and validate a GameConfig from already-parsed YAML data.

    Args:
        raw: Mapping with board, virus and pill sections.

    Returns:
        Validated GameConfig instance.

    Raises:
        ValueError: If config validation fails.
    """
    board_data = raw["board"]
    board = BoardConfig(
        width=int(board_data["width"]),
        height=int(board_data["height"])
    )

    virus_data = raw["virus"]
    virus = VirusConfig(
        ceiling=int(virus_data.get("ceiling", 4)),
        count=int(virus_data["count"]),
        strategy=str(virus_data.get("strategy", "console")),
        max_failed_attempts=int(virus_data.get("max_failed_attempts", 256)),
        color_table=_parse_color_table(virus_data["color_table"])
    )

    pill_data = raw.get("pill", {})
    pill = PillConfig(
        spawn_x=int(pill_data.get("spawn_x", board.width // 2 - 1)),
        spawn_y=int(pill_data.get("spawn_y", 0)),
        vertical=bool(pill_data.get("vertical", False))
    )

    config = GameConfig(
        board=board,
        virus=virus,
        pill=pill,
        debug=bool(raw.get("debug", False))
    )

    _validate_config(config)
    return config


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    return parse_config(raw)


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
