"""
Board Viewer
============

Populates a bottle with viruses and prints it as text, with optional
timing of the placement strategies.

Usage:
    python -m tools.view_board [--strategy console|ring] [--seed S] [--count N]
    python -m tools.view_board --timing [--runs R]
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
from typing import Optional

from pillbottle.core.config_loader import GameConfig, _validate_config, load_config
from pillbottle.core.game import CoreGame


def build_config(
    config: GameConfig,
    width: Optional[int] = None,
    height: Optional[int] = None,
    debug: bool = False
) -> GameConfig:
    """
    Return config with board size and debug overrides applied.

    Raises:
        ValueError: If the overridden board no longer fits the ceiling or
            pill spawn.
    """
    board = dataclasses.replace(
        config.board,
        width=width if width is not None else config.board.width,
        height=height if height is not None else config.board.height
    )
    new_config = dataclasses.replace(config, board=board, debug=debug or config.debug)
    _validate_config(new_config)
    return new_config


def populate(
    config: GameConfig,
    strategy: str,
    count: Optional[int] = None,
    ceiling: Optional[int] = None,
    seed: int = 42
) -> CoreGame:
    """Create a game and run virus population to completion."""
    game = CoreGame(config=config, seed=seed)
    game.reset(count=count, ceiling=ceiling, strategy=strategy)
    game.run_until_idle()
    return game


def benchmark_strategy(
    config: GameConfig,
    strategy: str,
    runs: int = 100,
    count: Optional[int] = None,
    ceiling: Optional[int] = None,
    seed: int = 42
) -> dict:
    """
    Time full virus population runs for one strategy.

    Args:
        config: Game configuration.
        strategy: "console" or "ring".
        runs: Number of boards to populate.
        count: Viruses per board. Uses config if None.
        ceiling: Top rows kept free. Uses config if None.
        seed: Seed of the first run; each run adds its index.

    Returns:
        Dict with timing and shortfall results.
    """
    total_ticks = 0
    total_shortfall = 0
    start = time.perf_counter()

    for i in range(runs):
        game = populate(config, strategy, count=count, ceiling=ceiling, seed=seed + i)
        info = game.get_info()
        total_ticks += info["ticks"]
        total_shortfall += info["shortfall"]

    elapsed = time.perf_counter() - start

    return {
        "strategy": strategy,
        "runs": runs,
        "elapsed_seconds": elapsed,
        "ms_per_board": (elapsed * 1000) / runs,
        "ticks_per_board": total_ticks / runs,
        "shortfall_per_board": total_shortfall / runs
    }


def print_board(game: CoreGame) -> None:
    info = game.get_info()
    print(game.render_text())
    print()
    print(
        f"Viruses: {info['remaining_viruses']} "
        f"(red {info['remaining_red']}, yellow {info['remaining_yellow']}, "
        f"blue {info['remaining_blue']})"
    )
    print(f"Ticks: {info['ticks']}  Shortfall: {info['shortfall']}")


def main():
    parser = argparse.ArgumentParser(description="Populate and print a pill bottle")
    parser.add_argument("--strategy", choices=["console", "ring"], default=None,
                        help="Virus placement strategy (default: from config)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--count", type=int, default=None, help="Viruses to place")
    parser.add_argument("--ceiling", type=int, default=None, help="Top rows kept free")
    parser.add_argument("--width", type=int, default=None, help="Board width")
    parser.add_argument("--height", type=int, default=None, help="Board height")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument("--debug", action="store_true", help="Print lifecycle events")
    parser.add_argument("--timing", action="store_true", help="Benchmark both strategies")
    parser.add_argument("--runs", type=int, default=100, help="Boards per benchmark")

    args = parser.parse_args()

    config = build_config(
        load_config(args.config),
        width=args.width,
        height=args.height,
        debug=args.debug
    )

    if args.timing:
        strategies = [args.strategy] if args.strategy else ["console", "ring"]
        print(f"{'Strategy':<10} {'Runs':>6} {'ms/board':>10} {'ticks':>8} {'short':>8}")
        print("-" * 46)
        for strategy in strategies:
            r = benchmark_strategy(
                config,
                strategy,
                runs=args.runs,
                count=args.count,
                ceiling=args.ceiling,
                seed=args.seed
            )
            print(
                f"{r['strategy']:<10} {r['runs']:>6} {r['ms_per_board']:>10.3f} "
                f"{r['ticks_per_board']:>8.1f} {r['shortfall_per_board']:>8.2f}"
            )
        return 0

    strategy = args.strategy or config.virus.strategy
    game = populate(config, strategy, count=args.count, ceiling=args.ceiling, seed=args.seed)
    print_board(game)
    return 0


if __name__ == "__main__":
    sys.exit(main())
