"""
Pill Bottle Package
===================

Logical core of a falling-pill matching puzzle. The package owns:

- The bottle grid and its cell mutation contract
- Same-color run detection
- Virus population strategies
- The floating pill model
- The phase sequencer that drives gameplay ticks

All tunable parameters live in game_config.yaml.
"""
