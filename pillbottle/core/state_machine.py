"""
State Sequencer
===============

Queue-driven coordinator for gameplay phases.

A phase is a plain tagged value (kind + phase-specific state). Behavior
lives in a handler table keyed by kind, so adding a phase means
registering three functions rather than subclassing.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Hashable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pillbottle.core.model import GameModel


@dataclass
class Phase:
    """One gameplay phase: a kind tag plus its own mutable state."""
    kind: Hashable
    state: Any = None

    def __repr__(self) -> str:
        name = getattr(self.kind, "value", self.kind)
        return f"Phase({name})"


EnterHook = Callable[[Phase, "GameModel"], None]
UpdateHook = Callable[[Phase, "GameModel", float], None]
ExitHook = Callable[[Phase, "GameModel"], None]


def _noop_enter(phase: Phase, model: "GameModel") -> None:
    pass


def _noop_exit(phase: Phase, model: "GameModel") -> None:
    pass


@dataclass(frozen=True)
class PhaseHandlers:
    """Enter, per-tick update and exit behavior of one phase kind."""
    update: UpdateHook
    enter: EnterHook = _noop_enter
    exit: ExitHook = _noop_exit


class StateSequencer:
    """
    Runs at most one phase at a time and feeds it ticks.

    Upcoming phases wait in a FIFO queue. Nothing advances on its own:
    advance() or enter() must be called to change phase.
    """

    def __init__(
        self,
        model: "GameModel",
        handlers: Optional[Dict[Hashable, PhaseHandlers]] = None
    ):
        """
        Initialize sequencer with no active phase.

        Args:
            model: Context passed to every hook.
            handlers: Handler table by phase kind. Uses the built-in
                phases if None.
        """
        if handlers is None:
            from pillbottle.core.phases import DEFAULT_PHASE_HANDLERS
            handlers = DEFAULT_PHASE_HANDLERS

        self._model = model
        self._handlers: Dict[Hashable, PhaseHandlers] = dict(handlers)
        self._queue: Deque[Phase] = deque()
        self._current: Optional[Phase] = None

    @property
    def current(self) -> Optional[Phase]:
        """The active phase, or None before the first enter."""
        return self._current

    @property
    def pending(self) -> int:
        """Number of queued phases."""
        return len(self._queue)

    def peek(self) -> Optional[Phase]:
        """Next queued phase without dequeuing it."""
        return self._queue[0] if self._queue else None

    def register(self, kind: Hashable, handlers: PhaseHandlers) -> None:
        """Add or replace the handlers for a phase kind."""
        self._handlers[kind] = handlers

    def _handlers_for(self, phase: Phase) -> PhaseHandlers:
        try:
            return self._handlers[phase.kind]
        except KeyError:
            raise KeyError(f"No handlers registered for phase kind {phase.kind!r}") from None

    def enter(self, phase: Phase) -> None:
        """
        Make ``phase`` active.

        The previous phase's exit hook runs before the new phase's enter hook.

        Raises:
            KeyError: If no handlers are registered for the phase kind.
        """
        handlers = self._handlers_for(phase)
        previous = self._current
        if previous is not None:
            self._handlers_for(previous).exit(previous, self._model)
            self._model.log(f"Exited {previous!r}")
        self._current = phase
        handlers.enter(phase, self._model)
        self._model.log(f"Entered {phase!r}")

    def queue_phases(self, *phases: Phase) -> None:
        self._queue.extend(phases)

    def clear_queue(self) -> None:
        self._queue.clear()

    def clear_and_queue(self, *phases: Phase) -> None:
        self.clear_queue()
        self.queue_phases(*phases)

    def advance(self) -> bool:
        """
        Enter the next queued phase.

        Returns:
            True if a phase was dequeued, False if the queue was empty.
        """
        if not self._queue:
            return False
        self.enter(self._queue.popleft())
        return True

    def update(self, dt: float) -> None:
        """Dispatch one tick to the active phase, if any."""
        if self._current is None:
            return
        self._handlers_for(self._current).update(self._current, self._model, dt)
