"""Minimal enter/tick/exit state machine."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

S = TypeVar("S", bound=Enum)

Callback = Callable[[], None]


@dataclass(frozen=True)
class StateHandlers:
    """Callbacks run when a state is entered, ticked or left."""

    on_enter: Callback | None = None
    on_tick: Callback | None = None
    on_exit: Callback | None = None


class StateMachine(Generic[S]):
    """Runs handlers for a closed set of states.

    Transitions always run the old state's on_exit before the new state's
    on_enter. Setting the current state again is a no-op.
    """

    def __init__(self) -> None:
        self._handlers: dict[S, StateHandlers] = {}
        self._state: S | None = None

    @property
    def state(self) -> S | None:
        return self._state

    def register(self, state: S, handlers: StateHandlers) -> None:
        self._handlers[state] = handlers

    def set_state(self, state: S) -> None:
        if state == self._state:
            return
        if state not in self._handlers:
            raise KeyError(f"Unregistered state: {state}")

        if self._state is not None:
            previous = self._handlers[self._state]
            if previous.on_exit:
                previous.on_exit()

        self._state = state

        current = self._handlers[state]
        if current.on_enter:
            current.on_enter()

    def tick(self) -> None:
        if self._state is None:
            return
        handlers = self._handlers[self._state]
        if handlers.on_tick:
            handlers.on_tick()
