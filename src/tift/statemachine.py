"""Generic named-state machine with enter/action handlers."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from loguru import logger

from tift.errors import StateMachineError

type StateName = str

TERMINATE: StateName = "__TERMINATE__"


class Status(StrEnum):
    """Machine should move from NOT_STARTED -> RUNNING -> FINISHED, and can then be restarted."""

    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"


class MachineOps(Protocol):
    def set_state(self, state: StateName) -> None: ...

    def set_status(self, status: Status) -> None: ...


type StateFn[TObj] = Callable[[TObj, MachineOps], Awaitable[None] | None]
type InputFn[TIn, TObj] = Callable[[TIn, TObj], Awaitable[StateName | None] | StateName | None]


@dataclass(frozen=True)
class State[TIn, TObj]:
    on_action: InputFn[TIn, TObj]
    on_enter: StateFn[TObj] | None = None
    on_leave: StateFn[TObj] | None = None


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class StateMachine[TIn, TObj]:
    """A set of named states, one of which handles input at a time.

    `on_action` returns the next state name, `None` to stay put, or `TERMINATE` to finish.
    """

    def __init__(self, initial_state: StateName, *states: tuple[StateName, State[TIn, TObj]]) -> None:
        self._initial_state = initial_state
        self._states: dict[StateName, State[TIn, TObj]] = dict(states)
        if initial_state not in self._states:
            raise StateMachineError(f"State machine does not contain initial state: [{initial_state}]")
        self._current_state: StateName | None = None
        self._status = Status.NOT_STARTED

    @property
    def status(self) -> Status:
        return self._status

    @property
    def current_state(self) -> StateName | None:
        return self._current_state

    def get_status(self) -> Status:
        return self._status

    def set_state(self, state: StateName) -> None:
        self._get_state(state)
        self._current_state = state

    def set_status(self, status: Status) -> None:
        self._status = Status(status)

    async def start(self, obj: TObj) -> None:
        if self._status is Status.RUNNING:
            raise StateMachineError("State machine is already running")
        self._status = Status.RUNNING
        self._current_state = None
        await self._switch_states(self._initial_state, obj)

    async def send(self, message: TIn, obj: TObj) -> None:
        if self._status is not Status.RUNNING:
            raise StateMachineError(f"State machine can't receive input it is {self._status}")
        if self._current_state is None:
            raise StateMachineError("State machine state is undefined")
        state = self._get_state(self._current_state)
        next_state = await _resolve(state.on_action(message, obj))
        if next_state == TERMINATE:
            self._status = Status.FINISHED
            await self._switch_states(None, obj)
        elif next_state is not None and next_state != self._current_state:
            await self._switch_states(next_state, obj)

    async def _switch_states(self, target: StateName | None, obj: TObj) -> None:
        if self._current_state is not None:
            state = self._get_state(self._current_state)
            if state.on_leave is not None:
                await _resolve(state.on_leave(obj, self))
        self._current_state = target
        if target is not None:
            logger.trace("statemachine.enter state={}", target)
            state = self._get_state(target)
            if state.on_enter is not None:
                await _resolve(state.on_enter(obj, self))

    def _get_state(self, name: StateName) -> State[TIn, TObj]:
        state = self._states.get(name)
        if state is None:
            raise StateMachineError(f"State machine does not contain state: [{name}]")
        return state


def create_state_machine[TIn, TObj](
    initial_state: StateName, *states: tuple[StateName, State[TIn, TObj]]
) -> StateMachine[TIn, TObj]:
    return StateMachine(initial_state, *states)
