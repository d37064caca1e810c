"""One-shot options: perform an action and finish straight away."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

from tift.messages import InputMessage
from tift.proxy.engine import DecoratedForwarder
from tift.statemachine import MachineOps, State, StateMachine, Status, create_state_machine


def create_simple_option(
    name: str, action: Callable[[DecoratedForwarder], Awaitable[None] | None]
) -> StateMachine[InputMessage, DecoratedForwarder]:
    async def on_enter(forwarder: DecoratedForwarder, machine: MachineOps) -> None:
        try:
            result = action(forwarder)
            if inspect.isawaitable(result):
                await result
        finally:
            machine.set_status(Status.FINISHED)

    async def on_action(message: InputMessage, forwarder: DecoratedForwarder) -> None:
        await forwarder.send(message)

    return create_state_machine(name, (name, State(on_action=on_action, on_enter=on_enter)))
