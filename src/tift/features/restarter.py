"""Restart confirmation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from tift import messages as msg
from tift.messages import InputMessage
from tift.proxy.engine import DecoratedForwarder, handle_input
from tift.statemachine import TERMINATE, MachineOps, State, StateMachine, StateName, create_state_machine

CONFIRM = "restart"
CANCEL = "cancel"

PROMPT_MESSAGE = "All progress will be lost. Are you sure?"
RESTARTING_MESSAGE = "restarting"
CANCELLED_MESSAGE = "cancelled"


def create_restarter(
    restart_fn: Callable[[DecoratedForwarder], Awaitable[None]],
) -> StateMachine[InputMessage, DecoratedForwarder]:
    """Prompt the player to confirm a restart before calling `restart_fn`."""

    restart_options = [msg.word(value, value, "select") for value in (CONFIRM, CANCEL)]

    def on_enter(forwarder: DecoratedForwarder, _machine: MachineOps) -> None:
        forwarder.print(PROMPT_MESSAGE)
        forwarder.words([], restart_options)

    async def on_action(message: InputMessage, forwarder: DecoratedForwarder) -> StateName | None:
        finished = False

        async def confirm() -> None:
            nonlocal finished
            forwarder.print(RESTARTING_MESSAGE)
            await restart_fn(forwarder)
            finished = True

        def cancel() -> None:
            nonlocal finished
            forwarder.print(CANCELLED_MESSAGE)
            finished = True

        handler = handle_input(message)
        await handler.on_command([CONFIRM], confirm)
        await handler.on_command([CANCEL], cancel)
        await handler.on_any_command(lambda command: forwarder.warn("Unexpected command: " + " ".join(command)))
        await handler.on_get_words(lambda _command: forwarder.words([], restart_options))
        await handler.on_any(forwarder.send)
        return TERMINATE if finished else None

    return create_state_machine("prompt", ("prompt", State(on_action=on_action, on_enter=on_enter)))
