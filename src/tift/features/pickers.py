"""Option pickers: colour scheme, UI scheme and developer mode."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

from tift import messages as msg
from tift.messages import InputMessage, WordType
from tift.proxy.engine import DecoratedForwarder, handle_input
from tift.statemachine import TERMINATE, MachineOps, State, StateMachine, StateName, create_state_machine

CANCEL = "cancel"
CANCELLED_MESSAGE = "cancelled"


def create_option_picker[V](
    prompt: str,
    options: dict[str, V],
    on_pick: Callable[[V], Awaitable[None] | None],
    change_message: Callable[[str], str],
    word_type: WordType = "select",
) -> StateMachine[InputMessage, DecoratedForwarder]:
    """Offer a fixed set of choices plus cancel; picking one calls `on_pick` with its value."""

    choice_words = [msg.word(name, name, word_type) for name in options]

    def on_enter(forwarder: DecoratedForwarder, _machine: MachineOps) -> None:
        forwarder.print(prompt)
        forwarder.words([], choice_words)

    async def on_action(message: InputMessage, forwarder: DecoratedForwarder) -> StateName | None:
        picked: list[str] = []

        def choose(name: str) -> Callable[[], Awaitable[None]]:
            async def _choose() -> None:
                forwarder.print(change_message(name))
                result = on_pick(options[name])
                if inspect.isawaitable(result):
                    await result
                picked.append(name)

            return _choose

        def cancel() -> None:
            forwarder.print(CANCELLED_MESSAGE)
            picked.append(CANCEL)

        handler = handle_input(message)
        for name in options:
            await handler.on_command([name], choose(name))
        await handler.on_command([CANCEL], cancel)
        await handler.on_any_command(lambda command: forwarder.warn("Unexpected command: " + " ".join(command)))
        await handler.on_get_words(lambda _command: forwarder.words([], choice_words))
        await handler.on_any(forwarder.send)
        return TERMINATE if picked else None

    return create_state_machine("prompt", ("prompt", State(on_action=on_action, on_enter=on_enter)))


def create_colour_scheme_picker(
    scheme_changer: Callable[[str], Awaitable[None] | None],
) -> StateMachine[InputMessage, DecoratedForwarder]:
    return create_option_picker(
        "Select a colour scheme: light, dark",
        {"light": "light", "dark": "dark"},
        scheme_changer,
        lambda scheme: f"Changing to the {scheme} colour scheme.",
        word_type="option",
    )


def create_ui_scheme_picker(
    scheme_changer: Callable[[str], Awaitable[None] | None],
) -> StateMachine[InputMessage, DecoratedForwarder]:
    return create_option_picker(
        "Select a UI scheme: bubble, normal",
        {"bubble": "bubble", "normal": "normal"},
        scheme_changer,
        lambda scheme: f"Changing to the {scheme} UI scheme.",
    )


def create_dev_mode_picker(
    dev_mode_changer: Callable[[bool], Awaitable[None] | None],
) -> StateMachine[InputMessage, DecoratedForwarder]:
    return create_option_picker(
        "Select a developer mode: on, off",
        {"on": True, "off": False},
        dev_mode_changer,
        lambda mode: f"Switching developer mode {mode}.",
    )
