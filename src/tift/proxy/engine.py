"""Engine-facing helpers built on the duplex proxy."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, Self

from loguru import logger

from tift import messages as msg
from tift.messages import Execute, GetWords, InputMessage, OutputDispatcher, OutputMessage, Word, WordType
from tift.proxy.duplex import DuplexProxy, Filters, Forwarder
from tift.statemachine import StateMachine, Status

type MessageForwarder = Forwarder[InputMessage, OutputMessage]
type EngineProxy = DuplexProxy[InputMessage, OutputMessage]

ENGINE_PROXY_NAME = "ENGINE"


class Engine(Protocol):
    """The rules engine boundary: consumes requests, emits responses through its output callback."""

    def send(self, message: InputMessage) -> Awaitable[None] | None: ...


class DecoratedForwarder:
    """Forwarder with helpers so plugged-in machines never build wire messages themselves."""

    def __init__(self, delegate: MessageForwarder) -> None:
        self.delegate = delegate

    async def send(self, request: InputMessage) -> None:
        await self.delegate.send(request)

    def respond(self, response: OutputMessage) -> None:
        self.delegate.respond(response)

    def print(self, message: str) -> None:
        self.respond(msg.print_(message))

    def info(self, message: str) -> None:
        self.respond(msg.log("info", message))

    def warn(self, warning: str) -> None:
        self.respond(msg.log("warn", warning))

    def error(self, error: str) -> None:
        self.respond(msg.log("error", error))

    def words(self, command: list[str], words: list[Word]) -> None:
        self.respond(msg.words(command, words))


async def _call(fn: Callable[..., Any], *args: Any) -> None:
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


class InputHandler:
    """Dispatch one request to the first matching handler.

    Call the `on_*` methods in priority order; once a handler has fired the rest are skipped.
    """

    def __init__(self, message: InputMessage) -> None:
        self.message = message
        self.matched = False

    async def on(self, predicate: Callable[[], bool], fn: Callable[[], Any]) -> Self:
        if not self.matched and predicate():
            self.matched = True
            await _call(fn)
        return self

    async def on_command(self, command: list[str], fn: Callable[[], Any]) -> Self:
        return await self.on(lambda: isinstance(self.message, Execute) and self.message.command == command, fn)

    async def on_any_command(self, fn: Callable[[list[str]], Any]) -> Self:
        message = self.message
        if isinstance(message, Execute):
            return await self.on(lambda: True, lambda: fn(message.command))
        return self

    async def on_get_words(self, fn: Callable[[list[str]], Any]) -> Self:
        message = self.message
        if isinstance(message, GetWords):
            return await self.on(lambda: True, lambda: fn(message.command))
        return self

    async def on_any(self, fn: Callable[[InputMessage], Any]) -> Self:
        return await self.on(lambda: True, lambda: fn(self.message))


def handle_input(message: InputMessage) -> InputHandler:
    return InputHandler(message)


def _last(command: list[str]) -> str | None:
    return command[-1] if command else None


def create_word_filter(
    word_type: WordType, name: str, action: Callable[[MessageForwarder], Any]
) -> Filters[InputMessage, OutputMessage]:
    """Intercept one meta command (eg. "restart") before it reaches the engine.

    The command is advertised by appending its word to every word list the engine returns.
    """

    command_id = f"__{word_type}({name})__"
    command_word = msg.word(command_id, name, word_type)

    async def request_filter(message: InputMessage, forwarder: MessageForwarder) -> None:
        if isinstance(message, Execute) and _last(message.command) == command_id:
            await _call(action, forwarder)
        elif isinstance(message, GetWords) and _last(message.command) == command_id:
            forwarder.respond(msg.words(message.command, []))
        else:
            await forwarder.send(message)

    def response_filter(message: OutputMessage, forwarder: MessageForwarder) -> None:
        (
            OutputDispatcher()
            .on_words(lambda command, words: forwarder.respond(msg.words(command, [*words, command_word])))
            .default(forwarder.respond)
        )(message)

    return Filters(request_filter, response_filter)


type MachineInfo = tuple[str, StateMachine[InputMessage, DecoratedForwarder]]


class StateMachineFilter:
    """Run one of several state machines, depending on which is active.

    With no active machine, requests pass straight through except trigger commands, which
    start the matching machine. While a machine runs it receives every request until it finishes.
    """

    def __init__(self, *machines: MachineInfo) -> None:
        self._machines: dict[str, StateMachine[InputMessage, DecoratedForwarder]] = {}
        self._triggers: dict[str, str] = {}
        self.commands: list[Word] = []
        for name, machine in machines:
            command = msg.option(name)
            self._machines[command.id] = machine
            self._triggers[name] = command.id
            self.commands.append(command)
        self._active: StateMachine[InputMessage, DecoratedForwarder] | None = None
        self._active_name: str | None = None

    @property
    def active(self) -> str | None:
        return self._active_name

    @property
    def filters(self) -> Filters[InputMessage, OutputMessage]:
        return Filters(self.request_filter, self.response_filter)

    async def request_filter(self, message: InputMessage, forwarder: MessageForwarder) -> None:
        decorated = DecoratedForwarder(forwarder)
        if self._active is not None and self._active.status is Status.RUNNING:
            await self._active.send(message, decorated)
            self._clear_if_finished()
            return

        self._active = None
        self._active_name = None
        if isinstance(message, Execute):
            trigger = self._find_trigger(message.command)
            if trigger is not None:
                await self._start(trigger, decorated)
                return
        elif isinstance(message, GetWords) and self._find_trigger(message.command) is not None:
            forwarder.respond(msg.words(message.command, []))
            return
        await forwarder.send(message)

    def response_filter(self, message: OutputMessage, forwarder: MessageForwarder) -> None:
        (
            OutputDispatcher()
            .on_words(lambda command, words: forwarder.respond(msg.words(command, [*words, *self.commands])))
            .default(forwarder.respond)
        )(message)

    async def _start(self, trigger: str, forwarder: DecoratedForwarder) -> None:
        machine = self._machines[trigger]
        self._active = machine
        self._active_name = trigger
        logger.debug("statemachine_filter.start trigger={}", trigger)
        await machine.start(forwarder)
        self._clear_if_finished()

    def _clear_if_finished(self) -> None:
        if self._active is not None and self._active.status is not Status.RUNNING:
            logger.debug("statemachine_filter.finish trigger={}", self._active_name)
            self._active = None
            self._active_name = None

    def _find_trigger(self, command: list[str]) -> str | None:
        if not command:
            return None
        last = command[-1]
        if last in self._machines:
            return last
        return self._triggers.get(" ".join(command))


def create_state_machine_filter(*machines: MachineInfo) -> Filters[InputMessage, OutputMessage]:
    return StateMachineFilter(*machines).filters


def create_engine_proxy(engine_builder: Callable[[Callable[[OutputMessage], None]], Engine]) -> EngineProxy:
    """Create a proxied engine so further filters can be attached with `insert_proxy`.

    `engine_builder` receives the callback the engine must call with each output message.
    """

    proxy: EngineProxy = DuplexProxy(ENGINE_PROXY_NAME)
    engine = engine_builder(proxy.respond)
    proxy.set_request_listener(engine.send)
    return proxy
