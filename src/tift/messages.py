"""Request and response messages exchanged between the client and the engine."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Self

from tift.errors import UnknownMessageError

type WordType = Literal["word", "option", "control", "select"]
type LogLevel = Literal["error", "warn", "info", "debug", "trace"]
type Properties = dict[str, Any]


@dataclass(frozen=True)
class Word:
    """One selectable word. `id` is sent back to the engine, `value` is shown to the player."""

    id: str
    value: str
    type: WordType = "word"
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class StatusType:
    title: str = ""
    undoable: bool = False
    redoable: bool = False
    properties: Properties = field(default_factory=dict)


# Requests: client -> engine


@dataclass(frozen=True)
class GetWords:
    type: ClassVar[str] = "GetWords"
    command: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Execute:
    type: ClassVar[str] = "Execute"
    command: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class GetStatus:
    type: ClassVar[str] = "GetStatus"


@dataclass(frozen=True)
class Load:
    type: ClassVar[str] = "Load"
    data: str = ""


@dataclass(frozen=True)
class Save:
    type: ClassVar[str] = "Save"
    compress: bool = False


@dataclass(frozen=True)
class Start:
    type: ClassVar[str] = "Start"
    save_data: str | None = None


@dataclass(frozen=True)
class Config:
    type: ClassVar[str] = "Config"
    properties: dict[str, bool | int | float | str] = field(default_factory=dict)


@dataclass(frozen=True)
class Reset:
    type: ClassVar[str] = "Reset"


@dataclass(frozen=True)
class Undo:
    type: ClassVar[str] = "Undo"


@dataclass(frozen=True)
class Redo:
    type: ClassVar[str] = "Redo"


@dataclass(frozen=True)
class GetInfo:
    type: ClassVar[str] = "GetInfo"


type InputMessage = GetWords | Execute | GetStatus | Load | Save | Start | Config | Reset | Undo | Redo | GetInfo


# Control directives carried by a Control response


@dataclass(frozen=True)
class Pause:
    type: ClassVar[str] = "pause"
    duration_millis: int = 0
    interruptable: bool = True


@dataclass(frozen=True)
class Alert:
    type: ClassVar[str] = "alert"
    message: str = ""


type ControlType = Pause | Alert


# Responses: engine -> client


@dataclass(frozen=True)
class Print:
    type: ClassVar[str] = "Print"
    value: str = ""
    tag: str | None = None


@dataclass(frozen=True)
class Words:
    type: ClassVar[str] = "Words"
    command: list[str] = field(default_factory=list)
    words: list[Word] = field(default_factory=list)


@dataclass(frozen=True)
class Status:
    type: ClassVar[str] = "Status"
    status: StatusType = field(default_factory=StatusType)


@dataclass(frozen=True)
class SaveState:
    type: ClassVar[str] = "SaveState"
    state: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Log:
    type: ClassVar[str] = "Log"
    level: LogLevel = "info"
    message: str = ""


@dataclass(frozen=True)
class Control:
    type: ClassVar[str] = "Control"
    value: ControlType = field(default_factory=Alert)


@dataclass(frozen=True)
class Info:
    type: ClassVar[str] = "Info"
    properties: Properties = field(default_factory=dict)


type OutputMessage = Print | Words | Status | SaveState | Log | Control | Info

OUTPUT_TYPES: tuple[type, ...] = (Print, Words, Status, SaveState, Log, Control, Info)


# Constructors


def get_words(command: list[str] | None = None) -> GetWords:
    return GetWords(list(command or []))


def execute(command: list[str]) -> Execute:
    return Execute(list(command))


def get_status() -> GetStatus:
    return GetStatus()


def load(data: str) -> Load:
    return Load(data)


def save(compress: bool = False) -> Save:
    return Save(compress)


def start(save_data: str | None = None) -> Start:
    return Start(save_data)


def config(properties: dict[str, bool | int | float | str]) -> Config:
    return Config(dict(properties))


def reset() -> Reset:
    return Reset()


def undo() -> Undo:
    return Undo()


def redo() -> Redo:
    return Redo()


def get_info() -> GetInfo:
    return GetInfo()


def print_(value: object, tag: str | None = None) -> Print:
    return Print(str(value), tag)


def words(command: list[str], word_list: list[Word]) -> Words:
    return Words(list(command), list(word_list))


def status(status_value: StatusType) -> Status:
    return Status(status_value)


def log(level: LogLevel, message: str) -> Log:
    return Log(level, message)


def pause(duration_millis: int, interruptable: bool = True) -> Control:
    return Control(Pause(duration_millis, interruptable))


def alert(message: str) -> Control:
    return Control(Alert(message))


def word(id: str, value: str, type: WordType = "word") -> Word:
    return Word(id=id, value=value, type=type)


def option_id(name: str) -> str:
    """Id used for option words so they never clash with engine vocabulary."""

    return f"__option({name})__"


def option(name: str) -> Word:
    return Word(id=option_id(name), value=name, type="option")


def is_output(message: object) -> bool:
    return isinstance(message, OUTPUT_TYPES)


class OutputDispatcher:
    """Route output messages to per-type handlers.

    Messages without a handler go to the default handler, or are dropped when none is set.
    Anything that is not an output message is a protocol error.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, Callable[[Any], None]] = {}
        self._default: Callable[[OutputMessage], None] | None = None

    def on_words(self, handler: Callable[[list[str], list[Word]], None]) -> Self:
        self._handlers[Words] = lambda message: handler(message.command, message.words)
        return self

    def on_status(self, handler: Callable[[StatusType], None]) -> Self:
        self._handlers[Status] = lambda message: handler(message.status)
        return self

    def on_info(self, handler: Callable[[Properties], None]) -> Self:
        self._handlers[Info] = lambda message: handler(message.properties)
        return self

    def default(self, handler: Callable[[OutputMessage], None]) -> Self:
        self._default = handler
        return self

    def __call__(self, message: OutputMessage) -> None:
        if not is_output(message):
            raise UnknownMessageError(message)
        handler = self._handlers.get(type(message))
        if handler is not None:
            handler(message)
        elif self._default is not None:
            self._default(message)
