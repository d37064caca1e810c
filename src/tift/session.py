"""One game being played: the engine, its filter pipeline and the client-side state."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Literal

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from tift import messages as msg
from tift.config import Settings
from tift.demo.engine import create_demo_engine
from tift.errors import UnknownMessageError
from tift.features.bookmarks import BookmarkList, BookmarkManager
from tift.features.info import InfoFilter, info_lines
from tift.features.inventory import InventoryFilter
from tift.features.pauser import PauseFilter
from tift.features.pickers import create_colour_scheme_picker, create_dev_mode_picker, create_ui_scheme_picker
from tift.features.restarter import create_restarter
from tift.features.simple import create_simple_option
from tift.features.undoredo import UndoRedoFilter
from tift.files import FileExchange
from tift.messages import (
    Alert,
    Control,
    Info,
    InputMessage,
    Log,
    OutputMessage,
    Pause,
    Print,
    SaveState,
    Status,
    StatusType,
    Word,
    Words,
)
from tift.proxy.engine import DecoratedForwarder, Engine, EngineProxy, StateMachineFilter, create_engine_proxy
from tift.storage import KeyValueStore, create_storage, load_ui_settings, save_ui_settings
from tift.utils import Ref

type EngineBuilder = Callable[[Callable[[OutputMessage], None]], Engine]

HIDDEN_LOG_LEVELS = ("debug", "trace")


class MessageEntry(BaseModel):
    """One line of the scroll-back."""

    kind: Literal["print", "log", "command", "alert"]
    text: str
    level: str | None = None


_ENTRIES = TypeAdapter(list[MessageEntry])


class GameSession:
    """Client end of the pipeline.

    Requests go in through `start`, `submit`, `execute` and friends; every response that
    survives the filters lands in `_on_response`, which updates the client state.
    """

    def __init__(
        self,
        game_text: str,
        game_id: str,
        store: KeyValueStore,
        *,
        settings: Settings | None = None,
        engine_builder: EngineBuilder = create_demo_engine,
        files: FileExchange | None = None,
        on_entry: Callable[[MessageEntry], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings or Settings()
        self.game_text = game_text
        self.game_id = game_id
        self.store = store
        self.storage = create_storage(store, game_id)
        self.ui_settings = load_ui_settings(store)
        self.messages: list[MessageEntry] = []
        self.words: list[Word] = []
        self.status: Ref[StatusType] = Ref(StatusType())
        self.snapshot: Ref[str | None] = Ref(None)
        self._on_entry = on_entry
        self.engine: Engine | None = None

        self.pauser = PauseFilter(self._set_words, self.get_words)
        self.bookmarks = BookmarkManager(
            BookmarkList(store, game_id, self.settings.max_bookmarks),
            self.snapshot,
            self.status,
            self.load_game,
            game_id=game_id,
            files=files,
            save_timeout=self.settings.save_timeout_ms / 1000,
            poll_interval=self.settings.save_poll_ms / 1000,
            clock=clock,
        )
        self.option_items = StateMachineFilter(
            ("restart", create_restarter(self.restart)),
            ("colours", create_colour_scheme_picker(self._set_colour_scheme)),
            ("ui", create_ui_scheme_picker(self._set_ui_type)),
            ("devmode", create_dev_mode_picker(self._set_dev_mode)),
            ("clear", create_simple_option("clear", self._clear)),
            ("info", create_simple_option("info", lambda forwarder: forwarder.send(msg.get_info()))),
            ("bookmark manager", self.bookmarks.machine),
        )

        self.proxy: EngineProxy = create_engine_proxy(self._build_engine(engine_builder))
        self.proxy.set_response_listener(self._on_response)
        self.proxy.insert_proxy("pauser", self.pauser.filters)
        self.proxy.insert_proxy("optionItems", self.option_items.filters)
        self.proxy.insert_proxy("undoredo", UndoRedoFilter(self.status, self.undo, self.redo).filters)
        self.proxy.insert_proxy("info", InfoFilter().filters)
        self.proxy.insert_proxy("inventory", InventoryFilter().filters)

    def _build_engine(self, engine_builder: EngineBuilder) -> EngineBuilder:
        def build(output: Callable[[OutputMessage], None]) -> Engine:
            self.engine = engine_builder(output)
            return self.engine

        return build

    # Requests

    async def send(self, message: InputMessage) -> None:
        await self.proxy.send(message)

    async def start(self) -> None:
        self._restore_messages()
        await self._reload(self.send, self.storage.load_game())
        await self.get_words([])
        logger.info("session.started game={} messages={}", self.game_id, len(self.messages))

    async def get_words(self, command: list[str]) -> None:
        await self.send(msg.get_words(command))

    async def execute(self, command: list[str], text: str | None = None) -> None:
        self._append(MessageEntry(kind="command", text=text if text is not None else " ".join(command)))
        await self.send(msg.execute(command))
        await self.send(msg.get_status())
        await self.send(msg.save())
        await self.get_words([])

    async def submit(self, text: str) -> bool:
        """Match typed text against the offered words, one word at a time, then execute it.

        Returns False, without executing anything, if the text does not spell a command.
        """

        command = await self.resolve(text)
        if command is None:
            logger.debug("session.unmatched text={!r}", text)
            await self.get_words([])
            return False
        await self.execute(command, " ".join(text.split()))
        return True

    async def resolve(self, text: str) -> list[str] | None:
        remaining = " ".join(text.split())
        command: list[str] = []
        await self.get_words(command)
        while remaining:
            word = _match_word(self.words, remaining)
            if word is None:
                return None
            command.append(word.id)
            remaining = remaining[len(word.value) :].strip()
            if remaining:
                await self.get_words(command)
        return command or None

    async def undo(self) -> None:
        await self.send(msg.undo())
        await self.send(msg.get_status())
        await self.send(msg.save())

    async def redo(self) -> None:
        await self.send(msg.redo())
        await self.send(msg.get_status())
        await self.send(msg.save())

    async def restart(self, forwarder: DecoratedForwarder) -> None:
        self.storage.remove_game()
        await self._reload(forwarder.send, None)

    async def load_game(self, data: str, forwarder: DecoratedForwarder) -> None:
        await self._reload(forwarder.send, data)
        await forwarder.send(msg.save())

    async def _reload(self, send: Callable[[InputMessage], Awaitable[None]], save_data: str | None) -> None:
        await send(msg.config(self.settings.engine_properties()))
        await send(msg.reset())
        await send(msg.load(self.game_text))
        await send(msg.start(save_data))
        await send(msg.get_status())

    # Responses

    def _on_response(self, message: OutputMessage) -> None:
        match message:
            case Print(value=value):
                self._append(MessageEntry(kind="print", text=str(value)))
            case Log(level=level, message=text):
                if level in HIDDEN_LOG_LEVELS and not self.ui_settings.dev_mode:
                    return
                self._append(MessageEntry(kind="log", text=text, level=level))
            case Words(words=words):
                self._set_words(words)
            case Status(status=status):
                self.status.current = status
            case SaveState(state=state):
                snapshot = json.dumps(state, sort_keys=True)
                self.snapshot.current = snapshot
                self.storage.save_game(snapshot)
            case Control(value=Pause(duration_millis=duration)):
                self.pauser.pause(duration)
            case Control(value=Alert(message=text)):
                self._append(MessageEntry(kind="alert", text=text))
            case Info(properties=properties):
                for line in info_lines(properties):
                    self._append(MessageEntry(kind="log", text=line, level="info"))
            case _:
                raise UnknownMessageError(message)

    def _set_words(self, words: list[Word]) -> None:
        self.words = list(words)

    def _append(self, entry: MessageEntry) -> None:
        self.messages.append(entry)
        limit = self.settings.scroll_back
        del self.messages[: max(len(self.messages) - limit, 0)]
        self.storage.save_messages(_ENTRIES.dump_json(self.messages).decode("utf-8"))
        if self._on_entry is not None:
            self._on_entry(entry)

    def _restore_messages(self) -> None:
        raw = self.storage.load_messages()
        if not raw:
            return
        try:
            entries = _ENTRIES.validate_json(raw)
        except ValidationError:
            logger.warning("session.bad_scroll_back game={}", self.game_id)
            return
        self.messages = entries[max(len(entries) - self.settings.scroll_back, 0) :]
        if self._on_entry is not None:
            for entry in self.messages:
                self._on_entry(entry)

    # Option actions

    def _clear(self, forwarder: DecoratedForwarder) -> None:
        self.messages = []
        self.storage.remove_messages()

    def _set_colour_scheme(self, scheme: str) -> None:
        self._update_ui_settings(colour_scheme=scheme)

    def _set_ui_type(self, ui_type: str) -> None:
        self._update_ui_settings(ui_type=ui_type)

    def _set_dev_mode(self, dev_mode: bool) -> None:
        self._update_ui_settings(dev_mode=dev_mode)

    def _update_ui_settings(self, **changes: object) -> None:
        self.ui_settings = self.ui_settings.model_copy(update=changes)
        save_ui_settings(self.store, self.ui_settings)
        logger.info("session.ui_settings {}", self.ui_settings.model_dump())


def _match_word(words: list[Word], text: str) -> Word | None:
    """Longest word value that `text` starts with, on a word boundary."""

    candidates = [
        word for word in words if word.value and (text == word.value or text.startswith(word.value + " "))
    ]
    return max(candidates, key=lambda word: len(word.value), default=None)
