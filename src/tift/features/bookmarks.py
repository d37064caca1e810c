"""Named, compressed snapshots of the engine's save state."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from datetime import datetime

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from tift import messages as msg
from tift.errors import BookmarkError, CompressionError
from tift.files import FileExchange
from tift.messages import InputMessage, StatusType, Word
from tift.proxy.engine import DecoratedForwarder, handle_input
from tift.statemachine import (
    TERMINATE,
    MachineOps,
    State,
    StateMachine,
    StateName,
    Status,
    create_state_machine,
)
from tift.storage import KeyValueStore
from tift.utils import Ref, compress_and_encode, decode_and_decompress, wait_for_change

MAX_BOOKMARKS = 10
BOOKMARKS_PREFIX = "TIFT_BOOKMARKS"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

PROMPT = "prompt"
SELECTED = "bookmark-selected"

NEW = "new bookmark"
IMPORT = "import bookmark"
LOAD = "load"
DELETE = "delete"
EXPORT = "export"
CANCEL = "cancel"

INVALID_SELECTION = "Invalid bookmark selected"
_SELECT_ID_RE = re.compile(r"^__bookmark\((\d+)\)__$")

type GameLoader = Callable[[str, DecoratedForwarder], Awaitable[None]]


class Bookmark(BaseModel):
    name: str
    data: str


class ExportedBookmark(BaseModel):
    """File format used for export and import."""

    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(alias="gameId")
    name: str
    data: str


_BOOKMARK_LIST = TypeAdapter(list[Bookmark])


class BookmarkList:
    """Bounded, persisted list of bookmarks for one game."""

    def __init__(self, store: KeyValueStore, game_id: str, max_bookmarks: int = MAX_BOOKMARKS) -> None:
        self._store = store
        self.key = f"{BOOKMARKS_PREFIX}_{game_id}"
        self.max_bookmarks = max_bookmarks

    def items(self) -> list[Bookmark]:
        raw = self._store.get_item(self.key)
        if not raw:
            return []
        try:
            return _BOOKMARK_LIST.validate_json(raw)
        except ValidationError:
            logger.warning("bookmarks.corrupt key={}", self.key)
            return []

    def get(self, index: int) -> Bookmark | None:
        items = self.items()
        if 0 <= index < len(items):
            return items[index]
        return None

    def is_full(self) -> bool:
        return len(self.items()) >= self.max_bookmarks

    def add(self, bookmark: Bookmark) -> bool:
        """Append a bookmark; returns False, leaving the list untouched, when full."""

        items = self.items()
        if len(items) >= self.max_bookmarks:
            return False
        items.append(bookmark)
        self._save(items)
        return True

    def remove(self, index: int) -> Bookmark | None:
        items = self.items()
        if not 0 <= index < len(items):
            return None
        removed = items.pop(index)
        self._save(items)
        return removed

    def __len__(self) -> int:
        return len(self.items())

    def _save(self, items: list[Bookmark]) -> None:
        self._store.set_item(self.key, _BOOKMARK_LIST.dump_json(items).decode("utf-8"))


def parse_exported(content: str) -> ExportedBookmark:
    """Validate an exported bookmark file, including that its data decompresses."""

    try:
        exported = ExportedBookmark.model_validate_json(content)
        decode_and_decompress(exported.data)
    except (ValidationError, CompressionError) as exc:
        raise BookmarkError("Invalid bookmark file") from exc
    return exported


def select_id(index: int) -> str:
    return f"__bookmark({index})__"


def parse_select_id(word_id: str) -> int | None:
    match = _SELECT_ID_RE.match(word_id)
    return int(match.group(1)) if match else None


class BookmarkManager:
    """Create, load, delete, export and import bookmarks through a two-state machine.

    `snapshot` is the shared reference the client fills in whenever a SaveState response
    arrives; `status` holds the latest engine status, used to name new bookmarks.
    """

    def __init__(
        self,
        bookmarks: BookmarkList,
        snapshot: Ref[str | None],
        status: Ref[StatusType],
        game_loader: GameLoader,
        *,
        game_id: str,
        files: FileExchange | None = None,
        save_timeout: float = 0.1,
        poll_interval: float = 0.01,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.bookmarks = bookmarks
        self.snapshot = snapshot
        self.status = status
        self.game_id = game_id
        self._game_loader = game_loader
        self._files = files
        self._save_timeout = save_timeout
        self._poll_interval = poll_interval
        self._clock = clock
        self.selected: int | None = None
        self.machine: StateMachine[InputMessage, DecoratedForwarder] = create_state_machine(
            PROMPT,
            (PROMPT, State(on_enter=self._enter_prompt, on_action=self._prompt_action)),
            (SELECTED, State(on_enter=self._enter_selected, on_action=self._selected_action)),
        )

    # Operations

    async def create_bookmark(self, forwarder: DecoratedForwarder) -> bool:
        if self.bookmarks.is_full():
            forwarder.warn(self._limit_message())
            return False
        self.snapshot.current = None
        changed = wait_for_change(self.snapshot, self._save_timeout, self._poll_interval)
        try:
            await forwarder.send(msg.save(compress=True))
            if not await changed or not self.snapshot.current:
                forwarder.warn("Failed to create bookmark.")
                return False
            try:
                data = await asyncio.to_thread(compress_and_encode, self.snapshot.current)
            except CompressionError:
                forwarder.warn("Failed to compress bookmark data.")
                return False
            name = f"{self.status.current.title} - {self._clock().strftime(TIMESTAMP_FORMAT)}"
            if not self.bookmarks.add(Bookmark(name=name, data=data)):
                forwarder.warn(self._limit_message())
                return False
            logger.info("bookmarks.created name={} count={}", name, len(self.bookmarks))
            forwarder.print(f'Bookmark "{name}" created.')
            return True
        finally:
            changed.close()
            self.snapshot.current = None

    async def load_bookmark(self, index: int, forwarder: DecoratedForwarder) -> bool:
        bookmark = self.bookmarks.get(index)
        if bookmark is None:
            forwarder.warn(INVALID_SELECTION)
            return False
        try:
            data = await asyncio.to_thread(decode_and_decompress, bookmark.data)
        except CompressionError:
            forwarder.warn("Failed to load bookmark.")
            return False
        forwarder.print(f'Loading bookmark "{bookmark.name}"...')
        try:
            await self._game_loader(data, forwarder)
        except Exception:
            logger.opt(exception=True).warning("bookmarks.load_failed name={}", bookmark.name)
            forwarder.warn("Failed to load bookmark.")
            return False
        forwarder.print("Bookmark loaded.")
        return True

    def delete_bookmark(self, index: int, forwarder: DecoratedForwarder) -> bool:
        removed = self.bookmarks.remove(index)
        if removed is None:
            forwarder.warn(INVALID_SELECTION)
            return False
        logger.info("bookmarks.deleted name={}", removed.name)
        forwarder.print("Bookmark deleted.")
        return True

    def export_bookmark(self, index: int, forwarder: DecoratedForwarder) -> bool:
        if self._files is None:
            forwarder.warn("Export is not available.")
            return False
        bookmark = self.bookmarks.get(index)
        if bookmark is None:
            forwarder.warn(INVALID_SELECTION)
            return False
        exported = ExportedBookmark(game_id=self.game_id, name=bookmark.name, data=bookmark.data)
        try:
            self._files.download_text_file(f"{bookmark.name}.json", exported.model_dump_json(by_alias=True))
        except OSError:
            logger.opt(exception=True).warning("bookmarks.export_failed name={}", bookmark.name)
            forwarder.warn("Failed to export bookmark.")
            return False
        forwarder.print(f'Bookmark "{bookmark.name}" exported.')
        return True

    async def import_bookmark(self, forwarder: DecoratedForwarder) -> bool:
        if self._files is None:
            forwarder.warn("Import is not available.")
            return False
        if self.bookmarks.is_full():
            forwarder.warn(self._limit_message())
            return False
        try:
            content = await self._files.prompt_for_text_file("Import bookmark", [".json"])
        except (OSError, ValueError):
            forwarder.warn("No bookmark file imported.")
            return False
        try:
            imported = parse_exported(content)
        except BookmarkError:
            forwarder.warn("Invalid bookmark file.")
            return False
        if imported.game_id != self.game_id:
            forwarder.warn("Bookmark is for a different game.")
            return False
        if not self.bookmarks.add(Bookmark(name=imported.name, data=imported.data)):
            forwarder.warn(self._limit_message())
            return False
        forwarder.print(f'Bookmark "{imported.name}" imported.')
        return True

    # Machine states

    def _prompt_words(self) -> list[Word]:
        options = [msg.word(NEW, NEW, "select")]
        if self._files is not None:
            options.append(msg.word(IMPORT, IMPORT, "select"))
        options.append(msg.word(CANCEL, CANCEL, "select"))
        selectable = [msg.word(select_id(i), b.name, "select") for i, b in enumerate(self.bookmarks.items())]
        return [*selectable, *options]

    def _selected_words(self) -> list[Word]:
        names = [LOAD, DELETE, *([EXPORT] if self._files is not None else []), CANCEL]
        return [msg.word(name, name, "select") for name in names]

    def _enter_prompt(self, forwarder: DecoratedForwarder, _machine: MachineOps) -> None:
        self.selected = None
        count = len(self.bookmarks)
        if count:
            forwarder.print(f"{count} of {self.bookmarks.max_bookmarks} bookmarks saved. Select one, or create a new one.")
        else:
            forwarder.print("No bookmarks saved.")
        forwarder.words([], self._prompt_words())

    async def _prompt_action(self, message: InputMessage, forwarder: DecoratedForwarder) -> StateName | None:
        next_state: StateName | None = None

        async def create() -> None:
            nonlocal next_state
            await self.create_bookmark(forwarder)
            next_state = TERMINATE

        async def import_() -> None:
            nonlocal next_state
            await self.import_bookmark(forwarder)
            next_state = TERMINATE

        def cancel() -> None:
            nonlocal next_state
            forwarder.print("cancelled")
            next_state = TERMINATE

        def select(command: list[str]) -> None:
            nonlocal next_state
            index = self._find_selection(command)
            if index is None:
                forwarder.warn("Unexpected command: " + " ".join(command))
            elif self.bookmarks.get(index) is None:
                forwarder.warn(INVALID_SELECTION)
                next_state = TERMINATE
            else:
                self.selected = index
                next_state = SELECTED

        handler = handle_input(message)
        await handler.on_command([NEW], create)
        await handler.on_command([IMPORT], import_)
        await handler.on_command([CANCEL], cancel)
        await handler.on_any_command(select)
        await handler.on_get_words(lambda _command: forwarder.words([], self._prompt_words()))
        await handler.on_any(forwarder.send)
        return next_state

    def _enter_selected(self, forwarder: DecoratedForwarder, machine: MachineOps) -> None:
        bookmark = self.bookmarks.get(self.selected) if self.selected is not None else None
        if bookmark is None:
            forwarder.warn(INVALID_SELECTION)
            machine.set_status(Status.FINISHED)
            return
        forwarder.print(f'Selected bookmark "{bookmark.name}".')
        forwarder.words([], self._selected_words())

    async def _selected_action(self, message: InputMessage, forwarder: DecoratedForwarder) -> StateName | None:
        finished = False
        index = self.selected if self.selected is not None else -1

        async def load() -> None:
            nonlocal finished
            await self.load_bookmark(index, forwarder)
            finished = True

        def delete() -> None:
            nonlocal finished
            self.delete_bookmark(index, forwarder)
            finished = True

        def export() -> None:
            nonlocal finished
            self.export_bookmark(index, forwarder)
            finished = True

        def cancel() -> None:
            nonlocal finished
            forwarder.print("cancelled")
            finished = True

        handler = handle_input(message)
        await handler.on_command([LOAD], load)
        await handler.on_command([DELETE], delete)
        if self._files is not None:
            await handler.on_command([EXPORT], export)
        await handler.on_command([CANCEL], cancel)
        await handler.on_any_command(lambda command: forwarder.warn("Unexpected command: " + " ".join(command)))
        await handler.on_get_words(lambda _command: forwarder.words([], self._selected_words()))
        await handler.on_any(forwarder.send)
        return TERMINATE if finished else None

    def _find_selection(self, command: list[str]) -> int | None:
        if len(command) != 1:
            return None
        index = parse_select_id(command[0])
        if index is not None:
            return index
        for i, bookmark in enumerate(self.bookmarks.items()):
            if bookmark.name == command[0]:
                return i
        return None

    def _limit_message(self) -> str:
        return f"Bookmark limit of {self.bookmarks.max_bookmarks} reached. Delete a bookmark first."
