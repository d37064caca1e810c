"""Offer undo and redo as options whenever the engine allows them."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from tift import messages as msg
from tift.messages import InputMessage, OutputDispatcher, OutputMessage, StatusType, Word
from tift.proxy.duplex import Filters
from tift.proxy.engine import MessageForwarder, handle_input
from tift.utils import Ref

UNDO = "undo"
REDO = "redo"


class UndoRedoFilter:
    def __init__(
        self,
        status: Ref[StatusType],
        undo_fn: Callable[[], Awaitable[None]],
        redo_fn: Callable[[], Awaitable[None]],
    ) -> None:
        self._status = status
        self._undo_fn = undo_fn
        self._redo_fn = redo_fn

    @property
    def filters(self) -> Filters[InputMessage, OutputMessage]:
        return Filters(self.request_filter, self.response_filter)

    async def request_filter(self, message: InputMessage, forwarder: MessageForwarder) -> None:
        handler = handle_input(message)
        await handler.on_command([msg.option_id(UNDO)], self._undo_fn)
        await handler.on_command([msg.option_id(REDO)], self._redo_fn)
        await handler.on_any(forwarder.send)

    def response_filter(self, message: OutputMessage, forwarder: MessageForwarder) -> None:
        def inject(command: list[str], words: list[Word]) -> None:
            forwarder.respond(msg.words(command, [*words, *self._available()]))

        OutputDispatcher().on_words(inject).default(forwarder.respond)(message)

    def _available(self) -> list[Word]:
        status = self._status.current
        available: list[Word] = []
        if status.undoable:
            available.append(msg.option(UNDO))
        if status.redoable:
            available.append(msg.option(REDO))
        return available
