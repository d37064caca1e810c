"""Pause output for a fixed duration, with a "continue" command to skip ahead."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from loguru import logger

from tift import messages as msg
from tift.messages import InputMessage, OutputMessage, Word
from tift.proxy.duplex import Filters
from tift.proxy.engine import MessageForwarder, handle_input

CONTINUE = "continue"
CONTINUE_WORDS = [msg.word(CONTINUE, CONTINUE, "control")]


class PauseFilter:
    """Hold every response while paused and replay them, in order, on unpause.

    Requests still reach the engine while paused; only output is gated.
    """

    def __init__(
        self,
        set_words: Callable[[list[Word]], None],
        on_resume: Callable[[list[str]], Awaitable[None] | None],
    ) -> None:
        self._set_words = set_words
        self._on_resume = on_resume
        self._held: list[tuple[OutputMessage, MessageForwarder]] = []
        self._paused = False
        self._timer: asyncio.TimerHandle | None = None
        self._resume_task: asyncio.Task[None] | None = None

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def held_count(self) -> int:
        return len(self._held)

    @property
    def filters(self) -> Filters[InputMessage, OutputMessage]:
        return Filters(self.request_filter, self.response_filter)

    async def request_filter(self, message: InputMessage, forwarder: MessageForwarder) -> None:
        if not self._paused:
            await forwarder.send(message)
            return

        def continue_words(command: list[str]) -> None:
            continuing = command[:1] == [CONTINUE]
            forwarder.respond(msg.words(command, [] if continuing else CONTINUE_WORDS))

        handler = handle_input(message)
        await handler.on_command([CONTINUE], self.unpause)
        await handler.on_get_words(continue_words)
        await handler.on_any(forwarder.send)

    def response_filter(self, message: OutputMessage, forwarder: MessageForwarder) -> None:
        if self._paused:
            self._held.append((message, forwarder))
        else:
            forwarder.respond(message)

    def pause(self, duration_millis: int) -> None:
        """Start holding output; `unpause` is called automatically after the duration."""

        loop = asyncio.get_running_loop()
        self._cancel_timer()
        self._paused = True
        self._set_words(CONTINUE_WORDS)
        self._timer = loop.call_later(duration_millis / 1000, self._on_timeout)
        logger.debug("pause.start duration_ms={}", duration_millis)

    async def unpause(self) -> None:
        self._cancel_timer()
        self._paused = False
        held, self._held = self._held, []
        logger.debug("pause.end replayed={}", len(held))
        for message, forwarder in held:
            forwarder.respond(message)
        result = self._on_resume([])
        if inspect.isawaitable(result):
            await result

    def _on_timeout(self) -> None:
        self._timer = None
        self._resume_task = asyncio.ensure_future(self.unpause())
        self._resume_task.add_done_callback(self._on_resumed)

    def _on_resumed(self, task: asyncio.Task[None]) -> None:
        self._resume_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("pause.resume_failed")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def create_pause_filter(
    set_words: Callable[[list[Word]], None],
    on_resume: Callable[[list[str]], Awaitable[None] | None],
) -> PauseFilter:
    return PauseFilter(set_words, on_resume)
