from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from tift.demo import DEMO_GAME
from tift.messages import InputMessage, Log, OutputMessage, Print, Words
from tift.proxy.engine import DecoratedForwarder
from tift.storage import MemoryStore


class RecordingForwarder:
    """Forwarder that keeps everything sent or responded, optionally answering sends."""

    def __init__(self, on_send: Any = None) -> None:
        self.sent: list[InputMessage] = []
        self.responses: list[OutputMessage] = []
        self._on_send = on_send

    async def send(self, request: InputMessage) -> None:
        self.sent.append(request)
        if self._on_send is not None:
            self._on_send(request, self)

    def respond(self, response: OutputMessage) -> None:
        self.responses.append(response)

    def printed(self) -> list[str]:
        return [r.value for r in self.responses if isinstance(r, Print)]

    def logged(self, level: str | None = None) -> list[str]:
        return [r.message for r in self.responses if isinstance(r, Log) and level in (None, r.level)]

    def last_words(self) -> Words | None:
        words = [r for r in self.responses if isinstance(r, Words)]
        return words[-1] if words else None


@pytest.fixture
def recorder() -> RecordingForwarder:
    return RecordingForwarder()


@pytest.fixture
def forwarder(recorder: RecordingForwarder) -> DecoratedForwarder:
    return DecoratedForwarder(recorder)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def game_text() -> str:
    return DEMO_GAME.read_text(encoding="utf-8")


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 10, 19, 12, 30, 0)


@pytest.fixture
def make_recorder():
    return RecordingForwarder
