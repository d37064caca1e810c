"""Inject the player's inventory into the top-level word list."""

from __future__ import annotations

from typing import Any

from tift import messages as msg
from tift.messages import InputMessage, OutputDispatcher, OutputMessage, StatusType, Word
from tift.proxy.duplex import Filters
from tift.proxy.engine import MessageForwarder

HIDDEN_WORDS = ("inventory",)


def _to_word(item: Any) -> Word:
    if isinstance(item, Word):
        return item
    if isinstance(item, dict):
        return msg.word(str(item.get("id", "")), str(item.get("value", item.get("id", ""))), item.get("type", "word"))
    return msg.word(str(item), str(item))


class InventoryFilter:
    """Capture the inventory from status responses and insert it into word responses."""

    def __init__(self) -> None:
        self.inventory: list[Word] = []

    @property
    def filters(self) -> Filters[InputMessage, OutputMessage]:
        return Filters(response_filter=self.response_filter)

    def response_filter(self, message: OutputMessage, forwarder: MessageForwarder) -> None:
        def capture(status: StatusType) -> None:
            items = status.properties.get("inventory")
            if items is not None:
                self.inventory = [_to_word(item) for item in items]
            forwarder.respond(msg.status(status))

        def inject(command: list[str], words: list[Word]) -> None:
            # "?" is a wildcard placeholder, not a chosen word
            chosen = [part for part in command if part != "?"]
            if not chosen:
                words = [*(w for w in words if w.id not in HIDDEN_WORDS), *self.inventory]
            forwarder.respond(msg.words(command, words))

        OutputDispatcher().on_status(capture).on_words(inject).default(forwarder.respond)(message)
