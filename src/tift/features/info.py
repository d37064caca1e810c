"""Render game info as log lines."""

from __future__ import annotations

from typing import Any

from tift import messages as msg
from tift.messages import InputMessage, OutputDispatcher, OutputMessage, Properties
from tift.proxy.duplex import Filters
from tift.proxy.engine import MessageForwarder

# Properties shown first, with their labels
DEFAULT_PROPS = {
    "name": "name",
    "author": "author",
    "gameId": "game id",
    "version": "game version",
    "engineVersion": "engine version",
}

SKIP_PROPS = ("id", "type", "options")


def info_lines(properties: Properties) -> list[str]:
    lines = [f"{label}:  {properties[key]}" for key, label in DEFAULT_PROPS.items() if key in properties]
    lines.extend(
        f"{key}:  {value}"
        for key, value in properties.items()
        if key not in DEFAULT_PROPS and key not in SKIP_PROPS
    )
    return lines


def print_info(forwarder: Any, properties: Properties) -> None:
    for line in info_lines(properties):
        forwarder.respond(msg.log("info", line))


class InfoFilter:
    """Turn Info responses into info-level log lines before they reach the client."""

    @property
    def filters(self) -> Filters[InputMessage, OutputMessage]:
        return Filters(response_filter=self.response_filter)

    def response_filter(self, message: OutputMessage, forwarder: MessageForwarder) -> None:
        OutputDispatcher().on_info(lambda properties: print_info(forwarder, properties)).default(forwarder.respond)(
            message
        )
