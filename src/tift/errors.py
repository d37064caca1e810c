"""Application-level exception types for tift."""

from __future__ import annotations


class TiftError(Exception):
    """Base exception for tift."""


class ConfigurationError(TiftError):
    """Base exception for configuration and startup validation errors."""


class ProxyError(TiftError):
    """Base exception for message pipeline errors."""


class ListenerNotSetError(ProxyError):
    """Raised when a message reaches an edge of the pipeline with no listener bound."""

    def __init__(self, proxy_name: str, edge: str) -> None:
        super().__init__(f"Proxy [{proxy_name}] {edge} listener is undefined")
        self.proxy_name = proxy_name
        self.edge = edge


class UnknownMessageError(ProxyError):
    """Raised when a consumer receives a message tag it does not understand."""

    def __init__(self, message: object) -> None:
        tag = getattr(message, "type", type(message).__name__)
        super().__init__(f"Unsupported message type: {tag}")
        self.message = message


class StateMachineError(TiftError):
    """Raised on invalid state machine usage."""


class CompressionError(TiftError):
    """Raised when snapshot data can not be compressed or decompressed."""


class BookmarkError(TiftError):
    """Raised when bookmark data is malformed."""


class GameDefinitionError(TiftError):
    """Raised when a game file can not be parsed or validated."""
