"""Snapshot compression and shared mutable references."""

from __future__ import annotations

import asyncio
import base64
import binascii
import gzip
import time
import zlib
from collections.abc import Coroutine
from typing import Any

from tift.errors import CompressionError


class Ref[T]:
    """Mutable holder shared between the client and the features that wait on it."""

    def __init__(self, current: T) -> None:
        self.current = current

    def __repr__(self) -> str:
        return f"Ref({self.current!r})"


def wait_for_change[T](ref: Ref[T], timeout: float = 0.1, interval: float = 0.01) -> Coroutine[Any, Any, bool]:
    """Poll `ref` until its value changes or `timeout` seconds pass.

    The original value is captured when this is called, not when the result is awaited,
    so a change made in between still counts. Resolves True only if the new value is truthy.
    """

    original = ref.current
    started = time.monotonic()

    async def _poll() -> bool:
        while True:
            # identity, so a fresh but equal snapshot still counts
            if ref.current is not original:
                return bool(ref.current)
            if time.monotonic() - started > timeout:
                return False
            await asyncio.sleep(interval)

    return _poll()


def compress_and_encode(data: str) -> str:
    """Gzip a string and return it base64 encoded."""

    try:
        return base64.b64encode(gzip.compress(data.encode("utf-8"))).decode("ascii")
    except (UnicodeEncodeError, OSError) as exc:
        raise CompressionError("Failed to compress data") from exc


def decode_and_decompress(encoded: str) -> str:
    """Reverse of `compress_and_encode`."""

    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
        return gzip.decompress(raw).decode("utf-8")
    except (binascii.Error, UnicodeError, OSError, EOFError, zlib.error) as exc:
        raise CompressionError("Failed to decompress data") from exc
