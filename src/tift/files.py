"""Exporting and importing text files on behalf of features."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

from loguru import logger

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._ -]+")


class FileExchange(Protocol):
    def download_text_file(self, filename: str, content: str) -> None: ...

    async def prompt_for_text_file(self, title: str, extensions: list[str]) -> str: ...


def safe_filename(name: str) -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("_", name).strip(" .")
    return cleaned or "export"


class LocalFileExchange:
    """Write exports into a directory; ask the player for a path to import."""

    def __init__(self, directory: Path, ask: Callable[[str], Awaitable[str]]) -> None:
        self.directory = directory
        self._ask = ask

    def download_text_file(self, filename: str, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / safe_filename(filename)
        target.write_text(content, encoding="utf-8")
        logger.info("files.exported path={}", target)

    async def prompt_for_text_file(self, title: str, extensions: list[str]) -> str:
        answer = (await self._ask(f"{title} ({', '.join(extensions)}): ")).strip()
        if not answer:
            raise FileNotFoundError("No file selected")
        path = Path(answer).expanduser()
        if not path.is_absolute():
            path = self.directory / path
        if extensions and path.suffix not in extensions:
            raise ValueError(f"Unsupported file type: {path.suffix or '(none)'}")
        return path.read_text(encoding="utf-8")
