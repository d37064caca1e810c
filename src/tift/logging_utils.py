"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Literal

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

LogProfile = Literal["default", "play"]

# RichHandler renders the level column itself in the play profile.
_PROFILE_FORMATS: dict[LogProfile, str] = {
    "play": "<dim>{name}</dim> {message}",
    "default": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}",
}
_CONFIGURED: tuple[LogProfile, str] | None = None


def _build_play_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def resolve_level(level: str | None = None) -> str:
    return (level or os.getenv("TIFT_LOG_LEVEL", "INFO")).upper()


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Route loguru output for `profile`.

    Repeating a call with the same profile and level leaves any sinks added since in place.
    """

    global _CONFIGURED
    resolved = resolve_level(level)
    if _CONFIGURED == (profile, resolved):
        return

    logger.remove()
    sink = _build_play_handler() if profile == "play" else sys.stderr
    logger.add(
        sink,
        level=resolved,
        format=_PROFILE_FORMATS[profile],
        colorize=False if profile == "play" else None,
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED = (profile, resolved)
    logger.debug("logging.configured profile={} level={}", profile, resolved)
