from __future__ import annotations

import io

from rich.console import Console

from tift.cli.render import Renderer
from tift.session import MessageEntry
from tift.storage import UISettings


def _renderer() -> tuple[Renderer, io.StringIO]:
    buffer = io.StringIO()
    return Renderer(Console(file=buffer, width=100, color_system=None)), buffer


def test_entries_render_by_kind() -> None:
    renderer, buffer = _renderer()
    renderer.ui_settings = UISettings(ui_type="normal")

    renderer.entry(MessageEntry(kind="command", text="get ball"))
    renderer.entry(MessageEntry(kind="print", text="You pick up the [ball]."))
    renderer.entry(MessageEntry(kind="log", text="careful", level="warn"))

    assert buffer.getvalue().splitlines() == ["> get ball", "You pick up the [ball].", "careful"]


def test_bubble_ui_indents_game_text() -> None:
    renderer, buffer = _renderer()

    renderer.entry(MessageEntry(kind="print", text="A damp cave."))

    assert buffer.getvalue() == "  A damp cave.\n"
