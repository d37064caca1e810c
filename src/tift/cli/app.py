"""CLI main module for tift."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger

from tift import messages as msg
from tift.cli.render import Renderer, create_cli_renderer
from tift.config import Settings, load_settings
from tift.demo import DEMO_GAME
from tift.demo.engine import GameDefinition, create_demo_engine, parse_game
from tift.errors import ConfigurationError, GameDefinitionError
from tift.features.bookmarks import BookmarkList
from tift.features.info import InfoFilter
from tift.files import LocalFileExchange
from tift.logging_utils import configure_logging
from tift.messages import Log, OutputMessage
from tift.proxy.engine import create_engine_proxy
from tift.session import GameSession
from tift.storage import FileStore, load_ui_settings

QUIT_COMMANDS = ("quit", "exit", "q")

app = typer.Typer(
    name="tift",
    help="Play interactive fiction in the terminal.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _exit_with_error(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _settings(home: Path | None) -> Settings:
    try:
        return load_settings(home)
    except ConfigurationError as exc:
        _exit_with_error(str(exc))


def _read_game(game: Path | None, settings: Settings) -> tuple[str, GameDefinition]:
    path = game or settings.game_file or DEMO_GAME
    try:
        text = path.read_text(encoding="utf-8")
        return text, parse_game(text)
    except OSError as exc:
        _exit_with_error(f"Could not read game file {path}: {exc.strerror or exc}")
    except GameDefinitionError as exc:
        _exit_with_error(str(exc))


@app.command()
def play(
    game: Path | None = typer.Option(None, "--game", "-g", help="Game definition file"),  # noqa: B008
    home: Path | None = typer.Option(None, "--home", help="Directory for saves and bookmarks"),  # noqa: B008
) -> None:
    """Play a game interactively."""

    settings = _settings(home)
    configure_logging(profile="play", level=settings.log_level)
    text, definition = _read_game(game, settings)
    renderer = create_cli_renderer()
    store = FileStore(settings.store_path)
    renderer.ui_settings = load_ui_settings(store)
    session = GameSession(
        text,
        definition.game.id,
        store,
        settings=settings,
        files=LocalFileExchange(settings.exports_path, renderer.ask),
        on_entry=renderer.entry,
    )
    renderer.welcome(definition.game.name)
    asyncio.run(_play_loop(session, renderer))


async def _play_loop(session: GameSession, renderer: Renderer) -> None:
    await session.start()
    while True:
        try:
            user_input = await renderer.get_user_input(session.words)
        except (EOFError, KeyboardInterrupt):
            break
        user_input = user_input.strip()
        if not user_input:
            continue
        if user_input.lower() in QUIT_COMMANDS:
            break
        try:
            if not await session.submit(user_input):
                renderer.warn("I don't understand that.")
        except Exception as exc:
            logger.opt(exception=True).error("cli.command_failed input={!r}", user_input)
            renderer.error(str(exc))
        renderer.ui_settings = session.ui_settings
    logger.info("cli.exit game={}", session.game_id)


@app.command()
def bookmarks(
    game: Path | None = typer.Option(None, "--game", "-g", help="Game definition file"),  # noqa: B008
    home: Path | None = typer.Option(None, "--home", help="Directory for saves and bookmarks"),  # noqa: B008
) -> None:
    """List the bookmarks saved for a game."""

    settings = _settings(home)
    _, definition = _read_game(game, settings)
    saved = BookmarkList(FileStore(settings.store_path), definition.game.id, settings.max_bookmarks).items()
    if not saved:
        typer.echo("No bookmarks saved.")
        return
    for index, bookmark in enumerate(saved):
        typer.echo(f"{index}: {bookmark.name}")


@app.command()
def info(
    game: Path | None = typer.Option(None, "--game", "-g", help="Game definition file"),  # noqa: B008
) -> None:
    """Print information about a game."""

    settings = _settings(None)
    text, _ = _read_game(game, settings)
    lines: list[str] = []

    def collect(message: OutputMessage) -> None:
        if isinstance(message, Log):
            lines.append(message.message)

    async def run() -> None:
        proxy = create_engine_proxy(create_demo_engine)
        proxy.set_response_listener(collect)
        proxy.insert_proxy("info", InfoFilter().filters)
        await proxy.send(msg.load(text))
        await proxy.send(msg.get_info())

    asyncio.run(run())
    for line in lines:
        typer.echo(line)
