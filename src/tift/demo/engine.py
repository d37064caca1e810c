"""Rooms, items and a handful of verbs: enough of an engine to drive the pipeline end to end."""

from __future__ import annotations

import copy
import json
from collections.abc import Callable
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from tift import __version__
from tift import messages as msg
from tift.errors import GameDefinitionError, UnknownMessageError
from tift.messages import (
    Config,
    Execute,
    GetInfo,
    GetStatus,
    GetWords,
    InputMessage,
    Load,
    OutputMessage,
    Redo,
    Reset,
    Save,
    Start,
    StatusType,
    Undo,
    Word,
)

VERBS = ("look", "go", "get", "drop", "examine", "inventory", "sleep")
ITEM_VERBS = ("drop", "examine")
SLEEP_MILLIS = 2000
DEFAULT_UNDO_LEVELS = 10


class GameMeta(BaseModel):
    id: str
    name: str
    author: str = ""
    version: str = ""


class Room(BaseModel):
    name: str
    description: str = ""
    exits: dict[str, str] = Field(default_factory=dict)


class Item(BaseModel):
    name: str
    description: str = ""
    location: str | None = None


class GameDefinition(BaseModel):
    game: GameMeta
    start: str
    rooms: dict[str, Room]
    items: dict[str, Item] = Field(default_factory=dict)


def parse_game(text: str) -> GameDefinition:
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise GameDefinitionError(f"Game file is not valid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise GameDefinitionError("Game file must contain a mapping")
    try:
        game = GameDefinition.model_validate(payload)
    except ValidationError as exc:
        raise GameDefinitionError(f"Invalid game definition: {exc}") from exc
    if game.start not in game.rooms:
        raise GameDefinitionError(f"Start room does not exist: {game.start}")
    return game


class DemoEngine:
    """Consumes requests synchronously and reports everything through `output`."""

    def __init__(self, output: Callable[[OutputMessage], None]) -> None:
        self._output = output
        self._game: GameDefinition | None = None
        self._config: dict[str, Any] = {}
        self._state: dict[str, Any] = {}
        self._undo: list[dict[str, Any]] = []
        self._redo: list[dict[str, Any]] = []

    @property
    def state(self) -> dict[str, Any]:
        return copy.deepcopy(self._state)

    def send(self, message: InputMessage) -> None:
        match message:
            case Config(properties=properties):
                self._config.update(properties)
            case Reset():
                self._game = None
                self._state = {}
                self._undo.clear()
                self._redo.clear()
            case Load(data=data):
                self._load(data)
            case Start(save_data=save_data):
                self._start(save_data)
            case GetWords(command=command):
                self._output(msg.words(command, self._words(command)))
            case Execute(command=command):
                self._execute(command)
            case GetStatus():
                self._output(msg.status(self._status()))
            case Save():
                self._output(msg.SaveState(self.state))
            case Undo():
                self._step(self._undo, self._redo, "Undone.", "Nothing to undo.")
            case Redo():
                self._step(self._redo, self._undo, "Redone.", "Nothing to redo.")
            case GetInfo():
                self._output(msg.Info(self._info()))
            case _:
                raise UnknownMessageError(message)

    # Lifecycle

    def _load(self, data: str) -> None:
        try:
            self._game = parse_game(data)
        except GameDefinitionError as exc:
            logger.warning("engine.load_failed error={}", exc)
            self._output(msg.log("error", str(exc)))
            return
        logger.debug("engine.loaded game={}", self._game.game.id)

    def _start(self, save_data: str | None) -> None:
        game = self._require_game()
        if game is None:
            return
        self._state = {
            "location": game.start,
            "items": {item_id: item.location for item_id, item in game.items.items()},
        }
        if save_data:
            restored = _restore(game, save_data)
            if restored is None:
                logger.warning("engine.bad_save game={}", game.game.id)
                self._output(msg.log("warn", "Could not restore saved game, starting again."))
            else:
                self._state = restored
        self._undo.clear()
        self._redo.clear()
        if self._config.get("autoLook", True):
            self._look()

    def _require_game(self) -> GameDefinition | None:
        if self._game is None:
            self._output(msg.log("error", "No game loaded."))
        return self._game

    # Queries

    def _words(self, command: list[str]) -> list[Word]:
        game = self._game
        if game is None or not self._state:
            return []
        if not command:
            return [msg.word(verb, verb) for verb in VERBS]
        if len(command) > 1:
            return []
        first = command[0]
        if first in game.items and self._holding(first):
            return [msg.word(verb, verb) for verb in ITEM_VERBS]
        targets: list[str] = []
        if first == "go":
            return [msg.word(direction, direction) for direction in self._room().exits]
        if first == "get":
            targets = self._items_at(self._state["location"])
        elif first == "drop":
            targets = self._items_at(None)
        elif first == "examine":
            targets = [*self._items_at(self._state["location"]), *self._items_at(None)]
        return [msg.word(item_id, game.items[item_id].name) for item_id in targets]

    def _status(self) -> StatusType:
        if self._game is None or not self._state:
            return StatusType()
        inventory = [{"id": item_id, "value": self._game.items[item_id].name} for item_id in self._items_at(None)]
        return StatusType(
            title=self._room().name,
            undoable=bool(self._undo),
            redoable=bool(self._redo),
            properties={"inventory": inventory},
        )

    def _info(self) -> dict[str, Any]:
        properties: dict[str, Any] = {"engineVersion": __version__}
        if self._game is not None:
            meta = self._game.game
            properties.update(name=meta.name, author=meta.author, gameId=meta.id, version=meta.version)
        return properties

    # Commands

    def _execute(self, command: list[str]) -> None:
        game = self._require_game()
        if game is None:
            return
        verb = next((part for part in command if part in VERBS), None)
        target = next((part for part in command if part not in VERBS), None)
        before = self.state
        match verb:
            case "look":
                self._look()
            case "inventory":
                held = [game.items[item_id].name for item_id in self._items_at(None)]
                self._print("You are carrying: " + ", ".join(held) if held else "You are empty handed.")
            case "examine" if target in game.items and self._reachable(target):
                self._print(game.items[target].description or f"It's a {game.items[target].name}.")
            case "go" if target in self._room().exits:
                self._state["location"] = self._room().exits[target]
                if self._config.get("autoLook", True):
                    self._look()
            case "get" if target in self._items_at(self._state["location"]):
                self._state["items"][target] = None
                self._print(f"You pick up the {game.items[target].name}.")
            case "drop" if target is not None and self._holding(target):
                self._state["items"][target] = self._state["location"]
                self._print(f"You drop the {game.items[target].name}.")
            case "sleep":
                self._print("You lie down for a nap.")
                self._output(msg.pause(SLEEP_MILLIS))
                self._print("You wake up refreshed.")
            case _:
                self._print("I don't understand that.")
        if self._state != before:
            self._record(before)

    def _record(self, before: dict[str, Any]) -> None:
        levels = int(self._config.get("undoLevels", DEFAULT_UNDO_LEVELS))
        self._redo.clear()
        if levels <= 0:
            return
        self._undo.append(before)
        del self._undo[:-levels]

    def _step(self, source: list[dict[str, Any]], target: list[dict[str, Any]], done: str, empty: str) -> None:
        if not source:
            self._print(empty)
            return
        target.append(self.state)
        self._state = source.pop()
        self._print(done)
        self._look()

    def _look(self) -> None:
        game = self._game
        if game is None:
            return
        room = self._room()
        self._print(room.description or room.name)
        visible = [game.items[item_id].name for item_id in self._items_at(self._state["location"])]
        if visible:
            self._print("You can see: " + ", ".join(visible))

    # Helpers

    def _room(self) -> Room:
        if self._game is None:
            raise GameDefinitionError("No game loaded")
        return self._game.rooms[self._state["location"]]

    def _items_at(self, location: str | None) -> list[str]:
        return [item_id for item_id, where in self._state.get("items", {}).items() if where == location]

    def _holding(self, item_id: str) -> bool:
        return item_id in self._state.get("items", {}) and self._state["items"][item_id] is None

    def _reachable(self, item_id: str) -> bool:
        return self._state["items"].get(item_id) in (None, self._state["location"])

    def _print(self, text: str) -> None:
        self._output(msg.print_(text))


def _restore(game: GameDefinition, save_data: str) -> dict[str, Any] | None:
    """Saved state, or None when it is unreadable or names a room the game lacks."""

    try:
        restored = json.loads(save_data)
        location = restored["location"]
        items = dict(restored["items"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None
    if not isinstance(location, str) or location not in game.rooms:
        return None
    return {"location": location, "items": items}


def create_demo_engine(output: Callable[[OutputMessage], None]) -> DemoEngine:
    return DemoEngine(output)
