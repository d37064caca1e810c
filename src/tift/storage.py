"""Key-value persistence for auto-saves, scroll-back, bookmarks and UI settings."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Literal, Protocol

from loguru import logger
from pydantic import BaseModel, ValidationError

SAVE_PREFIX = "TIFT_AUTO_SAVE"
MESSAGES_PREFIX = "TIFT_MESSAGES"
SETTINGS_KEY = "TIFT_SETTINGS"


class KeyValueStore(Protocol):
    """Blocking string store, shaped like browser localStorage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by tests and one-off sessions."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class FileStore:
    """Store backed by one JSON document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._read_locked().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read_locked()
            items[key] = value
            self._write_locked(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read_locked()
            if items.pop(key, None) is not None:
                self._write_locked(items)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._read_locked())

    def _read_locked(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("storage.corrupt path={}", self.path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def _write_locked(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(f"{self.path.suffix}.tmp")
        tmp.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)


class GameStorage:
    """Auto-save snapshot and message scroll-back for one game."""

    def __init__(self, store: KeyValueStore, game_id: str) -> None:
        self._store = store
        self.save_key = f"{SAVE_PREFIX}_{game_id}"
        self.messages_key = f"{MESSAGES_PREFIX}_{game_id}"

    def save_game(self, game_data: str) -> None:
        self._store.set_item(self.save_key, game_data)

    def load_game(self) -> str | None:
        return self._store.get_item(self.save_key)

    def remove_game(self) -> None:
        self._store.remove_item(self.save_key)

    def save_messages(self, messages: str) -> None:
        self._store.set_item(self.messages_key, messages)

    def load_messages(self) -> str | None:
        return self._store.get_item(self.messages_key)

    def remove_messages(self) -> None:
        self._store.remove_item(self.messages_key)


class NullGameStorage:
    """Used when a game has no id; nothing is kept."""

    def save_game(self, game_data: str) -> None:
        return None

    def load_game(self) -> str | None:
        return None

    def remove_game(self) -> None:
        return None

    def save_messages(self, messages: str) -> None:
        return None

    def load_messages(self) -> str | None:
        return None

    def remove_messages(self) -> None:
        return None


def create_storage(store: KeyValueStore, game_id: str | None) -> GameStorage | NullGameStorage:
    if game_id:
        return GameStorage(store, game_id)
    logger.error("storage.no_game_id Game can not be saved.")
    return NullGameStorage()


class UISettings(BaseModel):
    """Player interface preferences."""

    ui_type: Literal["bubble", "normal"] = "bubble"
    colour_scheme: Literal["light", "dark"] = "dark"
    dev_mode: bool = False


def load_ui_settings(store: KeyValueStore) -> UISettings:
    raw = store.get_item(SETTINGS_KEY)
    if raw:
        try:
            return UISettings.model_validate_json(raw)
        except ValidationError:
            logger.warning("settings.invalid key={} using defaults", SETTINGS_KEY)
    return UISettings()


def save_ui_settings(store: KeyValueStore, settings: UISettings) -> None:
    store.set_item(SETTINGS_KEY, settings.model_dump_json())
