from __future__ import annotations

import json
from pathlib import Path

import pytest

from tift import messages as msg
from tift.config import Settings
from tift.errors import UnknownMessageError
from tift.session import GameSession
from tift.storage import MemoryStore, load_ui_settings

BOOKMARK_NAME = "cave - 2026-10-19 12:30:00"
OPTION_NAMES = ["restart", "colours", "ui", "devmode", "clear", "info", "bookmark manager"]


@pytest.fixture
def make_session(game_text: str, store: MemoryStore, fixed_clock, tmp_path: Path):
    def make() -> GameSession:
        return GameSession(game_text, "cave-demo", store, settings=Settings(home=tmp_path), clock=fixed_clock)

    return make


def _printed(session: GameSession) -> list[str]:
    return [entry.text for entry in session.messages if entry.kind == "print"]


def _values(session: GameSession) -> list[str]:
    return [word.value for word in session.words]


@pytest.mark.asyncio
async def test_start_describes_the_room_and_offers_words(make_session) -> None:
    session = make_session()

    await session.start()

    assert _printed(session) == ["A damp cave. Daylight spills in from the north.", "You can see: ball"]
    assert session.status.current.title == "cave"
    assert _values(session) == ["look", "go", "get", "drop", "examine", "sleep", *OPTION_NAMES]
    assert session.proxy.stage_names == ["ENGINE", "pauser", "optionItems", "undoredo", "info", "inventory"]


@pytest.mark.asyncio
async def test_submit_resolves_words_and_auto_saves(make_session, store: MemoryStore) -> None:
    session = make_session()
    await session.start()

    assert await session.submit("get  ball")

    assert session.messages[-1].text == "You pick up the ball."
    assert [entry.text for entry in session.messages if entry.kind == "command"] == ["get ball"]
    assert session.status.current.undoable
    assert json.loads(session.storage.load_game())["items"]["ball"] is None
    assert msg.word("ball", "ball") in session.words
    assert msg.option("undo") in session.words
    assert store.get_item("TIFT_MESSAGES_cave-demo") is not None


@pytest.mark.asyncio
async def test_unknown_text_is_not_executed(make_session) -> None:
    session = make_session()
    await session.start()
    before = list(session.messages)

    assert not await session.submit("dance wildly")

    assert session.messages == before


@pytest.mark.asyncio
async def test_undo_option_reverts_the_last_move(make_session) -> None:
    session = make_session()
    await session.start()
    await session.submit("go north")
    assert session.status.current.title == "forest"

    assert await session.submit("undo")

    assert "Undone." in _printed(session)
    assert session.status.current.title == "cave"
    assert session.status.current.redoable
    assert msg.option("redo") in session.words


@pytest.mark.asyncio
async def test_restart_requires_confirmation(make_session) -> None:
    session = make_session()
    await session.start()
    await session.submit("get ball")

    await session.submit("restart")
    assert _values(session) == ["restart", "cancel"]
    assert "All progress will be lost. Are you sure?" in _printed(session)

    await session.submit("restart")

    assert "restarting" in _printed(session)
    assert session.engine.state["items"]["ball"] == "cave"
    assert "look" in _values(session)


@pytest.mark.asyncio
async def test_running_option_machine_owns_undo_commands(make_session) -> None:
    session = make_session()
    await session.start()
    await session.submit("get ball")
    assert msg.option("undo") in session.words

    await session.submit("restart")
    assert msg.option("undo") not in session.words

    await session.send(msg.execute([msg.option_id("undo")]))

    assert session.engine.state["items"]["ball"] is None
    assert session.option_items.active == msg.option_id("restart")
    assert "Undone." not in _printed(session)
    logged = [entry.text for entry in session.messages if entry.kind == "log"]
    assert logged[-1] == "Unexpected command: " + msg.option_id("undo")


@pytest.mark.asyncio
async def test_new_session_resumes_from_auto_save(make_session) -> None:
    first = make_session()
    await first.start()
    await first.submit("get ball")

    second = make_session()
    await second.start()

    assert second.status.current.properties["inventory"] == [{"id": "ball", "value": "ball"}]
    assert second.messages[: len(first.messages)] == first.messages


@pytest.mark.asyncio
async def test_sleep_pauses_output_until_continue(make_session) -> None:
    session = make_session()
    await session.start()

    await session.submit("sleep")
    assert session.pauser.paused
    assert _printed(session)[-1] == "You lie down for a nap."
    assert _values(session) == ["continue"]

    await session.submit("continue")

    assert not session.pauser.paused
    assert _printed(session)[-1] == "You wake up refreshed."
    assert "look" in _values(session)


@pytest.mark.asyncio
async def test_bookmarks_can_be_created_and_loaded(make_session) -> None:
    session = make_session()
    await session.start()
    await session.submit("get ball")

    await session.submit("bookmark manager")
    assert _values(session) == ["new bookmark", "cancel"]
    await session.submit("new bookmark")
    assert f'Bookmark "{BOOKMARK_NAME}" created.' in _printed(session)

    await session.submit("drop ball")
    assert session.engine.state["items"]["ball"] == "cave"

    await session.submit("bookmark manager")
    await session.submit(BOOKMARK_NAME)
    assert _values(session) == ["load", "delete", "cancel"]
    await session.submit("load")

    assert "Bookmark loaded." in _printed(session)
    assert session.engine.state["items"]["ball"] is None
    assert json.loads(session.storage.load_game())["items"]["ball"] is None


@pytest.mark.asyncio
async def test_info_option_logs_game_details(make_session) -> None:
    session = make_session()
    await session.start()

    await session.submit("info")

    logged = [entry.text for entry in session.messages if entry.kind == "log"]
    assert logged[:4] == ["name:  The Cave", "author:  tift", "game id:  cave-demo", "game version:  1.0.0"]


@pytest.mark.asyncio
async def test_clear_option_empties_the_scroll_back(make_session, store: MemoryStore) -> None:
    session = make_session()
    await session.start()

    await session.submit("clear")

    assert session.messages == []
    assert store.get_item("TIFT_MESSAGES_cave-demo") is None


@pytest.mark.asyncio
async def test_colour_picker_updates_ui_settings(make_session, store: MemoryStore) -> None:
    session = make_session()
    await session.start()

    await session.submit("colours")
    await session.submit("light")

    assert session.ui_settings.colour_scheme == "light"
    assert load_ui_settings(store).colour_scheme == "light"


@pytest.mark.asyncio
async def test_debug_logs_only_shown_in_dev_mode(make_session) -> None:
    session = make_session()
    await session.start()
    before = len(session.messages)

    session.proxy.forward_response(msg.log("debug", "hidden"))
    await session.submit("devmode")
    await session.submit("on")
    session.proxy.forward_response(msg.log("debug", "shown"))

    texts = [entry.text for entry in session.messages[before:]]
    assert "hidden" not in texts
    assert texts[-1] == "shown"


def test_client_rejects_unknown_messages(make_session) -> None:
    session = make_session()

    with pytest.raises(UnknownMessageError):
        session.proxy.forward_response(msg.get_status())
