from __future__ import annotations

import json

import pytest

from tift import messages as msg
from tift.features.bookmarks import (
    Bookmark,
    BookmarkList,
    BookmarkManager,
    ExportedBookmark,
    select_id,
)
from tift.messages import Save, StatusType
from tift.proxy.engine import DecoratedForwarder
from tift.statemachine import Status
from tift.storage import MemoryStore
from tift.utils import Ref, compress_and_encode, decode_and_decompress


SNAPSHOT = json.dumps({"location": "cave", "items": {"ball": None}})
NAME = "cave - 2026-10-19 12:30:00"


class FakeFiles:
    def __init__(self, *imports: str) -> None:
        self.downloads: dict[str, str] = {}
        self._imports = list(imports)

    def download_text_file(self, filename: str, content: str) -> None:
        self.downloads[filename] = content

    async def prompt_for_text_file(self, title: str, extensions: list[str]) -> str:
        if not self._imports:
            raise FileNotFoundError("No file selected")
        return self._imports.pop(0)


class Harness:
    def __init__(self, clock, make_recorder, *, files: FakeFiles | None = None, answers_save: bool = True) -> None:
        self.store = MemoryStore()
        self.snapshot: Ref[str | None] = Ref(None)
        self.loaded: list[str] = []
        self.bookmarks = BookmarkList(self.store, "cave-demo")

        def on_send(request, recorder) -> None:
            if isinstance(request, Save) and answers_save:
                self.snapshot.current = SNAPSHOT

        async def loader(data: str, forwarder: DecoratedForwarder) -> None:
            self.loaded.append(data)

        self.recorder = make_recorder(on_send)
        self.forwarder = DecoratedForwarder(self.recorder)
        self.manager = BookmarkManager(
            self.bookmarks,
            self.snapshot,
            Ref(StatusType(title="cave")),
            loader,
            game_id="cave-demo",
            files=files,
            save_timeout=0.05,
            poll_interval=0.01,
            clock=clock,
        )

    def fill(self, count: int) -> None:
        for index in range(count):
            self.bookmarks.add(Bookmark(name=f"bookmark {index}", data=compress_and_encode(SNAPSHOT)))


@pytest.mark.asyncio
async def test_create_bookmark_stores_compressed_snapshot(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)

    assert await harness.manager.create_bookmark(harness.forwarder)

    saved = harness.bookmarks.items()
    assert [bookmark.name for bookmark in saved] == [NAME]
    assert decode_and_decompress(saved[0].data) == SNAPSHOT
    assert harness.recorder.sent == [msg.save(compress=True)]
    assert harness.recorder.printed() == [f'Bookmark "{NAME}" created.']
    assert harness.snapshot.current is None


@pytest.mark.asyncio
async def test_bookmark_limit_is_enforced(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.fill(10)

    assert not await harness.manager.create_bookmark(harness.forwarder)

    assert len(harness.bookmarks) == 10
    assert harness.recorder.sent == []
    assert harness.recorder.logged("warn") == ["Bookmark limit of 10 reached. Delete a bookmark first."]
    assert not harness.bookmarks.add(Bookmark(name="eleventh", data=""))


@pytest.mark.asyncio
async def test_create_bookmark_fails_when_no_snapshot_arrives(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder, answers_save=False)

    assert not await harness.manager.create_bookmark(harness.forwarder)

    assert harness.bookmarks.items() == []
    assert harness.recorder.logged("warn") == ["Failed to create bookmark."]


@pytest.mark.asyncio
async def test_loading_a_missing_bookmark_does_not_call_the_loader(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)

    assert not await harness.manager.load_bookmark(0, harness.forwarder)

    assert harness.loaded == []
    assert harness.recorder.logged("warn") == ["Invalid bookmark selected"]


@pytest.mark.asyncio
async def test_load_bookmark_passes_decompressed_data(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.fill(2)

    assert await harness.manager.load_bookmark(1, harness.forwarder)

    assert harness.loaded == [SNAPSHOT]
    assert harness.recorder.printed()[-1] == "Bookmark loaded."


@pytest.mark.asyncio
async def test_load_bookmark_reports_corrupt_data(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.bookmarks.add(Bookmark(name="broken", data="%%%"))

    assert not await harness.manager.load_bookmark(0, harness.forwarder)

    assert harness.loaded == []
    assert harness.recorder.logged("warn") == ["Failed to load bookmark."]


def test_delete_bookmark(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.fill(2)

    assert harness.manager.delete_bookmark(0, harness.forwarder)
    assert not harness.manager.delete_bookmark(5, harness.forwarder)

    assert [bookmark.name for bookmark in harness.bookmarks.items()] == ["bookmark 1"]
    assert harness.recorder.printed() == ["Bookmark deleted."]
    assert harness.recorder.logged("warn") == ["Invalid bookmark selected"]


def test_corrupt_bookmark_list_reads_as_empty(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.store.set_item(harness.bookmarks.key, "not json")

    assert harness.bookmarks.items() == []


@pytest.mark.asyncio
async def test_export_then_import_into_another_list(fixed_clock, make_recorder) -> None:
    files = FakeFiles()
    harness = Harness(fixed_clock, make_recorder, files=files)
    harness.fill(1)

    assert harness.manager.export_bookmark(0, harness.forwarder)
    exported = files.downloads["bookmark 0.json"]
    assert json.loads(exported)["gameId"] == "cave-demo"

    other = Harness(fixed_clock, make_recorder, files=FakeFiles(exported))
    assert await other.manager.import_bookmark(other.forwarder)

    assert [bookmark.name for bookmark in other.bookmarks.items()] == ["bookmark 0"]
    assert other.recorder.printed() == ['Bookmark "bookmark 0" imported.']


@pytest.mark.asyncio
async def test_import_rejects_bad_files(fixed_clock, make_recorder) -> None:
    other_game = ExportedBookmark(game_id="elsewhere", name="x", data=compress_and_encode("{}"))
    files = FakeFiles("{broken", other_game.model_dump_json(by_alias=True))
    harness = Harness(fixed_clock, make_recorder, files=files)

    assert not await harness.manager.import_bookmark(harness.forwarder)
    assert not await harness.manager.import_bookmark(harness.forwarder)
    assert not await harness.manager.import_bookmark(harness.forwarder)

    assert harness.recorder.logged("warn") == [
        "Invalid bookmark file.",
        "Bookmark is for a different game.",
        "No bookmark file imported.",
    ]
    assert harness.bookmarks.items() == []


@pytest.mark.asyncio
async def test_machine_selects_and_loads_a_bookmark(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder, files=FakeFiles())
    harness.fill(2)
    machine = harness.manager.machine

    await machine.start(harness.forwarder)
    prompt = harness.recorder.last_words()
    assert [word.value for word in prompt.words] == [
        "bookmark 0",
        "bookmark 1",
        "new bookmark",
        "import bookmark",
        "cancel",
    ]
    assert prompt.words[1].id == select_id(1)

    await machine.send(msg.execute([select_id(1)]), harness.forwarder)
    assert harness.manager.selected == 1
    assert 'Selected bookmark "bookmark 1".' in harness.recorder.printed()
    assert [word.value for word in harness.recorder.last_words().words] == ["load", "delete", "export", "cancel"]

    await machine.send(msg.execute(["load"]), harness.forwarder)

    assert harness.loaded == [SNAPSHOT]
    assert machine.status is Status.FINISHED


@pytest.mark.asyncio
async def test_machine_creates_a_bookmark(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    machine = harness.manager.machine

    await machine.start(harness.forwarder)
    assert "No bookmarks saved." in harness.recorder.printed()
    await machine.send(msg.execute(["new bookmark"]), harness.forwarder)

    assert machine.status is Status.FINISHED
    assert [bookmark.name for bookmark in harness.bookmarks.items()] == [NAME]


@pytest.mark.asyncio
async def test_machine_cancel_and_unexpected_commands(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)
    harness.fill(1)
    machine = harness.manager.machine

    await machine.start(harness.forwarder)
    await machine.send(msg.execute(["dance"]), harness.forwarder)
    assert machine.status is Status.RUNNING
    await machine.send(msg.get_words([]), harness.forwarder)
    await machine.send(msg.get_status(), harness.forwarder)
    await machine.send(msg.execute(["bookmark 0"]), harness.forwarder)
    await machine.send(msg.execute(["cancel"]), harness.forwarder)

    assert harness.recorder.logged("warn") == ["Unexpected command: dance"]
    assert harness.recorder.sent == [msg.get_status()]
    assert harness.recorder.printed()[-1] == "cancelled"
    assert harness.bookmarks.items()[0].name == "bookmark 0"
    assert machine.status is Status.FINISHED


@pytest.mark.asyncio
async def test_create_delete_then_load_leaves_nothing_to_load(fixed_clock, make_recorder) -> None:
    harness = Harness(fixed_clock, make_recorder)

    await harness.manager.create_bookmark(harness.forwarder)
    assert harness.bookmarks.items()[0].name.startswith("cave - ")
    harness.manager.delete_bookmark(0, harness.forwarder)
    assert len(harness.bookmarks) == 0

    assert not await harness.manager.load_bookmark(0, harness.forwarder)
    assert harness.loaded == []
    assert harness.recorder.logged("warn") == ["Invalid bookmark selected"]
