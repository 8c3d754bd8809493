import os

import pytest

from scoreboard.state import MatchState
from scoreboard.storage import InvalidSnapshot, SnapshotNotFound, SnapshotStorage


@pytest.fixture()
def storage(tmp_path):
    return SnapshotStorage(str(tmp_path / "saved"))


def test_save_and_load(storage):
    name = storage.save(MatchState(home_name="Teplice", away_score=3, half=2), "teplice")
    assert name == "teplice.json"
    loaded = storage.load("teplice")
    assert loaded.home_name == "Teplice"
    assert loaded.away_score == 3
    assert loaded.half == 2


def test_saved_file_uses_wire_names(storage):
    storage.save(MatchState(), "wire.JSON")
    with open(os.path.join(storage.directory, "wire.JSON"), encoding="utf-8") as fh:
        text = fh.read()
    assert '"homeName"' in text
    assert '"sidesFlipped"' in text


@pytest.mark.filterwarnings("error::ResourceWarning")
def test_list_only_json_files_sorted(storage):
    storage.save(MatchState(), "b")
    storage.save(MatchState(), "a")
    with open(os.path.join(storage.directory, "notes.txt"), "w") as fh:
        fh.write("x")
    os.mkdir(os.path.join(storage.directory, "dir.json"))
    assert storage.list_saves() == ["a.json", "b.json"]


def test_list_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        SnapshotStorage(str(tmp_path / "absent")).list_saves()


def test_load_missing(storage):
    storage.ensure_directory()
    with pytest.raises(SnapshotNotFound):
        storage.load("ghost")
    with pytest.raises(SnapshotNotFound):
        storage.load("")


def test_load_invalid(storage):
    storage.ensure_directory()
    with open(os.path.join(storage.directory, "bad.json"), "w") as fh:
        fh.write('{"half": "second"}')
    with pytest.raises(InvalidSnapshot):
        storage.load("bad.json")


def test_old_snapshot_fills_defaults(storage):
    storage.ensure_directory()
    with open(os.path.join(storage.directory, "old.json"), "w") as fh:
        fh.write('{"homeName": "Hradec", "timer": "12:00"}')
    loaded = storage.load("old")
    assert loaded.half == 1
    assert loaded.theme == "pill"
