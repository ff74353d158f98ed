import json
from pathlib import Path

from lora_dataset_tool.controller import Controller
from lora_dataset_tool.folder_handle import FolderHandle
from lora_dataset_tool.gui import pair_label
from lora_dataset_tool.models import FailureKind


def _controller(tmp_path: Path) -> Controller:
    return Controller(config_path=tmp_path / "config" / "config.json")


def test_end_to_end(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    c.set_directory(dataset)

    assert [p.name for p in c.pairs] == ["cat.png", "dog.jpg"]
    assert c.current_index == 0
    assert c.current_pair.caption_text == "a cat"

    c.next_pair()
    dog = c.current_pair
    assert dog.name == "dog.jpg"
    assert dog.caption_text == ""
    assert not dog.has_caption

    c.set_caption_text("a dog")
    assert c.dirty_pairs() == [dog]
    result = c.save_current()
    assert result.ok
    assert (dataset / "dog.txt").read_bytes() == b"a dog"
    assert c.dirty_pairs() == []


def test_navigation(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    changes = []
    c.pair_changed.connect(changes.append)
    c.set_directory(dataset)
    assert changes[-1].name == "cat.png"

    c.prev_pair()
    assert c.current_index == 0
    c.next_pair()
    c.next_pair()
    assert c.current_index == 1

    c.select(c.pairs[0].id)
    assert c.current_index == 0
    c.select_index(5)
    assert c.current_index == 0
    assert [p.name for p in changes] == ["cat.png", "dog.jpg", "cat.png"]


def test_rescan_replaces_session(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    c.set_directory(dataset)
    old_ids = {p.id for p in c.pairs}
    (dataset / "eel.bmp").write_bytes(b"x")
    c.rescan()
    assert [p.name for p in c.pairs] == ["cat.png", "dog.jpg", "eel.bmp"]
    assert not old_ids & {p.id for p in c.pairs}


def test_missing_directory_reports_error(tmp_path: Path) -> None:
    c = _controller(tmp_path)
    errors = []
    selections = []
    c.error_occurred.connect(errors.append)
    c.pair_changed.connect(selections.append)
    c.set_directory(tmp_path / "nope")
    assert c.pairs == []
    assert c.current_pair is None
    assert errors and FailureKind.NOT_FOUND.value in errors[0]
    assert selections == [None]


def test_save_failure_is_reported(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    c.set_directory(dataset)
    errors = []
    c.error_occurred.connect(errors.append)
    pair = c.current_pair
    pair.caption_path = dataset / "cat.png" / "cat.txt"
    c.set_caption_text("changed")
    result = c.save_current()
    assert not result.ok
    assert errors
    assert pair.is_dirty


def test_reload_current(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    c.set_directory(dataset)
    updates = []
    c.pair_updated.connect(updates.append)
    c.set_caption_text("scratch")
    (dataset / "cat.txt").write_text("a fluffy cat", encoding="utf-8")
    assert c.reload_current()
    assert c.current_pair.caption_text == "a fluffy cat"
    assert len(updates) == 2

    c.next_pair()
    c.set_caption_text("unsaved dog")
    assert not c.reload_current()
    assert c.current_pair.caption_text == "unsaved dog"


def test_save_all(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    c.set_directory(dataset)
    c.set_caption_text("cat v2")
    c.next_pair()
    c.set_caption_text("dog v1")
    results = c.save_all()
    assert len(results) == 2 and all(r.ok for r in results)
    assert (dataset / "cat.txt").read_text() == "cat v2"
    assert (dataset / "dog.txt").read_text() == "dog v1"


def test_restore_last_directory(tmp_path: Path, dataset: Path) -> None:
    c = _controller(tmp_path)
    assert not c.restore_last_directory()
    c.set_directory(dataset)
    c.set_window_size(800, 600)

    c2 = _controller(tmp_path)
    assert c2.settings.window_size == (800, 600)
    assert c2.restore_last_directory()
    assert c2.directory == dataset.resolve()
    assert [p.name for p in c2.pairs] == ["cat.png", "dog.jpg"]


def test_restore_stale_handle_refreshes(tmp_path: Path, dataset: Path) -> None:
    config = tmp_path / "config" / "config.json"
    config.parent.mkdir()
    stale = FolderHandle(path=str(dataset), device=0, inode=0)
    config.write_text(json.dumps({"folder_handle": stale.to_dict()}))

    c = Controller(config_path=config)
    assert c.restore_last_directory()
    assert len(c.pairs) == 2
    saved = json.loads(config.read_text())["folder_handle"]
    assert not FolderHandle.from_dict(saved).is_stale()


def test_restore_missing_folder(tmp_path: Path) -> None:
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"folder_handle": {"path": str(tmp_path / "gone")}}))
    c = Controller(config_path=config)
    assert not c.restore_last_directory()
    assert c.directory is None


def test_corrupt_settings_use_defaults(tmp_path: Path) -> None:
    config = tmp_path / "config.json"
    config.write_text("{not json")
    c = Controller(config_path=config)
    assert c.settings.folder_handle is None
    assert c.viewport.sensitivity == 0.0025


def test_unreadable_caption_is_reported(tmp_path: Path, dataset: Path) -> None:
    (dataset / "dog.txt").write_bytes(b"\xff\xfe broken")
    c = _controller(tmp_path)
    errors = []
    c.error_occurred.connect(errors.append)
    c.set_directory(dataset)

    dog = c.pairs[1]
    assert dog.load_error is FailureKind.DECODE_ERROR
    assert len(errors) == 1
    assert "dog.txt" in errors[0]
    assert "unreadable caption" in pair_label(dog)
    assert pair_label(c.pairs[0]) == "cat.png"
