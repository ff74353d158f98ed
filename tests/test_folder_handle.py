from pathlib import Path

from lora_dataset_tool.folder_handle import FolderHandle


def test_create_and_resolve(tmp_path: Path) -> None:
    handle = FolderHandle.create(tmp_path)
    assert handle.resolve() == tmp_path.resolve()
    assert not handle.is_stale()


def test_dict_round_trip(tmp_path: Path) -> None:
    handle = FolderHandle.create(tmp_path)
    assert FolderHandle.from_dict(handle.to_dict()) == handle


def test_from_dict_rejects_garbage() -> None:
    assert FolderHandle.from_dict({}) is None
    assert FolderHandle.from_dict({"path": "/x", "inode": "abc"}) is None


def test_missing_folder(tmp_path: Path) -> None:
    folder = tmp_path / "gone"
    folder.mkdir()
    handle = FolderHandle.create(folder)
    folder.rmdir()
    assert handle.resolve() is None
    assert handle.is_stale()


def test_stale_when_identity_differs(tmp_path: Path) -> None:
    handle = FolderHandle(path=str(tmp_path), device=0, inode=0)
    assert handle.resolve() == tmp_path
    assert handle.is_stale()
