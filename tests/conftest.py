from pathlib import Path

import pytest


@pytest.fixture
def dataset(tmp_path: Path) -> Path:
    """Folder with ``cat.png`` + ``cat.txt`` and an uncaptioned ``dog.jpg``."""
    folder = tmp_path / "dataset"
    folder.mkdir()
    (folder / "cat.png").write_bytes(b"png")
    (folder / "cat.txt").write_text("a cat", encoding="utf-8")
    (folder / "dog.jpg").write_bytes(b"jpg")
    return folder
