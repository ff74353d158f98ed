"""Utilities for pairing images with caption files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .io_utils import CaptionReadError, failure_kind, read_caption
from .models import FailureKind, Pair

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "bmp", "tiff")
# Order is the precedence when several captions share a base name
CAPTION_EXTENSIONS = ("txt", "caption")
DEFAULT_CAPTION_EXTENSION = "txt"


class ScanError(Exception):
    """Raised when a dataset directory cannot be listed."""

    def __init__(self, directory: Path, kind: FailureKind, message: str = "") -> None:
        super().__init__(message or f"{kind.value}: {directory}")
        self.directory = directory
        self.kind = kind


def _extension(path: Path) -> str:
    return path.suffix[1:].lower()


def classify(path: Path) -> Optional[str]:
    """Return ``"image"``, ``"caption"`` or ``None`` for ``path``."""
    ext = _extension(path)
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in CAPTION_EXTENSIONS:
        return "caption"
    return None


def default_caption_path(image_path: Path) -> Path:
    """Caption path used for an image that has no caption yet."""
    return image_path.parent / f"{image_path.stem}.{DEFAULT_CAPTION_EXTENSION}"


def _list_entries(directory: Path) -> List[Path]:
    """Return visible regular files directly inside ``directory``."""
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise ScanError(directory, failure_kind(e, FailureKind.READ_ERROR), str(e)) from e
    return [e for e in entries if not e.name.startswith(".") and e.is_file()]


def _caption_map(entries: List[Path]) -> Dict[str, Path]:
    captions: Dict[str, Path] = {}
    # Sorting by (extension priority, name) keeps the choice independent of
    # directory listing order; the first candidate per base name wins.
    candidates = sorted(
        (e for e in entries if classify(e) == "caption"),
        key=lambda p: (CAPTION_EXTENSIONS.index(_extension(p)), p.name),
    )
    for path in candidates:
        captions.setdefault(path.stem, path)
    return captions


def scan_directory(directory: Path) -> List[Pair]:
    """Pair every image in ``directory`` with its caption file.

    The scan is not recursive and hidden files are skipped. Images without a
    caption get ``<base>.txt`` next to them as their (not yet existing)
    caption path. The result is sorted by image file name.
    """
    directory = Path(directory).absolute()
    if not directory.exists():
        raise ScanError(directory, FailureKind.NOT_FOUND)
    if not directory.is_dir():
        raise ScanError(directory, FailureKind.NOT_A_DIRECTORY)

    entries = _list_entries(directory)
    captions = _caption_map(entries)

    pairs: List[Pair] = []
    for image in entries:
        if classify(image) != "image":
            continue
        caption_path = captions.get(image.stem, default_caption_path(image))
        pair = Pair(image_path=image, caption_path=caption_path)
        if caption_path.is_file():
            try:
                pair.caption_text = read_caption(caption_path)
            except CaptionReadError as e:
                logger.warning("Ignoring unreadable caption %s: %s", caption_path, e)
                pair.load_error = e.kind
            pair.saved_text = pair.caption_text
        pairs.append(pair)

    pairs.sort(key=lambda p: p.image_path.name)
    logger.info("Found %d images in %s", len(pairs), directory)
    return pairs
