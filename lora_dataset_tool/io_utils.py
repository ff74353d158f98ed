"""I/O utilities for reading and writing caption files."""

from __future__ import annotations

import errno
import logging
import os
import stat
import tempfile
from pathlib import Path

from .models import FailureKind, Pair, SaveResult

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class CaptionReadError(Exception):
    """Raised when a caption file exists but cannot be read."""

    def __init__(self, path: Path, kind: FailureKind, message: str = "") -> None:
        super().__init__(message or f"{kind.value}: {path}")
        self.path = path
        self.kind = kind


def failure_kind(exc: OSError, default: FailureKind = FailureKind.WRITE_ERROR) -> FailureKind:
    """Map an ``OSError`` onto a :class:`FailureKind`."""
    if isinstance(exc, FileNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return FailureKind.PERMISSION_DENIED
    if isinstance(exc, NotADirectoryError) or exc.errno == errno.ENOTDIR:
        return FailureKind.NOT_A_DIRECTORY
    return default


def read_caption(path: Path) -> str:
    """Return the UTF-8 text of ``path``.

    The file is read as bytes and decoded without newline translation so the
    text matches what is on disk exactly.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CaptionReadError(path, failure_kind(e, FailureKind.READ_ERROR), str(e)) from e
    try:
        return data.decode(ENCODING)
    except UnicodeDecodeError as e:
        raise CaptionReadError(path, FailureKind.DECODE_ERROR, str(e)) from e


def _file_mode(path: Path) -> int:
    """Permission bits a rewritten ``path`` should carry.

    An existing file keeps its mode; a new one follows the process umask.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def atomic_write_text(path: Path, text: str) -> bytes:
    """Write ``text`` to ``path`` atomically and return the bytes written.

    Parent directories are created as needed. Data goes to a temporary file in
    the same directory which is then renamed over the target.
    """
    data = text.encode(ENCODING)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        mode = _file_mode(path)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return data


def save_caption(pair: Pair) -> SaveResult:
    """Write the pair's caption and verify it by reading the file back."""
    path = pair.caption_path
    try:
        written = atomic_write_text(path, pair.caption_text)
    except OSError as e:
        kind = failure_kind(e)
        if kind is FailureKind.NOT_FOUND:
            kind = FailureKind.WRITE_ERROR
        logger.error("Failed to save caption %s: %s", path, e)
        return SaveResult.failure(kind, f"Could not write {path.name}: {e}")

    try:
        on_disk = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read back caption %s: %s", path, e)
        return SaveResult.failure(FailureKind.VERIFY_MISMATCH, f"Could not verify {path.name}: {e}")
    if on_disk != written:
        logger.warning(
            "Caption %s differs after write (%d bytes written, %d read)",
            path,
            len(written),
            len(on_disk),
        )
        return SaveResult.failure(
            FailureKind.VERIFY_MISMATCH, f"{path.name} did not match after saving"
        )

    pair.saved_text = pair.caption_text
    pair.load_error = None
    logger.info("Saved caption %s", path)
    return SaveResult.success()


def reload_caption(pair: Pair) -> bool:
    """Re-read the caption from disk.

    Returns ``True`` when the in-memory text was replaced. A missing file leaves
    the caption untouched, as does a read failure (which is recorded on the
    pair).
    """
    path = pair.caption_path
    if not path.is_file():
        return False
    try:
        text = read_caption(path)
    except CaptionReadError as e:
        logger.warning("Could not reload caption %s: %s", path, e)
        pair.load_error = e.kind
        return False
    pair.caption_text = text
    pair.saved_text = text
    pair.load_error = None
    return True
