from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class FailureKind(Enum):
    """Typed reasons a scan, read or save can fail."""

    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    NOT_A_DIRECTORY = "not-a-directory"
    READ_ERROR = "read-error"
    DECODE_ERROR = "decode-error"
    WRITE_ERROR = "write-error"
    VERIFY_MISMATCH = "verify-mismatch"


@dataclass(eq=False)
class Pair:
    """An image file and the caption file that describes it."""

    image_path: Path
    caption_path: Path
    caption_text: str = ""
    saved_text: str = ""
    load_error: Optional[FailureKind] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pair):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def name(self) -> str:
        return self.image_path.name

    @property
    def is_dirty(self) -> bool:
        return self.caption_text != self.saved_text

    @property
    def has_caption(self) -> bool:
        return bool(self.caption_text.strip())


@dataclass
class SaveResult:
    """Outcome of writing a caption to disk."""

    ok: bool
    kind: Optional[FailureKind] = None
    message: str = ""

    @classmethod
    def success(cls) -> "SaveResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: FailureKind, message: str) -> "SaveResult":
        return cls(ok=False, kind=kind, message=message)


@dataclass
class Settings:
    """Persisted application settings."""
    folder_handle: Optional[dict] = None
    window_size: Optional[tuple[int, int]] = None
    zoom_sensitivity: float = 0.0025
