"""Persistent reference to the last dataset folder."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FolderHandle:
    """A folder path plus the identity of the directory it pointed to.

    The device and inode numbers let :meth:`is_stale` notice when the path now
    names a different directory (the original was moved or replaced).
    """

    path: str
    device: int = 0
    inode: int = 0

    @classmethod
    def create(cls, directory: Path) -> "FolderHandle":
        directory = Path(directory).resolve()
        st = os.stat(directory)
        return cls(path=str(directory), device=st.st_dev, inode=st.st_ino)

    @classmethod
    def from_dict(cls, data: dict) -> Optional["FolderHandle"]:
        path = data.get("path") if isinstance(data, dict) else None
        if not path:
            return None
        try:
            return cls(path=str(path), device=int(data.get("device", 0)), inode=int(data.get("inode", 0)))
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed folder handle: %r", data)
            return None

    def to_dict(self) -> dict:
        return asdict(self)

    def resolve(self) -> Optional[Path]:
        """Return the folder path if it is still a directory."""
        path = Path(self.path)
        return path if path.is_dir() else None

    def is_stale(self) -> bool:
        try:
            st = os.stat(self.path)
        except OSError:
            return True
        return (st.st_dev, st.st_ino) != (self.device, self.inode)
