"""Controller holding the dataset session and connecting GUI and backend."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from PySide6 import QtCore

from .folder_handle import FolderHandle
from .io_utils import reload_caption, save_caption
from .models import Pair, SaveResult, Settings
from .scanner import ScanError, scan_directory
from .viewport import Viewport

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".lora_dataset_tool" / "config.json"


class Controller(QtCore.QObject):
    pairs_changed = QtCore.Signal(list)
    pair_changed = QtCore.Signal(object)
    pair_updated = QtCore.Signal(object)
    error_occurred = QtCore.Signal(str)

    def __init__(self, config_path: Path = CONFIG_PATH) -> None:
        super().__init__()
        self.config_path = Path(config_path)
        self.settings = self.load_settings()
        self.directory: Optional[Path] = None
        self.pairs: List[Pair] = []
        self.current_index = -1
        self.viewport = Viewport(self.settings.zoom_sensitivity)

    @property
    def current_pair(self) -> Optional[Pair]:
        if 0 <= self.current_index < len(self.pairs):
            return self.pairs[self.current_index]
        return None

    # Settings -------------------------------------------------
    def load_settings(self) -> Settings:
        if self.config_path.exists():
            try:
                data = json.loads(self.config_path.read_text(encoding="utf-8"))
                return Settings(
                    folder_handle=data.get("folder_handle"),
                    window_size=tuple(data.get("window_size")) if data.get("window_size") else None,
                    zoom_sensitivity=float(data.get("zoom_sensitivity", 0.0025)),
                )
            except (OSError, ValueError, TypeError) as e:
                logger.warning("Failed to load settings: %s", e)
        return Settings()

    def save_settings(self) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(json.dumps(self.settings.__dict__), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to save settings: %s", e)

    def set_window_size(self, width: int, height: int) -> None:
        self.settings.window_size = (width, height)
        self.save_settings()

    # Directory ------------------------------------------------
    def set_directory(self, directory: Path) -> None:
        """Switch to ``directory``, remember it and rescan."""
        directory = Path(directory)
        try:
            self.settings.folder_handle = FolderHandle.create(directory).to_dict()
            self.save_settings()
        except OSError as e:
            logger.warning("Could not remember folder %s: %s", directory, e)
        self.directory = directory
        self.load_pairs()

    def restore_last_directory(self) -> bool:
        """Reopen the folder stored in the settings, if it still exists."""
        data = self.settings.folder_handle
        handle = FolderHandle.from_dict(data) if data else None
        if handle is None:
            return False
        directory = handle.resolve()
        if directory is None:
            logger.info("Last folder %s is no longer available", handle.path)
            return False
        if handle.is_stale():
            logger.warning("Folder handle for %s is stale, using the path as is", handle.path)
            self.set_directory(directory)
        else:
            self.directory = directory
            self.load_pairs()
        return True

    # Pairing --------------------------------------------------
    def load_pairs(self) -> None:
        if self.directory is None:
            return
        try:
            pairs = scan_directory(self.directory)
        except ScanError as e:
            logger.error("Failed to scan %s: %s", e.directory, e.kind.value)
            pairs = []
            self.error_occurred.emit(f"Cannot open {e.directory} ({e.kind.value})")
        self.pairs = pairs
        self.current_index = 0 if pairs else -1
        self.pairs_changed.emit(pairs)
        self.pair_changed.emit(self.current_pair)
        unreadable = [p for p in pairs if p.load_error is not None]
        if unreadable:
            names = ", ".join(p.caption_path.name for p in unreadable)
            self.error_occurred.emit(f"Could not read {len(unreadable)} caption file(s): {names}")

    rescan = load_pairs

    def select_index(self, index: int) -> None:
        if index != -1 and not 0 <= index < len(self.pairs):
            return
        if index == self.current_index:
            return
        self.current_index = index
        self.pair_changed.emit(self.current_pair)

    def select(self, pair_id: str) -> None:
        for i, pair in enumerate(self.pairs):
            if pair.id == pair_id:
                self.select_index(i)
                return

    def next_pair(self) -> None:
        if self.current_index + 1 < len(self.pairs):
            self.select_index(self.current_index + 1)

    def prev_pair(self) -> None:
        if self.current_index > 0:
            self.select_index(self.current_index - 1)

    # Captions -------------------------------------------------
    def set_caption_text(self, text: str) -> None:
        pair = self.current_pair
        if pair is None or pair.caption_text == text:
            return
        pair.caption_text = text
        self.pair_updated.emit(pair)

    def save(self, pair: Pair) -> SaveResult:
        result = save_caption(pair)
        if not result.ok:
            self.error_occurred.emit(result.message)
        self.pair_updated.emit(pair)
        return result

    def save_current(self) -> Optional[SaveResult]:
        pair = self.current_pair
        if pair is None:
            return None
        return self.save(pair)

    def dirty_pairs(self) -> List[Pair]:
        return [p for p in self.pairs if p.is_dirty]

    def save_all(self) -> List[SaveResult]:
        return [self.save(pair) for pair in self.dirty_pairs()]

    def reload_current(self) -> bool:
        pair = self.current_pair
        if pair is None:
            return False
        reloaded = reload_caption(pair)
        if pair.load_error is not None:
            self.error_occurred.emit(f"Could not read {pair.caption_path.name} ({pair.load_error.value})")
        self.pair_updated.emit(pair)
        return reloaded
