"""Zoom and pan state for the image canvas."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from PySide6 import QtCore

MIN_SCALE = 0.1
MAX_SCALE = 10.0
ZOOM_SENSITIVITY = 0.0025
# Total inset kept free around a fitted image (border plus clip).
FIT_MARGIN = 4.0
RESIZE_THRESHOLD = 1.0


def _vec(point: Sequence[float]) -> np.ndarray:
    return np.asarray(point, dtype=np.float64).reshape(2)


def clamp_scale(value: float) -> float:
    return float(min(max(value, MIN_SCALE), MAX_SCALE))


class Viewport(QtCore.QObject):
    """Scale and offset of an image drawn centred in a fixed-size view.

    ``offset`` is the displacement of the image centre from the view centre,
    in view pixels. A view point ``p`` maps to image point
    ``(p - center - offset) / scale + image_size / 2``.
    """

    changed = QtCore.Signal()

    def __init__(self, sensitivity: float = ZOOM_SENSITIVITY) -> None:
        super().__init__()
        self.sensitivity = sensitivity
        self.scale = 1.0
        self.offset = np.zeros(2)
        self.image_size: Optional[np.ndarray] = None
        self.view_size = np.zeros(2)
        self._last_drag: Optional[np.ndarray] = None

    # State ---------------------------------------------------
    @property
    def center(self) -> np.ndarray:
        return self.view_size / 2.0

    @property
    def is_dragging(self) -> bool:
        return self._last_drag is not None

    def _update(self, scale: float, offset: np.ndarray) -> None:
        if scale == self.scale and np.array_equal(offset, self.offset):
            return
        self.scale = scale
        self.offset = offset
        self.changed.emit()

    def set_image_size(self, size: Optional[Sequence[float]]) -> None:
        """Show a new image; the view is fitted to it."""
        self._last_drag = None
        self.image_size = None if size is None else _vec(size)
        self.reset_to_fit()

    def set_view_size(self, size: Sequence[float]) -> None:
        """Record the canvas size, refitting on a real resize."""
        new = _vec(size)
        delta = np.abs(new - self.view_size)
        self.view_size = new
        if np.any(delta > RESIZE_THRESHOLD):
            self.reset_to_fit()

    def fit_scale(self) -> Optional[float]:
        if self.image_size is None:
            return None
        iw, ih = self.image_size
        vw, vh = self.view_size
        if iw <= 0 or ih <= 0 or vw <= 0 or vh <= 0:
            return None
        return min((vw - FIT_MARGIN) / iw, (vh - FIT_MARGIN) / ih)

    def reset_to_fit(self) -> None:
        scale = self.fit_scale()
        if scale is None:
            return
        self._update(clamp_scale(scale), np.zeros(2))

    # Input ---------------------------------------------------
    def zoom(self, scroll_delta: float, cursor: Sequence[float]) -> None:
        """Zoom by ``scroll_delta`` keeping the image point under ``cursor`` fixed."""
        factor = 1.0 + scroll_delta * self.sensitivity
        old = self.scale
        new = clamp_scale(old * factor)
        anchor = (_vec(cursor) - self.center - self.offset) / old
        self._update(new, self.offset - anchor * (new - old))

    def begin_drag(self, position: Sequence[float]) -> None:
        self._last_drag = _vec(position)

    def drag_to(self, position: Sequence[float]) -> None:
        if self._last_drag is None:
            return
        pos = _vec(position)
        offset = self.offset + (pos - self._last_drag)
        self._last_drag = pos
        self._update(self.scale, offset)

    def end_drag(self) -> None:
        self._last_drag = None

    # Hit testing ---------------------------------------------
    def view_to_image(self, point: Sequence[float]) -> Optional[np.ndarray]:
        if self.image_size is None:
            return None
        return (_vec(point) - self.center - self.offset) / self.scale + self.image_size / 2.0

    def image_to_view(self, point: Sequence[float]) -> Optional[np.ndarray]:
        if self.image_size is None:
            return None
        return (_vec(point) - self.image_size / 2.0) * self.scale + self.center + self.offset

    def image_rect(self) -> Optional[Tuple[float, float, float, float]]:
        """Return the drawn image bounds as ``(x, y, width, height)`` in view coordinates."""
        if self.image_size is None:
            return None
        x, y = self.image_to_view((0.0, 0.0))
        w, h = self.image_size * self.scale
        return float(x), float(y), float(w), float(h)

    def contains(self, point: Sequence[float]) -> bool:
        """Whether the view point lies on the image."""
        img = self.view_to_image(point)
        if img is None:
            return False
        return bool(np.all(img >= 0) and np.all(img < self.image_size))
