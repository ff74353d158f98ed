"""PySide6 GUI widgets."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from .controller import Controller
from .models import Pair
from .viewport import Viewport

PAIR_ID_ROLE = QtCore.Qt.ItemDataRole.UserRole


class ImageCanvas(QtWidgets.QWidget):
    """Widget that draws an image with wheel zoom and drag panning."""

    def __init__(self, viewport: Viewport) -> None:
        super().__init__()
        self.viewport = viewport
        self.viewport.changed.connect(self.update)
        self._pixmap = QtGui.QPixmap()
        self.setMinimumSize(200, 200)
        self.setCursor(QtCore.Qt.CursorShape.OpenHandCursor)
        self.setSizePolicy(
            QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Expanding
        )

    def set_image(self, path: Optional[Path]) -> bool:
        """Load the image at ``path``; returns ``False`` if it could not be read."""
        self._pixmap = QtGui.QPixmap(str(path)) if path is not None else QtGui.QPixmap()
        if self._pixmap.isNull():
            self.viewport.set_image_size(None)
        else:
            self.viewport.set_image_size((self._pixmap.width(), self._pixmap.height()))
        self.update()
        return path is None or not self._pixmap.isNull()

    def fit(self) -> None:
        self.viewport.reset_to_fit()

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # pragma: no cover - GUI
        self.viewport.set_view_size((event.size().width(), event.size().height()))
        super().resizeEvent(event)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # pragma: no cover - GUI
        painter = QtGui.QPainter(self)
        bounds = self.rect()
        if not self._pixmap.isNull():
            painter.save()
            painter.setRenderHint(QtGui.QPainter.RenderHint.SmoothPixmapTransform)
            painter.setClipRect(bounds.adjusted(1, 1, -1, -1))
            vp = self.viewport
            cx, cy = vp.center + vp.offset
            painter.translate(cx, cy)
            painter.scale(vp.scale, vp.scale)
            painter.translate(-self._pixmap.width() / 2, -self._pixmap.height() / 2)
            painter.drawPixmap(0, 0, self._pixmap)
            painter.restore()
        painter.setPen(QtGui.QPen(QtGui.QColor("gray"), 1))
        painter.drawRect(bounds.adjusted(0, 0, -1, -1))
        painter.end()

    def wheelEvent(self, event: QtGui.QWheelEvent) -> None:  # pragma: no cover - GUI
        pixel = event.pixelDelta()
        delta = pixel.y() if not pixel.isNull() else event.angleDelta().y()
        if delta == 0:
            return
        pos = event.position()
        self.viewport.zoom(delta, (pos.x(), pos.y()))
        event.accept()

    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # pragma: no cover - GUI
        if event.button() == QtCore.Qt.MouseButton.LeftButton:
            pos = event.position()
            self.viewport.begin_drag((pos.x(), pos.y()))
            self.setCursor(QtCore.Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:  # pragma: no cover - GUI
        if self.viewport.is_dragging:
            pos = event.position()
            self.viewport.drag_to((pos.x(), pos.y()))

    def mouseReleaseEvent(self, event: QtGui.QMouseEvent) -> None:  # pragma: no cover - GUI
        if event.button() == QtCore.Qt.MouseButton.LeftButton:
            self.viewport.end_drag()
            self.setCursor(QtCore.Qt.CursorShape.OpenHandCursor)

    def mouseDoubleClickEvent(self, event: QtGui.QMouseEvent) -> None:  # pragma: no cover - GUI
        self.fit()


def pair_label(pair: Pair) -> str:
    label = pair.name
    if pair.is_dirty:
        label += " *"
    if pair.load_error is not None:
        label += f"  (unreadable caption: {pair.load_error.value})"
    elif not pair.has_caption:
        label += "  (no caption)"
    return label


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, controller: Controller) -> None:
        super().__init__()
        self.controller = controller
        self.controller.pairs_changed.connect(self.populate_list)
        self.controller.pair_changed.connect(self.load_pair)
        self.controller.pair_updated.connect(self.refresh_pair)
        self.controller.error_occurred.connect(self.show_error)
        self.setWindowTitle("LoRA Dataset Tool")

        size = self.controller.settings.window_size
        self.resize(*(size or (1100, 650)))

        menubar = self.menuBar()
        file_menu = menubar.addMenu("File")
        open_act = QtGui.QAction("Open Folder…", self)
        open_act.setShortcut(QtGui.QKeySequence.StandardKey.Open)
        open_act.triggered.connect(self.choose_directory)
        file_menu.addAction(open_act)
        rescan_act = QtGui.QAction("Rescan Folder", self)
        rescan_act.setShortcut(QtGui.QKeySequence.StandardKey.Refresh)
        rescan_act.triggered.connect(self.controller.rescan)
        file_menu.addAction(rescan_act)
        file_menu.addSeparator()
        save_act = QtGui.QAction("Save Caption", self)
        save_act.setShortcut(QtGui.QKeySequence.StandardKey.Save)
        save_act.triggered.connect(self.save_current)
        file_menu.addAction(save_act)
        save_all_act = QtGui.QAction("Save All", self)
        save_all_act.setShortcut(QtGui.QKeySequence("Ctrl+Shift+S"))
        save_all_act.triggered.connect(self.save_all)
        file_menu.addAction(save_all_act)
        reload_act = QtGui.QAction("Reload Caption", self)
        reload_act.triggered.connect(self.reload_current)
        file_menu.addAction(reload_act)
        file_menu.addSeparator()
        quit_act = QtGui.QAction("Quit", self)
        quit_act.setShortcut(QtGui.QKeySequence.StandardKey.Quit)
        quit_act.triggered.connect(self.close)
        file_menu.addAction(quit_act)

        view_menu = menubar.addMenu("View")
        fit_act = QtGui.QAction("Fit Image", self)
        fit_act.setShortcut(QtGui.QKeySequence("Ctrl+0"))
        view_menu.addAction(fit_act)

        # Left: folder name and image list
        self.folder_label = QtWidgets.QLabel("No folder selected")
        open_btn = QtWidgets.QPushButton("Choose Folder…")
        open_btn.clicked.connect(self.choose_directory)
        self.pair_list = QtWidgets.QListWidget()
        self.pair_list.currentRowChanged.connect(self.controller.select_index)

        left = QtWidgets.QWidget()
        left_layout = QtWidgets.QVBoxLayout(left)
        top = QtWidgets.QHBoxLayout()
        top.addWidget(open_btn)
        top.addWidget(self.folder_label, 1)
        left_layout.addLayout(top)
        left_layout.addWidget(self.pair_list)

        # Right: image and caption editor
        self.title_label = QtWidgets.QLabel()
        font = self.title_label.font()
        font.setBold(True)
        self.title_label.setFont(font)
        reload_btn = QtWidgets.QPushButton("Reload Caption")
        reload_btn.clicked.connect(self.reload_current)

        self.canvas = ImageCanvas(self.controller.viewport)
        fit_act.triggered.connect(self.canvas.fit)

        self.editor = QtWidgets.QPlainTextEdit()
        self.editor.setPlaceholderText("Caption / description")
        self.editor.textChanged.connect(self._caption_edited)
        save_btn = QtWidgets.QPushButton("Save")
        save_btn.clicked.connect(self.save_current)

        editor_box = QtWidgets.QWidget()
        editor_layout = QtWidgets.QVBoxLayout(editor_box)
        editor_layout.addWidget(QtWidgets.QLabel("Caption:"))
        editor_layout.addWidget(self.editor)
        buttons = QtWidgets.QHBoxLayout()
        buttons.addStretch(1)
        buttons.addWidget(save_btn)
        editor_layout.addLayout(buttons)

        content = QtWidgets.QSplitter()
        content.addWidget(self.canvas)
        content.addWidget(editor_box)
        content.setStretchFactor(0, 3)
        content.setStretchFactor(1, 2)

        self.detail = QtWidgets.QWidget()
        detail_layout = QtWidgets.QVBoxLayout(self.detail)
        header = QtWidgets.QHBoxLayout()
        header.addWidget(self.title_label, 1)
        header.addWidget(reload_btn)
        detail_layout.addLayout(header)
        detail_layout.addWidget(content, 1)

        self.placeholder = QtWidgets.QLabel("Select an image on the left.")
        self.placeholder.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self.placeholder.setStyleSheet("color: gray; font-style: italic;")

        self.stack = QtWidgets.QStackedWidget()
        self.stack.addWidget(self.placeholder)
        self.stack.addWidget(self.detail)

        splitter = QtWidgets.QSplitter()
        splitter.addWidget(left)
        splitter.addWidget(self.stack)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        QtGui.QShortcut(
            QtGui.QKeySequence(QtCore.Qt.Key.Key_PageUp), self
        ).activated.connect(self.controller.prev_pair)
        QtGui.QShortcut(
            QtGui.QKeySequence(QtCore.Qt.Key.Key_PageDown), self
        ).activated.connect(self.controller.next_pair)

    # Controller updates --------------------------------------
    def populate_list(self, pairs: list) -> None:
        directory = self.controller.directory
        self.folder_label.setText(directory.name if directory else "No folder selected")
        self.pair_list.blockSignals(True)
        self.pair_list.clear()
        for pair in pairs:
            item = QtWidgets.QListWidgetItem(pair_label(pair))
            item.setData(PAIR_ID_ROLE, pair.id)
            self.pair_list.addItem(item)
        self.pair_list.blockSignals(False)
        self.statusBar().showMessage(f"{len(pairs)} images", 4000)

    def load_pair(self, pair: Optional[Pair]) -> None:
        if pair is None:
            self.stack.setCurrentWidget(self.placeholder)
            self.canvas.set_image(None)
            return
        self.stack.setCurrentWidget(self.detail)
        self.pair_list.blockSignals(True)
        self.pair_list.setCurrentRow(self.controller.current_index)
        self.pair_list.blockSignals(False)
        self.title_label.setText(pair.name)
        if not self.canvas.set_image(pair.image_path):
            self.statusBar().showMessage(f"Could not load image {pair.name}", 4000)
        self._set_editor_text(pair.caption_text)

    def refresh_pair(self, pair: Pair) -> None:
        row = self.controller.pairs.index(pair) if pair in self.controller.pairs else -1
        item = self.pair_list.item(row) if row >= 0 else None
        if item is not None:
            item.setText(pair_label(pair))
        if pair is self.controller.current_pair and self.editor.toPlainText() != pair.caption_text:
            self._set_editor_text(pair.caption_text)

    def show_error(self, message: str) -> None:
        self.statusBar().showMessage(message, 8000)
        QtWidgets.QMessageBox.warning(self, "LoRA Dataset Tool", message)

    def _set_editor_text(self, text: str) -> None:
        self.editor.blockSignals(True)
        self.editor.setPlainText(text)
        self.editor.blockSignals(False)

    def _caption_edited(self) -> None:
        self.controller.set_caption_text(self.editor.toPlainText())

    # Actions -------------------------------------------------
    def save_current(self) -> None:
        result = self.controller.save_current()
        if result is not None and result.ok:
            self.statusBar().showMessage(f"Saved {self.controller.current_pair.caption_path.name}", 4000)

    def save_all(self) -> None:
        results = self.controller.save_all()
        saved = sum(1 for r in results if r.ok)
        self.statusBar().showMessage(f"Saved {saved} of {len(results)} captions", 4000)

    def reload_current(self) -> None:
        if self.controller.reload_current():
            self.statusBar().showMessage("Caption reloaded", 4000)
        elif self.controller.current_pair is not None and self.controller.current_pair.load_error is None:
            self.statusBar().showMessage("No caption file on disk yet", 4000)

    # Folder selection ---------------------------------------
    def choose_directory(self) -> None:
        directory = QtWidgets.QFileDialog.getExistingDirectory(
            self, "Select Dataset Folder"
        )
        if directory:
            self.controller.set_directory(Path(directory))

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # pragma: no cover - GUI
        dirty = self.controller.dirty_pairs()
        if dirty:
            answer = QtWidgets.QMessageBox.question(
                self,
                "Unsaved captions",
                f"{len(dirty)} caption(s) have unsaved changes. Save them?",
                QtWidgets.QMessageBox.StandardButton.Save
                | QtWidgets.QMessageBox.StandardButton.Discard
                | QtWidgets.QMessageBox.StandardButton.Cancel,
            )
            if answer == QtWidgets.QMessageBox.StandardButton.Cancel:
                event.ignore()
                return
            if answer == QtWidgets.QMessageBox.StandardButton.Save:
                if not all(r.ok for r in self.controller.save_all()):
                    event.ignore()
                    return
        self.controller.set_window_size(self.width(), self.height())
        super().closeEvent(event)
