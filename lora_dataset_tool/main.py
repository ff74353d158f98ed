"""Entry point for lora_dataset_tool."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

# Allow running this file directly without installing the package
if __package__ is None:  # pragma: no cover - simple path fix
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from PySide6 import QtWidgets

# Use absolute imports so running this file directly works too
from lora_dataset_tool.controller import Controller
from lora_dataset_tool.gui import MainWindow


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LORA_DATASET_TOOL_LOG", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QtWidgets.QApplication(sys.argv)
    controller = Controller()
    window = MainWindow(controller)
    window.show()
    controller.restore_last_directory()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
