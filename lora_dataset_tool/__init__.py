"""lora_dataset_tool package."""

from importlib import import_module


def main() -> None:
    module = import_module("lora_dataset_tool.main")
    module.main()

__all__ = ["main"]
