"""Line-oriented user output."""

from __future__ import annotations

from collections.abc import Callable

Writer = Callable[[str], None]


class Console:
    """Prints status lines through a replaceable writer (``print`` by default)."""

    def __init__(self, write: Writer = print) -> None:
        self.write = write

    def line(self, text: str = "") -> None:
        self.write(text)

    def success(self, message: str) -> None:
        self.write(f"✓ {message}")

    def error(self, message: str) -> None:
        self.write(f"✗ {message}")

    def warning(self, message: str) -> None:
        self.write(f"⚠ {message}")

    def info(self, message: str) -> None:
        self.write(f"ℹ {message}")

    def header(self, title: str) -> None:
        self.write(f"\n=== {title} ===")
