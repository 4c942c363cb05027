"""Per-directory trust confirmation that precedes any file or network work."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from .console import Console
from .errors import FilesystemError

TRUST_FILE_NAME = ".deepseek-trust"
ACCEPT_ANSWERS = {"1", "y", "yes"}

LOGGER = logging.getLogger(__name__)

ReadLine = Callable[[str], str]


def trust_marker_path(directory: str | Path) -> Path:
    return Path(directory) / TRUST_FILE_NAME


class TrustGate:
    """Asks once per working directory and remembers the answer in a marker file.

    Accepting writes ``.deepseek-trust`` into the directory. Declining exits the
    process without writing anything, so the question is asked again next run.
    """

    def __init__(
        self, *, read_line: ReadLine | None = None, console: Console | None = None
    ) -> None:
        self.read_line = read_line or input
        self.console = console or Console()

    def is_trusted(self, directory: str | Path) -> bool:
        return trust_marker_path(directory).is_file()

    def check_trust(self, directory: str | Path) -> bool:
        if self.is_trusted(directory):
            return True

        self._show_disclosure(directory)
        try:
            answer = self.read_line("Enter 1 to confirm, anything else to exit: ")
        except EOFError:
            answer = ""

        if answer.strip().lower() not in ACCEPT_ANSWERS:
            LOGGER.info("trust_declined", extra={"directory": str(directory)})
            self.console.error("Operation cancelled")
            raise SystemExit(0)

        marker = trust_marker_path(directory)
        try:
            marker.write_text("trusted", encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(
                f"Could not record trust for {directory}: {exc}"
            ) from exc

        LOGGER.info("trust_granted", extra={"directory": str(directory)})
        self.console.success("Trust established for this folder")
        self.console.line()
        return True

    def _show_disclosure(self, directory: str | Path) -> None:
        lines = [
            "=== Security Check ===",
            "",
            "Do you trust the files in this folder?",
            "",
            str(directory),
            "",
            "DeepSeek Code may read and write files contained in this directory",
            "and send their contents to the DeepSeek API.",
            "Only continue with files from trusted sources.",
            "",
            "  1. Yes, proceed",
            "  2. No, exit",
            "",
        ]
        for line in lines:
            self.console.line(line)
