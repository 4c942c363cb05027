"""Source file reading, output writing and extension-to-language lookup."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import FilesystemError

LOGGER = logging.getLogger(__name__)

LANGUAGE_BY_EXTENSION = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "rs": "rust",
    "go": "go",
    "php": "php",
    "rb": "ruby",
    "cs": "csharp",
    "swift": "swift",
    "kt": "kotlin",
    "jsx": "jsx",
    "tsx": "tsx",
}


def file_extension(path: str | Path) -> str:
    return Path(path).suffix[1:]


def language_for_path(path: str | Path) -> str:
    """Map a file extension to a language tag, passing unknown extensions through."""
    extension = file_extension(path)
    if not extension:
        return "text"
    return LANGUAGE_BY_EXTENSION.get(extension.lower(), extension)


def read_source(path: str | Path) -> str:
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise FilesystemError(f"File not found: {path}")
    try:
        return resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FilesystemError(f"Failed to read file {path}: {exc}") from exc


def write_output(path: str | Path, content: str) -> Path:
    """Overwrite ``path`` with ``content``, creating parent directories as needed."""
    resolved = Path(path).expanduser().resolve()
    try:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        with resolved.open("w", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        raise FilesystemError(f"Failed to write file {path}: {exc}") from exc
    LOGGER.debug("output_written", extra={"path": str(resolved), "chars": len(content)})
    return resolved
