"""Workspace file access for embedding source snippets next to comments.

Snippets are best-effort: a file that is missing, unreadable, binary or
outside the workspace simply yields no snippet.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from review_context.logging_config import get_logger

logger = get_logger(__name__)


class WorkspaceReader(Protocol):
    """Reads files relative to the workspace root."""

    async def read_text(self, path: str) -> str | None:
        """Return the file's text, or None if it cannot be read."""
        ...


class LocalWorkspaceReader:
    """Reads files from the local checkout.

    Reads run in a worker thread so several snippets can be fetched
    concurrently without blocking the event loop.
    """

    def __init__(self, workspace_dir: str | Path) -> None:
        self._root = Path(workspace_dir).resolve()

    async def read_text(self, path: str) -> str | None:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            logger.warning("snippet_path_outside_workspace", path=path)
            return None

        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("snippet_read_failed", path=path, error=str(exc))
            return None


class MockWorkspaceReader:
    """In-memory reader for tests: path -> file content."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self._files = files or {}
        self.reads: list[str] = []

    async def read_text(self, path: str) -> str | None:
        self.reads.append(path)
        return self._files.get(path)


def slice_lines(text: str, start_line: int, end_line: int) -> str | None:
    """Return lines ``start_line`` through ``end_line`` (1-based, inclusive).

    Returns None when the range falls entirely outside the file.
    """
    lines = text.splitlines()
    start, end = sorted((start_line, end_line))
    selected = lines[start - 1 : end]
    if not selected:
        return None
    return "\n".join(selected)
