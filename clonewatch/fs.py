"""File-system access used by the scanners.

Scanners take a :class:`FileSystem` argument instead of touching ``os``
directly, so tests can substitute failing or synthetic file systems.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Protocol

WalkEntry = tuple[str, list[str], list[str]]


class FileSystem(Protocol):
    """Read-only file-system operations needed by a scan."""

    def walk(self, root: str) -> Iterator[WalkEntry]:
        """Yield ``(dirpath, dirnames, filenames)`` like :func:`os.walk`.

        Names are sorted. Callers may prune ``dirnames`` in place.
        Unreadable directories are skipped.
        """
        ...

    def is_symlink(self, path: str) -> bool: ...

    def realpath(self, path: str) -> str: ...

    def read_head(self, path: str, size: int) -> bytes:
        """Return at most *size* bytes from the start of *path*."""
        ...

    def read_lines(self, path: str) -> list[str]:
        """Return the lines of a text file without line terminators."""
        ...


class OSFileSystem:
    """Production :class:`FileSystem` backed by the standard library."""

    def walk(self, root: str) -> Iterator[WalkEntry]:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            yield dirpath, dirnames, sorted(filenames)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)

    def read_head(self, path: str, size: int) -> bytes:
        with open(path, "rb") as f:
            return f.read(size)

    def read_lines(self, path: str) -> list[str]:
        with open(path, encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\n") for line in f]
