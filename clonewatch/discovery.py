"""File discovery: walk a repository and collect source files for analysis."""

from __future__ import annotations

import fnmatch
import logging
import os
import posixpath
from pathlib import PurePath

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

from clonewatch.cancel import CancellationToken, check
from clonewatch.collector import report_progress
from clonewatch.fs import FileSystem, OSFileSystem
from clonewatch.types import ProgressFn, frozen_slots

logger = logging.getLogger(__name__)

# Directory/file globs skipped in every scan; user patterns are added to these.
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "vendor/**",
    "node_modules/**",
    ".git/**",
    "testdata/**",
    "CHANGELOG*",
    "CHANGES*",
    "HISTORY*",
    "NEWS*",
    "third_party/**",
    "3rdparty/**",
    "extern/**",
    "external/**",
    "bower_components/**",
    "wwwroot/lib/**",
)

SOURCE_EXTENSIONS = frozenset(
    {
        ".go",
        ".js",
        ".ts",
        ".jsx",
        ".tsx",
        ".py",
        ".rb",
        ".java",
        ".cs",
        ".rs",
        ".cpp",
        ".c",
        ".h",
        ".hpp",
        ".swift",
        ".kt",
        ".scala",
        ".php",
        ".ex",
        ".exs",
    }
)

# Markers looked for (case-insensitively) near the top of generated files.
GENERATED_MARKERS = (
    "code generated",
    "@generated",
    "do not edit",
    "autogenerated",
    "auto-generated",
)
_GENERATED_SUFFIXES = ("_string.go",)
_GENERATED_HEADER_LINES = 5
_GENERATED_HEADER_BYTES = 4096

_BINARY_SNIFF_BYTES = 512

MAX_FILES = 10_000


@frozen_slots
class SourceFile:
    """A file selected for analysis."""

    rel_path: str  # POSIX-style, relative to the scan root
    abs_path: str


def merge_excludes(user_patterns: tuple[str, ...] = ()) -> tuple[str, ...]:
    """Return the default exclude patterns followed by *user_patterns*."""
    return DEFAULT_EXCLUDE_PATTERNS + tuple(user_patterns)


def _is_name_pattern(pattern: str) -> bool:
    """Patterns without a directory part also match bare file names."""
    return "/" not in pattern and "**" not in pattern


def should_exclude(rel_path: str, patterns: tuple[str, ...]) -> bool:
    """Return True if *rel_path* matches any exclude pattern.

    ``dir/**`` matches ``dir`` itself, everything below it, and a ``dir``
    nested anywhere in the tree.
    """
    name = posixpath.basename(rel_path)
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if _is_name_pattern(pattern) and fnmatch.fnmatch(name, pattern):
            return True
        if pattern.endswith("/**"):
            directory = pattern[: -len("/**")]
            if f"/{directory}/" in f"/{rel_path}/":
                return True
    return False


def matches_any(rel_path: str, patterns: tuple[str, ...]) -> bool:
    """Return True if *rel_path* matches any include pattern."""
    name = posixpath.basename(rel_path)
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if _is_name_pattern(pattern) and fnmatch.fnmatch(name, pattern):
            return True
        if "**" in pattern:
            prefix, _, suffix = pattern.partition("**")
            suffix = suffix.removeprefix("/")
            if rel_path.startswith(prefix):
                if not suffix:
                    return True
                rest = rel_path[len(prefix) :]
                if fnmatch.fnmatch(posixpath.basename(rest), suffix):
                    return True
    return False


def is_binary(fs: FileSystem, path: str) -> bool:
    """Return True if the file looks binary (NUL in its first 512 bytes).

    Unreadable and empty files count as binary so they are skipped.
    """
    try:
        head = fs.read_head(path, _BINARY_SNIFF_BYTES)
    except OSError:
        return True
    return not head or b"\x00" in head


def is_generated(fs: FileSystem, path: str) -> bool:
    """Return True if the file appears to be machine-generated."""
    if os.path.basename(path).endswith(_GENERATED_SUFFIXES):
        return True
    try:
        head = fs.read_head(path, _GENERATED_HEADER_BYTES)
    except OSError:
        return False
    text = head.decode("utf-8", errors="replace").lower()
    for line in text.splitlines()[:_GENERATED_HEADER_LINES]:
        if any(marker in line for marker in GENERATED_MARKERS):
            return True
    return False


def matches_language(path: str, languages: tuple[str, ...]) -> bool:
    """Return True if pygments maps *path* to one of *languages*.

    An empty *languages* tuple accepts every file.
    """
    if not languages:
        return True
    try:
        lexer = get_lexer_for_filename(posixpath.basename(path))
    except ClassNotFound:
        return False
    lexer_names = {lexer.name.lower()} | {a.lower() for a in lexer.aliases}
    return bool({lang.lower() for lang in languages} & lexer_names)


def _within(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def discover_files(
    root: str,
    *,
    fs: FileSystem | None = None,
    exclude_patterns: tuple[str, ...] = (),
    include_patterns: tuple[str, ...] = (),
    languages: tuple[str, ...] = (),
    max_files: int = MAX_FILES,
    token: CancellationToken | None = None,
    progress: ProgressFn | None = None,
) -> list[SourceFile]:
    """Collect candidate source files under *root*.

    Excluded directories are pruned from the walk. Files must pass, in
    order: exclude patterns, the symlink containment check, include
    patterns, the extension allow-list, the language filter, and the
    binary and generated-file checks.

    Args:
        root: Repository root to walk.
        fs: File system to read from; defaults to the real one.
        exclude_patterns: Extra globs appended to the default excludes.
        include_patterns: If non-empty, only files matching one are kept.
        languages: If non-empty, only files pygments maps to these languages.
        max_files: Stop collecting after this many files.
        token: Checked before every directory and file.
        progress: Receives a message when the file cap is reached.

    Returns:
        Selected files in sorted walk order.

    Raises:
        ScanCancelled: If *token* is cancelled during the walk.
    """
    fs = fs or OSFileSystem()
    excludes = merge_excludes(exclude_patterns)
    real_root = fs.realpath(root)
    collected: list[SourceFile] = []

    for dirpath, dirnames, filenames in fs.walk(root):
        check(token)
        rel_dir = PurePath(os.path.relpath(dirpath, root)).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"

        dirnames[:] = [d for d in dirnames if not should_exclude(prefix + d, excludes)]

        for name in filenames:
            check(token)
            rel_path = prefix + name
            abs_path = os.path.join(dirpath, name)

            if should_exclude(rel_path, excludes):
                continue
            if fs.is_symlink(abs_path) and not _within(fs.realpath(abs_path), real_root):
                logger.debug("skipping symlink outside root: %s", rel_path)
                continue
            if include_patterns and not matches_any(rel_path, include_patterns):
                continue
            if posixpath.splitext(name)[1] not in SOURCE_EXTENSIONS:
                continue
            if not matches_language(name, languages):
                continue
            if is_binary(fs, abs_path):
                logger.debug("skipping binary file: %s", rel_path)
                continue
            if is_generated(fs, abs_path):
                logger.debug("skipping generated file: %s", rel_path)
                continue

            if len(collected) >= max_files:
                report_progress(
                    logger,
                    progress,
                    f"file cap reached ({max_files} files), skipping remaining",
                )
                return collected
            collected.append(SourceFile(rel_path=rel_path, abs_path=abs_path))

    return collected
