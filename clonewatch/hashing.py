"""Sliding-window hashing over normalized lines.

Every run of ``WINDOW_SIZE`` consecutive normalized lines in a file gets one
fixed-width digest. Identical windows hash identically regardless of the
file, the normalization pass, or the process they were computed in.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence

from clonewatch.normalizer import NormalizedLine
from clonewatch.types import frozen_slots

# Minimum clone length considered reportable, in normalized lines.
WINDOW_SIZE = 6

_DIGEST_SIZE = 8  # 64-bit window hashes


@frozen_slots
class WindowEntry:
    """Hash of one window, tied to its file and position."""

    hash_value: int
    file_path: str
    start_line: int  # original line of the window's first line
    end_line: int  # original line of the window's last line
    index: int  # position of the window in the file's normalized lines


def hash_window(texts: Iterable[str]) -> int:
    """Compute an order-sensitive 64-bit hash over a window's line texts.

    Stable across processes, unlike the salted builtin ``hash``.
    """
    h = hashlib.blake2b(digest_size=_DIGEST_SIZE)
    for text in texts:
        h.update(text.encode("utf-8", errors="surrogatepass"))
        h.update(b"\n")
    return int.from_bytes(h.digest(), "big")


def build_window_entries(
    lines: Sequence[NormalizedLine],
    file_path: str,
    *,
    window_size: int = WINDOW_SIZE,
) -> list[WindowEntry]:
    """Slide a fixed-size window over a file's normalized lines.

    Args:
        lines: Normalized lines of one file, in source order.
        file_path: Path recorded on every entry.
        window_size: Number of consecutive lines per window.

    Returns:
        One entry per start index ``i`` in ``[0, len(lines) - window_size]``;
        empty when the file has fewer than ``window_size`` lines.
    """
    if len(lines) < window_size:
        return []

    texts = [nl.text for nl in lines]
    return [
        WindowEntry(
            hash_value=hash_window(texts[i : i + window_size]),
            file_path=file_path,
            start_line=lines[i].line,
            end_line=lines[i + window_size - 1].line,
            index=i,
        )
        for i in range(len(lines) - window_size + 1)
    ]
