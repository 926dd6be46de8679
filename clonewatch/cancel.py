"""Cooperative cancellation for long-running scans."""

from __future__ import annotations

import threading
import time


class ScanCancelled(Exception):
    """Raised when a scan is cancelled or exceeds its deadline."""


class CancellationToken:
    """Thread-safe cancellation signal with an optional deadline.

    Scan phases call :meth:`raise_if_cancelled` between units of work
    (walk entries, files, grouping buckets).  Once cancelled, a token stays
    cancelled.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._timeout = timeout
        self._deadline = (
            time.monotonic() + timeout if timeout is not None and timeout > 0 else None
        )

    def cancel(self) -> None:
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelled("scan cancelled")
        if self.expired:
            raise ScanCancelled(f"scan timed out after {self._timeout:g}s")


def check(token: CancellationToken | None) -> None:
    """Raise :class:`ScanCancelled` if *token* is set; ``None`` never cancels."""
    if token is not None:
        token.raise_if_cancelled()
