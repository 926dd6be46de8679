"""The collector contract shared by repository health scanners.

A collector inspects a repository and returns :class:`Finding` records.
Collectors register themselves by name so an orchestrator can look them
up without importing each implementation directly.
"""

from __future__ import annotations

import logging
from typing import Protocol, TypeVar

from clonewatch.cancel import CancellationToken
from clonewatch.types import ProgressFn, frozen_slots


@frozen_slots
class Finding:
    """A single actionable observation produced by a collector."""

    source: str  # collector name, e.g. "duplication"
    kind: str  # e.g. "code-clone", "near-clone"
    file_path: str
    line: int  # 0 if not applicable
    title: str
    description: str
    confidence: float  # 0.0-1.0
    tags: tuple[str, ...] = ()


@frozen_slots
class CollectorOptions:
    """Per-collector options supplied by the orchestrator."""

    exclude_patterns: tuple[str, ...] = ()  # appended to the default excludes
    include_patterns: tuple[str, ...] = ()  # empty means everything
    languages: tuple[str, ...] = ()
    min_confidence: float = 0.0  # 0 disables the filter
    max_findings: int = 0  # 0 uses the collector's own cap
    workers: int = 1
    progress: ProgressFn | None = None


class Collector(Protocol):
    """Protocol every collector implements."""

    def name(self) -> str: ...

    def collect(
        self,
        token: CancellationToken,
        repo_root: str,
        options: CollectorOptions,
    ) -> list[Finding]: ...

    def metrics(self) -> object | None: ...


C = TypeVar("C", bound=type)

_REGISTRY: dict[str, type] = {}


def register(cls: C) -> C:
    """Class decorator adding a collector class to the registry under ``cls.NAME``.

    Raises:
        ValueError: If another collector already claimed the name.
    """
    name = cls.NAME
    if name in _REGISTRY:
        raise ValueError(f"collector already registered: {name}")
    _REGISTRY[name] = cls
    return cls


def get(name: str) -> type | None:
    """Return the collector class registered under *name*, or None."""
    return _REGISTRY.get(name)


def names() -> list[str]:
    """Return the sorted names of all registered collectors."""
    return sorted(_REGISTRY)


def report_progress(
    logger: logging.Logger, progress: ProgressFn | None, message: str
) -> None:
    """Log a progress message and forward it to the caller's callback, if any."""
    logger.info(message)
    if progress is not None:
        progress(message)
