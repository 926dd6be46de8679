"""Scan pipeline: wires configuration, collectors and the reporter together."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from clonewatch import collector as registry
from clonewatch.cancel import CancellationToken
from clonewatch.collector import Finding
from clonewatch.config import Config
from clonewatch.duplication import DuplicationCollector
from clonewatch.filter import sort_findings
from clonewatch.fs import FileSystem
from clonewatch.reporter import format_human, format_json
from clonewatch.types import ProgressFn, frozen_slots

logger = logging.getLogger(__name__)

DEFAULT_COLLECTORS: tuple[str, ...] = (DuplicationCollector.NAME,)


@frozen_slots
class ScanResult:
    """Findings from every collector that ran, plus each collector's metrics."""

    findings: list[Finding]
    metrics: dict[str, object]

    @property
    def files_scanned(self) -> int:
        return max(
            (getattr(m, "files_scanned", 0) for m in self.metrics.values()),
            default=0,
        )


def scan(
    config: Config,
    root: str,
    *,
    collectors: Sequence[str] = DEFAULT_COLLECTORS,
    fs: FileSystem | None = None,
    token: CancellationToken | None = None,
    progress: ProgressFn | None = None,
) -> ScanResult:
    """Run each named collector over *root*.

    Args:
        config: Runtime configuration controlling filters and limits.
        root: Repository root to scan.
        collectors: Registered collector names to run, in order.
        fs: File system passed to each collector; defaults to the real one.
        token: Cancellation token; built from ``config.timeout`` if omitted.
        progress: Optional callback for progress messages.

    Returns:
        The combined, ordered findings and per-collector metrics.

    Raises:
        ValueError: If a collector name is not registered.
        ScanCancelled: If the scan is cancelled or times out.
    """
    if token is None:
        token = CancellationToken(timeout=config.timeout or None)
    options = config.collector_options(progress=progress)

    findings: list[Finding] = []
    metrics: dict[str, object] = {}
    for name in collectors:
        cls = registry.get(name)
        if cls is None:
            raise ValueError(
                f"unknown collector '{name}' (known: {', '.join(registry.names())})"
            )
        instance = cls(fs=fs)
        logger.debug("running collector %s on %s", name, root)
        findings.extend(instance.collect(token, root, options))
        metrics[name] = instance.metrics()

    return ScanResult(findings=sort_findings(findings), metrics=metrics)


def scan_and_report(
    config: Config,
    root: str,
    out: TextIO = sys.stdout,
    *,
    fs: FileSystem | None = None,
    token: CancellationToken | None = None,
    progress: ProgressFn | None = None,
) -> ScanResult:
    """Run scan and write formatted output.

    Args:
        config: Runtime configuration.
        root: Repository root to scan.
        out: Output stream for the report.
        fs: File system to scan; defaults to the real one.
        token: Cancellation token; built from ``config.timeout`` if omitted.
        progress: Optional callback for progress messages.

    Returns:
        The scan result (also written to out).
    """
    result = scan(config, root, fs=fs, token=token, progress=progress)

    if config.output_format == "json":
        format_json(result, out)
    else:
        format_human(result, out)

    return result
