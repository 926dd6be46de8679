"""Output formatting for scan results."""

from __future__ import annotations

import dataclasses
import json
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from clonewatch.pipeline import ScanResult


def _metrics_dict(metrics: object) -> object:
    if metrics is None:
        return None
    if dataclasses.is_dataclass(metrics) and not isinstance(metrics, type):
        return dataclasses.asdict(metrics)
    return metrics


def format_human(result: ScanResult, out: TextIO) -> None:
    """Write human-readable scan report."""
    if not result.findings:
        out.write("No clones detected.\n")
        return

    out.write(
        f"Found {len(result.findings)} finding(s)"
        f" across {result.files_scanned} scanned file(s):\n\n"
    )
    for f in result.findings:
        out.write(f"  [{f.kind}] {f.title} (confidence {f.confidence:.2f})\n")
        for line in f.description.splitlines():
            out.write(f"    {line}\n")
        out.write("\n")


def format_json(result: ScanResult, out: TextIO) -> None:
    """Write JSON-formatted scan report."""
    data = {
        "findings": [
            {
                "source": f.source,
                "kind": f.kind,
                "file_path": f.file_path,
                "line": f.line,
                "title": f.title,
                "description": f.description,
                "confidence": f.confidence,
                "tags": list(f.tags),
            }
            for f in result.findings
        ],
        "metrics": {name: _metrics_dict(m) for name, m in result.metrics.items()},
        "total_findings": len(result.findings),
    }
    json.dump(data, out, indent=2)
    out.write("\n")
