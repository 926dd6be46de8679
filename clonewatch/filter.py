"""Post-grouping filters: cross-pass dedup, ordering and output cap."""

from __future__ import annotations

from collections.abc import Sequence

from clonewatch.collector import Finding
from clonewatch.grouper import CloneGroup


def subtract_exact_path_sets(
    near_groups: Sequence[CloneGroup],
    exact_groups: Sequence[CloneGroup],
) -> list[CloneGroup]:
    """Drop near-clone groups already explained by an exact clone.

    Two groups are considered the same when they touch the same set of
    files; line offsets are ignored. This can also suppress an unrelated
    near-clone between two files that share an exact clone elsewhere.
    """
    exact_path_sets = {g.paths for g in exact_groups}
    return [g for g in near_groups if g.paths not in exact_path_sets]


def _finding_sort_key(f: Finding) -> tuple[float, str, int, str, str]:
    return (-f.confidence, f.file_path, f.line, f.kind, f.title)


def sort_findings(findings: Sequence[Finding]) -> list[Finding]:
    """Order by confidence (highest first), then location, kind and title."""
    return sorted(findings, key=_finding_sort_key)


def cap_findings(findings: Sequence[Finding], limit: int) -> list[Finding]:
    """Truncate to *limit* findings; a limit of 0 or less means no cap."""
    if limit <= 0:
        return list(findings)
    return list(findings[:limit])
