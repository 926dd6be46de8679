"""Duplication collector: finds copy-pasted code blocks in a repository.

Every eligible file is normalized twice: an exact pass that drops blank,
comment and import lines, and a blinded pass that replaces identifiers so
renamed copies still match. Each pass is hashed in 6-line windows and
grouped independently. Near-clones already explained by an exact clone are
then dropped, and the remaining groups become findings.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor

from clonewatch.cancel import CancellationToken, check
from clonewatch.collector import CollectorOptions, Finding, register, report_progress
from clonewatch.discovery import SourceFile, discover_files
from clonewatch.filter import cap_findings, sort_findings, subtract_exact_path_sets
from clonewatch.fs import FileSystem, OSFileSystem
from clonewatch.grouper import CloneGroup, WindowIndex
from clonewatch.hashing import WindowEntry, build_window_entries
from clonewatch.normalizer import normalize_blinded, normalize_exact
from clonewatch.scoring import duplication_confidence
from clonewatch.types import frozen_slots

logger = logging.getLogger(__name__)

DEFAULT_MAX_FINDINGS = 200
_PROGRESS_EVERY = 500

CODE_CLONE = "code-clone"
NEAR_CLONE = "near-clone"


@frozen_slots
class DuplicationMetrics:
    """Aggregate counters from the last completed duplication scan."""

    files_scanned: int = 0
    exact_clones: int = 0
    near_clones: int = 0
    duplicated_lines: int = 0


@frozen_slots
class _FileWindows:
    exact: list[WindowEntry]
    blinded: list[WindowEntry]


def clone_group_to_finding(group: CloneGroup) -> Finding:
    """Convert a clone group into a finding anchored at its first location."""
    count = len(group.locations)
    if group.near_clone:
        kind = NEAR_CLONE
        title = (
            f"Near-duplicate block ({group.line_count} lines, {count} locations, "
            "renamed identifiers)"
        )
    else:
        kind = CODE_CLONE
        title = f"Duplicated block ({group.line_count} lines, {count} locations)"

    description = "Duplicated code found in:\n" + "".join(
        f"  - {loc.file_path}:{loc.start_line}\n" for loc in group.locations
    )
    first = group.locations[0]
    return Finding(
        source=DuplicationCollector.NAME,
        kind=kind,
        file_path=first.file_path,
        line=first.start_line,
        title=title,
        description=description,
        confidence=duplication_confidence(group.line_count, count, group.near_clone),
        tags=(kind, "duplication"),
    )


@register
class DuplicationCollector:
    """Collector reporting exact and identifier-renamed duplicate blocks.

    Args:
        fs: File system to scan; defaults to the real one.
    """

    NAME = "duplication"

    def __init__(self, fs: FileSystem | None = None) -> None:
        self._fs = fs or OSFileSystem()
        self._metrics: DuplicationMetrics | None = None

    def name(self) -> str:
        return self.NAME

    def metrics(self) -> DuplicationMetrics | None:
        """Counters from the last completed scan, or None before any."""
        return self._metrics

    def collect(
        self,
        token: CancellationToken,
        repo_root: str,
        options: CollectorOptions,
    ) -> list[Finding]:
        """Scan *repo_root* and return duplication findings.

        Raises:
            ScanCancelled: If *token* is cancelled before the scan finishes.
                No findings are returned and metrics are left untouched.
        """
        started = time.perf_counter()
        files = discover_files(
            repo_root,
            fs=self._fs,
            exclude_patterns=options.exclude_patterns,
            include_patterns=options.include_patterns,
            languages=options.languages,
            token=token,
            progress=options.progress,
        )
        logger.debug("discovered %d candidate files in %s", len(files), repo_root)

        exact_index = WindowIndex()
        blinded_index = WindowIndex()
        scanned = 0
        for source, windows in self._hash_files(files, token, options.workers):
            check(token)
            if windows is None:
                continue
            exact_index.add(source.rel_path, windows.exact)
            blinded_index.add(source.rel_path, windows.blinded)
            scanned += 1
            if scanned % _PROGRESS_EVERY == 0:
                report_progress(
                    logger, options.progress, f"duplication: scanned {scanned} files"
                )

        exact_groups = exact_index.find_groups(token=token)
        near_groups = blinded_index.find_groups(near_clone=True, token=token)
        near_groups = subtract_exact_path_sets(near_groups, exact_groups)
        check(token)

        findings: list[Finding] = []
        exact_count = near_count = duplicated_lines = 0
        for group in [*exact_groups, *near_groups]:
            finding = clone_group_to_finding(group)
            if finding.confidence < options.min_confidence:
                continue
            findings.append(finding)
            if group.near_clone:
                near_count += 1
            else:
                exact_count += 1
            duplicated_lines += group.duplicated_lines

        limit = options.max_findings if options.max_findings > 0 else DEFAULT_MAX_FINDINGS
        findings = cap_findings(sort_findings(findings), limit)

        self._metrics = DuplicationMetrics(
            files_scanned=scanned,
            exact_clones=exact_count,
            near_clones=near_count,
            duplicated_lines=duplicated_lines,
        )
        logger.debug(
            "duplication: %d files, %d exact and %d near clones in %.2fs",
            scanned,
            exact_count,
            near_count,
            time.perf_counter() - started,
        )
        return findings

    def _hash_files(
        self,
        files: Sequence[SourceFile],
        token: CancellationToken,
        workers: int,
    ) -> Iterator[tuple[SourceFile, _FileWindows | None]]:
        """Yield each file with its window entries, in input order."""
        if workers <= 1 or len(files) <= 1:
            for source in files:
                yield source, self._hash_file(source, token)
            return

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._hash_file, s, token) for s in files]
            try:
                for source, future in zip(files, futures):
                    yield source, future.result()
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    def _hash_file(
        self, source: SourceFile, token: CancellationToken
    ) -> _FileWindows | None:
        check(token)
        try:
            lines = self._fs.read_lines(source.abs_path)
        except OSError as exc:
            logger.debug("skipping unreadable file %s: %s", source.rel_path, exc)
            return None
        return _FileWindows(
            exact=build_window_entries(normalize_exact(lines), source.rel_path),
            blinded=build_window_entries(normalize_blinded(lines), source.rel_path),
        )