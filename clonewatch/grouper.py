"""Window index that turns shared window hashes into clone groups.

Entries from every file are kept in a per-file arena ordered by window
position, and bucketed by hash. A bucket with two or more occurrences
seeds a clone; the seed is grown one window at a time in both directions
while every occurrence's neighbouring window still shares one hash, so a
40-line copy is reported once instead of as dozens of 6-line fragments.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from clonewatch.cancel import CancellationToken, check
from clonewatch.hashing import WINDOW_SIZE, WindowEntry
from clonewatch.types import frozen_slots

# (file_path, window index): one occurrence of a window hash.
Occurrence = tuple[str, int]


@frozen_slots
class CloneLocation:
    """One occurrence of a clone."""

    file_path: str
    start_line: int
    end_line: int


@frozen_slots
class CloneGroup:
    """A block of lines found at two or more locations."""

    line_count: int
    locations: tuple[CloneLocation, ...]
    near_clone: bool = False

    @property
    def paths(self) -> frozenset[str]:
        """The set of files this group touches, ignoring line offsets."""
        return frozenset(loc.file_path for loc in self.locations)

    @property
    def duplicated_lines(self) -> int:
        return self.line_count * len(self.locations)


def _group_sort_key(group: CloneGroup) -> tuple[int, tuple[tuple[str, int], ...]]:
    return (
        -group.line_count,
        tuple((loc.file_path, loc.start_line) for loc in group.locations),
    )


@dataclass
class WindowIndex:
    """Index of window entries for one normalization pass.

    Build one per worker if files are hashed concurrently, then fold them
    together with :meth:`merge` before calling :meth:`find_groups`.
    """

    window_size: int = WINDOW_SIZE
    _files: dict[str, list[WindowEntry]] = field(default_factory=dict)
    _buckets: dict[int, list[Occurrence]] = field(
        default_factory=lambda: defaultdict(list)
    )

    def add(self, file_path: str, entries: Sequence[WindowEntry]) -> None:
        """Add one file's window entries, ordered by window index."""
        if file_path in self._files:
            raise ValueError(f"file already indexed: {file_path}")
        if not entries:
            return
        self._files[file_path] = list(entries)
        for entry in entries:
            self._buckets[entry.hash_value].append((file_path, entry.index))

    def merge(self, other: WindowIndex) -> None:
        """Fold another index's files into this one."""
        for file_path, entries in other._files.items():
            self.add(file_path, entries)

    @property
    def file_count(self) -> int:
        return len(self._files)

    def _extends(self, occurrences: Sequence[Occurrence], offset: int) -> bool:
        """True if the windows at *offset* from every occurrence share one hash."""
        shared: int | None = None
        for file_path, index in occurrences:
            arena = self._files[file_path]
            target = index + offset
            if target < 0 or target >= len(arena):
                return False
            hash_value = arena[target].hash_value
            if shared is None:
                shared = hash_value
            elif hash_value != shared:
                return False
        return True

    def _make_group(
        self, start: Sequence[Occurrence], span: int, near_clone: bool
    ) -> CloneGroup:
        locations = tuple(
            CloneLocation(
                file_path=file_path,
                start_line=self._files[file_path][index].start_line,
                end_line=self._files[file_path][index + span].end_line,
            )
            for file_path, index in start
        )
        return CloneGroup(
            line_count=self.window_size + span,
            locations=locations,
            near_clone=near_clone,
        )

    def find_groups(
        self,
        *,
        near_clone: bool = False,
        token: CancellationToken | None = None,
    ) -> list[CloneGroup]:
        """Find maximal clone groups across all indexed files.

        Args:
            near_clone: Flag stamped on every returned group.
            token: Checked between buckets; cancellation raises
                :class:`~clonewatch.cancel.ScanCancelled`.

        Returns:
            Groups with ``line_count >= window_size`` and two or more
            distinct locations, longest first.
        """
        covered: set[tuple[Occurrence, ...]] = set()
        groups: dict[tuple[frozenset[tuple[str, int]], int], CloneGroup] = {}

        for bucket in self._buckets.values():
            check(token)
            occurrences = tuple(sorted(set(bucket)))
            if len(occurrences) < 2 or occurrences in covered:
                continue

            left = 0
            while self._extends(occurrences, -(left + 1)):
                left += 1
            right = 0
            while self._extends(occurrences, right + 1):
                right += 1

            start = tuple((path, index - left) for path, index in occurrences)
            span = left + right
            # Every shifted copy of this occurrence set grows into the same region.
            for step in range(span + 1):
                covered.add(tuple((path, index + step) for path, index in start))

            group = self._make_group(start, span, near_clone)
            key = (
                frozenset((loc.file_path, loc.start_line) for loc in group.locations),
                group.line_count,
            )
            groups.setdefault(key, group)

        return sorted(groups.values(), key=_group_sort_key)
