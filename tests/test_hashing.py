"""Tests for sliding-window hashing."""

import hashlib

from clonewatch.hashing import WINDOW_SIZE, build_window_entries, hash_window
from clonewatch.normalizer import NormalizedLine


def _lines(texts, first_line=1):
    return [NormalizedLine(t, first_line + i) for i, t in enumerate(texts)]


class TestHashWindow:
    def test_deterministic(self):
        texts = ["a = 1", "b = 2", "c = 3"]
        assert hash_window(texts) == hash_window(list(texts))

    def test_blake2b_64_bit_digest(self):
        expected = int.from_bytes(
            hashlib.blake2b(b"x\ny\n", digest_size=8).digest(), "big"
        )
        assert hash_window(iter(["x", "y"])) == expected
        assert 0 <= hash_window(["x"]) < 2**64

    def test_order_sensitive(self):
        assert hash_window(["a", "b"]) != hash_window(["b", "a"])

    def test_line_boundaries_matter(self):
        assert hash_window(["ab", "c"]) != hash_window(["a", "bc"])

    def test_different_content_different_hash(self):
        assert hash_window(["a = 1"]) != hash_window(["a = 2"])


class TestBuildWindowEntries:
    def test_window_size_is_six(self):
        assert WINDOW_SIZE == 6

    def test_short_file_has_no_windows(self):
        assert build_window_entries(_lines(["x"] * 5), "a.py") == []

    def test_exactly_one_window(self):
        entries = build_window_entries(_lines([f"l{i}" for i in range(6)]), "a.py")
        assert len(entries) == 1
        assert entries[0].start_line == 1
        assert entries[0].end_line == 6
        assert entries[0].index == 0
        assert entries[0].file_path == "a.py"

    def test_window_count(self):
        entries = build_window_entries(_lines([f"l{i}" for i in range(10)]), "a.py")
        assert len(entries) == 10 - WINDOW_SIZE + 1
        assert [e.index for e in entries] == list(range(5))

    def test_original_line_numbers_survive_gaps(self):
        lines = [NormalizedLine(f"l{i}", n) for i, n in enumerate([2, 3, 7, 8, 9, 15, 20])]
        entries = build_window_entries(lines, "a.py")
        assert (entries[0].start_line, entries[0].end_line) == (2, 15)
        assert (entries[1].start_line, entries[1].end_line) == (3, 20)

    def test_same_window_same_hash_across_files(self):
        texts = [f"l{i}" for i in range(6)]
        a = build_window_entries(_lines(texts), "a.py")
        b = build_window_entries(_lines(texts, first_line=40), "b.py")
        assert a[0].hash_value == b[0].hash_value

    def test_custom_window_size(self):
        entries = build_window_entries(_lines(["a", "b", "c"]), "a.py", window_size=2)
        assert len(entries) == 2
