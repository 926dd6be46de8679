"""Tests for the file discovery module."""

import os
from pathlib import Path

import pytest

from clonewatch.cancel import CancellationToken, ScanCancelled
from clonewatch.discovery import (
    DEFAULT_EXCLUDE_PATTERNS,
    discover_files,
    is_binary,
    is_generated,
    matches_any,
    merge_excludes,
    should_exclude,
)
from clonewatch.fs import OSFileSystem

FIXTURES = str(Path(__file__).parent / "fixtures")


def _write(root: Path, rel: str, content: str | bytes = "x = 1\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path


def _rel_paths(root: Path, **kwargs) -> list[str]:
    return [f.rel_path for f in discover_files(str(root), **kwargs)]


class TestDiscoverFiles:
    def test_finds_python_files_in_fixtures(self):
        names = {f.rel_path for f in discover_files(FIXTURES)}
        assert {"clone_a.py", "clone_b.py", "renamed.py", "unique.py"} <= names

    def test_sorted_walk_order_with_posix_paths(self, tmp_path):
        _write(tmp_path, "b.py")
        _write(tmp_path, "a.py")
        _write(tmp_path, "pkg/sub/c.go")
        assert _rel_paths(tmp_path) == ["a.py", "b.py", "pkg/sub/c.go"]

    def test_abs_path_points_at_file(self, tmp_path):
        _write(tmp_path, "pkg/a.py")
        (found,) = discover_files(str(tmp_path))
        assert os.path.samefile(found.abs_path, tmp_path / "pkg" / "a.py")

    def test_unknown_extension_skipped(self, tmp_path):
        _write(tmp_path, "notes.txt")
        _write(tmp_path, "data.json")
        _write(tmp_path, "main.rs")
        assert _rel_paths(tmp_path) == ["main.rs"]

    def test_default_excludes(self, tmp_path):
        _write(tmp_path, "vendor/lib.go")
        _write(tmp_path, "web/node_modules/pkg/index.js")
        _write(tmp_path, "third_party/x.c")
        _write(tmp_path, "src/app.py")
        assert _rel_paths(tmp_path) == ["src/app.py"]

    def test_user_exclude_pattern(self, tmp_path):
        _write(tmp_path, "src/app.py")
        _write(tmp_path, "src/app_test.py")
        assert _rel_paths(tmp_path, exclude_patterns=("*_test.py",)) == ["src/app.py"]

    def test_user_exclude_directory(self, tmp_path):
        _write(tmp_path, "src/app.py")
        _write(tmp_path, "build/gen.py")
        assert _rel_paths(tmp_path, exclude_patterns=("build/**",)) == ["src/app.py"]

    def test_include_patterns(self, tmp_path):
        _write(tmp_path, "src/app.py")
        _write(tmp_path, "scripts/tool.py")
        assert _rel_paths(tmp_path, include_patterns=("src/**",)) == ["src/app.py"]

    def test_language_filter(self, tmp_path):
        _write(tmp_path, "a.py")
        _write(tmp_path, "b.go")
        assert _rel_paths(tmp_path, languages=("python",)) == ["a.py"]

    def test_nonexistent_language_returns_empty(self, tmp_path):
        _write(tmp_path, "a.py")
        assert _rel_paths(tmp_path, languages=("cobol",)) == []

    def test_binary_file_skipped(self, tmp_path):
        _write(tmp_path, "blob.c", b"int x;\x00\x01\x02")
        _write(tmp_path, "ok.c", "int x;\n")
        assert _rel_paths(tmp_path) == ["ok.c"]

    def test_empty_file_skipped(self, tmp_path):
        _write(tmp_path, "empty.py", "")
        assert _rel_paths(tmp_path) == []

    def test_generated_file_skipped(self, tmp_path):
        _write(
            tmp_path,
            "api.pb.go",
            "// Code generated by protoc-gen-go. DO NOT EDIT.\npackage api\n",
        )
        _write(tmp_path, "kind_string.go", "package kind\n")
        _write(tmp_path, "main.go", "package main\n")
        assert _rel_paths(tmp_path) == ["main.go"]

    def test_symlink_outside_root_skipped(self, tmp_path):
        outside = _write(tmp_path, "outside/secret.py")
        root = tmp_path / "repo"
        _write(root, "inside.py")
        try:
            (root / "link.py").symlink_to(outside)
        except OSError:
            pytest.skip("symlinks not supported")
        assert _rel_paths(root) == ["inside.py"]

    def test_symlink_inside_root_kept(self, tmp_path):
        target = _write(tmp_path, "real.py")
        try:
            (tmp_path / "alias.py").symlink_to(target)
        except OSError:
            pytest.skip("symlinks not supported")
        assert _rel_paths(tmp_path) == ["alias.py", "real.py"]

    def test_file_cap_reports_progress(self, tmp_path):
        for name in ("a.py", "b.py", "c.py"):
            _write(tmp_path, name)
        messages: list[str] = []
        files = discover_files(str(tmp_path), max_files=2, progress=messages.append)
        assert [f.rel_path for f in files] == ["a.py", "b.py"]
        assert messages == ["file cap reached (2 files), skipping remaining"]

    def test_cancelled_token_raises(self, tmp_path):
        _write(tmp_path, "a.py")
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelled):
            discover_files(str(tmp_path), token=token)


class TestExcludePatterns:
    def test_merge_appends_user_patterns(self):
        merged = merge_excludes(("custom/**",))
        assert merged[: len(DEFAULT_EXCLUDE_PATTERNS)] == DEFAULT_EXCLUDE_PATTERNS
        assert merged[-1] == "custom/**"

    @pytest.mark.parametrize(
        "rel_path",
        [
            "vendor",
            "vendor/a.go",
            "lib/vendor/a.go",
            ".git/config",
            "CHANGELOG.md",
            "docs/HISTORY.rst",
        ],
    )
    def test_defaults_match(self, rel_path):
        assert should_exclude(rel_path, DEFAULT_EXCLUDE_PATTERNS)

    @pytest.mark.parametrize("rel_path", ["src/vendored.go", "vendor.go", "news.py"])
    def test_defaults_do_not_match(self, rel_path):
        assert not should_exclude(rel_path, DEFAULT_EXCLUDE_PATTERNS)

    def test_include_double_star_suffix(self):
        assert matches_any("src/pkg/deep/a.py", ("src/**/*.py",))
        assert not matches_any("src/pkg/a.go", ("src/**/*.py",))

    def test_include_name_pattern(self):
        assert matches_any("any/where/handler.go", ("handler.go",))


class TestFileChecks:
    def test_is_binary(self, tmp_path):
        fs = OSFileSystem()
        assert is_binary(fs, str(_write(tmp_path, "b.c", b"\x00abc")))
        assert not is_binary(fs, str(_write(tmp_path, "t.c", "int x;\n")))

    def test_unreadable_counts_as_binary(self, tmp_path):
        assert is_binary(OSFileSystem(), str(tmp_path / "missing.c"))

    def test_generated_marker_only_near_top(self, tmp_path):
        fs = OSFileSystem()
        late = "\n".join(["x = 1"] * 10 + ["# do not edit"]) + "\n"
        assert not is_generated(fs, str(_write(tmp_path, "late.py", late)))
        early = "# @generated by tool\nx = 1\n"
        assert is_generated(fs, str(_write(tmp_path, "early.py", early)))
