# tests/test_collector.py
"""Tests for file collection below a project root."""

import os

import pytest

from pharbuild.collector import FileCollector, FileEntry
from pharbuild.errors import NotFoundError, OutsideRootError


@pytest.fixture
def collector(project):
    """Create collector for the sample project."""
    return FileCollector(project)


class TestFileCollector:
    """Test FileCollector registration."""

    def test_root_is_canonical(self, project):
        collector = FileCollector(project / "dir" / "..")
        assert collector.root == project.resolve()
        assert len(collector) == 0

    def test_missing_root(self, temp_dir):
        with pytest.raises(NotFoundError):
            FileCollector(temp_dir / "nope")

    def test_add_file(self, collector, project):
        virtual = collector.add_file("dir/abc.php")
        assert virtual == "dir/abc.php"
        assert collector.files["dir/abc.php"] == FileEntry(
            real_path=(project / "dir" / "abc.php").resolve(), strip=True
        )

    def test_add_file_without_strip(self, collector):
        collector.add_file("dir/def.txt", strip=False)
        assert collector.files["dir/def.txt"].strip is False

    def test_add_missing_file(self, collector):
        with pytest.raises(NotFoundError):
            collector.add_file("dir/missing.php")
        assert len(collector) == 0

    def test_failed_add_keeps_earlier_files(self, collector):
        collector.add_file("index.php")
        with pytest.raises(FileNotFoundError):
            collector.add_file("missing.php")
        assert "index.php" in collector

    def test_add_directory_as_file(self, collector):
        with pytest.raises(NotFoundError):
            collector.add_file("dir")

    def test_reregister_overwrites_in_place(self, collector):
        collector.add_file("index.php")
        collector.add_file("web.php")
        collector.add_file("index.php", strip=False)
        assert list(collector.files) == ["index.php", "web.php"]
        assert collector.files["index.php"].strip is False

    def test_virtual_path_normalized(self, collector, project):
        assert collector.add_file("./dir//abc.php") == "dir/abc.php"
        assert collector.add_file(project / "web.php") == "web.php"
        assert collector.add_file("dir/sub/../abc.php") == "dir/abc.php"

    def test_path_outside_root(self, collector, temp_dir):
        outside = temp_dir / "outside.php"
        outside.write_text("<?php")
        with pytest.raises(OutsideRootError):
            collector.add_file("../outside.php")
        with pytest.raises(ValueError):
            collector.add_file(outside)

    def test_files_is_a_copy(self, collector):
        collector.add_file("index.php")
        files = collector.files
        files.clear()
        assert len(collector) == 1


class TestAddDirectory:
    """Test recursive directory collection."""

    def test_add_directory(self, collector):
        added = collector.add_directory("dir")
        assert added == 3
        assert list(collector.files) == ["dir/abc.php", "dir/def.txt", "dir/sub/ghi.php"]

    def test_add_directory_negated_filter(self, collector):
        collector.add_directory("dir", "!*php")
        assert "dir/abc.php" in collector
        assert "dir/sub/ghi.php" in collector
        assert "dir/def.txt" not in collector

    def test_add_directory_exclude_filter(self, collector):
        collector.add_directory("dir", ["*.txt"])
        assert "dir/abc.php" in collector
        assert "dir/def.txt" not in collector

    def test_patterns_match_root_relative_path(self, collector):
        collector.add_directory("dir", ["dir/sub/*"])
        assert "dir/sub/ghi.php" not in collector
        assert "dir/abc.php" in collector

    def test_add_root_directory(self, collector):
        collector.add_directory(".", ["!*.php"])
        assert list(collector.files) == [
            "dir/abc.php", "dir/sub/ghi.php", "index.php", "web.php",
        ]

    def test_strip_flag_applies_to_all(self, collector):
        collector.add_directory("dir", strip=False)
        assert all(not entry.strip for entry in collector.files.values())

    def test_missing_directory(self, collector):
        with pytest.raises(NotFoundError):
            collector.add_directory("nope")

    def test_file_as_directory(self, collector):
        with pytest.raises(NotFoundError):
            collector.add_directory("index.php")

    def test_hidden_files_included(self, collector, project):
        (project / "dir" / ".hidden").write_text("x")
        collector.add_directory("dir")
        assert "dir/.hidden" in collector

    def test_deterministic_order(self, project):
        first = FileCollector(project)
        first.add_directory(".")
        second = FileCollector(project)
        second.add_directory(".")
        assert list(first.files) == list(second.files)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
class TestSymlinks:
    """Test symlink handling during directory walks."""

    def test_symlinked_file_collected(self, collector, project, temp_dir):
        target = temp_dir / "shared.php"
        target.write_text("<?php echo 'shared';")
        os.symlink(target, project / "dir" / "link.php")

        collector.add_directory("dir")
        assert collector.files["dir/link.php"].real_path == target.resolve()

    def test_symlinked_directory_skipped(self, collector, project, temp_dir):
        other = temp_dir / "other"
        other.mkdir()
        (other / "x.php").write_text("<?php")
        os.symlink(other, project / "dir" / "linked")

        collector.add_directory("dir")
        assert not any(path.startswith("dir/linked/") for path in collector.files)

    def test_broken_symlink_skipped(self, collector, project, temp_dir):
        os.symlink(temp_dir / "gone.php", project / "dir" / "broken.php")

        collector.add_directory("dir")
        assert "dir/broken.php" not in collector
