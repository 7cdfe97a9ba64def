# tests/test_patterns.py
"""Tests for exclude pattern filtering."""

from pharbuild.patterns import PatternFilter, match_pattern


class TestMatchPattern:
    """Test single pattern matching."""

    def test_plain_pattern_excludes_match(self):
        assert match_pattern("dir/b.txt", "*.txt")
        assert not match_pattern("dir/a.php", "*.txt")

    def test_negated_pattern_excludes_non_match(self):
        assert match_pattern("dir/b.txt", "!*.php")
        assert not match_pattern("dir/a.php", "!*.php")

    def test_star_crosses_directories(self):
        assert match_pattern("src/deep/nested/file.php", "src/*.php")

    def test_full_path_not_basename(self):
        """Patterns match the whole relative path, not just the file name."""
        assert not match_pattern("dir/test.php", "test.php")
        assert match_pattern("dir/test.php", "*/test.php")

    def test_question_mark_and_classes(self):
        assert match_pattern("dir/a1.php", "dir/a?.php")
        assert not match_pattern("dir/a12.php", "dir/a?.php")
        assert match_pattern("dir/b.php", "dir/[ab].php")
        assert not match_pattern("dir/c.php", "dir/[ab].php")

    def test_case_sensitive(self):
        assert not match_pattern("dir/A.PHP", "*.php")


class TestPatternFilter:
    """Test ordered pattern lists."""

    def test_no_patterns_includes_everything(self):
        pattern_filter = PatternFilter()
        assert pattern_filter.includes("anything/at/all.bin")
        assert not pattern_filter

    def test_string_pattern(self):
        pattern_filter = PatternFilter("!*php")
        assert pattern_filter.includes("dir/abc.php")
        assert not pattern_filter.includes("dir/def.txt")

    def test_negated_keeps_only_matches(self):
        pattern_filter = PatternFilter(["!*.php"])
        assert pattern_filter.includes("dir/a.php")
        assert pattern_filter.excludes("dir/b.txt")

    def test_plain_excludes_matches(self):
        pattern_filter = PatternFilter(["*.txt"])
        assert pattern_filter.excludes("dir/b.txt")
        assert pattern_filter.includes("dir/a.php")

    def test_first_match_decides(self):
        pattern_filter = PatternFilter(["*Test.php", "!*.php"])
        assert pattern_filter.excludes("src/FooTest.php")
        assert pattern_filter.includes("src/Foo.php")
        assert pattern_filter.excludes("src/README.md")

    def test_later_patterns_not_consulted_after_match(self):
        """Once a pattern excludes, a later negation cannot re-include."""
        pattern_filter = PatternFilter(["*.php", "!*.php"])
        assert pattern_filter.excludes("a.php")
        # *.php does not exclude a.txt, but !*.php does
        assert pattern_filter.excludes("a.txt")

    def test_patterns_copied(self):
        patterns = ["*.txt"]
        pattern_filter = PatternFilter(patterns)
        patterns.append("*.php")
        assert pattern_filter.includes("a.php")
