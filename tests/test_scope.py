"""Tests for glob scope matching and target normalization."""

import pytest

from intent_gate.config import Config
from intent_gate.scope import (
    compile_glob,
    load_ignore_patterns,
    matches,
    matches_any,
    normalize_target,
    parse_ignore_patterns,
)


class TestMatches:
    """Tests for whole-path glob matching."""

    @pytest.mark.parametrize(
        "path,pattern,expected",
        [
            ("src/a/b.ts", "src/**/*.ts", True),
            ("lib/a.ts", "src/**/*.ts", False),
            ("docs/readme.md", "*.md", False),
            ("readme.md", "*.md", True),
            ("src/feature/x.ts", "src/feature/**", True),
            ("src/feature/deep/nested/x.ts", "src/feature/**", True),
            ("src/other/file.ts", "src/feature/**", False),
        ],
    )
    def test_glob_examples(self, path, pattern, expected):
        assert matches(path, pattern) is expected

    def test_single_star_stops_at_separator(self):
        """A single * never crosses a directory boundary."""
        assert matches("src/a.py", "src/*.py") is True
        assert matches("src/pkg/a.py", "src/*.py") is False

    def test_no_partial_match(self):
        """Patterns must cover the whole path, not a prefix or suffix."""
        assert matches("src/feature/x.ts.bak", "src/feature/*.ts") is False
        assert matches("prefix/src/feature/x.ts", "src/feature/*.ts") is False

    def test_regex_metacharacters_are_literal(self):
        assert matches("notes/v1.0+rc.md", "notes/v1.0+rc.md") is True
        assert matches("notes/v1x0+rc.md", "notes/v1.0+rc.md") is False
        assert matches("a?b", "a?b") is True
        assert matches("axb", "a?b") is False
        assert matches("[x].txt", "[x].txt") is True

    def test_backslash_paths_are_normalized(self):
        assert matches("src\\feature\\x.ts", "src/feature/**") is True

    def test_matches_any(self):
        patterns = ["src/feature/**", "docs/*.md"]
        assert matches_any("docs/guide.md", patterns) is True
        assert matches_any("docs/api/guide.md", patterns) is False
        assert matches_any("anything", []) is False

    def test_compile_glob_is_cached(self):
        assert compile_glob("src/**/*.ts") is compile_glob("src/**/*.ts")


class TestNormalizeTarget:
    """Tests for target path normalization."""

    def test_strips_diff_prefixes(self):
        assert normalize_target("a/src/x.py") == "src/x.py"
        assert normalize_target("b/src/x.py") == "src/x.py"

    def test_strips_leading_dot_slash(self):
        assert normalize_target("./src/x.py") == "src/x.py"

    def test_converts_separators(self):
        assert normalize_target("src\\pkg\\x.py") == "src/pkg/x.py"

    def test_relativizes_absolute_path_under_root(self, tmp_path):
        target = str(tmp_path / "src" / "x.py")
        assert normalize_target(target, tmp_path) == "src/x.py"

    def test_absolute_path_outside_root_kept(self, tmp_path):
        assert normalize_target("/etc/passwd", tmp_path / "ws") == "/etc/passwd"

    def test_parent_segments_not_collapsed(self):
        target = normalize_target("./src/feature/../../etc/x")
        assert target == "src/feature/../../etc/x"
        assert matches(target, "src/feature/**")


class TestIgnorePatterns:
    """Tests for .intentignore loading."""

    def test_parse_skips_comments_and_blanks(self):
        text = "# generated files\n\nbuild/**\n  *.lock  \n# end\n"
        assert parse_ignore_patterns(text) == ["build/**", "*.lock"]

    def test_missing_file_means_no_patterns(self, tmp_path):
        assert load_ignore_patterns(tmp_path) == []

    def test_load_from_workspace(self, tmp_path):
        Config.ignore_path(tmp_path).write_text("dist/**\n")
        assert load_ignore_patterns(tmp_path) == ["dist/**"]
