"""Tests for gitignore-style rule matching."""

import pytest

from footprint.errors import IgnoreParseError
from footprint.ignore_rules import (
    IgnoreMatcher,
    RuleSet,
    build_matcher,
    is_version_controlled,
    read_rule_lines,
)


class TestIsVersionControlled:
    def test_git_dir_at_root(self, tmp_path):
        (tmp_path / ".git").mkdir()
        assert is_version_controlled(tmp_path)

    def test_git_dir_in_parent(self, tmp_path):
        (tmp_path / ".git").mkdir()
        sub = tmp_path / "packages" / "web"
        sub.mkdir(parents=True)
        assert is_version_controlled(sub)

    def test_git_file_for_worktrees(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: /elsewhere/.git/worktrees/x\n")
        assert is_version_controlled(tmp_path)


class TestReadRuleLines:
    def test_drops_comments_and_blanks(self, tmp_path):
        rule_file = tmp_path / ".gitignore"
        rule_file.write_text("# build output\n\n*.log\r\n  \ndist/\n")
        assert read_rule_lines(rule_file) == ["*.log", "dist/"]

    def test_undecodable_file(self, tmp_path):
        rule_file = tmp_path / ".gitignore"
        rule_file.write_bytes(b"\xff\xfe\xfa bad\n")
        with pytest.raises(IgnoreParseError) as exc_info:
            read_rule_lines(rule_file)
        assert exc_info.value.path == str(rule_file)


class TestRuleSet:
    def test_last_matching_rule_wins(self):
        rules = RuleSet("", ["*.log", "!keep.log"])
        assert rules.decide("debug.log", is_dir=False) is True
        assert rules.decide("keep.log", is_dir=False) is False
        assert rules.decide("main.py", is_dir=False) is None

    def test_base_restricts_scope(self):
        rules = RuleSet("sub", ["*.tmp"])
        assert rules.decide("sub/a.tmp", is_dir=False) is True
        assert rules.decide("a.tmp", is_dir=False) is None
        assert rules.decide("subway/a.tmp", is_dir=False) is None

    def test_len_counts_patterns(self):
        assert len(RuleSet("", ["*.log", "dist/"])) == 2


class TestIgnoreMatcher:
    def test_git_dir_always_ignored(self, tmp_path):
        matcher = IgnoreMatcher(tmp_path)
        assert matcher.is_ignored(".git", is_dir=True)
        assert matcher.is_ignored(".git/objects/ab", is_dir=False)

    def test_nothing_ignored_without_rules(self, tmp_path):
        matcher = IgnoreMatcher(tmp_path)
        assert not matcher.is_ignored("src/main.py", is_dir=False)
        assert not matcher.is_ignored("", is_dir=True)
        assert matcher.rule_count == 0

    def test_directory_only_pattern(self, tmp_path):
        matcher = IgnoreMatcher(tmp_path)
        matcher.add_rules("", ["build/"])
        assert matcher.is_ignored("build", is_dir=True)
        assert not matcher.is_ignored("build", is_dir=False)

    def test_everything_below_ignored_dir_is_ignored(self, tmp_path):
        matcher = IgnoreMatcher(tmp_path)
        matcher.add_rules("", ["generated/", "!generated/keep.txt"])
        assert matcher.is_ignored("generated/keep.txt", is_dir=False)
        assert matcher.is_ignored("generated/deep/file.bin", is_dir=False)

    def test_nested_rules_are_relative_to_their_directory(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / ".gitignore").write_text("*.tmp\n/gen\n")
        matcher = IgnoreMatcher(tmp_path)
        matcher.load_directory("sub")

        assert matcher.is_ignored("sub/a.tmp", is_dir=False)
        assert matcher.is_ignored("sub/x/a.tmp", is_dir=False)
        assert matcher.is_ignored("sub/gen", is_dir=True)
        assert not matcher.is_ignored("a.tmp", is_dir=False)
        assert not matcher.is_ignored("gen", is_dir=True)
        assert not matcher.is_ignored("sub/x/gen", is_dir=True)

    def test_deeper_rules_override_shallower(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / ".gitignore").write_text("*.pyc\n")
        (tmp_path / "sub" / ".gitignore").write_text("!keep.pyc\n")
        matcher = build_matcher(tmp_path)
        matcher.load_directory("sub")

        assert matcher.is_ignored("keep.pyc", is_dir=False)
        assert matcher.is_ignored("sub/other.pyc", is_dir=False)
        assert not matcher.is_ignored("sub/keep.pyc", is_dir=False)

    def test_load_directory_is_idempotent(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        matcher = IgnoreMatcher(tmp_path)
        matcher.load_directory("")
        matcher.load_directory("")
        assert matcher.rule_count == 1

    def test_missing_rule_file_is_fine(self, tmp_path):
        matcher = IgnoreMatcher(tmp_path)
        matcher.load_directory("nowhere")
        assert matcher.rule_count == 0


class TestBuildMatcher:
    def test_root_rules(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.log\nnode_modules/\n")
        matcher = build_matcher(tmp_path)
        assert matcher.is_ignored("server.log", is_dir=False)
        assert matcher.is_ignored("node_modules", is_dir=True)
        assert not matcher.is_ignored("server.py", is_dir=False)

    def test_exclude_file(self, tmp_path):
        (tmp_path / ".git" / "info").mkdir(parents=True)
        (tmp_path / ".git" / "info" / "exclude").write_text("secret.txt\n")
        matcher = build_matcher(tmp_path)
        assert matcher.is_ignored("secret.txt", is_dir=False)

    def test_gitignore_overrides_exclude_file(self, tmp_path):
        (tmp_path / ".git" / "info").mkdir(parents=True)
        (tmp_path / ".git" / "info" / "exclude").write_text("*.txt\n")
        (tmp_path / ".gitignore").write_text("!notes.txt\n")
        matcher = build_matcher(tmp_path)
        assert matcher.is_ignored("other.txt", is_dir=False)
        assert not matcher.is_ignored("notes.txt", is_dir=False)

    def test_unreadable_root_rules_raise(self, tmp_path):
        (tmp_path / ".gitignore").write_bytes(b"\xff\xfe\xfa\n")
        with pytest.raises(IgnoreParseError):
            build_matcher(tmp_path)
