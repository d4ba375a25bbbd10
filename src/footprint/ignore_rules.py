"""Gitignore-style rule matching for project walks.

Rules are compiled with pathspec. Each rule file keeps its own base directory
so patterns are evaluated relative to the directory that holds them, and
deeper rule files take precedence over shallower ones.
"""

import logging
from pathlib import Path

from pathspec import GitIgnoreSpec

from footprint.errors import IgnoreParseError

logger = logging.getLogger(__name__)

GIT_DIR = ".git"
RULE_FILE_NAME = ".gitignore"
EXCLUDE_FILE = Path(GIT_DIR) / "info" / "exclude"


def is_version_controlled(root: Path) -> bool:
    """Return True if root or one of its parents holds a .git entry."""
    for candidate in (root, *root.parents):
        if (candidate / GIT_DIR).exists():
            return True
    return False


def read_rule_lines(rule_file: Path) -> list[str]:
    """Read a rule file as UTF-8 lines, dropping blanks and comments."""
    try:
        content = rule_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreParseError(rule_file, str(e)) from e
    return [
        line.rstrip("\r")
        for line in content.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


class RuleSet:
    """Compiled rules from a single file, anchored at base (relative dir)."""

    def __init__(self, base: str, lines: list[str], source: Path | None = None) -> None:
        self.base = base
        self.source = source
        self.lines = lines
        try:
            spec = GitIgnoreSpec.from_lines(lines)
        except ValueError as e:
            raise IgnoreParseError(source or base or ".", str(e)) from e
        # Patterns without a decision (blank lines, comments) are dropped once here
        self._patterns = [p for p in spec.patterns if p.include is not None]

    def __len__(self) -> int:
        return len(self._patterns)

    def decide(self, relative_path: str, is_dir: bool) -> bool | None:
        """Return True (ignored), False (re-included) or None (no rule matched).

        Later rules override earlier ones, so patterns are checked last to first.
        """
        if self.base:
            prefix = self.base + "/"
            if not relative_path.startswith(prefix):
                return None
            relative_path = relative_path[len(prefix):]

        candidate = relative_path + "/" if is_dir else relative_path
        for pattern in reversed(self._patterns):
            if pattern.match_file(candidate) is not None:
                return bool(pattern.include)
        return None


class IgnoreMatcher:
    """Classifies project-relative paths as ignored or included.

    The .git directory is always ignored. Rule files found deeper in the tree
    are loaded on demand through load_directory() as a walk enters them.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        # base dir -> rule sets ordered from lowest to highest priority
        self._rules: dict[str, list[RuleSet]] = {}
        self._loaded_dirs: set[str] = set()

    @property
    def rule_count(self) -> int:
        return sum(len(rs) for sets in self._rules.values() for rs in sets)

    def add_rules(self, base: str, lines: list[str], source: Path | None = None) -> None:
        """Add rules anchored at base. Later additions take precedence."""
        rule_set = RuleSet(base.strip("/"), lines, source)
        self._rules.setdefault(rule_set.base, []).append(rule_set)

    def load_exclude_file(self) -> None:
        """Load .git/info/exclude, which ranks below every .gitignore file."""
        exclude_file = self.root / EXCLUDE_FILE
        if not exclude_file.is_file():
            return
        rule_set = RuleSet("", read_rule_lines(exclude_file), exclude_file)
        self._rules.setdefault("", []).insert(0, rule_set)

    def load_directory(self, relative_dir: str) -> None:
        """Load the .gitignore of a directory, once.

        Raises:
            IgnoreParseError: if the file exists but is unreadable or invalid
        """
        relative_dir = relative_dir.strip("/")
        if relative_dir in self._loaded_dirs:
            return
        self._loaded_dirs.add(relative_dir)

        rule_file = self.root / relative_dir / RULE_FILE_NAME if relative_dir else self.root / RULE_FILE_NAME
        if not rule_file.is_file():
            return
        self.add_rules(relative_dir, read_rule_lines(rule_file), rule_file)

    def _decide(self, relative_path: str, is_dir: bool) -> bool:
        parts = relative_path.split("/")
        # Candidate bases from deepest to shallowest
        bases = ["/".join(parts[:i]) for i in range(len(parts) - 1, -1, -1)]
        for base in bases:
            for rule_set in reversed(self._rules.get(base, ())):
                decision = rule_set.decide(relative_path, is_dir)
                if decision is not None:
                    return decision
        return False

    def is_ignored(self, relative_path: str, is_dir: bool) -> bool:
        """Check whether a project-relative path is excluded.

        A path below an ignored directory is ignored too, whatever the rules
        say about the path itself.
        """
        relative_path = relative_path.replace("\\", "/").strip("/")
        if not relative_path or relative_path == ".":
            return False

        parts = relative_path.split("/")
        if GIT_DIR in parts:
            return True
        if not self._rules:
            return False

        for i in range(1, len(parts)):
            if self._decide("/".join(parts[:i]), True):
                return True
        return self._decide(relative_path, is_dir)


def build_matcher(project_root: Path) -> IgnoreMatcher:
    """Build a matcher from the rule files at the root of a project.

    Raises:
        IgnoreParseError: if the root .gitignore exists but cannot be used.
            Callers treat this as soft and fall back to IgnoreMatcher(root).
    """
    matcher = IgnoreMatcher(project_root)
    try:
        matcher.load_exclude_file()
    except IgnoreParseError as e:
        logger.warning("Skipping %s", e)
    matcher.load_directory("")
    return matcher
