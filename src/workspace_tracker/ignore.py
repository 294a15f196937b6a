"""Gitignore-style pruning for plain-directory fingerprinting."""

from pathlib import Path
from typing import Iterable, List

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern

from .constants import WSTRACK_DIR


# Directory names that never hold task content, pruned at any depth.
# Ordinary files are never skipped by default: that could hide a real edit.
DEFAULT_DIRS = (
    ".git", ".hg", ".svn", WSTRACK_DIR,
    "node_modules", ".npm", ".yarn",
    "__pycache__", "venv", ".venv", ".tox", ".nox",
    ".pytest_cache", ".mypy_cache", ".ruff_cache",
)


def default_patterns() -> List[str]:
    return [f"{name}/" for name in DEFAULT_DIRS]


class IgnoreSpec:
    """Compiled patterns excluded from a directory walk."""

    def __init__(self, root: Path, extra: Iterable[str] = ()):
        """
        Args:
            root: Directory being walked
            extra: Additional gitignore-style patterns (blank lines and
                ``#`` comments are dropped)
        """
        self.root = root
        self.patterns = default_patterns()
        self.patterns.extend(
            p.strip() for p in extra if p.strip() and not p.strip().startswith("#")
        )
        self.spec = PathSpec.from_lines(GitWildMatchPattern, self.patterns)

    def is_ignored(self, relpath: str) -> bool:
        """True if a root-relative POSIX path matches a pattern."""
        return self.spec.match_file(relpath)

    def should_traverse(self, dirpath: str) -> bool:
        """False for directories whose contents are all ignored."""
        return not self.spec.match_file(dirpath.rstrip("/") + "/")
