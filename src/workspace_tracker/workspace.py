"""Workspace backends: a git work tree or a plain directory.

The tracker resolves its directory to exactly one backend when it is
constructed; every query is then answered by that backend without
re-testing whether git is present.
"""

import logging
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .config import TrackerConfig
from .diffing import (
    build_file_changes,
    build_structured_diff,
    parse_name_status,
    parse_numstat,
    parse_numstat_line,
)
from .errors import GitCommandError
from .git import GitRunner, find_repo_root
from .hashing import combine_sections, compute_directory_fingerprint, compute_file_digest
from .ignore import IgnoreSpec
from .models import ChangeStatus, DiffOptions, FileChange, RepositoryStatus, StructuredDiff

logger = logging.getLogger(__name__)

NULL_DEVICE = "/dev/null"


class Workspace(Protocol):
    """Protocol shared by both backends."""

    root: Path

    def is_repository(self) -> bool:
        ...

    def status(self) -> RepositoryStatus:
        ...

    def fingerprint(self) -> str:
        ...

    def current_diff(self, options: DiffOptions) -> Optional[StructuredDiff]:
        ...

    def diff_since(self, commit: str, options: DiffOptions) -> Optional[StructuredDiff]:
        ...


# ============= Plain directory =============

class PlainWorkspace:
    """A directory with no version control: content hashing only."""

    def __init__(self, root: Path, config: TrackerConfig):
        self.root = root
        self.config = config
        self.ignore = IgnoreSpec(root, config.fingerprint.ignore)

    def is_repository(self) -> bool:
        return False

    def status(self) -> RepositoryStatus:
        return RepositoryStatus(is_repo=False)

    def fingerprint(self) -> str:
        return compute_directory_fingerprint(self.root, self.ignore)

    def current_diff(self, options: DiffOptions) -> Optional[StructuredDiff]:
        return None

    def diff_since(self, commit: str, options: DiffOptions) -> Optional[StructuredDiff]:
        return None


# ============= Git work tree =============

def parse_porcelain(data: bytes) -> Tuple[List[str], List[str]]:
    """Split ``git status --porcelain=v1 -z`` output into dirty and untracked paths.

    Rename and copy records carry a second (source) path, which is skipped;
    the destination is what is dirty now.
    """
    dirty: List[str] = []
    untracked: List[str] = []
    tokens = iter(data.split(b"\0"))
    for raw in tokens:
        if len(raw) < 4:
            continue
        code = raw[:2].decode("ascii", errors="replace")
        path = raw[3:].decode("utf-8", errors="surrogateescape")
        if code == "??":
            untracked.append(path)
        elif code == "!!":
            continue
        else:
            dirty.append(path)
            if "R" in code or "C" in code:
                next(tokens, None)
    return dirty, untracked


class GitWorkspace:
    """A git work tree. All paths are relative to the work tree root."""

    def __init__(self, root: Path, config: TrackerConfig):
        self.root = root
        self.config = config
        self.runner = GitRunner(
            root,
            executable=config.git.executable,
            timeout=config.git.timeout,
        )

    def is_repository(self) -> bool:
        return True

    # ----- Status -----

    def head_commit(self) -> Optional[str]:
        """Commit id of HEAD, or None before the first commit."""
        return self.runner.try_output(
            ["rev-parse", "--verify", "--quiet", "HEAD"], operation="rev-parse HEAD"
        )

    def branch(self) -> Optional[str]:
        """Current branch name, or None for a detached HEAD."""
        return self.runner.try_output(
            ["symbolic-ref", "--quiet", "--short", "HEAD"], operation="symbolic-ref"
        )

    def _porcelain(self) -> Tuple[List[str], List[str]]:
        result = self.runner.run(
            ["status", "--porcelain=v1", "-z", "--untracked-files=all"],
            operation="status",
        )
        return parse_porcelain(result.stdout)

    def status(self) -> RepositoryStatus:
        dirty, untracked = self._porcelain()
        return RepositoryStatus(
            is_repo=True,
            head_commit=self.head_commit(),
            branch=self.branch(),
            dirty_files=dirty,
            untracked_files=untracked,
        )

    def untracked_files(self) -> List[str]:
        return self._porcelain()[1]

    # ----- Fingerprint -----

    def empty_tree(self) -> str:
        """Object id of the empty tree in this repository's hash format."""
        return self.runner.run(
            ["hash-object", "-t", "tree", "--stdin"], operation="hash-object", input=b""
        ).text.strip()

    def diff_base(self, head: Optional[str] = None) -> str:
        """HEAD, or the empty tree on an unborn branch."""
        head = head if head is not None else self.head_commit()
        return head or self.empty_tree()

    def _untracked_digest(self, path: str) -> str:
        """Digest of one untracked entry.

        An embedded repository is listed as a single ``dir/`` entry; its
        working files are hashed as a directory tree.
        """
        full = self.root / path
        if path.endswith("/") or (full.is_dir() and not full.is_symlink()):
            ignore = IgnoreSpec(full, self.config.fingerprint.ignore)
            return "tree:" + compute_directory_fingerprint(full, ignore)
        return compute_file_digest(full)

    def fingerprint(self) -> str:
        head = self.head_commit()
        diff = self.runner.run(
            ["diff", "--no-ext-diff", "--no-color", "--no-renames",
             "--binary", "--full-index", self.diff_base(head), "--"],
            operation="diff",
        ).stdout

        untracked = []
        for path in sorted(self.untracked_files()):
            digest = self._untracked_digest(path)
            untracked.append(f"{path}\0{digest}\n".encode("utf-8", "surrogateescape"))

        return combine_sections([
            ("HEAD", head.encode("ascii") if head else b"UNBORN"),
            ("DIFF", diff),
            ("UNTRACKED", b"".join(untracked)),
        ])

    # ----- Diffs -----

    def resolve_commit(self, commit: str) -> Optional[str]:
        """Resolve a commit id, or None when it does not name a commit."""
        if not commit or commit.startswith("-"):
            return None
        try:
            return self.runner.try_output(
                ["rev-parse", "--verify", "--quiet", f"{commit}^{{commit}}"],
                operation="rev-parse",
            )
        except GitCommandError as e:
            logger.debug("Cannot resolve %s: %s", commit, e)
            return None

    def _diff_args(self, *extra: str) -> List[str]:
        renames = "--find-renames" if self.config.diff.detect_renames else "--no-renames"
        return ["diff", "--no-ext-diff", "--no-color", renames, *extra]

    def _tracked_changes(self, base: str) -> List[FileChange]:
        name_status = self.runner.run(
            self._diff_args("--name-status", "-z", base, "--"), operation="diff --name-status"
        ).stdout
        numstat = self.runner.run(
            self._diff_args("--numstat", "-z", base, "--"), operation="diff --numstat"
        ).stdout
        return build_file_changes(parse_name_status(name_status), parse_numstat(numstat))

    def _untracked_change(self, path: str) -> FileChange:
        result = self.runner.run(
            ["diff", "--no-index", "--no-ext-diff", "--no-color", "--numstat",
             "--", NULL_DEVICE, path],
            operation="diff --no-index",
            ok_codes=(0, 1),
        )
        stat = parse_numstat_line(result.text)
        return FileChange(
            path=path,
            status=ChangeStatus.ADDED,
            additions=stat.additions,
            deletions=0,
            binary=stat.binary,
        )

    def _untracked_patch(self, path: str) -> str:
        return self.runner.run(
            ["diff", "--no-index", "--no-ext-diff", "--no-color", "--", NULL_DEVICE, path],
            operation="diff --no-index",
            ok_codes=(0, 1),
        ).text

    def _include_untracked(self, options: DiffOptions) -> bool:
        if options.include_untracked is None:
            return self.config.diff.include_untracked
        return options.include_untracked

    def _max_size(self, options: DiffOptions) -> int:
        if options.max_size is None:
            return self.config.diff.max_patch_size
        return options.max_size

    def diff_against(
        self,
        base: str,
        options: DiffOptions,
    ) -> StructuredDiff:
        """Structured diff from a resolved base to the working tree."""
        files = self._tracked_changes(base)
        untracked = self.untracked_files() if self._include_untracked(options) else []
        files.extend(self._untracked_change(path) for path in untracked)

        patch = None
        if options.include_patch and files:
            parts = [self.runner.run(self._diff_args(base, "--"), operation="diff").text]
            parts.extend(self._untracked_patch(path) for path in untracked)
            patch = "".join(parts)

        return build_structured_diff(files, patch, self._max_size(options))

    def current_diff(self, options: DiffOptions) -> Optional[StructuredDiff]:
        diff = self.diff_against(self.diff_base(), options)
        if diff.is_empty:
            return None
        return diff

    def diff_since(self, commit: str, options: DiffOptions) -> Optional[StructuredDiff]:
        resolved = self.resolve_commit(commit)
        if resolved is None:
            logger.warning("Baseline commit %s not found; no diff available", commit)
            return None
        return self.diff_against(resolved, options)


def make_workspace(directory: Path, config: TrackerConfig) -> Workspace:
    """Resolve a directory to its backend.

    Args:
        directory: Tracked directory (absolute)
        config: Tracker configuration

    Returns:
        GitWorkspace when git metadata exists at or above directory,
        otherwise PlainWorkspace
    """
    repo_root = find_repo_root(directory)
    if repo_root is None:
        logger.debug("No git metadata above %s; using content hashing", directory)
        return PlainWorkspace(directory, config)
    logger.debug("Tracking git work tree %s", repo_root)
    return GitWorkspace(repo_root, config)
