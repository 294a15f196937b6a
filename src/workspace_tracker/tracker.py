"""WorkspaceTracker - the public entry point.

Typical session use::

    tracker = WorkspaceTracker(project_dir)
    baseline = await tracker.create_baseline(snapshot_dir)
    ...
    if tracker.compute_fingerprint() != baseline.fingerprint:
        diff = tracker.get_diff_since(baseline.head_commit)

The tracker never modifies the tracked directory. Apart from the snapshot
directory handed to ``create_baseline``, every call is a read.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import TrackerConfig, load_config
from .hashing import compute_directory_fingerprint
from .ignore import IgnoreSpec
from .models import BaselineRecord, DiffOptions, RepositoryStatus, StructuredDiff
from .snapshot import create_baseline, read_baseline
from .workspace import Workspace, make_workspace

logger = logging.getLogger(__name__)


class WorkspaceTracker:
    """Tracks the version-control state of one directory.

    The directory is resolved to a git or plain backend once, at
    construction. A directory that becomes a repository later needs a new
    tracker.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        config: Optional[TrackerConfig] = None,
    ):
        """
        Args:
            directory: Directory to track
            config: Tracker configuration (loaded from the directory if omitted)
        """
        self.directory = Path(directory).resolve()
        self.config = config if config is not None else load_config(self.directory)
        self.workspace: Workspace = make_workspace(self.directory, self.config)
        logger.debug(
            "Tracker for %s uses %s", self.directory, type(self.workspace).__name__
        )

    @property
    def root(self) -> Path:
        """Root that reported paths are relative to (the work tree root for git)."""
        return self.workspace.root

    def is_repository(self) -> bool:
        """True iff git metadata exists at or above the directory."""
        return self.workspace.is_repository()

    def get_status(self) -> RepositoryStatus:
        """Current commit, branch, dirty and untracked files.

        Raises:
            GitError: If git cannot be run or times out
        """
        return self.workspace.status()

    def compute_fingerprint(self) -> str:
        """Deterministic digest of everything that could affect a diff.

        Equal fingerprints mean nothing observable changed, so a caller can
        skip computing a diff.

        Raises:
            GitError: If git cannot be run or times out
            FingerprintError: If a file cannot be read
        """
        return self.workspace.fingerprint()

    def compute_non_git_fingerprint(self) -> str:
        """Content hash of every file under the directory, ignoring git.

        Raises:
            FingerprintError: If a file cannot be read
        """
        ignore = IgnoreSpec(self.directory, self.config.fingerprint.ignore)
        return compute_directory_fingerprint(self.directory, ignore)

    def get_diff_since(
        self,
        baseline_commit: str,
        options: Optional[DiffOptions] = None,
    ) -> Optional[StructuredDiff]:
        """Diff from a baseline commit to the current working tree.

        Returns:
            StructuredDiff (possibly with no files), or None when the
            directory is not a repository or the commit cannot be resolved
        """
        return self.workspace.diff_since(baseline_commit, options or DiffOptions())

    def get_current_diff(self, options: Optional[DiffOptions] = None) -> Optional[StructuredDiff]:
        """Uncommitted changes relative to HEAD.

        ``patch`` is dropped (``patch_truncated=True``) when it exceeds
        ``options.max_size`` bytes; files and summary are always present.

        Returns:
            StructuredDiff, or None when not a repository or nothing changed
        """
        return self.workspace.current_diff(options or DiffOptions())

    async def create_baseline(self, snapshot_dir: Union[str, Path]) -> BaselineRecord:
        """Record the current state to snapshot_dir, replacing any earlier baseline.

        Raises:
            BaselineError: If the snapshot cannot be written
            GitError: If git cannot be run or times out
        """
        return await create_baseline(self.workspace, snapshot_dir, self.config.baseline)

    def load_baseline(self, snapshot_dir: Union[str, Path]) -> Optional[BaselineRecord]:
        """Read the baseline stored in snapshot_dir, or None if there is none."""
        return read_baseline(snapshot_dir, self.config.baseline)
