"""Workspace state tracking: baselines, fingerprints and structured diffs."""

from .config import TrackerConfig, load_config
from .constants import TRACKER_VERSION
from .errors import (
    BaselineError,
    ConfigError,
    FingerprintError,
    GitCommandError,
    GitError,
    GitNotFoundError,
    GitTimeoutError,
    TrackerError,
)
from .models import (
    BaselineRecord,
    ChangeStatus,
    DiffOptions,
    FileChange,
    RepositoryStatus,
    StructuredDiff,
)
from .tracker import WorkspaceTracker

__version__ = TRACKER_VERSION

__all__ = [
    "BaselineError",
    "BaselineRecord",
    "ChangeStatus",
    "ConfigError",
    "DiffOptions",
    "FileChange",
    "FingerprintError",
    "GitCommandError",
    "GitError",
    "GitNotFoundError",
    "GitTimeoutError",
    "RepositoryStatus",
    "StructuredDiff",
    "TrackerConfig",
    "TrackerError",
    "WorkspaceTracker",
    "load_config",
]
