"""Core data models for workspace-tracker.

All query results are plain pydantic models recomputed on every call. The
only persisted model is ``BaselineRecord``, written once per session to the
caller's snapshot directory.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# ============= Repository Status =============

class RepositoryStatus(BaseModel):
    """Version-control status of the tracked directory.

    ``head_commit`` and ``branch`` are only set for repositories. A
    repository without commits has ``head_commit=None``; a detached HEAD has
    ``branch=None``.
    """

    is_repo: bool
    head_commit: Optional[str] = None
    branch: Optional[str] = None
    dirty_files: List[str] = Field(default_factory=list)
    untracked_files: List[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when there are no dirty and no untracked files."""
        return not self.dirty_files and not self.untracked_files


# ============= Diffs =============

class ChangeStatus(str, Enum):
    """How a file changed between two states."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class FileChange(BaseModel):
    """Single file entry of a structured diff."""

    path: str
    status: ChangeStatus
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    old_path: Optional[str] = None  # Source path of a rename
    binary: bool = False


class StructuredDiff(BaseModel):
    """Parsed diff between two states, plus optional raw patch text."""

    files: List[FileChange] = Field(default_factory=list)
    summary: str
    patch: Optional[str] = None
    patch_truncated: bool = False

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def is_empty(self) -> bool:
        return not self.files


class DiffOptions(BaseModel):
    """Per-call diff options.

    ``None`` values fall back to the tracker configuration.
    """

    max_size: Optional[int] = Field(default=None, ge=0)
    include_patch: bool = True
    include_untracked: Optional[bool] = None


# ============= Baseline =============

class BaselineRecord(BaseModel):
    """Reference point recorded at the start of a session."""

    is_repo: bool = True
    head_commit: Optional[str] = None
    branch: Optional[str] = None
    timestamp: str  # ISO-8601, UTC
    dirty_files: List[str] = Field(default_factory=list)
    untracked_files: List[str] = Field(default_factory=list)
    fingerprint: Optional[str] = None

    def to_json(self) -> str:
        """Serialize with stable formatting for on-disk storage."""
        return self.model_dump_json(indent=2)
