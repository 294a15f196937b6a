"""Diff parsing - turns git's machine-readable diff output into FileChange rows.

Two listings are combined: ``--name-status -z`` gives each file's status and
rename source, ``--numstat -z`` gives its line counts. Both are produced with
the same rename options, so they list the same files in the same order.
"""

import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .models import ChangeStatus, FileChange, StructuredDiff


# First letter of a --name-status code -> reported status
STATUS_CODES = {
    "A": ChangeStatus.ADDED,
    "C": ChangeStatus.ADDED,  # Copy: a new file whose content came from elsewhere
    "D": ChangeStatus.DELETED,
    "M": ChangeStatus.MODIFIED,
    "R": ChangeStatus.RENAMED,
    "T": ChangeStatus.MODIFIED,
    "U": ChangeStatus.MODIFIED,
}


@dataclass
class NameStatusEntry:
    """One --name-status record."""
    code: str
    path: str
    old_path: Optional[str] = None


@dataclass
class NumStat:
    """Line counts for one file; binary files report no counts."""
    additions: int = 0
    deletions: int = 0
    binary: bool = False


def _tokens(data: bytes) -> Iterator[str]:
    for raw in data.split(b"\0"):
        yield os.fsdecode(raw)


def parse_name_status(data: bytes) -> List[NameStatusEntry]:
    """Parse ``git diff --name-status -z`` output.

    Records are ``CODE\\0path\\0``, or ``Rnnn\\0old\\0new\\0`` for renames and
    copies.
    """
    entries = []
    tokens = _tokens(data)
    for code in tokens:
        if not code:
            continue
        letter = code[0]
        if letter in ("R", "C"):
            old_path = next(tokens, "")
            new_path = next(tokens, "")
            entries.append(NameStatusEntry(letter, new_path, old_path))
        else:
            entries.append(NameStatusEntry(letter, next(tokens, "")))
    return entries


def _parse_count(value: str) -> Tuple[int, bool]:
    if value == "-":
        return 0, True
    try:
        return max(int(value), 0), False
    except ValueError:
        return 0, False


def parse_numstat(data: bytes) -> Dict[str, NumStat]:
    """Parse ``git diff --numstat -z`` output, keyed by (new) path.

    Records are ``adds\\tdels\\tpath\\0``; renames leave the path empty and
    follow it with ``old\\0new\\0``. Binary files show ``-`` for both counts
    and are recorded as 0/0.
    """
    stats: Dict[str, NumStat] = {}
    tokens = _tokens(data)
    for record in tokens:
        if not record:
            continue
        parts = record.split("\t", 2)
        if len(parts) != 3:
            continue
        adds, dels, path = parts
        if not path:
            next(tokens, "")  # Rename source
            path = next(tokens, "")
        additions, binary = _parse_count(adds)
        deletions, _ = _parse_count(dels)
        stats[path] = NumStat(additions, deletions, binary)
    return stats


def parse_numstat_line(text: str) -> NumStat:
    """Parse the first line of a plain (non ``-z``) numstat listing."""
    for line in text.splitlines():
        parts = line.split("\t", 2)
        if len(parts) >= 2:
            additions, binary = _parse_count(parts[0])
            deletions, _ = _parse_count(parts[1])
            return NumStat(additions, deletions, binary)
    return NumStat()


def build_file_changes(
    name_status: List[NameStatusEntry],
    numstat: Dict[str, NumStat],
) -> List[FileChange]:
    """Join status and counts, preserving git's emission order."""
    changes = []
    for entry in name_status:
        stat = numstat.get(entry.path, NumStat())
        status = STATUS_CODES.get(entry.code, ChangeStatus.MODIFIED)
        changes.append(FileChange(
            path=entry.path,
            status=status,
            additions=stat.additions,
            deletions=stat.deletions,
            old_path=entry.old_path if status == ChangeStatus.RENAMED else None,
            binary=stat.binary,
        ))
    return changes


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def format_summary(files: List[FileChange]) -> str:
    """Build a git-shortstat style summary from aggregate totals.

    Example:
        "2 files changed, 10 insertions(+), 1 deletion(-)"
    """
    additions = sum(f.additions for f in files)
    deletions = sum(f.deletions for f in files)
    return ", ".join([
        _plural(len(files), "file changed", "files changed"),
        _plural(additions, "insertion(+)", "insertions(+)"),
        _plural(deletions, "deletion(-)", "deletions(-)"),
    ])


def select_patch(patch: Optional[str], max_size: int) -> Tuple[Optional[str], bool]:
    """Apply the patch size ceiling.

    Returns:
        (patch or None, truncated) - truncated is True when a patch existed
        but its UTF-8 size exceeded max_size
    """
    if patch is None:
        return None, False
    if len(patch.encode("utf-8")) <= max_size:
        return patch, False
    return None, True


def build_structured_diff(
    files: List[FileChange],
    patch: Optional[str] = None,
    max_size: int = 0,
) -> StructuredDiff:
    """Assemble a StructuredDiff; files and summary are always present."""
    kept, truncated = select_patch(patch, max_size)
    return StructuredDiff(
        files=files,
        summary=format_summary(files),
        patch=kept,
        patch_truncated=truncated,
    )
