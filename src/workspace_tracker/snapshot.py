"""Baseline snapshots.

A baseline records where a session started: the head commit, the dirty and
untracked files at that moment, and the workspace fingerprint. It is written
to ``<snapshot_dir>/baseline.json``; copies of the dirty and untracked files
go under ``<snapshot_dir>/files/``. Writing again replaces both completely.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

import portalocker
from pydantic import ValidationError

from .config import BaselineSettings
from .constants import BASELINE_FILES_DIR, BASELINE_LOCK_FILE
from .errors import BaselineError
from .models import BaselineRecord
from .utils import atomic_write_text, get_iso_timestamp
from .workspace import Workspace

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 60


def capture_baseline(workspace: Workspace) -> BaselineRecord:
    """Read the current workspace state into a BaselineRecord (no writes)."""
    status = workspace.status()
    return BaselineRecord(
        is_repo=status.is_repo,
        head_commit=status.head_commit,
        branch=status.branch,
        timestamp=get_iso_timestamp(),
        dirty_files=status.dirty_files,
        untracked_files=status.untracked_files,
        fingerprint=workspace.fingerprint(),
    )


def _copy_files(record: BaselineRecord, source_root: Path, files_dir: Path) -> int:
    """Copy dirty and untracked files into files_dir, replacing any old copies."""
    if files_dir.exists():
        shutil.rmtree(files_dir)

    copied = 0
    for rel in [*record.dirty_files, *record.untracked_files]:
        src = source_root / rel
        # Deleted files are dirty too but have nothing to copy
        if not (src.is_file() or src.is_symlink()):
            logger.debug("Skipping baseline copy of %s (not a file)", rel)
            continue
        dest = files_dir / rel
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dest, follow_symlinks=False)
        copied += 1
    return copied


def write_baseline(
    record: BaselineRecord,
    snapshot_dir: Path,
    source_root: Path,
    settings: BaselineSettings,
) -> None:
    """Persist a baseline record (and optionally file copies).

    Concurrent writers to the same snapshot directory are serialized with a
    lock file; the last one to finish wins.

    Raises:
        BaselineError: If the directory or any file cannot be written
    """
    snapshot_dir = Path(snapshot_dir)
    try:
        snapshot_dir.mkdir(parents=True, exist_ok=True)
        lock_path = snapshot_dir / BASELINE_LOCK_FILE
        with portalocker.Lock(str(lock_path), "w", timeout=LOCK_TIMEOUT):
            files_dir = snapshot_dir / BASELINE_FILES_DIR
            if settings.copy_files:
                copied = _copy_files(record, source_root, files_dir)
            else:
                copied = 0
                if files_dir.exists():
                    shutil.rmtree(files_dir)
            atomic_write_text(snapshot_dir / settings.filename, record.to_json())
    except portalocker.exceptions.LockException as e:
        raise BaselineError(f"Could not lock baseline directory {snapshot_dir}: {e}") from e
    except OSError as e:
        raise BaselineError(f"Could not write baseline to {snapshot_dir}: {e}") from e

    logger.info(
        "Baseline written to %s (head=%s, %d file copies)",
        snapshot_dir, (record.head_commit or "none")[:12], copied,
    )


async def create_baseline(
    workspace: Workspace,
    snapshot_dir: Union[str, Path],
    settings: BaselineSettings,
) -> BaselineRecord:
    """Capture the current state and persist it to snapshot_dir.

    Blocking work runs in a worker thread; wrap the call in
    ``asyncio.wait_for`` to bound it.
    """
    record = await asyncio.to_thread(capture_baseline, workspace)
    await asyncio.to_thread(write_baseline, record, Path(snapshot_dir), workspace.root, settings)
    return record


def read_baseline(snapshot_dir: Union[str, Path], settings: BaselineSettings) -> Optional[BaselineRecord]:
    """Load a previously written baseline.

    Returns:
        The record, or None if no baseline exists in snapshot_dir

    Raises:
        BaselineError: If the file exists but cannot be read or parsed
    """
    path = Path(snapshot_dir) / settings.filename
    if not path.exists():
        return None
    try:
        return BaselineRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        raise BaselineError(f"Could not read baseline {path}: {e}") from e
