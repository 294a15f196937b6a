"""Hashing utilities for deterministic workspace fingerprints.

File contents are hashed with SHA256. Fingerprints combine those digests
(and, for git work trees, the head commit and diff text) into one BLAKE2b
digest, truncated to ``FINGERPRINT_LENGTH`` hex characters.
"""

import errno
import hashlib
import os
import stat
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .constants import FINGERPRINT_LENGTH
from .errors import FingerprintError
from .ignore import IgnoreSpec


def compute_file_digest(path: Path) -> str:
    """Compute SHA256 hash of file contents.

    Symlinks are hashed by their target string rather than followed, so a
    dangling link still fingerprints and a retargeted link changes the digest.
    FIFOs, sockets and device nodes are never opened (a FIFO would block);
    they hash to a marker for their file type.

    Args:
        path: Path to file to hash

    Returns:
        SHA256 digest in format "sha256:xxxx"

    Raises:
        FingerprintError: If the file cannot be read
    """
    sha256 = hashlib.sha256()
    try:
        mode = os.lstat(path).st_mode
        if stat.S_ISLNK(mode):
            sha256.update(b"symlink\x00")
            sha256.update(os.fsencode(os.readlink(path)))
        elif stat.S_ISREG(mode):
            with path.open("rb") as f:
                for chunk in iter(lambda: f.read(8192), b""):
                    sha256.update(chunk)
        elif stat.S_ISDIR(mode):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(path))
        else:
            sha256.update(f"special\x00{stat.S_IFMT(mode):o}".encode("ascii"))
    except OSError as e:
        raise FingerprintError(str(path), e) from e
    return f"sha256:{sha256.hexdigest()}"


def combine_file_digests(entries: Iterable[Tuple[str, str]]) -> str:
    """Combine (path, digest) pairs into one order-independent digest.

    Uses null-byte domain separation so that ("ab", "c") and ("a", "bc")
    cannot collide, and sorts the pairs so enumeration order never matters.

    Args:
        entries: (relative POSIX path, file digest) pairs

    Returns:
        Truncated hex fingerprint
    """
    h = hashlib.blake2b(digest_size=32)
    h.update(b"\x00FILES\x00")
    for path, digest in sorted(entries):
        h.update(b"\x00")
        h.update(path.encode("utf-8", "surrogateescape"))
        h.update(b"\x00")
        h.update(digest.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()[:FINGERPRINT_LENGTH]


def combine_sections(sections: Iterable[Tuple[str, bytes]]) -> str:
    """Digest named byte sections in the given order.

    Each section is length-prefixed so the boundary between a diff and the
    untracked listing cannot shift.

    Args:
        sections: (name, payload) pairs

    Returns:
        Truncated hex fingerprint
    """
    h = hashlib.blake2b(digest_size=32)
    for name, payload in sections:
        h.update(b"\x00")
        h.update(name.encode("utf-8"))
        h.update(b"\x00")
        h.update(str(len(payload)).encode("ascii"))
        h.update(b"\x00")
        h.update(payload)
    return h.hexdigest()[:FINGERPRINT_LENGTH]


def iter_files(root: Path, ignore: Optional[IgnoreSpec] = None) -> Iterator[str]:
    """Yield root-relative POSIX paths of all files under root.

    Directories matched by ``ignore`` are pruned without being entered.
    Symlinked directories are reported as single entries, not followed.
    """
    ignore = ignore or IgnoreSpec(root)

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"

        kept = []
        for d in dirnames:
            rel = prefix + d
            if os.path.islink(os.path.join(dirpath, d)):
                if not ignore.is_ignored(rel):
                    yield rel
            elif ignore.should_traverse(rel):
                kept.append(d)
        dirnames[:] = kept

        for name in filenames:
            rel = prefix + name
            if not ignore.is_ignored(rel):
                yield rel


def scan_directory(root: Path, ignore: Optional[IgnoreSpec] = None) -> List[Tuple[str, str]]:
    """Hash every file under root.

    Returns:
        Unsorted list of (relative path, digest) pairs

    Raises:
        FingerprintError: If any file cannot be read
    """
    return [(rel, compute_file_digest(root / rel)) for rel in iter_files(root, ignore)]


def compute_directory_fingerprint(root: Path, ignore: Optional[IgnoreSpec] = None) -> str:
    """Content fingerprint of a directory tree, independent of walk order."""
    return combine_file_digests(scan_directory(root, ignore))


__all__ = [
    "combine_file_digests",
    "combine_sections",
    "compute_directory_fingerprint",
    "compute_file_digest",
    "iter_files",
    "scan_directory",
]
