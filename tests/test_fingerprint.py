"""Tests for workspace fingerprinting."""

import os
import re
import shutil

import pytest

import workspace_tracker.hashing as hashing
from workspace_tracker import FingerprintError, WorkspaceTracker


FINGERPRINT_RE = re.compile(r"^[0-9a-f]{16}$")

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class TestNonGitFingerprint:
    """Content hashing for plain directories."""

    def test_succeeds_and_is_fixed_length(self, plain_dir):
        value = WorkspaceTracker(plain_dir).compute_fingerprint()
        assert FINGERPRINT_RE.match(value)

    def test_delegates_to_content_hash(self, plain_dir):
        tracker = WorkspaceTracker(plain_dir)
        assert tracker.compute_fingerprint() == tracker.compute_non_git_fingerprint()

    def test_deterministic(self, plain_dir):
        tracker = WorkspaceTracker(plain_dir)
        assert tracker.compute_fingerprint() == tracker.compute_fingerprint()

    def test_single_byte_change(self, plain_dir):
        tracker = WorkspaceTracker(plain_dir)
        before = tracker.compute_fingerprint()

        (plain_dir / "package.json").write_text("{ }")

        assert tracker.compute_fingerprint() != before

    def test_enumeration_order_does_not_matter(self, plain_dir, monkeypatch):
        """Processing files in reverse order gives the same fingerprint."""
        tracker = WorkspaceTracker(plain_dir)
        forward = tracker.compute_non_git_fingerprint()

        original = hashing.iter_files

        def reversed_files(root, ignore=None):
            return reversed(sorted(original(root, ignore)))

        monkeypatch.setattr(hashing, "iter_files", reversed_files)

        assert tracker.compute_non_git_fingerprint() == forward

    def test_configured_ignore_patterns(self, plain_dir):
        (plain_dir / "wstrack.yaml").write_text("fingerprint:\n  ignore: ['dist/']\n")
        tracker = WorkspaceTracker(plain_dir)
        before = tracker.compute_fingerprint()

        (plain_dir / "dist").mkdir()
        (plain_dir / "dist" / "bundle.js").write_text("built")

        assert tracker.compute_fingerprint() == before

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes unsupported")
    def test_named_pipe_is_not_opened(self, plain_dir):
        """A FIFO with no writer must not block the walk."""
        tracker = WorkspaceTracker(plain_dir)
        before = tracker.compute_fingerprint()

        os.mkfifo(plain_dir / "pipe")

        after = tracker.compute_fingerprint()
        assert FINGERPRINT_RE.match(after)
        assert after != before

    def test_unreadable_file_raises(self, plain_dir, monkeypatch):
        def broken_digest(path):
            raise FingerprintError(str(path), PermissionError("denied"))

        monkeypatch.setattr(hashing, "compute_file_digest", broken_digest)

        with pytest.raises(FingerprintError):
            WorkspaceTracker(plain_dir).compute_fingerprint()


@needs_git
class TestGitFingerprint:
    """Fingerprints of git work trees."""

    def test_consistent_for_unchanged_workspace(self, repo):
        tracker = WorkspaceTracker(repo)

        first = tracker.compute_fingerprint()

        assert tracker.compute_fingerprint() == first
        assert FINGERPRINT_RE.match(first)

    def test_changes_after_modification(self, repo, write_file):
        tracker = WorkspaceTracker(repo)
        before = tracker.compute_fingerprint()

        write_file(repo, "test.txt", "modified content\n")

        assert tracker.compute_fingerprint() != before

    def test_changes_when_untracked_file_appears(self, repo, write_file):
        tracker = WorkspaceTracker(repo)
        before = tracker.compute_fingerprint()

        write_file(repo, "notes.txt", "")

        assert tracker.compute_fingerprint() != before

    def test_changes_when_untracked_content_changes(self, repo, write_file):
        """Untracked content is hashed, not only the file listing."""
        write_file(repo, "notes.txt", "draft 1")
        tracker = WorkspaceTracker(repo)
        before = tracker.compute_fingerprint()

        write_file(repo, "notes.txt", "draft 2")

        assert tracker.compute_fingerprint() != before

    def test_changes_between_two_binary_edits(self, repo, commit_all):
        """Binary edits are visible even though the text diff only says 'differ'."""
        (repo / "blob.bin").write_bytes(b"\x00\x01\x02")
        commit_all(repo, "binary")
        tracker = WorkspaceTracker(repo)

        (repo / "blob.bin").write_bytes(b"\x00\x01\x03")
        first = tracker.compute_fingerprint()
        (repo / "blob.bin").write_bytes(b"\x00\x01\x04")

        assert tracker.compute_fingerprint() != first

    def test_changes_after_commit(self, repo, write_file, commit_all):
        tracker = WorkspaceTracker(repo)
        write_file(repo, "test.txt", "next\n")
        dirty = tracker.compute_fingerprint()

        commit_all(repo, "next")

        assert tracker.compute_fingerprint() != dirty

    def test_reverting_restores_fingerprint(self, repo, write_file):
        tracker = WorkspaceTracker(repo)
        before = tracker.compute_fingerprint()

        write_file(repo, "test.txt", "temporary\n")
        write_file(repo, "test.txt", "initial\n")

        assert tracker.compute_fingerprint() == before

    def test_empty_repository(self, empty_repo, write_file):
        tracker = WorkspaceTracker(empty_repo)
        empty = tracker.compute_fingerprint()
        assert FINGERPRINT_RE.match(empty)

        write_file(empty_repo, "first.txt", "hello")

        assert tracker.compute_fingerprint() != empty

    def test_staged_new_file_in_empty_repository(self, empty_repo, write_file, git):
        """Staged content is diffed against the empty tree before the first commit."""
        write_file(empty_repo, "first.txt", "hello")
        git(empty_repo, "add", "first.txt")
        tracker = WorkspaceTracker(empty_repo)
        before = tracker.compute_fingerprint()

        write_file(empty_repo, "first.txt", "hello!")

        assert tracker.compute_fingerprint() != before

    def test_non_git_fingerprint_available_in_repository(self, repo):
        tracker = WorkspaceTracker(repo)
        assert FINGERPRINT_RE.match(tracker.compute_non_git_fingerprint())

    def test_embedded_repository(self, repo, git, write_file):
        """A nested repository is one untracked ``dir/`` entry and still hashes."""
        write_file(repo, "vendor/lib.py", "VERSION = 1\n")
        git(repo / "vendor", "init", "-q")
        tracker = WorkspaceTracker(repo)

        assert tracker.get_status().untracked_files == ["vendor/"]
        before = tracker.compute_fingerprint()
        assert FINGERPRINT_RE.match(before)
        assert tracker.compute_fingerprint() == before

        write_file(repo, "vendor/lib.py", "VERSION = 2\n")

        assert tracker.compute_fingerprint() != before
