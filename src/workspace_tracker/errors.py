"""Custom exceptions for workspace-tracker.

Expected absences (not a repository, no changes, unknown baseline commit)
are reported as ``None`` results. Everything here is an operational failure
that the caller is expected to log and act on.
"""

from typing import Optional, Sequence


class TrackerError(RuntimeError):
    """Base class for all tracker errors."""
    pass


# Git Errors
class GitError(TrackerError):
    """Base class for git invocation errors."""
    pass


class GitNotFoundError(GitError):
    """The git executable could not be started."""

    def __init__(self, executable: str, operation: str):
        self.executable = executable
        self.operation = operation
        super().__init__(
            f"Cannot run '{executable}' for {operation}: executable not found. "
            f"Install git or set git.executable in the tracker configuration."
        )


class GitCommandError(GitError):
    """A git command exited with an unexpected status."""

    def __init__(
        self,
        operation: str,
        args: Sequence[str],
        returncode: int,
        stderr: str = "",
    ):
        self.operation = operation
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "(no output)"
        super().__init__(
            f"git {operation} failed (exit {returncode}): {detail}"
        )


class GitTimeoutError(GitError):
    """A git command did not finish in time and was killed.

    The workspace state is unavailable for this call; retrying is up to the
    caller.
    """

    def __init__(self, operation: str, args: Sequence[str], timeout: float):
        self.operation = operation
        self.command = list(args)
        self.timeout = timeout
        super().__init__(
            f"git {operation} timed out after {timeout:g}s; workspace status unavailable"
        )


# Fingerprint Errors
class FingerprintError(TrackerError):
    """A file could not be read while fingerprinting."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Cannot fingerprint {path}{reason}")


# Baseline Errors
class BaselineError(TrackerError):
    """Baseline snapshot could not be written or read."""
    pass


# Configuration Errors
class ConfigError(TrackerError):
    """Invalid tracker configuration."""
    pass
