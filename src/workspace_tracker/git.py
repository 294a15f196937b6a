"""Scoped git command execution.

Every git call made by the tracker goes through ``GitRunner.run``. It applies
a timeout (the child is killed when it expires), disables pagers, colors,
external diff drivers and optional locks, and converts failures into typed
errors. Output is returned as bytes; callers decode what they parse.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Optional, Sequence

from .constants import DEFAULT_GIT_TIMEOUT, GIT_DIR
from .errors import GitCommandError, GitNotFoundError, GitTimeoutError

logger = logging.getLogger(__name__)

# Global options placed before every subcommand
GIT_GLOBAL_OPTIONS = ["--no-pager", "-c", "core.quotepath=off", "-c", "color.ui=never"]


def find_repo_root(start: Path) -> Optional[Path]:
    """Walk up from start to the nearest directory holding git metadata.

    A ``.git`` directory or a ``.git`` file (linked worktrees, submodules)
    both count.

    Returns:
        The work tree root, or None outside any repository
    """
    current = Path(start).resolve()

    while True:
        if (current / GIT_DIR).exists():
            return current
        if current == current.parent:
            return None
        current = current.parent


@dataclass
class GitResult:
    """Completed git invocation."""

    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def text(self) -> str:
        """Stdout decoded as UTF-8 (undecodable bytes replaced)."""
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Runs git subcommands in one work tree with a bounded timeout."""

    def __init__(
        self,
        cwd: Path,
        executable: str = "git",
        timeout: float = DEFAULT_GIT_TIMEOUT,
    ):
        self.cwd = Path(cwd)
        self.executable = executable
        self.timeout = timeout

    def _env(self) -> dict:
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["GIT_OPTIONAL_LOCKS"] = "0"
        env.pop("GIT_DIR", None)
        env.pop("GIT_WORK_TREE", None)
        return env

    def run(
        self,
        args: Sequence[str],
        operation: Optional[str] = None,
        ok_codes: Collection[int] = (0,),
        input: Optional[bytes] = None,
    ) -> GitResult:
        """Run ``git <args>`` and return its result.

        Args:
            args: Subcommand and its arguments
            operation: Name used in errors and logs (defaults to the subcommand)
            ok_codes: Exit codes treated as success
            input: Bytes written to stdin

        Returns:
            GitResult for any exit code in ok_codes

        Raises:
            GitNotFoundError: If the executable cannot be started
            GitTimeoutError: If the command exceeds the timeout
            GitCommandError: If the exit code is not in ok_codes
        """
        operation = operation or (args[0] if args else "git")
        cmd = [self.executable, *GIT_GLOBAL_OPTIONS, *args]
        logger.debug("Running %s in %s", " ".join(cmd), self.cwd)

        try:
            # subprocess.run kills the child before re-raising TimeoutExpired
            proc = subprocess.run(
                cmd,
                cwd=self.cwd,
                input=input,
                stdin=None if input is not None else subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
                env=self._env(),
                check=False,
            )
        except FileNotFoundError as e:
            raise GitNotFoundError(self.executable, operation) from e
        except subprocess.TimeoutExpired as e:
            logger.warning("git %s timed out after %ss in %s", operation, self.timeout, self.cwd)
            raise GitTimeoutError(operation, args, self.timeout) from e

        result = GitResult(proc.returncode, proc.stdout, proc.stderr)
        if proc.returncode not in ok_codes:
            raise GitCommandError(
                operation,
                args,
                proc.returncode,
                proc.stderr.decode("utf-8", errors="replace"),
            )
        return result

    def output(self, args: Sequence[str], operation: Optional[str] = None) -> str:
        """Run a command expected to succeed and return stripped stdout."""
        return self.run(args, operation=operation).text.strip()

    def try_output(self, args: Sequence[str], operation: Optional[str] = None) -> Optional[str]:
        """Run a query whose failure means "absent" (exit 1), not an error.

        Returns:
            Stripped stdout, or None when git exits with status 1
        """
        result = self.run(args, operation=operation, ok_codes=(0, 1))
        if not result.ok:
            return None
        return result.text.strip() or None
