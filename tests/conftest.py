"""Shared test fixtures and utilities."""

import subprocess
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_git_env(tmp_path_factory, monkeypatch):
    """Isolate git from the user's global and system configuration."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@test.com")
    for var in ("WSTRACK_GIT_EXECUTABLE", "WSTRACK_GIT_TIMEOUT", "WSTRACK_MAX_PATCH_SIZE"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def git():
    """Run a git command in a directory and return stripped stdout."""
    def _git(cwd: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    return _git


@pytest.fixture
def empty_repo(tmp_path, git):
    """A git repository on branch main with no commits."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def commit_all(git):
    """Stage everything in a repository and commit it; returns the commit id."""
    def _commit(repo: Path, message: str = "commit") -> str:
        git(repo, "add", "-A")
        git(repo, "commit", "-q", "-m", message)
        return git(repo, "rev-parse", "HEAD")
    return _commit


@pytest.fixture
def repo(empty_repo, commit_all):
    """A repository with one committed file, test.txt."""
    (empty_repo / "test.txt").write_text("initial\n")
    commit_all(empty_repo, "initial")
    return empty_repo


@pytest.fixture
def plain_dir(tmp_path):
    """A directory with a few files and no version control."""
    root = tmp_path / "plain"
    (root / "src").mkdir(parents=True)
    (root / "package.json").write_text("{}")
    (root / "src" / "main.py").write_text("print('hello')\n")
    (root / "data.csv").write_text("a,b,c\n1,2,3\n")
    return root


@pytest.fixture
def write_file():
    """Factory fixture to write files relative to a root."""
    def _write(root: Path, path: str, content: str = "test content"):
        file_path = root / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path
    return _write
