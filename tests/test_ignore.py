"""Tests for directory pruning patterns."""

from workspace_tracker.ignore import DEFAULT_DIRS, IgnoreSpec, default_patterns


class TestDefaults:
    """Built-in pruning of VCS internals, caches and environments."""

    def test_pruned_directories(self, tmp_path):
        ignore = IgnoreSpec(tmp_path)

        assert ignore.is_ignored(".git/HEAD")
        assert ignore.is_ignored(".wstrack/baseline.json")
        assert ignore.is_ignored("web/node_modules/react/index.js")
        assert ignore.is_ignored(".venv/lib/python3.11/site-packages/pip.py")
        assert ignore.is_ignored("src/pkg/__pycache__/mod.cpython-311.pyc")

    def test_content_is_kept(self, tmp_path):
        """Files that merely look generated still count as content."""
        ignore = IgnoreSpec(tmp_path)

        assert not ignore.is_ignored("src/main.py")
        assert not ignore.is_ignored("notes.log")
        assert not ignore.is_ignored("module.pyc")
        assert not ignore.is_ignored(".gitignore")

    def test_patterns_are_directory_only(self):
        assert len(default_patterns()) == len(DEFAULT_DIRS)
        assert all(p.endswith("/") for p in default_patterns())


class TestExtraPatterns:
    """User-configured patterns."""

    def test_extra_patterns(self, tmp_path):
        ignore = IgnoreSpec(tmp_path, ["# generated output", "", "  *.log  ", "dist/"])

        assert ignore.is_ignored("debug.log")
        assert ignore.is_ignored("dist/bundle.js")
        assert not ignore.is_ignored("src/app.js")
        assert "# generated output" not in ignore.patterns
        assert "*.log" in ignore.patterns

    def test_negation(self, tmp_path):
        ignore = IgnoreSpec(tmp_path, ["*.tmp", "!keep.tmp"])

        assert ignore.is_ignored("scratch.tmp")
        assert not ignore.is_ignored("keep.tmp")


class TestTraversal:
    """Pruning decisions during the walk."""

    def test_should_traverse(self, tmp_path):
        ignore = IgnoreSpec(tmp_path)

        assert not ignore.should_traverse(".git")
        assert not ignore.should_traverse("packages/app/node_modules")
        assert ignore.should_traverse("src")
        assert ignore.should_traverse("src/")

    def test_extra_directory_is_pruned(self, tmp_path):
        ignore = IgnoreSpec(tmp_path, ["build/"])

        assert not ignore.should_traverse("build")
        assert ignore.should_traverse("buildtools")
