"""Constants for workspace-tracker."""

# Project configuration directory and file names
WSTRACK_DIR = ".wstrack"
CONFIG_FILE = "config.yaml"
ROOT_CONFIG_FILE = "wstrack.yaml"

# Baseline snapshot layout (inside the caller's snapshot directory)
BASELINE_FILE = "baseline.json"
BASELINE_FILES_DIR = "files"
BASELINE_LOCK_FILE = ".baseline.lock"

# Git metadata entry (a directory, or a file for worktrees and submodules)
GIT_DIR = ".git"

# Fingerprints are truncated hex digests of this length
FINGERPRINT_LENGTH = 16

# Defaults
DEFAULT_GIT_TIMEOUT = 30.0
DEFAULT_MAX_PATCH_SIZE = 50_000

# Version
TRACKER_VERSION = "0.1.0"
