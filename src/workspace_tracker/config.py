"""Tracker configuration.

Configuration lives in ``.wstrack/config.yaml`` (or ``wstrack.yaml`` at the
project root). Every key is optional; a missing or broken file falls back to
defaults so tracking never blocks a session.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    BASELINE_FILE,
    CONFIG_FILE,
    DEFAULT_GIT_TIMEOUT,
    DEFAULT_MAX_PATCH_SIZE,
    ROOT_CONFIG_FILE,
    WSTRACK_DIR,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)

# Environment overrides: variable -> (section, key)
ENV_OVERRIDES = {
    "WSTRACK_GIT_EXECUTABLE": ("git", "executable"),
    "WSTRACK_GIT_TIMEOUT": ("git", "timeout"),
    "WSTRACK_MAX_PATCH_SIZE": ("diff", "max_patch_size"),
}


class GitSettings(BaseModel):
    """How git is invoked."""

    executable: str = Field("git", min_length=1)
    timeout: float = Field(DEFAULT_GIT_TIMEOUT, gt=0)


class DiffSettings(BaseModel):
    """Defaults for structured diffs."""

    max_patch_size: int = Field(DEFAULT_MAX_PATCH_SIZE, ge=0)
    include_untracked: bool = False
    detect_renames: bool = True


class FingerprintSettings(BaseModel):
    """Extra gitignore-style patterns skipped when fingerprinting plain directories."""

    ignore: List[str] = Field(default_factory=list)


class BaselineSettings(BaseModel):
    """Baseline snapshot behavior."""

    copy_files: bool = True
    filename: str = Field(BASELINE_FILE, min_length=1)


class TrackerConfig(BaseModel):
    """Complete tracker configuration."""

    git: GitSettings = Field(default_factory=GitSettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    fingerprint: FingerprintSettings = Field(default_factory=FingerprintSettings)
    baseline: BaselineSettings = Field(default_factory=BaselineSettings)


def config_candidates(root: Path) -> List[Path]:
    """Config file locations, in priority order."""
    return [root / WSTRACK_DIR / CONFIG_FILE, root / ROOT_CONFIG_FILE]


def parse_config(data: dict) -> TrackerConfig:
    """Validate a raw mapping into a TrackerConfig.

    Raises:
        ConfigError: If the mapping has invalid values
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")
    try:
        return TrackerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid tracker configuration: {e}") from e


def _apply_env_overrides(data: dict) -> dict:
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value is None or value == "":
            continue
        data.setdefault(section, {})
        if not isinstance(data[section], dict):
            data[section] = {}
        data[section][key] = value
    return data


def load_config(root: Optional[Path] = None) -> TrackerConfig:
    """Load configuration for a project root, falling back to defaults.

    Args:
        root: Project directory (defaults to the current directory)

    Returns:
        TrackerConfig with file values and environment overrides applied
    """
    root = Path(root) if root is not None else Path.cwd()
    data: dict = {}

    for cfg_path in config_candidates(root):
        if not cfg_path.is_file():
            continue
        try:
            loaded = yaml.safe_load(cfg_path.read_text()) or {}
            parse_config(loaded)
            data = loaded
        except (OSError, yaml.YAMLError, ConfigError) as e:
            logger.warning("Ignoring tracker config %s: %s", cfg_path, e)
        break

    file_config = parse_config(data)
    try:
        return parse_config(_apply_env_overrides(file_config.model_dump()))
    except ConfigError as e:
        logger.warning("Ignoring invalid environment overrides: %s", e)
        return file_config
