"""
Settings loader — reads the user's ``config.yml`` into a ``Settings`` model.

Lookup order: explicit ``--config`` path, then ``$ROOTLESS_CONFIG``,
then ``~/.config/rootless/config.yml``.  Only an explicitly named file
must exist; without one, defaults apply.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from rootless.core.services.provision.data.constants import DEFAULT_HTTP_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ROOTLESS_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/rootless/config.yml"


class ConfigError(Exception):
    """Raised when settings or a tool catalog file is invalid or missing."""


class Settings(BaseModel):
    """User-level engine settings.

    Example ``config.yml``::

        home: ~
        http_timeout: 60
        profiles: [~/.bashrc, ~/.zshrc, ~/.profile]
        catalog_dirs: [~/.config/rootless/tools]
        build_jobs: 4
    """

    home: str = "~"
    http_timeout: int = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    profiles: list[str] = Field(default_factory=list)
    catalog_dirs: list[str] = Field(default_factory=list)
    build_jobs: int | None = Field(default=None, gt=0)

    @property
    def home_path(self) -> Path:
        return Path(os.path.expanduser(self.home))

    def catalog_paths(self) -> list[Path]:
        return [Path(os.path.expanduser(d)) for d in self.catalog_dirs]


def find_settings_file(explicit: Path | None = None) -> tuple[Path, bool]:
    """Return ``(path, required)`` for the settings file to read."""
    if explicit is not None:
        return explicit, True
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(os.path.expanduser(from_env)), True
    return Path(os.path.expanduser(DEFAULT_CONFIG_PATH)), False


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings.

    Raises:
        ConfigError: An explicitly requested file is missing, or any
            settings file is unreadable, not YAML, or fails validation.
    """
    path, required = find_settings_file(path)

    if not path.is_file():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("No settings file at %s, using defaults", path)
        return Settings()

    logger.debug("Loading settings from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e
