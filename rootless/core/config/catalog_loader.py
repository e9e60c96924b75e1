"""
Catalog loader — loads tool definitions from YAML files.

Tools live in ``core/data/tools/<name>.yml``.  Extra catalog
directories (from settings) are loaded afterwards and override bundled
tools with the same name.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from rootless.core.config.settings import ConfigError
from rootless.core.data import TOOLS_DIR
from rootless.core.models.tool import ToolDefinition
from rootless.core.services.provision.errors import UnknownTool

logger = logging.getLogger(__name__)

_SUFFIXES = (".yml", ".yaml")


def _check(tool: ToolDefinition, path: Path) -> None:
    """Cross-field rules pydantic cannot express per field."""
    if tool.delivery == "artifact":
        if not tool.artifacts:
            raise ConfigError(f"{path}: artifact tool {tool.name!r} declares no artifacts")
        if not tool.install_root:
            raise ConfigError(f"{path}: artifact tool {tool.name!r} needs install_root")
    elif tool.vendor is None:
        raise ConfigError(f"{path}: vendor tool {tool.name!r} needs a vendor section")
    elif not tool.install_root and not tool.presence_command:
        raise ConfigError(
            f"{path}: {tool.name!r} needs install_root or presence_command"
        )


def load_tool(path: Path) -> ToolDefinition:
    """Load a single tool definition from a YAML file.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Tool file {path} is not a mapping")

    data.setdefault("name", path.stem)
    try:
        tool = ToolDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid tool definition in {path}: {e}") from e

    _check(tool, path)
    logger.debug("Loaded tool: %s from %s", tool.name, path)
    return tool


def _load_dir(directory: Path) -> dict[str, ToolDefinition]:
    tools: dict[str, ToolDefinition] = {}
    if not directory.is_dir():
        logger.debug("Catalog directory not found: %s", directory)
        return tools
    for path in sorted(directory.iterdir()):
        if path.suffix in _SUFFIXES and path.is_file():
            tool = load_tool(path)
            tools[tool.name] = tool
    return tools


def discover_tools(extra_dirs: list[Path] | None = None) -> dict[str, ToolDefinition]:
    """Load the bundled catalog, then overlay ``extra_dirs`` in order."""
    tools = _load_dir(TOOLS_DIR)
    for directory in extra_dirs or []:
        overrides = _load_dir(directory)
        for name in overrides:
            if name in tools:
                logger.info("Catalog %s overrides bundled tool %s", directory, name)
        tools.update(overrides)
    logger.info("Discovered %d tools: %s", len(tools), sorted(tools))
    return tools


def get_tool(tools: dict[str, ToolDefinition], name: str) -> ToolDefinition:
    """Look up ``name``.

    Raises:
        UnknownTool: Listing the known names.
    """
    try:
        return tools[name]
    except KeyError:
        known = ", ".join(sorted(tools)) or "none"
        raise UnknownTool(f"Unknown tool {name!r} (known: {known})") from None
