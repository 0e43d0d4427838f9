"""
Configuration loader — reads tool catalogs (YAML) into domain models.

A catalog is either a list of tool mappings or a mapping with a
``tools:`` list. Each entry is validated against the ``Tool`` schema.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from devboot.core.models.tool import Tool

logger = logging.getLogger(__name__)

# Per-project catalog filename, searched upward from the cwd
CATALOG_FILE = "devboot.yml"

# Catalog shipped with the package
_BUNDLED_CATALOG = "tools.yml"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class CatalogError(ConfigError):
    """Raised when a tool catalog cannot be loaded or validated."""


def find_catalog_file(start_dir: Path | None = None) -> Path | None:
    """Search for devboot.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to devboot.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CATALOG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_bundled_catalog() -> tuple[str, str]:
    ref = resources.files("devboot.core.data").joinpath(_BUNDLED_CATALOG)
    return ref.read_text(encoding="utf-8"), f"<bundled {_BUNDLED_CATALOG}>"


def parse_catalog(raw: str, source: str = "<string>") -> dict[str, Tool]:
    """Parse catalog YAML text into tools keyed by name.

    Raises:
        CatalogError: On YAML syntax errors, wrong document shape,
            schema violations or duplicate tool names.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        return {}

    entries: Any = data.get("tools", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise CatalogError(
            f"Expected a list of tools in {source}, got {type(entries).__name__}"
        )

    tools: dict[str, Tool] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise CatalogError(f"Tool #{index + 1} in {source} is not a mapping")

        entry = dict(entry)
        # Catalog entries usually name the package after the tool
        if not entry.get("package_name") and entry.get("name"):
            entry["package_name"] = entry["name"]
        package_names = entry.get("package_names")
        if package_names is None:
            entry["package_names"] = {}
        elif isinstance(package_names, dict):
            entry["package_names"] = {k: v for k, v in package_names.items() if v}

        try:
            tool = Tool.model_validate(entry)
        except ValidationError as e:
            label = entry.get("name", f"#{index + 1}")
            raise CatalogError(f"Invalid tool {label!r} in {source}: {e}") from e

        if tool.name in tools:
            raise CatalogError(f"Duplicate tool {tool.name!r} in {source}")
        tools[tool.name] = tool

    return tools


def load_catalog(path: Path | None = None) -> dict[str, Tool]:
    """Load and validate a tool catalog.

    Args:
        path: Explicit catalog file. If None, the bundled catalog is used.

    Returns:
        Tools keyed by name, in file order.

    Raises:
        CatalogError: If the file is missing or invalid.
    """
    if path is None:
        raw, source = _read_bundled_catalog()
    else:
        if not path.is_file():
            raise CatalogError(f"Catalog file not found: {path}")
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogError(f"Cannot read {path}: {e}") from e
        source = str(path)

    logger.debug("Loading tool catalog from %s", source)
    tools = parse_catalog(raw, source)
    logger.info("Loaded %d tools from %s", len(tools), source)
    return tools
