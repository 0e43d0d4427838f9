"""
L1 Domain — Package name resolution (pure).

Maps a logical tool to the package name the active package manager
understands, including a pinned version where one is requested.
No I/O, no subprocess.
"""

from __future__ import annotations

from devboot.core.models.tool import Tool

# Version values that mean "whatever the repository ships".
_UNPINNED_VERSIONS = frozenset({"", "latest", "stable"})

# How each manager spells ``name`` + ``version``.
_VERSION_SEPARATORS: dict[str, str] = {
    "apt": "=",
    "pacman": "=",
    "dnf": "-",
    "yum": "-",
    "brew": "@",
}

_MANAGER_ALIASES: dict[str, str] = {
    "apt-get": "apt",
    "homebrew": "brew",
}


def normalize_manager_id(manager: str) -> str:
    """Canonical identifier for a package manager name."""
    key = (manager or "").strip().lower()
    return _MANAGER_ALIASES.get(key, key)


def format_versioned_package(package: str, version: str | None, manager: str) -> str:
    """Attach a pinned version using the manager's convention.

    ``latest``/``stable``/empty versions and unknown managers leave the
    name untouched.
    """
    if not package or version is None or version.strip().lower() in _UNPINNED_VERSIONS:
        return package
    separator = _VERSION_SEPARATORS.get(normalize_manager_id(manager))
    if separator is None:
        return package
    return f"{package}{separator}{version.strip()}"


def resolve_base_package_name(tool: Tool, manager: str) -> str:
    """Pick the package name before any version pinning.

    Order: manager-specific override, catalog-wide ``default`` override,
    then the tool's own ``package_name``. May return ``""``.
    """
    manager_id = normalize_manager_id(manager)
    overrides = {normalize_manager_id(k): v for k, v in tool.package_names.items()}

    specific = (overrides.get(manager_id) or "").strip()
    if specific:
        return specific

    default = (overrides.get("default") or "").strip()
    if default:
        return default

    return (tool.package_name or "").strip()


def resolve_package_name(tool: Tool, manager: str) -> str:
    """Resolve the full package spec to install for ``tool``.

    Deterministic and side-effect free. Returns ``""`` when the tool
    carries no usable name; the installer reports that as a
    configuration error.
    """
    base = resolve_base_package_name(tool, manager)
    return format_versioned_package(base, tool.version, manager)
