"""
Package manager registry — maps identifiers to drivers and picks the
one present on this machine.
"""

from __future__ import annotations

import logging
import platform

from devboot.adapters.package_managers.apt import AptPackageManager
from devboot.adapters.package_managers.base import PackageManager
from devboot.adapters.package_managers.brew import HomebrewPackageManager
from devboot.adapters.package_managers.dnf import DnfPackageManager
from devboot.adapters.package_managers.pacman import PacmanPackageManager
from devboot.core.config.loader import ConfigError
from devboot.core.services.tool_install.domain.package_name import normalize_manager_id

logger = logging.getLogger(__name__)

PACKAGE_MANAGERS: dict[str, type[PackageManager]] = {
    "apt": AptPackageManager,
    "dnf": DnfPackageManager,
    "pacman": PacmanPackageManager,
    "brew": HomebrewPackageManager,
}

# Probe order on Linux. Homebrew is tried first on macOS only.
_LINUX_ORDER = ("apt", "dnf", "pacman")


def _detection_order() -> tuple[str, ...]:
    if platform.system() == "Darwin":
        return ("brew",) + _LINUX_ORDER
    return _LINUX_ORDER


def detect_package_manager() -> PackageManager | None:
    """Return the first available package manager, or None."""
    for manager_id in _detection_order():
        manager = PACKAGE_MANAGERS[manager_id]()
        if manager.is_available():
            logger.debug("Detected package manager: %s", manager_id)
            return manager
    return None


def get_package_manager(name: str | None = None) -> PackageManager:
    """Instantiate a package manager by identifier, or detect one.

    Raises:
        ConfigError: Unknown identifier, manager not installed, or none
            detected.
    """
    if not name:
        manager = detect_package_manager()
        if manager is None:
            raise ConfigError(
                "No supported package manager found "
                f"(tried: {', '.join(_detection_order())})"
            )
        return manager

    manager_id = normalize_manager_id(name)
    cls = PACKAGE_MANAGERS.get(manager_id)
    if cls is None:
        raise ConfigError(
            f"Unknown package manager {name!r} "
            f"(supported: {', '.join(sorted(PACKAGE_MANAGERS))})"
        )

    manager = cls()
    if not manager.is_available():
        raise ConfigError(f"Package manager {manager_id!r} is not available on this system")
    return manager
