"""
Homebrew driver — macOS and Linuxbrew. Never uses sudo.
"""

from __future__ import annotations

import shutil

from devboot.adapters.package_managers.base import PackageManager


class HomebrewPackageManager(PackageManager):
    """Install formulae and casks with ``brew``."""

    needs_sudo = False

    @property
    def name(self) -> str:
        return "brew"

    def is_available(self) -> bool:
        return shutil.which("brew") is not None

    def install(self, package: str) -> None:
        self._check(["brew", "install", package], f"install {package}")

    def uninstall(self, package: str) -> None:
        self._check(["brew", "uninstall", package], f"uninstall {package}")

    def update(self) -> None:
        self._check(["brew", "update"], "update")

    def is_installed(self, package: str) -> bool:
        return self._succeeds(["brew", "list", "--formula", package]) or self._succeeds(
            ["brew", "list", "--cask", package]
        )
