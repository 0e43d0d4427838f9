"""
Pacman driver — Arch Linux, with AUR bootstrap for ``yay``.
"""

from __future__ import annotations

import logging
import shutil
import tempfile

from devboot.adapters.package_managers.base import PackageManager, PackageManagerError
from devboot.core.services.tool_install.execution.subprocess_runner import (
    combined_output,
    run_subprocess,
)

logger = logging.getLogger(__name__)

_YAY_REPO = "https://aur.archlinux.org/yay.git"


class PacmanPackageManager(PackageManager):
    """Install packages with ``pacman``."""

    @property
    def name(self) -> str:
        return "pacman"

    def is_available(self) -> bool:
        return shutil.which("pacman") is not None

    def install(self, package: str) -> None:
        self._check(["pacman", "-S", "--noconfirm", package], f"install {package}")

    def uninstall(self, package: str) -> None:
        self._check(["pacman", "-R", "--noconfirm", package], f"remove {package}")

    def update(self) -> None:
        self._check(["pacman", "-Sy"], "synchronize package databases")

    def is_installed(self, package: str) -> bool:
        return self._succeeds(["pacman", "-Q", package.split("=", 1)[0]])

    def setup_special_package(self, package: str) -> bool:
        if package != "yay" or self.is_installed("yay"):
            return False

        logger.info("Building yay from the AUR")
        self._check(["pacman", "-S", "--needed", "--noconfirm", "base-devel", "git"], "install base-devel")
        with tempfile.TemporaryDirectory(prefix="yay-install-") as build_dir:
            clone = run_subprocess(["git", "clone", _YAY_REPO, build_dir])
            if not clone["ok"]:
                raise PackageManagerError("pacman: failed to clone yay", output=combined_output(clone))
            # makepkg refuses to run as root and calls sudo itself.
            build = run_subprocess(["makepkg", "-si", "--noconfirm"], cwd=build_dir)
            if not build["ok"]:
                raise PackageManagerError("pacman: failed to build yay", output=combined_output(build))
        return True
