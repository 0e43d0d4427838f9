"""
APT driver — Debian/Ubuntu (``apt-get`` + ``dpkg``).
"""

from __future__ import annotations

import logging
import shutil

from devboot.adapters.package_managers.base import PackageManager, PackageManagerError

logger = logging.getLogger(__name__)

# Packages that live outside the default repositories → PPA to add.
_SPECIAL_PPAS: dict[str, str] = {
    "lsd": "ppa:aslatter/ppa",
}

_REPO_PREREQUISITES = ("software-properties-common", "curl", "gnupg")


class AptPackageManager(PackageManager):
    """Install packages with ``apt-get``."""

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None

    def install(self, package: str) -> None:
        self._check(["apt-get", "install", "-y", package], f"install {package}")

    def uninstall(self, package: str) -> None:
        self._check(["apt-get", "remove", "-y", package], f"remove {package}")

    def update(self) -> None:
        self._check(["apt-get", "update"], "update package lists")

    def is_installed(self, package: str) -> bool:
        # Version pins (``name=1.2``) are checked by name.
        return self._succeeds(["dpkg", "-s", package.split("=", 1)[0]])

    def setup_special_package(self, package: str) -> bool:
        ppa = _SPECIAL_PPAS.get(package.split("=", 1)[0])
        if ppa is None:
            return False

        for prereq in _REPO_PREREQUISITES:
            if not self.is_installed(prereq):
                try:
                    self.install(prereq)
                except PackageManagerError as e:
                    raise PackageManagerError(
                        f"apt: failed to install repository prerequisite {prereq}",
                        output=e.output,
                    ) from e

        logger.info("Adding %s for %s", ppa, package)
        self._check(["add-apt-repository", "-y", ppa], f"add repository {ppa}")
        return True
