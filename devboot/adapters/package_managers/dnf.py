"""
DNF driver — Fedora/RHEL.
"""

from __future__ import annotations

import logging
import shutil

from devboot.adapters.package_managers.base import PackageManager, PackageManagerError
from devboot.core.services.tool_install.execution.subprocess_runner import combined_output

logger = logging.getLogger(__name__)

_SPECIAL_REPOS: dict[str, str] = {
    "docker": "https://download.docker.com/linux/fedora/docker-ce.repo",
}


class DnfPackageManager(PackageManager):
    """Install packages with ``dnf``."""

    @property
    def name(self) -> str:
        return "dnf"

    def is_available(self) -> bool:
        return shutil.which("dnf") is not None

    def install(self, package: str) -> None:
        self._check(["dnf", "install", "-y", package], f"install {package}")

    def uninstall(self, package: str) -> None:
        self._check(["dnf", "remove", "-y", package], f"remove {package}")

    def update(self) -> None:
        result = self._run(["dnf", "check-update"])
        # Exit code 100 means "updates are available", not a failure.
        if result["ok"] or result.get("returncode") == 100:
            return
        raise PackageManagerError(
            f"dnf: failed to refresh metadata: {result.get('error', 'unknown error')}",
            output=combined_output(result),
        )

    def is_installed(self, package: str) -> bool:
        return self._succeeds(["dnf", "list", "installed", package])

    def setup_special_package(self, package: str) -> bool:
        repo = _SPECIAL_REPOS.get(package)
        if repo is None:
            return False
        logger.info("Adding repository %s for %s", repo, package)
        self._check(["dnf", "config-manager", "--add-repo", repo], f"add repository {repo}")
        return True
