"""
L4 Execution — Repository bootstrap for packages outside default repos.

Some packages need a PPA, a third-party repo or an AUR helper before
the package manager can find them. The bootstrapper asks the driver to
set that up at most once per install attempt sequence.
"""

from __future__ import annotations

import logging

from devboot.adapters.package_managers.base import PackageManager

logger = logging.getLogger(__name__)


class RepositoryBootstrapper:
    """One-shot repository setup for a single package.

    ``bootstrap`` returns True when a repository was added and the
    package index refreshed, meaning another install attempt is worth
    making. Driver failures propagate as ``PackageManagerError``.
    """

    def __init__(self, package_manager: PackageManager, package: str):
        self._pm = package_manager
        self._package = package
        self._attempted = False

    @property
    def attempted(self) -> bool:
        return self._attempted

    def bootstrap(self) -> bool:
        if self._attempted:
            return False
        self._attempted = True

        if not self._pm.setup_special_package(self._package):
            logger.debug("%s: no special repository for %s", self._pm.name, self._package)
            return False

        logger.info("%s: repository added for %s, refreshing index", self._pm.name, self._package)
        self._pm.update()
        return True
