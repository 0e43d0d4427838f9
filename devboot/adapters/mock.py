"""
Mock package manager — test double for the install pipeline.

Records every call and can be configured to fail specific packages,
report packages as already installed, or fail repository setup.
Never touches the system.
"""

from __future__ import annotations

from devboot.adapters.package_managers.base import PackageManager, PackageManagerError


class MockPackageManager(PackageManager):
    """In-memory package manager.

    By default every install succeeds and marks the package installed.
    """

    needs_sudo = False

    def __init__(
        self,
        manager_name: str = "apt",
        available: bool = True,
        installed: list[str] | None = None,
        special_packages: list[str] | None = None,
    ):
        self._name = manager_name
        self._available = available
        self.installed: set[str] = set(installed or [])
        self.special_packages: set[str] = set(special_packages or [])
        self.call_log: list[tuple[str, str]] = []
        self.uninstalled: list[str] = []
        self.update_count = 0
        self._fail_remaining: dict[str, int] = {}
        self._fail_messages: dict[str, str] = {}
        self._always_fail: dict[str, str] = {}
        self._uninstall_failures: dict[str, str] = {}
        self._special_failure: str | None = None
        self._update_failure: str | None = None

    @property
    def name(self) -> str:
        return self._name

    # ── Configuration ───────────────────────────────────────────

    def fail_times(self, package: str, times: int, message: str = "Temporary failure resolving host") -> None:
        """Fail the next ``times`` installs of ``package``, then succeed."""
        self._fail_remaining[package] = times
        self._fail_messages[package] = message

    def always_fail(self, package: str, message: str = "Mock failure") -> None:
        """Fail every install of ``package`` with ``message``."""
        self._always_fail[package] = message

    def fail_uninstall(self, package: str, message: str = "Mock uninstall failure") -> None:
        self._uninstall_failures[package] = message

    def fail_special_setup(self, message: str = "Mock repository setup failure") -> None:
        self._special_failure = message

    def fail_update(self, message: str = "Mock update failure") -> None:
        self._update_failure = message

    # ── Queries ─────────────────────────────────────────────────

    def install_calls(self, package: str | None = None) -> list[str]:
        """Packages passed to ``install``, optionally only ``package``."""
        return [
            pkg for op, pkg in self.call_log
            if op == "install" and (package is None or pkg == package)
        ]

    def calls(self, operation: str) -> list[str]:
        return [pkg for op, pkg in self.call_log if op == operation]

    # ── PackageManager ──────────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def install(self, package: str) -> None:
        self.call_log.append(("install", package))

        if package in self._always_fail:
            raise PackageManagerError(
                f"{self._name}: failed to install {package}",
                output=self._always_fail[package],
            )

        remaining = self._fail_remaining.get(package, 0)
        if remaining > 0:
            self._fail_remaining[package] = remaining - 1
            raise PackageManagerError(
                f"{self._name}: failed to install {package}",
                output=self._fail_messages[package],
            )

        self.installed.add(package)

    def uninstall(self, package: str) -> None:
        self.call_log.append(("uninstall", package))
        if package in self._uninstall_failures:
            raise PackageManagerError(
                f"{self._name}: failed to remove {package}",
                output=self._uninstall_failures[package],
            )
        self.installed.discard(package)
        self.uninstalled.append(package)

    def update(self) -> None:
        self.call_log.append(("update", ""))
        self.update_count += 1
        if self._update_failure is not None:
            raise PackageManagerError(f"{self._name}: failed to update", output=self._update_failure)

    def is_installed(self, package: str) -> bool:
        self.call_log.append(("is_installed", package))
        return package in self.installed

    def setup_special_package(self, package: str) -> bool:
        self.call_log.append(("setup_special_package", package))
        if self._special_failure is not None:
            raise PackageManagerError(
                f"{self._name}: failed to set up repository for {package}",
                output=self._special_failure,
            )
        return package in self.special_packages
