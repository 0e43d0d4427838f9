"""
Package manager base — the contract between the installer and a native
package manager.

The installer only ever talks to package managers through this
interface, never directly to apt/dnf/pacman/brew.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from devboot.core.services.tool_install.execution.subprocess_runner import (
    combined_output,
    run_subprocess,
)


class PackageManagerError(Exception):
    """A package manager command failed.

    ``output`` holds the captured command output so callers can classify
    the failure (e.g. "Unable to locate package").
    """

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(f"{message}\n{output}" if output else message)


class PackageManager(ABC):
    """Abstract base class for package manager drivers.

    To add a package manager:
        1. Subclass PackageManager
        2. Implement name, is_available, install, uninstall, update,
           is_installed (and setup_special_package if it needs repos)
        3. Register it in ``PACKAGE_MANAGERS``
    """

    #: Whether mutating commands need root.
    needs_sudo: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """The manager identifier (``apt``, ``dnf``, ``pacman``, ``brew``)."""

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the manager's CLI exists on this system. Never raises."""

    @abstractmethod
    def install(self, package: str) -> None:
        """Install one package. Raises ``PackageManagerError``."""

    @abstractmethod
    def uninstall(self, package: str) -> None:
        """Remove one package. Raises ``PackageManagerError``."""

    @abstractmethod
    def update(self) -> None:
        """Refresh the package index. Raises ``PackageManagerError``."""

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Whether ``package`` is installed. Never raises."""

    def setup_special_package(self, package: str) -> bool:
        """Add whatever repository ``package`` needs.

        Returns True when something was set up (the caller then
        refreshes the index), False when the package needs nothing.
        Raises ``PackageManagerError`` when the setup itself fails.
        """
        return False

    # ── Helpers for subprocess-backed drivers ───────────────────

    def _run(self, cmd: list[str], *, sudo: bool | None = None) -> dict[str, Any]:
        return run_subprocess(cmd, needs_sudo=self.needs_sudo if sudo is None else sudo)

    def _check(self, cmd: list[str], action: str, *, sudo: bool | None = None) -> dict[str, Any]:
        """Run ``cmd`` and raise ``PackageManagerError`` if it fails."""
        result = self._run(cmd, sudo=sudo)
        if not result["ok"]:
            raise PackageManagerError(
                f"{self.name}: failed to {action}: {result.get('error', 'unknown error')}",
                output=combined_output(result),
            )
        return result

    def _succeeds(self, cmd: list[str]) -> bool:
        return run_subprocess(cmd)["ok"]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
