"""
Install session — everything one install run works on.

Owned by the entrypoint and passed down explicitly; there is no
module-level selection state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from devboot.core.config.settings import InstallerSettings
from devboot.core.models.tool import InstallAttemptResult, Tool

if TYPE_CHECKING:
    from devboot.adapters.package_managers.base import PackageManager
    from devboot.core.services.tool_install.execution.shell_config import ShellConfigWriter


@dataclass
class InstallSession:
    """The selected tools plus the collaborators needed to install them."""

    package_manager: PackageManager
    tools: list[Tool] = field(default_factory=list)
    settings: InstallerSettings = field(default_factory=InstallerSettings)
    shell_writer: ShellConfigWriter | None = None
    catalog: dict[str, Tool] = field(default_factory=dict)
    on_event: Callable[[str, str, str], None] | None = None
    results: list[InstallAttemptResult] = field(default_factory=list)

    @property
    def failed(self) -> list[InstallAttemptResult]:
        return [r for r in self.results if not r.success]

    @property
    def succeeded(self) -> list[InstallAttemptResult]:
        return [r for r in self.results if r.success]
