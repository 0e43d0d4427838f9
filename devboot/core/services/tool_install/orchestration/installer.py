"""
L5 Orchestration — The retrying install pipeline.

One ``RetryingInstaller.install`` call takes one tool from nothing to
verified:

    resolve package → dependencies → main package (retry + repo
    bootstrap) → post-install commands → config files → shell config
    → verify

Any stage failure raises ``InstallError`` and rolls back the
dependencies this attempt installed. The main package itself is kept
when a later stage fails.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from devboot.adapters.package_managers.base import PackageManager, PackageManagerError
from devboot.core.config.settings import InstallerSettings
from devboot.core.models.tool import InstallAttemptResult, Tool
from devboot.core.services.tool_install.domain.errors import (
    InstallError,
    InstallErrorKind,
    classify_install_error,
)
from devboot.core.services.tool_install.domain.package_name import resolve_package_name
from devboot.core.services.tool_install.domain.rollback import generate_rollback
from devboot.core.services.tool_install.execution.config_files import (
    ConfigFileError,
    place_config_file,
)
from devboot.core.services.tool_install.execution.repo_bootstrap import RepositoryBootstrapper
from devboot.core.services.tool_install.execution.shell_config import (
    MergeStrategy,
    ShellConfigError,
    ShellConfigWriter,
)
from devboot.core.services.tool_install.execution.subprocess_runner import (
    combined_output,
    run_shell_command,
)
from devboot.core.services.tool_install.execution.verify import verify_tool

if TYPE_CHECKING:
    from devboot.core.session import InstallSession

# (event, tool name, detail)
EventCallback = Callable[[str, str, str], None]

_module_logger = logging.getLogger(__name__)


class RetryingInstaller:
    """Drives the install pipeline for one tool at a time.

    Args:
        package_manager: Driver for the native package manager.
        settings: Retry policy, extra bin paths, shell strategy.
        shell_writer: Writer for the user's rc file. Tools with shell
            config are installed without it (with a warning) when None.
        catalog: Known tools, used to resolve tool-level dependencies
            to package names. Unknown dependencies install by name.
        logger: Logger to report through (default: this module's).
        on_event: Structured event sink ``(event, tool, detail)``.
        sleep: Delay function between retries.
        command_runner: Runs post-install and verify commands.
    """

    def __init__(
        self,
        package_manager: PackageManager,
        settings: InstallerSettings | None = None,
        *,
        shell_writer: ShellConfigWriter | None = None,
        catalog: Mapping[str, Tool] | None = None,
        logger: logging.Logger | None = None,
        on_event: EventCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
        command_runner: Callable[[str], dict[str, Any]] = run_shell_command,
    ):
        self.package_manager = package_manager
        self.settings = settings or InstallerSettings()
        self.shell_writer = shell_writer
        self.catalog = dict(catalog or {})
        self.logger = logger or _module_logger
        self._on_event = on_event
        self._sleep = sleep
        self._run_command = command_runner

    # ── Events ──────────────────────────────────────────────────

    def _emit(self, event: str, tool: str, detail: str = "") -> None:
        if self._on_event is not None:
            self._on_event(event, tool, detail)

    # ── Public API ──────────────────────────────────────────────

    def install(self, tool: Tool) -> None:
        """Install, configure and verify ``tool``.

        Raises:
            InstallError: The failed stage, classified.
        """
        manager = self.package_manager.name
        self._emit("started", tool.name, manager)
        self.logger.info("Installing %s with %s", tool.name, manager)

        package = resolve_package_name(tool, manager)
        if not package:
            error = InstallError(
                InstallErrorKind.CONFIGURATION,
                tool.name,
                "resolve",
                f"no package name for {manager}",
            )
            self._emit("failed", tool.name, str(error))
            raise error

        installed_deps: list[str] = []
        try:
            self._install_dependencies(tool, installed_deps)
            self.install_with_retry(package, tool_name=tool.name)
            self._run_post_install(tool)
            self._setup_config_files(tool)
            self._apply_shell_config(tool)
            self._verify(tool)
        except InstallError as e:
            self.logger.error("%s", e)
            if e.rolls_back_dependencies and installed_deps:
                self._rollback(tool.name, installed_deps)
            self._emit("failed", tool.name, str(e))
            raise

        self.logger.info("Installed %s (%s)", tool.name, package)
        self._emit("installed", tool.name, package)

    def attempt(self, tool: Tool) -> InstallAttemptResult:
        """``install`` without raising: the outcome as a result record."""
        package = resolve_package_name(tool, self.package_manager.name)
        try:
            self.install(tool)
        except InstallError as e:
            return InstallAttemptResult(tool=tool.name, success=False, package=package, error=e)
        return InstallAttemptResult(tool=tool.name, success=True, package=package)

    def install_with_retry(self, package: str, *, tool_name: str | None = None) -> bool:
        """Install one package, retrying transient failures.

        Returns:
            True if the package was installed now, False if it was
            already installed.

        Raises:
            InstallError: ``not_found`` immediately on a not-found
                failure, ``repository_bootstrap`` when repository setup
                fails, ``transient`` once retries are exhausted.
        """
        tool_name = tool_name or package
        pm = self.package_manager

        if pm.is_installed(package):
            self.logger.debug("%s is already installed", package)
            return False

        bootstrapper = RepositoryBootstrapper(pm, package)
        max_attempts = self.settings.max_retries
        last_error: PackageManagerError | None = None

        attempt = 0
        while attempt < max_attempts:
            attempt += 1
            self._emit("command_start", tool_name, f"{pm.name} install {package}")
            try:
                pm.install(package)
            except PackageManagerError as e:
                last_error = e
                output = e.output or str(e)
                self._emit("command_error", tool_name, output)

                if classify_install_error(output) is InstallErrorKind.NOT_FOUND:
                    raise InstallError(
                        InstallErrorKind.NOT_FOUND,
                        tool_name,
                        "install",
                        f"package {package!r} not found in any {pm.name} repository",
                        cause=e,
                    ) from e

                self.logger.warning(
                    "Install of %s failed (attempt %d/%d): %s",
                    package, attempt, max_attempts, output,
                )

                if not bootstrapper.attempted:
                    try:
                        bootstrapped = bootstrapper.bootstrap()
                    except PackageManagerError as be:
                        raise InstallError(
                            InstallErrorKind.REPOSITORY_BOOTSTRAP,
                            tool_name,
                            "install",
                            f"repository setup for {package!r} failed: {be}",
                            cause=be,
                        ) from be
                    # A new repository always gets one install attempt
                    if bootstrapped and attempt == max_attempts:
                        max_attempts += 1

                if attempt < max_attempts:
                    self._sleep(self.settings.retry_delay)
                continue

            self._emit("command_success", tool_name, f"{pm.name} install {package}")
            return True

        raise InstallError(
            InstallErrorKind.TRANSIENT,
            tool_name,
            "install",
            f"{package!r} failed after {max_attempts} attempts: {last_error}",
            cause=last_error,
        ) from last_error

    # ── Pipeline stages ─────────────────────────────────────────

    def _dependency_package(self, dependency: str) -> str:
        dep_tool = self.catalog.get(dependency)
        if dep_tool is None:
            return dependency
        return resolve_package_name(dep_tool, self.package_manager.name) or dependency

    def _install_dependencies(self, tool: Tool, installed: list[str]) -> None:
        """System dependencies first, then tool dependencies, in order.

        Appends each newly installed package to ``installed``.
        """
        packages = list(tool.system_dependencies)
        packages += [self._dependency_package(dep) for dep in tool.dependencies]

        for package in packages:
            try:
                if self.install_with_retry(package, tool_name=tool.name):
                    installed.append(package)
            except InstallError as e:
                raise InstallError(
                    InstallErrorKind.DEPENDENCY,
                    tool.name,
                    "dependencies",
                    f"dependency {package!r}: {e.message}",
                    cause=e,
                ) from e

    def _run_post_install(self, tool: Tool) -> None:
        for step in tool.post_install:
            label = step.description or step.command
            self._emit("command_start", tool.name, label)
            result = self._run_command(step.command)
            if not result["ok"]:
                output = combined_output(result)
                self._emit("command_error", tool.name, output or result.get("error", ""))
                raise InstallError(
                    InstallErrorKind.POST_INSTALL,
                    tool.name,
                    "post_install",
                    f"{step.command!r}: {result.get('error', 'unknown error')}",
                )
            self._emit("command_success", tool.name, label)

    def _setup_config_files(self, tool: Tool) -> None:
        for config_file in tool.config_files:
            try:
                place_config_file(config_file)
            except ConfigFileError as e:
                raise InstallError(
                    InstallErrorKind.CONFIG_FILES, tool.name, "config_files", str(e), cause=e,
                ) from e

    def _apply_shell_config(self, tool: Tool) -> None:
        if not tool.has_shell_config:
            return
        if self.shell_writer is None:
            self.logger.warning("%s: no shell detected, skipping shell config", tool.name)
            self._emit("warning", tool.name, "shell config skipped: no shell writer")
            return

        strategy = MergeStrategy(self.settings.shell_strategy)
        try:
            written = self.shell_writer.apply_fragment(tool.shell_config, strategy)
        except ShellConfigError as e:
            raise InstallError(
                InstallErrorKind.SHELL_CONFIG, tool.name, "shell_config", str(e), cause=e,
            ) from e
        self.logger.debug("%s: %d shell config entries written", tool.name, len(written))

    def _verify(self, tool: Tool) -> None:
        result = self.verify(tool)
        if not result["ok"]:
            raise InstallError(
                InstallErrorKind.VERIFICATION, tool.name, "verify", result["error"],
            )

    def verify(self, tool: Tool) -> dict[str, Any]:
        """Run verification alone (no install)."""
        return verify_tool(
            tool,
            extra_paths=self.settings.extra_bin_paths,
            runner=self._run_command,
        )

    def _rollback(self, tool_name: str, installed: list[str]) -> None:
        """Uninstall ``installed`` in reverse order. Best effort."""
        for package in generate_rollback(installed):
            self._emit("rollback", tool_name, package)
            try:
                self.package_manager.uninstall(package)
            except PackageManagerError as e:
                self.logger.warning("Rollback of %s failed: %s", package, e)
                self._emit("warning", tool_name, f"rollback of {package} failed")
            else:
                self.logger.info("Rolled back %s", package)

    def __repr__(self) -> str:
        return f"<RetryingInstaller manager={self.package_manager.name!r}>"


def install_tools(session: InstallSession) -> list[InstallAttemptResult]:
    """Install every tool of the session in order.

    Failures are recorded and the run continues, except configuration
    errors, which are recorded and re-raised.
    """
    installer = RetryingInstaller(
        session.package_manager,
        session.settings,
        shell_writer=session.shell_writer,
        catalog=session.catalog,
        on_event=session.on_event,
    )
    for tool in session.tools:
        result = installer.attempt(tool)
        session.results.append(result)
        if result.error is not None and result.error.is_configuration:
            raise result.error
    return session.results
