"""
Shell plugin registry — tracked plugins with dependency ordering.

The registry lives in memory. The rc file mirrors it: an enabled plugin
has an active ``source <path>`` line, a disabled one the same line
commented out as ``# source <path>``. Disabling then enabling a plugin
restores its source line byte for byte.

Ordering rules:
    - enable requires every direct dependency to be enabled
    - disable requires no enabled plugin to depend on it
Violations are rejected, never resolved implicitly.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from devboot.core.models.plugin import Plugin
from devboot.core.services.tool_install.execution.shell_config import (
    ShellConfigError,
    ShellKind,
    rc_path_for,
)

logger = logging.getLogger(__name__)


class PluginError(Exception):
    """Base class for plugin registry failures."""


class PluginNotFoundError(PluginError):
    """No plugin registered under the given key."""


class PluginExistsError(PluginError):
    """The plugin is already registered, or already sourced in the rc file."""


class PluginStateError(PluginError):
    """The plugin is already in the requested enabled/disabled state."""


class PluginDependencyError(PluginError):
    """Enable or disable would break dependency ordering."""


class PluginConfigError(PluginError):
    """A requested plugin config field is not set."""


class PluginDependencyManager:
    """Registry of shell plugins mirrored into one rc file.

    Plugins are looked up by name, then by path. All public methods are
    serialized by one re-entrant lock. The rc file itself is not locked
    against other processes.
    """

    def __init__(self, rc_path: str | Path):
        self.rc_path = Path(rc_path)
        self._plugins: dict[str, Plugin] = {}
        self._lock = threading.RLock()

    @classmethod
    def for_shell(cls, shell: ShellKind, home: str | Path | None = None) -> PluginDependencyManager:
        return cls(rc_path_for(shell, home))

    # ── rc file (line oriented) ─────────────────────────────────

    def _read_lines(self) -> list[str]:
        if not self.rc_path.is_file():
            return []
        try:
            with self.rc_path.open(encoding="utf-8", newline="") as f:
                return f.read().splitlines(keepends=True)
        except OSError as e:
            raise ShellConfigError(f"Cannot read {self.rc_path}: {e}") from e

    def _write_lines(self, lines: list[str]) -> None:
        try:
            self.rc_path.parent.mkdir(parents=True, exist_ok=True)
            self.rc_path.write_text("".join(lines), encoding="utf-8", newline="")
        except OSError as e:
            raise ShellConfigError(f"Failed to write {self.rc_path}: {e}") from e

    @staticmethod
    def _index_of(lines: list[str], text: str) -> int:
        for i, line in enumerate(lines):
            if line.rstrip("\r\n") == text:
                return i
        return -1

    @staticmethod
    def _replace_line(lines: list[str], index: int, text: str) -> None:
        """Swap the text of ``lines[index]``, keeping its line ending."""
        old = lines[index]
        ending = old[len(old.rstrip("\r\n")):]
        lines[index] = text + ending

    @staticmethod
    def _append_line(lines: list[str], text: str) -> None:
        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        lines.append(text + "\n")

    def _activate_line(self, plugin: Plugin) -> None:
        """Make the plugin's source line active (uncomment or append)."""
        lines = self._read_lines()
        if self._index_of(lines, plugin.source_line) >= 0:
            return
        commented = self._index_of(lines, plugin.commented_source_line)
        if commented >= 0:
            self._replace_line(lines, commented, plugin.source_line)
        else:
            self._append_line(lines, plugin.source_line)
        self._write_lines(lines)

    def _deactivate_line(self, plugin: Plugin) -> None:
        """Comment out the plugin's source line (or append it commented)."""
        lines = self._read_lines()
        active = self._index_of(lines, plugin.source_line)
        has_commented = self._index_of(lines, plugin.commented_source_line) >= 0

        if active >= 0:
            if has_commented:
                del lines[active]
            else:
                self._replace_line(lines, active, plugin.commented_source_line)
        elif not has_commented:
            self._append_line(lines, plugin.commented_source_line)
        else:
            return
        self._write_lines(lines)

    # ── Lookup ──────────────────────────────────────────────────

    def _find(self, key: str) -> Plugin | None:
        plugin = self._plugins.get(key)
        if plugin is not None:
            return plugin
        for candidate in self._plugins.values():
            if candidate.path == key:
                return candidate
        return None

    def _require(self, key: str) -> Plugin:
        plugin = self._find(key)
        if plugin is None:
            raise PluginNotFoundError(f"Plugin {key!r} not found")
        return plugin

    def list_plugins(self) -> list[Plugin]:
        """Registered plugins, in registration order."""
        with self._lock:
            return list(self._plugins.values())

    def get_plugin(self, key: str) -> Plugin:
        with self._lock:
            return self._require(key)

    def has_plugin(self, key: str) -> bool:
        with self._lock:
            return self._find(key) is not None

    # ── Registration ────────────────────────────────────────────

    def add_plugin(self, path: str) -> Plugin:
        """Register ``path`` as an enabled plugin with an active source line."""
        return self.add_plugin_with_metadata(path, path, enabled=True)

    def add_plugin_with_metadata(
        self,
        name: str,
        path: str,
        version: str = "1.0.0",
        description: str = "",
        dependencies: list[str] | None = None,
        *,
        enabled: bool = False,
    ) -> Plugin:
        """Register a plugin.

        Registered disabled by default, with its source line commented
        out. ``enabled=True`` registers it enabled, which requires its
        dependencies to be enabled already.

        Raises:
            PluginExistsError: Name or path already registered, or an
                active ``source <path>`` line is already in the rc file.
            PluginDependencyError: ``enabled=True`` with a dependency
                that is missing or disabled.
        """
        plugin = Plugin(
            name=name,
            path=path,
            version=version,
            description=description,
            enabled=enabled,
            dependencies=list(dependencies or []),
        )

        with self._lock:
            if self._find(name) is not None or self._find(path) is not None:
                raise PluginExistsError(f"Plugin {name!r} already exists")
            if self._index_of(self._read_lines(), plugin.source_line) >= 0:
                raise PluginExistsError(
                    f"Plugin {path!r} is already sourced in {self.rc_path}"
                )
            if enabled:
                self._check_dependencies_enabled(plugin)
                self._activate_line(plugin)
            else:
                self._deactivate_line(plugin)

            self._plugins[name] = plugin
            logger.info("Added plugin %s (%s)", name, "enabled" if enabled else "disabled")
            return plugin

    def remove_plugin(self, key: str) -> None:
        """Drop the plugin and every source line for it, active or commented."""
        with self._lock:
            plugin = self._require(key)
            lines = self._read_lines()
            kept = [
                line for line in lines
                if line.rstrip("\r\n") not in (plugin.source_line, plugin.commented_source_line)
            ]
            if len(kept) != len(lines):
                self._write_lines(kept)
            del self._plugins[plugin.name]
            logger.info("Removed plugin %s", plugin.name)

    # ── Enable / disable ────────────────────────────────────────

    def _check_dependencies_enabled(self, plugin: Plugin) -> None:
        for dep in plugin.dependencies:
            dependency = self._find(dep)
            if dependency is None:
                raise PluginDependencyError(
                    f"Cannot enable {plugin.name!r}: dependency {dep!r} is not registered"
                )
            if not dependency.enabled:
                raise PluginDependencyError(
                    f"Cannot enable {plugin.name!r}: dependency {dep!r} is not enabled"
                )

    def _enabled_dependents(self, plugin: Plugin) -> list[Plugin]:
        return [
            other for other in self._plugins.values()
            if other is not plugin
            and other.enabled
            and (other.depends_on(plugin.name) or other.depends_on(plugin.path))
        ]

    def enable_plugin(self, key: str) -> None:
        """Enable a plugin whose dependencies are all enabled.

        Raises:
            PluginNotFoundError, PluginStateError, PluginDependencyError
        """
        with self._lock:
            plugin = self._require(key)
            if plugin.enabled:
                raise PluginStateError(f"Plugin {plugin.name!r} is already enabled")
            self._check_dependencies_enabled(plugin)
            self._activate_line(plugin)
            plugin.enabled = True
            logger.info("Enabled plugin %s", plugin.name)

    def disable_plugin(self, key: str) -> None:
        """Disable a plugin no enabled plugin depends on.

        Raises:
            PluginNotFoundError, PluginStateError, PluginDependencyError
        """
        with self._lock:
            plugin = self._require(key)
            if not plugin.enabled:
                raise PluginStateError(f"Plugin {plugin.name!r} is already disabled")
            dependents = self._enabled_dependents(plugin)
            if dependents:
                names = ", ".join(repr(p.name) for p in dependents)
                raise PluginDependencyError(
                    f"Cannot disable {plugin.name!r}: enabled plugin(s) {names} depend on it"
                )
            self._deactivate_line(plugin)
            plugin.enabled = False
            logger.info("Disabled plugin %s", plugin.name)

    # ── Metadata ────────────────────────────────────────────────

    def set_plugin_config(self, key: str, field: str, value: str) -> None:
        with self._lock:
            self._require(key).config[field] = value

    def get_plugin_config(self, key: str, field: str) -> str:
        with self._lock:
            plugin = self._require(key)
            try:
                return plugin.config[field]
            except KeyError:
                raise PluginConfigError(
                    f"Plugin {plugin.name!r} has no config field {field!r}"
                ) from None

    def update_plugin(self, key: str, version: str) -> None:
        """Record a new version. The rc file is not touched."""
        with self._lock:
            plugin = self._require(key)
            logger.info("Updated plugin %s: %s -> %s", plugin.name, plugin.version, version)
            plugin.version = version

    def __repr__(self) -> str:
        return f"<PluginDependencyManager rc={str(self.rc_path)!r} plugins={len(self._plugins)}>"
