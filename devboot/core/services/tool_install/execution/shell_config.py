"""
L4 Execution — Shell rc file writer.

Renders a ``ShellConfigFragment`` in the syntax of the active shell and
merges it into that shell's rc file. Writes are idempotent under the
append strategies: entries already present are not written again.

Values are quoted for the target shell, so quotes and backslashes in
env values or alias commands survive intact.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import time
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from devboot.core.models.tool import ShellConfigFragment
from devboot.core.services.tool_install.execution.subprocess_runner import (
    combined_output,
    run_subprocess,
)

logger = logging.getLogger(__name__)


class ShellConfigError(Exception):
    """The rc file could not be located, read, written or validated."""


class ShellKind(str, Enum):
    """Shells whose rc files devboot knows how to write."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"

    @classmethod
    def parse(cls, value: str) -> ShellKind:
        """Shell kind from a name or a path such as ``/usr/bin/zsh``."""
        name = os.path.basename((value or "").strip()).lower()
        try:
            return cls(name)
        except ValueError:
            raise ShellConfigError(
                f"Unsupported shell {value!r} (supported: bash, zsh, fish)"
            ) from None


class MergeStrategy(str, Enum):
    MERGE_WITH_EXISTING = "merge_with_existing"
    SKIP_IF_EXISTS = "skip_if_exists"
    REPLACE_EXISTING = "replace_existing"


# rc file per shell, relative to $HOME
_RC_FILES: dict[ShellKind, str] = {
    ShellKind.BASH: ".bashrc",
    ShellKind.ZSH: ".zshrc",
    ShellKind.FISH: ".config/fish/config.fish",
}


def detect_shell(env: Mapping[str, str] | None = None) -> ShellKind:
    """Detect the user's shell from ``$SHELL``.

    Raises:
        ShellConfigError: ``$SHELL`` is unset or names an unsupported shell.
    """
    env = os.environ if env is None else env
    shell = env.get("SHELL", "")
    if not shell:
        raise ShellConfigError("Cannot detect shell: $SHELL is not set")
    return ShellKind.parse(shell)


def rc_path_for(shell: ShellKind, home: str | Path | None = None) -> Path:
    """Absolute rc file path for ``shell`` under ``home`` (default: ``~``)."""
    if home is None:
        try:
            home = Path.home()
        except RuntimeError as e:
            raise ShellConfigError(f"Cannot resolve home directory: {e}") from e
    return Path(home).expanduser() / _RC_FILES[shell]


# ── Rendering ───────────────────────────────────────────────────


# Fish words that need no quoting; ``$`` and a leading ``~`` still expand
_FISH_BARE_WORD = re.compile(r"^[\w@%+=:,./$~-]+$")


def _double_quote(value: str) -> str:
    """Double-quoted word; variables still expand inside it."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _single_quote(shell: ShellKind, value: str) -> str:
    if shell is ShellKind.FISH:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
    return "'" + value.replace("'", "'\\''") + "'"


def _unquote(value: str) -> str:
    """Inverse of the quoting applied by the renderers."""
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r'\\(["\\])', r"\1", value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("'\\''", "'")
    return value


def _env_prefix(shell: ShellKind, name: str) -> str:
    if shell is ShellKind.FISH:
        return f"set -gx {name} "
    return f"export {name}="


def render_env_var(shell: ShellKind, name: str, value: str) -> str:
    if shell is ShellKind.FISH:
        word = value if _FISH_BARE_WORD.match(value) else _double_quote(value)
        return f"{_env_prefix(shell, name)}{word}"
    return f"{_env_prefix(shell, name)}{_double_quote(value)}"


def render_path_entry(shell: ShellKind, path: str) -> str:
    if shell is ShellKind.FISH:
        word = path if _FISH_BARE_WORD.match(path) else _double_quote(path)
        return f"fish_add_path {word}"
    return f"export PATH={_double_quote(path + ':$PATH')}"


def render_alias(shell: ShellKind, name: str, command: str) -> str:
    if shell is ShellKind.FISH:
        return f"alias {name} {_single_quote(shell, command)}"
    return f"alias {name}={_single_quote(shell, command)}"


def render_function(shell: ShellKind, name: str, body: str) -> str:
    body = body.strip("\n")
    if shell is ShellKind.FISH:
        return f"function {name}\n{body}\nend"
    return f"{name}() {{\n{body}\n}}"


def render_fragment(fragment: ShellConfigFragment, shell: ShellKind) -> list[str]:
    """Render a fragment as rc file entries.

    Order: env vars, PATH entries, aliases, functions. Function entries
    span several lines; every other entry is one line.
    """
    entries: list[str] = []
    entries += [render_env_var(shell, k, v) for k, v in fragment.env.items()]
    entries += [render_path_entry(shell, p) for p in fragment.path]
    entries += [render_alias(shell, k, v) for k, v in fragment.aliases.items()]
    entries += [render_function(shell, k, v) for k, v in fragment.functions.items()]
    return entries


# ── Merging ─────────────────────────────────────────────────────


def _is_active_in(entry: str, content: str) -> bool:
    """Whether ``entry`` appears in ``content`` with its first line uncommented."""
    if entry not in content:
        return False
    first = entry.splitlines()[0].strip()
    return any(
        line.strip() == first
        for line in content.splitlines()
        if not line.lstrip().startswith("#")
    )


def merge_entries(existing: str, entries: list[str], strategy: MergeStrategy) -> tuple[str, list[str]]:
    """Compute new rc file content. Pure.

    Returns:
        ``(content, written)`` where ``written`` lists the entries that
        made it into the file.
    """
    if strategy is MergeStrategy.REPLACE_EXISTING:
        written = list(dict.fromkeys(entries))
        content = "\n".join(written) + "\n" if written else ""
        return content, written

    written = []
    for entry in dict.fromkeys(entries):
        if strategy is MergeStrategy.SKIP_IF_EXISTS and entry in existing:
            continue
        if strategy is MergeStrategy.MERGE_WITH_EXISTING and _is_active_in(entry, existing):
            continue
        written.append(entry)

    if not written:
        return existing, []

    content = existing
    if content and not content.endswith("\n"):
        content += "\n"
    content += "\n".join(written) + "\n"
    return content, written


class ShellConfigWriter:
    """Writes rendered shell configuration into one shell's rc file.

    Args:
        shell: Target shell.
        home: Home directory holding the rc file (default: ``~``).
    """

    def __init__(self, shell: ShellKind, home: str | Path | None = None):
        self.shell = shell
        self._home = home

    @classmethod
    def detect(cls, env: Mapping[str, str] | None = None, home: str | Path | None = None) -> ShellConfigWriter:
        return cls(detect_shell(env), home=home)

    @property
    def rc_path(self) -> Path:
        return rc_path_for(self.shell, self._home)

    def read(self) -> str:
        """Current rc file content, ``""`` when the file does not exist."""
        path = self.rc_path
        if not path.is_file():
            return ""
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ShellConfigError(f"Cannot read {path}: {e}") from e

    def has_config(self, text: str) -> bool:
        """Whether ``text`` occurs anywhere in the rc file."""
        try:
            return text in self.read()
        except ShellConfigError:
            return False

    def write_config(
        self,
        entries: list[str],
        strategy: MergeStrategy = MergeStrategy.SKIP_IF_EXISTS,
    ) -> list[str]:
        """Merge ``entries`` into the rc file.

        Returns:
            The entries actually written.

        Raises:
            ShellConfigError: The rc file cannot be read or written.
        """
        path = self.rc_path
        existing = self.read()
        content, written = merge_entries(existing, entries, strategy)

        if content == existing and path.exists():
            logger.debug("%s already up to date", path)
            return written

        self._replace_content(path, existing, content)
        logger.info("Wrote %d entries to %s (%s)", len(written), path, strategy.value)
        return written

    def apply_fragment(
        self,
        fragment: ShellConfigFragment,
        strategy: MergeStrategy = MergeStrategy.SKIP_IF_EXISTS,
    ) -> list[str]:
        """Render ``fragment`` for this shell and merge it."""
        return self.write_config(render_fragment(fragment, self.shell), strategy)

    def add_to_path(self, path: str) -> list[str]:
        return self.write_config([render_path_entry(self.shell, path)], MergeStrategy.MERGE_WITH_EXISTING)

    def set_env_var(self, name: str, value: str) -> list[str]:
        """Define ``name`` in the rc file.

        An existing active definition is rewritten in place; otherwise
        the definition is appended.
        """
        line = render_env_var(self.shell, name, value)
        prefix = _env_prefix(self.shell, name)
        path = self.rc_path
        existing = self.read()
        lines = existing.splitlines(keepends=True)

        for i, current in enumerate(lines):
            if not current.strip().startswith(prefix):
                continue
            if current.strip() == line:
                return []
            ending = current[len(current.rstrip("\n")):]
            lines[i] = line + ending
            self._replace_content(path, existing, "".join(lines))
            logger.info("Updated %s in %s", name, path)
            return [line]

        return self.write_config([line], MergeStrategy.MERGE_WITH_EXISTING)

    def get_env_var(self, name: str) -> str:
        """Value of the first active definition of ``name``.

        Raises:
            ShellConfigError: ``name`` is not defined in the rc file.
        """
        prefix = _env_prefix(self.shell, name)
        for line in self.read().splitlines():
            line = line.strip()
            if line.startswith(prefix):
                return _unquote(line[len(prefix):].strip())
        raise ShellConfigError(f"{name} is not set in {self.rc_path}")

    def add_alias(self, name: str, command: str) -> list[str]:
        return self.write_config([render_alias(self.shell, name, command)], MergeStrategy.MERGE_WITH_EXISTING)

    def validate(self) -> None:
        """Check the rc file has configuration and parses in its shell.

        Raises:
            ShellConfigError: Missing, empty or comment-only file, or a
                syntax check failure (``bash -n``, ``zsh -n``,
                ``fish_indent --check``).
        """
        path = self.rc_path
        if not path.is_file():
            raise ShellConfigError(f"{path} does not exist")
        content = self.read()
        if not content.strip():
            raise ShellConfigError(f"{path} is empty")
        if all(
            not line.strip() or line.strip().startswith("#")
            for line in content.splitlines()
        ):
            raise ShellConfigError(f"{path} contains only comments")

        if self.shell is ShellKind.FISH:
            cmd = ["fish_indent", "--check", str(path)]
        else:
            cmd = [self.shell.value, "-n", str(path)]
        result = run_subprocess(cmd, timeout=30)
        if not result["ok"]:
            detail = combined_output(result) or result.get("error", "")
            raise ShellConfigError(f"Syntax check of {path} failed: {detail}")

    def _replace_content(self, path: Path, existing: str, content: str) -> None:
        if existing:
            self._backup(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ShellConfigError(f"Failed to write {path}: {e}") from e

    @staticmethod
    def _backup(path: Path) -> None:
        backup = path.with_name(f"{path.name}.bak.{int(time.time())}")
        try:
            shutil.copy2(path, backup)
        except OSError as e:
            logger.warning("Could not back up %s: %s", path, e)

    def __repr__(self) -> str:
        return f"<ShellConfigWriter shell={self.shell.value!r} rc={str(self.rc_path)!r}>"
