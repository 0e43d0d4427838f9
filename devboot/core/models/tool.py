"""
Tool models — the install unit and its shell configuration fragment.

A Tool is built from catalog data (``tools.yml``) or from a user
selection and is never mutated during an install attempt. The install
outcome is reported as an ``InstallAttemptResult`` and then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from devboot.core.services.tool_install.domain.errors import InstallError


class PostInstallCommand(BaseModel):
    """A shell command run after the main package is installed."""

    command: str
    description: str = ""


class ConfigFile(BaseModel):
    """A configuration file placed after install.

    ``type`` selects how ``source`` is used:
        file     copy the file at ``source``
        symlink  link ``destination`` to ``source``
        content  write ``source`` itself as the file body
    ``mode`` is an octal string such as ``"0644"``; ignored for symlinks.
    """

    source: str
    destination: str
    type: Literal["file", "symlink", "content"] = "file"
    mode: str = ""

    @field_validator("mode", mode="before")
    @classmethod
    def _octal_mode(cls, v: object) -> str:
        # YAML 1.1 reads an unquoted 0644 as the integer 420
        if isinstance(v, int) and not isinstance(v, bool):
            return format(v, "o")
        v = str(v or "").strip()
        if v:
            try:
                int(v, 8)
            except ValueError:
                raise ValueError(f"mode must be an octal string, got {v!r}") from None
        return v

    @property
    def file_mode(self) -> int:
        return int(self.mode, 8) if self.mode else 0o644


class ShellConfigFragment(BaseModel):
    """Environment, PATH, alias and function additions for an rc file.

    Pure value object: rendered per shell and merged into the rc file
    by the shell config writer.
    """

    env: dict[str, str] = Field(default_factory=dict)
    path: list[str] = Field(default_factory=list)
    aliases: dict[str, str] = Field(default_factory=dict)
    functions: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.env or self.path or self.aliases or self.functions)


class Tool(BaseModel):
    """A logical install unit.

    ``package_names`` maps a package manager identifier (``apt``,
    ``dnf``, ``pacman``, ``brew``) to an override name. The special key
    ``default`` is the catalog-wide override used when the active
    manager has none.
    """

    name: str
    description: str = ""
    category: str = ""

    # ── Package resolution ───────────────────────────────────────
    package_name: str = ""
    package_names: dict[str, str] = Field(default_factory=dict)
    version: str | None = None

    # ── Dependencies ─────────────────────────────────────────────
    dependencies: list[str] = Field(default_factory=list)         # tool names
    system_dependencies: list[str] = Field(default_factory=list)  # package names

    # ── Post-install ─────────────────────────────────────────────
    post_install: list[PostInstallCommand] = Field(default_factory=list)
    config_files: list[ConfigFile] = Field(default_factory=list)
    verify_command: str = ""
    shell_config: ShellConfigFragment | None = None

    @property
    def has_shell_config(self) -> bool:
        return self.shell_config is not None and not self.shell_config.is_empty


@dataclass
class InstallAttemptResult:
    """Outcome of installing one tool."""

    tool: str
    success: bool
    package: str = ""
    error: InstallError | None = None

    def to_dict(self) -> dict:
        data = {"tool": self.tool, "success": self.success, "package": self.package}
        if self.error is not None:
            data["error"] = str(self.error)
            data["kind"] = self.error.kind.value
        return data
