"""
L1 Domain — Install error taxonomy and failure classification (pure).

``classify_install_error`` is the ONE place where package manager output
is matched against "package not found" wording. Everything else in the
pipeline switches on the returned ``InstallErrorKind``.
"""

from __future__ import annotations

import re
from enum import Enum


class InstallErrorKind(str, Enum):
    """Classified failure of an install attempt."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    REPOSITORY_BOOTSTRAP = "repository_bootstrap"
    DEPENDENCY = "dependency"
    POST_INSTALL = "post_install"
    CONFIG_FILES = "config_files"
    SHELL_CONFIG = "shell_config"
    VERIFICATION = "verification"


class InstallError(Exception):
    """A failed stage of the install pipeline, with stage context.

    Attributes:
        kind: Classified failure kind.
        tool: Tool being installed.
        phase: Pipeline phase that failed (``resolve``, ``dependencies``,
            ``install``, ``post_install``, ``config_files``, ``shell_config``,
            ``verify``).
        message: Human-readable description.
        cause: The wrapped underlying exception, if any.
    """

    def __init__(
        self,
        kind: InstallErrorKind,
        tool: str,
        phase: str,
        message: str,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.tool = tool
        self.phase = phase
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.tool}: {self.phase} failed: {self.message}"

    @property
    def is_configuration(self) -> bool:
        return self.kind is InstallErrorKind.CONFIGURATION

    @property
    def rolls_back_dependencies(self) -> bool:
        """Whether same-attempt dependencies are uninstalled after this error."""
        return self.kind not in (
            InstallErrorKind.NOT_FOUND,
            InstallErrorKind.CONFIGURATION,
        )


# Patterns package managers print when a package does not exist in any
# configured repository (apt, dnf, pacman, brew).
_NOT_FOUND_PATTERNS = (
    re.compile(r"unable to locate package", re.IGNORECASE),
    re.compile(r"has no installation candidate", re.IGNORECASE),
    re.compile(r"no package \S+ available", re.IGNORECASE),
    re.compile(r"no match for argument", re.IGNORECASE),
    re.compile(r"target not found", re.IGNORECASE),
    re.compile(r"no available formula", re.IGNORECASE),
    re.compile(r"no formulae or casks found", re.IGNORECASE),
    re.compile(r"package \S+ not found", re.IGNORECASE),
)


def classify_install_error(output: str) -> InstallErrorKind:
    """Classify package manager failure output.

    Returns ``NOT_FOUND`` when the output says the package does not
    exist, ``TRANSIENT`` for anything else (including empty output).
    """
    if not output:
        return InstallErrorKind.TRANSIENT
    for pattern in _NOT_FOUND_PATTERNS:
        if pattern.search(output):
            return InstallErrorKind.NOT_FOUND
    return InstallErrorKind.TRANSIENT
