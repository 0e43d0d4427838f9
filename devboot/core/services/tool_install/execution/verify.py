"""
L4 Execution — Post-install verification.

A tool counts as installed when its verify command succeeds, or when
an executable named after the tool sits in one of the common bin
directories (package managers do not always update the PATH of the
running process).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from devboot.core.models.tool import Tool
from devboot.core.services.tool_install.execution.subprocess_runner import (
    combined_output,
    run_shell_command,
)

logger = logging.getLogger(__name__)

COMMON_BIN_DIRS: tuple[str, ...] = ("/usr/bin", "/usr/local/bin", "/opt/homebrew/bin")


def find_binary(
    name: str,
    extra_paths: Iterable[str] = (),
    search_dirs: Iterable[str] = COMMON_BIN_DIRS,
) -> Path | None:
    """First executable file called ``name`` in the search directories."""
    for directory in [*search_dirs, *extra_paths]:
        candidate = Path(directory).expanduser() / name
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    return None


def verify_tool(
    tool: Tool,
    *,
    extra_paths: Iterable[str] = (),
    search_dirs: Iterable[str] = COMMON_BIN_DIRS,
    runner: Callable[[str], dict[str, Any]] = run_shell_command,
) -> dict[str, Any]:
    """Verify that ``tool`` is usable.

    Returns:
        ``{"ok": True, "method": "command" | "binary" | "skipped", ...}``
        or ``{"ok": False, "error": "...", "output": "..."}``.
    """
    if not tool.verify_command:
        return {"ok": True, "method": "skipped"}

    result = runner(tool.verify_command)
    if result["ok"]:
        return {"ok": True, "method": "command"}

    found = find_binary(tool.name, extra_paths=extra_paths, search_dirs=search_dirs)
    if found is not None:
        logger.info(
            "%s: verify command failed but binary found at %s", tool.name, found,
        )
        return {"ok": True, "method": "binary", "path": str(found)}

    return {
        "ok": False,
        "error": f"verify command {tool.verify_command!r} failed: {result.get('error', 'unknown error')}",
        "output": combined_output(result),
    }
