"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for install
operations: package manager drivers, post-install commands and
verification commands all go through here.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Output kept from each stream; package manager logs can be huge.
_OUTPUT_TAIL = 4000


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def run_subprocess(
    cmd: list[str],
    *,
    needs_sudo: bool = False,
    timeout: float | None = None,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        needs_sudo: Prefix with ``sudo`` unless already root.
        timeout: Seconds before giving up. ``None`` waits forever.
        env_overrides: Extra env vars, ``$VAR`` references expanded.
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "elapsed_ms": N}``
        on success, ``{"ok": False, "error": "...", "stderr": "...",
        "stdout": "...", "returncode": N}`` on failure.
    """
    if needs_sudo and not _is_root() and shutil.which("sudo"):
        cmd = ["sudo"] + cmd

    env = None
    if env_overrides:
        env = os.environ.copy()
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    logger.debug("Executing: %s", " ".join(cmd))
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "returncode": None}
    except FileNotFoundError as e:
        return {"ok": False, "error": f"Command not found: {e.filename or cmd[0]}", "returncode": None}
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd)
        return {"ok": False, "error": str(e), "returncode": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_OUTPUT_TAIL:] if result.stdout else ""
    stderr = result.stderr[-_OUTPUT_TAIL:] if result.stderr else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "stderr": stderr, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }


def run_shell_command(
    command: str,
    *,
    env_overrides: dict[str, str] | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Run ``command`` through a POSIX shell (``sh -c``)."""
    return run_subprocess(
        ["sh", "-c", command],
        env_overrides=env_overrides,
        timeout=timeout,
    )


def combined_output(result: dict[str, Any]) -> str:
    """stderr + stdout of a runner result, for error messages and classification."""
    parts = [result.get("stderr", ""), result.get("stdout", "")]
    return "\n".join(p.strip() for p in parts if p and p.strip())
