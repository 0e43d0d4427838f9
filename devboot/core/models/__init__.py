"""
Domain models — Pydantic types for devboot.

All models are re-exported here for convenient access:

    from devboot.core.models import Tool, ShellConfigFragment, Plugin
"""

from devboot.core.models.plugin import Plugin
from devboot.core.models.tool import (
    ConfigFile,
    InstallAttemptResult,
    PostInstallCommand,
    ShellConfigFragment,
    Tool,
)

__all__ = [
    # tool.py
    "ConfigFile",
    "InstallAttemptResult",
    # plugin.py
    "Plugin",
    "PostInstallCommand",
    "ShellConfigFragment",
    "Tool",
]
