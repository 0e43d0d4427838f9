"""
L5 Orchestration — the install pipeline.
"""

from devboot.core.services.tool_install.orchestration.installer import (  # noqa: F401
    EventCallback,
    RetryingInstaller,
    install_tools,
)
