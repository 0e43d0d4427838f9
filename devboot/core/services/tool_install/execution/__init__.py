"""
L4 Execution — subprocess, shell rc file, config file and verification helpers.
"""

from devboot.core.services.tool_install.execution.config_files import (  # noqa: F401
    ConfigFileError,
    place_config_file,
)
from devboot.core.services.tool_install.execution.shell_config import (  # noqa: F401
    MergeStrategy,
    ShellConfigError,
    ShellConfigWriter,
    ShellKind,
    detect_shell,
    render_fragment,
)
from devboot.core.services.tool_install.execution.subprocess_runner import (  # noqa: F401
    combined_output,
    run_shell_command,
    run_subprocess,
)
from devboot.core.services.tool_install.execution.verify import (  # noqa: F401
    COMMON_BIN_DIRS,
    find_binary,
    verify_tool,
)
