"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from devboot.core.services.tool_install.domain.errors import (  # noqa: F401
    InstallError,
    InstallErrorKind,
    classify_install_error,
)
from devboot.core.services.tool_install.domain.package_name import (  # noqa: F401
    format_versioned_package,
    normalize_manager_id,
    resolve_base_package_name,
    resolve_package_name,
)
from devboot.core.services.tool_install.domain.rollback import (  # noqa: F401
    generate_rollback,
)
