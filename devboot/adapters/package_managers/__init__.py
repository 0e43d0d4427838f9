"""
Package manager drivers — apt, dnf, pacman, brew.
"""

from devboot.adapters.package_managers.base import (  # noqa: F401
    PackageManager,
    PackageManagerError,
)
from devboot.adapters.package_managers.registry import (  # noqa: F401
    PACKAGE_MANAGERS,
    detect_package_manager,
    get_package_manager,
)
