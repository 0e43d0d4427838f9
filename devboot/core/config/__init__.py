"""
Configuration — tool catalogs and installer settings.
"""

from devboot.core.config.loader import (  # noqa: F401
    CatalogError,
    ConfigError,
    find_catalog_file,
    load_catalog,
    parse_catalog,
)
from devboot.core.config.settings import InstallerSettings  # noqa: F401
