"""
L4 Execution — Config file placement.

Copies, links or writes the configuration files a tool declares.
Parent directories of the destination are created as needed; an
existing file or link at the destination is replaced.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devboot.core.models.tool import ConfigFile

logger = logging.getLogger(__name__)


class ConfigFileError(Exception):
    """A config file could not be placed."""


def _expand(path: str) -> Path:
    return Path(path).expanduser()


def place_config_file(config_file: ConfigFile) -> Path:
    """Create ``config_file.destination``.

    Returns:
        The destination path.

    Raises:
        ConfigFileError: Missing source, a directory in the way, or any
            filesystem error.
    """
    dest = _expand(config_file.destination)
    if dest.is_dir() and not dest.is_symlink():
        raise ConfigFileError(f"{dest} is a directory")

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if dest.is_symlink():
            dest.unlink()

        if config_file.type == "symlink":
            source = _expand(config_file.source)
            if not source.exists():
                raise ConfigFileError(f"Symlink source {source} does not exist")
            if dest.exists():
                dest.unlink()
            dest.symlink_to(source)
        elif config_file.type == "content":
            dest.write_text(config_file.source, encoding="utf-8")
            dest.chmod(config_file.file_mode)
        else:
            source = _expand(config_file.source)
            if not source.is_file():
                raise ConfigFileError(f"Source file {source} does not exist")
            shutil.copyfile(source, dest)
            dest.chmod(config_file.file_mode)
    except OSError as e:
        raise ConfigFileError(f"Cannot create {dest}: {e}") from e

    logger.info("Placed %s (%s)", dest, config_file.type)
    return dest
