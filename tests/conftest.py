"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from devboot.adapters.mock import MockPackageManager
from devboot.core.config.settings import InstallerSettings
from devboot.core.services.tool_install.execution.shell_config import (
    ShellConfigWriter,
    ShellKind,
)


@pytest.fixture
def mock_pm() -> MockPackageManager:
    """A mock package manager where every install succeeds."""
    return MockPackageManager()


@pytest.fixture
def fast_settings() -> InstallerSettings:
    """Installer settings with no delay between retries."""
    return InstallerSettings(max_retries=3, retry_delay=0)


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """A temporary home directory for rc files."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def bash_writer(home_dir: Path) -> ShellConfigWriter:
    """A bash rc writer rooted in a temporary home."""
    return ShellConfigWriter(ShellKind.BASH, home=home_dir)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
