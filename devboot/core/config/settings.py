"""
Installer settings — retry policy, verification paths, shell strategy.

Defaults suit an interactive bootstrap; ``from_env`` lets CI and
scripted runs override them without flags.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from devboot.core.config.loader import ConfigError

_STRATEGIES = ("merge_with_existing", "skip_if_exists", "replace_existing")


class InstallerSettings(BaseModel):
    """Tunables for ``RetryingInstaller``."""

    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=2.0, ge=0)
    extra_bin_paths: list[str] = Field(default_factory=list)
    shell_strategy: str = "skip_if_exists"

    @field_validator("shell_strategy")
    @classmethod
    def _known_strategy(cls, value: str) -> str:
        if value not in _STRATEGIES:
            raise ValueError(f"must be one of {', '.join(_STRATEGIES)}")
        return value

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> InstallerSettings:
        """Build settings from ``DEVBOOT_*`` environment variables.

        Unset variables keep their defaults.

        Raises:
            ConfigError: If a variable holds an invalid value.
        """
        env = os.environ if env is None else env
        data: dict[str, object] = {}

        if env.get("DEVBOOT_MAX_RETRIES"):
            data["max_retries"] = env["DEVBOOT_MAX_RETRIES"]
        if env.get("DEVBOOT_RETRY_DELAY"):
            data["retry_delay"] = env["DEVBOOT_RETRY_DELAY"]
        if env.get("DEVBOOT_EXTRA_BIN_PATHS"):
            data["extra_bin_paths"] = [
                p for p in env["DEVBOOT_EXTRA_BIN_PATHS"].split(os.pathsep) if p
            ]
        if env.get("DEVBOOT_SHELL_STRATEGY"):
            data["shell_strategy"] = env["DEVBOOT_SHELL_STRATEGY"].strip().lower()

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid installer settings in environment: {e}") from e
