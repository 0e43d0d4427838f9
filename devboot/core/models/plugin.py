"""
Plugin model — one entry of the shell plugin registry.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Plugin(BaseModel):
    """A shell plugin tracked by the plugin dependency manager.

    ``path`` is what appears in the rc file's ``source`` line. The
    registry keys plugins by ``name``; plugins added by path alone use
    the path as their name.
    """

    name: str
    path: str
    version: str = "1.0.0"
    description: str = ""
    enabled: bool = False
    dependencies: list[str] = Field(default_factory=list)
    config: dict[str, str] = Field(default_factory=dict)

    @property
    def source_line(self) -> str:
        return f"source {self.path}"

    @property
    def commented_source_line(self) -> str:
        return f"# source {self.path}"

    def depends_on(self, key: str) -> bool:
        return key in self.dependencies
