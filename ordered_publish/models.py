"""Data models for ordered-publish.

These Pydantic models represent the workspace packages and the tool
configuration read from the root pyproject.toml.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Package(BaseModel):
    """Metadata for a single package in the workspace.

    Attributes:
        name: Canonical (PEP 503) project name.
        path: Relative path from workspace root to the package directory.
        version: Version string from pyproject.toml, or None when dynamic.
        deps: Declared dependency names in declaration order. External
              names and self references are kept; the resolver skips them.
        publish: False when the package must never be uploaded.
    """

    name: str
    path: str = "."
    version: str | None = None
    deps: list[str] = Field(default_factory=list)
    publish: bool = True


class PublishConfig(BaseModel):
    """Settings from [tool.ordered-publish] in the root pyproject.toml.

    Attributes:
        check: Command run once before any upload. Defaults to building
               every workspace package into dist_dir.
        publish: Upload command; the package's dist files are appended.
        dist_dir: Directory (relative to the workspace root) holding
                  built wheels and sdists.
        exclude: Package names that are never published.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    check: list[str] | None = None
    publish: list[str] = Field(default_factory=lambda: ["uv", "publish"])
    dist_dir: str = Field(default="dist", alias="dist-dir")
    exclude: list[str] = Field(default_factory=list)

    def check_command(self) -> list[str]:
        """Return the check command, filling in the default build."""
        if self.check is not None:
            return list(self.check)
        return ["uv", "build", "--all-packages", "--out-dir", self.dist_dir]
