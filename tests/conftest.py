"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

WorkspaceFactory = Callable[[dict[str, str]], Path]


@pytest.fixture
def make_workspace(tmp_path: Path) -> WorkspaceFactory:
    """Build a uv workspace from {relative dir: member pyproject text}.

    The root pyproject.toml declares members = ["packages/*"]; pass a
    "." key to replace it.
    """

    def _make(members: dict[str, str]) -> Path:
        root_text = members.get(".", '[tool.uv.workspace]\nmembers = ["packages/*"]\n')
        (tmp_path / "pyproject.toml").write_text(root_text)
        for rel, text in members.items():
            if rel == ".":
                continue
            pkg_dir = tmp_path / rel
            pkg_dir.mkdir(parents=True, exist_ok=True)
            (pkg_dir / "pyproject.toml").write_text(text)
        return tmp_path

    return _make


def member(name: str, version: str = "1.0.0", deps: list[str] | None = None) -> str:
    """pyproject.toml text for a simple workspace member."""
    deps_toml = ", ".join(f'"{d}"' for d in deps or [])
    return (
        f'[project]\nname = "{name}"\nversion = "{version}"\n'
        f"dependencies = [{deps_toml}]\n"
    )


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", {include-group = "docs"}]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
exclude = ["packages/legacy"]
"""
    return tomlkit.parse(content)
