"""TOML reading utilities.

Uses tomlkit to read pyproject.toml files, both the workspace root (for
workspace members and tool configuration) and each member package.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from pydantic import ValidationError
from tomlkit.exceptions import ParseError

from .errors import MetadataError
from .models import PublishConfig

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"
CONFIG_TABLE = "ordered-publish"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Raises:
        MetadataError: If the file cannot be read or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except (OSError, ParseError) as exc:
        raise MetadataError(f"Cannot read {path}: {exc}") from exc


def _table(doc: tomlkit.TOMLDocument, *keys: str) -> Mapping[str, Any]:
    """Walk nested tables, e.g. _table(doc, "tool", "uv") for [tool.uv].

    Missing tables read as empty.

    Raises:
        MetadataError: If a key along the way holds a non-table value.
    """
    table: Mapping[str, Any] = doc
    for i, key in enumerate(keys):
        table = table.get(key, {})
        if not isinstance(table, Mapping):
            raise MetadataError(f"[{'.'.join(keys[: i + 1])}] must be a table")
    return table


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(str(_table(doc, "project").get("name", fallback)))


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract version from [project].version, None when it is dynamic."""
    version = _table(doc, "project").get("version")
    return str(version) if version is not None else None


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect all dependency strings from a pyproject.toml.

    Gathers dependencies from three locations, in this order:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    Group includes ({include-group = "..."}) are not requirements and are
    skipped.
    """
    project = _table(doc, "project")
    deps: list[str] = [str(d) for d in project.get("dependencies", [])]
    for group_deps in _table(doc, "project", "optional-dependencies").values():
        deps.extend(str(d) for d in group_deps)
    for group_deps in _table(doc, "dependency-groups").values():
        deps.extend(str(d) for d in group_deps if isinstance(d, str))
    return deps


def has_project(doc: tomlkit.TOMLDocument) -> bool:
    """True if the document declares a [project] table."""
    return "project" in doc


def has_workspace(doc: tomlkit.TOMLDocument) -> bool:
    """True if the document declares a [tool.uv.workspace] table."""
    return "workspace" in _table(doc, "tool", "uv")


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages. A workspace without members is just its
    root project.
    """
    workspace = _table(doc, "tool", "uv", "workspace")
    return [str(m) for m in workspace.get("members", [])]


def get_workspace_exclude_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract [tool.uv.workspace].exclude glob patterns."""
    workspace = _table(doc, "tool", "uv", "workspace")
    return [str(m) for m in workspace.get("exclude", [])]


def is_publishable(doc: tomlkit.TOMLDocument) -> bool:
    """Whether the package may be uploaded to an index.

    A package is private when it carries the "Private :: Do Not Upload"
    classifier (which PyPI rejects) or is a virtual uv project
    ([tool.uv].package = false) that is never built.
    """
    classifiers = _table(doc, "project").get("classifiers", [])
    if PRIVATE_CLASSIFIER in [str(c) for c in classifiers]:
        return False
    return bool(_table(doc, "tool", "uv").get("package", True))


def load_config(doc: tomlkit.TOMLDocument) -> PublishConfig:
    """Read [tool.ordered-publish] from the root pyproject.toml.

    Raises:
        MetadataError: If the table contains unknown keys or bad values.
    """
    table = _table(doc, "tool", CONFIG_TABLE)
    try:
        return PublishConfig.model_validate(table.unwrap() if table else {})
    except ValidationError as exc:
        raise MetadataError(f"Invalid [tool.{CONFIG_TABLE}] configuration:\n{exc}") from exc
