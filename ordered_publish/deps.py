"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings into the
canonical names the release ordering works with.
"""

from __future__ import annotations

from collections.abc import Iterable

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import MetadataError


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"

    Raises:
        MetadataError: If the string is not a valid requirement.
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement as exc:
        raise MetadataError(f"Invalid dependency {dep_str!r}: {exc}") from exc


def declared_dep_names(dep_strs: Iterable[str]) -> list[str]:
    """Canonical names of the given dependency strings, first occurrence wins.

    A package often lists the same dependency more than once (e.g. in
    both [project].dependencies and an extra); only the position of the
    first declaration matters for ordering.
    """
    names: list[str] = []
    seen: set[str] = set()
    for dep_str in dep_strs:
        name = dep_canonical_name(dep_str)
        if name not in seen:
            names.append(name)
            seen.add(name)
    return names
