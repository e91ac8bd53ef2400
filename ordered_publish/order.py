"""Release ordering for workspace packages.

Packages must be published in dependency order: when package A depends on
package B, B has to be on the index before A is uploaded, otherwise A's
install would fail for anyone pulling it in between the two uploads.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from .errors import CircularDependencyError
from .models import Package


def release_order(packages: Sequence[Package]) -> list[Package]:
    """Return packages in an order they can be released.

    Walks the dependency graph depth-first, visiting roots in input order
    and dependencies in declared order, and emits each package after all
    of its in-scope dependencies (post-order). The result is deterministic
    for a given input order.

    Dependencies that name a package outside ``packages`` are assumed to
    be available already and add no edge. A package never counts as its
    own dependency.

    A package is marked as on-path when its visit starts, and the whole
    on-path set is cleared every time a package is emitted (not just the
    emitted package). A dependency found on-path is a cycle.

    Args:
        packages: Packages to order. Not modified.

    Returns:
        The same package objects, dependencies first.

    Raises:
        CircularDependencyError: If a dependency is still being resolved
            when it is reached again.

    Example:
        If A depends on B, and B depends on C:
        release_order([A, B, C]) → [C, B, A]
    """
    # First match wins, like a linear scan over the input
    by_name: dict[str, Package] = {}
    for pkg in packages:
        by_name.setdefault(pkg.name, pkg)

    order: list[Package] = []
    emitted: set[str] = set()
    on_path: set[str] = set()

    for root in packages:
        if root.name in emitted:
            continue
        on_path.add(root.name)
        # Each frame is a package plus the dependency names not yet visited
        stack: list[tuple[Package, Iterator[str]]] = [(root, iter(root.deps))]

        while stack:
            pkg, remaining = stack[-1]
            for dep_name in remaining:
                dep = by_name.get(dep_name)
                if dep is None or dep.name == pkg.name:
                    continue
                if dep.name in on_path:
                    raise CircularDependencyError(pkg.name, dep.name)
                if dep.name in emitted:
                    continue
                on_path.add(dep.name)
                stack.append((dep, iter(dep.deps)))
                break
            else:
                stack.pop()
                order.append(pkg)
                emitted.add(pkg.name)
                on_path.clear()

    return order
