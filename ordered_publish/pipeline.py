"""Publish pipeline: discover → order → check → publish.

This module orchestrates the ordered-publish process:
1. Locate the workspace root and read its configuration
2. Discover all packages in the workspace
3. Drop packages that must never be uploaded
4. Compute the release order (dependencies first, cycles rejected)
5. Run the check command once
6. Publish each package, one at a time, in release order

Any failure stops the run. Packages uploaded before the failure stay on
the index; nothing is retried or rolled back.
"""

from __future__ import annotations

import glob
from pathlib import Path

import tomlkit
from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    canonicalize_name,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion, Version

from .deps import declared_dep_names
from .errors import MetadataError, OrderedPublishError, PublishError, VerificationError
from .models import Package, PublishConfig
from .order import release_order
from .shell import format_command, run, step, warn
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_project_version,
    get_workspace_exclude_globs,
    get_workspace_member_globs,
    has_project,
    has_workspace,
    is_publishable,
    load_config,
    load_pyproject,
)


def find_workspace_root(path: Path) -> Path:
    """Find the root of the project containing path.

    Walks up from path to the nearest pyproject.toml declaring a uv
    workspace. Without one, the nearest pyproject.toml with a [project]
    table is published as a single-package project.

    Raises:
        MetadataError: If path does not exist or is not inside a project.
    """
    if not path.exists():
        raise MetadataError(f"Project root {path} does not exist")

    start = path.resolve()
    if start.is_file():
        start = start.parent

    project_root: Path | None = None
    for candidate in (start, *start.parents):
        pyproject = candidate / "pyproject.toml"
        if not pyproject.is_file():
            continue
        doc = load_pyproject(pyproject)
        try:
            if has_workspace(doc):
                return candidate
            if project_root is None and has_project(doc):
                project_root = candidate
        except MetadataError as exc:
            raise MetadataError(f"{pyproject}: {exc}") from exc

    if project_root is None:
        raise MetadataError(f"No pyproject.toml with a [project] table found at {start}")
    return project_root


def _member_dirs(root: Path, root_doc: tomlkit.TOMLDocument) -> list[Path]:
    """Expand workspace member globs into package directories.

    The root comes first when it is itself a project. Members are sorted
    per glob and listed once, in the order their globs are declared.
    """
    dirs: list[Path] = [root] if has_project(root_doc) else []

    excluded: set[Path] = set()
    for pattern in get_workspace_exclude_globs(root_doc):
        excluded.update(Path(m).resolve() for m in glob.glob(str(root / pattern)))

    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match).resolve()
            if p in excluded or p in dirs:
                continue
            if (p / "pyproject.toml").is_file():
                dirs.append(p)

    return dirs


def discover_packages(root: Path) -> list[Package]:
    """Scan the workspace and discover all packages.

    Reads [tool.uv.workspace] from the root pyproject.toml to find package
    directories, then extracts name, version, declared deps and the
    publish flag from each package's pyproject.toml.

    Returns:
        Packages in discovery order.

    Raises:
        MetadataError: If no packages are found, a pyproject.toml cannot
            be parsed, or two packages share a name.
    """
    step("Discovering workspace packages")

    root = root.resolve()
    root_doc = load_pyproject(root / "pyproject.toml")
    try:
        member_dirs = _member_dirs(root, root_doc)
    except MetadataError as exc:
        raise MetadataError(f"{root / 'pyproject.toml'}: {exc}") from exc
    if not member_dirs:
        raise MetadataError(f"No packages found in workspace {root}")

    packages: list[Package] = []
    paths: dict[str, Path] = {}
    for d in member_dirs:
        pyproject = d / "pyproject.toml"
        doc = root_doc if d == root else load_pyproject(pyproject)
        try:
            name = get_project_name(doc, d.name)
        except MetadataError as exc:
            raise MetadataError(f"{pyproject}: {exc}") from exc
        if name in paths:
            raise MetadataError(
                f"Package name {name} is used by both {paths[name]} and {d}"
            )
        paths[name] = d
        try:
            package = Package(
                name=name,
                path=str(d.relative_to(root)),
                version=get_project_version(doc),
                deps=declared_dep_names(get_all_dependency_strings(doc)),
                publish=is_publishable(doc),
            )
        except MetadataError as exc:
            raise MetadataError(f"{name}: {exc}") from exc
        packages.append(package)

    # Print discovered packages for user feedback
    workspace_names = set(paths)
    for pkg in packages:
        internal = [d for d in pkg.deps if d in workspace_names and d != pkg.name]
        deps = f" → [{', '.join(internal)}]" if internal else ""
        private = "" if pkg.publish else " [private]"
        print(f"  {pkg.name} {pkg.version or '<dynamic>'} ({pkg.path}){deps}{private}")

    return packages


def publishable_packages(
    packages: list[Package], config: PublishConfig
) -> list[Package]:
    """Drop packages that must not be uploaded.

    Keeps discovery order. Excluded packages are removed before ordering,
    so packages depending on them treat them as already available.
    """
    excluded = {canonicalize_name(n) for n in config.exclude}
    for name in sorted(excluded - {p.name for p in packages}):
        warn(f"Excluded package {name} is not in the workspace")
    return [p for p in packages if p.publish and p.name not in excluded]


def plan_release(root: Path, config: PublishConfig) -> list[Package]:
    """Discover the workspace and return its publishable packages in order.

    Raises:
        MetadataError: If the workspace cannot be read.
        CircularDependencyError: If the packages depend on each other in a
            cycle.
    """
    packages = publishable_packages(discover_packages(root), config)
    step("Computing release order")
    order = release_order(packages)
    for i, pkg in enumerate(order, 1):
        print(f"  {i}. {pkg.name}")
    return order


def check_workspace(root: Path, config: PublishConfig) -> None:
    """Run the check command once before anything is published.

    Raises:
        VerificationError: If the command cannot be started or fails.
    """
    step("Checking")
    command = config.check_command()
    try:
        result = run(command, cwd=root, check=False)
    except OSError as exc:
        raise VerificationError(f"Cannot run {format_command(command)}: {exc}") from exc
    if result.returncode != 0:
        raise VerificationError(
            f"Check failed (exit {result.returncode}): {format_command(command)}"
        )


def _dist_version(version: str | None) -> str:
    """Version as it appears in distribution filenames ("1.0-beta" → "1.0b0")."""
    if version is None:
        return "*"
    try:
        return str(Version(version))
    except InvalidVersion:
        return version


def dist_patterns(package: Package) -> list[str]:
    """Filename patterns for a package's dists inside the dist directory.

    Distribution filenames use the normalized name with underscores, so
    "my-pkg" 1.0.0 matches "my_pkg-1.0.0-py3-none-any.whl" and
    "my_pkg-1.0.0.tar.gz". Packages with a dynamic version match any
    version of their name.
    """
    dist_name = canonicalize_name(package.name).replace("-", "_")
    version = _dist_version(package.version)
    return [f"{dist_name}-{version}-*.whl", f"{dist_name}-{version}.tar.gz"]


def _display_patterns(config: PublishConfig, package: Package) -> list[str]:
    """Dist patterns joined onto the dist directory, for dry-run output."""
    return [f"{config.dist_dir}/{p}" for p in dist_patterns(package)]


def _newest_dists(files: list[Path]) -> list[Path]:
    """Keep only the files of the highest version among the given dists.

    Used for packages with a dynamic version, where older builds left in
    the dist directory would otherwise be uploaded as well.
    """
    by_version: dict[Version, list[Path]] = {}
    for f in files:
        try:
            if f.name.endswith(".whl"):
                _, version, _, _ = parse_wheel_filename(f.name)
            else:
                _, version = parse_sdist_filename(f.name)
        except (InvalidWheelFilename, InvalidSdistFilename):
            continue
        by_version.setdefault(version, []).append(f)
    if not by_version:
        return []
    return by_version[max(by_version)]


def find_dist_files(root: Path, config: PublishConfig, package: Package) -> list[Path]:
    """Find the built wheels and sdist for a package.

    The dist directory may be relative to root or absolute.

    Raises:
        PublishError: If no distribution file exists for the package.
    """
    dist_dir = root / config.dist_dir
    files: list[Path] = []
    for pattern in dist_patterns(package):
        files.extend(sorted(dist_dir.glob(pattern)))
    if package.version is None:
        files = _newest_dists(files)
    if not files:
        raise PublishError(
            package.name,
            f"No distributions for {package.name} in {dist_dir}",
        )
    return files


def _command_path(root: Path, path: Path) -> str:
    """Path as passed to a command run in root."""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def publish_package(root: Path, config: PublishConfig, package: Package) -> None:
    """Upload one package's distributions.

    Raises:
        PublishError: If the distributions are missing or the publish
            command fails.
    """
    files = find_dist_files(root, config, package)
    command = [*config.publish, *(_command_path(root, f) for f in files)]
    print(f"\n  {package.name}")
    try:
        result = run(command, cwd=root, check=False)
    except OSError as exc:
        raise PublishError(
            package.name, f"Cannot run {format_command(command)}: {exc}"
        ) from exc
    if result.returncode != 0:
        raise PublishError(package.name, f"Failed to publish {package.name}")


def run_publish(path: Path, *, dry_run: bool = False) -> list[Package]:
    """Execute the full publish pipeline.

    Args:
        path: Any directory inside the project.
        dry_run: If True, print the release order and the commands that
                 would run, without running them.

    Returns:
        The packages that were published, in order.

    Raises:
        OrderedPublishError: On the first failure. Packages published
            before a PublishError remain published.
    """
    root = find_workspace_root(path)
    pyproject = root / "pyproject.toml"
    root_doc = load_pyproject(pyproject)
    try:
        config = load_config(root_doc)
    except MetadataError as exc:
        raise MetadataError(f"{pyproject}: {exc}") from exc

    order = plan_release(root, config)
    names = [p.name for p in order]
    if not order:
        step("Nothing to publish")
        return []

    if dry_run:
        step("Dry run: no commands will be executed")
        print(f"  $ {format_command(config.check_command())}")
        for pkg in order:
            command = [*config.publish, *_display_patterns(config, pkg)]
            print(f"  $ {format_command(command)}")
        return []

    check_workspace(root, config)

    step(f"Publishing packages: {names}")
    published: list[Package] = []
    try:
        for pkg in order:
            publish_package(root, config, pkg)
            published.append(pkg)
    except OrderedPublishError:
        if published:
            warn(
                "Already published before the failure: "
                f"{[p.name for p in published]}"
            )
        raise

    step(f"Published packages: {names}")
    return published
