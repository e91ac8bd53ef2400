"""CLI entry point for ordered-publish."""

from __future__ import annotations

from pathlib import Path

import click

from ordered_publish.errors import OrderedPublishError
from ordered_publish.pipeline import run_publish


@click.command()
@click.version_option(package_name="ordered-publish")
@click.argument(
    "path",
    type=click.Path(path_type=Path),
    default=".",
    required=False,
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show the release order and commands without running them.",
)
def cli(path: Path, dry_run: bool) -> None:
    """Publish every package of a uv workspace in dependency order.

    PATH is the project root (or any directory inside it), defaulting to
    the current directory.
    """
    try:
        run_publish(path, dry_run=dry_run)
    except OrderedPublishError as exc:
        raise click.ClickException(str(exc)) from exc
