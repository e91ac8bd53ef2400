"""Shell utilities.

Provides a thin wrapper around subprocess for running the check and
publish commands, plus output formatting helpers.
"""

from __future__ import annotations

import shlex
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path


def format_command(args: Sequence[str]) -> str:
    """Render a command the way a user would type it."""
    return shlex.join(str(a) for a in args)


def run(
    args: Sequence[str], *, cwd: Path, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run a command in cwd.

    Output is not captured - it streams directly to the terminal so users
    can see build and upload progress.

    Args:
        args: Command and arguments (e.g., ["uv", "publish", "dist/a.whl"]).
        cwd: Directory to run the command in.
        check: If True (default), raise on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    print(f"  $ {format_command(args)}")
    return subprocess.run(list(args), cwd=cwd, check=check)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the publish run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)
