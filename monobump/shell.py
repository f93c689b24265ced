"""Shell and git utilities.

Provides a thin wrapper around git plus the console output helpers used by
the pipeline and the config validator.
"""

from __future__ import annotations

import subprocess
import sys
from typing import NoReturn

_RULE = "─" * 60


def git(*args: str, cwd: str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "add", "package.json").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise on non-zero exit.

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print ``msg`` between two horizontal rules."""
    print(f"\n{_RULE}\n{msg}\n{_RULE}")


def warn(msg: str) -> None:
    """Print a non-fatal advisory message to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)


def fatal(msg: str) -> NoReturn:
    """Report ``msg`` on stderr and stop with exit status 1."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
