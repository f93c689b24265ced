"""package.json reading and writing utilities.

Manifests are written back with the indentation they were read with and a
trailing newline, so a version bump produces a minimal, reviewable diff.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from .shell import fatal

MANIFEST_FILENAME = "package.json"

_INDENT_RE = re.compile(r"^[{\[]\s*\n([ \t]+)\S", re.MULTILINE)


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file."""
    return json.loads(path.read_text(encoding="utf-8"))


def detect_indent(text: str) -> str | int:
    """Return the indentation used by a JSON document, defaulting to 2."""
    match = _INDENT_RE.search(text)
    if not match:
        return 2
    indent = match.group(1)
    return indent if "\t" in indent else len(indent)


def save_manifest(path: Path, manifest: dict[str, Any]) -> None:
    """Write a manifest back to disk, keeping the file's indentation."""
    indent: str | int = 2
    if path.exists():
        indent = detect_indent(path.read_text(encoding="utf-8"))
    path.write_text(
        json.dumps(manifest, indent=indent, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def get_package_name(manifest: dict[str, Any], fallback: str) -> str:
    """Extract the package name, falling back to the directory name."""
    return manifest.get("name", fallback)


def get_package_version(manifest: dict[str, Any]) -> str:
    """Extract the version, defaulting to '0.0.0'."""
    return manifest.get("version", "0.0.0")


def get_workspace_globs(manifest: dict[str, Any]) -> list[str]:
    """Extract workspace glob patterns from the root package.json.

    Both the npm/yarn array form and the yarn object form are accepted::

        "workspaces": ["packages/*"]
        "workspaces": {"packages": ["packages/*"]}

    Raises:
        SystemExit: If no workspaces are defined.
    """
    workspaces = manifest.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not workspaces:
        fatal('No "workspaces" defined in root package.json')
    return list(workspaces)
