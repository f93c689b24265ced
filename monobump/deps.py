"""Dependency range rewriting.

When packages are assigned new versions, every package that depends on them
must have its declared ranges updated. The new range keeps the shape the
author chose:

    "^3.0.0"            + 4.0.0 → "^4.0.0"
    ">=1.0.0"           + 2.0.0 → ">=2.0.0"
    "workspace:~1.2.0"  + 2.0.0 → "workspace:~2.0.0"
    "file:../pkg"       + 9.9.9 → "file:../pkg"   (local link, untouched)
    "*"                 + 2.0.0 → "*"             (any version, untouched)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .models import DEPENDENCY_TYPES, Package, VersionUpdate
from .ranges import get_range_type, parse_range

WORKSPACE_PREFIX = "workspace:"

# Local link declarations ("link:", "file:.", "file:../pkg", ...) never
# point at a version.
PROTOCOL_PREFIXES = ("link:", "file:")


def is_protocol_pin(declared: str) -> bool:
    return declared.startswith(PROTOCOL_PREFIXES)


def rewrite_range(declared: str, new_version: str) -> str:
    """Rewrite one declared range to point at ``new_version``.

    Returns ``declared`` unchanged for protocol pins and for ranges that
    already match any version.

    Raises:
        InvalidRangeError: If the declared range cannot be parsed.
    """
    if is_protocol_pin(declared):
        return declared

    uses_workspace_range = declared.startswith(WORKSPACE_PREFIX)
    inner = declared[len(WORKSPACE_PREFIX) :] if uses_workspace_range else declared

    # "*", "x", "X" and "" mean "any version"; keep them that way.
    if parse_range(inner).is_any:
        return declared

    new_range = f"{get_range_type(inner)}{new_version}"
    if uses_workspace_range:
        new_range = f"{WORKSPACE_PREFIX}{new_range}"
    return new_range


def rewrite_dependencies(
    manifest: Mapping[str, Any], updates: Sequence[VersionUpdate]
) -> dict[str, Any]:
    """Point a manifest's dependency ranges at newly assigned versions.

    Each dependency type is handled independently, so a package declared
    under both "dependencies" and "peerDependencies" may end up with two
    different ranges. Dependency names are matched exactly.

    Args:
        manifest: Parsed package.json. Not modified.
        updates: New versions keyed by package name.

    Returns:
        A new manifest. Dependency blocks that were rewritten are copies;
        everything else is shared with ``manifest``.
    """
    result = dict(manifest)
    for dep_type in DEPENDENCY_TYPES:
        deps = manifest.get(dep_type)
        if not deps:
            continue
        rewritten = dict(deps)
        for update in updates:
            declared = deps.get(update.name)
            if not declared:
                continue
            rewritten[update.name] = rewrite_range(declared, update.version)
        if rewritten != deps:
            result[dep_type] = rewritten
    return result


def version_package(
    package: Package, new_version: str, updates: Sequence[VersionUpdate]
) -> Package:
    """Return a copy of ``package`` released at ``new_version``.

    Sets the package's own version and rewrites its dependency ranges for
    ``updates``.
    """
    manifest = rewrite_dependencies(package.manifest, updates)
    manifest["version"] = new_version
    return package.model_copy(update={"version": new_version, "manifest": manifest})
