"""Dependency graph utilities.

Provides the reverse dependency mapping ("who depends on me") used to check
that ignored packages are not depended on by released ones, and to find the
packages whose manifests need rewriting after a version change.
"""

from __future__ import annotations

from .deps import WORKSPACE_PREFIX, is_protocol_pin
from .models import DEPENDENCY_TYPES, PackageGraph


def get_dependents_graph(
    packages: PackageGraph, *, workspace_protocol_only: bool = False
) -> dict[str, list[str]]:
    """Map each workspace package to the packages that depend on it.

    Only direct dependents are recorded. Dependencies on packages outside
    the workspace are ignored.

    Args:
        packages: The workspace packages.
        workspace_protocol_only: If True, only "workspace:" declarations
            count as a dependency.

    Returns:
        Map of package name → names of its direct dependents, in workspace
        order. Every workspace package has an entry.

    Example:
        If b depends on a, and c depends on b:
        get_dependents_graph(...) → {"a": ["b"], "b": ["c"], "c": []}
    """
    dependents: dict[str, list[str]] = {pkg.name: [] for pkg in packages.packages}

    for pkg in packages.packages:
        seen: set[str] = set()
        for dep_type in DEPENDENCY_TYPES:
            for dep_name, dep_range in (pkg.manifest.get(dep_type) or {}).items():
                if dep_name == pkg.name or dep_name not in dependents:
                    continue
                if dep_name in seen:
                    continue
                dep_range = str(dep_range)
                # Linked dev tooling does not make a package a dependent.
                if dep_type == "devDependencies" and is_protocol_pin(dep_range):
                    continue
                if workspace_protocol_only and not dep_range.startswith(
                    WORKSPACE_PREFIX
                ):
                    continue
                dependents[dep_name].append(pkg.name)
                seen.add(dep_name)

    return dependents
