"""Version pipeline: discover → validate config → rewrite → write → commit.

This module orchestrates a monobump version run:
1. Discover all packages in the workspace
2. Load and validate the release config
3. Assign each updated package its new version
4. Rewrite dependency ranges in every package that depends on an updated one
5. Write changed manifests back to disk
6. Commit the result when the config asks for it

The new versions themselves are always supplied by the caller.
"""

from __future__ import annotations

import glob
from collections.abc import Sequence
from pathlib import Path

from .config import CONFIG_PATH, DEFAULT_CONFIG, read_config
from .deps import rewrite_dependencies, version_package
from .graph import get_dependents_graph
from .manifest import (
    MANIFEST_FILENAME,
    get_package_name,
    get_package_version,
    get_workspace_globs,
    load_manifest,
    save_manifest,
)
from .models import Config, Package, PackageGraph, VersionUpdate
from .shell import fatal, git, step


def discover_packages(root: Path) -> PackageGraph:
    """Scan the workspace and discover all packages.

    Reads "workspaces" from the root package.json to find package
    directories, then loads each package's package.json.
    """
    step("Discovering workspace packages")

    root_manifest_path = root / MANIFEST_FILENAME
    if not root_manifest_path.exists():
        fatal(f"No {MANIFEST_FILENAME} found in {root}")
    root_manifest = load_manifest(root_manifest_path)
    root_package = Package(
        name=get_package_name(root_manifest, root.name),
        version=get_package_version(root_manifest),
        dir=str(root),
        manifest=root_manifest,
    )

    if "workspaces" not in root_manifest:
        # A single-package repo is its own only package.
        return PackageGraph(root=root_package, packages=[root_package], tool="root")

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in get_workspace_globs(root_manifest):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / MANIFEST_FILENAME).exists() and p not in member_dirs:
                member_dirs.append(p)

    if not member_dirs:
        fatal("No packages found matching workspaces")

    packages: list[Package] = []
    for d in member_dirs:
        manifest = load_manifest(d / MANIFEST_FILENAME)
        packages.append(
            Package(
                name=get_package_name(manifest, d.name),
                version=get_package_version(manifest),
                dir=str(d),
                manifest=manifest,
            )
        )

    for pkg in packages:
        print(f"  {pkg.name} {pkg.version} ({Path(pkg.dir).relative_to(root)})")

    tool = "yarn" if (root / "yarn.lock").exists() else "npm"
    return PackageGraph(root=root_package, packages=packages, tool=tool)


def load_config(root: Path, packages: PackageGraph) -> Config:
    """Read the workspace config, falling back to the defaults if absent."""
    if not (root / CONFIG_PATH).exists():
        return DEFAULT_CONFIG
    return read_config(root, packages)


def bump_versions(
    packages: PackageGraph, updates: Sequence[VersionUpdate], config: Config
) -> list[Package]:
    """Apply new versions and rewrite dependent ranges.

    Updated packages get their new version; their dependents get their
    dependency ranges rewritten. Packages that change in neither way are
    left out of the result.

    With ``bump_versions_with_workspace_protocol_only`` set, only
    ``workspace:`` declarations make a package a dependent to rewrite. An
    updated package is versioned regardless, so its own ranges on other
    updated packages are rewritten whatever their form.

    Returns:
        The changed packages, in workspace order.
    """
    step("Applying new versions")

    by_name = {pkg.name: pkg for pkg in packages.packages}
    for update in updates:
        if update.name not in by_name:
            fatal(f"Unknown package: {update.name}")
        if update.name in config.ignore:
            fatal(f"{update.name} is ignored in {CONFIG_PATH} and cannot be versioned")

    new_versions = {u.name: u.version for u in updates}
    dependents = get_dependents_graph(
        packages,
        workspace_protocol_only=config.bump_versions_with_workspace_protocol_only,
    )
    to_rewrite = {d for u in updates for d in dependents[u.name]}

    changed: list[Package] = []
    for pkg in packages.packages:
        if pkg.name in new_versions:
            old = pkg.version
            pkg = version_package(pkg, new_versions[pkg.name], updates)
            print(f"  {pkg.name}: {old} → {pkg.version}")
            changed.append(pkg)
        elif pkg.name in to_rewrite:
            manifest = rewrite_dependencies(pkg.manifest, updates)
            if manifest != pkg.manifest:
                print(f"  {pkg.name}: dependency ranges updated")
                changed.append(pkg.model_copy(update={"manifest": manifest}))
    return changed


def write_packages(changed: Sequence[Package]) -> None:
    """Persist rewritten manifests to disk."""
    for pkg in changed:
        save_manifest(Path(pkg.dir) / MANIFEST_FILENAME, pkg.manifest)


def commit_bumps(root: Path, changed: Sequence[Package]) -> None:
    """Commit the rewritten manifests."""
    step("Committing")
    for pkg in changed:
        git("add", str(Path(pkg.dir) / MANIFEST_FILENAME), cwd=str(root))

    summary = "\n".join(f"  {pkg.name}@{pkg.version}" for pkg in changed)
    git("commit", "-m", "chore: version packages", "-m", summary, cwd=str(root))
    print("  Committed")


def run_version(
    root: Path, updates: Sequence[VersionUpdate], *, dry_run: bool = False
) -> list[Package]:
    """Execute the full version pipeline.

    Args:
        root: Workspace root directory.
        updates: New versions to apply.
        dry_run: If True, compute the changes but write nothing.

    Returns:
        The changed packages.
    """
    packages = discover_packages(root)
    config = load_config(root, packages)
    changed = bump_versions(packages, updates, config)

    if not changed:
        print("\nNothing to update.")
        return changed
    if dry_run:
        print("\nDry run: no files written.")
        return changed

    write_packages(changed)
    if config.commit:
        commit_bumps(root, changed)
    return changed
