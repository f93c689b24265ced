"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from monobump.models import Package, PackageGraph


def make_package(name: str, version: str = "1.0.0", **dep_blocks: Any) -> Package:
    """Build a Package whose manifest declares the given dependency blocks."""
    manifest: dict[str, Any] = {"name": name, "version": version, **dep_blocks}
    return Package(name=name, version=version, dir=f"packages/{name}", manifest=manifest)


def make_graph(*packages: Package) -> PackageGraph:
    root = Package(name="root", version="0.0.0", dir=".")
    return PackageGraph(root=root, packages=list(packages), tool="npm")


@pytest.fixture
def sample_graph() -> PackageGraph:
    """pkg-c → pkg-b → pkg-a, plus an unrelated pkg-d."""
    return make_graph(
        make_package("pkg-a"),
        make_package("pkg-b", dependencies={"pkg-a": "^1.0.0"}),
        make_package("pkg-c", devDependencies={"pkg-b": "workspace:*"}),
        make_package("pkg-d"),
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary npm workspace on disk.

    packages/a has no deps, packages/b depends on a, packages/c depends on
    b through the workspace protocol.
    """
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "root", "private": True, "workspaces": ["packages/*"]})
    )
    manifests = {
        "a": {"name": "pkg-a", "version": "1.0.0"},
        "b": {
            "name": "pkg-b",
            "version": "1.0.0",
            "dependencies": {"pkg-a": "^1.0.0", "lodash": "^4.17.0"},
        },
        "c": {
            "name": "pkg-c",
            "version": "2.0.0",
            "dependencies": {"pkg-b": "workspace:~1.0.0"},
            "devDependencies": {"pkg-a": "*"},
        },
    }
    for dirname, manifest in manifests.items():
        pkg_dir = tmp_path / "packages" / dirname
        pkg_dir.mkdir(parents=True)
        (pkg_dir / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
    return tmp_path
